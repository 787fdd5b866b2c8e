"""Simulate an election: register fake voters and have them vote.

Generates voter identities with faker using a fixed seed, registers them as
the administrator, then casts one vote each for a random proposal. Runs
either against an in-process ballot, or against a deployed ballot API.

Usage:
    python scripts/simulate_election.py --proposals "Parks,Roads,Library" -n 50
    python scripts/simulate_election.py --url https://example.com/api/ballot -n 50
"""

import argparse
import logging
import random
import sys
from pathlib import Path

import httpx
from faker import Faker

# Add the project root to the path so we can import core modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.ballot import Ballot
from core.commands import CommandError, execute_command
from core.config import config

logger = logging.getLogger(__name__)

SEED = 20260101


def generate_voters(count: int, seed: int) -> list[str]:
    """Generate `count` distinct fake voter identities."""
    fake = Faker(["en_US", "en_GB", "de_DE", "fr_FR"])
    Faker.seed(seed)

    voters: list[str] = []
    seen: set[str] = set()
    while len(voters) < count:
        identity = fake.user_name()
        # Ensure no collisions between generated identities
        if identity in seen:
            continue
        seen.add(identity)
        voters.append(identity)
    return voters


class LocalBallotClient:
    """Sends commands to an in-process ballot."""

    def __init__(self, administrator: str, proposal_names: list[str]):
        self.ballot = Ballot(administrator, proposal_names)

    def send(self, command: dict) -> dict:
        return execute_command(self.ballot, command)

    def close(self):
        pass


class HttpBallotClient:
    """Sends commands to a deployed ballot API."""

    def __init__(self, url: str):
        self.url = url
        self.client = httpx.Client(follow_redirects=True, timeout=30.0)

    def send(self, command: dict) -> dict:
        try:
            response = self.client.post(self.url, json=command)
        except httpx.RequestError as e:
            raise CommandError(f"Error contacting ballot API: {e}", status=502) from e
        if response.status_code >= 400:
            try:
                message = response.json().get("error", response.text)
            except ValueError:
                message = response.text
            raise CommandError(message, status=response.status_code)
        return response.json()

    def close(self):
        self.client.close()


def run_election(client, administrator: str, voters: list[str],
                 num_proposals: int, rng: random.Random) -> dict[str, int]:
    """Register every voter, then have each one vote once.

    Returns a count of rejected commands by action.
    """
    rejected = {"register": 0, "vote": 0}

    for voter in voters:
        try:
            client.send({"action": "register", "caller": administrator, "voter": voter})
        except CommandError as e:
            logger.warning("Registration of %s rejected: %s", voter, e)
            rejected["register"] += 1

    for voter in voters:
        proposal = rng.randrange(num_proposals)
        try:
            client.send({"action": "vote", "caller": voter, "proposal": proposal})
        except CommandError as e:
            logger.warning("Vote by %s rejected: %s", voter, e)
            rejected["vote"] += 1

    return rejected


def main():
    parser = argparse.ArgumentParser(
        description="Simulate an election against a ballot")
    parser.add_argument("-n", "--voters", type=int, default=25,
                        help="Number of fake voters (default: 25)")
    parser.add_argument("--proposals", default=config.BALLOT_PROPOSALS,
                        help="Comma-separated proposal names (local mode only)")
    parser.add_argument("--administrator", default=config.BALLOT_ADMINISTRATOR,
                        help="Administrator identity")
    parser.add_argument("--url", default=None,
                        help="Ballot API URL; omit to run an in-process ballot")
    parser.add_argument("--seed", type=int, default=SEED,
                        help=f"Random seed (default: {SEED})")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    voters = generate_voters(args.voters, args.seed)
    rng = random.Random(args.seed)

    if args.url:
        client = HttpBallotClient(args.url)
        state = client.send({"action": "state"})
        num_proposals = len(state["proposals"])
    else:
        names = [name.strip() for name in args.proposals.split(",") if name.strip()]
        client = LocalBallotClient(args.administrator, names)
        num_proposals = len(names)

    if num_proposals == 0:
        print("Ballot has no proposals; nothing to vote on.")
        client.close()
        return

    try:
        rejected = run_election(client, args.administrator, voters, num_proposals, rng)
        state = client.send({"action": "state"})
    finally:
        client.close()

    print(f"Simulated {len(voters)} voters "
          f"({rejected['register']} registrations and {rejected['vote']} votes rejected)")
    for index, proposal in enumerate(state["proposals"]):
        print(f"  [{index}] {proposal['name']}: {proposal['vote_count']}")
    print(f"Winner: {state['winner_name']} (index {state['winning_proposal']})")


if __name__ == "__main__":
    main()
