"""Shared test helpers."""

from core.ballot import Ballot
from core.events.base import BallotListener
from core.models import BallotEvent

ADMIN = "chair"


class RecordingListener(BallotListener):
    """Listener that keeps every event it is given."""

    def __init__(self):
        self.received: list[BallotEvent] = []

    @property
    def name(self) -> str:
        return "Recording"

    def notify(self, event: BallotEvent) -> None:
        self.received.append(event)


def make_ballot(proposals: list[str], voters: tuple[str, ...] | list[str] = (),
                listeners: list[BallotListener] | None = None) -> Ballot:
    """Build a Ballot administered by ADMIN with `voters` already registered.

    Args:
        proposals: Proposal names, in index order
        voters: Identities to register (ADMIN is registered automatically)
        listeners: Passed through to Ballot; defaults to none, so tests
            don't log audit lines unless they ask for them.
    """
    ballot = Ballot(ADMIN, proposals, listeners=[] if listeners is None else listeners)
    for voter in voters:
        ballot.register_voter(ADMIN, voter)
    return ballot


def assert_tally_consistent(ballot: Ballot):
    """Sum of vote counts equals the total weight of everyone who voted."""
    voted_weight = sum(v.weight for v in ballot.voters.values() if v.voted)
    assert sum(p.vote_count for p in ballot.proposals) == voted_weight
