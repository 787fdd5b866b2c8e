"""Permissioned ballot: an administrator registers voters, voters vote once."""

import logging
import threading
from collections.abc import Iterable
from dataclasses import replace
from typing import Any, NoReturn, Self

# Import listeners to register them
from core.events import audit  # noqa: F401
from core.events import get_all_listeners
from core.events.base import BallotListener
from core.models import BallotEvent, Proposal, Voted, Voter, VoterRegistered

logger = logging.getLogger(__name__)

# Every registration grants the same voting power
REGISTRATION_WEIGHT = 1


class BallotError(Exception):
    """Base class for rejected ballot operations.

    A rejected operation leaves the ballot unchanged and emits no event.
    """
    pass


class AuthorizationError(BallotError):
    """Raised when someone other than the administrator registers a voter."""
    pass


class AlreadyRegisteredError(BallotError):
    """Raised when registering a voter who already has voting weight."""
    pass


class NotEligibleError(BallotError):
    """Raised when an unregistered identity tries to vote."""
    pass


class AlreadyVotedError(BallotError):
    """Raised when a voter tries to vote a second time."""
    pass


class OutOfRangeError(BallotError, IndexError):
    """Raised for an invalid proposal index, or a winner query on an empty ballot."""
    pass


class PersistenceError(BallotError):
    """Raised when a durable listener cannot record an event.

    The operation is rejected: durable listeners run before the in-memory
    state changes, so nothing is committed.
    """
    pass


class Ballot:
    """Ballot state machine.

    Holds the voter registry and the proposal list. Each voter moves
    Unregistered -> Registered -> Voted and never back. Mutations and
    queries are serialized by a per-ballot lock, so a query never sees a
    half-applied vote.

    Args:
        administrator: Identity of the creator. Gets weight 1 immediately
            and is the only identity allowed to register voters.
        proposal_names: Proposal labels, in index order
        listeners: Receivers for events. Defaults to the registered
            listeners (see core/events/__init__.py). Critical listeners
            are notified before the state changes and can reject the
            operation; the rest are notified after it is committed.

    Example:
        >>> ballot = Ballot("chair", ["A", "B"])
        >>> ballot.register_voter("chair", "alice")
        VoterRegistered(voter='alice', weight=1)
        >>> ballot.cast_vote("alice", 1)
        Voted(voter='alice', proposal=1)
        >>> ballot.winner_name()
        'B'
    """

    def __init__(
        self,
        administrator: str,
        proposal_names: Iterable[str],
        listeners: list[BallotListener] | None = None,
    ):
        self._administrator = administrator
        self._proposals = [Proposal(name=name) for name in proposal_names]
        self._voters: dict[str, Voter] = {
            administrator: Voter(weight=REGISTRATION_WEIGHT),
        }
        self._events: list[BallotEvent] = []
        self._listeners = get_all_listeners() if listeners is None else list(listeners)
        self._lock = threading.RLock()

        logger.debug(
            "Ballot created by %s with %d proposals", administrator, len(self._proposals)
        )

    @classmethod
    def restore(
        cls,
        administrator: str,
        proposal_names: Iterable[str],
        events: Iterable[BallotEvent],
        listeners: list[BallotListener] | None = None,
    ) -> Self:
        """Rebuild a ballot by replaying a recorded event log.

        Events go back through register_voter/cast_vote, so a log that breaks
        any rule raises the same BallotError the original call would have.
        Listeners are attached after the replay and do not see old events.
        """
        ballot = cls(administrator, proposal_names, listeners=[])
        for event in events:
            if isinstance(event, VoterRegistered):
                ballot.register_voter(administrator, event.voter)
            elif isinstance(event, Voted):
                ballot.cast_vote(event.voter, event.proposal)
            else:
                raise TypeError(f"Not a ballot event: {event!r}")

        ballot._listeners = get_all_listeners() if listeners is None else list(listeners)
        return ballot

    # ------------------------------------------------------------------
    # Mutating operations
    # ------------------------------------------------------------------

    def register_voter(self, caller: str, voter: str) -> VoterRegistered:
        """Give `voter` the right to vote. Only the administrator may call this.

        Raises:
            AuthorizationError: caller is not the administrator
            AlreadyRegisteredError: voter already has voting weight
        """
        with self._lock:
            if caller != self._administrator:
                self._reject(f"{caller} is not the administrator", AuthorizationError)
            record = self._voters.get(voter)
            if record is not None and record.weight != 0:
                self._reject(f"{voter} is already registered", AlreadyRegisteredError)

            event = VoterRegistered(voter=voter, weight=REGISTRATION_WEIGHT)
            self._persist(event)

            if record is None:
                record = self._voters[voter] = Voter()
            record.weight = REGISTRATION_WEIGHT

            self._emit(event)
            return event

    def cast_vote(self, caller: str, proposal: int) -> Voted:
        """Cast the caller's whole weight for the proposal at index `proposal`.

        Raises:
            NotEligibleError: caller is not registered
            AlreadyVotedError: caller has already voted
            OutOfRangeError: proposal is not a valid index
        """
        with self._lock:
            record = self._voters.get(caller)
            if record is None or record.weight <= 0:
                self._reject(f"{caller} is not registered to vote", NotEligibleError)
            if record.voted:
                self._reject(f"{caller} has already voted", AlreadyVotedError)
            self._check_index(proposal)

            event = Voted(voter=caller, proposal=proposal)
            self._persist(event)

            record.voted = True
            record.vote = proposal
            self._proposals[proposal].vote_count += record.weight

            self._emit(event)
            return event

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def winning_proposal(self) -> int:
        """Index of the proposal with the most votes.

        Ties go to the lowest index. The running maximum starts at zero, so
        with no votes at all (or no proposals) the answer is 0.
        """
        with self._lock:
            return self._winning_proposal()

    def winner_name(self) -> str:
        """Name of the winning proposal.

        Raises:
            OutOfRangeError: the ballot has no proposals
        """
        with self._lock:
            if not self._proposals:
                raise OutOfRangeError("Ballot has no proposals")
            return self._proposals[self._winning_proposal()].name

    def winner(self) -> tuple[int, str]:
        """Winning index and its name, read together under one lock.

        Raises:
            OutOfRangeError: the ballot has no proposals
        """
        with self._lock:
            if not self._proposals:
                raise OutOfRangeError("Ballot has no proposals")
            index = self._winning_proposal()
            return index, self._proposals[index].name

    @property
    def administrator(self) -> str:
        return self._administrator

    def voter(self, identity: str) -> Voter:
        """Copy of the voter record for `identity` (zero weight if unknown)."""
        with self._lock:
            record = self._voters.get(identity)
            return Voter() if record is None else replace(record)

    @property
    def voters(self) -> dict[str, Voter]:
        """Copies of every voter record created so far."""
        with self._lock:
            return {identity: replace(record) for identity, record in self._voters.items()}

    def proposal(self, index: int) -> Proposal:
        with self._lock:
            self._check_index(index)
            return replace(self._proposals[index])

    @property
    def proposals(self) -> list[Proposal]:
        with self._lock:
            return [replace(p) for p in self._proposals]

    @property
    def num_proposals(self) -> int:
        return len(self._proposals)

    @property
    def voter_count(self) -> int:
        """Number of registered voters, administrator included."""
        with self._lock:
            return sum(1 for record in self._voters.values() if record.registered)

    @property
    def total_votes(self) -> int:
        with self._lock:
            return sum(p.vote_count for p in self._proposals)

    @property
    def events(self) -> tuple[BallotEvent, ...]:
        """Every event emitted so far, oldest first."""
        with self._lock:
            return tuple(self._events)

    def snapshot(self) -> dict[str, Any]:
        """Consistent, JSON-serializable view of the whole ballot."""
        with self._lock:
            winner = self._winning_proposal()
            return {
                "administrator": self._administrator,
                "proposals": [p.to_dict() for p in self._proposals],
                "voters": {
                    identity: record.to_dict()
                    for identity, record in self._voters.items()
                },
                "winning_proposal": winner,
                "winner_name": self._proposals[winner].name if self._proposals else None,
            }

    # ------------------------------------------------------------------
    # Internals (callers hold the lock)
    # ------------------------------------------------------------------

    def _winning_proposal(self) -> int:
        winning_vote_count = 0
        winning_proposal = 0
        for index, proposal in enumerate(self._proposals):
            if proposal.vote_count > winning_vote_count:
                winning_vote_count = proposal.vote_count
                winning_proposal = index
        return winning_proposal

    def _check_index(self, index: int) -> None:
        # bool is an int subclass but never a proposal index
        if (
            not isinstance(index, int)
            or isinstance(index, bool)
            or not 0 <= index < len(self._proposals)
        ):
            raise OutOfRangeError(
                f"Proposal index {index!r} is out of range "
                f"(ballot has {len(self._proposals)} proposals)"
            )

    def _reject(self, message: str, error_class: type[BallotError]) -> NoReturn:
        logger.warning("Rejected: %s", message)
        raise error_class(message)

    def _persist(self, event: BallotEvent) -> None:
        for listener in self._listeners:
            if not listener.critical:
                continue
            try:
                listener.notify(event)
            except Exception as e:
                logger.error("Listener %s could not record %s: %s", listener.name, event, e)
                raise PersistenceError(
                    f"Could not record {event.EVENT_TYPE} event: {e}"
                ) from e

    def _emit(self, event: BallotEvent) -> None:
        self._events.append(event)
        logger.debug("Committed %s", event)
        for listener in self._listeners:
            if listener.critical:
                continue
            try:
                listener.notify(event)
            except Exception:
                # State is already committed; keep delivering to the rest
                logger.exception("Listener %s failed on %s", listener.name, event)
