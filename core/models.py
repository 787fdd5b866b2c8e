"""Core data models for voters, proposals and ballot notifications."""

from dataclasses import asdict, dataclass
from typing import Any, Self

# Proposal labels are short fixed-length names, measured in UTF-8 bytes
MAX_NAME_BYTES = 32


@dataclass
class Voter:
    """A voter record, keyed by identity in the ballot.

    Attributes:
        weight: Voting power. 0 means not registered.
        voted: Whether this voter has cast their vote
        delegate: Reserved for delegation; always None
        vote: Index of the voted proposal (only meaningful when voted is True)

    Example:
        >>> voter = Voter(weight=1)
        >>> voter.registered
        True
    """
    weight: int = 0
    voted: bool = False
    delegate: str | None = None
    vote: int | None = None

    @property
    def registered(self) -> bool:
        return self.weight > 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Proposal:
    """A proposal on the ballot.

    Attributes:
        name: Short label, fixed at ballot creation
        vote_count: Accumulated voting weight
    """
    name: str
    vote_count: int = 0

    def __post_init__(self):
        if len(self.name.encode("utf-8")) > MAX_NAME_BYTES:
            raise ValueError(
                f"Proposal name {self.name!r} is longer than {MAX_NAME_BYTES} bytes"
            )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "vote_count": self.vote_count}


@dataclass(frozen=True)
class VoterRegistered:
    """Emitted when the administrator gives a voter the right to vote."""
    voter: str
    weight: int

    EVENT_TYPE = "VoterRegistered"

    def to_dict(self) -> dict[str, Any]:
        return {"event": self.EVENT_TYPE, "voter": self.voter, "weight": self.weight}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        return cls(voter=data["voter"], weight=data["weight"])


@dataclass(frozen=True)
class Voted:
    """Emitted when a voter casts their vote for a proposal."""
    voter: str
    proposal: int

    EVENT_TYPE = "Voted"

    def to_dict(self) -> dict[str, Any]:
        return {"event": self.EVENT_TYPE, "voter": self.voter, "proposal": self.proposal}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        return cls(voter=data["voter"], proposal=data["proposal"])


BallotEvent = VoterRegistered | Voted

_EVENT_TYPES: dict[str, type[VoterRegistered] | type[Voted]] = {
    VoterRegistered.EVENT_TYPE: VoterRegistered,
    Voted.EVENT_TYPE: Voted,
}


def event_from_dict(data: dict[str, Any]) -> BallotEvent:
    """Build an event from its dict form (as produced by ``to_dict``).

    Raises:
        ValueError: If data is not a dict, names an unknown event, or lacks
            one of the event's fields
    """
    if not isinstance(data, dict):
        raise ValueError(f"Ballot event must be an object, got {type(data).__name__}")
    event_type = data.get("event")
    if not isinstance(event_type, str) or event_type not in _EVENT_TYPES:
        raise ValueError(f"Unknown ballot event: {event_type!r}")
    try:
        return _EVENT_TYPES[event_type].from_dict(data)
    except KeyError as e:
        raise ValueError(f"{event_type} event is missing field {e.args[0]!r}") from e
