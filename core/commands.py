"""Dispatcher: turn JSON-style command dicts into ballot operations."""

from typing import Any

from core.ballot import (
    AlreadyRegisteredError,
    AlreadyVotedError,
    AuthorizationError,
    Ballot,
    BallotError,
    NotEligibleError,
    OutOfRangeError,
    PersistenceError,
)

# HTTP-style status for each rejected ballot operation
_ERROR_STATUS: dict[type[BallotError], int] = {
    AuthorizationError: 403,
    OutOfRangeError: 404,
    AlreadyRegisteredError: 409,
    NotEligibleError: 409,
    AlreadyVotedError: 409,
    PersistenceError: 503,
}

ACTIONS = ("register", "vote", "winner", "state")


class CommandError(Exception):
    """Error executing a ballot command.

    Attributes:
        status: HTTP-style status code describing the failure
    """

    def __init__(self, message: str, status: int = 400):
        super().__init__(message)
        self.status = status


def _require(command: dict[str, Any], key: str, kind: type) -> Any:
    value = command.get(key)
    # bool is an int subclass; "proposal": true is not an index
    if not isinstance(value, kind) or isinstance(value, bool):
        raise CommandError(f"Missing or invalid '{key}' (expected {kind.__name__})")
    return value


def execute_command(ballot: Ballot, command: dict[str, Any]) -> dict[str, Any]:
    """Run one command against a ballot.

    Args:
        ballot: The ballot to operate on
        command: Dict with an "action" key plus action-specific fields:
            - register: "caller", "voter"
            - vote: "caller", "proposal"
            - winner: no fields
            - state: no fields

    Returns:
        JSON-serializable result dict

    Raises:
        CommandError: If the command is malformed or the ballot rejects it
    """
    if not isinstance(command, dict):
        raise CommandError("Command must be a JSON object")

    action = command.get("action")
    if action not in ACTIONS:
        raise CommandError(
            f"Unknown action {action!r}. Expected one of: {', '.join(ACTIONS)}"
        )

    try:
        if action == "register":
            caller = _require(command, "caller", str)
            voter = _require(command, "voter", str)
            event = ballot.register_voter(caller, voter)
            return {"event": event.to_dict()}

        if action == "vote":
            caller = _require(command, "caller", str)
            proposal = _require(command, "proposal", int)
            event = ballot.cast_vote(caller, proposal)
            return {"event": event.to_dict()}

        if action == "winner":
            index, name = ballot.winner()
            return {"index": index, "name": name}

        return ballot.snapshot()

    except BallotError as e:
        raise CommandError(str(e), status=_ERROR_STATUS.get(type(e), 400)) from e
