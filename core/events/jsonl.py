"""JSON-lines event log: one event object per line, append-only."""

import json
from pathlib import Path

from core.events.base import BallotListener
from core.models import BallotEvent, event_from_dict


class JsonLinesListener(BallotListener):
    """Appends each event to a JSON-lines file.

    Critical: a failed write rejects the ballot operation, so the file never
    falls behind the in-memory state. Not registered as a default listener
    because it needs a path. The file it writes can be loaded back with
    read_events() and replayed with Ballot.restore().
    """

    critical = True

    def __init__(self, path: str | Path):
        self.path = Path(path)

    @property
    def name(self) -> str:
        return "JSON Lines"

    def notify(self, event: BallotEvent) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(event.to_dict()) + "\n")


def read_events(path: str | Path) -> list[BallotEvent]:
    """Load events from a JSON-lines file written by JsonLinesListener.

    A missing file is treated as an empty log. Blank lines are skipped.

    Raises:
        ValueError: If a line is not valid JSON or not a well-formed event
    """
    path = Path(path)
    if not path.exists():
        return []

    events = []
    with path.open(encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError as e:
                raise ValueError(f"{path}:{line_number}: invalid JSON: {e}") from e
            try:
                events.append(event_from_dict(data))
            except ValueError as e:
                raise ValueError(f"{path}:{line_number}: {e}") from e
    return events
