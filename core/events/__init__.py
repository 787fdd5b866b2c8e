"""Listeners for ballot notifications."""

from .base import BallotListener

# Listener registry - import listeners here to register them
_listeners: list[type[BallotListener]] = []


def register_listener(listener_class: type[BallotListener]) -> type[BallotListener]:
    """Decorator to register a default listener class."""
    _listeners.append(listener_class)
    return listener_class


def get_all_listeners() -> list[BallotListener]:
    """Return fresh instances of all registered listeners."""
    return [listener_class() for listener_class in _listeners]

