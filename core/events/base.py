"""Abstract base class for ballot listeners."""

from abc import ABC, abstractmethod

from core.models import BallotEvent


class BallotListener(ABC):
    """Abstract base class for consumers of ballot notifications.

    A ballot delivers each event to its listeners in commit order.
    Listeners with no constructor arguments can be registered as defaults
    via the @register_listener decorator in core/events/__init__.py.

    Attributes:
        critical: If True, the listener is notified before the ballot's
            state changes and any exception it raises rejects the
            operation (used for durable event logs). Otherwise it is
            notified after the commit and its failures are only logged.
    """

    critical: bool = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name of this listener."""
        pass

    @abstractmethod
    def notify(self, event: BallotEvent) -> None:
        """Handle a ballot event.

        Args:
            event: The VoterRegistered or Voted event
        """
        pass
