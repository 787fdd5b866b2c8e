"""Audit log listener: writes every ballot event to the standard logger."""

import logging

from core.events import register_listener
from core.events.base import BallotListener
from core.models import BallotEvent, Voted, VoterRegistered

logger = logging.getLogger(__name__)


@register_listener
class AuditLogListener(BallotListener):
    """Logs each committed event at INFO level."""

    @property
    def name(self) -> str:
        return "Audit Log"

    def notify(self, event: BallotEvent) -> None:
        if isinstance(event, VoterRegistered):
            logger.info("Voter registered: %s (weight %d)", event.voter, event.weight)
        elif isinstance(event, Voted):
            logger.info("Vote cast: %s -> proposal %d", event.voter, event.proposal)
