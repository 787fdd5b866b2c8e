"""
Configuration for the ballot service, read from the environment.
"""
import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration."""

    # Ballot Configuration
    BALLOT_ADMINISTRATOR = os.getenv('BALLOT_ADMINISTRATOR', 'chairperson')
    BALLOT_PROPOSALS = os.getenv('BALLOT_PROPOSALS', 'Proposal A,Proposal B')

    # Optional JSON-lines event log; the ballot is restored from it on startup
    BALLOT_EVENTS_PATH = os.getenv('BALLOT_EVENTS_PATH') or None

    # Optional shared secret; when set, HTTP "register" commands must send
    # "Authorization: Bearer <token>"
    BALLOT_ADMIN_TOKEN = os.getenv('BALLOT_ADMIN_TOKEN') or None

    # Logging Configuration
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    def proposal_names(self) -> list[str]:
        """Proposal names from BALLOT_PROPOSALS, in order, blanks dropped."""
        return [name.strip() for name in self.BALLOT_PROPOSALS.split(',') if name.strip()]


config = Config()
