"""Shared fixtures for listener tests."""

import pytest

from core.models import Voted, VoterRegistered


@pytest.fixture
def sample_events():
    """A short, valid history: alice and bob registered, both voted."""
    return [
        VoterRegistered("alice", 1),
        VoterRegistered("bob", 1),
        Voted("alice", 1),
        Voted("bob", 0),
    ]


@pytest.fixture
def events_path(tmp_path):
    return tmp_path / "events" / "ballot.jsonl"
