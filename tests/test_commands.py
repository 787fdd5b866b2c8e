"""Tests for the command dispatcher."""

import threading

import pytest
from tests.conftest import ADMIN, RecordingListener, make_ballot

from core.ballot import AlreadyVotedError
from core.commands import CommandError, execute_command


class TestExecuteCommand:
    def setup_method(self):
        self.ballot = make_ballot(["A", "B"])

    def test_register(self):
        result = execute_command(
            self.ballot, {"action": "register", "caller": ADMIN, "voter": "alice"}
        )
        assert result == {"event": {"event": "VoterRegistered", "voter": "alice", "weight": 1}}
        assert self.ballot.voter("alice").registered

    def test_vote(self):
        self.ballot.register_voter(ADMIN, "alice")
        result = execute_command(
            self.ballot, {"action": "vote", "caller": "alice", "proposal": 1}
        )
        assert result == {"event": {"event": "Voted", "voter": "alice", "proposal": 1}}

    def test_winner(self):
        self.ballot.cast_vote(ADMIN, 1)
        assert execute_command(self.ballot, {"action": "winner"}) == {"index": 1, "name": "B"}

    def test_state(self):
        assert execute_command(self.ballot, {"action": "state"}) == self.ballot.snapshot()

    def test_not_a_dict(self):
        with pytest.raises(CommandError) as exc_info:
            execute_command(self.ballot, ["register"])
        assert exc_info.value.status == 400

    @pytest.mark.parametrize("action", [None, "delegate", "REGISTER"])
    def test_unknown_action(self, action):
        with pytest.raises(CommandError, match="Unknown action") as exc_info:
            execute_command(self.ballot, {"action": action})
        assert exc_info.value.status == 400

    def test_missing_field(self):
        with pytest.raises(CommandError, match="'voter'") as exc_info:
            execute_command(self.ballot, {"action": "register", "caller": ADMIN})
        assert exc_info.value.status == 400

    @pytest.mark.parametrize("proposal", ["1", True, 1.5, None])
    def test_bad_proposal_type(self, proposal):
        with pytest.raises(CommandError, match="'proposal'") as exc_info:
            execute_command(
                self.ballot, {"action": "vote", "caller": ADMIN, "proposal": proposal}
            )
        assert exc_info.value.status == 400
        assert self.ballot.total_votes == 0

    def test_authorization_is_403(self):
        with pytest.raises(CommandError) as exc_info:
            execute_command(
                self.ballot, {"action": "register", "caller": "alice", "voter": "bob"}
            )
        assert exc_info.value.status == 403

    def test_out_of_range_is_404(self):
        with pytest.raises(CommandError) as exc_info:
            execute_command(
                self.ballot, {"action": "vote", "caller": ADMIN, "proposal": 2}
            )
        assert exc_info.value.status == 404

    def test_empty_ballot_winner_is_404(self):
        with pytest.raises(CommandError) as exc_info:
            execute_command(make_ballot([]), {"action": "winner"})
        assert exc_info.value.status == 404

    @pytest.mark.parametrize("command", [
        {"action": "register", "caller": ADMIN, "voter": ADMIN},
        {"action": "vote", "caller": "mallory", "proposal": 0},
    ])
    def test_conflicts_are_409(self, command):
        with pytest.raises(CommandError) as exc_info:
            execute_command(self.ballot, command)
        assert exc_info.value.status == 409

    def test_double_vote_keeps_cause(self):
        self.ballot.cast_vote(ADMIN, 0)
        with pytest.raises(CommandError) as exc_info:
            execute_command(self.ballot, {"action": "vote", "caller": ADMIN, "proposal": 0})
        assert exc_info.value.status == 409
        assert isinstance(exc_info.value.__cause__, AlreadyVotedError)

    def test_winner_index_and_name_from_one_state(self, monkeypatch):
        ballot = make_ballot(["A", "B"], ["alice"])
        compute = ballot._winning_proposal
        late_vote = threading.Thread(target=ballot.cast_vote, args=("alice", 1))

        def compute_then_vote():
            index = compute()
            if not late_vote.is_alive() and ballot.total_votes == 0:
                # The vote waits for the lock held by the winner query
                late_vote.start()
                late_vote.join(timeout=0.2)
            return index

        monkeypatch.setattr(ballot, "_winning_proposal", compute_then_vote)
        assert execute_command(ballot, {"action": "winner"}) == {"index": 0, "name": "A"}

        late_vote.join()
        assert execute_command(ballot, {"action": "winner"}) == {"index": 1, "name": "B"}

    def test_persistence_failure_is_503(self):
        class FailingStore(RecordingListener):
            critical = True

            def notify(self, event):
                raise OSError("read-only file system")

        ballot = make_ballot(["A"], listeners=[FailingStore()])
        with pytest.raises(CommandError, match="read-only") as exc_info:
            execute_command(ballot, {"action": "vote", "caller": ADMIN, "proposal": 0})
        assert exc_info.value.status == 503
        assert ballot.total_votes == 0
