"""Unit tests for StateMachine."""

import pytest

from reelsmith.core.state_machine import (
    InvalidTransitionError,
    StateMachine,
    StateMachineDefinitionError,
    create_upload_state_machine,
    verify_transition_map,
)
from reelsmith.models.upload_schedule import UploadStatus


class TestStateMachine:
    """Tests for generic StateMachine."""

    @pytest.fixture
    def simple_transitions(self):
        """Create simple transition map for testing."""
        return {
            "start": ["middle", "end"],
            "middle": ["end"],
            "end": [],
        }

    @pytest.fixture
    def state_machine(self, simple_transitions):
        """Create state machine with simple transitions."""
        return StateMachine("start", simple_transitions)

    def test_initial_state(self, state_machine):
        """Test that initial state is set correctly."""
        assert state_machine.current == "start"

    def test_can_transition_valid(self, state_machine):
        """Test can_transition returns True for valid transitions."""
        assert state_machine.can_transition("middle") is True
        assert state_machine.can_transition("end") is True

    def test_can_transition_invalid(self, state_machine):
        """Test can_transition returns False for invalid transitions."""
        assert state_machine.can_transition("nonexistent") is False

    def test_same_state_reentry_allowed(self, state_machine):
        """Test re-entering the current state is a valid no-op."""
        state_machine.transition("middle")
        assert state_machine.can_transition("middle") is True
        state_machine.transition("middle")
        assert state_machine.current == "middle"

    def test_transition_invalid_raises(self, state_machine):
        """Test invalid transition raises error with context."""
        state_machine.transition("middle")

        with pytest.raises(InvalidTransitionError) as exc_info:
            state_machine.transition("start")

        assert exc_info.value.current == "middle"
        assert exc_info.value.target == "start"
        assert "end" in exc_info.value.allowed
        assert exc_info.value.context["target"] == "start"

    def test_transition_to_returns_state(self, state_machine):
        """Test transition_to returns new state."""
        assert state_machine.transition_to("middle") == "middle"

    def test_allowed_transitions(self, state_machine):
        """Test allowed_transitions property."""
        assert state_machine.allowed_transitions == ["middle", "end"]

        state_machine.transition("end")
        assert state_machine.allowed_transitions == []

    def test_reset_bypasses_validation(self, state_machine):
        """Test reset allows setting any state."""
        state_machine.transition("end")
        assert state_machine.can_transition("start") is False

        state_machine.reset("start")
        assert state_machine.current == "start"

    def test_repr_representation(self, state_machine):
        """Test repr lists current state and successors."""
        repr_str = repr(state_machine)
        assert "start" in repr_str
        assert "middle" in repr_str


class TestVerifyTransitionMap:
    """Tests for transition map verification."""

    def test_valid_map_passes(self):
        """Test a consistent map raises nothing."""
        verify_transition_map("ok", {"a": ["b"], "b": ["c"], "c": []}, "a", {"c"})

    def test_dead_end_reported(self):
        """Test a non-terminal state without successors is reported."""
        with pytest.raises(StateMachineDefinitionError) as exc_info:
            verify_transition_map("bad", {"a": ["b"], "b": []}, "a", set())

        assert "b has no successor" in exc_info.value.problems

    def test_unreachable_state_reported(self):
        """Test states not reachable from the initial state are reported."""
        with pytest.raises(StateMachineDefinitionError) as exc_info:
            verify_transition_map("bad", {"a": ["c"], "b": ["c"], "c": []}, "a", {"c"})

        assert "b is unreachable from a" in exc_info.value.problems

    def test_unknown_target_reported(self):
        """Test a target missing from the map is reported."""
        with pytest.raises(StateMachineDefinitionError) as exc_info:
            verify_transition_map("bad", {"a": ["zzz"]}, "a", {"a"})

        assert any("unknown target" in p for p in exc_info.value.problems)


class TestUploadStateMachine:
    """Tests for UploadSchedule state machine."""

    def test_create_with_default(self):
        """Test creating with default initial state."""
        sm = create_upload_state_machine()
        assert sm.current == UploadStatus.SCHEDULED

    def test_create_from_raw_column_value(self):
        """Test the raw string stored in the column is accepted."""
        sm = create_upload_state_machine("uploading")
        assert sm.current == UploadStatus.UPLOADING
        assert sm.can_transition(UploadStatus.COMPLETED) is True

    def test_full_workflow(self):
        """Test SCHEDULED -> UPLOADING -> COMPLETED."""
        sm = create_upload_state_machine()
        sm.transition_to(UploadStatus.UPLOADING)
        sm.transition_to(UploadStatus.COMPLETED)
        assert sm.allowed_transitions == []

    def test_scheduled_can_complete_directly(self):
        """Test a schedule with nothing pending may complete without uploading."""
        sm = create_upload_state_machine("scheduled")
        assert sm.can_transition(UploadStatus.COMPLETED) is True

    def test_failed_can_be_rescheduled(self):
        """Test FAILED -> SCHEDULED for retries."""
        sm = create_upload_state_machine("failed")
        sm.transition_to(UploadStatus.SCHEDULED)
        assert sm.current == UploadStatus.SCHEDULED

    def test_completed_cannot_fail(self):
        """Test COMPLETED is terminal."""
        sm = create_upload_state_machine("completed")
        with pytest.raises(InvalidTransitionError):
            sm.transition_to(UploadStatus.FAILED)
