"""Generic state machine for model status transitions.

Example:
    TRANSITIONS: TransitionMap[UploadStatus] = {
        UploadStatus.SCHEDULED: [UploadStatus.UPLOADING, UploadStatus.FAILED],
        UploadStatus.UPLOADING: [UploadStatus.COMPLETED, UploadStatus.FAILED],
        UploadStatus.COMPLETED: [],
        UploadStatus.FAILED: [UploadStatus.SCHEDULED],
    }

    sm = StateMachine(UploadStatus.SCHEDULED, TRANSITIONS)
    sm.transition_to(UploadStatus.UPLOADING)
"""

from collections import deque
from enum import Enum
from typing import Generic, TypeVar

from reelsmith.core.exceptions import ReelsmithError

T = TypeVar("T", bound=str | Enum)

TransitionMap = dict[T, list[T]]


class InvalidTransitionError(ReelsmithError):
    """Raised when a status change is not allowed by the transition map."""

    def __init__(self, current: T, target: T, allowed: list[T] | None = None):
        self.current = current
        self.target = target
        self.allowed = allowed or []
        self.error_code = "INVALID_TRANSITION"
        allowed_str = ", ".join(str(s) for s in self.allowed) if self.allowed else "none"
        super().__init__(
            message=f"Invalid transition from '{current}' to '{target}'. "
            f"Allowed transitions: {allowed_str}",
            context={
                "current": str(current),
                "target": str(target),
                "allowed": [str(s) for s in self.allowed],
            },
        )


class StateMachineDefinitionError(ReelsmithError):
    """Raised at startup when a transition map is internally inconsistent."""

    def __init__(self, name: str, problems: list[str]):
        self.problems = problems
        super().__init__(
            f"Invalid state machine definition '{name}': " + "; ".join(problems),
            context={"definition": name, "problems": problems},
        )


class StateMachine(Generic[T]):
    """State holder that only moves along an explicit transition map.

    Re-entering the current state is always accepted so that a job which
    crashed after persisting its status can run again.

    Attributes:
        current: Current state
    """

    def __init__(self, initial: T, transitions: TransitionMap[T]):
        """Initialize state machine.

        Args:
            initial: Initial state
            transitions: Map of state -> list of allowed target states
        """
        self._current = initial
        self._transitions = transitions

    @property
    def current(self) -> T:
        return self._current

    @property
    def allowed_transitions(self) -> list[T]:
        return self._transitions.get(self._current, [])

    def can_transition(self, target: T) -> bool:
        """Check whether moving to ``target`` is allowed.

        Args:
            target: Target state

        Returns:
            True for the current state itself or any listed successor
        """
        return target == self._current or target in self.allowed_transitions

    def transition(self, target: T) -> None:
        """Move to ``target``.

        Raises:
            InvalidTransitionError: If the transition is not allowed
        """
        if not self.can_transition(target):
            raise InvalidTransitionError(
                current=self._current,
                target=target,
                allowed=self.allowed_transitions,
            )
        self._current = target

    def transition_to(self, target: T) -> T:
        """Move to ``target`` and return the new state."""
        self.transition(target)
        return self._current

    def reset(self, state: T) -> None:
        """Force the state, bypassing transition rules."""
        self._current = state

    def __str__(self) -> str:
        return f"StateMachine(current={self._current})"

    def __repr__(self) -> str:
        return f"StateMachine(current={self._current!r}, allowed={self.allowed_transitions!r})"


def verify_transition_map(
    name: str,
    transitions: TransitionMap[T],
    initial: T,
    terminal: set[T],
) -> None:
    """Check a transition map for dead ends and unreachable states.

    Args:
        name: Name used in the error message
        transitions: Map to verify
        initial: Entry state
        terminal: States allowed to have no successor

    Raises:
        StateMachineDefinitionError: If any state is unknown, unreachable,
            or a non-terminal state has no successor
    """
    problems: list[str] = []
    states = set(transitions)

    for state, targets in transitions.items():
        for target in targets:
            if target not in states:
                problems.append(f"{state} -> {target}: unknown target")
        if not targets and state not in terminal:
            problems.append(f"{state} has no successor")

    seen = {initial}
    queue = deque([initial])
    while queue:
        for target in transitions.get(queue.popleft(), []):
            if target not in seen:
                seen.add(target)
                queue.append(target)
    for state in states - seen:
        problems.append(f"{state} is unreachable from {initial}")

    if problems:
        raise StateMachineDefinitionError(name, sorted(problems))


# ============================================
# Transition Maps
# ============================================


def get_upload_transitions() -> TransitionMap:
    """Get transition map for UploadStatus."""
    from reelsmith.models.upload_schedule import UploadStatus

    return {
        # Scheduled -> Completed when every platform already has a URL
        UploadStatus.SCHEDULED: [
            UploadStatus.UPLOADING,
            UploadStatus.COMPLETED,
            UploadStatus.FAILED,
        ],
        UploadStatus.UPLOADING: [UploadStatus.COMPLETED, UploadStatus.FAILED],
        UploadStatus.COMPLETED: [],  # Terminal state
        UploadStatus.FAILED: [UploadStatus.SCHEDULED],  # Allow retry
    }


def create_upload_state_machine(initial_status: str | None = None) -> StateMachine:
    """Create a state machine for UploadSchedule status.

    Args:
        initial_status: Initial status (default: SCHEDULED)

    Returns:
        Configured StateMachine for UploadSchedule
    """
    from reelsmith.models.upload_schedule import UploadStatus

    initial = UploadStatus(initial_status) if initial_status else UploadStatus.SCHEDULED
    return StateMachine(initial, get_upload_transitions())
