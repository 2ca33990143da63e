"""Pipeline step tables and the status transitions derived from them.

The per-mode step tables are the single source of truth: the order of
steps, the in-progress status of each step and the allowed status
transitions all come from here. :func:`verify_pipeline_definitions` is
run when the orchestrator is imported so a broken table fails at startup
rather than halfway through a batch.
"""

from reelsmith.core.state_machine import (
    StateMachine,
    StateMachineDefinitionError,
    TransitionMap,
    verify_transition_map,
)
from reelsmith.models.content_item import ContentStatus, PipelineStep, RenderMode

STEP_STATUS: dict[PipelineStep, ContentStatus] = {
    PipelineStep.GENERATE_SCRIPT: ContentStatus.GENERATING_SCRIPT,
    PipelineStep.VALIDATE_SCRIPT: ContentStatus.VALIDATING_SCRIPT,
    PipelineStep.GENERATE_IMAGE_PROMPTS: ContentStatus.GENERATING_IMAGE_PROMPTS,
    PipelineStep.GENERATE_IMAGES: ContentStatus.GENERATING_IMAGES,
    PipelineStep.GENERATE_AUDIO: ContentStatus.GENERATING_AUDIO,
    PipelineStep.GENERATE_SUBTITLES: ContentStatus.GENERATING_SUBTITLES,
    PipelineStep.RENDER: ContentStatus.RENDERING,
}

_COMMON_PREFIX = (PipelineStep.GENERATE_SCRIPT, PipelineStep.VALIDATE_SCRIPT)
_MEDIA_SUFFIX = (
    PipelineStep.GENERATE_AUDIO,
    PipelineStep.GENERATE_SUBTITLES,
    PipelineStep.RENDER,
)

PIPELINE_STEPS: dict[RenderMode, tuple[PipelineStep, ...]] = {
    RenderMode.STATIC_BACKGROUND: _COMMON_PREFIX + _MEDIA_SUFFIX,
    RenderMode.AI_IMAGES: _COMMON_PREFIX
    + (PipelineStep.GENERATE_IMAGE_PROMPTS, PipelineStep.GENERATE_IMAGES)
    + _MEDIA_SUFFIX,
}

TERMINAL_STATUSES = frozenset({ContentStatus.COMPLETED, ContentStatus.FAILED})


class PipelineDefinitionError(StateMachineDefinitionError):
    """Step tables or derived transitions are inconsistent."""


def steps_for(mode: RenderMode) -> tuple[PipelineStep, ...]:
    return PIPELINE_STEPS[mode]


def first_step(mode: RenderMode) -> PipelineStep:
    return PIPELINE_STEPS[mode][0]


def status_for(step: PipelineStep) -> ContentStatus:
    return STEP_STATUS[step]


def next_step(mode: RenderMode, step: PipelineStep) -> PipelineStep | None:
    """Step that follows ``step`` in ``mode``, or None after the last one.

    Raises:
        ValueError: If ``step`` is not part of ``mode``
    """
    steps = PIPELINE_STEPS[mode]
    position = steps.index(step)
    return steps[position + 1] if position + 1 < len(steps) else None


def build_transitions(mode: RenderMode) -> TransitionMap[ContentStatus]:
    """Status transitions allowed for one render mode.

    - Pending may enter any step of the mode, so a retry can resume at the
      failed step.
    - Each step status moves to the next step's status, or Completed after
      the last step.
    - Every non-terminal status may move to Failed; Failed returns to
      Pending on retry. Completed is terminal.
    """
    statuses = [STEP_STATUS[step] for step in PIPELINE_STEPS[mode]]
    transitions: TransitionMap[ContentStatus] = {
        ContentStatus.PENDING: [*statuses, ContentStatus.FAILED],
    }
    for current, following in zip(statuses, [*statuses[1:], ContentStatus.COMPLETED], strict=True):
        transitions[current] = [following, ContentStatus.FAILED]
    transitions[ContentStatus.COMPLETED] = []
    transitions[ContentStatus.FAILED] = [ContentStatus.PENDING]
    return transitions


PIPELINE_TRANSITIONS: dict[RenderMode, TransitionMap[ContentStatus]] = {
    mode: build_transitions(mode) for mode in RenderMode
}


def create_content_state_machine(mode: RenderMode, status: ContentStatus) -> StateMachine:
    """State machine for a content item in ``status``."""
    return StateMachine(status, PIPELINE_TRANSITIONS[mode])


def verify_pipeline_definitions() -> None:
    """Check every mode's step table and derived transitions.

    Raises:
        PipelineDefinitionError: If a step lacks a status, a table repeats a
            step, or a transition map has dead ends or unreachable states
    """
    problems: list[str] = []
    for mode, steps in PIPELINE_STEPS.items():
        if not steps:
            problems.append(f"{mode.value}: no steps")
            continue
        if len(set(steps)) != len(steps):
            problems.append(f"{mode.value}: repeated step")
        problems.extend(
            f"{mode.value}: step {step.value} has no status"
            for step in steps
            if step not in STEP_STATUS
        )
        if problems:
            continue
        try:
            verify_transition_map(
                f"pipeline:{mode.value}",
                PIPELINE_TRANSITIONS[mode],
                ContentStatus.PENDING,
                {ContentStatus.COMPLETED},
            )
        except StateMachineDefinitionError as e:
            problems.extend(f"{mode.value}: {p}" for p in e.problems)

    if problems:
        raise PipelineDefinitionError("pipeline", problems)


__all__ = [
    "PIPELINE_STEPS",
    "PIPELINE_TRANSITIONS",
    "STEP_STATUS",
    "TERMINAL_STATUSES",
    "PipelineDefinitionError",
    "build_transitions",
    "create_content_state_machine",
    "first_step",
    "next_step",
    "status_for",
    "steps_for",
    "verify_pipeline_definitions",
]
