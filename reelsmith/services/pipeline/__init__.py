"""Content pipeline: step tables, handlers and the orchestrator."""

from reelsmith.services.pipeline.definitions import (
    PIPELINE_STEPS,
    STEP_STATUS,
    PipelineDefinitionError,
    next_step,
    verify_pipeline_definitions,
)
from reelsmith.services.pipeline.dispatcher import Dispatcher
from reelsmith.services.pipeline.orchestrator import PipelineOrchestrator, is_retryable
from reelsmith.services.pipeline.steps import PipelineSteps

__all__ = [
    "PIPELINE_STEPS",
    "STEP_STATUS",
    "Dispatcher",
    "PipelineDefinitionError",
    "PipelineOrchestrator",
    "PipelineSteps",
    "is_retryable",
    "next_step",
    "verify_pipeline_definitions",
]
