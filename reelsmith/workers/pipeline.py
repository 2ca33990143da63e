"""Pipeline step Celery task.

One message per ``(content_item_id, step)``. The task applies the uniform
queue policy (bounded attempts, exponential backoff); the orchestrator
decides whether a failure is recorded now or left to the next attempt.
"""

import uuid
from datetime import UTC, datetime
from typing import Any

from celery import shared_task
from celery.utils.log import get_task_logger
from pydantic import BaseModel

from reelsmith.config.pipeline import QueueConfig
from reelsmith.core.container import get_container
from reelsmith.models.content_item import PipelineStep
from reelsmith.services.pipeline.orchestrator import NON_RETRYABLE_ERRORS
from reelsmith.workers.celery_app import run_async

logger = get_task_logger(__name__)

queue_config = QueueConfig()


class StepTaskResult(BaseModel):
    """Result of a pipeline step task.

    Attributes:
        content_item_id: Content item advanced
        step: Step that ran
        next_step: Step enqueued next, if any
        started_at: Task start time
        completed_at: Task completion time
        error: Error message of a permanent failure
    """

    content_item_id: str
    step: str
    next_step: str | None = None
    started_at: datetime
    completed_at: datetime | None = None
    error: str | None = None


async def _run_pipeline_step_async(
    content_item_id: str,
    step: str,
    is_final_attempt: bool,
) -> StepTaskResult:
    started_at = datetime.now(tz=UTC)
    orchestrator = get_container().services.pipeline_orchestrator()
    following = await orchestrator.run_step(
        uuid.UUID(content_item_id),
        PipelineStep(step),
        is_final_attempt=is_final_attempt,
    )
    return StepTaskResult(
        content_item_id=content_item_id,
        step=step,
        next_step=following.value if following else None,
        started_at=started_at,
        completed_at=datetime.now(tz=UTC),
    )


@shared_task(
    bind=True,
    name="reelsmith.workers.pipeline.run_pipeline_step",
    max_retries=queue_config.max_retries,
    rate_limit=queue_config.rate_limit,
)
def run_pipeline_step(self, content_item_id: str, step: str) -> dict[str, Any]:
    """Run one pipeline step.

    Args:
        self: Celery task instance
        content_item_id: Content item ID
        step: Pipeline step value (e.g. "generate-audio")

    Returns:
        StepTaskResult as dict
    """
    retries = self.request.retries
    is_final_attempt = retries >= queue_config.max_retries
    logger.info(f"Running {step} for {content_item_id} (attempt {retries + 1})")

    try:
        result = run_async(_run_pipeline_step_async(content_item_id, step, is_final_attempt))
    except NON_RETRYABLE_ERRORS as e:
        logger.error(f"Step {step} rejected for {content_item_id}: {e}")
        return StepTaskResult(
            content_item_id=content_item_id,
            step=step,
            started_at=datetime.now(tz=UTC),
            error=str(e),
        ).model_dump(mode="json")
    except Exception as exc:
        countdown = queue_config.backoff_for(retries)
        logger.warning(f"Step {step} failed for {content_item_id}, retry in {countdown}s: {exc}")
        raise self.retry(exc=exc, countdown=countdown) from exc

    logger.info(f"Step {step} done for {content_item_id}, next: {result.next_step}")
    return result.model_dump(mode="json")


__all__ = [
    "StepTaskResult",
    "run_pipeline_step",
]
