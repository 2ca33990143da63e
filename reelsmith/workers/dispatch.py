"""Celery-backed dispatcher for pipeline and upload messages."""

import uuid

from reelsmith.core.logging import get_logger
from reelsmith.models.content_item import PipelineStep

logger = get_logger(__name__)


class CeleryDispatcher:
    """Enqueues work onto the Celery queues.

    Task modules are imported on first use; they import the container,
    which in turn builds this dispatcher.
    """

    def enqueue_step(self, content_item_id: uuid.UUID, step: PipelineStep) -> None:
        from reelsmith.workers.pipeline import run_pipeline_step

        run_pipeline_step.delay(str(content_item_id), step.value)
        logger.debug("Step enqueued", content_item_id=str(content_item_id), step=step.value)

    def enqueue_auto_upload(self, content_item_id: uuid.UUID) -> None:
        from reelsmith.workers.upload import auto_upload

        auto_upload.delay(str(content_item_id))
        logger.debug("Auto-upload enqueued", content_item_id=str(content_item_id))


__all__ = ["CeleryDispatcher"]
