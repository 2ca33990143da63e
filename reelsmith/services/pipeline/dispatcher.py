"""Job dispatch seam between the orchestrator and the job queue."""

import uuid
from typing import Protocol

from reelsmith.models.content_item import PipelineStep


class Dispatcher(Protocol):
    """Enqueues pipeline and upload jobs.

    The Celery implementation lives in :mod:`reelsmith.workers.dispatch`;
    tests pass a mock.
    """

    def enqueue_step(self, content_item_id: uuid.UUID, step: PipelineStep) -> None: ...

    def enqueue_auto_upload(self, content_item_id: uuid.UUID) -> None: ...


__all__ = ["Dispatcher"]
