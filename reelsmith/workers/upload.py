"""Auto-upload Celery task.

Uploads run on their own queue so a slow Publer poll never holds a
pipeline worker. Failures are recorded on the content item by
AutoUploader, so the task itself is never retried.
"""

import uuid
from datetime import UTC, datetime
from typing import Any

from celery import shared_task
from celery.utils.log import get_task_logger
from pydantic import BaseModel

from reelsmith.core.container import get_container
from reelsmith.workers.celery_app import run_async

logger = get_task_logger(__name__)


class UploadTaskResult(BaseModel):
    """Result of an auto-upload task.

    Attributes:
        content_item_id: Content item uploaded
        success: Whether every requested platform published
        schedule_id: Upload schedule used
        platform_urls: Published URLs per platform
        started_at: Task start time
        completed_at: Task completion time
    """

    content_item_id: str
    success: bool
    schedule_id: str | None = None
    platform_urls: dict[str, str] = {}
    started_at: datetime
    completed_at: datetime | None = None


async def _auto_upload_async(content_item_id: str) -> UploadTaskResult:
    started_at = datetime.now(tz=UTC)
    uploader = get_container().services.auto_uploader()
    schedule = await uploader.run(uuid.UUID(content_item_id))
    return UploadTaskResult(
        content_item_id=content_item_id,
        success=schedule is not None,
        schedule_id=str(schedule.id) if schedule else None,
        platform_urls=dict(schedule.platform_urls or {}) if schedule else {},
        started_at=started_at,
        completed_at=datetime.now(tz=UTC),
    )


@shared_task(name="reelsmith.workers.upload.auto_upload")
def auto_upload(content_item_id: str) -> dict[str, Any]:
    """Publish a completed video.

    Args:
        content_item_id: Content item ID

    Returns:
        UploadTaskResult as dict
    """
    logger.info(f"Starting auto-upload for {content_item_id}")
    result = run_async(_auto_upload_async(content_item_id))
    if result.success:
        logger.info(f"Auto-upload done for {content_item_id}: {result.platform_urls}")
    else:
        logger.warning(f"Auto-upload failed for {content_item_id}")
    return result.model_dump(mode="json")


__all__ = [
    "UploadTaskResult",
    "auto_upload",
]
