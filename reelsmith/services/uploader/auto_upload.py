"""Detached auto-upload of completed videos.

Each video uploads independently: a failure is recorded on the content
item (``upload_error``, ``auto_upload`` switched off) and never touches
its pipeline status.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from reelsmith.core.exceptions import RecordNotFoundError, ReelsmithError, UploadError
from reelsmith.core.logging import get_logger
from reelsmith.core.types import SessionFactory
from reelsmith.models.content_item import ContentItem, UploadMode
from reelsmith.models.upload_schedule import UploadSchedule
from reelsmith.services.uploader.credentials import PublerSettingsResolver
from reelsmith.services.uploader.processor import UploadProcessor
from reelsmith.services.uploader.scheduler import SlotScheduler

logger = get_logger(__name__)


class AutoUploader:
    """Creates or reuses an upload schedule and processes it.

    Example:
        >>> uploader = AutoUploader(db_session_factory, scheduler, processor, resolver)
        >>> schedule = await uploader.run(content_item_id)
    """

    def __init__(
        self,
        db_session_factory: SessionFactory,
        scheduler: SlotScheduler,
        processor: UploadProcessor,
        credentials: PublerSettingsResolver,
    ) -> None:
        self.db_session_factory = db_session_factory
        self.scheduler = scheduler
        self.processor = processor
        self.credentials = credentials

    async def run(self, content_item_id: uuid.UUID) -> UploadSchedule | None:
        """Publish a completed item.

        Returns:
            The finished schedule, or None when the upload failed and was
            recorded on the item
        """
        try:
            schedule = await self._schedule_for(content_item_id)
            return await self.processor.process(schedule.id)
        except Exception as e:
            await self._record_failure(content_item_id, e)
            return None

    async def _schedule_for(self, content_item_id: uuid.UUID) -> UploadSchedule:
        async with self.db_session_factory() as session:
            result = await session.execute(
                select(ContentItem)
                .options(selectinload(ContentItem.upload_schedule))
                .where(ContentItem.id == content_item_id)
            )
            item = result.scalar_one_or_none()
            if item is None:
                raise RecordNotFoundError("ContentItem", str(content_item_id))
            if not item.output_path:
                raise UploadError("Content item has no output file")

            existing = item.upload_schedule
            if existing is not None:
                existing.title = existing.title or item.title
                existing.description = existing.description or item.description
                await session.commit()
                logger.info(
                    "Reusing upload schedule",
                    content_item_id=str(content_item_id),
                    schedule_id=str(existing.id),
                )
                return existing

        credentials = await self.credentials.resolve_with_accounts()
        if UploadMode(item.upload_mode) == UploadMode.SCHEDULED:
            return await self.scheduler.reserve_slot(
                content_item_id, credentials.accounts, item.title, item.description
            )
        return await self.scheduler.create_immediate(
            content_item_id, credentials.accounts, item.title, item.description
        )

    async def _record_failure(self, content_item_id: uuid.UUID, error: Exception) -> None:
        logger.error(
            "Auto-upload failed",
            content_item_id=str(content_item_id),
            error=str(error),
            error_type=type(error).__name__,
            exc_info=not isinstance(error, ReelsmithError),
        )
        async with self.db_session_factory() as session:
            item = await session.get(ContentItem, content_item_id)
            if item is None:
                return
            item.upload_error = str(error)
            item.auto_upload = False
            await session.commit()


__all__ = ["AutoUploader"]
