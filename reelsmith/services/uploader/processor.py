"""Upload processor.

Publishes one rendered video through Publer and tracks the job to a final
state. Progress is written to the schedule row as the upload advances:

- 5: credentials resolved, upload starting
- 40: media uploaded
- 60: post created, job id stored
- 60-95: polling the job
- 100: every requested platform published

Platforms that already have a recorded URL are not posted again, so a
retried schedule only publishes what is still missing.
"""

import asyncio
import uuid
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from reelsmith.config.upload import PublishConfig
from reelsmith.core.exceptions import RecordNotFoundError, UploadError, UploadTimeoutError
from reelsmith.core.logging import get_logger
from reelsmith.core.state_machine import create_upload_state_machine
from reelsmith.core.types import SessionFactory
from reelsmith.infrastructure.publer import JobStatus, PublerClient
from reelsmith.models.content_item import ContentItem
from reelsmith.models.upload_schedule import UploadSchedule, UploadStatus
from reelsmith.services.uploader.credentials import PublerSettingsResolver

logger = get_logger(__name__)

PublerFactory = Callable[[str, str], PublerClient]


def pending_platforms(schedule: UploadSchedule) -> dict[str, str]:
    """Requested platforms without a recorded URL."""
    urls = schedule.platform_urls or {}
    return {
        platform: account
        for platform, account in (schedule.platform_accounts or {}).items()
        if platform not in urls
    }


def collect_urls(status: JobStatus, pending: dict[str, str]) -> dict[str, str]:
    """Per-platform URLs reported by a job.

    A single top-level link is attributed to the only pending platform.
    """
    urls = {p: url for p, url in status.platform_urls.items() if p in pending}
    if status.url and len(pending) == 1:
        urls.setdefault(next(iter(pending)), status.url)
    return urls


class UploadProcessor:
    """Runs a single upload schedule to completion.

    Example:
        >>> processor = UploadProcessor(db_session_factory, resolver)
        >>> schedule = await processor.process(schedule_id)
        >>> schedule.platform_urls
        {'youtube': 'https://youtube.com/shorts/...'}
    """

    def __init__(
        self,
        db_session_factory: SessionFactory,
        credentials: PublerSettingsResolver,
        config: PublishConfig | None = None,
        publer_factory: PublerFactory | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize the processor.

        Args:
            db_session_factory: Database session factory
            credentials: Publer credential resolver
            config: Posting and polling settings
            publer_factory: Builds a client from (api_key, workspace_id)
            sleep: Awaitable sleep (tests replace it)
        """
        self.db_session_factory = db_session_factory
        self.credentials = credentials
        self.config = config or PublishConfig()
        self.publer_factory = publer_factory or (
            lambda api_key, workspace_id: PublerClient(api_key, workspace_id, self.config)
        )
        self.sleep = sleep

    async def process(self, schedule_id: uuid.UUID) -> UploadSchedule:
        """Upload and publish the schedule's video.

        Returns:
            The schedule in its final state

        Raises:
            RecordNotFoundError: If the schedule doesn't exist
            MissingCredentialsError: If Publer is not configured
            UploadError: If the post fails, after recording the failure
            UploadTimeoutError: If the job never finishes, after recording it
        """
        schedule = await self._load(schedule_id)
        item = schedule.content_item
        if not item.output_path:
            raise UploadError("Content item has no output file", schedule_id=str(schedule_id))

        credentials = await self.credentials.resolve()
        pending = pending_platforms(schedule)
        if not pending:
            logger.info("No platforms pending", schedule_id=str(schedule_id))
            return await self._complete(schedule_id, {}, None)

        await self._update(schedule_id, status=UploadStatus.UPLOADING, progress=5)
        last_status: JobStatus | None = None
        try:
            async with self.publer_factory(credentials.api_key, credentials.workspace_id) as publer:
                media_id = await publer.upload_media(Path(item.output_path))
                await self._update(schedule_id, progress=40)

                job_id = await publer.create_post(
                    accounts=pending,
                    media_id=media_id,
                    title=schedule.title or item.title or "Untitled Video",
                    description=schedule.description or item.description or "",
                    tags=schedule.tags,
                    schedule_at=None if schedule.is_immediate else schedule.scheduled_at,
                )
                await self._update(schedule_id, external_job_id=job_id, progress=60)
                logger.info("Publer post created", schedule_id=str(schedule_id), job_id=job_id)

                await self.sleep(self.config.initial_wait_seconds)
                last_status = await publer.get_job_status(job_id)
                if last_status.status == "failed" or last_status.error:
                    raise UploadError(
                        last_status.error or "Post creation failed on Publer",
                        schedule_id=str(schedule_id),
                    )
                if self.config.draft_mode and last_status.status in ("completed", "pending"):
                    return await self._complete(
                        schedule_id, collect_urls(last_status, pending), last_status.post_id
                    )

                for attempt in range(1, self.config.max_polls + 1):
                    await self.sleep(self.config.poll_interval_seconds)
                    last_status = await publer.get_job_status(job_id)
                    logger.debug(
                        "Publer job polled",
                        schedule_id=str(schedule_id),
                        attempt=attempt,
                        status=last_status.status,
                    )
                    if last_status.status == "completed":
                        return await self._complete(
                            schedule_id, collect_urls(last_status, pending), last_status.post_id
                        )
                    if last_status.status == "failed":
                        raise UploadError(
                            last_status.error or "Upload failed on Publer",
                            schedule_id=str(schedule_id),
                        )
                    await self._update(schedule_id, progress=60 + min(35, attempt))

                raise UploadTimeoutError(self.config.max_polls, schedule_id=str(schedule_id))
        except Exception as e:
            partial = collect_urls(last_status, pending) if last_status else {}
            await self._fail(schedule_id, e, partial)
            raise

    async def _load(self, schedule_id: uuid.UUID) -> UploadSchedule:
        async with self.db_session_factory() as session:
            result = await session.execute(
                select(UploadSchedule)
                .options(selectinload(UploadSchedule.content_item))
                .where(UploadSchedule.id == schedule_id)
            )
            schedule = result.scalar_one_or_none()
        if schedule is None:
            raise RecordNotFoundError("UploadSchedule", str(schedule_id))
        return schedule

    async def _update(
        self,
        schedule_id: uuid.UUID,
        status: UploadStatus | None = None,
        **values: Any,
    ) -> UploadSchedule:
        async with self.db_session_factory() as session:
            schedule = await session.get(UploadSchedule, schedule_id)
            if schedule is None:
                raise RecordNotFoundError("UploadSchedule", str(schedule_id))
            if status is not None:
                machine = create_upload_state_machine(schedule.status)
                schedule.status = machine.transition_to(status)
            for column, value in values.items():
                setattr(schedule, column, value)
            await session.commit()
        return schedule

    async def _complete(
        self,
        schedule_id: uuid.UUID,
        urls: dict[str, str],
        post_id: str | None,
    ) -> UploadSchedule:
        async with self.db_session_factory() as session:
            schedule = await session.get(UploadSchedule, schedule_id)
            if schedule is None:
                raise RecordNotFoundError("UploadSchedule", str(schedule_id))
            machine = create_upload_state_machine(schedule.status)
            schedule.status = machine.transition_to(UploadStatus.COMPLETED)
            schedule.progress = 100
            schedule.platform_urls = {**(schedule.platform_urls or {}), **urls}
            schedule.external_post_id = post_id or schedule.external_post_id
            schedule.error_message = None
            schedule.completed_at = datetime.now(UTC)

            item = await session.get(ContentItem, schedule.content_item_id)
            if item is not None:
                item.uploaded = True
                item.upload_error = None
            await session.commit()

        logger.info(
            "Upload completed",
            schedule_id=str(schedule_id),
            platform_urls=schedule.platform_urls,
        )
        return schedule

    async def _fail(
        self,
        schedule_id: uuid.UUID,
        error: Exception,
        partial_urls: dict[str, str],
    ) -> None:
        async with self.db_session_factory() as session:
            schedule = await session.get(UploadSchedule, schedule_id)
            if schedule is None:
                return
            machine = create_upload_state_machine(schedule.status)
            schedule.status = machine.transition_to(UploadStatus.FAILED)
            schedule.error_message = str(error)
            if partial_urls:
                schedule.platform_urls = {**(schedule.platform_urls or {}), **partial_urls}
            await session.commit()

        logger.error(
            "Upload failed",
            schedule_id=str(schedule_id),
            error=str(error),
            published=sorted(partial_urls),
        )


__all__ = [
    "UploadProcessor",
    "collect_urls",
    "pending_platforms",
]
