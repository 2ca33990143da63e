"""Pipeline orchestrator.

Moves content items through their mode's step table. One job message
carries ``(content_item_id, step)``; :meth:`PipelineOrchestrator.run_step`
persists the step's in-progress status, runs the handler, writes its
results and enqueues the next step. Failures are recorded on the item
once the job queue has no attempts left or the error is permanent.
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from reelsmith.config.pipeline import QueueConfig
from reelsmith.core.exceptions import (
    ConfigError,
    InvalidStateError,
    PipelineStepError,
    RecordNotFoundError,
)
from reelsmith.core.logging import get_logger
from reelsmith.core.types import SessionFactory
from reelsmith.models.content_item import (
    ContentItem,
    ContentStatus,
    PipelineStep,
    RenderMode,
    UploadMode,
)
from reelsmith.models.upload_schedule import UploadStatus
from reelsmith.services.cleanup import RetentionService, remove_files
from reelsmith.services.pipeline.definitions import (
    create_content_state_machine,
    first_step,
    next_step,
    status_for,
    steps_for,
    verify_pipeline_definitions,
)
from reelsmith.services.pipeline.dispatcher import Dispatcher
from reelsmith.services.pipeline.steps import PipelineSteps, temp_artifacts
from reelsmith.services.rotation.assets import AssetSelector
from reelsmith.services.rotation.selectors import round_robin_assign

logger = get_logger(__name__)

verify_pipeline_definitions()

# Retrying these cannot succeed without operator action
NON_RETRYABLE_ERRORS: tuple[type[Exception], ...] = (
    ConfigError,
    PipelineStepError,
    InvalidStateError,
    RecordNotFoundError,
)

ERROR_MESSAGE_LIMIT = 2000


def is_retryable(error: Exception) -> bool:
    return not isinstance(error, NON_RETRYABLE_ERRORS)


class PipelineOrchestrator:
    """Runs pipeline steps and manages content item lifecycles.

    Example:
        >>> orchestrator = PipelineOrchestrator(db_session_factory, steps, dispatcher, ...)
        >>> items = await orchestrator.create_content_items(3, RenderMode.AI_IMAGES)
        >>> await orchestrator.run_step(items[0].id, PipelineStep.GENERATE_SCRIPT)
    """

    def __init__(
        self,
        db_session_factory: SessionFactory,
        steps: PipelineSteps,
        dispatcher: Dispatcher,
        retention: RetentionService,
        asset_selector: AssetSelector,
        queue_config: QueueConfig | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            db_session_factory: Database session factory
            steps: Step handlers
            dispatcher: Job queue used for follow-up steps and auto-uploads
            retention: Retention policy applied after each render
            asset_selector: Background catalogue for batch creation
            queue_config: Batch limits
        """
        self.db_session_factory = db_session_factory
        self.steps = steps
        self.dispatcher = dispatcher
        self.retention = retention
        self.asset_selector = asset_selector
        self.queue_config = queue_config or QueueConfig()

    # ------------------------------------------------------------------
    # Step execution
    # ------------------------------------------------------------------

    async def run_step(
        self,
        content_item_id: uuid.UUID,
        step: PipelineStep,
        *,
        is_final_attempt: bool = True,
    ) -> PipelineStep | None:
        """Run one step of an item's pipeline.

        A message whose step no longer matches the item's status (a
        duplicate delivery, or an item that already failed or completed) is
        ignored.

        Args:
            content_item_id: Item to advance
            step: Step carried by the job message
            is_final_attempt: Whether the job queue will retry on failure

        Returns:
            The step enqueued next, or None when the item completed, failed
            or the message was stale

        Raises:
            RecordNotFoundError: If the item doesn't exist
            InvalidStateError: If the step isn't part of the item's mode
            Exception: The step's error, when the job queue should retry it
        """
        item = await self._enter_step(content_item_id, step)
        if item is None:
            return None

        try:
            updates = await self.steps.run(step, item)
        except Exception as e:
            if is_final_attempt or not is_retryable(e):
                await self._mark_failed(content_item_id, step, e)
                return None
            logger.warning(
                "Pipeline step failed, retry pending",
                content_item_id=str(content_item_id),
                step=step.value,
                error=str(e),
            )
            raise

        return await self._finish_step(content_item_id, step, updates)

    async def _enter_step(
        self, content_item_id: uuid.UUID, step: PipelineStep
    ) -> ContentItem | None:
        async with self.db_session_factory() as session:
            item = await self._load(session, content_item_id, with_topic=True)
            mode = RenderMode(item.render_mode)
            if step not in steps_for(mode):
                raise InvalidStateError(
                    f"Step {step.value} is not part of the {mode.value} pipeline",
                    status=str(item.status),
                    content_item_id=str(content_item_id),
                )

            machine = create_content_state_machine(mode, ContentStatus(item.status))
            target = status_for(step)
            if not machine.can_transition(target):
                logger.warning(
                    "Ignoring stale step message",
                    content_item_id=str(content_item_id),
                    step=step.value,
                    status=str(item.status),
                )
                return None

            machine.transition(target)
            item.status = machine.current
            await session.commit()

        logger.info("Pipeline step started", content_item_id=str(content_item_id), step=step.value)
        return item

    async def _finish_step(
        self,
        content_item_id: uuid.UUID,
        step: PipelineStep,
        updates: dict[str, object],
    ) -> PipelineStep | None:
        async with self.db_session_factory() as session:
            item = await self._load(session, content_item_id)
            for column, value in updates.items():
                setattr(item, column, value)

            mode = RenderMode(item.render_mode)
            following = next_step(mode, step)
            if following is None:
                machine = create_content_state_machine(mode, ContentStatus(item.status))
                machine.transition(ContentStatus.COMPLETED)
                item.status = machine.current
                item.completed_at = datetime.now(UTC)
                item.error_message = None
                item.failed_step = None
            await session.commit()

        logger.info(
            "Pipeline step finished",
            content_item_id=str(content_item_id),
            step=step.value,
            next_step=following.value if following else None,
        )
        if following is not None:
            self.dispatcher.enqueue_step(content_item_id, following)
        else:
            await self._on_completed(item)
        return following

    async def _on_completed(self, item: ContentItem) -> None:
        if item.auto_upload:
            self.dispatcher.enqueue_auto_upload(item.id)
        removed = remove_files(temp_artifacts(item))
        logger.info(
            "Content item completed",
            content_item_id=str(item.id),
            output=item.output_path,
            temp_files_removed=removed,
            auto_upload=item.auto_upload,
        )
        await self.retention.enforce()

    async def _mark_failed(
        self,
        content_item_id: uuid.UUID,
        step: PipelineStep,
        error: Exception,
    ) -> None:
        async with self.db_session_factory() as session:
            item = await self._load(session, content_item_id)
            machine = create_content_state_machine(
                RenderMode(item.render_mode), ContentStatus(item.status)
            )
            machine.transition(ContentStatus.FAILED)
            item.status = machine.current
            item.failed_step = step
            item.error_message = str(error)[:ERROR_MESSAGE_LIMIT]
            item.retry_count = item.retry_count + 1
            await session.commit()

        logger.error(
            "Pipeline step failed",
            content_item_id=str(content_item_id),
            step=step.value,
            error=str(error),
            error_type=type(error).__name__,
            retryable=is_retryable(error),
        )

    # ------------------------------------------------------------------
    # Lifecycle operations
    # ------------------------------------------------------------------

    async def create_content_items(
        self,
        count: int,
        render_mode: RenderMode = RenderMode.STATIC_BACKGROUND,
        auto_upload: bool = False,
        upload_mode: UploadMode = UploadMode.NONE,
    ) -> list[ContentItem]:
        """Create a batch of pending items and enqueue their first step.

        Static-mode items get a background by ``(existing + i) % N`` over
        the sorted backgrounds directory.

        Args:
            count: Items to create
            render_mode: Render mode of every item
            auto_upload: Publish automatically once completed
            upload_mode: Immediate or slot-scheduled publishing

        Returns:
            The created items

        Raises:
            ValueError: If ``count`` is outside the allowed batch size
        """
        limit = self.queue_config.batch_max_items
        if not 1 <= count <= limit:
            raise ValueError(f"Batch size must be between 1 and {limit}, got {count}")
        if auto_upload and upload_mode == UploadMode.NONE:
            upload_mode = UploadMode.IMMEDIATE

        async with self.db_session_factory() as session:
            backgrounds: list[str | None] = [None] * count
            if render_mode == RenderMode.STATIC_BACKGROUND:
                existing = (await session.execute(select(func.count(ContentItem.id)))).scalar_one()
                files = self.asset_selector.list_backgrounds()
                if not files:
                    logger.warning("No background videos available for static renders")
                backgrounds = [
                    str(path) if path else None
                    for path in round_robin_assign(files, existing, count)
                ]

            items = [
                ContentItem(
                    render_mode=render_mode,
                    status=ContentStatus.PENDING,
                    background_path=background,
                    auto_upload=auto_upload,
                    upload_mode=upload_mode,
                )
                for background in backgrounds
            ]
            session.add_all(items)
            await session.commit()

        start = first_step(render_mode)
        for item in items:
            self.dispatcher.enqueue_step(item.id, start)

        logger.info(
            "Content items created",
            count=len(items),
            render_mode=render_mode.value,
            auto_upload=auto_upload,
        )
        return items

    async def retry_content_item(self, content_item_id: uuid.UUID) -> PipelineStep:
        """Resume a failed item from its failed step.

        Artifacts of earlier steps are kept.

        Returns:
            The step that was enqueued

        Raises:
            RecordNotFoundError: If the item doesn't exist
            InvalidStateError: If the item is not Failed
        """
        async with self.db_session_factory() as session:
            item = await self._load(session, content_item_id)
            if item.status != ContentStatus.FAILED:
                raise InvalidStateError(
                    "Only failed content items can be retried",
                    status=str(item.status),
                    content_item_id=str(content_item_id),
                )

            mode = RenderMode(item.render_mode)
            step = PipelineStep(item.failed_step) if item.failed_step else first_step(mode)
            machine = create_content_state_machine(mode, ContentStatus(item.status))
            machine.transition(ContentStatus.PENDING)
            item.status = machine.current
            item.error_message = None
            item.failed_step = None
            await session.commit()

        self.dispatcher.enqueue_step(content_item_id, step)
        logger.info(
            "Content item retry queued", content_item_id=str(content_item_id), step=step.value
        )
        return step

    async def retry_upload(self, content_item_id: uuid.UUID) -> None:
        """Re-run the auto-upload of a completed item.

        A failed schedule goes back to Scheduled with its recorded platform
        URLs kept, so only the platforms still missing are posted again.

        Raises:
            RecordNotFoundError: If the item doesn't exist
            InvalidStateError: If the item isn't completed, has no output file,
                or its schedule is not Failed
        """
        async with self.db_session_factory() as session:
            item = await self._load(session, content_item_id, with_schedule=True)
            if item.status != ContentStatus.COMPLETED:
                raise InvalidStateError(
                    "Content item is not ready for upload",
                    status=str(item.status),
                    content_item_id=str(content_item_id),
                )
            if not item.output_path:
                raise InvalidStateError(
                    "Content item has no output file",
                    status=str(item.status),
                    content_item_id=str(content_item_id),
                )

            schedule = item.upload_schedule
            if schedule is not None:
                if schedule.status != UploadStatus.FAILED:
                    raise InvalidStateError(
                        "Content item already has an active upload schedule",
                        status=str(schedule.status),
                        content_item_id=str(content_item_id),
                    )
                schedule.status = UploadStatus.SCHEDULED
                schedule.progress = 0
                schedule.error_message = None

            item.auto_upload = True
            item.upload_error = None
            if UploadMode(item.upload_mode) == UploadMode.NONE:
                item.upload_mode = UploadMode.IMMEDIATE
            await session.commit()

        self.dispatcher.enqueue_auto_upload(content_item_id)
        logger.info("Upload retry queued", content_item_id=str(content_item_id))

    async def get_content_item(self, content_item_id: uuid.UUID) -> ContentItem:
        async with self.db_session_factory() as session:
            return await self._load(session, content_item_id, with_schedule=True)

    @staticmethod
    async def _load(
        session: AsyncSession,
        content_item_id: uuid.UUID,
        with_topic: bool = False,
        with_schedule: bool = False,
    ) -> ContentItem:
        stmt = select(ContentItem).where(ContentItem.id == content_item_id)
        if with_topic:
            stmt = stmt.options(selectinload(ContentItem.topic))
        if with_schedule:
            stmt = stmt.options(selectinload(ContentItem.upload_schedule))
        item = (await session.execute(stmt)).scalar_one_or_none()
        if item is None:
            raise RecordNotFoundError("ContentItem", str(content_item_id))
        return item


__all__ = [
    "NON_RETRYABLE_ERRORS",
    "PipelineOrchestrator",
    "is_retryable",
]
