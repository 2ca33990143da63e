"""Tests for PipelineOrchestrator."""

import uuid
from collections import deque
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from reelsmith.config.pipeline import QueueConfig
from reelsmith.core.exceptions import (
    InvalidStateError,
    PipelineStepError,
    RecordNotFoundError,
    TTSError,
)
from reelsmith.models.content_item import (
    ContentItem,
    ContentStatus,
    PipelineStep,
    RenderMode,
    UploadMode,
)
from reelsmith.models.upload_schedule import UploadSchedule, UploadStatus
from reelsmith.services.pipeline.definitions import status_for, steps_for
from reelsmith.services.pipeline.orchestrator import PipelineOrchestrator, is_retryable


def make_item(
    status: ContentStatus = ContentStatus.PENDING,
    mode: RenderMode = RenderMode.STATIC_BACKGROUND,
    **kwargs,
) -> ContentItem:
    values = {
        "id": uuid.uuid4(),
        "render_mode": mode,
        "status": status,
        "retry_count": 0,
        "auto_upload": False,
        "upload_mode": UploadMode.NONE,
    }
    values.update(kwargs)
    return ContentItem(**values)


def returns_item(mock_session: AsyncMock, item: ContentItem | None) -> None:
    result = MagicMock()
    result.scalar_one_or_none.return_value = item
    mock_session.execute.return_value = result


@pytest.fixture
def mock_steps() -> MagicMock:
    steps = MagicMock()
    steps.run = AsyncMock(return_value={})
    return steps


@pytest.fixture
def mock_dispatcher() -> MagicMock:
    return MagicMock()


@pytest.fixture
def mock_retention() -> MagicMock:
    retention = MagicMock()
    retention.enforce = AsyncMock(return_value=0)
    return retention


@pytest.fixture
def mock_assets() -> MagicMock:
    assets = MagicMock()
    assets.list_backgrounds.return_value = [Path("bg/a.mp4"), Path("bg/b.mp4")]
    return assets


@pytest.fixture
def orchestrator(
    mock_db_session_factory,
    mock_steps,
    mock_dispatcher,
    mock_retention,
    mock_assets,
) -> PipelineOrchestrator:
    return PipelineOrchestrator(
        db_session_factory=mock_db_session_factory,
        steps=mock_steps,
        dispatcher=mock_dispatcher,
        retention=mock_retention,
        asset_selector=mock_assets,
        queue_config=QueueConfig(),
    )


class TestIsRetryable:
    """Tests for the retry classification."""

    def test_external_errors_retry(self) -> None:
        """Transient service failures are retried."""
        assert is_retryable(TTSError("rate limited"))
        assert is_retryable(RuntimeError("boom"))

    def test_permanent_errors_do_not_retry(self) -> None:
        """Missing prerequisites and bad state are permanent."""
        assert not is_retryable(PipelineStepError("render", "audio"))
        assert not is_retryable(InvalidStateError("nope"))


class TestRunStep:
    """Tests for PipelineOrchestrator.run_step."""

    @pytest.mark.asyncio
    async def test_advances_to_next_step(
        self, orchestrator, mock_session, mock_steps, mock_dispatcher
    ) -> None:
        """A finished step persists its updates and enqueues the next one."""
        item = make_item()
        returns_item(mock_session, item)
        mock_steps.run.return_value = {"script": "A script", "script_word_count": 2}

        following = await orchestrator.run_step(item.id, PipelineStep.GENERATE_SCRIPT)

        assert following == PipelineStep.VALIDATE_SCRIPT
        assert item.status == ContentStatus.GENERATING_SCRIPT
        assert item.script == "A script"
        mock_dispatcher.enqueue_step.assert_called_once_with(
            item.id, PipelineStep.VALIDATE_SCRIPT
        )
        assert mock_session.commit.await_count == 2

    @pytest.mark.asyncio
    async def test_last_step_completes(
        self, orchestrator, mock_session, mock_steps, mock_dispatcher, mock_retention, tmp_path
    ) -> None:
        """The last step completes the item, cleans temp files and queues the upload."""
        audio = tmp_path / "a.mp3"
        audio.write_bytes(b"audio")
        item = make_item(
            ContentStatus.GENERATING_SUBTITLES,
            audio_path=str(audio),
            auto_upload=True,
            failed_step=PipelineStep.RENDER,
            error_message="old error",
        )
        returns_item(mock_session, item)
        mock_steps.run.return_value = {"output_path": "output/x.mp4"}

        following = await orchestrator.run_step(item.id, PipelineStep.RENDER)

        assert following is None
        assert item.status == ContentStatus.COMPLETED
        assert item.completed_at is not None
        assert item.failed_step is None
        assert item.error_message is None
        assert not audio.exists()
        mock_dispatcher.enqueue_step.assert_not_called()
        mock_dispatcher.enqueue_auto_upload.assert_called_once_with(item.id)
        mock_retention.enforce.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_completion_without_auto_upload(
        self, orchestrator, mock_session, mock_dispatcher
    ) -> None:
        """Completed items without auto-upload are not queued for upload."""
        item = make_item(ContentStatus.GENERATING_SUBTITLES)
        returns_item(mock_session, item)

        await orchestrator.run_step(item.id, PipelineStep.RENDER)

        mock_dispatcher.enqueue_auto_upload.assert_not_called()

    @pytest.mark.asyncio
    async def test_stale_message_ignored(self, orchestrator, mock_session, mock_steps) -> None:
        """A step message for a completed item does nothing."""
        item = make_item(ContentStatus.COMPLETED)
        returns_item(mock_session, item)

        assert await orchestrator.run_step(item.id, PipelineStep.RENDER) is None

        mock_steps.run.assert_not_called()
        assert item.status == ContentStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_redelivered_step_runs_again(
        self, orchestrator, mock_session, mock_steps
    ) -> None:
        """A step already in progress may be re-entered by a redelivery."""
        item = make_item(ContentStatus.GENERATING_AUDIO)
        returns_item(mock_session, item)

        following = await orchestrator.run_step(item.id, PipelineStep.GENERATE_AUDIO)

        assert following == PipelineStep.GENERATE_SUBTITLES
        mock_steps.run.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_step_outside_mode(self, orchestrator, mock_session) -> None:
        """Static items have no image steps."""
        item = make_item()
        returns_item(mock_session, item)

        with pytest.raises(InvalidStateError):
            await orchestrator.run_step(item.id, PipelineStep.GENERATE_IMAGES)

    @pytest.mark.asyncio
    async def test_missing_item(self, orchestrator, mock_session) -> None:
        """Unknown IDs raise RecordNotFoundError."""
        returns_item(mock_session, None)

        with pytest.raises(RecordNotFoundError):
            await orchestrator.run_step(uuid.uuid4(), PipelineStep.GENERATE_SCRIPT)

    @pytest.mark.asyncio
    async def test_retryable_failure_reraises(
        self, orchestrator, mock_session, mock_steps
    ) -> None:
        """With attempts left the error goes back to the job queue."""
        item = make_item(ContentStatus.VALIDATING_SCRIPT)
        returns_item(mock_session, item)
        mock_steps.run.side_effect = TTSError("ElevenLabs 503")

        with pytest.raises(TTSError):
            await orchestrator.run_step(
                item.id, PipelineStep.GENERATE_AUDIO, is_final_attempt=False
            )

        assert item.status == ContentStatus.GENERATING_AUDIO
        assert item.failed_step is None

    @pytest.mark.asyncio
    async def test_final_failure_recorded(self, orchestrator, mock_session, mock_steps) -> None:
        """The last attempt marks the item failed at its step."""
        item = make_item(ContentStatus.VALIDATING_SCRIPT)
        returns_item(mock_session, item)
        mock_steps.run.side_effect = TTSError("ElevenLabs 503")

        following = await orchestrator.run_step(
            item.id, PipelineStep.GENERATE_AUDIO, is_final_attempt=True
        )

        assert following is None
        assert item.status == ContentStatus.FAILED
        assert item.failed_step == PipelineStep.GENERATE_AUDIO
        assert "ElevenLabs 503" in item.error_message
        assert item.retry_count == 1

    @pytest.mark.asyncio
    async def test_permanent_failure_recorded_immediately(
        self, orchestrator, mock_session, mock_steps
    ) -> None:
        """Permanent errors are recorded even with attempts left."""
        item = make_item(ContentStatus.GENERATING_SUBTITLES)
        returns_item(mock_session, item)
        mock_steps.run.side_effect = PipelineStepError("render", "audio")

        following = await orchestrator.run_step(
            item.id, PipelineStep.RENDER, is_final_attempt=False
        )

        assert following is None
        assert item.status == ContentStatus.FAILED
        assert item.failed_step == PipelineStep.RENDER


class ItemStore:
    """In-memory content_items table recording every committed status."""

    def __init__(self, items: list[ContentItem]) -> None:
        self.items = {item.id: item for item in items}
        self.history = {item.id: [item.status] for item in items}

    def __call__(self) -> "ItemStoreSession":
        return ItemStoreSession(self)


class ItemStoreSession:
    """Session over an ItemStore answering lookups by id."""

    def __init__(self, store: ItemStore) -> None:
        self.store = store

    async def __aenter__(self) -> "ItemStoreSession":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        return None

    async def execute(self, statement) -> MagicMock:
        result = MagicMock()
        result.scalar_one_or_none.return_value = self.store.items.get(
            statement.whereclause.right.value
        )
        return result

    async def commit(self) -> None:
        for item_id, item in self.store.items.items():
            history = self.store.history[item_id]
            if history[-1] != item.status:
                history.append(item.status)


class TestFullTraversal:
    """Items driven through run_step from first step to completion."""

    @pytest.mark.asyncio
    async def test_ai_images_batch_runs_every_step_in_order(
        self, mock_steps, mock_retention, mock_assets
    ) -> None:
        """Five interleaved items each pass every AI-image status exactly once."""
        items = [make_item(mode=RenderMode.AI_IMAGES) for _ in range(5)]
        store = ItemStore(items)
        queue = deque((item.id, PipelineStep.GENERATE_SCRIPT) for item in items)
        dispatcher = MagicMock()
        dispatcher.enqueue_step.side_effect = lambda item_id, step: queue.append((item_id, step))
        ran: dict[uuid.UUID, list[PipelineStep]] = {item.id: [] for item in items}

        async def run(step: PipelineStep, item: ContentItem) -> dict:
            ran[item.id].append(step)
            assert item.status == status_for(step)
            return {}

        mock_steps.run.side_effect = run
        orchestrator = PipelineOrchestrator(
            db_session_factory=store,
            steps=mock_steps,
            dispatcher=dispatcher,
            retention=mock_retention,
            asset_selector=mock_assets,
        )

        while queue:
            await orchestrator.run_step(*queue.popleft())

        for item in items:
            assert ran[item.id] == list(steps_for(RenderMode.AI_IMAGES))
            assert store.history[item.id] == [
                ContentStatus.PENDING,
                ContentStatus.GENERATING_SCRIPT,
                ContentStatus.VALIDATING_SCRIPT,
                ContentStatus.GENERATING_IMAGE_PROMPTS,
                ContentStatus.GENERATING_IMAGES,
                ContentStatus.GENERATING_AUDIO,
                ContentStatus.GENERATING_SUBTITLES,
                ContentStatus.RENDERING,
                ContentStatus.COMPLETED,
            ]
            assert item.completed_at is not None
        assert mock_retention.enforce.await_count == 5
        dispatcher.enqueue_auto_upload.assert_not_called()


class TestCreateContentItems:
    """Tests for PipelineOrchestrator.create_content_items."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [0, 51])
    async def test_batch_size_bounds(self, orchestrator, count) -> None:
        """Batches must hold 1 to batch_max_items items."""
        with pytest.raises(ValueError):
            await orchestrator.create_content_items(count)

    @pytest.mark.asyncio
    async def test_static_backgrounds_round_robin(
        self, orchestrator, mock_session, mock_dispatcher
    ) -> None:
        """Backgrounds continue the rotation after the existing items."""
        mock_session.add_all = MagicMock()
        result = MagicMock()
        result.scalar_one.return_value = 3
        mock_session.execute.return_value = result

        items = await orchestrator.create_content_items(3)

        assert [item.background_path for item in items] == [
            str(Path("bg/b.mp4")),
            str(Path("bg/a.mp4")),
            str(Path("bg/b.mp4")),
        ]
        assert all(item.status == ContentStatus.PENDING for item in items)
        mock_session.add_all.assert_called_once_with(items)
        assert mock_dispatcher.enqueue_step.call_count == 3
        assert all(
            call.args[1] == PipelineStep.GENERATE_SCRIPT
            for call in mock_dispatcher.enqueue_step.call_args_list
        )

    @pytest.mark.asyncio
    async def test_no_backgrounds(self, orchestrator, mock_session, mock_assets) -> None:
        """Without backgrounds items are still created, without a path."""
        mock_session.add_all = MagicMock()
        mock_assets.list_backgrounds.return_value = []
        result = MagicMock()
        result.scalar_one.return_value = 0
        mock_session.execute.return_value = result

        items = await orchestrator.create_content_items(2)

        assert [item.background_path for item in items] == [None, None]

    @pytest.mark.asyncio
    async def test_ai_mode_skips_backgrounds(
        self, orchestrator, mock_session, mock_assets
    ) -> None:
        """AI image items never get a background."""
        mock_session.add_all = MagicMock()

        items = await orchestrator.create_content_items(2, RenderMode.AI_IMAGES)

        assert all(item.background_path is None for item in items)
        mock_assets.list_backgrounds.assert_not_called()
        mock_session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_auto_upload_defaults_to_immediate(self, orchestrator, mock_session) -> None:
        """Auto-upload without a mode publishes immediately."""
        mock_session.add_all = MagicMock()

        items = await orchestrator.create_content_items(
            1, RenderMode.AI_IMAGES, auto_upload=True
        )

        assert items[0].auto_upload is True
        assert items[0].upload_mode == UploadMode.IMMEDIATE


class TestRetry:
    """Tests for retry_content_item and retry_upload."""

    @pytest.mark.asyncio
    async def test_retry_resumes_failed_step(
        self, orchestrator, mock_session, mock_dispatcher
    ) -> None:
        """A failed item resumes at the step that failed."""
        item = make_item(
            ContentStatus.FAILED,
            failed_step=PipelineStep.GENERATE_AUDIO,
            error_message="503",
            retry_count=1,
        )
        returns_item(mock_session, item)

        step = await orchestrator.retry_content_item(item.id)

        assert step == PipelineStep.GENERATE_AUDIO
        assert item.status == ContentStatus.PENDING
        assert item.error_message is None
        assert item.retry_count == 1
        mock_dispatcher.enqueue_step.assert_called_once_with(item.id, PipelineStep.GENERATE_AUDIO)

    @pytest.mark.asyncio
    async def test_retry_without_failed_step_restarts(self, orchestrator, mock_session) -> None:
        """A failure without a recorded step restarts the mode."""
        item = make_item(ContentStatus.FAILED, mode=RenderMode.AI_IMAGES)
        returns_item(mock_session, item)

        assert await orchestrator.retry_content_item(item.id) == PipelineStep.GENERATE_SCRIPT

    @pytest.mark.asyncio
    async def test_retry_requires_failed(self, orchestrator, mock_session) -> None:
        """Only failed items can be retried."""
        returns_item(mock_session, make_item(ContentStatus.RENDERING))

        with pytest.raises(InvalidStateError):
            await orchestrator.retry_content_item(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_retry_upload_reopens_failed_schedule(
        self, orchestrator, mock_session, mock_dispatcher
    ) -> None:
        """A failed schedule is reopened with its URLs kept."""
        item = make_item(
            ContentStatus.COMPLETED,
            output_path="output/x.mp4",
            upload_error="TikTok rejected",
        )
        item.upload_schedule = UploadSchedule(
            status=UploadStatus.FAILED,
            progress=60,
            error_message="TikTok rejected",
            platform_urls={"youtube": "https://youtube.com/shorts/abc"},
        )
        returns_item(mock_session, item)

        await orchestrator.retry_upload(item.id)

        schedule = item.upload_schedule
        assert schedule.status == UploadStatus.SCHEDULED
        assert schedule.progress == 0
        assert schedule.platform_urls == {"youtube": "https://youtube.com/shorts/abc"}
        assert item.auto_upload is True
        assert item.upload_error is None
        assert item.upload_mode == UploadMode.IMMEDIATE
        mock_dispatcher.enqueue_auto_upload.assert_called_once_with(item.id)

    @pytest.mark.asyncio
    async def test_retry_upload_active_schedule(self, orchestrator, mock_session) -> None:
        """An upload in progress can't be retried."""
        item = make_item(ContentStatus.COMPLETED, output_path="output/x.mp4")
        item.upload_schedule = UploadSchedule(status=UploadStatus.UPLOADING, platform_urls={})
        returns_item(mock_session, item)

        with pytest.raises(InvalidStateError):
            await orchestrator.retry_upload(item.id)

    @pytest.mark.asyncio
    async def test_retry_upload_requires_output(self, orchestrator, mock_session) -> None:
        """Items without a video can't be uploaded."""
        returns_item(mock_session, make_item(ContentStatus.COMPLETED))

        with pytest.raises(InvalidStateError, match="no output file"):
            await orchestrator.retry_upload(uuid.uuid4())
