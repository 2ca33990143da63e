"""Unit tests for the ContentItem and Topic models."""

import uuid

from reelsmith.models import (
    ContentItem,
    ContentStatus,
    PipelineStep,
    RenderMode,
    Topic,
    UploadMode,
)


class TestEnums:
    """Tests for the pipeline enums."""

    def test_values_are_strings(self):
        """Enum values are stored as plain strings."""
        assert ContentStatus("generating_audio") is ContentStatus.GENERATING_AUDIO
        assert PipelineStep("generate-image-prompts") is PipelineStep.GENERATE_IMAGE_PROMPTS
        assert RenderMode.AI_IMAGES == "ai_images"
        assert UploadMode.SCHEDULED == "scheduled"

    def test_statuses(self):
        """There is one working status per step plus the end states."""
        assert len(ContentStatus) == len(PipelineStep) + 3


class TestContentItem:
    """Tests for ContentItem."""

    def test_table(self):
        """Items live in content_items with a status index."""
        assert ContentItem.__tablename__ == "content_items"
        index_names = {i.name for i in ContentItem.__table__.indexes}
        assert "idx_content_item_status_created" in index_names

    def test_repr(self):
        """repr shows mode, status and failed step."""
        item = ContentItem(
            id=uuid.uuid4(),
            render_mode=RenderMode.STATIC_BACKGROUND,
            status=ContentStatus.FAILED,
            failed_step=PipelineStep.RENDER,
        )

        text = repr(item)

        assert "ContentItem" in text
        assert str(item.id) in text

    def test_topic_relationship(self):
        """Items link back to their topic."""
        topic = Topic(id=uuid.uuid4(), name="Stoicism", description="")
        item = ContentItem(id=uuid.uuid4(), topic=topic)

        assert item in topic.content_items


class TestTopic:
    """Tests for Topic."""

    def test_table(self):
        """Topic names are unique."""
        assert Topic.__tablename__ == "topics"
        assert Topic.__table__.c.name.unique is True

    def test_repr(self):
        """repr includes the name."""
        assert "Stoicism" in repr(Topic(name="Stoicism", is_active=True))
