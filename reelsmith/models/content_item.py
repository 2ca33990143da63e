"""ContentItem ORM model.

A content item is one short video moving through the generation pipeline.
Its ``status`` column is the pipeline state; the artifact columns are filled
in step by step and are what a resumed run picks up again.
"""

import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reelsmith.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from reelsmith.models.topic import Topic
    from reelsmith.models.upload_schedule import UploadSchedule


class RenderMode(str, enum.Enum):
    """How the video track is produced."""

    STATIC_BACKGROUND = "static_background"  # Looping stock background clip
    AI_IMAGES = "ai_images"  # Generated stills, concatenated


class ContentStatus(str, enum.Enum):
    """Pipeline state of a content item."""

    PENDING = "pending"
    GENERATING_SCRIPT = "generating_script"
    VALIDATING_SCRIPT = "validating_script"
    GENERATING_IMAGE_PROMPTS = "generating_image_prompts"
    GENERATING_IMAGES = "generating_images"
    GENERATING_AUDIO = "generating_audio"
    GENERATING_SUBTITLES = "generating_subtitles"
    RENDERING = "rendering"
    COMPLETED = "completed"
    FAILED = "failed"


class PipelineStep(str, enum.Enum):
    """Unit of work carried by a job message."""

    GENERATE_SCRIPT = "generate-script"
    VALIDATE_SCRIPT = "validate-script"
    GENERATE_IMAGE_PROMPTS = "generate-image-prompts"
    GENERATE_IMAGES = "generate-images"
    GENERATE_AUDIO = "generate-audio"
    GENERATE_SUBTITLES = "generate-subtitles"
    RENDER = "render"


class UploadMode(str, enum.Enum):
    """When a finished video is published."""

    IMMEDIATE = "immediate"  # Publish as soon as rendering completes
    SCHEDULED = "scheduled"  # Next free slot on the daily grid
    NONE = "none"  # Keep locally only


class ContentItem(Base, UUIDMixin, TimestampMixin):
    """One video and every artifact produced for it.

    Attributes:
        render_mode: Static background or AI images
        status: Current pipeline state
        script: Narration text including directive tags
        image_prompts: Prompts for AI images (AI mode only)
        image_paths: Generated image files (AI mode only)
        audio_path: Synthesized narration
        alignment_path: Character timing JSON returned with the narration
        subtitle_path: Karaoke ASS file
        output_path: Rendered MP4
        failed_step: Step to resume from after a failure
        validation_result: Last validator verdict, kept for inspection
        auto_upload: Publish automatically once completed
        upload_error: Last auto-upload failure, independent of ``status``
    """

    __tablename__ = "content_items"

    render_mode: Mapped[RenderMode] = mapped_column(
        String(30), nullable=False, default=RenderMode.STATIC_BACKGROUND
    )
    status: Mapped[ContentStatus] = mapped_column(
        String(30), nullable=False, default=ContentStatus.PENDING, index=True
    )

    # Script
    title: Mapped[str | None] = mapped_column(String(200))
    description: Mapped[str | None] = mapped_column(Text)
    script: Mapped[str | None] = mapped_column(Text)
    script_word_count: Mapped[int | None] = mapped_column(Integer)
    validation_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    validation_passed: Mapped[bool | None] = mapped_column(Boolean)
    validation_result: Mapped[dict[str, Any] | None] = mapped_column(JSON)

    # Rotation picks
    topic_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("topics.id", ondelete="SET NULL"), index=True
    )
    opening_hook: Mapped[str | None] = mapped_column(String(50))
    color_scheme: Mapped[str | None] = mapped_column(String(50))
    background_path: Mapped[str | None] = mapped_column(String(500))

    # AI images
    image_prompts: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON)
    image_paths: Mapped[list[str] | None] = mapped_column(JSON)

    # Audio and subtitles
    audio_path: Mapped[str | None] = mapped_column(String(500))
    alignment_path: Mapped[str | None] = mapped_column(String(500))
    audio_duration_ms: Mapped[int | None] = mapped_column(Integer)
    subtitle_path: Mapped[str | None] = mapped_column(String(500))

    # Output
    output_path: Mapped[str | None] = mapped_column(String(500))
    thumbnail_path: Mapped[str | None] = mapped_column(String(500))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Failure tracking
    failed_step: Mapped[PipelineStep | None] = mapped_column(String(30))
    error_message: Mapped[str | None] = mapped_column(Text)
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Upload
    auto_upload: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    upload_mode: Mapped[UploadMode] = mapped_column(
        String(20), nullable=False, default=UploadMode.NONE
    )
    upload_error: Mapped[str | None] = mapped_column(Text)
    uploaded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Relationships
    topic: Mapped["Topic | None"] = relationship("Topic", back_populates="content_items")
    upload_schedule: Mapped["UploadSchedule | None"] = relationship(
        "UploadSchedule",
        back_populates="content_item",
        uselist=False,
        cascade="all, delete-orphan",
    )

    __table_args__ = (Index("idx_content_item_status_created", "status", "created_at"),)

    def __repr__(self) -> str:
        return (
            f"<ContentItem(id={self.id}, mode={self.render_mode}, "
            f"status={self.status}, failed_step={self.failed_step})>"
        )


__all__ = [
    "ContentItem",
    "ContentStatus",
    "PipelineStep",
    "RenderMode",
    "UploadMode",
]
