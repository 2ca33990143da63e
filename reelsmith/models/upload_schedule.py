"""UploadSchedule ORM model.

One row per content item that has been handed to the publishing service.
Rows on the daily slot grid are unique per (date, slot); immediate uploads
use the sentinel slot ``-1`` which the partial unique index ignores.
"""

import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reelsmith.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from reelsmith.models.content_item import ContentItem

IMMEDIATE_SLOT = -1


class UploadStatus(str, enum.Enum):
    """Upload lifecycle status."""

    SCHEDULED = "scheduled"  # Slot reserved, nothing sent yet
    UPLOADING = "uploading"  # Media upload or job polling in progress
    COMPLETED = "completed"  # Every requested platform has a URL
    FAILED = "failed"  # Last attempt failed; retryable


class Platform(str, enum.Enum):
    """Publishing targets."""

    YOUTUBE = "youtube"
    TIKTOK = "tiktok"


class UploadSchedule(Base, UUIDMixin, TimestampMixin):
    """Reserved publishing slot and its upload progress.

    Attributes:
        content_item_id: Video being published (one-to-one)
        platform_accounts: Platform -> publishing account id
        scheduled_date: Midnight of the slot day in the schedule timezone (UTC)
        scheduled_slot: Slot index on the daily grid, or -1 for immediate
        scheduled_at: Exact publish instant (UTC)
        progress: 0-100
        platform_urls: Platform -> public URL, filled per platform on success
        external_job_id: Publishing service job id
        external_post_id: Publishing service post id, used for cancellation
    """

    __tablename__ = "upload_schedules"

    content_item_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("content_items.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )
    platform_accounts: Mapped[dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)

    # Slot
    scheduled_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    scheduled_slot: Mapped[int] = mapped_column(Integer, nullable=False)
    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Status
    status: Mapped[UploadStatus] = mapped_column(
        String(20), nullable=False, default=UploadStatus.SCHEDULED
    )
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_message: Mapped[str | None] = mapped_column(Text)

    # Metadata
    title: Mapped[str | None] = mapped_column(String(200))
    description: Mapped[str | None] = mapped_column(Text)
    tags: Mapped[list[str] | None] = mapped_column(JSON)

    # Results
    platform_urls: Mapped[dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)
    external_job_id: Mapped[str | None] = mapped_column(String(100))
    external_post_id: Mapped[str | None] = mapped_column(String(100))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    content_item: Mapped["ContentItem"] = relationship(
        "ContentItem", back_populates="upload_schedule"
    )

    __table_args__ = (
        Index(
            "uq_upload_schedule_slot",
            "scheduled_date",
            "scheduled_slot",
            unique=True,
            postgresql_where=text("scheduled_slot >= 0"),
        ),
        Index("idx_upload_schedule_status", "status"),
        Index("idx_upload_schedule_scheduled_at", "scheduled_at"),
    )

    @property
    def is_immediate(self) -> bool:
        return self.scheduled_slot == IMMEDIATE_SLOT

    def __repr__(self) -> str:
        return (
            f"<UploadSchedule(id={self.id}, content_item_id={self.content_item_id}, "
            f"slot={self.scheduled_slot}, status={self.status})>"
        )


__all__ = [
    "IMMEDIATE_SLOT",
    "Platform",
    "UploadSchedule",
    "UploadStatus",
]
