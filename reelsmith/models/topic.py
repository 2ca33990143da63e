"""Topic ORM model.

Topics are the themes scripts are written about. They are served in
creation order by the topic rotator.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reelsmith.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from reelsmith.models.content_item import ContentItem


class Topic(Base, UUIDMixin, TimestampMixin):
    """Theme a script is generated from.

    Attributes:
        name: Unique display name, passed to the script prompt
        description: Longer guidance passed to the script prompt
        is_active: Inactive topics are skipped by rotation
        usage_count: Times the topic has been selected
        last_used_at: Last selection time (informational only)
    """

    __tablename__ = "topics"

    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    content_items: Mapped[list["ContentItem"]] = relationship(
        "ContentItem", back_populates="topic"
    )

    __table_args__ = (Index("idx_topic_active_created", "is_active", "created_at"),)

    def __repr__(self) -> str:
        return f"<Topic(id={self.id}, name={self.name!r}, active={self.is_active})>"


__all__ = ["Topic"]
