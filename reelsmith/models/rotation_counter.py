"""RotationCounter ORM model.

A single row keyed ``"singleton"`` holding one monotonically increasing
counter per rotated resource class, plus the pointer to the last topic
served.
"""

import enum
import uuid

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from reelsmith.models.base import Base, TimestampMixin

SINGLETON_ID = "singleton"


class ResourceClass(str, enum.Enum):
    """Rotated resource; the value is the counter column name."""

    TOPIC = "topic"
    MUSIC = "music"
    OVERLAY = "overlay"
    COLOR_SCHEME = "color_scheme"
    OPENING_HOOK = "opening_hook"


class RotationCounter(Base, TimestampMixin):
    """Singleton row of rotation counters."""

    __tablename__ = "rotation_counter"

    id: Mapped[str] = mapped_column(String(20), primary_key=True, default=SINGLETON_ID)

    topic: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    music: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    overlay: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    color_scheme: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    opening_hook: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    last_topic_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("topics.id", ondelete="SET NULL")
    )

    def __repr__(self) -> str:
        return (
            f"<RotationCounter(topic={self.topic}, music={self.music}, "
            f"overlay={self.overlay}, color_scheme={self.color_scheme}, "
            f"opening_hook={self.opening_hook})>"
        )


__all__ = [
    "SINGLETON_ID",
    "ResourceClass",
    "RotationCounter",
]
