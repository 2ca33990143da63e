"""PublishingSettings ORM model.

Stored fallback for publishing credentials. Values from the environment
always win over the stored row.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from reelsmith.models.base import Base, TimestampMixin
from reelsmith.models.rotation_counter import SINGLETON_ID


class PublishingSettings(Base, TimestampMixin):
    """Singleton row with publishing credentials and default accounts."""

    __tablename__ = "publishing_settings"

    id: Mapped[str] = mapped_column(String(20), primary_key=True, default=SINGLETON_ID)
    api_key: Mapped[str | None] = mapped_column(String(200))
    workspace_id: Mapped[str | None] = mapped_column(String(100))
    youtube_account_id: Mapped[str | None] = mapped_column(String(100))
    tiktok_account_id: Mapped[str | None] = mapped_column(String(100))

    def __repr__(self) -> str:
        # api_key is never printed
        return (
            f"<PublishingSettings(workspace_id={self.workspace_id}, "
            f"youtube={self.youtube_account_id}, tiktok={self.tiktok_account_id})>"
        )


__all__ = ["PublishingSettings"]
