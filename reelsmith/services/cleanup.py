"""Disk retention for rendered videos and intermediate artifacts.

- Temp artifacts (audio, alignment, subtitles, images) of a rendered item
  are deleted once the video exists.
- Only the newest ``max_completed`` completed items are kept; older ones
  are deleted together with their video and thumbnail.
"""

from collections.abc import Iterable
from pathlib import Path

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from reelsmith.core.logging import get_logger
from reelsmith.core.types import SessionFactory
from reelsmith.models.content_item import ContentItem, ContentStatus

logger = get_logger(__name__)


def remove_files(paths: Iterable[Path | str | None]) -> int:
    """Delete files, ignoring ones that are already gone.

    Returns:
        Number of files deleted
    """
    removed = 0
    for raw in paths:
        if not raw:
            continue
        path = Path(raw)
        try:
            path.unlink()
            removed += 1
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.warning("Failed to delete file", path=str(path), error=str(e))
    return removed


class RetentionService:
    """Enforces the completed-video retention limit.

    Example:
        >>> retention = RetentionService(db_session_factory, max_completed=50)
        >>> deleted = await retention.enforce()
    """

    def __init__(self, db_session_factory: SessionFactory, max_completed: int = 50) -> None:
        self.db_session_factory = db_session_factory
        self.max_completed = max_completed

    async def enforce(self) -> int:
        """Delete completed items beyond the newest ``max_completed``.

        Returns:
            Number of content items deleted
        """
        async with self.db_session_factory() as session:
            result = await session.execute(
                select(ContentItem)
                .options(selectinload(ContentItem.upload_schedule))
                .where(ContentItem.status == ContentStatus.COMPLETED)
                .order_by(ContentItem.created_at.desc())
                .offset(self.max_completed)
            )
            expired = list(result.scalars().all())
            if not expired:
                return 0

            for item in expired:
                remove_files([item.output_path, item.thumbnail_path])
                await session.delete(item)
            await session.commit()

        logger.info("Retention applied", deleted=len(expired), keep=self.max_completed)
        return len(expired)


__all__ = [
    "RetentionService",
    "remove_files",
]
