"""Topic rotation.

Topics are served in creation order. The pointer to the last served topic
lives on the rotation counter row, which is locked with ``SELECT ... FOR
UPDATE`` for the duration of the selection so concurrent workers serialize.
Activating or deactivating topics never causes skips or repeats because the
successor is found by ordering key rather than by list position.
"""

import uuid
from collections.abc import Sequence
from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from reelsmith.core.exceptions import ContentGenerationError, RecordNotFoundError
from reelsmith.core.logging import get_logger
from reelsmith.core.types import SessionFactory
from reelsmith.models.rotation_counter import SINGLETON_ID, RotationCounter
from reelsmith.models.topic import Topic

logger = get_logger(__name__)


def _order_key(topic: Topic) -> tuple[datetime, str]:
    return (topic.created_at, str(topic.id))


def pick_next_topic(
    active: Sequence[Topic],
    last: Topic | None,
    counter: int = 0,
) -> Topic | None:
    """Choose the topic that follows ``last``.

    Args:
        active: Active topics in selection order
        last: Previously served topic, which may since have been deactivated
        counter: Topic counter value, used only when there is no pointer

    Returns:
        The first active topic ordered after ``last`` (wrapping to the first),
        or None when no topic is active
    """
    if not active:
        return None
    if last is None:
        return active[counter % len(active)]

    last_key = _order_key(last)
    for topic in active:
        if _order_key(topic) > last_key:
            return topic
    return active[0]


def pointer_for_desired(active: Sequence[Topic], desired_id: uuid.UUID) -> Topic | None:
    """Pointer value that makes ``desired_id`` the next natural pick.

    Args:
        active: Active topics in selection order
        desired_id: Topic to serve next

    Returns:
        The active topic immediately before the desired one, wrapping to the
        last active topic; None when the desired topic is not active
    """
    for position, topic in enumerate(active):
        if topic.id == desired_id:
            return active[position - 1]
    return None


class TopicRotator:
    """Serves topics round-robin and manages the topic list.

    Example:
        >>> rotator = TopicRotator(db_session_factory)
        >>> topic = await rotator.next_topic()
    """

    def __init__(self, db_session_factory: SessionFactory) -> None:
        self.db_session_factory = db_session_factory

    async def next_topic(self) -> Topic:
        """Select the next active topic and advance the pointer.

        Returns:
            Selected topic, with its usage stats already bumped

        Raises:
            ContentGenerationError: If no topic is active
        """
        async with self.db_session_factory() as session:
            counter = await self._lock_counter(session)

            last = None
            if counter.last_topic_id is not None:
                last = await session.get(Topic, counter.last_topic_id)

            active = await self._active_topics(session)
            topic = pick_next_topic(active, last, counter.topic)
            if topic is None:
                raise ContentGenerationError("No active topics found", stage="topic")

            counter.last_topic_id = topic.id
            counter.topic = counter.topic + 1
            topic.usage_count = topic.usage_count + 1
            topic.last_used_at = datetime.now(UTC)
            await session.commit()

        logger.info(
            "Topic selected",
            topic_id=str(topic.id),
            topic=topic.name,
            usage_count=topic.usage_count,
        )
        return topic

    async def use_topic_next(self, topic_id: uuid.UUID) -> Topic:
        """Make the given topic the next one served.

        Args:
            topic_id: Active topic to serve next

        Returns:
            The desired topic

        Raises:
            RecordNotFoundError: If the topic doesn't exist
            ContentGenerationError: If the topic is inactive
        """
        async with self.db_session_factory() as session:
            desired = await session.get(Topic, topic_id)
            if desired is None:
                raise RecordNotFoundError("Topic", str(topic_id))
            if not desired.is_active:
                raise ContentGenerationError(
                    f"Topic '{desired.name}' is inactive", stage="topic"
                )

            counter = await self._lock_counter(session)
            active = await self._active_topics(session)
            pointer = pointer_for_desired(active, topic_id)
            counter.last_topic_id = pointer.id if pointer is not None else None
            await session.commit()

        logger.info("Topic queued next", topic_id=str(topic_id), topic=desired.name)
        return desired

    async def add_topic(self, name: str, description: str = "") -> Topic:
        """Create a new active topic; it joins the end of the rotation."""
        async with self.db_session_factory() as session:
            topic = Topic(name=name, description=description, is_active=True, usage_count=0)
            session.add(topic)
            await session.commit()
            await session.refresh(topic)

        logger.info("Topic added", topic_id=str(topic.id), topic=name)
        return topic

    async def set_active(self, topic_id: uuid.UUID, is_active: bool) -> Topic:
        """Activate or deactivate a topic."""
        async with self.db_session_factory() as session:
            topic = await session.get(Topic, topic_id)
            if topic is None:
                raise RecordNotFoundError("Topic", str(topic_id))
            topic.is_active = is_active
            await session.commit()

        logger.info("Topic updated", topic_id=str(topic_id), is_active=is_active)
        return topic

    async def list_topics(self, active_only: bool = False) -> list[Topic]:
        """List topics in selection order."""
        async with self.db_session_factory() as session:
            stmt = select(Topic).order_by(Topic.created_at, Topic.id)
            if active_only:
                stmt = stmt.where(Topic.is_active.is_(True))
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def count_active(self) -> int:
        async with self.db_session_factory() as session:
            result = await session.execute(
                select(func.count()).select_from(Topic).where(Topic.is_active.is_(True))
            )
            return result.scalar_one()

    async def _lock_counter(self, session: AsyncSession) -> RotationCounter:
        await session.execute(
            pg_insert(RotationCounter)
            .values(id=SINGLETON_ID)
            .on_conflict_do_nothing(index_elements=[RotationCounter.id])
        )
        result = await session.execute(
            select(RotationCounter).where(RotationCounter.id == SINGLETON_ID).with_for_update()
        )
        return result.scalar_one()

    async def _active_topics(self, session: AsyncSession) -> list[Topic]:
        result = await session.execute(
            select(Topic).where(Topic.is_active.is_(True)).order_by(Topic.created_at, Topic.id)
        )
        return list(result.scalars().all())


__all__ = [
    "TopicRotator",
    "pick_next_topic",
    "pointer_for_desired",
]
