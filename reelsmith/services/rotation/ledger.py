"""Rotation ledger.

Round-robin selection of music, overlays, colour schemes and opening hooks
is driven by per-class counters on the singleton ``rotation_counter`` row.
Each call bumps the counter with one ``INSERT ... ON CONFLICT DO UPDATE
... RETURNING`` statement, so concurrent workers always observe distinct
values and no read-modify-write window exists.
"""

from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import Insert
from sqlalchemy.dialects.postgresql import insert as pg_insert

from reelsmith.core.logging import get_logger
from reelsmith.core.types import SessionFactory
from reelsmith.models.rotation_counter import SINGLETON_ID, ResourceClass, RotationCounter

logger = get_logger(__name__)


@dataclass(frozen=True)
class RotationCounters:
    """Snapshot of every counter."""

    topic: int = 0
    music: int = 0
    overlay: int = 0
    color_scheme: int = 0
    opening_hook: int = 0

    def get(self, resource: ResourceClass) -> int:
        return getattr(self, resource.value)


def build_increment_statement(resource: ResourceClass) -> Insert:
    """Statement that creates the row if needed and bumps one counter.

    The new value is returned; a fresh row starts the counter at 1.

    Args:
        resource: Counter to increment

    Returns:
        Executable INSERT ... ON CONFLICT DO UPDATE ... RETURNING statement
    """
    column = getattr(RotationCounter, resource.value)
    return (
        pg_insert(RotationCounter)
        .values({"id": SINGLETON_ID, resource.value: 1})
        .on_conflict_do_update(
            index_elements=[RotationCounter.id],
            set_={resource.value: column + 1},
        )
        .returning(column)
    )


def index_from_counter(value: int, total_items: int) -> int:
    """Map a post-increment counter value to a list index.

    Args:
        value: Counter value after the increment (1 on first use)
        total_items: Size of the rotated list

    Returns:
        ``(value - 1) % total_items``, or -1 for an empty list
    """
    if total_items <= 0:
        return -1
    return (value - 1) % total_items


class RotationLedger:
    """Atomic round-robin counters.

    Example:
        >>> ledger = RotationLedger(db_session_factory)
        >>> index = await ledger.next_index(ResourceClass.MUSIC, len(tracks))
        >>> track = select_item(tracks, index)
    """

    def __init__(self, db_session_factory: SessionFactory) -> None:
        self.db_session_factory = db_session_factory

    async def next_index(self, resource: ResourceClass, total_items: int) -> int:
        """Claim the next position for a resource class.

        The counter is not touched when the list is empty.

        Args:
            resource: Rotated resource class
            total_items: Number of items currently available

        Returns:
            Index in ``[0, total_items)``, or -1 when ``total_items`` is 0
        """
        if total_items <= 0:
            return -1

        async with self.db_session_factory() as session:
            result = await session.execute(build_increment_statement(resource))
            value = result.scalar_one()
            await session.commit()

        index = index_from_counter(value, total_items)
        logger.debug(
            "Rotation index claimed",
            resource=resource.value,
            counter=value,
            index=index,
            total=total_items,
        )
        return index

    async def counters(self) -> RotationCounters:
        """Read every counter; zeros when the row doesn't exist yet."""
        async with self.db_session_factory() as session:
            result = await session.execute(
                select(RotationCounter).where(RotationCounter.id == SINGLETON_ID)
            )
            row = result.scalar_one_or_none()

        if row is None:
            return RotationCounters()
        return RotationCounters(
            topic=row.topic,
            music=row.music,
            overlay=row.overlay,
            color_scheme=row.color_scheme,
            opening_hook=row.opening_hook,
        )

    async def reset(self, resource: ResourceClass) -> None:
        """Set one counter back to zero."""
        await self._reset({resource.value: 0})
        logger.info("Rotation counter reset", resource=resource.value)

    async def reset_all(self) -> None:
        """Set every counter back to zero and forget the last topic."""
        values: dict[str, object] = {r.value: 0 for r in ResourceClass}
        values["last_topic_id"] = None
        await self._reset(values)
        logger.info("All rotation counters reset")

    async def _reset(self, values: dict[str, object]) -> None:
        async with self.db_session_factory() as session:
            result = await session.execute(
                update(RotationCounter).where(RotationCounter.id == SINGLETON_ID).values(values)
            )
            if result.rowcount == 0:
                session.add(RotationCounter(id=SINGLETON_ID, **values))
            await session.commit()


__all__ = [
    "RotationCounters",
    "RotationLedger",
    "build_increment_statement",
    "index_from_counter",
]
