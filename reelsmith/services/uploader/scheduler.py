"""Upload slot scheduler.

Publishing happens on a daily grid of hourly slots in the grid timezone.
Reservations race each other across workers; the partial unique index on
``(scheduled_date, scheduled_slot)`` decides the winner and the loser
recomputes and tries again.
"""

import asyncio
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from reelsmith.config.schedule import ScheduleConfig
from reelsmith.core.exceptions import (
    InvalidStateError,
    RecordNotFoundError,
    SlotConflictError,
    SlotUnavailableError,
)
from reelsmith.core.logging import get_logger
from reelsmith.core.types import SessionFactory
from reelsmith.infrastructure.publer import PublerClient
from reelsmith.models.upload_schedule import IMMEDIATE_SLOT, UploadSchedule, UploadStatus

logger = get_logger(__name__)

CANCELLABLE_STATUSES = frozenset({UploadStatus.SCHEDULED, UploadStatus.FAILED})


@dataclass
class AvailableSlot:
    """A free slot on the grid.

    Attributes:
        date: Midnight of the slot day in the grid timezone, as UTC
        slot: Slot index
        hour: Local hour of the slot
        scheduled_at: Publish instant (UTC)
        display_time: Human-readable slot time
    """

    date: datetime
    slot: int
    hour: int
    scheduled_at: datetime
    display_time: str


@dataclass
class SlotInfo:
    """One slot of a day with its reservation."""

    slot: int
    hour: int
    time: str
    scheduled_at: datetime
    schedule: UploadSchedule | None
    available: bool
    is_past: bool


def format_hour(hour: int) -> str:
    """``10`` -> ``10:00 AM``, ``13`` -> ``1:00 PM``."""
    period = "PM" if hour >= 12 else "AM"
    display = hour - 12 if hour > 12 else hour
    return f"{display}:00 {period}"


class SlotScheduler:
    """Allocates and inspects upload slots.

    Example:
        >>> scheduler = SlotScheduler(db_session_factory)
        >>> slot = await scheduler.next_available_slot()
        >>> slot.display_time
        'Mar 3, 2026 at 11:00 AM GMT+8'
    """

    def __init__(
        self,
        db_session_factory: SessionFactory,
        config: ScheduleConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            db_session_factory: Database session factory
            config: Grid definition
            clock: Returns the current UTC time (tests pin it)
        """
        self.db_session_factory = db_session_factory
        self.config = config or ScheduleConfig()
        self.tz = ZoneInfo(self.config.timezone)
        self._clock = clock or (lambda: datetime.now(UTC))

    # ------------------------------------------------------------------
    # Grid arithmetic
    # ------------------------------------------------------------------

    def slot_to_hour(self, slot: int) -> int:
        return self.config.start_hour + slot

    def hour_to_slot(self, hour: int) -> int:
        return hour - self.config.start_hour

    def day_start(self, day: date) -> datetime:
        """Midnight of ``day`` in the grid timezone, as UTC."""
        return datetime.combine(day, time.min, tzinfo=self.tz).astimezone(UTC)

    def slot_to_instant(self, day: date, slot: int) -> datetime:
        """Publish instant (UTC) of ``slot`` on local ``day``."""
        local = datetime.combine(day, time(hour=self.slot_to_hour(slot)), tzinfo=self.tz)
        return local.astimezone(UTC)

    def instant_to_slot(self, instant: datetime) -> tuple[date, int] | None:
        """Local day and slot containing ``instant``, or None off the grid."""
        local = instant.astimezone(self.tz)
        slot = self.hour_to_slot(local.hour)
        if not 0 <= slot < self.config.slots_per_day:
            return None
        return local.date(), slot

    def format_schedule_time(self, instant: datetime) -> str:
        """``MMM d, yyyy at h:00 AM <label>`` in the grid timezone."""
        local = instant.astimezone(self.tz)
        return (
            f"{local:%b} {local.day}, {local.year} at "
            f"{format_hour(local.hour)} {self.config.timezone_label}"
        )

    def now_local(self) -> datetime:
        return self._clock().astimezone(self.tz)

    # ------------------------------------------------------------------
    # Slot search
    # ------------------------------------------------------------------

    async def _reserved_slots(self, session: AsyncSession, day_start: datetime) -> set[int]:
        result = await session.execute(
            select(UploadSchedule.scheduled_slot).where(
                UploadSchedule.scheduled_date == day_start,
                UploadSchedule.scheduled_slot >= 0,
            )
        )
        return set(result.scalars().all())

    async def _find_slot(
        self,
        session: AsyncSession,
        exclusions: dict[datetime, set[int]] | None = None,
    ) -> AvailableSlot | None:
        now = self.now_local()
        today = now.date()
        first_day = today + timedelta(days=1) if now.hour >= self.config.end_hour else today

        for offset in range(self.config.horizon_days):
            day = first_day + timedelta(days=offset)
            day_start = self.day_start(day)
            taken = await self._reserved_slots(session, day_start)
            if exclusions:
                taken |= exclusions.get(day_start, set())

            start = max(0, self.hour_to_slot(now.hour + 1)) if day == today else 0
            for slot in range(start, self.config.slots_per_day):
                if slot in taken:
                    continue
                scheduled_at = self.slot_to_instant(day, slot)
                return AvailableSlot(
                    date=day_start,
                    slot=slot,
                    hour=self.slot_to_hour(slot),
                    scheduled_at=scheduled_at,
                    display_time=self.format_schedule_time(scheduled_at),
                )
        return None

    async def next_available_slot(self) -> AvailableSlot:
        """First free slot from the next hour on.

        Raises:
            SlotUnavailableError: If the horizon is fully booked
        """
        async with self.db_session_factory() as session:
            slot = await self._find_slot(session)
        if slot is None:
            raise SlotUnavailableError(self.config.horizon_days)
        return slot

    async def preview_upcoming_slots(self, count: int) -> list[AvailableSlot]:
        """Slots ``count`` sequential reservations would get, without writing.

        Fewer slots are returned when the horizon runs out.
        """
        exclusions: dict[datetime, set[int]] = {}
        slots: list[AvailableSlot] = []
        async with self.db_session_factory() as session:
            for _ in range(count):
                slot = await self._find_slot(session, exclusions)
                if slot is None:
                    break
                slots.append(slot)
                exclusions.setdefault(slot.date, set()).add(slot.slot)
        return slots

    # ------------------------------------------------------------------
    # Reservation
    # ------------------------------------------------------------------

    async def reserve_slot(
        self,
        content_item_id: uuid.UUID,
        platform_accounts: dict[str, str],
        title: str | None = None,
        description: str | None = None,
        tags: list[str] | None = None,
    ) -> UploadSchedule:
        """Reserve the next free slot for a content item.

        Raises:
            SlotUnavailableError: If the horizon is fully booked
            SlotConflictError: If every attempt lost a race
        """
        attempts = self.config.reserve_attempts
        last_error: IntegrityError | None = None

        for attempt in range(1, attempts + 1):
            async with self.db_session_factory() as session:
                slot = await self._find_slot(session)
                if slot is None:
                    raise SlotUnavailableError(self.config.horizon_days)

                schedule = UploadSchedule(
                    content_item_id=content_item_id,
                    platform_accounts=platform_accounts,
                    scheduled_date=slot.date,
                    scheduled_slot=slot.slot,
                    scheduled_at=slot.scheduled_at,
                    status=UploadStatus.SCHEDULED,
                    title=title,
                    description=description,
                    tags=tags,
                )
                session.add(schedule)
                try:
                    await session.commit()
                except IntegrityError as e:
                    await session.rollback()
                    last_error = e
                    logger.warning(
                        "Slot taken, retrying",
                        attempt=attempt,
                        slot=slot.slot,
                        display_time=slot.display_time,
                    )
                    await asyncio.sleep(self.config.reserve_backoff_ms * attempt / 1000)
                    continue

            logger.info(
                "Upload slot reserved",
                content_item_id=str(content_item_id),
                schedule_id=str(schedule.id),
                display_time=slot.display_time,
            )
            return schedule

        raise SlotConflictError(attempts) from last_error

    async def create_immediate(
        self,
        content_item_id: uuid.UUID,
        platform_accounts: dict[str, str],
        title: str | None = None,
        description: str | None = None,
        tags: list[str] | None = None,
    ) -> UploadSchedule:
        """Create an off-grid schedule that publishes now.

        Immediate rows use the ``-1`` slot, which the partial unique index
        leaves out, so any number of them can share a day.
        """
        now = self._clock()
        async with self.db_session_factory() as session:
            schedule = UploadSchedule(
                content_item_id=content_item_id,
                platform_accounts=platform_accounts,
                scheduled_date=self.day_start(now.astimezone(self.tz).date()),
                scheduled_slot=IMMEDIATE_SLOT,
                scheduled_at=now,
                status=UploadStatus.SCHEDULED,
                title=title,
                description=description,
                tags=tags,
            )
            session.add(schedule)
            await session.commit()

        logger.info(
            "Immediate upload scheduled",
            content_item_id=str(content_item_id),
            schedule_id=str(schedule.id),
        )
        return schedule

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    async def slots_for_date(self, day: date) -> list[SlotInfo]:
        """Every slot of a local day with its reservation and availability."""
        now = self.now_local()
        async with self.db_session_factory() as session:
            result = await session.execute(
                select(UploadSchedule).where(
                    UploadSchedule.scheduled_date == self.day_start(day),
                    UploadSchedule.scheduled_slot >= 0,
                )
            )
            by_slot = {s.scheduled_slot: s for s in result.scalars().all()}

        slots: list[SlotInfo] = []
        for slot in range(self.config.slots_per_day):
            hour = self.slot_to_hour(slot)
            is_past = day < now.date() or (day == now.date() and now.hour >= hour)
            schedule = by_slot.get(slot)
            slots.append(
                SlotInfo(
                    slot=slot,
                    hour=hour,
                    time=format_hour(hour),
                    scheduled_at=self.slot_to_instant(day, slot),
                    schedule=schedule,
                    available=schedule is None and not is_past,
                    is_past=is_past,
                )
            )
        return slots

    async def is_slot_available(self, day: date, slot: int) -> bool:
        if not 0 <= slot < self.config.slots_per_day:
            return False

        now = self.now_local()
        if day < now.date() or (day == now.date() and now.hour >= self.slot_to_hour(slot)):
            return False

        async with self.db_session_factory() as session:
            result = await session.execute(
                select(UploadSchedule.id).where(
                    UploadSchedule.scheduled_date == self.day_start(day),
                    UploadSchedule.scheduled_slot == slot,
                )
            )
            return result.scalar_one_or_none() is None

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    async def cancel(self, schedule_id: uuid.UUID, publer: PublerClient | None = None) -> None:
        """Cancel a schedule that has not started uploading.

        A post already created on Publer is deleted first. No session is
        held while Publer is called.

        Args:
            schedule_id: Schedule to cancel
            publer: Client used to delete the remote post

        Raises:
            RecordNotFoundError: If the schedule doesn't exist
            InvalidStateError: If the upload is in progress or completed
        """
        async with self.db_session_factory() as session:
            schedule = await session.get(UploadSchedule, schedule_id)
            if schedule is None:
                raise RecordNotFoundError("UploadSchedule", str(schedule_id))
            self._check_cancellable(schedule)
            post_id = schedule.external_post_id
            if post_id and publer is None:
                raise InvalidStateError(
                    "A Publer client is required to delete the created post",
                    status=str(schedule.status),
                    content_item_id=str(schedule.content_item_id),
                )

        if post_id and publer is not None:
            await publer.delete_post(post_id)

        async with self.db_session_factory() as session:
            schedule = await session.get(UploadSchedule, schedule_id)
            if schedule is None:
                logger.info("Upload schedule already removed", schedule_id=str(schedule_id))
                return
            self._check_cancellable(schedule)
            await session.delete(schedule)
            await session.commit()

        logger.info("Upload schedule cancelled", schedule_id=str(schedule_id))

    @staticmethod
    def _check_cancellable(schedule: UploadSchedule) -> None:
        if UploadStatus(schedule.status) not in CANCELLABLE_STATUSES:
            raise InvalidStateError(
                f"Cannot cancel an upload that is {schedule.status}",
                status=str(schedule.status),
                content_item_id=str(schedule.content_item_id),
            )


__all__ = [
    "AvailableSlot",
    "SlotInfo",
    "SlotScheduler",
    "format_hour",
]
