"""Upload slot grid configuration."""

from pydantic import BaseModel, Field


class ScheduleConfig(BaseModel):
    """Daily publishing grid.

    Slots are whole hours starting at ``start_hour`` in ``timezone``; slot
    ``n`` publishes at ``start_hour + n``:00.

    Attributes:
        timezone: IANA timezone of the grid
        timezone_label: Suffix used in human-readable slot times
        start_hour: Hour of slot 0
        slots_per_day: Number of hourly slots
        horizon_days: Days searched for a free slot before giving up
        reserve_attempts: Insert attempts when racing other reservations
        reserve_backoff_ms: Backoff unit; attempt ``n`` sleeps ``n`` units
    """

    timezone: str = Field(default="Asia/Singapore", description="Grid timezone")
    timezone_label: str = Field(default="GMT+8", description="Display suffix")
    start_hour: int = Field(default=10, ge=0, le=23, description="Hour of the first slot")
    slots_per_day: int = Field(default=10, ge=1, le=24, description="Hourly slots per day")
    horizon_days: int = Field(default=30, ge=1, le=365, description="Search horizon")
    reserve_attempts: int = Field(default=5, ge=1, le=20, description="Reservation attempts")
    reserve_backoff_ms: int = Field(default=100, ge=0, description="Backoff unit")

    @property
    def end_hour(self) -> int:
        """Hour of the last slot."""
        return self.start_hour + self.slots_per_day - 1


__all__ = ["ScheduleConfig"]
