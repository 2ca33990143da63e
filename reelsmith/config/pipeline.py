"""Pipeline execution configuration models.

- Job queue retry and throughput policy
- Script generation/validation loop
"""

from pydantic import BaseModel, Field


class QueueConfig(BaseModel):
    """Job queue policy applied uniformly to every pipeline step.

    Attributes:
        max_attempts: Total attempts per step message, first run included
        backoff_base_seconds: First retry delay; doubles on each retry
        worker_concurrency: Steps processed in parallel per worker
        rate_limit: Step starts allowed per worker (Celery rate string)
        batch_max_items: Largest batch a single creation request may ask for
    """

    max_attempts: int = Field(default=3, ge=1, le=10, description="Attempts per step")
    backoff_base_seconds: int = Field(default=5, ge=1, le=300, description="First retry delay")
    worker_concurrency: int = Field(default=2, ge=1, le=16, description="Worker concurrency")
    rate_limit: str = Field(default="10/m", description="Step starts per worker")
    batch_max_items: int = Field(default=50, ge=1, le=500, description="Max items per batch")

    @property
    def max_retries(self) -> int:
        """Retries after the first attempt."""
        return self.max_attempts - 1

    def backoff_for(self, retries: int) -> int:
        """Delay before the next attempt.

        Args:
            retries: Retries already performed (0 for the first failure)

        Returns:
            Seconds to wait
        """
        return self.backoff_base_seconds * 2**retries


class ScriptQualityConfig(BaseModel):
    """Bounded generate/validate loop settings.

    Attributes:
        max_attempts: Candidates generated at most, first one included
        min_script_length: Shorter generations are rejected outright
        major_issue_threshold: Major issues that force a regeneration
    """

    max_attempts: int = Field(default=2, ge=1, le=5, description="Max script candidates")
    min_script_length: int = Field(default=100, ge=1, description="Minimum script characters")
    major_issue_threshold: int = Field(default=2, ge=1, description="Majors forcing regeneration")


__all__ = [
    "QueueConfig",
    "ScriptQualityConfig",
]
