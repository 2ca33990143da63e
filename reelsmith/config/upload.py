"""Publishing configuration models."""

from typing import Literal

from pydantic import BaseModel, Field


class PublishConfig(BaseModel):
    """Publer posting and polling behaviour.

    Attributes:
        base_url: Publer REST API root
        base_tags: Hashtags appended to every description
        privacy: Privacy of created YouTube videos
        draft_mode: Create private drafts instead of publishing
        min_future_seconds: Instants closer than this publish immediately
        initial_wait_seconds: Pause before the first job status check
        poll_interval_seconds: Pause between job status polls
        max_polls: Polls before the upload times out
        request_timeout: HTTP timeout in seconds
        upload_timeout: HTTP timeout for the media upload in seconds
    """

    base_url: str = Field(default="https://app.publer.com/api/v1")
    base_tags: list[str] = Field(default_factory=lambda: ["#shorts"])
    privacy: Literal["public", "private", "unlisted"] = Field(default="public")
    draft_mode: bool = Field(default=False)
    min_future_seconds: int = Field(default=60, ge=0)
    initial_wait_seconds: float = Field(default=3.0, ge=0.0)
    poll_interval_seconds: float = Field(default=5.0, ge=0.0)
    max_polls: int = Field(default=60, ge=1)
    request_timeout: float = Field(default=30.0, gt=0)
    upload_timeout: float = Field(default=300.0, gt=0)


__all__ = ["PublishConfig"]
