"""SQLAlchemy ORM models."""

from reelsmith.models.base import Base, TimestampMixin, UUIDMixin
from reelsmith.models.content_item import (
    ContentItem,
    ContentStatus,
    PipelineStep,
    RenderMode,
    UploadMode,
)
from reelsmith.models.publishing_settings import PublishingSettings
from reelsmith.models.rotation_counter import SINGLETON_ID, ResourceClass, RotationCounter
from reelsmith.models.topic import Topic
from reelsmith.models.upload_schedule import (
    IMMEDIATE_SLOT,
    Platform,
    UploadSchedule,
    UploadStatus,
)

__all__ = [
    "Base",
    "UUIDMixin",
    "TimestampMixin",
    # Pipeline
    "ContentItem",
    "ContentStatus",
    "PipelineStep",
    "RenderMode",
    "UploadMode",
    "Topic",
    # Rotation
    "RotationCounter",
    "ResourceClass",
    "SINGLETON_ID",
    # Publishing
    "UploadSchedule",
    "UploadStatus",
    "Platform",
    "IMMEDIATE_SLOT",
    "PublishingSettings",
]
