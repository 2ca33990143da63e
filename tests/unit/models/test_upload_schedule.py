"""Unit tests for the UploadSchedule and settings models."""

import uuid

from reelsmith.models import (
    IMMEDIATE_SLOT,
    SINGLETON_ID,
    Platform,
    PublishingSettings,
    ResourceClass,
    RotationCounter,
    UploadSchedule,
    UploadStatus,
)


class TestUploadSchedule:
    """Tests for UploadSchedule."""

    def test_is_immediate(self):
        """Slot -1 marks an off-grid upload."""
        assert UploadSchedule(scheduled_slot=IMMEDIATE_SLOT).is_immediate is True
        assert UploadSchedule(scheduled_slot=0).is_immediate is False

    def test_enums(self):
        """Statuses and platforms are plain strings."""
        assert UploadStatus("uploading") is UploadStatus.UPLOADING
        assert {p.value for p in Platform} == {"youtube", "tiktok"}

    def test_repr(self):
        """repr names the model."""
        schedule = UploadSchedule(
            id=uuid.uuid4(), scheduled_slot=3, status=UploadStatus.SCHEDULED
        )

        assert "UploadSchedule" in repr(schedule)


class TestSingletons:
    """Tests for the singleton settings rows."""

    def test_rotation_counter_columns(self):
        """Each resource class has a counter column."""
        columns = set(RotationCounter.__table__.c.keys())

        assert {r.value for r in ResourceClass} <= columns
        assert RotationCounter.__table__.c.id.default.arg == SINGLETON_ID

    def test_publishing_settings_table(self):
        """Stored credentials share the singleton key."""
        assert PublishingSettings.__tablename__ == "publishing_settings"
        assert PublishingSettings.__table__.c.id.default.arg == SINGLETON_ID
