"""Upload slot scheduling and publishing."""

from reelsmith.services.uploader.auto_upload import AutoUploader
from reelsmith.services.uploader.credentials import PublerCredentials, PublerSettingsResolver
from reelsmith.services.uploader.processor import UploadProcessor
from reelsmith.services.uploader.scheduler import AvailableSlot, SlotInfo, SlotScheduler

__all__ = [
    "AutoUploader",
    "AvailableSlot",
    "PublerCredentials",
    "PublerSettingsResolver",
    "SlotInfo",
    "SlotScheduler",
    "UploadProcessor",
]
