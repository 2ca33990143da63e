"""Round-robin rotation of topics, media assets and creative styles."""

from reelsmith.services.rotation.assets import AssetSelector, list_media
from reelsmith.services.rotation.ledger import RotationCounters, RotationLedger
from reelsmith.services.rotation.selectors import (
    COLOR_SCHEMES,
    OPENING_HOOKS,
    ColorScheme,
    OpeningHook,
    round_robin_assign,
    select_item,
)
from reelsmith.services.rotation.topics import TopicRotator

__all__ = [
    "COLOR_SCHEMES",
    "OPENING_HOOKS",
    "AssetSelector",
    "ColorScheme",
    "OpeningHook",
    "RotationCounters",
    "RotationLedger",
    "TopicRotator",
    "list_media",
    "round_robin_assign",
    "select_item",
]
