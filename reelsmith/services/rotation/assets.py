"""Media asset catalogues and ledger-driven selection.

Directory listings are sorted by file name so every worker sees the same
order and a counter value maps to the same file everywhere.
"""

from pathlib import Path

from reelsmith.core.logging import get_logger
from reelsmith.models.rotation_counter import ResourceClass
from reelsmith.services.rotation.ledger import RotationLedger
from reelsmith.services.rotation.selectors import (
    COLOR_SCHEMES,
    OPENING_HOOKS,
    ColorScheme,
    OpeningHook,
    select_item,
)

logger = get_logger(__name__)

MUSIC_EXTENSIONS = frozenset({".mp3", ".m4a", ".wav"})
VIDEO_EXTENSIONS = frozenset({".mp4", ".mov", ".webm"})


def list_media(directory: Path, extensions: frozenset[str]) -> list[Path]:
    """List files with the given extensions, sorted by name.

    A missing directory yields an empty list.
    """
    if not directory.is_dir():
        logger.warning("Asset directory not found", directory=str(directory))
        return []
    return sorted(
        (p for p in directory.iterdir() if p.is_file() and p.suffix.lower() in extensions),
        key=lambda p: p.name,
    )


class AssetSelector:
    """Picks the next music track, overlay, colour scheme and opening hook.

    Args:
        ledger: Rotation counters
        music_dir: Directory of background music
        overlays_dir: Directory of overlay clips
        backgrounds_dir: Directory of looping backgrounds
    """

    def __init__(
        self,
        ledger: RotationLedger,
        music_dir: Path,
        overlays_dir: Path,
        backgrounds_dir: Path,
    ) -> None:
        self.ledger = ledger
        self.music_dir = music_dir
        self.overlays_dir = overlays_dir
        self.backgrounds_dir = backgrounds_dir

    def list_music(self) -> list[Path]:
        return list_media(self.music_dir, MUSIC_EXTENSIONS)

    def list_overlays(self) -> list[Path]:
        return list_media(self.overlays_dir, VIDEO_EXTENSIONS)

    def list_backgrounds(self) -> list[Path]:
        return list_media(self.backgrounds_dir, VIDEO_EXTENSIONS)

    async def next_music(self) -> Path | None:
        tracks = self.list_music()
        return select_item(tracks, await self.ledger.next_index(ResourceClass.MUSIC, len(tracks)))

    async def next_overlay(self) -> Path | None:
        overlays = self.list_overlays()
        index = await self.ledger.next_index(ResourceClass.OVERLAY, len(overlays))
        return select_item(overlays, index)

    async def next_color_scheme(self) -> ColorScheme:
        index = await self.ledger.next_index(ResourceClass.COLOR_SCHEME, len(COLOR_SCHEMES))
        return COLOR_SCHEMES[index]

    async def next_opening_hook(self) -> OpeningHook:
        index = await self.ledger.next_index(ResourceClass.OPENING_HOOK, len(OPENING_HOOKS))
        return OPENING_HOOKS[index]


__all__ = [
    "MUSIC_EXTENSIONS",
    "VIDEO_EXTENSIONS",
    "AssetSelector",
    "list_media",
]
