"""Unit tests for rotated catalogues and asset selection."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from reelsmith.models.rotation_counter import ResourceClass
from reelsmith.services.rotation.assets import MUSIC_EXTENSIONS, AssetSelector, list_media
from reelsmith.services.rotation.selectors import (
    COLOR_SCHEMES,
    OPENING_HOOKS,
    color_scheme_by_name,
    opening_hook_by_key,
    round_robin_assign,
    select_item,
)


class TestSelectors:
    """Tests for pure selection helpers."""

    def test_select_item(self):
        """Test index lookup and the -1 sentinel."""
        assert select_item(["a", "b"], 1) == "b"
        assert select_item(["a", "b"], -1) is None
        assert select_item([], 0) is None

    def test_catalogue_sizes(self):
        """Test eight colour schemes and six opening hooks ship."""
        assert len(COLOR_SCHEMES) == 8
        assert len(OPENING_HOOKS) == 6

    def test_lookup_by_name_and_key(self):
        """Test recorded names resolve back to catalogue entries."""
        assert color_scheme_by_name("Teal Ocean") is COLOR_SCHEMES[-1]
        assert color_scheme_by_name("Nope") is None
        assert opening_hook_by_key("paradox").name == "Paradox"
        assert opening_hook_by_key(None) is None

    def test_round_robin_assign_continues_after_existing(self):
        """Test item i gets items[(existing + i) % N]."""
        assert round_robin_assign(["a", "b", "c"], 4, 4) == ["b", "c", "a", "b"]

    def test_round_robin_assign_empty(self):
        """Test an empty catalogue assigns None to every slot."""
        assert round_robin_assign([], 0, 3) == [None, None, None]


class TestListMedia:
    """Tests for directory catalogues."""

    def test_sorted_and_filtered(self, tmp_path: Path):
        """Test files are filtered by extension and sorted by name."""
        for name in ("b.mp3", "a.WAV", "c.txt", "d.m4a"):
            (tmp_path / name).write_bytes(b"x")
        (tmp_path / "sub.mp3").mkdir()

        names = [p.name for p in list_media(tmp_path, MUSIC_EXTENSIONS)]

        assert names == ["a.WAV", "b.mp3", "d.m4a"]

    def test_missing_directory(self, tmp_path: Path):
        """Test a missing directory yields an empty list."""
        assert list_media(tmp_path / "missing", MUSIC_EXTENSIONS) == []


class TestAssetSelector:
    """Tests for ledger-driven asset selection."""

    @pytest.fixture
    def ledger(self):
        """Create a mock ledger."""
        ledger = AsyncMock()
        ledger.next_index = AsyncMock(return_value=1)
        return ledger

    @pytest.fixture
    def selector(self, ledger, tmp_path: Path):
        """Create a selector over temporary asset directories."""
        music = tmp_path / "music"
        music.mkdir()
        for name in ("one.mp3", "two.mp3"):
            (music / name).write_bytes(b"x")
        return AssetSelector(ledger, music, tmp_path / "overlays", tmp_path / "backgrounds")

    @pytest.mark.asyncio
    async def test_next_music(self, selector, ledger):
        """Test the ledger index picks from the sorted listing."""
        track = await selector.next_music()

        assert track.name == "two.mp3"
        ledger.next_index.assert_awaited_once_with(ResourceClass.MUSIC, 2)

    @pytest.mark.asyncio
    async def test_next_overlay_empty(self, selector, ledger):
        """Test a missing overlay directory yields None."""
        ledger.next_index.return_value = -1

        assert await selector.next_overlay() is None
        ledger.next_index.assert_awaited_once_with(ResourceClass.OVERLAY, 0)

    @pytest.mark.asyncio
    async def test_next_color_scheme_and_hook(self, selector, ledger):
        """Test code-defined catalogues rotate through the ledger."""
        assert await selector.next_color_scheme() is COLOR_SCHEMES[1]
        assert await selector.next_opening_hook() is OPENING_HOOKS[1]
