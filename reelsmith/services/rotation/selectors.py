"""Rotated catalogues and the pure functions that pick from them.

The catalogues here are code-defined; media catalogues (music, overlays,
backgrounds) are directory listings, see :mod:`.assets`.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class ColorScheme:
    """Palette handed to the image prompt writer."""

    name: str
    colors: str
    lighting: str
    mood: str


@dataclass(frozen=True)
class OpeningHook:
    """Opening style handed to the script writer."""

    key: str
    name: str
    instruction: str


COLOR_SCHEMES: tuple[ColorScheme, ...] = (
    ColorScheme(
        "Crimson Night",
        "deep crimson red, dark maroon, blood red accents",
        "warm red firelight, ember glow",
        "passionate and intense",
    ),
    ColorScheme(
        "Golden Dusk",
        "dark amber, burnt orange, golden yellow highlights",
        "sunset glow, warm candlelight",
        "warm and hopeful",
    ),
    ColorScheme(
        "Midnight Blue",
        "deep navy blue, midnight black, silver moonlight",
        "cool moonlight, starlight",
        "serene and mysterious",
    ),
    ColorScheme(
        "Forest Shadow",
        "dark forest green, deep olive, moss green accents",
        "filtered forest light, misty glow",
        "natural and grounding",
    ),
    ColorScheme(
        "Purple Twilight",
        "deep purple, dark violet, magenta highlights",
        "twilight glow, ethereal light",
        "mystical and spiritual",
    ),
    ColorScheme(
        "Copper Earth",
        "dark copper, rust brown, bronze accents",
        "warm lantern light, torch glow",
        "earthy and ancient",
    ),
    ColorScheme(
        "Wine & Gold",
        "deep wine red, burgundy, gold accents",
        "warm ambient light, soft glow",
        "rich and contemplative",
    ),
    ColorScheme(
        "Teal Ocean",
        "dark teal, deep sea green, turquoise highlights",
        "underwater light, bioluminescent glow",
        "deep and calming",
    ),
)

OPENING_HOOKS: tuple[OpeningHook, ...] = (
    OpeningHook(
        "mysterious_statement",
        "Mysterious poetic statement",
        "Open with a short, enigmatic poetic statement that makes the listener lean in.",
    ),
    OpeningHook(
        "metaphor",
        "Opening metaphor",
        "Open directly inside a vivid metaphor, without explaining it yet.",
    ),
    OpeningHook(
        "paradox",
        "Paradox",
        "Open with a paradoxical statement that seems contradictory but rings true.",
    ),
    OpeningHook(
        "imaginative_invitation",
        "Imaginative invitation",
        "Open by inviting the listener to imagine or feel a scene ('Imagine...', 'Feel...').",
    ),
    OpeningHook(
        "simple_observation",
        "Simple deep observation",
        "Open with a plain observation from daily life that carries hidden depth.",
    ),
    OpeningHook(
        "mini_story",
        "Mini story",
        "Open with a two or three sentence anecdote that sets up the theme.",
    ),
)


def select_item(items: Sequence[T], index: int) -> T | None:
    """Return ``items[index]``, or None for the empty-list sentinel ``-1``."""
    if index < 0 or not items:
        return None
    return items[index % len(items)]


def color_scheme_by_name(name: str | None) -> ColorScheme | None:
    """Look up a colour scheme recorded on a content item."""
    for scheme in COLOR_SCHEMES:
        if scheme.name == name:
            return scheme
    return None


def opening_hook_by_key(key: str | None) -> OpeningHook | None:
    """Look up an opening hook recorded on a content item."""
    for hook in OPENING_HOOKS:
        if hook.key == key:
            return hook
    return None


def round_robin_assign(items: Sequence[T], existing_count: int, batch_size: int) -> list[T | None]:
    """Assign items to a new batch, continuing after ``existing_count`` prior picks.

    Item ``i`` of the batch gets ``items[(existing_count + i) % len(items)]``.

    Args:
        items: Candidates in a deterministic order
        existing_count: Number of earlier assignments
        batch_size: Number of new assignments

    Returns:
        One item per batch slot (all None when ``items`` is empty)
    """
    if not items:
        return [None] * batch_size
    return [items[(existing_count + i) % len(items)] for i in range(batch_size)]


__all__ = [
    "COLOR_SCHEMES",
    "OPENING_HOOKS",
    "ColorScheme",
    "OpeningHook",
    "color_scheme_by_name",
    "opening_hook_by_key",
    "round_robin_assign",
    "select_item",
]
