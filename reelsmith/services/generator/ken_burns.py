"""Ken Burns zoom and pan presets for still images.

Each preset is a ``zoompan`` expression over the output frame number
``on``, running from the first to the last frame of the image's slot.
"""

import math
import random
from enum import Enum


class KenBurnsEffect(str, Enum):
    ZOOM_IN = "zoom-in"
    ZOOM_OUT = "zoom-out"
    PAN_LEFT = "pan-left"
    PAN_RIGHT = "pan-right"
    PAN_UP = "pan-up"
    PAN_DOWN = "pan-down"
    ZOOM_IN_PAN_LEFT = "zoom-in-pan-left"
    ZOOM_IN_PAN_RIGHT = "zoom-in-pan-right"


_CENTER_X = "iw/2-(iw/zoom/2)"
_CENTER_Y = "ih/2-(ih/zoom/2)"


def _expressions(effect: KenBurnsEffect, frames: int) -> tuple[str, str, str]:
    """(z, x, y) expressions for a preset."""
    if effect == KenBurnsEffect.ZOOM_IN:
        return f"1+0.15*on/{frames}", _CENTER_X, _CENTER_Y
    if effect == KenBurnsEffect.ZOOM_OUT:
        return f"1.15-0.15*on/{frames}", _CENTER_X, _CENTER_Y
    if effect == KenBurnsEffect.PAN_LEFT:
        return "1.1", f"iw*0.1-on/{frames}*iw*0.1", _CENTER_Y
    if effect == KenBurnsEffect.PAN_RIGHT:
        return "1.1", f"on/{frames}*iw*0.1", _CENTER_Y
    if effect == KenBurnsEffect.PAN_UP:
        return "1.1", _CENTER_X, f"ih*0.1-on/{frames}*ih*0.1"
    if effect == KenBurnsEffect.PAN_DOWN:
        return "1.1", _CENTER_X, f"on/{frames}*ih*0.1"
    if effect == KenBurnsEffect.ZOOM_IN_PAN_LEFT:
        return f"1+0.12*on/{frames}", f"iw*0.1-on/{frames}*iw*0.05", _CENTER_Y
    return f"1+0.12*on/{frames}", f"on/{frames}*iw*0.05", _CENTER_Y


def ken_burns_filter(
    effect: KenBurnsEffect,
    duration: float,
    fps: int = 30,
    width: int = 1080,
    height: int = 1920,
) -> str:
    """Build the ``zoompan`` filter for one image.

    Args:
        effect: Preset
        duration: Seconds the image is on screen
        fps: Output frame rate
        width: Output width
        height: Output height

    Returns:
        ``zoompan=z='...':x='...':y='...':d=<frames>:s=<W>x<H>:fps=<fps>``
    """
    frames = math.floor(duration * fps)
    z, x, y = _expressions(effect, frames)
    return f"zoompan=z='{z}':x='{x}':y='{y}':d={frames}:s={width}x{height}:fps={fps}"


def varied_effects(count: int, rng: random.Random | None = None) -> list[KenBurnsEffect]:
    """Pick presets without repeats until the pool is used up, then refill.

    Args:
        count: Number of images
        rng: Random source (seed it for reproducible renders)

    Returns:
        One preset per image
    """
    rng = rng or random.Random()
    pool: list[KenBurnsEffect] = []
    effects: list[KenBurnsEffect] = []
    for _ in range(count):
        if not pool:
            pool = list(KenBurnsEffect)
        effects.append(pool.pop(rng.randrange(len(pool))))
    return effects


__all__ = [
    "KenBurnsEffect",
    "ken_burns_filter",
    "varied_effects",
]
