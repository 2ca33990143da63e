"""Number formatting shared by the subtitle and FFmpeg builders."""

import math


def half_up(value: float) -> int:
    """Round half away from zero for non-negative values (0.5 -> 1)."""
    return math.floor(value + 0.5)


def format_number(value: float) -> str:
    """Shortest decimal form: integers lose their ``.0``.

    >>> format_number(3.0), format_number(1.5), format_number(60.5)
    ('3', '1.5', '60.5')
    """
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


__all__ = [
    "format_number",
    "half_up",
]
