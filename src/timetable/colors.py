"""Colour classification for spreadsheet cell backgrounds and foregrounds.

Thresholds were tuned against one spreadsheet template family and are fixed.
Anything that cannot be read as a 6-digit hex colour counts as near-white so
an ambiguous colour is never mistaken for class data.
"""

from typing import NamedTuple

WHITE_THRESHOLD = 235
BLACK_THRESHOLD = 20

# Pale yellow banding the template uses for non-class rows
EXCLUDED_COLORS: frozenset[str] = frozenset({"#ffffe1", "#ffffe0"})

_ABSENT = frozenset({"", "none"})


class ColorClass(NamedTuple):
    is_near_white: bool
    is_near_black: bool
    is_excluded: bool


def _channels(color: str | None) -> tuple[int, int, int] | None:
    """Parse a hex colour into RGB channels, or None when unreadable."""
    if color is None or color.strip().lower() in _ABSENT:
        return None
    hex_digits = color.strip().lstrip("#")
    if len(hex_digits) == 3:
        hex_digits = "".join(c * 2 for c in hex_digits)
    if len(hex_digits) != 6:
        return None
    try:
        return (
            int(hex_digits[0:2], 16),
            int(hex_digits[2:4], 16),
            int(hex_digits[4:6], 16),
        )
    except ValueError:
        return None


def is_near_white(color: str | None) -> bool:
    channels = _channels(color)
    if channels is None:
        return True
    return all(c > WHITE_THRESHOLD for c in channels)


def is_near_black(color: str | None) -> bool:
    # Absent foreground reads as "default text colour", same as black
    channels = _channels(color)
    if channels is None:
        return True
    return all(c < BLACK_THRESHOLD for c in channels)


def is_excluded(color: str | None) -> bool:
    if not color:
        return False
    return color.strip().lower() in EXCLUDED_COLORS


def classify(color: str | None) -> ColorClass:
    """Classify a colour value.

    Args:
        color: Hex colour such as "#ff0000" or "#f00", or None/"none"/"".

    Returns:
        ColorClass with the three independent flags.
    """
    return ColorClass(
        is_near_white=is_near_white(color),
        is_near_black=is_near_black(color),
        is_excluded=is_excluded(color),
    )


def is_data_color(color: str | None) -> bool:
    """True when a background colour marks a class cell."""
    return bool(color) and not is_near_white(color) and not is_excluded(color)
