"""Colour helpers shared by the layouts and exporters."""
from __future__ import annotations

import re
from typing import Optional, Tuple

from .errors import ValidationError
from .model import DEFAULT_ACCENT_COLOR

# Sidebar presets offered next to the free colour picker.
ACCENT_PRESETS = (
    "#79C9C5",
    "#85409D",
    "#4D2B8C",
    "#F16D34",
    "#BDE8F5",
    "#FFA240",
    "#D73535",
)

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def parse_hex_color(value: Optional[str]) -> Optional[Tuple[int, int, int]]:
    """Parse ``#RGB`` / ``#RRGGBB`` (``#`` optional) into an RGB tuple."""
    if not value:
        return None
    m = _HEX_RE.match(str(value).strip())
    if not m:
        return None
    digits = m.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))


def normalize_hex(value: str) -> str:
    """Return ``value`` as upper-case ``#RRGGBB``; raise ValidationError when invalid."""
    rgb = parse_hex_color(value)
    if rgb is None:
        raise ValidationError(f"Invalid colour: {value!r}", hint="Use a hex colour such as #2C5F7C")
    return "#{:02X}{:02X}{:02X}".format(*rgb)


def is_dark(rgb: Tuple[int, int, int]) -> bool:
    # ITU-R BT.601 luma
    r, g, b = rgb
    return (0.299 * r + 0.587 * g + 0.114 * b) < 150


def text_color_on(background: Optional[str]) -> str:
    """White on dark backgrounds, near-black on light ones."""
    rgb = parse_hex_color(background) or parse_hex_color(DEFAULT_ACCENT_COLOR)
    return "#FFFFFF" if is_dark(rgb) else "#1F1F1F"  # type: ignore[arg-type]
