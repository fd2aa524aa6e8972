#!/usr/bin/env python3
"""
SNES palette utilities
BGR555 colors, 16-color palettes and CGRAM byte handling
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

from .constants import (
    BGR555_BLUE_MASK,
    BGR555_BLUE_SHIFT,
    BGR555_GREEN_MASK,
    BGR555_GREEN_SHIFT,
    BGR555_MAX_VALUE,
    BGR555_RED_MASK,
    BGR555_RED_SHIFT,
    BGR555_VALUE_MASK,
    BYTES_PER_COLOR,
    BYTES_PER_PALETTE,
    COLORS_PER_PALETTE,
    MAX_PALETTES,
    RGB888_MAX_VALUE,
)
from .exceptions import ValidationError


def bgr555_to_rgb888(bgr555: int) -> tuple[int, int, int]:
    """
    Convert BGR555 color to RGB888.

    Args:
        bgr555: 16-bit BGR555 color value

    Returns:
        Tuple of (r, g, b) values in 0-255 range
    """
    b = (bgr555 & BGR555_BLUE_MASK) >> BGR555_BLUE_SHIFT
    g = (bgr555 & BGR555_GREEN_MASK) >> BGR555_GREEN_SHIFT
    r = (bgr555 & BGR555_RED_MASK) >> BGR555_RED_SHIFT

    r = (r * RGB888_MAX_VALUE) // BGR555_MAX_VALUE
    g = (g * RGB888_MAX_VALUE) // BGR555_MAX_VALUE
    b = (b * RGB888_MAX_VALUE) // BGR555_MAX_VALUE

    return r, g, b


def rgb888_to_bgr555(r: int, g: int, b: int) -> int:
    """
    Convert RGB888 color to BGR555.

    Args:
        r: Red component (0-255)
        g: Green component (0-255)
        b: Blue component (0-255)

    Returns:
        16-bit BGR555 color value
    """
    r5 = (r * BGR555_MAX_VALUE) // RGB888_MAX_VALUE
    g5 = (g * BGR555_MAX_VALUE) // RGB888_MAX_VALUE
    b5 = (b * BGR555_MAX_VALUE) // RGB888_MAX_VALUE

    return (
        (b5 << BGR555_BLUE_SHIFT)
        | (g5 << BGR555_GREEN_SHIFT)
        | (r5 << BGR555_RED_SHIFT)
    )


@dataclass(frozen=True)
class SNESColor:
    """A 15-bit BGR555 color: 0BBBBBGGGGGRRRRR"""

    raw: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "raw", self.raw & BGR555_VALUE_MASK)

    @classmethod
    def from_rgb(cls, r: int, g: int, b: int) -> SNESColor:
        """Build a color from 5-bit channels, clamping each to 0-31."""
        rc = min(max(r, 0), BGR555_MAX_VALUE)
        gc = min(max(g, 0), BGR555_MAX_VALUE)
        bc = min(max(b, 0), BGR555_MAX_VALUE)
        return cls(rc | (gc << BGR555_GREEN_SHIFT) | (bc << BGR555_BLUE_SHIFT))

    @classmethod
    def from_rgb888(cls, r: int, g: int, b: int) -> SNESColor:
        return cls(rgb888_to_bgr555(r, g, b))

    @property
    def red(self) -> int:
        return self.raw & 0x1F

    @property
    def green(self) -> int:
        return (self.raw >> BGR555_GREEN_SHIFT) & 0x1F

    @property
    def blue(self) -> int:
        return (self.raw >> BGR555_BLUE_SHIFT) & 0x1F

    def to_rgb(self) -> tuple[int, int, int]:
        """5-bit (r, g, b) channels."""
        return self.red, self.green, self.blue

    def to_rgb888(self) -> tuple[int, int, int]:
        return bgr555_to_rgb888(self.raw)

    @property
    def hex_string(self) -> str:
        return f"${self.raw:04X}"


def color_from_rgb15(raw: int) -> tuple[int, int, int]:
    """Split a BGR555 word into 5-bit (r, g, b): R bits 0-4, G bits 5-9, B bits 10-14."""
    return SNESColor(raw).to_rgb()


def rgb15_from_color(r: int, g: int, b: int) -> int:
    """Inverse of color_from_rgb15."""
    return SNESColor.from_rgb(r, g, b).raw


BLACK = SNESColor(0)

SNES_DEFAULT_COLORS = [
    SNESColor.from_rgb(0, 0, 0),     # 0 - Black (transparent)
    SNESColor.from_rgb(31, 31, 31),  # 1 - White
    SNESColor.from_rgb(31, 0, 0),    # 2 - Red
    SNESColor.from_rgb(0, 31, 0),    # 3 - Green
    SNESColor.from_rgb(0, 0, 31),    # 4 - Blue
    SNESColor.from_rgb(31, 31, 0),   # 5 - Yellow
    SNESColor.from_rgb(0, 31, 31),   # 6 - Cyan
    SNESColor.from_rgb(31, 0, 31),   # 7 - Magenta
    SNESColor.from_rgb(16, 16, 16),  # 8 - Gray
    SNESColor.from_rgb(20, 10, 5),   # 9 - Brown
    SNESColor.from_rgb(31, 16, 0),   # 10 - Orange
    SNESColor.from_rgb(16, 31, 16),  # 11 - Light green
    SNESColor.from_rgb(16, 16, 31),  # 12 - Light blue
    SNESColor.from_rgb(24, 16, 24),  # 13 - Light purple
    SNESColor.from_rgb(24, 24, 16),  # 14 - Cream
    SNESColor.from_rgb(8, 8, 8),     # 15 - Dark gray
]


@dataclass
class Palette:
    """Exactly 16 colors; shorter input is padded with black, longer is cut."""

    name: str = "Palette"
    colors: list[SNESColor] = field(default_factory=lambda: [BLACK] * COLORS_PER_PALETTE)

    def __post_init__(self) -> None:
        colors = [c if isinstance(c, SNESColor) else SNESColor(int(c)) for c in self.colors]
        colors.extend([BLACK] * (COLORS_PER_PALETTE - len(colors)))
        self.colors = colors[:COLORS_PER_PALETTE]

    def __getitem__(self, index: int) -> SNESColor:
        return self.colors[index]

    def __setitem__(self, index: int, color: SNESColor) -> None:
        self.colors[index] = color

    @property
    def raw_values(self) -> list[int]:
        return [c.raw for c in self.colors]

    def is_empty(self) -> bool:
        """True when every color, including slot 0, is raw zero."""
        return all(c.raw == 0 for c in self.colors)

    def has_content(self) -> bool:
        """True when any color after the transparent slot is non-black."""
        return any(c.raw != 0 for c in self.colors[1:])

    def index_of(self, color: SNESColor, start: int = 1) -> int | None:
        """First slot at or after ``start`` holding exactly this color."""
        for i in range(start, COLORS_PER_PALETTE):
            if self.colors[i].raw == color.raw:
                return i
        return None

    def to_bytes(self) -> bytes:
        return palette_to_cgram(self)


def default_palettes() -> list[Palette]:
    """
    Built-in palette bank for a clean project.

    Palette 0 holds the standard 16 preview colors; the remaining 15 are all
    black, which marks them as free slots.
    """
    palettes = [Palette("Palette 0", list(SNES_DEFAULT_COLORS))]
    for i in range(1, MAX_PALETTES):
        palettes.append(Palette(f"Palette {i}", [BLACK] * COLORS_PER_PALETTE))
    return palettes


def parse_palette(data: bytes, offset: int = 0, name: str = "Palette") -> Palette:
    """
    Read 16 little-endian BGR555 words.

    Raises:
        ValidationError: If fewer than 32 bytes are available at offset
    """
    if offset < 0 or offset + BYTES_PER_PALETTE > len(data):
        raise ValidationError(f"Palette data out of bounds at offset {offset}")
    words = struct.unpack_from(f"<{COLORS_PER_PALETTE}H", data, offset)
    return Palette(name, [SNESColor(w) for w in words])


def parse_cgram(data: bytes) -> list[Palette]:
    """Split a CGRAM dump into as many whole palettes as it holds (up to 16)."""
    count = min(len(data) // BYTES_PER_PALETTE, MAX_PALETTES)
    return [parse_palette(data, i * BYTES_PER_PALETTE, f"Palette {i}") for i in range(count)]


def palette_to_cgram(palette: Palette) -> bytes:
    """Convert a palette to 32 bytes of CGRAM data."""
    return b"".join(struct.pack("<H", c.raw) for c in palette.colors)


def palettes_to_cgram(palettes: list[Palette]) -> bytes:
    return b"".join(palette_to_cgram(p) for p in palettes[:MAX_PALETTES])


def palette_to_rgb_list(palette: Palette) -> list[int]:
    """768 RGB values for PIL's putpalette; entries past 16 are black."""
    values: list[int] = []
    for color in palette.colors:
        values.extend(color.to_rgb888())
    values.extend([0] * (768 - len(values)))
    return values


def get_grayscale_palette() -> list[int]:
    """
    Get default grayscale palette for preview.

    Returns:
        List of 768 RGB values forming a grayscale palette
    """
    palette = []
    for i in range(256):
        # Map 0-15 to 0-255; higher indices (8bpp) keep their own value
        gray = (i * RGB888_MAX_VALUE) // 15 if i < COLORS_PER_PALETTE else i
        palette.extend([gray, gray, gray])
    return palette


def is_plausible_palette(data: bytes, offset: int = 0,
                         min_unique: int = 4) -> bool:
    """
    Heuristic test for 16 BGR555 words at offset.

    Every word must have bit 15 clear, the block must not be all zero and
    must contain at least ``min_unique`` distinct colors.
    """
    if offset < 0 or offset + BYTES_PER_PALETTE > len(data):
        return False
    words = struct.unpack_from(f"<{COLORS_PER_PALETTE}H", data, offset)
    if any(w > BGR555_VALUE_MASK for w in words):
        return False
    if not any(words):
        return False
    return len(set(words)) >= min_unique


__all__ = [
    "BLACK",
    "BYTES_PER_COLOR",
    "Palette",
    "SNESColor",
    "SNES_DEFAULT_COLORS",
    "bgr555_to_rgb888",
    "color_from_rgb15",
    "default_palettes",
    "get_grayscale_palette",
    "is_plausible_palette",
    "palette_to_cgram",
    "palette_to_rgb_list",
    "palettes_to_cgram",
    "parse_cgram",
    "parse_palette",
    "rgb15_from_color",
    "rgb888_to_bgr555",
]
