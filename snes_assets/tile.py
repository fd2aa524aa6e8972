#!/usr/bin/env python3
"""
SNES tile model
An 8x8 block of palette indices with its bit depth and pure transforms
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

from .constants import PIXELS_PER_TILE, TILE_HEIGHT, TILE_WIDTH
from .exceptions import TileError, TileIndexError


class TileDepth(IntEnum):
    """Bits per pixel of a tile"""

    BPP2 = 2
    BPP4 = 4
    BPP8 = 8

    @property
    def label(self) -> str:
        return f"{self.value}bpp"

    @property
    def max_color_index(self) -> int:
        return (1 << self.value) - 1

    @property
    def bytes_per_tile(self) -> int:
        return 8 * self.value

    @classmethod
    def from_value(cls, value: int | TileDepth) -> TileDepth:
        try:
            return cls(int(value))
        except ValueError:
            raise TileError(f"Unsupported tile depth: {value} (expected 2, 4 or 8)") from None


def _check_coordinates(x: int, y: int) -> None:
    if not (0 <= x < TILE_WIDTH and 0 <= y < TILE_HEIGHT):
        raise TileIndexError(f"Pixel ({x}, {y}) is outside the 8x8 tile")


@dataclass
class Tile:
    """
    An 8x8 tile of palette indices.

    Index 0 renders as transparent. The category is a free-text label used
    for grouping in editors and plays no part in encoding or equality of
    pixel content.
    """

    pixels: list[int] = field(default_factory=lambda: [0] * PIXELS_PER_TILE)
    depth: TileDepth = TileDepth.BPP4
    category: str = ""

    def __post_init__(self) -> None:
        self.pixels = list(self.pixels)
        if len(self.pixels) != PIXELS_PER_TILE:
            raise TileError(f"Expected {PIXELS_PER_TILE} pixels, got {len(self.pixels)}")
        if any(not 0 <= p <= 0xFF for p in self.pixels):
            raise TileError("Pixel values must be in range 0-255")
        self.depth = TileDepth.from_value(self.depth)

    @classmethod
    def empty(cls, depth: TileDepth = TileDepth.BPP4, category: str = "") -> Tile:
        return cls([0] * PIXELS_PER_TILE, depth, category)

    def pixel(self, x: int, y: int) -> int:
        _check_coordinates(x, y)
        return self.pixels[y * TILE_WIDTH + x]

    def set_pixel(self, x: int, y: int, value: int) -> None:
        """Set a pixel in place, clamping the value to the tile's depth."""
        _check_coordinates(x, y)
        self.pixels[y * TILE_WIDTH + x] = max(0, min(value, self.depth.max_color_index))

    def pixel_key(self) -> bytes:
        """Exact pixel content, usable as a dictionary key for deduplication."""
        return bytes(self.pixels)

    def is_transparent(self) -> bool:
        return not any(self.pixels)

    def with_pixels(self, pixels: list[int]) -> Tile:
        return Tile(pixels, self.depth, self.category)

    def masked(self) -> Tile:
        """Copy with every pixel truncated to the tile's depth."""
        mask = self.depth.max_color_index
        return self.with_pixels([p & mask for p in self.pixels])

    # Transforms

    def flipped_horizontally(self) -> Tile:
        result = [0] * PIXELS_PER_TILE
        for y in range(TILE_HEIGHT):
            for x in range(TILE_WIDTH):
                result[y * 8 + (7 - x)] = self.pixels[y * 8 + x]
        return self.with_pixels(result)

    def flipped_vertically(self) -> Tile:
        result = [0] * PIXELS_PER_TILE
        for y in range(TILE_HEIGHT):
            for x in range(TILE_WIDTH):
                result[(7 - y) * 8 + x] = self.pixels[y * 8 + x]
        return self.with_pixels(result)

    def rotated_clockwise(self) -> Tile:
        result = [0] * PIXELS_PER_TILE
        for y in range(TILE_HEIGHT):
            for x in range(TILE_WIDTH):
                result[x * 8 + (7 - y)] = self.pixels[y * 8 + x]
        return self.with_pixels(result)

    def shifted(self, dx: int, dy: int) -> Tile:
        """
        Shift pixels with wrap-around.

        A positive dx moves content right, so shifting by (1, 0) brings
        column 7 around to column 0. A positive dy moves content down.
        """
        result = [0] * PIXELS_PER_TILE
        for y in range(TILE_HEIGHT):
            for x in range(TILE_WIDTH):
                src_x = (x - dx) % TILE_WIDTH
                src_y = (y - dy) % TILE_HEIGHT
                result[y * 8 + x] = self.pixels[src_y * 8 + src_x]
        return self.with_pixels(result)

    def replace_color(self, old: int, new: int) -> Tile:
        return self.with_pixels([new if p == old else p for p in self.pixels])

    def remapped(self, mapping: list[int]) -> Tile:
        """Copy with each pixel value looked up in ``mapping``."""
        return self.with_pixels([mapping[p] for p in self.pixels])
