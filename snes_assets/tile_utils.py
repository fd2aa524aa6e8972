#!/usr/bin/env python3
"""
SNES tile encoding/decoding utilities
Planar bitplane codec for 2bpp, 4bpp and 8bpp tiles
"""

from typing import Iterable, List, Optional, Sequence

from PIL import Image

from .constants import (
    BYTES_PER_BITPLANE_PAIR,
    PIXELS_PER_TILE,
    TILE_HEIGHT,
    TILE_WIDTH,
)
from .exceptions import TileError
from .palette_utils import Palette, get_grayscale_palette, palette_to_rgb_list
from .tile import Tile, TileDepth


def tile_size_bytes(depth) -> int:
    """Bytes occupied by one tile: 16, 32 or 64."""
    return TileDepth.from_value(depth).bytes_per_tile


def decode_tile_pixels(data: bytes, depth, offset: int = 0) -> List[int]:
    """
    Decode a single 8x8 planar SNES tile.

    Bitplanes are stored in interleaved pairs: for each row, planes 0 and 1
    sit at bytes row*2 and row*2+1, planes 2-3 follow 16 bytes later, and so
    on for 8bpp.

    Args:
        data: Raw tile data bytes
        depth: Bits per pixel (2, 4 or 8)
        offset: Starting offset in the data

    Returns:
        List of 64 pixel values

    Raises:
        TileError: If offset + tile size exceeds data length
    """
    depth = TileDepth.from_value(depth)
    size = depth.bytes_per_tile
    if offset < 0 or offset + size > len(data):
        raise TileError(f"Tile data out of bounds at offset {offset}")

    pixels = [0] * PIXELS_PER_TILE
    for pair in range(depth // 2):
        base = offset + pair * BYTES_PER_BITPLANE_PAIR
        low_shift = pair * 2
        for y in range(TILE_HEIGHT):
            plane_lo = data[base + y * 2]
            plane_hi = data[base + y * 2 + 1]
            for x in range(TILE_WIDTH):
                bit = 7 - x
                pixels[y * TILE_WIDTH + x] |= (
                    ((plane_lo >> bit) & 1) << low_shift
                    | ((plane_hi >> bit) & 1) << (low_shift + 1)
                )
    return pixels


def encode_tile_pixels(tile_pixels: Sequence[int], depth) -> bytes:
    """
    Encode an 8x8 tile to SNES planar format.

    Pixel values are masked to ``depth`` bits first, so out-of-range indices
    are silently truncated.

    Args:
        tile_pixels: List of 64 pixel values
        depth: Bits per pixel (2, 4 or 8)

    Returns:
        8 * depth bytes of encoded tile data

    Raises:
        TileError: If tile_pixels doesn't contain exactly 64 values
    """
    depth = TileDepth.from_value(depth)
    if len(tile_pixels) != PIXELS_PER_TILE:
        raise TileError(f"Expected {PIXELS_PER_TILE} pixels, got {len(tile_pixels)}")

    mask = depth.max_color_index
    output = bytearray(depth.bytes_per_tile)

    for pair in range(depth // 2):
        base = pair * BYTES_PER_BITPLANE_PAIR
        low_shift = pair * 2
        for y in range(TILE_HEIGHT):
            plane_lo = 0
            plane_hi = 0
            for x in range(TILE_WIDTH):
                pixel = tile_pixels[y * TILE_WIDTH + x] & mask
                plane_lo |= ((pixel >> low_shift) & 1) << (7 - x)
                plane_hi |= ((pixel >> (low_shift + 1)) & 1) << (7 - x)
            output[base + y * 2] = plane_lo
            output[base + y * 2 + 1] = plane_hi

    return bytes(output)


def decode_tile(data: bytes, depth, category: str = "") -> Tile:
    """
    Decode exactly one tile.

    Raises:
        TileError: If len(data) is not 8 * depth
    """
    depth = TileDepth.from_value(depth)
    if len(data) != depth.bytes_per_tile:
        raise TileError(
            f"{depth.label} tile needs {depth.bytes_per_tile} bytes, got {len(data)}"
        )
    return Tile(decode_tile_pixels(data, depth), depth, category)


def encode_tile(tile: Tile, depth=None) -> bytes:
    """Encode a tile at its own depth, or at ``depth`` when given."""
    return encode_tile_pixels(tile.pixels, tile.depth if depth is None else depth)


def decode_tiles(data: bytes, depth, count: Optional[int] = None,
                 start_offset: int = 0) -> List[Tile]:
    """
    Decode consecutive tiles.

    The count is clamped so reading never passes the end of the buffer;
    fewer tiles are returned instead.
    """
    depth = TileDepth.from_value(depth)
    size = depth.bytes_per_tile
    if start_offset < 0:
        raise TileError(f"Invalid negative offset: {start_offset}")
    available = max(0, (len(data) - start_offset) // size)
    if count is None or count > available:
        count = available

    return [
        Tile(decode_tile_pixels(data, depth, start_offset + i * size), depth)
        for i in range(max(0, count))
    ]


def encode_tiles(tiles: Iterable[Tile], depth=None) -> bytes:
    """Encode multiple tiles into one contiguous buffer."""
    output = bytearray()
    for tile in tiles:
        output.extend(encode_tile(tile, depth))
    return bytes(output)


def tiles_to_image(tiles: Sequence[Tile], palette: Optional[Palette] = None,
                   tiles_per_row: int = 16) -> Image.Image:
    """
    Arrange tiles in an indexed image for previewing.

    Args:
        tiles: Tiles to lay out left to right, top to bottom
        palette: Palette applied to the image (grayscale ramp when omitted)
        tiles_per_row: Number of tiles per row

    Returns:
        PIL image in 'P' mode
    """
    if tiles_per_row <= 0:
        raise ValueError(f"tiles_per_row must be positive, got {tiles_per_row}")

    rows = max(1, (len(tiles) + tiles_per_row - 1) // tiles_per_row)
    width = tiles_per_row * TILE_WIDTH
    height = rows * TILE_HEIGHT

    img = Image.new("P", (width, height))
    if palette is not None:
        img.putpalette(palette_to_rgb_list(palette))
    else:
        img.putpalette(get_grayscale_palette())

    img_pixels = [0] * (width * height)
    for tile_idx, tile in enumerate(tiles):
        tile_x = (tile_idx % tiles_per_row) * TILE_WIDTH
        tile_y = (tile_idx // tiles_per_row) * TILE_HEIGHT
        for y in range(TILE_HEIGHT):
            for x in range(TILE_WIDTH):
                img_pixels[(tile_y + y) * width + tile_x + x] = tile.pixels[y * TILE_WIDTH + x]

    img.putdata(img_pixels)
    return img
