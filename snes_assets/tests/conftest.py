"""
Shared pytest fixtures and configuration for SNES asset toolkit tests
"""

import os
import struct
import tempfile
from pathlib import Path

import pytest
from PIL import Image

# Must be set before the first QApplication is created
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_2bpp_tile():
    """16 bytes: a diagonal of color 1 and a bottom row of color 2"""
    data = bytearray(16)
    for y in range(8):
        data[y * 2] = 1 << (7 - y)
    data[7 * 2 + 1] = 0xFF
    return bytes(data)


@pytest.fixture
def sample_4bpp_tile():
    """Create a sample 4bpp tile (32 bytes)"""
    # Diagonal on bitplane 0, everything else empty
    tile_data = bytearray(32)
    for y in range(8):
        tile_data[y * 2] = 1 << (7 - y)
    return bytes(tile_data)


@pytest.fixture
def sample_8bpp_tile():
    """64 bytes with only bitplane 7 set in the first row"""
    data = bytearray(64)
    data[48 + 1] = 0xFF
    return bytes(data)


@pytest.fixture
def sample_cgram_data():
    """Create sample CGRAM palette data (512 bytes)"""
    data = bytearray(512)
    for pal in range(16):
        for color in range(16):
            level = (color * 2) & 0x1F
            bgr555 = (level << 10) | (level << 5) | level
            struct.pack_into("<H", data, pal * 32 + color * 2, bgr555)
    return bytes(data)


def build_rom(size=512 * 1024, header_offset=0x7FC0, title=b"TEST GAME",
              mapping_byte=0x20, chip=0x00, rom_size_byte=0x09, ram_size_byte=0x00,
              country=0x01, checksum=0x1234, complement=None, smc=False,
              reset=0x8000, nmi=0x8100, irq=0x8200):
    """Synthetic ROM image with an internal header at header_offset"""
    rom = bytearray(size)
    if complement is None:
        complement = checksum ^ 0xFFFF
    rom[header_offset:header_offset + 21] = title.ljust(21, b" ")[:21]
    rom[header_offset + 0x15] = mapping_byte
    rom[header_offset + 0x16] = chip
    rom[header_offset + 0x17] = rom_size_byte
    rom[header_offset + 0x18] = ram_size_byte
    rom[header_offset + 0x19] = country
    struct.pack_into("<H", rom, header_offset + 0x1C, complement)
    struct.pack_into("<H", rom, header_offset + 0x1E, checksum)
    struct.pack_into("<H", rom, header_offset + 0x2A, nmi)
    struct.pack_into("<H", rom, header_offset + 0x2E, irq)
    struct.pack_into("<H", rom, header_offset + 0x3C, reset)
    if smc:
        return bytes(512) + bytes(rom)
    return bytes(rom)


@pytest.fixture
def rom_builder():
    """The build_rom helper, for tests that need several variants"""
    return build_rom


@pytest.fixture
def lorom_image():
    return build_rom()


@pytest.fixture
def hirom_image():
    return build_rom(size=1024 * 1024, header_offset=0xFFC0, mapping_byte=0x31,
                     rom_size_byte=0x0A, title=b"HIROM GAME")


def make_quadrant_sheet():
    """
    16x16 RGBA image with three opaque colors.

    Top-left and bottom-right quadrants are solid red, top-right is solid
    green, bottom-left is blue with a red diagonal.
    """
    red, green, blue = (248, 0, 0, 255), (0, 248, 0, 255), (0, 0, 248, 255)
    img = Image.new("RGBA", (16, 16), (0, 0, 0, 0))
    for y in range(16):
        for x in range(16):
            if x < 8 and y < 8:
                color = red
            elif y < 8:
                color = green
            elif x < 8:
                color = red if x == y - 8 else blue
            else:
                color = red
            img.putpixel((x, y), color)
    return img


@pytest.fixture
def quadrant_sheet():
    return make_quadrant_sheet()


@pytest.fixture
def strip_sheet():
    """64x16 horizontal strip of four 16x16 frames, the last one empty"""
    img = Image.new("RGBA", (64, 16), (0, 0, 0, 0))
    colors = [(248, 0, 0, 255), (0, 248, 0, 255), (248, 0, 0, 255)]
    for frame, color in enumerate(colors):
        for y in range(4, 12):
            for x in range(4, 12):
                img.putpixel((frame * 16 + x, y), color)
    return img


@pytest.fixture
def qtbot_wait():
    """Helper fixture for common wait times in Qt tests"""
    return {
        "short": 100,
        "medium": 500,
        "long": 5000,
    }
