#!/usr/bin/env python3
"""
Constants for the SNES asset toolkit
All magic numbers and hardware specifications in one place
"""

# SNES Tile specifications
TILE_WIDTH = 8  # pixels
TILE_HEIGHT = 8  # pixels
PIXELS_PER_TILE = 64  # 8x8
BYTES_PER_TILE_2BPP = 16
BYTES_PER_TILE_4BPP = 32
BYTES_PER_TILE_8BPP = 64
BYTES_PER_BITPLANE_PAIR = 16  # 8 rows * 2 interleaved planes

# SNES Memory limits
VRAM_SIZE_STANDARD = 65536  # 64KB
CGRAM_SIZE = 512  # Color RAM size in bytes
OAM_SIZE = 544  # Object Attribute Memory size (512 + 32 bytes)

# Palette specifications
COLORS_PER_PALETTE = 16
BYTES_PER_COLOR = 2  # BGR555 format
BYTES_PER_PALETTE = 32  # 16 colors * 2 bytes
MAX_PALETTES = 16  # Palette bank capacity
MAX_IMPORT_COLORS = 15  # Slot 0 is transparent

# OAM specifications
OAM_ENTRIES = 128  # Hardware sprite limit
BYTES_PER_OAM_ENTRY = 4
OAM_HIGH_TABLE_OFFSET = 512  # Offset to high table
OAM_HIGH_TABLE_SIZE = 32
OAM_MAX_TILE_INDEX = 511  # 9-bit name (two name tables)
OAM_MAX_PALETTE = 7
OAM_MAX_PRIORITY = 3
OAM_OFFSCREEN_Y = 0xF0
SPRITES_PER_SCANLINE = 32

# Screen geometry
SCREEN_WIDTH = 256
SCREEN_HEIGHT = 224

# Color conversion
BGR555_MAX_VALUE = 31  # 5 bits per color component
RGB888_MAX_VALUE = 255  # 8 bits per color component
BGR555_VALUE_MASK = 0x7FFF

# BGR555 color masks
BGR555_BLUE_MASK = 0x7C00   # Bits 14-10 for blue
BGR555_GREEN_MASK = 0x03E0  # Bits 9-5 for green
BGR555_RED_MASK = 0x001F    # Bits 4-0 for red

# Bit shifts for BGR555
BGR555_BLUE_SHIFT = 10
BGR555_GREEN_SHIFT = 5
BGR555_RED_SHIFT = 0

# Tilemaps
TILEMAP_ENTRY_BYTES = 2
SCREEN_TILEMAP_WIDTH = 32  # tiles
SCREEN_TILEMAP_HEIGHT = 32  # tiles
SCREEN_TILEMAP_BYTES = SCREEN_TILEMAP_WIDTH * SCREEN_TILEMAP_HEIGHT * TILEMAP_ENTRY_BYTES
DEFAULT_SPRITE_TILE_COUNT = 128  # Sprite tiles reserved per screen (4bpp)

# DMA transfer budget
DMA_BYTES_PER_VBLANK = 7168  # ~7KB per VBlank
MAX_TRANSITION_FRAMES = 4

# ROM format constants
SMC_HEADER_SIZE = 512
ROM_HEADER_OFFSET_LOROM = 0x7FC0
ROM_HEADER_OFFSET_HIROM = 0xFFC0
ROM_HEADER_SIZE = 0x40  # Header block including vector table
ROM_TITLE_LENGTH = 21
ROM_CHECKSUM_COMPLEMENT_MASK = 0xFFFF
ROM_MAX_SIZE_BYTE = 0x0D
RAM_MAX_SIZE_BYTE = 0x07

# Offsets inside the header block
HEADER_MAPPING_OFFSET = 0x15
HEADER_CHIP_OFFSET = 0x16
HEADER_ROM_SIZE_OFFSET = 0x17
HEADER_RAM_SIZE_OFFSET = 0x18
HEADER_COUNTRY_OFFSET = 0x19
HEADER_COMPLEMENT_OFFSET = 0x1C
HEADER_CHECKSUM_OFFSET = 0x1E
HEADER_NMI_VECTOR_OFFSET = 0x2A
HEADER_IRQ_VECTOR_OFFSET = 0x2E
HEADER_RESET_VECTOR_OFFSET = 0x3C

# ROM scanning
PALETTE_SCAN_STRIDE = BYTES_PER_PALETTE
PALETTE_SCAN_LIMIT = 64
PALETTE_MIN_UNIQUE_COLORS = 4

# Sprite sheet import
ALPHA_OPAQUE_THRESHOLD = 128
DEFAULT_FRAME_DURATION = 4  # VBlanks
DEFAULT_IMPORT_PRIORITY = 2
