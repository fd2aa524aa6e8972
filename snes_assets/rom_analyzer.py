#!/usr/bin/env python3
"""
SNES ROM analysis
Copier header detection, internal header parsing, checksum checks and
heuristic scans for palette and tile data
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .cartridge import ROMMapping, ROMSpeed
from .constants import (
    BYTES_PER_PALETTE,
    HEADER_CHECKSUM_OFFSET,
    HEADER_CHIP_OFFSET,
    HEADER_COMPLEMENT_OFFSET,
    HEADER_COUNTRY_OFFSET,
    HEADER_IRQ_VECTOR_OFFSET,
    HEADER_MAPPING_OFFSET,
    HEADER_NMI_VECTOR_OFFSET,
    HEADER_RAM_SIZE_OFFSET,
    HEADER_RESET_VECTOR_OFFSET,
    HEADER_ROM_SIZE_OFFSET,
    PALETTE_MIN_UNIQUE_COLORS,
    PALETTE_SCAN_LIMIT,
    PALETTE_SCAN_STRIDE,
    RAM_MAX_SIZE_BYTE,
    ROM_CHECKSUM_COMPLEMENT_MASK,
    ROM_HEADER_OFFSET_HIROM,
    ROM_HEADER_OFFSET_LOROM,
    ROM_HEADER_SIZE,
    ROM_MAX_SIZE_BYTE,
    ROM_TITLE_LENGTH,
    SMC_HEADER_SIZE,
)
from .exceptions import InvalidROMError, ROMHeaderError
from .logging_config import get_logger
from .palette_utils import Palette, is_plausible_palette, parse_palette
from .tile import Tile, TileDepth
from .tile_utils import decode_tiles

logger = get_logger("rom_analyzer")

COUNTRY_NAMES = {
    0x00: "Japan",
    0x01: "USA",
    0x02: "Europe",
    0x03: "Sweden",
    0x04: "Finland",
    0x05: "Denmark",
    0x06: "France",
    0x07: "Netherlands",
    0x08: "Spain",
    0x09: "Germany",
    0x0A: "Italy",
    0x0B: "China",
    0x0D: "Korea",
}

# Low nibble of the map mode byte
_MAPPING_BY_NIBBLE = {
    0x00: ROMMapping.LOROM,
    0x02: ROMMapping.LOROM,
    0x01: ROMMapping.HIROM,
    0x03: ROMMapping.SA1,
    0x05: ROMMapping.EXHIROM,
}


@dataclass(frozen=True)
class ROMHeader:
    title: str
    mapping: ROMMapping
    speed: ROMSpeed
    chip_type: int
    rom_size_kb: int
    ram_size_kb: int
    country: int
    checksum: int
    checksum_complement: int
    reset_vector: int
    nmi_vector: int
    irq_vector: int
    header_offset: int = ROM_HEADER_OFFSET_LOROM
    mapping_byte: int = 0
    rom_size_byte: int = 0
    ram_size_byte: int = 0

    @property
    def checksum_valid(self) -> bool:
        return (self.checksum ^ self.checksum_complement) == ROM_CHECKSUM_COMPLEMENT_MASK

    @property
    def country_name(self) -> str:
        return COUNTRY_NAMES.get(self.country, f"Unknown (${self.country:02X})")


@dataclass
class ROMTileBlock:
    offset: int
    depth: TileDepth
    tiles: list[Tile] = field(default_factory=list)


@dataclass
class ROMPaletteBlock:
    offset: int
    palette: Palette


@dataclass
class ROMAnalysisResult:
    file_name: str
    file_size: int
    has_smc_header: bool
    header: Optional[ROMHeader]
    rom_data: bytes = b""
    computed_checksum: int = 0
    tile_blocks: list[ROMTileBlock] = field(default_factory=list)
    palette_blocks: list[ROMPaletteBlock] = field(default_factory=list)

    @property
    def header_found(self) -> bool:
        return self.header is not None

    @property
    def checksum_matches(self) -> bool:
        return self.header is not None and self.header.checksum == self.computed_checksum

    def add_tile_block(self, offset: int, depth, count: int) -> ROMTileBlock:
        """Decode tiles from the (copier-header-free) image and keep them."""
        depth = TileDepth.from_value(depth)
        block = ROMTileBlock(offset, depth, extract_tiles_at_offset(self.rom_data, offset, depth, count))
        self.tile_blocks.append(block)
        return block


def has_smc_header(file_size: int) -> bool:
    """A copier header leaves exactly 512 extra bytes past a 1 KB multiple."""
    return file_size % 1024 == SMC_HEADER_SIZE


def strip_smc_header(data: bytes) -> bytes:
    if has_smc_header(len(data)):
        return data[SMC_HEADER_SIZE:]
    return data


def _read_word(data: bytes, offset: int) -> int:
    return struct.unpack_from("<H", data, offset)[0]


def _decode_title(raw: bytes) -> str:
    text = raw.decode("ascii", errors="replace")
    return "".join(ch if " " <= ch <= "~" else " " for ch in text).strip()


def parse_header_at(rom: bytes, offset: int) -> Optional[ROMHeader]:
    """
    Read the internal header block at ``offset`` without validating it.

    Returns None when the buffer is too short to hold the 64-byte block
    including the vector table.
    """
    if offset < 0 or offset + ROM_HEADER_SIZE > len(rom):
        return None

    mapping_byte = rom[offset + HEADER_MAPPING_OFFSET]
    rom_size_byte = rom[offset + HEADER_ROM_SIZE_OFFSET]
    ram_size_byte = rom[offset + HEADER_RAM_SIZE_OFFSET]

    location_mapping = ROMMapping.HIROM if offset == ROM_HEADER_OFFSET_HIROM else ROMMapping.LOROM
    mapping = _MAPPING_BY_NIBBLE.get(mapping_byte & 0x0F, location_mapping)

    return ROMHeader(
        title=_decode_title(rom[offset:offset + ROM_TITLE_LENGTH]),
        mapping=mapping,
        speed=ROMSpeed.FAST if mapping_byte & 0x10 else ROMSpeed.SLOW,
        chip_type=rom[offset + HEADER_CHIP_OFFSET],
        rom_size_kb=(1 << rom_size_byte) if rom_size_byte <= ROM_MAX_SIZE_BYTE else 0,
        ram_size_kb=(1 << ram_size_byte) if 0 < ram_size_byte <= RAM_MAX_SIZE_BYTE else 0,
        country=rom[offset + HEADER_COUNTRY_OFFSET],
        checksum=_read_word(rom, offset + HEADER_CHECKSUM_OFFSET),
        checksum_complement=_read_word(rom, offset + HEADER_COMPLEMENT_OFFSET),
        reset_vector=_read_word(rom, offset + HEADER_RESET_VECTOR_OFFSET),
        nmi_vector=_read_word(rom, offset + HEADER_NMI_VECTOR_OFFSET),
        irq_vector=_read_word(rom, offset + HEADER_IRQ_VECTOR_OFFSET),
        header_offset=offset,
        mapping_byte=mapping_byte,
        rom_size_byte=rom_size_byte,
        ram_size_byte=ram_size_byte,
    )


def parse_header(data: bytes) -> Optional[ROMHeader]:
    """
    Locate the internal header.

    A copier header is stripped first when the size says there is one.
    LoROM ($7FC0) is tried before HiROM ($FFC0); a location is only
    accepted when checksum and complement agree.

    Returns:
        The parsed header, or None if neither location validates
    """
    rom = strip_smc_header(data)
    for offset in (ROM_HEADER_OFFSET_LOROM, ROM_HEADER_OFFSET_HIROM):
        header = parse_header_at(rom, offset)
        if header is not None and header.checksum_valid:
            logger.info(f"Found ROM header at ${offset:04X}: '{header.title}' "
                        f"(checksum: 0x{header.checksum:04X})")
            return header
    logger.warning("No valid SNES header found at $7FC0 or $FFC0")
    return None


def parse_header_strict(data: bytes) -> ROMHeader:
    """
    Like parse_header but for callers that need a header.

    Raises:
        ROMHeaderError: If no valid header is found
    """
    header = parse_header(data)
    if header is None:
        raise ROMHeaderError("Could not find valid SNES ROM header")
    return header


def compute_checksum(rom: bytes) -> int:
    """16-bit sum of every byte in the image"""
    return sum(rom) & ROM_CHECKSUM_COMPLEMENT_MASK


def scan_for_palettes(data: bytes, limit: int = PALETTE_SCAN_LIMIT,
                      min_unique_colors: int = PALETTE_MIN_UNIQUE_COLORS) -> list[ROMPaletteBlock]:
    """
    Find 32-byte blocks that look like palettes.

    Only 32-byte aligned offsets are tested. A block qualifies when every
    word is a valid BGR555 value (bit 15 clear), it is not all zero, and
    it holds at least ``min_unique_colors`` distinct colors. Plenty of
    non-palette data passes this test; results are candidates only.
    """
    blocks: list[ROMPaletteBlock] = []
    offset = 0
    while offset + BYTES_PER_PALETTE <= len(data) and len(blocks) < limit:
        if is_plausible_palette(data, offset, min_unique_colors):
            palette = parse_palette(data, offset, f"ROM @ ${offset:06X}")
            blocks.append(ROMPaletteBlock(offset, palette))
        offset += PALETTE_SCAN_STRIDE
    logger.debug(f"Palette scan found {len(blocks)} candidates")
    return blocks


def extract_tiles_at_offset(data: bytes, offset: int, depth, count: int) -> list[Tile]:
    """
    Decode up to ``count`` consecutive tiles starting at ``offset``.

    Reading stops at the end of the buffer, so fewer tiles may come back;
    an offset past the end yields an empty list.
    """
    if offset < 0 or offset >= len(data) or count <= 0:
        return []
    return decode_tiles(data, depth, count, offset)


def analyze_rom(data: bytes, file_name: str = "",
                palette_limit: int = PALETTE_SCAN_LIMIT) -> ROMAnalysisResult:
    """
    Analyze a whole ROM image held in memory.

    A missing header is not an error: the result carries header=None and
    the caller decides how to report it.

    Raises:
        InvalidROMError: If the buffer is empty or too short to hold a
            LoROM header block
    """
    if not data:
        raise InvalidROMError("ROM data is empty")

    smc = has_smc_header(len(data))
    rom = strip_smc_header(data)
    min_size = ROM_HEADER_OFFSET_LOROM + ROM_HEADER_SIZE
    if len(rom) < min_size:
        raise InvalidROMError(f"ROM data truncated: {len(rom)} bytes, need at least {min_size}")
    header = parse_header(data)
    computed = compute_checksum(rom)

    result = ROMAnalysisResult(
        file_name=file_name,
        file_size=len(data),
        has_smc_header=smc,
        header=header,
        rom_data=rom,
        computed_checksum=computed,
        palette_blocks=scan_for_palettes(rom, palette_limit),
    )
    if header is not None and not result.checksum_matches:
        logger.warning(f"Checksum mismatch: header 0x{header.checksum:04X}, "
                       f"computed 0x{computed:04X}")
    return result


def load_rom_file(path) -> bytes:
    """
    Read a ROM file in one go.

    Raises:
        InvalidROMError: If the file is empty
        RuntimeError: If the file cannot be read
    """
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise RuntimeError(f"Error reading ROM file {path}: {e}") from e
    if not data:
        raise InvalidROMError(f"ROM file is empty: {path}")
    logger.info(f"Loaded ROM {path} ({len(data)} bytes)")
    return data


def analyze_rom_file(path, settings=None) -> ROMAnalysisResult:
    """
    Load and analyze a ROM file.

    With a SettingsManager the palette scan limit comes from
    ``rom.scan_limit`` and the file is added to the recent ROM list.
    """
    data = load_rom_file(path)
    limit = PALETTE_SCAN_LIMIT
    if settings is not None:
        limit = int(settings.get("rom.scan_limit", PALETTE_SCAN_LIMIT))
        settings.add_recent_file("rom", str(path))
    return analyze_rom(data, Path(path).name, limit)
