#!/usr/bin/env python3
"""
Tests for ROM header detection, checksum handling and data scans
"""

import struct

import pytest

from snes_assets.cartridge import ROMMapping, ROMSpeed
from snes_assets.exceptions import InvalidROMError, ROMError, ROMHeaderError
from snes_assets.rom_analyzer import (
    ROMHeader,
    analyze_rom,
    analyze_rom_file,
    compute_checksum,
    extract_tiles_at_offset,
    has_smc_header,
    load_rom_file,
    parse_header,
    parse_header_at,
    parse_header_strict,
    scan_for_palettes,
    strip_smc_header,
)
from snes_assets.settings_manager import SettingsManager
from snes_assets.tile import TileDepth


def make_header(checksum, complement, country=1):
    return ROMHeader(
        title="T", mapping=ROMMapping.LOROM, speed=ROMSpeed.SLOW, chip_type=0,
        rom_size_kb=512, ram_size_kb=0, country=country, checksum=checksum,
        checksum_complement=complement, reset_vector=0x8000, nmi_vector=0,
        irq_vector=0,
    )


@pytest.mark.unit
class TestCopierHeader:
    """512-byte copier header detection"""

    def test_detection_by_size(self):
        assert has_smc_header(512 * 1024 + 512)
        assert not has_smc_header(512 * 1024)
        assert not has_smc_header(512 * 1024 + 256)

    def test_strip(self, rom_builder):
        raw = rom_builder()
        assert strip_smc_header(rom_builder(smc=True)) == raw
        assert strip_smc_header(raw) is raw


@pytest.mark.unit
class TestHeaderParsing:
    def test_lorom_header(self, lorom_image):
        header = parse_header(lorom_image)

        assert header is not None
        assert header.title == "TEST GAME"
        assert header.mapping is ROMMapping.LOROM
        assert header.speed is ROMSpeed.SLOW
        assert header.rom_size_kb == 512
        assert header.ram_size_kb == 0
        assert header.country_name == "USA"
        assert header.checksum == 0x1234
        assert header.checksum_complement == 0x1234 ^ 0xFFFF
        assert header.checksum_valid
        assert header.header_offset == 0x7FC0
        assert (header.reset_vector, header.nmi_vector, header.irq_vector) == (0x8000, 0x8100, 0x8200)

    def test_hirom_header(self, hirom_image):
        header = parse_header(hirom_image)

        assert header.header_offset == 0xFFC0
        assert header.mapping is ROMMapping.HIROM
        assert header.speed is ROMSpeed.FAST
        assert header.rom_size_kb == 1024
        assert header.title == "HIROM GAME"

    def test_lorom_preferred(self, rom_builder):
        data = bytearray(rom_builder(size=1024 * 1024))
        hirom = rom_builder(size=1024 * 1024, header_offset=0xFFC0, title=b"OTHER")
        data[0xFFC0:0x10000] = hirom[0xFFC0:0x10000]

        assert parse_header(bytes(data)).title == "TEST GAME"

    def test_copier_header_skipped(self, rom_builder):
        header = parse_header(rom_builder(smc=True))
        assert header is not None
        assert header.header_offset == 0x7FC0

    def test_invalid_complement_rejected(self, rom_builder):
        assert parse_header(rom_builder(complement=0x0000)) is None

    def test_garbage(self):
        assert parse_header(bytes(512 * 1024)) is None
        with pytest.raises(ROMHeaderError):
            parse_header_strict(bytes(512 * 1024))

    def test_too_small(self):
        assert parse_header(bytes(0x7000)) is None
        assert parse_header_at(bytes(0x7FC0 + 0x3F), 0x7FC0) is None

    def test_sram_and_chip(self, rom_builder):
        header = parse_header(rom_builder(chip=0x02, ram_size_byte=0x03, mapping_byte=0x30))
        assert header.chip_type == 0x02
        assert header.ram_size_kb == 8
        assert header.speed is ROMSpeed.FAST

    def test_sa1_mapping_nibble(self, rom_builder):
        header = parse_header(rom_builder(mapping_byte=0x23))
        assert header.mapping is ROMMapping.SA1

    def test_title_cleaned(self, rom_builder):
        header = parse_header(rom_builder(title=b"ZELDA\x00\x01  "))
        assert header.title == "ZELDA"

    def test_error_hierarchy(self):
        assert issubclass(ROMHeaderError, ROMError)
        assert issubclass(InvalidROMError, ROMError)


@pytest.mark.unit
class TestChecksum:
    def test_checksum_validity(self):
        assert make_header(0xA55A, 0x5AA5).checksum_valid
        assert make_header(0, 0xFFFF).checksum_valid

    @pytest.mark.parametrize("bit", range(16))
    def test_single_bit_flip_invalidates(self, bit):
        assert not make_header(0xA55A ^ (1 << bit), 0x5AA5).checksum_valid
        assert not make_header(0xA55A, 0x5AA5 ^ (1 << bit)).checksum_valid

    def test_compute_checksum(self):
        assert compute_checksum(bytes([1, 2, 3])) == 6
        assert compute_checksum(bytes([0xFF]) * 0x200) == (0xFF * 0x200) & 0xFFFF

    def test_country_name_unknown(self):
        assert make_header(0, 0xFFFF, country=0x0C).country_name == "Unknown ($0C)"
        assert make_header(0, 0xFFFF, country=0).country_name == "Japan"


@pytest.mark.unit
class TestAnalyzeROM:
    def test_analysis(self, lorom_image):
        result = analyze_rom(lorom_image, "game.sfc")

        assert result.file_name == "game.sfc"
        assert result.file_size == 512 * 1024
        assert result.header_found
        assert not result.has_smc_header
        assert result.computed_checksum == compute_checksum(lorom_image)

    def test_copier_header_stripped(self, rom_builder):
        result = analyze_rom(rom_builder(smc=True))

        assert result.has_smc_header
        assert result.file_size == 512 * 1024 + 512
        assert len(result.rom_data) == 512 * 1024

    def test_checksum_matches(self, rom_builder):
        """Checksum and complement always sum to $1FE, so the total is stable"""
        total = compute_checksum(rom_builder(checksum=0))
        result = analyze_rom(rom_builder(checksum=total))

        assert result.checksum_matches

    def test_checksum_mismatch(self, lorom_image):
        result = analyze_rom(lorom_image)
        assert result.header_found
        assert not result.checksum_matches

    def test_no_header(self):
        result = analyze_rom(bytes(64 * 1024))
        assert not result.header_found
        assert not result.checksum_matches

    def test_empty(self):
        with pytest.raises(InvalidROMError):
            analyze_rom(b"")

    @pytest.mark.parametrize("size", [1000, 0x7FC0 + 0x3F])
    def test_truncated_buffer_rejected(self, size):
        with pytest.raises(InvalidROMError, match="truncated"):
            analyze_rom(bytes(size))

    def test_copier_header_only_rejected(self):
        with pytest.raises(InvalidROMError):
            analyze_rom(bytes(512 + 1024))

    def test_smallest_lorom_buffer_accepted(self):
        result = analyze_rom(bytes(0x8000))
        assert not result.header_found

    def test_palette_candidates(self, rom_builder):
        data = bytearray(rom_builder())
        struct.pack_into("<16H", data, 0x1000, *[i * 0x421 for i in range(16)])
        result = analyze_rom(bytes(data))

        assert 0x1000 in [block.offset for block in result.palette_blocks]

    def test_add_tile_block(self, lorom_image):
        result = analyze_rom(lorom_image)
        block = result.add_tile_block(0, 4, 8)

        assert block.depth is TileDepth.BPP4
        assert len(block.tiles) == 8
        assert result.tile_blocks == [block]


@pytest.mark.unit
class TestScans:
    def test_palette_scan(self):
        data = bytearray(256)
        struct.pack_into("<16H", data, 64, *range(1, 17))

        blocks = scan_for_palettes(bytes(data))
        assert [b.offset for b in blocks] == [64]
        assert blocks[0].palette.raw_values == list(range(1, 17))

    def test_palette_scan_aligned_only(self):
        data = bytearray(256)
        struct.pack_into("<16H", data, 70, *range(1, 17))
        offsets = [b.offset for b in scan_for_palettes(bytes(data))]
        assert 70 not in offsets

    def test_palette_scan_limit(self):
        data = struct.pack("<16H", *range(1, 17)) * 10
        assert len(scan_for_palettes(data, limit=3)) == 3

    def test_palette_scan_rejects_high_bit(self):
        words = list(range(1, 17))
        words[0] = 0x8001
        assert scan_for_palettes(struct.pack("<16H", *words)) == []

    def test_extract_tiles_clamped(self):
        assert len(extract_tiles_at_offset(bytes(100), 0, 4, 10)) == 3
        assert len(extract_tiles_at_offset(bytes(100), 40, 2, 10)) == 3

    def test_extract_tiles_bad_offset(self):
        assert extract_tiles_at_offset(bytes(100), 100, 4, 1) == []
        assert extract_tiles_at_offset(bytes(100), -1, 4, 1) == []
        assert extract_tiles_at_offset(bytes(100), 0, 4, 0) == []

    def test_extract_tiles_content(self, sample_4bpp_tile):
        tiles = extract_tiles_at_offset(bytes(32) + sample_4bpp_tile, 32, 4, 1)
        assert tiles[0].pixel(2, 2) == 1


@pytest.mark.unit
class TestLoadROMFile:
    def test_load(self, temp_dir, lorom_image):
        path = temp_dir / "game.sfc"
        path.write_bytes(lorom_image)
        assert load_rom_file(path) == lorom_image

    def test_missing_file(self, temp_dir):
        with pytest.raises(RuntimeError):
            load_rom_file(temp_dir / "missing.sfc")

    def test_empty_file(self, temp_dir):
        path = temp_dir / "empty.sfc"
        path.write_bytes(b"")
        with pytest.raises(InvalidROMError):
            load_rom_file(path)

    def test_analyze_file_with_settings(self, temp_dir, rom_builder):
        data = bytearray(rom_builder())
        for i in range(4):
            struct.pack_into("<16H", data, 0x1000 + i * 32, *range(1 + i, 17 + i))
        path = temp_dir / "game.sfc"
        path.write_bytes(bytes(data))
        settings = SettingsManager(settings_dir=temp_dir / "settings")
        settings.set("rom.scan_limit", 2)

        result = analyze_rom_file(path, settings)

        assert result.file_name == "game.sfc"
        assert [b.offset for b in result.palette_blocks] == [0x1000, 0x1020]
        assert settings.get_recent_files("rom") == [str(path)]

    def test_analyze_file_without_settings(self, temp_dir, lorom_image):
        path = temp_dir / "plain.sfc"
        path.write_bytes(lorom_image)
        result = analyze_rom_file(path)

        assert result.header_found
        assert result.file_name == "plain.sfc"
