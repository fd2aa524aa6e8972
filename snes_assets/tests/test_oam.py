#!/usr/bin/env python3
"""
Tests for OAM entries, the OAM table and sprite animation containers
"""

import pytest

from snes_assets.exceptions import OAMError, ValidationError
from snes_assets.oam import (
    MetaSprite,
    OAMEntry,
    OAMTable,
    ObjSize,
    SpriteAnimation,
    SpriteFrame,
)


@pytest.mark.unit
class TestObjSize:
    @pytest.mark.parametrize(
        "size,small,large",
        [
            (ObjSize.SIZE_8_16, (8, 8), (16, 16)),
            (ObjSize.SIZE_8_32, (8, 8), (32, 32)),
            (ObjSize.SIZE_8_64, (8, 8), (64, 64)),
            (ObjSize.SIZE_16_32, (16, 16), (32, 32)),
            (ObjSize.SIZE_16_64, (16, 16), (64, 64)),
            (ObjSize.SIZE_32_64, (32, 32), (64, 64)),
            (ObjSize.SIZE_16X32_32X64, (16, 32), (32, 64)),
            (ObjSize.SIZE_16X32_32X32, (16, 32), (32, 32)),
        ],
    )
    def test_size_pairs(self, size, small, large):
        assert size.dimensions(False) == small
        assert size.dimensions(True) == large

    def test_eight_settings(self):
        assert [s.value for s in ObjSize] == list(range(8))

    def test_label(self):
        assert ObjSize.SIZE_16X32_32X64.label == "16x32 / 32x64"

    def test_entry_dimensions(self):
        entry = OAMEntry(is_large=True)
        assert entry.dimensions(ObjSize.SIZE_8_32) == (32, 32)
        assert OAMEntry().dimensions(ObjSize.SIZE_8_32) == (8, 8)


@pytest.mark.unit
class TestOAMEntry:
    """Field validation and 4-byte encoding"""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"x": 256},
            {"x": -257},
            {"y": 256},
            {"tile_index": 512},
            {"palette": 8},
            {"priority": 4},
        ],
    )
    def test_out_of_range_fields(self, kwargs):
        with pytest.raises(ValidationError):
            OAMEntry(**kwargs)

    def test_attribute_byte(self):
        entry = OAMEntry(tile_index=0x1FF, palette=5, priority=3, h_flip=True)
        assert entry.name_table == 1
        assert entry.attribute_byte == 0x7B

    def test_vflip_bit(self):
        assert OAMEntry(v_flip=True).attribute_byte == 0x80

    def test_to_bytes(self):
        entry = OAMEntry(x=-8, y=100, tile_index=0x123, palette=2, priority=1, is_large=True)
        assert entry.to_bytes() == bytes((0xF8, 100, 0x23, 0x15))
        assert entry.high_bits == 0b11

    def test_from_bytes_signed_x(self):
        entry = OAMEntry.from_bytes(bytes((0xF8, 100, 0x23, 0x15)), 0b11)
        assert entry == OAMEntry(x=-8, y=100, tile_index=0x123, palette=2,
                                 priority=1, is_large=True)

    def test_from_bytes_wrong_length(self):
        with pytest.raises(OAMError):
            OAMEntry.from_bytes(bytes(3))


@pytest.mark.unit
class TestOAMTable:
    """Capacity and the 544-byte image"""

    def test_add_until_full(self):
        table = OAMTable()
        for i in range(128):
            assert table.add(OAMEntry(x=i)) == i

        assert table.is_full
        assert table.remaining == 0
        with pytest.raises(OAMError):
            table.add(OAMEntry())
        assert table.count == 128

    def test_constructor_rejects_overflow(self):
        with pytest.raises(OAMError):
            OAMTable([OAMEntry()] * 129)

    def test_from_entries_truncates(self):
        table, truncated = OAMTable.from_entries([OAMEntry(x=1)] * 150, truncate=True)
        assert truncated
        assert table.count == 128

    def test_from_entries_without_truncation(self):
        with pytest.raises(OAMError):
            OAMTable.from_entries([OAMEntry()] * 129)

        table, truncated = OAMTable.from_entries([OAMEntry()] * 128)
        assert not truncated
        assert table.is_full

    def test_remove_and_clear(self):
        table = OAMTable([OAMEntry(x=1), OAMEntry(x=2)])
        assert table.remove(0).x == 1
        assert [e.x for e in table] == [2]
        with pytest.raises(OAMError):
            table.remove(5)
        table.clear()
        assert len(table) == 0

    def test_to_bytes_layout(self):
        table = OAMTable([OAMEntry(x=-8, y=20, tile_index=3, is_large=True),
                          OAMEntry(x=300 - 512, y=40, tile_index=4)])
        data = table.to_bytes()

        assert len(data) == 544
        assert data[0:4] == bytes((0xF8, 20, 3, 0))
        assert data[4:8] == bytes((300 & 0xFF, 40, 4, 0))
        # entry 0: x msb + large, entry 1: x msb only
        assert data[512] == 0b0111

    def test_unused_slots_offscreen(self):
        data = OAMTable([OAMEntry(y=10)]).to_bytes()
        assert data[1] == 10
        for slot in range(1, 128):
            assert data[slot * 4 + 1] == 0xF0
        assert data[513:] == bytes(31)

    def test_from_bytes(self):
        entries = [OAMEntry(x=i - 60, y=i, tile_index=i * 3, palette=i % 8,
                            priority=i % 4, h_flip=bool(i % 2), is_large=bool(i % 3))
                   for i in range(10)]
        parsed = OAMTable.from_bytes(OAMTable(entries).to_bytes(), count=10)
        assert parsed.entries == entries

    def test_from_bytes_all_slots(self):
        parsed = OAMTable.from_bytes(OAMTable().to_bytes())
        assert parsed.count == 128
        assert parsed[0].y == 0xF0

    def test_from_bytes_too_short(self):
        with pytest.raises(OAMError):
            OAMTable.from_bytes(bytes(543))


@pytest.mark.unit
class TestAnimations:
    def test_frame_duration_validated(self):
        with pytest.raises(ValidationError):
            SpriteFrame(duration=0)

    def test_animation_properties(self):
        animation = SpriteAnimation("Walk", [
            SpriteFrame([OAMEntry()] * 3, 4),
            SpriteFrame([OAMEntry()], 6),
        ])
        assert animation.frame_count == 2
        assert animation.total_duration == 10
        assert animation.max_entries_per_frame == 3
        assert animation.loop

    def test_ids_unique(self):
        assert SpriteAnimation().id != SpriteAnimation().id
        assert MetaSprite().id != MetaSprite().id

    def test_empty_animation(self):
        assert SpriteAnimation().max_entries_per_frame == 0
