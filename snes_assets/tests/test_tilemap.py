#!/usr/bin/env python3
"""
Tests for tilemaps, the BG mode table and world screens
"""

import pytest

from snes_assets.asset_store import AssetStore
from snes_assets.exceptions import ValidationError
from snes_assets.tile import TileDepth
from snes_assets.tilemap import (
    BG_MODES,
    Tilemap,
    TilemapEntry,
    WorldScreen,
    WorldZone,
    bg_mode_info,
    create_layers,
)


@pytest.mark.unit
class TestTilemapEntry:
    def test_word_layout(self):
        entry = TilemapEntry(tile_index=0x155, palette_index=6, priority=True, v_flip=True)
        assert entry.to_word() == 0x155 | (6 << 10) | 0x2000 | 0x8000

    def test_from_word(self):
        entry = TilemapEntry.from_word(0x4C12)
        assert entry == TilemapEntry(tile_index=0x012, palette_index=3, h_flip=True)


@pytest.mark.unit
class TestTilemap:
    def test_default_size(self):
        tilemap = Tilemap()
        assert (tilemap.width, tilemap.height) == (32, 32)
        assert len(tilemap.entries) == 1024
        assert tilemap.size_bytes == 2048

    def test_invalid_size(self):
        with pytest.raises(ValidationError):
            Tilemap(width=0)
        with pytest.raises(ValidationError):
            Tilemap(width=2, height=2, entries=[TilemapEntry()])

    def test_out_of_range_access(self):
        tilemap = Tilemap(width=4, height=4)
        tilemap.set_entry(9, 9, TilemapEntry(tile_index=5))

        assert tilemap.entry(9, 9) == TilemapEntry()
        assert tilemap.used_tile_indices() == set()

    def test_used_tile_indices_skip_zero(self):
        tilemap = Tilemap(width=4, height=4)
        tilemap.set_entry(0, 0, TilemapEntry(tile_index=3))
        tilemap.set_entry(1, 0, TilemapEntry(tile_index=3))
        tilemap.set_entry(2, 2, TilemapEntry(tile_index=7))

        assert tilemap.used_tile_indices() == {3, 7}

    def test_resize_keeps_top_left(self):
        tilemap = Tilemap(width=4, height=4)
        tilemap.set_entry(1, 1, TilemapEntry(tile_index=2))
        tilemap.set_entry(3, 3, TilemapEntry(tile_index=9))
        tilemap.resize(2, 6)

        assert (tilemap.width, tilemap.height) == (2, 6)
        assert tilemap.entry(1, 1).tile_index == 2
        assert tilemap.used_tile_indices() == {2}


@pytest.mark.unit
class TestBGModes:
    @pytest.mark.parametrize(
        "mode,depths",
        [
            (0, [2, 2, 2, 2]),
            (1, [4, 4, 2]),
            (2, [4, 4]),
            (3, [8, 4]),
            (4, [8, 2]),
            (5, [4, 2]),
            (6, [4]),
            (7, [8]),
        ],
    )
    def test_layer_depths(self, mode, depths):
        assert [info.depth for info in bg_mode_info(mode).active_layers] == depths

    def test_mode_clamped(self):
        assert bg_mode_info(12) is BG_MODES[7]
        assert bg_mode_info(7).is_mode7

    def test_layer_info(self):
        info = bg_mode_info(1).layer_info(2)
        assert info.depth is TileDepth.BPP2
        assert info.max_colors == 4
        assert bg_mode_info(1).layer_info(3) is None


@pytest.mark.unit
class TestWorldScreens:
    def test_create_layers_mode1(self):
        layers = create_layers(1, 64, 28)

        assert [layer.bg_layer for layer in layers] == [0, 1, 2]
        assert [layer.scroll_ratio_x for layer in layers] == [1.0, 0.5, 0.25]
        assert layers[0].tilemap.width == 64
        assert layers[1].tilemap.width == 32
        assert layers[2].tilemap.width == 32
        assert not layers[0].repeat_x and layers[1].repeat_x

    def test_empty_screen(self):
        zone = WorldZone(bg_mode=3)
        screen = WorldScreen.empty(zone, 1, 2)

        assert screen.zone_id == zone.id
        assert (screen.grid_x, screen.grid_y) == (1, 2)
        assert len(screen.layers) == 2
        assert screen.used_tile_indices() == set()

    def test_store_zone_lookup(self):
        store = AssetStore.default()
        zone = WorldZone()
        store.world_zones.append(zone)
        screen = WorldScreen.empty(zone)

        assert store.zone_for(screen) is zone
        assert store.zone_for(WorldScreen(zone_id="nope")) is None
