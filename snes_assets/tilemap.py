#!/usr/bin/env python3
"""
Background tilemaps, BG mode table and world screens
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Optional

from .constants import SCREEN_TILEMAP_HEIGHT, SCREEN_TILEMAP_WIDTH
from .exceptions import ValidationError
from .tile import TileDepth


@dataclass
class TilemapEntry:
    tile_index: int = 0
    palette_index: int = 0
    h_flip: bool = False
    v_flip: bool = False
    priority: bool = False

    def to_word(self) -> int:
        """16-bit BG map word: vhopppcc cccccccc"""
        return (
            (self.tile_index & 0x3FF)
            | ((self.palette_index & 0x07) << 10)
            | (int(self.priority) << 13)
            | (int(self.h_flip) << 14)
            | (int(self.v_flip) << 15)
        )

    @classmethod
    def from_word(cls, word: int) -> TilemapEntry:
        return cls(
            tile_index=word & 0x3FF,
            palette_index=(word >> 10) & 0x07,
            priority=bool(word & 0x2000),
            h_flip=bool(word & 0x4000),
            v_flip=bool(word & 0x8000),
        )


@dataclass
class Tilemap:
    """
    A width x height grid of entries stored row-major.

    Reads outside the grid return an empty entry and writes outside it
    are ignored, matching how editors paint past the edge.
    """

    name: str = "Tilemap"
    width: int = SCREEN_TILEMAP_WIDTH
    height: int = SCREEN_TILEMAP_HEIGHT
    entries: list[TilemapEntry] = field(default_factory=list)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValidationError(f"Invalid tilemap size {self.width}x{self.height}")
        if not self.entries:
            self.entries = [TilemapEntry() for _ in range(self.width * self.height)]
        elif len(self.entries) != self.width * self.height:
            raise ValidationError(
                f"Tilemap {self.width}x{self.height} needs {self.width * self.height} "
                f"entries, got {len(self.entries)}"
            )

    def entry(self, x: int, y: int) -> TilemapEntry:
        if 0 <= x < self.width and 0 <= y < self.height:
            return self.entries[y * self.width + x]
        return TilemapEntry()

    def set_entry(self, x: int, y: int, entry: TilemapEntry) -> None:
        if 0 <= x < self.width and 0 <= y < self.height:
            self.entries[y * self.width + x] = entry

    def resize(self, new_width: int, new_height: int) -> None:
        """Resize in place, keeping the overlapping top-left region"""
        if new_width <= 0 or new_height <= 0:
            return
        new_entries = [TilemapEntry() for _ in range(new_width * new_height)]
        for y in range(min(self.height, new_height)):
            for x in range(min(self.width, new_width)):
                new_entries[y * new_width + x] = self.entries[y * self.width + x]
        self.width, self.height, self.entries = new_width, new_height, new_entries

    def used_tile_indices(self) -> set[int]:
        """Distinct non-zero tile indices; tile 0 is the blank tile"""
        return {e.tile_index for e in self.entries if e.tile_index > 0}

    @property
    def size_bytes(self) -> int:
        return self.width * self.height * 2


@dataclass(frozen=True)
class BGLayerInfo:
    layer: int  # 0-3 for BG1-BG4
    depth: Optional[TileDepth]
    max_colors: int

    @property
    def is_active(self) -> bool:
        return self.depth is not None


@dataclass(frozen=True)
class BGModeInfo:
    mode: int
    description: str
    layers: tuple[BGLayerInfo, ...]
    is_mode7: bool = False

    @property
    def label(self) -> str:
        return f"Mode {self.mode}"

    @property
    def active_layers(self) -> list[BGLayerInfo]:
        return [layer for layer in self.layers if layer.is_active]

    def layer_info(self, bg_layer: int) -> Optional[BGLayerInfo]:
        for info in self.active_layers:
            if info.layer == bg_layer:
                return info
        return None


def _layers(*depths):
    infos = []
    for i in range(4):
        depth = depths[i] if i < len(depths) else None
        infos.append(BGLayerInfo(i, depth, 0 if depth is None else 1 << int(depth)))
    return tuple(infos)


_2, _4, _8 = TileDepth.BPP2, TileDepth.BPP4, TileDepth.BPP8

BG_MODES = (
    BGModeInfo(0, "4 layers of 4 colors each", _layers(_2, _2, _2, _2)),
    BGModeInfo(1, "BG1/BG2 16 colors, BG3 4 colors", _layers(_4, _4, _2)),
    BGModeInfo(2, "2 layers of 16 colors with offset-per-tile", _layers(_4, _4)),
    BGModeInfo(3, "BG1 256 colors, BG2 16 colors", _layers(_8, _4)),
    BGModeInfo(4, "BG1 256 colors, BG2 4 colors with offset-per-tile", _layers(_8, _2)),
    BGModeInfo(5, "Hi-res: BG1 16 colors, BG2 4 colors", _layers(_4, _2)),
    BGModeInfo(6, "Hi-res: BG1 16 colors with offset-per-tile", _layers(_4)),
    BGModeInfo(7, "1 layer of 256 colors with rotation and scaling", _layers(_8), True),
)


def bg_mode_info(mode: int) -> BGModeInfo:
    """Mode table lookup; values above 7 resolve to mode 7."""
    return BG_MODES[max(0, min(mode, 7))]


@dataclass
class ParallaxLayer:
    name: str
    bg_layer: int
    tilemap: Tilemap
    scroll_ratio_x: float = 1.0
    scroll_ratio_y: float = 1.0
    repeat_x: bool = False
    repeat_y: bool = False
    visible: bool = True
    id: str = field(default_factory=lambda: uuid.uuid4().hex)


def create_layers(bg_mode: int, width_tiles: int, height_tiles: int) -> list[ParallaxLayer]:
    """
    One parallax layer per active BG layer of the mode.

    The first layer scrolls at full speed over the full width; the next
    at half speed, the rest at a quarter, each at least one screen wide.
    """
    layers = []
    for i, info in enumerate(bg_mode_info(bg_mode).active_layers):
        if i == 0:
            ratio, width, repeats, role = 1.0, width_tiles, False, "Foreground"
        elif i == 1:
            ratio, width, repeats, role = 0.5, max(width_tiles // 2, 32), True, "Middle"
        else:
            ratio, width, repeats, role = 0.25, max(width_tiles // 4, 32), True, "Background"
        name = f"BG{info.layer + 1} - {role}"
        layers.append(ParallaxLayer(
            name=name,
            bg_layer=info.layer,
            tilemap=Tilemap(name, width, height_tiles),
            scroll_ratio_x=ratio,
            scroll_ratio_y=ratio,
            repeat_x=repeats,
        ))
    return layers


@dataclass
class WorldZone:
    name: str = "Zone 1"
    bg_mode: int = 1
    grid_width: int = 4
    grid_height: int = 4
    shared_tile_indices: list[int] = field(default_factory=list)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def mode_info(self) -> BGModeInfo:
        return bg_mode_info(self.bg_mode)


@dataclass
class WorldScreen:
    name: str = "Screen"
    zone_id: str = ""
    grid_x: int = 0
    grid_y: int = 0
    layers: list[ParallaxLayer] = field(default_factory=list)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @classmethod
    def empty(cls, zone: WorldZone, grid_x: int = 0, grid_y: int = 0,
              width_tiles: int = 128, height_tiles: int = 28) -> WorldScreen:
        return cls(
            zone_id=zone.id,
            grid_x=grid_x,
            grid_y=grid_y,
            layers=create_layers(zone.bg_mode, width_tiles, height_tiles),
        )

    def used_tile_indices(self) -> set[int]:
        indices: set[int] = set()
        for layer in self.layers:
            indices |= layer.tilemap.used_tile_indices()
        return indices
