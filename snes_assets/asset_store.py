#!/usr/bin/env python3
"""
In-memory snapshot of a project's visual assets

Core operations take a store and hand back a new one; the persistence
layer decides when to save.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field

from .oam import MetaSprite, OAMEntry
from .palette_utils import Palette, default_palettes
from .tile import Tile
from .tilemap import Tilemap, WorldScreen, WorldZone


@dataclass
class AssetStore:
    palettes: list[Palette] = field(default_factory=default_palettes)
    tiles: list[Tile] = field(default_factory=lambda: [Tile.empty()])
    tilemaps: list[Tilemap] = field(default_factory=lambda: [Tilemap()])
    sprite_entries: list[OAMEntry] = field(default_factory=list)
    meta_sprites: list[MetaSprite] = field(default_factory=list)
    world_zones: list[WorldZone] = field(default_factory=list)
    world_screens: list[WorldScreen] = field(default_factory=list)

    @classmethod
    def default(cls) -> AssetStore:
        """Clean project: default palette bank, one blank tile, one 32x32 map"""
        return cls()

    def copy(self) -> AssetStore:
        return copy.deepcopy(self)

    def zone_for(self, screen: WorldScreen) -> WorldZone | None:
        for zone in self.world_zones:
            if zone.id == screen.zone_id:
                return zone
        return None

    @property
    def palettes_with_content(self) -> int:
        return sum(1 for palette in self.palettes if palette.has_content())

    def palettes_in_use(self) -> set[int]:
        """Bank slots referenced by imported animations, even when all black"""
        return {
            animation.palette_index
            for meta in self.meta_sprites
            for animation in meta.animations
            if animation.palette_index is not None
        }
