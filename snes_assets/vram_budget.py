#!/usr/bin/env python3
"""
VRAM budget calculator and hardware budget meters

Budgets are recomputed from the current screen and tile state every time;
nothing here is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .constants import (
    DEFAULT_SPRITE_TILE_COUNT,
    DMA_BYTES_PER_VBLANK,
    MAX_PALETTES,
    MAX_TRANSITION_FRAMES,
    OAM_ENTRIES,
    SCREEN_TILEMAP_HEIGHT,
    SCREEN_TILEMAP_WIDTH,
    SPRITES_PER_SCANLINE,
    TILEMAP_ENTRY_BYTES,
    VRAM_SIZE_STANDARD,
)
from .logging_config import get_logger
from .tile import Tile, TileDepth
from .tile_utils import tile_size_bytes
from .tilemap import WorldScreen, WorldZone

logger = get_logger("vram_budget")


class VRAMCategory(Enum):
    BG1_TILES = "BG1 Tiles"
    BG2_TILES = "BG2 Tiles"
    BG3_TILES = "BG3 Tiles"
    BG4_TILES = "BG4 Tiles"
    BG1_MAP = "BG1 Map"
    BG2_MAP = "BG2 Map"
    BG3_MAP = "BG3 Map"
    BG4_MAP = "BG4 Map"
    SPRITE_TILES = "Sprite Tiles"
    FREE = "Free"


_TILE_CATEGORIES = (
    VRAMCategory.BG1_TILES,
    VRAMCategory.BG2_TILES,
    VRAMCategory.BG3_TILES,
    VRAMCategory.BG4_TILES,
)
_MAP_CATEGORIES = (
    VRAMCategory.BG1_MAP,
    VRAMCategory.BG2_MAP,
    VRAMCategory.BG3_MAP,
    VRAMCategory.BG4_MAP,
)


@dataclass(frozen=True)
class VRAMBlock:
    label: str
    address: int  # byte offset
    size_bytes: int
    category: VRAMCategory


@dataclass
class VRAMBudget:
    blocks: list[VRAMBlock] = field(default_factory=list)
    total_bytes: int = VRAM_SIZE_STANDARD

    @classmethod
    def empty(cls) -> VRAMBudget:
        return cls([VRAMBlock("Free", 0, VRAM_SIZE_STANDARD, VRAMCategory.FREE)])

    @property
    def used_bytes(self) -> int:
        return sum(b.size_bytes for b in self.blocks if b.category is not VRAMCategory.FREE)

    @property
    def free_bytes(self) -> int:
        return self.total_bytes - self.used_bytes

    @property
    def percentage(self) -> float:
        return self.used_bytes / self.total_bytes * 100.0

    @property
    def is_over_budget(self) -> bool:
        return self.used_bytes > self.total_bytes

    def bytes_for(self, category: VRAMCategory) -> int:
        return sum(b.size_bytes for b in self.blocks if b.category is category)


def tilemap_size_bytes(width: int, height: int) -> int:
    return width * height * TILEMAP_ENTRY_BYTES


def budget_for_screen(screen: WorldScreen, zone: WorldZone, tiles: list[Tile],
                      sprite_tile_count: int = DEFAULT_SPRITE_TILE_COUNT) -> VRAMBudget:
    """
    Lay out VRAM for one screen.

    Blocks always come in the same order: tile data per active layer, one
    32x32 map per active layer, sprite tiles (4bpp), then Free when any
    space remains. Layers the zone's BG mode does not enable are skipped.
    A layer's tile cost is its distinct non-zero tile indices, capped at
    the number of tiles in the project, times the mode's tile size for
    that layer.
    """
    mode = zone.mode_info
    active = []
    for layer in screen.layers:
        info = mode.layer_info(layer.bg_layer)
        if info is None:
            continue
        active.append((layer, info))

    blocks: list[VRAMBlock] = []
    address = 0

    for layer, info in active:
        unique_count = min(len(layer.tilemap.used_tile_indices()), len(tiles))
        size = unique_count * tile_size_bytes(info.depth)
        blocks.append(VRAMBlock(
            f"BG{layer.bg_layer + 1} Tiles ({info.depth.label})",
            address, size, _TILE_CATEGORIES[layer.bg_layer],
        ))
        address += size

    for layer, _info in active:
        size = tilemap_size_bytes(SCREEN_TILEMAP_WIDTH, SCREEN_TILEMAP_HEIGHT)
        blocks.append(VRAMBlock(
            f"BG{layer.bg_layer + 1} Map", address, size, _MAP_CATEGORIES[layer.bg_layer],
        ))
        address += size

    sprite_bytes = sprite_tile_count * tile_size_bytes(TileDepth.BPP4)
    blocks.append(VRAMBlock("Sprites (4bpp)", address, sprite_bytes, VRAMCategory.SPRITE_TILES))
    address += sprite_bytes

    if address < VRAM_SIZE_STANDARD:
        blocks.append(VRAMBlock("Free", address, VRAM_SIZE_STANDARD - address, VRAMCategory.FREE))
    elif address > VRAM_SIZE_STANDARD:
        logger.warning(f"Screen '{screen.name}' needs {address} bytes of VRAM "
                       f"(limit {VRAM_SIZE_STANDARD})")

    return VRAMBudget(blocks)


@dataclass(frozen=True)
class TransitionCost:
    tiles_to_remove: int
    tiles_to_load: int
    bytes_to_transfer: int
    frames_needed: int

    @property
    def is_feasible(self) -> bool:
        return self.frames_needed <= MAX_TRANSITION_FRAMES


def transition_cost(from_screen: WorldScreen, to_screen: WorldScreen) -> TransitionCost:
    """
    DMA cost of swapping one screen's tiles for another's.

    New tiles are assumed to be 4bpp. About 7 KB can be moved per VBlank;
    any transfer at all takes at least one frame.
    """
    before = from_screen.used_tile_indices()
    after = to_screen.used_tile_indices()
    to_load = len(after - before)
    bytes_to_transfer = to_load * tile_size_bytes(TileDepth.BPP4)
    frames = 0
    if bytes_to_transfer > 0:
        frames = max(1, -(-bytes_to_transfer // DMA_BYTES_PER_VBLANK))
    return TransitionCost(len(before - after), to_load, bytes_to_transfer, frames)


@dataclass(frozen=True)
class BudgetMeter:
    id: str
    label: str
    used: float
    total: float
    unit: str = ""
    detail: Optional[str] = None

    @property
    def percentage(self) -> float:
        if self.total <= 0:
            return 0.0
        return self.used / self.total * 100.0

    @property
    def level(self) -> str:
        """ok below 60%, warning below 85%, danger otherwise"""
        if self.percentage < 60:
            return "ok"
        if self.percentage < 85:
            return "warning"
        return "danger"

    @property
    def formatted_value(self) -> str:
        if self.unit == "KB":
            return f"{int(self.used)}{self.unit} / {int(self.total)}{self.unit}"
        return f"{int(self.used)} / {int(self.total)}"


def budget_meters(config, store=None) -> list[BudgetMeter]:
    """
    Whole-project hardware meters for a cartridge config.

    Args:
        config: CartridgeConfig
        store: Optional AssetStore; without one every usage reads zero

    Returns:
        Meters for VRAM, ROM, SRAM (only when the cartridge has SRAM),
        CGRAM, sprites, WRAM and CPU
    """
    vram_kb = 0.0
    cgram_used = 0
    sprites_used = 0
    if store is not None:
        vram_bytes = sum(tile_size_bytes(tile.depth) for tile in store.tiles)
        vram_bytes += sum(tilemap_size_bytes(tm.width, tm.height) for tm in store.tilemaps)
        vram_kb = vram_bytes / 1024.0
        cgram_used = store.palettes_with_content
        sprites_used = len(store.sprite_entries)

    meters = [
        BudgetMeter("vram", "VRAM", vram_kb, VRAM_SIZE_STANDARD // 1024, "KB"),
        BudgetMeter("rom", "ROM", 0, config.rom_size_kb, "KB"),
        BudgetMeter("cgram", "CGRAM", cgram_used, MAX_PALETTES, "palettes"),
        BudgetMeter("sprites", "Sprites", sprites_used, OAM_ENTRIES, "",
                    f"Max scanline: {SPRITES_PER_SCANLINE}"),
        BudgetMeter("wram", "WRAM", 0, 128, "KB"),
        BudgetMeter("cpu", "CPU est.", 0, 100, "%"),
    ]
    if config.sram_size_kb > 0:
        meters.insert(2, BudgetMeter("sram", "SRAM", 0, config.sram_size_kb, "KB"))
    return meters
