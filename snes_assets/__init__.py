"""
SNES asset toolkit
Tile, palette and sprite codecs plus cartridge, VRAM and ROM analysis
"""

from .asset_store import AssetStore
from .cartridge import CartridgeConfig, EnhancementChip, ROMMapping, ROMSpeed
from .oam import OAMEntry, OAMTable, ObjSize
from .palette_utils import Palette, SNESColor, default_palettes
from .rom_analyzer import ROMHeader, analyze_rom, analyze_rom_file, parse_header
from .sprite_sheet_importer import (
    SpriteSheetImportConfig,
    decompose_sprite,
    perform_import,
    process_image,
)
from .tile import Tile, TileDepth
from .tile_utils import decode_tile, encode_tile
from .vram_budget import VRAMBudget, budget_for_screen

__version__ = "1.0.0"
__all__ = [
    "AssetStore",
    "CartridgeConfig",
    "EnhancementChip",
    "OAMEntry",
    "OAMTable",
    "ObjSize",
    "Palette",
    "ROMHeader",
    "ROMMapping",
    "ROMSpeed",
    "SNESColor",
    "SpriteSheetImportConfig",
    "Tile",
    "TileDepth",
    "VRAMBudget",
    "analyze_rom",
    "analyze_rom_file",
    "budget_for_screen",
    "decode_tile",
    "decompose_sprite",
    "default_palettes",
    "encode_tile",
    "parse_header",
    "perform_import",
    "process_image",
]
