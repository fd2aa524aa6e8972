#!/usr/bin/env python3
"""
Sprite sheet importer
Turns an RGBA sprite sheet into a palette, a deduplicated tileset and one
animation of OAM frames, then merges that into an asset store
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

import numpy as np
from PIL import Image

from .asset_store import AssetStore
from .constants import (
    ALPHA_OPAQUE_THRESHOLD,
    COLORS_PER_PALETTE,
    DEFAULT_FRAME_DURATION,
    DEFAULT_IMPORT_PRIORITY,
    MAX_IMPORT_COLORS,
    MAX_PALETTES,
    OAM_ENTRIES,
    OAM_MAX_TILE_INDEX,
    SCREEN_HEIGHT,
    SCREEN_WIDTH,
    SPRITES_PER_SCANLINE,
    TILE_HEIGHT,
    TILE_WIDTH,
)
from .exceptions import SpriteSheetImportError
from .logging_config import get_logger
from .oam import MetaSprite, OAMEntry, OAMTable, SpriteAnimation, SpriteFrame
from .palette_utils import BLACK, Palette, SNESColor
from .tile import Tile, TileDepth

logger = get_logger("sprite_sheet_importer")


@dataclass
class SpriteSheetImportConfig:
    frame_width: int = 16
    frame_height: int = 16
    tile_depth: TileDepth = TileDepth.BPP4
    anim_name: str = "Imported"
    frame_duration: int = DEFAULT_FRAME_DURATION
    tile_category: Optional[str] = None

    def __post_init__(self) -> None:
        self.tile_depth = TileDepth.from_value(self.tile_depth)

    @classmethod
    def from_settings(cls, settings) -> SpriteSheetImportConfig:
        """Build a config from the importer section of a SettingsManager"""
        values = settings.get_importer_defaults()
        return cls(
            frame_width=int(values["frame_width"]),
            frame_height=int(values["frame_height"]),
            tile_depth=int(values["tile_depth"]),
            anim_name=str(values["anim_name"]),
            frame_duration=int(values["frame_duration"]),
        )

    @property
    def category(self) -> str:
        """Tile category label, derived from the animation name unless set"""
        if self.tile_category is None:
            return f"Sprite - {self.anim_name}"
        return self.tile_category

    @property
    def max_colors(self) -> int:
        """Opaque colors available; slot 0 stays transparent"""
        return min(self.tile_depth.max_color_index, MAX_IMPORT_COLORS)

    def validate(self, image_width: int, image_height: int) -> None:
        """
        Raises:
            SpriteSheetImportError: If frames are not whole tiles or do not
                fit in the image
        """
        fw, fh = self.frame_width, self.frame_height
        if fw <= 0 or fh <= 0:
            raise SpriteSheetImportError(f"Frame size must be positive, got {fw}x{fh}")
        if fw % TILE_WIDTH or fh % TILE_HEIGHT:
            raise SpriteSheetImportError(f"Frame size {fw}x{fh} must be a multiple of 8")
        if fw > image_width or fh > image_height:
            raise SpriteSheetImportError(
                f"Frame size {fw}x{fh} is larger than the image ({image_width}x{image_height})"
            )
        if self.frame_duration < 1:
            raise SpriteSheetImportError(f"Frame duration must be at least 1, got {self.frame_duration}")


@dataclass
class ImportStats:
    total_frames: int
    raw_tile_count: int
    unique_tile_count: int
    dedup_ratio: float
    colors_found: int
    oam_per_frame: int
    warnings: list[str] = field(default_factory=list)


@dataclass
class SpriteSheetImportResult:
    palette: Palette
    tiles: list[Tile]
    animation: SpriteAnimation
    stats: ImportStats
    color_count: int = 0  # palette slots 1..color_count hold the image's colors

    @property
    def frames(self) -> list[SpriteFrame]:
        return self.animation.frames

    @property
    def used_colors(self) -> list[tuple[int, SNESColor]]:
        return [(i, self.palette[i]) for i in range(1, self.color_count + 1)]


@dataclass
class ImportSummary:
    animation_name: str
    frame_count: int
    palette_index: int
    palette_reused: bool
    new_tile_count: int
    reused_tile_count: int
    truncated_frames: int = 0
    warnings: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        text = f'Imported "{self.animation_name}": {self.frame_count} frames, {self.new_tile_count} new tiles'
        if self.reused_tile_count:
            text += f" ({self.reused_tile_count} reused)"
        text += f", palette {self.palette_index}"
        if self.palette_reused:
            text += " (reused)"
        return text


def detect_frame_size(image_width: int, image_height: int) -> Optional[tuple[int, int, int]]:
    """
    Guess square frames from the sheet shape.

    Returns:
        (frame_width, frame_height, frame_count) for a horizontal strip,
        a vertical strip or a single square frame; None otherwise
    """
    if image_width <= 0 or image_height <= 0:
        return None
    if image_width > image_height and image_width % image_height == 0:
        return image_height, image_height, image_width // image_height
    if image_height > image_width and image_height % image_width == 0:
        return image_width, image_width, image_height // image_width
    if image_width == image_height:
        return image_width, image_height, 1
    return None


def load_sheet_image(path, settings=None) -> Image.Image:
    """
    Load a sprite sheet as RGBA.

    With a SettingsManager the file is added to the recent sheet list.

    Raises:
        RuntimeError: If the file cannot be opened as an image
    """
    try:
        with Image.open(Path(path)) as img:
            image = img.convert("RGBA")
    except OSError as e:
        raise RuntimeError(f"Error loading sprite sheet {path}: {e}") from e
    if settings is not None:
        settings.add_recent_file("sheet", str(path))
    return image


def _cut_frames(rgba: np.ndarray, frame_width: int, frame_height: int) -> list[np.ndarray]:
    """Frames in reading order: left to right, then top to bottom."""
    rows = rgba.shape[0] // frame_height
    cols = rgba.shape[1] // frame_width
    return [
        rgba[r * frame_height:(r + 1) * frame_height, c * frame_width:(c + 1) * frame_width]
        for r in range(rows)
        for c in range(cols)
    ]


def _bgr555_keys(frame: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Per-pixel BGR555 value (channels >> 3) and an opacity mask"""
    rgb = frame[..., :3].astype(np.uint16) >> 3
    keys = rgb[..., 0] | (rgb[..., 1] << 5) | (rgb[..., 2] << 10)
    opaque = frame[..., 3] >= ALPHA_OPAQUE_THRESHOLD
    return keys, opaque


def _quantize_first_seen(frames: list[np.ndarray], max_colors: int):
    """
    Give each distinct color a palette slot in the order it is first met.

    Scanning goes frame by frame, each in raster order. Slot 0 is
    transparent. Once ``max_colors`` slots are taken, every further color
    is drawn with the last slot.

    Returns:
        (indexed_frames, slot_colors, colors_found)
    """
    lut = np.zeros(1 << 15, dtype=np.uint8)
    seen = np.zeros(1 << 15, dtype=bool)
    slot_colors: list[int] = []
    colors_found = 0
    indexed_frames = []

    for frame in frames:
        keys, opaque = _bgr555_keys(frame)
        flat = keys[opaque]
        if flat.size:
            unique, first_pos = np.unique(flat, return_index=True)
            for key in unique[np.argsort(first_pos, kind="stable")]:
                key = int(key)
                if seen[key]:
                    continue
                seen[key] = True
                colors_found += 1
                if len(slot_colors) < max_colors:
                    slot_colors.append(key)
                    lut[key] = len(slot_colors)
                else:
                    lut[key] = max_colors
        indexed_frames.append(np.where(opaque, lut[keys], 0).astype(np.uint8))

    return indexed_frames, slot_colors, colors_found


def _wrap_position(x: int, y: int) -> tuple[int, int]:
    """Fold a screen position into OAM's signed 9-bit x and 8-bit y"""
    return ((x + 256) % 512) - 256, y % 256


def process_image(image: Image.Image, config: SpriteSheetImportConfig) -> SpriteSheetImportResult:
    """
    Analyze a sprite sheet.

    The same image and config always produce the same result. Frames are
    cut on a floor(width/fw) x floor(height/fh) grid; leftover edge pixels
    are ignored. Tiles are deduplicated by exact pixel content only.

    Raises:
        SpriteSheetImportError: If the frame size is not usable for this image
    """
    config.validate(image.width, image.height)
    rgba = np.asarray(image.convert("RGBA"), dtype=np.uint8)
    fw, fh = config.frame_width, config.frame_height
    frames = _cut_frames(rgba, fw, fh)
    warnings: list[str] = []

    indexed_frames, slot_colors, colors_found = _quantize_first_seen(frames, config.max_colors)
    if colors_found > config.max_colors:
        warnings.append(
            f"Too many unique colors: {colors_found} found, {config.max_colors} available; "
            f"extra colors use slot {config.max_colors}"
        )

    unique_tiles: list[Tile] = []
    lookup: dict[bytes, int] = {}
    raw_tile_count = 0
    sprite_frames: list[SpriteFrame] = []
    max_oam = 0
    dropped = 0

    for frame_index, indexed in enumerate(indexed_frames):
        entries: list[OAMEntry] = []
        for gy in range(fh // TILE_HEIGHT):
            for gx in range(fw // TILE_WIDTH):
                block = indexed[gy * TILE_HEIGHT:(gy + 1) * TILE_HEIGHT,
                                gx * TILE_WIDTH:(gx + 1) * TILE_WIDTH]
                tile = Tile(block.flatten().tolist(), config.tile_depth, config.category)
                raw_tile_count += 1
                key = tile.pixel_key()
                tile_index = lookup.get(key)
                if tile_index is None:
                    tile_index = len(unique_tiles)
                    lookup[key] = tile_index
                    unique_tiles.append(tile)

                if tile.is_transparent():
                    continue
                if tile_index > OAM_MAX_TILE_INDEX:
                    dropped += 1
                    continue
                x, y = _wrap_position(
                    SCREEN_WIDTH // 2 + gx * TILE_WIDTH - fw // 2,
                    SCREEN_HEIGHT // 2 + gy * TILE_HEIGHT - fh // 2,
                )
                entries.append(OAMEntry(
                    x=x,
                    y=y,
                    tile_index=tile_index,
                    palette=0,
                    priority=DEFAULT_IMPORT_PRIORITY,
                ))

        count = len(entries)
        max_oam = max(max_oam, count)
        if count > OAM_ENTRIES:
            warnings.append(f"Frame {frame_index}: {count} OAM entries (max {OAM_ENTRIES})")
        if count > SPRITES_PER_SCANLINE:
            warnings.append(
                f"Frame {frame_index}: {count} sprites may cause scanline overflow "
                f"({SPRITES_PER_SCANLINE}/line)"
            )
        sprite_frames.append(SpriteFrame(entries, config.frame_duration))

    if dropped:
        warnings.append(
            f"{dropped} OAM entries dropped: tiles beyond index {OAM_MAX_TILE_INDEX} "
            "cannot be addressed by sprites"
        )

    unique_count = len(unique_tiles)
    dedup_ratio = 1.0 - unique_count / raw_tile_count if raw_tile_count else 0.0

    palette = Palette(config.anim_name, [BLACK] + [SNESColor(key) for key in slot_colors])
    animation = SpriteAnimation(config.anim_name, sprite_frames, loop=True)
    stats = ImportStats(
        total_frames=len(frames),
        raw_tile_count=raw_tile_count,
        unique_tile_count=unique_count,
        dedup_ratio=dedup_ratio,
        colors_found=colors_found,
        oam_per_frame=max_oam,
        warnings=warnings,
    )
    for warning in warnings:
        logger.warning(warning)
    logger.debug(f"Analyzed sheet: {len(frames)} frames, {unique_count}/{raw_tile_count} "
                 f"unique tiles, {colors_found} colors")

    return SpriteSheetImportResult(palette, unique_tiles, animation, stats, len(slot_colors))


def find_matching_palette(palettes: list[Palette],
                          result: SpriteSheetImportResult,
                          in_use: Iterable[int] = ()) -> tuple[int, Optional[list[int]]]:
    """
    Pick the bank slot for an import's palette.

    The first palette (ascending) whose slots 1-15 contain every imported
    color is reused; the returned remap sends each imported index to the
    matching slot there, with 0 staying transparent. All-black palettes
    are free slots and only take part in matching when listed in
    ``in_use`` (an earlier black-only import).

    Otherwise a slot for a new palette is chosen: the first all-zero
    palette not in use, else the next free position when the bank has
    fewer than 16 palettes, else slot 15.

    Returns:
        (palette_index, remap) where remap is None when a new palette is needed
    """
    in_use = set(in_use)
    wanted = result.used_colors
    if wanted:
        for palette_index, existing in enumerate(palettes):
            if existing.is_empty() and palette_index not in in_use:
                continue
            existing_slots: dict[int, int] = {}
            for i in range(1, COLORS_PER_PALETTE):
                existing_slots.setdefault(existing[i].raw, i)
            if all(color.raw in existing_slots for _i, color in wanted):
                remap = list(range(COLORS_PER_PALETTE))
                for i, color in wanted:
                    remap[i] = existing_slots[color.raw]
                return palette_index, remap

    for palette_index, existing in enumerate(palettes):
        if existing.is_empty() and palette_index not in in_use:
            return palette_index, None
    if len(palettes) < MAX_PALETTES:
        return len(palettes), None
    return MAX_PALETTES - 1, None


def deduplicate_tiles_against_store(existing: list[Tile],
                                    imported: list[Tile]) -> tuple[list[int], list[Tile], int]:
    """
    Match imported tiles to store tiles by exact pixels.

    Returns:
        (index_map, new_tiles, reused_count): index_map gives the final
        store index of each imported tile, new_tiles are the ones to append
    """
    lookup: dict[bytes, int] = {}
    for i, tile in enumerate(existing):
        lookup.setdefault(tile.pixel_key(), i)

    index_map: list[int] = []
    new_tiles: list[Tile] = []
    reused = 0
    for tile in imported:
        key = tile.pixel_key()
        if key in lookup:
            index_map.append(lookup[key])
            reused += 1
        else:
            new_index = len(existing) + len(new_tiles)
            lookup[key] = new_index
            index_map.append(new_index)
            new_tiles.append(tile)
    return index_map, new_tiles, reused


def perform_import(result: SpriteSheetImportResult,
                   store: AssetStore) -> tuple[AssetStore, ImportSummary]:
    """
    Merge an analysis result into a copy of ``store``.

    The input store is never modified; callers swap in the returned store
    in one step. OAM entries take the palette's bank slot modulo 8, since
    sprites address eight palettes, so slots 7 and 15 look the same in an
    entry; the animation's ``palette_index`` keeps the full bank slot and
    marks it as in use for later imports. Frames longer than 128 entries are
    truncated and counted. The first frame becomes the active OAM set and
    the animation joins the first meta-sprite, created if needed.
    """
    new_store = store.copy()
    warnings: list[str] = []

    in_use = new_store.palettes_in_use()
    palette_index, remap = find_matching_palette(new_store.palettes, result, in_use)
    if remap is not None:
        imported_tiles = [tile.remapped(remap) for tile in result.tiles]
    else:
        imported_tiles = list(result.tiles)
        new_palette = Palette(result.palette.name, list(result.palette.colors))
        if palette_index == len(new_store.palettes):
            new_store.palettes.append(new_palette)
        else:
            if not new_store.palettes[palette_index].is_empty() or palette_index in in_use:
                logger.warning(f"Palette bank full, overwriting palette {palette_index}")
                warnings.append(f"Palette bank full: palette {palette_index} was overwritten")
            new_store.palettes[palette_index] = new_palette

    index_map, new_tiles, reused = deduplicate_tiles_against_store(new_store.tiles, imported_tiles)
    new_store.tiles.extend(new_tiles)

    oam_palette = palette_index & 0x07
    frames: list[SpriteFrame] = []
    truncated_frames = 0
    dropped = 0
    for frame in result.frames:
        entries = []
        for entry in frame.entries:
            tile_index = index_map[entry.tile_index]
            if tile_index > OAM_MAX_TILE_INDEX:
                dropped += 1
                continue
            entries.append(OAMEntry(
                x=entry.x,
                y=entry.y,
                tile_index=tile_index,
                palette=oam_palette,
                priority=entry.priority,
                h_flip=entry.h_flip,
                v_flip=entry.v_flip,
                is_large=entry.is_large,
            ))
        table, truncated = OAMTable.from_entries(entries, truncate=True)
        truncated_frames += int(truncated)
        frames.append(SpriteFrame(table.entries, frame.duration))

    if truncated_frames:
        warnings.append(f"{truncated_frames} frames truncated to {OAM_ENTRIES} OAM entries")
    if dropped:
        warnings.append(f"{dropped} OAM entries dropped: store tile index beyond {OAM_MAX_TILE_INDEX}")

    animation = SpriteAnimation(result.animation.name, frames, result.animation.loop,
                                palette_index=palette_index)
    if new_store.meta_sprites:
        new_store.meta_sprites[0].animations.append(animation)
    else:
        new_store.meta_sprites.append(MetaSprite(animation.name, [animation]))

    if frames:
        new_store.sprite_entries = list(frames[0].entries)

    summary = ImportSummary(
        animation_name=animation.name,
        frame_count=len(frames),
        palette_index=palette_index,
        palette_reused=remap is not None,
        new_tile_count=len(new_tiles),
        reused_tile_count=reused,
        truncated_frames=truncated_frames,
        warnings=warnings,
    )
    logger.info(summary.message)
    return new_store, summary


@dataclass
class SpriteDecomposition:
    tiles: list[Tile]  # existing tiles followed by the new ones
    entries: list[OAMEntry]
    new_tile_count: int = 0
    warnings: list[str] = field(default_factory=list)


def _find_flipped_match(candidate: Tile, tiles: list[Tile]) -> Optional[tuple[int, bool, bool]]:
    """
    First tile equal to the candidate in some orientation.

    Each tile is tried as-is, then flipped horizontally, vertically and
    both ways before moving on to the next tile.

    Returns:
        (tile_index, h_flip, v_flip) or None
    """
    flipped_h = candidate.flipped_horizontally()
    orientations = (
        (candidate.pixel_key(), False, False),
        (flipped_h.pixel_key(), True, False),
        (candidate.flipped_vertically().pixel_key(), False, True),
        (flipped_h.flipped_vertically().pixel_key(), True, True),
    )
    for index, tile in enumerate(tiles):
        key = tile.pixel_key()
        for wanted, h_flip, v_flip in orientations:
            if key == wanted:
                return index, h_flip, v_flip
    return None


def decompose_sprite(pixels, width: int, height: int, depth, palette_index: int,
                     existing_tiles: list[Tile]) -> SpriteDecomposition:
    """
    Cut an indexed pixel buffer into 8x8 sprite tiles and OAM entries.

    Unlike sheet import, a block that is a mirror image of a known tile
    reuses that tile with the OAM flip bits set. Blocks are read on a
    floor(width/8) x floor(height/8) grid; pixels past the end of the
    buffer count as transparent and fully transparent blocks get no entry.
    Entries sit at their block position with priority 2 and palette
    ``palette_index & 7``. More than 128 entries is reported, not trimmed.

    Raises:
        SpriteSheetImportError: If the size is not positive or the palette
            index is outside the 16-slot bank
    """
    if width <= 0 or height <= 0:
        raise SpriteSheetImportError(f"Sprite size must be positive, got {width}x{height}")
    if not 0 <= palette_index < MAX_PALETTES:
        raise SpriteSheetImportError(f"Palette index {palette_index} out of range (0-15)")
    depth = TileDepth.from_value(depth)
    pixels = list(pixels)

    tiles = list(existing_tiles)
    entries: list[OAMEntry] = []
    warnings: list[str] = []
    dropped = 0

    for row in range(height // TILE_HEIGHT):
        for col in range(width // TILE_WIDTH):
            block = []
            for py in range(TILE_HEIGHT):
                start = (row * TILE_HEIGHT + py) * width + col * TILE_WIDTH
                line = pixels[start:start + TILE_WIDTH]
                block.extend(line + [0] * (TILE_WIDTH - len(line)))
            candidate = Tile(block, depth)
            if candidate.is_transparent():
                continue

            match = _find_flipped_match(candidate, tiles)
            if match is None:
                tile_index, h_flip, v_flip = len(tiles), False, False
                tiles.append(candidate)
            else:
                tile_index, h_flip, v_flip = match

            if tile_index > OAM_MAX_TILE_INDEX:
                dropped += 1
                continue
            x, y = _wrap_position(col * TILE_WIDTH, row * TILE_HEIGHT)
            entries.append(OAMEntry(
                x=x,
                y=y,
                tile_index=tile_index,
                palette=palette_index & 0x07,
                priority=DEFAULT_IMPORT_PRIORITY,
                h_flip=h_flip,
                v_flip=v_flip,
            ))

    if dropped:
        warnings.append(
            f"{dropped} OAM entries dropped: tiles beyond index {OAM_MAX_TILE_INDEX} "
            "cannot be addressed by sprites"
        )
    if len(entries) > OAM_ENTRIES:
        warnings.append(f"OAM count ({len(entries)}) exceeds hardware limit of {OAM_ENTRIES}")
    for warning in warnings:
        logger.warning(warning)

    new_tile_count = len(tiles) - len(existing_tiles)
    logger.debug(f"Decomposed {width}x{height} sprite: {len(entries)} entries, "
                 f"{new_tile_count} new tiles")
    return SpriteDecomposition(tiles, entries, new_tile_count, warnings)
