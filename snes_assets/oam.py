#!/usr/bin/env python3
"""
SNES sprite attribute model
OAM entries, the 128-slot OAM table and its 544-byte binary form
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import IntEnum

from .constants import (
    BYTES_PER_OAM_ENTRY,
    DEFAULT_FRAME_DURATION,
    OAM_ENTRIES,
    OAM_HIGH_TABLE_OFFSET,
    OAM_MAX_PALETTE,
    OAM_MAX_PRIORITY,
    OAM_MAX_TILE_INDEX,
    OAM_OFFSCREEN_Y,
    OAM_SIZE,
)
from .exceptions import OAMError, ValidationError
from .logging_config import get_logger

logger = get_logger("oam")


class ObjSize(IntEnum):
    """
    OBJ size register setting ($2101 bits 5-7).

    Each value selects the pair of sprite sizes available to every OAM
    entry; an entry only picks small or large.
    """

    SIZE_8_16 = 0
    SIZE_8_32 = 1
    SIZE_8_64 = 2
    SIZE_16_32 = 3
    SIZE_16_64 = 4
    SIZE_32_64 = 5
    SIZE_16X32_32X64 = 6
    SIZE_16X32_32X32 = 7

    @property
    def size_pair(self) -> tuple[tuple[int, int], tuple[int, int]]:
        """((small_w, small_h), (large_w, large_h)) in pixels"""
        return _OBJ_SIZE_PAIRS[self]

    def dimensions(self, is_large: bool) -> tuple[int, int]:
        return self.size_pair[1 if is_large else 0]

    @property
    def label(self) -> str:
        small, large = self.size_pair
        return f"{small[0]}x{small[1]} / {large[0]}x{large[1]}"


_OBJ_SIZE_PAIRS = {
    ObjSize.SIZE_8_16: ((8, 8), (16, 16)),
    ObjSize.SIZE_8_32: ((8, 8), (32, 32)),
    ObjSize.SIZE_8_64: ((8, 8), (64, 64)),
    ObjSize.SIZE_16_32: ((16, 16), (32, 32)),
    ObjSize.SIZE_16_64: ((16, 16), (64, 64)),
    ObjSize.SIZE_32_64: ((32, 32), (64, 64)),
    ObjSize.SIZE_16X32_32X64: ((16, 32), (32, 64)),
    ObjSize.SIZE_16X32_32X32: ((16, 32), (32, 32)),
}


@dataclass
class OAMEntry:
    """
    One hardware sprite slot.

    x is a signed 9-bit value (-256..255); bit 8 lives in the high table.
    """

    x: int = 0
    y: int = 0
    tile_index: int = 0
    palette: int = 0
    priority: int = 0
    h_flip: bool = False
    v_flip: bool = False
    is_large: bool = False

    def __post_init__(self) -> None:
        if not -256 <= self.x <= 255:
            raise ValidationError(f"Sprite x {self.x} out of range (-256..255)")
        if not 0 <= self.y <= 255:
            raise ValidationError(f"Sprite y {self.y} out of range (0-255)")
        if not 0 <= self.tile_index <= OAM_MAX_TILE_INDEX:
            raise ValidationError(f"Tile index {self.tile_index} out of range (0-511)")
        if not 0 <= self.palette <= OAM_MAX_PALETTE:
            raise ValidationError(f"Palette {self.palette} out of range (0-7)")
        if not 0 <= self.priority <= OAM_MAX_PRIORITY:
            raise ValidationError(f"Priority {self.priority} out of range (0-3)")

    @property
    def name_table(self) -> int:
        return (self.tile_index >> 8) & 1

    def dimensions(self, obj_size: ObjSize) -> tuple[int, int]:
        """Absolute pixel size under the given OBJ size setting"""
        return obj_size.dimensions(self.is_large)

    @property
    def attribute_byte(self) -> int:
        """vhoopppN: flips, priority, palette and name-table bit"""
        return (
            self.name_table
            | (self.palette << 1)
            | (self.priority << 4)
            | (int(self.h_flip) << 6)
            | (int(self.v_flip) << 7)
        )

    @property
    def high_bits(self) -> int:
        """Two bits for the high table: x bit 8 and the size select"""
        return ((self.x >> 8) & 1) | (int(self.is_large) << 1)

    def to_bytes(self) -> bytes:
        """4-byte low-table record"""
        return bytes((self.x & 0xFF, self.y, self.tile_index & 0xFF, self.attribute_byte))

    @classmethod
    def from_bytes(cls, record: bytes, high_bits: int = 0) -> OAMEntry:
        if len(record) != BYTES_PER_OAM_ENTRY:
            raise OAMError(f"OAM record must be {BYTES_PER_OAM_ENTRY} bytes, got {len(record)}")
        x_low, y, tile_low, attr = record
        x = x_low | ((high_bits & 1) << 8)
        # Signed 9-bit x
        if x >= 256:
            x -= 512
        return cls(
            x=x,
            y=y,
            tile_index=tile_low | ((attr & 1) << 8),
            palette=(attr >> 1) & 0x07,
            priority=(attr >> 4) & 0x03,
            h_flip=bool(attr & 0x40),
            v_flip=bool(attr & 0x80),
            is_large=bool(high_bits & 0x02),
        )


class OAMTable:
    """
    Ordered collection of at most 128 OAM entries.

    Adding past capacity raises OAMError; callers that want best-effort
    behaviour use from_entries(..., truncate=True) and report the flag.
    """

    CAPACITY = OAM_ENTRIES

    def __init__(self, entries: list[OAMEntry] | None = None):
        self._entries: list[OAMEntry] = []
        for entry in entries or []:
            self.add(entry)

    @classmethod
    def from_entries(cls, entries: list[OAMEntry],
                     truncate: bool = False) -> tuple[OAMTable, bool]:
        """
        Build a table from a batch of entries.

        Returns:
            (table, truncated) where truncated is True when entries past
            the 128th were dropped

        Raises:
            OAMError: If the batch is too large and truncate is False
        """
        truncated = len(entries) > cls.CAPACITY
        if truncated:
            if not truncate:
                raise OAMError(f"{len(entries)} entries exceed OAM capacity of {cls.CAPACITY}")
            logger.warning(f"Truncating {len(entries)} OAM entries to {cls.CAPACITY}")
        return cls(list(entries[: cls.CAPACITY])), truncated

    @property
    def count(self) -> int:
        return len(self._entries)

    @property
    def remaining(self) -> int:
        return self.CAPACITY - len(self._entries)

    @property
    def is_full(self) -> bool:
        return len(self._entries) >= self.CAPACITY

    @property
    def entries(self) -> list[OAMEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def __getitem__(self, index: int) -> OAMEntry:
        return self._entries[index]

    def add(self, entry: OAMEntry) -> int:
        """Append an entry and return its slot index."""
        if self.is_full:
            raise OAMError(f"OAM is full ({self.CAPACITY} entries)")
        self._entries.append(entry)
        return len(self._entries) - 1

    def remove(self, index: int) -> OAMEntry:
        if not 0 <= index < len(self._entries):
            raise OAMError(f"No OAM entry at index {index}")
        return self._entries.pop(index)

    def clear(self) -> None:
        self._entries.clear()

    def to_bytes(self) -> bytes:
        """
        Encode to the 544-byte OAM image.

        Unused slots are parked off-screen at y=0xF0 so they never show.
        """
        data = bytearray(OAM_SIZE)
        for i in range(self.CAPACITY):
            offset = i * BYTES_PER_OAM_ENTRY
            if i < len(self._entries):
                entry = self._entries[i]
                data[offset:offset + BYTES_PER_OAM_ENTRY] = entry.to_bytes()
                high = entry.high_bits
            else:
                data[offset + 1] = OAM_OFFSCREEN_Y
                high = 0
            data[OAM_HIGH_TABLE_OFFSET + i // 4] |= high << ((i % 4) * 2)
        return bytes(data)

    @classmethod
    def from_bytes(cls, data: bytes, count: int | None = None) -> OAMTable:
        """
        Parse a 544-byte OAM image.

        Every slot is returned unless ``count`` limits it; the hardware has
        no notion of an unused slot.
        """
        if len(data) < OAM_SIZE:
            raise OAMError(f"OAM data too small: {len(data)} bytes (need {OAM_SIZE})")
        limit = cls.CAPACITY if count is None else max(0, min(count, cls.CAPACITY))

        entries = []
        for i in range(limit):
            offset = i * BYTES_PER_OAM_ENTRY
            high_byte = data[OAM_HIGH_TABLE_OFFSET + i // 4]
            high_bits = (high_byte >> ((i % 4) * 2)) & 0x03
            entries.append(OAMEntry.from_bytes(data[offset:offset + BYTES_PER_OAM_ENTRY], high_bits))
        return cls(entries)


@dataclass
class SpriteFrame:
    """One animation frame: the OAM entries drawn together for `duration` VBlanks"""

    entries: list[OAMEntry] = field(default_factory=list)
    duration: int = DEFAULT_FRAME_DURATION

    def __post_init__(self) -> None:
        if self.duration < 1:
            raise ValidationError(f"Frame duration must be at least 1, got {self.duration}")


@dataclass
class SpriteAnimation:
    name: str = "Animation"
    frames: list[SpriteFrame] = field(default_factory=list)
    loop: bool = True
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    # Palette bank slot (0-15) the frames draw with; OAM entries only keep slot & 7
    palette_index: int | None = None

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    @property
    def total_duration(self) -> int:
        return sum(frame.duration for frame in self.frames)

    @property
    def max_entries_per_frame(self) -> int:
        return max((len(frame.entries) for frame in self.frames), default=0)


@dataclass
class MetaSprite:
    """A named character grouping several animations"""

    name: str = "Sprite"
    animations: list[SpriteAnimation] = field(default_factory=list)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)


__all__ = [
    "MetaSprite",
    "OAMEntry",
    "OAMTable",
    "ObjSize",
    "SpriteAnimation",
    "SpriteFrame",
]
