#!/usr/bin/env python3
"""
Cartridge configuration and SNES header byte derivation

Every header byte is recomputed from the config fields on access; nothing
derived is ever stored.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, ClassVar

from .exceptions import ValidationError
from .logging_config import get_logger

logger = get_logger("cartridge")


class ROMMapping(Enum):
    LOROM = "LoROM"
    HIROM = "HiROM"
    EXHIROM = "ExHiROM"
    SA1 = "SA-1"

    @property
    def header_byte(self) -> int:
        """Map mode bits of $FFD5 without the speed flag"""
        return {
            ROMMapping.LOROM: 0x20,
            ROMMapping.HIROM: 0x21,
            ROMMapping.EXHIROM: 0x25,
            ROMMapping.SA1: 0x23,
        }[self]

    @property
    def rom_bank_size(self) -> int:
        return 32 * 1024 if self is ROMMapping.LOROM else 64 * 1024

    @property
    def rom_start_address(self) -> str:
        return "$008000" if self is ROMMapping.LOROM else "$C00000"

    @property
    def allowed_rom_sizes(self) -> list[int]:
        return list(ALLOWED_ROM_SIZES[self])

    @property
    def linker_config_name(self) -> str:
        if self is ROMMapping.LOROM:
            return "snes.cfg"
        if self is ROMMapping.SA1:
            return "snes_sa1.cfg"
        return "snes_hirom.cfg"


class ROMSpeed(Enum):
    SLOW = "SlowROM"
    FAST = "FastROM"

    @property
    def header_flag(self) -> int:
        return 0x10 if self is ROMSpeed.FAST else 0x00


class EnhancementChip(Enum):
    NONE = "None"
    SA1 = "SA-1"
    SUPER_FX = "Super FX"
    DSP1 = "DSP-1"
    CX4 = "Cx4"
    SDD1 = "S-DD1"
    SPC7110 = "SPC7110"

    @classmethod
    def from_name(cls, name: str) -> EnhancementChip:
        """Parse a stored chip name; the legacy "Aucun" means no chip."""
        if name == "Aucun":
            return cls.NONE
        try:
            return cls(name)
        except ValueError:
            raise ValidationError(f"Unknown enhancement chip: {name}") from None

    @property
    def type_byte(self) -> int:
        return {
            EnhancementChip.NONE: 0x00,
            EnhancementChip.SA1: 0x34,
            EnhancementChip.SUPER_FX: 0x15,
            EnhancementChip.DSP1: 0x05,
            EnhancementChip.CX4: 0x0F,
            EnhancementChip.SDD1: 0x43,
            EnhancementChip.SPC7110: 0x0A,
        }[self]

    @property
    def max_sram_kb(self) -> int:
        return CHIP_SRAM_LIMITS_KB[self]

    @property
    def description(self) -> str:
        return {
            EnhancementChip.NONE: "No co-processor",
            EnhancementChip.SA1: "65C816 at 10.74 MHz, parallel CPU",
            EnhancementChip.SUPER_FX: "RISC graphics processor for 3D and scaling",
            EnhancementChip.DSP1: "Math coprocessor for trigonometry and projections",
            EnhancementChip.CX4: "3D math at 20 MHz for wireframe polygons",
            EnhancementChip.SDD1: "Real-time decompression hardware",
            EnhancementChip.SPC7110: "Decompression with extended bank switching",
        }[self]


# Powers of two only, so the one-byte log2 size field is exact
ALLOWED_ROM_SIZES = {
    ROMMapping.LOROM: (256, 512, 1024, 2048),
    ROMMapping.HIROM: (512, 1024, 2048, 4096),
    ROMMapping.EXHIROM: (4096, 8192),
    ROMMapping.SA1: (1024, 2048, 4096, 8192),
}

ALLOWED_SRAM_SIZES = (0, 2, 8, 32, 64, 128, 256)

CHIP_SRAM_LIMITS_KB = {
    EnhancementChip.NONE: 256,
    EnhancementChip.SA1: 256,
    EnhancementChip.SUPER_FX: 64,
    EnhancementChip.DSP1: 32,
    EnhancementChip.CX4: 8,
    EnhancementChip.SDD1: 8,
    EnhancementChip.SPC7110: 8,
}


def _log2_exact(value: int, what: str) -> int:
    if value <= 0 or value & (value - 1):
        raise ValidationError(f"{what} must be a power of two, got {value}")
    return value.bit_length() - 1


def rom_size_header_byte(size_kb: int) -> int:
    """
    $FFD7 value for a ROM size: size is 1 << byte KB, so 512 KB is 0x09.

    Raises:
        ValidationError: If size_kb is not a power of two
    """
    return _log2_exact(size_kb, "ROM size")


def rom_size_from_header_byte(byte: int) -> int:
    return 1 << byte


def sram_size_header_byte(size_kb: int) -> int:
    """$FFD8 value: 0 for no SRAM, otherwise log2 of the size in KB."""
    if size_kb == 0:
        return 0
    return _log2_exact(size_kb, "SRAM size")


def sram_size_from_header_byte(byte: int) -> int:
    return 0 if byte == 0 else 1 << byte


def mapping_header_byte(mapping: ROMMapping, speed: ROMSpeed) -> int:
    return mapping.header_byte | speed.header_flag


def cartridge_type_byte(chip: EnhancementChip, sram_size_kb: int) -> int:
    """
    $FFD6 value.

    ROM only is 0x00; any SRAM sets 0x02 (ROM+RAM+battery). The chip code
    is OR-ed on top, so the result depends on both inputs.
    """
    base = 0x02 if sram_size_kb > 0 else 0x00
    return base | chip.type_byte


@dataclass(frozen=True)
class CartridgeProfile:
    """Named starting point for a cartridge config"""

    id: str
    name: str
    description: str
    rom_size_kb: int
    mapping: ROMMapping
    sram_size_kb: int
    chip: EnhancementChip
    speed: ROMSpeed
    difficulty: int


PRESETS = (
    CartridgeProfile("simple", "Simple", "256 KB LoROM for a demo or first game",
                     256, ROMMapping.LOROM, 0, EnhancementChip.NONE, ROMSpeed.SLOW, 1),
    CartridgeProfile("standard", "Standard", "512 KB LoROM with 8 KB SRAM",
                     512, ROMMapping.LOROM, 8, EnhancementChip.NONE, ROMSpeed.SLOW, 2),
    CartridgeProfile("extended", "Extended", "1 MB LoROM for action adventures",
                     1024, ROMMapping.LOROM, 8, EnhancementChip.NONE, ROMSpeed.FAST, 2),
    CartridgeProfile("large", "Large", "2 MB HiROM for an RPG",
                     2048, ROMMapping.HIROM, 32, EnhancementChip.NONE, ROMSpeed.FAST, 3),
    CartridgeProfile("very_large", "Very Large", "4 MB ExHiROM for a large RPG",
                     4096, ROMMapping.EXHIROM, 32, EnhancementChip.NONE, ROMSpeed.FAST, 3),
    CartridgeProfile("sa1_boost", "SA-1 Boost", "4 MB SA-1 for CPU heavy games",
                     4096, ROMMapping.SA1, 32, EnhancementChip.SA1, ROMSpeed.FAST, 4),
    CartridgeProfile("super_fx", "Super FX", "1 MB Super FX for 3D effects",
                     1024, ROMMapping.LOROM, 0, EnhancementChip.SUPER_FX, ROMSpeed.SLOW, 5),
    CartridgeProfile("dsp1_math", "DSP-1 Math", "1 MB DSP-1 for racing and simulation",
                     1024, ROMMapping.LOROM, 8, EnhancementChip.DSP1, ROMSpeed.SLOW, 4),
    CartridgeProfile("custom", "Custom", "Free configuration",
                     512, ROMMapping.LOROM, 0, EnhancementChip.NONE, ROMSpeed.SLOW, 0),
)


def preset_for(profile_id: str) -> CartridgeProfile | None:
    for profile in PRESETS:
        if profile.id == profile_id:
            return profile
    return None


@dataclass(frozen=True)
class CartridgeConfig:
    """User-editable cartridge parameters; header bytes are derived on demand"""

    selected_profile_id: str = "simple"
    rom_size_kb: int = 256
    mapping: ROMMapping = ROMMapping.LOROM
    speed: ROMSpeed = ROMSpeed.SLOW
    sram_size_kb: int = 0
    chip: EnhancementChip = EnhancementChip.NONE

    SRAM_SIZES: ClassVar[tuple[int, ...]] = ALLOWED_SRAM_SIZES

    @classmethod
    def from_profile(cls, profile: CartridgeProfile) -> CartridgeConfig:
        return cls(
            selected_profile_id=profile.id,
            rom_size_kb=profile.rom_size_kb,
            mapping=profile.mapping,
            speed=profile.speed,
            sram_size_kb=profile.sram_size_kb,
            chip=profile.chip,
        )

    @classmethod
    def default(cls) -> CartridgeConfig:
        return cls.from_profile(PRESETS[0])

    # Derived header values

    @property
    def mapping_header_byte(self) -> int:
        return mapping_header_byte(self.mapping, self.speed)

    @property
    def cartridge_type_byte(self) -> int:
        return cartridge_type_byte(self.chip, self.sram_size_kb)

    @property
    def rom_size_header_byte(self) -> int:
        return rom_size_header_byte(self.rom_size_kb)

    @property
    def sram_size_header_byte(self) -> int:
        return sram_size_header_byte(self.sram_size_kb)

    @property
    def available_rom_sizes(self) -> list[int]:
        return self.mapping.allowed_rom_sizes

    @property
    def linker_config_name(self) -> str:
        return self.mapping.linker_config_name

    @property
    def rom_start_address(self) -> str:
        return self.mapping.rom_start_address

    def header_bytes(self) -> dict[str, int]:
        return {
            "mapping": self.mapping_header_byte,
            "cartridge_type": self.cartridge_type_byte,
            "rom_size": self.rom_size_header_byte,
            "sram_size": self.sram_size_header_byte,
        }

    def validation_errors(self) -> list[str]:
        """All problems with this config, empty when it is legal"""
        errors = []
        if self.rom_size_kb not in ALLOWED_ROM_SIZES[self.mapping]:
            allowed = ", ".join(str(s) for s in ALLOWED_ROM_SIZES[self.mapping])
            errors.append(
                f"ROM size {self.rom_size_kb} KB is not available for {self.mapping.value} "
                f"(allowed: {allowed})"
            )
        if self.sram_size_kb not in ALLOWED_SRAM_SIZES:
            errors.append(f"SRAM size {self.sram_size_kb} KB is not a valid size")
        elif self.sram_size_kb > self.chip.max_sram_kb:
            errors.append(
                f"{self.chip.value} supports at most {self.chip.max_sram_kb} KB SRAM, "
                f"got {self.sram_size_kb} KB"
            )
        if (self.chip is EnhancementChip.SA1) != (self.mapping is ROMMapping.SA1):
            errors.append("The SA-1 chip and the SA-1 mapping must be used together")
        return errors

    def validate(self) -> None:
        """
        Raises:
            ValidationError: With every problem joined into one message
        """
        errors = self.validation_errors()
        if errors:
            message = "; ".join(errors)
            logger.warning(f"Invalid cartridge config: {message}")
            raise ValidationError(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "selected_profile_id": self.selected_profile_id,
            "rom_size_kb": self.rom_size_kb,
            "mapping": self.mapping.value,
            "speed": self.speed.value,
            "sram_size_kb": self.sram_size_kb,
            "chip": self.chip.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CartridgeConfig:
        default = cls.default()
        try:
            return cls(
                selected_profile_id=data.get("selected_profile_id", default.selected_profile_id),
                rom_size_kb=int(data.get("rom_size_kb", default.rom_size_kb)),
                mapping=ROMMapping(data.get("mapping", default.mapping.value)),
                speed=ROMSpeed(data.get("speed", default.speed.value)),
                sram_size_kb=int(data.get("sram_size_kb", default.sram_size_kb)),
                chip=EnhancementChip.from_name(data.get("chip", default.chip.value)),
            )
        except ValueError as e:
            raise ValidationError(f"Invalid cartridge data: {e}") from e


def apply_config(current: CartridgeConfig, **changes: Any) -> CartridgeConfig:
    """
    Return a copy of ``current`` with ``changes`` applied, validated as a whole.

    Raises:
        ValidationError: If the changed config is illegal; ``current`` is
            untouched either way
    """
    updated = replace(current, **changes)
    updated.validate()
    return updated


__all__ = [
    "ALLOWED_ROM_SIZES",
    "ALLOWED_SRAM_SIZES",
    "CHIP_SRAM_LIMITS_KB",
    "CartridgeConfig",
    "CartridgeProfile",
    "EnhancementChip",
    "PRESETS",
    "ROMMapping",
    "ROMSpeed",
    "apply_config",
    "cartridge_type_byte",
    "mapping_header_byte",
    "preset_for",
    "rom_size_from_header_byte",
    "rom_size_header_byte",
    "sram_size_from_header_byte",
    "sram_size_header_byte",
]
