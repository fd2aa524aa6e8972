"""Custom exceptions for the SNES asset toolkit"""


class SNESAssetError(Exception):
    """Base exception for all SNES asset errors."""


class ValidationError(SNESAssetError):
    """Raised for validation errors."""


class TileError(SNESAssetError):
    """Raised for tile processing errors."""


class TileIndexError(TileError, IndexError):
    """Raised when a pixel coordinate falls outside the 8x8 tile."""


class OAMError(SNESAssetError):
    """Raised for OAM-related errors."""


class SpriteSheetImportError(ValidationError):
    """Raised when a sprite sheet cannot be sliced with the given settings."""


class ROMError(SNESAssetError):
    """Base exception for ROM-related errors"""


class InvalidROMError(ROMError):
    """Raised when ROM data is empty, truncated or unreadable"""


class ROMHeaderError(ROMError):
    """Raised when ROM header is invalid or missing"""
