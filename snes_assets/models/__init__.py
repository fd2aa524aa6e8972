"""Models for the SNES asset toolkit"""

from .base_model import BaseModel, ObservableProperty
from .import_session_model import ImportState, SpriteSheetImportModel

__all__ = ["BaseModel", "ImportState", "ObservableProperty", "SpriteSheetImportModel"]
