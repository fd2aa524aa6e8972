"""
Workers package for the SNES asset toolkit
Provides worker threads for background operations
"""

from .analysis_worker import SpriteSheetAnalysisWorker
from .base_worker import BaseWorker

__all__ = ["BaseWorker", "SpriteSheetAnalysisWorker"]
