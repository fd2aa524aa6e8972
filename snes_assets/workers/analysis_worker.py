#!/usr/bin/env python3
"""
Worker thread for sprite sheet analysis
Runs the importer off the GUI thread and tags results with a generation
"""

from PyQt6.QtCore import pyqtSignal

from ..logging_config import get_logger
from ..sprite_sheet_importer import process_image
from .base_worker import BaseWorker

logger = get_logger("workers.analysis")


class SpriteSheetAnalysisWorker(BaseWorker):
    """Analyze one image with one config"""

    result_ready = pyqtSignal(int, object)  # generation, SpriteSheetImportResult

    def __init__(self, image, config, generation, parent=None):
        super().__init__(parent)
        # Own copy so the caller may change its image while we run
        self.image = image.copy()
        self.config = config
        self.generation = generation

    def run(self):
        try:
            self.emit_progress(f"Analyzing sprite sheet ({self.config.frame_width}x"
                               f"{self.config.frame_height} frames)...")
            result = process_image(self.image, self.config)
            if self.is_cancelled():
                logger.debug(f"Analysis {self.generation} finished after cancellation")
                return
            self.result_ready.emit(self.generation, result)
        except Exception as e:
            logger.warning(f"Analysis {self.generation} failed: {e}")
            self.handle_exception(e)
