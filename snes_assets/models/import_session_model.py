#!/usr/bin/env python3
"""
Sprite sheet import session
Idle -> Analyzing -> Ready, with the most recent request always winning
"""

from dataclasses import replace
from enum import Enum

from PyQt6.QtCore import pyqtSignal

from ..exceptions import ValidationError
from ..logging_config import get_logger
from ..sprite_sheet_importer import (
    SpriteSheetImportConfig,
    perform_import,
    process_image,
)
from ..workers.analysis_worker import SpriteSheetAnalysisWorker
from .base_model import BaseModel, ObservableProperty

logger = get_logger("models.import_session")


class ImportState(Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    READY = "ready"


class SpriteSheetImportModel(BaseModel):
    """
    Holds the sheet being imported and its latest analysis.

    Every analysis request gets a new generation number. Results and
    errors carrying an older generation are dropped, so what is shown
    always matches the last request even when earlier workers finish
    later. Superseded workers are asked to cancel but may still run out.
    """

    state_changed = pyqtSignal(object)
    result_changed = pyqtSignal(object)
    error_message_changed = pyqtSignal(object)
    config_changed = pyqtSignal(object)
    import_committed = pyqtSignal(object)  # ImportSummary

    state = ObservableProperty(ImportState.IDLE)
    result = ObservableProperty(None)
    error_message = ObservableProperty("")
    config = ObservableProperty(None)

    def __init__(self, config=None, run_in_thread=True, parent=None):
        super().__init__(parent)
        self.config = config or SpriteSheetImportConfig()
        self.run_in_thread = run_in_thread
        self.image = None
        self._generation = 0
        self._workers = []

    @property
    def generation(self):
        return self._generation

    def set_image(self, image):
        """Use a new sheet and analyze it with the current config"""
        self.image = image
        return self.request_analysis()

    def update_config(self, **changes):
        """Change import settings; any change triggers a fresh analysis"""
        self.config = replace(self.config, **changes)
        if self.image is not None:
            return self.request_analysis()
        return self._generation

    def request_analysis(self):
        """
        Start analyzing the current image.

        Returns:
            The generation number of this request
        """
        if self.image is None:
            raise ValidationError("No sprite sheet loaded")

        self._generation += 1
        generation = self._generation
        for worker in self._workers:
            worker.cancel()

        self.error_message = ""
        self.result = None
        self.state = ImportState.ANALYZING

        if not self.run_in_thread:
            try:
                result = process_image(self.image, self.config)
            except ValidationError as e:
                self.on_analysis_error(generation, str(e))
            else:
                self.on_analysis_finished(generation, result)
            return generation

        worker = SpriteSheetAnalysisWorker(self.image, self.config, generation)
        worker.result_ready.connect(self.on_analysis_finished)
        worker.error.connect(lambda message, g=generation: self.on_analysis_error(g, message))
        worker.finished.connect(lambda w=worker: self._release_worker(w))
        self._workers.append(worker)
        worker.start()
        return generation

    def on_analysis_finished(self, generation, result):
        if generation != self._generation:
            logger.debug(f"Discarding analysis {generation}, latest is {self._generation}")
            return
        self.result = result
        self.state = ImportState.READY

    def on_analysis_error(self, generation, message):
        if generation != self._generation:
            logger.debug(f"Discarding failed analysis {generation}, latest is {self._generation}")
            return
        logger.warning(f"Sprite sheet analysis failed: {message}")
        self.error_message = message
        self.state = ImportState.IDLE

    def commit(self, store):
        """
        Merge the ready result into a copy of ``store``.

        Returns:
            (new_store, summary)

        Raises:
            ValidationError: If no analysis result is ready
        """
        if self.state is not ImportState.READY or self.result is None:
            raise ValidationError("No analysis result to import")
        new_store, summary = perform_import(self.result, store)
        self.result = None
        self.state = ImportState.IDLE
        self.import_committed.emit(summary)
        return new_store, summary

    def wait_for_workers(self, timeout_ms=5000):
        """Block until all running workers have exited"""
        for worker in list(self._workers):
            worker.wait(timeout_ms)

    def _release_worker(self, worker):
        if worker in self._workers:
            self._workers.remove(worker)
        worker.deleteLater()
