#!/usr/bin/env python3
"""
Tests for logging setup
"""

import logging

import pytest

from snes_assets.logging_config import LOGGER_NAME, get_logger, setup_logging


@pytest.fixture(autouse=True)
def restore_logger():
    logger = logging.getLogger(LOGGER_NAME)
    handlers, level, propagate = logger.handlers[:], logger.level, logger.propagate
    yield
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.mark.unit
class TestSetupLogging:
    def test_level(self, monkeypatch):
        monkeypatch.delenv("SNES_ASSETS_DEBUG", raising=False)
        logger = setup_logging("WARNING")

        assert logger.name == "snes_assets"
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
        assert not logger.propagate

    def test_unknown_level_falls_back(self, monkeypatch):
        monkeypatch.delenv("SNES_ASSETS_DEBUG", raising=False)
        assert setup_logging("CHATTY").level == logging.INFO

    def test_debug_environment(self, monkeypatch):
        monkeypatch.setenv("SNES_ASSETS_DEBUG", "1")
        assert setup_logging("ERROR").level == logging.DEBUG

    def test_repeated_setup_replaces_handlers(self):
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "toolkit.log"
        logger = setup_logging("INFO", str(log_file))
        get_logger("rom_analyzer").info("header found")

        for handler in logger.handlers:
            handler.flush()
        assert "header found" in log_file.read_text()

    def test_unwritable_log_file(self, tmp_path):
        logger = setup_logging("INFO", str(tmp_path / "missing" / "toolkit.log"))
        assert len(logger.handlers) == 1


@pytest.mark.unit
class TestGetLogger:
    def test_child_of_package_logger(self):
        assert get_logger("oam").name == "snes_assets.oam"

    def test_prefix_not_doubled(self):
        assert get_logger("snes_assets.cartridge").name == "snes_assets.cartridge"
