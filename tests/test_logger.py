"""Tests for util/logger.py bootstrap."""

import logging

from config.settings import settings
from util import logger as logger_mod


def test_init_logger_returns_early_once_initialized(monkeypatch):
    root = logging.getLogger()
    monkeypatch.setattr(root, "_relay_inited", True, raising=False)
    before = list(root.handlers)

    log = logger_mod.init_logger()

    assert log.name == settings.LOGGER_NAME
    assert root.handlers == before


def test_component_defaults_to_top_level_module():
    record = logging.LogRecord(
        "service.sweep_service", logging.INFO, __file__, 1, "sweep.done", None, None
    )
    handler = logger_mod._console_handler(logging.INFO)

    assert handler.filter(record)
    assert record.component == "service"
    line = handler.format(record)
    assert "[service]" in line
    assert "sweep.done" in line
    # Colouring happens on a copy.
    assert record.levelname == "INFO"


def test_explicit_component_is_kept():
    record = logging.LogRecord("x.y", logging.DEBUG, __file__, 1, "m", None, None)
    record.component = "bootstrap"
    logger_mod.ComponentFilter().filter(record)
    assert record.component == "bootstrap"
