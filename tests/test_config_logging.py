from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from cwkgen import config
from cwkgen.logging_setup import LOGGER_NAME, setup_logging


def test_parse_helpers():
    assert config._parse_int("12", 5) == 12
    assert config._parse_int("twelve", 5) == 5
    assert config._parse_int(None, 5) == 5
    assert config._parse_float("2,5", 1.0) == 2.5
    assert config._parse_csv("a; b,,c", []) == ["a", "b", "c"]
    assert config._parse_csv("", ["x"]) == ["x"]


def test_resolve_optional_path(tmp_path):
    assert config._resolve_optional_path(None) is None
    assert config._resolve_optional_path(str(tmp_path)) == tmp_path
    assert config._resolve_optional_path("logs/app.log") == Path.cwd() / "logs/app.log"


def test_defaults_are_sane():
    assert config.FETCH_TIMEOUT_SEC > 0
    assert config.FETCH_ATTEMPTS >= 1
    assert 1 <= config.GIF_MAX_FRAMES
    assert config.GIF_FRAME_DELAY_MS >= 20


@pytest.fixture
def restore_logger():
    logger = logging.getLogger(LOGGER_NAME)
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield logger
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


def test_setup_logging_writes_rotating_file(tmp_path, restore_logger):
    log_path = tmp_path / "logs" / "cwkgen.log"
    logger = setup_logging("DEBUG", log_path, console=False)
    assert logger is restore_logger
    assert logger.level == logging.DEBUG
    assert any(isinstance(handler, RotatingFileHandler) for handler in logger.handlers)

    logging.getLogger("cwkgen.render").warning("card for %s failed", "alice")
    for handler in logger.handlers:
        handler.flush()
    text = log_path.read_text(encoding="utf-8")
    assert "[WARNING] cwkgen.render: card for alice failed" in text
