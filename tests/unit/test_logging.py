"""Tests for logging setup."""

from __future__ import annotations

import io
import json
import logging

import pytest

from apichain._internal.logging import get_logger, setup_logging


@pytest.fixture(autouse=True)
def _reset_logger():
    yield
    root = logging.getLogger("apichain")
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.propagate = True


def test_repeated_setup_keeps_one_handler():
    setup_logging()
    logger = setup_logging(logging.DEBUG)

    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG


def test_child_logger_name():
    assert get_logger("engine.runner").name == "apichain.engine.runner"


def test_text_format_defaults_endpoint():
    stream = io.StringIO()
    setup_logging(logging.INFO, stream=stream)

    get_logger("test").info("hello")
    get_logger("test").warning("failed", extra={"endpoint": "Create user"})

    first, second = stream.getvalue().splitlines()
    assert "[-]: hello" in first
    assert "[Create user]: failed" in second


def test_json_format():
    stream = io.StringIO()
    setup_logging(logging.INFO, json_format=True, stream=stream)

    get_logger("engine.runner").warning("Status mismatch", extra={"endpoint": "Fetch"})

    entry = json.loads(stream.getvalue())
    assert entry["level"] == "WARNING"
    assert entry["logger"] == "apichain.engine.runner"
    assert entry["endpoint"] == "Fetch"
    assert entry["message"] == "Status mismatch"
