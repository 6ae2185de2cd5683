"""Tests for loguru sink setup."""

from __future__ import annotations

import sys

import pytest
from loguru import logger

from habitlens.config.schema import LoggingConfig
from habitlens.logging import setup_logging


@pytest.fixture(autouse=True)
def _restore_default_sink():
    yield
    logger.remove()
    logger.add(sys.stderr)


def test_file_sink_in_given_dir(tmp_path):
    log_file = setup_logging(log_dir=tmp_path / "logs")
    assert log_file == tmp_path / "logs" / "habitlens.log"

    logger.debug("recorded data point for file_switch")
    logger.remove()  # drains the enqueued file sink
    assert "recorded data point for file_switch" in log_file.read_text(encoding="utf-8")


def test_file_sink_disabled(tmp_path):
    log_file = setup_logging(log_dir=tmp_path / "logs", config=LoggingConfig(file_enabled=False))
    assert log_file is None
    assert not (tmp_path / "logs").exists()
