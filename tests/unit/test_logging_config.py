"""Unit tests for reviewdash.logging_config."""

from __future__ import annotations

import logging

import pytest
import structlog

from reviewdash.config import LoggingSettings
from reviewdash.logging_config import configure_logging


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


class TestConfigureLogging:
    def test_json_renderer(self) -> None:
        configure_logging(LoggingSettings(format="json"))
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_text_renderer(self) -> None:
        configure_logging(LoggingSettings(format="text"))
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_level_filters_lower_events(self) -> None:
        configure_logging(LoggingSettings(level="WARNING"))
        wrapper = structlog.get_config()["wrapper_class"]
        assert wrapper is structlog.make_filtering_bound_logger(logging.WARNING)
