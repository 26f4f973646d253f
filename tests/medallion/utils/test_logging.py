"""Tests for logging setup."""

import logging
from io import StringIO

import pytest
from rich.console import Console
from rich.logging import RichHandler

from medallion.utils.logging import configure_logging, resolve_level


@pytest.fixture(autouse=True)
def restore_medallion_logger():
    logger = logging.getLogger("medallion")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers = handlers
    logger.setLevel(level)
    logger.propagate = propagate


class TestResolveLevel:
    def test_names_are_case_insensitive(self):
        assert resolve_level("debug") == logging.DEBUG
        assert resolve_level("INFO") == logging.INFO

    def test_default_is_warning(self):
        assert resolve_level(None) == logging.WARNING

    def test_numeric(self):
        assert resolve_level(15) == 15

    def test_unknown_name(self):
        with pytest.raises(ValueError, match="Unknown log level"):
            resolve_level("chatty")


class TestConfigureLogging:
    def test_installs_single_rich_handler(self):
        configure_logging("info")
        configure_logging("debug")
        logger = logging.getLogger("medallion")
        rich_handlers = [h for h in logger.handlers if isinstance(h, RichHandler)]
        assert len(rich_handlers) == 1
        assert logger.level == logging.DEBUG

    def test_messages_reach_console(self):
        buffer = StringIO()
        configure_logging("info", console=Console(file=buffer, width=200))
        logging.getLogger("medallion.test").info("resolved 3 nodes")
        assert "resolved 3 nodes" in buffer.getvalue()

    def test_level_filters(self):
        buffer = StringIO()
        configure_logging("warning", console=Console(file=buffer, width=200))
        logging.getLogger("medallion.test").info("hidden")
        assert "hidden" not in buffer.getvalue()
