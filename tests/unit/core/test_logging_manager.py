"""Tests for LoggingManager."""

import logging

import pytest

from blueda.core.config.models import LoggingConfig
from blueda.core.logging_manager import LoggingManager

pytestmark = [pytest.mark.unit]


@pytest.fixture
def manager_factory(tmp_path):
    managers = []

    def _make(**kwargs):
        manager = LoggingManager(LoggingConfig(**kwargs), base_dir=tmp_path)
        managers.append(manager)
        return manager

    yield _make
    for manager in managers:
        manager.teardown()


class TestLoggingManager:

    def test_level_from_config(self, manager_factory):
        logger = manager_factory(level="WARNING").setup()
        assert logger.name == "blueda"
        assert logger.level == logging.WARNING

    def test_level_override(self, manager_factory):
        logger = manager_factory(level="WARNING").setup(level="DEBUG")
        assert logger.level == logging.DEBUG

    def test_setup_twice_does_not_duplicate_handlers(self, manager_factory):
        manager = manager_factory()
        manager.setup()
        count = len(logging.getLogger("blueda").handlers)
        manager.setup()
        assert len(logging.getLogger("blueda").handlers) == count

    def test_file_handler_with_date_pattern(self, manager_factory, tmp_path):
        manager = manager_factory(to_file=True, file="run_{date}.log", directory="logs")
        logger = manager.setup()
        logger.info("hello from the run")
        for handler in logger.handlers:
            handler.flush()

        assert manager.log_file.parent == tmp_path / "logs"
        assert manager.log_file.name.startswith("run_")
        assert "{date}" not in manager.log_file.name
        assert "hello from the run" in manager.log_file.read_text()

    def test_teardown_removes_handlers(self, manager_factory):
        manager = manager_factory()
        manager.setup()
        installed = list(manager._handlers)
        manager.teardown()
        for handler in installed:
            assert handler not in logging.getLogger("blueda").handlers
