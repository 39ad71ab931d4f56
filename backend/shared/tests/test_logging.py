import json
import logging
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from unittest.mock import patch

import pytest
import structlog

from shared.logging import resolve_json_mode, resolve_log_level, serialize_enums, setup_logging


@pytest.fixture(autouse=True)
def _cleanup_root_logger():
    """Close and remove all handlers from the root logger after each test."""
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)


@pytest.fixture
def file_logging():
    """Lift the pytest guard so setup_logging creates real file handlers."""
    with patch("shared.logging._is_test", return_value=False):
        yield


class TestSetupLogging:
    def test_configures_stdout_handler(self):
        setup_logging()
        root = logging.getLogger()

        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)

    def test_no_file_under_pytest(self, tmp_path):
        assert setup_logging(log_dir=tmp_path / "broker") is None
        assert not (tmp_path / "broker").exists()

    @pytest.mark.usefixtures("file_logging")
    def test_file_handler_in_log_dir(self, tmp_path):
        log_dir = tmp_path / "broker"
        log_path = setup_logging(log_dir=str(log_dir))
        root = logging.getLogger()

        assert len(root.handlers) == 2
        file_handler = root.handlers[1]
        assert isinstance(file_handler, logging.FileHandler)
        assert Path(file_handler.baseFilename).parent == log_dir
        assert log_path is not None
        assert log_path.suffix == ".log"

    @pytest.mark.usefixtures("file_logging")
    def test_log_file_named_after_start_time(self, tmp_path):
        fixed_time = datetime(2025, 3, 15, 10, 30, 45, tzinfo=UTC)
        with patch("shared.logging.datetime") as mock_dt:
            mock_dt.now.return_value = fixed_time
            log_path = setup_logging(log_dir=tmp_path)

        assert log_path is not None
        assert log_path.name == "2025-03-15_10-30-45.log"

    @pytest.mark.usefixtures("file_logging")
    def test_creates_nested_log_directory(self, tmp_path):
        log_dir = tmp_path / "nested" / "dir"
        log_path = setup_logging(log_dir=log_dir)

        structlog.get_logger("test.nested").info("room created", room_id="AB12CD")

        assert log_path is not None
        assert "room created" in log_path.read_text()

    @pytest.mark.usefixtures("file_logging")
    def test_json_mode_writes_context(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "json")
        log_path = setup_logging(log_dir=tmp_path)

        structlog.contextvars.bind_contextvars(connection_id="conn-1")
        structlog.get_logger("test.json").info("player joined", slot=2)
        structlog.contextvars.clear_contextvars()

        assert log_path is not None
        parsed = json.loads(log_path.read_text().strip().splitlines()[0])
        assert parsed["event"] == "player joined"
        assert parsed["connection_id"] == "conn-1"
        assert parsed["slot"] == 2
        assert parsed["level"] == "info"

    @pytest.mark.usefixtures("file_logging")
    def test_below_level_is_filtered(self, tmp_path):
        log_path = setup_logging(log_dir=tmp_path, level=logging.WARNING)

        logger = structlog.get_logger("test.level")
        logger.info("quiet")
        logger.warning("loud")

        assert log_path is not None
        content = log_path.read_text()
        assert "loud" in content
        assert "quiet" not in content

    def test_repeated_calls_replace_handlers(self):
        setup_logging()
        setup_logging()

        assert len(logging.getLogger().handlers) == 1

    def test_explicit_level_wins_over_env(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        setup_logging(level=logging.DEBUG)

        assert logging.getLogger().level == logging.DEBUG


class TestResolveEnv:
    def test_log_level_is_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert resolve_log_level() == logging.DEBUG

    def test_log_level_defaults_to_info(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        assert resolve_log_level() == logging.INFO

    def test_invalid_log_level_raises(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "bogus")
        with pytest.raises(ValueError, match="Invalid LOG_LEVEL"):
            resolve_log_level()

    @pytest.mark.parametrize(("value", "expected"), [("json", True), ("JSON", True), ("console", False), ("", False)])
    def test_json_mode(self, monkeypatch, value, expected):
        monkeypatch.setenv("LOG_FORMAT", value)
        assert resolve_json_mode() is expected

    def test_invalid_log_format_raises(self, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "xml")
        with pytest.raises(ValueError, match="Invalid LOG_FORMAT"):
            setup_logging()


class TestSerializeEnums:
    class _Status(Enum):
        WAITING = "waiting"

    def test_replaces_enum_with_value(self):
        result = serialize_enums(None, "", {"status": self._Status.WAITING, "room_id": "AB12CD"})
        assert result == {"status": "waiting", "room_id": "AB12CD"}

    def test_leaves_non_enum_values_unchanged(self):
        event_dict = {"count": 42, "rooms": ["AB12CD"]}
        assert serialize_enums(None, "", dict(event_dict)) == event_dict
