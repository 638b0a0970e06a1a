import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from app_telegram_bot.logging_config import JSONFormatter, KeyValueFormatter, get_logger, setup_logging


class TestJSONFormatter:
    def test_format_with_fields(self):
        record = logging.LogRecord("app_telegram_bot.test", logging.INFO, __file__, 1,
                                   "Tunnel process started", (), None)
        record.extra_fields = {"pid": 4242}
        data = json.loads(JSONFormatter().format(record))
        assert data["level"] == "info"
        assert data["logger"] == "app_telegram_bot.test"
        assert data["msg"] == "Tunnel process started"
        assert data["pid"] == 4242
        assert data["ts"].endswith("Z")


def make_record(msg: str, fields=None) -> logging.LogRecord:
    record = logging.LogRecord("app_telegram_bot.test", logging.INFO, __file__, 1, msg, (), None)
    if fields is not None:
        record.extra_fields = fields
    return record


class TestKeyValueFormatter:
    def test_appends_fields(self):
        line = KeyValueFormatter().format(make_record(
            "Tunnel process started", {"host": "nokey@localhost.run", "pid": 4242}))
        assert line.endswith("Tunnel process started host=nokey@localhost.run pid=4242")
        assert "INFO app_telegram_bot.test:" in line

    def test_skips_none_values(self):
        line = KeyValueFormatter().format(make_record(
            "Telegram bot launched", {"development": False, "web_app_url": None}))
        assert line.endswith("Telegram bot launched development=False")

    def test_plain_record(self):
        line = KeyValueFormatter().format(make_record("Telegram bot stopped"))
        assert line.endswith("Telegram bot stopped")


class TestSetupLogging:
    def test_levels(self, monkeypatch):
        monkeypatch.delenv("TGBOT_LOG_FILE", raising=False)
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging(level="debug", json_format=True)
            assert root.level == logging.DEBUG
            assert isinstance(root.handlers[0].formatter, JSONFormatter)
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

    def test_structured_logger(self):
        logger = get_logger("app_telegram_bot.test_structured")
        assert hasattr(logger, "info_with")

    def test_text_mode_uses_key_value_formatter(self, monkeypatch):
        monkeypatch.delenv("TGBOT_LOG_FILE", raising=False)
        monkeypatch.delenv("TGBOT_LOG_JSON", raising=False)
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging(level="info")
            assert isinstance(root.handlers[0].formatter, KeyValueFormatter)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

    def test_fields_reach_records(self, caplog):
        caplog.set_level(logging.INFO)
        get_logger("app_telegram_bot.test_fields").info_with("Bot commands menu set", count=1)
        assert caplog.records[-1].extra_fields == {"count": 1}
