"""
Tests for settings and structured logging
"""

import json
import logging

import pytest

from retail_banking import config as config_module
from retail_banking.config import RetailBankingConfig, get_config, reload_config
from retail_banking.logging_config import (
    CorrelationFilter, JSONFormatter, correlation_scope, get_correlation_id, get_logger, log_action,
    setup_logging
)


class TestConfig:

    def test_defaults(self):
        config = RetailBankingConfig()
        assert config.storage_mode == "memory"
        assert config.api_port == 8090
        assert config.savings_interest_rate == "0.02"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("RETAIL_BANK_STORAGE_MODE", "sqlite")
        monkeypatch.setenv("RETAIL_BANK_API_PORT", "9000")
        config = RetailBankingConfig()
        assert config.storage_mode == "sqlite"
        assert config.api_port == 9000

    def test_reload_replaces_global(self, monkeypatch):
        original = get_config()
        monkeypatch.setenv("RETAIL_BANK_LOG_LEVEL", "DEBUG")
        try:
            reloaded = reload_config()
            assert reloaded.log_level == "DEBUG"
            assert get_config() is reloaded
        finally:
            config_module.config = original


class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def captured():
    logger = get_logger("retail_banking.test")
    handler = ListHandler()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    yield logger, handler
    logger.removeHandler(handler)


class TestLogging:

    def test_json_formatter(self):
        record = logging.LogRecord("retail_banking", logging.INFO, __file__, 1, "hello", (), None)
        record.user_id = "u-1"
        entry = json.loads(JSONFormatter().format(record))
        assert entry["message"] == "hello"
        assert entry["user_id"] == "u-1"
        assert "action" not in entry

    def test_log_action_adds_fields(self, captured):
        logger, handler = captured
        log_action(logger, "info", "Sent", user_id="u-1", action="notification.sent",
                   resource="n-1", extra={"type": "info"})
        record = handler.records[0]
        assert record.action == "notification.sent"
        assert record.resource == "n-1"
        assert record.extra == {"type": "info"}

    def test_log_action_respects_level(self, captured):
        logger, handler = captured
        logger.setLevel(logging.WARNING)
        log_action(logger, "debug", "quiet")
        assert handler.records == []

    def test_setup_logging_writes_json_file(self, tmp_path):
        path = tmp_path / "app.log"
        logger = setup_logging("INFO", logger_name="retail_banking.filetest", log_file=str(path))
        logger.info("written")
        for handler in logger.handlers:
            handler.flush()
            handler.close()
        assert json.loads(path.read_text().strip())["message"] == "written"
        assert logger.propagate is False

    def test_get_logger_stays_in_package_namespace(self):
        assert get_logger("workflows") is get_logger("retail_banking.workflows")
        assert get_logger().name == "retail_banking"
        assert get_logger("retail_banking_other").name == "retail_banking.retail_banking_other"

    def test_log_action_picks_up_correlation_scope(self, captured):
        logger, handler = captured
        with correlation_scope("req-42"):
            assert get_correlation_id() == "req-42"
            log_action(logger, "info", "Approved", action="account_request.approved")
        log_action(logger, "info", "Outside")
        assert get_correlation_id() is None

        assert handler.records[0].correlation_id == "req-42"
        assert not hasattr(handler.records[1], "correlation_id")

    def test_explicit_correlation_id_wins(self, captured):
        logger, handler = captured
        with correlation_scope("req-1"):
            log_action(logger, "info", "x", correlation_id="job-7")
        assert handler.records[0].correlation_id == "job-7"

    def test_filter_tags_plain_records(self):
        record = logging.LogRecord("retail_banking", logging.INFO, __file__, 1, "plain", (), None)
        with correlation_scope("req-9"):
            assert CorrelationFilter().filter(record)
        assert json.loads(JSONFormatter().format(record))["correlation_id"] == "req-9"

    def test_setup_logging_rejects_unknown_settings(self):
        with pytest.raises(ValueError):
            setup_logging("LOUD", logger_name="retail_banking.badlevel")
        with pytest.raises(ValueError):
            setup_logging("INFO", log_format="xml", logger_name="retail_banking.badformat")

    def test_text_format_includes_correlation_id(self, tmp_path):
        path = tmp_path / "text.log"
        logger = setup_logging("INFO", log_format="text", log_file=str(path),
                               logger_name="retail_banking.texttest")
        with correlation_scope("req-5"):
            logger.info("hello text")
        for handler in logger.handlers:
            handler.close()
        line = path.read_text()
        assert "req-5" in line and "hello text" in line
