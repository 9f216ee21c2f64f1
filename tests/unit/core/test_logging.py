"""
Unit tests for logging configuration and request correlation.
"""

import logging
from unittest.mock import patch

from useradmin.core.logging import CorrelationIdFilter, get_logging_config, request_id_ctx


def make_record() -> logging.LogRecord:
    return logging.LogRecord("useradmin.test", logging.INFO, __file__, 1, "msg", None, None)


class TestCorrelationIdFilter:
    def test_uses_current_request_id(self):
        token = request_id_ctx.set("req-abc")
        try:
            record = make_record()
            CorrelationIdFilter().filter(record)
        finally:
            request_id_ctx.reset(token)

        assert record.correlation_id == "req-abc"

    def test_placeholder_outside_request(self):
        record = make_record()

        assert CorrelationIdFilter().filter(record) is True
        assert record.correlation_id == "no-request-id"


class TestLoggingConfig:
    def test_json_format_uses_python_json_logger(self):
        with patch("useradmin.core.logging.settings") as mock_settings:
            mock_settings.log_format = "json"
            mock_settings.log_level = "INFO"
            mock_settings.log_file_enabled = False
            config = get_logging_config()

        assert config["handlers"]["console"]["formatter"] == "json"
        assert config["formatters"]["json"]["()"] == "pythonjsonlogger.json.JsonFormatter"

    def test_file_handlers_only_when_enabled(self):
        with patch("useradmin.core.logging.settings") as mock_settings:
            mock_settings.log_format = "console"
            mock_settings.log_level = "DEBUG"
            mock_settings.log_file_enabled = True
            mock_settings.log_file_path = "logs/app.log"
            mock_settings.log_file_max_bytes = 1024
            mock_settings.log_file_backup_count = 1
            config = get_logging_config()

        assert {"file", "error_file"} <= set(config["handlers"])
        assert config["handlers"]["error_file"]["filename"].endswith("error.log")
        assert "file" in config["loggers"]["useradmin"]["handlers"]
