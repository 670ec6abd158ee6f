"""Tests for logging configuration."""

import logging

from headers_file import logging as headers_logging
from headers_file import parse_headers


class TestInitLogging:
    def teardown_method(self):
        headers_logging.close_logging()

    def test_default_level(self):
        logger = headers_logging.init_logging()
        assert logger.name == "headers_file"
        assert logger.level == logging.WARNING
        assert not logger.propagate
        assert len(logger.handlers) == 1

    def test_verbose_level(self):
        logger = headers_logging.init_logging(verbose=True)
        assert logger.level == logging.DEBUG

    def test_reinit_replaces_handler(self):
        headers_logging.init_logging()
        logger = headers_logging.init_logging()
        assert len(logger.handlers) == 1

    def test_reinit_closes_previous_file_handler(self, tmp_path, monkeypatch):
        monkeypatch.setattr(headers_logging, "LOG_FILE", str(tmp_path / "headers.log"))
        first = headers_logging.init_logging().handlers[0]
        headers_logging.init_logging()
        assert first.stream is None
        assert first not in logging.getLogger("headers_file").handlers

    def test_log_file(self, tmp_path, monkeypatch):
        log_file = tmp_path / "headers.log"
        monkeypatch.setattr(headers_logging, "LOG_FILE", str(log_file))
        headers_logging.init_logging(verbose=True)
        parse_headers("/a\n  X-A: 1\n")
        headers_logging.close_logging()
        assert "Parsed 1 rule(s)" in log_file.read_text()

    def test_close_logging(self):
        headers_logging.init_logging()
        headers_logging.close_logging()
        assert headers_logging.logger is None
        assert logging.getLogger("headers_file").handlers == []


class TestParserLogging:
    def test_rule_debug_records(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="headers_file.parser"):
            parse_headers("/a\n  X-A: 1\nhttps://example.com/*\n")
        messages = [record.getMessage() for record in caplog.records]
        assert "Rule 0: /a (1 header(s))" in messages
        assert "Rule 1: example.com/* (0 header(s))" in messages
