import logging

from pythonjsonlogger.json import JsonFormatter

from hooksheet import monitoring


def test_json_logger_uses_json_formatter(monkeypatch):
    monkeypatch.setattr(monitoring, "LOG_AS_JSON", True)
    log = monitoring.setup_logger("hooksheet-test-json", level=logging.DEBUG)
    assert log.level == logging.DEBUG
    assert any(isinstance(h.formatter, JsonFormatter) for h in log.handlers)


def test_plain_logger_when_json_disabled(monkeypatch):
    monkeypatch.setattr(monitoring, "LOG_AS_JSON", False)
    log = monitoring.setup_logger("hooksheet-test-plain")
    assert log.handlers
    assert not any(isinstance(h.formatter, JsonFormatter) for h in log.handlers)
