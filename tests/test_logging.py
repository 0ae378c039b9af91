import json
import logging

from core.logging import JsonFormatter, get_logger


def test_get_logger_idempotent() -> None:
    logger1 = get_logger("test.logger")
    handlers_before = list(logger1.handlers)
    logger2 = get_logger("test.logger")
    assert logger1 is logger2
    assert len(logger1.handlers) == len(handlers_before)


def test_json_formatter_extra_whitelist() -> None:
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "lega %s saltata", ("Serie A",), None)
    record.league = "Serie A"
    record.non_in_whitelist = "ignored"
    payload = json.loads(JsonFormatter().format(record))
    assert payload["msg"] == "lega Serie A saltata"
    assert payload["level"] == "INFO"
    assert payload["league"] == "Serie A"
    assert "non_in_whitelist" not in payload
    assert payload["ts"].endswith("Z")
