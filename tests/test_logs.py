"""Tests for console logging setup."""

import json
import logging

from apiboot.core.logs import READY_LOGGER, configure_logging


def test_human_logs_go_to_stdout(capsys) -> None:
    """Text output carries level, logger name and message."""
    configure_logging(level="info")
    logging.getLogger("apiboot.test").info("Application running on port %d", 3000)

    out = capsys.readouterr().out
    assert "INFO apiboot.test: Application running on port 3000" in out


def test_json_logs_include_extra_fields(capsys) -> None:
    """JSON lines carry the message plus anything passed via extra."""
    configure_logging(level="DEBUG", json_logs=True)
    logging.getLogger("apiboot.test").debug("bound", extra={"port": 4000, "sock": object()})

    line = capsys.readouterr().out.strip().splitlines()[-1]
    payload = json.loads(line)
    assert payload["level"] == "DEBUG"
    assert payload["logger"] == "apiboot.test"
    assert payload["msg"] == "bound"
    assert payload["port"] == 4000
    assert isinstance(payload["sock"], str)


def test_unknown_level_falls_back_to_info(capsys) -> None:
    """A typo in LOG_LEVEL does not silence or break logging."""
    configure_logging(level="verbose")
    log = logging.getLogger("apiboot.test")
    log.debug("hidden")
    log.info("shown")

    out = capsys.readouterr().out
    assert "shown" in out
    assert "hidden" not in out


def test_ready_logger_prints_bare_message(capsys) -> None:
    """Readiness records skip the timestamp and logger prefix in text mode."""
    configure_logging()
    logging.getLogger(READY_LOGGER).info("Application running on port %d", 3000)
    logging.getLogger("apiboot.other").info("Application running on port %d", 3000)

    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "Application running on port 3000"
    assert lines[1].endswith("INFO apiboot.other: Application running on port 3000")
