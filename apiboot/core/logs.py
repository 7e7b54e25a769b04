"""Operational logging on stdout.

Text mode prints `<time> <level> <logger>: <message>`, except for records on
`READY_LOGGER`, which print the bare message so the readiness lines read
exactly `Application running on port <port>` and
`API available at <url>`. JSON mode prints one object per record.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

READY_LOGGER = "apiboot.ready"

# Attributes every LogRecord carries; anything else came in through `extra=`
_STANDARD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime", "color_message"}


class ConsoleFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        if record.name == READY_LOGGER:
            return record.getMessage()
        return super().format(record)


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(
            (key, value) for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        # default=str keeps unencodable extras (sockets, paths) from dropping the record
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(*, level: str = "INFO", json_logs: bool = False) -> None:
    """Send every record, uvicorn's included, through one stdout handler.

    Args:
        level: Level name; unknown names fall back to INFO
        json_logs: Emit JSON lines instead of text
    """
    resolved = logging.getLevelName((level or "INFO").strip().upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonLogFormatter() if json_logs else ConsoleFormatter())
    logging.basicConfig(level=resolved, handlers=[handler], force=True)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uv_logger = logging.getLogger(name)
        uv_logger.handlers.clear()
        uv_logger.propagate = True
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
