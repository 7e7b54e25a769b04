"""Console entrypoint for `apiboot`."""

import logging

from pydantic import ValidationError

from .bootstrap import StartupError, start
from .core.config import load_config
from .core.logs import configure_logging

logger = logging.getLogger("apiboot")


def main() -> int:
    """Start the service and serve until shutdown.

    Returns:
        Process exit code: 0 after a clean shutdown, 1 if startup failed.
    """
    try:
        config = load_config()
    except ValidationError as exc:
        configure_logging()
        logger.error("Failed to start: invalid configuration: %s", exc)
        return 1
    configure_logging(level=config.log_level, json_logs=config.json_logs)

    try:
        handle = start(config)
    except StartupError as exc:
        logger.error("Failed to start: %s", exc)
        return 1

    handle.serve()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
