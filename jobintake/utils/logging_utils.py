from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from jobintake.utils.config import ConfigError

LOG_FILE = "jobintake.log"
# Libraries that log every request at INFO.
NOISY_LOGGERS = ("httpx", "httpcore")


class JsonFormatter(logging.Formatter):
    """One JSON object per line: the event name plus its ``extra_fields``."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        if hasattr(record, "extra_fields"):
            payload.update(getattr(record, "extra_fields"))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    if not isinstance(value, int):
        raise ConfigError(f"Unknown log level: {level}")
    return value


def setup_logging(log_dir: str = "data/logs", level: int | str = logging.INFO, console: bool = False) -> Path:
    """Send all records to ``<log_dir>/jobintake.log``; with ``console``, warnings also go to stderr."""
    path = Path(log_dir)
    path.mkdir(parents=True, exist_ok=True)
    logfile = path / LOG_FILE
    handler = logging.FileHandler(logfile, encoding="utf-8")
    handler.setFormatter(JsonFormatter())
    handlers: list[logging.Handler] = [handler]
    if console:
        stream = logging.StreamHandler()
        stream.setLevel(logging.WARNING)
        stream.setFormatter(JsonFormatter())
        handlers.append(stream)

    root = logging.getLogger()
    root.setLevel(resolve_level(level))
    root.handlers = handlers
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return logfile
