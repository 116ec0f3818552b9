"""Logging setup for the service: one root configuration, namespaced loggers."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Union

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s:%(lineno)d] %(message)s"


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "line": record.lineno,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def configure_logging(
    level: Union[str, int] = "INFO",
    *,
    json_lines: bool = False,
    logfile: str | Path | None = None,
) -> None:
    """
    Configure the root logger with stdout and an optional file handler.

    Args:
        level: Logging level name or int.
        json_lines: Emit JSON lines instead of the text format.
        logfile: File to append to, in addition to stdout.
    """
    formatter: logging.Formatter = JsonLineFormatter() if json_lines else logging.Formatter(TEXT_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if logfile is not None:
        log_path = Path(logfile)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
