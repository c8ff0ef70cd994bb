"""Logging setup: readable console output plus JSON log files under logs/."""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

from pythonjsonlogger.json import JsonFormatter

from cotrix.config import settings

SERVICE_NAME = "cotrix"
CONSOLE_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
JSON_FORMAT = "%(levelname)s %(name)s %(message)s"


class SourceJsonFormatter(JsonFormatter):
    """JSON records tagged with the service name and the emitting file:line."""

    def __init__(self):
        super().__init__(
            JSON_FORMAT,
            rename_fields={"levelname": "level", "name": "logger"},
            static_fields={"service": SERVICE_NAME},
            timestamp=True,
        )

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["source"] = f"{record.filename}:{record.lineno}"


def console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    return handler


def json_file_handler(path: Path, level: int = logging.DEBUG) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(SourceJsonFormatter())
    return handler


def setup_logging(
    base_dir: Optional[Union[str, Path]] = None,
    level: Optional[str] = None,
) -> logging.Logger:
    """
    Replace the root handlers with console, app.log and error.log handlers.

    Args:
        base_dir: Directory holding logs/ (defaults to the working directory)
        level: Root level name (defaults to settings.log_level)
    """
    logs_dir = Path(base_dir or Path.cwd()) / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel((level or settings.log_level).upper())
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    root.addHandler(console_handler())
    root.addHandler(json_file_handler(logs_dir / "app.log"))
    root.addHandler(json_file_handler(logs_dir / "error.log", logging.ERROR))
    return root


class ContextLogger(logging.LoggerAdapter):
    """Adds fixed context (such as adapter=<source id>) to every record."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(name: str, **context) -> ContextLogger:
    return ContextLogger(logging.getLogger(name), context)
