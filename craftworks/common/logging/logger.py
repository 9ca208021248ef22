"""Root logger setup and the get_logger() helper."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .correlation import CorrelationLogFilter
from .formatters import JSONFormatter, StructuredLogAdapter
from .logging_config import get_logging_config

TEXT_FORMAT = "%(asctime)s [%(correlation_id)s] %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_logging_configured = False


def _handler(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.addFilter(CorrelationLogFilter())
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    json_format: Optional[bool] = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 3,
    component: str = "default",
    force: bool = False,
) -> None:
    """
    Configure the root logger once per process.

    Console output is text or JSON; the optional log file always gets JSON
    and rotates at max_bytes. Level and format default to logging-config.yaml
    for the given component.

    Args:
        level: Level name, e.g. "DEBUG"
        log_file: Rotating log file path
        json_format: JSON console output
        max_bytes: Rotation size of the log file
        backup_count: Rotated files kept
        component: Section of logging-config.yaml (web, cli)
        force: Replace handlers installed by an earlier call
    """
    global _logging_configured
    if _logging_configured and not force:
        return

    config = get_logging_config()
    level_no = getattr(logging, (level or config.get_level(component)).upper())
    if json_format is None:
        json_format = config.get_json_format(component)

    root = logging.getLogger()
    root.setLevel(level_no)
    root.handlers.clear()

    console_formatter = JSONFormatter() if json_format else logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT)
    root.addHandler(_handler(logging.StreamHandler(sys.stdout), level_no, console_formatter))

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
        root.addHandler(_handler(file_handler, level_no, JSONFormatter()))

    for module_name, module_level in config.module_levels().items():
        logging.getLogger(module_name).setLevel(getattr(logging, module_level))

    _logging_configured = True


def get_logger(name: str) -> StructuredLogAdapter:
    """Structured logger for a module, usually get_logger(__name__)."""
    return StructuredLogAdapter(logging.getLogger(name))
