"""Process-wide logging setup for the broker, node and portal services.

Every line carries the name of the service running in the process, so the
console output of several terminals (or one combined log file) can be told
apart. The console shows the configured level; the rotating file always
receives DEBUG.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .formatters import PIIRedactingFormatter

LOG_FORMAT = "%(asctime)s [%(service)s] %(levelname)s %(name)s: %(message)s"
DEFAULT_LOG_FILE = Path("logs") / "hie-interop.log"
DEFAULT_SERVICE_NAME = "hie-interop"
MAX_LOG_FILE_SIZE = 10 * 1024 * 1024
BACKUP_COUNT = 5

# Marks handlers installed here so a reconfigure only replaces its own
_HANDLER_MARK = "_hie_interop_handler"


class ServiceNameFilter(logging.Filter):
    """Stamp each record with the service name used by LOG_FORMAT."""

    def __init__(self, service: str = DEFAULT_SERVICE_NAME) -> None:
        super().__init__()
        self.service = service

    def filter(self, record: logging.LogRecord) -> bool:
        record.service = self.service
        return True


_service_filter = ServiceNameFilter()


def set_service_name(name: str) -> None:
    """Tag subsequent log lines with ``name`` (e.g. "hie", "Hospital-B", "portal")."""
    _service_filter.service = name


def _install(root: logging.Logger, handler: logging.Handler, level: int, formatter: logging.Formatter) -> None:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(_service_filter)
    setattr(handler, _HANDLER_MARK, True)
    root.addHandler(handler)


def configure_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    redact_pii: bool = False,
) -> None:
    """Install the console and rotating-file handlers on the root logger.

    Calling it again replaces the handlers from the previous call.

    Args:
        level: Console level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Rotating log file, DEFAULT_LOG_FILE when None
        redact_pii: Mask patient names and birth dates in every line

    Raises:
        ValueError: If the level name is not a logging level
        RuntimeError: If the log directory cannot be created

    Example:
        >>> configure_logging(level="DEBUG", log_file=Path("logs/hospital-b.log"))
        >>> set_service_name("Hospital-B")
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(
            f"Invalid log level: {level}. "
            f"Must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
        )

    log_file = Path(log_file) if log_file else DEFAULT_LOG_FILE
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise RuntimeError(f"Failed to create log directory {log_file.parent}: {e}") from e

    root = logging.getLogger()
    for handler in [h for h in root.handlers if getattr(h, _HANDLER_MARK, False)]:
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.DEBUG)

    formatter = PIIRedactingFormatter(fmt=LOG_FORMAT, redact_pii=redact_pii)
    _install(root, logging.StreamHandler(), numeric_level, formatter)
    try:
        file_handler = RotatingFileHandler(
            log_file, maxBytes=MAX_LOG_FILE_SIZE, backupCount=BACKUP_COUNT, encoding="utf-8"
        )
    except OSError as e:
        root.warning(f"Cannot open {log_file} ({e}); logging to console only")
    else:
        _install(root, file_handler, logging.DEBUG, formatter)

    # The before_request hook logs each request with a counter; werkzeug's own access log is noise
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
