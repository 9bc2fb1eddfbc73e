"""Logging setup and structured audit lines."""

from .audit import log_audit_event
from .formatters import PIIRedactingFormatter
from .logger import configure_logging, set_service_name

__all__ = [
    "configure_logging",
    "set_service_name",
    "log_audit_event",
    "PIIRedactingFormatter",
]
