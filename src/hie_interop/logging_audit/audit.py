"""Audit trail functionality for the HIE Interop Demo.

Every domain event of the services (patient created, duplicate detected,
notification failed, prescription dispensed, ...) is written as one
structured line so the flow of a record through the network can be followed
across the broker, node and portal logs.
"""

import logging
import time
import uuid
from typing import Any, Dict

logger = logging.getLogger(__name__)

# Fields printed first, in this order, when present
FIELD_ORDER = [
    "status",
    "service",
    "id",
    "existingId",
    "peer",
    "error",
    "correlation_id",
]


def log_audit_event(event_type: str, details: Dict[str, Any]) -> None:
    """Log an audit trail event.

    Audit events are logged at INFO level, or ERROR level when
    ``details["status"] == "failure"``.

    Args:
        event_type: Dotted event name (e.g. "hie.patient.created",
                   "hie.notify.failure", "portal.prescription.dispensed")
        details: Dictionary with event details. Common fields include:
                - status: "success" or "failure"
                - id: Record id the event is about
                - peer: Peer name for notification events
                - error: Error details (if status is failure)
                - correlation_id: Optional id tying related events together

    Example:
        >>> log_audit_event("hie.patient.dedup", {
        ...     "existingId": "PT-20250106-004217",
        ...     "name": "Jane Doe",
        ...     "birthDate": "1980-01-01",
        ... })
    """
    details = dict(details)
    details.setdefault("timestamp", time.time())
    details.setdefault("correlation_id", str(uuid.uuid4()))

    message_parts = [f"AUDIT [{event_type}]"]

    for field in FIELD_ORDER:
        if field in details:
            message_parts.append(f"{field}={details[field]}")

    for key, value in details.items():
        if key not in FIELD_ORDER and key != "timestamp":
            message_parts.append(f"{key}={value}")

    audit_message = " | ".join(message_parts)

    if details.get("status") == "failure":
        logger.error(audit_message)
    else:
        logger.info(audit_message)
