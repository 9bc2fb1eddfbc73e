"""Identifier and timestamp helpers.

Patient ids are human-readable: ``PT-YYYYMMDD-XXXXXX`` where the suffix is six
random characters. The broker uses a numeric suffix, nodes and the portal an
alphanumeric one; both are kept so records from each service stay recognisable.
"""

import logging
import random
import string
import time
import uuid
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger(__name__)

PATIENT_ID_PREFIX = "PT"
ENCOUNTER_ID_PREFIX = "ENC"
DICOM_STUDY_PREFIX = "DICOM"
LOCAL_ID_PREFIX = "L"

SUFFIX_LENGTH = 6
_ALPHANUMERIC = string.ascii_uppercase + string.digits


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def utc_timestamp() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return utc_now().isoformat()


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    A trailing ``Z`` is accepted and naive values are taken to be UTC.

    Args:
        value: Timestamp string, e.g. ``2025-01-06T15:00:00Z``

    Returns:
        Parsed datetime, or None if value is empty or not a valid timestamp
    """
    if not value:
        return None
    text = str(value).strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug(f"Ignoring unparseable timestamp: {value!r}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _date_stamp() -> str:
    return utc_now().strftime("%Y%m%d")


def generate_patient_id(numeric: bool = False) -> str:
    """Generate a patient id in ``PT-YYYYMMDD-XXXXXX`` format.

    Args:
        numeric: Use a zero-padded numeric suffix instead of an
                 uppercase alphanumeric one

    Returns:
        Patient id string, e.g. ``PT-20250106-004217`` or ``PT-20250106-K3F9QZ``
    """
    if numeric:
        suffix = f"{random.randint(0, 999_999):06d}"
    else:
        suffix = "".join(random.choices(_ALPHANUMERIC, k=SUFFIX_LENGTH))
    patient_id = f"{PATIENT_ID_PREFIX}-{_date_stamp()}-{suffix}"
    logger.debug(f"Generated patient ID: {patient_id}")
    return patient_id


def generate_encounter_id() -> str:
    """Generate an encounter id in ``ENC-YYYYMMDD-XXXXXX`` format."""
    suffix = "".join(random.choices(_ALPHANUMERIC, k=SUFFIX_LENGTH))
    return f"{ENCOUNTER_ID_PREFIX}-{_date_stamp()}-{suffix}"


def generate_local_id() -> str:
    """Generate a node-local record id from the current epoch milliseconds."""
    return f"{LOCAL_ID_PREFIX}-{int(time.time() * 1000)}"


def generate_dicom_study_id() -> str:
    """Generate a placeholder DICOM study reference."""
    return f"{DICOM_STUDY_PREFIX}-{uuid.uuid4()}"


def generate_record_id() -> str:
    """Generate an opaque id for clinical records (labs, diagnoses, ...)."""
    return str(uuid.uuid4())
