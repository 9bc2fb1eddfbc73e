"""Naive duplicate detection.

A record is a duplicate iff an existing record has a case-insensitive-equal
(trimmed) name and an exactly-equal birth date string. By default a missing
birth date never matches, so two "Unknown" patients without birth dates stay
distinct at the broker. Hospital nodes pass ``allow_missing_birth_date`` so
that two same-name admissions without a birth date count as one person.
"""

from typing import Any, Iterable, Optional


def _norm(name: Any) -> str:
    return str(name).strip().lower() if name is not None else ""


def is_same_person(
    name_a: Any,
    birth_a: Any,
    name_b: Any,
    birth_b: Any,
    allow_missing_birth_date: bool = False,
) -> bool:
    """Apply the (case-insensitive name, exact birth date) equality rule.

    With ``allow_missing_birth_date`` two absent birth dates are equal.
    """
    birth_a = birth_a or None
    birth_b = birth_b or None
    if not allow_missing_birth_date and (birth_a is None or birth_b is None):
        return False
    if not _norm(name_a):
        return False
    return _norm(name_a) == _norm(name_b) and birth_a == birth_b


def find_duplicate(
    records: Iterable[dict[str, Any]],
    name: Any,
    birth_date: Any,
    name_key: str = "name",
    birth_key: str = "birthDate",
    allow_missing_birth_date: bool = False,
) -> Optional[dict[str, Any]]:
    """Return the first existing record matching name and birth date, or None.

    Args:
        records: Stored records to search
        name: Incoming name
        birth_date: Incoming birth date string
        name_key: Record key holding the name
        birth_key: Record key holding the birth date
        allow_missing_birth_date: Treat two absent birth dates as equal
    """
    for record in records:
        if is_same_person(
            record.get(name_key), record.get(birth_key), name, birth_date, allow_missing_birth_date
        ):
            return record
    return None


def find_duplicate_portal_patient(
    records: Iterable[dict[str, Any]],
    first_name: str,
    last_name: str,
    date_of_birth: str,
) -> Optional[dict[str, Any]]:
    """Portal variant: first and last name are compared separately."""
    for record in records:
        if (
            record.get("dateOfBirth") == date_of_birth
            and _norm(record.get("firstName")) == _norm(first_name)
            and _norm(record.get("lastName")) == _norm(last_name)
        ):
            return record
    return None
