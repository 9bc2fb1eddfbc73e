"""Patient search filters shared by the broker and node ``/patients`` endpoints."""

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence

from hie_interop.utils.ids import parse_timestamp


@dataclass
class PatientQuery:
    """Search criteria; every unset criterion matches all records.

    Attributes:
        name: Case-insensitive substring of the patient name
        gender: Case-insensitive exact gender value
        status: Exact lifecycle status
        since: ISO-8601 lower bound (inclusive) on ``createdAt``
    """

    name: Optional[str] = None
    gender: Optional[str] = None
    status: Optional[str] = None
    since: Optional[str] = None

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "PatientQuery":
        """Build a query from request query-string arguments."""
        return cls(
            name=args.get("name") or None,
            gender=args.get("gender") or None,
            status=args.get("status") or None,
            since=args.get("since") or None,
        )


def filter_patients(
    records: Iterable[dict[str, Any]],
    query: PatientQuery,
    gender_keys: Sequence[str] = ("gender",),
) -> list[dict[str, Any]]:
    """Apply a PatientQuery to stored patient records.

    An unparseable ``since`` value is ignored rather than rejected.

    Args:
        records: Stored patient records
        query: Search criteria
        gender_keys: Record keys compared against ``query.gender``; a record
                     matches if any of them equals it

    Returns:
        Matching records in store order
    """
    results = list(records)

    if query.name:
        needle = query.name.lower()
        results = [p for p in results if p.get("name") and needle in str(p["name"]).lower()]

    if query.gender:
        wanted = query.gender.lower()
        results = [
            p for p in results
            if any(str(p.get(key) or "").lower() == wanted for key in gender_keys)
        ]

    if query.status:
        results = [p for p in results if p.get("status") == query.status]

    lower_bound = parse_timestamp(query.since)
    if lower_bound is not None:
        kept = []
        for p in results:
            created = parse_timestamp(p.get("createdAt"))
            if created is not None and created >= lower_bound:
                kept.append(p)
        results = kept

    return results
