"""Patient data models shared by the broker and the hospital nodes.

Records are persisted as plain JSON objects with camelCase keys (the wire and
file format); these dataclasses are the in-code representation.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

PATIENT_RESOURCE_TYPE = "Patient"


class CanonicalGender(str, Enum):
    """Interchange gender enumeration used by the broker."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "CanonicalGender":
        """Parse a canonical gender, falling back to UNKNOWN.

        Matching is case-insensitive; missing or unrecognised values map to
        UNKNOWN rather than being rejected.
        """
        if value is None:
            return cls.UNKNOWN
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNKNOWN


class RecordStatus(str, Enum):
    """Lifecycle status of a patient record."""

    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass
class CanonicalPatient:
    """Patient as held by the broker.

    Attributes:
        id: Patient identifier (``PT-YYYYMMDD-NNNNNN`` when generated)
        name: Display name
        gender: Canonical gender value
        birth_date: Birth date string, compared verbatim for dedup
        meta: Free-form metadata (sourceHospital, sourceLocalId)
        status: "active" or "inactive"
        created_at: ISO-8601 creation timestamp
        updated_at: ISO-8601 last-update timestamp
        deleted_at: ISO-8601 soft-delete timestamp, if soft-deleted
    """

    id: str
    name: str
    gender: str
    birth_date: Optional[str]
    created_at: str
    updated_at: str
    meta: dict[str, Any] = field(default_factory=dict)
    status: str = RecordStatus.ACTIVE.value
    deleted_at: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        record = {
            "id": self.id,
            "name": self.name,
            "gender": self.gender,
            "birthDate": self.birth_date,
            "meta": dict(self.meta),
            "status": self.status,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.deleted_at:
            record["deletedAt"] = self.deleted_at
        return record

    @classmethod
    def from_dict(cls, record: dict[str, Any]) -> "CanonicalPatient":
        return cls(
            id=record["id"],
            name=record.get("name") or "Unknown",
            gender=record.get("gender") or CanonicalGender.UNKNOWN.value,
            birth_date=record.get("birthDate"),
            meta=dict(record.get("meta") or {}),
            status=record.get("status") or RecordStatus.ACTIVE.value,
            created_at=record.get("createdAt", ""),
            updated_at=record.get("updatedAt", ""),
            deleted_at=record.get("deletedAt"),
        )

    def to_resource(self, action: Optional[str] = None) -> dict[str, Any]:
        """Build the notification payload sent to nodes.

        Args:
            action: "soft-delete" for status-change notifications

        Returns:
            FHIR-like Patient resource
        """
        meta: dict[str, Any] = {
            "sourceHospital": self.meta.get("sourceHospital") or "Unknown",
            "sourceLocalId": self.meta.get("sourceLocalId"),
            "status": self.status,
        }
        if action:
            meta["action"] = action
            meta["deletedAt"] = self.deleted_at
        return patient_resource(self.id, self.name, self.gender, self.birth_date, meta)


@dataclass
class LocalPatient:
    """Patient as held by a hospital node.

    Attributes:
        id: Patient identifier (generated locally, or the broker's for remote records)
        local_id: Hospital-local record number
        name: Display name
        gender_local: Node-specific gender code
        gender_canonical: Canonical gender derived from gender_local
        birth_date: Birth date string
        source: Node name for local records, source hospital for remote ones
        status: "active" or "inactive"
        created_at: ISO-8601 creation (or receipt) timestamp
        remote: True when received through a broker notification
        received_at: ISO-8601 receipt timestamp for remote records
        deleted_at: ISO-8601 soft-delete timestamp, if soft-deleted
    """

    id: str
    name: str
    gender_local: str
    gender_canonical: str
    birth_date: Optional[str]
    source: str
    created_at: str
    local_id: Optional[str] = None
    status: str = RecordStatus.ACTIVE.value
    remote: bool = False
    received_at: Optional[str] = None
    deleted_at: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        record: dict[str, Any] = {"id": self.id}
        if self.local_id is not None:
            record["localId"] = self.local_id
        if self.remote:
            record["remote"] = True
        record.update({
            "name": self.name,
            "gender_local": self.gender_local,
            "gender_canonical": self.gender_canonical,
            "birthDate": self.birth_date,
            "source": self.source,
            "status": self.status,
            "createdAt": self.created_at,
        })
        if self.received_at:
            record["receivedAt"] = self.received_at
        if self.deleted_at:
            record["deletedAt"] = self.deleted_at
        return record

    def to_resource(self, source_hospital: str) -> dict[str, Any]:
        """Build the canonical resource a node sends to the broker."""
        meta = {"sourceLocalId": self.local_id, "sourceHospital": source_hospital}
        return patient_resource(
            self.id, self.name, self.gender_canonical, self.birth_date, meta
        )


def patient_resource(
    patient_id: str,
    name: str,
    gender: str,
    birth_date: Optional[str],
    meta: dict[str, Any],
) -> dict[str, Any]:
    """Assemble a FHIR-like Patient resource."""
    return {
        "resourceType": PATIENT_RESOURCE_TYPE,
        "id": patient_id,
        "name": [{"text": name}],
        "gender": gender,
        "birthDate": birth_date,
        "meta": meta,
    }


def is_patient_resource(payload: Any) -> bool:
    """True if payload is a JSON object with resourceType "Patient"."""
    return isinstance(payload, dict) and payload.get("resourceType") == PATIENT_RESOURCE_TYPE


def resource_display_name(resource: dict[str, Any]) -> str:
    """Return the trimmed ``name[0].text`` of a resource, or "Unknown"."""
    names = resource.get("name")
    if isinstance(names, list) and names and isinstance(names[0], dict):
        text = names[0].get("text")
        if text is not None and str(text).strip():
            return str(text).strip()
    return "Unknown"
