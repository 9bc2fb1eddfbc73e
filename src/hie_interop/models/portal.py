"""Clinical-workflow portal data models.

The portal is independent of the broker and nodes: its patients use a
first/last name split and its clinical records reference them by
``patientId``. Codes are carried verbatim (LOINC for labs, ICD-10 for
diagnoses, NDC for prescriptions, a DICOM study id for radiology).
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Optional


class Role(str, Enum):
    """Portal user roles."""

    NURSE = "nurse"
    DOCTOR = "doctor"
    LAB = "lab"
    RADIOLOGY = "radiology"
    PHARMACY = "pharmacy"


def _to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


class PortalRecord:
    """Mixin serialising snake_case dataclass fields to camelCase JSON keys."""

    def to_dict(self) -> dict[str, Any]:
        return {_to_camel(key): value for key, value in asdict(self).items()}


@dataclass
class User(PortalRecord):
    """Portal login; the password is stored and compared in plaintext."""

    id: str
    username: str
    password: str
    role: str
    name: str


# Seeded on first start, one user per role
DEFAULT_USERS: list[dict[str, str]] = [
    User("nurse001", "nurse", "nurse123", Role.NURSE.value, "Jane Nurse").to_dict(),
    User("doctor001", "doctor", "doctor123", Role.DOCTOR.value, "Dr. Smith").to_dict(),
    User("lab001", "lab", "lab123", Role.LAB.value, "Lab Tech").to_dict(),
    User("radiology001", "radiology", "radiology123", Role.RADIOLOGY.value, "Radiology Tech").to_dict(),
    User("pharmacy001", "pharmacy", "pharmacy123", Role.PHARMACY.value, "Pharmacist").to_dict(),
]


@dataclass
class PortalPatient(PortalRecord):
    """Registered portal patient."""

    id: str
    first_name: str
    last_name: str
    date_of_birth: str
    gender: str
    phone: str
    address: str
    emergency_contact: str
    registered_at: str
    registered_by: str
    status: str = "active"


@dataclass
class Encounter(PortalRecord):
    """A visit or admission."""

    id: str
    patient_id: str
    encounter_type: str
    reason: str
    notes: str
    started_at: str
    recorded_by: str
    status: str = "open"


@dataclass
class LabResult(PortalRecord):
    """Lab observation keyed by LOINC code."""

    id: str
    patient_id: str
    test_name: str
    loinc_code: str
    result: str
    unit: str
    normal_range: str
    notes: str
    performed_at: str
    performed_by: str
    status: str = "completed"


@dataclass
class RadiologyReport(PortalRecord):
    """Radiology report referencing a DICOM study."""

    id: str
    patient_id: str
    study_type: str
    dicom_study_id: str
    findings: str
    impression: str
    recommendations: str
    reported_at: str
    reported_by: str
    status: str = "completed"


@dataclass
class Diagnosis(PortalRecord):
    """Diagnosis keyed by ICD-10 code."""

    id: str
    patient_id: str
    icd10_code: str
    description: str
    severity: str
    notes: str
    treatment_plan: str
    diagnosed_at: str
    diagnosed_by: str
    status: str = "active"


@dataclass
class Prescription(PortalRecord):
    """Medication order keyed by NDC code.

    ``dispensed`` flips to True exactly once, when a pharmacist dispenses it.
    """

    id: str
    patient_id: str
    medication_name: str
    ndc_code: str
    dosage: str
    frequency: Optional[str]
    duration: str
    instructions: str
    prescribed_at: str
    prescribed_by: str
    status: str = "active"
    dispensed: bool = False
    dispensed_at: Optional[str] = None
    dispensed_by: Optional[str] = None
