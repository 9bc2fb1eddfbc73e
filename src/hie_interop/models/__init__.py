"""Models module.

This module provides data models and dataclasses for the application.
"""

from hie_interop.models.patient import (
    CanonicalGender,
    CanonicalPatient,
    LocalPatient,
    RecordStatus,
    is_patient_resource,
    patient_resource,
    resource_display_name,
)
from hie_interop.models.portal import (
    DEFAULT_USERS,
    Diagnosis,
    Encounter,
    LabResult,
    PortalPatient,
    Prescription,
    RadiologyReport,
    Role,
    User,
)

__all__ = [
    "CanonicalGender",
    "CanonicalPatient",
    "LocalPatient",
    "RecordStatus",
    "is_patient_resource",
    "patient_resource",
    "resource_display_name",
    "DEFAULT_USERS",
    "Diagnosis",
    "Encounter",
    "LabResult",
    "PortalPatient",
    "Prescription",
    "RadiologyReport",
    "Role",
    "User",
]
