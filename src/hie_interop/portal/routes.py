"""Clinical-workflow portal endpoints.

Registration, role-shaped patient views, clinical records (encounters, lab
results, radiology reports, diagnoses, prescriptions), dispensing and a
per-patient workflow summary. Every endpoint except ``/api/health`` requires
credential headers; most also require one of a fixed set of roles.
"""

import logging
from typing import Any, Iterable, Optional

from flask import Blueprint, Response, jsonify, request

from hie_interop.interop import find_duplicate_portal_patient
from hie_interop.logging_audit import log_audit_event
from hie_interop.models import (
    Diagnosis,
    Encounter,
    LabResult,
    PortalPatient,
    Prescription,
    RadiologyReport,
    Role,
)
from hie_interop.portal.auth import authenticate, current_user, require_role
from hie_interop.service import get_context, json_body
from hie_interop.storage import StoreData, find_by_id
from hie_interop.utils.exceptions import NotFoundError, ValidationError
from hie_interop.utils.ids import (
    generate_dicom_study_id,
    generate_encounter_id,
    generate_patient_id,
    generate_record_id,
    utc_timestamp,
)

portal_bp = Blueprint("portal", __name__, url_prefix="/api")

logger = logging.getLogger(__name__)

NURSE_VIEW_FIELDS = ("id", "firstName", "lastName", "dateOfBirth", "gender", "phone", "status")
NURSE_SEARCH_FIELDS = ("id", "firstName", "lastName", "dateOfBirth", "status")
MINIMAL_VIEW_FIELDS = ("id", "firstName", "lastName", "status")

CLINICAL_COLLECTIONS = ("encounters", "labResults", "radiologyReports", "diagnoses", "prescriptions")

# Collection each non-doctor clinical role sees alongside the minimal view
ROLE_COLLECTIONS = {
    Role.LAB.value: "labResults",
    Role.RADIOLOGY.value: "radiologyReports",
    Role.PHARMACY.value: "prescriptions",
}


def _request_body() -> dict[str, Any]:
    body = json_body()
    return body if isinstance(body, dict) else {}


def _require_fields(body: dict[str, Any], fields: Iterable[str], message: Optional[str] = None) -> None:
    """Raise ValidationError unless every field is present and non-empty."""
    if any(not body.get(name) for name in fields):
        raise ValidationError(message or "Missing required fields")


def _project(record: dict[str, Any], fields: Iterable[str]) -> dict[str, Any]:
    return {name: record.get(name) for name in fields}


def _for_patient(data: StoreData, collection: str, patient_id: str) -> list[dict[str, Any]]:
    return [r for r in data.get(collection, []) if r.get("patientId") == patient_id]


def _load_patient(data: StoreData, patient_id: str) -> dict[str, Any]:
    patient = find_by_id(data["patients"], patient_id)
    if patient is None:
        raise NotFoundError("Patient not found")
    return patient


def _append(collection: str, patient_id: str, record: dict[str, Any]) -> None:
    """Append a clinical record after checking its patient exists."""
    store = get_context().store
    data = store.read()
    _load_patient(data, patient_id)
    data[collection].append(record)
    store.write(data)


@portal_bp.route("/patients/register", methods=["POST"])
@authenticate
@require_role(Role.NURSE, Role.DOCTOR)
def register_patient() -> Response:
    """Register a patient unless one with the same names and birth date exists.

    Returns:
        ``{success, patientId, message}`` for a new patient or
        ``{exists: true, patientId, message}`` for a duplicate
    """
    body = _request_body()
    _require_fields(
        body,
        ("firstName", "lastName", "dateOfBirth"),
        "Missing required fields: firstName, lastName, dateOfBirth",
    )
    user = current_user()

    store = get_context().store
    data = store.read()
    existing = find_duplicate_portal_patient(
        data["patients"], body["firstName"], body["lastName"], body["dateOfBirth"]
    )
    if existing:
        log_audit_event("portal.patient.duplicate", {"existingId": existing["id"]})
        return jsonify({
            "exists": True,
            "patientId": existing["id"],
            "message": "Patient already exists in system",
        })

    patient = PortalPatient(
        id=generate_patient_id(),
        first_name=body["firstName"],
        last_name=body["lastName"],
        date_of_birth=body["dateOfBirth"],
        gender=body.get("gender") or "unknown",
        phone=body.get("phone") or "",
        address=body.get("address") or "",
        emergency_contact=body.get("emergencyContact") or "",
        registered_at=utc_timestamp(),
        registered_by=user["id"],
    )
    data["patients"].append(patient.to_dict())
    store.write(data)

    log_audit_event("portal.patient.registered", {"id": patient.id, "registeredBy": user["id"]})
    return jsonify({
        "success": True,
        "patientId": patient.id,
        "message": "Patient registered successfully",
    })


@portal_bp.route("/patients/<patient_id>", methods=["GET"])
@authenticate
def get_patient(patient_id: str) -> Response:
    """Return the patient shaped for the caller's role.

    - nurse: basic demographics
    - doctor: the full record plus every clinical collection
    - lab / radiology / pharmacy: minimal identity plus that role's records
    """
    user = current_user()
    data = get_context().store.read()
    patient = _load_patient(data, patient_id)
    role = user.get("role")

    if role == Role.NURSE.value:
        view = _project(patient, NURSE_VIEW_FIELDS)
    elif role == Role.DOCTOR.value:
        view = dict(patient)
        for collection in CLINICAL_COLLECTIONS:
            view[collection] = _for_patient(data, collection, patient_id)
    else:
        view = _project(patient, MINIMAL_VIEW_FIELDS)
        collection = ROLE_COLLECTIONS.get(role)
        if collection:
            view[collection] = _for_patient(data, collection, patient_id)

    log_audit_event("portal.patient.accessed", {
        "id": patient_id,
        "accessedBy": user["id"],
        "role": role,
    })
    return jsonify(view)


@portal_bp.route("/patients", methods=["GET"])
@authenticate
def search_patients() -> Response:
    """Search by substring of first name, last name or id, and by exact status."""
    patients = list(get_context().store.read()["patients"])

    search = request.args.get("search")
    if search:
        term = search.lower()
        patients = [
            p for p in patients
            if any(term in str(p.get(key) or "").lower() for key in ("firstName", "lastName", "id"))
        ]

    status = request.args.get("status")
    if status:
        patients = [p for p in patients if p.get("status") == status]

    if current_user().get("role") == Role.NURSE.value:
        patients = [_project(p, NURSE_SEARCH_FIELDS) for p in patients]

    return jsonify({"total": len(patients), "patients": patients})


@portal_bp.route("/encounters", methods=["POST"])
@authenticate
@require_role(Role.NURSE, Role.DOCTOR)
def record_encounter() -> Response:
    body = _request_body()
    _require_fields(body, ("patientId", "encounterType"))
    user = current_user()

    encounter = Encounter(
        id=generate_encounter_id(),
        patient_id=body["patientId"],
        encounter_type=body["encounterType"],
        reason=body.get("reason") or "",
        notes=body.get("notes") or "",
        started_at=utc_timestamp(),
        recorded_by=user["id"],
    )
    _append("encounters", encounter.patient_id, encounter.to_dict())

    log_audit_event("portal.encounter.recorded", {
        "id": encounter.id,
        "patientId": encounter.patient_id,
        "recordedBy": user["id"],
    })
    return jsonify({"success": True, "encounterId": encounter.id})


@portal_bp.route("/patients/<patient_id>/encounters", methods=["GET"])
@authenticate
@require_role(Role.NURSE, Role.DOCTOR)
def list_encounters(patient_id: str) -> Response:
    data = get_context().store.read()
    _load_patient(data, patient_id)
    encounters = _for_patient(data, "encounters", patient_id)
    return jsonify({"total": len(encounters), "encounters": encounters})


@portal_bp.route("/lab-results", methods=["POST"])
@authenticate
@require_role(Role.LAB, Role.DOCTOR)
def add_lab_result() -> Response:
    """Record a lab observation identified by its LOINC code."""
    body = _request_body()
    _require_fields(body, ("patientId", "testName", "loincCode", "result"))
    user = current_user()

    lab_result = LabResult(
        id=generate_record_id(),
        patient_id=body["patientId"],
        test_name=body["testName"],
        loinc_code=body["loincCode"],
        result=body["result"],
        unit=body.get("unit") or "",
        normal_range=body.get("normalRange") or "",
        notes=body.get("notes") or "",
        performed_at=utc_timestamp(),
        performed_by=user["id"],
    )
    _append("labResults", lab_result.patient_id, lab_result.to_dict())

    log_audit_event("portal.lab.resultAdded", {
        "patientId": lab_result.patient_id,
        "loincCode": lab_result.loinc_code,
        "performedBy": user["id"],
    })
    return jsonify({"success": True, "labResultId": lab_result.id})


@portal_bp.route("/radiology-reports", methods=["POST"])
@authenticate
@require_role(Role.RADIOLOGY, Role.DOCTOR)
def add_radiology_report() -> Response:
    """Record a radiology report; a DICOM study id is generated when none is given."""
    body = _request_body()
    _require_fields(body, ("patientId", "studyType", "findings"))
    user = current_user()

    report = RadiologyReport(
        id=generate_record_id(),
        patient_id=body["patientId"],
        study_type=body["studyType"],
        dicom_study_id=body.get("dicomStudyId") or generate_dicom_study_id(),
        findings=body["findings"],
        impression=body.get("impression") or "",
        recommendations=body.get("recommendations") or "",
        reported_at=utc_timestamp(),
        reported_by=user["id"],
    )
    _append("radiologyReports", report.patient_id, report.to_dict())

    log_audit_event("portal.radiology.reportAdded", {
        "patientId": report.patient_id,
        "studyType": report.study_type,
        "reportedBy": user["id"],
    })
    return jsonify({"success": True, "reportId": report.id})


@portal_bp.route("/diagnoses", methods=["POST"])
@authenticate
@require_role(Role.DOCTOR)
def add_diagnosis() -> Response:
    body = _request_body()
    _require_fields(body, ("patientId", "icd10Code", "description"))
    user = current_user()

    diagnosis = Diagnosis(
        id=generate_record_id(),
        patient_id=body["patientId"],
        icd10_code=body["icd10Code"],
        description=body["description"],
        severity=body.get("severity") or "moderate",
        notes=body.get("notes") or "",
        treatment_plan=body.get("treatmentPlan") or "",
        diagnosed_at=utc_timestamp(),
        diagnosed_by=user["id"],
    )
    _append("diagnoses", diagnosis.patient_id, diagnosis.to_dict())

    log_audit_event("portal.diagnosis.added", {
        "patientId": diagnosis.patient_id,
        "icd10Code": diagnosis.icd10_code,
        "diagnosedBy": user["id"],
    })
    return jsonify({"success": True, "diagnosisId": diagnosis.id})


@portal_bp.route("/prescriptions", methods=["POST"])
@authenticate
@require_role(Role.DOCTOR)
def add_prescription() -> Response:
    body = _request_body()
    _require_fields(body, ("patientId", "medicationName", "ndcCode", "dosage"))
    user = current_user()

    prescription = Prescription(
        id=generate_record_id(),
        patient_id=body["patientId"],
        medication_name=body["medicationName"],
        ndc_code=body["ndcCode"],
        dosage=body["dosage"],
        frequency=body.get("frequency"),
        duration=body.get("duration") or "",
        instructions=body.get("instructions") or "",
        prescribed_at=utc_timestamp(),
        prescribed_by=user["id"],
    )
    _append("prescriptions", prescription.patient_id, prescription.to_dict())

    log_audit_event("portal.prescription.created", {
        "patientId": prescription.patient_id,
        "ndcCode": prescription.ndc_code,
        "prescribedBy": user["id"],
    })
    return jsonify({"success": True, "prescriptionId": prescription.id})


@portal_bp.route("/prescriptions/<prescription_id>/dispense", methods=["POST"])
@authenticate
@require_role(Role.PHARMACY)
def dispense_prescription(prescription_id: str) -> Response:
    """Mark a prescription dispensed; a prescription can be dispensed only once."""
    user = current_user()
    store = get_context().store
    data = store.read()
    prescription = find_by_id(data["prescriptions"], prescription_id)
    if prescription is None:
        raise NotFoundError("Prescription not found")
    if prescription.get("dispensed"):
        raise ValidationError("Prescription already dispensed")

    prescription["dispensed"] = True
    prescription["dispensedAt"] = utc_timestamp()
    prescription["dispensedBy"] = user["id"]
    store.write(data)

    log_audit_event("portal.prescription.dispensed", {
        "id": prescription_id,
        "dispensedBy": user["id"],
    })
    return jsonify({"success": True, "message": "Prescription dispensed successfully"})


def _step(records: list[dict[str, Any]], timestamp_key: str) -> dict[str, Any]:
    return {
        "completed": bool(records),
        "count": len(records),
        "latest": records[-1].get(timestamp_key) if records else None,
    }


def next_workflow_step(steps: dict[str, Any], pending_dispensing: int) -> str:
    """Return the first incomplete step of lab -> radiology -> diagnosis -> prescription -> dispensing."""
    if not steps["labTests"]["completed"]:
        return "Complete lab tests"
    if not steps["radiology"]["completed"]:
        return "Complete radiology studies"
    if not steps["diagnosis"]["completed"]:
        return "Provide diagnosis"
    if not steps["prescription"]["completed"]:
        return "Prescribe medications"
    if pending_dispensing > 0:
        return f"Dispense {pending_dispensing} pending prescription(s)"
    return "Patient care cycle complete"


@portal_bp.route("/patients/<patient_id>/workflow-status", methods=["GET"])
@authenticate
@require_role(Role.DOCTOR, Role.NURSE)
def workflow_status(patient_id: str) -> Response:
    """Summarise which care steps are done for a patient and what comes next."""
    data = get_context().store.read()
    patient = _load_patient(data, patient_id)

    prescriptions = _for_patient(data, "prescriptions", patient_id)
    dispensed = sum(1 for p in prescriptions if p.get("dispensed"))
    steps = {
        "registration": {"completed": True, "completedAt": patient.get("registeredAt")},
        "labTests": _step(_for_patient(data, "labResults", patient_id), "performedAt"),
        "radiology": _step(_for_patient(data, "radiologyReports", patient_id), "reportedAt"),
        "diagnosis": _step(_for_patient(data, "diagnoses", patient_id), "diagnosedAt"),
        "prescription": {
            "completed": bool(prescriptions),
            "count": len(prescriptions),
            "dispensed": dispensed,
        },
    }

    return jsonify({
        "patientId": patient_id,
        "patientName": f"{patient.get('firstName')} {patient.get('lastName')}",
        "steps": steps,
        "nextSteps": [next_workflow_step(steps, len(prescriptions) - dispensed)],
    })
