"""Broker endpoints: canonical patient intake, soft delete and search."""

import logging
from typing import Any, Optional

from flask import Blueprint, Response, jsonify, request

from hie_interop.interop import Notifier, PatientQuery, filter_patients, find_duplicate
from hie_interop.logging_audit import log_audit_event
from hie_interop.models import (
    CanonicalGender,
    CanonicalPatient,
    RecordStatus,
    is_patient_resource,
    resource_display_name,
)
from hie_interop.service import get_context, json_body
from hie_interop.storage import find_by_id
from hie_interop.utils.exceptions import NotFoundError, ValidationError
from hie_interop.utils.ids import generate_patient_id, utc_timestamp

broker_bp = Blueprint("broker", __name__)

logger = logging.getLogger(__name__)

SOFT_DELETE_ACTION = "soft-delete"


def _notifier() -> Optional[Notifier]:
    return get_context().settings.get("notifier")


@broker_bp.route("/fhir/Patient", methods=["POST"])
def create_patient() -> Response:
    """Accept a Patient resource, dedup it and fan it out to every node.

    Returns:
        ``{ok, stored: true, id}`` for a new record or
        ``{ok, stored: false, duplicateOf}`` when the person already exists

    Raises:
        ValidationError: If the body is not a Patient resource
    """
    resource = json_body()
    if not is_patient_resource(resource):
        raise ValidationError("invalid patient resource")

    meta = resource.get("meta")
    if meta is not None and not isinstance(meta, dict):
        raise ValidationError("invalid patient resource")

    name = resource_display_name(resource)
    birth_date = resource.get("birthDate") or None

    store = get_context().store
    data = store.read()
    duplicate = find_duplicate(data["patients"], name, birth_date)
    if duplicate:
        log_audit_event("hie.patient.dedup", {
            "existingId": duplicate["id"],
            "name": name,
            "birthDate": birth_date,
        })
        return jsonify({"ok": True, "stored": False, "duplicateOf": duplicate["id"]})

    now = utc_timestamp()
    patient = CanonicalPatient(
        id=str(resource["id"]) if resource.get("id") else generate_patient_id(numeric=True),
        name=name,
        gender=CanonicalGender.parse(resource.get("gender")).value,
        birth_date=birth_date,
        meta=dict(meta or {}),
        created_at=now,
        updated_at=now,
    )
    data["patients"].append(patient.to_dict())
    store.write(data)
    log_audit_event("hie.patient.created", {"id": patient.id, "name": patient.name})

    notifier = _notifier()
    if notifier is not None:
        notifier.notify_all(patient.to_resource(), record_id=patient.id, event="notify")

    return jsonify({"ok": True, "stored": True, "id": patient.id})


@broker_bp.route("/fhir/Patient/<patient_id>", methods=["GET"])
def read_patient(patient_id: str) -> Response:
    """Return the stored record as a Patient resource."""
    record = find_by_id(get_context().store.read()["patients"], patient_id)
    if record is None:
        raise NotFoundError("not found")
    return jsonify(CanonicalPatient.from_dict(record).to_resource())


def soft_delete_patient(patient_id: str) -> dict[str, Any]:
    """Mark a patient inactive and notify every node of the status change.

    Deleting an already-inactive record returns it unchanged without
    rewriting the store or notifying anyone.

    Args:
        patient_id: Broker patient id

    Returns:
        The stored record after the status flip

    Raises:
        NotFoundError: If no record has this id
    """
    store = get_context().store
    data = store.read()
    record = find_by_id(data["patients"], patient_id)
    if record is None:
        raise NotFoundError("not found")
    if record.get("status") == RecordStatus.INACTIVE.value:
        return record

    now = utc_timestamp()
    record["status"] = RecordStatus.INACTIVE.value
    record["deletedAt"] = now
    record["updatedAt"] = now
    store.write(data)
    log_audit_event("hie.patient.softDelete", {"id": patient_id})

    notifier = _notifier()
    if notifier is not None:
        patient = CanonicalPatient.from_dict(record)
        notifier.notify_all(
            patient.to_resource(action=SOFT_DELETE_ACTION),
            record_id=patient.id,
            event="notify.delete",
        )
    return record


@broker_bp.route("/patients/<patient_id>", methods=["DELETE"])
@broker_bp.route("/fhir/Patient/<patient_id>", methods=["DELETE"])
def delete_patient(patient_id: str) -> Response:
    record = soft_delete_patient(patient_id)
    return jsonify({"ok": True, "id": record["id"], "status": record["status"]})


@broker_bp.route("/patients", methods=["GET"])
def search_patients() -> Response:
    """Search canonical patients by name, gender, status and ``since``."""
    query = PatientQuery.from_args(request.args)
    results = filter_patients(get_context().store.read()["patients"], query)
    logger.debug(f"Patient search {query} matched {len(results)} record(s)")
    return jsonify({"total": len(results), "patients": results})
