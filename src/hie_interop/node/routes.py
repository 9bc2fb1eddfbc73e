"""Hospital node endpoints: local intake, broker notifications, lookup and search."""

import logging
from typing import Any, Optional

from flask import Blueprint, Response, jsonify, request

from hie_interop.config.schema import NodeConfig
from hie_interop.interop import GenderMapping, Notifier, PatientQuery, filter_patients, find_duplicate
from hie_interop.logging_audit import log_audit_event
from hie_interop.models import (
    CanonicalGender,
    LocalPatient,
    RecordStatus,
    is_patient_resource,
    resource_display_name,
)
from hie_interop.service import get_context, json_body
from hie_interop.storage import find_by_id
from hie_interop.utils.exceptions import NotFoundError, ValidationError
from hie_interop.utils.ids import (
    generate_local_id,
    generate_patient_id,
    generate_record_id,
    utc_timestamp,
)

node_bp = Blueprint("node", __name__)

logger = logging.getLogger(__name__)

SOFT_DELETE_ACTION = "soft-delete"
REMOTE_SOURCE_FALLBACK = "HIE"


def _node_config() -> NodeConfig:
    return get_context().settings["config"]


def _mapping() -> GenderMapping:
    return get_context().settings["mapping"]


def _notifier() -> Optional[Notifier]:
    return get_context().settings.get("notifier")


@node_bp.route("/ingest", methods=["POST"])
def ingest_patient() -> Response:
    """Register a patient admitted at this hospital and forward it to the broker.

    The request carries the node's local gender code; the canonical value is
    derived through the node's gender mapping.

    Returns:
        ``{ok, stored: true, patient}`` or ``{ok, stored: false, duplicateOf}``

    Raises:
        ValidationError: If the body has no name
    """
    body = json_body()
    if not isinstance(body, dict) or not body.get("name"):
        raise ValidationError("missing name")

    config = _node_config()
    mapping = _mapping()
    name = str(body["name"]).strip()
    birth_date = body.get("birthDate") or None

    store = get_context().store
    data = store.read()
    duplicate = find_duplicate(data["patients"], name, birth_date, allow_missing_birth_date=True)
    if duplicate:
        log_audit_event("node.patient.dedup", {
            "service": config.name,
            "existingId": duplicate["id"],
        })
        return jsonify({"ok": True, "stored": False, "duplicateOf": duplicate["id"]})

    raw_gender = body.get("gender")
    gender_local = mapping.unknown_code if raw_gender in (None, "") else str(raw_gender)
    patient = LocalPatient(
        id=generate_patient_id(),
        local_id=str(body.get("localId") or generate_local_id()),
        name=name,
        gender_local=gender_local,
        gender_canonical=mapping.to_canonical(gender_local),
        birth_date=birth_date,
        source=config.name,
        created_at=utc_timestamp(),
    )
    data["patients"].append(patient.to_dict())
    store.write(data)
    log_audit_event("node.patient.created", {"service": config.name, "id": patient.id})

    notifier = _notifier()
    if notifier is not None:
        notifier.notify_all(patient.to_resource(config.name), record_id=patient.id)

    return jsonify({"ok": True, "stored": True, "patient": patient.to_dict()})


@node_bp.route("/notify", methods=["POST"])
def receive_notification() -> Response:
    """Store a Patient resource pushed by the broker.

    A resource whose id is already stored is not inserted again; if it is a
    soft-delete notification the local copy is marked inactive instead.

    Returns:
        ``{ok, stored}`` where ``stored`` is true only for a newly inserted record

    Raises:
        ValidationError: If the body is not a Patient resource
    """
    resource = json_body()
    if not is_patient_resource(resource):
        raise ValidationError("invalid patient")

    config = _node_config()
    meta = resource.get("meta") if isinstance(resource.get("meta"), dict) else {}
    patient_id = str(resource["id"]) if resource.get("id") else generate_record_id()

    store = get_context().store
    data = store.read()
    existing = find_by_id(data["patients"], patient_id)
    if existing is not None:
        if meta.get("action") == SOFT_DELETE_ACTION and _mark_inactive(existing, meta.get("deletedAt")):
            store.write(data)
            log_audit_event("node.patient.softDelete", {
                "service": config.name,
                "id": patient_id,
                "source": "notify",
            })
        return jsonify({"ok": True, "stored": False})

    canonical = CanonicalGender.parse(resource.get("gender")).value
    now = utc_timestamp()
    patient = LocalPatient(
        id=patient_id,
        remote=True,
        name=resource_display_name(resource),
        gender_local=_mapping().to_local(canonical),
        gender_canonical=canonical,
        birth_date=resource.get("birthDate") or None,
        source=meta.get("sourceHospital") or REMOTE_SOURCE_FALLBACK,
        created_at=now,
        received_at=now,
    )
    if meta.get("status") == RecordStatus.INACTIVE.value:
        patient.status = RecordStatus.INACTIVE.value
        patient.deleted_at = meta.get("deletedAt") or now

    data["patients"].append(patient.to_dict())
    store.write(data)
    log_audit_event("node.notify.received", {"service": config.name, "id": patient.id})
    return jsonify({"ok": True, "stored": True})


def _mark_inactive(record: dict[str, Any], deleted_at: Optional[str] = None) -> bool:
    """Flip a stored record to inactive; False if it already was."""
    if record.get("status") == RecordStatus.INACTIVE.value:
        return False
    record["status"] = RecordStatus.INACTIVE.value
    record["deletedAt"] = deleted_at or utc_timestamp()
    return True


@node_bp.route("/fhir/Patient/<patient_id>", methods=["GET"])
def read_patient(patient_id: str) -> Response:
    """Return a stored record as a Patient resource carrying the local gender code."""
    record = find_by_id(get_context().store.read()["patients"], patient_id)
    if record is None:
        raise NotFoundError("not found")
    return jsonify({
        "resourceType": "Patient",
        "id": record["id"],
        "name": [{"text": record.get("name")}],
        "gender_local": record.get("gender_local"),
        "gender": record.get("gender_canonical"),
        "birthDate": record.get("birthDate"),
        "meta": {"source": record.get("source")},
    })


@node_bp.route("/patients/<patient_id>", methods=["DELETE"])
def delete_patient(patient_id: str) -> Response:
    """Soft delete a record in this node's store only; nothing is propagated."""
    store = get_context().store
    data = store.read()
    record = find_by_id(data["patients"], patient_id)
    if record is None:
        raise NotFoundError("not found")
    if _mark_inactive(record):
        store.write(data)
        log_audit_event("node.patient.softDelete", {
            "service": _node_config().name,
            "id": patient_id,
        })
    return jsonify({"ok": True, "id": record["id"], "status": record["status"]})


@node_bp.route("/patients", methods=["GET"])
def search_patients() -> Response:
    """Search local and remote records; ``gender`` matches the canonical or local code."""
    query = PatientQuery.from_args(request.args)
    results = filter_patients(
        get_context().store.read()["patients"],
        query,
        gender_keys=("gender_canonical", "gender_local"),
    )
    return jsonify({"total": len(results), "patients": results})
