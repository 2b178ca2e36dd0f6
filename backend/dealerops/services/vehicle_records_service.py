# Overview: Service-layer operations for vehicle sub-records (expenses, notes, images, dispatch, assessments).

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.datastructures import FileStorage

from ..extensions import db
from ..models import (
    Vehicle,
    VehicleAssessment,
    VehicleDispatch,
    VehicleExpense,
    VehicleImage,
    VehicleNote,
)
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    parse_money,
    validate_payload,
)
from . import storage_service


EXPENSE_POLICY = ModelValidationPolicy(
    writable_fields={"expense_description", "expense_date", "cost", "notes"},
)

NOTE_POLICY = ModelValidationPolicy(writable_fields={"note_text"})

DISPATCH_POLICY = ModelValidationPolicy(
    writable_fields={
        "location", "transport_company", "transport_cost", "address", "state",
        "zip", "ac_assign_carrier", "notes", "file_url", "file_name",
    },
    required_on_create={"location", "transport_company"},
    aliases={
        "transportCompany": "transport_company",
        "transportCost": "transport_cost",
        "acAssignCarrier": "ac_assign_carrier",
        "fileUrl": "file_url",
        "fileName": "file_name",
    },
)

ASSESSMENT_POLICY = ModelValidationPolicy(
    writable_fields={
        "assessment_date", "assessment_time", "conducted_name", "miles_in", "color",
        "cr_number", "damage_markers", "pre_accident_defects", "other_defects",
        "work_requested", "owner_instructions", "fuel_level", "assessment_file_url",
        "assessment_file_name", "images",
    },
    required_on_create={"assessment_date", "assessment_time", "conducted_name"},
)


def _require_vehicle(vehicle_id: int) -> Vehicle:
    vehicle = db.session.get(Vehicle, vehicle_id)
    if not vehicle:
        raise NotFoundError("Vehicle not found")
    return vehicle


def _get_child(model, vehicle_id: int, record_id: int, label: str):
    record = db.session.query(model).filter_by(id=record_id, vehicle_id=vehicle_id).first()
    if not record:
        raise NotFoundError(f"{label} not found")
    return record


# -- Expenses --

def _expense_patch(payload: dict, *, partial: bool) -> dict:
    if not partial:
        if not (payload.get("expense_description") or "").strip():
            raise ValidationError("Expense description is required")
        if not payload.get("expense_date"):
            raise ValidationError("Expense date is required")
    if not partial or "cost" in payload:
        try:
            cost = parse_money(payload.get("cost"), "cost")
        except ValidationError:
            raise ValidationError("Valid cost is required")
        if cost is None or cost < 0:
            raise ValidationError("Valid cost is required")
    return validate_payload(model=VehicleExpense, payload=payload, policy=EXPENSE_POLICY, partial=partial)


def list_expenses(*, vehicle_id: int) -> list[VehicleExpense]:
    _require_vehicle(vehicle_id)
    return (
        db.session.query(VehicleExpense)
        .filter_by(vehicle_id=vehicle_id)
        .order_by(VehicleExpense.expense_date.desc(), VehicleExpense.id.desc())
        .all()
    )


def create_expense(*, vehicle_id: int, payload: dict, created_by: int | None) -> VehicleExpense:
    _require_vehicle(vehicle_id)
    patch = _expense_patch(payload, partial=False)
    expense = VehicleExpense(vehicle_id=vehicle_id, created_by=created_by, **patch)
    db.session.add(expense)
    db.session.commit()
    return expense


def update_expense(*, vehicle_id: int, expense_id: int, payload: dict) -> VehicleExpense:
    expense = _get_child(VehicleExpense, vehicle_id, expense_id, "Expense")
    patch = _expense_patch(payload, partial=True)
    for k, v in patch.items():
        setattr(expense, k, v)
    db.session.commit()
    return expense


def delete_expense(*, vehicle_id: int, expense_id: int) -> None:
    expense = _get_child(VehicleExpense, vehicle_id, expense_id, "Expense")
    db.session.delete(expense)
    db.session.commit()


# -- Notes --

def _note_patch(payload: dict) -> dict:
    if not (payload.get("note_text") or "").strip():
        raise ValidationError("Note text is required")
    return validate_payload(model=VehicleNote, payload=payload, policy=NOTE_POLICY, partial=True)


def list_notes(*, vehicle_id: int) -> list[VehicleNote]:
    _require_vehicle(vehicle_id)
    return (
        db.session.query(VehicleNote)
        .filter_by(vehicle_id=vehicle_id)
        .order_by(VehicleNote.created_at.desc(), VehicleNote.id.desc())
        .all()
    )


def create_note(*, vehicle_id: int, payload: dict, created_by: int | None) -> VehicleNote:
    _require_vehicle(vehicle_id)
    note = VehicleNote(vehicle_id=vehicle_id, created_by=created_by, **_note_patch(payload))
    db.session.add(note)
    db.session.commit()
    return note


def update_note(*, vehicle_id: int, note_id: int, payload: dict) -> VehicleNote:
    note = _get_child(VehicleNote, vehicle_id, note_id, "Note")
    note.note_text = _note_patch(payload)["note_text"]
    db.session.commit()
    return note


def delete_note(*, vehicle_id: int, note_id: int) -> None:
    note = _get_child(VehicleNote, vehicle_id, note_id, "Note")
    db.session.delete(note)
    db.session.commit()


# -- Images --

def list_images(*, vehicle_id: int) -> list[VehicleImage]:
    _require_vehicle(vehicle_id)
    return (
        db.session.query(VehicleImage)
        .filter_by(vehicle_id=vehicle_id)
        .order_by(VehicleImage.created_at.desc(), VehicleImage.id.desc())
        .all()
    )


def upload_image(*, vehicle_id: int, file: FileStorage | None, uploaded_by: int | None) -> VehicleImage:
    """
    Store the file in the vehicle-images bucket, then record it.

    If the database insert fails the stored file is removed again.
    """
    _require_vehicle(vehicle_id)
    ext, size = storage_service.validate_upload(
        file,
        allowed_types=storage_service.IMAGE_CONTENT_TYPES,
        allowed_extensions=storage_service.IMAGE_EXTENSIONS,
        max_bytes=storage_service.MAX_IMAGE_BYTES,
    )
    stored = storage_service.store_file(
        storage_service.VEHICLE_IMAGES_BUCKET, str(vehicle_id), file, ext=ext, size=size
    )

    try:
        image = VehicleImage(
            vehicle_id=vehicle_id,
            file_name=stored.original_name,
            file_url=stored.url,
            storage_path=stored.path,
            file_size=stored.size,
            file_type=stored.content_type,
            uploaded_by=uploaded_by,
        )
        db.session.add(image)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        if not storage_service.remove_file(stored.bucket, stored.path):
            current_app.logger.warning("Stored image %s was already gone during cleanup", stored.path)
        raise

    return image


def delete_image(*, vehicle_id: int, image_id: int) -> None:
    image = _get_child(VehicleImage, vehicle_id, image_id, "Image")
    path = image.storage_path
    db.session.delete(image)
    db.session.commit()
    if not storage_service.remove_file(storage_service.VEHICLE_IMAGES_BUCKET, path):
        current_app.logger.warning("Image file %s missing from storage", path)


# -- Dispatch --

def list_dispatches(*, vehicle_id: int) -> list[VehicleDispatch]:
    _require_vehicle(vehicle_id)
    return (
        db.session.query(VehicleDispatch)
        .filter_by(vehicle_id=vehicle_id)
        .order_by(VehicleDispatch.created_at.desc(), VehicleDispatch.id.desc())
        .all()
    )


def create_dispatch(*, vehicle_id: int, payload: dict, created_by: int | None) -> VehicleDispatch:
    _require_vehicle(vehicle_id)
    try:
        patch = validate_payload(model=VehicleDispatch, payload=payload, policy=DISPATCH_POLICY, partial=False)
    except ValidationError as e:
        if str(e).startswith("Missing required fields"):
            raise ValidationError("Location and transport company are required")
        raise
    dispatch = VehicleDispatch(vehicle_id=vehicle_id, created_by=created_by, **patch)
    db.session.add(dispatch)
    db.session.commit()
    return dispatch


def update_dispatch(*, vehicle_id: int, dispatch_id: int, payload: dict) -> VehicleDispatch:
    dispatch = _get_child(VehicleDispatch, vehicle_id, dispatch_id, "Dispatch")
    patch = validate_payload(model=VehicleDispatch, payload=payload, policy=DISPATCH_POLICY, partial=True)
    for k, v in patch.items():
        setattr(dispatch, k, v)
    db.session.commit()
    return dispatch


def delete_dispatch(*, vehicle_id: int, dispatch_id: int) -> None:
    dispatch = _get_child(VehicleDispatch, vehicle_id, dispatch_id, "Dispatch")
    db.session.delete(dispatch)
    db.session.commit()


def upload_dispatch_document(*, vehicle_id: int, file: FileStorage | None) -> dict:
    """Store a dispatch document; the caller attaches the URL to a dispatch."""
    _require_vehicle(vehicle_id)
    ext, size = storage_service.validate_upload(
        file,
        allowed_types=storage_service.IMAGE_CONTENT_TYPES,
        allowed_extensions=storage_service.IMAGE_EXTENSIONS,
        max_bytes=storage_service.MAX_IMAGE_BYTES,
    )
    stored = storage_service.store_file(
        storage_service.VEHICLE_DOCUMENTS_BUCKET, f"dispatch-{vehicle_id}", file, ext=ext, size=size
    )
    return {"file_url": stored.url, "file_name": stored.original_name}


# -- Assessments --

def list_assessments(*, vehicle_id: int) -> list[VehicleAssessment]:
    _require_vehicle(vehicle_id)
    return (
        db.session.query(VehicleAssessment)
        .filter_by(vehicle_id=vehicle_id)
        .order_by(VehicleAssessment.assessment_date.desc(), VehicleAssessment.id.desc())
        .all()
    )


def create_assessment(*, vehicle_id: int, payload: dict, created_by: int | None) -> VehicleAssessment:
    _require_vehicle(vehicle_id)
    try:
        patch = validate_payload(model=VehicleAssessment, payload=payload, policy=ASSESSMENT_POLICY, partial=False)
    except ValidationError as e:
        if str(e).startswith("Missing required fields"):
            raise ValidationError("Assessment date, time, and conducted name are required")
        raise
    assessment = VehicleAssessment(
        vehicle_id=vehicle_id,
        created_by=created_by,
        status="Completed",
        **patch,
    )
    db.session.add(assessment)
    db.session.commit()
    return assessment


def update_assessment(*, vehicle_id: int, assessment_id: int, payload: dict) -> VehicleAssessment:
    assessment = _get_child(VehicleAssessment, vehicle_id, assessment_id, "Assessment")
    patch = validate_payload(model=VehicleAssessment, payload=payload, policy=ASSESSMENT_POLICY, partial=True)
    for k, v in patch.items():
        setattr(assessment, k, v)
    db.session.commit()
    return assessment


def delete_assessment(*, vehicle_id: int, assessment_id: int) -> None:
    assessment = _get_child(VehicleAssessment, vehicle_id, assessment_id, "Assessment")
    db.session.delete(assessment)
    db.session.commit()
