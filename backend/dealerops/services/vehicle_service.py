# Overview: Service-layer operations for vehicles; encapsulates business logic and database work.

"""
Vehicle inventory operations.

VIN RULES: a VIN, when present, is exactly 17 characters and unique across
all vehicles. Duplicate VINs are reported as validation errors (400), the
way the dashboard expects them.
"""

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import (
    ArbRecord,
    Task,
    TimelineEntry,
    Vehicle,
    VehicleAssessment,
    VehicleDispatch,
    VehicleExpense,
    VehicleImage,
    VehicleNote,
    VehicleStatus,
)
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_vehicle,
    validate_payload,
)
from . import storage_service


VEHICLE_FIELDS = {
    "vin", "year", "make", "model", "trim", "exterior_color", "interior_color",
    "status", "odometer", "title_status", "psi_status", "dealshield_arbitration_status",
    "bought_price", "buy_fee", "sale_invoice", "other_charges", "total_vehicle_cost",
    "sale_date", "lane", "run", "channel", "facilitating_location", "vehicle_location",
    "pickup_location_address1", "pickup_location_city", "pickup_location_state",
    "pickup_location_zip", "pickup_location_phone", "seller_name", "buyer_dealership",
    "buyer_contact_name", "buyer_aa_id", "buyer_reference", "sale_invoice_status",
}

VEHICLE_POLICY = ModelValidationPolicy(
    writable_fields=VEHICLE_FIELDS,
    required_on_create={"make", "model", "year"},
)

DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 500


def get_vehicle(vehicle_id: int) -> Vehicle:
    vehicle = db.session.get(Vehicle, vehicle_id)
    if not vehicle:
        raise NotFoundError("Vehicle not found")
    return vehicle


def _ensure_vin_available(vin: str | None, exclude_id: int | None = None) -> None:
    if not vin:
        return
    query = db.session.query(Vehicle.id).filter(Vehicle.vin == vin)
    if exclude_id is not None:
        query = query.filter(Vehicle.id != exclude_id)
    if query.first():
        raise ValidationError("Vehicle with this VIN already exists")


def _validated_patch(payload: dict, *, partial: bool) -> dict:
    if not partial:
        if not payload.get("make") or not payload.get("model") or not payload.get("year"):
            raise ValidationError("Make, model, and year are required")
    patch = validate_payload(model=Vehicle, payload=payload, policy=VEHICLE_POLICY, partial=partial)
    enforce_rules_vehicle(patch)
    if "status" in patch and patch["status"] not in VehicleStatus.ALL:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(VehicleStatus.ALL)}")
    return patch


def _apply_filters(query, *, status=None, make=None, model=None, year=None, search=None):
    if status:
        query = query.filter(Vehicle.status == status)
    if make:
        query = query.filter(Vehicle.make == make)
    if model:
        query = query.filter(Vehicle.model == model)
    if year:
        query = query.filter(Vehicle.year == year)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(db.or_(
            Vehicle.make.ilike(pattern),
            Vehicle.model.ilike(pattern),
            Vehicle.vin.ilike(pattern),
        ))
    return query


def list_vehicles(
    *,
    page: int = 1,
    limit: int = DEFAULT_PAGE_LIMIT,
    status: str | None = None,
    make: str | None = None,
    model: str | None = None,
    year: int | None = None,
    search: str | None = None,
) -> dict:
    """
    Paginated vehicle list, newest first.

    Returns {data, pagination: {page, limit, total, pages}}.
    """
    page = max(page or 1, 1)
    limit = min(max(limit or DEFAULT_PAGE_LIMIT, 1), MAX_PAGE_LIMIT)

    query = _apply_filters(
        db.session.query(Vehicle),
        status=status, make=make, model=model, year=year, search=search,
    )
    total = query.count()
    rows = (
        query.order_by(Vehicle.created_at.desc(), Vehicle.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "data": [v.to_dict() for v in rows],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit,
        },
    }


def create_vehicle(*, payload: dict, created_by: int | None) -> Vehicle:
    patch = _validated_patch(payload, partial=False)
    _ensure_vin_available(patch.get("vin"))

    vehicle = Vehicle(**patch)
    if not vehicle.status:
        vehicle.status = VehicleStatus.PENDING
    vehicle.created_by = created_by

    db.session.add(vehicle)
    db.session.commit()
    return vehicle


def update_vehicle(*, vehicle_id: int, payload: dict) -> Vehicle:
    vehicle = get_vehicle(vehicle_id)
    patch = _validated_patch(payload, partial=True)
    if "vin" in patch:
        _ensure_vin_available(patch["vin"], exclude_id=vehicle.id)

    for k, v in patch.items():
        setattr(vehicle, k, v)

    db.session.commit()
    return vehicle


def delete_vehicle(*, vehicle_id: int) -> None:
    """
    Hard delete a vehicle with every dependent row and stored image.

    Tasks keep existing but lose their vehicle link.
    """
    vehicle = get_vehicle(vehicle_id)

    images = db.session.query(VehicleImage).filter_by(vehicle_id=vehicle.id).all()
    stored_paths = [img.storage_path for img in images]

    for model in (VehicleExpense, VehicleNote, VehicleImage, VehicleDispatch,
                  VehicleAssessment, TimelineEntry, ArbRecord):
        db.session.query(model).filter_by(vehicle_id=vehicle.id).delete(synchronize_session=False)
    db.session.query(Task).filter_by(vehicle_id=vehicle.id).update(
        {Task.vehicle_id: None}, synchronize_session=False
    )
    db.session.delete(vehicle)
    db.session.commit()

    for path in stored_paths:
        storage_service.remove_file(storage_service.VEHICLE_IMAGES_BUCKET, path)


def expense_totals(vehicle_ids: list[int]) -> dict[int, float]:
    """Sum of expense cost per vehicle (missing vehicles are absent)."""
    if not vehicle_ids:
        return {}
    rows = (
        db.session.query(VehicleExpense.vehicle_id, func.coalesce(func.sum(VehicleExpense.cost), 0))
        .filter(VehicleExpense.vehicle_id.in_(vehicle_ids))
        .group_by(VehicleExpense.vehicle_id)
        .all()
    )
    return {vid: float(total or 0) for vid, total in rows}


def _money(value) -> float:
    return float(value or 0)


def sold_vehicle_row(vehicle: Vehicle, total_expenses: float) -> dict:
    bought = _money(vehicle.bought_price)
    buy_fee = _money(vehicle.buy_fee)
    other = _money(vehicle.other_charges)
    sold_price = _money(vehicle.sale_invoice)

    total_cost = bought + buy_fee + other + total_expenses
    purchase_date = vehicle.created_at.date().isoformat() if vehicle.created_at else "N/A"
    sale_date = vehicle.sale_date.isoformat() if vehicle.sale_date else purchase_date

    return {
        "id": vehicle.id,
        "vehicle": vehicle.label,
        "vin": vehicle.vin or "N/A",
        "purchaseDate": purchase_date,
        "saleDate": sale_date,
        "boughtPrice": bought,
        "buyFee": buy_fee,
        "otherCharges": other,
        "totalExpenses": round(total_expenses, 2),
        "totalCost": round(total_cost, 2),
        "soldPrice": sold_price,
        "netProfit": round(sold_price - total_cost, 2),
        "titleStatus": vehicle.title_status or "Absent",
        "arbStatus": vehicle.dealshield_arbitration_status or "Absent",
        "status": vehicle.status,
        "location": vehicle.vehicle_location or vehicle.pickup_location_city or "N/A",
        "buyerName": vehicle.buyer_contact_name or vehicle.buyer_dealership or "N/A",
        "paymentStatus": "Received" if vehicle.sale_invoice_status == "PAID" else "Pending",
    }


def list_sold_vehicles(*, status: str | None = None, search: str | None = None) -> list[dict]:
    """
    Vehicles on the Sold page (Sold, ARB, Withdrew, Pending Arbitration)
    with cost and profit figures, newest first.
    """
    query = db.session.query(Vehicle).filter(Vehicle.status.in_(VehicleStatus.SOLD_SECTION))
    query = _apply_filters(query, status=status, search=search)
    vehicles = query.order_by(Vehicle.created_at.desc(), Vehicle.id.desc()).all()

    totals = expense_totals([v.id for v in vehicles])
    return [sold_vehicle_row(v, totals.get(v.id, 0.0)) for v in vehicles]
