# Overview: Service-layer operations for arbitration (ARB); encapsulates business logic and database work.

"""
Arbitration Workflow

An ARB record is opened Pending by initiate_arb and resolved exactly once by
resolve_arb. Resolution dispatches on the (arb_type, outcome) pair through
OUTCOME_HANDLERS; every supported pair is listed there and anything else is
rejected.

ATOMICITY: each operation is one transaction. The ARB record, the vehicle,
the synthesized expense and the timeline row are committed together or not
at all.

CONCURRENCY: the pending record is selected FOR UPDATE (a no-op on SQLite,
a row lock on PostgreSQL) and re-checked as Pending before it is resolved,
so two simultaneous resolutions cannot both apply.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import ArbOutcome, ArbRecord, ArbType, Vehicle, VehicleExpense, VehicleStatus
from ..validation import NotFoundError, ValidationError, parse_money
from dealerops.time_utils import parse_iso_date, today
from . import timeline_service


SALE_FIELDS = (
    "sale_invoice",
    "sale_date",
    "buyer_dealership",
    "buyer_contact_name",
    "buyer_aa_id",
    "buyer_reference",
    "sale_invoice_status",
)

PURCHASE_FIELDS = ("bought_price", "buy_fee", "other_charges")


@dataclass(frozen=True)
class OutcomeRequest:
    arb_type: str
    outcome: str
    adjustment_amount: float | None = None
    transport_type: str | None = None
    transport_location: str | None = None
    transport_date: object = None
    transport_cost: float | None = None
    notes: str | None = None


@dataclass
class OutcomeEffect:
    """What a resolution does to the vehicle and the books."""
    status: str
    timeline_note: str
    vehicle_changes: dict = field(default_factory=dict)
    expense: dict | None = None


def _fmt(amount: float) -> str:
    amount = float(amount)
    return f"${int(amount)}" if amount.is_integer() else f"${amount:.2f}"


def _require_adjustment(req: OutcomeRequest) -> float:
    if not req.adjustment_amount or req.adjustment_amount <= 0:
        raise ValidationError("Adjustment amount is required for Price Adjustment")
    return req.adjustment_amount


def _sold_denied(vehicle: Vehicle, req: OutcomeRequest) -> OutcomeEffect:
    return OutcomeEffect(
        status=VehicleStatus.SOLD,
        timeline_note="ARB Denied - Reverted to Sold status",
    )


def _sold_price_adjustment(vehicle: Vehicle, req: OutcomeRequest) -> OutcomeEffect:
    amount = _require_adjustment(req)
    return OutcomeEffect(
        status=VehicleStatus.SOLD,
        timeline_note=f"ARB Price Adjustment: {_fmt(amount)}",
        expense={
            "expense_description": "Arbitration Modified",
            "expense_date": today(),
            "cost": abs(amount),
            "notes": req.notes or "ARB Price Adjustment",
        },
    )


def _sold_buyer_withdrew(vehicle: Vehicle, req: OutcomeRequest) -> OutcomeEffect:
    if not req.transport_cost or req.transport_cost <= 0:
        raise ValidationError("Transport cost is required for Buyer Withdrew")
    notes = f"Transport Location: {req.transport_location or 'N/A'}."
    if req.notes:
        notes = f"{notes} {req.notes}"
    return OutcomeEffect(
        status=VehicleStatus.PENDING,
        timeline_note=f"Buyer Withdrew - Transport Cost: {_fmt(req.transport_cost)}",
        vehicle_changes={name: None for name in SALE_FIELDS},
        expense={
            "expense_description": f"Transport - {req.transport_type or 'N/A'}",
            "expense_date": req.transport_date or today(),
            "cost": req.transport_cost,
            "notes": notes,
        },
    )


def _inventory_withdrawn(vehicle: Vehicle, req: OutcomeRequest) -> OutcomeEffect:
    return OutcomeEffect(
        status=VehicleStatus.WITHDREW,
        timeline_note="ARB Withdrawn - Vehicle removed from inventory",
        vehicle_changes={name: None for name in PURCHASE_FIELDS},
    )


def _inventory_price_adjustment(vehicle: Vehicle, req: OutcomeRequest) -> OutcomeEffect:
    amount = _require_adjustment(req)
    current = float(vehicle.bought_price or 0)
    new_price = max(0.0, round(current - amount, 2))
    return OutcomeEffect(
        status=VehicleStatus.PENDING,
        timeline_note=(
            f"ARB Price Adjustment: {_fmt(amount)} "
            f"(reduces purchase cost from {_fmt(current)} to {_fmt(new_price)})"
        ),
        vehicle_changes={"bought_price": new_price},
    )


def _inventory_denied(vehicle: Vehicle, req: OutcomeRequest) -> OutcomeEffect:
    return OutcomeEffect(
        status=VehicleStatus.PENDING,
        timeline_note="ARB Denied - No changes",
    )


OUTCOME_HANDLERS: dict[tuple[str, str], Callable[[Vehicle, OutcomeRequest], OutcomeEffect]] = {
    (ArbType.SOLD, ArbOutcome.DENIED): _sold_denied,
    (ArbType.SOLD, ArbOutcome.PRICE_ADJUSTMENT): _sold_price_adjustment,
    (ArbType.SOLD, ArbOutcome.BUYER_WITHDREW): _sold_buyer_withdrew,
    (ArbType.INVENTORY, ArbOutcome.WITHDRAWN): _inventory_withdrawn,
    (ArbType.INVENTORY, ArbOutcome.PRICE_ADJUSTMENT): _inventory_price_adjustment,
    (ArbType.INVENTORY, ArbOutcome.DENIED): _inventory_denied,
}


def _get_vehicle(vehicle_id: int) -> Vehicle:
    vehicle = db.session.get(Vehicle, vehicle_id)
    if not vehicle:
        raise NotFoundError("Vehicle not found")
    return vehicle


def initiate_arb(*, vehicle_id: int, arb_type: str, created_by: int | None, notes: str | None = None) -> ArbRecord:
    """
    Open a Pending ARB record and move the vehicle to Pending Arbitration.

    Preconditions:
    - Sold ARB only for Sold vehicles
    - Inventory ARB never for Sold vehicles
    """
    if arb_type not in ArbType.ALL:
        raise ValidationError('Invalid ARB type. Must be "Sold ARB" or "Inventory ARB"')

    vehicle = _get_vehicle(vehicle_id)

    if arb_type == ArbType.SOLD and vehicle.status != VehicleStatus.SOLD:
        raise ValidationError("ARB from Sold section can only be initiated for vehicles with Sold status")
    if arb_type == ArbType.INVENTORY and vehicle.status == VehicleStatus.SOLD:
        raise ValidationError("ARB from Inventory section cannot be initiated for sold vehicles")

    try:
        record = ArbRecord(
            vehicle_id=vehicle.id,
            arb_type=arb_type,
            outcome=ArbOutcome.PENDING,
            notes=(notes or "").strip() or None,
            created_by=created_by,
        )
        db.session.add(record)

        vehicle.status = VehicleStatus.PENDING_ARBITRATION

        timeline_service.add_entry(
            vehicle_id=vehicle.id,
            action="ARB Initiated",
            user_id=created_by,
            note=f"{arb_type} initiated",
            status=VehicleStatus.PENDING_ARBITRATION,
        )
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise

    return record


def parse_outcome_request(payload: dict) -> OutcomeRequest:
    arb_type = payload.get("arb_type")
    outcome = payload.get("outcome")
    if not arb_type or not outcome:
        raise ValidationError("ARB type and outcome are required")

    try:
        transport_date = parse_iso_date(payload.get("transport_date"))
    except ValueError:
        raise ValidationError("transport_date must be a date (YYYY-MM-DD)")

    return OutcomeRequest(
        arb_type=arb_type,
        outcome=outcome,
        adjustment_amount=parse_money(payload.get("adjustment_amount"), "adjustment_amount"),
        transport_type=(payload.get("transport_type") or None),
        transport_location=(payload.get("transport_location") or None),
        transport_date=transport_date,
        transport_cost=parse_money(payload.get("transport_cost"), "transport_cost"),
        notes=(payload.get("notes") or None),
    )


def find_pending_record(vehicle_id: int, arb_type: str, *, lock: bool = False) -> ArbRecord | None:
    """Most recent Pending record of this type for the vehicle."""
    query = db.session.query(ArbRecord).filter(
        ArbRecord.vehicle_id == vehicle_id,
        ArbRecord.arb_type == arb_type,
        ArbRecord.outcome == ArbOutcome.PENDING,
    ).order_by(ArbRecord.created_at.desc(), ArbRecord.id.desc())
    if lock:
        query = query.with_for_update()
    return query.first()


def resolve_arb(*, vehicle_id: int, payload: dict, user_id: int | None) -> tuple[ArbRecord, Vehicle]:
    """
    Resolve the most recent Pending ARB record of the given type.

    Returns (arb_record, vehicle) after commit.
    """
    req = parse_outcome_request(payload)
    vehicle = _get_vehicle(vehicle_id)

    handler = OUTCOME_HANDLERS.get((req.arb_type, req.outcome))
    if handler is None:
        raise ValidationError(f"Invalid outcome for {req.arb_type}")

    try:
        record = find_pending_record(vehicle.id, req.arb_type, lock=True)
        if record is None:
            raise NotFoundError("No pending ARB record found for this vehicle")

        effect = handler(vehicle, req)

        # Claim the record: only one resolution can move it off Pending
        claimed = db.session.query(ArbRecord).filter(
            ArbRecord.id == record.id,
            ArbRecord.outcome == ArbOutcome.PENDING,
        ).update({ArbRecord.outcome: req.outcome}, synchronize_session=False)
        if claimed != 1:
            raise NotFoundError("No pending ARB record found for this vehicle")

        record.outcome = req.outcome
        record.adjustment_amount = req.adjustment_amount or None
        record.transport_type = req.transport_type
        record.transport_location = req.transport_location
        record.transport_date = req.transport_date
        record.transport_cost = req.transport_cost or None
        record.notes = req.notes

        for name, value in effect.vehicle_changes.items():
            setattr(vehicle, name, value)
        vehicle.status = effect.status

        if effect.expense:
            db.session.add(VehicleExpense(vehicle_id=vehicle.id, created_by=user_id, **effect.expense))

        timeline_service.add_entry(
            vehicle_id=vehicle.id,
            action="ARB Outcome Processed",
            user_id=user_id,
            note=effect.timeline_note,
            status=effect.status,
            expense_value=req.adjustment_amount or req.transport_cost or None,
        )

        db.session.commit()
    except (ValidationError, NotFoundError, SQLAlchemyError):
        db.session.rollback()
        raise

    return record, vehicle


def vehicle_history(*, vehicle_id: int) -> list[dict]:
    _get_vehicle(vehicle_id)
    rows = (
        db.session.query(ArbRecord)
        .filter(ArbRecord.vehicle_id == vehicle_id)
        .order_by(ArbRecord.created_at.desc(), ArbRecord.id.desc())
        .all()
    )
    return [r.to_dict() for r in rows]


def _list_row(record: ArbRecord) -> dict:
    vehicle = record.vehicle
    return {
        "id": record.id,
        "vehicleId": record.vehicle_id,
        "vehicle": vehicle.label if vehicle else "N/A",
        "vin": (vehicle.vin if vehicle else None) or "N/A",
        "arbType": record.arb_type,
        "outcome": record.outcome,
        "adjustmentAmount": record.adjustment_amount,
        "transportType": record.transport_type,
        "transportLocation": record.transport_location,
        "transportDate": record.transport_date.isoformat() if record.transport_date else None,
        "transportCost": record.transport_cost,
        "notes": record.notes,
        "vehicleStatus": vehicle.status if vehicle else None,
        "createdBy": record.creator.username if record.creator else None,
        "createdAt": record.to_dict()["created_at"],
    }


def list_records(*, arb_type: str | None = None, outcome: str | None = None) -> list[dict]:
    query = db.session.query(ArbRecord)
    if arb_type:
        query = query.filter(ArbRecord.arb_type == arb_type)
    if outcome:
        query = query.filter(ArbRecord.outcome == outcome)
    rows = query.order_by(ArbRecord.created_at.desc(), ArbRecord.id.desc()).all()
    return [_list_row(r) for r in rows]


def get_record(*, arb_id: int) -> ArbRecord:
    record = db.session.get(ArbRecord, arb_id)
    if not record:
        raise NotFoundError("ARB record not found")
    return record
