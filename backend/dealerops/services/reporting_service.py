# Overview: Service-layer operations for reporting; encapsulates business logic and database work.

"""
Dealer Reports

Rows are fetched with plain filters and grouped in memory. Result sets are
one dealer's sold vehicles, so the map-group-reduce stays in Python.

PROFIT: sale_invoice - (bought_price + buy_fee + other_charges + expenses
- inventory ARB price adjustments). Inventory ARB adjustments already
lowered bought_price when they were applied; the subtraction mirrors the
accounting page, which reports them as a cost credit.

WEEKS: ISO-8601 weeks (Monday start, Thursday-anchored). The key's year is
the ISO year, so 2024-12-30 lands in 2025-W01.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, time, timedelta

from sqlalchemy import func

from ..extensions import db
from ..models import (
    MISSING_TITLE_STATUSES,
    ArbOutcome,
    ArbRecord,
    ArbType,
    Vehicle,
    VehicleExpense,
    VehicleStatus,
)
from ..time_utils import parse_iso_date, to_iso_date, to_utc_z, today


class ReportError(Exception):
    """Raised when report parameters are invalid."""
    pass


# Vehicles counted as sold in the sales figures
SOLD_REPORT_STATUSES = (VehicleStatus.SOLD, VehicleStatus.ARB, VehicleStatus.PENDING_ARBITRATION)
INVENTORY_STATUSES = (VehicleStatus.PENDING, VehicleStatus.IN_PROGRESS)

MISSING_TITLE_SECTIONS = ("inventory", "sold", "arb", "all")


def iso_week_key(d: date) -> str:
    iso_year, week, _ = d.isocalendar()
    return f"{iso_year}-W{week:02d}"


def month_key(d: date) -> str:
    return f"{d.year}-{d.month:02d}"


def _round2(value: float) -> float:
    return round(value, 2)


def _num(value) -> float:
    return float(value or 0)


def _parse_range(date_from: str | None, date_to: str | None) -> tuple[date | None, date | None]:
    try:
        return parse_iso_date(date_from), parse_iso_date(date_to)
    except ValueError:
        raise ReportError("dateFrom and dateTo must be dates (YYYY-MM-DD)")


def _expense_sums(vehicle_ids: list[int]) -> dict[int, float]:
    if not vehicle_ids:
        return {}
    rows = (
        db.session.query(VehicleExpense.vehicle_id, func.coalesce(func.sum(VehicleExpense.cost), 0))
        .filter(VehicleExpense.vehicle_id.in_(vehicle_ids))
        .group_by(VehicleExpense.vehicle_id)
        .all()
    )
    return {vid: float(total or 0) for vid, total in rows}


def _inventory_adjustments(vehicle_ids: list[int]) -> dict[int, float]:
    """Sum of resolved Inventory ARB price adjustments per vehicle."""
    if not vehicle_ids:
        return {}
    rows = (
        db.session.query(ArbRecord.vehicle_id, func.coalesce(func.sum(ArbRecord.adjustment_amount), 0))
        .filter(
            ArbRecord.vehicle_id.in_(vehicle_ids),
            ArbRecord.arb_type == ArbType.INVENTORY,
            ArbRecord.outcome == ArbOutcome.PRICE_ADJUSTMENT,
        )
        .group_by(ArbRecord.vehicle_id)
        .all()
    )
    return {vid: float(total or 0) for vid, total in rows}


def vehicle_profit(vehicle: Vehicle, *, expenses: float, adjustments: float) -> float:
    total_cost = (
        _num(vehicle.bought_price)
        + _num(vehicle.buy_fee)
        + _num(vehicle.other_charges)
        + expenses
        - adjustments
    )
    return _num(vehicle.sale_invoice) - total_cost


def _sold_with_sale_date(*, date_from: date | None, date_to: date | None):
    query = db.session.query(Vehicle).filter(
        Vehicle.status.in_(SOLD_REPORT_STATUSES),
        Vehicle.sale_date.isnot(None),
    )
    if date_from:
        query = query.filter(Vehicle.sale_date >= date_from)
    if date_to:
        query = query.filter(Vehicle.sale_date <= date_to)
    return query


def sales_report(
    *,
    date_from: str | None = None,
    date_to: str | None = None,
    location: str | None = None,
    buyer_name: str | None = None,
    make: str | None = None,
    model: str | None = None,
) -> list[dict]:
    """Sold vehicles grouped by ISO sale week, largest sales total first."""
    start, end = _parse_range(date_from, date_to)
    query = _sold_with_sale_date(date_from=start, date_to=end)

    if location:
        pattern = f"%{location.strip()}%"
        query = query.filter(db.or_(
            Vehicle.vehicle_location.ilike(pattern),
            Vehicle.facilitating_location.ilike(pattern),
        ))
    if buyer_name:
        pattern = f"%{buyer_name.strip()}%"
        query = query.filter(db.or_(
            Vehicle.buyer_dealership.ilike(pattern),
            Vehicle.buyer_contact_name.ilike(pattern),
        ))
    if make:
        query = query.filter(Vehicle.make == make)
    if model:
        query = query.filter(Vehicle.model == model)

    vehicles = query.order_by(Vehicle.sale_date.desc(), Vehicle.id.desc()).all()
    ids = [v.id for v in vehicles]
    expenses = _expense_sums(ids)
    adjustments = _inventory_adjustments(ids)

    weeks: dict[str, dict] = {}
    for v in vehicles:
        key = iso_week_key(v.sale_date)
        group = weeks.setdefault(key, {
            "week": key,
            "vehicleCount": 0,
            "totalSales": 0.0,
            "totalProfit": 0.0,
            "vehicles": [],
        })
        sale_price = _num(v.sale_invoice)
        profit = vehicle_profit(v, expenses=expenses.get(v.id, 0.0), adjustments=adjustments.get(v.id, 0.0))

        group["vehicleCount"] += 1
        group["totalSales"] += sale_price
        group["totalProfit"] += profit
        group["vehicles"].append({
            "id": v.id,
            "year": v.year,
            "make": v.make,
            "model": v.model,
            "saleDate": to_iso_date(v.sale_date),
            "salePrice": sale_price,
            "profit": _round2(profit),
            "location": v.vehicle_location,
            "buyer": v.buyer_contact_name or v.buyer_dealership,
        })

    report = []
    for group in weeks.values():
        report.append({
            "week": group["week"],
            "vehicleCount": group["vehicleCount"],
            "totalSales": _round2(group["totalSales"]),
            "avgSalePrice": _round2(group["totalSales"] / group["vehicleCount"]),
            "totalProfit": _round2(group["totalProfit"]),
            "vehicles": group["vehicles"],
        })
    report.sort(key=lambda r: r["totalSales"], reverse=True)
    return report


def summary_report(
    *,
    period: str = "weekly",
    date_from: str | None = None,
    date_to: str | None = None,
) -> list[dict]:
    """Gross sales, expenses and net profit per ISO week or calendar month."""
    if period == "weekly":
        key_for = iso_week_key
    elif period == "monthly":
        key_for = month_key
    else:
        raise ReportError("period must be weekly or monthly")

    start, end = _parse_range(date_from, date_to)
    vehicles = (
        _sold_with_sale_date(date_from=start, date_to=end)
        .order_by(Vehicle.sale_date.asc(), Vehicle.id.asc())
        .all()
    )
    ids = [v.id for v in vehicles]
    expenses = _expense_sums(ids)
    adjustments = _inventory_adjustments(ids)

    groups: dict[str, dict] = {}
    for v in vehicles:
        key = key_for(v.sale_date)
        group = groups.setdefault(key, {
            "period": key,
            "vehicleCount": 0,
            "grossSales": 0.0,
            "totalExpenses": 0.0,
            "netProfit": 0.0,
            "vehicles": [],
        })
        sale_price = _num(v.sale_invoice)
        vehicle_expenses = expenses.get(v.id, 0.0)
        profit = vehicle_profit(v, expenses=vehicle_expenses, adjustments=adjustments.get(v.id, 0.0))

        group["vehicleCount"] += 1
        group["grossSales"] += sale_price
        group["totalExpenses"] += vehicle_expenses
        group["netProfit"] += profit
        group["vehicles"].append({
            "id": v.id,
            "saleDate": to_iso_date(v.sale_date),
            "salePrice": sale_price,
            "profit": _round2(profit),
        })

    summary = []
    for key in sorted(groups):
        group = groups[key]
        for name in ("grossSales", "totalExpenses", "netProfit"):
            group[name] = _round2(group[name])
        summary.append(group)
    return summary


def arbitration_report(*, date_from: str | None = None, date_to: str | None = None) -> list[dict]:
    """
    Sold ARB activity per month of filing.

    avgPercent is the mean of adjustment / sale price over price adjustments
    whose vehicle has a sale price; the other averages skip missing values.
    """
    start, end = _parse_range(date_from, date_to)
    query = db.session.query(ArbRecord).filter(ArbRecord.arb_type == ArbType.SOLD)
    if start:
        query = query.filter(ArbRecord.created_at >= datetime.combine(start, time.min))
    if end:
        query = query.filter(ArbRecord.created_at < datetime.combine(end + timedelta(days=1), time.min))
    records = query.order_by(ArbRecord.created_at.asc(), ArbRecord.id.asc()).all()

    months: dict[str, dict] = defaultdict(lambda: {
        "totalArbs": 0,
        "denied": 0,
        "withdrawn": 0,
        "transportCosts": [],
        "priceAdjusted": 0,
        "adjustments": [],
    })

    for record in records:
        group = months[month_key(record.created_at)]
        group["totalArbs"] += 1

        if record.outcome == ArbOutcome.DENIED:
            group["denied"] += 1
        elif record.outcome == ArbOutcome.BUYER_WITHDREW:
            group["withdrawn"] += 1
            if record.transport_cost:
                group["transportCosts"].append(_num(record.transport_cost))
        elif record.outcome == ArbOutcome.PRICE_ADJUSTMENT:
            group["priceAdjusted"] += 1
            sale_price = _num(record.vehicle.sale_invoice) if record.vehicle else 0.0
            amount = _num(record.adjustment_amount)
            if sale_price > 0 and amount > 0:
                group["adjustments"].append((amount, sale_price))

    report = []
    for month in sorted(months):
        group = months[month]
        costs = group["transportCosts"]
        adjustments = group["adjustments"]
        avg_cost = sum(costs) / len(costs) if costs else 0.0
        if adjustments:
            avg_percent = sum(a / s * 100 for a, s in adjustments) / len(adjustments)
            avg_amount = sum(a for a, _ in adjustments) / len(adjustments)
        else:
            avg_percent = avg_amount = 0.0

        report.append({
            "month": month,
            "totalArbs": group["totalArbs"],
            "denied": group["denied"],
            "withdrawn": {
                "count": group["withdrawn"],
                "avgTransportCost": _round2(avg_cost),
            },
            "priceAdjusted": {
                "count": group["priceAdjusted"],
                "avgPercent": _round2(avg_percent),
                "avgAmount": _round2(avg_amount),
            },
        })
    return report


def _missing_title_row(vehicle: Vehicle, *, section: str, reference: date, as_of: date) -> dict:
    return {
        "vehicleId": vehicle.id,
        "stockNumber": vehicle.stock_number,
        "year": vehicle.year,
        "make": vehicle.make,
        "model": vehicle.model,
        "trim": vehicle.trim or "",
        "vin": vehicle.vin or "N/A",
        "seller": vehicle.seller_name or "N/A",
        "purchaseOrSaleDate": to_iso_date(reference),
        "daysMissing": (as_of - reference).days,
        "currentStatus": section,
        "titleStatus": vehicle.title_status,
        "location": vehicle.vehicle_location or "N/A",
    }


def missing_titles_report(*, section: str | None = None, as_of: date | None = None) -> list[dict]:
    """
    Vehicles whose title has not arrived, longest-missing first.

    Inventory rows count days from purchase (created_at); sold and ARB rows
    from the sale date when there is one. A vehicle in Pending Arbitration
    shows up under both Sold and ARB when section is "all".
    """
    section = section or "all"
    if section not in MISSING_TITLE_SECTIONS:
        raise ReportError("section must be one of: inventory, sold, arb, all")
    as_of = as_of or today()

    def missing(statuses):
        return db.session.query(Vehicle).filter(
            Vehicle.status.in_(statuses),
            Vehicle.title_status.in_(MISSING_TITLE_STATUSES),
        ).all()

    def created_date(v: Vehicle) -> date:
        return v.created_at.date() if v.created_at else as_of

    rows = []
    if section in ("all", "inventory"):
        for v in missing(INVENTORY_STATUSES):
            rows.append(_missing_title_row(v, section="Inventory", reference=created_date(v), as_of=as_of))
    if section in ("all", "sold"):
        for v in missing(SOLD_REPORT_STATUSES):
            rows.append(_missing_title_row(v, section="Sold", reference=v.sale_date or created_date(v), as_of=as_of))
    if section in ("all", "arb"):
        for v in missing((VehicleStatus.PENDING_ARBITRATION,)):
            rows.append(_missing_title_row(v, section="ARB", reference=v.sale_date or created_date(v), as_of=as_of))

    rows.sort(key=lambda r: r["daysMissing"], reverse=True)
    return rows


def profit_per_car(
    *,
    make: str | None = None,
    model: str | None = None,
    location: str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
) -> list[dict]:
    """Per sold vehicle: cost breakdown, expense lines, ARB actions, net profit."""
    start, end = _parse_range(date_from, date_to)
    query = db.session.query(Vehicle).filter(Vehicle.status.in_(SOLD_REPORT_STATUSES))
    if make:
        query = query.filter(Vehicle.make == make)
    if model:
        query = query.filter(Vehicle.model == model)
    if location:
        query = query.filter(Vehicle.vehicle_location == location)
    if start:
        query = query.filter(Vehicle.sale_date >= start)
    if end:
        query = query.filter(Vehicle.sale_date <= end)
    vehicles = query.order_by(Vehicle.sale_date.desc(), Vehicle.id.desc()).all()

    ids = [v.id for v in vehicles]
    if not ids:
        return []

    expense_rows = defaultdict(list)
    for exp in (
        db.session.query(VehicleExpense)
        .filter(VehicleExpense.vehicle_id.in_(ids))
        .order_by(VehicleExpense.expense_date.asc(), VehicleExpense.id.asc())
        .all()
    ):
        expense_rows[exp.vehicle_id].append(exp)

    arb_rows = defaultdict(list)
    for arb in (
        db.session.query(ArbRecord)
        .filter(ArbRecord.vehicle_id.in_(ids))
        .order_by(ArbRecord.created_at.desc(), ArbRecord.id.desc())
        .all()
    ):
        arb_rows[arb.vehicle_id].append(arb)

    adjustments = _inventory_adjustments(ids)

    report = []
    for v in vehicles:
        expenses = expense_rows[v.id]
        total_expenses = sum(_num(e.cost) for e in expenses)
        inventory_adjustments = adjustments.get(v.id, 0.0)
        net = vehicle_profit(v, expenses=total_expenses, adjustments=inventory_adjustments)

        report.append({
            "stockNumber": v.stock_number,
            "vehicleId": v.id,
            "make": v.make,
            "model": v.model,
            "year": v.year,
            "trim": v.trim or "",
            "vin": v.vin or "N/A",
            "purchasePrice": _num(v.bought_price),
            "buyFee": _num(v.buy_fee),
            "otherCharges": _num(v.other_charges),
            "salePrice": _num(v.sale_invoice),
            "totalExpenses": _round2(total_expenses),
            "inventoryArbAdjustments": _round2(inventory_adjustments),
            "netProfit": _round2(net),
            "saleDate": to_iso_date(v.sale_date),
            "location": v.vehicle_location or "N/A",
            "status": v.status,
            "expenses": [
                {
                    "description": e.expense_description,
                    "cost": _num(e.cost),
                    "date": to_iso_date(e.expense_date),
                }
                for e in expenses
            ],
            "arbActions": [
                {
                    "type": a.arb_type,
                    "outcome": a.outcome,
                    "adjustmentAmount": _num(a.adjustment_amount) if a.adjustment_amount else None,
                    "transportCost": _num(a.transport_cost) if a.transport_cost else None,
                    "date": to_utc_z(a.created_at),
                }
                for a in arb_rows[v.id]
            ],
        })
    return report
