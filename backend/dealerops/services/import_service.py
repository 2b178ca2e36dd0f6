# Overview: Service-layer operations for vehicle imports; encapsulates parsing, validation and bulk insert.

"""
Vehicle Import Pipeline

Accepts auction/marketplace exports as CSV, Excel (.xlsx) or PDF text.
Rows are mapped to vehicles by header name (a few aliases per field),
validated, de-duplicated by VIN and bulk inserted. Invalid rows are skipped
and reported as "Row N: ..." strings; the valid subset is still imported.
"""

from __future__ import annotations

import csv
import io
import re
import zipfile
from datetime import date, datetime
from typing import Any, Iterable

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from pypdf import PdfReader
from pypdf.errors import PdfReadError
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Vehicle, VehicleStatus
from ..validation import VIN_LENGTH, ValidationError, parse_money


class VehicleImportError(ValueError):
    """Raised when an upload cannot be read at all."""


SPREADSHEET_EXTENSIONS = {"xlsx", "xlsm"}
SUPPORTED_EXTENSIONS = {"csv", "pdf"} | SPREADSHEET_EXTENSIONS

DEFAULT_PSI_STATUS = "Not Eligible"

# Normalized header -> vehicle field
HEADER_FIELDS = {
    "vin": "vin",
    "year": "year",
    "make": "make",
    "model": "model",
    "trim": "trim",
    "exterior color": "exterior_color",
    "interior color": "interior_color",
    "title status": "title_status",
    "odometer": "odometer",
    "psi status": "psi_status",
    "sale price": "bought_price",
    "bought price": "bought_price",
    "buy fee": "buy_fee",
    "sale invoice balance": "sale_invoice",
    "sale invoice": "sale_invoice",
    "other charges": "other_charges",
    "total vehicle balance": "total_vehicle_cost",
    "total vehicle cost": "total_vehicle_cost",
    "sale date": "sale_date",
    "lane": "lane",
    "run": "run",
    "channel": "channel",
    "facilitating location": "facilitating_location",
    "vehicle location": "vehicle_location",
    "pickup location address1": "pickup_location_address1",
    "pickup location city": "pickup_location_city",
    "pickup location2 state": "pickup_location_state",
    "pickup location state": "pickup_location_state",
    "zip code": "pickup_location_zip",
    "pickup location zip": "pickup_location_zip",
    "pickup location phone number": "pickup_location_phone",
    "pickup location phone": "pickup_location_phone",
    "seller name": "seller_name",
    "buyer dealership": "buyer_dealership",
    "buyer contact name": "buyer_contact_name",
    "buyer aa id#": "buyer_aa_id",
    "buyer aa id": "buyer_aa_id",
    "buyer reference": "buyer_reference",
    "sale invoice status": "sale_invoice_status",
}

DEALSHIELD_HEADERS = ("dealshield status",)
ARBITRATION_HEADERS = ("arbitration status",)

INT_FIELDS = {"year", "odometer"}
MONEY_FIELDS = {"bought_price", "buy_fee", "sale_invoice", "other_charges", "total_vehicle_cost"}

# Positional columns for PDF text rows
PDF_COLUMNS = (
    "Vin", "Year", "Make", "Model", "Title status", "Odometer",
    "Sale price", "Dealshield status", "Arbitration status",
)


def normalize_header(header: Any) -> str:
    return re.sub(r"[\s_]+", " ", str(header or "").strip().lower())


def file_extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in (filename or "") else ""


# -- Parsing --

def parse_csv(stream) -> list[dict]:
    raw = stream.read()
    try:
        text = raw.decode("utf-8-sig") if isinstance(raw, bytes) else raw
    except UnicodeDecodeError:
        raise VehicleImportError("Could not read CSV file; save it as UTF-8")
    reader = csv.DictReader(io.StringIO(text))
    return [
        row for row in reader
        if any((v or "").strip() for v in row.values() if isinstance(v, str))
    ]


def parse_spreadsheet(stream) -> list[dict]:
    try:
        wb = load_workbook(stream, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError):
        raise VehicleImportError("Could not read spreadsheet; save it as .xlsx and retry")
    sheet = wb.active
    data = list(sheet.values)
    wb.close()
    if not data:
        return []
    headers = [str(h) if h is not None else "" for h in data[0]]
    rows = []
    for values in data[1:]:
        if not values or all(v is None or str(v).strip() == "" for v in values):
            continue
        rows.append({headers[i]: values[i] for i in range(min(len(headers), len(values)))})
    return rows


def parse_pdf(stream) -> list[dict]:
    """
    Extract text lines and read the tabular ones positionally.

    A line counts as a data row when it contains a comma, a tab, or a
    four-digit number (a model year).
    """
    try:
        reader = PdfReader(stream)
        text = "\n".join(page.extract_text() or "" for page in reader.pages)
    except PdfReadError:
        raise VehicleImportError("Could not read PDF file")

    rows = []
    for line in text.splitlines():
        if not line.strip():
            continue
        if "," not in line and "\t" not in line and not re.search(r"\d{4}", line):
            continue
        values = [v.strip() for v in re.split(r"[,\t]", line)]
        row = {col: (values[i] if i < len(values) else "") for i, col in enumerate(PDF_COLUMNS)}
        if not row["Title status"]:
            row["Title status"] = "Pending"
        rows.append(row)
    return rows


def parse_upload(filename: str, stream) -> list[dict]:
    ext = file_extension(filename)
    if ext == "csv":
        return parse_csv(stream)
    if ext in SPREADSHEET_EXTENSIONS:
        return parse_spreadsheet(stream)
    if ext == "pdf":
        return parse_pdf(stream)
    raise VehicleImportError("Unsupported file type")


# -- Mapping --

def _text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def _int(value: Any) -> int | None:
    text = _text(value)
    if text is None:
        return None
    try:
        return int(float(text.replace(",", "")))
    except ValueError:
        return None


def _money(value: Any) -> float | None:
    try:
        amount = parse_money(value)
    except ValidationError:
        return None
    return amount or None


def parse_sale_date(value: Any) -> date | None:
    """MM/DD/YYYY (or MM-DD-YYYY, or ISO) -> date. Unreadable -> None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    parts = re.split(r"[/\-]", text)
    if len(parts) != 3:
        return None
    try:
        month, day, year = (int(p.strip()) for p in parts)
        if year < 100:
            year += 2000
        return date(year, month, day)
    except ValueError:
        return None


def map_row(row: dict) -> dict:
    """Map one source row (header -> cell) onto vehicle fields."""
    cells = {normalize_header(k): v for k, v in row.items() if k is not None}

    vehicle: dict[str, Any] = {}
    for header, value in cells.items():
        field = HEADER_FIELDS.get(header)
        if not field or field in vehicle:
            continue
        if field in INT_FIELDS:
            vehicle[field] = _int(value)
        elif field in MONEY_FIELDS:
            vehicle[field] = _money(value)
        elif field == "sale_date":
            vehicle[field] = parse_sale_date(value)
        else:
            vehicle[field] = _text(value)

    if vehicle.get("vin"):
        vehicle["vin"] = vehicle["vin"].upper()
    if vehicle.get("sale_invoice_status"):
        vehicle["sale_invoice_status"] = vehicle["sale_invoice_status"].upper()
    vehicle["psi_status"] = vehicle.get("psi_status") or DEFAULT_PSI_STATUS

    parts = [
        _text(cells.get(h)) for h in DEALSHIELD_HEADERS + ARBITRATION_HEADERS
    ]
    joined = " / ".join(p for p in parts if p)
    vehicle["dealshield_arbitration_status"] = joined or None

    vehicle["status"] = VehicleStatus.PENDING
    return {k: v for k, v in vehicle.items() if v is not None}


def validate_row(vehicle: dict, row_number: int) -> list[str]:
    errors = []
    if not vehicle.get("make"):
        errors.append(f"Row {row_number}: Make is required")
    if not vehicle.get("model"):
        errors.append(f"Row {row_number}: Model is required")
    year = vehicle.get("year")
    if not year or year < 1900 or year > date.today().year + 1:
        errors.append(f"Row {row_number}: Valid year is required")
    vin = vehicle.get("vin")
    if vin and len(vin) != VIN_LENGTH:
        errors.append(f"Row {row_number}: VIN must be {VIN_LENGTH} characters")
    return errors


def _existing_vins(vins: Iterable[str]) -> set[str]:
    vins = list(set(vins))
    if not vins:
        return set()
    rows = db.session.query(Vehicle.vin).filter(Vehicle.vin.in_(vins)).all()
    return {r[0] for r in rows}


def import_rows(*, rows: list[dict], created_by: int | None) -> dict:
    """
    Validate and insert rows.

    Returns {success, imported, errors, vehicles}; success means no errors.
    """
    if not rows:
        raise VehicleImportError("No data found in file")

    mapped = [map_row(row) for row in rows]
    taken = _existing_vins(v["vin"] for v in mapped if v.get("vin"))

    errors: list[str] = []
    accepted: list[Vehicle] = []
    for index, data in enumerate(mapped):
        row_number = index + 1
        row_errors = validate_row(data, row_number)
        if row_errors:
            errors.extend(row_errors)
            continue

        vin = data.get("vin")
        if vin:
            if vin in taken:
                errors.append(f"Row {row_number}: Vehicle with VIN {vin} already exists")
                continue
            taken.add(vin)

        accepted.append(Vehicle(created_by=created_by, **data))

    imported: list[Vehicle] = []
    if accepted:
        try:
            db.session.add_all(accepted)
            db.session.commit()
            imported = accepted
        except SQLAlchemyError as e:
            db.session.rollback()
            errors.append(f"Database error: {e.__class__.__name__}")

    return {
        "success": len(errors) == 0,
        "imported": len(imported),
        "errors": errors,
        "vehicles": [v.to_dict() for v in imported],
    }


def import_upload(*, filename: str, stream, created_by: int | None) -> dict:
    rows = parse_upload(filename, stream)
    return import_rows(rows=rows, created_by=created_by)
