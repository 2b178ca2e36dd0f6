"""
Vehicle import tests.

Endpoint tests post real CSV and XLSX uploads; the mapping helpers are
tested directly.
"""

import io
from datetime import date

import pytest
from openpyxl import Workbook

from dealerops.services import import_service


CSV_HEADER = "VIN,Year,Make,Model,Sale Price,Buy Fee,Sale Date,Dealshield Status,Arbitration Status\n"


def _upload(client, headers, content: bytes, filename: str):
    return client.post(
        "/api/vehicles/import",
        data={"file": (io.BytesIO(content), filename)},
        headers=headers,
        content_type="multipart/form-data",
    )


class TestImportEndpoint:

    def test_csv_import(self, client, admin_headers):
        body = CSV_HEADER + (
            "1FTFW1E50JFA00001,2018,Ford,F-150,\"$21,500.00\",350,03/15/2025,Eligible,None\n"
            "1FTFW1E50JFA00002,2019,Ford,Ranger,18000,300,,,\n"
        )
        resp = _upload(client, admin_headers, body.encode("utf-8"), "auction.csv")
        assert resp.status_code == 200
        result = resp.get_json()
        assert result["success"] is True
        assert result["imported"] == 2
        assert result["errors"] == []

        first = result["vehicles"][0]
        assert first["status"] == "Pending"
        assert first["bought_price"] == 21500.0
        assert first["sale_date"] == "2025-03-15"
        assert first["psi_status"] == "Not Eligible"
        assert first["dealshield_arbitration_status"] == "Eligible / None"

        listing = client.get("/api/vehicles", headers=admin_headers).get_json()
        assert listing["pagination"]["total"] == 2

    def test_partial_import_reports_row_errors(self, client, admin_headers, make_vehicle):
        make_vehicle(vin="1FTFW1E50JFA00009")
        body = CSV_HEADER + (
            "1FTFW1E50JFA00003,2018,Ford,Escape,100,,,,\n"
            ",1850,Ford,Model T,100,,,,\n"
            "SHORTVIN,2018,Ford,Edge,100,,,,\n"
            "1FTFW1E50JFA00009,2018,Ford,Fusion,100,,,,\n"
            "1FTFW1E50JFA00003,2018,Ford,Escape,100,,,,\n"
        )
        result = _upload(client, admin_headers, body.encode(), "mixed.csv").get_json()
        assert result["success"] is False
        assert result["imported"] == 1
        assert result["errors"] == [
            "Row 2: Valid year is required",
            "Row 3: VIN must be 17 characters",
            "Row 4: Vehicle with VIN 1FTFW1E50JFA00009 already exists",
            "Row 5: Vehicle with VIN 1FTFW1E50JFA00003 already exists",
        ]

    def test_xlsx_import(self, client, admin_headers):
        wb = Workbook()
        ws = wb.active
        ws.append(["VIN", "Year", "Make", "Model", "Odometer", "Sale Date"])
        ws.append(["5YJ3E1EA7KF000001", 2019, "Tesla", "Model 3", 30123.0, date(2025, 1, 20)])
        ws.append([None, None, None, None, None, None])
        buf = io.BytesIO()
        wb.save(buf)

        result = _upload(client, admin_headers, buf.getvalue(), "inventory.xlsx").get_json()
        assert result["imported"] == 1
        vehicle = result["vehicles"][0]
        assert vehicle["odometer"] == 30123
        assert vehicle["sale_date"] == "2025-01-20"

    def test_no_file(self, client, admin_headers):
        resp = client.post("/api/vehicles/import", data={}, headers=admin_headers, content_type="multipart/form-data")
        assert resp.status_code == 400
        assert resp.get_json() == {"success": False, "imported": 0, "errors": ["No file uploaded"], "vehicles": []}

    def test_unsupported_type(self, client, admin_headers):
        resp = _upload(client, admin_headers, b"hello", "notes.txt")
        assert resp.status_code == 400
        assert resp.get_json()["errors"] == ["Unsupported file type"]

    def test_non_utf8_csv(self, client, admin_headers):
        body = "VIN,Year,Make,Model\n1FTFW1E50JFA00001,2018,Citro\xebn,C4\n".encode("latin-1")
        resp = _upload(client, admin_headers, body, "export.csv")
        assert resp.status_code == 400
        assert resp.get_json()["errors"] == ["Could not read CSV file; save it as UTF-8"]

    def test_legacy_xls_unsupported(self, client, admin_headers):
        resp = _upload(client, admin_headers, b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1", "old.xls")
        assert resp.status_code == 400
        assert resp.get_json()["errors"] == ["Unsupported file type"]

    def test_header_only_file(self, client, admin_headers):
        resp = _upload(client, admin_headers, CSV_HEADER.encode(), "empty.csv")
        assert resp.status_code == 400
        assert resp.get_json()["errors"] == ["No data found in file"]

    def test_unreadable_spreadsheet(self, client, admin_headers):
        resp = _upload(client, admin_headers, b"not a zip archive", "broken.xlsx")
        assert resp.status_code == 400
        assert resp.get_json()["success"] is False


class TestRowMapping:

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("03/15/2025", date(2025, 3, 15)),
            ("3-5-25", date(2025, 3, 5)),
            ("2025-03-15", date(2025, 3, 15)),
            ("2025-03-15T08:00:00", date(2025, 3, 15)),
            (date(2024, 12, 31), date(2024, 12, 31)),
            ("13/45/2025", None),
            ("soon", None),
            ("", None),
            (None, None),
        ],
    )
    def test_parse_sale_date(self, value, expected):
        assert import_service.parse_sale_date(value) == expected

    def test_header_aliases(self):
        mapped = import_service.map_row({
            "Vin": "1ftfw1e50jfa00001",
            "YEAR": "2018",
            "make": "Ford",
            "Model": "F-150",
            "Total_Vehicle_Balance": "1,200",
            "Buyer AA ID#": "AA-77",
            "Sale Invoice Status": "paid",
            "Pickup Location2 State": "TX",
            "Unrelated": "ignored",
        })
        assert mapped["vin"] == "1FTFW1E50JFA00001"
        assert mapped["year"] == 2018
        assert mapped["total_vehicle_cost"] == 1200.0
        assert mapped["buyer_aa_id"] == "AA-77"
        assert mapped["sale_invoice_status"] == "PAID"
        assert mapped["pickup_location_state"] == "TX"
        assert mapped["status"] == "Pending"
        assert "Unrelated" not in mapped

    def test_zero_money_is_dropped(self):
        mapped = import_service.map_row({"Make": "Ford", "Sale Price": "0"})
        assert "bought_price" not in mapped

    @pytest.mark.parametrize(
        "vehicle,errors",
        [
            ({"make": "Ford", "model": "F-150", "year": 2018}, []),
            ({"model": "F-150", "year": 2018}, ["Row 1: Make is required"]),
            ({"make": "Ford", "model": "F-150"}, ["Row 1: Valid year is required"]),
            ({"make": "Ford", "model": "F-150", "year": 2018, "vin": "ABC"}, ["Row 1: VIN must be 17 characters"]),
        ],
    )
    def test_validate_row(self, vehicle, errors):
        assert import_service.validate_row(vehicle, 1) == errors

    def test_parse_pdf_rejects_garbage(self):
        with pytest.raises(import_service.VehicleImportError):
            import_service.parse_upload("scan.pdf", io.BytesIO(b"not a pdf"))
