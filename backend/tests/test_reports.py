"""
Report tests.

Aggregations are exercised through the service with rows inserted
directly; the endpoints are checked for envelope and parameter errors.
"""

from datetime import date, datetime, timedelta

import pytest

from dealerops.models import ArbRecord, VehicleExpense
from dealerops.services import reporting_service
from dealerops.services.reporting_service import ReportError


@pytest.fixture
def add_expense(db_session):
    def _add(vehicle, cost, description="Recon", on=date(2025, 3, 1)):
        db_session.add(VehicleExpense(
            vehicle_id=vehicle.id, expense_description=description, expense_date=on, cost=cost,
        ))
        db_session.commit()
    return _add


@pytest.fixture
def add_arb(db_session):
    def _add(vehicle, arb_type, outcome, created_at, **fields):
        db_session.add(ArbRecord(
            vehicle_id=vehicle.id, arb_type=arb_type, outcome=outcome, created_at=created_at, **fields,
        ))
        db_session.commit()
    return _add


class TestWeekKeys:

    @pytest.mark.parametrize(
        "day,expected",
        [
            (date(2025, 3, 12), "2025-W11"),
            (date(2024, 12, 30), "2025-W01"),
            (date(2021, 1, 1), "2020-W53"),
            (date(2021, 1, 4), "2021-W01"),
        ],
    )
    def test_iso_week_key(self, day, expected):
        assert reporting_service.iso_week_key(day) == expected

    def test_month_key(self):
        assert reporting_service.month_key(date(2025, 2, 9)) == "2025-02"


class TestSalesReport:

    def test_groups_by_week_and_sorts_by_sales(self, make_vehicle, add_expense):
        # Week 2025-W11
        a = make_vehicle(status="Sold", sale_date=date(2025, 3, 10), sale_invoice=10000, bought_price=8000, buy_fee=200)
        make_vehicle(status="Sold", sale_date=date(2025, 3, 14), sale_invoice=12000, bought_price=11000)
        # Week 2025-W12, larger total
        make_vehicle(status="Pending Arbitration", sale_date=date(2025, 3, 18), sale_invoice=30000, bought_price=25000)
        # Excluded: not sold, or no sale date
        make_vehicle(status="Pending", sale_date=date(2025, 3, 11), sale_invoice=5000)
        make_vehicle(status="Sold", sale_invoice=5000)
        add_expense(a, 300)

        report = reporting_service.sales_report()
        assert [r["week"] for r in report] == ["2025-W12", "2025-W11"]

        w11 = report[1]
        assert w11["vehicleCount"] == 2
        assert w11["totalSales"] == 22000
        assert w11["avgSalePrice"] == 11000
        # (10000 - 8500) + (12000 - 11000)
        assert w11["totalProfit"] == 2500

    def test_filters(self, make_vehicle):
        make_vehicle(status="Sold", sale_date=date(2025, 1, 6), sale_invoice=1, make="Ford",
                     vehicle_location="Dallas Lot", buyer_dealership="North Motors")
        make_vehicle(status="Sold", sale_date=date(2025, 2, 6), sale_invoice=1, make="Kia",
                     vehicle_location="Austin Yard", buyer_contact_name="Ana South")

        assert len(reporting_service.sales_report(make="Ford")) == 1
        assert len(reporting_service.sales_report(location="austin")) == 1
        assert len(reporting_service.sales_report(buyer_name="north")) == 1
        assert len(reporting_service.sales_report(date_from="2025-02-01")) == 1
        assert reporting_service.sales_report(date_to="2024-12-31") == []

    def test_bad_date(self, db_session):
        with pytest.raises(ReportError):
            reporting_service.sales_report(date_from="last week")

    def test_endpoint(self, client, admin_headers, sold_vehicle):
        body = client.get("/api/reports/sales?dateFrom=2025-03-01", headers=admin_headers).get_json()
        assert body["data"][0]["week"] == "2025-W11"
        assert body["data"][0]["vehicles"][0]["buyer"] == "Jane Buyer"

        bad = client.get("/api/reports/sales?dateFrom=03/01/2025", headers=admin_headers)
        assert bad.status_code == 400


class TestSummaryReport:

    def test_monthly(self, make_vehicle, add_expense):
        jan = make_vehicle(status="Sold", sale_date=date(2025, 1, 15), sale_invoice=9000, bought_price=7000)
        make_vehicle(status="Sold", sale_date=date(2025, 2, 3), sale_invoice=5000, bought_price=5500)
        add_expense(jan, 250)

        summary = reporting_service.summary_report(period="monthly")
        assert [s["period"] for s in summary] == ["2025-01", "2025-02"]
        assert summary[0]["grossSales"] == 9000
        assert summary[0]["totalExpenses"] == 250
        assert summary[0]["netProfit"] == 1750
        assert summary[1]["netProfit"] == -500

    def test_invalid_period(self, client, admin_headers):
        resp = client.get("/api/reports/summary?period=daily", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "period must be weekly or monthly"


class TestArbitrationReport:

    def test_monthly_activity(self, make_vehicle, add_arb):
        sold = make_vehicle(status="Sold", sale_invoice=20000)
        march = datetime(2025, 3, 5, 12, 0)
        add_arb(sold, "Sold ARB", "Denied", march)
        add_arb(sold, "Sold ARB", "Buyer Withdrew", march, transport_cost=300)
        add_arb(sold, "Sold ARB", "Buyer Withdrew", march, transport_cost=500)
        add_arb(sold, "Sold ARB", "Price Adjustment", march, adjustment_amount=1000)
        add_arb(sold, "Sold ARB", "Pending", datetime(2025, 4, 1, 9, 0))
        add_arb(sold, "Inventory ARB", "Denied", march)

        report = reporting_service.arbitration_report()
        assert [r["month"] for r in report] == ["2025-03", "2025-04"]

        march_row = report[0]
        assert march_row["totalArbs"] == 4
        assert march_row["denied"] == 1
        assert march_row["withdrawn"] == {"count": 2, "avgTransportCost": 400}
        assert march_row["priceAdjusted"] == {"count": 1, "avgPercent": 5, "avgAmount": 1000}

        assert report[1]["totalArbs"] == 1

    def test_date_window(self, make_vehicle, add_arb):
        sold = make_vehicle(status="Sold")
        add_arb(sold, "Sold ARB", "Denied", datetime(2025, 3, 31, 23, 0))
        add_arb(sold, "Sold ARB", "Denied", datetime(2025, 4, 1, 0, 30))

        report = reporting_service.arbitration_report(date_to="2025-03-31")
        assert [r["month"] for r in report] == ["2025-03"]


class TestMissingTitles:

    def test_sections(self, make_vehicle):
        as_of = date(2025, 6, 1)
        inventory = make_vehicle(status="Pending", title_status="Absent")
        make_vehicle(status="Pending", title_status="Received")
        sold = make_vehicle(status="Sold", title_status="In Transit", sale_date=date(2025, 5, 1))
        arb = make_vehicle(status="Pending Arbitration", title_status="Available not Received",
                           sale_date=date(2025, 4, 1))

        rows = reporting_service.missing_titles_report(as_of=as_of)
        by_section = {(r["currentStatus"], r["vehicleId"]) for r in rows}
        assert ("Inventory", inventory.id) in by_section
        assert ("Sold", sold.id) in by_section
        # Pending Arbitration shows under both Sold and ARB
        assert ("Sold", arb.id) in by_section
        assert ("ARB", arb.id) in by_section
        assert len(rows) == 4

        sold_only = reporting_service.missing_titles_report(section="sold", as_of=as_of)
        assert sold_only[0]["vehicleId"] == arb.id
        assert sold_only[0]["daysMissing"] == 61
        assert sold_only[0]["stockNumber"] == f"{arb.id:08d}"

    def test_invalid_section(self, client, seller_headers):
        resp = client.get("/api/reports/missing-titles?section=lot", headers=seller_headers)
        assert resp.status_code == 400

    def test_endpoint_for_seller(self, client, seller_headers, make_vehicle):
        make_vehicle(status="Pending", title_status="Absent")
        resp = client.get("/api/reports/missing-titles?section=inventory", headers=seller_headers)
        assert resp.status_code == 200
        row = resp.get_json()["data"][0]
        assert row["daysMissing"] == 0
        assert row["vin"].startswith("1HGCV1F3")


class TestProfitPerCar:

    def test_breakdown(self, make_vehicle, add_expense, add_arb):
        vehicle = make_vehicle(
            status="Sold", sale_date=date(2025, 3, 12), sale_invoice=15000,
            bought_price=9000, buy_fee=500, other_charges=100, trim="EX-L",
        )
        add_expense(vehicle, 400, description="Recon", on=date(2025, 3, 1))
        add_expense(vehicle, 150, description="Detail", on=date(2025, 3, 2))
        add_arb(vehicle, "Inventory ARB", "Price Adjustment", datetime(2025, 2, 1), adjustment_amount=1000)
        make_vehicle(status="Pending", sale_invoice=99999)

        rows = reporting_service.profit_per_car()
        assert len(rows) == 1
        row = rows[0]
        assert row["trim"] == "EX-L"
        assert row["totalExpenses"] == 550
        assert row["inventoryArbAdjustments"] == 1000
        # 15000 - (9000 + 500 + 100 + 550 - 1000)
        assert row["netProfit"] == 5850
        assert [e["description"] for e in row["expenses"]] == ["Recon", "Detail"]
        assert row["arbActions"][0]["adjustmentAmount"] == 1000
        assert row["arbActions"][0]["transportCost"] is None

    def test_empty(self, db_session):
        assert reporting_service.profit_per_car(date_from="2030-01-01") == []

    def test_window_excludes_future(self, make_vehicle):
        make_vehicle(status="Sold", sale_date=date.today() + timedelta(days=30), sale_invoice=1)
        assert reporting_service.profit_per_car(date_to=date.today().isoformat()) == []
