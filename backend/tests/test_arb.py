"""
Arbitration workflow tests.

Covers initiate preconditions, every supported (arb_type, outcome) pair and
its side effects on the vehicle, expenses and timeline, plus the guard that
a record is resolved exactly once.
"""

import pytest
from sqlalchemy.exc import SQLAlchemyError

from dealerops.extensions import db
from dealerops.models import ArbRecord, TimelineEntry, Vehicle, VehicleExpense
from dealerops.services import arb_service, timeline_service


def _initiate(client, headers, vehicle_id, arb_type, notes=None):
    return client.post(
        f"/api/vehicles/{vehicle_id}/arb/initiate",
        json={"arb_type": arb_type, "notes": notes},
        headers=headers,
    )


def _resolve(client, headers, vehicle_id, **body):
    return client.post(f"/api/vehicles/{vehicle_id}/arb/outcome", json=body, headers=headers)


def _fresh_vehicle(vehicle_id):
    db.session.expire_all()
    return db.session.get(Vehicle, vehicle_id)


class TestInitiate:

    def test_sold_arb_moves_vehicle_to_pending_arbitration(self, client, seller_headers, sold_vehicle):
        vehicle_id = sold_vehicle.id
        resp = _initiate(client, seller_headers, vehicle_id, "Sold ARB", notes="Frame damage")
        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["outcome"] == "Pending"
        assert data["arb_type"] == "Sold ARB"
        assert data["notes"] == "Frame damage"

        vehicle = _fresh_vehicle(vehicle_id)
        assert vehicle.status == "Pending Arbitration"
        entries = db.session.query(TimelineEntry).filter_by(vehicle_id=vehicle_id).all()
        assert [e.action for e in entries] == ["ARB Initiated"]

    def test_sold_arb_requires_sold_vehicle(self, client, seller_headers, make_vehicle):
        vehicle = make_vehicle(status="Pending")
        resp = _initiate(client, seller_headers, vehicle.id, "Sold ARB")
        assert resp.status_code == 400
        assert "Sold status" in resp.get_json()["error"]

    def test_inventory_arb_rejected_for_sold_vehicle(self, client, seller_headers, sold_vehicle):
        resp = _initiate(client, seller_headers, sold_vehicle.id, "Inventory ARB")
        assert resp.status_code == 400

    def test_invalid_type(self, client, seller_headers, make_vehicle):
        vehicle = make_vehicle()
        resp = _initiate(client, seller_headers, vehicle.id, "Other ARB")
        assert resp.status_code == 400

    def test_missing_vehicle(self, client, seller_headers):
        resp = _initiate(client, seller_headers, 9999, "Inventory ARB")
        assert resp.status_code == 404


class TestSoldOutcomes:

    @pytest.fixture
    def pending_sold(self, client, seller_headers, sold_vehicle):
        vehicle_id = sold_vehicle.id
        assert _initiate(client, seller_headers, vehicle_id, "Sold ARB").status_code == 201
        return vehicle_id

    def test_denied_reverts_to_sold(self, client, seller_headers, pending_sold):
        resp = _resolve(client, seller_headers, pending_sold, arb_type="Sold ARB", outcome="Denied")
        assert resp.status_code == 200
        body = resp.get_json()["data"]
        assert body["arb_record"]["outcome"] == "Denied"
        assert body["vehicle"]["status"] == "Sold"
        assert db.session.query(VehicleExpense).filter_by(vehicle_id=pending_sold).count() == 0

    def test_price_adjustment_records_expense(self, client, seller_headers, pending_sold):
        resp = _resolve(
            client, seller_headers, pending_sold,
            arb_type="Sold ARB", outcome="Price Adjustment", adjustment_amount=750,
        )
        assert resp.status_code == 200
        assert resp.get_json()["data"]["vehicle"]["status"] == "Sold"

        db.session.expire_all()
        expenses = db.session.query(VehicleExpense).filter_by(vehicle_id=pending_sold).all()
        assert len(expenses) == 1
        assert expenses[0].expense_description == "Arbitration Modified"
        assert expenses[0].cost == 750

        latest = (
            db.session.query(TimelineEntry)
            .filter_by(vehicle_id=pending_sold)
            .order_by(TimelineEntry.id.desc())
            .first()
        )
        assert latest.action == "ARB Outcome Processed"
        assert latest.note == "ARB Price Adjustment: $750"

    def test_price_adjustment_requires_amount(self, client, seller_headers, pending_sold):
        resp = _resolve(client, seller_headers, pending_sold, arb_type="Sold ARB", outcome="Price Adjustment")
        assert resp.status_code == 400

        # Nothing changed: the record is still pending
        db.session.expire_all()
        record = db.session.query(ArbRecord).filter_by(vehicle_id=pending_sold).one()
        assert record.outcome == "Pending"
        assert _fresh_vehicle(pending_sold).status == "Pending Arbitration"

    def test_buyer_withdrew_clears_sale_and_books_transport(self, client, seller_headers, pending_sold):
        resp = _resolve(
            client, seller_headers, pending_sold,
            arb_type="Sold ARB",
            outcome="Buyer Withdrew",
            transport_type="Flatbed",
            transport_location="Houston",
            transport_date="2025-04-01",
            transport_cost=325.5,
        )
        assert resp.status_code == 200

        vehicle = _fresh_vehicle(pending_sold)
        assert vehicle.status == "Pending"
        assert vehicle.sale_invoice is None
        assert vehicle.sale_date is None
        assert vehicle.buyer_contact_name is None
        # Purchase figures survive
        assert vehicle.bought_price == 10000

        expense = db.session.query(VehicleExpense).filter_by(vehicle_id=pending_sold).one()
        assert expense.expense_description == "Transport - Flatbed"
        assert expense.cost == 325.5
        assert expense.expense_date.isoformat() == "2025-04-01"
        assert expense.notes.startswith("Transport Location: Houston.")

    def test_buyer_withdrew_requires_transport_cost(self, client, seller_headers, pending_sold):
        resp = _resolve(client, seller_headers, pending_sold, arb_type="Sold ARB", outcome="Buyer Withdrew")
        assert resp.status_code == 400

    def test_outcome_not_valid_for_type(self, client, seller_headers, pending_sold):
        resp = _resolve(client, seller_headers, pending_sold, arb_type="Sold ARB", outcome="Withdrawn")
        assert resp.status_code == 400

    def test_resolved_only_once(self, client, seller_headers, pending_sold):
        first = _resolve(client, seller_headers, pending_sold, arb_type="Sold ARB", outcome="Denied")
        assert first.status_code == 200
        second = _resolve(client, seller_headers, pending_sold, arb_type="Sold ARB", outcome="Denied")
        assert second.status_code == 404
        assert second.get_json()["error"] == "No pending ARB record found for this vehicle"


class TestInventoryOutcomes:

    @pytest.fixture
    def pending_inventory(self, client, seller_headers, make_vehicle):
        vehicle = make_vehicle(status="Pending", bought_price=8000, buy_fee=300, other_charges=50)
        vehicle_id = vehicle.id
        assert _initiate(client, seller_headers, vehicle_id, "Inventory ARB").status_code == 201
        return vehicle_id

    def test_withdrawn_clears_purchase_figures(self, client, seller_headers, pending_inventory):
        resp = _resolve(client, seller_headers, pending_inventory, arb_type="Inventory ARB", outcome="Withdrawn")
        assert resp.status_code == 200
        vehicle = _fresh_vehicle(pending_inventory)
        assert vehicle.status == "Withdrew"
        assert vehicle.bought_price is None
        assert vehicle.buy_fee is None
        assert vehicle.other_charges is None

    def test_price_adjustment_lowers_purchase_price(self, client, seller_headers, pending_inventory):
        resp = _resolve(
            client, seller_headers, pending_inventory,
            arb_type="Inventory ARB", outcome="Price Adjustment", adjustment_amount=1200,
        )
        assert resp.status_code == 200
        vehicle = _fresh_vehicle(pending_inventory)
        assert vehicle.status == "Pending"
        assert vehicle.bought_price == 6800
        assert db.session.query(VehicleExpense).filter_by(vehicle_id=pending_inventory).count() == 0

    def test_price_adjustment_floors_at_zero(self, client, seller_headers, pending_inventory):
        resp = _resolve(
            client, seller_headers, pending_inventory,
            arb_type="Inventory ARB", outcome="Price Adjustment", adjustment_amount=9000,
        )
        assert resp.status_code == 200
        assert _fresh_vehicle(pending_inventory).bought_price == 0

    def test_denied_returns_to_pending(self, client, seller_headers, pending_inventory):
        resp = _resolve(client, seller_headers, pending_inventory, arb_type="Inventory ARB", outcome="Denied")
        assert resp.status_code == 200
        assert _fresh_vehicle(pending_inventory).status == "Pending"


class TestArbListing:

    def test_history_and_list(self, client, seller_headers, admin_headers, sold_vehicle, make_vehicle):
        sold_id = sold_vehicle.id
        other_id = make_vehicle().id
        _initiate(client, seller_headers, sold_id, "Sold ARB")
        _initiate(client, seller_headers, other_id, "Inventory ARB")

        history = client.get(f"/api/vehicles/{sold_id}/arb/history", headers=seller_headers)
        assert history.status_code == 200
        rows = history.get_json()["data"]
        assert len(rows) == 1
        assert rows[0]["creator"]["username"] == "seller"

        listing = client.get("/api/arb?arb_type=Inventory ARB", headers=admin_headers)
        assert listing.status_code == 200
        items = listing.get_json()["data"]
        assert [i["vehicleId"] for i in items] == [other_id]
        assert items[0]["createdBy"] == "seller"
        assert items[0]["vehicle"] == "2020 Honda Accord"

    def test_get_one_includes_vehicle(self, client, seller_headers, sold_vehicle):
        arb_id = _initiate(client, seller_headers, sold_vehicle.id, "Sold ARB").get_json()["data"]["id"]
        resp = client.get(f"/api/arb/{arb_id}", headers=seller_headers)
        assert resp.status_code == 200
        assert resp.get_json()["data"]["vehicle"]["status"] == "Pending Arbitration"

        assert client.get("/api/arb/9999", headers=seller_headers).status_code == 404


class TestOutcomeHandlers:
    """The dispatch table covers exactly the six supported pairs."""

    def test_supported_pairs(self):
        assert set(arb_service.OUTCOME_HANDLERS) == {
            ("Sold ARB", "Denied"),
            ("Sold ARB", "Price Adjustment"),
            ("Sold ARB", "Buyer Withdrew"),
            ("Inventory ARB", "Withdrawn"),
            ("Inventory ARB", "Price Adjustment"),
            ("Inventory ARB", "Denied"),
        }

    @pytest.mark.parametrize(
        "amount,expected",
        [(750, "$750"), (750.5, "$750.50"), (0.25, "$0.25")],
    )
    def test_amount_formatting(self, amount, expected):
        assert arb_service._fmt(amount) == expected


class TestAtomicity:

    def test_failed_timeline_write_leaves_record_pending(self, client, seller_headers, sold_vehicle, monkeypatch):
        vehicle_id = sold_vehicle.id
        assert _initiate(client, seller_headers, vehicle_id, "Sold ARB").status_code == 201

        def _fail(**kwargs):
            raise SQLAlchemyError("timeline insert failed")

        monkeypatch.setattr(timeline_service, "add_entry", _fail)
        resp = _resolve(
            client, seller_headers, vehicle_id,
            arb_type="Sold ARB", outcome="Price Adjustment", adjustment_amount=750,
        )
        assert resp.status_code == 500
        assert resp.get_json()["error"] == "Failed to process ARB outcome"

        vehicle = _fresh_vehicle(vehicle_id)
        assert vehicle.status == "Pending Arbitration"
        assert vehicle.sale_invoice == 15000
        record = db.session.query(ArbRecord).filter_by(vehicle_id=vehicle_id).one()
        assert record.outcome == "Pending"
        assert record.adjustment_amount is None
        assert db.session.query(VehicleExpense).filter_by(vehicle_id=vehicle_id).count() == 0
