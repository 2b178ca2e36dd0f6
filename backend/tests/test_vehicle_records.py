"""
Vehicle sub-record tests: expenses, notes, images, dispatch, assessments
and the timeline.
"""

import io
import os

import pytest


def _png(name="photo.png", payload=b"\x89PNG\r\n\x1a\n fake"):
    return {"file": (io.BytesIO(payload), name, "image/png")}


class TestExpenses:

    def test_crud(self, client, admin_headers, make_vehicle):
        vehicle_id = make_vehicle().id
        base = f"/api/vehicles/{vehicle_id}/expenses"

        created = client.post(
            base,
            json={"expense_description": "Tires", "expense_date": "2025-02-01", "cost": "$320.00"},
            headers=admin_headers,
        )
        assert created.status_code == 201
        expense = created.get_json()["data"]
        assert expense["cost"] == 320.0
        assert expense["expense_date"] == "2025-02-01"

        patched = client.patch(f"{base}/{expense['id']}", json={"cost": 350, "notes": "Alignment"}, headers=admin_headers)
        assert patched.status_code == 200
        assert patched.get_json()["data"]["cost"] == 350
        assert patched.get_json()["data"]["notes"] == "Alignment"

        listed = client.get(base, headers=admin_headers).get_json()["data"]
        assert [e["id"] for e in listed] == [expense["id"]]

        deleted = client.delete(f"{base}/{expense['id']}", headers=admin_headers)
        assert deleted.get_json() == {"success": True}
        assert client.get(base, headers=admin_headers).get_json()["data"] == []

    @pytest.mark.parametrize(
        "payload,error",
        [
            ({"expense_date": "2025-02-01", "cost": 10}, "Expense description is required"),
            ({"expense_description": "Tires", "cost": 10}, "Expense date is required"),
            ({"expense_description": "Tires", "expense_date": "2025-02-01"}, "Valid cost is required"),
            ({"expense_description": "Tires", "expense_date": "2025-02-01", "cost": -5}, "Valid cost is required"),
            ({"expense_description": "Tires", "expense_date": "2025-02-01", "cost": "abc"}, "Valid cost is required"),
        ],
    )
    def test_validation(self, client, admin_headers, make_vehicle, payload, error):
        vehicle_id = make_vehicle().id
        resp = client.post(f"/api/vehicles/{vehicle_id}/expenses", json=payload, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == error

    def test_expense_belongs_to_vehicle(self, client, admin_headers, make_vehicle):
        first = make_vehicle().id
        second = make_vehicle().id
        expense_id = client.post(
            f"/api/vehicles/{first}/expenses",
            json={"expense_description": "Wash", "expense_date": "2025-02-01", "cost": 20},
            headers=admin_headers,
        ).get_json()["data"]["id"]

        resp = client.patch(f"/api/vehicles/{second}/expenses/{expense_id}", json={"cost": 1}, headers=admin_headers)
        assert resp.status_code == 404

    def test_unknown_vehicle(self, client, admin_headers):
        assert client.get("/api/vehicles/9999/expenses", headers=admin_headers).status_code == 404


class TestNotes:

    def test_crud(self, client, seller_headers, make_vehicle):
        vehicle_id = make_vehicle().id
        base = f"/api/vehicles/{vehicle_id}/notes"

        created = client.post(base, json={"note_text": "  Dent on rear bumper "}, headers=seller_headers)
        assert created.status_code == 201
        note = created.get_json()["data"]
        assert note["note_text"] == "Dent on rear bumper"
        assert note["author"]["username"] == "seller"

        patched = client.patch(f"{base}/{note['id']}", json={"note_text": "Dent fixed"}, headers=seller_headers)
        assert patched.get_json()["data"]["note_text"] == "Dent fixed"

        assert client.delete(f"{base}/{note['id']}", headers=seller_headers).status_code == 200
        assert client.get(base, headers=seller_headers).get_json()["data"] == []

    @pytest.mark.parametrize("payload", [{}, {"note_text": "   "}])
    def test_requires_text(self, client, seller_headers, make_vehicle, payload):
        vehicle_id = make_vehicle().id
        resp = client.post(f"/api/vehicles/{vehicle_id}/notes", json=payload, headers=seller_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Note text is required"


class TestImages:

    def test_upload_list_delete(self, app, client, seller_headers, make_vehicle):
        vehicle_id = make_vehicle().id
        base = f"/api/vehicles/{vehicle_id}/images"

        resp = client.post(base, data=_png(), headers=seller_headers, content_type="multipart/form-data")
        assert resp.status_code == 201
        image = resp.get_json()["data"]
        assert image["file_name"] == "photo.png"
        assert image["file_type"] == "image/png"
        assert image["file_url"].startswith(f"/uploads/vehicle-images/{vehicle_id}/")
        assert image["file_url"].endswith(".png")

        stored_rel = image["file_url"].split("/uploads/vehicle-images/", 1)[1]
        stored_abs = os.path.join(app.config["UPLOAD_FOLDER"], "vehicle-images", stored_rel)
        assert os.path.isfile(stored_abs)

        served = client.get(image["file_url"])
        assert served.status_code == 200
        assert served.data.startswith(b"\x89PNG")

        listed = client.get(base, headers=seller_headers).get_json()["data"]
        assert [i["id"] for i in listed] == [image["id"]]

        assert client.delete(f"{base}/{image['id']}", headers=seller_headers).status_code == 200
        assert not os.path.exists(stored_abs)

    @pytest.mark.parametrize(
        "data,error",
        [
            ({}, "No file provided"),
            (
                {"file": (io.BytesIO(b"MZ"), "setup.exe", "application/octet-stream")},
                "Invalid file type. Only JPEG, PNG, and PDF files are allowed.",
            ),
            (
                {"file": (io.BytesIO(b"GIF89a"), "anim.gif", "image/gif")},
                "Invalid file type. Only JPEG, PNG, and PDF files are allowed.",
            ),
            ({"file": (io.BytesIO(b""), "empty.png", "image/png")}, "File is empty"),
        ],
    )
    def test_rejected_uploads(self, client, seller_headers, make_vehicle, data, error):
        vehicle_id = make_vehicle().id
        resp = client.post(
            f"/api/vehicles/{vehicle_id}/images",
            data=data,
            headers=seller_headers,
            content_type="multipart/form-data",
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"] == error

    def test_size_limit(self, client, seller_headers, make_vehicle):
        vehicle_id = make_vehicle().id
        big = b"\x00" * (10 * 1024 * 1024 + 1)
        resp = client.post(
            f"/api/vehicles/{vehicle_id}/images",
            data={"file": (io.BytesIO(big), "huge.jpg", "image/jpeg")},
            headers=seller_headers,
            content_type="multipart/form-data",
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "File size exceeds 10MB limit"

    def test_path_traversal_not_served(self, client, seed):
        assert client.get("/uploads/vehicle-images/../../etc/passwd").status_code == 404


class TestDispatch:

    def test_crud_with_camel_case_keys(self, client, transporter_headers, make_vehicle):
        vehicle_id = make_vehicle().id
        base = f"/api/vehicles/{vehicle_id}/dispatch"

        created = client.post(
            base,
            json={"location": "Houston", "transportCompany": "Lone Star Haul", "transportCost": "450"},
            headers=transporter_headers,
        )
        assert created.status_code == 201
        dispatch = created.get_json()["data"]
        assert dispatch["transport_company"] == "Lone Star Haul"
        assert dispatch["transport_cost"] == 450.0

        patched = client.patch(f"{base}/{dispatch['id']}", json={"state": "TX"}, headers=transporter_headers)
        assert patched.get_json()["data"]["state"] == "TX"

        assert client.delete(f"{base}/{dispatch['id']}", headers=transporter_headers).get_json() == {"success": True}

    def test_requires_location_and_company(self, client, transporter_headers, make_vehicle):
        vehicle_id = make_vehicle().id
        resp = client.post(f"/api/vehicles/{vehicle_id}/dispatch", json={"location": "Houston"}, headers=transporter_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Location and transport company are required"

    def test_document_upload(self, client, transporter_headers, make_vehicle):
        vehicle_id = make_vehicle().id
        resp = client.post(
            f"/api/vehicles/{vehicle_id}/dispatch/upload",
            data={"file": (io.BytesIO(b"%PDF-1.4 bol"), "bol.pdf", "application/pdf")},
            headers=transporter_headers,
            content_type="multipart/form-data",
        )
        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["file_name"] == "bol.pdf"
        assert data["file_url"].startswith("/uploads/vehicle-documents/")


class TestAssessments:

    PAYLOAD = {
        "assessment_date": "2025-05-06",
        "assessment_time": "09:30",
        "conducted_name": "Sam Inspector",
        "miles_in": "45210",
        "damage_markers": [{"x": 10, "y": 20, "type": "dent"}],
        "work_requested": ["Detail"],
    }

    def test_create_marks_completed(self, client, seller_headers, make_vehicle):
        vehicle_id = make_vehicle().id
        resp = client.post(f"/api/vehicles/{vehicle_id}/assessments", json=self.PAYLOAD, headers=seller_headers)
        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["status"] == "Completed"
        assert data["miles_in"] == 45210
        assert data["damage_markers"] == [{"x": 10, "y": 20, "type": "dent"}]
        assert data["owner_instructions"] == []

    def test_update_and_delete(self, client, seller_headers, make_vehicle):
        vehicle_id = make_vehicle().id
        base = f"/api/vehicles/{vehicle_id}/assessments"
        assessment_id = client.post(base, json=self.PAYLOAD, headers=seller_headers).get_json()["data"]["id"]

        patched = client.patch(f"{base}/{assessment_id}", json={"fuel_level": "1/2"}, headers=seller_headers)
        assert patched.get_json()["data"]["fuel_level"] == "1/2"

        assert client.delete(f"{base}/{assessment_id}", headers=seller_headers).status_code == 200
        assert client.delete(f"{base}/{assessment_id}", headers=seller_headers).status_code == 404

    def test_requires_date_time_and_name(self, client, seller_headers, make_vehicle):
        vehicle_id = make_vehicle().id
        resp = client.post(
            f"/api/vehicles/{vehicle_id}/assessments",
            json={"assessment_date": "2025-05-06"},
            headers=seller_headers,
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Assessment date, time, and conducted name are required"


class TestTimeline:

    def test_add_and_deduplicate(self, client, seller_headers, make_vehicle):
        vehicle_id = make_vehicle().id
        base = f"/api/vehicles/{vehicle_id}/timeline"
        body = {"action": "Title Received", "actionDate": "2025-04-02", "actionTime": "10:15:00", "note": "From auction"}

        first = client.post(base, json=body, headers=seller_headers)
        assert first.status_code == 201
        entry = first.get_json()["data"]
        assert entry["action_date"] == "2025-04-02"
        assert entry["user"]["username"] == "seller"

        again = client.post(base, json=body, headers=seller_headers)
        assert again.status_code == 200
        assert again.get_json()["data"]["id"] == entry["id"]

        listing = client.get(base, headers=seller_headers).get_json()
        assert listing["total"] == 1
        assert listing["limit"] == 15
        assert listing["totalPages"] == 1

    def test_requires_action(self, client, seller_headers, make_vehicle):
        vehicle_id = make_vehicle().id
        resp = client.post(f"/api/vehicles/{vehicle_id}/timeline", json={"note": "x"}, headers=seller_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Action is required"

    def test_pagination(self, client, seller_headers, make_vehicle):
        vehicle_id = make_vehicle().id
        base = f"/api/vehicles/{vehicle_id}/timeline"
        for i in range(4):
            client.post(base, json={"action": f"Step {i}", "actionTime": f"10:0{i}:00"}, headers=seller_headers)

        page = client.get(f"{base}?limit=3&page=2", headers=seller_headers).get_json()
        assert page["total"] == 4
        assert page["totalPages"] == 2
        assert len(page["data"]) == 1

    def test_transporter_cannot_write(self, client, transporter_headers, make_vehicle):
        vehicle_id = make_vehicle().id
        resp = client.post(f"/api/vehicles/{vehicle_id}/timeline", json={"action": "Moved"}, headers=transporter_headers)
        assert resp.status_code == 403
