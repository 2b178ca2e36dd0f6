"""
Tasks, calendar events and direct messages.
"""

import pytest


def _task(client, headers, **overrides):
    body = {"task_name": "Call DMV", "due_date": "2025-06-01"}
    body.update(overrides)
    return client.post("/api/tasks", json=body, headers=headers)


class TestTasks:

    def test_create_defaults(self, client, admin_headers, seed, make_vehicle):
        vehicle_id = make_vehicle().id
        resp = _task(client, admin_headers, vehicleId=vehicle_id, assignedTo=seed["seller"].id)
        assert resp.status_code == 201
        task = resp.get_json()["data"]
        assert task["status"] == "pending"
        assert task["category"] == "general"
        assert task["completed_at"] is None
        assert task["assigned_by_user"]["username"] == "admin"
        assert task["assigned_to_user"]["username"] == "seller"
        assert task["vehicle"]["label"] == "2020 Honda Accord"

    @pytest.mark.parametrize(
        "overrides,error",
        [
            ({"task_name": ""}, "Task name and due date are required"),
            ({"due_date": None}, "Task name and due date are required"),
            ({"category": "chores"}, None),
            ({"status": "done"}, None),
            ({"vehicle_id": 9999}, "vehicle_id does not reference an existing vehicle"),
            ({"assigned_to": 9999}, "assigned_to does not reference an existing user"),
        ],
    )
    def test_create_rejections(self, client, seller_headers, overrides, error):
        resp = _task(client, seller_headers, **overrides)
        assert resp.status_code == 400
        if error:
            assert resp.get_json()["error"] == error

    def test_completion_timestamp(self, client, seller_headers):
        task_id = _task(client, seller_headers).get_json()["data"]["id"]

        done = client.patch(f"/api/tasks/{task_id}", json={"status": "completed"}, headers=seller_headers)
        assert done.get_json()["data"]["completed_at"] is not None

        reopened = client.patch(f"/api/tasks/{task_id}", json={"status": "pending"}, headers=seller_headers)
        assert reopened.get_json()["data"]["completed_at"] is None

    def test_list_filters_and_pagination(self, client, seller_headers, seed):
        for i in range(12):
            _task(client, seller_headers, task_name=f"Task {i}", category="missing_title" if i % 2 else "location")

        page = client.get("/api/tasks", headers=seller_headers).get_json()
        assert page["pagination"] == {"page": 1, "limit": 10, "total": 12, "pages": 2}
        assert page["data"][0]["task_name"] == "Task 11"

        titles = client.get("/api/tasks?category=missing_title", headers=seller_headers).get_json()
        assert titles["pagination"]["total"] == 6

        search = client.get("/api/tasks?search=task 3", headers=seller_headers).get_json()
        assert [t["task_name"] for t in search["data"]] == ["Task 3"]

    def test_bulk_update(self, client, seller_headers):
        ids = [_task(client, seller_headers, task_name=f"T{i}").get_json()["data"]["id"] for i in range(3)]

        resp = client.patch(
            "/api/tasks/bulk",
            json={"taskIds": ids[:2] + [9999], "updates": {"status": "completed"}},
            headers=seller_headers,
        )
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["count"] == 2
        assert body["message"] == "2 task(s) updated successfully"
        assert all(t["completed_at"] for t in body["data"])

        untouched = client.get(f"/api/tasks/{ids[2]}", headers=seller_headers).get_json()["data"]
        assert untouched["status"] == "pending"

    @pytest.mark.parametrize(
        "payload",
        [
            {"updates": {"status": "completed"}},
            {"taskIds": [], "updates": {"status": "completed"}},
            {"taskIds": [1]},
            {"taskIds": ["x"], "updates": {"status": "completed"}},
            {"task_ids": [1], "updates": {"status": "exploded"}},
        ],
    )
    def test_bulk_rejections(self, client, seller_headers, payload):
        assert client.patch("/api/tasks/bulk", json=payload, headers=seller_headers).status_code == 400

    def test_delete(self, client, seller_headers):
        task_id = _task(client, seller_headers).get_json()["data"]["id"]
        resp = client.delete(f"/api/tasks/{task_id}", headers=seller_headers)
        assert resp.get_json()["message"] == "Task deleted successfully"
        assert client.get(f"/api/tasks/{task_id}", headers=seller_headers).status_code == 404


class TestEvents:

    def _event(self, client, headers, **overrides):
        body = {"title": "Auction day", "eventDate": "2025-07-10", "eventTime": "09:00"}
        body.update(overrides)
        return client.post("/api/events", json=body, headers=headers)

    def test_create_and_list_in_calendar_order(self, client, transporter_headers):
        self._event(client, transporter_headers, title="Late", eventTime="15:00")
        self._event(client, transporter_headers, title="Early")
        self._event(client, transporter_headers, title="Next day", eventDate="2025-07-11", eventTime="08:00")

        body = client.get("/api/events", headers=transporter_headers).get_json()
        assert [e["title"] for e in body["data"]] == ["Early", "Late", "Next day"]
        assert body["data"][0]["status"] == "scheduled"
        assert body["data"][0]["created_by_user"]["username"] == "transporter"

        window = client.get("/api/events?dateFrom=2025-07-11", headers=transporter_headers).get_json()
        assert [e["title"] for e in window["data"]] == ["Next day"]

    def test_required_fields(self, client, transporter_headers):
        resp = self._event(client, transporter_headers, eventTime="")
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Title, event date, and event time are required"

    def test_bad_date_filter(self, client, transporter_headers):
        assert client.get("/api/events?dateFrom=July", headers=transporter_headers).status_code == 400

    def test_update_and_delete(self, client, transporter_headers):
        event_id = self._event(client, transporter_headers).get_json()["data"]["id"]

        assert client.patch(
            f"/api/events/{event_id}", json={"status": "postponed"}, headers=transporter_headers,
        ).status_code == 400
        done = client.patch(f"/api/events/{event_id}", json={"status": "completed"}, headers=transporter_headers)
        assert done.get_json()["data"]["status"] == "completed"

        resp = client.delete(f"/api/events/{event_id}", headers=transporter_headers)
        assert resp.get_json()["message"] == "Event deleted successfully"
        assert client.get(f"/api/events/{event_id}", headers=transporter_headers).status_code == 404


class TestMessages:

    def test_conversation_and_unread(self, client, seed, admin_headers, seller_headers):
        admin_id = seed["admin"].id
        seller_id = seed["seller"].id

        for text in ("one", "two", "three"):
            resp = client.post("/api/messages", json={"receiverId": seller_id, "content": text}, headers=admin_headers)
            assert resp.status_code == 201
        client.post("/api/messages", json={"receiver_id": admin_id, "content": "reply"}, headers=seller_headers)

        unread = client.get("/api/messages/unread-count", headers=seller_headers).get_json()["data"]
        assert unread == {"total": 3, "bySender": {str(admin_id): 3}}

        convo = client.get(f"/api/messages?receiverId={admin_id}", headers=seller_headers).get_json()
        assert [m["content"] for m in convo["data"]] == ["one", "two", "three", "reply"]
        assert convo["pagination"]["limit"] == 50

        marked = client.patch("/api/messages/read", json={"senderId": admin_id}, headers=seller_headers)
        assert marked.get_json() == {"message": "Messages marked as read", "count": 3}
        assert client.get("/api/messages/unread-count", headers=seller_headers).get_json()["data"]["total"] == 0

        # The admin still has the seller's reply unread
        admin_unread = client.get("/api/messages/unread-count", headers=admin_headers).get_json()["data"]
        assert admin_unread["bySender"] == {str(seller_id): 1}

    def test_newest_page_returned_oldest_first(self, client, seed, admin_headers, seller_headers):
        seller_id = seed["seller"].id
        for i in range(5):
            client.post("/api/messages", json={"receiverId": seller_id, "content": f"m{i}"}, headers=admin_headers)

        page = client.get(f"/api/messages?receiverId={seller_id}&limit=2", headers=admin_headers).get_json()
        assert [m["content"] for m in page["data"]] == ["m3", "m4"]
        older = client.get(f"/api/messages?receiverId={seller_id}&limit=2&page=2", headers=admin_headers).get_json()
        assert [m["content"] for m in older["data"]] == ["m1", "m2"]

    @pytest.mark.parametrize(
        "payload,status,error",
        [
            ({"content": "hi"}, 400, "Receiver ID and content are required"),
            ({"receiverId": 1, "content": "   "}, 400, "Receiver ID and content are required"),
            ({"receiverId": 99999, "content": "hi"}, 404, "Receiver not found"),
        ],
    )
    def test_send_rejections(self, client, seller_headers, payload, status, error):
        resp = client.post("/api/messages", json=payload, headers=seller_headers)
        assert resp.status_code == status
        assert resp.get_json()["error"] == error

    def test_conversation_requires_receiver(self, client, seller_headers):
        resp = client.get("/api/messages", headers=seller_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Receiver ID is required"

    def test_mark_read_requires_sender(self, client, seller_headers):
        resp = client.patch("/api/messages/read", json={}, headers=seller_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Sender ID is required"
