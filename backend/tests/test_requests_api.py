"""Tests for the event request HTTP API."""
from tests.conftest import make_user, request_payload


def _create(client, requester_id, **overrides) -> dict:
    body = request_payload(**overrides)
    body["requester_id"] = requester_id
    resp = client.post("/api/requests/", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


def _act(client, request_id, actor, action, **fields):
    body = {"actor_user_id": actor, "action": action}
    body.update(fields)
    return client.post(f"/api/requests/{request_id}/actions", json=body)


class TestRequestEndpoints:
    def test_create_and_fetch(self, client, cast):
        created = _create(client, cast.stakeholder)
        request = created["request"]
        assert request["status"] == "pending-review"
        assert request["reviewer"]["id"] == cast.coordinator
        assert request["event"]["title"] == "Barangay Blood Drive"
        assert request["event"]["status"] == "Pending"
        assert [n["recipient_id"] for n in created["notifications"]] == [cast.coordinator]
        notice = created["notifications"][0]
        assert notice["request_id"] == request["request_id"]
        assert notice["event_id"] == request["event_id"]

        resp = client.get(f"/api/requests/{request['request_id']}")
        assert resp.status_code == 200
        assert resp.json()["status_history"][0]["note"] == "Request submitted"

    def test_create_conflict(self, client, cast):
        body = request_payload(day="2026-02-01")
        body["requester_id"] = cast.stakeholder
        resp = client.post("/api/requests/", json=body)
        assert resp.status_code == 409
        data = resp.json()
        assert data["kind"] == "conflict"
        assert data["details"]["errors"] == ["Event date cannot be in the past"]

    def test_top_requester_needs_top_reviewer(self, client, db, cast):
        make_user(db, "u-lonely", 100)
        body = request_payload(coordinator_id=cast.coordinator)
        body["requester_id"] = "u-lonely"
        resp = client.post("/api/requests/", json=body)
        assert resp.status_code == 422
        assert resp.json()["details"]["field"] == "coordinator_id"

    def test_weekend_warning_is_returned(self, client, cast):
        resp = client.post("/api/requests/validate", json={
            "actor_user_id": cast.stakeholder,
            "start_date": "2026-03-07T09:00:00",
            "category": "BloodDrive",
            "location_id": "loc-north",
            "target_donation": 20,
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["is_valid"] is True
        assert data["warnings"] == ["Weekend events require special approval"]

    def test_list_filters(self, client, cast):
        first = _create(client, cast.stakeholder)["request"]
        _create(client, cast.stakeholder_b, location_id="loc-south")
        _act(client, first["request_id"], cast.coordinator, "accept")

        accepted = client.get("/api/requests/", params={"status": "review-accepted"}).json()
        assert [r["request_id"] for r in accepted] == [first["request_id"]]
        mine = client.get("/api/requests/", params={"requester_id": cast.stakeholder_b}).json()
        assert len(mine) == 1
        assert mine[0]["requester"]["id"] == cast.stakeholder_b

    def test_get_missing(self, client):
        assert client.get("/api/requests/nope").status_code == 404


class TestActionEndpoints:
    def test_allowed_actions(self, client, cast):
        rid = _create(client, cast.stakeholder)["request"]["request_id"]
        resp = client.get(f"/api/requests/{rid}/allowed-actions", params={"actor_user_id": cast.coordinator})
        assert resp.json()["actions"] == ["accept", "cancel", "reject", "reschedule", "view"]
        resp = client.get(f"/api/requests/{rid}/allowed-actions", params={"actor_user_id": cast.stakeholder})
        assert resp.json()["actions"] == ["view"]

    def test_reschedule_and_confirm(self, client, cast):
        rid = _create(client, cast.stakeholder)["request"]["request_id"]
        resp = _act(
            client, rid, cast.coordinator, "reschedule", note="Morning slot taken",
            proposed_date="2026-03-06", proposed_start_time="14:00", proposed_end_time="17:00",
        )
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["request"]["status"] == "review-rescheduled"
        assert data["notifications"][0]["proposed_date"] == "2026-03-06"

        resp = _act(client, rid, cast.stakeholder, "confirm", expected_version=data["request"]["version"])
        assert resp.status_code == 200, resp.text
        request = resp.json()["request"]
        assert request["status"] == "completed"
        assert request["final_resolution"]["outcome"] == "approved"
        assert request["event"]["start_date"] == "2026-03-06T14:00:00"
        assert request["event"]["status"] == "Completed"

    def test_error_kinds(self, client, cast):
        rid = _create(client, cast.stakeholder)["request"]["request_id"]

        resp = _act(client, rid, cast.coordinator, "reject")
        assert resp.status_code == 422
        assert resp.json()["kind"] == "validation"

        resp = _act(client, rid, cast.stakeholder, "accept")
        assert resp.status_code == 403
        assert resp.json()["kind"] == "unauthorized"

        resp = _act(client, rid, cast.coordinator, "confirm")
        assert resp.status_code == 403
        assert resp.json()["kind"] == "unauthorized"
        assert "confirm" not in resp.json()["details"]["allowed_actions"]

        resp = _act(client, rid, cast.coordinator, "accept", expected_version=3)
        assert resp.status_code == 409
        assert resp.json()["kind"] == "conflict"

        resp = _act(client, "missing", cast.coordinator, "accept")
        assert resp.status_code == 404
        assert resp.json()["kind"] == "not_found"

    def test_delete_goes_through_delete_route(self, client, cast):
        rid = _create(client, cast.stakeholder)["request"]["request_id"]
        assert _act(client, rid, cast.admin, "delete").status_code == 422

        resp = client.post(f"/api/requests/{rid}/cancel", json={"actor_user_id": cast.admin, "note": "Duplicate"})
        assert resp.status_code == 200
        assert resp.json()["request"]["status"] == "cancelled"
        event_id = resp.json()["request"]["event_id"]

        assert client.delete(f"/api/requests/{rid}", params={"actor_user_id": cast.coordinator}).status_code == 403
        assert client.delete(f"/api/requests/{rid}", params={"actor_user_id": cast.admin}).status_code == 204
        assert client.get(f"/api/requests/{rid}").status_code == 404
        assert client.get(f"/api/events/{event_id}").status_code == 404

    def test_manage_staff(self, client, cast):
        rid = _create(client, cast.stakeholder)["request"]["request_id"]
        _act(client, rid, cast.coordinator, "accept")
        resp = _act(client, rid, cast.stakeholder, "manage-staff", staff=[{"name": "Dr. Cruz", "role": "Physician"}])
        assert resp.status_code == 200, resp.text
        assert resp.json()["request"]["event"]["staff"] == [{"name": "Dr. Cruz", "role": "Physician"}]


class TestEventsAndSweeps:
    def test_events_filter(self, client, cast):
        _create(client, cast.stakeholder)
        _create(client, cast.stakeholder_b, day="2026-03-10", location_id="loc-south")
        resp = client.get("/api/events/", params={"location_id": "loc-south"})
        assert [e["start_date"] for e in resp.json()] == ["2026-03-10T09:00:00"]
        resp = client.get("/api/events/", params={"start_before": "2026-03-05T00:00:00"})
        assert len(resp.json()) == 1

    def test_sweep_requires_top_authority(self, client, cast):
        resp = client.post("/api/requests/maintenance/sweep", params={"actor_user_id": cast.coordinator})
        assert resp.status_code == 403

    def test_sweep_expires_and_reminds(self, client, cast, clock):
        stale = _create(client, cast.stakeholder)["request"]["request_id"]
        answered = _create(client, cast.stakeholder_b, location_id="loc-south")["request"]["request_id"]
        _act(client, answered, cast.admin, "accept")
        clock.advance(hours=73)

        resp = client.post("/api/requests/maintenance/sweep", params={"actor_user_id": cast.admin})
        assert resp.status_code == 200
        assert resp.json() == {"expired": [stale], "reminded": 1}

        expired = client.get(f"/api/requests/{stale}").json()
        assert expired["status"] == "expired"
        assert expired["event"]["status"] == "Cancelled"
        assert expired["final_resolution"]["completed_at"] == clock.now().isoformat()
