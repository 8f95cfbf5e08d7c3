from routine_admin.services.realtime import ROUTINES_CHANGED


def test_mutations_are_broadcast_with_operation_and_id(client, payload_factory) -> None:
    with client.websocket_connect("/ws/updates") as ws:
        hello = ws.receive_json()
        assert hello["type"] == "hello"

        created = client.post("/api/routines", json=payload_factory())
        assert created.status_code == 201
        routine_id = created.json()["id"]

        event = ws.receive_json()
        assert event["type"] == ROUTINES_CHANGED
        assert event["operation"] == "created"
        assert event["routineId"] == routine_id
        assert event["routine"] == created.json()
        assert event["revision"] > hello["revision"]

        client.patch(f"/api/routines/{routine_id}", json={"name": "Renamed"})
        event = ws.receive_json()
        assert event["operation"] == "updated"
        assert event["routine"]["name"] == "Renamed"

        client.patch(f"/api/routines/{routine_id}/status", json={"isActive": False})
        event = ws.receive_json()
        assert event["operation"] == "status_changed"
        assert event["routine"]["isActive"] is False

        assert client.delete(f"/api/routines/{routine_id}").status_code == 204
        event = ws.receive_json()
        assert event["operation"] == "deleted"
        assert event["routineId"] == routine_id
        assert event["routine"] is None


def test_failed_requests_are_not_broadcast(client, payload_factory) -> None:
    with client.websocket_connect("/ws/updates") as ws:
        ws.receive_json()

        assert client.post("/api/routines", json=payload_factory(duration=0)).status_code == 400
        assert client.delete("/api/routines/missing").status_code == 404
        assert client.patch("/api/routines/missing/status", json={"isActive": True}).status_code == 404
        client.get("/api/routines")

        created = client.post("/api/routines", json=payload_factory())
        event = ws.receive_json()
        # The first event seen is the successful create, nothing from the failures.
        assert event["operation"] == "created"
        assert event["routineId"] == created.json()["id"]


def test_hello_reports_last_changed_routine(client, payload_factory) -> None:
    created = client.post("/api/routines", json=payload_factory()).json()
    with client.websocket_connect("/ws/updates") as ws:
        hello = ws.receive_json()
    assert hello["lastRoutineId"] == created["id"]
    assert hello["revision"] == client.get("/healthz").json()["revision"]


def test_healthz_reports_backend(client) -> None:
    body = client.get("/healthz").json()
    assert body["ok"] is True
    assert body["storage"] in {"memory", "database"}
