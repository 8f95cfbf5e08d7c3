from routine_admin.schemas.routine import RoutineOut
from routine_admin.services.storage import StorageError


def _create(client, payload):
    response = client.post("/api/routines", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_create_returns_201_with_id(client, payload_factory) -> None:
    body = _create(client, payload_factory())
    assert body["id"]
    assert {key: value for key, value in body.items() if key != "id"} == payload_factory()


def test_create_rejects_invalid_body_with_field_details(client, payload_factory) -> None:
    response = client.post("/api/routines", json=payload_factory(frequencyValue=0, startTime="24:00"))
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation failed"
    assert {item["field"] for item in body["details"]} == {"frequencyValue", "startTime"}
    assert client.get("/api/routines").json() == []


def test_create_rejects_non_object_and_malformed_json(client) -> None:
    assert client.post("/api/routines", json=[1, 2]).status_code == 400
    response = client.post("/api/routines", content=b"{not json", headers={"content-type": "application/json"})
    assert response.status_code == 400


def test_list_is_sorted_by_start_time(client, payload_factory) -> None:
    for start in ("12:00", "02:00", "09:00"):
        _create(client, payload_factory(startTime=start))
    starts = [item["startTime"] for item in client.get("/api/routines").json()]
    assert starts == ["02:00", "09:00", "12:00"]


def test_get_one_and_not_found(client, payload_factory) -> None:
    created = _create(client, payload_factory())
    response = client.get(f"/api/routines/{created['id']}")
    assert response.status_code == 200
    assert response.json() == created

    missing = client.get("/api/routines/does-not-exist")
    assert missing.status_code == 404
    assert missing.json() == {"error": "Routine not found"}


def test_partial_update(client, payload_factory) -> None:
    created = _create(client, payload_factory())
    response = client.patch(f"/api/routines/{created['id']}", json={"name": "Renamed", "startTime": "03:30"})
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Renamed"
    assert body["startTime"] == "03:30"
    assert body["duration"] == created["duration"]


def test_update_validation_and_not_found(client, payload_factory) -> None:
    created = _create(client, payload_factory())

    bad = client.patch(f"/api/routines/{created['id']}", json={"duration": 0})
    assert bad.status_code == 400
    assert bad.json()["details"][0]["field"] == "duration"

    nulled = client.patch(f"/api/routines/{created['id']}", json={"name": None})
    assert nulled.status_code == 400

    assert client.patch("/api/routines/nope", json={"name": "x"}).status_code == 404
    assert client.get(f"/api/routines/{created['id']}").json() == created


def test_status_update(client, payload_factory) -> None:
    created = _create(client, payload_factory(isActive=True))
    url = f"/api/routines/{created['id']}/status"

    first = client.patch(url, json={"isActive": False})
    second = client.patch(url, json={"isActive": False})
    assert first.status_code == second.status_code == 200
    assert first.json() == second.json()
    assert second.json()["isActive"] is False

    assert client.patch(url, json={"isActive": "no"}).status_code == 400
    assert client.patch(url, json={}).status_code == 400
    assert client.patch("/api/routines/nope/status", json={"isActive": True}).status_code == 404


def test_delete(client, payload_factory) -> None:
    created = _create(client, payload_factory())
    response = client.delete(f"/api/routines/{created['id']}")
    assert response.status_code == 204
    assert response.content == b""
    assert client.get(f"/api/routines/{created['id']}").status_code == 404
    assert client.delete(f"/api/routines/{created['id']}").status_code == 404


def test_list_filters(client, payload_factory) -> None:
    _create(client, payload_factory(name="Backup", frequencyType="hour", isActive=True))
    _create(client, payload_factory(name="Health", description=None, frequencyType="second", isActive=True))
    _create(client, payload_factory(name="Cleanup", description="temp files", frequencyType="second", isActive=False))

    names = lambda response: [item["name"] for item in response.json()]  # noqa: E731
    assert names(client.get("/api/routines", params={"frequency": "second"})) == ["Health", "Cleanup"]
    assert names(client.get("/api/routines", params={"search": "TEMP"})) == ["Cleanup"]
    assert names(client.get("/api/routines", params={"activeOnly": "true", "frequency": "second"})) == ["Health"]
    assert client.get("/api/routines", params={"frequency": "day"}).status_code == 400


def test_stats(client, payload_factory) -> None:
    _create(client, payload_factory(frequencyType="hour", isActive=True))
    _create(client, payload_factory(frequencyType="minute", isActive=False))
    _create(client, payload_factory(frequencyType="minute", isActive=True))

    assert client.get("/api/routines/stats").json() == {
        "total": 3,
        "active": 2,
        "inactive": 1,
        "byFrequency": {"second": 0, "minute": 2, "hour": 1},
    }


def test_timeline_endpoint(client, payload_factory) -> None:
    created = _create(client, payload_factory(startTime="12:00", duration=60, durationUnit="minute"))
    body = client.get("/api/timeline").json()

    assert body["hours"][0] == "00:00"
    assert len(body["hours"]) == 24
    assert 0 <= body["now"] <= 100
    bar = body["bars"][0]
    assert bar["id"] == created["id"]
    assert bar["left"] == 50.0
    assert round(bar["width"], 2) == 4.17
    assert bar["frequencyLabel"] == "1H"
    assert bar["durationLabel"] == "60 min"


def test_storage_failure_maps_to_500(client, storage, monkeypatch, payload_factory) -> None:
    def broken(*args, **kwargs):
        raise StorageError("connection lost")

    monkeypatch.setattr(storage, "list_all", broken)
    monkeypatch.setattr(storage, "create", broken)

    response = client.get("/api/routines")
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch routines"}
    assert client.post("/api/routines", json=payload_factory()).status_code == 500


def test_routine_lifecycle_scenario(client, payload_factory) -> None:
    _create(client, payload_factory(name="Later", startTime="09:00"))
    routine_a = _create(
        client,
        payload_factory(
            name="A",
            frequencyType="hour",
            frequencyValue=1,
            startTime="02:00",
            duration=2,
            durationUnit="hour",
            isActive=True,
        ),
    )
    listed = [item["id"] for item in client.get("/api/routines").json()]
    assert listed.index(routine_a["id"]) == 0

    client.patch(f"/api/routines/{routine_a['id']}/status", json={"isActive": False})
    active = client.get("/api/routines", params={"activeOnly": "true"}).json()
    assert routine_a["id"] not in {item["id"] for item in active}

    assert client.delete(f"/api/routines/{routine_a['id']}").status_code == 204
    assert routine_a["id"] not in {item["id"] for item in client.get("/api/routines").json()}
    assert client.get(f"/api/routines/{routine_a['id']}").status_code == 404


def test_update_racing_with_another_write_returns_400(client, storage, monkeypatch, payload_factory) -> None:
    created = _create(client, payload_factory())

    def changed_underneath(routine_id, changes):
        # What storage raises when the record no longer merges into a valid routine.
        RoutineOut.model_validate({"id": routine_id, "duration": 0})

    monkeypatch.setattr(storage, "update", changed_underneath)

    response = client.patch(f"/api/routines/{created['id']}", json={"name": "Renamed"})
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation failed"
    assert "duration" in {item["field"] for item in body["details"]}
