from typing import Any, Dict

import pytest
from fastapi.testclient import TestClient

from src.api.main import app, get_gateway
from src.db.gateway import DataAccessError
from src.services.field_mapping import resolve_fields


@pytest.fixture
def client(gateway):
    """API client bound to the per-test database."""
    app.dependency_overrides[get_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


def _urusan_payload(code: str, name: str = "Urusan") -> Dict[str, Any]:
    return {"code": code, "name": name}


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


def test_navigation(client):
    items = client.get("/navigation").json()["items"]
    assert [i["path"] for i in items] == ["/dashboard", "/master-data", "/renstra", "/renja"]
    assert items[3]["grid"] is None


def test_create_and_list_with_search(client):
    for code in ["10", "01", "02"]:
        resp = client.post("/master-data/urusan", json=_urusan_payload(code))
        assert resp.status_code == 201
        assert resp.json()["kode_rek_900urusan"] == code

    data = client.get("/master-data/urusan", params={"search": "1"}).json()
    assert data["code_field"] == "kode_rek_900urusan"
    assert [r["kode_rek_900urusan"] for r in data["rows"]] == ["01", "10"]
    assert data["total"] == 2


def test_unknown_level_is_rejected(client):
    assert client.get("/master-data/bidang").status_code == 422


def test_validation_errors(client):
    resp = client.post("/master-data/kegiatan", json={"code": "1.02.02.2.01", "name": " "})
    assert resp.status_code == 422
    locs = {err["loc"][-1] for err in resp.json()["detail"]}
    assert {"name", "parent_id"} <= locs


def test_reference_dataset_is_read_only(client):
    assert client.get("/kepmen/urusan").status_code == 200
    assert client.post("/kepmen/urusan", json=_urusan_payload("1.01")).status_code == 403


def test_update_and_delete(client):
    created = client.post("/renstra/urusan", json={
        "code": "1.02",
        "name": "Kesehatan",
        "targets": [{"target": "80%", "budget": 1000}],
    }).json()
    assert created["renstra_anggarann1_urusan"] == 1000.0

    resp = client.put(f"/renstra/urusan/{created['id']}", json={
        "code": "1.02",
        "name": "Kesehatan",
        "targets": [{"target": "85%", "budget": 1200}],
    })
    assert resp.status_code == 200
    assert resp.json()["renstra_targetn1_urusan"] == "85%"

    assert client.delete(f"/renstra/urusan/{created['id']}").status_code == 200
    assert client.delete(f"/renstra/urusan/{created['id']}").status_code == 404
    assert client.put(f"/renstra/urusan/{created['id']}", json=_urusan_payload("1.02")).status_code == 404


def test_bulk_delete_reports_each_id(client):
    ids = [client.post("/master-data/urusan", json=_urusan_payload(c)).json()["id"] for c in ["01", "02", "03"]]
    client.delete(f"/master-data/urusan/{ids[1]}")

    data = client.post("/master-data/urusan/bulk-delete", json={"ids": ids}).json()

    assert [r["ok"] for r in data["results"]] == [True, False, True]
    assert (data["deleted"], data["failed"]) == (2, 1)
    assert client.get("/master-data/urusan").json()["rows"] == []


def test_reference_options(client, kepmen_reference):
    master = client.get("/master-data/urusan/reference-options").json()
    assert master["options"] == []

    renstra = client.get("/renstra/program/reference-options").json()
    assert [o["code"] for o in renstra["options"]] == ["1.0", "1.02.02"]
    assert renstra["options"][1]["label"].startswith("1.02.02 - ")
    assert renstra["notifications"] == []


def test_reference_options_failure_is_reported(client, gateway, monkeypatch):
    def broken_fetch(table, filters=None):
        raise DataAccessError("down", table=table, operation="fetch")

    monkeypatch.setattr(gateway, "fetch", broken_fetch)
    data = client.get("/renstra/program/reference-options").json()
    assert data["options"] == []
    assert data["notifications"][0]["description"] == "Failed to load reference data"


def test_parent_options(client):
    urusan = client.post("/renstra/urusan", json=_urusan_payload("1.02", "Kesehatan")).json()
    options = client.get("/renstra/program/parent-options").json()["options"]
    assert options == [{"id": urusan["id"], "code": "1.02", "name": "Kesehatan", "label": "1.02 - Kesehatan"}]


def test_draft_from_reference_derives_program_parent(client, kepmen_reference):
    urusan = client.post("/renstra/urusan", json=_urusan_payload("1.02", "Kesehatan")).json()
    reference_id = kepmen_reference["program_kesehatan"]["id"]

    draft = client.post("/renstra/program/from-reference", json={"reference_id": reference_id}).json()["draft"]

    assert draft["code"] == "1.02.02"
    assert draft["indikator"] == ["Angka kematian ibu", "Angka kematian bayi"]
    assert draft["parent_id"] == urusan["id"]

    # The draft is ready to submit once the budgets are filled in
    draft["targets"][0]["budget"] = 5000
    created = client.post("/renstra/program", json=draft)
    assert created.status_code == 201
    fields = resolve_fields("program", "renstra")
    assert created.json()[fields.parent_id_field] == urusan["id"]


def test_draft_from_missing_reference(client):
    resp = client.post("/renstra/kegiatan/from-reference", json={"reference_id": "missing"})
    assert resp.status_code == 404


def test_dashboard(client):
    client.post("/renstra/urusan", json={"code": "1.02", "name": "x", "targets": [{"budget": 250}]})
    datasets = client.get("/dashboard").json()["datasets"]
    renstra = next(d for d in datasets if d["dataset"] == "renstra")
    assert renstra["totals"]["urusan"] == 1
    assert renstra["budgets"]["urusan"][0] == 250.0


def test_store_failure_maps_to_500(client, gateway, monkeypatch):
    def broken_create(table, values):
        raise DataAccessError("down", table=table, operation="create")

    monkeypatch.setattr(gateway, "create", broken_create)
    resp = client.post("/master-data/urusan", json=_urusan_payload("1.01"))
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Failed to save data"
