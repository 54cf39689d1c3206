import pytest
from fastapi.testclient import TestClient

from conftest import canonical_row
from courier_audit.api.dependencies import get_storage
from courier_audit.main import app
from courier_audit.services.storage import InMemoryStorage


@pytest.fixture
def client():
    shared = InMemoryStorage()
    app.dependency_overrides[get_storage] = lambda: shared
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _run(client, rows, provider="Delhivery", **extra):
    payload = {"provider_name": provider, "file_name": "march.csv", "rows": rows}
    payload.update(extra)
    return client.post("/api/audits/run", json=payload)


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/").status_code == 200


def test_detect_columns(client):
    response = client.post("/api/columns/detect", json={"headers": ["Tracking No", "Amount"]})
    assert response.status_code == 200
    body = response.json()
    assert body["mapping"]["AWB"] == "Tracking No"
    assert body["mapping"]["TotalBilledAmount"] == "Amount"
    assert body["needs_manual_review"] is True


def test_header_row(client):
    grid = [["Report"], ["Account", None], ["AWB", "Zone", "Weight", "Amount"], ["X1", "A", "1", "40"]]
    response = client.post("/api/columns/header-row", json={"grid": grid})
    assert response.json() == {"header_row": 2}


def test_contract_presets(client):
    presets = client.get("/api/contracts/presets").json()
    assert [p["provider_name"] for p in presets] == ["Delhivery", "BlueDart", "Ecom Express", "Shadowfax"]

    bluedart = client.get("/api/contracts/presets/blue-dart").json()
    assert bluedart["zone_a_rate"] == 45
    assert bluedart["gst_percentage"] == 18

    assert client.get("/api/contracts/presets/unknown").status_code == 404


def test_normalize_contract(client):
    response = client.post(
        "/api/contracts/normalize",
        json={"extracted": {"providerName": "Acme", "zoneARate": 30, "zoneBRate": 45, "zoneCRate": 60}},
    )
    assert response.status_code == 200
    assert response.json()["provider_name"] == "Acme"
    assert response.json()["cod_fee_percentage"] == 0


def test_run_audit_with_preset_contract(client):
    rows = [
        canonical_row("X1", amount=45),
        canonical_row("X2", order_type="COD", billed_zone="B", actual_zone="A", amount=50),
        canonical_row("X3", amount=40),
    ]
    response = _run(client, rows)
    assert response.status_code == 200

    body = response.json()
    assert body["contract"]["provider_name"] == "Delhivery"
    assert body["analysis"]["total_rows"] == 3
    assert body["analysis"]["total_overcharge"] == 14.4
    assert [d["issue_type"] for d in body["analysis"]["discrepancies"]] == ["Rate Overcharge", "Zone Mismatch"]
    assert body["detection"] is None
    assert body["history_saved"] is True
    assert body["issue_summary"][0] == {"issue_type": "Zone Mismatch", "amount": 9.4, "count": 1}

    history = client.get("/api/history/").json()
    assert len(history) == 1
    assert history[0]["id"] == body["record"]["id"]


def test_run_audit_with_explicit_contract(client):
    contract = {
        "provider_name": "Custom",
        "zone_a_rate": 45,
        "zone_b_rate": 60,
        "zone_c_rate": 80,
        "cod_fee_percentage": 2,
    }
    response = _run(client, [canonical_row("X1", amount=45)], provider="Custom", contract=contract)
    assert response.status_code == 200
    assert response.json()["analysis"]["discrepancies"] == []


def test_run_audit_rejects_bad_requests(client):
    assert _run(client, [canonical_row("X1")], provider="Nobody").status_code == 400
    assert _run(client, None).status_code == 400
    assert _run(client, [canonical_row("X1")], provider="  ").status_code == 400


def test_history_summary_and_clear(client):
    _run(client, [canonical_row("X1", amount=45)])

    summary = client.get("/api/history/summary", params={"range": "30d"}).json()
    assert summary["record_count"] == 1
    assert summary["overcharge_by_provider"] == {"Delhivery": 5.0}

    assert client.get("/api/history/summary", params={"range": "1y"}).status_code == 400

    assert client.delete("/api/history/").status_code == 204
    assert client.get("/api/history/").json() == []


def test_weight_endpoints(client):
    _run(client, [canonical_row(f"X{i}", billed_weight=1.2, actual_weight=1.0, amount=48) for i in range(3)])

    regression = client.get("/api/weights/Delhivery/regression").json()
    assert regression["point_count"] == 3
    assert regression["regression"] is None
    assert regression["systematic_inflation"] is False

    sample = client.get("/api/weights/Delhivery/sample").json()
    assert len(sample) == 3
    assert sample[0]["declared_weight_g"] == 1000.0

    assert client.get("/api/weights/Nobody/regression").status_code == 404
    assert [r["provider"] for r in client.get("/api/weights/regression").json()] == ["Delhivery"]

    assert client.delete("/api/weights/").status_code == 204
    assert client.get("/api/weights/Delhivery/sample").json() == []


def test_grids_accept_numeric_cells(client):
    grid = [
        ["Invoice", 2024],
        ["AWB", "OrderType", "BilledWeight", "ActualWeight", "BilledZone", "ActualZone", "TotalBilledAmount"],
        [1234567890, "COD", 1.0, 1.0, "B", "A", 50],
    ]
    assert client.post("/api/columns/header-row", json={"grid": grid}).json() == {"header_row": 1}

    response = client.post(
        "/api/audits/run",
        json={"provider_name": "Delhivery", "file_name": "march.csv", "grid": grid},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["header_row"] == 1
    assert body["analysis"]["discrepancies"][0]["awb_number"] == "1234567890"
    assert body["analysis"]["discrepancies"][0]["issue_type"] == "Zone Mismatch"
