from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.deps import get_db
from app.services.app_state import AppState
from main import create_app


@pytest.fixture
def client(session_factory, db):
    app = create_app(init_storage=False)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.state.ledger_state = AppState()
    return TestClient(app)


@pytest.fixture
def vehicle_id(client):
    resp = client.post("/vehicles", json={"name": "Corolla", "is_income_generating": True})
    assert resp.status_code == 201
    return resp.json()["id"]


def _type_id(client, kind, name):
    return next(c["id"] for c in client.get(f"/categories/{kind}").json() if c["name"] == name)


def test_root(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert "message" in resp.json()


def test_session_initializes_user(client):
    data = client.get("/session").json()
    assert data["user_id"] is not None
    assert data["default_currency"] == "TRY"
    assert data["theme_mode"] == "system"


def test_new_vehicle_is_selected(client, vehicle_id):
    data = client.get("/session").json()
    assert data["selected_vehicle_id"] == vehicle_id
    assert [v["id"] for v in client.get("/vehicles").json()] == [vehicle_id]


def test_theme_and_vehicle_selection(client, vehicle_id):
    assert client.put("/session/theme", json={"theme_mode": "dark"}).json()["theme_mode"] == "dark"

    resp = client.put("/session/theme", json={"theme_mode": "neon"})
    assert resp.status_code == 400
    assert resp.json()["status"] == "error"

    assert client.put("/session/vehicle", json={"vehicle_id": 999}).status_code == 404


def test_expense_flow_with_fuel_metrics(client, vehicle_id):
    fuel_id = _type_id(client, "expense", "Fuel")
    now = datetime.now()

    first = client.post(
        f"/vehicles/{vehicle_id}/expenses",
        json={
            "amount": 700,
            "expense_type_id": fuel_id,
            "odometer_reading": 10000,
            "fuel_unit_price": 35,
            "transaction_date": (now - timedelta(days=3)).isoformat(),
        },
    )
    assert first.status_code == 201

    second = client.post(
        f"/vehicles/{vehicle_id}/expenses",
        json={
            "amount": 800,
            "expense_type_id": fuel_id,
            "odometer_reading": 10400,
            "fuel_unit_price": 40,
            "transaction_date": now.isoformat(),
        },
    )
    assert second.status_code == 201

    page = client.get(f"/vehicles/{vehicle_id}/transactions").json()
    assert page["has_more"] is False
    assert page["last_fuel_odometer"] == 10400
    newest, oldest = page["transactions"]
    assert newest["fuel_metrics"]["km_driven"] == 400
    assert newest["fuel_metrics"]["consumption_per_100"] == pytest.approx(5.0)
    assert oldest["fuel_metrics"] is None


def test_odometer_going_backwards_is_rejected(client, vehicle_id):
    fuel_id = _type_id(client, "expense", "Fuel")
    client.post(f"/vehicles/{vehicle_id}/expenses", json={"amount": 700, "expense_type_id": fuel_id, "odometer_reading": 10000})

    resp = client.post(
        f"/vehicles/{vehicle_id}/expenses",
        json={"amount": 700, "expense_type_id": fuel_id, "odometer_reading": 9999},
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["status"] == "error"
    assert "10000" in body["message"]
    assert len(client.get(f"/vehicles/{vehicle_id}/transactions").json()["transactions"]) == 1


def test_foreign_currency_without_rate_is_rejected(client, vehicle_id):
    wash_id = _type_id(client, "expense", "Car Wash")
    resp = client.post(
        f"/vehicles/{vehicle_id}/expenses",
        json={"amount": 20, "expense_type_id": wash_id, "currency": "USD"},
    )
    assert resp.status_code == 400
    assert client.get(f"/vehicles/{vehicle_id}/transactions").json()["transactions"] == []


def test_income_trip_validation(client, vehicle_id):
    ride_id = _type_id(client, "income", "Ride Service")
    ok = client.post(
        f"/vehicles/{vehicle_id}/incomes",
        json={"amount": 300, "income_type_id": ride_id, "start_odometer": 100, "end_odometer": 180},
    )
    assert ok.status_code == 201
    assert ok.json()["end_odometer"] == 180

    overlap = client.post(
        f"/vehicles/{vehicle_id}/incomes",
        json={"amount": 300, "income_type_id": ride_id, "start_odometer": 150, "end_odometer": 200},
    )
    assert overlap.status_code == 400


def test_edit_and_delete_transaction(client, vehicle_id):
    wash_id = _type_id(client, "expense", "Car Wash")
    created = client.post(
        f"/vehicles/{vehicle_id}/expenses",
        json={"amount": 60, "expense_type_id": wash_id, "description": "quick wash"},
    ).json()

    edited = client.patch(f"/transactions/{created['id']}", json={"amount": 75, "description": None})
    assert edited.status_code == 200
    assert edited.json()["amount"] == pytest.approx(75.0)
    assert edited.json()["description"] is None

    assert client.delete(f"/transactions/{created['id']}").status_code == 200
    assert client.delete(f"/transactions/{created['id']}").status_code == 404


def test_unknown_vehicle_is_404(client):
    resp = client.get("/vehicles/999/transactions")
    assert resp.status_code == 404
    assert resp.json()["status"] == "error"


def test_monthly_report(client, vehicle_id):
    fuel_id = _type_id(client, "expense", "Fuel")
    ride_id = _type_id(client, "income", "Ride Service")
    client.post(f"/vehicles/{vehicle_id}/expenses", json={"amount": 300, "expense_type_id": fuel_id, "transaction_date": "2024-03-10T10:00:00"})
    client.post(f"/vehicles/{vehicle_id}/expenses", json={"amount": 200, "expense_type_id": fuel_id, "transaction_date": "2024-02-10T10:00:00"})
    client.post(f"/vehicles/{vehicle_id}/incomes", json={"amount": 1000, "income_type_id": ride_id, "transaction_date": "2024-03-11T10:00:00"})

    resp = client.get(
        f"/vehicles/{vehicle_id}/reports",
        params={"period": "monthly", "reference": "2024-03-15T12:00:00"},
    )
    assert resp.status_code == 200
    report = resp.json()
    assert report["label"] == "March 2024"
    assert report["currency"] == "TRY"
    assert report["total_expense"] == pytest.approx(300.0)
    assert report["net_profit"] == pytest.approx(700.0)
    assert report["last_period_expense"] == pytest.approx(200.0)
    assert report["expense_change_pct"] == 50
    assert report["expense_by_category"][0]["name"] == "Fuel"
    assert report["expense_by_category"][0]["percentage"] == pytest.approx(100.0)


def test_custom_report_needs_range(client, vehicle_id):
    assert client.get(f"/vehicles/{vehicle_id}/reports", params={"period": "custom"}).status_code == 400

    resp = client.get(
        f"/vehicles/{vehicle_id}/reports",
        params={"period": "custom", "start": "2024-01-01T00:00:00", "end": "2024-01-31T23:59:59"},
    )
    assert resp.status_code == 200
    assert resp.json()["previous_range"] is None


def test_summary(client, vehicle_id):
    wash_id = _type_id(client, "expense", "Car Wash")
    client.post(f"/vehicles/{vehicle_id}/expenses", json={"amount": 40, "expense_type_id": wash_id})

    data = client.get(f"/vehicles/{vehicle_id}/summary", params={"kind": "expense", "period": "monthly"}).json()
    assert data["current_total"] == pytest.approx(40.0)
    assert data["last_month_total"] == 0
    assert data["change_pct"] == 100


def test_category_lifecycle(client, vehicle_id):
    created = client.post("/categories/expense", json={"name": "Stickers"})
    assert created.status_code == 201
    category_id = created.json()["id"]

    renamed = client.put(f"/categories/expense/{category_id}", json={"name": "Decals"})
    assert renamed.json()["name"] == "Decals"

    assert client.delete(f"/categories/expense/{category_id}").json()["result"] == "deleted"
    assert client.get("/categories/bogus").status_code == 400


def test_counterparties_and_currencies(client):
    resp = client.post("/counterparties/customer", json={"name": "ACME Logistics"})
    assert resp.status_code == 201
    assert [c["name"] for c in client.get("/counterparties/customer").json()] == ["ACME Logistics"]
    assert "TRY" in client.get("/currencies").json()


def test_csv_import(client, vehicle_id):
    csv = b"date,type,amount,category\n2024-03-10,expense,100,Fuel\n2024-03-11,expense,5,Nope\n"
    resp = client.post(
        f"/vehicles/{vehicle_id}/import",
        files={"file": ("ledger.csv", csv, "text/csv")},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["inserted"] == 1
    assert data["skipped"] == 1


def test_delete_vehicle_clears_selection(client, vehicle_id):
    assert client.delete(f"/vehicles/{vehicle_id}").status_code == 200
    assert client.get("/session").json()["selected_vehicle_id"] is None
    assert client.get(f"/vehicles/{vehicle_id}/reports").status_code == 404


def test_filtered_listing(client, vehicle_id):
    fuel_id = _type_id(client, "expense", "Fuel")
    wash_id = _type_id(client, "expense", "Car Wash")
    client.post(f"/vehicles/{vehicle_id}/expenses", json={"amount": 500, "expense_type_id": fuel_id})
    client.post(f"/vehicles/{vehicle_id}/expenses", json={"amount": 40, "expense_type_id": wash_id})

    resp = client.get(
        f"/vehicles/{vehicle_id}/transactions/filter",
        params={"kind": "expense", "period": "monthly", "include_fuel": "false"},
    )
    assert resp.status_code == 200
    assert [t["expense_type_id"] for t in resp.json()["transactions"]] == [wash_id]

    only_fuel = client.get(
        f"/vehicles/{vehicle_id}/transactions/filter",
        params={"kind": "expense", "category_id": [fuel_id]},
    ).json()
    assert [t["amount"] for t in only_fuel["transactions"]] == [500.0]


def test_later_pages_pair_with_older_fills(client, vehicle_id):
    fuel_id = _type_id(client, "expense", "Fuel")
    for day, reading in ((1, 10000), (5, 10400), (9, 10800)):
        client.post(
            f"/vehicles/{vehicle_id}/expenses",
            json={
                "amount": 800,
                "expense_type_id": fuel_id,
                "odometer_reading": reading,
                "fuel_unit_price": 40,
                "transaction_date": f"2024-03-0{day}T10:00:00",
            },
        )

    page = client.get(f"/vehicles/{vehicle_id}/transactions", params={"limit": 1, "offset": 1}).json()
    (row,) = page["transactions"]
    assert row["odometer_reading"] == 10400
    assert row["fuel_metrics"]["km_driven"] == 400
    assert page["has_more"] is True

    last = client.get(f"/vehicles/{vehicle_id}/transactions", params={"limit": 1, "offset": 2}).json()
    assert last["transactions"][0]["fuel_metrics"] is None


def test_utc_bounds_are_accepted(client, vehicle_id):
    wash_id = _type_id(client, "expense", "Car Wash")
    client.post(f"/vehicles/{vehicle_id}/expenses", json={"amount": 40, "expense_type_id": wash_id, "transaction_date": "2024-01-15T12:00:00"})
    bounds = {"start": "2024-01-01T00:00:00Z", "end": "2024-01-31T23:59:59Z"}

    report = client.get(f"/vehicles/{vehicle_id}/reports", params={"period": "custom", **bounds})
    assert report.status_code == 200
    assert report.json()["total_expense"] == pytest.approx(40.0)

    summary = client.get(f"/vehicles/{vehicle_id}/summary", params={"kind": "expense", "period": "custom", **bounds})
    assert summary.status_code == 200

    listed = client.get(f"/vehicles/{vehicle_id}/transactions/filter", params={"kind": "expense", "period": "custom", **bounds})
    assert listed.status_code == 200
    assert [t["amount"] for t in listed.json()["transactions"]] == [40.0]

    monthly = client.get(f"/vehicles/{vehicle_id}/reports", params={"period": "monthly", "reference": "2024-01-15T12:00:00Z"})
    assert monthly.status_code == 200


def test_aware_transaction_date_is_stored_naive(client, vehicle_id):
    wash_id = _type_id(client, "expense", "Car Wash")
    resp = client.post(
        f"/vehicles/{vehicle_id}/expenses",
        json={"amount": 40, "expense_type_id": wash_id, "transaction_date": "2024-01-15T12:00:00+00:00"},
    )
    assert resp.status_code == 201
    stored = datetime.fromisoformat(resp.json()["transaction_date"])
    assert stored.tzinfo is None
    assert stored == datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)

    report = client.get(f"/vehicles/{vehicle_id}/reports", params={"period": "yearly", "reference": "2024-06-01T00:00:00Z"})
    assert report.status_code == 200


def test_global_categories_are_read_only(client):
    wash_id = _type_id(client, "expense", "Car Wash")

    assert client.put(f"/categories/expense/{wash_id}", json={"name": "Detailing"}).status_code == 400
    resp = client.delete(f"/categories/expense/{wash_id}")
    assert resp.status_code == 400
    assert resp.json()["status"] == "error"
    assert _type_id(client, "expense", "Car Wash") == wash_id
