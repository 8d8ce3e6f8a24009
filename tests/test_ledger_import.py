import io
from datetime import datetime

import pytest

from app.errors import NotFoundError, ValidationError
from app.services.ledger_import import import_ledger_rows, parse_ledger_csv


CSV = """Date,Type,Amount,Category,Currency,Exchange_Rate,Odometer,Fuel_Unit_Price,Start_Odometer,End_Odometer,Description
2024-03-10,expense,"700,50",Fuel,,,10000,35,,,first fill
2024-03-01,expense,800,Fuel,,,10400,40,,,
2024-03-12,income,300,Ride Service,,,,,100,180,airport run
2024-03-13,expense,20,Car Wash,USD,32,,,,,
2024-03-14,expense,50,Teleportation,,,,,,,
not-a-date,expense,10,Fuel,,,,,,,
2024-03-15,expense,abc,Fuel,,,,,,,
"""


def test_parse_normalizes_headers_and_numbers():
    rows = parse_ledger_csv(io.StringIO(CSV))

    first = rows[0]
    assert first["date"] == datetime(2024, 3, 10)
    assert first["type"] == "expense"
    assert first["amount"] == pytest.approx(700.5)
    assert first["odometer"] == 10000
    assert first["currency"] is None
    assert first["description"] == "first fill"

    assert rows[5]["date"] is None
    assert rows[6]["amount"] is None


def test_parse_requires_columns():
    with pytest.raises(ValidationError):
        parse_ledger_csv(io.StringIO("date,amount\n2024-03-10,5\n"))


def test_parse_rejects_empty_file():
    with pytest.raises(ValidationError):
        parse_ledger_csv(io.StringIO(""))


def test_import_inserts_good_rows_and_reports_bad_ones(store, vehicle):
    result = import_ledger_rows(store, vehicle.id, parse_ledger_csv(io.StringIO(CSV)))

    assert result.inserted == 4
    assert result.skipped == 3
    assert len(result.errors) == 3
    assert result.errors[0].startswith("row 5")

    rows = store.list_transactions(vehicle.id)
    assert len(rows) == 4

    # out-of-order odometer history is accepted on import
    fuel = [r for r in rows if r.is_fuel]
    assert sorted(r.odometer_reading for r in fuel) == [10000, 10400]

    trip = next(r for r in rows if r.transaction_type == "income")
    assert (trip.start_odometer, trip.end_odometer) == (100, 180)

    wash = next(r for r in rows if r.expense_type_name == "Car Wash")
    assert wash.foreign_currency == "USD"
    assert wash.exchange_rate == pytest.approx(32.0)


def test_import_unknown_vehicle(store):
    with pytest.raises(NotFoundError):
        import_ledger_rows(store, 999, [])
