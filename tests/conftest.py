from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from db import Base
import models  # noqa: F401
from app.services.ledger_store import LedgerStore
from app.services.records import EXPENSE, INCOME, TransactionRecord
from app.services.seed_data import seed_database


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    seed_database(session)
    yield session
    session.close()


@pytest.fixture
def store(db):
    return LedgerStore(db)


@pytest.fixture
def user(store):
    return store.create_user(email="driver@example.com", default_currency="TRY")


@pytest.fixture
def vehicle(store, user):
    return store.create_vehicle(user.id, "Corolla", is_income_generating=True, license_plate="34 ABC 123")


def _category_id(store, kind, name):
    for category in store.list_categories(kind):
        if category.name == name:
            return category.id
    raise LookupError(name)


@pytest.fixture
def fuel_type_id(store):
    return _category_id(store, EXPENSE, "Fuel")


@pytest.fixture
def wash_type_id(store):
    return _category_id(store, EXPENSE, "Car Wash")


@pytest.fixture
def ride_type_id(store):
    return _category_id(store, INCOME, "Ride Service")


def make_tx(
    id,
    when,
    amount,
    kind=EXPENSE,
    category_id=1,
    category_name="Fuel",
    is_fuel=None,
    odometer=None,
    unit_price=None,
    currency="TRY",
    end_odometer=None,
):
    """TransactionRecord factory for the computation-layer tests."""
    if is_fuel is None:
        is_fuel = kind == EXPENSE and category_name == "Fuel"
    expense = kind == EXPENSE
    return TransactionRecord(
        id=id,
        vehicle_id=1,
        transaction_type=kind,
        amount=amount,
        currency=currency,
        transaction_date=when if isinstance(when, datetime) else datetime.fromisoformat(when),
        default_currency="TRY",
        expense_type_id=category_id if expense else None,
        income_type_id=None if expense else category_id,
        expense_type_name=category_name if expense else None,
        income_type_name=None if expense else category_name,
        is_fuel=is_fuel,
        odometer_reading=odometer,
        fuel_unit_price=unit_price,
        end_odometer=end_odometer,
    )


@pytest.fixture
def tx():
    return make_tx
