# app/services/seed_data.py
#
# Reference data seeding: currencies, global expense types and global income types.
# Safe to run on every startup; existing rows are left untouched.

import logging

from sqlalchemy.orm import Session

import config
from models import Currency, ExpenseType, IncomeType

logger = logging.getLogger(__name__)

FUEL_EXPENSE_TYPE = "Fuel"

DEFAULT_EXPENSE_TYPES = [
    "Oil Change",
    "Brake Pad Replacement",
    "Tire Replacement",
    "Battery Replacement",
    "General Maintenance",
    FUEL_EXPENSE_TYPE,
    "Insurance",
    "Road Tax",
    "Parking Fee",
    "Toll Fee",
    "Car Wash",
    "Air Filter Replacement",
    "Cabin Filter Replacement",
    "Transmission Service",
    "Coolant Change",
    "Windshield Repair",
    "Paint Work",
    "Bodywork Repair",
    "Detailing",
    "Registration Fee",
]

DEFAULT_INCOME_TYPES = [
    "Ride Service",
    "Rental Income",
    "Delivery Service",
    "Taxi/Uber Service",
    "Other Service",
    "Freight Transport",
    "Passenger Transport",
    "Courier Service",
]


def seed_currencies(db: Session) -> int:
    existing = {row.code for row in db.query(Currency).all()}
    missing = [code for code in config.CURRENCIES if code not in existing]
    db.add_all([Currency(code=code) for code in missing])
    return len(missing)


def seed_expense_types(db: Session) -> int:
    existing = {
        row.name
        for row in db.query(ExpenseType).filter(ExpenseType.is_custom.is_(False)).all()
    }
    new_rows = [
        ExpenseType(
            name=name,
            is_custom=False,
            user_id=None,
            is_active=True,
            # Only the seeded fuel row is flagged; the rest are explicitly not fuel
            is_fuel=(name == FUEL_EXPENSE_TYPE),
        )
        for name in DEFAULT_EXPENSE_TYPES
        if name not in existing
    ]
    db.add_all(new_rows)
    return len(new_rows)


def seed_income_types(db: Session) -> int:
    existing = {
        row.name
        for row in db.query(IncomeType).filter(IncomeType.is_custom.is_(False)).all()
    }
    new_rows = [
        IncomeType(name=name, is_custom=False, user_id=None, is_active=True)
        for name in DEFAULT_INCOME_TYPES
        if name not in existing
    ]
    db.add_all(new_rows)
    return len(new_rows)


def seed_database(db: Session) -> None:
    try:
        currencies = seed_currencies(db)
        expense_types = seed_expense_types(db)
        income_types = seed_income_types(db)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Failed to seed database")
        raise

    logger.info(
        "Seeded %d currencies, %d expense types, %d income types",
        currencies,
        expense_types,
        income_types,
    )
