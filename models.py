# models.py
# Role: SQLAlchemy ORM models for the vehicle ledger domain.
#       Users own vehicles; vehicles own an append-mostly ledger of
#       transactions, each with a 1:1 expense or income detail row.
#       Categories (expense/income types) and counterparties are reference data.

from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)

from db import Base


class User(Base):
    """
    The single local user. Carries the default currency every transaction
    is recorded against.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, nullable=True)
    default_currency = Column(String(3), nullable=False, default="TRY")
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


class Currency(Base):
    __tablename__ = "currencies"

    code = Column(String(3), primary_key=True)


class Vehicle(Base):
    """
    A vehicle owned by a user. Income flows only matter for vehicles
    flagged as income generating (taxi, delivery, rental...).
    """

    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    fuel_type = Column(String, nullable=False, default="gasoline")
    is_income_generating = Column(Boolean, nullable=False, default=False)
    license_plate = Column(String, nullable=True)
    model = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


class ExpenseType(Base):
    """
    Expense category. Global rows have user_id = NULL and is_custom = False.

    is_fuel marks fuel categories explicitly; NULL means "unknown" and the
    services layer falls back to matching the name against the fuel tokens.
    """

    __tablename__ = "expense_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    is_custom = Column(Boolean, nullable=False, default=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_fuel = Column(Boolean, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)


class IncomeType(Base):
    __tablename__ = "income_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    is_custom = Column(Boolean, nullable=False, default=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)


class VehicleTransaction(Base):
    """
    One ledger entry. transaction_type is 'expense' or 'income' and decides
    which of expense_type_id / income_type_id is set.

    Amounts are stored in the transaction's own currency; exchange_rate is
    kept for reference only (1 unit of `currency` in default-currency terms).
    """

    __tablename__ = "vehicle_transactions"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    transaction_type = Column(String(10), nullable=False)
    amount = Column(Float, nullable=False)

    # Currency bookkeeping
    currency = Column(String(3), nullable=False)
    default_currency = Column(String(3), nullable=False)
    foreign_currency = Column(String(3), nullable=True)
    exchange_rate = Column(Float, nullable=True)

    # Category (exactly one, aligned with transaction_type)
    expense_type_id = Column(Integer, ForeignKey("expense_types.id"), nullable=True)
    income_type_id = Column(Integer, ForeignKey("income_types.id"), nullable=True)

    # Counterparties
    energy_station_id = Column(Integer, ForeignKey("energy_stations.id"), nullable=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True)

    description = Column(Text, nullable=True)
    transaction_date = Column(DateTime, nullable=False, index=True)
    odometer_reading = Column(Integer, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    transaction_id = Column(Integer, ForeignKey("vehicle_transactions.id"), nullable=False, index=True)
    expense_type_id = Column(Integer, ForeignKey("expense_types.id"), nullable=False)

    # Price per liter; only meaningful for fuel expenses
    fuel_unit_price = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)


class Income(Base):
    __tablename__ = "incomes"

    id = Column(Integer, primary_key=True, index=True)
    transaction_id = Column(Integer, ForeignKey("vehicle_transactions.id"), nullable=False, index=True)
    income_type_id = Column(Integer, ForeignKey("income_types.id"), nullable=False)

    # Trip bounds, independent of the transaction's own odometer_reading
    start_odometer = Column(Integer, nullable=True)
    end_odometer = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)


class _CounterpartyColumns:
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    geo_coordinate = Column(String, nullable=True)  # "lat,lng"
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


class EnergyStation(_CounterpartyColumns, Base):
    """Where fuel is bought."""

    __tablename__ = "energy_stations"

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)


class Company(_CounterpartyColumns, Base):
    """Who is paid for non-fuel expenses."""

    __tablename__ = "companies"

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)


class Customer(_CounterpartyColumns, Base):
    """Who pays for income trips."""

    __tablename__ = "customers"

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
