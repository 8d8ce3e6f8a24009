# app/services/records.py
#
# Read records handed from the ledger store to the computation layer.
# They are plain frozen dataclasses so reports and fuel metrics can be computed
# (and tested) without a database session.

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


EXPENSE = "expense"
INCOME = "income"
TRANSACTION_KINDS = (EXPENSE, INCOME)


@dataclass(frozen=True)
class TransactionRecord:
    """
    One ledger row joined with its category names and detail fields
    (the "transaction with details" view).
    """

    id: int
    vehicle_id: int
    transaction_type: str
    amount: float
    currency: str
    transaction_date: datetime
    default_currency: str = ""
    foreign_currency: Optional[str] = None
    exchange_rate: Optional[float] = None
    expense_type_id: Optional[int] = None
    income_type_id: Optional[int] = None
    energy_station_id: Optional[int] = None
    company_id: Optional[int] = None
    customer_id: Optional[int] = None
    description: Optional[str] = None
    odometer_reading: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Joined fields
    vehicle_name: Optional[str] = None
    expense_type_name: Optional[str] = None
    income_type_name: Optional[str] = None
    is_fuel: bool = False

    # Detail fields
    fuel_unit_price: Optional[float] = None
    start_odometer: Optional[int] = None
    end_odometer: Optional[int] = None
    notes: Optional[str] = None

    @property
    def category_id(self) -> Optional[int]:
        if self.transaction_type == EXPENSE:
            return self.expense_type_id
        return self.income_type_id

    @property
    def category_name(self) -> Optional[str]:
        if self.transaction_type == EXPENSE:
            return self.expense_type_name
        return self.income_type_name


@dataclass(frozen=True)
class CategoryRecord:
    id: int
    kind: str
    name: str
    is_custom: bool
    user_id: Optional[int]
    is_active: bool = True
    is_fuel: bool = False


@dataclass(frozen=True)
class CounterpartyRecord:
    id: int
    kind: str
    user_id: int
    name: str
    geo_coordinate: Optional[str] = None


@dataclass(frozen=True)
class ExpenseDetailRecord:
    id: int
    transaction_id: int
    expense_type_id: int
    fuel_unit_price: Optional[float] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class IncomeDetailRecord:
    id: int
    transaction_id: int
    income_type_id: int
    start_odometer: Optional[int] = None
    end_odometer: Optional[int] = None
    notes: Optional[str] = None


@dataclass
class TransactionInput:
    """
    Write-side payload for a new ledger row (one of the two category ids set).
    transaction_date defaults to "now" when the store persists it.
    """

    vehicle_id: int
    transaction_type: str
    amount: float
    currency: str
    default_currency: str
    foreign_currency: Optional[str] = None
    exchange_rate: Optional[float] = None
    expense_type_id: Optional[int] = None
    income_type_id: Optional[int] = None
    energy_station_id: Optional[int] = None
    company_id: Optional[int] = None
    customer_id: Optional[int] = None
    description: Optional[str] = None
    transaction_date: Optional[datetime] = None
    odometer_reading: Optional[int] = None


@dataclass
class ExpenseDetailInput:
    transaction_id: int
    expense_type_id: int
    fuel_unit_price: Optional[float] = None
    notes: Optional[str] = None


@dataclass
class IncomeDetailInput:
    transaction_id: int
    income_type_id: int
    start_odometer: Optional[int] = None
    end_odometer: Optional[int] = None
    notes: Optional[str] = None


@dataclass
class TransactionEdit:
    """Fields the edit path may change. None leaves a field untouched except where noted."""

    amount: Optional[float] = None
    currency: Optional[str] = None
    exchange_rate: Optional[float] = None
    description: Optional[str] = None
    odometer_reading: Optional[int] = None
    fuel_unit_price: Optional[float] = None
    clear: set = field(default_factory=set)
