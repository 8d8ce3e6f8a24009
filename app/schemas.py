# app/schemas.py
# Role: Request bodies for the JSON API and the small helpers that turn
#       service-layer records into JSON-friendly dicts.

from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from app.services.aggregation import CategoryBreakdown
from app.services.date_ranges import DateRange, naive_local
from app.services.fuel_economy import FuelMetrics
from app.services.records import TransactionRecord


# -------------------------------------------------------------------
# Request bodies
# -------------------------------------------------------------------

class VehicleIn(BaseModel):
    name: str
    fuel_type: str = "gasoline"
    is_income_generating: bool = False
    license_plate: Optional[str] = None
    model: Optional[str] = None


class ExpenseIn(BaseModel):
    amount: float = Field(ge=0)
    expense_type_id: int
    currency: Optional[str] = None
    exchange_rate: Optional[float] = None
    energy_station_id: Optional[int] = None
    company_id: Optional[int] = None
    description: Optional[str] = None
    odometer_reading: Optional[int] = None
    fuel_unit_price: Optional[float] = None
    transaction_date: Optional[datetime] = None

    @field_validator("transaction_date")
    @classmethod
    def local_transaction_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Stored dates are naive local time
        return naive_local(value)


class IncomeIn(BaseModel):
    amount: float = Field(ge=0)
    income_type_id: int
    currency: Optional[str] = None
    exchange_rate: Optional[float] = None
    customer_id: Optional[int] = None
    description: Optional[str] = None
    start_odometer: Optional[int] = None
    end_odometer: Optional[int] = None
    transaction_date: Optional[datetime] = None

    @field_validator("transaction_date")
    @classmethod
    def local_transaction_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return naive_local(value)


class TransactionPatch(BaseModel):
    amount: Optional[float] = Field(default=None, ge=0)
    currency: Optional[str] = None
    exchange_rate: Optional[float] = None
    description: Optional[str] = None
    odometer_reading: Optional[int] = None
    fuel_unit_price: Optional[float] = None


class CategoryIn(BaseModel):
    name: str
    is_fuel: Optional[bool] = None


class CounterpartyIn(BaseModel):
    name: str
    geo_coordinate: Optional[str] = None


class SelectVehicleIn(BaseModel):
    vehicle_id: Optional[int] = None


class ThemeIn(BaseModel):
    theme_mode: str


# -------------------------------------------------------------------
# Serializers
# -------------------------------------------------------------------

def range_to_dict(r: Optional[DateRange]) -> Optional[Dict[str, str]]:
    if r is None:
        return None
    return {"start": r.start.isoformat(), "end": r.end.isoformat()}


def transaction_to_dict(tx: TransactionRecord, metrics: Optional[FuelMetrics] = None) -> Dict[str, Any]:
    data = asdict(tx)
    for key in ("transaction_date", "created_at", "updated_at"):
        if data[key] is not None:
            data[key] = data[key].isoformat()
    data["fuel_metrics"] = asdict(metrics) if metrics is not None else None
    return data


def breakdown_to_dict(item: CategoryBreakdown, share: float) -> Dict[str, Any]:
    data = asdict(item)
    data["percentage"] = share
    return data
