# app/services/ledger_import.py
"""
Historical ledger import from CSV.

Expected columns (header names are case-insensitive):
    date, type, amount, category                       (required)
    currency, exchange_rate, odometer, fuel_unit_price,
    start_odometer, end_odometer, description          (optional)

Rows are written through the store's unit-of-work inserts but skip odometer
continuity checks: history is often entered out of order. Categories are
matched by name and never auto-created.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from app.errors import NotFoundError, ValidationError
from app.services.records import EXPENSE, INCOME, TRANSACTION_KINDS, TransactionInput

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {"date", "type", "amount", "category"}
OPTIONAL_COLUMNS = [
    "currency",
    "exchange_rate",
    "odometer",
    "fuel_unit_price",
    "start_odometer",
    "end_odometer",
    "description",
]
INTEGER_COLUMNS = ["odometer", "start_odometer", "end_odometer"]
FLOAT_COLUMNS = ["amount", "exchange_rate", "fuel_unit_price"]


@dataclass
class ImportResult:
    inserted: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)


def _clean_number(series: pd.Series) -> pd.Series:
    # "1 234,50" -> "1234.50"
    cleaned = (
        series.astype(str)
        .str.replace(" ", "", regex=False)
        .str.replace(",", ".", regex=False)
        .str.strip()
    )
    return pd.to_numeric(cleaned, errors="coerce")


def _none_if_nan(x):
    if x is None:
        return None
    if isinstance(x, float) and np.isnan(x):
        return None
    if x is pd.NaT:
        return None
    s = str(x).strip()
    return None if s == "" or s.lower() == "nan" else x


def parse_ledger_csv(source) -> List[Dict[str, Any]]:
    """
    Read a ledger CSV (path or file-like object) into normalized row dicts.
    Unparseable numbers and dates become None and are reported on import.
    """
    try:
        df = pd.read_csv(source)
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
        raise ValidationError(f"Unreadable CSV: {e}", field="file") from e

    # normalize headers
    df.columns = df.columns.str.strip().str.lower()

    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise ValidationError(f"Missing required columns: {sorted(missing)}", field="columns")

    for col in OPTIONAL_COLUMNS:
        if col not in df.columns:
            df[col] = None

    # drop fully empty rows
    df = df.dropna(how="all").copy()

    df["date"] = pd.to_datetime(df["date"], errors="coerce")
    df["type"] = df["type"].astype(str).str.strip().str.lower()
    df["category"] = df["category"].astype(str).str.strip()

    for col in FLOAT_COLUMNS:
        df[col] = _clean_number(df[col])
    for col in INTEGER_COLUMNS:
        values = _clean_number(df[col])
        # keep missing readings as None instead of NaN
        df[col] = np.where(values.isna(), None, values.round())
        df[col] = df[col].astype(object)

    records = df.to_dict(orient="records")
    return [{key: _none_if_nan(value) for key, value in row.items()} for row in records]


def _to_datetime(value) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    return value


def _to_int(value) -> Optional[int]:
    return None if value is None else int(value)


def _to_float(value) -> Optional[float]:
    return None if value is None else float(value)


def import_ledger_rows(store, vehicle_id: int, rows: List[Dict[str, Any]]) -> ImportResult:
    """
    Insert parsed rows for one vehicle. Rows with bad values or unknown
    categories are skipped and reported; store failures propagate.
    """
    vehicle = store.get_vehicle(vehicle_id)
    user = store.get_user(vehicle.user_id)
    categories = {
        kind: {c.name.lower(): c for c in store.list_categories(kind, user.id)}
        for kind in TRANSACTION_KINDS
    }

    result = ImportResult()

    for i, row in enumerate(rows, start=1):
        try:
            kind = row.get("type")
            if kind not in TRANSACTION_KINDS:
                raise ValidationError(f"unknown type {kind!r}", field="type", value=kind)

            tx_date = _to_datetime(row.get("date"))
            if tx_date is None:
                raise ValidationError("missing or invalid date", field="date")

            amount = _to_float(row.get("amount"))
            if amount is None:
                raise ValidationError("missing or invalid amount", field="amount")

            category_name = str(row.get("category") or "")
            category = categories[kind].get(category_name.lower())
            if category is None:
                raise NotFoundError(f"{kind} type", category_name)

            data = TransactionInput(
                vehicle_id=vehicle_id,
                transaction_type=kind,
                amount=amount,
                currency=row.get("currency") or user.default_currency,
                default_currency=user.default_currency,
                exchange_rate=_to_float(row.get("exchange_rate")),
                expense_type_id=category.id if kind == EXPENSE else None,
                income_type_id=category.id if kind == INCOME else None,
                description=row.get("description"),
                transaction_date=tx_date,
                odometer_reading=_to_int(row.get("odometer")),
            )

            if kind == EXPENSE:
                store.record_expense(
                    data,
                    fuel_unit_price=_to_float(row.get("fuel_unit_price")),
                    notes=row.get("description"),
                )
            else:
                store.record_income(
                    data,
                    start_odometer=_to_int(row.get("start_odometer")),
                    end_odometer=_to_int(row.get("end_odometer")),
                    notes=row.get("description"),
                )
            result.inserted += 1

        except (ValidationError, NotFoundError) as e:
            result.skipped += 1
            result.errors.append(f"row {i}: {e}")
            logger.warning("[import] vehicle=%s row %d skipped: %s", vehicle_id, i, e)

    logger.info(
        "[import] vehicle=%s inserted=%d skipped=%d",
        vehicle_id,
        result.inserted,
        result.skipped,
    )
    return result
