# app/services/validation.py
"""
Write-time gates run before a transaction reaches the store.

Odometer continuity is checked on two independent tracks:
    - fuel track: a new reading must be greater than the last fuel fill's reading
    - trip track: end > start, and start must be greater than the last trip's end

These are advisory checks made once at submission time. The store does not
enforce them, and imported history may violate them.
"""

import logging
from typing import Optional

from app.errors import ValidationError
from app.services.records import EXPENSE, INCOME, TransactionRecord

logger = logging.getLogger(__name__)


def check_currency(currency: str, default_currency: str, exchange_rate: Optional[float]) -> Optional[str]:
    """
    Return the foreign currency code to store (None when `currency` is the
    default one). A foreign currency needs a positive exchange rate.
    """
    if not currency:
        raise ValidationError("Currency is required", field="currency")
    if currency == default_currency:
        return None
    if exchange_rate is None or exchange_rate <= 0:
        raise ValidationError(
            f"Exchange rate is required for {currency} (default currency {default_currency})",
            field="exchange_rate",
            value=exchange_rate,
        )
    return currency


def check_fuel_reading(reading: Optional[int], last_fuel: Optional[TransactionRecord]) -> None:
    """Reject a reading that does not move past the last fuel fill's reading."""
    if not reading or last_fuel is None or not last_fuel.odometer_reading:
        return
    if reading <= last_fuel.odometer_reading:
        raise ValidationError(
            f"Odometer reading must be greater than {last_fuel.odometer_reading}",
            field="odometer_reading",
            value=last_fuel.odometer_reading,
        )


def check_trip_readings(
    start: Optional[int],
    end: Optional[int],
    last_income: Optional[TransactionRecord],
) -> None:
    """
    Trip bounds are only checked when both are given: the end must pass the
    start, and the start must pass the previous trip's end.
    """
    if start is None or end is None:
        return
    if end <= start:
        raise ValidationError(
            "End odometer must be greater than start odometer",
            field="end_odometer",
            value=end,
        )
    if last_income is not None and last_income.end_odometer and start <= last_income.end_odometer:
        raise ValidationError(
            f"Start odometer must be greater than {last_income.end_odometer}",
            field="start_odometer",
            value=last_income.end_odometer,
        )


def validate_odometer(
    store,
    vehicle_id: int,
    kind: str,
    reading: Optional[int] = None,
    start: Optional[int] = None,
    end: Optional[int] = None,
) -> None:
    """
    Check a new entry's odometer values against the vehicle's history.

    kind == "expense": `reading` against the last fuel fill.
    kind == "income":  `start`/`end` against each other and the last trip.
    Raises ValidationError; returns None when the entry is acceptable.
    """
    try:
        if kind == EXPENSE:
            if reading:
                check_fuel_reading(reading, store.last_fuel_transaction(vehicle_id))
        elif kind == INCOME:
            if start is not None and end is not None:
                check_trip_readings(start, end, store.last_income_transaction(vehicle_id))
        else:
            raise ValidationError(f"Unknown transaction type: {kind!r}", field="transaction_type", value=kind)
    except ValidationError as e:
        logger.info("[validation] vehicle=%s %s rejected: %s", vehicle_id, kind, e.message)
        raise
