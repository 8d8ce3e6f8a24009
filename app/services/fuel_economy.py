# app/services/fuel_economy.py
"""
Fuel economy metrics derived from sparse odometer readings.

Each fuel purchase with an odometer reading is paired with the chronologically
previous fuel purchase that also has a reading:

    km_driven           = current.odometer - previous.odometer   (must be > 0)
    cost_per_distance   = current.amount / km_driven
    consumption_per_100 = (current.amount / fuel_unit_price) / km_driven * 100
                          (only when a positive unit price was recorded)

Inputs are ordered most recent first, as the ledger store returns them.
Out-of-order or incomplete history never raises; it just yields no metric.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import config
from app.services.records import EXPENSE, TransactionRecord


@dataclass(frozen=True)
class FuelMetrics:
    km_driven: int
    cost_per_distance: float
    liters_consumed: Optional[float] = None
    consumption_per_100: Optional[float] = None


def is_fuel_category(name: Optional[str], flag: Optional[bool] = None) -> bool:
    """
    True when a category counts as fuel.

    An explicit flag always wins. Without one, the name is matched
    case-insensitively against config.FUEL_CATEGORY_TOKENS (substring match),
    unless the fallback is disabled.
    """
    if flag is not None:
        return bool(flag)
    if not config.FUEL_NAME_FALLBACK or not name:
        return False
    lowered = name.lower()
    return any(token in lowered for token in config.FUEL_CATEGORY_TOKENS)


def is_fuel_transaction(tx: TransactionRecord) -> bool:
    return tx.transaction_type == EXPENSE and tx.is_fuel


def _has_reading(tx: TransactionRecord) -> bool:
    # A zero reading is treated as "not recorded"
    return bool(tx.odometer_reading)


def _qualifies(tx: TransactionRecord) -> bool:
    return is_fuel_transaction(tx) and _has_reading(tx)


def _pair_metrics(current: TransactionRecord, previous: TransactionRecord) -> Optional[FuelMetrics]:
    km_driven = current.odometer_reading - previous.odometer_reading
    if km_driven <= 0:
        return None

    cost_per_distance = current.amount / km_driven

    liters_consumed = None
    consumption_per_100 = None
    if current.fuel_unit_price is not None and current.fuel_unit_price > 0:
        liters_consumed = current.amount / current.fuel_unit_price
        consumption_per_100 = (liters_consumed / km_driven) * 100

    return FuelMetrics(
        km_driven=km_driven,
        cost_per_distance=cost_per_distance,
        liters_consumed=liters_consumed,
        consumption_per_100=consumption_per_100,
    )


def compute_fuel_metrics(transactions: Sequence[TransactionRecord], index: int) -> Optional[FuelMetrics]:
    """
    Metrics for transactions[index], scanning forward (back in time) for the
    previous qualifying fill. Quadratic over a whole list; meant for a page.
    """
    current = transactions[index]
    if not _qualifies(current):
        return None

    for previous in transactions[index + 1:]:
        if _qualifies(previous):
            return _pair_metrics(current, previous)

    # First fill in the window: nothing to compare against
    return None


def first_fill(transactions: Iterable[TransactionRecord]) -> Optional[TransactionRecord]:
    """The first fuel purchase with an odometer reading, or None."""
    return next((tx for tx in transactions if _qualifies(tx)), None)


def fuel_metrics_series(transactions: Sequence[TransactionRecord]) -> list[Optional[FuelMetrics]]:
    """
    Metrics for every transaction in one backward pass.

    Same result as [compute_fuel_metrics(transactions, i) for i in ...],
    linear in the number of rows, for full-ledger feeds.
    """
    results: list[Optional[FuelMetrics]] = [None] * len(transactions)
    last_fill: Optional[TransactionRecord] = None

    for i in range(len(transactions) - 1, -1, -1):
        tx = transactions[i]
        if not _qualifies(tx):
            continue
        if last_fill is not None:
            results[i] = _pair_metrics(tx, last_fill)
        last_fill = tx

    return results
