# app/services/aggregation.py
"""
Aggregation of ledger transactions over a date range.

Folds transactions into income/expense totals and per-category breakdowns.
Amounts are summed in whatever currency each transaction was recorded in;
no conversion through exchange_rate happens here.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from app.services.date_ranges import DateRange
from app.services.records import EXPENSE, INCOME, TransactionRecord

UNKNOWN_CATEGORY_ID = 0
UNKNOWN_CATEGORY_NAME = "Unknown"


@dataclass
class CategoryBreakdown:
    id: int
    name: str
    amount: float
    count: int
    currency: str


@dataclass
class Aggregate:
    total_income: float = 0.0
    total_expense: float = 0.0
    expense_by_category: List[CategoryBreakdown] = field(default_factory=list)
    income_by_category: List[CategoryBreakdown] = field(default_factory=list)

    @property
    def net_profit(self) -> float:
        return self.total_income - self.total_expense


def _add_to_bucket(buckets: Dict[int, CategoryBreakdown], tx: TransactionRecord) -> None:
    category_id = tx.category_id or UNKNOWN_CATEGORY_ID
    existing = buckets.get(category_id)

    if existing is None:
        buckets[category_id] = CategoryBreakdown(
            id=category_id,
            name=tx.category_name or UNKNOWN_CATEGORY_NAME,
            amount=tx.amount,
            count=1,
            currency=tx.currency,
        )
        return

    existing.amount += tx.amount
    existing.count += 1
    existing.currency = tx.currency


def _sorted_buckets(buckets: Dict[int, CategoryBreakdown]) -> List[CategoryBreakdown]:
    # sorted() is stable: equal amounts keep first-encounter order
    return sorted(buckets.values(), key=lambda b: b.amount, reverse=True)


def aggregate(transactions: Iterable[TransactionRecord], date_range: DateRange) -> Aggregate:
    """
    Totals and category breakdowns for transactions dated inside `date_range`
    (both ends inclusive).
    """
    total_income = 0.0
    total_expense = 0.0
    expense_buckets: Dict[int, CategoryBreakdown] = {}
    income_buckets: Dict[int, CategoryBreakdown] = {}

    for tx in transactions:
        if not date_range.contains(tx.transaction_date):
            continue

        if tx.transaction_type == EXPENSE:
            total_expense += tx.amount
            _add_to_bucket(expense_buckets, tx)
        elif tx.transaction_type == INCOME:
            total_income += tx.amount
            _add_to_bucket(income_buckets, tx)

    return Aggregate(
        total_income=total_income,
        total_expense=total_expense,
        expense_by_category=_sorted_buckets(expense_buckets),
        income_by_category=_sorted_buckets(income_buckets),
    )


def category_shares(
    categories: List[CategoryBreakdown], total: float
) -> List[Tuple[CategoryBreakdown, float]]:
    """
    Pair each category with its percentage of `total`.

    A zero total yields an empty list: the breakdown is hidden rather than
    divided by zero.
    """
    if not total:
        return []
    return [(c, c.amount / total * 100) for c in categories]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def pct_change(current: float, previous: float) -> int:
    """
    Period-over-period change in whole percent.

    From zero, any increase reports exactly 100 and no change reports 0.
    """
    if previous == 0:
        return 100 if current > 0 else 0
    return _round_half_up((current - previous) / previous * 100)
