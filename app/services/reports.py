# app/services/reports.py
#
# Report assembly on top of the aggregation engine.
# - build_report:          full-period report with previous-period comparison (reports screen)
# - quick_summary:         "so far" total vs. last calendar month (dashboard, expense/income lists)
# - filter_transactions:   list filters used by the expense/income listings

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from app.services.aggregation import (
    Aggregate,
    CategoryBreakdown,
    aggregate,
    category_shares,
    pct_change,
)
from app.services.date_ranges import (
    DateRange,
    Period,
    last_month_range,
    period_label,
    resolve_previous_range,
    resolve_range,
)
from app.services.fuel_economy import is_fuel_transaction
from app.services.records import EXPENSE, TransactionRecord


@dataclass
class PeriodReport:
    period: str
    label: str
    currency: str
    current_range: DateRange
    previous_range: Optional[DateRange]

    total_income: float
    total_expense: float
    net_profit: float
    expense_by_category: List[Tuple[CategoryBreakdown, float]] = field(default_factory=list)
    income_by_category: List[Tuple[CategoryBreakdown, float]] = field(default_factory=list)

    last_period_income: float = 0.0
    last_period_expense: float = 0.0
    last_period_profit: float = 0.0

    income_change_pct: int = 0
    expense_change_pct: int = 0
    profit_change_pct: int = 0


@dataclass
class QuickSummary:
    kind: str
    current_total: float
    last_month_total: float
    change_pct: int
    current_range: DateRange
    last_month_range: DateRange


def build_report(
    transactions: Sequence[TransactionRecord],
    period: Period | str,
    reference: datetime,
    custom: Optional[DateRange] = None,
    currency: str = "",
) -> PeriodReport:
    """
    Full-period report for `period` around `reference`.

    Category breakdowns come with their share of the matching total; a zero
    total hides the breakdown (empty list).
    """
    current_range = resolve_range(period, reference, custom=custom, full=True)
    period = Period(period)
    previous_range = resolve_previous_range(period, reference)

    current = aggregate(transactions, current_range)
    previous = aggregate(transactions, previous_range) if previous_range else Aggregate()

    return PeriodReport(
        period=period.value,
        label=period_label(period, current_range.start),
        currency=currency,
        current_range=current_range,
        previous_range=previous_range,
        total_income=current.total_income,
        total_expense=current.total_expense,
        net_profit=current.net_profit,
        expense_by_category=category_shares(current.expense_by_category, current.total_expense),
        income_by_category=category_shares(current.income_by_category, current.total_income),
        last_period_income=previous.total_income,
        last_period_expense=previous.total_expense,
        last_period_profit=previous.net_profit,
        income_change_pct=pct_change(current.total_income, previous.total_income),
        expense_change_pct=pct_change(current.total_expense, previous.total_expense),
        profit_change_pct=pct_change(current.net_profit, previous.net_profit),
    )


def quick_summary(
    transactions: Iterable[TransactionRecord],
    kind: str,
    period: Period | str,
    reference: datetime,
    custom: Optional[DateRange] = None,
) -> QuickSummary:
    """
    Running total of one kind for the current ("so far") period, next to the
    previous calendar month's total.
    """
    current_range = resolve_range(period, reference, custom=custom, full=False)
    month_range = last_month_range(reference)

    own_kind = [tx for tx in transactions if tx.transaction_type == kind]
    current_total = sum(tx.amount for tx in own_kind if current_range.contains(tx.transaction_date))
    last_total = sum(tx.amount for tx in own_kind if month_range.contains(tx.transaction_date))

    return QuickSummary(
        kind=kind,
        current_total=float(current_total),
        last_month_total=float(last_total),
        change_pct=pct_change(current_total, last_total),
        current_range=current_range,
        last_month_range=month_range,
    )


def filter_transactions(
    transactions: Iterable[TransactionRecord],
    date_range: DateRange,
    kind: Optional[str] = None,
    category_ids: Sequence[int] = (),
    include_fuel: bool = True,
) -> List[TransactionRecord]:
    """
    Listing filter: date range, optional kind, optional category whitelist,
    and an "include fuel" toggle for expenses.
    """
    selected = []
    for tx in transactions:
        if not date_range.contains(tx.transaction_date):
            continue
        if kind is not None and tx.transaction_type != kind:
            continue
        if not include_fuel and tx.transaction_type == EXPENSE and is_fuel_transaction(tx):
            continue
        if category_ids and tx.category_id not in category_ids:
            continue
        selected.append(tx)
    return selected
