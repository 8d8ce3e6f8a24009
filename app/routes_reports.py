# app/routes_reports.py
"""
Reporting routes: period reports with previous-period comparison, and the
"so far vs. last month" summary used by the dashboard cards.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

import config
from app.deps import get_store
from app.schemas import breakdown_to_dict, range_to_dict
from app.services.date_ranges import DateRange, Period, naive_local
from app.services.ledger_store import LedgerStore
from app.services.records import EXPENSE
from app.services.reports import build_report, quick_summary

router = APIRouter()


def _custom_range(start: Optional[datetime], end: Optional[datetime]) -> Optional[DateRange]:
    if start is None or end is None:
        return None
    return DateRange(naive_local(start), naive_local(end))


@router.get("/vehicles/{vehicle_id}/reports")
def vehicle_report(
    vehicle_id: int,
    period: Period = Query(Period.MONTHLY),
    reference: Optional[datetime] = Query(None),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    store: LedgerStore = Depends(get_store),
):
    vehicle = store.get_vehicle(vehicle_id)
    user = store.get_user(vehicle.user_id)

    # Reports look at the most recent window only
    transactions = store.list_transactions(vehicle_id, limit=config.REPORT_WINDOW)
    report = build_report(
        transactions,
        period,
        naive_local(reference) or datetime.now(),
        custom=_custom_range(start, end),
        currency=user.default_currency,
    )

    return {
        "vehicle_id": vehicle_id,
        "period": report.period,
        "label": report.label,
        "currency": report.currency,
        "current_range": range_to_dict(report.current_range),
        "previous_range": range_to_dict(report.previous_range),
        "total_income": report.total_income,
        "total_expense": report.total_expense,
        "net_profit": report.net_profit,
        "expense_by_category": [breakdown_to_dict(b, share) for b, share in report.expense_by_category],
        "income_by_category": [breakdown_to_dict(b, share) for b, share in report.income_by_category],
        "last_period_income": report.last_period_income,
        "last_period_expense": report.last_period_expense,
        "last_period_profit": report.last_period_profit,
        "income_change_pct": report.income_change_pct,
        "expense_change_pct": report.expense_change_pct,
        "profit_change_pct": report.profit_change_pct,
    }


@router.get("/vehicles/{vehicle_id}/summary")
def vehicle_summary(
    vehicle_id: int,
    kind: str = Query(EXPENSE),
    period: Period = Query(Period.MONTHLY),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    store: LedgerStore = Depends(get_store),
):
    store.get_vehicle(vehicle_id)
    transactions = store.list_transactions(vehicle_id, limit=config.REPORT_WINDOW)
    summary = quick_summary(
        transactions,
        kind,
        period,
        datetime.now(),
        custom=_custom_range(start, end),
    )
    return {
        "vehicle_id": vehicle_id,
        "kind": summary.kind,
        "current_total": summary.current_total,
        "last_month_total": summary.last_month_total,
        "change_pct": summary.change_pct,
        "current_range": range_to_dict(summary.current_range),
        "last_month_range": range_to_dict(summary.last_month_range),
    }
