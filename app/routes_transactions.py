# routes_transactions.py
"""
Routes for a vehicle's ledger: paged listing with fuel metrics,
validated expense/income entry, and the narrow edit path.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

import config
from app.deps import get_store
from app.schemas import ExpenseIn, IncomeIn, TransactionPatch, range_to_dict, transaction_to_dict
from app.services.date_ranges import DateRange, Period, naive_local, resolve_range
from app.services.fuel_economy import first_fill, fuel_metrics_series
from app.services.ledger_store import LedgerStore
from app.services.records import EXPENSE, INCOME, TransactionEdit, TransactionInput
from app.services.reports import filter_transactions
from app.services.validation import check_currency, validate_odometer

router = APIRouter()


def _older_fill(store: LedgerStore, vehicle_id: int, offset: int):
    # Walk older rows one window at a time until a fill turns up
    while True:
        rows = store.list_transactions(vehicle_id, limit=config.REPORT_WINDOW, offset=offset)
        fill = first_fill(rows)
        if fill is not None or len(rows) < config.REPORT_WINDOW:
            return fill
        offset += len(rows)


@router.get("/vehicles/{vehicle_id}/transactions")
def list_transactions(
    vehicle_id: int,
    limit: int = Query(config.PAGE_SIZE, ge=1, le=config.REPORT_WINDOW),
    offset: int = Query(0, ge=0),
    store: LedgerStore = Depends(get_store),
):
    """
    One page of the ledger, newest first. The oldest fill of a page is
    paired with the next older fill beyond the page, when there is one.
    """
    store.get_vehicle(vehicle_id)
    transactions = store.list_transactions(vehicle_id, limit=limit, offset=offset)
    last_fuel = store.last_fuel_transaction(vehicle_id)

    window = list(transactions)
    if first_fill(transactions) is not None:
        older = _older_fill(store, vehicle_id, offset + len(transactions))
        if older is not None:
            window.append(older)
    metrics = fuel_metrics_series(window)

    return {
        "transactions": [
            transaction_to_dict(tx, metrics[i])
            for i, tx in enumerate(transactions)
        ],
        "has_more": len(transactions) == limit,
        "last_fuel_odometer": last_fuel.odometer_reading if last_fuel else None,
    }


@router.get("/vehicles/{vehicle_id}/transactions/filter")
def filter_vehicle_transactions(
    vehicle_id: int,
    kind: str = Query(EXPENSE),
    period: Period = Query(Period.MONTHLY),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    include_fuel: bool = Query(True),
    category_id: List[int] = Query(default=[]),
    store: LedgerStore = Depends(get_store),
):
    """
    Expense/income listing filtered by period (so far), categories and the
    include-fuel toggle.
    """
    store.get_vehicle(vehicle_id)
    custom = DateRange(naive_local(start), naive_local(end)) if start and end else None
    date_range = resolve_range(period, datetime.now(), custom=custom, full=False)

    transactions = store.list_transactions(vehicle_id, limit=config.REPORT_WINDOW)
    selected = filter_transactions(
        transactions,
        date_range,
        kind=kind,
        category_ids=category_id,
        include_fuel=include_fuel,
    )
    return {
        "range": range_to_dict(date_range),
        "transactions": [transaction_to_dict(tx) for tx in selected],
    }


@router.post("/vehicles/{vehicle_id}/expenses", status_code=201)
def add_expense(
    vehicle_id: int,
    body: ExpenseIn,
    store: LedgerStore = Depends(get_store),
):
    """
    Validate and record an expense (transaction + expense detail together).

    Order of checks: exchange rate, then odometer against the last fuel fill.
    """
    vehicle = store.get_vehicle(vehicle_id)
    user = store.get_user(vehicle.user_id)
    category = store.get_category(EXPENSE, body.expense_type_id)

    currency = body.currency or user.default_currency
    check_currency(currency, user.default_currency, body.exchange_rate)
    validate_odometer(store, vehicle_id, EXPENSE, reading=body.odometer_reading)

    record = store.record_expense(
        TransactionInput(
            vehicle_id=vehicle_id,
            transaction_type=EXPENSE,
            amount=body.amount,
            currency=currency,
            default_currency=user.default_currency,
            exchange_rate=body.exchange_rate,
            expense_type_id=category.id,
            energy_station_id=body.energy_station_id if category.is_fuel else None,
            company_id=None if category.is_fuel else body.company_id,
            description=body.description,
            transaction_date=body.transaction_date,
            odometer_reading=body.odometer_reading,
        ),
        fuel_unit_price=body.fuel_unit_price if category.is_fuel else None,
        notes=body.description,
    )
    return transaction_to_dict(record)


@router.post("/vehicles/{vehicle_id}/incomes", status_code=201)
def add_income(
    vehicle_id: int,
    body: IncomeIn,
    store: LedgerStore = Depends(get_store),
):
    """
    Validate and record an income (transaction + income detail together).
    """
    vehicle = store.get_vehicle(vehicle_id)
    user = store.get_user(vehicle.user_id)
    category = store.get_category(INCOME, body.income_type_id)

    currency = body.currency or user.default_currency
    check_currency(currency, user.default_currency, body.exchange_rate)
    validate_odometer(store, vehicle_id, INCOME, start=body.start_odometer, end=body.end_odometer)

    record = store.record_income(
        TransactionInput(
            vehicle_id=vehicle_id,
            transaction_type=INCOME,
            amount=body.amount,
            currency=currency,
            default_currency=user.default_currency,
            exchange_rate=body.exchange_rate,
            income_type_id=category.id,
            customer_id=body.customer_id,
            description=body.description,
            transaction_date=body.transaction_date,
        ),
        start_odometer=body.start_odometer,
        end_odometer=body.end_odometer,
        notes=body.description,
    )
    return transaction_to_dict(record)


@router.patch("/transactions/{transaction_id}")
def edit_transaction(
    transaction_id: int,
    body: TransactionPatch,
    store: LedgerStore = Depends(get_store),
):
    """
    Edit amount, currency/rate, description, odometer or fuel unit price.
    Fields sent as null are cleared; omitted fields are kept.
    """
    sent = body.model_dump(exclude_unset=True)
    edit = TransactionEdit(
        amount=sent.get("amount"),
        currency=sent.get("currency"),
        exchange_rate=sent.get("exchange_rate"),
        description=sent.get("description"),
        odometer_reading=sent.get("odometer_reading"),
        fuel_unit_price=sent.get("fuel_unit_price"),
        clear={
            key
            for key in ("description", "odometer_reading", "fuel_unit_price")
            if key in sent and sent[key] is None
        },
    )
    return transaction_to_dict(store.update_transaction(transaction_id, edit))


@router.delete("/transactions/{transaction_id}")
def delete_transaction(transaction_id: int, store: LedgerStore = Depends(get_store)):
    store.delete_transaction(transaction_id)
    return {"message": "Transaction deleted", "id": transaction_id}
