# app/routes_categories.py
"""
Reference data: expense/income categories, counterparties and currencies.
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends

from app.deps import get_app_state, get_store
from app.schemas import CategoryIn, CounterpartyIn
from app.services.app_state import AppState
from app.services.ledger_store import LedgerStore

router = APIRouter()


def _user_id(state: AppState, store: LedgerStore) -> int:
    if not state.is_initialized:
        state.initialize(store)
    return state.user_id


# -------------------------------------------------------------------
# Categories
# -------------------------------------------------------------------

@router.get("/categories/{kind}")
def list_categories(
    kind: str,
    state: AppState = Depends(get_app_state),
    store: LedgerStore = Depends(get_store),
):
    """Global categories first, then the user's custom ones."""
    return [asdict(c) for c in store.list_categories(kind, _user_id(state, store))]


@router.post("/categories/{kind}", status_code=201)
def create_category(
    kind: str,
    body: CategoryIn,
    state: AppState = Depends(get_app_state),
    store: LedgerStore = Depends(get_store),
):
    category = store.create_category(kind, body.name, _user_id(state, store), is_fuel=body.is_fuel)
    return asdict(category)


@router.put("/categories/{kind}/{category_id}")
def rename_category(
    kind: str,
    category_id: int,
    body: CategoryIn,
    state: AppState = Depends(get_app_state),
    store: LedgerStore = Depends(get_store),
):
    """Only the user's own custom categories can be renamed."""
    return asdict(store.rename_category(kind, category_id, body.name, user_id=_user_id(state, store)))


@router.delete("/categories/{kind}/{category_id}")
def delete_category(
    kind: str,
    category_id: int,
    state: AppState = Depends(get_app_state),
    store: LedgerStore = Depends(get_store),
):
    """
    Categories still referenced by transactions are deactivated, not removed.
    Global categories are read-only.
    """
    outcome = store.delete_category(kind, category_id, user_id=_user_id(state, store))
    return {"id": category_id, "result": outcome}


# -------------------------------------------------------------------
# Counterparties
# -------------------------------------------------------------------

@router.get("/counterparties/{kind}")
def list_counterparties(
    kind: str,
    state: AppState = Depends(get_app_state),
    store: LedgerStore = Depends(get_store),
):
    return [asdict(c) for c in store.list_counterparties(kind, _user_id(state, store))]


@router.post("/counterparties/{kind}", status_code=201)
def create_counterparty(
    kind: str,
    body: CounterpartyIn,
    state: AppState = Depends(get_app_state),
    store: LedgerStore = Depends(get_store),
):
    record = store.create_counterparty(
        kind,
        _user_id(state, store),
        body.name,
        geo_coordinate=body.geo_coordinate,
    )
    return asdict(record)


@router.get("/currencies")
def list_currencies(store: LedgerStore = Depends(get_store)):
    return store.list_currencies()
