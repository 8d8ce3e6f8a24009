# routes_root.py
"""
Root / basic endpoints (health, application state).
"""

from fastapi import APIRouter, Depends

from app.deps import get_app_state, get_store
from app.schemas import SelectVehicleIn, ThemeIn
from app.services.app_state import AppState
from app.services.ledger_store import LedgerStore

router = APIRouter()


@router.get("/")
def read_root():
    """
    Simple health check / landing endpoint.
    """
    return {"message": "Vehicle ledger is running"}


@router.get("/session")
def read_session(
    state: AppState = Depends(get_app_state),
    store: LedgerStore = Depends(get_store),
):
    """
    Current user, selected vehicle and theme. Vehicles are reloaded so a
    deactivated selection falls back to the next available vehicle.
    """
    if not state.is_initialized:
        state.initialize(store)
    else:
        state.refresh_user(store)
        state.refresh_vehicles(store)
    return state.as_dict()


@router.put("/session/vehicle")
def select_vehicle(
    body: SelectVehicleIn,
    state: AppState = Depends(get_app_state),
    store: LedgerStore = Depends(get_store),
):
    state.refresh_vehicles(store)
    state.select_vehicle(body.vehicle_id)
    return state.as_dict()


@router.put("/session/theme")
def set_theme(body: ThemeIn, state: AppState = Depends(get_app_state)):
    state.set_theme_mode(body.theme_mode)
    return state.as_dict()
