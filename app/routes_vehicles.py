# routes_vehicles.py
"""
Routes for the user's vehicles.
"""

from fastapi import APIRouter, Depends

from app.deps import get_app_state, get_store
from app.schemas import VehicleIn
from app.services.app_state import AppState
from app.services.ledger_store import LedgerStore

router = APIRouter()


def vehicle_to_dict(vehicle) -> dict:
    return {
        "id": vehicle.id,
        "user_id": vehicle.user_id,
        "name": vehicle.name,
        "fuel_type": vehicle.fuel_type,
        "is_income_generating": vehicle.is_income_generating,
        "license_plate": vehicle.license_plate,
        "model": vehicle.model,
    }


def _current_user_id(state: AppState, store: LedgerStore) -> int:
    if not state.is_initialized:
        state.initialize(store)
    return state.user_id


@router.get("/vehicles")
def list_vehicles(
    state: AppState = Depends(get_app_state),
    store: LedgerStore = Depends(get_store),
):
    user_id = _current_user_id(state, store)
    return [vehicle_to_dict(v) for v in store.list_user_vehicles(user_id)]


@router.post("/vehicles", status_code=201)
def create_vehicle(
    body: VehicleIn,
    state: AppState = Depends(get_app_state),
    store: LedgerStore = Depends(get_store),
):
    user_id = _current_user_id(state, store)
    vehicle = store.create_vehicle(
        user_id=user_id,
        name=body.name,
        fuel_type=body.fuel_type,
        is_income_generating=body.is_income_generating,
        license_plate=body.license_plate,
        model=body.model,
    )
    state.refresh_vehicles(store)
    return vehicle_to_dict(vehicle)


@router.delete("/vehicles/{vehicle_id}")
def delete_vehicle(
    vehicle_id: int,
    state: AppState = Depends(get_app_state),
    store: LedgerStore = Depends(get_store),
):
    """
    Soft delete: the vehicle disappears from lists, its ledger stays.
    """
    store.deactivate_vehicle(vehicle_id)
    state.refresh_vehicles(store)
    return {"message": "Vehicle deactivated", "id": vehicle_id}
