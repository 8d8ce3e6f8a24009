# app/services/app_state.py
"""
Explicit application state: the current user, the selected vehicle and the
theme mode. One instance is created at startup (see main.py) and handed to
routes through app/deps.py:get_app_state; nothing reads it from a global.
"""

import logging
from typing import List, Optional

from app.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

THEME_MODES = ("light", "dark", "system")


class AppState:
    def __init__(self):
        self._user_id: Optional[int] = None
        self._default_currency: Optional[str] = None
        self._selected_vehicle_id: Optional[int] = None
        self._vehicle_ids: List[int] = []
        self._theme_mode = "system"

    # ---- Read accessors ----

    @property
    def user_id(self) -> Optional[int]:
        return self._user_id

    @property
    def default_currency(self) -> Optional[str]:
        return self._default_currency

    @property
    def selected_vehicle_id(self) -> Optional[int]:
        return self._selected_vehicle_id

    @property
    def vehicle_ids(self) -> List[int]:
        return list(self._vehicle_ids)

    @property
    def theme_mode(self) -> str:
        return self._theme_mode

    @property
    def is_initialized(self) -> bool:
        return self._user_id is not None

    # ---- Write accessors ----

    def initialize(self, store) -> None:
        """
        Load (or create) the local user and their vehicles, and select the
        first vehicle when none is selected yet.
        """
        user = store.first_user()
        if user is None:
            user = store.create_user()
            logger.info("[state] created local user id=%s", user.id)

        self._user_id = user.id
        self._default_currency = user.default_currency
        self.refresh_vehicles(store)

    def refresh_vehicles(self, store) -> None:
        """
        Reload the vehicle list. Keeps the selection when the vehicle still
        exists, otherwise falls back to the first vehicle (or none).
        """
        if self._user_id is None:
            return
        vehicles = store.list_user_vehicles(self._user_id)
        self._vehicle_ids = [v.id for v in vehicles]

        if self._selected_vehicle_id not in self._vehicle_ids:
            self._selected_vehicle_id = self._vehicle_ids[0] if self._vehicle_ids else None

    def refresh_user(self, store) -> None:
        if self._user_id is None:
            return
        user = store.get_user(self._user_id)
        self._default_currency = user.default_currency

    def select_vehicle(self, vehicle_id: Optional[int]) -> None:
        if vehicle_id is not None and vehicle_id not in self._vehicle_ids:
            raise NotFoundError("vehicle", vehicle_id)
        self._selected_vehicle_id = vehicle_id

    def set_theme_mode(self, mode: str) -> None:
        if mode not in THEME_MODES:
            raise ValidationError(f"Unknown theme mode: {mode!r}", field="theme_mode", value=mode)
        self._theme_mode = mode

    def as_dict(self) -> dict:
        return {
            "user_id": self._user_id,
            "default_currency": self._default_currency,
            "selected_vehicle_id": self._selected_vehicle_id,
            "vehicle_ids": self.vehicle_ids,
            "theme_mode": self._theme_mode,
        }
