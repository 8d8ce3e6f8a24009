# app/deps.py
# Role: Shared application-level dependencies.
#       Provides the standard SQLAlchemy session dependency, the ledger store
#       built on top of it, and access to the explicit AppState object.

"""
Shared dependencies for the vehicle ledger API.
"""

from typing import Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from db import SessionLocal
from app.services.app_state import AppState
from app.services.ledger_store import LedgerStore

# -------------------------------------------------------------------
# Database dependency
# -------------------------------------------------------------------

def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a database session and ensures it is closed.

    Typical usage in routes:
        db: Session = Depends(get_db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_store(db: Session = Depends(get_db)) -> LedgerStore:
    """Ledger store bound to the request's session."""
    return LedgerStore(db)


# -------------------------------------------------------------------
# Application state
# -------------------------------------------------------------------

def get_app_state(request: Request) -> AppState:
    """
    The AppState created at startup (main.py stores it on app.state).
    """
    return request.app.state.ledger_state
