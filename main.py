# main.py
# Role: Application entry point for the vehicle ledger.
#       Configures logging, creates the FastAPI app, prepares the database,
#       maps ledger errors to JSON responses, and registers all route modules.

"""
Main FastAPI app for the vehicle expense & income ledger.

Here we only:
- configure logging
- create the FastAPI app and its AppState
- create DB tables and seed reference data on startup
- include route modules
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

import config
from db import SessionLocal, init_db
from app.errors import NotFoundError, StoreError, ValidationError, error_response
from app.routes_categories import router as categories_router
from app.routes_reports import router as reports_router
from app.routes_root import router as root_router
from app.routes_transactions import router as transactions_router
from app.routes_upload import router as upload_router
from app.routes_vehicles import router as vehicles_router
from app.services.app_state import AppState
from app.services.ledger_store import LedgerStore
from app.services.seed_data import seed_database

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# Startup
# -------------------------------------------------------------------

def prepare_storage(state: AppState) -> None:
    """Create tables, seed reference data and load the local user."""
    init_db()
    db = SessionLocal()
    try:
        if config.SEED_ON_STARTUP:
            seed_database(db)
        state.initialize(LedgerStore(db))
    finally:
        db.close()
    logger.info("Ledger ready: user=%s vehicles=%s", state.user_id, state.vehicle_ids)


# -------------------------------------------------------------------
# Error handlers
# -------------------------------------------------------------------

async def _validation_error(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content=error_response(exc.message, field=exc.field))


async def _not_found(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content=error_response(str(exc)))


async def _store_error(request: Request, exc: StoreError):
    logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content=error_response(f"Store operation failed: {exc.operation}"))


# -------------------------------------------------------------------
# App factory
# -------------------------------------------------------------------

def create_app(init_storage: bool = True) -> FastAPI:
    """
    Build the app. Tests pass init_storage=False and install their own
    session dependency and AppState.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if init_storage:
            prepare_storage(app.state.ledger_state)
        yield

    app = FastAPI(title="Vehicle Ledger", lifespan=lifespan)
    app.state.ledger_state = AppState()

    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(StoreError, _store_error)

    # Health and session state
    app.include_router(root_router)

    # Vehicles
    app.include_router(vehicles_router)

    # Ledger entries: listing, entry, edit, delete
    app.include_router(transactions_router)

    # Period reports and summaries
    app.include_router(reports_router)

    # Categories, counterparties, currencies
    app.include_router(categories_router)

    # CSV import
    app.include_router(upload_router)

    return app


app = create_app()
