# routes_upload.py
"""
Routes for importing historical ledger rows from a CSV file.
"""

import logging

from fastapi import APIRouter, Depends, File, UploadFile

from app.deps import get_store
from app.services.ledger_import import import_ledger_rows, parse_ledger_csv
from app.services.ledger_store import LedgerStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/vehicles/{vehicle_id}/import")
def import_csv(
    vehicle_id: int,
    file: UploadFile = File(...),
    store: LedgerStore = Depends(get_store),
):
    """
    Parse the uploaded CSV and insert its rows for the vehicle.
    Bad rows are skipped and listed in the response.
    """
    store.get_vehicle(vehicle_id)
    logger.info("[import] vehicle=%s file=%s", vehicle_id, file.filename)

    try:
        rows = parse_ledger_csv(file.file)
    finally:
        file.file.close()

    result = import_ledger_rows(store, vehicle_id, rows)
    return {
        "filename": file.filename,
        "inserted": result.inserted,
        "skipped": result.skipped,
        "errors": result.errors,
    }
