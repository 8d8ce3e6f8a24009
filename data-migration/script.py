"""
This script imports historical ledger rows for one vehicle from CSV files
(exported spreadsheets, one file per month or year) into the ledger database.

Files are read with the same parser the HTTP import uses, so headers are
case-insensitive and bad rows are skipped and reported instead of aborting
the run. Odometer continuity is not checked: history is imported as-is.

Usage:
    python data-migration/script.py <vehicle_id> [folder]
"""


from __future__ import annotations

import logging
import sys
from pathlib import Path

from db import SessionLocal, init_db
from app.services.ledger_import import import_ledger_rows, parse_ledger_csv
from app.services.ledger_store import LedgerStore
from app.services.seed_data import seed_database

logger = logging.getLogger(__name__)

NORMALIZED_DIR = Path("data-migration/normalized")


def import_ledger_csvs_to_db(vehicle_id: int, folder: Path = NORMALIZED_DIR) -> int:
    folder = Path(folder)
    csv_files = sorted(folder.glob("*.csv"))
    if not csv_files:
        raise FileNotFoundError(f"No CSV files found in: {folder.resolve()}")

    init_db()

    session = SessionLocal()
    total_inserted = 0

    try:
        seed_database(session)
        store = LedgerStore(session)

        for f in csv_files:
            result = import_ledger_rows(store, vehicle_id, parse_ledger_csv(f))
            total_inserted += result.inserted

            logger.info("Imported %d rows from %s (%d skipped)", result.inserted, f.name, result.skipped)
            for error in result.errors:
                logger.warning("%s: %s", f.name, error)

        logger.info("DONE. Total inserted: %d", total_inserted)
    finally:
        session.close()

    return total_inserted


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    if len(sys.argv) < 2:
        sys.exit("usage: script.py <vehicle_id> [folder]")

    target = Path(sys.argv[2]) if len(sys.argv) > 2 else NORMALIZED_DIR
    import_ledger_csvs_to_db(int(sys.argv[1]), target)
