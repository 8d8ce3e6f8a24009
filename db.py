# db.py
# Role: Database bootstrap for the vehicle ledger.
#       Defines the SQLAlchemy engine, session factory, and declarative Base.
#       Also ensures the on-disk database directory exists for SQLite URLs.

"""
Database setup for the vehicle ledger.

- Uses the URL from config.DATABASE_URL (SQLite file under <project_root>/database by default)
- Ensures the 'database' folder exists when a local SQLite file is used.
"""

import logging
import os

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from config import DATABASE_URL, DB_DIR

logger = logging.getLogger(__name__)

engine_args = {}
if DATABASE_URL.startswith("sqlite"):
    # FastAPI serves sync routes from a threadpool
    engine_args["connect_args"] = {"check_same_thread": False}
    if DATABASE_URL.startswith(f"sqlite:///{DB_DIR}"):
        os.makedirs(DB_DIR, exist_ok=True)

engine = create_engine(DATABASE_URL, **engine_args)

# Standard session factory used via dependency injection (see app/deps.py:get_db)
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

# Declarative base class for ORM models
Base = declarative_base()


def init_db(bind=None) -> None:
    """
    Create all tables (only if they don't exist yet).

    Importing models registers every table with Base.metadata.
    """
    import models  # noqa: F401

    target = bind if bind is not None else engine
    Base.metadata.create_all(bind=target)
    logger.info("Database tables ready (%s)", target.url)
