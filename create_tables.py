"""
Create the users, threads, and messages tables.
Run this once to set up the tables in your database.

Usage: python create_tables.py
"""
import logging
from typing import Dict

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from models import Base, Thread, User, Message  # Import models to register them

logger = logging.getLogger(__name__)

TABLES = (User.__tablename__, Thread.__tablename__, Message.__tablename__)


def create_tables(engine: Engine) -> Dict[str, bool]:
    """Create any missing tables and report which ones exist afterwards."""
    Base.metadata.create_all(bind=engine)

    existing = set(inspect(engine).get_table_names())
    status = {table: table in existing for table in TABLES}
    for table, exists in status.items():
        if exists:
            logger.info(f"Table {table} is ready")
        else:
            logger.error(f"Failed to create table {table}")
    return status


if __name__ == "__main__":
    from config import Settings
    from database import build_engine

    logging.basicConfig(level=logging.INFO)
    engine = build_engine(Settings().DATABASE_URL)
    try:
        status = create_tables(engine)
    finally:
        engine.dispose()

    for table, exists in status.items():
        print(f"{'✓' if exists else '✗'} {table}")
