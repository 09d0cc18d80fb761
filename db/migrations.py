"""Idempotent database migrations for draftdesk.

SQLite doesn't support full ALTER TABLE, but does support ADD COLUMN
for nullable columns. Each migration checks if the column exists first.
"""

import logging
from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

# (table, column, type) for columns added to a model after a database already
# exists. create_all only creates missing tables, never missing columns.
# Empty until the schema changes after release.
MIGRATIONS: list[tuple[str, str, str]] = []


def _column_exists(engine: Engine, table: str, column: str) -> bool:
    """Check if a column exists in the given table."""
    with engine.connect() as conn:
        result = conn.execute(text(f"PRAGMA table_info({table})"))
        columns = [row[1] for row in result]
        return column in columns


def run_migrations(engine: Engine) -> None:
    """Run all pending migrations idempotently."""
    with engine.connect() as conn:
        for table, column, col_type in MIGRATIONS:
            if not _column_exists(engine, table, column):
                logger.info("Adding column %s.%s (%s)", table, column, col_type)
                conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {column} {col_type}"))
                conn.commit()
            else:
                logger.debug("Column %s.%s already exists, skipping", table, column)
