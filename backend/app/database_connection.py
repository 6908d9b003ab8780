import logging
from contextlib import contextmanager
from pathlib import Path

import duckdb

from backend.app.utils import get_settings

logger = logging.getLogger(__name__)


def get_connection(db_path=None):
    """
    Return a DuckDB connection to the dashboard database.
    Use this when you need to keep the connection open for multiple queries.
    """
    path = str(db_path or get_settings().db_path)
    if path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(path)


@contextmanager
def db_connection(db_path=None):
    """
    Context manager for auto-closing DuckDB connections.
    Example:
        with db_connection() as conn:
            rows = conn.execute("SELECT * FROM region").fetchall()
    """
    conn = get_connection(db_path)
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(conn):
    """
    Run a block inside BEGIN/COMMIT on an open connection.
    Any exception rolls the whole block back and propagates.
    """
    conn.begin()
    try:
        yield conn
    except Exception:
        conn.rollback()
        logger.error("Transaction rolled back", exc_info=True)
        raise
    conn.commit()
