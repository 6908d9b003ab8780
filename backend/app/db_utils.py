import logging

from backend.app.database_connection import db_connection
from backend.app.schema import REGION_NAMES, SCHEMA, create_table_sql


def initialize_database(db_path=None):
    """Create the dashboard tables if missing and seed the six Maharashtra regions."""
    with db_connection(db_path) as conn:
        conn.execute("CREATE SEQUENCE IF NOT EXISTS region_id_seq START 1;")
        for table in SCHEMA:
            conn.execute(create_table_sql(table))

        existing = {r[0] for r in conn.execute("SELECT region_name FROM region").fetchall()}
        missing = [name for name in REGION_NAMES if name not in existing]
        for name in missing:
            conn.execute("INSERT INTO region (region_name) VALUES (?)", [name])
        if missing:
            logging.info(f"📥 Seeded regions: {', '.join(missing)}")

        tables = conn.execute("SHOW TABLES;").fetchall()
        logging.info("📊 Available tables: " + ", ".join([t[0] for t in tables]))


def run_sql_query(query: str, params=None, db_path=None):
    """Execute a SQL query and return the results as a list of dicts."""
    with db_connection(db_path) as conn:
        result = conn.execute(query, params or [])
        columns = [desc[0] for desc in result.description]
        rows = [dict(zip(columns, row)) for row in result.fetchall()]

    logging.debug(f"Query executed successfully. Rows fetched: {len(rows)}")
    return rows
