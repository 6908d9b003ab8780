import logging
from pathlib import Path

import pandas as pd

from backend.app.data_loader import UploadError, load_sheet
from backend.app.database_connection import db_connection
from backend.app.db_utils import initialize_database
from backend.app.importer import ImportFailedError, refresh_lpcd_counters, run_import
from backend.app.region_summary import recompute_all_region_summaries
from backend.app.utils import get_settings, load_env

# --- Setup ---
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

# file in the data dir → target table, imported in this order
FILES = [
    ("scheme_status.csv", "scheme_status"),
    ("scheme_status.xlsx", "scheme_status"),
    ("scheme_status.xls", "scheme_status"),
    ("water_scheme_data.csv", "water_scheme_data"),
    ("water_scheme_data.xlsx", "water_scheme_data"),
    ("water_scheme_data.xls", "water_scheme_data"),
    ("region.csv", "region"),
]

SUMMARY_FILE = "import_summary.csv"
SUMMARY_COLUMNS = ["file", "table", "rows", "inserted", "updated", "skipped", "status"]


def import_file(conn, path: Path, table: str):
    """Import one spreadsheet; returns a summary row for the run report."""
    try:
        sheet = load_sheet(path)
    except UploadError as e:
        logging.error(f"Failed to read {path.name}: {e}")
        return [path.name, table, 0, 0, 0, 0, f"unreadable: {e}"]

    try:
        result = run_import(conn, sheet, table)
    except ImportFailedError as e:
        logging.error(f"Import of {path.name} rolled back: {e}")
        return [path.name, table, len(sheet.rows), 0, 0, 0, f"failed: {e}"]

    for row_number, reason in result.skipped_rows:
        logging.warning(f"{path.name} row {row_number} skipped: {reason}")

    logging.info(f"Processed: {path.name} → {table} ({result.total_processed} rows stored)")
    return [path.name, table, len(sheet.rows), result.inserted, result.updated, result.skipped, "ok"]


# --- Main ETL ---
def main(data_dir=None, db_path=None):
    load_env()
    settings = get_settings()
    data_dir = Path(data_dir or settings.data_dir)
    db_path = db_path or settings.db_path

    initialize_database(db_path)
    summary = []

    with db_connection(db_path) as conn:
        for file, table in FILES:
            path = data_dir / file
            if not path.exists():
                logging.warning(f"{file} not found in {data_dir}. Skipping.")
                continue
            summary.append(import_file(conn, path, table))

        refreshed = refresh_lpcd_counters(conn)
        regions = recompute_all_region_summaries(conn)

    summary_df = pd.DataFrame(summary, columns=SUMMARY_COLUMNS)
    data_dir.mkdir(parents=True, exist_ok=True)
    summary_df.to_csv(data_dir / SUMMARY_FILE, index=False)

    logging.info(f"LPCD counters refreshed for {refreshed} villages; {len(regions)} regions summarised")
    logging.info(f"Import complete. Summary: {data_dir / SUMMARY_FILE}")
    logging.info(f"DuckDB ready at: {db_path}")
    return summary_df


if __name__ == "__main__":
    main()
