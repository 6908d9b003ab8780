#!/usr/bin/env python3
"""
FastAPI server for the Water Supply Dashboard
Admin spreadsheet import + read endpoints for region, scheme and village data
"""

import os
import json
import uuid
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.app.api import router as dashboard_router
from backend.app.data_loader import (
    SUPPORTED_EXTENSIONS,
    UploadError,
    UploadTooLargeError,
    load_sheet,
    safe_delimiter,
    save_upload,
)
from backend.app.database_connection import db_connection
from backend.app.db_utils import initialize_database
from backend.app.importer import ImportFailedError, build_mapping, run_import
from backend.app.schema import KEY_COLUMNS, REQUIRED_COLUMNS, numeric_columns
from backend.app.utils import get_settings, load_env


# -------------------- Logging --------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

load_env()


# -------------------- Startup --------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    settings.upload_dir.mkdir(parents=True, exist_ok=True)
    initialize_database()
    logger.info(f"📂 Database ready at {settings.db_path}")
    yield


# -------------------- FastAPI App --------------------
app = FastAPI(
    title="Water Supply Dashboard",
    description="Spreadsheet import and summaries for rural water supply schemes",
    version="1.0.0",
    lifespan=lifespan,
)

# -------------------- CORS --------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(dashboard_router)


# -------------------- API Routes --------------------
@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "ok", "service": "water-dashboard", "version": "1.0.0"}


def _parse_bool(value, default=True):
    if value is None or str(value).strip() == "":
        return default
    return str(value).strip().lower() not in ("false", "0", "no", "off")


def _parse_column_mappings(raw):
    if raw is None or not raw.strip():
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise UploadError(f"Invalid column mappings JSON: {e}") from e


@app.post("/api/admin/import")
def import_file(
    file: Optional[UploadFile] = File(None),
    table_name: Optional[str] = Form(None),
    delimiter: Optional[str] = Form(None),
    has_header: Optional[str] = Form(None),
    column_mappings: Optional[str] = Form(None),
    region_name: Optional[str] = Form(None),
):
    """Import a CSV/Excel file into one of the dashboard tables."""
    if file is None or not file.filename:
        raise UploadError("No file uploaded")
    if not table_name:
        raise UploadError("Table name is required")

    ext = Path(file.filename).suffix.lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise UploadError(
            f"Unsupported file type '{ext or '(none)'}'. Allowed: {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
        )

    mappings = _parse_column_mappings(column_mappings)
    # Fail on an unknown table or destination before touching the disk
    build_mapping(table_name, mappings)

    settings = get_settings()
    settings.upload_dir.mkdir(parents=True, exist_ok=True)
    temp_path = settings.upload_dir / f"{uuid.uuid4().hex}{ext}"

    logger.info(f"Received {file.filename} for table {table_name}")
    try:
        size = save_upload(file.file, temp_path, settings.max_upload_bytes)
        logger.info(f"Saved upload ({size} bytes) to {temp_path.name}")

        sheet = load_sheet(
            temp_path,
            file_name=file.filename,
            delimiter=safe_delimiter(delimiter),
            has_header=_parse_bool(has_header),
        )
        with db_connection() as conn:
            result = run_import(
                conn, sheet, table_name, column_mappings=mappings, region_name=region_name
            )
    finally:
        temp_path.unlink(missing_ok=True)

    return result.to_response()


@app.get("/api/admin/import/mapping/{table_name}")
def import_mapping(table_name: str):
    """Describe how spreadsheet headers map onto a table."""
    mapping = build_mapping(table_name)
    return {
        "table": table_name,
        "columnMapping": mapping.columns,
        "numericColumns": numeric_columns(table_name),
        "requiredColumns": list(REQUIRED_COLUMNS[table_name]),
        "keyColumns": list(KEY_COLUMNS[table_name]),
    }


# -------------------- Exception Handlers --------------------
@app.exception_handler(UploadTooLargeError)
async def upload_too_large_handler(request: Request, exc: UploadTooLargeError):
    logger.warning(f"Rejected upload: {exc}")
    return JSONResponse(status_code=413, content={"message": "Upload rejected", "error": str(exc)})


@app.exception_handler(UploadError)
async def upload_error_handler(request: Request, exc: UploadError):
    logger.warning(f"Bad import request: {exc}")
    return JSONResponse(status_code=400, content={"message": "Invalid import request", "error": str(exc)})


@app.exception_handler(ImportFailedError)
async def import_failed_handler(request: Request, exc: ImportFailedError):
    logger.error(f"❌ Import failed and was rolled back: {exc}")
    return JSONResponse(status_code=500, content={"message": "Import failed", "error": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"message": "An unexpected error occurred", "error": str(exc)},
    )


# -------------------- Entry Point --------------------
if __name__ == "__main__":
    import uvicorn
    logger.info("Starting Water Supply Dashboard server...")
    logger.info("Docs available at: http://localhost:8000/docs")

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=int(os.environ.get("PORT", 8000)),
        log_level="info"
    )
