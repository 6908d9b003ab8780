"""Shared fixtures for the water dashboard tests.

Every test gets its own DuckDB file under tmp_path; the settings layer reads
the environment at call time, so pointing WATER_DB_PATH at it is enough.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from backend.app.data_loader import SheetData
from backend.app.database_connection import db_connection
from backend.app.db_utils import initialize_database


# ============================================================================
# Environment and Database Fixtures
# ============================================================================

@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "water_dashboard.duckdb"
    monkeypatch.setenv("WATER_DB_PATH", str(path))
    monkeypatch.setenv("WATER_UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("WATER_DATA_DIR", str(tmp_path / "incoming"))
    initialize_database(path)
    return path


@pytest.fixture
def conn(db_path):
    with db_connection(db_path) as connection:
        yield connection


@pytest.fixture
def client(db_path):
    from backend.app.main import app

    with TestClient(app) as test_client:
        yield test_client


# ============================================================================
# Test Data Fixtures
# ============================================================================

SCHEME_HEADERS = [
    "Region", "Circle", "Division", "Sub Division", "Block",
    "Scheme ID", "Scheme Name", "Number of Village", "Total Villages Integrated",
    "Fully completed Villages", "Total ESR Integrated", "No. Fully Completed ESR",
    "Flow Meters Conneted", "Residual Chlorine Conneted", "Pressure Transmitter Conneted",
    "Scheme Status",
]


@pytest.fixture
def scheme_sheet():
    """Two Nashik schemes (one fully completed) and one Pune scheme."""
    return SheetData(
        headers=list(SCHEME_HEADERS),
        rows=[
            ["Nashik", "Nashik", "Nashik", "Sinnar", "Sinnar", "101", "Alpha RRWSS",
             "5", "4", "3", "6", "4", "2", "1", "1", "Fully Completed"],
            ["Nashik", "Nashik", "Nashik", "Sinnar", "Sinnar", "102", "Beta RRWSS",
             "3", "2", "0", "2", "1", "1", "0", "1", "In Progress"],
            ["Pune", "Pune", "Pune", "Haveli", "Haveli", "201", "Gamma RRWSS",
             "1,234", "N/A", "", "3", "3", "3", "3", "3", "Completed"],
        ],
    )


@pytest.fixture
def make_sheet():
    def _make(headers, rows, has_header=True):
        return SheetData(headers=list(headers), rows=[list(r) for r in rows], has_header=has_header)

    return _make
