#!/usr/bin/env python3
"""
Read endpoints for the dashboard: region summaries, schemes and village LPCD rows.
"""

from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from backend.app.db_utils import run_sql_query
from backend.app.region_summary import SUMMARY_COLUMNS

router = APIRouter(prefix="/api", tags=["dashboard"])


class RegionSummary(BaseModel):
    region_id: Optional[int] = None
    region_name: str
    total_esr_integrated: int = 0
    fully_completed_esr: int = 0
    partial_esr: int = 0
    total_villages_integrated: int = 0
    fully_completed_villages: int = 0
    total_schemes_integrated: int = 0
    fully_completed_schemes: int = 0
    flow_meter_integrated: int = 0
    rca_integrated: int = 0
    pressure_transmitter_integrated: int = 0


_REGION_SELECT = (
    "SELECT region_id, region_name, "
    + ", ".join(f"COALESCE({c}, 0) AS {c}" for c in SUMMARY_COLUMNS)
    + " FROM region"
)


@router.get("/regions", response_model=List[RegionSummary])
def list_regions():
    return run_sql_query(f"{_REGION_SELECT} ORDER BY region_name")


@router.get("/regions/{region_name}", response_model=RegionSummary)
def get_region(region_name: str):
    rows = run_sql_query(f"{_REGION_SELECT} WHERE region_name = ?", [region_name])
    if not rows:
        raise HTTPException(status_code=404, detail=f"Region not found: {region_name}")
    return rows[0]


@router.get("/schemes")
def list_schemes(region: Optional[str] = None):
    """Scheme status rows, optionally for one region."""
    if region and region != "all":
        return run_sql_query(
            "SELECT * FROM scheme_status WHERE region = ? ORDER BY scheme_id", [region]
        )
    return run_sql_query("SELECT * FROM scheme_status ORDER BY region, scheme_id")


@router.get("/water-scheme-data")
def list_water_scheme_data(region: Optional[str] = None, scheme_id: Optional[str] = None):
    clauses, params = [], []
    if region and region != "all":
        clauses.append("region = ?")
        params.append(region)
    if scheme_id:
        clauses.append("scheme_id = ?")
        params.append(scheme_id)

    where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
    return run_sql_query(
        f"SELECT * FROM water_scheme_data{where} ORDER BY scheme_id, village_name", params
    )
