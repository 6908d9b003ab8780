import logging

logger = logging.getLogger(__name__)

FULLY_COMPLETED = "Fully-Completed"

_TOTALS_SQL = f"""
    SELECT
        COUNT(*) AS total_schemes_integrated,
        SUM(CASE WHEN fully_completion_scheme_status = '{FULLY_COMPLETED}' THEN 1 ELSE 0 END)
            AS fully_completed_schemes,
        SUM(COALESCE(total_villages_integrated, 0)) AS total_villages_integrated,
        SUM(COALESCE(fully_completed_villages, 0)) AS fully_completed_villages,
        SUM(COALESCE(total_esr_integrated, 0)) AS total_esr_integrated,
        SUM(COALESCE(no_fully_completed_esr, 0)) AS fully_completed_esr,
        SUM(COALESCE(total_esr_integrated, 0) - COALESCE(no_fully_completed_esr, 0)) AS partial_esr,
        SUM(COALESCE(flow_meters_connected, 0)) AS flow_meter_integrated,
        SUM(COALESCE(residual_chlorine_analyzer_connected, 0)) AS rca_integrated,
        SUM(COALESCE(pressure_transmitter_connected, 0)) AS pressure_transmitter_integrated
    FROM scheme_status
    WHERE region = ?
"""

SUMMARY_COLUMNS = [
    "total_schemes_integrated",
    "fully_completed_schemes",
    "total_villages_integrated",
    "fully_completed_villages",
    "total_esr_integrated",
    "fully_completed_esr",
    "partial_esr",
    "flow_meter_integrated",
    "rca_integrated",
    "pressure_transmitter_integrated",
]


def region_totals(conn, region_name):
    """Aggregate scheme_status rows of one region; NULL counts are treated as 0."""
    row = conn.execute(_TOTALS_SQL, [region_name]).fetchone()
    return {col: int(value or 0) for col, value in zip(SUMMARY_COLUMNS, row)}


def recompute_region_summary(conn, region_name):
    """Re-derive one region's summary row, creating the row if the region is new."""
    totals = region_totals(conn, region_name)
    values = [totals[c] for c in SUMMARY_COLUMNS]

    exists = conn.execute(
        "SELECT 1 FROM region WHERE region_name = ? LIMIT 1", [region_name]
    ).fetchone()
    if exists:
        set_clause = ", ".join(f"{c} = ?" for c in SUMMARY_COLUMNS)
        conn.execute(
            f"UPDATE region SET {set_clause} WHERE region_name = ?", values + [region_name]
        )
    else:
        cols = ", ".join(["region_name"] + SUMMARY_COLUMNS)
        placeholders = ", ".join(["?"] * (len(SUMMARY_COLUMNS) + 1))
        conn.execute(f"INSERT INTO region ({cols}) VALUES ({placeholders})", [region_name] + values)

    logger.info(
        f"Updated summary for {region_name}: {totals['total_schemes_integrated']} schemes, "
        f"{totals['fully_completed_schemes']} fully completed"
    )
    return totals


def recompute_all_region_summaries(conn):
    """Recompute every region known to either the region table or scheme_status."""
    names = conn.execute(
        """
        SELECT region_name FROM region
        UNION
        SELECT DISTINCT region FROM scheme_status WHERE region IS NOT NULL AND region <> ''
        ORDER BY 1
        """
    ).fetchall()
    return {name: recompute_region_summary(conn, name) for (name,) in names}
