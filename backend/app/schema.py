"""
Database schema for the water supply dashboard
EXACT column names as stored in DuckDB (all lowercase with underscores)
"""

DAYS = range(1, 8)

SCHEMA = {
    "scheme_status": {
        "sr_no": "INTEGER",
        "scheme_id": "VARCHAR",
        "region": "VARCHAR",
        "circle": "VARCHAR",
        "division": "VARCHAR",
        "sub_division": "VARCHAR",
        "block": "VARCHAR",
        "scheme_name": "VARCHAR",
        "agency": "VARCHAR",
        "number_of_village": "INTEGER",
        "total_villages_integrated": "INTEGER",
        "no_of_functional_village": "INTEGER",
        "no_of_partial_village": "INTEGER",
        "no_of_non_functional_village": "INTEGER",
        "fully_completed_villages": "INTEGER",
        "total_number_of_esr": "INTEGER",
        "scheme_functional_status": "VARCHAR",
        "total_esr_integrated": "INTEGER",
        "no_fully_completed_esr": "INTEGER",
        "balance_to_complete_esr": "INTEGER",
        "flow_meters_connected": "INTEGER",
        "pressure_transmitter_connected": "INTEGER",
        "residual_chlorine_analyzer_connected": "INTEGER",
        "fully_completion_scheme_status": "VARCHAR",
        "dashboard_url": "VARCHAR",
    },

    "water_scheme_data": {
        "region": "VARCHAR",
        "circle": "VARCHAR",
        "division": "VARCHAR",
        "sub_division": "VARCHAR",
        "block": "VARCHAR",
        "scheme_id": "VARCHAR",
        "scheme_name": "VARCHAR",
        "village_name": "VARCHAR",
        "population": "INTEGER",
        "number_of_esr": "INTEGER",
        **{f"water_value_day{d}": "DECIMAL(20,6)" for d in DAYS},
        **{f"lpcd_value_day{d}": "DECIMAL(20,6)" for d in DAYS},
        **{f"water_date_day{d}": "VARCHAR" for d in DAYS},
        **{f"lpcd_date_day{d}": "VARCHAR" for d in DAYS},
        "consistent_zero_lpcd_for_a_week": "INTEGER",
        "below_55_lpcd_count": "INTEGER",
        "above_55_lpcd_count": "INTEGER",
        "dashboard_url": "VARCHAR",
    },

    "region": {
        "region_id": "INTEGER DEFAULT nextval('region_id_seq')",
        "region_name": "VARCHAR NOT NULL",
        "total_esr_integrated": "INTEGER",
        "fully_completed_esr": "INTEGER",
        "partial_esr": "INTEGER",
        "total_villages_integrated": "INTEGER",
        "fully_completed_villages": "INTEGER",
        "total_schemes_integrated": "INTEGER",
        "fully_completed_schemes": "INTEGER",
        "flow_meter_integrated": "INTEGER",
        "rca_integrated": "INTEGER",
        "pressure_transmitter_integrated": "INTEGER",
    },
}

# Upsert identity per table. There are no storage-level primary keys;
# the importer checks existence itself.
KEY_COLUMNS = {
    "scheme_status": ("scheme_id",),
    "water_scheme_data": ("scheme_id", "village_name"),
    "region": ("region_name",),
}

# A row lacking any of these is skipped
REQUIRED_COLUMNS = {
    "scheme_status": ("scheme_id", "scheme_name"),
    "water_scheme_data": ("scheme_id", "village_name"),
    "region": ("region_name",),
}

# Column holding the region name, used for the upload's region override
REGION_COLUMN = {
    "scheme_status": "region",
    "water_scheme_data": "region",
    "region": "region_name",
}

# Columns the importer never accepts from a spreadsheet
GENERATED_COLUMNS = {"region_id"}

# Old dashboard builds read these names; only the canonical column is stored.
LEGACY_COLUMN_ALIASES = {
    "fm_integrated": "flow_meters_connected",
    "pt_integrated": "pressure_transmitter_connected",
    "rca_connected": "residual_chlorine_analyzer_connected",
    "total_villages": "number_of_village",
    "total_esr": "total_number_of_esr",
    "region_name": "region",
}

LPCD_VALUE_COLUMNS = [f"lpcd_value_day{d}" for d in DAYS]
LPCD_COUNTER_COLUMNS = [
    "consistent_zero_lpcd_for_a_week",
    "below_55_lpcd_count",
    "above_55_lpcd_count",
]

REGION_NAMES = [
    "Amravati",
    "Chhatrapati Sambhajinagar",
    "Konkan",
    "Nagpur",
    "Nashik",
    "Pune",
]


def table_columns(table):
    return list(SCHEMA[table].keys())


def field_type(table, column):
    """Semantic type of a column: 'integer', 'decimal', 'date' or 'text'."""
    sql_type = SCHEMA[table][column].split()[0].upper()
    if sql_type == "INTEGER":
        return "integer"
    if sql_type.startswith("DECIMAL"):
        return "decimal"
    if "_date_" in column:
        return "date"
    return "text"


def numeric_columns(table):
    return [c for c in SCHEMA[table] if field_type(table, c) in ("integer", "decimal")]


def canonical_column(table, name):
    """
    Translate a destination name to the stored column.
    Legacy aliases only apply when the name is not itself a column of the table.
    """
    cleaned = str(name or "").strip()
    if cleaned in SCHEMA[table]:
        return cleaned
    alias = LEGACY_COLUMN_ALIASES.get(cleaned.lower())
    if alias and alias in SCHEMA[table]:
        return alias
    return None


def create_table_sql(table):
    cols = ",\n    ".join(f"{name} {sql_type}" for name, sql_type in SCHEMA[table].items())
    return f"CREATE TABLE IF NOT EXISTS {table} (\n    {cols}\n);"
