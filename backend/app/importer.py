#!/usr/bin/env python3
"""
Spreadsheet → table importer shared by the upload endpoint and the batch CLI.

 - resolves source columns (exact header, case-insensitive header, then position)
 - coerces cells (numbers stripped to digits/dots, quoted-CSV artifacts removed)
 - derives LPCD counters, scheme completion label, agency and dashboard links
 - upserts every row by its key inside one transaction
 - re-derives region summaries after scheme imports
"""

import logging
import math
import numbers
import re
from dataclasses import dataclass, field
from datetime import date, datetime

import duckdb

from backend.app.column_mappings import MAPPINGS, MappingTable
from backend.app.dashboard_urls import scheme_dashboard_url, village_dashboard_url
from backend.app.data_loader import UploadError
from backend.app.database_connection import transaction
from backend.app.region_summary import recompute_region_summary
from backend.app.schema import (
    GENERATED_COLUMNS,
    KEY_COLUMNS,
    LPCD_COUNTER_COLUMNS,
    LPCD_VALUE_COLUMNS,
    REGION_COLUMN,
    REQUIRED_COLUMNS,
    SCHEMA,
    canonical_column,
    field_type,
)

logger = logging.getLogger(__name__)

LPCD_THRESHOLD = 55
NOT_MAPPED = "not_mapped"
NO_REGION = "no_region"

AGENCY_BY_REGION = {
    "Amravati": "M/s Ceinsys",
    "Nashik": "M/s Ceinsys",
    "Nagpur": "M/s Rite Water",
    "Chhatrapati Sambhajinagar": "M/s Rite Water",
    "Konkan": "M/s Indo/Chetas",
    "Pune": "M/s Indo/Chetas",
}

_NON_NUMERIC_RE = re.compile(r"[^0-9.]")
_COLUMN_LETTERS_RE = re.compile(r"^[A-Za-z]{1,3}$")


class ImportFailedError(RuntimeError):
    """The import transaction failed and was rolled back."""


@dataclass
class ImportResult:
    table: str
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    affected_regions: set = field(default_factory=set)
    skipped_rows: list = field(default_factory=list)

    @property
    def total_processed(self):
        return self.inserted + self.updated

    @property
    def message(self):
        return (
            f"Successfully imported {self.table}: {self.inserted} inserted, "
            f"{self.updated} updated, {self.skipped} skipped"
        )

    def to_response(self):
        return {
            "message": self.message,
            "inserted": self.inserted,
            "updated": self.updated,
            "skipped": self.skipped,
            "totalProcessed": self.total_processed,
        }


# -------- Coercion --------
def parse_numeric(value):
    """
    Numbers pass through; strings keep only digits and '.' before parsing.
    Anything unparseable, empty or 'n/a' is None (absent), never 0.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, numbers.Number):
        as_float = float(value)
        if not math.isfinite(as_float):
            return None
        return int(value) if isinstance(value, numbers.Integral) else as_float

    if isinstance(value, str):
        text = value.strip()
        if text == "" or text.lower() == "n/a":
            return None
        cleaned = _NON_NUMERIC_RE.sub("", text)
        if cleaned == "":
            return None
        try:
            parsed = float(cleaned)
        except ValueError:
            logger.debug(f"Could not parse numeric value from: {value!r}")
            return None
        return parsed if math.isfinite(parsed) else None

    return None


def coerce_text(value):
    if value is None:
        return None
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        if value.is_integer():
            value = int(value)
    text = str(value).strip()
    if text.startswith('"'):
        text = text[1:]
    if text.endswith('"'):
        text = text[:-1]
    text = text.strip()
    return text or None


def coerce_date(value):
    if isinstance(value, (datetime, date)):
        return value.strftime("%Y-%m-%d")
    return coerce_text(value)


def coerce_value(table, column, value):
    kind = field_type(table, column)
    if kind == "integer":
        number = parse_numeric(value)
        return None if number is None else int(round(number))
    if kind == "decimal":
        return parse_numeric(value)
    if kind == "date":
        return coerce_date(value)
    return coerce_text(value)


# -------- Column mapping --------
def column_position(ref):
    """0-based index for a 1-based column number ('11') or letter ('K'); else None."""
    text = str(ref or "").strip()
    if text.isdigit():
        index = int(text) - 1
        return index if index >= 0 else None
    if _COLUMN_LETTERS_RE.match(text):
        index = 0
        for ch in text.upper():
            index = index * 26 + (ord(ch) - ord("A") + 1)
        return index - 1
    return None


def build_mapping(table, overrides=None) -> MappingTable:
    """
    Static mapping for a table, with caller overrides taking priority.
    Override destinations may use legacy column names; unknown ones are rejected.
    """
    if table not in MAPPINGS:
        raise UploadError(f"Unsupported table name: {table}")

    base = MAPPINGS[table]
    if not overrides:
        return base
    if not isinstance(overrides, dict):
        raise UploadError("Column mappings must be a JSON object of source header → field name")

    merged = {}
    for source, dest in overrides.items():
        if dest is None or str(dest).strip() in ("", NOT_MAPPED):
            continue
        column = canonical_column(table, dest)
        if column is None or column in GENERATED_COLUMNS:
            raise UploadError(f"Unknown destination field '{dest}' for table {table}")
        merged[str(source)] = column
    for source, dest in base.columns.items():
        merged.setdefault(source, dest)

    return MappingTable(table=table, columns=merged, positional=base.positional)


def resolve_columns(headers, mapping: MappingTable, has_header=True):
    """
    Map each destination column to a source column index.
    Exact header match first, then case-insensitive, then positional references
    for mappings that allow them (always for headerless files).
    """
    aliases = mapping.aliases()
    exact = {}
    folded = {}
    if has_header:
        for index, header in enumerate(headers):
            if header:
                exact.setdefault(header, index)
                folded.setdefault(header.strip().lower(), index)

    resolved = {}
    for dest, sources in aliases.items():
        for source in sources:
            if source in exact:
                resolved[dest] = exact[source]
                break

    for dest, sources in aliases.items():
        if dest in resolved:
            continue
        for source in sources:
            index = folded.get(source.strip().lower())
            if index is not None:
                resolved[dest] = index
                break

    if mapping.positional or not has_header:
        claimed = set(resolved.values())
        for dest, sources in aliases.items():
            if dest in resolved:
                continue
            for source in sources:
                index = column_position(source)
                if index is not None and index < len(headers) and index not in claimed:
                    resolved[dest] = index
                    claimed.add(index)
                    break

    return resolved


def map_row(table, row, resolved):
    record = {}
    for dest, index in resolved.items():
        raw = row[index] if index < len(row) else None
        value = coerce_value(table, dest, raw)
        if value is not None:
            record[dest] = value
    return record


# -------- Derived fields --------
def lpcd_counters(values):
    """
    Weekly LPCD counters from up to seven daily values (absent ones ignored).
    A zero day only counts as below-threshold when the whole window is zero.
    """
    present = [v for v in (parse_numeric(x) for x in values) if v is not None]
    if not present:
        return {col: 0 for col in LPCD_COUNTER_COLUMNS}

    all_zero = all(v == 0 for v in present)
    if all_zero:
        below = len(present)
        above = 0
    else:
        below = sum(1 for v in present if 0 < v < LPCD_THRESHOLD)
        above = sum(1 for v in present if v >= LPCD_THRESHOLD)

    return {
        "consistent_zero_lpcd_for_a_week": 1 if all_zero and len(present) >= len(LPCD_VALUE_COLUMNS) else 0,
        "below_55_lpcd_count": below,
        "above_55_lpcd_count": above,
    }


COMPLETION_STATUS_LABELS = {
    "completed": "Fully-Completed",
    "complete": "Fully-Completed",
    "fully completed": "Fully-Completed",
    "fully-completed": "Fully-Completed",
    "yes": "Fully-Completed",
    "true": "Fully-Completed",
    "1": "Fully-Completed",
    "y": "Fully-Completed",
    "partial": "Partial",
    "in progress": "In Progress",
    "in-progress": "In Progress",
    "no": "In Progress",
    "false": "In Progress",
    "0": "In Progress",
    "n": "In Progress",
    "not connected": "Not-Connected",
    "not-connected": "Not-Connected",
    "disconnected": "Not-Connected",
}

FUNCTIONAL_STATUS_LABELS = {
    "functional": "Functional",
    "completed": "Functional",
    "complete": "Functional",
    "fully completed": "Functional",
    "fully-completed": "Functional",
    "yes": "Functional",
    "true": "Functional",
    "1": "Functional",
    "y": "Functional",
    "partial": "Partial",
    "non functional": "Non Functional",
    "non-functional": "Non Functional",
    "not functional": "Non Functional",
}


def _status_label(value, labels):
    if value is None:
        return None
    text = str(value).strip()
    return labels.get(text.lower(), text) or None


def completion_status_label(scheme_status):
    """Standard completion label for known spellings; unknown text is kept as given."""
    return _status_label(scheme_status, COMPLETION_STATUS_LABELS)


def functional_status_label(functional_status):
    return _status_label(functional_status, FUNCTIONAL_STATUS_LABELS)


def derive_fields(table, record):
    if table == "water_scheme_data":
        record.update(lpcd_counters(record.get(col) for col in LPCD_VALUE_COLUMNS))
        if "dashboard_url" not in record:
            url = village_dashboard_url(record)
            if url:
                record["dashboard_url"] = url

    elif table == "scheme_status":
        for column, normalise in (
            ("fully_completion_scheme_status", completion_status_label),
            ("scheme_functional_status", functional_status_label),
        ):
            label = normalise(record.get(column))
            if label:
                record[column] = label
        if "agency" not in record and record.get("region") in AGENCY_BY_REGION:
            record["agency"] = AGENCY_BY_REGION[record["region"]]
        if "dashboard_url" not in record:
            url = scheme_dashboard_url(record)
            if url:
                record["dashboard_url"] = url

    return record


# -------- Persistence --------
def _key_clause(table, record):
    keys = KEY_COLUMNS[table]
    return " AND ".join(f"{k} = ?" for k in keys), [record[k] for k in keys]


def upsert_row(conn, table, record):
    """Insert or update one row by key. Returns 'inserted' or 'updated'."""
    values = {c: v for c, v in record.items() if v is not None and c in SCHEMA[table]}
    where, key_values = _key_clause(table, values)

    exists = conn.execute(f"SELECT 1 FROM {table} WHERE {where} LIMIT 1", key_values).fetchone()
    if exists:
        columns = [c for c in values if c not in KEY_COLUMNS[table]]
        if columns:
            set_clause = ", ".join(f"{c} = ?" for c in columns)
            conn.execute(
                f"UPDATE {table} SET {set_clause} WHERE {where}",
                [values[c] for c in columns] + key_values,
            )
        return "updated"

    columns = list(values)
    placeholders = ", ".join(["?"] * len(columns))
    conn.execute(
        f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
        [values[c] for c in columns],
    )
    return "inserted"


def _stored_region(conn, table, record):
    where, key_values = _key_clause(table, record)
    row = conn.execute(f"SELECT region FROM {table} WHERE {where} LIMIT 1", key_values).fetchone()
    return row[0] if row else None


def _clean_region_override(region_name):
    cleaned = str(region_name or "").strip()
    if not cleaned or cleaned == NO_REGION:
        return None
    return cleaned


def run_import(conn, sheet, table, column_mappings=None, region_name=None) -> ImportResult:
    """
    Import every row of a parsed sheet into `table` in one transaction.
    Row defects are skipped and counted; a database error rolls back the batch
    and is raised as ImportFailedError.
    """
    mapping = build_mapping(table, column_mappings)
    resolved = resolve_columns(sheet.headers, mapping, sheet.has_header)
    region_override = _clean_region_override(region_name)
    region_col = REGION_COLUMN[table]
    required = REQUIRED_COLUMNS[table]

    unresolved = [c for c in required if c not in resolved and not (c == region_col and region_override)]
    if unresolved:
        logger.warning(f"No source column found for required field(s) {unresolved}; rows will be skipped")

    result = ImportResult(table=table)
    first_row = 2 if sheet.has_header else 1
    logger.info(f"Importing {len(sheet.rows)} rows into {table} ({len(resolved)} columns mapped)")

    try:
        with transaction(conn):
            for row_number, row in enumerate(sheet.rows, start=first_row):
                record = map_row(table, row, resolved)
                if region_override and not record.get(region_col):
                    record[region_col] = region_override

                missing = [c for c in required if not record.get(c)]
                if missing:
                    result.skipped += 1
                    result.skipped_rows.append((row_number, f"Missing {' or '.join(missing)}"))
                    logger.debug(f"Skipping row {row_number}: missing {missing}")
                    continue

                derive_fields(table, record)

                if table == "scheme_status":
                    previous = _stored_region(conn, table, record)
                    result.affected_regions.update(r for r in (previous, record.get("region")) if r)

                if upsert_row(conn, table, record) == "inserted":
                    result.inserted += 1
                else:
                    result.updated += 1

            if table == "scheme_status":
                for region in sorted(result.affected_regions):
                    recompute_region_summary(conn, region)

    except duckdb.Error as e:
        raise ImportFailedError(str(e)) from e

    logger.info(f"✅ {result.message}")
    return result


def refresh_lpcd_counters(conn):
    """Re-derive the weekly LPCD counters of every stored village row."""
    cols = ", ".join(LPCD_VALUE_COLUMNS)
    rows = conn.execute(f"SELECT scheme_id, village_name, {cols} FROM water_scheme_data").fetchall()

    set_clause = ", ".join(f"{c} = ?" for c in LPCD_COUNTER_COLUMNS)
    with transaction(conn):
        for scheme_id, village_name, *values in rows:
            counters = lpcd_counters(values)
            conn.execute(
                f"UPDATE water_scheme_data SET {set_clause} WHERE scheme_id = ? AND village_name = ?",
                [counters[c] for c in LPCD_COUNTER_COLUMNS] + [scheme_id, village_name],
            )

    logger.info(f"Refreshed LPCD counters for {len(rows)} villages")
    return len(rows)
