#!/usr/bin/env python3
"""
backend/app/data_loader.py

Turns an uploaded spreadsheet into plain header + row lists:
 - CSV: decoded with a fallback chain of encodings, delimiter given or auto-detected
 - Excel (.xlsx/.xlsm via openpyxl, legacy .xls via xlrd): first sheet only
Cells are kept raw (strings for CSV, native values for Excel); the importer
does all type coercion.
"""

import io
import logging
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

# -------- CONFIG --------
ENCODINGS = ["utf-8-sig", "utf-8", "latin1"]
CHUNK_SIZE = 1024 * 1024
CSV_EXTENSIONS = {".csv", ".txt"}
EXCEL_EXTENSIONS = {".xlsx", ".xlsm", ".xls"}
# Legacy BIFF workbooks need xlrd; everything else goes through openpyxl
EXCEL_ENGINES = {".xls": "xlrd"}
SUPPORTED_EXTENSIONS = CSV_EXTENSIONS | EXCEL_EXTENSIONS


class UploadError(ValueError):
    """The uploaded file (or its accompanying options) cannot be processed."""


class UploadTooLargeError(UploadError):
    """The upload exceeds the configured size limit."""


@dataclass
class SheetData:
    headers: list
    rows: list = field(default_factory=list)
    has_header: bool = True
    file_format: str = "csv"
    delimiter: str = None


# -------- UTIL: decoding & delimiters --------
def decode_upload_bytes(raw_bytes: bytes) -> str:
    """Try multiple encodings until the content decodes."""
    for enc in ENCODINGS:
        try:
            return raw_bytes.decode(enc)
        except UnicodeDecodeError:
            logging.warning(f"Encoding {enc} failed, trying next...")
    raise UploadError("Could not decode upload content.")


def detect_delimiter(text: str) -> str:
    """Pick ',' ';' or tab by counting occurrences; comma unless another strictly dominates."""
    comma = text.count(",")
    semicolon = text.count(";")
    tab = text.count("\t")
    if semicolon > comma and semicolon > tab:
        return ";"
    if tab > comma and tab > semicolon:
        return "\t"
    return ","


def safe_delimiter(value) -> str:
    """Normalise a delimiter form field; returns None when auto-detection should run."""
    cleaned = str(value or "")
    if cleaned in ("\\t", "\t", "tab"):
        return "\t"
    cleaned = cleaned.strip()
    if not cleaned or cleaned.lower() == "auto":
        return None
    return cleaned[0]


def _header_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        if pd.isna(value):
            return ""
        if value.is_integer():
            return str(int(value))
    text = str(value).strip()
    if text.startswith("Unnamed:"):
        return ""
    return text


def _cell(value):
    """NaN/NaT from pandas become None so the importer sees them as absent."""
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return value


def _row_has_data(row) -> bool:
    return any(v is not None and str(v).strip() != "" for v in row)


def _frame_to_sheet(df: pd.DataFrame, has_header: bool, file_format: str, delimiter=None) -> SheetData:
    if has_header:
        headers = [_header_text(c) for c in df.columns]
    else:
        headers = ["" for _ in df.columns]

    rows = []
    for values in df.itertuples(index=False, name=None):
        row = [_cell(v) for v in values]
        if _row_has_data(row):
            rows.append(row)

    return SheetData(
        headers=headers,
        rows=rows,
        has_header=has_header,
        file_format=file_format,
        delimiter=delimiter,
    )


# -------- Readers --------
def read_csv_sheet(raw_bytes: bytes, delimiter=None, has_header=True) -> SheetData:
    text = decode_upload_bytes(raw_bytes)
    if not text.strip():
        raise UploadError("Uploaded file is empty.")

    sep = delimiter or detect_delimiter(text)
    try:
        df = pd.read_csv(
            io.StringIO(text),
            sep=sep,
            header=0 if has_header else None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise UploadError(f"Could not parse CSV: {e}") from e

    logging.info(f"Read CSV with delimiter {sep!r}: {len(df)} rows, {len(df.columns)} columns")
    return _frame_to_sheet(df, has_header, "csv", sep)


def read_excel_sheet(source, has_header=True, engine="openpyxl") -> SheetData:
    """Read the first worksheet of an Excel workbook."""
    try:
        df = pd.read_excel(
            source,
            sheet_name=0,
            header=0 if has_header else None,
            dtype=object,
            engine=engine,
        )
    except Exception as e:
        raise UploadError(f"Could not read Excel workbook: {e}") from e

    logging.info(f"Read Excel sheet: {len(df)} rows, {len(df.columns)} columns")
    return _frame_to_sheet(df, has_header, "excel")


def load_sheet(path, file_name=None, delimiter=None, has_header=True) -> SheetData:
    """Dispatch on the original file extension and return the parsed sheet."""
    path = Path(path)
    ext = Path(file_name or path.name).suffix.lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise UploadError(
            f"Unsupported file type '{ext or '(none)'}'. Allowed: {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
        )

    if ext in EXCEL_EXTENSIONS:
        sheet = read_excel_sheet(path, has_header=has_header, engine=EXCEL_ENGINES.get(ext, "openpyxl"))
    else:
        sheet = read_csv_sheet(path.read_bytes(), delimiter=delimiter, has_header=has_header)

    if not sheet.rows:
        raise UploadError("No data rows found in uploaded file.")
    return sheet


def save_upload(stream, dest: Path, max_bytes: int) -> int:
    """Copy an upload stream to disk in chunks, stopping once it exceeds max_bytes."""
    written = 0
    with open(dest, "wb") as buffer:
        while True:
            chunk = stream.read(CHUNK_SIZE)
            if not chunk:
                break
            written += len(chunk)
            if written > max_bytes:
                raise UploadTooLargeError(
                    f"File too large. Maximum size is {max_bytes // (1024 * 1024)} MB."
                )
            buffer.write(chunk)
    return written
