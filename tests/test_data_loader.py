from __future__ import annotations

import io

import pandas as pd
import pytest

from backend.app.data_loader import (
    UploadError,
    UploadTooLargeError,
    decode_upload_bytes,
    detect_delimiter,
    load_sheet,
    read_csv_sheet,
    safe_delimiter,
    save_upload,
)


def test_detect_delimiter() -> None:
    assert detect_delimiter("a,b,c\n1,2,3") == ","
    assert detect_delimiter("a;b;c\n1;2;3") == ";"
    assert detect_delimiter("a\tb\tc\n1\t2\t3") == "\t"
    # ties fall back to comma
    assert detect_delimiter("a;b,c") == ","


@pytest.mark.parametrize(
    "raw, expected",
    [("\\t", "\t"), ("tab", "\t"), (";", ";"), ("", None), ("auto", None), (None, None)],
)
def test_safe_delimiter(raw, expected) -> None:
    assert safe_delimiter(raw) == expected


def test_decode_falls_back_to_latin1() -> None:
    assert decode_upload_bytes("Région".encode("latin1")) == "Région"
    assert decode_upload_bytes("\ufeffScheme ID".encode("utf-8")) == "Scheme ID"


def test_read_csv_keeps_cells_as_text() -> None:
    raw = b"Scheme ID;Scheme Name;Population\n00123;Alpha;1,200\n;;\n124;Beta;\n"

    sheet = read_csv_sheet(raw)

    assert sheet.delimiter == ";"
    assert sheet.headers == ["Scheme ID", "Scheme Name", "Population"]
    assert sheet.rows == [["00123", "Alpha", "1,200"], ["124", "Beta", ""]]


def test_read_csv_without_header() -> None:
    sheet = read_csv_sheet(b"101,Alpha\n102,Beta\n", has_header=False)

    assert sheet.has_header is False
    assert sheet.headers == ["", ""]
    assert len(sheet.rows) == 2


def test_read_csv_rejects_empty_content() -> None:
    with pytest.raises(UploadError):
        read_csv_sheet(b"   \n")


def test_load_sheet_excel(tmp_path) -> None:
    path = tmp_path / "schemes.xlsx"
    pd.DataFrame(
        {"Scheme ID": [101, None, 102], "Scheme Name": ["Alpha", None, "Beta"], "Population": [1200, None, 3.5]}
    ).to_excel(path, index=False, engine="openpyxl")

    sheet = load_sheet(path)

    assert sheet.file_format == "excel"
    assert sheet.headers == ["Scheme ID", "Scheme Name", "Population"]
    assert len(sheet.rows) == 2
    assert sheet.rows[0][1] == "Alpha"
    assert float(sheet.rows[1][2]) == 3.5


def test_load_sheet_uses_original_file_name(tmp_path) -> None:
    path = tmp_path / "upload.tmp"
    path.write_bytes(b"Scheme ID,Scheme Name\n101,Alpha\n")

    sheet = load_sheet(path, file_name="schemes.csv")
    assert sheet.rows == [["101", "Alpha"]]


def test_load_sheet_rejects_unsupported_extension(tmp_path) -> None:
    path = tmp_path / "schemes.pdf"
    path.write_bytes(b"%PDF")
    with pytest.raises(UploadError, match="Unsupported file type"):
        load_sheet(path)


def test_load_sheet_rejects_header_only_file(tmp_path) -> None:
    path = tmp_path / "empty.csv"
    path.write_bytes(b"Scheme ID,Scheme Name\n")
    with pytest.raises(UploadError, match="No data rows"):
        load_sheet(path)


def test_save_upload_enforces_limit(tmp_path) -> None:
    dest = tmp_path / "big.csv"
    assert save_upload(io.BytesIO(b"x" * 10), dest, max_bytes=10) == 10

    with pytest.raises(UploadTooLargeError):
        save_upload(io.BytesIO(b"x" * 11), dest, max_bytes=10)


def test_load_sheet_reads_legacy_xls_with_xlrd(tmp_path, monkeypatch) -> None:
    path = tmp_path / "schemes.xls"
    path.write_bytes(b"\xd0\xcf\x11\xe0")
    calls = {}

    def fake_read_excel(source, **kwargs):
        calls.update(kwargs)
        return pd.DataFrame({"Scheme ID": ["101"], "Scheme Name": ["Alpha"]})

    monkeypatch.setattr(pd, "read_excel", fake_read_excel)

    sheet = load_sheet(path)

    assert calls["engine"] == "xlrd"
    assert sheet.file_format == "excel"
    assert sheet.rows == [["101", "Alpha"]]


def test_corrupt_xls_is_an_upload_error(tmp_path) -> None:
    path = tmp_path / "schemes.xls"
    path.write_bytes(b"not a workbook")
    with pytest.raises(UploadError, match="Could not read Excel workbook"):
        load_sheet(path)
