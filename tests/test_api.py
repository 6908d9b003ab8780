from __future__ import annotations

import json

import pytest

SCHEME_CSV = (
    "Region,Circle,Division,Sub Division,Block,Scheme ID,Scheme Name,Flow Meters Connected,Scheme Status\n"
    "Nashik,Nashik,Nashik,Sinnar,Sinnar,101,Alpha RRWSS,2,Fully Completed\n"
    "Nashik,Nashik,Nashik,Sinnar,Sinnar,,Missing Id,1,Partial\n"
    "Nashik,Nashik,Nashik,Sinnar,Sinnar,101,Alpha RRWSS,5,Fully Completed\n"
)


def _upload(client, content, table="scheme_status", filename="schemes.csv", **form):
    return client.post(
        "/api/admin/import",
        files={"file": (filename, content, "text/csv")},
        data={"table_name": table, **form},
    )


def test_health(client) -> None:
    assert client.get("/health").json()["status"] == "ok"


def test_import_counts_inserted_updated_skipped(client, tmp_path) -> None:
    response = _upload(client, SCHEME_CSV)

    assert response.status_code == 200
    body = response.json()
    assert {k: body[k] for k in ("inserted", "updated", "skipped", "totalProcessed")} == {
        "inserted": 1,
        "updated": 1,
        "skipped": 1,
        "totalProcessed": 2,
    }
    assert "scheme_status" in body["message"]

    schemes = client.get("/api/schemes", params={"region": "Nashik"}).json()
    assert len(schemes) == 1
    assert schemes[0]["flow_meters_connected"] == 5

    # temp upload removed
    assert list((tmp_path / "uploads").iterdir()) == []


def test_import_updates_region_summary(client) -> None:
    _upload(client, SCHEME_CSV)

    region = client.get("/api/regions/Nashik").json()
    assert region["total_schemes_integrated"] == 1
    assert region["fully_completed_schemes"] == 1
    assert region["flow_meter_integrated"] == 5

    names = [r["region_name"] for r in client.get("/api/regions").json()]
    assert "Pune" in names


def test_unknown_region_is_404(client) -> None:
    assert client.get("/api/regions/Atlantis").status_code == 404


def test_import_lpcd_with_region_override(client) -> None:
    header = ",".join(["Scheme ID", "Scheme Name", "Village Name"] + [f"lpcd value day{d}" for d in range(1, 8)])
    content = f"{header}\n101,Alpha,Wadgaon,0,0,0,0,0,0,0\n"

    response = _upload(client, content, table="water_scheme_data", region_name="Nashik")

    assert response.status_code == 200
    rows = client.get("/api/water-scheme-data", params={"scheme_id": "101"}).json()
    assert rows[0]["region"] == "Nashik"
    assert rows[0]["consistent_zero_lpcd_for_a_week"] == 1
    assert rows[0]["below_55_lpcd_count"] == 7


def test_import_with_column_mapping_override(client) -> None:
    content = "Code;Title\n777;Override Scheme\n"
    response = _upload(
        client,
        content,
        delimiter=";",
        column_mappings=json.dumps({"Code": "scheme_id", "Title": "scheme_name"}),
    )

    assert response.status_code == 200
    assert response.json()["inserted"] == 1


def test_all_rows_skipped_is_not_an_error(client) -> None:
    response = _upload(client, "Scheme ID,Scheme Name\n,Nameless\n")

    assert response.status_code == 200
    assert response.json()["skipped"] == 1
    assert response.json()["totalProcessed"] == 0


@pytest.mark.parametrize(
    "kwargs, fragment",
    [
        ({"filename": "schemes.pdf"}, "Unsupported file type"),
        ({"table": "pipes"}, "Unsupported table"),
        ({"column_mappings": "{not json"}, "Invalid column mappings"),
        ({"column_mappings": json.dumps({"Code": "nope"})}, "Unknown destination"),
    ],
)
def test_bad_requests_return_400(client, kwargs, fragment) -> None:
    response = _upload(client, SCHEME_CSV, **kwargs)

    assert response.status_code == 400
    body = response.json()
    assert fragment in body["error"]
    assert body["message"]


def test_missing_file_returns_400(client) -> None:
    response = client.post("/api/admin/import", data={"table_name": "scheme_status"})
    assert response.status_code == 400
    assert response.json()["error"] == "No file uploaded"


def test_header_only_file_returns_400(client) -> None:
    response = _upload(client, "Scheme ID,Scheme Name\n")
    assert response.status_code == 400
    assert "No data rows" in response.json()["error"]


def test_oversized_upload_returns_413(client, monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("WATER_MAX_UPLOAD_MB", "0.0001")

    response = _upload(client, SCHEME_CSV * 3)

    assert response.status_code == 413
    assert list((tmp_path / "uploads").iterdir()) == []


def test_mapping_descriptor(client) -> None:
    body = client.get("/api/admin/import/mapping/water_scheme_data").json()

    assert body["table"] == "water_scheme_data"
    assert body["keyColumns"] == ["scheme_id", "village_name"]
    assert body["columnMapping"]["11"] == "water_value_day1"
    assert "lpcd_value_day7" in body["numericColumns"]


def test_xls_upload_is_accepted_for_parsing(client) -> None:
    response = _upload(client, b"not a workbook", filename="schemes.xls")

    assert response.status_code == 400
    assert "Could not read Excel workbook" in response.json()["error"]
