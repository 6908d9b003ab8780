from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

from backend.app.dashboard_urls import (
    SCHEME_DASHBOARD_BASE,
    STANDARD_PARAMS,
    VILLAGE_DASHBOARD_BASE,
    scheme_dashboard_url,
    village_dashboard_url,
)

NASHIK_SCHEME = {
    "region": "Nashik",
    "circle": "Nashik",
    "division": "Nashik",
    "sub_division": "Sinnar",
    "block": "Sinnar",
    "scheme_id": "101",
    "scheme_name": "Alpha RRWSS",
}


def _rootpath(url):
    return parse_qs(urlsplit(url).fragment.split("?", 1)[1])["rootpath"][0]


def test_scheme_url_general_rule() -> None:
    url = scheme_dashboard_url(NASHIK_SCHEME)

    assert url.startswith(f"{SCHEME_DASHBOARD_BASE}?{STANDARD_PARAMS}&rootpath=")
    assert _rootpath(url) == (
        "\\\\DemoAF\\JJM\\JJM\\Maharashtra\\Region-Nashik\\Circle-Nashik\\Division-Nashik"
        "\\Sub Division-Sinnar\\Block-Sinnar\\Scheme-101 - Alpha RRWSS"
    )
    assert " " not in url


def test_amravati_region_is_spelled_for_the_af_tree() -> None:
    url = scheme_dashboard_url({**NASHIK_SCHEME, "region": "Amravati"})
    assert "\\Region-Amaravati\\" in _rootpath(url)


def test_pune_schemes_use_tight_separator() -> None:
    url = scheme_dashboard_url({**NASHIK_SCHEME, "region": "Pune"})
    assert _rootpath(url).endswith("\\Scheme-101-Alpha RRWSS")


def test_bargaonpimpri_scheme_uses_literal_path() -> None:
    record = {"scheme_id": "20019176", "scheme_name": "Retro. Bargaonpimpri & 6 VRWSS Tal Sinnar"}

    path = _rootpath(scheme_dashboard_url(record))

    assert path.endswith("Bargaonpimpri & 6 VRWSS\u00a0 Tal Sinnar")
    assert "\\\\Region-Nashik\\\\" in path


def test_bargaonpimpri_village_uses_doubled_separator() -> None:
    record = {
        **NASHIK_SCHEME,
        "scheme_id": "20019176",
        "scheme_name": "Retro. Bargaonpimpri & 6 VRWSS Tal Sinnar",
        "village_name": "Pimpri",
    }
    url = village_dashboard_url(record)

    assert url.startswith(VILLAGE_DASHBOARD_BASE)
    assert _rootpath(url).endswith("Tal Sinnar\\\\Pimpri")


def test_village_url_general_rule() -> None:
    url = village_dashboard_url({**NASHIK_SCHEME, "village_name": "Wadgaon"})
    assert _rootpath(url).endswith("\\Scheme-101 - Alpha RRWSS\\Wadgaon")


def test_incomplete_hierarchy_has_no_link() -> None:
    partial = {k: v for k, v in NASHIK_SCHEME.items() if k != "block"}
    assert scheme_dashboard_url(partial) is None
    assert village_dashboard_url(NASHIK_SCHEME) is None
