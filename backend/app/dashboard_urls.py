"""
PI Vision dashboard links for schemes and villages.

The general rule builds an AF element path from the location hierarchy.
A small exception table, keyed by (attribute, value), is consulted first;
its entries are literal and must not be generalised.
"""

from urllib.parse import quote

SCHEME_DASHBOARD_BASE = (
    "https://14.99.99.166:18099/PIVision/#/Displays/10108/"
    "CEREBULB_JJM_MAHARASHTRA_SCHEME_LEVEL_DASHBOARD"
)
VILLAGE_DASHBOARD_BASE = (
    "https://14.99.99.166:18099/PIVision/#/Displays/10109/"
    "CEREBULB_JJM_MAHARASHTRA_VILLAGE_LEVEL_DASHBOARD"
)
STANDARD_PARAMS = "hidetoolbar=true&hidesidebar=true&mode=kiosk"

HIERARCHY_FIELDS = ("region", "circle", "division", "sub_division", "block", "scheme_id", "scheme_name")

# Bargaonpimpri's AF element name carries a non-breaking space before "Tal Sinnar",
# and its path uses doubled separators throughout.
_BARGAONPIMPRI_PATH = (
    r"\\DemoAF\\JJM\\JJM\\Maharashtra\\Region-Nashik\\Circle-Nashik\\Division-Nashik"
    r"\\Sub Division-Sinnar\\Block-Sinnar\\Scheme-20019176 - Retro. Bargaonpimpri & 6 VRWSS"
    "\u00a0 Tal Sinnar"
)

SPECIAL_CASES = {
    ("scheme_id", "20019176"): {
        "name_contains": "Bargaonpimpri",
        "scheme_path": _BARGAONPIMPRI_PATH,
        "village_separator": "\\\\",
    },
    ("region", "Amravati"): {"region_display": "Amaravati"},
    ("region", "Pune"): {"scheme_separator": "-"},
}


def _special(attribute, value):
    return SPECIAL_CASES.get((attribute, str(value or "").strip()), {})


def _encode(path):
    # encodeURIComponent semantics
    return quote(path, safe="-_.!~*'()")


def _url(base, path):
    return f"{base}?{STANDARD_PARAMS}&rootpath={_encode(path)}"


def _special_scheme_path(record):
    case = _special("scheme_id", record.get("scheme_id"))
    if case and case["name_contains"] in str(record.get("scheme_name") or ""):
        return case
    return None


def _scheme_path(record):
    region = record["region"]
    region_display = _special("region", region).get("region_display", region)
    separator = _special("region", region).get("scheme_separator", " - ")
    return (
        f"\\\\DemoAF\\JJM\\JJM\\Maharashtra\\Region-{region_display}"
        f"\\Circle-{record['circle']}\\Division-{record['division']}"
        f"\\Sub Division-{record['sub_division']}\\Block-{record['block']}"
        f"\\Scheme-{record['scheme_id']}{separator}{record['scheme_name']}"
    )


def has_hierarchy(record, extra=()):
    return all(str(record.get(f) or "").strip() for f in HIERARCHY_FIELDS + tuple(extra))


def scheme_dashboard_url(record):
    """Scheme-level link, or None when the hierarchy is incomplete."""
    special = _special_scheme_path(record)
    if special:
        return _url(SCHEME_DASHBOARD_BASE, special["scheme_path"])
    if not has_hierarchy(record):
        return None
    return _url(SCHEME_DASHBOARD_BASE, _scheme_path(record))


def village_dashboard_url(record):
    """Village-level link, or None when the hierarchy or village name is missing."""
    if not has_hierarchy(record, extra=("village_name",)):
        return None
    special = _special_scheme_path(record)
    if special:
        path = f"{special['scheme_path']}{special['village_separator']}{record['village_name']}"
    else:
        path = f"{_scheme_path(record)}\\{record['village_name']}"
    return _url(VILLAGE_DASHBOARD_BASE, path)
