"""
Static spreadsheet header → table column mappings.

Each table has one declarative mapping. Several headers may feed the same
column; earlier entries win. Tables with ``positional`` set also accept the
numeric/letter column references used by the LPCD export template.
"""

from dataclasses import dataclass, field

from backend.app.schema import DAYS


@dataclass(frozen=True)
class MappingTable:
    table: str
    columns: dict = field(default_factory=dict)  # source header -> destination column
    positional: bool = False

    def aliases(self):
        """Group source headers by destination, preserving declaration order."""
        grouped = {}
        for source, dest in self.columns.items():
            grouped.setdefault(dest, []).append(source)
        return grouped


_LOCATION = {
    "Region": "region",
    "Circle": "circle",
    "Division": "division",
    "Sub Division": "sub_division",
    "Block": "block",
    "Scheme ID": "scheme_id",
    "Scheme Name": "scheme_name",
}

_TEMPLATE_LEAD = [
    "region", "circle", "division", "sub_division", "block",
    "scheme_id", "scheme_name", "village_name", "population", "number_of_esr",
]

WATER_SCHEME_DATA_MAPPING = MappingTable(
    table="water_scheme_data",
    positional=True,
    columns={
        **_LOCATION,
        "Village Name": "village_name",
        "Population": "population",
        "Number of ESR": "number_of_esr",
        **{f"water value day{d}": f"water_value_day{d}" for d in DAYS},
        **{f"lpcd value day{d}": f"lpcd_value_day{d}" for d in DAYS},
        **{f"water date day{d}": f"water_date_day{d}" for d in DAYS},
        **{f"lpcd date day{d}": f"lpcd_date_day{d}" for d in DAYS},
        # Template columns 1-10 location, 11-17 water values, 18-24 LPCD, 25-38 dates
        **{str(i + 1): dest for i, dest in enumerate(_TEMPLATE_LEAD)},
        **{str(10 + d): f"water_value_day{d}" for d in DAYS},
        **{str(17 + d): f"lpcd_value_day{d}" for d in DAYS},
        **{str(24 + d): f"water_date_day{d}" for d in DAYS},
        **{str(31 + d): f"lpcd_date_day{d}" for d in DAYS},
        "Dashboard URL": "dashboard_url",
    },
)

SCHEME_STATUS_MAPPING = MappingTable(
    table="scheme_status",
    columns={
        "Sr No.": "sr_no",
        "Sr. No.": "sr_no",
        **_LOCATION,
        "Scheme Id": "scheme_id",
        "Scheme Code": "scheme_id",
        "Agency": "agency",
        "Number of Village": "number_of_village",
        "No. of Village": "number_of_village",
        "Total Villages Integrated": "total_villages_integrated",
        "No. of Functional Village": "no_of_functional_village",
        "No. of Partial Village": "no_of_partial_village",
        "No. of Non- Functional Village": "no_of_non_functional_village",
        "No. of Non-Functional Village": "no_of_non_functional_village",
        "Fully completed Villages": "fully_completed_villages",
        "Total Number of ESR": "total_number_of_esr",
        "Scheme Functional Status": "scheme_functional_status",
        "Total ESR Integrated": "total_esr_integrated",
        "No. Fully Completed ESR": "no_fully_completed_esr",
        "Balance to Complete ESR": "balance_to_complete_esr",
        "Flow Meters Connected": "flow_meters_connected",
        "Flow Meters Conneted": "flow_meters_connected",
        "Pressure Transmitter Connected": "pressure_transmitter_connected",
        "Pressure Transmitter Conneted": "pressure_transmitter_connected",
        "Residual Chlorine Analyzer Connected": "residual_chlorine_analyzer_connected",
        "Residual Chlorine Conneted": "residual_chlorine_analyzer_connected",
        "Fully completion Scheme Status": "fully_completion_scheme_status",
        "Scheme Status": "fully_completion_scheme_status",
        "Dashboard URL": "dashboard_url",
    },
)

REGION_MAPPING = MappingTable(
    table="region",
    columns={
        "Region": "region_name",
        "Region Name": "region_name",
        "Total ESR Integrated": "total_esr_integrated",
        "Fully Completed ESR": "fully_completed_esr",
        "Partial ESR": "partial_esr",
        "Total Villages Integrated": "total_villages_integrated",
        "Fully Completed Villages": "fully_completed_villages",
        "Total Schemes Integrated": "total_schemes_integrated",
        "Fully Completed Schemes": "fully_completed_schemes",
        "Flow Meter Integrated": "flow_meter_integrated",
        "RCA Integrated": "rca_integrated",
        "Pressure Transmitter Integrated": "pressure_transmitter_integrated",
    },
)

MAPPINGS = {
    m.table: m for m in (WATER_SCHEME_DATA_MAPPING, SCHEME_STATUS_MAPPING, REGION_MAPPING)
}
