"""
Root conftest.py: sys.path, shared record fixtures, fake clock.

The records mimic the merged catalog: WRD entries carry coordinates and a
nested country object, OPERA entries carry flat country fields and no
location.
"""

import json
import os
import sys

import pytest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def records():
    return [
        {
            "id": "wrd:101", "source": "WRD", "name": "Tokyo",
            "country": {"name": "Japan", "alpha2": "JP", "alpha3": "JPN"},
            "location": {"lat": 35.56, "lon": 139.72, "elevation_m": 42},
            "band": "C", "polarization": "Dual", "status": "Operational",
            "tags": "japan tokyo jma c dual wrd",
        },
        {
            "id": "wrd:102", "source": "WRD", "name": "Naha",
            "country": {"name": "Japan", "alpha3": "jpn"},
            "location": {"lat": 26.2, "lon": 127.7},
            "band": "S-band", "status": "planned (2027)",
            "tags": "japan naha jma s wrd",
        },
        {
            "id": "opera:1128", "source_type": "OPERA", "site_name": "Emden",
            "country_iso3": "DEU", "country_name": "Germany",
            "location": {"lat": None, "lon": None, "elevation_m": None},
            "band": "c", "status": None,
            "tags": "germany emden dwd c opera",
        },
        {
            "id": "opera:2001", "source_type": "OPERA", "site_name": "Debrecen",
            "country_iso3": "", "country_name": "Hungary",
            "location": {"lat": 47.5, "lon": 21.6},
            "band": "X", "status": "Decommissioned in 2019",
            "tags": "hungary; debrecen, omsz x opera",
        },
        {
            "id": "wrd:103", "name": "Sapporo",
            "country": {"name": "Japan", "alpha3": "JPN"},
            "location": {"lat": 43.0, "lon": 141.3},
            "band": "C", "status": "Under construction",
            "tags": "japan sapporo jma c wrd",
        },
    ]


@pytest.fixture
def scenario_records():
    """The two-record end-to-end scenario."""
    return [
        {"id": 1, "tags": "japan c operational", "band": "C", "status": "Operational",
         "location": {"lat": 35, "lon": 139}},
        {"id": 2, "tags": "japan s planned", "band": "S", "status": "Planned",
         "location": None},
    ]


@pytest.fixture
def catalog_file(tmp_path, records):
    path = tmp_path / "radars_v2.json"
    path.write_text(json.dumps(records), encoding="utf-8")
    return str(path)
