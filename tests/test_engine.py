"""
Session engine tests: the full pipeline wired together, URL sync,
keyboard actions and exports.
"""

import json

import pandas as pd
import pytest

from radarfinder.engine import RadarFinder
from radarfinder.loader import load_store
from radarfinder.models import MapPoint, RadarStore


def _ids(rows):
    return [r["id"] for r in rows]


@pytest.fixture
def finder(records, clock):
    return RadarFinder.from_records(records, clock=clock)


# ============================================================================
# TestEndToEnd
# ============================================================================

class TestEndToEnd:

    def test_scenario(self, scenario_records, clock):
        f = RadarFinder.from_records(scenario_records, clock=clock)
        f.type("japan")
        clock.advance(0.25)
        assert f.tick()
        f.toggle_band("C")
        assert f.filtered == [scenario_records[0]]
        assert f.map_points == [MapPoint(id=1, site="1", country="", band="C", lat=35.0, lon=139.0)]

    def test_scenario_without_band_keeps_unmapped_record_in_list(self, scenario_records, clock):
        f = RadarFinder.from_records(scenario_records, clock=clock)
        f.type("japan")
        f.commit()
        assert f.filtered == scenario_records
        assert [p.id for p in f.map_points] == [1]


# ============================================================================
# TestQueryFlow
# ============================================================================

class TestQueryFlow:

    def test_initial_state_shows_everything(self, finder, records):
        assert finder.state.committed_query == ""
        assert finder.filtered == records
        assert finder.hits == len(records)
        assert finder.location == "/"

    def test_typing_is_debounced(self, finder, clock, records):
        finder.type("sap")
        assert finder.state.raw_input == "sap"
        assert finder.pending
        assert finder.filtered == records
        clock.advance(0.1)
        assert not finder.tick()
        clock.advance(0.15)
        assert finder.tick()
        assert _ids(finder.filtered) == ["wrd:103"]
        assert finder.location == "/?q=sap"

    def test_burst_commits_once(self, finder, clock):
        for text in ("n", "na", "nah", "naha"):
            finder.type(text)
            clock.advance(0.05)
            assert not finder.tick()
        clock.advance(0.2)
        assert finder.tick()
        assert finder.state.committed_query == "naha"
        assert not finder.tick()

    def test_commit_skips_debounce(self, finder):
        finder.type("germany")
        finder.commit()
        assert not finder.pending
        assert _ids(finder.filtered) == ["opera:1128"]

    def test_highlight_token(self, finder):
        finder.type("  Tok jma")
        finder.commit()
        assert finder.highlight_token == "tok"

    def test_clear(self, finder, clock, records):
        finder.type("japan")
        finder.commit()
        finder.jump_to("wrd:101")
        finder.type("japan s")
        finder.clear()
        clock.advance(1)
        assert not finder.tick()
        assert finder.state.raw_input == ""
        assert finder.state.committed_query == ""
        assert finder.state.selected_id is None
        assert finder.filtered == records
        assert finder.location == "/"


# ============================================================================
# TestUrlSync
# ============================================================================

class TestUrlSync:

    def test_q_parameter_seeds_without_debounce(self, records, clock):
        f = RadarFinder.from_records(records, location="/?q=tokyo", clock=clock)
        assert f.state.committed_query == "tokyo"
        assert f.state.raw_input == "tokyo"
        assert not f.pending
        assert _ids(f.filtered) == ["wrd:101"]

    def test_commit_writes_q(self, finder):
        finder.type("tokyo")
        finder.commit()
        assert finder.location == "/?q=tokyo"

    def test_other_params_survive(self, records, clock):
        f = RadarFinder.from_records(records, location="/app?lang=ja&q=japan#map", clock=clock)
        f.type("")
        f.commit()
        assert f.location == "/app?lang=ja#map"


# ============================================================================
# TestFacets
# ============================================================================

class TestFacets:

    def test_toggle_band_on_and_off(self, finder, records):
        assert finder.toggle_band("c") is True
        assert _ids(finder.filtered) == ["wrd:101", "opera:1128", "wrd:103"]
        assert finder.toggle_band("C") is False
        assert finder.filtered == records

    def test_toggle_status_case_insensitive(self, finder):
        finder.toggle_status("under construction")
        assert finder.state.facets.statuses == frozenset({"Under Construction"})
        assert _ids(finder.filtered) == ["wrd:103"]

    @pytest.mark.parametrize("bad", ["L", "", "Ku"])
    def test_unknown_band(self, finder, bad):
        with pytest.raises(ValueError):
            finder.toggle_band(bad)

    def test_unknown_status(self, finder):
        with pytest.raises(ValueError):
            finder.toggle_status("retired")

    def test_country(self, finder):
        finder.set_country("jpn")
        assert finder.state.facets.country == "JPN"
        assert _ids(finder.filtered) == ["wrd:101", "wrd:102", "wrd:103"]
        finder.set_country("")
        assert finder.hits == 5

    def test_country_name_case_insensitive(self, finder):
        finder.set_country("hungary")
        assert finder.state.facets.country == "Hungary"
        assert [r["id"] for r in finder.filtered] == ["opera:2001"]
        finder.set_country("HUNGARY")
        assert finder.state.facets.country == "Hungary"

    def test_unknown_country(self, finder):
        with pytest.raises(ValueError):
            finder.set_country("FRA")

    def test_clear_facets(self, finder, records):
        finder.toggle_band("X")
        finder.toggle_status("Planned")
        finder.clear_bands()
        finder.clear_statuses()
        assert finder.filtered == records

    def test_search_then_facets(self, finder):
        finder.type("japan")
        finder.commit()
        finder.toggle_band("C")
        finder.toggle_status("Operational")
        assert _ids(finder.results) == ["wrd:101", "wrd:102", "wrd:103"]
        assert _ids(finder.filtered) == ["wrd:101"]

    def test_countries_come_from_full_set(self, finder):
        finder.type("germany")
        finder.commit()
        assert finder.countries == ["DEU", "Hungary", "JPN"]


# ============================================================================
# TestSelection
# ============================================================================

class TestSelection:

    def test_jump_to_with_coordinates(self, finder):
        assert finder.jump_to("wrd:102") == (26.2, 127.7)
        assert finder.state.selected_id == "wrd:102"

    def test_jump_to_without_coordinates(self, finder):
        assert finder.jump_to("opera:1128") is None
        assert finder.state.selected_id == "opera:1128"

    def test_jump_to_unknown(self, finder):
        with pytest.raises(KeyError):
            finder.jump_to("wrd:999")

    def test_enter_selects_first_hit(self, finder):
        finder.type("hungary")
        finder.commit()
        assert finder.enter()["id"] == "opera:2001"
        assert finder.state.selected_id == "opera:2001"

    def test_enter_with_no_hits(self, finder):
        finder.type("zzz")
        finder.commit()
        assert finder.enter() is None

    def test_integer_ids(self, scenario_records, clock):
        f = RadarFinder.from_records(scenario_records, clock=clock)
        assert f.jump_to(1) == (35.0, 139.0)
        assert f.jump_to("2") is None


# ============================================================================
# TestViews
# ============================================================================

class TestViews:

    def test_views_are_copies(self, finder):
        finder.filtered.clear()
        finder.map_points.clear()
        assert finder.hits == 5
        assert len(finder.map_points) == 4

    def test_bounds_follow_filter(self, finder):
        finder.set_country("Hungary")
        b = finder.bounds
        assert (b.south, b.west, b.north, b.east) == (47.5, 21.6, 47.5, 21.6)
        finder.set_country("DEU")
        assert finder.bounds is None

    def test_failed_store_is_usable(self, tmp_path, clock):
        store = load_store(str(tmp_path / "missing.json"))
        f = RadarFinder(store=store, location="/?q=japan", clock=clock)
        assert store.failed
        assert f.hits == 0
        assert f.map_points == []
        assert f.countries == []

    def test_explicit_store(self, records, clock):
        f = RadarFinder(store=RadarStore(records=tuple(records), source="mem"), clock=clock)
        assert f.idx.frozen
        assert len(f.idx) == 5


# ============================================================================
# TestExports
# ============================================================================

class TestExports:

    def test_frame(self, finder):
        finder.toggle_band("X")
        df = finder.to_frame()
        assert list(df["id"]) == ["opera:2001"]
        row = df.iloc[0]
        assert row["country"] == "Hungary"
        assert row["status"] == "Decommissioned"
        assert row["lat"] == 47.5

    def test_csv(self, finder, tmp_path):
        out = tmp_path / "hits.csv"
        finder.export_csv(str(out))
        df = pd.read_csv(out)
        assert list(df["id"]) == ["wrd:101", "wrd:102", "opera:1128", "opera:2001", "wrd:103"]

    def test_xlsx(self, finder, tmp_path):
        pytest.importorskip("openpyxl")
        out = tmp_path / "hits.xlsx"
        finder.set_country("JPN")
        finder.export_xlsx(str(out))
        df = pd.read_excel(out, engine="openpyxl")
        assert list(df["site"]) == ["Tokyo", "Naha", "Sapporo"]

    def test_json_is_reloadable(self, finder, tmp_path, clock):
        finder.type("opera")
        finder.commit()
        out = tmp_path / "subset.json"
        finder.export_json(str(out))
        again = RadarFinder(store=load_store(str(out)), clock=clock)
        assert _ids(again.filtered) == ["opera:1128", "opera:2001"]

    def test_points_json(self, finder, tmp_path):
        out = tmp_path / "points.json"
        finder.export_points_json(str(out))
        pts = json.loads(out.read_text(encoding="utf-8"))
        assert [p["id"] for p in pts] == ["wrd:101", "wrd:102", "opera:2001", "wrd:103"]
        assert set(pts[0]) == {"id", "site", "country", "band", "lat", "lon"}
