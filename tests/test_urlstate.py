"""
URL state adapter tests.
"""

import pytest

from radarfinder.urlstate import initial_query, sync_url


# ============================================================================
# TestInitialQuery
# ============================================================================

class TestInitialQuery:

    @pytest.mark.parametrize("url,expected", [
        ("/?q=tokyo", "tokyo"),
        ("https://radars.example/finder?lang=en&q=japan+c#map", "japan c"),
        ("/?q=caf%C3%A9", "café"),
        ("/?q=", None),
        ("/?lang=en", None),
        ("/", None),
        ("", None),
        (None, None),
    ])
    def test_reads_q(self, url, expected):
        assert initial_query(url) == expected


# ============================================================================
# TestSyncUrl
# ============================================================================

class TestSyncUrl:

    def test_sets_q(self):
        assert sync_url("/", "tokyo") == "/?q=tokyo"

    def test_replaces_existing_q_in_place(self):
        assert sync_url("/finder?q=old&lang=en", "new") == "/finder?q=new&lang=en"

    def test_empty_query_removes_param(self):
        assert sync_url("/finder?q=tokyo", "") == "/finder"
        assert sync_url("/finder?lang=en&q=tokyo", "") == "/finder?lang=en"

    def test_keeps_scheme_host_and_fragment(self):
        assert sync_url("https://radars.example/app#map", "japan c") == "https://radars.example/app?q=japan+c#map"

    def test_round_trip(self):
        url = sync_url("/", "japan  c;band")
        assert initial_query(url) == "japan  c;band"

    def test_duplicate_q_collapses(self):
        assert sync_url("/?q=a&q=b", "c") == "/?q=c"
