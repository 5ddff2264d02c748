"""
Tests for zone document parsing and the zone store.
"""

from pathlib import Path

import pytest

from uaroute import zones
from uaroute.errors import ZonesUnavailableError
from uaroute.schemas import RandomTarget, SpotifyTarget, UrlTarget
from uaroute.zones import ZoneStore, parse_zones, refresh_zones

ZONES_FIXTURE = Path(__file__).parent / "data" / "zones.yaml"


class TestParseZones:

    def test_fixture_document(self):
        parsed = parse_zones(ZONES_FIXTURE.read_text())

        # The "broken" zone has an unknown target type and is skipped
        assert [zone.name for zone in parsed] == ["links", "other"]

    def test_targets_are_typed(self):
        links, other = parse_zones(ZONES_FIXTURE.read_text())
        routes = {route.name: route for route in links.routes}

        assert isinstance(routes["home"].target, UrlTarget)
        assert isinstance(routes["song"].target, SpotifyTarget)
        assert routes["nothing"].target is None
        assert isinstance(other.routes[0].target, RandomTarget)
        assert len(other.routes[0].target.targets) == 2

    def test_empty_documents_skipped(self):
        assert parse_zones("---\n---\nname: a\n")[0].name == "a"
        assert parse_zones("") == []


class TestZoneStore:

    def test_not_loaded(self):
        store = ZoneStore()
        assert store.loaded is False
        with pytest.raises(ZonesUnavailableError):
            store.find_target("links", "home")

    def test_find_target(self):
        store = ZoneStore()
        store.replace(parse_zones(ZONES_FIXTURE.read_text()))

        target = store.find_target("links", "home")
        assert target.url == "https://example.com/"

    def test_missing_zone_route_or_target(self):
        store = ZoneStore()
        store.replace(parse_zones(ZONES_FIXTURE.read_text()))

        assert store.find_target("nope", "home") is None
        assert store.find_target("links", "nope") is None
        assert store.find_target("links", "nothing") is None

    def test_first_zone_with_name_wins(self):
        store = ZoneStore()
        store.replace(parse_zones(
            "name: dup\nroutes:\n  - name: r\n    target: {type: Url, url: 'https://first/'}\n"
            "---\n"
            "name: dup\nroutes:\n  - name: r\n    target: {type: Url, url: 'https://second/'}\n"
        ))
        assert store.find_target("dup", "r").url == "https://first/"
        assert store.zone_names() == ["dup"]


class TestRefreshZones:

    def test_refresh_from_file(self, monkeypatch, tmp_path):
        path = tmp_path / "zones.yaml"
        path.write_text("name: z\nroutes:\n  - name: r\n    target: {type: Url, url: 'https://z/'}\n")

        store = ZoneStore()
        monkeypatch.setattr(zones, "zone_store", store)
        monkeypatch.setattr(zones.settings, "zones_url", None)
        monkeypatch.setattr(zones.settings, "zones_path", path)

        refresh_zones()
        assert store.find_target("z", "r").url == "https://z/"

    def test_failed_refresh_keeps_previous_table(self, monkeypatch, tmp_path):
        store = ZoneStore()
        store.replace(parse_zones(ZONES_FIXTURE.read_text()))
        monkeypatch.setattr(zones, "zone_store", store)
        monkeypatch.setattr(zones.settings, "zones_url", None)
        monkeypatch.setattr(zones.settings, "zones_path", tmp_path / "missing.yaml")

        refresh_zones()
        assert store.find_target("links", "home") is not None

    def test_refresh_from_url(self, monkeypatch):
        requests = []

        class FakeResponse:
            text = "name: remote\nroutes:\n  - name: r\n    target: {type: Url, url: 'https://remote/'}\n"

            def raise_for_status(self):
                pass

        def fake_get(url, headers=None, timeout=None):
            requests.append((url, headers))
            return FakeResponse()

        store = ZoneStore()
        monkeypatch.setattr(zones, "zone_store", store)
        monkeypatch.setattr(zones.httpx, "get", fake_get)
        monkeypatch.setattr(zones.settings, "zones_url", "https://config.example.com/zones.yaml")
        monkeypatch.setattr(zones.settings, "zones_token", "secret")

        refresh_zones()

        assert store.find_target("remote", "r").url == "https://remote/"
        url, headers = requests[0]
        assert url == "https://config.example.com/zones.yaml"
        assert headers["Authorization"] == "Bearer secret"
        assert headers["Accept"] == "application/vnd.github.raw"
