"""Tests for the location -> zone table."""

import json

import pytest

from warehouse_lights.zones import DEFAULT_ZONES, ZoneMap


class TestZoneMap:

    def test_builtin_table(self):
        zones = ZoneMap()
        assert zones.resolve("A1-01") == 1
        assert zones.resolve("A2-03") == 2
        assert len(zones) == 6

    def test_unknown_location_resolves_to_none(self):
        assert ZoneMap().resolve("Z9-99") is None

    def test_read_only(self):
        zones = ZoneMap()
        with pytest.raises(TypeError):
            zones._zones["B1-01"] = 3

    def test_source_mapping_changes_do_not_leak(self):
        src = {"B1-01": 3}
        zones = ZoneMap(src)
        src["B1-01"] = 9
        assert zones["B1-01"] == 3

    @pytest.mark.parametrize("table", [
        {"B1-01": -1},
        {"B1-01": "3"},
        {"": 1},
    ])
    def test_invalid_entries_rejected(self, table):
        with pytest.raises(ValueError):
            ZoneMap(table)


class TestLoading:

    def test_from_file(self, tmp_path):
        path = tmp_path / "zones.json"
        path.write_text(json.dumps({"C1-01": 5, "C1-02": 6}), encoding="utf-8")
        zones = ZoneMap.from_file(path)
        assert dict(zones) == {"C1-01": 5, "C1-02": 6}

    def test_from_file_rejects_non_object(self, tmp_path):
        path = tmp_path / "zones.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ValueError):
            ZoneMap.from_file(path)

    def test_from_env_without_file_uses_builtin(self, monkeypatch):
        monkeypatch.delenv("LED_ZONE_MAP", raising=False)
        assert dict(ZoneMap.from_env()) == DEFAULT_ZONES

    def test_from_env_reads_file(self, monkeypatch, tmp_path):
        path = tmp_path / "zones.json"
        path.write_text('{"D1-01": 7}', encoding="utf-8")
        monkeypatch.setenv("LED_ZONE_MAP", str(path))
        assert ZoneMap.from_env().resolve("D1-01") == 7
