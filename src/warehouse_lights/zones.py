# -*- coding: utf-8 -*-
"""Storage location -> LED zone lookup."""

import os
import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Union

log = logging.getLogger("warehouse_lights.zones")

# Shelf A1 is wired to zone 1, shelf A2 to zone 2.
DEFAULT_ZONES: Dict[str, int] = {
    "A1-01": 1, "A1-02": 1, "A1-03": 1,
    "A2-01": 2, "A2-02": 2, "A2-03": 2,
}


class ZoneMap(Mapping[str, int]):
    """Read-only location table, built once at startup."""

    def __init__(self, zones: Optional[Mapping[str, int]] = None):
        table = dict(DEFAULT_ZONES if zones is None else zones)
        for location, zone in table.items():
            if not isinstance(location, str) or not location:
                raise ValueError(f"Invalid location key: {location!r}")
            if isinstance(zone, bool) or not isinstance(zone, int) or zone < 0:
                raise ValueError(f"Invalid zone for {location}: {zone!r}")
        self._zones = MappingProxyType(table)

    def __getitem__(self, location: str) -> int:
        return self._zones[location]

    def __iter__(self) -> Iterator[str]:
        return iter(self._zones)

    def __len__(self) -> int:
        return len(self._zones)

    def resolve(self, location: str) -> Optional[int]:
        return self._zones.get(location)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ZoneMap":
        """Load a JSON object {"A1-01": 1, ...}."""
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{path}: zone map must be a JSON object")
        log.info("Loaded %d zone mappings from %s", len(data), path)
        return cls(data)

    @classmethod
    def from_env(cls) -> "ZoneMap":
        path = os.getenv("LED_ZONE_MAP", "").strip()
        if path:
            return cls.from_file(path)
        return cls()
