"""Studio configuration loader."""

import json
from pathlib import Path

from ...exceptions import ConfigError
from ..studios import StudioCapacityTable


class StudioConfig:
    """Loader for studios.json.

    Expected format:
        {"locations": {"Kenkere House": {"studios": {"Main Studio": 12},
                                         "max_parallel": 2}}}
    """

    def __init__(self, path: Path | None = None):
        self.table = StudioCapacityTable()
        if path and path.exists():
            self._load(path)

    def _load(self, path: Path) -> None:
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(str(path), str(e)) from e

        if not isinstance(data, dict) or not isinstance(data.get("locations"), dict):
            raise ConfigError(str(path), "expected an object with a 'locations' object")
        try:
            self.table = StudioCapacityTable.from_dict(data)
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigError(str(path), f"invalid studio entry: {e}") from e
