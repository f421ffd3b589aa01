"""Scheduling rules configuration loader."""

import json
from pathlib import Path
from typing import Any

from ...exceptions import ConfigError
from ...normalization import normalize_time
from ..constants import NEW_TRAINER_FORMATS
from ..rules import DEFAULT_RESTRICTION, RestrictionPolicy


class RulesConfig:
    """Loader for rules.json.

    Every key is optional:
        {"restriction": {"start": "12:30", "weekday_end": "17:00",
                         "weekend_end": "16:00"},
         "new_trainer_formats": ["Barre 57", "Foundations"],
         "options": {"min_average": 6.0, "allow_teacher_fallback": true}}
    """

    def __init__(self, path: Path | None = None):
        self.restriction = DEFAULT_RESTRICTION
        self.new_trainer_formats: list[str] = list(NEW_TRAINER_FORMATS)
        self.options: dict[str, Any] = {}
        if path and path.exists():
            self._load(path)

    def _load(self, path: Path) -> None:
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(str(path), str(e)) from e

        if not isinstance(data, dict):
            raise ConfigError(str(path), "expected an object")

        band = data.get("restriction")
        if band is not None and not isinstance(band, dict):
            raise ConfigError(str(path), "restriction must be an object")
        if band:
            times = {key: normalize_time(band.get(key)) for key in ("start", "weekday_end", "weekend_end")}
            invalid = [key for key, value in band.items() if key in times and times[key] is None]
            if invalid:
                raise ConfigError(str(path), f"invalid restriction times: {', '.join(invalid)}")
            self.restriction = RestrictionPolicy(
                **{key: value for key, value in times.items() if value is not None}
            )

        if "new_trainer_formats" in data:
            self.new_trainer_formats = [str(f) for f in data["new_trainer_formats"]]

        self.options = dict(data.get("options") or {})
