"""Teacher roster configuration loader."""

import json
from pathlib import Path

from ...exceptions import ConfigError
from ...normalization import normalize_teacher_name
from ..models import TeacherProfile, TeacherRoster


class TeacherConfig:
    """Loader for teachers.json.

    Accepts either a list of teacher entries or an object:
        {"teachers": [{"name": "Anisha Shah", "is_new": false,
                       "max_weekly_hours": 12,
                       "unavailable": {"Sunday": [], "Monday": ["07:30"]}}],
         "excluded": ["Former Teacher"]}
    """

    def __init__(self, path: Path | None = None):
        self.roster = TeacherRoster()
        self.excluded: list[str] = []
        if path and path.exists():
            self._load(path)

    def _load(self, path: Path) -> None:
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(str(path), str(e)) from e

        if isinstance(data, list):
            entries, excluded = data, []
        elif isinstance(data, dict):
            entries, excluded = data.get("teachers", []), data.get("excluded", [])
        else:
            raise ConfigError(str(path), "expected a list or an object")

        profiles = []
        for entry in entries:
            if isinstance(entry, str):
                profiles.append(TeacherProfile(name=normalize_teacher_name(entry)))
            elif isinstance(entry, dict) and entry.get("name"):
                profiles.append(TeacherProfile.from_dict(entry))
            else:
                raise ConfigError(str(path), f"invalid teacher entry: {entry!r}")

        self.roster = TeacherRoster(profiles)
        self.excluded = [normalize_teacher_name(name) for name in excluded]
