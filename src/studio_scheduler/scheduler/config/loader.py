"""Unified configuration loader."""

from pathlib import Path
from typing import Any

from ..constructor import ScheduleConstructor
from ..models import SchedulerOptions
from .rules import RulesConfig
from .studios import StudioConfig
from .teachers import TeacherConfig


class ConfigLoader:
    """Unified loader for all scheduling configuration files."""

    def __init__(self, config_dir: Path | None = None):
        """
        Initialize configuration loader.

        Args:
            config_dir: Path to directory containing configuration files.
                       Every file is optional:
                       - studios.json
                       - teachers.json
                       - rules.json

        Raises:
            ConfigError: If a present file cannot be parsed
        """
        if config_dir is None:
            config_dir = Path("reference")

        self.config_dir = Path(config_dir)

        self.studios = StudioConfig(self._get_path("studios.json"))
        self.teachers = TeacherConfig(self._get_path("teachers.json"))
        self.rules = RulesConfig(self._get_path("rules.json"))

    def _get_path(self, filename: str) -> Path | None:
        """Get path to config file if it exists."""
        path = self.config_dir / filename
        return path if path.exists() else None

    def build_constructor(self) -> ScheduleConstructor:
        """Schedule constructor using the configured studios and rules."""
        return ScheduleConstructor(
            studios=self.studios.table,
            restriction=self.rules.restriction,
            new_trainer_formats=self.rules.new_trainer_formats,
        )

    def build_options(self, **overrides: Any) -> SchedulerOptions:
        """Run options from rules.json, with teacher exclusions and overrides applied."""
        data = dict(self.rules.options)
        if self.teachers.excluded:
            data["excluded_teachers"] = list(data.get("excluded_teachers", [])) + self.teachers.excluded
        data.update({k: v for k, v in overrides.items() if v is not None})
        return SchedulerOptions.from_dict(data)
