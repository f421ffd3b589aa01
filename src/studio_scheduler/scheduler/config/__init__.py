"""Configuration loaders for the scheduler."""

from .loader import ConfigLoader
from .rules import RulesConfig
from .studios import StudioConfig
from .teachers import TeacherConfig

__all__ = [
    "ConfigLoader",
    "StudioConfig",
    "TeacherConfig",
    "RulesConfig",
]
