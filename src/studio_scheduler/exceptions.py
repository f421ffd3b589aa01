"""Custom exceptions for the studio scheduler."""


class SchedulerError(Exception):
    """Base exception for scheduler errors."""

    pass


class InvalidRecordError(SchedulerError):
    """A historic class record is missing or has unusable fields."""

    def __init__(self, message: str, row: int | None = None):
        self.row = row
        location = f" at row {row}" if row is not None else ""
        super().__init__(f"Invalid historic record{location}: {message}")


class ConfigError(SchedulerError):
    """A configuration file could not be read."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load configuration '{path}': {reason}")


class SuggestionError(SchedulerError):
    """The remote suggestion service failed or returned unusable output."""

    pass
