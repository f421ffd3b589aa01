"""Data models for historic attendance data."""

import math
from dataclasses import dataclass, field
from typing import Any, Self

from .constants import MAX_CLASS_DURATION
from .exceptions import InvalidRecordError
from .normalization import (
    get_class_duration,
    is_blank,
    join_teacher_name,
    normalize_day,
    normalize_teacher_name,
    normalize_time,
    split_teacher_name,
)


def _to_float(value: Any, field_name: str, row: int | None) -> float:
    if is_blank(value):
        return 0.0
    try:
        number = float(str(value).replace(",", "").strip())
    except ValueError:
        raise InvalidRecordError(f"{field_name} is not a number: {value!r}", row)
    if not math.isfinite(number):
        raise InvalidRecordError(f"{field_name} is not a finite number: {value!r}", row)
    return number


@dataclass(frozen=True)
class HistoricClassRecord:
    """One observed class occurrence from the attendance export.

    Attributes:
        class_format: Cleaned class format name
        location: Studio location
        day: Day of week ("Monday")
        time: Start time (HH:MM)
        teacher_name: Full teacher name
        participants: Number of participants
        revenue: Total revenue of the class
        duration: Duration in hours
    """

    class_format: str
    location: str
    day: str
    time: str
    teacher_name: str
    participants: float = 0.0
    revenue: float = 0.0
    duration: float = 1.0

    @property
    def teacher_first_name(self) -> str:
        return split_teacher_name(self.teacher_name)[0]

    @property
    def teacher_last_name(self) -> str:
        return split_teacher_name(self.teacher_name)[1]

    @classmethod
    def from_dict(cls, data: dict[str, Any], row: int | None = None) -> Self:
        """Build a record from a dict of canonical field names.

        Args:
            data: Mapping with class_format, location, day, time and
                  optionally teacher_name (or teacher_first_name and
                  teacher_last_name), participants, revenue, duration
            row: Source row number for error messages

        Returns:
            HistoricClassRecord instance

        Raises:
            InvalidRecordError: If a required field is missing or malformed
        """
        class_format = "" if is_blank(data.get("class_format")) else str(data["class_format"]).strip()
        location = "" if is_blank(data.get("location")) else str(data["location"]).strip()
        if not class_format:
            raise InvalidRecordError("missing class format", row)
        if not location:
            raise InvalidRecordError("missing location", row)

        day = normalize_day(data.get("day"))
        if day is None:
            raise InvalidRecordError(f"invalid day: {data.get('day')!r}", row)

        time = normalize_time(data.get("time"))
        if time is None:
            raise InvalidRecordError(f"invalid time: {data.get('time')!r}", row)

        teacher = normalize_teacher_name(data.get("teacher_name"))
        if not teacher:
            teacher = join_teacher_name(
                "" if is_blank(data.get("teacher_first_name")) else str(data["teacher_first_name"]),
                "" if is_blank(data.get("teacher_last_name")) else str(data["teacher_last_name"]),
            )

        duration_raw = data.get("duration")
        if is_blank(duration_raw):
            duration = get_class_duration(class_format)
        else:
            duration = _to_float(duration_raw, "duration", row)
            # Exports sometimes carry minutes instead of hours
            if duration > 12:
                duration = duration / 60
            if not 0 < duration <= MAX_CLASS_DURATION:
                raise InvalidRecordError(f"invalid duration: {duration_raw!r}", row)

        return cls(
            class_format=class_format,
            location=location,
            day=day,
            time=time,
            teacher_name=teacher,
            participants=_to_float(data.get("participants"), "participants", row),
            revenue=_to_float(data.get("revenue"), "revenue", row),
            duration=duration,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert record to dictionary."""
        return {
            "class_format": self.class_format,
            "location": self.location,
            "day": self.day,
            "time": self.time,
            "teacher_name": self.teacher_name,
            "participants": self.participants,
            "revenue": self.revenue,
            "duration": self.duration,
        }


@dataclass
class LoadResult:
    """Historic records loaded from a file, with skipped-row warnings."""

    records: list[HistoricClassRecord] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    source: str = ""

    @property
    def total_records(self) -> int:
        return len(self.records)
