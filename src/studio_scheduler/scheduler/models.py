"""Data models for schedule generation and validation."""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Self

from ..constants import MAX_CLASS_DURATION
from ..normalization import (
    format_duration,
    join_teacher_name,
    normalize_day,
    normalize_teacher_name,
    normalize_time,
)
from .constants import (
    ALTERNATIVE_OFFSETS,
    FILL_CANDIDATES_PER_SLOT,
    FILL_MIN_PARTICIPANTS,
    MAX_WEEKLY_HOURS,
    NEW_TRAINER_WEEKLY_HOURS,
    TOP_MIN_AVERAGE,
    WEEKLY_HOUR_TARGET,
)


@dataclass(frozen=True)
class SlotKey:
    """Composite key for a (location, day, time) slot."""

    location: str
    day: str
    time: str


@dataclass(frozen=True)
class PerformanceAggregate:
    """Historic statistics for a (format, location, day, time[, teacher]) key.

    `teacher` is empty when the aggregate spans all teachers.
    """

    class_format: str
    location: str
    day: str
    time: str
    avg_participants: float
    avg_revenue: float
    frequency: int
    teacher: str = ""
    duration: float = 1.0

    @property
    def slot(self) -> SlotKey:
        return SlotKey(self.location, self.day, self.time)

    def to_dict(self) -> dict[str, Any]:
        """Convert aggregate to dictionary."""
        return {
            "class_format": self.class_format,
            "location": self.location,
            "day": self.day,
            "time": self.time,
            "teacher": self.teacher,
            "avg_participants": self.avg_participants,
            "avg_revenue": self.avg_revenue,
            "frequency": self.frequency,
            "duration": self.duration,
        }


@dataclass
class ScheduledClass:
    """One placed class in a candidate or final schedule."""

    id: str
    day: str
    time: str
    location: str
    class_format: str
    teacher_first_name: str
    teacher_last_name: str
    duration: str = "1"
    participants: float = 0.0
    revenue: float = 0.0
    is_top_performer: bool = False
    studio_assigned: str | None = None

    @property
    def teacher(self) -> str:
        """Full teacher name."""
        return join_teacher_name(self.teacher_first_name, self.teacher_last_name)

    @property
    def hours(self) -> float:
        """Duration in hours."""
        return float(self.duration)

    @property
    def slot(self) -> SlotKey:
        return SlotKey(self.location, self.day, self.time)

    @classmethod
    def from_dict(cls, data: dict[str, Any], default_id: str = "") -> Self:
        """Create a ScheduledClass from a dictionary.

        Accepts snake_case keys or the camelCase keys of the web app
        (`classFormat`, `teacherFirstName`, `expectedParticipants`, ...).

        Raises:
            ValueError: If day, time, location or class format is unusable
        """
        def pick(*keys: str, default: Any = None) -> Any:
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return default

        day = normalize_day(pick("day"))
        time = normalize_time(pick("time"))
        location = str(pick("location", default="")).strip()
        class_format = str(pick("class_format", "classFormat", default="")).strip()
        if day is None or time is None or not location or not class_format:
            raise ValueError(f"Incomplete scheduled class: {data!r}")

        first = pick("teacher_first_name", "teacherFirstName")
        last = pick("teacher_last_name", "teacherLastName", default="")
        duration = float(pick("duration", default=1))
        if not (math.isfinite(duration) and 0 < duration <= MAX_CLASS_DURATION):
            raise ValueError(f"Invalid duration: {pick('duration')!r}")

        if first is None:
            full = normalize_teacher_name(pick("teacher", "teacherName", default=""))
            first, _, last = full.partition(" ")

        return cls(
            id=str(pick("id", default=default_id)),
            day=day,
            time=time,
            location=location,
            class_format=class_format,
            teacher_first_name=str(first).strip(),
            teacher_last_name=str(last).strip(),
            duration=format_duration(duration),
            participants=float(pick("participants", "expectedParticipants", default=0) or 0),
            revenue=float(pick("revenue", "expectedRevenue", default=0) or 0),
            is_top_performer=bool(pick("is_top_performer", "isTopPerformer", default=False)),
            studio_assigned=pick("studio_assigned", "studioAssigned"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert scheduled class to dictionary."""
        return {
            "id": self.id,
            "day": self.day,
            "time": self.time,
            "location": self.location,
            "class_format": self.class_format,
            "teacher_first_name": self.teacher_first_name,
            "teacher_last_name": self.teacher_last_name,
            "duration": self.duration,
            "participants": self.participants,
            "revenue": self.revenue,
            "is_top_performer": self.is_top_performer,
            "studio_assigned": self.studio_assigned,
        }


@dataclass
class TeacherProfile:
    """Optional roster information for one teacher.

    Attributes:
        name: Full teacher name
        is_new: New trainers get the lower weekly cap and a format allow-list
        max_weekly_hours: Lower weekly cap for this teacher
        unavailable: Day -> blocked start times; an empty list blocks the day
    """

    name: str
    is_new: bool = False
    max_weekly_hours: float | None = None
    unavailable: dict[str, list[str]] = field(default_factory=dict)

    def is_blocked(self, day: str, time: str) -> bool:
        """Check if the teacher is blacked out at a day/time."""
        if day not in self.unavailable:
            return False
        times = self.unavailable[day]
        return not times or time in times

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create a TeacherProfile from a dictionary."""
        unavailable: dict[str, list[str]] = {}
        for day_name, times in (data.get("unavailable") or {}).items():
            day = normalize_day(day_name)
            if day is None:
                continue
            unavailable[day] = [t for t in (normalize_time(x) for x in times or []) if t]
        max_hours = data.get("max_weekly_hours")
        return cls(
            name=normalize_teacher_name(data.get("name", "")),
            is_new=bool(data.get("is_new", False)),
            max_weekly_hours=float(max_hours) if max_hours is not None else None,
            unavailable=unavailable,
        )


@dataclass
class TeacherRoster:
    """Custom teacher roster; teachers not listed have no extra restrictions."""

    teachers: list[TeacherProfile] = field(default_factory=list)

    def get(self, name: str) -> TeacherProfile | None:
        cleaned = normalize_teacher_name(name)
        for profile in self.teachers:
            if profile.name == cleaned:
                return profile
        return None

    @property
    def names(self) -> list[str]:
        return [t.name for t in self.teachers]

    def new_trainers(self) -> set[str]:
        return {t.name for t in self.teachers if t.is_new}


@dataclass
class SchedulerOptions:
    """Switches and thresholds for one construction run."""

    prioritize_top_performers: bool = True
    balance_shifts: bool = True
    optimize_teacher_hours: bool = True
    respect_time_restrictions: bool = True
    minimize_trainers_per_shift: bool = True
    iteration: int = 0
    min_average: float = TOP_MIN_AVERAGE
    fill_min_participants: float = FILL_MIN_PARTICIPANTS
    max_weekly_hours: float = MAX_WEEKLY_HOURS
    new_trainer_weekly_hours: float = NEW_TRAINER_WEEKLY_HOURS
    weekly_hour_target: float = WEEKLY_HOUR_TARGET
    excluded_teachers: list[str] = field(default_factory=list)
    new_trainers: list[str] = field(default_factory=list)
    probe_alternative_times: bool = True
    alternative_offsets: list[int] = field(default_factory=lambda: list(ALTERNATIVE_OFFSETS))
    allow_teacher_fallback: bool = False
    avoid_back_to_back_formats: bool = True
    fill_candidates_per_slot: int = FILL_CANDIDATES_PER_SLOT
    time_slots: list[str] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create options from a dictionary, ignoring unknown keys."""
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


@dataclass
class ValidationResult:
    """Studio-capacity conflicts found in a schedule.

    `suggestions` is reserved for automatic fix hints and is currently
    always empty.
    """

    conflicts: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.conflicts

    def to_dict(self) -> dict[str, Any]:
        return {"conflicts": self.conflicts, "suggestions": self.suggestions}


@dataclass
class ScheduleMetrics:
    """Summary figures for a schedule."""

    total_classes: int = 0
    total_revenue: float = 0.0
    total_participants: float = 0.0
    morning_classes: int = 0
    evening_classes: int = 0
    unique_trainers: int = 0
    avg_trainer_hours: float = 0.0
    trainers_below_target: list[str] = field(default_factory=list)
    by_location: dict[str, int] = field(default_factory=dict)

    @property
    def shift_balance(self) -> int:
        """Smaller shift as a percentage of the larger one."""
        larger = max(self.morning_classes, self.evening_classes)
        if larger == 0:
            return 0
        return round(min(self.morning_classes, self.evening_classes) / larger * 100)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_classes": self.total_classes,
            "total_revenue": self.total_revenue,
            "total_participants": self.total_participants,
            "morning_classes": self.morning_classes,
            "evening_classes": self.evening_classes,
            "shift_balance": self.shift_balance,
            "unique_trainers": self.unique_trainers,
            "avg_trainer_hours": self.avg_trainer_hours,
            "trainers_below_target": self.trainers_below_target,
            "by_location": self.by_location,
        }


@dataclass
class ScheduleReview:
    """Validator output combined with trainer warnings and metrics."""

    validation: ValidationResult = field(default_factory=ValidationResult)
    trainer_violations: list[str] = field(default_factory=list)
    shift_trainer_violations: list[str] = field(default_factory=list)
    metrics: ScheduleMetrics = field(default_factory=ScheduleMetrics)
    review_date: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def is_acceptable(self) -> bool:
        """True when nothing blocks accepting the schedule."""
        return (
            self.validation.is_valid
            and not self.trainer_violations
            and not self.shift_trainer_violations
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "review_date": self.review_date,
            "is_acceptable": self.is_acceptable,
            "conflicts": self.validation.conflicts,
            "suggestions": self.validation.suggestions,
            "trainer_violations": self.trainer_violations,
            "shift_trainer_violations": self.shift_trainer_violations,
            "metrics": self.metrics.to_dict(),
        }
