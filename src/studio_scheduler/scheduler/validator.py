"""Schedule validation.

Works on any schedule, constructed or hand-edited. Problems are returned
as human-readable strings, never raised.
"""

import logging
from collections import defaultdict
from typing import Iterable

from ..normalization import normalize_teacher_name, time_to_minutes
from .constants import (
    ALL_DAYS,
    MAX_DAILY_HOURS,
    MAX_WEEKLY_HOURS,
    MIN_DAYS_OFF,
    NEW_TRAINER_WEEKLY_HOURS,
    WEEKLY_HOUR_TARGET,
    Shift,
)
from .models import (
    ScheduledClass,
    ScheduleMetrics,
    ScheduleReview,
    TeacherRoster,
    ValidationResult,
)
from .rules import get_shift, max_trainers_per_shift
from .studios import StudioCapacityTable

logger = logging.getLogger(__name__)


def _interval(cls: ScheduledClass) -> tuple[int, int]:
    start = time_to_minutes(cls.time)
    return start, start + round(cls.hours * 60)


def find_capacity_conflicts(
    schedule: Iterable[ScheduledClass], studios: StudioCapacityTable | None = None
) -> list[str]:
    """Find groups of overlapping classes larger than a location's studio count.

    Each entry's overlap group is the entry plus every class at the same
    location and day whose interval intersects it. Identical groups are
    reported once. A chain such as 08:00-09:00, 08:30-09:30, 09:00-10:00
    counts as a group of three even though at most two run at once; the
    availability tracker rejects the same chains.
    """
    table = studios or StudioCapacityTable()
    groups: dict[tuple[str, str], list[ScheduledClass]] = defaultdict(list)
    for cls in schedule:
        groups[(cls.location, cls.day)].append(cls)

    conflicts: list[str] = []
    for (location, day), classes in groups.items():
        limit = table.parallel_limit(location)
        if limit == 0:
            conflicts.append(f"{location} on {day}: no studios configured for this location")
            continue

        intervals = [_interval(cls) for cls in classes]
        seen: set[frozenset[int]] = set()
        for i, (start, end) in enumerate(intervals):
            overlapping = frozenset(
                j for j, (s, e) in enumerate(intervals) if start < e and end > s
            )
            if len(overlapping) <= limit or overlapping in seen:
                continue
            seen.add(overlapping)
            conflicts.append(
                f"{location} on {day} at {classes[i].time}: {len(overlapping)} overlapping "
                f"classes exceed capacity of {limit} studios"
            )

    return conflicts


def validate(
    schedule: Iterable[ScheduledClass], studios: StudioCapacityTable | None = None
) -> ValidationResult:
    """Check a schedule for studio-capacity conflicts.

    Example:
        >>> result = validate(schedule)
        >>> result.is_valid, result.conflicts
    """
    return ValidationResult(conflicts=find_capacity_conflicts(schedule, studios))


def teacher_hours(schedule: Iterable[ScheduledClass]) -> dict[str, float]:
    """Weekly hours per teacher, in order of first appearance."""
    hours: dict[str, float] = defaultdict(float)
    for cls in schedule:
        hours[cls.teacher] += cls.hours
    return dict(hours)


def _weekly_cap(
    teacher: str,
    new_trainers: set[str],
    max_weekly_hours: float,
    new_trainer_weekly_hours: float,
    roster: TeacherRoster | None = None,
) -> float:
    if normalize_teacher_name(teacher).casefold() in new_trainers:
        cap = new_trainer_weekly_hours
    else:
        cap = max_weekly_hours
    profile = roster.get(teacher) if roster is not None else None
    # Roster overrides can only lower the cap
    if profile is not None and profile.max_weekly_hours is not None:
        return min(profile.max_weekly_hours, cap)
    return cap


def _new_trainer_keys(new_trainers: Iterable[str], roster: TeacherRoster | None) -> set[str]:
    names = list(new_trainers) + (sorted(roster.new_trainers()) if roster is not None else [])
    return {normalize_teacher_name(n).casefold() for n in names}


def find_trainer_hour_violations(
    schedule: Iterable[ScheduledClass],
    new_trainers: Iterable[str] = (),
    max_weekly_hours: float = MAX_WEEKLY_HOURS,
    new_trainer_weekly_hours: float = NEW_TRAINER_WEEKLY_HOURS,
    roster: TeacherRoster | None = None,
) -> list[str]:
    """Teachers over their weekly or daily hour caps."""
    schedule = list(schedule)
    new = _new_trainer_keys(new_trainers, roster)

    violations = []
    for teacher, hours in teacher_hours(schedule).items():
        cap = _weekly_cap(teacher, new, max_weekly_hours, new_trainer_weekly_hours, roster)
        if hours > cap:
            violations.append(f"{teacher}: {hours:g} hours exceeds the {cap:g}-hour weekly limit")

    daily: dict[tuple[str, str], float] = defaultdict(float)
    for cls in schedule:
        daily[(cls.teacher, cls.day)] += cls.hours
    for (teacher, day), hours in daily.items():
        if hours > MAX_DAILY_HOURS:
            violations.append(
                f"{teacher}: {hours:g} hours on {day} exceeds the {MAX_DAILY_HOURS:g}-hour daily limit"
            )

    return violations


def find_trainer_rule_violations(schedule: Iterable[ScheduledClass]) -> list[str]:
    """Teachers working two locations or both shifts in a day, or too few days off."""
    locations: dict[tuple[str, str], set[str]] = defaultdict(set)
    shifts: dict[tuple[str, str], set[Shift]] = defaultdict(set)
    days: dict[str, set[str]] = defaultdict(set)

    for cls in schedule:
        locations[(cls.teacher, cls.day)].add(cls.location)
        shift = get_shift(cls.time)
        if shift is not None:
            shifts[(cls.teacher, cls.day)].add(shift)
        days[cls.teacher].add(cls.day)

    violations = []
    for (teacher, day), places in locations.items():
        if len(places) > 1:
            violations.append(f"{teacher}: teaches at {len(places)} locations on {day}")
    for (teacher, day), worked in shifts.items():
        if len(worked) > 1:
            violations.append(f"{teacher}: works both shifts on {day}")
    for teacher, worked_days in days.items():
        days_off = len(ALL_DAYS) - len(worked_days)
        if days_off < MIN_DAYS_OFF:
            violations.append(f"{teacher}: only {days_off} days off (minimum {MIN_DAYS_OFF})")

    return violations


def find_shift_trainer_violations(schedule: Iterable[ScheduledClass]) -> list[str]:
    """(location, day, shift) groups with more distinct trainers than allowed."""
    trainers: dict[tuple[str, str, Shift], set[str]] = defaultdict(set)
    for cls in schedule:
        shift = get_shift(cls.time)
        if shift is not None:
            trainers[(cls.location, cls.day, shift)].add(cls.teacher)

    violations = []
    for (location, day, shift), names in trainers.items():
        limit = max_trainers_per_shift(location)
        if len(names) > limit:
            violations.append(
                f"{location} on {day} ({shift.value}): {len(names)} trainers exceed the limit of {limit}"
            )
    return violations


def trim_trainer_overhours(
    schedule: Iterable[ScheduledClass],
    new_trainers: Iterable[str] = (),
    max_weekly_hours: float = MAX_WEEKLY_HOURS,
    new_trainer_weekly_hours: float = NEW_TRAINER_WEEKLY_HOURS,
    roster: TeacherRoster | None = None,
) -> list[ScheduledClass]:
    """Drop the lowest-attended classes of teachers over their weekly cap.

    Returns:
        A new list in the original order; the input is not modified
    """
    schedule = list(schedule)
    new = _new_trainer_keys(new_trainers, roster)

    by_teacher: dict[str, list[ScheduledClass]] = defaultdict(list)
    for cls in schedule:
        by_teacher[cls.teacher].append(cls)

    dropped: set[int] = set()
    for teacher, classes in by_teacher.items():
        cap = _weekly_cap(teacher, new, max_weekly_hours, new_trainer_weekly_hours, roster)
        total = sum(cls.hours for cls in classes)
        for cls in sorted(classes, key=lambda c: c.participants):
            if total <= cap:
                break
            dropped.add(id(cls))
            total -= cls.hours
        if total < sum(cls.hours for cls in classes):
            logger.info(f"Trimmed {teacher} to {total:g} weekly hours")

    return [cls for cls in schedule if id(cls) not in dropped]


def compute_metrics(
    schedule: Iterable[ScheduledClass], weekly_hour_target: float = WEEKLY_HOUR_TARGET
) -> ScheduleMetrics:
    """Summary figures of a schedule."""
    schedule = list(schedule)
    hours = teacher_hours(schedule)

    by_location: dict[str, int] = defaultdict(int)
    for cls in schedule:
        by_location[cls.location] += 1

    return ScheduleMetrics(
        total_classes=len(schedule),
        total_revenue=round(sum(cls.revenue for cls in schedule), 2),
        total_participants=round(sum(cls.participants for cls in schedule), 1),
        morning_classes=sum(1 for cls in schedule if get_shift(cls.time) == Shift.MORNING),
        evening_classes=sum(1 for cls in schedule if get_shift(cls.time) == Shift.EVENING),
        unique_trainers=len(hours),
        avg_trainer_hours=round(sum(hours.values()) / len(hours), 1) if hours else 0.0,
        trainers_below_target=sorted(t for t, h in hours.items() if h < weekly_hour_target),
        by_location=dict(by_location),
    )


def review_schedule(
    schedule: Iterable[ScheduledClass],
    studios: StudioCapacityTable | None = None,
    new_trainers: Iterable[str] = (),
    weekly_hour_target: float = WEEKLY_HOUR_TARGET,
    roster: TeacherRoster | None = None,
    max_weekly_hours: float = MAX_WEEKLY_HOURS,
    new_trainer_weekly_hours: float = NEW_TRAINER_WEEKLY_HOURS,
) -> ScheduleReview:
    """Run every check on a schedule and collect metrics.

    Args:
        schedule: Schedule to review
        studios: Studio table; defaults to the built-in locations
        new_trainers: Teachers held to the new-trainer weekly cap
        weekly_hour_target: Hours below which a trainer is reported as underused
        roster: Optional roster with new-trainer flags and lower caps
        max_weekly_hours: Weekly cap for established trainers
        new_trainer_weekly_hours: Weekly cap for new trainers

    Returns:
        ScheduleReview; `is_acceptable` is False if anything needs attention
    """
    schedule = list(schedule)
    review = ScheduleReview(
        validation=validate(schedule, studios),
        trainer_violations=find_trainer_hour_violations(
            schedule, new_trainers, max_weekly_hours, new_trainer_weekly_hours, roster
        )
        + find_trainer_rule_violations(schedule),
        shift_trainer_violations=find_shift_trainer_violations(schedule),
        metrics=compute_metrics(schedule, weekly_hour_target),
    )
    logger.info(
        f"Reviewed {len(schedule)} classes: {len(review.validation.conflicts)} conflicts, "
        f"{len(review.trainer_violations)} trainer warnings, "
        f"{len(review.shift_trainer_violations)} shift warnings"
    )
    return review
