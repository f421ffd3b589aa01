"""Business rule predicates used by construction and validation.

All functions here are pure: they decide from their arguments alone.
"""

from dataclasses import dataclass, field

from ..normalization import time_to_minutes
from .constants import (
    DEFAULT_TRAINERS_PER_SHIFT,
    EVENING_START,
    FLAGSHIP_LOCATION,
    HOSTED_KEYWORD,
    MORNING_END,
    NEW_TRAINER_FORMATS,
    RESTRICTED_START,
    RESTRICTED_WEEKDAY_END,
    RESTRICTED_WEEKEND_END,
    TRAINERS_PER_SHIFT,
    WEEKEND_DAYS,
    Shift,
)


@dataclass(frozen=True)
class FormatRule:
    """Location rule for one class family.

    Attributes:
        family: Display name of the family
        keywords: Lower-case substrings identifying the family
        home_location: If set, the family may run only here
        forbidden_locations: Locations where the family may not run
    """

    family: str
    keywords: tuple[str, ...]
    home_location: str | None = None
    forbidden_locations: frozenset[str] = field(default_factory=frozenset)

    def matches(self, class_format: str) -> bool:
        text = class_format.lower()
        return any(keyword in text for keyword in self.keywords)

    def allows(self, location: str) -> bool:
        if self.home_location is not None and location != self.home_location:
            return False
        return location not in self.forbidden_locations


# Cycling runs only at the flagship; the flagship does not run Amped Up/HIIT
LOCATION_FORMAT_RULES: tuple[FormatRule, ...] = (
    FormatRule(
        family="Cycle",
        keywords=("powercycle", "cycle"),
        home_location=FLAGSHIP_LOCATION,
    ),
    FormatRule(
        family="Amped Up",
        keywords=("amped up", "hiit"),
        forbidden_locations=frozenset({FLAGSHIP_LOCATION}),
    ),
)


@dataclass(frozen=True)
class RestrictionPolicy:
    """Midday band during which no class may start: [start, end)."""

    start: str = RESTRICTED_START
    weekday_end: str = RESTRICTED_WEEKDAY_END
    weekend_end: str = RESTRICTED_WEEKEND_END

    def end_for(self, day: str) -> str:
        return self.weekend_end if day in WEEKEND_DAYS else self.weekday_end


DEFAULT_RESTRICTION = RestrictionPolicy()


def is_hosted_class(class_format: str) -> bool:
    """Hosted (guest or rental) sessions are never scheduled."""
    return HOSTED_KEYWORD in class_format.lower()


def is_class_allowed_at_location(
    class_format: str,
    location: str,
    rules: tuple[FormatRule, ...] = LOCATION_FORMAT_RULES,
) -> bool:
    """Check location-format eligibility.

    Args:
        class_format: Class format name
        location: Location name
        rules: Rule table; the first matching family decides

    Returns:
        True if the format may run at the location
    """
    for rule in rules:
        if rule.matches(class_format):
            return rule.allows(location)
    return True


def is_time_restricted(
    time: str, day: str, policy: RestrictionPolicy = DEFAULT_RESTRICTION
) -> bool:
    """Check if a start time falls inside the restricted midday band.

    Args:
        time: Start time (HH:MM)
        day: Day name; weekends use the earlier band end
        policy: Band definition

    Returns:
        True if no class may start at this time
    """
    minutes = time_to_minutes(time)
    return (
        time_to_minutes(policy.start) <= minutes < time_to_minutes(policy.end_for(day))
    )


def get_shift(time: str) -> Shift | None:
    """Classify a start time as morning, evening, or neither.

    Times between 14:00 and 15:00 belong to no shift.
    """
    minutes = time_to_minutes(time)
    if minutes < time_to_minutes(MORNING_END):
        return Shift.MORNING
    if minutes >= time_to_minutes(EVENING_START):
        return Shift.EVENING
    return None


def max_trainers_per_shift(location: str) -> int:
    """Max distinct trainers per shift per day at a location."""
    return TRAINERS_PER_SHIFT.get(location, DEFAULT_TRAINERS_PER_SHIFT)


def is_format_allowed_for_new_trainer(
    class_format: str, allowed: list[str] = NEW_TRAINER_FORMATS
) -> bool:
    """New trainers may only teach beginner-friendly formats."""
    text = class_format.lower()
    return any(keyword.lower() in text for keyword in allowed)
