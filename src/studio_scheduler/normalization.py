"""Normalization utilities for names, days, and clock times."""

import re

import pandas as pd

from .constants import (
    DAY_ABBREVIATIONS,
    DEFAULT_CLASS_DURATION,
    LONG_CLASS_DURATION,
    LONG_CLASS_KEYWORDS,
)

TIME_PATTERN = re.compile(
    r"^\s*(\d{1,2})[:.](\d{2})(?::\d{2})?\s*([AaPp][Mm])?\s*$"
)

VALID_DAYS = [
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]


def is_blank(value) -> bool:
    """Check if a raw cell value is empty or NaN."""
    if value is None:
        return True
    try:
        if pd.isna(value):
            return True
    except (TypeError, ValueError):
        return False
    return str(value).strip() == ""


def normalize_time(value) -> str | None:
    """Normalize a clock time to HH:MM.

    Handles "7:30", "07:30:00", "7.30" and 12-hour forms like "6:15 PM".

    Args:
        value: Raw time value

    Returns:
        Time in HH:MM format, or None if the value is not a valid time
    """
    if is_blank(value):
        return None

    match = TIME_PATTERN.match(str(value))
    if not match:
        return None

    hours = int(match.group(1))
    minutes = int(match.group(2))
    meridiem = match.group(3)

    if meridiem:
        if not 1 <= hours <= 12:
            return None
        hours = hours % 12
        if meridiem.lower() == "pm":
            hours += 12

    if hours > 23 or minutes > 59:
        return None

    return f"{hours:02d}:{minutes:02d}"


def time_to_minutes(time: str) -> int:
    """Convert HH:MM to minutes since midnight."""
    hours, minutes = time.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(total: int) -> str:
    """Convert minutes since midnight to HH:MM."""
    return f"{total // 60:02d}:{total % 60:02d}"


def normalize_day(value) -> str | None:
    """Normalize a day name to its capitalized English form ("Monday")."""
    if is_blank(value):
        return None

    text = str(value).strip().lower()
    for day in VALID_DAYS:
        if text == day.lower():
            return day
    return DAY_ABBREVIATIONS.get(text.rstrip("."))


def normalize_teacher_name(name) -> str:
    """Collapse whitespace in a teacher name.

    Args:
        name: Raw teacher name

    Returns:
        Cleaned name, or empty string for blank input
    """
    if is_blank(name):
        return ""
    return " ".join(str(name).split())


def split_teacher_name(name: str) -> tuple[str, str]:
    """Split "First Last Name" into ("First", "Last Name")."""
    cleaned = normalize_teacher_name(name)
    if not cleaned:
        return "", ""
    first, _, last = cleaned.partition(" ")
    return first, last


def join_teacher_name(first: str, last: str) -> str:
    """Join first and last name into the single display name."""
    return normalize_teacher_name(f"{first or ''} {last or ''}")


def get_class_duration(class_format: str) -> float:
    """Default duration in hours for a class format."""
    if any(keyword in class_format for keyword in LONG_CLASS_KEYWORDS):
        return LONG_CLASS_DURATION
    return DEFAULT_CLASS_DURATION


def format_duration(hours: float) -> str:
    """Format a duration in hours as a decimal string ("1", "1.5")."""
    return f"{hours:g}"
