"""Test fixtures for studio scheduler tests."""

import pandas as pd
import pytest

from studio_scheduler.models import HistoricClassRecord
from studio_scheduler.scheduler.constants import (
    ALL_DAYS,
    FLAGSHIP_LOCATION,
    LOCATIONS,
    PRIMARY_LOCATION,
    STANDARD_LOCATION,
)
from studio_scheduler.scheduler.models import ScheduledClass

FORMATS = [
    "Studio Barre 57",
    "Studio Mat 57",
    "Studio FIT",
    "Studio Cardio Barre",
    "Studio PowerCycle",
    "Studio Amped Up!",
    "Studio Foundations",
    "Studio Recovery",
]

TEACHERS = [
    "Anisha Shah",
    "Rohan Dahima",
    "Mrigakshi Jaiswal",
    "Pranjali Jain",
    "Vivaran Dhasmana",
    "Karanvir Bhatia",
    "Richard D'Costa",
    "Reshma Sharma",
    "Atulan Purohit",
]

TIMES = ["07:30", "08:00", "09:00", "10:00", "11:00", "13:00", "18:00", "19:00"]


def _record(
    class_format: str = "Studio Barre 57",
    location: str = STANDARD_LOCATION,
    day: str = "Monday",
    time: str = "08:00",
    teacher: str = "Anisha Shah",
    participants: float = 10,
    revenue: float | None = None,
    duration: float = 1.0,
) -> HistoricClassRecord:
    return HistoricClassRecord(
        class_format=class_format,
        location=location,
        day=day,
        time=time,
        teacher_name=teacher,
        participants=participants,
        revenue=participants * 500.0 if revenue is None else revenue,
        duration=duration,
    )


def _repeat(count: int, **kwargs) -> list[HistoricClassRecord]:
    return [_record(**kwargs) for _ in range(count)]


def _scheduled(
    id: str = "c1",
    day: str = "Monday",
    time: str = "08:00",
    location: str = STANDARD_LOCATION,
    class_format: str = "Studio Barre 57",
    teacher: str = "Anisha Shah",
    duration: str = "1",
    participants: float = 10.0,
    studio: str | None = None,
) -> ScheduledClass:
    first, _, last = teacher.partition(" ")
    return ScheduledClass(
        id=id,
        day=day,
        time=time,
        location=location,
        class_format=class_format,
        teacher_first_name=first,
        teacher_last_name=last,
        duration=duration,
        participants=participants,
        revenue=participants * 500.0,
        studio_assigned=studio,
    )


@pytest.fixture
def make_record():
    """Factory for one historic class occurrence."""
    return _record


@pytest.fixture
def repeat_record():
    """Factory for `count` identical historic occurrences."""
    return _repeat


@pytest.fixture
def make_class():
    """Factory for one scheduled class."""
    return _scheduled


@pytest.fixture
def week_records():
    """Two weeks of history over every location, day and a spread of times.

    Includes formats that are ineligible at some locations, a restricted
    start time and hosted sessions.
    """
    records = []
    for li, location in enumerate(LOCATIONS):
        for di, day in enumerate(ALL_DAYS):
            for ti, time in enumerate(TIMES):
                for k in range(2):
                    class_format = FORMATS[(li + di + ti + k) % len(FORMATS)]
                    teacher = TEACHERS[(li * 3 + di + ti + k * 4) % len(TEACHERS)]
                    for occurrence in range(2):
                        participants = 4 + (li + di * 2 + ti * 3 + k + occurrence) % 9
                        records.append(
                            _record(class_format, location, day, time, teacher, participants)
                        )
            records += _repeat(
                2,
                class_format="Hosted Class - Corporate",
                location=location,
                day=day,
                time="18:30",
                teacher="Guest Host",
                participants=25,
            )
    return records


@pytest.fixture
def anchor_records():
    """A well-attended 07:30 class at the primary location on Monday."""
    return _repeat(2, location=PRIMARY_LOCATION, time="07:30", participants=10)


@pytest.fixture
def flagship_records():
    return _repeat(
        2, class_format="Studio PowerCycle", location=FLAGSHIP_LOCATION, participants=12
    )


@pytest.fixture
def attendance_frame():
    """Raw attendance export with the web app's camelCase columns."""
    return pd.DataFrame(
        {
            "cleanedClass": ["Studio Barre 57", "Studio Barre 57", "Studio Mat 57"],
            "location": [STANDARD_LOCATION, STANDARD_LOCATION, STANDARD_LOCATION],
            "dayOfWeek": ["Monday", "Monday", "Tuesday"],
            "classTime": ["8:00 AM", "08:00:00", "18:00"],
            "teacherName": ["Anisha Shah", "Anisha Shah", "Rohan Dahima"],
            "participants": ["10", "12", "7"],
            "totalRevenue": ["5000", "6,000", "3500"],
        }
    )
