"""Per-run teacher workload tracking for schedule construction."""

from collections import defaultdict
from dataclasses import dataclass

from ..normalization import time_to_minutes
from .constants import (
    ALL_DAYS,
    CONSECUTIVE_WINDOW_MINUTES,
    MAX_CLASSES_IN_WINDOW,
    MAX_DAILY_HOURS,
    Shift,
)
from .models import ScheduledClass, TeacherRoster
from .rules import get_shift, max_trainers_per_shift
from .studios import class_end_time, times_overlap


@dataclass(frozen=True)
class _Booking:
    start: str
    end: str
    location: str
    hours: float


class TeacherHoursLedger:
    """Tracks teacher hours, locations and shifts during one construction run.

    Maintains per-teacher state:
    - weekly hour totals
    - bookings per (teacher, day), from which daily hours, the day's
      location and the day's shift are derived
    """

    def __init__(self) -> None:
        # teacher -> weekly hours
        self.weekly_hours: dict[str, float] = defaultdict(float)
        # (teacher, day) -> bookings in insertion order
        self._bookings: dict[tuple[str, str], list[_Booking]] = defaultdict(list)

    def hours(self, teacher: str) -> float:
        return self.weekly_hours.get(teacher, 0.0)

    def daily_hours(self, teacher: str, day: str) -> float:
        return sum(b.hours for b in self._bookings.get((teacher, day), []))

    def location_on(self, teacher: str, day: str) -> str | None:
        """Location the teacher works at on a day, if any."""
        bookings = self._bookings.get((teacher, day))
        return bookings[0].location if bookings else None

    def shift_on(self, teacher: str, day: str) -> Shift | None:
        """Shift the teacher works on a day, if any."""
        for booking in self._bookings.get((teacher, day), []):
            shift = get_shift(booking.start)
            if shift is not None:
                return shift
        return None

    def bookings_on(self, teacher: str, day: str) -> list[tuple[str, str]]:
        """(start, end) intervals the teacher teaches on a day."""
        return [(b.start, b.end) for b in self._bookings.get((teacher, day), [])]

    def days_worked(self, teacher: str) -> list[str]:
        return [day for day in ALL_DAYS if self._bookings.get((teacher, day))]

    def days_off(self, teacher: str) -> int:
        return len(ALL_DAYS) - len(self.days_worked(teacher))

    @property
    def teachers(self) -> list[str]:
        return [t for t, hours in self.weekly_hours.items() if hours > 0]

    def reserve(self, cls: ScheduledClass) -> None:
        """Book a placed class against its teacher."""
        start = cls.time
        self._bookings[(cls.teacher, cls.day)].append(
            _Booking(start, class_end_time(start, cls.duration), cls.location, cls.hours)
        )
        self.weekly_hours[cls.teacher] += cls.hours

    def release(self, cls: ScheduledClass) -> None:
        """Undo the booking of a removed class."""
        key = (cls.teacher, cls.day)
        bookings = self._bookings.get(key, [])
        for i, booking in enumerate(bookings):
            if booking.start == cls.time and booking.location == cls.location:
                del bookings[i]
                self.weekly_hours[cls.teacher] -= booking.hours
                break
        if not bookings:
            self._bookings.pop(key, None)


class ShiftOccupancy:
    """Distinct teachers per (location, day, shift)."""

    def __init__(self) -> None:
        # (location, day, shift) -> teacher -> number of classes
        self._classes: dict[tuple[str, str, Shift], dict[str, int]] = defaultdict(
            lambda: defaultdict(int)
        )

    def teachers(self, location: str, day: str, shift: Shift) -> set[str]:
        counts = self._classes.get((location, day, shift), {})
        return {t for t, n in counts.items() if n > 0}

    def reserve(self, cls: ScheduledClass) -> None:
        shift = get_shift(cls.time)
        if shift is not None:
            self._classes[(cls.location, cls.day, shift)][cls.teacher] += 1

    def release(self, cls: ScheduledClass) -> None:
        shift = get_shift(cls.time)
        if shift is None:
            return
        counts = self._classes.get((cls.location, cls.day, shift))
        if counts and counts.get(cls.teacher, 0) > 0:
            counts[cls.teacher] -= 1
            if counts[cls.teacher] == 0:
                del counts[cls.teacher]


def check_teacher_eligibility(
    ledger: TeacherHoursLedger,
    occupancy: ShiftOccupancy,
    teacher: str,
    location: str,
    day: str,
    time: str,
    duration: str | float,
    max_weekly_hours: float,
    roster: TeacherRoster | None = None,
    enforce_shift_cap: bool = True,
) -> tuple[bool, str]:
    """Check if a teacher can take one more class.

    Args:
        ledger: Hours booked so far in this run
        occupancy: Trainers per shift booked so far in this run
        teacher: Full teacher name
        location: Location of the candidate class
        day: Day of the candidate class
        time: Start time of the candidate class
        duration: Duration in hours
        max_weekly_hours: Weekly cap for this teacher
        roster: Optional roster with blackout times
        enforce_shift_cap: Apply the trainers-per-shift limit

    Returns:
        Tuple of (eligible, reason); reason is empty when eligible
    """
    hours = float(duration)

    profile = roster.get(teacher) if roster else None
    if profile is not None and profile.is_blocked(day, time):
        return False, f"{teacher} is unavailable on {day} at {time}"

    if ledger.hours(teacher) + hours > max_weekly_hours:
        return False, f"{teacher} would exceed {max_weekly_hours:g} weekly hours"

    if ledger.daily_hours(teacher, day) + hours > MAX_DAILY_HOURS:
        return False, f"{teacher} would exceed {MAX_DAILY_HOURS:g} hours on {day}"

    booked_location = ledger.location_on(teacher, day)
    if booked_location is not None and booked_location != location:
        return False, f"{teacher} already teaches at {booked_location} on {day}"

    shift = get_shift(time)
    if shift is None:
        return False, f"{time} is outside both shifts"
    booked_shift = ledger.shift_on(teacher, day)
    if booked_shift is not None and booked_shift != shift:
        return False, f"{teacher} already works the {booked_shift.value} shift on {day}"

    try:
        end = class_end_time(time, duration)
    except ValueError as e:
        return False, str(e)
    bookings = ledger.bookings_on(teacher, day)
    if any(times_overlap(time, end, s, f) for s, f in bookings):
        return False, f"{teacher} already teaches at an overlapping time on {day}"

    start = time_to_minutes(time)
    nearby = [
        s for s, _ in bookings if abs(time_to_minutes(s) - start) <= CONSECUTIVE_WINDOW_MINUTES
    ]
    if len(nearby) >= MAX_CLASSES_IN_WINDOW:
        return False, f"{teacher} already has {len(nearby)} classes around {time} on {day}"

    if enforce_shift_cap:
        assigned = occupancy.teachers(location, day, shift)
        limit = max_trainers_per_shift(location)
        if teacher not in assigned and len(assigned) >= limit:
            return False, f"{location} {day} {shift.value} shift already has {limit} trainers"

    return True, ""
