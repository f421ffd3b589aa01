"""Studio availability for schedule generation."""

from collections import defaultdict
from typing import Iterable, Self

from ..normalization import minutes_to_time, time_to_minutes
from .constants import (
    DAY_CUTOFF,
    MAX_PARALLEL_OVERRIDES,
    PROBE_MAX_ATTEMPTS,
    PROBE_STEP_MINUTES,
    STUDIO_CAPACITIES,
)
from .models import ScheduledClass


def class_end_time(start_time: str, duration: str | float) -> str:
    """End time of a class (HH:MM).

    Raises:
        ValueError: If the class would run past midnight
    """
    end = time_to_minutes(start_time) + round(float(duration) * 60)
    if end > 24 * 60:
        raise ValueError(f"Class at {start_time} lasting {duration}h crosses midnight")
    return minutes_to_time(end)


def times_overlap(start1: str, end1: str, start2: str, end2: str) -> bool:
    """Half-open interval overlap: a class ending as another starts is fine."""
    return time_to_minutes(start1) < time_to_minutes(end2) and time_to_minutes(
        end1
    ) > time_to_minutes(start2)


def classes_overlap(a: ScheduledClass, b: ScheduledClass) -> bool:
    """Check if two scheduled classes overlap in time on the same day."""
    if a.day != b.day:
        return False
    return times_overlap(
        a.time, class_end_time(a.time, a.duration), b.time, class_end_time(b.time, b.duration)
    )


class StudioCapacityTable:
    """Named studios per location and how many may run in parallel."""

    def __init__(
        self,
        capacities: dict[str, dict[str, int]] | None = None,
        max_parallel: dict[str, int] | None = None,
    ) -> None:
        """Initialize the table.

        Args:
            capacities: Location -> {studio name: capacity}
            max_parallel: Location -> parallel class cap below the studio count
        """
        self._capacities = {
            location: dict(studios)
            for location, studios in (
                capacities if capacities is not None else STUDIO_CAPACITIES
            ).items()
        }
        self._max_parallel = dict(
            max_parallel if max_parallel is not None else MAX_PARALLEL_OVERRIDES
        )

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Build a table from {"locations": {loc: {"studios": {...}, "max_parallel": n}}}."""
        capacities: dict[str, dict[str, int]] = {}
        max_parallel: dict[str, int] = {}
        for location, config in data.get("locations", {}).items():
            capacities[location] = {
                name: int(capacity) for name, capacity in config.get("studios", {}).items()
            }
            if config.get("max_parallel") is not None:
                max_parallel[location] = int(config["max_parallel"])
        return cls(capacities, max_parallel)

    @property
    def locations(self) -> list[str]:
        return list(self._capacities.keys())

    def studios(self, location: str) -> list[str]:
        """Studio names at a location, in configuration order."""
        return list(self._capacities.get(location, {}).keys())

    def capacity(self, location: str, studio: str) -> int:
        return self._capacities.get(location, {}).get(studio, 0)

    def parallel_limit(self, location: str) -> int:
        """Max number of classes that may overlap at a location."""
        count = len(self.studios(location))
        override = self._max_parallel.get(location)
        return min(count, override) if override is not None else count


class StudioAvailabilityTracker:
    """Answers studio availability questions against a schedule snapshot.

    Holds no schedule state of its own: every call receives the current
    schedule, so independent construction runs can share one tracker.
    """

    def __init__(self, table: StudioCapacityTable | None = None) -> None:
        self.table = table or StudioCapacityTable()

    def _studio_intervals(
        self, location: str, classes: list[ScheduledClass]
    ) -> dict[str, list[tuple[str, str]]]:
        """Distribute classes over the location's studios.

        Classes with a known studio label keep it; the rest take the first
        studio free for their interval, in start-time order.
        """
        studios = self.table.studios(location)
        occupied: dict[str, list[tuple[str, str]]] = defaultdict(list)
        unlabelled = []

        for cls in classes:
            interval = (cls.time, class_end_time(cls.time, cls.duration))
            if cls.studio_assigned in studios:
                occupied[cls.studio_assigned].append(interval)
            else:
                unlabelled.append(interval)

        for start, end in sorted(unlabelled):
            for studio in studios:
                if not any(times_overlap(start, end, s, e) for s, e in occupied[studio]):
                    occupied[studio].append((start, end))
                    break

        return occupied

    def check_availability(
        self,
        location: str,
        day: str,
        start_time: str,
        duration: str | float,
        schedule: Iterable[ScheduledClass],
        exclude_id: str | None = None,
    ) -> str | None:
        """Find a free studio for a candidate class.

        Args:
            location: Location name
            day: Day name
            start_time: Candidate start (HH:MM)
            duration: Candidate duration in hours
            schedule: Current schedule snapshot
            exclude_id: Class id to ignore (the class being moved)

        Returns:
            Name of the first free studio, or None if unavailable
        """
        studios = self.table.studios(location)
        if not studios:
            return None

        try:
            end_time = class_end_time(start_time, duration)
        except ValueError:
            return None

        same_day = [
            cls
            for cls in schedule
            if cls.location == location and cls.day == day and cls.id != exclude_id
        ]
        intervals = [(cls.time, class_end_time(cls.time, cls.duration)) for cls in same_day]
        overlapping = [
            (s, e) for s, e in intervals if times_overlap(start_time, end_time, s, e)
        ]
        limit = self.table.parallel_limit(location)
        if len(overlapping) >= limit:
            return None

        # Every class the candidate overlaps must still fit with it added
        for s, e in overlapping:
            group = sum(1 for s2, e2 in intervals if times_overlap(s, e, s2, e2))
            if group + 1 > limit:
                return None

        occupied = self._studio_intervals(location, same_day)
        for studio in studios:
            if not any(
                times_overlap(start_time, end_time, s, e) for s, e in occupied[studio]
            ):
                return studio
        return None

    def next_available_time(
        self,
        location: str,
        day: str,
        preferred_time: str,
        duration: str | float,
        schedule: Iterable[ScheduledClass],
        step_minutes: int = PROBE_STEP_MINUTES,
        max_attempts: int = PROBE_MAX_ATTEMPTS,
        cutoff: str = DAY_CUTOFF,
    ) -> str | None:
        """Probe forward from a preferred time for the first free start.

        Returns:
            First start time with a free studio, or None if none found
            before the cutoff within the attempt budget
        """
        snapshot = list(schedule)
        current = time_to_minutes(preferred_time)
        cutoff_minutes = time_to_minutes(cutoff)

        for _ in range(max_attempts):
            if current >= cutoff_minutes:
                break
            candidate = minutes_to_time(current)
            if self.check_availability(location, day, candidate, duration, snapshot):
                return candidate
            current += step_minutes

        return None

    def assign_studios(self, schedule: list[ScheduledClass]) -> list[ScheduledClass]:
        """Label every class with a studio, keeping existing valid labels.

        Classes that fit no studio keep a None label.
        """
        by_location_day: dict[tuple[str, str], list[ScheduledClass]] = defaultdict(list)
        for cls in schedule:
            by_location_day[(cls.location, cls.day)].append(cls)

        for (location, _), classes in by_location_day.items():
            studios = self.table.studios(location)
            occupied: dict[str, list[tuple[str, str]]] = defaultdict(list)
            pending = []
            for cls in classes:
                if cls.studio_assigned in studios:
                    occupied[cls.studio_assigned].append(
                        (cls.time, class_end_time(cls.time, cls.duration))
                    )
                else:
                    pending.append(cls)

            for cls in sorted(pending, key=lambda c: c.time):
                start, end = cls.time, class_end_time(cls.time, cls.duration)
                cls.studio_assigned = None
                for studio in studios:
                    if not any(times_overlap(start, end, s, e) for s, e in occupied[studio]):
                        occupied[studio].append((start, end))
                        cls.studio_assigned = studio
                        break

        return schedule
