"""Greedy multi-phase weekly schedule construction.

Phases run once each, in order, over one draft schedule:

1. Anchors: best weekday class at the primary location's 07:30 slot
2. Top performers: ranked historic combinations at their own slot,
   then at nearby times
3. Gap filling: remaining slots from any well-attended historic class
4. Days-off repair: drop a teacher's lightest day until they have two
   days off

Nothing placed in an earlier phase is revisited, except for removals
in phase 4.
"""

import logging
from collections import Counter
from typing import Any, Iterable

import pandas as pd

from ..loader import records_from_frame
from ..models import HistoricClassRecord
from ..normalization import (
    format_duration,
    minutes_to_time,
    normalize_teacher_name,
    split_teacher_name,
    time_to_minutes,
)
from .analyzer import PerformanceAnalyzer
from .constants import (
    ALL_DAYS,
    ANCHOR_DAYS,
    ANCHOR_TIME,
    MIN_DAYS_OFF,
    NEW_TRAINER_FORMATS,
    PRIMARY_LOCATION,
    SAME_FORMAT_GAP_MINUTES,
    TIME_SLOTS,
    TOP_PERFORMER_FLAG,
    Shift,
)
from .ledger import ShiftOccupancy, TeacherHoursLedger, check_teacher_eligibility
from .models import (
    PerformanceAggregate,
    ScheduledClass,
    SchedulerOptions,
    SlotKey,
    TeacherProfile,
    TeacherRoster,
)
from .rules import (
    DEFAULT_RESTRICTION,
    LOCATION_FORMAT_RULES,
    FormatRule,
    RestrictionPolicy,
    get_shift,
    is_class_allowed_at_location,
    is_format_allowed_for_new_trainer,
    is_hosted_class,
    is_time_restricted,
)
from .studios import StudioAvailabilityTracker, StudioCapacityTable

logger = logging.getLogger(__name__)

DAY_MINUTES = 24 * 60


class ConstructionRun:
    """State of one construction run.

    Owns the draft schedule, the teacher-hours ledger and the shift
    occupancy. A run is used once and then discarded, so concurrent
    runs never share mutable state.
    """

    def __init__(
        self,
        constructor: "ScheduleConstructor",
        analyzer: PerformanceAnalyzer,
        options: SchedulerOptions,
        roster: TeacherRoster,
    ) -> None:
        self.constructor = constructor
        self.analyzer = analyzer
        self.options = options
        self.roster = roster

        self.draft: list[ScheduledClass] = []
        self.ledger = TeacherHoursLedger()
        self.occupancy = ShiftOccupancy()
        self.rejections: Counter[str] = Counter()
        self._ids: set[str] = set()
        self._new_trainers = {
            normalize_teacher_name(n).casefold()
            for n in list(options.new_trainers) + list(roster.new_trainers())
        }

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    def is_new_trainer(self, teacher: str) -> bool:
        return normalize_teacher_name(teacher).casefold() in self._new_trainers

    def weekly_cap(self, teacher: str) -> float:
        """Weekly hour cap for a teacher; roster overrides can only lower it."""
        if self.is_new_trainer(teacher):
            cap = self.options.new_trainer_weekly_hours
        else:
            cap = self.options.max_weekly_hours
        profile = self.roster.get(teacher)
        if profile is not None and profile.max_weekly_hours is not None:
            return min(profile.max_weekly_hours, cap)
        return cap

    def _next_id(self, phase: str, location: str, day: str, time: str, class_format: str) -> str:
        base = f"{phase}-{location}-{day}-{time}-{class_format}-{self.options.iteration}"
        candidate = base
        counter = 1
        while candidate in self._ids:
            counter += 1
            candidate = f"{base}-{counter}"
        self._ids.add(candidate)
        return candidate

    def _reject(self, reason: str, detail: str) -> None:
        self.rejections[reason] += 1
        logger.debug(f"Rejected: {detail}")

    def _has_format_nearby(self, class_format: str, location: str, day: str, time: str) -> bool:
        start = time_to_minutes(time)
        return any(
            cls.class_format == class_format
            and cls.location == location
            and cls.day == day
            and abs(time_to_minutes(cls.time) - start) <= SAME_FORMAT_GAP_MINUTES
            for cls in self.draft
        )

    def try_place(
        self,
        phase: str,
        aggregate: PerformanceAggregate,
        time: str,
        teachers: list[str],
    ) -> ScheduledClass | None:
        """Run the eligibility chain for one candidate and place it if it passes.

        Args:
            phase: Phase label used in the class id
            aggregate: Historic statistics of the candidate class
            time: Start time to try (may differ from the historic time)
            teachers: Teachers to try, in order

        Returns:
            The placed class, or None if any check failed
        """
        class_format = aggregate.class_format
        location = aggregate.location
        day = aggregate.day
        duration = format_duration(aggregate.duration)
        label = f"{class_format} at {location} {day} {time}"
        c = self.constructor

        if self.options.respect_time_restrictions and is_time_restricted(
            time, day, c.restriction
        ):
            self._reject("restricted_time", f"{label}: restricted time")
            return None

        if not is_class_allowed_at_location(class_format, location, c.format_rules):
            self._reject("location_format", f"{label}: format not allowed at location")
            return None

        studio = c.tracker.check_availability(location, day, time, duration, self.draft)
        if studio is None:
            self._reject("no_studio", f"{label}: no studio available")
            return None

        if any(
            cls.class_format == class_format and cls.slot == SlotKey(location, day, time)
            for cls in self.draft
        ):
            self._reject("duplicate_format", f"{label}: format already in slot")
            return None

        if self.options.avoid_back_to_back_formats and self._has_format_nearby(
            class_format, location, day, time
        ):
            self._reject("back_to_back_format", f"{label}: same format within the hour")
            return None

        if not teachers:
            self._reject("no_teacher", f"{label}: no eligible teacher on record")
            return None

        for teacher in teachers:
            ok, reason = check_teacher_eligibility(
                self.ledger,
                self.occupancy,
                teacher,
                location,
                day,
                time,
                duration,
                max_weekly_hours=self.weekly_cap(teacher),
                roster=self.roster,
                enforce_shift_cap=self.options.minimize_trainers_per_shift,
            )
            if not ok:
                self._reject("teacher", f"{label}: {reason}")
                continue

            if self.is_new_trainer(teacher) and not is_format_allowed_for_new_trainer(
                class_format, c.new_trainer_formats
            ):
                self._reject("new_trainer_format", f"{label}: {teacher} is a new trainer")
                continue

            return self._place(phase, aggregate, time, duration, teacher, studio)

        return None

    def _place(
        self,
        phase: str,
        aggregate: PerformanceAggregate,
        time: str,
        duration: str,
        teacher: str,
        studio: str,
    ) -> ScheduledClass:
        first, last = split_teacher_name(teacher)
        cls = ScheduledClass(
            id=self._next_id(phase, aggregate.location, aggregate.day, time, aggregate.class_format),
            day=aggregate.day,
            time=time,
            location=aggregate.location,
            class_format=aggregate.class_format,
            teacher_first_name=first,
            teacher_last_name=last,
            duration=duration,
            participants=aggregate.avg_participants,
            revenue=aggregate.avg_revenue,
            is_top_performer=aggregate.avg_participants > TOP_PERFORMER_FLAG,
            studio_assigned=studio,
        )
        self.draft.append(cls)
        self.ledger.reserve(cls)
        self.occupancy.reserve(cls)
        logger.debug(f"Placed {cls.class_format} at {cls.location} {cls.day} {cls.time} with {teacher}")
        return cls

    def _remove(self, cls: ScheduledClass) -> None:
        self.draft.remove(cls)
        self.ledger.release(cls)
        self.occupancy.release(cls)

    def teachers_for(self, aggregate: PerformanceAggregate) -> list[str]:
        """Teachers to try for a candidate: the best one, plus fallbacks if enabled."""
        ranked = [
            agg.teacher
            for agg in self.analyzer.rank_teachers_for_slot(
                aggregate.class_format,
                aggregate.location,
                aggregate.day,
                aggregate.time,
                excluded=self.options.excluded_teachers,
            )
        ]
        if not ranked or not self.options.allow_teacher_fallback:
            return ranked[:1]

        best, rest = ranked[0], ranked[1:]
        if self.options.optimize_teacher_hours:
            # Least-booked fallbacks first; sort is stable on the historic rank
            rest.sort(key=self.ledger.hours)
        return [best] + rest

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def place_anchors(self) -> int:
        """Phase 1: the best historic class at each weekday anchor slot."""
        placed = 0
        for day in ANCHOR_DAYS:
            candidates = [
                agg
                for agg in self.analyzer.class_average_for_slot(PRIMARY_LOCATION, day, ANCHOR_TIME)
                if agg.avg_participants > self.options.fill_min_participants
                and not is_hosted_class(agg.class_format)
                and is_class_allowed_at_location(
                    agg.class_format, agg.location, self.constructor.format_rules
                )
            ]
            if not candidates:
                continue

            best = candidates[0]
            teachers = self.teachers_for(best)[:1]
            if self.try_place("anchor", best, ANCHOR_TIME, teachers):
                placed += 1

        logger.info(f"Phase 1: placed {placed} anchor classes")
        return placed

    def _candidate_times(self, time: str) -> list[str]:
        times = [time]
        if not self.options.probe_alternative_times:
            return times

        start = time_to_minutes(time)
        for offset in self.options.alternative_offsets:
            minutes = start + offset
            if 0 <= minutes < DAY_MINUTES:
                times.append(minutes_to_time(minutes))
        return times

    def place_top_performers(self) -> int:
        """Phase 2: ranked top combinations, exact slot first."""
        if not self.options.prioritize_top_performers:
            logger.info("Phase 2: skipped")
            return 0

        top = self.analyzer.get_top_performing_classes(
            min_average=self.options.min_average,
            format_rules=self.constructor.format_rules,
        )
        placed = 0
        for aggregate in top:
            if aggregate.location not in self.constructor.locations:
                continue
            teachers = self.teachers_for(aggregate)

            tried: list[str] = []
            for time in self._candidate_times(aggregate.time):
                tried.append(time)
                if self.try_place("top", aggregate, time, teachers):
                    placed += 1
                    break
            else:
                if not self.options.probe_alternative_times:
                    continue
                later = self.constructor.tracker.next_available_time(
                    aggregate.location,
                    aggregate.day,
                    aggregate.time,
                    format_duration(aggregate.duration),
                    self.draft,
                )
                if later and later not in tried and self.try_place("top", aggregate, later, teachers):
                    placed += 1

        logger.info(f"Phase 2: placed {placed} of {len(top)} top-performing classes")
        return placed

    def _slot_times(self, location: str, day: str) -> list[str]:
        base = self.options.time_slots if self.options.time_slots is not None else TIME_SLOTS
        times = sorted(set(base) | set(self.analyzer.time_slots_with_data(location, day)))
        if not self.options.balance_shifts:
            return times

        shifts = Counter(get_shift(cls.time) for cls in self.draft)
        if shifts[Shift.EVENING] < shifts[Shift.MORNING]:
            # Under-represented shift gets first pick of teachers
            return [t for t in times if get_shift(t) == Shift.EVENING] + [
                t for t in times if get_shift(t) != Shift.EVENING
            ]
        return times

    def fill_gaps(self) -> int:
        """Phase 3: fill remaining slots from any well-attended historic class."""
        placed = 0
        for location in self.constructor.locations:
            for day in ALL_DAYS:
                for time in self._slot_times(location, day):
                    present = {
                        cls.class_format for cls in self.draft if cls.slot == SlotKey(location, day, time)
                    }
                    candidates = [
                        agg
                        for agg in self.analyzer.class_average_for_slot(location, day, time)
                        if agg.avg_participants > self.options.fill_min_participants
                        and agg.class_format not in present
                        and not is_hosted_class(agg.class_format)
                    ]
                    for aggregate in candidates[: self.options.fill_candidates_per_slot]:
                        if self.try_place("fill", aggregate, time, self.teachers_for(aggregate)):
                            placed += 1
                            break

        logger.info(f"Phase 3: filled {placed} slots")
        return placed

    def repair_days_off(self) -> int:
        """Phase 4: give every teacher at least two days without classes.

        Removes the teacher's classes on their least-loaded day, earliest
        placed day first among ties, until the teacher has enough days off.
        """
        removed = 0
        for teacher in list(self.ledger.teachers):
            while self.ledger.days_off(teacher) < MIN_DAYS_OFF:
                classes = [cls for cls in self.draft if cls.teacher == teacher]
                first_seen: dict[str, int] = {}
                for index, cls in enumerate(classes):
                    first_seen.setdefault(cls.day, index)

                lightest = min(
                    first_seen,
                    key=lambda d: (self.ledger.daily_hours(teacher, d), first_seen[d]),
                )
                for cls in [c for c in classes if c.day == lightest]:
                    self._remove(cls)
                    removed += 1
                logger.debug(f"Cleared {teacher}'s classes on {lightest} for days off")

        logger.info(f"Phase 4: removed {removed} classes to guarantee days off")
        return removed

    def execute(self) -> list[ScheduledClass]:
        """Run all four phases and return the draft."""
        if self.analyzer.is_empty:
            logger.warning("No usable historic records; returning an empty schedule")
            return []

        self.place_anchors()
        self.place_top_performers()
        self.fill_gaps()
        self.repair_days_off()

        morning = sum(1 for cls in self.draft if get_shift(cls.time) == Shift.MORNING)
        evening = sum(1 for cls in self.draft if get_shift(cls.time) == Shift.EVENING)
        logger.info(
            f"Constructed {len(self.draft)} classes ({morning} morning, {evening} evening), "
            f"{len(self.ledger.teachers)} trainers"
        )
        if self.rejections:
            logger.debug(f"Rejected placements by reason: {dict(self.rejections)}")
        return list(self.draft)


class ScheduleConstructor:
    """Builds weekly schedules from historic attendance.

    Holds only static configuration; every call to `construct` uses a
    fresh ConstructionRun.
    """

    def __init__(
        self,
        studios: StudioCapacityTable | None = None,
        restriction: RestrictionPolicy = DEFAULT_RESTRICTION,
        format_rules: tuple[FormatRule, ...] = LOCATION_FORMAT_RULES,
        new_trainer_formats: list[str] | None = None,
    ) -> None:
        """Initialize the constructor.

        Args:
            studios: Studio table; defaults to the built-in locations
            restriction: Midday band in which no class may start
            format_rules: Location-format eligibility rules
            new_trainer_formats: Formats new trainers may teach
        """
        self.tracker = StudioAvailabilityTracker(studios)
        self.restriction = restriction
        self.format_rules = format_rules
        self.new_trainer_formats = (
            new_trainer_formats if new_trainer_formats is not None else list(NEW_TRAINER_FORMATS)
        )

    @property
    def locations(self) -> list[str]:
        return self.tracker.table.locations

    def construct(
        self,
        historic_data: Iterable[HistoricClassRecord] | pd.DataFrame,
        teachers: TeacherRoster | Iterable[Any] | None = None,
        options: SchedulerOptions | None = None,
    ) -> list[ScheduledClass]:
        """Build a weekly schedule.

        Args:
            historic_data: Historic records, or a raw attendance frame
            teachers: Optional roster (TeacherRoster, profiles, dicts or names)
            options: Run switches and thresholds

        Returns:
            Placed classes; empty if nothing could be scheduled
        """
        options = options or SchedulerOptions()
        records = coerce_records(historic_data)
        run = ConstructionRun(self, PerformanceAnalyzer(records), options, coerce_roster(teachers))
        return run.execute()


def coerce_records(
    historic_data: Iterable[HistoricClassRecord] | pd.DataFrame,
) -> list[HistoricClassRecord]:
    """Accept records, a frame, or dicts; malformed entries are dropped."""
    if isinstance(historic_data, pd.DataFrame):
        result = records_from_frame(historic_data)
        for warning in result.warnings:
            logger.debug(warning)
        return result.records

    records = []
    for item in historic_data:
        if isinstance(item, HistoricClassRecord):
            records.append(item)
        else:
            records.extend(records_from_frame(pd.DataFrame([item])).records)
    return records


def coerce_roster(teachers: TeacherRoster | Iterable[Any] | None) -> TeacherRoster:
    """Build a roster from whatever the caller supplied."""
    if teachers is None:
        return TeacherRoster()
    if isinstance(teachers, TeacherRoster):
        return teachers

    profiles = []
    for item in teachers:
        if isinstance(item, TeacherProfile):
            profiles.append(item)
        elif isinstance(item, dict):
            profiles.append(TeacherProfile.from_dict(item))
        else:
            profiles.append(TeacherProfile(name=normalize_teacher_name(item)))
    return TeacherRoster(profiles)


def construct(
    historic_data: Iterable[HistoricClassRecord] | pd.DataFrame,
    teachers: TeacherRoster | Iterable[Any] | None = None,
    options: SchedulerOptions | None = None,
) -> list[ScheduledClass]:
    """Build a weekly schedule with the default studio configuration.

    Example:
        >>> schedule = construct(load_historic_csv("attendance.csv").records)
        >>> len(schedule)
    """
    return ScheduleConstructor().construct(historic_data, teachers, options)
