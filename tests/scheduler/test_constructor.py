"""Tests for the four-phase schedule constructor."""

import pandas as pd
import pytest

from studio_scheduler.scheduler.analyzer import PerformanceAnalyzer
from studio_scheduler.scheduler.constants import (
    FLAGSHIP_LOCATION,
    PRIMARY_LOCATION,
    STANDARD_LOCATION,
)
from studio_scheduler.scheduler.constructor import (
    ConstructionRun,
    ScheduleConstructor,
    coerce_roster,
    construct,
)
from studio_scheduler.scheduler.models import (
    SchedulerOptions,
    TeacherProfile,
    TeacherRoster,
)
from studio_scheduler.scheduler.rules import (
    is_class_allowed_at_location,
    is_hosted_class,
    is_time_restricted,
)
from studio_scheduler.scheduler.validator import (
    find_shift_trainer_violations,
    find_trainer_hour_violations,
    find_trainer_rule_violations,
    validate,
)


@pytest.fixture
def single_slot_records(repeat_record):
    """Barre at Kenkere on Monday 08:00 averaging 9, best taught by Anisha."""
    return repeat_record(3, teacher="Anisha Shah", participants=10) + repeat_record(
        3, teacher="Rohan Dahima", participants=8
    )


@pytest.fixture
def crowded_slot_records(repeat_record):
    """Three formats competing for Kenkere on Monday 08:00."""
    return (
        repeat_record(2, class_format="Studio Barre 57", teacher="Anisha Shah", participants=12)
        + repeat_record(2, class_format="Studio Mat 57", teacher="Rohan Dahima", participants=10)
        + repeat_record(2, class_format="Studio FIT", teacher="Pranjali Jain", participants=8)
    )


@pytest.fixture
def three_day_records(repeat_record):
    """Anisha's Barre class on Monday to Wednesday, Rohan as Wednesday cover."""
    records = []
    for day in ["Monday", "Tuesday", "Wednesday"]:
        records += repeat_record(2, day=day, teacher="Anisha Shah", participants=10)
    return records + repeat_record(2, day="Wednesday", teacher="Rohan Dahima", participants=6)


def make_run(records, options=None, roster=None):
    return ConstructionRun(
        ScheduleConstructor(),
        PerformanceAnalyzer(records),
        options or SchedulerOptions(),
        roster or TeacherRoster(),
    )


class TestTopPerformerPlacement:
    """Tests for placing historic top performers at their own slot."""

    def test_places_class_at_historic_slot(self, single_slot_records):
        schedule = construct(single_slot_records)

        assert len(schedule) == 1
        cls = schedule[0]
        assert cls.class_format == "Studio Barre 57"
        assert (cls.location, cls.day, cls.time) == (STANDARD_LOCATION, "Monday", "08:00")
        assert cls.teacher == "Anisha Shah"
        assert cls.participants == 9.0
        assert cls.revenue == 4500.0
        assert cls.is_top_performer
        assert cls.studio_assigned == "Main Studio"

    def test_class_id(self, single_slot_records):
        schedule = construct(single_slot_records, options=SchedulerOptions(iteration=3))
        assert schedule[0].id == "top-Kenkere House-Monday-08:00-Studio Barre 57-3"

    def test_top_performer_flag_threshold(self, repeat_record):
        schedule = construct(repeat_record(2, participants=8))
        assert not schedule[0].is_top_performer

    def test_skipping_top_performers_leaves_gap_filling(self, single_slot_records):
        options = SchedulerOptions(prioritize_top_performers=False)
        schedule = construct(single_slot_records, options=options)
        assert len(schedule) == 1
        assert schedule[0].id.startswith("fill-")

    def test_excluded_teacher(self, single_slot_records):
        options = SchedulerOptions(excluded_teachers=["anisha shah"])
        schedule = construct(single_slot_records, options=options)
        assert schedule[0].teacher == "Rohan Dahima"

    def test_accepts_attendance_frame(self, attendance_frame):
        schedule = construct(attendance_frame)
        assert sorted((c.class_format, c.day, c.time) for c in schedule) == [
            ("Studio Barre 57", "Monday", "08:00"),
            ("Studio Mat 57", "Tuesday", "18:00"),
        ]

    def test_accepts_raw_dicts(self):
        rows = [
            {
                "class_format": "Studio Barre 57",
                "location": STANDARD_LOCATION,
                "day": "Mon",
                "time": "6:00 PM",
                "teacher_name": "Anisha Shah",
                "participants": 9,
            }
        ] * 2
        schedule = construct(rows)
        assert [(c.day, c.time) for c in schedule] == [("Monday", "18:00")]


class TestStudioCapacity:
    """Tests for studio capacity during construction."""

    def test_never_exceeds_parallel_limit(self, crowded_slot_records):
        schedule = construct(crowded_slot_records)
        assert sorted(c.class_format for c in schedule) == ["Studio Barre 57", "Studio Mat 57"]
        assert all(c.time == "08:00" for c in schedule)
        assert {c.studio_assigned for c in schedule} == {"Main Studio", "Secondary Studio"}

    def test_displaced_class_moves_to_next_free_time(self, crowded_slot_records):
        options = SchedulerOptions(minimize_trainers_per_shift=False)
        schedule = construct(crowded_slot_records, options=options)

        moved = [c for c in schedule if c.class_format == "Studio FIT"]
        assert len(moved) == 1
        assert moved[0].time == "09:00"
        assert validate(schedule).is_valid

    def test_no_alternative_times(self, crowded_slot_records):
        options = SchedulerOptions(
            minimize_trainers_per_shift=False, probe_alternative_times=False
        )
        schedule = construct(crowded_slot_records, options=options)
        assert len(schedule) == 2


class TestAnchors:
    """Tests for the weekday anchor phase."""

    def test_anchor_placed_once(self, anchor_records):
        schedule = construct(anchor_records)
        assert len(schedule) == 1
        assert schedule[0].id.startswith("anchor-")
        assert schedule[0].location == PRIMARY_LOCATION
        assert schedule[0].time == "07:30"

    def test_weekend_has_no_anchor(self, repeat_record):
        records = repeat_record(2, location=PRIMARY_LOCATION, day="Saturday", time="07:30")
        schedule = construct(records)
        assert schedule[0].id.startswith("top-")


class TestPlacementRules:
    """Tests for location, time and teacher rules during construction."""

    def test_restricted_time_skipped(self, repeat_record):
        assert construct(repeat_record(2, time="13:00")) == []

    def test_restriction_can_be_disabled(self, repeat_record):
        options = SchedulerOptions(respect_time_restrictions=False)
        schedule = construct(repeat_record(2, time="13:00"), options=options)
        assert [c.time for c in schedule] == ["13:00"]

    def test_weekend_band_ends_earlier(self, repeat_record):
        schedule = construct(repeat_record(2, day="Saturday", time="16:30"))
        assert [c.time for c in schedule] == ["16:30"]

    def test_cycling_only_at_flagship(self, repeat_record, flagship_records):
        assert construct(repeat_record(2, class_format="Studio PowerCycle")) == []
        schedule = construct(flagship_records)
        assert [c.location for c in schedule] == [FLAGSHIP_LOCATION]

    def test_no_amped_up_at_flagship(self, repeat_record):
        records = repeat_record(2, class_format="Studio Amped Up!", location=FLAGSHIP_LOCATION)
        assert construct(records) == []

    def test_hosted_classes_never_scheduled(self, repeat_record):
        records = repeat_record(
            2, class_format="Hosted Class - Corporate", time="18:30", participants=25
        )
        assert construct(records) == []

    def test_new_trainer_format_allow_list(self, repeat_record):
        options = SchedulerOptions(new_trainers=["Anisha Shah"])
        assert construct(repeat_record(2, class_format="Studio FIT"), options=options) == []
        assert len(construct(repeat_record(2), options=options)) == 1

    def test_new_trainer_from_roster(self, repeat_record):
        roster = [{"name": "Anisha Shah", "is_new": True}]
        assert construct(repeat_record(2, class_format="Studio FIT"), teachers=roster) == []

    def test_roster_blackout(self, repeat_record):
        roster = [{"name": "Anisha Shah", "unavailable": {"Mon": []}}]
        assert construct(repeat_record(2), teachers=roster) == []

    def test_configured_format_rules_reach_top_performers(self, repeat_record):
        records = repeat_record(2, class_format="Studio PowerCycle")
        schedule = ScheduleConstructor(format_rules=()).construct(records)
        assert len(schedule) == 1
        assert schedule[0].id.startswith("top-")


class TestTeacherHours:
    """Tests for weekly hour caps during construction."""

    def test_teacher_at_cap_is_skipped(self, three_day_records):
        options = SchedulerOptions(max_weekly_hours=2)
        schedule = construct(three_day_records, options=options)
        assert sorted(c.day for c in schedule) == ["Monday", "Tuesday"]
        assert all(c.teacher == "Anisha Shah" for c in schedule)

    def test_teacher_fallback(self, three_day_records):
        options = SchedulerOptions(max_weekly_hours=2, allow_teacher_fallback=True)
        schedule = construct(three_day_records, options=options)
        by_day = {c.day: c.teacher for c in schedule}
        assert by_day == {
            "Monday": "Anisha Shah",
            "Tuesday": "Anisha Shah",
            "Wednesday": "Rohan Dahima",
        }

    def test_roster_cap_override(self, three_day_records):
        roster = [TeacherProfile(name="Anisha Shah", max_weekly_hours=1)]
        schedule = construct(three_day_records, teachers=roster)
        assert [c.day for c in schedule] == ["Monday"]

    def test_roster_cap_cannot_raise_limit(self, three_day_records):
        roster = [TeacherProfile(name="Anisha Shah", max_weekly_hours=30)]
        options = SchedulerOptions(max_weekly_hours=2)
        schedule = construct(three_day_records, teachers=roster, options=options)
        assert sorted(c.day for c in schedule) == ["Monday", "Tuesday"]
        violations = find_trainer_hour_violations(
            schedule, max_weekly_hours=2, roster=TeacherRoster(roster)
        )
        assert violations == []


class TestDaysOffRepair:
    """Tests for the days-off repair phase."""

    def test_lightest_earliest_days_removed(self, repeat_record):
        days = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
        records = []
        for i, day in enumerate(days):
            records += repeat_record(2, day=day, participants=20 - i)

        schedule = construct(records)
        assert [c.day for c in schedule] == days[2:]

    def test_heavier_day_kept(self, repeat_record):
        days = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
        records = []
        for day in days:
            records += repeat_record(2, day=day, participants=10)
        records += repeat_record(2, day="Monday", time="10:00", participants=10)

        schedule = construct(records)
        remaining = {c.day for c in schedule}
        assert "Monday" in remaining
        assert remaining.isdisjoint({"Tuesday", "Wednesday"})


class TestConstructionRun:
    """Tests for ConstructionRun helpers."""

    def test_duplicate_ids_get_suffix(self):
        run = make_run([])
        first = run._next_id("top", STANDARD_LOCATION, "Monday", "08:00", "Studio Barre 57")
        second = run._next_id("top", STANDARD_LOCATION, "Monday", "08:00", "Studio Barre 57")
        assert first != second
        assert second == f"{first}-2"

    def test_weekly_cap(self):
        roster = TeacherRoster(
            [
                TeacherProfile(name="Rohan Dahima", max_weekly_hours=8),
                TeacherProfile(name="Pranjali Jain", is_new=True),
                TeacherProfile(name="Anisha Shah", max_weekly_hours=30),
                TeacherProfile(name="Neha Mehta", is_new=True, max_weekly_hours=12),
            ]
        )
        run = make_run([], SchedulerOptions(new_trainers=["Reshma Sharma"]), roster)
        assert run.weekly_cap("Anisha Shah") == 15
        assert run.weekly_cap("Rohan Dahima") == 8
        assert run.weekly_cap("Pranjali Jain") == 10
        assert run.weekly_cap("Neha Mehta") == 10
        assert run.weekly_cap("reshma  sharma") == 10

    def test_best_teacher_only_by_default(self, crowded_slot_records, repeat_record):
        records = repeat_record(2, teacher="Rohan Dahima", participants=6) + crowded_slot_records
        run = make_run(records)
        barre = next(
            agg
            for agg in run.analyzer.get_top_performing_classes()
            if agg.class_format == "Studio Barre 57"
        )
        assert run.teachers_for(barre) == ["Anisha Shah"]

    def test_fallbacks_least_booked_first(self, repeat_record, make_class):
        records = (
            repeat_record(2, teacher="Anisha Shah", participants=12)
            + repeat_record(2, teacher="Rohan Dahima", participants=10)
            + repeat_record(2, teacher="Pranjali Jain", participants=8)
        )
        run = make_run(records, SchedulerOptions(allow_teacher_fallback=True))
        run.ledger.reserve(make_class(teacher="Rohan Dahima", day="Tuesday"))
        aggregate = run.analyzer.get_top_performing_classes()[0]
        assert run.teachers_for(aggregate) == ["Anisha Shah", "Pranjali Jain", "Rohan Dahima"]

        run.options.optimize_teacher_hours = False
        assert run.teachers_for(aggregate) == ["Anisha Shah", "Rohan Dahima", "Pranjali Jain"]

    def test_evening_slots_first_when_underrepresented(self, make_class):
        run = make_run([])
        run.draft.append(make_class())
        assert run._slot_times(STANDARD_LOCATION, "Monday")[0] == "17:30"

        run.options.balance_shifts = False
        assert run._slot_times(STANDARD_LOCATION, "Monday")[0] == "07:00"

    def test_custom_time_slots(self):
        run = make_run([], SchedulerOptions(time_slots=["09:00"], balance_shifts=False))
        assert run._slot_times(STANDARD_LOCATION, "Monday") == ["09:00"]


class TestScheduleInvariants:
    """Properties every constructed schedule must hold."""

    @pytest.fixture
    def schedule(self, week_records):
        return construct(week_records)

    def test_not_empty(self, schedule):
        assert len(schedule) > 0

    def test_no_studio_conflicts(self, schedule):
        assert validate(schedule).conflicts == []

    def test_trainer_rules_hold(self, schedule):
        assert find_trainer_hour_violations(schedule) == []
        assert find_trainer_rule_violations(schedule) == []
        assert find_shift_trainer_violations(schedule) == []

    def test_placement_rules_hold(self, schedule):
        for cls in schedule:
            assert not is_hosted_class(cls.class_format)
            assert not is_time_restricted(cls.time, cls.day)
            assert is_class_allowed_at_location(cls.class_format, cls.location)

    def test_ids_unique(self, schedule):
        ids = [c.id for c in schedule]
        assert len(ids) == len(set(ids))

    def test_one_format_per_slot(self, schedule):
        keys = [(c.location, c.day, c.time, c.class_format) for c in schedule]
        assert len(keys) == len(set(keys))

    def test_deterministic(self, week_records, schedule):
        again = construct(week_records)
        assert [c.to_dict() for c in again] == [c.to_dict() for c in schedule]

    def test_runs_share_no_state(self, week_records, single_slot_records):
        constructor = ScheduleConstructor()
        first = constructor.construct(week_records)
        constructor.construct(single_slot_records)
        assert [c.to_dict() for c in constructor.construct(week_records)] == [
            c.to_dict() for c in first
        ]


class TestEmptyInput:
    """Tests for inputs that yield no schedule."""

    def test_no_records(self):
        assert construct([]) == []

    def test_all_below_threshold(self, repeat_record):
        assert construct(repeat_record(3, participants=3)) == []

    def test_infinite_duration_row_ignored(self):
        df = pd.DataFrame(
            {
                "class_format": ["Studio Barre 57"] * 3,
                "location": ["Kenkere House"] * 3,
                "day": ["Monday"] * 3,
                "time": ["08:00"] * 3,
                "teacher_name": ["Anisha Shah"] * 3,
                "participants": [10, 10, 10],
                "duration": ["1", "1", "inf"],
            }
        )
        schedule = construct(df)
        assert len(schedule) == 1
        assert schedule[0].hours == 1.0


class TestCoerceRoster:
    """Tests for coerce_roster function."""

    def test_none(self):
        assert coerce_roster(None).teachers == []

    def test_mixed_entries(self):
        roster = coerce_roster(
            [
                "Anisha  Shah",
                {"name": "Rohan Dahima", "is_new": True},
                TeacherProfile(name="Pranjali Jain"),
            ]
        )
        assert roster.names == ["Anisha Shah", "Rohan Dahima", "Pranjali Jain"]
        assert roster.new_trainers() == {"Rohan Dahima"}
