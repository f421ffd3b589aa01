"""Tests for schedule validation."""

from studio_scheduler.scheduler.constants import (
    FLAGSHIP_LOCATION,
    PRIMARY_LOCATION,
    STANDARD_LOCATION,
)
from studio_scheduler.scheduler.models import TeacherProfile, TeacherRoster
from studio_scheduler.scheduler.studios import StudioCapacityTable
from studio_scheduler.scheduler.validator import (
    compute_metrics,
    find_capacity_conflicts,
    find_shift_trainer_violations,
    find_trainer_hour_violations,
    find_trainer_rule_violations,
    review_schedule,
    teacher_hours,
    trim_trainer_overhours,
    validate,
)


class TestValidate:
    """Tests for studio capacity validation."""

    def test_empty_schedule(self):
        result = validate([])
        assert result.is_valid
        assert result.conflicts == []
        assert result.suggestions == []

    def test_three_overlapping_at_two_studio_location(self, make_class):
        schedule = [
            make_class(id="a", time="08:00"),
            make_class(id="b", time="08:00", class_format="Studio Mat 57"),
            make_class(id="c", time="08:30", class_format="Studio FIT"),
        ]
        result = validate(schedule)
        assert result.conflicts == [
            "Kenkere House on Monday at 08:00: 3 overlapping classes exceed capacity of 2 studios"
        ]

    def test_two_overlapping_is_valid(self, make_class):
        schedule = [make_class(id="a"), make_class(id="b")]
        assert validate(schedule).is_valid

    def test_back_to_back_is_valid(self, make_class):
        schedule = [
            make_class(id="a", time="08:00"),
            make_class(id="b", time="08:00"),
            make_class(id="c", time="09:00"),
            make_class(id="d", time="09:00"),
        ]
        assert validate(schedule).is_valid

    def test_chained_overlap(self, make_class):
        schedule = [
            make_class(id="a", time="08:00"),
            make_class(id="b", time="08:30"),
            make_class(id="c", time="09:00"),
        ]
        conflicts = validate(schedule).conflicts
        assert len(conflicts) == 1
        assert "at 08:30: 3 overlapping" in conflicts[0]

    def test_flagship_capacity(self, make_class):
        three = [make_class(id=str(i), location=FLAGSHIP_LOCATION) for i in range(3)]
        assert validate(three).is_valid

        four = three + [make_class(id="x", location=FLAGSHIP_LOCATION)]
        conflicts = validate(four).conflicts
        assert len(conflicts) == 1
        assert "4 overlapping classes exceed capacity of 3 studios" in conflicts[0]

    def test_primary_location_override(self, make_class):
        schedule = [make_class(id=str(i), location=PRIMARY_LOCATION) for i in range(3)]
        conflicts = validate(schedule).conflicts
        assert len(conflicts) == 1
        assert "capacity of 2 studios" in conflicts[0]

    def test_separate_days_and_locations(self, make_class):
        schedule = [
            make_class(id="a"),
            make_class(id="b"),
            make_class(id="c", day="Tuesday"),
            make_class(id="d", location=FLAGSHIP_LOCATION),
        ]
        assert validate(schedule).is_valid

    def test_unknown_location(self, make_class):
        conflicts = validate([make_class(location="Pop-up Studio")]).conflicts
        assert conflicts == ["Pop-up Studio on Monday: no studios configured for this location"]

    def test_custom_table(self, make_class):
        table = StudioCapacityTable({STANDARD_LOCATION: {"Only Studio": 10}})
        conflicts = find_capacity_conflicts([make_class(id="a"), make_class(id="b")], table)
        assert "capacity of 1 studios" in conflicts[0]

    def test_idempotent(self, make_class):
        schedule = [make_class(id=str(i)) for i in range(3)]
        first = validate(schedule)
        second = validate(schedule)
        assert first.conflicts == second.conflicts
        assert len(schedule) == 3


class TestTrainerHourViolations:
    """Tests for weekly and daily hour checks."""

    def test_weekly_cap(self, make_class):
        schedule = [
            make_class(id=day, day=day, time="07:00", duration="4")
            for day in ["Monday", "Tuesday", "Wednesday", "Thursday"]
        ]
        assert teacher_hours(schedule) == {"Anisha Shah": 16.0}
        assert find_trainer_hour_violations(schedule) == [
            "Anisha Shah: 16 hours exceeds the 15-hour weekly limit"
        ]

    def test_new_trainer_cap(self, make_class):
        schedule = [
            make_class(id=day, day=day, time="07:00", duration="3")
            for day in ["Monday", "Tuesday", "Wednesday", "Thursday"]
        ]
        assert find_trainer_hour_violations(schedule) == []
        violations = find_trainer_hour_violations(schedule, new_trainers=["anisha shah"])
        assert violations == ["Anisha Shah: 12 hours exceeds the 10-hour weekly limit"]

    def test_roster_lowers_cap(self, make_class):
        schedule = [
            make_class(id=day, day=day, time="07:00", duration="3")
            for day in ["Monday", "Tuesday", "Wednesday", "Thursday"]
        ]
        roster = TeacherRoster([TeacherProfile(name="Anisha Shah", max_weekly_hours=8)])
        assert find_trainer_hour_violations(schedule, roster=roster) == [
            "Anisha Shah: 12 hours exceeds the 8-hour weekly limit"
        ]

    def test_roster_cannot_raise_cap(self, make_class):
        schedule = [
            make_class(id=day, day=day, time="07:00", duration="4")
            for day in ["Monday", "Tuesday", "Wednesday", "Thursday"]
        ]
        roster = TeacherRoster([TeacherProfile(name="Anisha Shah", max_weekly_hours=30)])
        assert find_trainer_hour_violations(schedule, roster=roster) == [
            "Anisha Shah: 16 hours exceeds the 15-hour weekly limit"
        ]

    def test_new_trainer_from_roster(self, make_class):
        schedule = [
            make_class(id=day, day=day, time="07:00", duration="3")
            for day in ["Monday", "Tuesday", "Wednesday", "Thursday"]
        ]
        roster = TeacherRoster([TeacherProfile(name="Anisha Shah", is_new=True)])
        review = review_schedule(schedule, roster=roster)
        expected = "Anisha Shah: 12 hours exceeds the 10-hour weekly limit"
        assert expected in review.trainer_violations

    def test_daily_cap(self, make_class):
        schedule = [
            make_class(id="a", time="07:00", duration="3"),
            make_class(id="b", time="10:00", duration="2"),
        ]
        assert find_trainer_hour_violations(schedule) == [
            "Anisha Shah: 5 hours on Monday exceeds the 4-hour daily limit"
        ]


class TestTrainerRuleViolations:
    """Tests for location, shift and days-off checks."""

    def test_two_locations_in_a_day(self, make_class):
        schedule = [
            make_class(id="a"),
            make_class(id="b", time="10:00", location=FLAGSHIP_LOCATION),
        ]
        assert find_trainer_rule_violations(schedule) == [
            "Anisha Shah: teaches at 2 locations on Monday"
        ]

    def test_both_shifts(self, make_class):
        schedule = [make_class(id="a"), make_class(id="b", time="18:00")]
        assert find_trainer_rule_violations(schedule) == ["Anisha Shah: works both shifts on Monday"]

    def test_too_few_days_off(self, make_class):
        days = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
        schedule = [make_class(id=day, day=day) for day in days]
        assert find_trainer_rule_violations(schedule) == [
            "Anisha Shah: only 1 days off (minimum 2)"
        ]

    def test_clean_schedule(self, make_class):
        schedule = [make_class(id="a"), make_class(id="b", time="10:00")]
        assert find_trainer_rule_violations(schedule) == []


class TestShiftTrainerViolations:
    """Tests for the trainers-per-shift check."""

    def test_too_many_trainers(self, make_class):
        schedule = [
            make_class(id="a", teacher="Anisha Shah"),
            make_class(id="b", teacher="Rohan Dahima"),
            make_class(id="c", time="10:00", teacher="Pranjali Jain"),
        ]
        assert find_shift_trainer_violations(schedule) == [
            "Kenkere House on Monday (morning): 3 trainers exceed the limit of 2"
        ]

    def test_flagship_allows_three(self, make_class):
        schedule = [
            make_class(id=str(i), time="10:00", location=FLAGSHIP_LOCATION, teacher=name)
            for i, name in enumerate(["Anisha Shah", "Rohan Dahima", "Pranjali Jain"])
        ]
        assert find_shift_trainer_violations(schedule) == []

    def test_shifts_counted_separately(self, make_class):
        schedule = [
            make_class(id="a", teacher="Anisha Shah"),
            make_class(id="b", teacher="Rohan Dahima"),
            make_class(id="c", time="18:00", teacher="Pranjali Jain"),
        ]
        assert find_shift_trainer_violations(schedule) == []


class TestTrimTrainerOverhours:
    """Tests for trim_trainer_overhours function."""

    def test_drops_least_attended(self, make_class):
        schedule = [
            make_class(id=day, day=day, time="07:00", duration="4", participants=p)
            for day, p in [("Monday", 10), ("Tuesday", 5), ("Wednesday", 12), ("Thursday", 8)]
        ]
        trimmed = trim_trainer_overhours(schedule)
        assert [c.id for c in trimmed] == ["Monday", "Wednesday", "Thursday"]
        assert len(schedule) == 4

    def test_under_cap_untouched(self, make_class):
        schedule = [make_class(id="a"), make_class(id="b", day="Tuesday")]
        assert trim_trainer_overhours(schedule) == schedule

    def test_new_trainer_cap(self, make_class):
        schedule = [
            make_class(id=day, day=day, time="07:00", duration="3", participants=p)
            for day, p in [("Monday", 10), ("Tuesday", 5), ("Wednesday", 12), ("Thursday", 8)]
        ]
        trimmed = trim_trainer_overhours(schedule, new_trainers=["Anisha Shah"])
        assert [c.id for c in trimmed] == ["Monday", "Wednesday", "Thursday"]

    def test_roster_cap_above_limit_still_trims(self, make_class):
        schedule = [
            make_class(id=day, day=day, time="07:00", duration="4", participants=p)
            for day, p in [("Monday", 10), ("Tuesday", 5), ("Wednesday", 12), ("Thursday", 8)]
        ]
        roster = TeacherRoster([TeacherProfile(name="Anisha Shah", max_weekly_hours=30)])
        trimmed = trim_trainer_overhours(schedule, roster=roster)
        assert [c.id for c in trimmed] == ["Monday", "Wednesday", "Thursday"]


class TestMetricsAndReview:
    """Tests for compute_metrics and review_schedule."""

    def test_metrics(self, make_class):
        schedule = [
            make_class(id="a", participants=10),
            make_class(id="b", time="18:00", teacher="Rohan Dahima", participants=6),
            make_class(id="c", day="Tuesday", time="09:00", location=FLAGSHIP_LOCATION, participants=12),
        ]
        metrics = compute_metrics(schedule)
        assert metrics.total_classes == 3
        assert metrics.total_revenue == 14000
        assert metrics.total_participants == 28
        assert (metrics.morning_classes, metrics.evening_classes) == (2, 1)
        assert metrics.shift_balance == 50
        assert metrics.unique_trainers == 2
        assert metrics.avg_trainer_hours == 1.5
        assert metrics.trainers_below_target == ["Anisha Shah", "Rohan Dahima"]
        assert metrics.by_location == {STANDARD_LOCATION: 2, FLAGSHIP_LOCATION: 1}

    def test_empty_metrics(self):
        metrics = compute_metrics([])
        assert metrics.total_classes == 0
        assert metrics.avg_trainer_hours == 0
        assert metrics.shift_balance == 0

    def test_clean_review(self, make_class):
        review = review_schedule([make_class(id="a"), make_class(id="b", day="Tuesday")])
        assert review.is_acceptable
        data = review.to_dict()
        assert data["conflicts"] == []
        assert data["metrics"]["total_classes"] == 2

    def test_review_collects_problems(self, make_class):
        schedule = [
            make_class(id="a"),
            make_class(id="b", teacher="Rohan Dahima"),
            make_class(id="c", time="08:30", teacher="Pranjali Jain"),
            make_class(id="d", time="18:00"),
        ]
        review = review_schedule(schedule)
        assert not review.is_acceptable
        assert len(review.validation.conflicts) == 1
        assert "Anisha Shah: works both shifts on Monday" in review.trainer_violations
        assert len(review.shift_trainer_violations) == 1
