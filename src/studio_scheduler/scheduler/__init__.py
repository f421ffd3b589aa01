"""Weekly fitness class schedule generation and validation.

This package builds a weekly timetable from historic attendance with a
deterministic greedy constructor and checks any timetable against studio
capacity and trainer rules.

Main classes:
- ScheduleConstructor: Four-phase greedy constructor
- PerformanceAnalyzer: Historic per-slot statistics
- StudioAvailabilityTracker: Free-studio lookups against a schedule
- ConfigLoader: Loads configuration from reference/ directory

Usage:
    from studio_scheduler.scheduler import construct, validate

    schedule = construct(records, options=SchedulerOptions(iteration=1))
    result = validate(schedule)
    if not result.is_valid:
        print("\\n".join(result.conflicts))
"""

from .analyzer import PerformanceAnalyzer, get_top_performing_classes
from .config import ConfigLoader
from .constants import (
    ALL_DAYS,
    FLAGSHIP_LOCATION,
    LOCATIONS,
    PRIMARY_LOCATION,
    STANDARD_LOCATION,
    TIME_SLOTS,
    WEEKDAYS,
    WEEKEND_DAYS,
    Shift,
)
from .constructor import ConstructionRun, ScheduleConstructor, construct
from .ledger import ShiftOccupancy, TeacherHoursLedger, check_teacher_eligibility
from .models import (
    PerformanceAggregate,
    ScheduledClass,
    ScheduleMetrics,
    ScheduleReview,
    SchedulerOptions,
    SlotKey,
    TeacherProfile,
    TeacherRoster,
    ValidationResult,
)
from .rules import (
    RestrictionPolicy,
    get_shift,
    is_class_allowed_at_location,
    is_format_allowed_for_new_trainer,
    is_hosted_class,
    is_time_restricted,
    max_trainers_per_shift,
)
from .studios import (
    StudioAvailabilityTracker,
    StudioCapacityTable,
    class_end_time,
    times_overlap,
)
from .suggestions import (
    PromptSuggester,
    ScheduleSuggester,
    SuggestionOutcome,
    suggest_schedule,
)
from .validator import (
    compute_metrics,
    find_shift_trainer_violations,
    find_trainer_hour_violations,
    find_trainer_rule_violations,
    review_schedule,
    teacher_hours,
    trim_trainer_overhours,
    validate,
)

__all__ = [
    # Entry points
    "construct",
    "validate",
    "suggest_schedule",
    "review_schedule",
    # Construction
    "ScheduleConstructor",
    "ConstructionRun",
    "PerformanceAnalyzer",
    "get_top_performing_classes",
    "TeacherHoursLedger",
    "ShiftOccupancy",
    "check_teacher_eligibility",
    # Studios
    "StudioAvailabilityTracker",
    "StudioCapacityTable",
    "class_end_time",
    "times_overlap",
    # Suggestions
    "ScheduleSuggester",
    "PromptSuggester",
    "SuggestionOutcome",
    # Configuration
    "ConfigLoader",
    # Models
    "PerformanceAggregate",
    "ScheduledClass",
    "ScheduleMetrics",
    "ScheduleReview",
    "SchedulerOptions",
    "SlotKey",
    "TeacherProfile",
    "TeacherRoster",
    "ValidationResult",
    # Rules
    "RestrictionPolicy",
    "get_shift",
    "is_class_allowed_at_location",
    "is_format_allowed_for_new_trainer",
    "is_hosted_class",
    "is_time_restricted",
    "max_trainers_per_shift",
    # Validation helpers
    "compute_metrics",
    "find_shift_trainer_violations",
    "find_trainer_hour_violations",
    "find_trainer_rule_violations",
    "teacher_hours",
    "trim_trainer_overhours",
    # Constants
    "ALL_DAYS",
    "FLAGSHIP_LOCATION",
    "LOCATIONS",
    "PRIMARY_LOCATION",
    "STANDARD_LOCATION",
    "TIME_SLOTS",
    "WEEKDAYS",
    "WEEKEND_DAYS",
    "Shift",
]
