"""Alternate schedule suggestions from a remote service.

A remote suggestion is treated exactly like a locally constructed draft:
it is trimmed, validated, and replaced by the local constructor whenever
the remote side fails.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Iterable

import pandas as pd

from ..exceptions import SuggestionError
from ..models import HistoricClassRecord
from .analyzer import PerformanceAnalyzer
from .constructor import ScheduleConstructor, coerce_records, coerce_roster
from .models import ScheduledClass, SchedulerOptions, TeacherRoster, ValidationResult
from .studios import StudioCapacityTable
from .validator import trim_trainer_overhours, validate

logger = logging.getLogger(__name__)

FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$")

SOURCE_REMOTE = "remote"
SOURCE_LOCAL = "local"


class ScheduleSuggester(ABC):
    """Source of a complete candidate schedule."""

    @abstractmethod
    def suggest(
        self,
        records: list[HistoricClassRecord],
        roster: TeacherRoster,
        options: SchedulerOptions,
    ) -> list[ScheduledClass]:
        """Produce a candidate schedule.

        Raises:
            SuggestionError: If no usable schedule could be produced
        """
        pass


class PromptSuggester(ScheduleSuggester):
    """Suggester that sends a text prompt through a caller-supplied transport.

    The transport takes the prompt and returns the raw response text or
    bytes. Any exception it raises is re-raised as SuggestionError.
    """

    def __init__(
        self,
        transport: Callable[[str], str | bytes],
        studios: StudioCapacityTable | None = None,
        top_limit: int = 20,
    ) -> None:
        self.transport = transport
        self.studios = studios or StudioCapacityTable()
        self.top_limit = top_limit

    def build_prompt(
        self,
        records: list[HistoricClassRecord],
        roster: TeacherRoster,
        options: SchedulerOptions,
    ) -> str:
        """Describe the scheduling rules and top classes as a prompt."""
        analyzer = PerformanceAnalyzer(records)
        top = analyzer.get_top_performing_classes(
            min_average=options.min_average, by_teacher=True
        )[: self.top_limit]

        lines = [
            "Create an optimized weekly fitness class schedule.",
            "",
            "Studio capacity:",
        ]
        for location in self.studios.locations:
            lines.append(
                f"- {location}: at most {self.studios.parallel_limit(location)} parallel classes "
                f"({', '.join(self.studios.studios(location))})"
            )
        lines += [
            "",
            "Trainer rules:",
            f"- At most {options.max_weekly_hours:g} hours per week "
            f"({options.new_trainer_weekly_hours:g} for new trainers)",
            "- One location and one shift (morning or evening) per day",
            "- At least 2 days off per week",
            "- No classes starting between 12:30 and 17:00 on weekdays or 16:00 on weekends",
            "",
            "Top performing classes:",
        ]
        lines += [
            f"- {agg.class_format} with {agg.teacher} at {agg.location}, {agg.day} {agg.time}: "
            f"{agg.avg_participants} avg participants over {agg.frequency} classes"
            for agg in top
        ]

        excluded = set(options.excluded_teachers)
        teachers = [t for t in roster.names or analyzer.unique_teachers() if t not in excluded]
        if teachers:
            lines += ["", f"Available trainers: {', '.join(teachers)}"]
        new_trainers = sorted(set(options.new_trainers) | roster.new_trainers())
        if new_trainers:
            lines.append(f"New trainers: {', '.join(new_trainers)}")

        lines += [
            "",
            'Respond with JSON only: {"optimizedSchedule": [{"day", "time", "location", '
            '"classFormat", "teacherFirstName", "teacherLastName", "duration", '
            '"expectedParticipants", "expectedRevenue", "isTopPerformer", "studioAssigned"}]}',
            f"Variation: {options.iteration}",
        ]
        return "\n".join(lines)

    def parse_response(self, text: str | bytes, iteration: int = 0) -> list[ScheduledClass]:
        """Parse an `optimizedSchedule` JSON payload.

        Raises:
            SuggestionError: If the payload is not JSON or holds no usable classes
        """
        if isinstance(text, bytes):
            try:
                text = text.decode("utf-8")
            except UnicodeDecodeError as e:
                raise SuggestionError(f"Response is not UTF-8 text: {e}") from e
        if not isinstance(text, str):
            raise SuggestionError(f"Response is not text: {type(text).__name__}")

        try:
            data = json.loads(FENCE_PATTERN.sub("", text.strip()))
        except json.JSONDecodeError as e:
            raise SuggestionError(f"Response is not valid JSON: {e}") from e

        entries = data.get("optimizedSchedule") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            raise SuggestionError("Response has no optimizedSchedule list")

        schedule = []
        for i, entry in enumerate(entries):
            try:
                schedule.append(
                    ScheduledClass.from_dict(entry, default_id=f"suggested-{i}-{iteration}")
                )
            except (ValueError, TypeError, AttributeError) as e:
                logger.debug(f"Skipping suggested entry {i}: {e}")

        seen: set[str] = set()
        for i, cls in enumerate(schedule):
            if cls.id in seen:
                cls.id = f"{cls.id}-{i}"
            seen.add(cls.id)
        return schedule

    def suggest(
        self,
        records: list[HistoricClassRecord],
        roster: TeacherRoster,
        options: SchedulerOptions,
    ) -> list[ScheduledClass]:
        prompt = self.build_prompt(records, roster, options)
        try:
            response = self.transport(prompt)
        except Exception as e:
            raise SuggestionError(f"Transport failed: {e.__class__.__name__}: {e}") from e
        return self.parse_response(response, options.iteration)


@dataclass
class SuggestionOutcome:
    """Schedule handed back to the caller, with where it came from.

    Attributes:
        schedule: Accepted draft
        validation: Validator output for the draft
        source: "remote" or "local"
        fallback_reason: Why the remote suggestion was not used, if it was not
    """

    schedule: list[ScheduledClass] = field(default_factory=list)
    validation: ValidationResult = field(default_factory=ValidationResult)
    source: str = SOURCE_LOCAL
    fallback_reason: str | None = None

    @property
    def used_fallback(self) -> bool:
        return self.fallback_reason is not None


def suggest_schedule(
    historic_data: Iterable[HistoricClassRecord] | pd.DataFrame,
    suggester: ScheduleSuggester | None = None,
    teachers: TeacherRoster | Iterable | None = None,
    options: SchedulerOptions | None = None,
    constructor: ScheduleConstructor | None = None,
) -> SuggestionOutcome:
    """Get a schedule from the remote suggester, falling back to local construction.

    Args:
        historic_data: Historic records, or a raw attendance frame
        suggester: Remote suggester; None means local construction only
        teachers: Optional roster
        options: Run switches and thresholds
        constructor: Local constructor; defaults to the built-in configuration

    Returns:
        SuggestionOutcome with the validated draft
    """
    options = options or SchedulerOptions()
    constructor = constructor or ScheduleConstructor()
    records = coerce_records(historic_data)
    roster = coerce_roster(teachers)
    new_trainers = list(options.new_trainers) + sorted(roster.new_trainers())

    fallback_reason: str | None = None
    if suggester is not None:
        try:
            schedule = suggester.suggest(records, roster, options)
            if not schedule:
                raise SuggestionError("Remote suggester returned an empty schedule")
        except (SuggestionError, OSError, ValueError) as e:
            fallback_reason = str(e) or e.__class__.__name__
            logger.warning(f"Remote suggestion failed, using local optimization: {fallback_reason}")
        else:
            schedule = trim_trainer_overhours(
                schedule,
                new_trainers,
                options.max_weekly_hours,
                options.new_trainer_weekly_hours,
                roster=roster,
            )
            return SuggestionOutcome(
                schedule=schedule,
                validation=validate(schedule, constructor.tracker.table),
                source=SOURCE_REMOTE,
            )

    schedule = constructor.construct(records, roster, options)
    return SuggestionOutcome(
        schedule=schedule,
        validation=validate(schedule, constructor.tracker.table),
        source=SOURCE_LOCAL,
        fallback_reason=fallback_reason,
    )
