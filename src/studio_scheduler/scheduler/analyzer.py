"""Historic performance aggregation.

Aggregates are recomputed from the full record set on every run and are
never persisted.
"""

import logging
from collections import defaultdict
from typing import Iterable

import pandas as pd

from ..loader import records_to_frame
from ..models import HistoricClassRecord
from ..normalization import normalize_teacher_name
from .constants import TOP_MIN_AVERAGE, TOP_MIN_FREQUENCY
from .models import PerformanceAggregate, SlotKey
from .rules import (
    LOCATION_FORMAT_RULES,
    FormatRule,
    is_class_allowed_at_location,
    is_hosted_class,
)

logger = logging.getLogger(__name__)

SLOT_COLUMNS = ["class_format", "location", "day", "time"]


def _is_excluded(name: str, excluded: Iterable[str]) -> bool:
    cleaned = normalize_teacher_name(name).casefold()
    return any(cleaned == normalize_teacher_name(x).casefold() for x in excluded)


def _to_aggregates(grouped: pd.DataFrame, by_teacher: bool) -> list[PerformanceAggregate]:
    return [
        PerformanceAggregate(
            class_format=row["class_format"],
            location=row["location"],
            day=row["day"],
            time=row["time"],
            avg_participants=round(float(row["avg_participants"]), 1),
            avg_revenue=float(round(row["avg_revenue"])),
            frequency=int(row["frequency"]),
            teacher=row["teacher_name"] if by_teacher else "",
            duration=float(row["duration"]),
        )
        for row in grouped.to_dict(orient="records")
    ]


class PerformanceAnalyzer:
    """Aggregates historic class records into per-slot statistics.

    Both the slot-level and the teacher-level groupings are computed once
    on construction; every query afterwards is a lookup.
    """

    def __init__(self, records: Iterable[HistoricClassRecord]) -> None:
        df = records_to_frame(records)
        df = df[(df["class_format"] != "") & (df["time"] != "")]
        df = df.dropna(subset=["participants"])
        self.df = df

        self._by_slot = self._group(by_teacher=False)
        self._by_teacher = self._group(by_teacher=True)

        self._teachers_at: dict[tuple[str, SlotKey], list[PerformanceAggregate]] = defaultdict(list)
        for agg in _to_aggregates(self._by_teacher, by_teacher=True):
            self._teachers_at[(agg.class_format, agg.slot)].append(agg)

        self._formats_at: dict[SlotKey, list[PerformanceAggregate]] = defaultdict(list)
        for agg in _to_aggregates(self._by_slot, by_teacher=False):
            self._formats_at[agg.slot].append(agg)

        logger.debug(
            f"Aggregated {len(self.df)} records into {len(self._by_slot)} slot groups"
        )

    def _group(self, by_teacher: bool) -> pd.DataFrame:
        keys = SLOT_COLUMNS + (["teacher_name"] if by_teacher else [])
        columns = keys + ["avg_participants", "avg_revenue", "frequency", "duration"]
        if self.df.empty:
            return pd.DataFrame(columns=columns)

        grouped = (
            self.df.groupby(keys, sort=False)
            .agg(
                avg_participants=("participants", "mean"),
                avg_revenue=("revenue", "mean"),
                frequency=("participants", "size"),
                duration=("duration", "max"),
            )
            .reset_index()
        )
        # Stable sort keeps first-seen order among exact ties
        return grouped.sort_values(
            ["avg_participants", "frequency"], ascending=[False, False], kind="stable"
        ).reset_index(drop=True)

    @property
    def is_empty(self) -> bool:
        return self.df.empty

    def aggregate_performance(self, by_teacher: bool = False) -> list[PerformanceAggregate]:
        """All aggregates, best average first."""
        if by_teacher:
            return _to_aggregates(self._by_teacher, by_teacher=True)
        return _to_aggregates(self._by_slot, by_teacher=False)

    def get_top_performing_classes(
        self,
        location: str | None = None,
        min_average: float = TOP_MIN_AVERAGE,
        by_teacher: bool = False,
        min_frequency: int = TOP_MIN_FREQUENCY,
        format_rules: tuple[FormatRule, ...] = LOCATION_FORMAT_RULES,
    ) -> list[PerformanceAggregate]:
        """Ranked combinations worth scheduling.

        Args:
            location: Only consider this location
            min_average: Minimum average participants
            by_teacher: Keep teachers as separate combinations
            min_frequency: Minimum number of historic occurrences
            format_rules: Location-format rules used to drop ineligible combinations

        Returns:
            Aggregates sorted by average participants then frequency,
            both descending
        """
        grouped = self._by_teacher if by_teacher else self._by_slot
        if grouped.empty:
            return []

        mask = (grouped["frequency"] >= min_frequency) & (
            grouped["avg_participants"] >= min_average
        )
        if location is not None:
            mask &= grouped["location"] == location
        candidates = _to_aggregates(grouped[mask], by_teacher)

        return [
            agg
            for agg in candidates
            if not is_hosted_class(agg.class_format)
            and is_class_allowed_at_location(agg.class_format, agg.location, format_rules)
        ]

    def rank_teachers_for_slot(
        self,
        class_format: str,
        location: str,
        day: str,
        time: str,
        excluded: Iterable[str] = (),
    ) -> list[PerformanceAggregate]:
        """Teachers of an exact (format, location, day, time), best first."""
        excluded = list(excluded)
        return [
            agg
            for agg in self._teachers_at.get((class_format, SlotKey(location, day, time)), [])
            if agg.teacher and not _is_excluded(agg.teacher, excluded)
        ]

    def best_teacher_for_slot(
        self,
        class_format: str,
        location: str,
        day: str,
        time: str,
        excluded: Iterable[str] = (),
    ) -> str | None:
        """Teacher with the highest historic average for the exact slot."""
        ranked = self.rank_teachers_for_slot(class_format, location, day, time, excluded)
        return ranked[0].teacher if ranked else None

    def best_teacher_for_class(
        self, class_format: str, location: str, excluded: Iterable[str] = ()
    ) -> str | None:
        """Teacher with the highest average for a format at a location, any slot."""
        df = self.df[(self.df["class_format"] == class_format) & (self.df["location"] == location)]
        df = df[df["teacher_name"] != ""]
        if df.empty:
            return None

        stats = (
            df.groupby("teacher_name", sort=False)["participants"]
            .agg(["mean", "size"])
            .sort_values(["mean", "size"], ascending=[False, False], kind="stable")
        )
        excluded = list(excluded)
        for teacher in stats.index:
            if not _is_excluded(teacher, excluded):
                return teacher
        return None

    def class_average_for_slot(self, location: str, day: str, time: str) -> list[PerformanceAggregate]:
        """Formats historically run at a slot, best average first."""
        return list(self._formats_at.get(SlotKey(location, day, time), []))

    def class_counts_by_location(self) -> dict[str, dict[str, int]]:
        """Occurrences per format, per location."""
        if self.df.empty:
            return {}
        counts = self.df.groupby(["location", "class_format"], sort=False).size()
        result: dict[str, dict[str, int]] = defaultdict(dict)
        for (location, class_format), count in counts.items():
            result[location][class_format] = int(count)
        return dict(result)

    def unique_teachers(self) -> list[str]:
        """Distinct teacher names, sorted."""
        names = self.df["teacher_name"]
        return sorted(set(names[names != ""]))

    def time_slots_with_data(self, location: str | None = None, day: str | None = None) -> list[str]:
        """Distinct historic start times, sorted."""
        df = self.df
        if location is not None:
            df = df[df["location"] == location]
        if day is not None:
            df = df[df["day"] == day]
        return sorted(set(df["time"]))


def get_top_performing_classes(
    records: Iterable[HistoricClassRecord],
    location: str | None = None,
    min_average: float = TOP_MIN_AVERAGE,
    by_teacher: bool = False,
) -> list[PerformanceAggregate]:
    """Ranked top-performing combinations of a record set.

    Example:
        >>> top = get_top_performing_classes(records, min_average=6.0)
        >>> top[0].class_format, top[0].avg_participants
    """
    return PerformanceAnalyzer(records).get_top_performing_classes(
        location=location, min_average=min_average, by_teacher=by_teacher
    )
