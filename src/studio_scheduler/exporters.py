"""Export functionality for generated schedules."""

import csv
import json
import re
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path

import pandas as pd

from .scheduler.constants import ALL_DAYS
from .scheduler.models import ScheduledClass, ValidationResult

INVALID_SHEET_CHARS = re.compile(r"[\[\]:*?/\\]")


def _sorted_schedule(schedule: list[ScheduledClass]) -> list[ScheduledClass]:
    day_order = {day: i for i, day in enumerate(ALL_DAYS)}
    return sorted(
        schedule, key=lambda c: (c.location, day_order.get(c.day, len(day_order)), c.time)
    )


class BaseExporter(ABC):
    """Common interface of the schedule writers."""

    @abstractmethod
    def export(
        self,
        schedule: list[ScheduledClass],
        output_path: str | Path,
        validation: ValidationResult | None = None,
    ) -> None:
        """Export a schedule to file.

        Args:
            schedule: Scheduled classes to export
            output_path: Path to output file or directory
            validation: Validator output to include
        """
        pass


class JSONExporter(BaseExporter):
    """Write the schedule and its validation summary as one JSON document."""

    def __init__(self, indent: int = 2, ensure_ascii: bool = False):
        """Initialize exporter.

        Args:
            indent: Spaces per nesting level
            ensure_ascii: Escape non-ASCII teacher and class names
        """
        self.indent = indent
        self.ensure_ascii = ensure_ascii

    def export(
        self,
        schedule: list[ScheduledClass],
        output_path: str | Path,
        validation: ValidationResult | None = None,
    ) -> None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "generation_date": datetime.now().isoformat(),
            "total_classes": len(schedule),
            "schedule": [cls.to_dict() for cls in _sorted_schedule(schedule)],
            "validation": (validation or ValidationResult()).to_dict(),
        }
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=self.indent, ensure_ascii=self.ensure_ascii)


class CSVExporter(BaseExporter):
    """Write schedule.csv, plus conflicts.csv when there are conflicts."""

    def export(
        self,
        schedule: list[ScheduledClass],
        output_path: str | Path,
        validation: ValidationResult | None = None,
    ) -> None:
        """Export a schedule to CSV files.

        Creates two files:
        - schedule.csv: All scheduled classes
        - conflicts.csv: Validator conflicts (only when there are any)

        Args:
            schedule: Scheduled classes to export
            output_path: Path to output directory
            validation: Validator output to include
        """
        output_dir = Path(output_path)
        output_dir.mkdir(parents=True, exist_ok=True)

        self._write_csv(
            output_dir / "schedule.csv",
            [cls.to_dict() for cls in _sorted_schedule(schedule)],
        )
        if validation is not None:
            self._write_csv(
                output_dir / "conflicts.csv",
                [{"conflict": conflict} for conflict in validation.conflicts],
            )

    def _write_csv(self, output_path: Path, rows: list[dict]) -> None:
        """Write dict rows; nothing is written for an empty list."""
        if not rows:
            return

        with open(output_path, "w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=rows[0].keys())
            writer.writeheader()
            writer.writerows(rows)


class ExcelExporter(BaseExporter):
    """Export to Excel format (one sheet per location)."""

    COLUMNS = [
        "Day",
        "Time",
        "Class",
        "Teacher",
        "Duration",
        "Studio",
        "Expected Participants",
        "Expected Revenue",
        "Top Performer",
    ]

    def export(
        self,
        schedule: list[ScheduledClass],
        output_path: str | Path,
        validation: ValidationResult | None = None,
    ) -> None:
        """Export a schedule to an Excel workbook.

        Sheets written:
        - One sheet per location, ordered by day and time
        - Conflicts: Validator conflicts

        Args:
            schedule: Scheduled classes to export
            output_path: Path to output Excel file
            validation: Validator output to include
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        by_location: dict[str, list[ScheduledClass]] = {}
        for cls in _sorted_schedule(schedule):
            by_location.setdefault(cls.location, []).append(cls)

        with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
            if not by_location:
                pd.DataFrame(columns=self.COLUMNS).to_excel(
                    writer, sheet_name="Schedule", index=False
                )
            for location, classes in by_location.items():
                self._export_location_sheet(location, classes, writer)
            self._export_conflicts_sheet(validation or ValidationResult(), writer)

    def _export_location_sheet(
        self, location: str, classes: list[ScheduledClass], writer: pd.ExcelWriter
    ) -> None:
        rows = [
            {
                "Day": cls.day,
                "Time": cls.time,
                "Class": cls.class_format,
                "Teacher": cls.teacher,
                "Duration": cls.duration,
                "Studio": cls.studio_assigned or "",
                "Expected Participants": cls.participants,
                "Expected Revenue": cls.revenue,
                "Top Performer": cls.is_top_performer,
            }
            for cls in classes
        ]
        df = pd.DataFrame(rows, columns=self.COLUMNS)
        # Excel limits sheet names to 31 characters
        sheet_name = INVALID_SHEET_CHARS.sub("", location)[:31]
        df.to_excel(writer, sheet_name=sheet_name, index=False)

    def _export_conflicts_sheet(
        self, validation: ValidationResult, writer: pd.ExcelWriter
    ) -> None:
        rows = [{"Conflict": conflict} for conflict in validation.conflicts]
        df = pd.DataFrame(rows) if rows else pd.DataFrame(columns=["Conflict"])
        df.to_excel(writer, sheet_name="Conflicts", index=False)


def load_schedule_json(path: str | Path) -> list[ScheduledClass]:
    """Read a schedule written by JSONExporter, or a bare list of classes.

    Raises:
        ValueError: If the file does not hold a schedule
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        entries = data.get("schedule", data.get("optimizedSchedule"))
    else:
        entries = data
    if not isinstance(entries, list):
        raise ValueError(f"No schedule list found in {path}")

    return [
        ScheduledClass.from_dict(entry, default_id=f"class-{i}")
        for i, entry in enumerate(entries)
    ]


def get_exporter(format_type: str) -> BaseExporter:
    """Get appropriate exporter for format type.

    Args:
        format_type: Export format ('json', 'csv', 'excel')

    Returns:
        Exporter instance

    Raises:
        ValueError: If format type is not supported
    """
    exporters = {
        "json": JSONExporter,
        "csv": CSVExporter,
        "excel": ExcelExporter,
    }

    if format_type not in exporters:
        raise ValueError(
            f"Unsupported format: {format_type}. Supported: {', '.join(exporters.keys())}"
        )

    return exporters[format_type]()
