"""Studio Scheduler - weekly class timetables from historic attendance.

This module loads historic class-attendance exports of a multi-location
fitness studio and builds a weekly class schedule that respects studio
capacity, location formats, the midday restriction and trainer workload
rules. Any schedule, generated or hand-edited, can be validated.

Example usage:
    from studio_scheduler import load_historic_csv
    from studio_scheduler.scheduler import construct, validate

    result = load_historic_csv("attendance.csv")
    print(f"Loaded {result.total_records} records, {len(result.warnings)} skipped")

    schedule = construct(result.records)
    validation = validate(schedule)
    print(f"{len(schedule)} classes, {len(validation.conflicts)} conflicts")

    # Export to Excel
    from studio_scheduler.exporters import ExcelExporter
    exporter = ExcelExporter()
    exporter.export(schedule, "schedule.xlsx", validation)
"""

from .exceptions import (
    ConfigError,
    InvalidRecordError,
    SchedulerError,
    SuggestionError,
)
from .exporters import CSVExporter, ExcelExporter, JSONExporter, get_exporter
from .loader import load_historic_csv, records_from_frame, records_to_frame
from .models import HistoricClassRecord, LoadResult

__version__ = "0.1.0"

__all__ = [
    # Loading
    "load_historic_csv",
    "records_from_frame",
    "records_to_frame",
    # Models
    "HistoricClassRecord",
    "LoadResult",
    # Exporters
    "JSONExporter",
    "CSVExporter",
    "ExcelExporter",
    "get_exporter",
    # Exceptions
    "SchedulerError",
    "InvalidRecordError",
    "ConfigError",
    "SuggestionError",
]
