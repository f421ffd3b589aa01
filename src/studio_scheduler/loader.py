"""Historic attendance loading from CSV exports."""

import logging
from pathlib import Path
from typing import Iterable

import pandas as pd

from .constants import COLUMN_ALIASES
from .exceptions import InvalidRecordError
from .models import HistoricClassRecord, LoadResult

logger = logging.getLogger(__name__)


def resolve_columns(columns: Iterable[str]) -> dict[str, str]:
    """Map canonical field names to the columns present in a frame.

    Args:
        columns: Column names of the source frame

    Returns:
        Dict of canonical field -> source column, for fields that were found
    """
    available = list(columns)
    lowered = {str(col).strip().lower(): col for col in available}
    mapping: dict[str, str] = {}

    for field_name, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in available:
                mapping[field_name] = alias
                break
            if alias.lower() in lowered:
                mapping[field_name] = lowered[alias.lower()]
                break

    return mapping


def records_from_frame(df: pd.DataFrame, source: str = "") -> LoadResult:
    """Convert a raw attendance frame into historic records.

    Rows that cannot be converted are skipped and reported as warnings.

    Args:
        df: Frame with one class occurrence per row
        source: Name of the source for the result

    Returns:
        LoadResult with records and warnings
    """
    result = LoadResult(source=source)
    if df.empty:
        return result

    mapping = resolve_columns(df.columns)
    missing = [f for f in ("class_format", "location", "day", "time") if f not in mapping]
    if missing:
        result.warnings.append(f"Missing required columns: {', '.join(missing)}")
        return result

    # Row numbers are 1-based and count the header row, like a spreadsheet
    for idx, row in enumerate(df.to_dict(orient="records"), start=2):
        data = {field_name: row.get(column) for field_name, column in mapping.items()}
        try:
            result.records.append(HistoricClassRecord.from_dict(data, row=idx))
        except InvalidRecordError as e:
            result.warnings.append(str(e))

    if result.warnings:
        logger.info(f"Skipped {len(result.warnings)} malformed rows from {source or 'frame'}")

    return result


def load_historic_csv(path: str | Path) -> LoadResult:
    """Load historic class records from a CSV file.

    Args:
        path: Path to the attendance CSV

    Returns:
        LoadResult with records and warnings; unreadable files give an
        empty result with a warning
    """
    path = Path(path)
    if not path.exists():
        return LoadResult(source=str(path), warnings=[f"File not found: {path}"])

    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=True)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        return LoadResult(source=str(path), warnings=[f"Failed to read CSV: {e}"])

    result = records_from_frame(df, source=str(path))
    logger.info(f"Loaded {result.total_records} records from {path.name}")
    return result


def records_to_frame(records: Iterable[HistoricClassRecord]) -> pd.DataFrame:
    """Convert historic records back into a frame with canonical columns."""
    rows = [record.to_dict() for record in records]
    columns = [
        "class_format",
        "location",
        "day",
        "time",
        "teacher_name",
        "participants",
        "revenue",
        "duration",
    ]
    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(rows, columns=columns)
