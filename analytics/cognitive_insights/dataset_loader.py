"""
Dataset loader module for the Cognitive Insights Engine.

Reads a student CSV export, maps loosely named headers onto the standard
record columns, validates every row and returns a clean DataFrame ready for
analysis. Rows that fail validation are skipped and reported.
"""

import logging
import re
from io import StringIO
from pathlib import Path
from typing import Dict, IO, List, Optional, Union

import pandas as pd

from .schemas import NUMERIC_COLUMNS, RECORD_COLUMNS, SKILL_FEATURES

logger = logging.getLogger(__name__)

CsvSource = Union[str, Path, IO]

COLUMN_ALIASES: Dict[str, List[str]] = {
    "student_id": ["student_id", "studentid", "id", "student id"],
    "name": ["name", "student_name", "studentname", "student name"],
    "class": ["class", "grade", "section"],
    "comprehension": ["comprehension", "comp"],
    "attention": ["attention", "att"],
    "focus": ["focus"],
    "retention": ["retention", "ret"],
    "assessment_score": ["assessment_score", "assessmentscore", "score", "test_score", "assessment score"],
    "engagement_time": ["engagement_time", "engagementtime", "time", "engagement", "engagement time"],
}

_NON_NUMERIC = re.compile(r"[^\d.-]")
_LEADING_NUMBER = re.compile(r"^[-+]?(\d+\.?\d*|\.\d+)")


class DatasetValidationError(ValueError):
    """Raised when a CSV cannot be turned into a usable student dataset."""


def normalize_column_name(column: str) -> Optional[str]:
    """Map a raw header onto its standard column name, or None if unknown."""
    key = column.strip().lower()
    for standard, aliases in COLUMN_ALIASES.items():
        if key in aliases:
            return standard
    return None


def build_field_mapping(headers: List[str]) -> Dict[str, str]:
    """Raw header -> standard column; the first header claiming a column wins."""
    mapping = {}
    claimed = set()
    for header in headers:
        standard = normalize_column_name(str(header))
        if standard and standard not in claimed:
            mapping[header] = standard
            claimed.add(standard)
    return mapping


def parse_numeric(value, field: str) -> float:
    """
    Parse a numeric cell after stripping stray characters ("85%" -> 85.0).

    Raises:
        ValueError: If no number can be read from the cell
    """
    cleaned = _NON_NUMERIC.sub("", str(value))
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        raise ValueError(f'Invalid {field}: "{value}" (should be a number)')
    return float(match.group(0))


def _validate_row(row: pd.Series, mapping: Dict[str, str]) -> Dict:
    record = {}
    for raw, standard in mapping.items():
        value = row[raw]
        if standard in NUMERIC_COLUMNS or standard == "student_id":
            record[standard] = parse_numeric(value, standard)
        else:
            text = str(value).strip() if value is not None else ""
            if not text:
                raise ValueError(f"Missing {standard}")
            record[standard] = text

    if not float(record["student_id"]).is_integer():
        raise ValueError(f"Invalid student_id: {record['student_id']} (should be an integer)")
    record["student_id"] = int(record["student_id"])

    for skill in SKILL_FEATURES:
        if record[skill] < 0 or record[skill] > 1:
            raise ValueError(f"{skill.capitalize()} should be between 0.0 and 1.0, got {record[skill]:g}")
    if record["assessment_score"] < 0 or record["assessment_score"] > 100:
        raise ValueError(
            f"Assessment score should be between 0 and 100, got {record['assessment_score']:g}"
        )
    if record["engagement_time"] < 0:
        raise ValueError(f"Engagement time should be non-negative, got {record['engagement_time']:g}")

    return record


def _summarize_errors(errors: List[str], limit: int, suffix: str) -> str:
    text = "\n".join(errors[:limit])
    if len(errors) > limit:
        text += f"\n... and {len(errors) - limit} {suffix}"
    return text


def load_student_dataset(source: CsvSource) -> pd.DataFrame:
    """
    Load and validate a student CSV.

    Args:
        source: Path to a CSV file, a file-like object, or raw CSV text
                (any string containing a newline is treated as CSV content)

    Returns:
        pd.DataFrame: Valid rows with the RECORD_COLUMNS columns, in file order

    Raises:
        DatasetValidationError: If the file is empty, required columns are
        missing, or no row passes validation
    """
    if isinstance(source, str) and "\n" in source:
        source = StringIO(source)

    try:
        raw = pd.read_csv(source, dtype=str, keep_default_na=False, skip_blank_lines=True)
    except pd.errors.EmptyDataError as e:
        raise DatasetValidationError("CSV file is empty") from e

    if raw.empty:
        raise DatasetValidationError("CSV file is empty")

    headers = [str(col) for col in raw.columns]
    mapping = build_field_mapping(list(raw.columns))
    missing = [col for col in RECORD_COLUMNS if col not in mapping.values()]
    if missing:
        raise DatasetValidationError(
            f"Missing required columns: {', '.join(missing)}. Found columns: {', '.join(headers)}"
        )

    logger.info(f"Mapped {len(mapping)} columns from {len(headers)} headers")

    records = []
    errors = []
    for index, row in raw.iterrows():
        try:
            records.append(_validate_row(row, mapping))
        except ValueError as e:
            # Line numbers count the header as line 1
            errors.append(f"Row {index + 2}: {e}")

    if not records:
        raise DatasetValidationError(
            "No valid data found. Errors:\n" + _summarize_errors(errors, 5, "more errors")
        )

    if errors:
        logger.warning(
            f"⚠️  {len(errors)} rows had errors and were skipped:\n"
            + _summarize_errors(errors, 3, "more")
        )

    df = pd.DataFrame(records, columns=list(RECORD_COLUMNS))
    df["student_id"] = df["student_id"].astype(int)
    df[list(NUMERIC_COLUMNS)] = df[list(NUMERIC_COLUMNS)].astype(float)

    logger.info(f"✓ Loaded {len(df)} students ({len(errors)} rows skipped)")
    return df


def validate_dataset_structure(df: pd.DataFrame) -> bool:
    """Whether a frame carries every record column and at least one row."""
    if df is None or df.empty:
        return False
    return all(col in df.columns for col in RECORD_COLUMNS)
