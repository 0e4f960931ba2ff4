"""
Patient record loading: CSV -> validated PatientRecord list + column summaries.

Rows missing any required column, holding a non-numeric value, or with an
outcome other than 0/1 are dropped and counted as invalid.
"""

import io
import logging
from pathlib import Path
from typing import IO, Any, Literal, Optional, Sequence, Union

import pandas as pd
from pydantic import BaseModel, Field

from backend.models.decision_tree import PatientRecord

logger = logging.getLogger(__name__)

# Pima Indians diabetes dataset layout
DEFAULT_COLUMNS = (
    "Pregnancies",
    "Glucose",
    "BloodPressure",
    "SkinThickness",
    "Insulin",
    "BMI",
    "DiabetesPedigreeFunction",
    "Age",
)
OUTCOME_COLUMN = "Outcome"

CsvSource = Union[str, Path, IO[str], IO[bytes]]


# -----------------------------------------------------------------------------
# Models
# -----------------------------------------------------------------------------


class DataStats(BaseModel):
    """Row counts from one load."""

    total: int = Field(..., description="Rows read")
    valid: int = Field(..., description="Rows kept")
    invalid: int = Field(..., description="Rows dropped")


class ColumnSummary(BaseModel):
    """Descriptive statistics for one column."""

    kind: Literal["numeric", "categorical"]
    count: int
    min: Optional[float] = None
    max: Optional[float] = None
    avg: Optional[float] = None
    median: Optional[float] = None
    distribution: Optional[dict[str, int]] = None


class LoadedDataset(BaseModel):
    """Validated records ready for evaluation."""

    records: list[PatientRecord] = Field(default_factory=list)
    stats: DataStats
    columns: list[str] = Field(default_factory=list, description="Attribute columns available to conditions")


# -----------------------------------------------------------------------------
# Loading
# -----------------------------------------------------------------------------


def _read_frame(source: CsvSource) -> pd.DataFrame:
    try:
        return pd.read_csv(source, skip_blank_lines=True)
    except pd.errors.EmptyDataError as e:
        raise ValueError("CSV input is empty") from e
    except pd.errors.ParserError as e:
        raise ValueError(f"Could not parse CSV: {e}") from e


def load_records(
    source: CsvSource,
    columns: Sequence[str] = DEFAULT_COLUMNS,
    outcome_column: str = OUTCOME_COLUMN,
) -> LoadedDataset:
    """
    Read a CSV (path or file-like) and keep rows where every column in
    `columns` plus the outcome is numeric, and the outcome is 0 or 1.
    """
    frame = _read_frame(source)
    frame.columns = [str(c).strip() for c in frame.columns]
    wanted = list(columns) + [outcome_column]
    missing = [c for c in wanted if c not in frame.columns]
    if missing:
        raise ValueError(f"CSV is missing required columns: {', '.join(missing)}")

    numeric = frame[wanted].apply(pd.to_numeric, errors="coerce")
    mask = numeric.notna().all(axis=1) & numeric[outcome_column].isin([0, 1])
    kept = numeric[mask]

    records = [
        PatientRecord(
            values={c: float(row[c]) for c in columns},
            outcome=int(row[outcome_column]),
        )
        for row in kept.to_dict("records")
    ]
    stats = DataStats(total=len(frame), valid=len(records), invalid=len(frame) - len(records))
    if stats.invalid:
        logger.info("Dropped %s of %s rows with missing or invalid values", stats.invalid, stats.total)
    return LoadedDataset(records=records, stats=stats, columns=list(columns))


def load_records_from_text(text: str, **kwargs: Any) -> LoadedDataset:
    """load_records for CSV content already in memory."""
    return load_records(io.StringIO(text), **kwargs)


# -----------------------------------------------------------------------------
# Column statistics
# -----------------------------------------------------------------------------


def summarize_columns(records: Sequence[PatientRecord], outcome_column: str = OUTCOME_COLUMN) -> dict[str, ColumnSummary]:
    """Min/max/avg/median/count per numeric column; value counts for anything else."""
    if not records:
        return {}
    frame = pd.DataFrame([{**r.values, outcome_column: r.outcome} for r in records])
    summaries: dict[str, ColumnSummary] = {}
    for name in frame.columns:
        series = frame[name].dropna()
        if pd.api.types.is_numeric_dtype(series) and not pd.api.types.is_bool_dtype(series):
            summaries[str(name)] = ColumnSummary(
                kind="numeric",
                count=int(series.count()),
                min=float(series.min()) if len(series) else None,
                max=float(series.max()) if len(series) else None,
                avg=round(float(series.mean()), 2) if len(series) else None,
                median=round(float(series.median()), 2) if len(series) else None,
            )
        else:
            counts = series.astype(str).value_counts()
            summaries[str(name)] = ColumnSummary(
                kind="categorical",
                count=int(series.count()),
                distribution={str(k): int(v) for k, v in counts.items()},
            )
    return summaries
