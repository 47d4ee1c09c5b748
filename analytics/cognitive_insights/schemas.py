"""
Value types shared by the Cognitive Insights Engine.

Records travel through the pipeline as a pandas DataFrame with the columns in
RECORD_COLUMNS; analysis outputs are frozen dataclasses recomputed on every run.
"""

import math
from dataclasses import asdict, dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

import pandas as pd

# Order matters: it decides every tie-break between skills.
SKILL_FEATURES: Tuple[str, ...] = ("comprehension", "attention", "focus", "retention")

NUMERIC_COLUMNS: Tuple[str, ...] = SKILL_FEATURES + ("assessment_score", "engagement_time")

RECORD_COLUMNS: Tuple[str, ...] = ("student_id", "name", "class") + NUMERIC_COLUMNS


@dataclass(frozen=True)
class StudentRecord:
    """One validated student row."""

    student_id: int
    name: str
    class_name: str
    comprehension: float
    attention: float
    focus: float
    retention: float
    assessment_score: float
    engagement_time: float

    def to_row(self) -> Dict:
        row = asdict(self)
        row["class"] = row.pop("class_name")
        return row


@dataclass(frozen=True)
class RegressionModel:
    """Coordinate-wise linear model of assessment score on the four skills."""

    comprehension: float
    attention: float
    focus: float
    retention: float
    intercept: float
    r_squared: float
    mean_squared_error: float

    @property
    def coefficients(self) -> List[Tuple[str, float]]:
        """Skill weights as (name, value) pairs in SKILL_FEATURES order."""
        return [(skill, getattr(self, skill)) for skill in SKILL_FEATURES]

    def to_dict(self) -> Dict:
        return {
            "coefficients": {
                **dict(self.coefficients),
                "intercept": self.intercept,
            },
            "r_squared": self.r_squared,
            "mean_squared_error": self.mean_squared_error,
        }


@dataclass(frozen=True)
class PredictionResult:
    student_id: int
    name: str
    actual_score: float
    predicted_score: float
    difference: float
    accuracy: float

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True)
class ClusterAssignment:
    student_id: int
    name: str
    class_name: str
    cluster: int
    persona: str
    characteristics: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["class"] = data.pop("class_name")
        data["characteristics"] = list(self.characteristics)
        return data


@dataclass(frozen=True)
class ClusterRun:
    """Result of one k-means pass: per-record assignments plus run diagnostics."""

    assignments: Tuple[ClusterAssignment, ...]
    iterations: int
    converged: bool
    centroids: Tuple[Tuple[float, ...], ...] = ()


@dataclass(frozen=True)
class CorrelationEntry:
    skill: str
    correlation: float

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True)
class OverviewStats:
    average_score: float
    average_comprehension: float
    average_attention: float
    average_focus: float
    average_retention: float
    average_engagement_time: float
    total_students: int

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True)
class ClassShare:
    class_name: str
    count: int
    percentage: int

    def to_dict(self) -> Dict:
        return {"class": self.class_name, "count": self.count, "percentage": self.percentage}


@dataclass(frozen=True)
class AnalysisResult:
    """Everything one pipeline pass derives from a dataset snapshot."""

    overview: OverviewStats
    class_distribution: Tuple[ClassShare, ...]
    correlations: Tuple[CorrelationEntry, ...]
    skill_matrix: pd.DataFrame
    model: Optional[RegressionModel] = None
    predictions: Optional[Tuple[PredictionResult, ...]] = None
    clusters: Optional[Tuple[ClusterAssignment, ...]] = None
    insights: Optional[Tuple[str, ...]] = None
    ml_skipped_reason: Optional[str] = None

    @property
    def has_ml(self) -> bool:
        return self.model is not None

    def to_dict(self) -> Dict:
        return {
            "overview": self.overview.to_dict(),
            "class_distribution": [share.to_dict() for share in self.class_distribution],
            "correlations": [entry.to_dict() for entry in self.correlations],
            "skill_matrix": matrix_to_dict(self.skill_matrix),
            "model": self.model.to_dict() if self.model else None,
            "predictions": [p.to_dict() for p in self.predictions] if self.predictions is not None else None,
            "clusters": [c.to_dict() for c in self.clusters] if self.clusters is not None else None,
            "insights": list(self.insights) if self.insights is not None else None,
            "ml_skipped_reason": self.ml_skipped_reason,
        }


def records_to_frame(records: Iterable[Union[StudentRecord, Mapping]]) -> pd.DataFrame:
    """
    Build the pipeline DataFrame from StudentRecord instances or plain mappings.

    Mappings may use either "class" or "class_name" for the cohort label.
    """
    rows = []
    for record in records:
        if isinstance(record, StudentRecord):
            rows.append(record.to_row())
        else:
            row = dict(record)
            if "class" not in row and "class_name" in row:
                row["class"] = row.pop("class_name")
            rows.append({col: row[col] for col in RECORD_COLUMNS})

    df = pd.DataFrame(rows, columns=list(RECORD_COLUMNS))
    if not df.empty:
        df["student_id"] = df["student_id"].astype(int)
        df[list(NUMERIC_COLUMNS)] = df[list(NUMERIC_COLUMNS)].astype(float)
    return df


def frame_to_records(df: pd.DataFrame) -> List[StudentRecord]:
    """Inverse of records_to_frame."""
    return [
        StudentRecord(
            student_id=int(row["student_id"]),
            name=str(row["name"]),
            class_name=str(row["class"]),
            comprehension=float(row["comprehension"]),
            attention=float(row["attention"]),
            focus=float(row["focus"]),
            retention=float(row["retention"]),
            assessment_score=float(row["assessment_score"]),
            engagement_time=float(row["engagement_time"]),
        )
        for _, row in df.iterrows()
    ]


def round_half_up(value: float, decimals: int = 2) -> float:
    """Round with halves going up (0.125 -> 0.13, -0.125 -> -0.12), matching the dashboard."""
    scale = 10 ** decimals
    return math.floor(value * scale + 0.5) / scale


def matrix_to_dict(matrix: pd.DataFrame) -> Dict[str, Dict[str, float]]:
    """Nested {row: {column: value}} form of a square correlation matrix."""
    return {
        str(row): {str(col): float(value) for col, value in values.items()}
        for row, values in matrix.to_dict(orient="index").items()
    }
