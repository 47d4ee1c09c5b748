"""
Correlation analyzer module for the Cognitive Insights Engine.

Computes Pearson correlations between cognitive skills and assessment scores,
the pairwise skill correlation matrix, and the descriptive overview statistics
shown on the dashboard.
"""

import logging
from typing import List, Mapping, Sequence, Union

import numpy as np
import pandas as pd

from .schemas import (
    SKILL_FEATURES,
    ClassShare,
    CorrelationEntry,
    OverviewStats,
    round_half_up,
)

logger = logging.getLogger(__name__)

NumericSequence = Union[Sequence[float], np.ndarray, pd.Series]

PERFORMANCE_LEVELS = ("Excellent", "Good", "Average", "Needs Improvement")


def pearson_correlation(x: NumericSequence, y: NumericSequence) -> float:
    """
    Compute the Pearson product-moment correlation of two equal-length sequences.

    r = (nΣxy − ΣxΣy) / √((nΣx² − (Σx)²)(nΣy² − (Σy)²))

    Args:
        x: First variable
        y: Second variable

    Returns:
        float: Correlation in [-1, 1]. Empty input or a constant sequence
        (zero variance) yields 0.0 instead of NaN.

    Raises:
        ValueError: If the sequences differ in length
    """
    x_arr = np.asarray(x, dtype=float)
    y_arr = np.asarray(y, dtype=float)

    if x_arr.shape != y_arr.shape:
        raise ValueError(
            f"Sequences must have equal length, got {len(x_arr)} and {len(y_arr)}"
        )

    n = len(x_arr)
    if n == 0:
        return 0.0

    # Constant input can leave a rounding residue in the denominator
    if np.all(x_arr == x_arr[0]) or np.all(y_arr == y_arr[0]):
        return 0.0

    sum_x = x_arr.sum()
    sum_y = y_arr.sum()
    sum_xy = (x_arr * y_arr).sum()
    sum_x2 = (x_arr * x_arr).sum()
    sum_y2 = (y_arr * y_arr).sum()

    numerator = n * sum_xy - sum_x * sum_y
    product = (n * sum_x2 - sum_x * sum_x) * (n * sum_y2 - sum_y * sum_y)

    if product <= 0:
        return 0.0

    r = numerator / np.sqrt(product)
    return float(min(1.0, max(-1.0, r)))


def compute_skill_correlations(df: pd.DataFrame) -> List[CorrelationEntry]:
    """
    Correlate each cognitive skill with the assessment score.

    Args:
        df: Student dataset (one row per student)

    Returns:
        List[CorrelationEntry]: One entry per skill in SKILL_FEATURES order,
        with capitalized skill names and coefficients rounded to 3 decimals.
        Empty when the dataset has fewer than 2 students.
    """
    if len(df) < 2:
        logger.info("Fewer than 2 students: no skill correlations computed")
        return []

    scores = df["assessment_score"].to_numpy(dtype=float)
    entries = []
    for skill in SKILL_FEATURES:
        r = pearson_correlation(df[skill].to_numpy(dtype=float), scores)
        entries.append(CorrelationEntry(skill=skill.capitalize(), correlation=round_half_up(r, 3)))
        logger.debug(f"   {skill:15} r={r:+.4f}")

    return entries


def compute_skill_correlation_matrix(df: pd.DataFrame) -> pd.DataFrame:
    """
    Build the pairwise Pearson matrix between the four cognitive skills.

    The diagonal is fixed to 1.0; off-diagonal cells fall back to 0.0 when a
    skill has no variance.

    Returns:
        pd.DataFrame: 4x4 matrix indexed and columned by skill name
    """
    size = len(SKILL_FEATURES)
    matrix = np.zeros((size, size))

    for i, first in enumerate(SKILL_FEATURES):
        for j, second in enumerate(SKILL_FEATURES):
            if i == j:
                matrix[i, j] = 1.0
            else:
                matrix[i, j] = pearson_correlation(df[first], df[second])

    return pd.DataFrame(matrix, index=list(SKILL_FEATURES), columns=list(SKILL_FEATURES))


def compute_overview_stats(df: pd.DataFrame) -> OverviewStats:
    """Average score, skills and engagement time (2 decimals) plus student count."""
    count = len(df)
    if count == 0:
        return OverviewStats(
            average_score=0.0,
            average_comprehension=0.0,
            average_attention=0.0,
            average_focus=0.0,
            average_retention=0.0,
            average_engagement_time=0.0,
            total_students=0,
        )

    def average(column: str) -> float:
        return round_half_up(float(df[column].sum()) / count, 2)

    return OverviewStats(
        average_score=average("assessment_score"),
        average_comprehension=average("comprehension"),
        average_attention=average("attention"),
        average_focus=average("focus"),
        average_retention=average("retention"),
        average_engagement_time=average("engagement_time"),
        total_students=count,
    )


def compute_class_distribution(df: pd.DataFrame) -> List[ClassShare]:
    """Student count and whole-number percentage per class, in first-appearance order."""
    total = len(df)
    if total == 0:
        return []

    counts = df["class"].value_counts(sort=False)
    order = pd.unique(df["class"])

    return [
        ClassShare(
            class_name=str(class_name),
            count=int(counts[class_name]),
            percentage=int(round_half_up(counts[class_name] / total * 100, 0)),
        )
        for class_name in order
    ]


def average_cognitive(record: Union[Mapping, pd.Series]) -> float:
    return sum(float(record[skill]) for skill in SKILL_FEATURES) / len(SKILL_FEATURES)


def performance_level(record: Union[Mapping, pd.Series]) -> str:
    """Bucket a student by the mean of their four skill scores."""
    avg = average_cognitive(record)
    if avg >= 0.8:
        return "Excellent"
    if avg >= 0.6:
        return "Good"
    if avg >= 0.4:
        return "Average"
    return "Needs Improvement"
