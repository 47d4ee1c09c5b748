"""
Unit tests for the correlation_analyzer module.
"""

import pytest
import pandas as pd
import numpy as np

from analytics.cognitive_insights.correlation_analyzer import (
    compute_class_distribution,
    compute_overview_stats,
    compute_skill_correlation_matrix,
    compute_skill_correlations,
    pearson_correlation,
    performance_level,
)
from analytics.cognitive_insights.schemas import records_to_frame


def test_pearson_identical_sequences():
    """Identical sequences with variance correlate perfectly."""
    x = [1.0, 2.0, 3.0, 4.0, 5.0]

    assert pearson_correlation(x, x) == pytest.approx(1.0)


def test_pearson_negated_sequence():
    """y = -x gives -1."""
    x = np.array([0.1, 0.4, 0.35, 0.8, 0.95])

    assert pearson_correlation(x, -x) == pytest.approx(-1.0)


def test_pearson_linear_relationship():
    x = pd.Series([1, 2, 3, 4, 5])
    y = pd.Series([2, 4, 6, 8, 10])

    assert abs(pearson_correlation(x, y) - 1.0) < 0.001


def test_pearson_constant_sequence_is_zero():
    """Zero variance returns exactly 0 instead of NaN."""
    assert pearson_correlation([0.1, 0.1, 0.1], [10, 20, 30]) == 0.0
    assert pearson_correlation([10, 20, 30], [0.7, 0.7, 0.7]) == 0.0


def test_pearson_single_value_and_empty():
    assert pearson_correlation([3.0], [4.0]) == 0.0
    assert pearson_correlation([], []) == 0.0


def test_pearson_length_mismatch():
    with pytest.raises(ValueError):
        pearson_correlation([1, 2, 3], [1, 2])


@pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
def test_pearson_bounds(seed):
    rng = np.random.default_rng(seed)
    x = rng.normal(size=25)
    y = rng.normal(size=25) + x * rng.uniform(-2, 2)

    r = pearson_correlation(x, y)

    assert -1.0 <= r <= 1.0
    assert r == pytest.approx(np.corrcoef(x, y)[0, 1])


def test_skill_correlations_order_and_rounding(random_df):
    result = compute_skill_correlations(random_df)

    assert [entry.skill for entry in result] == ["Comprehension", "Attention", "Focus", "Retention"]
    for entry in result:
        assert -1.0 <= entry.correlation <= 1.0
        assert entry.correlation == round(entry.correlation, 3)


def test_skill_correlations_needs_two_students(student):
    df = records_to_frame([student(1, 0.5, 70, 30)])

    assert compute_skill_correlations(df) == []


def test_skill_correlations_scenario(scenario_df):
    result = compute_skill_correlations(scenario_df)

    assert all(entry.correlation > 0.9 for entry in result)


def test_skill_correlation_matrix(random_df):
    matrix = compute_skill_correlation_matrix(random_df)

    assert matrix.shape == (4, 4)
    assert list(matrix.index) == ["comprehension", "attention", "focus", "retention"]
    assert np.all(np.diag(matrix.values) == 1.0)
    assert np.allclose(matrix.values, matrix.values.T)


def test_skill_correlation_matrix_constant_skill(student):
    df = records_to_frame([
        student(1, 0.2, 40, 10),
        student(2, 0.6, 60, 20),
        student(3, 0.9, 90, 30),
    ])
    df["focus"] = 0.5

    matrix = compute_skill_correlation_matrix(df)

    assert matrix.loc["focus", "attention"] == 0.0
    assert matrix.loc["focus", "focus"] == 1.0


def test_overview_stats(scenario_df):
    stats = compute_overview_stats(scenario_df)

    assert stats.total_students == 3
    assert stats.average_score == 65.0
    assert stats.average_comprehension == 0.5
    assert stats.average_engagement_time == 40.0


def test_overview_stats_empty():
    stats = compute_overview_stats(records_to_frame([]))

    assert stats.total_students == 0
    assert stats.average_score == 0.0


def test_class_distribution_keeps_first_appearance_order(student):
    df = records_to_frame([
        student(1, 0.5, 70, 30, class_name="B"),
        student(2, 0.5, 70, 30, class_name="A"),
        student(3, 0.5, 70, 30, class_name="B"),
    ])

    shares = compute_class_distribution(df)

    assert [(s.class_name, s.count, s.percentage) for s in shares] == [("B", 2, 67), ("A", 1, 33)]


def test_descriptive_stats_are_repeatable(random_df):
    """Recomputing on an unchanged dataset gives identical results."""
    assert compute_skill_correlations(random_df) == compute_skill_correlations(random_df)
    assert compute_overview_stats(random_df) == compute_overview_stats(random_df)
    assert compute_class_distribution(random_df) == compute_class_distribution(random_df)
    assert compute_skill_correlation_matrix(random_df).equals(compute_skill_correlation_matrix(random_df))


@pytest.mark.parametrize("skill,level", [
    (0.85, "Excellent"),
    (0.8, "Excellent"),
    (0.65, "Good"),
    (0.4, "Average"),
    (0.1, "Needs Improvement"),
])
def test_performance_level(student, skill, level):
    assert performance_level(student(1, skill, 50, 10)) == level


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
