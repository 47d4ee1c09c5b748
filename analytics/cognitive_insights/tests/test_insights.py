"""
Unit tests for the insights module.
"""

import re

import pytest
import numpy as np

from analytics.cognitive_insights.clustering import perform_clustering
from analytics.cognitive_insights.config import Config
from analytics.cognitive_insights.insights import (
    _pct,
    generate_insights,
    largest_persona_group,
    most_influential_skill,
)
from analytics.cognitive_insights.regression_model import make_predictions, train_linear_regression
from analytics.cognitive_insights.schemas import (
    ClusterAssignment,
    PredictionResult,
    RegressionModel,
    records_to_frame,
)


def _model(comprehension=1.0, attention=1.0, focus=1.0, retention=1.0, r_squared=0.5):
    return RegressionModel(
        comprehension=comprehension,
        attention=attention,
        focus=focus,
        retention=retention,
        intercept=50.0,
        r_squared=r_squared,
        mean_squared_error=10.0,
    )


def _prediction(student_id, actual, accuracy=90.0):
    return PredictionResult(
        student_id=student_id,
        name=f"Student {student_id}",
        actual_score=actual,
        predicted_score=actual,
        difference=0.0,
        accuracy=accuracy,
    )


def _cluster(student_id, persona):
    return ClusterAssignment(
        student_id=student_id,
        name=f"Student {student_id}",
        class_name="A",
        cluster=0,
        persona=persona,
    )


def test_scenario_first_insight_reports_accuracy(scenario_df):
    model = train_linear_regression(scenario_df)
    predictions = make_predictions(scenario_df, model)
    clusters = perform_clustering(scenario_df, k=3, rng=np.random.default_rng(42))

    insights = generate_insights(scenario_df, model, predictions, clusters, config=Config())

    assert re.search(r"\d+\.\d% average prediction accuracy", insights[0])
    assert "65.8%" in insights[0]
    assert "R² of 0.0%" in insights[0]
    assert insights[1].startswith("Comprehension")
    assert len(insights) == 5


def test_most_influential_uses_absolute_value():
    model = _model(comprehension=2.0, attention=-5.0, focus=4.0, retention=1.0)

    assert most_influential_skill(model) == "Attention"


def test_most_influential_tie_goes_to_earliest_skill():
    model = _model(comprehension=1.0, attention=3.0, focus=-3.0, retention=3.0)

    assert most_influential_skill(model) == "Attention"


def test_most_influential_all_zero():
    assert most_influential_skill(_model(0.0, 0.0, 0.0, 0.0)) == "Comprehension"


def test_largest_group_tie_goes_to_first_tallied():
    clusters = [
        _cluster(1, "Balanced Learner"),
        _cluster(2, "High Achiever"),
        _cluster(3, "High Achiever"),
        _cluster(4, "Balanced Learner"),
    ]

    assert largest_persona_group(clusters) == ("Balanced Learner", 2)


def test_cluster_insight_text(student):
    df = records_to_frame([student(i, 0.5, 70, 30) for i in range(1, 5)])
    predictions = [_prediction(i, 70.0) for i in range(1, 5)]
    clusters = [
        _cluster(1, "Developing Student"),
        _cluster(2, "Developing Student"),
        _cluster(3, "Developing Student"),
        _cluster(4, "High Achiever"),
    ]

    insights = generate_insights(df, _model(), predictions, clusters, config=Config())

    assert insights[2] == (
        'Student clustering reveals that 3 students (75.0%) fall into the "Developing Student" category.'
    )


def test_score_band_lines_omitted_when_empty(student):
    df = records_to_frame([student(i, 0.5, 70, 30) for i in range(1, 4)])
    predictions = [_prediction(i, 70.0) for i in range(1, 4)]
    clusters = [_cluster(i, "Balanced Learner") for i in range(1, 4)]

    insights = generate_insights(df, _model(), predictions, clusters, config=Config())

    assert len(insights) == 3


def test_score_band_lines(student):
    df = records_to_frame([student(i, 0.5, 70, 30) for i in range(1, 5)])
    predictions = [
        _prediction(1, 85.0),
        _prediction(2, 92.0),
        _prediction(3, 59.9),
        _prediction(4, 60.0),
    ]
    clusters = [_cluster(i, "Balanced Learner") for i in range(1, 5)]

    insights = generate_insights(df, _model(), predictions, clusters, config=Config())

    assert insights[3] == "2 students (50.0%) are high performers with scores ≥85%."
    assert insights[4] == "1 students (25.0%) may benefit from additional support with scores <60%."


def test_thresholds_come_from_config(student):
    df = records_to_frame([student(i, 0.5, 70, 30) for i in range(1, 3)])
    predictions = [_prediction(1, 75.0), _prediction(2, 50.0)]
    clusters = [_cluster(i, "Balanced Learner") for i in range(1, 3)]
    config = Config(high_performer_threshold=70, low_performer_threshold=40)

    insights = generate_insights(df, _model(), predictions, clusters, config=config)

    assert len(insights) == 4
    assert "≥70%" in insights[3]


def test_percentages_round_half_up_on_stored_value():
    assert _pct(1.45) == "1.5"
    assert _pct(0.25) == "0.3"
    assert _pct(0.15) == "0.1"
    assert _pct(65.75) == "65.8"
    assert _pct(100) == "100.0"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
