"""
Regression model for the Cognitive Insights Engine.

Fits a linear model of assessment score on the four cognitive skills and
applies it to produce per-student predictions.

The fit is coordinate-wise: every skill weight is the single-variable OLS slope
of assessment score on that skill alone, and the intercept is the mean score.
Cross-skill correlation is ignored, so this is not a joint least-squares
solution and its R² can come out negative before clamping.
"""

import logging
from typing import List

import numpy as np
import pandas as pd
from sklearn.metrics import mean_squared_error, r2_score

from .schemas import SKILL_FEATURES, PredictionResult, RegressionModel, round_half_up

logger = logging.getLogger(__name__)

MIN_TRAINING_SAMPLES = 2


class InsufficientDataError(ValueError):
    """Raised when a dataset is too small to fit the regression model."""


def _slope(feature: np.ndarray, target: np.ndarray) -> float:
    if np.all(feature == feature[0]):
        return 0.0

    feature_dev = feature - feature.mean()
    target_dev = target - target.mean()
    variance = float((feature_dev * feature_dev).sum())
    if variance <= 0:
        return 0.0
    return float((feature_dev * target_dev).sum()) / variance


def linear_combination(df: pd.DataFrame, model: RegressionModel) -> np.ndarray:
    """Unclamped Σ(weight × skill) + intercept for every row."""
    raw = np.full(len(df), model.intercept, dtype=float)
    for skill, weight in model.coefficients:
        raw = raw + weight * df[skill].to_numpy(dtype=float)
    return raw


def train_linear_regression(df: pd.DataFrame) -> RegressionModel:
    """
    Fit the coordinate-wise linear model.

    Args:
        df: Student dataset with the four skill columns and assessment_score

    Returns:
        RegressionModel: Skill weights, intercept, R² clamped to [0, 1] and
        the mean squared error over the training rows

    Raises:
        InsufficientDataError: If fewer than 2 students are given
    """
    n = len(df)
    if n < MIN_TRAINING_SAMPLES:
        raise InsufficientDataError(
            f"Need at least {MIN_TRAINING_SAMPLES} data points for regression, got {n}"
        )

    logger.info(f"Training coordinate-wise regression on {n} students...")

    y = df["assessment_score"].to_numpy(dtype=float)
    weights = {}
    for skill in SKILL_FEATURES:
        weights[skill] = _slope(df[skill].to_numpy(dtype=float), y)
        if weights[skill] == 0.0 and df[skill].nunique() == 1:
            logger.warning(f"   ⚠️  {skill}: zero variance, weight set to 0")

    unfitted = RegressionModel(
        **weights,
        intercept=float(y.mean()),
        r_squared=0.0,
        mean_squared_error=0.0,
    )
    predicted = linear_combination(df, unfitted)

    mse = float(mean_squared_error(y, predicted))
    total_sum_squares = float(((y - y.mean()) ** 2).sum())
    r_squared = float(r2_score(y, predicted)) if total_sum_squares > 0 else 0.0

    if r_squared < 0:
        logger.info(f"   Raw R² {r_squared:.4f} floored to 0")

    model = RegressionModel(
        **weights,
        intercept=unfitted.intercept,
        r_squared=max(0.0, min(1.0, r_squared)),
        mean_squared_error=mse,
    )

    for skill, weight in model.coefficients:
        logger.info(f"      {skill:15} {weight:+.4f}")
    logger.info(f"      R²: {model.r_squared:.4f}")
    logger.info(f"      MSE: {model.mean_squared_error:.4f}")

    return model


def make_predictions(df: pd.DataFrame, model: RegressionModel) -> List[PredictionResult]:
    """
    Apply a trained model to every student.

    Predictions are clamped to [0, 100]; difference is actual minus predicted
    and accuracy is max(0, 100 - |difference|). All three are rounded to
    2 decimals.
    """
    predicted = np.clip(linear_combination(df, model), 0.0, 100.0)

    results = []
    for (_, row), prediction in zip(df.iterrows(), predicted):
        actual = float(row["assessment_score"])
        difference = actual - prediction
        accuracy = max(0.0, 100.0 - abs(difference))
        results.append(PredictionResult(
            student_id=int(row["student_id"]),
            name=str(row["name"]),
            actual_score=actual,
            predicted_score=round_half_up(float(prediction), 2),
            difference=round_half_up(float(difference), 2),
            accuracy=round_half_up(float(accuracy), 2),
        ))

    return results
