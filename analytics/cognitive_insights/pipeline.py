"""
Full analysis pass for the Cognitive Insights Engine.

Every call recomputes everything from the dataset snapshot it is given; no
state is kept between calls.
"""

import logging
from typing import Optional

import numpy as np
import pandas as pd

from .clustering import run_clustering
from .config import Config, get_config
from .correlation_analyzer import (
    compute_class_distribution,
    compute_overview_stats,
    compute_skill_correlation_matrix,
    compute_skill_correlations,
)
from .insights import generate_insights
from .regression_model import InsufficientDataError, make_predictions, train_linear_regression
from .schemas import AnalysisResult

logger = logging.getLogger(__name__)


def run_analysis(
    df: pd.DataFrame,
    config: Optional[Config] = None,
    rng: Optional[np.random.Generator] = None,
) -> AnalysisResult:
    """
    Run descriptive statistics and, for large enough datasets, the ML pass.

    The ML pass (regression, predictions, clustering, insights) runs only when
    the dataset has at least config.min_students_for_ml students; otherwise
    those fields are None and ml_skipped_reason says why.

    Args:
        df: Validated student dataset
        config: Analysis settings (global config if None)
        rng: Generator for k-means initialization; a fresh one seeded with
             config.random_state is created when None

    Returns:
        AnalysisResult: All derived values for this snapshot
    """
    config = config or get_config()

    logger.info("=" * 80)
    logger.info("RUNNING STUDENT ANALYSIS")
    logger.info("=" * 80)
    logger.info(f"\n1. Descriptive statistics for {len(df)} students...")

    overview = compute_overview_stats(df)
    distribution = compute_class_distribution(df)
    correlations = compute_skill_correlations(df)
    matrix = compute_skill_correlation_matrix(df)

    base = dict(
        overview=overview,
        class_distribution=tuple(distribution),
        correlations=tuple(correlations),
        skill_matrix=matrix,
    )

    if len(df) < config.min_students_for_ml:
        reason = (
            f"Need at least {config.min_students_for_ml} students for machine learning "
            f"analysis, got {len(df)}"
        )
        logger.warning(f"\n⚠️  Skipping ML analysis: {reason}")
        return AnalysisResult(**base, ml_skipped_reason=reason)

    logger.info("\n2. Training regression model...")
    try:
        model = train_linear_regression(df)
    except InsufficientDataError as e:
        logger.warning(f"\n⚠️  Skipping ML analysis: {e}")
        return AnalysisResult(**base, ml_skipped_reason=str(e))

    predictions = make_predictions(df, model)

    logger.info(f"\n3. Clustering students (k={config.cluster_count})...")
    if rng is None:
        rng = np.random.default_rng(config.random_state)
    cluster_run = run_clustering(
        df, k=config.cluster_count, rng=rng, max_iterations=config.max_iterations
    )

    logger.info("\n4. Generating insights...")
    insights = generate_insights(df, model, predictions, cluster_run.assignments, config=config)

    logger.info("\n" + "=" * 80)
    logger.info("ANALYSIS COMPLETE")
    logger.info("=" * 80)

    return AnalysisResult(
        **base,
        model=model,
        predictions=tuple(predictions),
        clusters=cluster_run.assignments,
        insights=tuple(insights),
    )
