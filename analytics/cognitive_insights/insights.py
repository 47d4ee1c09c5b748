"""
Natural-language insight synthesis for the Cognitive Insights Engine.
"""

import logging
from collections import Counter
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence

import pandas as pd

from .config import Config, get_config
from .schemas import ClusterAssignment, PredictionResult, RegressionModel

logger = logging.getLogger(__name__)


def _pct(value: float) -> str:
    # Half-up on the exact stored value, not on value * 10
    return str(Decimal(float(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def most_influential_skill(model: RegressionModel) -> str:
    """Skill with the largest absolute weight; the earliest skill wins a tie."""
    best_skill, best_value = None, -1.0
    for skill, weight in model.coefficients:
        if abs(weight) > best_value:
            best_skill, best_value = skill, abs(weight)
    return best_skill.capitalize()


def largest_persona_group(clusters: Sequence[ClusterAssignment]):
    """(persona, count) of the biggest group; the first persona tallied wins a tie."""
    counts = Counter(assignment.persona for assignment in clusters)
    # max() keeps the first maximal item and Counter keeps insertion order
    return max(counts.items(), key=lambda item: item[1])


def generate_insights(
    df: pd.DataFrame,
    model: RegressionModel,
    predictions: Sequence[PredictionResult],
    clusters: Sequence[ClusterAssignment],
    config: Optional[Config] = None,
) -> List[str]:
    """
    Summarize model quality, skill influence, clustering and score bands.

    Args:
        df: Student dataset the other results were computed on
        model: Trained regression model
        predictions: Output of make_predictions()
        clusters: Output of perform_clustering()
        config: Thresholds for high/low performers (global config if None)

    Returns:
        List[str]: Insight sentences in fixed order; the score-band lines
        are only included when their count is non-zero.
    """
    config = config or get_config()
    total = len(df)
    insights = []

    avg_accuracy = sum(p.accuracy for p in predictions) / len(predictions)
    insights.append(
        f"The linear regression model achieves {_pct(avg_accuracy)}% average prediction "
        f"accuracy with an R² of {_pct(model.r_squared * 100)}%."
    )

    insights.append(
        f"{most_influential_skill(model)} appears to be the most influential cognitive skill "
        f"for predicting assessment scores."
    )

    persona, count = largest_persona_group(clusters)
    insights.append(
        f"Student clustering reveals that {count} students ({_pct(count / total * 100)}%) "
        f"fall into the \"{persona}\" category."
    )

    high = sum(1 for p in predictions if p.actual_score >= config.high_performer_threshold)
    low = sum(1 for p in predictions if p.actual_score < config.low_performer_threshold)

    if high > 0:
        insights.append(
            f"{high} students ({_pct(high / total * 100)}%) are high performers with scores "
            f"≥{config.high_performer_threshold:g}%."
        )

    if low > 0:
        insights.append(
            f"{low} students ({_pct(low / total * 100)}%) may benefit from additional support "
            f"with scores <{config.low_performer_threshold:g}%."
        )

    logger.info(f"Generated {len(insights)} insights")
    return insights
