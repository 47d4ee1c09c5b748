"""
Student clustering for the Cognitive Insights Engine.

Groups students with k-means (Lloyd's algorithm) over a six-dimensional
feature vector and attaches a persona to every cluster.

Personas are assigned by cluster index only. Centroids are seeded from random
students, so index 0 is not guaranteed to be the strongest group and the same
data can get different labels unless the generator is seeded.
"""

import logging
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd
from scipy.spatial.distance import cdist

from .schemas import SKILL_FEATURES, ClusterAssignment, ClusterRun

logger = logging.getLogger(__name__)

DEFAULT_CLUSTER_COUNT = 3
MAX_ITERATIONS = 50

PERSONAS = ("High Achiever", "Balanced Learner", "Developing Student")
PERSONA_CHARACTERISTICS = (
    ("Strong across all cognitive skills", "High assessment scores", "Consistent engagement"),
    ("Moderate performance", "Balanced skill development", "Steady progress"),
    ("Areas for improvement identified", "Potential for growth", "May benefit from targeted support"),
)
FALLBACK_PERSONA = "Unique Learner"
FALLBACK_CHARACTERISTICS = ("Individual learning pattern",)


def build_feature_matrix(df: pd.DataFrame) -> np.ndarray:
    """
    Stack the clustering features: four skills, score / 100, engagement / 100.

    Engagement time is only roughly rescaled; values above 100 minutes stay above 1.
    """
    columns = [df[skill].to_numpy(dtype=float) for skill in SKILL_FEATURES]
    columns.append(df["assessment_score"].to_numpy(dtype=float) / 100)
    columns.append(df["engagement_time"].to_numpy(dtype=float) / 100)
    return np.column_stack(columns)


def persona_for(cluster: int) -> Tuple[str, Tuple[str, ...]]:
    """Persona label and characteristics for a cluster index."""
    if 0 <= cluster < len(PERSONAS):
        return PERSONAS[cluster], PERSONA_CHARACTERISTICS[cluster]
    return FALLBACK_PERSONA, FALLBACK_CHARACTERISTICS


def kmeans(
    features: np.ndarray,
    k: int,
    rng: np.random.Generator,
    max_iterations: int = MAX_ITERATIONS,
) -> Tuple[np.ndarray, np.ndarray, int, bool]:
    """
    Lloyd's k-means with random-point initialization.

    Initial centroids are k independent uniform picks from the points, so
    duplicates are possible. Each pass assigns every point to its nearest
    centroid (lowest index on ties) and moves each non-empty cluster's
    centroid to the mean of its points. The loop stops when the assignment
    vector repeats or after max_iterations updates, never more than
    MAX_ITERATIONS.

    Returns:
        Tuple of (assignments, centroids, iterations, converged)
    """
    max_iterations = min(max_iterations, MAX_ITERATIONS)
    n = len(features)
    centroids = features[rng.integers(0, n, size=k)].copy()
    assignments = np.zeros(n, dtype=int)

    iterations = 0
    converged = False
    while iterations < max_iterations:
        # argmin returns the first minimum, so ties go to the lowest index
        new_assignments = cdist(features, centroids, metric="euclidean").argmin(axis=1)

        if np.array_equal(new_assignments, assignments):
            converged = True
            break

        assignments = new_assignments

        for i in range(k):
            members = features[assignments == i]
            if len(members) > 0:
                centroids[i] = members.mean(axis=0)
            else:
                logger.debug(f"   Cluster {i} is empty; centroid left in place")

        iterations += 1

    return assignments, centroids, iterations, converged


def run_clustering(
    df: pd.DataFrame,
    k: int = DEFAULT_CLUSTER_COUNT,
    rng: Optional[np.random.Generator] = None,
    max_iterations: int = MAX_ITERATIONS,
) -> ClusterRun:
    """
    Cluster students and label each cluster with a persona.

    Args:
        df: Student dataset
        k: Number of clusters
        rng: Random generator for centroid initialization (unseeded if None)
        max_iterations: Cap on centroid updates

    Returns:
        ClusterRun: Per-student assignments in input order plus run diagnostics
    """
    if k < 1:
        raise ValueError(f"Cluster count must be at least 1, got {k}")

    if len(df) < k:
        logger.warning(
            f"   ⚠️  Only {len(df)} students for {k} clusters; every student gets its own group"
        )
        assignments = tuple(
            ClusterAssignment(
                student_id=int(row["student_id"]),
                name=str(row["name"]),
                class_name=str(row["class"]),
                cluster=index,
                persona=FALLBACK_PERSONA,
                characteristics=FALLBACK_CHARACTERISTICS,
            )
            for index, (_, row) in enumerate(df.iterrows())
        )
        return ClusterRun(assignments=assignments, iterations=0, converged=True)

    if rng is None:
        rng = np.random.default_rng()

    features = build_feature_matrix(df)
    max_iterations = min(max_iterations, MAX_ITERATIONS)
    labels, centroids, iterations, converged = kmeans(features, k, rng, max_iterations)

    if converged:
        logger.info(f"   ✓ k-means converged after {iterations} updates (k={k})")
    else:
        logger.warning(f"   ⚠️  k-means stopped at the {max_iterations}-iteration cap without converging")

    assignments = []
    for (_, row), cluster in zip(df.iterrows(), labels):
        persona, characteristics = persona_for(int(cluster))
        assignments.append(ClusterAssignment(
            student_id=int(row["student_id"]),
            name=str(row["name"]),
            class_name=str(row["class"]),
            cluster=int(cluster),
            persona=persona,
            characteristics=characteristics,
        ))

    return ClusterRun(
        assignments=tuple(assignments),
        iterations=iterations,
        converged=converged,
        centroids=tuple(tuple(float(v) for v in centroid) for centroid in centroids),
    )


def perform_clustering(
    df: pd.DataFrame,
    k: int = DEFAULT_CLUSTER_COUNT,
    rng: Optional[np.random.Generator] = None,
    max_iterations: int = MAX_ITERATIONS,
) -> List[ClusterAssignment]:
    """Cluster students and return only the per-student assignments."""
    return list(run_clustering(df, k=k, rng=rng, max_iterations=max_iterations).assignments)
