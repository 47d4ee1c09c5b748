"""
Configuration management for the Cognitive Insights Engine.

Loads environment variables and provides analysis settings.
"""

import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

from .clustering import MAX_ITERATIONS

# Load environment variables from .env file
load_dotenv()


@dataclass
class Config:
    """Configuration settings for the analysis pipeline."""

    # Clustering
    cluster_count: int = 3
    max_iterations: int = 50
    random_state: Optional[int] = None

    # Machine learning gate (the trainer itself needs 2)
    min_students_for_ml: int = 3

    # Insight thresholds
    high_performer_threshold: float = 85.0
    low_performer_threshold: float = 60.0

    # Logging
    log_level: str = "INFO"
    verbose: bool = True

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create a Config instance from environment variables.

        Optional environment variables:
        - CLUSTER_COUNT: Number of k-means clusters (default 3)
        - KMEANS_MAX_ITERATIONS: Iteration cap for k-means (default and maximum 50)
        - RANDOM_STATE: Seed for k-means initialization (default: unseeded)
        - MIN_STUDENTS_FOR_ML: Minimum dataset size for the ML pass (default 3)
        - HIGH_PERFORMER_THRESHOLD / LOW_PERFORMER_THRESHOLD: Score cut-offs
        - LOG_LEVEL, VERBOSE

        Returns:
            Config: Configuration instance
        """
        try:
            cluster_count = int(os.getenv("CLUSTER_COUNT", "3"))
            max_iterations = int(os.getenv("KMEANS_MAX_ITERATIONS", "50"))
            min_students = int(os.getenv("MIN_STUDENTS_FOR_ML", "3"))
            high_threshold = float(os.getenv("HIGH_PERFORMER_THRESHOLD", "85"))
            low_threshold = float(os.getenv("LOW_PERFORMER_THRESHOLD", "60"))
            random_state_raw = os.getenv("RANDOM_STATE")
            random_state = int(random_state_raw) if random_state_raw else None
        except ValueError as e:
            raise ValueError(f"Invalid numeric configuration value: {e}") from e

        log_level = os.getenv("LOG_LEVEL", "INFO")
        verbose = os.getenv("VERBOSE", "true").lower() == "true"

        return cls(
            cluster_count=cluster_count,
            max_iterations=max_iterations,
            random_state=random_state,
            min_students_for_ml=min_students,
            high_performer_threshold=high_threshold,
            low_performer_threshold=low_threshold,
            log_level=log_level,
            verbose=verbose,
        )

    def __post_init__(self):
        """Validate settings."""
        if self.cluster_count < 1:
            raise ValueError(f"cluster_count must be at least 1, got {self.cluster_count}")
        if not 1 <= self.max_iterations <= MAX_ITERATIONS:
            raise ValueError(
                f"max_iterations must be between 1 and {MAX_ITERATIONS}, got {self.max_iterations}"
            )
        if self.min_students_for_ml < 2:
            raise ValueError(
                f"min_students_for_ml must be at least 2, got {self.min_students_for_ml}"
            )


# Global config instance (lazy loaded)
_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global configuration instance.

    Returns:
        Config: Global configuration object
    """
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Drop the cached global configuration so the next call re-reads the environment."""
    global _config
    _config = None
