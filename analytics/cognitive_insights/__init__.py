"""
Cognitive Insights Engine

This package analyzes student cognitive-skill and assessment data: descriptive
statistics, skill/score correlations, a coordinate-wise regression model,
k-means learner personas and natural-language insights.

Modules:
- config: Configuration management and environment variables
- schemas: Record and result value types
- dataset_loader: Load and validate student CSV files
- correlation_analyzer: Pearson correlations and overview statistics
- regression_model: Train the regression model and predict scores
- clustering: K-means clustering with persona labels
- insights: Natural-language summary statements
- pipeline: Full analysis pass over one dataset snapshot
- report_export: CSV, JSON and HTML exports and reports
- run: CLI entry point for running the full pipeline
"""

__version__ = "1.0.0"
__author__ = "Cognitive Insights Team"

from .config import Config, get_config
from .schemas import (
    AnalysisResult,
    ClusterAssignment,
    CorrelationEntry,
    PredictionResult,
    RegressionModel,
    StudentRecord,
    records_to_frame,
)
from .dataset_loader import DatasetValidationError, load_student_dataset
from .correlation_analyzer import compute_skill_correlations, pearson_correlation
from .regression_model import InsufficientDataError, make_predictions, train_linear_regression
from .clustering import perform_clustering
from .insights import generate_insights
from .pipeline import run_analysis

__all__ = [
    "Config",
    "get_config",
    "AnalysisResult",
    "ClusterAssignment",
    "CorrelationEntry",
    "PredictionResult",
    "RegressionModel",
    "StudentRecord",
    "records_to_frame",
    "DatasetValidationError",
    "load_student_dataset",
    "compute_skill_correlations",
    "pearson_correlation",
    "InsufficientDataError",
    "make_predictions",
    "train_linear_regression",
    "perform_clustering",
    "generate_insights",
    "run_analysis",
]
