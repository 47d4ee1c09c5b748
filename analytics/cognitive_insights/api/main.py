"""
FastAPI application for serving Cognitive Insights Engine analyses.

Provides HTTP endpoints that run the analysis pipeline on posted student data.

Usage:
    uvicorn analytics.cognitive_insights.api.main:app --reload --port 8000

Endpoints:
    GET  /                   - Health check
    POST /api/analyze        - Full analysis (statistics, model, clusters, insights)
    POST /api/correlations   - Skill correlations and skill correlation matrix
"""

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional
from dataclasses import replace
import logging

import numpy as np

from analytics.cognitive_insights.config import get_config
from analytics.cognitive_insights.correlation_analyzer import (
    compute_skill_correlation_matrix,
    compute_skill_correlations,
)
from analytics.cognitive_insights.pipeline import run_analysis
from analytics.cognitive_insights.schemas import matrix_to_dict, records_to_frame

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Cognitive Insights Engine API",
    description="API for running student cognitive-skill and assessment analyses",
    version="1.0.0"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict to your dashboard domain
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class StudentIn(BaseModel):
    """One student row as posted by the dashboard."""

    model_config = ConfigDict(populate_by_name=True)

    student_id: int
    name: str = Field(..., min_length=1)
    class_name: str = Field(..., alias="class", min_length=1)
    comprehension: float = Field(..., ge=0, le=1)
    attention: float = Field(..., ge=0, le=1)
    focus: float = Field(..., ge=0, le=1)
    retention: float = Field(..., ge=0, le=1)
    assessment_score: float = Field(..., ge=0, le=100)
    engagement_time: float = Field(..., ge=0)


class AnalysisRequest(BaseModel):
    students: List[StudentIn]
    cluster_count: Optional[int] = Field(None, ge=1, description="Override CLUSTER_COUNT")
    random_state: Optional[int] = Field(None, description="Seed for k-means initialization")


class CorrelationRequest(BaseModel):
    students: List[StudentIn]


def _frame(students: List[StudentIn]):
    return records_to_frame(student.model_dump() for student in students)


@app.get("/")
def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "Cognitive Insights Engine API",
        "version": "1.0.0"
    }


@app.post("/api/analyze")
def analyze(request: AnalysisRequest) -> Dict:
    """
    Run the full analysis pipeline on the posted students.

    Machine-learning results are null (with ml_skipped_reason set) when the
    dataset is below MIN_STUDENTS_FOR_ML.

    Returns:
        dict: {
            'status': 'success',
            'data': AnalysisResult.to_dict(),
            'metadata': {'student_count': int, 'cluster_count': int, 'random_state': int | None}
        }
    """
    try:
        config = get_config()
        if request.cluster_count is not None:
            config = replace(config, cluster_count=request.cluster_count)
        if request.random_state is not None:
            config = replace(config, random_state=request.random_state)

        df = _frame(request.students)
        result = run_analysis(df, config=config, rng=np.random.default_rng(config.random_state))

    except ValueError as e:
        logger.error(f"Invalid analysis request: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "status": "success",
        "data": result.to_dict(),
        "metadata": {
            "student_count": len(df),
            "cluster_count": config.cluster_count,
            "random_state": config.random_state,
        }
    }


@app.post("/api/correlations")
def correlations(request: CorrelationRequest) -> Dict:
    """
    Correlate each skill with assessment score and with the other skills.

    Returns:
        dict: {
            'status': 'success',
            'data': {
                'correlations': [{'skill': str, 'correlation': float}, ...],
                'skill_matrix': {skill: {skill: float}}
            }
        }
    """
    df = _frame(request.students)
    matrix = compute_skill_correlation_matrix(df)

    return {
        "status": "success",
        "data": {
            "correlations": [entry.to_dict() for entry in compute_skill_correlations(df)],
            "skill_matrix": matrix_to_dict(matrix),
        },
    }


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="0.0.0.0", port=8000)
