"""
Shared fixtures for the Cognitive Insights Engine tests.
"""

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))))

import numpy as np
import pandas as pd
import pytest

from analytics.cognitive_insights.config import Config, reset_config
from analytics.cognitive_insights.schemas import records_to_frame


def make_student(student_id, skill, score, engagement, name=None, class_name="A"):
    """Student whose four skills all equal `skill`."""
    return {
        "student_id": student_id,
        "name": name or f"Student {student_id}",
        "class": class_name,
        "comprehension": skill,
        "attention": skill,
        "focus": skill,
        "retention": skill,
        "assessment_score": score,
        "engagement_time": engagement,
    }


@pytest.fixture(autouse=True)
def clean_config():
    """Keep the cached global config from leaking between tests."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def config():
    return Config(random_state=42)


@pytest.fixture
def scenario_df():
    """Three students whose skills and scores rise together."""
    return records_to_frame([
        make_student(1, 0.9, 95, 60, name="Ada", class_name="Grade 5"),
        make_student(2, 0.5, 70, 40, name="Ben", class_name="Grade 5"),
        make_student(3, 0.1, 30, 20, name="Cy", class_name="Grade 6"),
    ])


@pytest.fixture
def random_df():
    """Sixty synthetic students across three classes."""
    rng = np.random.default_rng(42)
    n = 60
    skills = rng.uniform(0, 1, size=(n, 4))
    scores = np.clip(skills.mean(axis=1) * 80 + rng.normal(10, 8, n), 0, 100)
    return pd.DataFrame({
        "student_id": np.arange(1, n + 1),
        "name": [f"Student {i}" for i in range(1, n + 1)],
        "class": [f"Class {'ABC'[i % 3]}" for i in range(n)],
        "comprehension": skills[:, 0],
        "attention": skills[:, 1],
        "focus": skills[:, 2],
        "retention": skills[:, 3],
        "assessment_score": scores,
        "engagement_time": rng.uniform(5, 150, n),
    })


@pytest.fixture
def student():
    """Factory for single student rows (see make_student)."""
    return make_student
