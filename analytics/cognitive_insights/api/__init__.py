"""
FastAPI application for the Cognitive Insights Engine.

Provides HTTP endpoints that run analyses on posted student data.
"""

from .main import app

__all__ = ["app"]
