"""Shared dependencies for FastAPI routes."""

from __future__ import annotations

from fastapi import HTTPException, Request

from redline.core.config import settings
from redline.services.analysis_client import AnalysisClient
from redline.services.pipeline import ComparisonPipeline, PipelineOptions


def get_analysis_client(request: Request) -> AnalysisClient:
    """Analysis client created at startup; 503 when not configured."""
    client = getattr(request.app.state, "analysis_client", None)
    if client is None:
        raise HTTPException(status_code=503, detail="Analysis service not configured")
    return client


def get_pipeline(request: Request) -> ComparisonPipeline:
    return ComparisonPipeline(get_analysis_client(request), PipelineOptions.from_settings(settings))


__all__ = ["get_analysis_client", "get_pipeline"]
