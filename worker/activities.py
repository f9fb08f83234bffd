"""Temporal Activities for the contract comparison workflow.

This module contains the activity executed by the worker:
- run_comparison: Compare two contract versions with the analysis pipeline
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from temporalio import activity

from redline.core.config import settings
from redline.schemas.domain import ContractVersion
from redline.services.analysis_client import AnalysisClient
from redline.services.pipeline import ComparisonPipeline, PipelineOptions

logger = logging.getLogger(__name__)

_client: Optional[AnalysisClient] = None


def get_analysis_client() -> AnalysisClient:
    """Get or lazily build the worker's analysis client.

    Lazy initialization avoids failures at import time when no API key is set.
    """
    global _client
    if _client is None:
        _client = AnalysisClient.from_settings(settings)
    return _client


@activity.defn
async def run_comparison(v1_data: dict[str, Any], v2_data: dict[str, Any]) -> dict[str, Any]:
    """Compare two contract versions.

    Args:
        v1_data: ContractVersion fields of the earlier version.
        v2_data: ContractVersion fields of the later version.

    Returns:
        Dict representation of ComparisonResult (via model_dump()).

    Raises:
        ComparisonError: If the pipeline fails outside its per-call fallbacks.
        ValidationError: If either version payload is malformed.
    """
    v1 = ContractVersion.model_validate(v1_data)
    v2 = ContractVersion.model_validate(v2_data)

    logger.info(
        "Running comparison activity for versions %d and %d (%d/%d chars)",
        v1.version_number,
        v2.version_number,
        len(v1.text),
        len(v2.text),
    )

    pipeline = ComparisonPipeline(get_analysis_client(), PipelineOptions.from_settings(settings))
    result = await pipeline.compare(v1, v2)

    return result.model_dump(mode="json")


__all__ = ["get_analysis_client", "run_comparison"]
