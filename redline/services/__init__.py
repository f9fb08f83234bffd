"""Business logic services."""

from redline.services.analysis_client import (
    AnalysisClient,
    AnalysisError,
    AnalysisTimeoutError,
    DepthConfig,
    ResponseParseError,
)
from redline.services.pipeline import (
    ComparisonError,
    ComparisonPipeline,
    PipelineOptions,
    compare_contract_versions,
)

__all__ = [
    "AnalysisClient",
    "AnalysisError",
    "AnalysisTimeoutError",
    "DepthConfig",
    "ResponseParseError",
    "ComparisonError",
    "ComparisonPipeline",
    "PipelineOptions",
    "compare_contract_versions",
]
