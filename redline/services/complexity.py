"""Complexity and impact triage for change regions."""

import asyncio
import logging

from pydantic import BaseModel

from redline.schemas.domain import ChangeRegion, Complexity, ComplexityClass, Impact
from redline.services.analysis_client import (
    AnalysisClient,
    AnalysisError,
    ResponseParseError,
    decode_response,
)

logger = logging.getLogger(__name__)

SMALL_CHANGE_CLASS = ComplexityClass(complexity=Complexity.low, impact=Impact.minimal)
# Unclassifiable regions are analysed rather than skipped
FALLBACK_CLASS = ComplexityClass(complexity=Complexity.medium, impact=Impact.moderate)

CLASSIFY_SYSTEM_PROMPT = (
    "You are a contract analysis assistant that classifies changes between "
    "contract versions. Respond only with a JSON object."
)


class ClassificationResponse(BaseModel):
    complexity: Complexity = Complexity.low
    impact: Impact = Impact.minimal


def _build_prompt(client: AnalysisClient, region: ChangeRegion) -> str:
    return (
        "Classify the complexity and impact of this contract change.\n\n"
        f"OLD VERSION:\n{client.truncate(region.old_text)}\n\n"
        f"NEW VERSION:\n{client.truncate(region.new_text)}\n\n"
        "Respond with a JSON object containing:\n"
        '- complexity: "low", "medium", or "high"\n'
        '- impact: "minimal", "moderate", or "significant"'
    )


async def classify_region(
    client: AnalysisClient,
    region: ChangeRegion,
    small_change_threshold: int = 100,
) -> ComplexityClass:
    """Classify one substantive region.

    Regions smaller than ``small_change_threshold`` characters (both sides
    combined) are classified low/minimal without a request.
    """
    if region.size < small_change_threshold:
        return SMALL_CHANGE_CLASS

    try:
        text = await client.complete(client.high, CLASSIFY_SYSTEM_PROMPT, _build_prompt(client, region))
        parsed = decode_response(text, ClassificationResponse)
    except (AnalysisError, ResponseParseError) as e:
        logger.warning("Classification failed for region %d, using default: %s", region.index, e)
        return FALLBACK_CLASS

    return ComplexityClass(complexity=parsed.complexity, impact=parsed.impact)


async def classify_regions(
    client: AnalysisClient,
    regions: list[ChangeRegion],
    small_change_threshold: int = 100,
) -> list[tuple[ChangeRegion, ComplexityClass]]:
    """Classify all regions concurrently, preserving order."""
    classes = await asyncio.gather(
        *(classify_region(client, region, small_change_threshold) for region in regions)
    )
    return list(zip(regions, classes))
