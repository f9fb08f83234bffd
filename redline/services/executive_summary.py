"""Cross-domain executive summary of a comparison."""

import json
import logging
import math
from typing import Any

from pydantic import BaseModel, Field, field_validator

from redline.schemas.domain import Domain, DomainDiff, ExecutiveSummary, FavorabilityShift
from redline.services.analysis_client import (
    AnalysisClient,
    AnalysisError,
    ResponseParseError,
    decode_response,
)

logger = logging.getLogger(__name__)

RISK_DELTA_BOUND = 10.0
EXECUTIVE_ERROR = "error generating executive summary"

EXECUTIVE_SYSTEM_PROMPT = (
    "You are advising contract negotiators. Given per-domain differences between "
    "two versions of a contract, write an executive summary of the revision and "
    "how it shifts risk and leverage. Respond only with a JSON object."
)


class ExecutiveResponse(BaseModel):
    summary: str
    favorability_shift: FavorabilityShift = FavorabilityShift.neutral
    risk_score_delta: float = 0.0
    flagged_domains: list[Domain] = Field(default_factory=list)

    @field_validator("favorability_shift", mode="before")
    @classmethod
    def _coerce_shift(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().lower() in FavorabilityShift.__members__:
            return value.strip().lower()
        return FavorabilityShift.neutral

    @field_validator("risk_score_delta", mode="after")
    @classmethod
    def _clamp_delta(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("risk_score_delta must be a finite number")
        return max(-RISK_DELTA_BOUND, min(RISK_DELTA_BOUND, value))

    @field_validator("flagged_domains", mode="before")
    @classmethod
    def _known_domains(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return []
        known = []
        for item in value:
            name = item.strip().lower() if isinstance(item, str) else None
            if name in Domain.__members__ and name not in known:
                known.append(name)
        return known


def error_summary() -> ExecutiveSummary:
    return ExecutiveSummary(
        summary=EXECUTIVE_ERROR,
        favorability_shift=FavorabilityShift.neutral,
        risk_score_delta=0.0,
        flagged_domains=[],
    )


def _build_prompt(client: AnalysisClient, diffs: list[DomainDiff]) -> str:
    listing = [
        {
            "domain": d.domain.value,
            "changed": d.changed,
            "diff": d.diff,
            "impact": d.impact,
        }
        for d in diffs
    ]
    return (
        f"Domain differences:\n{client.truncate(json.dumps(listing, indent=2))}\n\n"
        "Return a JSON object with:\n"
        "- summary: an overall narrative of what changed and why it matters\n"
        '- favorability_shift: "buyer", "vendor", or "neutral" - who the revision favours\n'
        "- risk_score_delta: a number from -10 (much less risky) to 10 (much riskier)\n"
        "- flagged_domains: domains whose changes need attention"
    )


async def synthesize_executive_summary(
    client: AnalysisClient,
    diffs: list[DomainDiff],
) -> ExecutiveSummary:
    """Synthesize one executive summary from all domain diffs."""
    try:
        raw = await client.complete(client.high, EXECUTIVE_SYSTEM_PROMPT, _build_prompt(client, diffs))
        parsed = decode_response(raw, ExecutiveResponse)
    except (AnalysisError, ResponseParseError) as e:
        logger.warning("Executive summary generation failed: %s", e)
        return error_summary()

    return ExecutiveSummary(
        summary=parsed.summary,
        favorability_shift=parsed.favorability_shift,
        risk_score_delta=parsed.risk_score_delta,
        flagged_domains=parsed.flagged_domains,
    )
