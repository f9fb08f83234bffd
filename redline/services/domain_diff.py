"""Compares one domain's v1 and v2 summaries."""

import logging

from pydantic import BaseModel

from redline.schemas.domain import DomainDiff, DomainSummary
from redline.services.analysis_client import (
    AnalysisClient,
    AnalysisError,
    ResponseParseError,
    decode_response,
)
from redline.services.summarizer import is_placeholder

logger = logging.getLogger(__name__)

DIFF_ERROR = "error generating diff"
DIFF_ERROR_IMPACT = "unknown"
NO_MATERIAL_CHANGE = "No material changes detected in this domain."

DIFF_SYSTEM_PROMPT = (
    "You are a contract comparison specialist. Given summaries of one business "
    "domain for two versions of a contract, decide whether the domain changed "
    "meaningfully. Respond only with a JSON object."
)


class DiffResponse(BaseModel):
    changed: bool
    diff: str = ""
    impact: str = ""


def _build_prompt(client: AnalysisClient, v1: DomainSummary, v2: DomainSummary) -> str:
    return (
        f"Domain: {v1.domain.value}\n\n"
        f"VERSION 1 SUMMARY:\n{client.truncate(v1.summary)}\n\n"
        f"VERSION 2 SUMMARY:\n{client.truncate(v2.summary)}\n\n"
        "Return a JSON object with:\n"
        "- changed: true if the domain changed meaningfully, otherwise false\n"
        "- diff: what changed between the versions (empty if unchanged)\n"
        "- impact: the business impact of the change"
    )


def error_diff(v1: DomainSummary, v2: DomainSummary) -> DomainDiff:
    return DomainDiff(
        domain=v1.domain,
        changed=False,
        v1_summary=v1.summary,
        v2_summary=v2.summary,
        diff=DIFF_ERROR,
        impact=DIFF_ERROR_IMPACT,
    )


async def generate_domain_diff(
    client: AnalysisClient,
    v1: DomainSummary,
    v2: DomainSummary,
) -> DomainDiff:
    """Describe how a domain changed between versions.

    A domain with no clauses in either version is unchanged and needs no
    request.
    """
    if is_placeholder(v1) and is_placeholder(v2):
        return DomainDiff(
            domain=v1.domain,
            changed=False,
            v1_summary=v1.summary,
            v2_summary=v2.summary,
            diff=NO_MATERIAL_CHANGE,
            impact="none",
        )

    try:
        raw = await client.complete(client.high, DIFF_SYSTEM_PROMPT, _build_prompt(client, v1, v2))
        parsed = decode_response(raw, DiffResponse)
    except (AnalysisError, ResponseParseError) as e:
        logger.warning("Diff generation failed for %s domain: %s", v1.domain.value, e)
        return error_diff(v1, v2)

    return DomainDiff(
        domain=v1.domain,
        changed=parsed.changed,
        v1_summary=v1.summary,
        v2_summary=v2.summary,
        diff=parsed.diff,
        impact=parsed.impact,
    )
