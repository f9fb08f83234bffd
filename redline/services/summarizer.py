"""Per-domain aggregation of extracted clauses into a summary."""

import json
import logging
from typing import Any

from pydantic import BaseModel, Field, field_validator

from redline.schemas.domain import Domain, DomainClause, DomainSummary
from redline.services.analysis_client import (
    AnalysisClient,
    AnalysisError,
    ResponseParseError,
    decode_response,
)

logger = logging.getLogger(__name__)

NO_RELEVANT_CLAUSES = "No relevant clauses found in this version."
MINOR_CHANGES_ONLY = "Minor changes only; no significant impact on this domain."
SUMMARY_FAILED = "Summary generation failed for this domain."

PLACEHOLDER_SUMMARIES = frozenset({NO_RELEVANT_CLAUSES, MINOR_CHANGES_ONLY})

SUMMARY_SYSTEM_PROMPT = (
    "You are a senior contract reviewer writing a briefing for one business "
    "domain. Summarize the supplied clauses and rank the most important ones. "
    "Respond only with a JSON object."
)


class SummaryResponse(BaseModel):
    summary: str
    key_clause_indices: list[int] = Field(default_factory=list)

    @field_validator("key_clause_indices", mode="before")
    @classmethod
    def _drop_non_integers(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, int) and not isinstance(item, bool)]


def no_relevant_summary(domain: Domain) -> DomainSummary:
    return DomainSummary(domain=domain, summary=NO_RELEVANT_CLAUSES)


def minor_change_summary(domain: Domain) -> DomainSummary:
    """Placeholder for domains in a run whose regions are all low tier."""
    return DomainSummary(domain=domain, summary=MINOR_CHANGES_ONLY)


def is_placeholder(summary: DomainSummary) -> bool:
    """Whether a summary was produced without any clauses to summarize."""
    return not summary.key_clauses and summary.summary in PLACEHOLDER_SUMMARIES


def _build_prompt(client: AnalysisClient, domain: Domain, clauses: list[DomainClause]) -> str:
    listing = [
        {
            "index": i,
            "clause_type": clause.clause_type,
            "clause_summary": clause.clause_summary,
            "impact": clause.impact,
            "risk_tags": clause.risk_tags,
            "favorability": clause.favorability.value,
        }
        for i, clause in enumerate(clauses)
    ]
    return (
        f"Domain: {domain.value}\n\n"
        f"Clauses:\n{client.truncate(json.dumps(listing, indent=2))}\n\n"
        "Return a JSON object with:\n"
        f"- summary: a concise narrative of what these clauses mean for the {domain.value} domain\n"
        "- key_clause_indices: indices of the most important clauses, most important first"
    )


def _select_key_clauses(clauses: list[DomainClause], indices: list[int]) -> list[DomainClause]:
    selected = []
    seen = set()
    for i in indices:
        if 0 <= i < len(clauses) and i not in seen:
            seen.add(i)
            selected.append(clauses[i])
    return selected


async def summarize_domain(
    client: AnalysisClient,
    domain: Domain,
    clauses: list[DomainClause],
) -> DomainSummary:
    """Summarize one domain's clauses for one version.

    No clauses means no request. Failure yields a summary stating generation
    failed with no key clauses.
    """
    if not clauses:
        return no_relevant_summary(domain)

    try:
        raw = await client.complete(client.high, SUMMARY_SYSTEM_PROMPT, _build_prompt(client, domain, clauses))
        parsed = decode_response(raw, SummaryResponse)
    except (AnalysisError, ResponseParseError) as e:
        logger.warning("Summary generation failed for %s domain: %s", domain.value, e)
        return DomainSummary(domain=domain, summary=SUMMARY_FAILED)

    return DomainSummary(
        domain=domain,
        summary=parsed.summary,
        key_clauses=_select_key_clauses(clauses, parsed.key_clause_indices),
    )
