"""Four-domain clause extraction for change regions.

A single request evaluates one side of a region against every domain at
once, so the number of calls grows with regions rather than with
regions times domains.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from redline.schemas.domain import DOMAINS, ChangeRegion, Domain, DomainClause, Favorability
from redline.services.analysis_client import (
    AnalysisClient,
    AnalysisError,
    DepthConfig,
    ResponseParseError,
    decode_response,
)

logger = logging.getLogger(__name__)

DOMAIN_ROLES = {
    Domain.legal: (
        "Legal: liability, indemnity, warranties, termination rights, governing law, "
        "dispute resolution and intellectual property."
    ),
    Domain.commercial: (
        "Commercial: pricing, payment terms, fees, discounts, exclusivity, volume "
        "commitments and renewal economics."
    ),
    Domain.compliance: (
        "Compliance: data protection, privacy, regulatory obligations, audit rights, "
        "export controls and certifications."
    ),
    Domain.operational: (
        "Operational: service levels, deliverables, timelines, acceptance, support, "
        "dependencies and change management."
    ),
}

EXTRACT_SYSTEM_PROMPT = (
    "You are a contract analyst reviewing one excerpt of a contract from four "
    "business perspectives at once:\n"
    + "\n".join(f"- {role}" for role in DOMAIN_ROLES.values())
    + "\n\nRespond only with a JSON object."
)


class RegionSide(str, Enum):
    """Which version's text of a region is analysed."""

    old = "old"
    new = "new"


class DomainFinding(BaseModel):
    """One domain's entry in an extraction response."""

    model_config = ConfigDict(extra="ignore")

    relevant: bool = False
    clause_type: str = ""
    clause_summary: str = ""
    impact: str = ""
    risk_tags: list[str] = Field(default_factory=list)
    favorability: Favorability = Favorability.unclear

    @field_validator("clause_type", "clause_summary", "impact", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("risk_tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("favorability", mode="before")
    @classmethod
    def _coerce_favorability(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().lower() in Favorability.__members__:
            return value.strip().lower()
        return Favorability.unclear


class ExtractionResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    legal: Optional[DomainFinding] = None
    commercial: Optional[DomainFinding] = None
    compliance: Optional[DomainFinding] = None
    operational: Optional[DomainFinding] = None

    @field_validator("legal", "commercial", "compliance", "operational", mode="wrap")
    @classmethod
    def _drop_malformed(cls, value: Any, handler, info) -> Optional[DomainFinding]:
        # A malformed entry drops only its own domain
        try:
            return handler(value)
        except ValidationError as e:
            logger.warning("Ignoring malformed %s finding (%d errors)", info.field_name, e.error_count())
            return None

    def finding(self, domain: Domain) -> Optional[DomainFinding]:
        return getattr(self, domain.value)


def _build_prompt(client: AnalysisClient, text: str, side: RegionSide) -> str:
    version = "original" if side == RegionSide.old else "revised"
    return (
        f"Contract excerpt ({version} version):\n"
        f"{client.truncate(text)}\n\n"
        "For EACH domain (legal, commercial, compliance, operational) decide whether "
        "the excerpt contains a clause relevant to that domain.\n\n"
        "Return a JSON object with exactly one key per domain. Each value is an object with:\n"
        "- relevant: true or false\n"
        "- clause_type: short name of the clause (e.g. \"Limitation of Liability\")\n"
        "- clause_summary: one or two sentences describing what the clause says\n"
        "- impact: the business impact of the clause for this domain\n"
        "- risk_tags: array of short risk labels\n"
        '- favorability: "buyer", "vendor", "mutual", or "unclear"\n\n'
        "Only relevant entries need clause fields; use {\"relevant\": false} otherwise."
    )


async def extract_domain_clauses(
    client: AnalysisClient,
    region: ChangeRegion,
    side: RegionSide,
    depth: DepthConfig,
) -> list[DomainClause]:
    """Extract relevant clauses from one side of a region.

    Any failure yields an empty list; an empty side issues no request.
    """
    text = region.old_text if side == RegionSide.old else region.new_text
    if not text.strip():
        return []

    try:
        raw = await client.complete(depth, EXTRACT_SYSTEM_PROMPT, _build_prompt(client, text, side))
        parsed = decode_response(raw, ExtractionResponse)
    except (AnalysisError, ResponseParseError) as e:
        logger.warning(
            "Clause extraction failed for region %d (%s side, %s depth): %s",
            region.index,
            side.value,
            depth.name,
            e,
        )
        return []

    clauses = []
    for domain in DOMAINS:
        finding = parsed.finding(domain)
        if finding is None or not finding.relevant:
            continue
        clauses.append(
            DomainClause(
                region_ref=region.index,
                domain=domain,
                relevant=True,
                clause_type=finding.clause_type,
                clause_summary=finding.clause_summary,
                impact=finding.impact,
                risk_tags=finding.risk_tags,
                favorability=finding.favorability,
            )
        )
    return clauses


async def extract_region_clauses(
    client: AnalysisClient,
    region: ChangeRegion,
    depth: DepthConfig,
) -> tuple[list[DomainClause], list[DomainClause]]:
    """Extract both sides of a region concurrently.

    Returns:
        (old-side clauses, new-side clauses)
    """
    old_clauses, new_clauses = await asyncio.gather(
        extract_domain_clauses(client, region, RegionSide.old, depth),
        extract_domain_clauses(client, region, RegionSide.new, depth),
    )
    return old_clauses, new_clauses
