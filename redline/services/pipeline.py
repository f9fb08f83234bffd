"""Version comparison pipeline.

Stages, in order: region diff -> formatting filter -> complexity triage ->
tier routing -> clause extraction -> domain summaries -> domain diffs ->
executive summary. Each stage fans its independent calls out with
``asyncio.gather`` and joins them before the next stage starts.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from redline.core.config import Settings
from redline.schemas.domain import (
    DOMAINS,
    ComparisonResult,
    ContractVersion,
    Domain,
    DomainClause,
    DomainDiff,
    DomainSummary,
    ExecutiveSummary,
    FavorabilityShift,
    VersionSummaries,
)
from redline.services.analysis_client import AnalysisClient
from redline.services.clause_extractor import extract_region_clauses
from redline.services.complexity import classify_regions
from redline.services.domain_diff import generate_domain_diff
from redline.services.executive_summary import synthesize_executive_summary
from redline.services.region_differ import filter_substantive, identify_change_regions
from redline.services.summarizer import minor_change_summary, summarize_domain
from redline.services.tier_router import TierPartition, partition_regions

logger = logging.getLogger(__name__)

NO_SIGNIFICANT_CHANGES = "No significant changes detected between versions"

ClausesByDomain = dict[Domain, list[DomainClause]]


class ComparisonError(RuntimeError):
    """Raised when the comparison fails outside any per-call fallback."""

    pass


@dataclass(frozen=True)
class PipelineOptions:
    small_change_threshold: int = 100
    context_break_lines: int = 5
    context_lines: int = 2

    @classmethod
    def from_settings(cls, settings: Settings) -> "PipelineOptions":
        return cls(
            small_change_threshold=settings.SMALL_CHANGE_THRESHOLD,
            context_break_lines=settings.CONTEXT_BREAK_LINES,
            context_lines=settings.CONTEXT_LINES,
        )


def unchanged_result(v1: ContractVersion, v2: ContractVersion) -> ComparisonResult:
    """Result for versions without any substantive change."""

    def summaries() -> list[DomainSummary]:
        return [DomainSummary(domain=domain, summary=NO_SIGNIFICANT_CHANGES) for domain in DOMAINS]

    return ComparisonResult(
        v1=VersionSummaries(version_number=v1.version_number, domain_summaries=summaries()),
        v2=VersionSummaries(version_number=v2.version_number, domain_summaries=summaries()),
        diffs=[
            DomainDiff(
                domain=domain,
                changed=False,
                v1_summary=NO_SIGNIFICANT_CHANGES,
                v2_summary=NO_SIGNIFICANT_CHANGES,
                diff=NO_SIGNIFICANT_CHANGES,
                impact="none",
            )
            for domain in DOMAINS
        ],
        executive_summary=ExecutiveSummary(
            summary=NO_SIGNIFICANT_CHANGES,
            favorability_shift=FavorabilityShift.neutral,
            risk_score_delta=0.0,
            flagged_domains=[],
        ),
    )


class ComparisonPipeline:
    """Compares two contract versions using an injected analysis client."""

    def __init__(self, client: AnalysisClient, options: Optional[PipelineOptions] = None):
        self.client = client
        self.options = options or PipelineOptions()

    async def compare(self, v1: ContractVersion, v2: ContractVersion) -> ComparisonResult:
        """Run the full pipeline.

        Raises:
            ComparisonError: On an unexpected fault outside the per-call fallbacks.
        """
        logger.info(
            "Starting comparison of versions %d and %d (%s -> %s)",
            v1.version_number,
            v2.version_number,
            v1.id,
            v2.id,
        )
        try:
            result = await self._run(v1, v2)
        except Exception as e:
            logger.exception("Contract comparison failed")
            raise ComparisonError(f"Contract comparison failed: {e}") from e

        logger.info(
            "Comparison complete: %d of %d domains changed, risk delta %.1f",
            sum(1 for d in result.diffs if d.changed),
            len(result.diffs),
            result.executive_summary.risk_score_delta,
        )
        return result

    async def _run(self, v1: ContractVersion, v2: ContractVersion) -> ComparisonResult:
        regions = identify_change_regions(
            v1.text,
            v2.text,
            context_break_lines=self.options.context_break_lines,
            context_lines=self.options.context_lines,
        )
        significant = filter_substantive(regions)
        if not significant:
            logger.info("No significant changes detected")
            return unchanged_result(v1, v2)

        classified = await classify_regions(
            self.client, significant, self.options.small_change_threshold
        )
        partition = partition_regions(classified)

        v1_clauses, v2_clauses = await self._extract(partition)

        minor_changes = bool(partition.low) and not (partition.high or partition.standard)
        v1_summaries, v2_summaries = await asyncio.gather(
            self._summarize(v1_clauses, minor_changes),
            self._summarize(v2_clauses, minor_changes),
        )

        diffs = list(
            await asyncio.gather(
                *(generate_domain_diff(self.client, a, b) for a, b in zip(v1_summaries, v2_summaries))
            )
        )
        executive = await synthesize_executive_summary(self.client, diffs)

        return ComparisonResult(
            v1=VersionSummaries(version_number=v1.version_number, domain_summaries=v1_summaries),
            v2=VersionSummaries(version_number=v2.version_number, domain_summaries=v2_summaries),
            diffs=diffs,
            executive_summary=executive,
        )

    async def _extract(self, partition: TierPartition) -> tuple[ClausesByDomain, ClausesByDomain]:
        """Extract clauses for the high and standard tiers; the low tier makes no calls."""
        jobs = [(region, self.client.high) for region in partition.high]
        jobs += [(region, self.client.fast) for region in partition.standard]

        results = await asyncio.gather(
            *(extract_region_clauses(self.client, region, depth) for region, depth in jobs)
        )

        old_by_domain: ClausesByDomain = {domain: [] for domain in DOMAINS}
        new_by_domain: ClausesByDomain = {domain: [] for domain in DOMAINS}
        for old_clauses, new_clauses in results:
            for clause in old_clauses:
                old_by_domain[clause.domain].append(clause)
            for clause in new_clauses:
                new_by_domain[clause.domain].append(clause)

        logger.info(
            "Extracted %d v1 clauses and %d v2 clauses from %d regions",
            sum(len(c) for c in old_by_domain.values()),
            sum(len(c) for c in new_by_domain.values()),
            len(jobs),
        )
        return old_by_domain, new_by_domain

    async def _summarize(self, by_domain: ClausesByDomain, minor_changes: bool) -> list[DomainSummary]:
        async def summarize(domain: Domain) -> DomainSummary:
            clauses = by_domain[domain]
            if not clauses and minor_changes:
                return minor_change_summary(domain)
            return await summarize_domain(self.client, domain, clauses)

        return list(await asyncio.gather(*(summarize(domain) for domain in DOMAINS)))


async def compare_contract_versions(
    v1: ContractVersion,
    v2: ContractVersion,
    client: AnalysisClient,
    options: Optional[PipelineOptions] = None,
) -> ComparisonResult:
    """Compare two contract versions with a one-off pipeline."""
    return await ComparisonPipeline(client, options).compare(v1, v2)
