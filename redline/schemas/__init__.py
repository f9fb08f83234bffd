"""Domain schemas for contract version comparison."""

from redline.schemas.domain import (
    DOMAINS,
    ChangeKind,
    ChangeRegion,
    ComparisonResult,
    Complexity,
    ComplexityClass,
    ContractVersion,
    Domain,
    DomainClause,
    DomainDiff,
    DomainSummary,
    ExecutiveSummary,
    Favorability,
    FavorabilityShift,
    Impact,
    Tier,
    VersionSummaries,
)

__all__ = [
    "DOMAINS",
    "ChangeKind",
    "ChangeRegion",
    "ComparisonResult",
    "Complexity",
    "ComplexityClass",
    "ContractVersion",
    "Domain",
    "DomainClause",
    "DomainDiff",
    "DomainSummary",
    "ExecutiveSummary",
    "Favorability",
    "FavorabilityShift",
    "Impact",
    "Tier",
    "VersionSummaries",
]
