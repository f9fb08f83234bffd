"""Domain models for contract version comparison."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field


class Domain(str, Enum):
    """Business perspective a clause is evaluated under."""

    legal = "legal"
    commercial = "commercial"
    compliance = "compliance"
    operational = "operational"


# Fixed order used for every per-domain collection
DOMAINS: tuple[Domain, ...] = (
    Domain.legal,
    Domain.commercial,
    Domain.compliance,
    Domain.operational,
)


class ChangeKind(str, Enum):
    added = "added"
    removed = "removed"
    modified = "modified"


class Complexity(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class Impact(str, Enum):
    minimal = "minimal"
    moderate = "moderate"
    significant = "significant"


class Tier(str, Enum):
    """Analysis depth a change region is routed to."""

    high = "high"
    standard = "standard"
    low = "low"


class Favorability(str, Enum):
    buyer = "buyer"
    vendor = "vendor"
    mutual = "mutual"
    unclear = "unclear"


class FavorabilityShift(str, Enum):
    buyer = "buyer"
    vendor = "vendor"
    neutral = "neutral"


class ContractVersion(BaseModel):
    """One stored version of a contract, as handed over by document storage."""

    model_config = ConfigDict(frozen=True)

    id: str
    version_number: int
    text: str


class ChangeRegion(BaseModel):
    """Contiguous span of changed lines plus surrounding context.

    ``has_removed``/``has_added`` record whether deleted or inserted lines were
    accumulated; both sides may also carry unchanged context lines.
    """

    model_config = ConfigDict(frozen=True)

    index: int
    old_text: str
    new_text: str
    has_removed: bool = Field(default=False, exclude=True)
    has_added: bool = Field(default=False, exclude=True)

    @computed_field
    @property
    def kind(self) -> ChangeKind:
        removed, added = self.has_removed, self.has_added
        if not (removed or added):
            removed, added = bool(self.old_text), bool(self.new_text)
        if removed and added:
            return ChangeKind.modified
        if removed:
            return ChangeKind.removed
        return ChangeKind.added

    @property
    def size(self) -> int:
        """Combined length of both sides."""
        return len(self.old_text) + len(self.new_text)


class ComplexityClass(BaseModel):
    model_config = ConfigDict(frozen=True)

    complexity: Complexity
    impact: Impact


class DomainClause(BaseModel):
    """Clause found relevant to one domain within one change region side."""

    region_ref: int
    domain: Domain
    relevant: bool = True
    clause_type: str = ""
    clause_summary: str = ""
    impact: str = ""
    risk_tags: list[str] = Field(default_factory=list)
    favorability: Favorability = Favorability.unclear


class DomainSummary(BaseModel):
    domain: Domain
    summary: str
    key_clauses: list[DomainClause] = Field(default_factory=list)


class DomainDiff(BaseModel):
    domain: Domain
    changed: bool
    v1_summary: str
    v2_summary: str
    diff: str
    impact: str


class VersionSummaries(BaseModel):
    version_number: int
    domain_summaries: list[DomainSummary]


class ExecutiveSummary(BaseModel):
    summary: str
    favorability_shift: FavorabilityShift = FavorabilityShift.neutral
    risk_score_delta: float = Field(default=0.0, ge=-10.0, le=10.0)
    flagged_domains: list[Domain] = Field(default_factory=list)


class ComparisonResult(BaseModel):
    """Complete comparison of two contract versions."""

    v1: VersionSummaries
    v2: VersionSummaries
    diffs: list[DomainDiff]
    executive_summary: ExecutiveSummary
