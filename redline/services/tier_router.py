"""Routes classified regions to analysis tiers."""

import logging
from dataclasses import dataclass, field

from redline.schemas.domain import ChangeRegion, Complexity, ComplexityClass, Impact, Tier

logger = logging.getLogger(__name__)


@dataclass
class TierPartition:
    """Disjoint region lists, one per analysis tier."""

    high: list[ChangeRegion] = field(default_factory=list)
    standard: list[ChangeRegion] = field(default_factory=list)
    low: list[ChangeRegion] = field(default_factory=list)

    def for_tier(self, tier: Tier) -> list[ChangeRegion]:
        return getattr(self, tier.value)

    def __len__(self) -> int:
        return len(self.high) + len(self.standard) + len(self.low)


def assign_tier(classification: ComplexityClass) -> Tier:
    """Pick the most expensive tier whose predicate matches."""
    if classification.complexity == Complexity.high or classification.impact == Impact.significant:
        return Tier.high
    if classification.complexity == Complexity.medium or classification.impact == Impact.moderate:
        return Tier.standard
    return Tier.low


def partition_regions(classified: list[tuple[ChangeRegion, ComplexityClass]]) -> TierPartition:
    partition = TierPartition()
    for region, classification in classified:
        partition.for_tier(assign_tier(classification)).append(region)

    logger.info(
        "Tiered regions: high=%d standard=%d low=%d",
        len(partition.high),
        len(partition.standard),
        len(partition.low),
    )
    return partition
