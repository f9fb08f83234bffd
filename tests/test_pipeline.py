"""Tests for the version comparison pipeline."""

import asyncio
from unittest.mock import patch

import pytest

from redline.schemas.domain import DOMAINS, ContractVersion, Domain, FavorabilityShift
from redline.services.domain_diff import NO_MATERIAL_CHANGE
from redline.services.executive_summary import EXECUTIVE_ERROR
from redline.services.pipeline import (
    NO_SIGNIFICANT_CHANGES,
    ComparisonError,
    ComparisonPipeline,
    PipelineOptions,
    compare_contract_versions,
)
from redline.services.summarizer import MINOR_CHANGES_ONLY, NO_RELEVANT_CLAUSES
from tests.conftest import FAST_DEPTH, HIGH_DEPTH, ScriptedOpenAI, make_client

HEADER = "MASTER SERVICES AGREEMENT\n1. Services. Vendor provides hosting services.\n"
FOOTER = "3. Term. This Agreement runs for one year.\n"
CAPPED = (
    "2. Liability. The Supplier's aggregate liability shall not exceed the fees paid "
    "in the preceding twelve months.\n"
)
UNLIMITED = (
    "2. Liability. The Supplier's aggregate liability shall be unlimited for breaches "
    "of confidentiality and data protection obligations.\n"
)
FILLER = "".join(f"4.{i} Boilerplate provision number {i}.\n" for i in range(10))


def version(number, text):
    return ContractVersion(id=f"ver-{number}", version_number=number, text=text)


V1 = version(1, HEADER + CAPPED + FOOTER)
V2 = version(2, HEADER + UNLIMITED + FOOTER)


def classify_high(payload):
    return {"complexity": "high", "impact": "significant"}


def classify_medium(payload):
    return {"complexity": "medium", "impact": "moderate"}


def extract_liability(payload):
    if "original version" in payload:
        summary = "Liability capped at twelve months of fees."
    else:
        summary = "Liability unlimited for confidentiality breaches."
    return {
        "legal": {
            "relevant": True,
            "clause_type": "Limitation of Liability",
            "clause_summary": summary,
            "impact": "Supplier exposure",
            "risk_tags": ["liability"],
            "favorability": "vendor" if "capped" in summary else "buyer",
        },
        "commercial": {"relevant": False},
        "compliance": {"relevant": False},
        "operational": {"relevant": False},
    }


def summarize(payload):
    if "capped" in payload:
        return {"summary": "Supplier liability is capped.", "key_clause_indices": [0]}
    return {"summary": "Supplier liability is unlimited.", "key_clause_indices": [0]}


def diff_legal(payload):
    assert "Domain: legal" in payload
    return {"changed": True, "diff": "Liability cap removed.", "impact": "Supplier bears unlimited risk."}


def executive(payload):
    return {
        "summary": "The revision removes the supplier liability cap.",
        "favorability_shift": "buyer",
        "risk_score_delta": -4,
        "flagged_domains": ["legal"],
    }


def assert_complete_shape(result):
    assert [d.domain for d in result.diffs] == list(DOMAINS)
    assert [s.domain for s in result.v1.domain_summaries] == list(DOMAINS)
    assert [s.domain for s in result.v2.domain_summaries] == list(DOMAINS)
    assert -10 <= result.executive_summary.risk_score_delta <= 10


class TestShortCircuit:
    """Tests for runs without substantive changes."""

    @pytest.mark.asyncio
    async def test_identical_texts(self):
        fake = ScriptedOpenAI()
        pipeline = ComparisonPipeline(make_client(fake))

        result = await pipeline.compare(V1, version(2, V1.text))

        assert_complete_shape(result)
        assert all(not d.changed for d in result.diffs)
        assert result.executive_summary.risk_score_delta == 0
        assert result.executive_summary.summary == NO_SIGNIFICANT_CHANGES
        assert result.executive_summary.flagged_domains == []
        assert result.v1.version_number == 1
        assert result.v2.version_number == 2
        assert fake.calls == []

    @pytest.mark.asyncio
    async def test_trailing_whitespace_only(self):
        fake = ScriptedOpenAI()
        pipeline = ComparisonPipeline(make_client(fake))
        v2 = version(2, HEADER + CAPPED.replace(".\n", ".   \n") + FOOTER)

        result = await pipeline.compare(V1, v2)

        assert_complete_shape(result)
        assert all(not d.changed for d in result.diffs)
        assert all(d.diff == NO_SIGNIFICANT_CHANGES for d in result.diffs)
        assert fake.calls == []


class TestFullRun:
    """Tests for runs with substantive changes."""

    @pytest.mark.asyncio
    async def test_flagged_domain_with_risk_delta(self):
        fake = ScriptedOpenAI(
            classify=classify_high,
            extract=extract_liability,
            summary=summarize,
            diff=diff_legal,
            executive=executive,
        )
        pipeline = ComparisonPipeline(make_client(fake))

        result = await pipeline.compare(V1, V2)

        assert_complete_shape(result)
        legal = result.diffs[0]
        assert legal.domain == Domain.legal
        assert legal.changed is True
        assert legal.v1_summary == "Supplier liability is capped."
        assert legal.v2_summary == "Supplier liability is unlimited."

        executive_summary = result.executive_summary
        assert executive_summary.flagged_domains == [Domain.legal]
        assert executive_summary.risk_score_delta != 0
        assert executive_summary.favorability_shift == FavorabilityShift.buyer

        key_clause = result.v1.domain_summaries[0].key_clauses[0]
        assert key_clause.region_ref == 0
        assert key_clause.domain == Domain.legal

        assert sorted(fake.stages()) == sorted(
            ["classify", "extract", "extract", "summary", "summary", "diff", "executive"]
        )

    @pytest.mark.asyncio
    async def test_domains_without_clauses_unchanged(self):
        fake = ScriptedOpenAI(
            classify=classify_high,
            extract=extract_liability,
            summary=summarize,
            diff=diff_legal,
            executive=executive,
        )
        result = await ComparisonPipeline(make_client(fake)).compare(V1, V2)

        for diff in result.diffs[1:]:
            assert diff.changed is False
            assert diff.diff == NO_MATERIAL_CHANGE
            assert diff.v1_summary == NO_RELEVANT_CLAUSES
            assert diff.v2_summary == NO_RELEVANT_CLAUSES

    @pytest.mark.asyncio
    async def test_high_tier_uses_high_depth(self):
        fake = ScriptedOpenAI(
            classify=classify_high,
            extract=extract_liability,
            summary=summarize,
            diff=diff_legal,
            executive=executive,
        )
        await ComparisonPipeline(make_client(fake)).compare(V1, V2)

        models = {kwargs["model"] for stage, kwargs in fake.calls if stage == "extract"}
        assert models == {HIGH_DEPTH.model}

    @pytest.mark.asyncio
    async def test_standard_tier_uses_fast_depth(self):
        fake = ScriptedOpenAI(
            classify=classify_medium,
            extract=extract_liability,
            summary=summarize,
            diff=diff_legal,
            executive=executive,
        )
        await ComparisonPipeline(make_client(fake)).compare(V1, V2)

        extract_models = {kwargs["model"] for stage, kwargs in fake.calls if stage == "extract"}
        other_models = {kwargs["model"] for stage, kwargs in fake.calls if stage != "extract"}
        assert extract_models == {FAST_DEPTH.model}
        assert other_models == {HIGH_DEPTH.model}

    @pytest.mark.asyncio
    async def test_low_tier_makes_no_extraction_calls(self):
        fake = ScriptedOpenAI(executive=executive)
        v1 = version(1, "Fee: $100\n")
        v2 = version(2, "Fee: $120\n")

        result = await ComparisonPipeline(make_client(fake)).compare(v1, v2)

        assert_complete_shape(result)
        assert fake.stages() == ["executive"]
        assert all(s.summary == MINOR_CHANGES_ONLY for s in result.v1.domain_summaries)
        assert all(s.summary == MINOR_CHANGES_ONLY for s in result.v2.domain_summaries)
        assert all(not d.changed for d in result.diffs)

    @pytest.mark.asyncio
    async def test_mixed_tiers_keep_no_relevant_summaries(self):
        short_filler = "".join(f"{i}.\n" for i in range(10))
        v1 = version(1, CAPPED + short_filler + "Fee: $100\n")
        v2 = version(2, UNLIMITED + short_filler + "Fee: $120\n")
        fake = ScriptedOpenAI(
            classify=classify_high,
            extract=extract_liability,
            summary=summarize,
            diff=diff_legal,
            executive=executive,
        )

        result = await ComparisonPipeline(make_client(fake)).compare(v1, v2)

        assert fake.stages().count("classify") == 1
        assert fake.stages().count("extract") == 2
        assert result.diffs[0].changed is True
        compliance = result.diffs[2]
        assert compliance.domain == Domain.compliance
        assert compliance.changed is False
        assert compliance.v1_summary == NO_RELEVANT_CLAUSES
        assert compliance.v2_summary == NO_RELEVANT_CLAUSES

    @pytest.mark.asyncio
    async def test_summary_without_indices_still_diffed(self):
        def summarize_without_indices(payload):
            if "capped" in payload:
                return {"summary": "Liability is capped"}
            return {"summary": "Liability is unlimited"}

        fake = ScriptedOpenAI(
            classify=classify_high,
            extract=extract_liability,
            summary=summarize_without_indices,
            diff=diff_legal,
            executive=executive,
        )

        result = await ComparisonPipeline(make_client(fake)).compare(V1, V2)

        assert fake.stages().count("diff") == 1
        legal = result.diffs[0]
        assert legal.changed is True
        assert legal.diff == "Liability cap removed."
        assert legal.v1_summary == "Liability is capped"
        assert legal.v2_summary == "Liability is unlimited"
        assert result.v1.domain_summaries[0].key_clauses == []

    @pytest.mark.asyncio
    async def test_small_change_threshold_option(self):
        fake = ScriptedOpenAI(executive=executive)
        pipeline = ComparisonPipeline(
            make_client(fake), PipelineOptions(small_change_threshold=10_000)
        )

        await pipeline.compare(V1, V2)

        assert "classify" not in fake.stages()


class TestDegradedRuns:
    """Tests for runs where the analysis capability fails."""

    @pytest.mark.asyncio
    async def test_every_call_failing_still_yields_full_result(self):
        fake = ScriptedOpenAI()
        pipeline = ComparisonPipeline(make_client(fake))

        result = await pipeline.compare(V1, V2)

        assert_complete_shape(result)
        assert len(result.diffs) == 4
        assert len(result.v1.domain_summaries) == 4
        assert len(result.v2.domain_summaries) == 4
        assert result.executive_summary.summary == EXECUTIVE_ERROR
        assert result.executive_summary.risk_score_delta == 0
        assert result.executive_summary.favorability_shift == FavorabilityShift.neutral

    @pytest.mark.asyncio
    async def test_extraction_timeout_on_one_region(self):
        slow_line = "5. Audit. TIMEOUT-MARKER Customer may audit the Supplier's data centres once per year.\n"
        fast_line = "6. Fees. Annual fees increase by the consumer price index plus five percent each year.\n"
        v1 = version(1, CAPPED + FILLER + "5. Audit. None.\n" + FILLER + "6. Fees. Fixed.\n")
        v2 = version(2, CAPPED + FILLER + slow_line + FILLER + fast_line)

        async def extract(payload):
            if "TIMEOUT-MARKER" in payload:
                await asyncio.sleep(5)
            if "revised version" in payload and "Fees" in payload:
                return {
                    "commercial": {
                        "relevant": True,
                        "clause_type": "Price Escalation",
                        "clause_summary": "Fees escalate annually.",
                        "favorability": "vendor",
                    }
                }
            return {}

        fake = ScriptedOpenAI(
            classify=classify_high,
            extract=extract,
            summary=lambda payload: {"summary": "Fees escalate.", "key_clause_indices": [0]},
            diff=lambda payload: {"changed": True, "diff": "Escalation added.", "impact": "Cost increase"},
            executive=lambda payload: {
                "summary": "Costs rise.",
                "favorability_shift": "vendor",
                "risk_score_delta": 3,
                "flagged_domains": ["commercial"],
            },
        )
        pipeline = ComparisonPipeline(make_client(fake, timeout_s=0.5))

        result = await pipeline.compare(v1, v2)

        assert_complete_shape(result)
        commercial = result.v2.domain_summaries[1]
        assert commercial.domain == Domain.commercial
        assert [c.clause_type for c in commercial.key_clauses] == ["Price Escalation"]
        assert result.diffs[1].changed is True
        assert result.executive_summary.flagged_domains == [Domain.commercial]


class TestOrchestrationFailure:
    """Tests for unexpected faults outside the per-call fallbacks."""

    @pytest.mark.asyncio
    async def test_unexpected_error_wrapped(self):
        fake = ScriptedOpenAI(classify=classify_high)
        pipeline = ComparisonPipeline(make_client(fake))

        with patch(
            "redline.services.pipeline.partition_regions",
            side_effect=ValueError("bad partition"),
        ):
            with pytest.raises(ComparisonError, match="Contract comparison failed: bad partition") as exc:
                await pipeline.compare(V1, V2)

        assert isinstance(exc.value.__cause__, ValueError)


class TestCompareContractVersions:
    """Tests for the module-level entry point."""

    @pytest.mark.asyncio
    async def test_returns_result(self):
        fake = ScriptedOpenAI()

        result = await compare_contract_versions(V1, version(2, V1.text), make_client(fake))

        assert len(result.diffs) == 4
