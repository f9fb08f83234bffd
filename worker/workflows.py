"""Temporal Workflows for contract version comparison.

This module contains the ComparisonWorkflow, which runs the comparison
pipeline as a single activity so the caller can bound the whole run.
"""

from datetime import timedelta

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from redline.core.config import settings
    from worker.activities import run_comparison

# Run-level bound on one comparison; each analysis call has its own timeout
COMPARISON_TIMEOUT = timedelta(seconds=settings.COMPARISON_TIMEOUT_S)


@workflow.defn
class ComparisonWorkflow:
    """Workflow that compares two versions of a contract.

    The comparison activity is attempted once.
    """

    @workflow.run
    async def run(self, v1: dict, v2: dict) -> dict:
        """Execute the comparison workflow.

        Args:
            v1: ContractVersion fields of the earlier version.
            v2: ContractVersion fields of the later version.

        Returns:
            Dict representation of the ComparisonResult.
        """
        workflow.logger.info(
            f"Starting comparison workflow for versions "
            f"{v1.get('version_number')} and {v2.get('version_number')}"
        )

        result = await workflow.execute_activity(
            run_comparison,
            args=[v1, v2],
            start_to_close_timeout=COMPARISON_TIMEOUT,
            retry_policy=RetryPolicy(maximum_attempts=1),
        )

        workflow.logger.info(
            f"Comparison workflow completed, risk delta="
            f"{result['executive_summary']['risk_score_delta']}"
        )

        return result


__all__ = ["ComparisonWorkflow"]
