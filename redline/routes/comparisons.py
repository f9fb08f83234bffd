"""Contract version comparison endpoints."""

import logging
from datetime import timedelta
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Request
from temporalio.client import WorkflowExecutionStatus
from temporalio.service import RPCError

from redline.core.config import settings
from redline.deps import get_pipeline
from redline.schemas.api import ComparisonRequest, WorkflowStartResponse, WorkflowStatusResponse
from redline.schemas.domain import ComparisonResult
from redline.services.pipeline import ComparisonError, ComparisonPipeline
from worker.workflows import ComparisonWorkflow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/comparisons", tags=["comparisons"])


def _check_sizes(body: ComparisonRequest) -> None:
    for version in (body.v1, body.v2):
        if len(version.text) > settings.MAX_TEXT_CHARS:
            raise HTTPException(
                status_code=413,
                detail=f"Version {version.version_number} exceeds {settings.MAX_TEXT_CHARS} characters",
            )


def _get_temporal(request: Request):
    temporal = getattr(request.app.state, "temporal", None)
    if temporal is None:
        raise HTTPException(status_code=503, detail="Comparison workflow service unavailable")
    return temporal


@router.post("", response_model=ComparisonResult)
async def compare_versions(
    body: ComparisonRequest,
    pipeline: ComparisonPipeline = Depends(get_pipeline),
):
    """Compare two contract versions and return the result synchronously."""
    _check_sizes(body)

    try:
        return await pipeline.compare(body.v1, body.v2)
    except ComparisonError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/workflows", response_model=WorkflowStartResponse, status_code=202)
async def start_comparison_workflow(request: Request, body: ComparisonRequest):
    """Start a background comparison on the Temporal worker."""
    _check_sizes(body)
    temporal = _get_temporal(request)

    workflow_id = f"comparison-{uuid4()}"
    await temporal.start_workflow(
        ComparisonWorkflow.run,
        args=[body.v1.model_dump(), body.v2.model_dump()],
        id=workflow_id,
        task_queue=settings.WORKER_TASK_QUEUE,
        execution_timeout=timedelta(seconds=settings.COMPARISON_TIMEOUT_S),
    )

    logger.info(
        "Started comparison workflow %s for versions %d and %d",
        workflow_id,
        body.v1.version_number,
        body.v2.version_number,
    )
    return WorkflowStartResponse(workflow_id=workflow_id, status="pending")


@router.get("/workflows/{workflow_id}", response_model=WorkflowStatusResponse)
async def get_comparison_workflow(request: Request, workflow_id: str):
    """Get the status, and once completed the result, of a background comparison."""
    temporal = _get_temporal(request)
    handle = temporal.get_workflow_handle(workflow_id)

    try:
        description = await handle.describe()
    except RPCError:
        raise HTTPException(status_code=404, detail="Comparison workflow not found")

    status = description.status
    if status == WorkflowExecutionStatus.COMPLETED:
        result = ComparisonResult.model_validate(await handle.result())
        return WorkflowStatusResponse(workflow_id=workflow_id, status="completed", result=result)
    if status == WorkflowExecutionStatus.RUNNING:
        return WorkflowStatusResponse(workflow_id=workflow_id, status="running")

    return WorkflowStatusResponse(
        workflow_id=workflow_id,
        status=status.name.lower() if status is not None else "unknown",
    )
