"""API request/response models for comparison endpoints."""

from typing import Optional

from pydantic import BaseModel

from redline.schemas.domain import ComparisonResult, ContractVersion


class ComparisonRequest(BaseModel):
    """Two versions of the same contract to compare."""

    v1: ContractVersion
    v2: ContractVersion


class WorkflowStartResponse(BaseModel):
    workflow_id: str
    status: str


class WorkflowStatusResponse(BaseModel):
    """Status of a background comparison run."""

    workflow_id: str
    status: str
    result: Optional[ComparisonResult] = None
