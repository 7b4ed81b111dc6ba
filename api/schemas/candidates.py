"""Candidate-related Pydantic schemas."""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

from database.models.candidates import CandidateStatus


class CandidateResponse(BaseModel):
    """Schema for candidate response."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="Unique candidate identifier")
    name: str
    email: Optional[str] = None
    status: CandidateStatus
    added_by_id: str = Field(description="User id of the owning recruiter")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UpdateStatusOperation(BaseModel):
    type: Literal["update_status"]
    candidate_id: str
    status: CandidateStatus


class TransferOwnershipOperation(BaseModel):
    type: Literal["transfer_ownership"]
    candidate_id: str
    new_owner_id: str = Field(min_length=1)


class BulkDeleteOperation(BaseModel):
    type: Literal["bulk_delete"]
    candidate_ids: list[str] = Field(min_length=1)


BulkOperation = Annotated[
    Union[UpdateStatusOperation, TransferOwnershipOperation, BulkDeleteOperation],
    Field(discriminator="type"),
]


class BulkOperationsRequest(BaseModel):
    operations: list[BulkOperation] = Field(min_length=1, max_length=100)


class BulkOperationResult(BaseModel):
    type: str
    candidate_ids: list[str]
    success: bool = True


class BulkOperationsResponse(BaseModel):
    message: str
    results: list[BulkOperationResult]
    success_count: int
