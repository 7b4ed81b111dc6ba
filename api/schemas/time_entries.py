"""Time entry API schemas."""

import datetime
from typing import Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

from database.models.time_entries import TimeEntryStatus


class TimeEntryItem(BaseModel):
    """Hours for one day."""

    date: datetime.date
    hours: float = Field(gt=0, description="Hours worked")
    description: Optional[str] = Field(None, max_length=2000)
    project: Optional[str] = Field(None, max_length=255)


class SingleTimeEntryRequest(TimeEntryItem):
    kind: Literal["single"] = "single"


class BulkTimeEntryRequest(BaseModel):
    kind: Literal["bulk"]
    entries: list[TimeEntryItem] = Field(min_length=1, max_length=62)


# Tagged by ``kind``; the route binds the discriminator on the request body
TimeEntrySubmission = Union[SingleTimeEntryRequest, BulkTimeEntryRequest]


class ApproverInfo(BaseModel):
    """Who received the approval request."""

    manager_id: str
    level: int
    escalated: bool


class TimeEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    date: datetime.date
    hours: float
    description: Optional[str] = None
    project: Optional[str] = None
    status: TimeEntryStatus
    is_escalated: bool = False
    escalation_level: int = 0
    submitted_at: Optional[datetime.datetime] = None
    reviewed_at: Optional[datetime.datetime] = None
    reviewed_by_id: Optional[str] = None
    review_comments: Optional[str] = None


class TimeEntrySubmissionResponse(BaseModel):
    message: str
    created: list[TimeEntryResponse]
    errors: list[str] = Field(default_factory=list)
    approver: Optional[ApproverInfo] = None


class TimeEntrySummary(BaseModel):
    total_hours: float
    approved_hours: float
    pending_hours: float
    entry_count: int


class TimeEntryListResponse(BaseModel):
    entries: list[TimeEntryResponse]
    summary: TimeEntrySummary


class PendingTimeEntryResponse(TimeEntryResponse):
    escalation_reason: Optional[str] = None


class SubmitterTotals(BaseModel):
    user_id: str
    entry_count: int
    total_hours: float
    is_escalated: bool


class PendingSummary(BaseModel):
    total_pending_hours: float
    entry_count: int
    direct_report_count: int
    escalated_user_count: int


class PendingTimeEntriesResponse(BaseModel):
    entries: list[PendingTimeEntryResponse]
    by_user: list[SubmitterTotals]
    summary: PendingSummary


class ReviewRequest(BaseModel):
    status: Literal["APPROVED", "REJECTED"]
    comments: Optional[str] = Field(None, max_length=2000)


class ReviewResponse(BaseModel):
    message: str
    entry: TimeEntryResponse
    is_escalated: bool


class TimeEntryUpdateResponse(BaseModel):
    message: str
    entry: TimeEntryResponse
    approver: Optional[ApproverInfo] = None


class MessageResponse(BaseModel):
    message: str
