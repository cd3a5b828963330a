"""
Pydantic models for enforcement cases.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from enum import Enum


class CaseStatus(str, Enum):
    """
    Case lifecycle:
    submitted → approved → assigned → completed
    submitted → rejected
    """
    SUBMITTED = "submitted"    # Awaiting admin review
    APPROVED = "approved"      # Verified, officer designated, awaiting pickup
    ASSIGNED = "assigned"      # Officer accepted the case
    COMPLETED = "completed"    # Enforcement done (terminal)
    REJECTED = "rejected"      # Not a valid violation (terminal)


class StatusHistoryEntry(BaseModel):
    """One case status transition."""
    status: CaseStatus
    changed_by: str = Field(..., description="User who made the change")
    timestamp: datetime
    reason: Optional[str] = None

    class Config:
        use_enum_values = True


class CaseApproveRequest(BaseModel):
    notes: Optional[str] = Field(None, max_length=1000, description="Approval notes")
    assigned_to: str = Field(..., min_length=1, description="Enforcement officer user ID")


class CaseRejectRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000, description="Why the report was rejected")


class CaseCompleteRequest(BaseModel):
    completion_evidence_url: str = Field(..., min_length=1, max_length=2000, description="URL to evidence of completion")


class CaseResponse(BaseModel):
    id: str
    report_id: str
    status: CaseStatus
    assigned_to: Optional[str] = None
    approved_by: Optional[str] = None
    approval_notes: Optional[str] = None
    approved_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    completion_evidence_url: Optional[str] = None
    status_history: List[StatusHistoryEntry] = Field(default_factory=list, description="Read-only transition history")
    created_at: datetime
    updated_at: datetime


class CaseActionResponse(CaseResponse):
    message: str


class CaseReportSummary(BaseModel):
    category: str
    latitude: float
    longitude: float
    captured_at: datetime


class CaseListItem(CaseResponse):
    report: Optional[CaseReportSummary] = None
    approved_by_name: Optional[str] = None
    assigned_to_name: Optional[str] = None


class CaseListResponse(BaseModel):
    total: int
    limit: int
    offset: int
    cases: List[CaseListItem]
