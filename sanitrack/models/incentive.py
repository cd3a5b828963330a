"""
Incentive ledger models. The audit log is internal and never returned by the API.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, Dict, Any
from enum import Enum


class IncentiveStatus(str, Enum):
    PENDING = "pending"     # Report submitted, awaiting approval
    EARNED = "earned"       # Case approved, points awarded
    REDEEMED = "redeemed"   # Citizen redeemed a reward


class RewardType(str, Enum):
    DATA_BUNDLE = "data_bundle"
    CASH_TOKEN = "cash_token"
    UTILITY_CREDIT = "utility_credit"


class IncentiveAction(str, Enum):
    POINTS_AWARDED = "points_awarded"
    CASE_REJECTED = "case_rejected"


class AuditLogEntry(BaseModel):
    action: IncentiveAction
    timestamp: datetime
    performed_by: str
    details: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        use_enum_values = True


class IncentiveRecord(BaseModel):
    """Shape of a stored incentive document."""
    id: str
    user_id: str
    report_id: str
    case_id: Optional[str] = None
    points: int = Field(default=0, ge=0)
    status: IncentiveStatus = IncentiveStatus.PENDING
    reward_type: Optional[RewardType] = None
    redeem_date: Optional[datetime] = None
    audit_log: list = Field(default_factory=list)
    created_at: datetime

    class Config:
        use_enum_values = True
