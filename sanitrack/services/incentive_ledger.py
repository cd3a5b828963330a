"""
Incentive Ledger - reward bookkeeping coupled to case transitions.

Points are awarded exactly once, by the approval transition. Exactly-once
follows from approval itself being possible only once per case (it requires
status == submitted, read and written in the same transaction).
"""

from datetime import datetime
from typing import Dict, Optional
import copy
import logging

from sanitrack.core.errors import AppError, ValidationError
from sanitrack.models.incentive import (
    AuditLogEntry,
    IncentiveAction,
    IncentiveRecord,
    IncentiveStatus,
)
from sanitrack.services.status_workflow import append_to_log

logger = logging.getLogger(__name__)


class IncentiveLedger:

    def __init__(self, points_per_report: int = 10):
        if points_per_report <= 0:
            raise ValueError("points_per_report must be positive")
        self.points_per_report = points_per_report

    def reward_points(self, report: Optional[Dict] = None) -> int:
        """
        Reward formula. Currently a fixed policy value per verified report;
        the report is accepted so the formula can grow without changing callers.
        """
        return self.points_per_report

    def new_incentive(self, incentive_id: str, user_id: str, report_id: str, now: datetime) -> Dict:
        return IncentiveRecord(
            id=incentive_id,
            user_id=user_id,
            report_id=report_id,
            created_at=now,
        ).model_dump()

    def _audit(self, incentive: Dict, action: IncentiveAction, actor_id: str, now: datetime, details: Dict) -> Dict:
        updated = copy.deepcopy(incentive)
        entry = AuditLogEntry(action=action, timestamp=now, performed_by=actor_id, details=details).model_dump()
        updated["audit_log"] = append_to_log(updated.get("audit_log"), entry)
        return updated

    def award(self, incentive: Dict, actor_id: str, case_id: str, now: datetime, report: Optional[Dict] = None) -> Dict:
        if incentive.get("status") != IncentiveStatus.PENDING.value or incentive.get("points", 0) != 0:
            raise ValidationError(
                f"Incentive for report {incentive.get('report_id')} was already settled "
                f"(status: {incentive.get('status')}, points: {incentive.get('points')})"
            )

        points = self.reward_points(report)
        updated = self._audit(incentive, IncentiveAction.POINTS_AWARDED, actor_id, now, {"points": points})
        updated["points"] = points
        updated["status"] = IncentiveStatus.EARNED.value
        updated["case_id"] = case_id

        logger.info(f"Awarded {points} points to user {incentive.get('user_id')} for report {incentive.get('report_id')}")
        return updated

    def note_rejection(self, incentive: Dict, actor_id: str, reason: str, now: datetime) -> Dict:
        """Record the rejection; points and status are left untouched."""
        return self._audit(incentive, IncentiveAction.CASE_REJECTED, actor_id, now, {"reason": reason})

    @staticmethod
    def check_invariants(incentive: Dict) -> None:
        points = incentive.get("points", 0)
        status = incentive.get("status")
        if points < 0:
            raise AppError(f"Incentive {incentive.get('id')} has negative points")
        if points > 0 and status not in (IncentiveStatus.EARNED.value, IncentiveStatus.REDEEMED.value):
            raise AppError(f"Incentive {incentive.get('id')} has {points} points in status {status}")
        if status == IncentiveStatus.EARNED.value and points == 0:
            raise AppError(f"Incentive {incentive.get('id')} is earned with zero points")
