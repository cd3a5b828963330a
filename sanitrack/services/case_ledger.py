"""
Case Ledger - owns the case record and applies lifecycle transitions to it.

The ledger works on plain case documents (dicts) and never touches storage;
the Case Workflow Service reads the documents inside a transaction, hands
them here, and writes back what the ledger returns.
"""

from datetime import datetime
from typing import Dict, Optional
import copy
import logging

from sanitrack.core.errors import AppError, AuthorizationError
from sanitrack.models.case import CaseStatus
from sanitrack.services.status_workflow import CaseWorkflowEngine, append_to_log, log_time

logger = logging.getLogger(__name__)

COMPLETION_REASON = "Enforcement completed"
ACCEPTANCE_REASON = "Accepted by assigned officer"


class CaseLedger:

    def __init__(self):
        self.workflow = CaseWorkflowEngine()

    def new_case(self, report_id: str, now: datetime) -> Dict:
        """A fresh case starts at submitted with an empty history."""
        return {
            "id": report_id,
            "report_id": report_id,
            "status": CaseStatus.SUBMITTED.value,
            "assigned_to": None,
            "approved_by": None,
            "approval_notes": None,
            "approved_at": None,
            "completed_at": None,
            "completion_evidence_url": None,
            "status_history": [],
            "created_at": now,
            "updated_at": now,
        }

    def _transition(
        self,
        case: Dict,
        new_status: CaseStatus,
        actor_id: str,
        now: datetime,
        reason: Optional[str] = None
    ) -> Dict:
        current_status = case.get("status", CaseStatus.SUBMITTED.value)
        self.workflow.validate_transition(current_status, new_status)
        now = log_time(case.get("status_history"), now)

        updated = copy.deepcopy(case)
        entry = self.workflow.create_status_history_entry(new_status, actor_id, now, reason)
        updated["status_history"] = append_to_log(updated.get("status_history"), entry)
        updated["status"] = new_status.value
        updated["updated_at"] = now

        logger.info(f"Case {case['id']}: {current_status} → {new_status.value} by {actor_id}")
        return updated

    def approve(
        self,
        case: Dict,
        admin_id: str,
        assigned_to: str,
        notes: Optional[str],
        now: datetime
    ) -> Dict:
        updated = self._transition(case, CaseStatus.APPROVED, admin_id, now, notes)
        updated["assigned_to"] = assigned_to
        updated["approved_by"] = admin_id
        updated["approval_notes"] = notes
        updated["approved_at"] = updated["updated_at"]
        return updated

    def reject(self, case: Dict, admin_id: str, reason: str, now: datetime) -> Dict:
        updated = self._transition(case, CaseStatus.REJECTED, admin_id, now, reason)
        updated["approved_by"] = admin_id
        updated["approval_notes"] = reason
        updated["approved_at"] = updated["updated_at"]
        return updated

    def accept(self, case: Dict, officer_id: str, now: datetime) -> Dict:
        self._require_assigned_officer(case, officer_id)
        return self._transition(case, CaseStatus.ASSIGNED, officer_id, now, ACCEPTANCE_REASON)

    def complete(self, case: Dict, officer_id: str, evidence_url: str, now: datetime) -> Dict:
        self._require_assigned_officer(case, officer_id)
        updated = self._transition(case, CaseStatus.COMPLETED, officer_id, now, COMPLETION_REASON)
        updated["completed_at"] = updated["updated_at"]
        updated["completion_evidence_url"] = evidence_url
        return updated

    @staticmethod
    def _require_assigned_officer(case: Dict, officer_id: str) -> None:
        if case.get("assigned_to") != officer_id:
            raise AuthorizationError("You are not assigned to this case")

    @staticmethod
    def check_invariants(case: Dict) -> None:
        """
        Raises AppError (500) when a case document is internally inconsistent.
        Run on every document before it is written back.
        """
        status = case.get("status")
        history = case.get("status_history") or []
        has_officer = case.get("assigned_to") is not None
        needs_officer = status in [s.value for s in CaseWorkflowEngine.OFFICER_STATUSES]

        if has_officer != needs_officer:
            raise AppError(f"Case {case.get('id')} has assigned_to={case.get('assigned_to')} in status {status}")
        if history and history[-1].get("status") != status:
            raise AppError(f"Case {case.get('id')} status {status} does not match its last history entry")
        if not history and status != CaseStatus.SUBMITTED.value:
            raise AppError(f"Case {case.get('id')} left submitted without a history entry")
