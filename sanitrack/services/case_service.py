"""
Case Workflow Service - the externally callable surface of the case lifecycle.

Every write runs the Case Ledger transition and its paired Incentive Ledger
effect inside one store transaction. The current status is read inside that
transaction, so two concurrent approvals of the same case cannot both see
"submitted": one commits, the other is re-run and fails validation.
"""

from datetime import datetime
from typing import Callable, Dict, Optional
import logging

from fastapi import Depends

from sanitrack.core.errors import AppError, AuthorizationError, NotFoundError, ValidationError
from sanitrack.core.settings import settings
from sanitrack.models.case import (
    CaseApproveRequest,
    CaseListItem,
    CaseListResponse,
    CaseRejectRequest,
    CaseReportSummary,
    CaseResponse,
    CaseStatus,
)
from sanitrack.models.user import Actor, UserRole
from sanitrack.services.case_ledger import CaseLedger
from sanitrack.services.incentive_ledger import IncentiveLedger
from sanitrack.storage import Store, Transaction, get_store
from sanitrack.storage.base import CASES, INCENTIVES, REPORTS, USERS
from sanitrack.utils.timestamps import to_utc, utcnow

logger = logging.getLogger(__name__)

PENDING_STATUSES = [CaseStatus.SUBMITTED, CaseStatus.APPROVED]


def require_role(actor: Actor, *roles: UserRole) -> None:
    if not actor.has_role(*roles):
        allowed = ", ".join(role.value for role in roles)
        raise AuthorizationError(f"Role {actor.role.value} is not allowed to perform this action (requires {allowed})")


class CaseWorkflowService:
    """
    Service for case review and enforcement actions.
    """

    def __init__(
        self,
        store: Store,
        case_ledger: CaseLedger,
        incentive_ledger: IncentiveLedger,
        clock: Callable[[], datetime] = utcnow
    ):
        self.store = store
        self.case_ledger = case_ledger
        self.incentive_ledger = incentive_ledger
        self.clock = clock

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_case(self, case_id: str, actor: Actor) -> CaseResponse:
        case = self.store.get(CASES, case_id)
        if case is None:
            raise NotFoundError("Case", case_id)

        if actor.role == UserRole.CITIZEN:
            report = self.store.get(REPORTS, case["report_id"]) or {}
            if report.get("owner_id") != actor.user_id:
                raise AuthorizationError("You can only view cases for your own reports")

        return self._to_response(case)

    def list_cases(
        self,
        actor: Actor,
        status: Optional[CaseStatus] = None,
        limit: int = 20,
        offset: int = 0
    ) -> CaseListResponse:
        """
        List cases, newest first. Without a status filter the pending
        dashboard view is returned (submitted + approved).

        Admins see every case; officers only the cases assigned to them.
        """
        require_role(actor, UserRole.ASSEMBLY_ADMIN, UserRole.ENFORCEMENT_OFFICER)

        if status:
            filters = [("status", "==", status.value)]
        else:
            filters = [("status", "in", [s.value for s in PENDING_STATUSES])]
        if actor.role == UserRole.ENFORCEMENT_OFFICER:
            filters.append(("assigned_to", "==", actor.user_id))

        cases = self.store.query(CASES, filters)
        cases.sort(key=lambda c: to_utc(c["created_at"]), reverse=True)
        page = cases[offset:offset + limit]

        user_names: Dict[str, Optional[str]] = {}
        items = [self._enrich(case, user_names) for case in page]

        logger.info(f"Listed {len(items)}/{len(cases)} cases (status={status.value if status else 'pending'})")
        return CaseListResponse(total=len(cases), limit=limit, offset=offset, cases=items)

    def list_pending_cases(self, actor: Actor, limit: int = 20, offset: int = 0) -> CaseListResponse:
        return self.list_cases(actor, status=None, limit=limit, offset=offset)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def approve_case(self, case_id: str, actor: Actor, request: CaseApproveRequest) -> CaseResponse:
        """
        submitted → approved; designates the officer and awards the citizen's points.

        Raises:
            AuthorizationError: Actor is not an assembly admin
            NotFoundError: Case or assigned_to user does not exist
            ValidationError: Case is not submitted, or assigned_to is not an active officer
        """
        require_role(actor, UserRole.ASSEMBLY_ADMIN)

        def _approve(txn: Transaction) -> Dict:
            case = self._get_case(txn, case_id)
            report = txn.get(REPORTS, case["report_id"])
            incentive = self._get_incentive(txn, case)
            assignee = txn.get(USERS, request.assigned_to)
            now = self.clock()

            updated_case = self.case_ledger.approve(case, actor.user_id, request.assigned_to, request.notes, now)
            if assignee is None:
                raise NotFoundError("User", request.assigned_to)
            if assignee.get("role") != UserRole.ENFORCEMENT_OFFICER.value:
                raise ValidationError(f"User {request.assigned_to} is not an enforcement officer")
            if assignee.get("is_active") is False:
                raise ValidationError(f"Officer {request.assigned_to} is inactive")
            updated_incentive = self.incentive_ledger.award(incentive, actor.user_id, case_id, now, report=report)

            self._write(txn, updated_case, updated_incentive)
            return updated_case

        updated = self.store.run_in_transaction(_approve)
        logger.info(f"✅ Admin {actor.user_id} approved case {case_id}, assigned to {request.assigned_to}")
        return self._to_response(updated)

    def reject_case(self, case_id: str, actor: Actor, request: CaseRejectRequest) -> CaseResponse:
        """
        submitted → rejected; the incentive keeps 0 points / pending and gains an audit entry.
        """
        require_role(actor, UserRole.ASSEMBLY_ADMIN)

        def _reject(txn: Transaction) -> Dict:
            case = self._get_case(txn, case_id)
            incentive = self._get_incentive(txn, case)
            now = self.clock()

            updated_case = self.case_ledger.reject(case, actor.user_id, request.reason, now)
            updated_incentive = self.incentive_ledger.note_rejection(incentive, actor.user_id, request.reason, now)

            self._write(txn, updated_case, updated_incentive)
            return updated_case

        updated = self.store.run_in_transaction(_reject)
        logger.info(f"✅ Admin {actor.user_id} rejected case {case_id}")
        return self._to_response(updated)

    def accept_case(self, case_id: str, actor: Actor) -> CaseResponse:
        """
        approved → assigned, by the officer designated at approval.
        """
        require_role(actor, UserRole.ENFORCEMENT_OFFICER)

        def _accept(txn: Transaction) -> Dict:
            case = self._get_case(txn, case_id)
            updated_case = self.case_ledger.accept(case, actor.user_id, self.clock())
            self._write(txn, updated_case)
            return updated_case

        updated = self.store.run_in_transaction(_accept)
        logger.info(f"✅ Officer {actor.user_id} accepted case {case_id}")
        return self._to_response(updated)

    def complete_case(self, case_id: str, actor: Actor, evidence_url: str) -> CaseResponse:
        """
        assigned → completed, by the assigned officer. No incentive effect.
        """
        require_role(actor, UserRole.ENFORCEMENT_OFFICER)

        def _complete(txn: Transaction) -> Dict:
            case = self._get_case(txn, case_id)
            updated_case = self.case_ledger.complete(case, actor.user_id, evidence_url, self.clock())
            self._write(txn, updated_case)
            return updated_case

        updated = self.store.run_in_transaction(_complete)
        logger.info(f"✅ Officer {actor.user_id} completed case {case_id}")
        return self._to_response(updated)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _get_case(txn: Transaction, case_id: str) -> Dict:
        case = txn.get(CASES, case_id)
        if case is None:
            raise NotFoundError("Case", case_id)
        return case

    @staticmethod
    def _get_incentive(txn: Transaction, case: Dict) -> Dict:
        incentive = txn.get(INCENTIVES, case["report_id"])
        if incentive is None:
            raise AppError(f"Incentive record missing for report {case['report_id']}")
        return incentive

    def _write(self, txn: Transaction, case: Dict, incentive: Optional[Dict] = None) -> None:
        self.case_ledger.check_invariants(case)
        txn.set(CASES, case["id"], case)
        if incentive is not None:
            self.incentive_ledger.check_invariants(incentive)
            txn.set(INCENTIVES, case["report_id"], incentive)

    def _user_name(self, user_id: Optional[str], cache: Dict[str, Optional[str]]) -> Optional[str]:
        if not user_id:
            return None
        if user_id not in cache:
            user = self.store.get(USERS, user_id) or {}
            cache[user_id] = user.get("full_name")
        return cache[user_id]

    def _enrich(self, case: Dict, user_names: Dict[str, Optional[str]]) -> CaseListItem:
        report = self.store.get(REPORTS, case["report_id"])
        summary = None
        if report:
            summary = CaseReportSummary(
                category=report["category"],
                latitude=report["latitude"],
                longitude=report["longitude"],
                captured_at=to_utc(report["captured_at"]),
            )
        return CaseListItem(
            **self._to_response(case).model_dump(),
            report=summary,
            approved_by_name=self._user_name(case.get("approved_by"), user_names),
            assigned_to_name=self._user_name(case.get("assigned_to"), user_names),
        )

    @staticmethod
    def _to_response(case: Dict) -> CaseResponse:
        return CaseResponse(
            id=case["id"],
            report_id=case["report_id"],
            status=case["status"],
            assigned_to=case.get("assigned_to"),
            approved_by=case.get("approved_by"),
            approval_notes=case.get("approval_notes"),
            approved_at=to_utc(case.get("approved_at")),
            completed_at=to_utc(case.get("completed_at")),
            completion_evidence_url=case.get("completion_evidence_url"),
            status_history=case.get("status_history", []),
            created_at=to_utc(case["created_at"]),
            updated_at=to_utc(case["updated_at"]),
        )


def get_case_service(store: Store = Depends(get_store)) -> CaseWorkflowService:
    """FastAPI dependency provider; override in tests via app.dependency_overrides."""
    return CaseWorkflowService(
        store=store,
        case_ledger=CaseLedger(),
        incentive_ledger=IncentiveLedger(points_per_report=settings.REPORT_REWARD_POINTS),
    )
