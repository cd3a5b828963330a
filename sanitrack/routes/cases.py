"""
Case endpoints - review (assembly admin) and enforcement (officer) workflow.

Role requirements are enforced by the workflow service, not here:
- approve / reject: assembly_admin
- accept / complete: enforcement_officer (and only the assigned officer)
"""

from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query

from sanitrack.core.settings import settings
from sanitrack.models.case import (
    CaseActionResponse,
    CaseApproveRequest,
    CaseCompleteRequest,
    CaseListResponse,
    CaseRejectRequest,
    CaseResponse,
    CaseStatus,
)
from sanitrack.models.user import Actor
from sanitrack.services.case_service import CaseWorkflowService, get_case_service
from sanitrack.utils.auth import get_current_actor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cases", tags=["Cases"])


def _action_response(case: CaseResponse, message: str) -> CaseActionResponse:
    return CaseActionResponse(**case.model_dump(), message=message)


@router.get("", response_model=CaseListResponse)
def list_cases(
    status: Optional[CaseStatus] = Query(None, description="Filter by status (default: submitted + approved)"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    actor: Actor = Depends(get_current_actor),
    service: CaseWorkflowService = Depends(get_case_service),
):
    """Authority dashboard listing."""
    return service.list_cases(actor, status=status, limit=limit, offset=offset)


@router.get("/{case_id}", response_model=CaseResponse)
def get_case(
    case_id: str,
    actor: Actor = Depends(get_current_actor),
    service: CaseWorkflowService = Depends(get_case_service),
):
    return service.get_case(case_id, actor)


@router.post("/{case_id}/approve", response_model=CaseActionResponse)
def approve_case(
    case_id: str,
    request: CaseApproveRequest,
    actor: Actor = Depends(get_current_actor),
    service: CaseWorkflowService = Depends(get_case_service),
):
    """
    Approve a submitted case and designate the enforcement officer.
    Awards the reporting citizen's incentive points in the same transaction.
    """
    logger.info(f"POST /cases/{case_id}/approve - admin={actor.user_id}, assigned_to={request.assigned_to}")
    case = service.approve_case(case_id, actor, request)
    return _action_response(case, "Case approved and officer assigned")


@router.post("/{case_id}/reject", response_model=CaseActionResponse)
def reject_case(
    case_id: str,
    request: CaseRejectRequest,
    actor: Actor = Depends(get_current_actor),
    service: CaseWorkflowService = Depends(get_case_service),
):
    logger.info(f"POST /cases/{case_id}/reject - admin={actor.user_id}")
    case = service.reject_case(case_id, actor, request)
    return _action_response(case, "Case rejected")


@router.post("/{case_id}/accept", response_model=CaseActionResponse)
def accept_case(
    case_id: str,
    actor: Actor = Depends(get_current_actor),
    service: CaseWorkflowService = Depends(get_case_service),
):
    """Assigned officer acknowledges the case (approved → assigned)."""
    logger.info(f"POST /cases/{case_id}/accept - officer={actor.user_id}")
    case = service.accept_case(case_id, actor)
    return _action_response(case, "Case accepted by officer")


@router.post("/{case_id}/complete", response_model=CaseActionResponse)
def complete_case(
    case_id: str,
    request: CaseCompleteRequest,
    actor: Actor = Depends(get_current_actor),
    service: CaseWorkflowService = Depends(get_case_service),
):
    logger.info(f"POST /cases/{case_id}/complete - officer={actor.user_id}")
    case = service.complete_case(case_id, actor, request.completion_evidence_url)
    return _action_response(case, "Case marked as completed")
