"""
Report endpoints - citizen report submission and retrieval.
"""

from datetime import datetime
from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query, status

from sanitrack.core.settings import settings
from sanitrack.models.report import (
    HeatmapResponse,
    ReportCategory,
    ReportCreate,
    ReportListResponse,
    ReportResponse,
)
from sanitrack.models.user import Actor
from sanitrack.services.report_service import ReportService, get_report_service
from sanitrack.utils.auth import get_current_actor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.post("", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
def submit_report(
    report: ReportCreate,
    actor: Actor = Depends(get_current_actor),
    service: ReportService = Depends(get_report_service),
):
    """
    Submit a new sanitation violation report.

    Creates the report, its case (status: submitted) and its incentive
    record (0 points, pending) together.
    """
    logger.info(f"📝 POST /reports - user={actor.user_id}, category={report.category.value}")
    return service.submit_report(actor.user_id, report)


@router.get("", response_model=ReportListResponse)
def list_reports(
    category: Optional[ReportCategory] = Query(None, description="Filter by category"),
    from_date: Optional[datetime] = Query(None, description="Only reports created at or after this time"),
    to_date: Optional[datetime] = Query(None, description="Only reports created at or before this time"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    actor: Actor = Depends(get_current_actor),
    service: ReportService = Depends(get_report_service),
):
    """List the caller's own reports, newest first."""
    return service.list_reports(
        owner_id=actor.user_id,
        limit=limit,
        offset=offset,
        category=category,
        from_date=from_date,
        to_date=to_date,
    )


@router.get("/analytics/heatmap", response_model=HeatmapResponse)
def get_heatmap(
    min_lat: float = Query(..., description="Bounding box south edge"),
    max_lat: float = Query(..., description="Bounding box north edge"),
    min_lon: float = Query(..., description="Bounding box west edge"),
    max_lon: float = Query(..., description="Bounding box east edge"),
    category: Optional[ReportCategory] = Query(None),
    service: ReportService = Depends(get_report_service),
):
    """Report counts per location inside a bounding box."""
    return service.get_reports_by_location(min_lat, max_lat, min_lon, max_lon, category)


@router.get("/{report_id}", response_model=ReportResponse)
def get_report(
    report_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ReportService = Depends(get_report_service),
):
    """Get a report with its current case status and points earned."""
    return service.get_report(report_id, actor)
