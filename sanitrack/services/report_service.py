"""
Report service - citizen report intake and retrieval.

DESIGN NOTE:
- A report is immutable once stored
- Submission creates Report + Case + Incentive in one transaction, so a
  report is never visible without its case/incentive pair
- Coordinates and captured_at are re-validated here even though the request
  model already checked their shape
"""

from collections import Counter
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple
import logging
import math

from fastapi import Depends

from sanitrack.core.errors import AppError, AuthorizationError, NotFoundError, ValidationError
from sanitrack.core.settings import settings
from sanitrack.models.case import CaseStatus
from sanitrack.models.report import (
    HeatmapResponse,
    ReportCategory,
    ReportCreate,
    ReportListResponse,
    ReportResponse,
)
from sanitrack.models.user import Actor, UserRole
from sanitrack.services.case_ledger import CaseLedger
from sanitrack.services.incentive_ledger import IncentiveLedger
from sanitrack.storage import Store, Transaction, get_store
from sanitrack.storage.base import CASES, INCENTIVES, REPORTS
from sanitrack.utils.timestamps import to_utc, utcnow

logger = logging.getLogger(__name__)


def validate_coordinates(latitude: float, longitude: float) -> None:
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise ValidationError("Invalid GPS coordinates")
    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        raise ValidationError(
            f"Invalid GPS coordinates: latitude must be within [-90, 90] and longitude within [-180, 180] "
            f"(got {latitude}, {longitude})"
        )


def validate_captured_at(captured_at, now: datetime) -> datetime:
    captured = to_utc(captured_at)
    if captured is None:
        raise ValidationError("Invalid captured_at timestamp (must be ISO 8601)")
    if captured > now:
        raise ValidationError("captured_at cannot be in the future")
    return captured


class ReportService:
    """
    Service for report submission and citizen-facing reads.
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

    def submit_report(self, owner_id: str, report_data: ReportCreate) -> ReportResponse:
        """
        Store a new report together with its case (submitted) and incentive (0, pending).

        Raises:
            ValidationError: Bad coordinates or captured_at in the future
            ConflictError: A case/incentive already exists for the generated id
        """
        now = self.clock()
        validate_coordinates(report_data.latitude, report_data.longitude)
        captured_at = validate_captured_at(report_data.captured_at, now)

        report_id = self.store.new_id()
        incentive_id = self.store.new_id()

        report = {
            "id": report_id,
            "owner_id": owner_id,
            "category": report_data.category.value,
            "latitude": report_data.latitude,
            "longitude": report_data.longitude,
            "gps_accuracy": report_data.gps_accuracy,
            "captured_at": captured_at,
            "photo_urls": report_data.photo_urls or [],
            "video_url": report_data.video_url,
            "description": report_data.description,
            "anonymous": report_data.anonymous,
            "created_at": now,
        }
        case = self.case_ledger.new_case(report_id, now)
        incentive = self.incentive_ledger.new_incentive(incentive_id, owner_id, report_id, now)

        def _create(txn: Transaction) -> None:
            txn.create(REPORTS, report_id, report)
            txn.create(CASES, report_id, case)
            txn.create(INCENTIVES, report_id, incentive)

        self.store.run_in_transaction(_create)

        logger.info(f"✅ Report {report_id} submitted by {owner_id} ({report['category']})")
        return self._to_response(report, case, incentive)

    def get_report(self, report_id: str, actor: Actor) -> ReportResponse:
        report = self.store.get(REPORTS, report_id)
        if report is None:
            raise NotFoundError("Report", report_id)

        if actor.role == UserRole.CITIZEN and report.get("owner_id") != actor.user_id:
            raise AuthorizationError("You can only view your own reports")

        case = self.store.get(CASES, report_id)
        if case is None:
            raise AppError(f"Case not found for report {report_id}")
        incentive = self.store.get(INCENTIVES, report_id)

        return self._to_response(report, case, incentive)

    def list_reports(
        self,
        owner_id: str,
        limit: int = 20,
        offset: int = 0,
        category: Optional[ReportCategory] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None
    ) -> ReportListResponse:
        """
        List an owner's reports, newest first, with optional category and
        created_at window filters.
        """
        filters = [("owner_id", "==", owner_id)]
        if category:
            filters.append(("category", "==", category.value))

        reports = self.store.query(REPORTS, filters)

        # Date window applied in Python to avoid composite index requirements
        start, end = to_utc(from_date), to_utc(to_date)
        if start:
            reports = [r for r in reports if to_utc(r["created_at"]) >= start]
        if end:
            reports = [r for r in reports if to_utc(r["created_at"]) <= end]

        reports.sort(key=lambda r: to_utc(r["created_at"]), reverse=True)
        page = reports[offset:offset + limit]

        results = [
            self._to_response(
                report,
                self.store.get(CASES, report["id"]),
                self.store.get(INCENTIVES, report["id"]),
            )
            for report in page
        ]

        logger.info(f"Listed {len(results)}/{len(reports)} reports for owner {owner_id}")
        return ReportListResponse(total=len(reports), limit=limit, offset=offset, reports=results)

    def get_reports_by_location(
        self,
        min_lat: float,
        max_lat: float,
        min_lon: float,
        max_lon: float,
        category: Optional[ReportCategory] = None
    ) -> HeatmapResponse:
        """
        Count reports per exact coordinate inside a bounding box (heatmap data).
        """
        validate_coordinates(min_lat, min_lon)
        validate_coordinates(max_lat, max_lon)
        if min_lat > max_lat or min_lon > max_lon:
            raise ValidationError("Bounding box minimums must not exceed maximums")

        # Firestore allows range filters on one field only; longitude is filtered in Python
        filters = [("latitude", ">=", min_lat), ("latitude", "<=", max_lat)]
        if category:
            filters.append(("category", "==", category.value))

        counts: Counter = Counter()
        for report in self.store.query(REPORTS, filters):
            if min_lon <= report["longitude"] <= max_lon:
                counts[(report["latitude"], report["longitude"])] += 1

        points: List[Tuple[float, float, int]] = [(lat, lon, count) for (lat, lon), count in counts.items()]
        return HeatmapResponse(violations_by_location=points)

    @staticmethod
    def _to_response(report: Dict, case: Optional[Dict], incentive: Optional[Dict]) -> ReportResponse:
        return ReportResponse(
            id=report["id"],
            case_id=case["id"] if case else report["id"],
            category=report["category"],
            latitude=report["latitude"],
            longitude=report["longitude"],
            gps_accuracy=report.get("gps_accuracy"),
            captured_at=to_utc(report["captured_at"]),
            description=report.get("description"),
            photo_urls=report.get("photo_urls") or [],
            video_url=report.get("video_url"),
            anonymous=report.get("anonymous", False),
            case_status=case["status"] if case else CaseStatus.SUBMITTED.value,
            points_earned=(incentive or {}).get("points", 0),
            created_at=to_utc(report["created_at"]),
        )


def get_report_service(store: Store = Depends(get_store)) -> ReportService:
    """FastAPI dependency provider; override in tests via app.dependency_overrides."""
    return ReportService(
        store=store,
        case_ledger=CaseLedger(),
        incentive_ledger=IncentiveLedger(points_per_report=settings.REPORT_REWARD_POINTS),
    )
