import os

os.environ.setdefault("USE_MOCK_DB", "true")

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from sanitrack.main import app
from sanitrack.models.report import ReportCategory, ReportCreate
from sanitrack.models.user import Actor, UserCreate, UserRole
from sanitrack.services.case_ledger import CaseLedger
from sanitrack.services.case_service import CaseWorkflowService
from sanitrack.services.incentive_ledger import IncentiveLedger
from sanitrack.services.report_service import ReportService
from sanitrack.services.user_service import UserService
from sanitrack.storage import get_store
from sanitrack.storage.memory_store import InMemoryStore

NOW = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)

ADMIN_ID = "admin-1"
OFFICER_ID = "officer-1"
OTHER_OFFICER_ID = "officer-2"
CITIZEN_ID = "citizen-1"
OTHER_CITIZEN_ID = "citizen-2"


def fixed_clock():
    return NOW


def make_report_service(store, clock=fixed_clock):
    return ReportService(store, CaseLedger(), IncentiveLedger(points_per_report=10), clock=clock)


def make_case_service(store, clock=fixed_clock):
    return CaseWorkflowService(store, CaseLedger(), IncentiveLedger(points_per_report=10), clock=clock)


def report_input(**overrides) -> ReportCreate:
    data = {
        "category": ReportCategory.PLASTIC_DUMPING,
        "latitude": 5.6037,
        "longitude": -0.187,
        "gps_accuracy": 15,
        "captured_at": NOW,
        "description": "Plastic dumping near market",
    }
    data.update(overrides)
    return ReportCreate(**data)


def headers(user_id: str, role: UserRole) -> dict:
    return {"X-User-ID": user_id, "X-User-Role": role.value}


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def users(store):
    service = UserService(store, clock=fixed_clock)
    service.create_user(UserCreate(phone_number="+233502234567", full_name="Ama Admin", role=UserRole.ASSEMBLY_ADMIN), user_id=ADMIN_ID)
    service.create_user(UserCreate(phone_number="+233503234567", full_name="Kofi Officer", role=UserRole.ENFORCEMENT_OFFICER), user_id=OFFICER_ID)
    service.create_user(UserCreate(phone_number="+233503234568", full_name="Esi Officer", role=UserRole.ENFORCEMENT_OFFICER), user_id=OTHER_OFFICER_ID)
    service.create_user(UserCreate(phone_number="+233501234567", role=UserRole.CITIZEN), user_id=CITIZEN_ID)
    service.create_user(UserCreate(phone_number="+233501234568", role=UserRole.CITIZEN), user_id=OTHER_CITIZEN_ID)

    return SimpleNamespace(
        admin=Actor(user_id=ADMIN_ID, role=UserRole.ASSEMBLY_ADMIN),
        officer=Actor(user_id=OFFICER_ID, role=UserRole.ENFORCEMENT_OFFICER),
        other_officer=Actor(user_id=OTHER_OFFICER_ID, role=UserRole.ENFORCEMENT_OFFICER),
        citizen=Actor(user_id=CITIZEN_ID, role=UserRole.CITIZEN),
        other_citizen=Actor(user_id=OTHER_CITIZEN_ID, role=UserRole.CITIZEN),
    )


@pytest.fixture
def report_service(store):
    return make_report_service(store)


@pytest.fixture
def case_service(store):
    return make_case_service(store)


@pytest.fixture
def submitted_report(report_service, users):
    return report_service.submit_report(CITIZEN_ID, report_input())


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()
