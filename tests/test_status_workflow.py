from datetime import timedelta

import pytest

from sanitrack.core.errors import ValidationError
from sanitrack.models.case import CaseStatus
from sanitrack.services.status_workflow import CaseWorkflowEngine, append_to_log, log_time

from conftest import NOW


@pytest.mark.parametrize("from_status,to_status", [
    ("submitted", "approved"),
    ("submitted", "rejected"),
    ("approved", "assigned"),
    ("assigned", "completed"),
])
def test_lifecycle_edges_are_allowed(from_status, to_status):
    assert CaseWorkflowEngine.is_valid_transition(from_status, to_status)


@pytest.mark.parametrize("from_status,to_status", [
    ("submitted", "completed"),
    ("submitted", "assigned"),
    ("approved", "rejected"),
    ("approved", "completed"),
    ("rejected", "submitted"),
    ("rejected", "approved"),
    ("completed", "assigned"),
    ("submitted", "submitted"),
    ("submitted", "closed"),
])
def test_other_edges_are_refused(from_status, to_status):
    assert not CaseWorkflowEngine.is_valid_transition(from_status, to_status)


def test_terminal_statuses():
    assert CaseWorkflowEngine.is_terminal("rejected")
    assert CaseWorkflowEngine.is_terminal("completed")
    assert not CaseWorkflowEngine.is_terminal("approved")
    assert CaseWorkflowEngine.get_allowed_transitions("submitted") == ["approved", "rejected"]


def test_validate_transition_names_required_status():
    with pytest.raises(ValidationError) as exc:
        CaseWorkflowEngine.validate_transition("approved", CaseStatus.APPROVED)
    assert "submitted" in exc.value.message


def test_history_entry_stores_plain_values():
    entry = CaseWorkflowEngine.create_status_history_entry(CaseStatus.REJECTED, "admin-1", NOW, "blurry photo")
    assert entry == {"status": "rejected", "changed_by": "admin-1", "timestamp": NOW, "reason": "blurry photo"}


def test_append_to_log_keeps_order_and_does_not_mutate():
    first = {"timestamp": NOW, "action": "a"}
    log = append_to_log(None, first)
    longer = append_to_log(log, {"timestamp": NOW + timedelta(seconds=1), "action": "b"})

    assert [e["action"] for e in longer] == ["a", "b"]
    assert len(log) == 1


def test_append_to_log_stamps_lagging_entry_with_tail_time():
    log = [{"timestamp": NOW, "action": "a"}]
    entry = {"timestamp": NOW - timedelta(milliseconds=50), "action": "b"}

    longer = append_to_log(log, entry)

    assert longer[-1] == {"timestamp": NOW, "action": "b"}
    assert entry["timestamp"] == NOW - timedelta(milliseconds=50)


def test_log_time_keeps_clock_when_ahead():
    later = NOW + timedelta(seconds=1)
    assert log_time([{"timestamp": NOW}], later) == later
    assert log_time([], NOW) == NOW


@pytest.mark.parametrize("terminal", ["rejected", "completed"])
def test_validate_transition_from_terminal_status(terminal):
    with pytest.raises(ValidationError) as exc:
        CaseWorkflowEngine.validate_transition(terminal, CaseStatus.APPROVED)
    assert exc.value.message == f"Case is {terminal} and can no longer move to approved"
