"""
Case Status Workflow - strict state machine for enforcement cases.

DESIGN PRINCIPLES:
- One transition table, one guard; callers never compare statuses ad hoc
- No skipping states, no backward transitions, no re-opening
- Every transition appends exactly one status_history entry
"""

from datetime import datetime
from typing import Dict, List, Optional
import logging

from sanitrack.core.errors import ValidationError
from sanitrack.models.case import CaseStatus, StatusHistoryEntry

logger = logging.getLogger(__name__)


class CaseWorkflowEngine:
    """
    Transition table for the case lifecycle.

    submitted → approved → assigned → completed
    submitted → rejected
    """

    ALLOWED_TRANSITIONS: Dict[CaseStatus, List[CaseStatus]] = {
        CaseStatus.SUBMITTED: [CaseStatus.APPROVED, CaseStatus.REJECTED],
        CaseStatus.APPROVED: [CaseStatus.ASSIGNED],
        CaseStatus.ASSIGNED: [CaseStatus.COMPLETED],
        CaseStatus.COMPLETED: [],  # Terminal
        CaseStatus.REJECTED: [],   # Terminal
    }

    # Statuses in which a case must carry an assigned officer
    OFFICER_STATUSES = (CaseStatus.APPROVED, CaseStatus.ASSIGNED, CaseStatus.COMPLETED)

    @classmethod
    def is_valid_transition(cls, from_status: str, to_status: str) -> bool:
        try:
            from_enum = CaseStatus(from_status)
            to_enum = CaseStatus(to_status)
        except ValueError:
            return False
        return to_enum in cls.ALLOWED_TRANSITIONS.get(from_enum, [])

    @classmethod
    def get_allowed_transitions(cls, current_status: str) -> List[str]:
        try:
            current_enum = CaseStatus(current_status)
        except ValueError:
            return []
        return [status.value for status in cls.ALLOWED_TRANSITIONS.get(current_enum, [])]

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return not cls.get_allowed_transitions(status)

    @classmethod
    def create_status_history_entry(
        cls,
        to_status: CaseStatus,
        changed_by: str,
        timestamp: datetime,
        reason: Optional[str] = None
    ) -> Dict:
        return StatusHistoryEntry(
            status=to_status,
            changed_by=changed_by,
            timestamp=timestamp,
            reason=reason,
        ).model_dump()

    @classmethod
    def validate_transition(cls, current_status: str, new_status: CaseStatus) -> None:
        """
        Raises:
            ValidationError: If the transition is not an edge of the lifecycle.
        """
        if not cls.is_valid_transition(current_status, new_status.value):
            if cls.is_terminal(current_status):
                raise ValidationError(
                    f"Case is {current_status} and can no longer move to {new_status.value}"
                )
            required = [
                source.value for source, targets in cls.ALLOWED_TRANSITIONS.items()
                if new_status in targets
            ]
            raise ValidationError(
                f"Case must be in {' or '.join(required) or 'a valid'} status to move to {new_status.value} "
                f"(current status: {current_status})"
            )


def log_time(log: Optional[List[Dict]], now: datetime, time_field: str = "timestamp") -> datetime:
    """
    Timestamp for the next log entry: now, or the tail's time if now is behind it
    (clock skew between app instances).
    """
    if log:
        last_time = log[-1].get(time_field)
        if last_time is not None and now < last_time:
            logger.warning(f"Clock behind last log entry by {last_time - now}; stamping entry at {last_time}")
            return last_time
    return now


def append_to_log(log: Optional[List[Dict]], entry: Dict, time_field: str = "timestamp") -> List[Dict]:
    """
    Return a new log with entry appended.

    Entries are never rewritten or reordered. An entry older than the current
    tail is stamped with the tail's time so the log stays chronological.
    """
    entries = list(log or [])
    new_time = entry.get(time_field)
    if new_time is not None:
        entry = {**entry, time_field: log_time(entries, new_time, time_field)}
    entries.append(entry)
    return entries
