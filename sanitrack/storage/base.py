from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")

# (field_path, op, value); op is one of "==", "in", ">=", "<="
Filter = Tuple[str, str, Any]

SUPPORTED_OPS = ("==", "in", ">=", "<=")

# Collection names
REPORTS = "reports"
CASES = "cases"
INCENTIVES = "incentives"
USERS = "users"


class Transaction(ABC):
    """
    Unit of work handed to a function run by Store.run_in_transaction.

    Contract:
    - Reads must happen before writes (Firestore restriction).
    - Writes are buffered and only become visible if the whole function
      returns without raising. Any exception discards every write.
    - get() returns a copy; mutating it has no effect until set().
    """

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[Dict]:
        raise NotImplementedError

    @abstractmethod
    def create(self, collection: str, doc_id: str, data: Dict) -> None:
        """Write a new document; the commit fails with ConflictError if the key exists."""
        raise NotImplementedError

    @abstractmethod
    def set(self, collection: str, doc_id: str, data: Dict) -> None:
        """Replace a document."""
        raise NotImplementedError


class Store(ABC):
    """
    Persistence collaborator for reports, cases, incentives and users.

    Case and incentive documents are keyed by report id, so lookups by
    report reference are direct key reads.
    """

    @abstractmethod
    def new_id(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[Dict]:
        raise NotImplementedError

    @abstractmethod
    def query(self, collection: str, filters: Sequence[Filter] = ()) -> List[Dict]:
        """Return every document matching all filters (unordered)."""
        raise NotImplementedError

    @abstractmethod
    def run_in_transaction(self, fn: Callable[[Transaction], T]) -> T:
        """
        Run fn atomically. fn may be invoked more than once on contention,
        so it must not have side effects outside the transaction.
        """
        raise NotImplementedError

    @abstractmethod
    def ping(self) -> Dict:
        """Lightweight connectivity check for health endpoints."""
        raise NotImplementedError


def matches_filters(data: Dict, filters: Sequence[Filter]) -> bool:
    for field_path, op, value in filters:
        actual = data.get(field_path)
        if op == "==":
            if actual != value:
                return False
        elif op == "in":
            if actual not in value:
                return False
        elif op == ">=":
            if actual is None or actual < value:
                return False
        elif op == "<=":
            if actual is None or actual > value:
                return False
        else:
            raise ValueError(f"Unsupported filter operator: {op}")
    return True
