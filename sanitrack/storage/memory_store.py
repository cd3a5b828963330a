"""
In-memory store used for local development (USE_MOCK_DB=true) and tests.

Transactions use optimistic versioning: every document read inside a
transaction records the version it saw, writes are buffered, and commit
re-checks all read versions under a short lock. If another transaction
committed in between, the function is run again from scratch.
"""

import copy
import logging
import threading
import uuid
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from sanitrack.core.errors import ConflictError
from sanitrack.storage.base import Filter, Store, T, Transaction, matches_filters

logger = logging.getLogger(__name__)

_CREATE = "create"
_SET = "set"


class _StaleRead(Exception):
    pass


class MemoryTransaction(Transaction):

    def __init__(self, store: "InMemoryStore"):
        self._store = store
        self._reads: Dict[Tuple[str, str], int] = {}
        self._writes: List[Tuple[str, str, str, Dict]] = []

    def get(self, collection: str, doc_id: str) -> Optional[Dict]:
        data, version = self._store._read(collection, doc_id)
        self._reads.setdefault((collection, doc_id), version)
        return data

    def create(self, collection: str, doc_id: str, data: Dict) -> None:
        self._writes.append((_CREATE, collection, doc_id, copy.deepcopy(data)))

    def set(self, collection: str, doc_id: str, data: Dict) -> None:
        self._writes.append((_SET, collection, doc_id, copy.deepcopy(data)))


class InMemoryStore(Store):

    def __init__(self, max_attempts: int = 5):
        self.max_attempts = max_attempts
        self._docs: Dict[str, Dict[str, Dict]] = defaultdict(dict)
        self._versions: Dict[Tuple[str, str], int] = defaultdict(int)
        self._lock = threading.Lock()

    def new_id(self) -> str:
        return str(uuid.uuid4())

    def _read(self, collection: str, doc_id: str) -> Tuple[Optional[Dict], int]:
        with self._lock:
            data = self._docs.get(collection, {}).get(doc_id)
            return copy.deepcopy(data), self._versions.get((collection, doc_id), 0)

    def get(self, collection: str, doc_id: str) -> Optional[Dict]:
        return self._read(collection, doc_id)[0]

    def query(self, collection: str, filters: Sequence[Filter] = ()) -> List[Dict]:
        with self._lock:
            docs = list(self._docs.get(collection, {}).values())
        return [copy.deepcopy(doc) for doc in docs if matches_filters(doc, filters)]

    def put(self, collection: str, doc_id: str, data: Dict) -> None:
        """Non-transactional write for preloading fixtures; bumps the version like a commit."""
        with self._lock:
            self._docs[collection][doc_id] = copy.deepcopy(data)
            self._versions[(collection, doc_id)] += 1

    def _commit(self, txn: MemoryTransaction) -> None:
        with self._lock:
            for key, seen_version in txn._reads.items():
                if self._versions.get(key, 0) != seen_version:
                    raise _StaleRead(f"{key[0]}/{key[1]}")

            for op, collection, doc_id, _ in txn._writes:
                if op == _CREATE and doc_id in self._docs.get(collection, {}):
                    raise ConflictError(f"Document {collection}/{doc_id} already exists")

            for _, collection, doc_id, data in txn._writes:
                self._docs[collection][doc_id] = data
                self._versions[(collection, doc_id)] += 1

    def run_in_transaction(self, fn: Callable[[Transaction], T]) -> T:
        for attempt in range(1, self.max_attempts + 1):
            txn = MemoryTransaction(self)
            result = fn(txn)
            try:
                self._commit(txn)
                return result
            except _StaleRead as e:
                logger.info(f"Transaction contention on {e} (attempt {attempt}/{self.max_attempts}), retrying")

        raise ConflictError(f"Transaction failed after {self.max_attempts} attempts due to concurrent updates")

    def ping(self) -> Dict:
        with self._lock:
            collections = [name for name, docs in self._docs.items() if docs]
        return {"database": "memory", "collections_count": len(collections)}
