"""
Firestore-backed store.

Workflow writes run inside firestore.transactional: documents read through
the transaction are locked for the duration, and the SDK re-runs the
function when the commit hits contention.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence

from firebase_admin import firestore
from google.api_core import exceptions as gcp_exceptions

from sanitrack.core.errors import ConflictError
from sanitrack.storage.base import Filter, Store, T, Transaction, REPORTS
from sanitrack.utils.firestore_helpers import apply_filters, snapshot_to_dict

logger = logging.getLogger(__name__)

EXHAUSTED_ATTEMPTS_PREFIX = "Failed to commit transaction"


class FirestoreTransaction(Transaction):

    def __init__(self, db: firestore.Client, transaction):
        self._db = db
        self._transaction = transaction

    def get(self, collection: str, doc_id: str) -> Optional[Dict]:
        doc_ref = self._db.collection(collection).document(doc_id)
        return snapshot_to_dict(doc_ref.get(transaction=self._transaction))

    def create(self, collection: str, doc_id: str, data: Dict) -> None:
        self._transaction.create(self._db.collection(collection).document(doc_id), data)

    def set(self, collection: str, doc_id: str, data: Dict) -> None:
        self._transaction.set(self._db.collection(collection).document(doc_id), data)


class FirestoreStore(Store):

    def __init__(self, db: firestore.Client, max_attempts: int = 5):
        self.db = db
        self.max_attempts = max_attempts

    def new_id(self) -> str:
        # Auto-generated Firestore document ID
        return self.db.collection(REPORTS).document().id

    def get(self, collection: str, doc_id: str) -> Optional[Dict]:
        return snapshot_to_dict(self.db.collection(collection).document(doc_id).get())

    def query(self, collection: str, filters: Sequence[Filter] = ()) -> List[Dict]:
        query = apply_filters(self.db.collection(collection), filters)
        return [snapshot_to_dict(doc) for doc in query.stream()]

    def run_in_transaction(self, fn: Callable[[Transaction], T]) -> T:
        @firestore.transactional
        def _run(transaction):
            return fn(FirestoreTransaction(self.db, transaction))

        try:
            return _run(self.db.transaction(max_attempts=self.max_attempts))
        except gcp_exceptions.Conflict as e:
            # AlreadyExists: duplicate key on create
            logger.warning(f"Firestore transaction conflict: {e}")
            raise ConflictError(f"Write conflict: {e.message}")
        except ValueError as e:
            # firestore.transactional gives up on contention with a ValueError
            if not str(e).startswith(EXHAUSTED_ATTEMPTS_PREFIX):
                raise
            logger.warning(f"Firestore transaction contention: {e}")
            raise ConflictError(f"Transaction failed after {self.max_attempts} attempts due to concurrent updates")

    def ping(self) -> Dict:
        collections = list(self.db.collections())
        return {"database": "firestore", "collections_count": len(collections)}
