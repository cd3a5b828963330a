import logging
from typing import Optional

from sanitrack.core.settings import settings
from .base import Store
from .memory_store import InMemoryStore

logger = logging.getLogger(__name__)

_store_instance: Optional[Store] = None


def get_store() -> Store:
    """
    Resolve the active store based on settings.

    Rules:
    - USE_MOCK_DB=true: process-local in-memory store (data lost on restart).
    - Otherwise: Firestore via firebase-admin. Initialization errors propagate;
      there is no silent fallback to memory, so a misconfigured deployment
      cannot quietly drop reports.
    """
    global _store_instance
    if _store_instance is not None:
        return _store_instance

    if settings.USE_MOCK_DB:
        _store_instance = InMemoryStore(max_attempts=settings.TRANSACTION_MAX_ATTEMPTS)
        logger.info("Store initialized: memory (USE_MOCK_DB=true)")
        return _store_instance

    from sanitrack.config.firebase import get_db
    from .firestore_store import FirestoreStore

    _store_instance = FirestoreStore(get_db(), max_attempts=settings.TRANSACTION_MAX_ATTEMPTS)
    logger.info("Store initialized: firestore")
    return _store_instance
