"""
Storage layer - persistence collaborator for reports, cases, incentives and users.

Backends:
- firestore_store: Firestore via firebase-admin (production)
- memory_store: in-process store for local development and tests
"""

from .base import Store, Transaction
from .resolver import get_store

__all__ = ["Store", "Transaction", "get_store"]
