"""
User Service - provision user records in the store.

Accounts are issued by the auth collaborator; the workflow only reads user
documents (assignee checks, display names). This service lets seed scripts
provision staff.
"""

from datetime import datetime
from typing import Callable, Dict, Optional
import logging

from sanitrack.models.user import UserCreate, UserResponse
from sanitrack.storage import Store, Transaction
from sanitrack.storage.base import USERS
from sanitrack.utils.timestamps import to_utc, utcnow

logger = logging.getLogger(__name__)


class UserService:

    def __init__(self, store: Store, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    def create_user(self, user_data: UserCreate, user_id: Optional[str] = None) -> UserResponse:
        """
        Create a user document. Fails with ConflictError if user_id is taken.
        """
        user_id = user_id or self.store.new_id()
        user = {
            "id": user_id,
            "phone_number": user_data.phone_number,
            "full_name": user_data.full_name,
            "email": user_data.email,
            "role": user_data.role.value,
            "is_active": True,
            "created_at": self.clock(),
        }

        def _create(txn: Transaction) -> None:
            txn.create(USERS, user_id, user)

        self.store.run_in_transaction(_create)
        logger.info(f"Created user {user_id} ({user['role']})")
        return self._to_response(user)

    @staticmethod
    def _to_response(user: Dict) -> UserResponse:
        return UserResponse(
            id=user["id"],
            phone_number=user["phone_number"],
            full_name=user.get("full_name"),
            email=user.get("email"),
            role=user["role"],
            is_active=user.get("is_active", True),
            created_at=to_utc(user["created_at"]),
        )
