"""
Identity collaborator adapter.

Authentication (OTP / JWT issuance and verification) happens upstream in the
API gateway, which forwards the verified caller as X-User-ID and X-User-Role
headers. This module only turns those headers into an Actor; role checks are
enforced by the services themselves.
"""

from typing import Optional
import logging

from fastapi import Header

from sanitrack.core.errors import AuthenticationError
from sanitrack.models.user import Actor, UserRole

logger = logging.getLogger(__name__)


def get_current_actor(
    user_id: Optional[str] = Header(None, alias="X-User-ID", description="Authenticated user ID"),
    user_role: Optional[str] = Header(None, alias="X-User-Role", description="Authenticated user role"),
) -> Actor:
    if not user_id or not user_id.strip():
        raise AuthenticationError("Missing X-User-ID header")
    if not user_role:
        raise AuthenticationError("Missing X-User-Role header")

    try:
        role = UserRole(user_role)
    except ValueError:
        logger.warning(f"Rejected request with unknown role '{user_role}' for user {user_id}")
        raise AuthenticationError(f"Unknown role: {user_role}")

    return Actor(user_id=user_id.strip(), role=role)
