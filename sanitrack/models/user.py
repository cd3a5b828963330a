"""
User models. Users are provisioned by the auth collaborator; the core only
reads them (assignment checks, display names).
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from enum import Enum


class UserRole(str, Enum):
    CITIZEN = "citizen"
    ENFORCEMENT_OFFICER = "enforcement_officer"
    ASSEMBLY_ADMIN = "assembly_admin"


class Actor(BaseModel):
    """Authenticated caller, as supplied by the identity collaborator."""
    user_id: str = Field(..., min_length=1)
    role: UserRole

    def has_role(self, *roles: UserRole) -> bool:
        return self.role in roles


class UserCreate(BaseModel):
    phone_number: str = Field(..., min_length=10, max_length=20, description="Phone number (with country code)")
    full_name: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    role: UserRole = UserRole.CITIZEN


class UserResponse(BaseModel):
    id: str
    phone_number: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    role: UserRole
    is_active: bool = True
    created_at: datetime
