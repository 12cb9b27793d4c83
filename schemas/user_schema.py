# user_schema.py
from pydantic import EmailStr, Field
from typing import Optional, List
from datetime import datetime

from models.models import Permission, UserRole, utc_now
from schemas.common import DocumentModel


# ---------------------------
# Stored profile (users/{uid})
# ---------------------------
class UserProfile(DocumentModel):
    id: Optional[str] = None
    uid: str
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=100)
    role: UserRole
    tenant_id: Optional[str] = None
    permissions: List[Permission] = Field(default_factory=list)
    is_active: bool = True
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


# ---------------------------
# Create & Auth
# ---------------------------
class SignupRequest(DocumentModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: Optional[str] = Field(default=None, max_length=100)


class UserLogin(DocumentModel):
    email: EmailStr
    password: str


class UserCreate(DocumentModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: Optional[str] = Field(default=None, max_length=100)
    role: UserRole = UserRole.EMPLOYEE
    tenant_id: Optional[str] = None
    # When omitted the role's permission table is stored
    permissions: Optional[List[Permission]] = None


class UserUpdate(DocumentModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    role: Optional[UserRole] = None
    tenant_id: Optional[str] = None
    permissions: Optional[List[Permission]] = None
    is_active: Optional[bool] = None


class AuthIdentity(DocumentModel):
    uid: str
    email: EmailStr
