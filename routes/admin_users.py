# routes/admin_users.py
from fastapi import APIRouter, Depends, status
from typing import List

from core.dependencies import get_user_service, require_access
from models.models import Permission
from schemas.user_schema import UserCreate, UserProfile, UserUpdate
from services.session_service import SessionContext
from services.user_service import UserService

import logging
logger = logging.getLogger(__name__)

router = APIRouter(tags=["Users"])

can_manage_users = require_access(Permission.MANAGE_USERS)


# ----------------------------------------------------------------------
# ✅ Get All Users (tenant-scoped for admins)
# ----------------------------------------------------------------------
@router.get("", response_model=List[UserProfile])
def list_users(
    context: SessionContext = Depends(can_manage_users),
    users: UserService = Depends(get_user_service),
):
    """Super admins see every user; admins see the users of their organization."""
    return users.list(context)


# ----------------------------------------------------------------------
# ✅ Register User (account + profile)
# ----------------------------------------------------------------------
@router.post("", response_model=UserProfile, status_code=status.HTTP_201_CREATED)
def create_user(
    data: UserCreate,
    context: SessionContext = Depends(can_manage_users),
    users: UserService = Depends(get_user_service),
):
    logger.info("📝 %s registering %s as %s", context.uid, data.email, data.role.value)
    return users.create(context, data)


@router.get("/{uid}", response_model=UserProfile)
def get_user(
    uid: str,
    context: SessionContext = Depends(can_manage_users),
    users: UserService = Depends(get_user_service),
):
    return users.get(context, uid)


# ----------------------------------------------------------------------
# ✅ Update role / permissions / active flag
# ----------------------------------------------------------------------
@router.put("/{uid}", response_model=UserProfile)
def update_user(
    uid: str,
    data: UserUpdate,
    context: SessionContext = Depends(can_manage_users),
    users: UserService = Depends(get_user_service),
):
    return users.update(context, uid, data)
