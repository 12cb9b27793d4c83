# routes/auth.py
from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional
import logging

from core.access import evaluate_route, navigation_for
from core.dependencies import (
    get_current_session, get_optional_session, get_session_service, get_tenant_service,
)
from schemas.dashboard_schema import NavigationItem, RouteCheck
from schemas.user_schema import SignupRequest, UserLogin
from services.session_service import SessionContext, SessionService
from services.tenant_service import TenantService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])


def token_response(context: SessionContext, token) -> dict:
    return {
        "access_token": token.access_token,
        "token_type": token.token_type,
        "user": context.profile.model_dump(mode="json", by_alias=True),
    }


# ==========================================================
# ✅ First-run signup: creates the platform super admin
# ==========================================================
@router.get("/signup-status")
def signup_status(sessions: SessionService = Depends(get_session_service)):
    """Whether the public signup form should be shown."""
    return {"open": sessions.signup_open()}


@router.post("/signup", status_code=status.HTTP_201_CREATED)
def public_signup(data: SignupRequest, sessions: SessionService = Depends(get_session_service)):
    """Creates the first account as super admin. Closed once any user exists."""
    logger.info("📝 Signup attempt for %s", data.email)
    context, token = sessions.bootstrap_super_admin(data)
    return token_response(context, token)


# ==========================================================
# ✅ Login / Logout
# ==========================================================
@router.post("/login")
def login(credentials: UserLogin, sessions: SessionService = Depends(get_session_service)):
    """Authenticate with email and password and return a bearer token."""
    context, token = sessions.sign_in(credentials.email, credentials.password)
    logger.info("Login successful for %s", context.identity.email)
    return token_response(context, token)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    context: SessionContext = Depends(get_current_session),
    sessions: SessionService = Depends(get_session_service),
):
    """Revoke the token used for this request."""
    sessions.sign_out(context)


# ==========================================================
# ✅ Session info
# ==========================================================
@router.get("/me")
def me(
    context: SessionContext = Depends(get_current_session),
    tenants: TenantService = Depends(get_tenant_service),
):
    """Profile, tenant and subscription of the signed-in user."""
    subscription = tenants.to_read(context.subscription) if context.subscription else None
    return {
        "user": context.profile.model_dump(mode="json", by_alias=True),
        "tenant": context.tenant.model_dump(mode="json", by_alias=True) if context.tenant else None,
        "subscription": subscription.model_dump(mode="json", by_alias=True) if subscription else None,
    }


@router.get("/navigation", response_model=List[NavigationItem])
def navigation(context: SessionContext = Depends(get_current_session)):
    return navigation_for(context)


@router.get("/route-check", response_model=RouteCheck)
def route_check(
    path: str = Query(..., description="Application path, e.g. /invoices"),
    context: Optional[SessionContext] = Depends(get_optional_session),
):
    """Whether the caller may open a screen, and where to send them if not."""
    decision = evaluate_route(context, path)
    return RouteCheck(
        path=path,
        allowed=decision.allowed,
        reason=decision.reason,
        redirect_to=decision.redirect_to,
    )
