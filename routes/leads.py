# routes/leads.py
from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from core.dependencies import get_lead_service, require_access
from models.models import AppModule, Permission
from schemas.lead_schema import (
    Lead, LeadCreate, LeadUpdate,
    ServiceOption, ServiceOptionCreate,
    StatusOption, StatusOptionCreate,
)
from services.lead_service import LeadService
from services.session_service import SessionContext

router = APIRouter(tags=["Leads"])


def lead_access(permission: Permission):
    return require_access(permission, AppModule.LEADS)


# ==================================================================
#  ✅  Status & service options
# ==================================================================
@router.get("/statuses", response_model=List[StatusOption])
def list_status_options(
    context: SessionContext = Depends(lead_access(Permission.VIEW_LEADS)),
    leads: LeadService = Depends(get_lead_service),
):
    """Configured lead statuses, or the default set when none are configured."""
    return leads.status_options(context.scope)


@router.post("/statuses", response_model=StatusOption, status_code=status.HTTP_201_CREATED)
def add_status_option(
    data: StatusOptionCreate,
    context: SessionContext = Depends(lead_access(Permission.MANAGE_SETTINGS)),
    leads: LeadService = Depends(get_lead_service),
):
    return leads.add_status_option(context.scope, data)


@router.delete("/statuses/{option_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_status_option(
    option_id: str,
    context: SessionContext = Depends(lead_access(Permission.MANAGE_SETTINGS)),
    leads: LeadService = Depends(get_lead_service),
):
    leads.delete_status_option(context.scope, option_id)


@router.get("/services", response_model=List[ServiceOption])
def list_service_options(
    context: SessionContext = Depends(lead_access(Permission.VIEW_LEADS)),
    leads: LeadService = Depends(get_lead_service),
):
    return leads.service_options(context.scope)


@router.post("/services", response_model=ServiceOption, status_code=status.HTTP_201_CREATED)
def add_service_option(
    data: ServiceOptionCreate,
    context: SessionContext = Depends(lead_access(Permission.MANAGE_SETTINGS)),
    leads: LeadService = Depends(get_lead_service),
):
    return leads.add_service_option(context.scope, data)


@router.delete("/services/{option_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_service_option(
    option_id: str,
    context: SessionContext = Depends(lead_access(Permission.MANAGE_SETTINGS)),
    leads: LeadService = Depends(get_lead_service),
):
    leads.delete_service_option(context.scope, option_id)


# ==================================================================
#  ✅  Leads
# ==================================================================
@router.get("", response_model=List[Lead])
def list_leads(
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=100),
    context: SessionContext = Depends(lead_access(Permission.VIEW_LEADS)),
    leads: LeadService = Depends(get_lead_service),
):
    return leads.list(context.scope, status=status_filter, search=search)


@router.post("", response_model=Lead, status_code=status.HTTP_201_CREATED)
def create_lead(
    data: LeadCreate,
    context: SessionContext = Depends(lead_access(Permission.CREATE_LEADS)),
    leads: LeadService = Depends(get_lead_service),
):
    return leads.create(context.scope, data)


@router.get("/{lead_id}", response_model=Lead)
def get_lead(
    lead_id: str,
    context: SessionContext = Depends(lead_access(Permission.VIEW_LEADS)),
    leads: LeadService = Depends(get_lead_service),
):
    return leads.get(context.scope, lead_id)


@router.put("/{lead_id}", response_model=Lead)
def update_lead(
    lead_id: str,
    data: LeadUpdate,
    context: SessionContext = Depends(lead_access(Permission.EDIT_LEADS)),
    leads: LeadService = Depends(get_lead_service),
):
    return leads.update(context.scope, lead_id, data)


@router.delete("/{lead_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_lead(
    lead_id: str,
    context: SessionContext = Depends(lead_access(Permission.DELETE_LEADS)),
    leads: LeadService = Depends(get_lead_service),
):
    leads.delete(context.scope, lead_id)
