# lead_schema.py
from pydantic import Field
from typing import Optional, List
from datetime import datetime, date as date_type
from decimal import Decimal

from models.models import utc_now
from schemas.common import DocumentModel


class Lead(DocumentModel):
    id: Optional[str] = None
    lead_name: str = Field(..., min_length=1, max_length=200)
    lead_date: date_type
    mobile_number: str = Field(..., min_length=1, max_length=30)
    email_address: str = ""
    service_required: List[str] = Field(default_factory=list)
    budget: Optional[Decimal] = Field(default=None, ge=0)
    lead_status: str
    notes: Optional[str] = None
    tenant_id: Optional[str] = None
    user_id: str
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class LeadCreate(DocumentModel):
    lead_name: str = Field(..., min_length=1, max_length=200)
    lead_date: Optional[date_type] = None
    mobile_number: str = Field(..., min_length=1, max_length=30)
    email_address: str = ""
    service_required: List[str] = Field(default_factory=list)
    budget: Optional[Decimal] = Field(default=None, ge=0)
    # Defaults to the tenant's default status option
    lead_status: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=2000)


class LeadUpdate(DocumentModel):
    lead_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    lead_date: Optional[date_type] = None
    mobile_number: Optional[str] = Field(default=None, min_length=1, max_length=30)
    email_address: Optional[str] = None
    service_required: Optional[List[str]] = None
    budget: Optional[Decimal] = Field(default=None, ge=0)
    lead_status: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=2000)


# ---------------------------
# Dynamic lead options
# ---------------------------
class StatusOption(DocumentModel):
    id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=50)
    order: int = 0
    is_default: bool = False
    color: Optional[str] = Field(default=None, max_length=20)
    tenant_id: Optional[str] = None
    user_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)


class StatusOptionCreate(DocumentModel):
    name: str = Field(..., min_length=1, max_length=50)
    order: int = 0
    is_default: bool = False
    color: Optional[str] = Field(default=None, max_length=20)


class ServiceOption(DocumentModel):
    id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=100)
    tenant_id: Optional[str] = None
    user_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)


class ServiceOptionCreate(DocumentModel):
    name: str = Field(..., min_length=1, max_length=100)
