# customer_schema.py
from pydantic import Field
from typing import Optional
from datetime import datetime

from models.models import utc_now
from schemas.common import DocumentModel


class Customer(DocumentModel):
    id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=200)
    address: str = ""
    phone: str = ""
    email: str = ""
    gst: Optional[str] = Field(default=None, max_length=15)
    tenant_id: Optional[str] = None
    user_id: str
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class CustomerCreate(DocumentModel):
    name: str = Field(..., min_length=1, max_length=200)
    address: str = ""
    phone: str = ""
    email: str = ""
    gst: Optional[str] = Field(default=None, max_length=15)


class CustomerUpdate(DocumentModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    gst: Optional[str] = Field(default=None, max_length=15)
