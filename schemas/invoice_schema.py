# invoice_schema.py
from pydantic import Field
from typing import Optional, List
from datetime import datetime, date as date_type
from decimal import Decimal

from models.models import InvoiceStatus, utc_now
from schemas.common import DocumentModel


class CustomerSnapshot(DocumentModel):
    """Copy of the customer taken when the invoice is saved."""
    name: str = Field(..., min_length=1, max_length=200)
    address: str = ""
    phone: str = ""
    email: str = ""
    gst: Optional[str] = None


# ---------------------------
# Line items
# ---------------------------
class InvoiceItemInput(DocumentModel):
    id: Optional[str] = None
    description: str = Field(default="", max_length=500)
    quantity: Decimal = Field(default=Decimal("1"), ge=0)
    rate: Decimal = Field(default=Decimal("0"), ge=0)
    gst_rate: Decimal = Field(default=Decimal("18"), ge=0, le=100)


class InvoiceItem(InvoiceItemInput):
    id: str
    amount: Decimal
    gst_amount: Decimal


class InvoiceTotals(DocumentModel):
    subtotal: Decimal
    total_gst: Decimal
    total: Decimal


# ---------------------------
# Stored invoice (invoices/{id})
# ---------------------------
class Invoice(DocumentModel):
    id: Optional[str] = None
    invoice_number: str
    date: date_type
    due_date: date_type
    customer_id: Optional[str] = None
    customer: CustomerSnapshot
    items: List[InvoiceItem]
    subtotal: Decimal
    total_gst: Decimal
    total: Decimal
    notes: Optional[str] = None
    status: InvoiceStatus = InvoiceStatus.DRAFT
    tenant_id: Optional[str] = None
    user_id: str
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class InvoiceCreate(DocumentModel):
    date: Optional[date_type] = None
    due_date: Optional[date_type] = None
    customer_id: Optional[str] = None
    customer: Optional[CustomerSnapshot] = None
    items: List[InvoiceItemInput] = Field(..., min_length=1)
    notes: Optional[str] = Field(default=None, max_length=2000)
    status: InvoiceStatus = InvoiceStatus.DRAFT


class InvoiceUpdate(DocumentModel):
    # No invoiceNumber: it is fixed when the invoice is created
    date: Optional[date_type] = None
    due_date: Optional[date_type] = None
    customer_id: Optional[str] = None
    customer: Optional[CustomerSnapshot] = None
    items: Optional[List[InvoiceItemInput]] = Field(default=None, min_length=1)
    notes: Optional[str] = Field(default=None, max_length=2000)
    status: Optional[InvoiceStatus] = None


class InvoiceStatusUpdate(DocumentModel):
    status: InvoiceStatus


class InvoiceNumberPreview(DocumentModel):
    invoice_number: str
    year: int
    sequence: int
    # The number is only fixed when the invoice is saved
    advisory: bool = True


class TotalsRequest(DocumentModel):
    items: List[InvoiceItemInput] = Field(default_factory=list)


class TotalsResponse(DocumentModel):
    items: List[InvoiceItem]
    totals: InvoiceTotals
