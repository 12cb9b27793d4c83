# routes/invoices.py
from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from core.dependencies import get_invoice_service, require_access
from models.models import AppModule, InvoiceStatus, Permission
from schemas.invoice_schema import (
    Invoice, InvoiceCreate, InvoiceNumberPreview, InvoiceStatusUpdate, InvoiceUpdate,
    TotalsRequest, TotalsResponse,
)
from services.invoice_service import InvoiceService, compute_item, compute_totals
from services.session_service import SessionContext

import logging
logger = logging.getLogger(__name__)

router = APIRouter(tags=["Invoices"])


def invoice_access(permission: Permission):
    return require_access(permission, AppModule.INVOICES)


# ----------------------------------------------------------------------
# ✅ List / Preview / Totals
# ----------------------------------------------------------------------
@router.get("", response_model=List[Invoice])
def list_invoices(
    status_filter: Optional[InvoiceStatus] = Query(None, alias="status"),
    context: SessionContext = Depends(invoice_access(Permission.VIEW_INVOICES)),
    invoices: InvoiceService = Depends(get_invoice_service),
):
    return invoices.list(context.scope, status_filter)


@router.get("/next-number", response_model=InvoiceNumberPreview)
def next_invoice_number(
    context: SessionContext = Depends(invoice_access(Permission.CREATE_INVOICES)),
    invoices: InvoiceService = Depends(get_invoice_service),
):
    """Number the next saved invoice would get. Advisory only; nothing is reserved."""
    return invoices.preview_next_number(context.scope)


@router.post("/totals", response_model=TotalsResponse)
def invoice_totals(
    data: TotalsRequest,
    context: SessionContext = Depends(invoice_access(Permission.VIEW_INVOICES)),
):
    """Recompute line amounts and totals of a draft without saving it."""
    items = [compute_item(item) for item in data.items]
    return TotalsResponse(items=items, totals=compute_totals(items))


# ----------------------------------------------------------------------
# ✅ CRUD
# ----------------------------------------------------------------------
@router.post("", response_model=Invoice, status_code=status.HTTP_201_CREATED)
def create_invoice(
    data: InvoiceCreate,
    context: SessionContext = Depends(invoice_access(Permission.CREATE_INVOICES)),
    invoices: InvoiceService = Depends(get_invoice_service),
):
    return invoices.create(context.scope, data)


@router.get("/{invoice_id}", response_model=Invoice)
def get_invoice(
    invoice_id: str,
    context: SessionContext = Depends(invoice_access(Permission.VIEW_INVOICES)),
    invoices: InvoiceService = Depends(get_invoice_service),
):
    return invoices.get(context.scope, invoice_id)


@router.put("/{invoice_id}", response_model=Invoice)
def update_invoice(
    invoice_id: str,
    data: InvoiceUpdate,
    context: SessionContext = Depends(invoice_access(Permission.EDIT_INVOICES)),
    invoices: InvoiceService = Depends(get_invoice_service),
):
    return invoices.update(context.scope, invoice_id, data)


@router.patch("/{invoice_id}/status", response_model=Invoice)
def update_invoice_status(
    invoice_id: str,
    data: InvoiceStatusUpdate,
    context: SessionContext = Depends(invoice_access(Permission.EDIT_INVOICES)),
    invoices: InvoiceService = Depends(get_invoice_service),
):
    return invoices.update_status(context.scope, invoice_id, data.status)


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invoice(
    invoice_id: str,
    context: SessionContext = Depends(invoice_access(Permission.DELETE_INVOICES)),
    invoices: InvoiceService = Depends(get_invoice_service),
):
    invoices.delete(context.scope, invoice_id)
