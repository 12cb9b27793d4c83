# routes/customers.py
from fastapi import APIRouter, Depends, status
from typing import List

from core.dependencies import get_customer_service, require_access
from models.models import AppModule, Permission
from schemas.customer_schema import Customer, CustomerCreate, CustomerUpdate
from services.customer_service import CustomerService
from services.session_service import SessionContext

router = APIRouter(tags=["Customers"])

# Customers belong to the invoicing module
can_view = require_access(Permission.VIEW_CUSTOMERS, AppModule.INVOICES)
can_manage = require_access(Permission.MANAGE_CUSTOMERS, AppModule.INVOICES)


@router.get("", response_model=List[Customer])
def list_customers(
    context: SessionContext = Depends(can_view),
    customers: CustomerService = Depends(get_customer_service),
):
    return customers.list(context.scope)


@router.post("", response_model=Customer, status_code=status.HTTP_201_CREATED)
def create_customer(
    data: CustomerCreate,
    context: SessionContext = Depends(can_manage),
    customers: CustomerService = Depends(get_customer_service),
):
    return customers.create(context.scope, data)


@router.get("/{customer_id}", response_model=Customer)
def get_customer(
    customer_id: str,
    context: SessionContext = Depends(can_view),
    customers: CustomerService = Depends(get_customer_service),
):
    return customers.get(context.scope, customer_id)


@router.put("/{customer_id}", response_model=Customer)
def update_customer(
    customer_id: str,
    data: CustomerUpdate,
    context: SessionContext = Depends(can_manage),
    customers: CustomerService = Depends(get_customer_service),
):
    return customers.update(context.scope, customer_id, data)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(
    customer_id: str,
    context: SessionContext = Depends(can_manage),
    customers: CustomerService = Depends(get_customer_service),
):
    customers.delete(context.scope, customer_id)
