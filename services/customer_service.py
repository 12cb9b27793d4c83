# services/customer_service.py
from typing import List
import logging

from core.document_store import DocumentStore
from models.models import COLLECTION_CUSTOMERS
from schemas.common import now_json
from schemas.customer_schema import Customer, CustomerCreate, CustomerUpdate
from services.repository import DataScope, Repository

logger = logging.getLogger(__name__)


class CustomerService:
    def __init__(self, store: DocumentStore):
        self.repo = Repository(store, COLLECTION_CUSTOMERS, Customer)

    def list(self, scope: DataScope) -> List[Customer]:
        return self.repo.list_scoped(scope, order_by=[("name", "asc")])

    def get(self, scope: DataScope, customer_id: str) -> Customer:
        return self.repo.get_scoped(customer_id, scope, "Customer not found.")

    def create(self, scope: DataScope, data: CustomerCreate) -> Customer:
        customer = Customer(**data.model_dump(), tenant_id=scope.tenant_id, user_id=scope.user_id)
        customer = self.repo.create(customer)
        logger.info("✅ Customer %s created", customer.id)
        return customer

    def update(self, scope: DataScope, customer_id: str, data: CustomerUpdate) -> Customer:
        self.get(scope, customer_id)
        partial = data.model_dump(mode="json", by_alias=True, exclude_unset=True, exclude_none=True)
        partial["updatedAt"] = now_json()
        return self.repo.update(customer_id, partial)

    def delete(self, scope: DataScope, customer_id: str) -> None:
        self.get(scope, customer_id)
        self.repo.delete(customer_id)
        logger.info("🗑️ Customer %s deleted", customer_id)
