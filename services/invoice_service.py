# services/invoice_service.py
"""
Invoice assembly: line item arithmetic, totals and persistence.

All money is ``Decimal`` rounded half-up to two places. A new invoice takes its
number from the counter in the same store transaction that writes the invoice,
so either both the counter increment and the invoice land or neither does.
"""
from datetime import timedelta
from decimal import Decimal
from typing import Iterable, List, Optional
import logging

from core.document_store import DocumentStore, RetryPolicy, join_path, new_document_id
from core.exceptions import FormValidationError, NotFoundError, TransactionConflict
from models.models import COLLECTION_INVOICES, InvoiceStatus
from schemas.common import round2, now_json
from schemas.invoice_schema import (
    CustomerSnapshot,
    Invoice,
    InvoiceCreate,
    InvoiceItem,
    InvoiceItemInput,
    InvoiceNumberPreview,
    InvoiceTotals,
    InvoiceUpdate,
)
from services.counter_service import NUMBER_CONFLICT_MESSAGE, InvoiceCounterService, counter_path, format_invoice_number
from services.customer_service import CustomerService
from services.repository import DataScope, Repository
from services.settings_service import SettingsService

logger = logging.getLogger(__name__)

DEFAULT_DUE_DAYS = 30


# ========================================
# 🧮 Line items & totals
# ========================================
def compute_item(item: InvoiceItemInput) -> InvoiceItem:
    amount = round2(item.quantity * item.rate)
    gst_amount = round2(amount * item.gst_rate / Decimal("100"))
    return InvoiceItem(
        id=item.id or new_document_id(),
        description=item.description,
        quantity=item.quantity,
        rate=item.rate,
        gst_rate=item.gst_rate,
        amount=amount,
        gst_amount=gst_amount,
    )


def compute_totals(items: Iterable[InvoiceItem]) -> InvoiceTotals:
    items = list(items)
    subtotal = round2(sum((i.amount for i in items), Decimal("0")))
    total_gst = round2(sum((i.gst_amount for i in items), Decimal("0")))
    return InvoiceTotals(subtotal=subtotal, total_gst=total_gst, total=round2(subtotal + total_gst))


# ========================================
# 🧾 Service
# ========================================
class InvoiceService:
    def __init__(
        self,
        store: DocumentStore,
        counter: Optional[InvoiceCounterService] = None,
        settings_service: Optional[SettingsService] = None,
        customers: Optional[CustomerService] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.store = store
        self.counter = counter or InvoiceCounterService(store, retry_policy=retry_policy)
        self.settings = settings_service or SettingsService(store)
        self.customers = customers or CustomerService(store)
        self.retry_policy = retry_policy
        self.repo = Repository(store, COLLECTION_INVOICES, Invoice)

    def _today(self):
        return self.counter.clock().date()

    def _resolve_customer(self, scope: DataScope, customer_id: Optional[str],
                          customer: Optional[CustomerSnapshot]) -> CustomerSnapshot:
        if customer_id:
            stored = self.customers.get(scope, customer_id)
            return CustomerSnapshot(
                name=stored.name,
                address=stored.address,
                phone=stored.phone,
                email=stored.email,
                gst=stored.gst,
            )
        if customer is None:
            raise FormValidationError("Select a customer or enter the customer details.")
        return customer

    # ------------------------
    # Reads
    # ------------------------
    def list(self, scope: DataScope, status: Optional[InvoiceStatus] = None) -> List[Invoice]:
        filters = [("status", "==", InvoiceStatus(status).value)] if status else []
        return self.repo.list_scoped(scope, filters=filters, order_by=[("createdAt", "desc")])

    def get(self, scope: DataScope, invoice_id: str) -> Invoice:
        return self.repo.get_scoped(invoice_id, scope, "Invoice not found.")

    def preview_next_number(self, scope: DataScope) -> InvoiceNumberPreview:
        return self.counter.preview_next_number(scope.user_id, prefix=self.settings.invoice_prefix(scope))

    # ------------------------
    # Save
    # ------------------------
    def create(self, scope: DataScope, data: InvoiceCreate) -> Invoice:
        """Assign the next number and write the invoice in one transaction."""
        customer = self._resolve_customer(scope, data.customer_id, data.customer)
        items = [compute_item(i) for i in data.items]
        totals = compute_totals(items)
        prefix = self.settings.invoice_prefix(scope)
        year = self.counter.current_year()
        invoice_date = data.date or self._today()
        owner_id = scope.user_id
        invoice_id = new_document_id()
        path = join_path(COLLECTION_INVOICES, invoice_id)

        def save(txn) -> Invoice:
            sequence = self.counter.increment(txn, owner_id, year)
            invoice = Invoice(
                id=invoice_id,
                invoice_number=format_invoice_number(prefix, year, sequence),
                date=invoice_date,
                due_date=data.due_date or invoice_date + timedelta(days=DEFAULT_DUE_DAYS),
                customer_id=data.customer_id,
                customer=customer,
                items=items,
                subtotal=totals.subtotal,
                total_gst=totals.total_gst,
                total=totals.total,
                notes=data.notes,
                status=data.status,
                tenant_id=scope.tenant_id,
                user_id=owner_id,
            )
            txn.set(path, invoice.to_document())
            return invoice

        result = self.store.run_transaction(save, retry_policy=self.retry_policy)
        if not result.ok:
            logger.error("❌ Invoice save for %s gave up after %s attempts", owner_id, result.attempts)
            raise TransactionConflict(NUMBER_CONFLICT_MESSAGE, path=counter_path(owner_id, year),
                                      attempts=result.attempts)

        invoice = result.value
        logger.info("🧾 Invoice %s saved as %s", invoice.id, invoice.invoice_number)
        return invoice

    def update(self, scope: DataScope, invoice_id: str, data: InvoiceUpdate) -> Invoice:
        """Rewrite an invoice's contents. The invoice number never changes."""
        path = self.repo.path(invoice_id)
        changes = data.model_dump(exclude_unset=True)

        customer = None
        if "customer_id" in changes or "customer" in changes:
            customer = self._resolve_customer(scope, data.customer_id, data.customer)
        items = [compute_item(i) for i in data.items] if data.items is not None else None

        def save(txn) -> Invoice:
            snapshot = txn.get(path)
            if not snapshot.exists or not scope.owns(snapshot.data):
                raise NotFoundError("Invoice not found.", path=path)
            current = self.repo.parse(snapshot)

            update = {}
            for field in ("date", "due_date"):
                if changes.get(field) is not None:
                    update[field] = changes[field]
            if "notes" in changes:
                update["notes"] = changes["notes"]
            if data.status is not None:
                update["status"] = data.status
            if customer is not None:
                update["customer"] = customer
                update["customer_id"] = data.customer_id
            if items is not None:
                totals = compute_totals(items)
                update.update(items=items, subtotal=totals.subtotal, total_gst=totals.total_gst, total=totals.total)

            document = current.model_copy(update=update).to_document()
            document["updatedAt"] = now_json()
            txn.set(path, document)
            return self.repo.model.model_validate({**document, "id": invoice_id})

        return self.store.run_transaction(save, retry_policy=self.retry_policy).unwrap()

    def update_status(self, scope: DataScope, invoice_id: str, status: InvoiceStatus) -> Invoice:
        return self.update(scope, invoice_id, InvoiceUpdate(status=status))

    def delete(self, scope: DataScope, invoice_id: str) -> None:
        # The counter is not rolled back: numbers are never reused
        self.get(scope, invoice_id)
        self.repo.delete(invoice_id)
        logger.info("🗑️ Invoice %s deleted", invoice_id)
