# services/counter_service.py
"""
Per-owner, per-year invoice number sequence.

The counter document ``users/{owner}/invoice_counters/{year}`` holds
``currentCount``. It is created on the first invoice of a year, incremented
exactly once per committed invoice and never decremented, so numbers are unique
and gap-free for an owner within a calendar year.
"""
from typing import Callable, Optional
from datetime import datetime
import logging

from pydantic import Field, ValidationError

from core.document_store import DocumentSnapshot, DocumentStore, RetryPolicy, Transaction, join_path
from core.exceptions import MalformedDocumentError, TransactionConflict
from models.models import COLLECTION_INVOICE_COUNTERS, COLLECTION_USERS, utc_now
from schemas.common import DocumentModel
from schemas.invoice_schema import InvoiceNumberPreview
from schemas.settings_schema import normalize_prefix

logger = logging.getLogger(__name__)

NUMBER_CONFLICT_MESSAGE = "Could not generate invoice number, try again."


class CounterDocument(DocumentModel):
    current_count: int = Field(default=0, ge=0)


def counter_path(owner_id: str, year: int) -> str:
    return join_path(COLLECTION_USERS, owner_id, COLLECTION_INVOICE_COUNTERS, int(year))


def format_invoice_number(prefix: str, year: int, sequence: int) -> str:
    """``{prefix}INV{YYYY}{NNNN}``, e.g. ``VRIINV20240001``."""
    return f"{normalize_prefix(prefix)}INV{int(year):04d}{int(sequence):04d}"


def read_count(snapshot: DocumentSnapshot) -> int:
    """Current count stored at the snapshot; an absent counter counts as 0."""
    if not snapshot.exists:
        return 0
    try:
        return CounterDocument.model_validate(snapshot.data).current_count
    except ValidationError as e:
        raise MalformedDocumentError(snapshot.path, str(e)) from e


class InvoiceCounterService:
    def __init__(
        self,
        store: DocumentStore,
        clock: Callable[[], datetime] = utc_now,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.store = store
        self.clock = clock
        self.retry_policy = retry_policy

    def current_year(self) -> int:
        return self.clock().year

    # ========================================
    # ✅ Increment
    # ========================================
    def increment(self, txn: Transaction, owner_id: str, year: int) -> int:
        """
        Read-increment-write the counter inside ``txn`` and return the new value.
        Callers that write more documents in the same transaction must call this
        before their own writes.
        """
        path = counter_path(owner_id, year)
        next_count = read_count(txn.get(path)) + 1
        txn.set(path, CounterDocument(current_count=next_count).to_document())
        return next_count

    def next_invoice_number(self, owner_id: str, year: Optional[int] = None, prefix: str = "INV") -> str:
        year = year or self.current_year()
        prefix = normalize_prefix(prefix)

        result = self.store.run_transaction(
            lambda txn: self.increment(txn, owner_id, year),
            retry_policy=self.retry_policy,
        )
        if not result.ok:
            logger.error("❌ Invoice number for %s/%s not generated after %s attempts",
                         owner_id, year, result.attempts)
            raise TransactionConflict(NUMBER_CONFLICT_MESSAGE, path=counter_path(owner_id, year),
                                      attempts=result.attempts)
        return format_invoice_number(prefix, year, result.value)

    # ========================================
    # ✅ Read-only helpers
    # ========================================
    def current_count(self, owner_id: str, year: Optional[int] = None) -> int:
        year = year or self.current_year()
        return read_count(self.store.get(counter_path(owner_id, year)))

    def preview_next_number(self, owner_id: str, year: Optional[int] = None,
                            prefix: str = "INV") -> InvoiceNumberPreview:
        """Number the next invoice would get right now. Nothing is reserved."""
        year = year or self.current_year()
        sequence = self.current_count(owner_id, year) + 1
        return InvoiceNumberPreview(
            invoice_number=format_invoice_number(prefix, year, sequence),
            year=year,
            sequence=sequence,
        )
