from datetime import date
from decimal import Decimal

import pytest

from core.document_store import RetryPolicy
from core.exceptions import FormValidationError, NotFoundError, TransactionConflict
from models.models import InvoiceStatus
from schemas.customer_schema import CustomerCreate, CustomerUpdate
from schemas.invoice_schema import CustomerSnapshot, InvoiceCreate, InvoiceItemInput, InvoiceUpdate
from schemas.settings_schema import CompanySettingsUpdate
from services.counter_service import NUMBER_CONFLICT_MESSAGE, InvoiceCounterService
from services.customer_service import CustomerService
from services.invoice_service import InvoiceService
from services.repository import DataScope
from services.settings_service import SettingsService
from tests.conftest import fixed_clock
from tests.test_counter_service import ContendedCounter

SCOPE = DataScope(user_id="u1", tenant_id="t1")
OTHER = DataScope(user_id="u9", tenant_id="t9")


def new_invoice(**overrides):
    data = {
        "customer": CustomerSnapshot(name="Globex", email="ap@globex.io"),
        "items": [InvoiceItemInput(description="Design", quantity=Decimal("2"), rate=Decimal("100"))],
    }
    data.update(overrides)
    return InvoiceCreate(**data)


@pytest.fixture
def invoices(store):
    return InvoiceService(store, counter=InvoiceCounterService(store, clock=fixed_clock(2024)))


def test_create_numbers_and_totals(invoices, store):
    SettingsService(store).update(SCOPE, CompanySettingsUpdate(invoice_prefix="vri"))

    first = invoices.create(SCOPE, new_invoice())
    second = invoices.create(SCOPE, new_invoice())

    assert first.invoice_number == "VRIINV20240001"
    assert second.invoice_number == "VRIINV20240002"
    assert first.total == Decimal("236.00")
    assert store.get("users/u1/invoice_counters/2024").get("currentCount") == 2


def test_default_prefix_and_dates(invoices):
    invoice = invoices.create(SCOPE, new_invoice())
    assert invoice.invoice_number == "INVINV20240001"
    assert invoice.date == date(2024, 6, 1)
    assert invoice.due_date == date(2024, 7, 1)
    assert invoice.status == InvoiceStatus.DRAFT
    assert invoice.tenant_id == "t1" and invoice.user_id == "u1"


def test_preview_matches_next_create(invoices):
    invoices.create(SCOPE, new_invoice())
    preview = invoices.preview_next_number(SCOPE)
    assert preview.invoice_number == "INVINV20240002"
    assert invoices.create(SCOPE, new_invoice()).invoice_number == preview.invoice_number


def test_customer_is_required(invoices):
    with pytest.raises(FormValidationError):
        invoices.create(SCOPE, new_invoice(customer=None))


def test_customer_snapshot_is_frozen_at_save(invoices, store):
    customers = CustomerService(store)
    customer = customers.create(SCOPE, CustomerCreate(name="Initech", gst="27ABCDE1234F1Z5"))

    invoice = invoices.create(SCOPE, new_invoice(customer=None, customer_id=customer.id))
    customers.update(SCOPE, customer.id, CustomerUpdate(name="Initrode"))

    stored = invoices.get(SCOPE, invoice.id)
    assert stored.customer.name == "Initech"
    assert stored.customer.gst == "27ABCDE1234F1Z5"
    assert stored.customer_id == customer.id


def test_customer_from_another_tenant_is_not_found(invoices, store):
    foreign = CustomerService(store).create(OTHER, CustomerCreate(name="Elsewhere"))
    with pytest.raises(NotFoundError):
        invoices.create(SCOPE, new_invoice(customer=None, customer_id=foreign.id))


def test_update_recomputes_totals_and_keeps_number(invoices):
    invoice = invoices.create(SCOPE, new_invoice())

    updated = invoices.update(SCOPE, invoice.id, InvoiceUpdate(
        items=[InvoiceItemInput(description="Build", quantity=Decimal("1"), rate=Decimal("500"), gst_rate=Decimal("5"))],
        notes="Revised",
    ))

    assert updated.invoice_number == invoice.invoice_number
    assert updated.total == Decimal("525.00")
    assert updated.notes == "Revised"
    assert updated.customer.name == "Globex"
    assert invoices.get(SCOPE, invoice.id).total == Decimal("525.00")


def test_update_status(invoices):
    invoice = invoices.create(SCOPE, new_invoice())
    assert invoices.update_status(SCOPE, invoice.id, InvoiceStatus.PAID).status == InvoiceStatus.PAID
    assert invoices.list(SCOPE, status=InvoiceStatus.PAID)[0].id == invoice.id
    assert invoices.list(SCOPE, status=InvoiceStatus.SENT) == []


def test_scopes_do_not_see_each_other(invoices):
    mine = invoices.create(SCOPE, new_invoice())
    theirs = invoices.create(OTHER, new_invoice())

    assert [i.id for i in invoices.list(SCOPE)] == [mine.id]
    # Each owner has a sequence of its own
    assert theirs.invoice_number == "INVINV20240001"
    with pytest.raises(NotFoundError):
        invoices.get(SCOPE, theirs.id)
    with pytest.raises(NotFoundError):
        invoices.update(SCOPE, theirs.id, InvoiceUpdate(notes="mine now"))
    with pytest.raises(NotFoundError):
        invoices.delete(SCOPE, theirs.id)


def test_deleted_numbers_are_not_reused(invoices):
    invoice = invoices.create(SCOPE, new_invoice())
    invoices.delete(SCOPE, invoice.id)

    with pytest.raises(NotFoundError):
        invoices.get(SCOPE, invoice.id)
    assert invoices.create(SCOPE, new_invoice()).invoice_number == "INVINV20240002"


def test_failed_numbering_writes_no_invoice(store):
    policy = RetryPolicy(max_attempts=3, base_delay=0)
    service = InvoiceService(
        store,
        counter=ContendedCounter(store, clock=fixed_clock(2024), retry_policy=policy),
        retry_policy=policy,
    )

    with pytest.raises(TransactionConflict) as excinfo:
        service.create(SCOPE, new_invoice())

    assert excinfo.value.message == NUMBER_CONFLICT_MESSAGE
    assert store.query("invoices") == []


def test_contended_create_retries_to_the_next_number(store):
    counter = InvoiceCounterService(store, clock=fixed_clock(2024))
    rival_numbers = []

    class OnceContended(InvoiceCounterService):
        def increment(self, txn, owner_id, year):
            value = super().increment(txn, owner_id, year)
            if not rival_numbers:
                rival_numbers.append(counter.next_invoice_number(owner_id, year))
            return value

    service = InvoiceService(store, counter=OnceContended(store, clock=fixed_clock(2024)))
    invoice = service.create(SCOPE, new_invoice())

    assert rival_numbers == ["INVINV20240001"]
    assert invoice.invoice_number == "INVINV20240002"
    assert len(store.query("invoices")) == 1
