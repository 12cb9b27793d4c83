import pytest

from core.document_store import RetryPolicy
from core.exceptions import MalformedDocumentError, TransactionConflict
from services.counter_service import (
    NUMBER_CONFLICT_MESSAGE, InvoiceCounterService, counter_path, format_invoice_number,
)
from tests.conftest import fixed_clock


class ContendedCounter(InvoiceCounterService):
    """Loses every race: a rival allocation commits while each attempt is in flight."""

    def __init__(self, store, **kwargs):
        super().__init__(store, **kwargs)
        self.rival = InvoiceCounterService(store)

    def increment(self, txn, owner_id, year):
        value = super().increment(txn, owner_id, year)
        self.rival.next_invoice_number(owner_id, year)
        return value


def test_numbers_follow_owner_and_year(store):
    counter = InvoiceCounterService(store)

    assert counter.next_invoice_number("U1", 2024, "VRI") == "VRIINV20240001"
    assert store.get("users/U1/invoice_counters/2024").data == {"currentCount": 1}
    assert counter.next_invoice_number("U1", 2024, "VRI") == "VRIINV20240002"
    assert counter.next_invoice_number("U1", 2025, "VRI") == "VRIINV20250001"

    assert counter.current_count("U1", 2024) == 2
    assert counter.current_count("U1", 2025) == 1


def test_owners_have_independent_sequences(store):
    counter = InvoiceCounterService(store)
    counter.next_invoice_number("U1", 2024)
    counter.next_invoice_number("U1", 2024)

    assert counter.next_invoice_number("U2", 2024) == "INVINV20240001"
    assert counter.current_count("U1", 2024) == 2


def test_year_defaults_to_the_clock(store):
    counter = InvoiceCounterService(store, clock=fixed_clock(2026))
    assert counter.next_invoice_number("U1", prefix="ACME") == "ACMEINV20260001"


def test_preview_does_not_reserve(store):
    counter = InvoiceCounterService(store, clock=fixed_clock(2024))
    counter.next_invoice_number("U1")

    preview = counter.preview_next_number("U1", prefix="VRI")
    assert preview.invoice_number == "VRIINV20240002"
    assert preview.sequence == 2
    assert preview.advisory
    assert counter.current_count("U1") == 1
    assert counter.preview_next_number("U1", prefix="VRI").invoice_number == "VRIINV20240002"


def test_interleaved_allocations_get_distinct_numbers(store):
    counter = InvoiceCounterService(store)
    counter.next_invoice_number("U1", 2024, "VRI")
    counter.next_invoice_number("U1", 2024, "VRI")
    inner = []

    def outer(txn):
        sequence = counter.increment(txn, "U1", 2024)
        if not inner:
            inner.append(counter.next_invoice_number("U1", 2024, "VRI"))
        return format_invoice_number("VRI", 2024, sequence)

    result = store.run_transaction(outer)

    assert inner == ["VRIINV20240003"]
    assert result.value == "VRIINV20240004"
    assert result.attempts == 2
    assert counter.current_count("U1", 2024) == 4


def test_exhausted_retries_report_a_conflict(store):
    counter = ContendedCounter(store, retry_policy=RetryPolicy(max_attempts=3, base_delay=0))

    with pytest.raises(TransactionConflict) as excinfo:
        counter.next_invoice_number("U1", 2024)

    assert excinfo.value.message == NUMBER_CONFLICT_MESSAGE
    assert excinfo.value.attempts == 3
    # Only the rival's three allocations committed
    assert counter.current_count("U1", 2024) == 3


def test_malformed_counter_is_reported(store):
    store.set(counter_path("U1", 2024), {"currentCount": "lots"})
    with pytest.raises(MalformedDocumentError):
        InvoiceCounterService(store).next_invoice_number("U1", 2024)


@pytest.mark.parametrize("prefix,expected", [
    ("vri", "VRIINV20240007"),
    (" abc ", "ABCINV20240007"),
    ("INV", "INVINV20240007"),
])
def test_format_normalizes_prefix(prefix, expected):
    assert format_invoice_number(prefix, 2024, 7) == expected


def test_sequence_is_zero_padded_and_grows_past_four_digits():
    assert format_invoice_number("A", 2024, 12345) == "AINV202412345"


@pytest.mark.parametrize("prefix", ["", "TOOLONG", "A-B"])
def test_invalid_prefix_rejected(prefix):
    with pytest.raises(ValueError):
        format_invoice_number(prefix, 2024, 1)
