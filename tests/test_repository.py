import pytest

from core.exceptions import NotFoundError
from schemas.lead_schema import LeadCreate
from services.lead_service import LeadService
from services.repository import DataScope

TENANT = DataScope(user_id="u1", tenant_id="t1")
OWNER = DataScope(user_id="u1")


@pytest.fixture
def leads(store):
    return LeadService(store)


def test_owner_scope_matches_tenantless_records(leads):
    lead = leads.create(OWNER, LeadCreate(lead_name="Asha", mobile_number="1"))

    assert [l.id for l in leads.list(OWNER)] == [lead.id]
    assert leads.get(OWNER, lead.id).lead_name == "Asha"
    assert leads.list(TENANT) == []


def test_owner_scope_skips_own_records_made_inside_a_tenant(leads):
    # Same uid, e.g. a tenant user later promoted to platform admin
    lead = leads.create(TENANT, LeadCreate(lead_name="Ravi", mobile_number="2"))

    assert leads.list(OWNER) == []
    with pytest.raises(NotFoundError):
        leads.get(OWNER, lead.id)


def test_list_and_get_agree():
    record = {"userId": "u1", "tenantId": None}
    assert OWNER.owns(record)
    assert not OWNER.owns({**record, "tenantId": "t1"})
    assert OWNER.filters() == [("userId", "==", "u1"), ("tenantId", "==", None)]
