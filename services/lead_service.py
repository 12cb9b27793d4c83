# services/lead_service.py
from typing import List, Optional
import logging

from core.document_store import DocumentStore
from core.exceptions import AppError, FormValidationError
from models.models import COLLECTION_LEADS, COLLECTION_SERVICE_OPTIONS, COLLECTION_STATUS_OPTIONS, utc_now
from schemas.common import now_json
from schemas.lead_schema import (
    Lead, LeadCreate, LeadUpdate,
    ServiceOption, ServiceOptionCreate,
    StatusOption, StatusOptionCreate,
)
from services.repository import DataScope, Repository

logger = logging.getLogger(__name__)


# ========================================
# 📋 Default option lists
# ========================================
DEFAULT_STATUS_OPTIONS = [
    StatusOption(name="Created", order=1, is_default=True, color="#2563EB"),
    StatusOption(name="Followup", order=2, color="#FBBF24"),
    StatusOption(name="Client", order=3, color="#10B981"),
    StatusOption(name="Rejected", order=4, color="#EF4444"),
]

DEFAULT_SERVICE_OPTIONS = [
    ServiceOption(name="SEO"),
    ServiceOption(name="PPC"),
    ServiceOption(name="Social Media Marketing"),
    ServiceOption(name="Other"),
]


class LeadService:
    def __init__(self, store: DocumentStore, clock=utc_now):
        self.leads = Repository(store, COLLECTION_LEADS, Lead)
        self.statuses = Repository(store, COLLECTION_STATUS_OPTIONS, StatusOption)
        self.services = Repository(store, COLLECTION_SERVICE_OPTIONS, ServiceOption)
        self.clock = clock

    # ------------------------
    # Options
    # ------------------------
    def status_options(self, scope: DataScope) -> List[StatusOption]:
        try:
            options = self.statuses.list_scoped(scope, order_by=[("order", "asc")])
        except AppError as e:
            logger.warning("⚠️ Using default lead statuses: %s", e.message)
            return list(DEFAULT_STATUS_OPTIONS)
        return options or list(DEFAULT_STATUS_OPTIONS)

    def service_options(self, scope: DataScope) -> List[ServiceOption]:
        try:
            options = self.services.list_scoped(scope, order_by=[("name", "asc")])
        except AppError as e:
            logger.warning("⚠️ Using default lead services: %s", e.message)
            return list(DEFAULT_SERVICE_OPTIONS)
        return options or list(DEFAULT_SERVICE_OPTIONS)

    def add_status_option(self, scope: DataScope, data: StatusOptionCreate) -> StatusOption:
        existing = {o.name.lower() for o in self.statuses.list_scoped(scope)}
        if data.name.strip().lower() in existing:
            raise FormValidationError(f"Status '{data.name}' already exists.")
        option = StatusOption(**data.model_dump(), tenant_id=scope.tenant_id, user_id=scope.user_id)
        return self.statuses.create(option)

    def delete_status_option(self, scope: DataScope, option_id: str) -> None:
        self.statuses.get_scoped(option_id, scope, "Status option not found.")
        self.statuses.delete(option_id)

    def add_service_option(self, scope: DataScope, data: ServiceOptionCreate) -> ServiceOption:
        existing = {o.name.lower() for o in self.services.list_scoped(scope)}
        if data.name.strip().lower() in existing:
            raise FormValidationError(f"Service '{data.name}' already exists.")
        option = ServiceOption(**data.model_dump(), tenant_id=scope.tenant_id, user_id=scope.user_id)
        return self.services.create(option)

    def delete_service_option(self, scope: DataScope, option_id: str) -> None:
        self.services.get_scoped(option_id, scope, "Service option not found.")
        self.services.delete(option_id)

    def _check_status(self, scope: DataScope, status: str) -> str:
        names = [o.name for o in self.status_options(scope)]
        if status not in names:
            raise FormValidationError(f"Unknown lead status '{status}'. Choose one of: {', '.join(names)}")
        return status

    def _default_status(self, scope: DataScope) -> str:
        options = self.status_options(scope)
        for option in options:
            if option.is_default:
                return option.name
        return options[0].name

    # ------------------------
    # Leads
    # ------------------------
    def list(self, scope: DataScope, status: Optional[str] = None, search: Optional[str] = None) -> List[Lead]:
        filters = [("leadStatus", "==", status)] if status else []
        leads = self.leads.list_scoped(scope, filters=filters, order_by=[("createdAt", "desc")])
        if search:
            term = search.strip().lower()
            leads = [
                lead for lead in leads
                if term in lead.lead_name.lower()
                or term in lead.mobile_number.lower()
                or term in lead.email_address.lower()
            ]
        return leads

    def get(self, scope: DataScope, lead_id: str) -> Lead:
        return self.leads.get_scoped(lead_id, scope, "Lead not found.")

    def create(self, scope: DataScope, data: LeadCreate) -> Lead:
        status = self._check_status(scope, data.lead_status) if data.lead_status else self._default_status(scope)
        lead = Lead(
            **data.model_dump(exclude={"lead_status", "lead_date"}),
            lead_date=data.lead_date or self.clock().date(),
            lead_status=status,
            tenant_id=scope.tenant_id,
            user_id=scope.user_id,
        )
        lead = self.leads.create(lead)
        logger.info("✅ Lead %s created", lead.id)
        return lead

    def update(self, scope: DataScope, lead_id: str, data: LeadUpdate) -> Lead:
        self.get(scope, lead_id)
        if data.lead_status is not None:
            self._check_status(scope, data.lead_status)
        partial = data.model_dump(mode="json", by_alias=True, exclude_unset=True)
        # Non-nullable fields cannot be cleared
        for key in ("leadName", "leadDate", "mobileNumber", "emailAddress", "serviceRequired", "leadStatus"):
            if key in partial and partial[key] is None:
                partial.pop(key)
        partial["updatedAt"] = now_json()
        return self.leads.update(lead_id, partial)

    def delete(self, scope: DataScope, lead_id: str) -> None:
        self.get(scope, lead_id)
        self.leads.delete(lead_id)
        logger.info("🗑️ Lead %s deleted", lead_id)
