# services/repository.py
"""
Typed access to one collection of the document store.

Every document read goes through ``parse`` so that a record with missing or
mistyped fields is reported as ``MalformedDocumentError`` instead of leaking
half-valid dicts into the services.
"""
from dataclasses import dataclass
from typing import Generic, List, Optional, Sequence, Type, TypeVar
import logging

from pydantic import ValidationError

from core.document_store import DocumentSnapshot, DocumentStore, Filter, Ordering, join_path, new_document_id
from core.exceptions import MalformedDocumentError, NotFoundError
from schemas.common import DocumentModel

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=DocumentModel)


# ============================================================
# ✅ Data scope
# ============================================================
@dataclass(frozen=True)
class DataScope:
    """
    Which records a session reads and writes.
    Sessions with a tenant see the tenant's records; a session without one
    (a platform super admin) sees the records it owns.
    """
    user_id: str
    tenant_id: Optional[str] = None

    def filters(self) -> List[Filter]:
        if self.tenant_id:
            return [("tenantId", "==", self.tenant_id)]
        return [("userId", "==", self.user_id), ("tenantId", "==", None)]

    def owns(self, data: dict) -> bool:
        if self.tenant_id:
            return data.get("tenantId") == self.tenant_id
        return data.get("userId") == self.user_id and data.get("tenantId") is None

    def stamp(self, data: dict) -> dict:
        data["tenantId"] = self.tenant_id
        data["userId"] = self.user_id
        return data


# ============================================================
# ✅ Repository
# ============================================================
class Repository(Generic[M]):
    def __init__(self, store: DocumentStore, collection: str, model: Type[M]):
        self.store = store
        self.collection = collection
        self.model = model

    def path(self, doc_id: str) -> str:
        return join_path(self.collection, doc_id)

    def parse(self, snapshot: DocumentSnapshot) -> M:
        try:
            return self.model.model_validate({**snapshot.data, "id": snapshot.id})
        except ValidationError as e:
            raise MalformedDocumentError(snapshot.path, str(e)) from e

    # ------------------------
    # Reads
    # ------------------------
    def get(self, doc_id: str) -> Optional[M]:
        snapshot = self.store.get(self.path(doc_id))
        if not snapshot.exists:
            return None
        return self.parse(snapshot)

    def require(self, doc_id: str, message: Optional[str] = None) -> M:
        record = self.get(doc_id)
        if record is None:
            raise NotFoundError(message or f"{self.model.__name__} not found.", path=self.path(doc_id))
        return record

    def get_scoped(self, doc_id: str, scope: DataScope, message: Optional[str] = None) -> M:
        """Like ``require`` but records outside the scope are reported as missing."""
        snapshot = self.store.get(self.path(doc_id))
        if not snapshot.exists or not scope.owns(snapshot.data):
            raise NotFoundError(message or f"{self.model.__name__} not found.", path=self.path(doc_id))
        return self.parse(snapshot)

    def list(
        self,
        filters: Optional[Sequence[Filter]] = None,
        order_by: Optional[Sequence[Ordering]] = None,
        limit: Optional[int] = None,
    ) -> List[M]:
        records = []
        for snapshot in self.store.query(self.collection, filters=filters, order_by=order_by, limit=limit):
            try:
                records.append(self.parse(snapshot))
            except MalformedDocumentError as e:
                logger.warning("⚠️ Skipping malformed document %s: %s", e.path, e.detail)
        return records

    def list_scoped(self, scope: DataScope, filters: Optional[Sequence[Filter]] = None,
                    order_by: Optional[Sequence[Ordering]] = None, limit: Optional[int] = None) -> List[M]:
        return self.list(filters=[*scope.filters(), *(filters or [])], order_by=order_by, limit=limit)

    # ------------------------
    # Writes
    # ------------------------
    def create(self, record: M, doc_id: Optional[str] = None) -> M:
        doc_id = doc_id or new_document_id()
        self.store.set(self.path(doc_id), record.to_document())
        return record.model_copy(update={"id": doc_id})

    def update(self, doc_id: str, partial: dict) -> M:
        self.store.update(self.path(doc_id), partial)
        return self.require(doc_id)

    def delete(self, doc_id: str) -> None:
        self.store.delete(self.path(doc_id))
