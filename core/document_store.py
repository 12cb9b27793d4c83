# core/document_store.py
"""
Document store adapter over the SQLModel ``document`` table.

Documents live at slash-separated paths (``collection/id[/subcollection/id...]``)
and hold a JSON object. Each row carries a ``version`` that is bumped on every
committed write.

Transactions follow the optimistic read-modify-write model:
  1. ``fn(txn)`` runs; ``txn.get`` records the version of every document it reads,
     ``txn.set/update/delete`` are buffered.
  2. On commit, every read version is re-checked and every write is applied with a
     version-guarded statement inside one database transaction.
  3. Any mismatch rolls the whole commit back and ``fn`` is re-run, up to the
     attempts allowed by the ``RetryPolicy``.
"""
import copy
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, Tuple, TypeVar

from sqlalchemy import delete, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from core.exceptions import NotFoundError, StoreError, StoreUnavailableError, TransactionConflict
from models.models import Document, utc_now

logger = logging.getLogger(__name__)

T = TypeVar("T")

Filter = Tuple[str, str, Any]
Ordering = Tuple[str, str]

_MISSING = object()


# ============================================================
# Paths
# ============================================================
def split_path(path: str) -> Tuple[str, str]:
    """Return ``(collection_path, document_id)`` for a document path."""
    segments = [s for s in path.strip("/").split("/") if s]
    if not segments or len(segments) % 2 != 0:
        raise StoreError(f"'{path}' is not a document path")
    return "/".join(segments[:-1]), segments[-1]


def join_path(*segments: Any) -> str:
    return "/".join(str(s).strip("/") for s in segments)


def new_document_id() -> str:
    return uuid.uuid4().hex[:20]


# ============================================================
# Snapshots, retry policy and transaction result
# ============================================================
@dataclass
class DocumentSnapshot:
    path: str
    data: Optional[Dict[str, Any]]
    version: int = 0

    @property
    def id(self) -> str:
        return split_path(self.path)[1]

    @property
    def exists(self) -> bool:
        return self.data is not None

    def get(self, key: str, default: Any = None) -> Any:
        if self.data is None:
            return default
        return self.data.get(key, default)


@dataclass(frozen=True)
class RetryPolicy:
    """How often a conflicting transaction is re-run and how long to wait in between."""

    max_attempts: int = 5
    base_delay: float = 0.05
    max_delay: float = 1.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def delay_for(self, attempt: int) -> float:
        """Backoff before retry number ``attempt`` (1-based)."""
        if self.base_delay <= 0:
            return 0.0
        return min(self.max_delay, self.base_delay * (2 ** (attempt - 1)))


@dataclass
class TransactionResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[TransactionConflict] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value


# ============================================================
# Transaction handle
# ============================================================
@dataclass
class _Write:
    op: str  # "set" | "update" | "delete"
    data: Optional[Dict[str, Any]] = None


@dataclass
class Transaction:
    store: "DocumentStore"
    reads: Dict[str, int] = field(default_factory=dict)
    writes: Dict[str, _Write] = field(default_factory=dict)

    def get(self, path: str) -> DocumentSnapshot:
        if self.writes:
            raise StoreError("All transaction reads must happen before any write")
        split_path(path)
        snapshot = self.store._read(path)
        self.reads[path] = snapshot.version
        return snapshot

    def set(self, path: str, data: Dict[str, Any]) -> None:
        split_path(path)
        self.writes[path] = _Write("set", copy.deepcopy(data))

    def update(self, path: str, partial: Dict[str, Any]) -> None:
        split_path(path)
        pending = self.writes.get(path)
        if pending is not None and pending.op == "set":
            pending.data.update(copy.deepcopy(partial))
            return
        if pending is not None and pending.op == "update":
            pending.data.update(copy.deepcopy(partial))
            return
        self.writes[path] = _Write("update", copy.deepcopy(partial))

    def delete(self, path: str) -> None:
        split_path(path)
        self.writes[path] = _Write("delete")


# ============================================================
# Store
# ============================================================
class DocumentStore:
    def __init__(self, engine: Engine, retry_policy: Optional[RetryPolicy] = None):
        self.engine = engine
        self.retry_policy = retry_policy or RetryPolicy()

    # ------------------------
    # Reads
    # ------------------------
    def _read(self, path: str) -> DocumentSnapshot:
        try:
            with Session(self.engine) as session:
                row = session.get(Document, path)
                if row is None:
                    return DocumentSnapshot(path=path, data=None, version=0)
                return DocumentSnapshot(path=path, data=copy.deepcopy(row.data), version=row.version)
        except SQLAlchemyError as e:
            logger.error("❌ Store read failed for %s: %s", path, e)
            raise StoreUnavailableError() from e

    def get(self, path: str) -> DocumentSnapshot:
        split_path(path)
        return self._read(path)

    def query(
        self,
        collection_path: str,
        filters: Optional[Sequence[Filter]] = None,
        order_by: Optional[Sequence[Ordering]] = None,
        limit: Optional[int] = None,
    ) -> List[DocumentSnapshot]:
        """
        Return the documents of one collection matching every filter.

        Filters are ``(field, op, value)`` with op in ``==, !=, <, <=, >, >=, in,
        array_contains``; ordering is ``(field, "asc" | "desc")``.
        """
        collection_path = collection_path.strip("/")
        try:
            with Session(self.engine) as session:
                rows = session.exec(select(Document).where(Document.collection == collection_path)).all()
                snapshots = [
                    DocumentSnapshot(path=row.path, data=copy.deepcopy(row.data), version=row.version)
                    for row in rows
                ]
        except SQLAlchemyError as e:
            logger.error("❌ Store query failed for %s: %s", collection_path, e)
            raise StoreUnavailableError() from e

        for field_name, op, value in filters or []:
            snapshots = [s for s in snapshots if _matches(s.data.get(field_name, _MISSING), op, value)]

        # Stable sorts applied from the least significant key
        for field_name, direction in reversed(list(order_by or [])):
            snapshots.sort(
                key=lambda s: _sort_key(s.data.get(field_name)),
                reverse=direction.lower() == "desc",
            )

        if limit is not None:
            snapshots = snapshots[:limit]
        return snapshots

    # ------------------------
    # Single writes
    # ------------------------
    def set(self, path: str, data: Dict[str, Any]) -> None:
        self.run_transaction(lambda txn: txn.set(path, data)).unwrap()

    def add(self, collection_path: str, data: Dict[str, Any]) -> str:
        doc_id = new_document_id()
        self.set(join_path(collection_path, doc_id), data)
        return doc_id

    def update(self, path: str, partial: Dict[str, Any]) -> None:
        self.run_transaction(lambda txn: txn.update(path, partial)).unwrap()

    def delete(self, path: str) -> None:
        self.run_transaction(lambda txn: txn.delete(path)).unwrap()

    # ------------------------
    # Transactions
    # ------------------------
    def run_transaction(
        self,
        fn: Callable[[Transaction], T],
        retry_policy: Optional[RetryPolicy] = None,
    ) -> TransactionResult[T]:
        """
        Run ``fn`` against a fresh transaction handle and commit its writes atomically.

        Conflicts are retried per the policy and reported through the result, never
        raised. Any other exception from ``fn`` or the commit propagates and leaves
        the store untouched.
        """
        policy = retry_policy or self.retry_policy
        last_conflict: Optional[TransactionConflict] = None

        for attempt in range(1, policy.max_attempts + 1):
            txn = Transaction(store=self)
            value = fn(txn)
            try:
                self._commit(txn)
            except TransactionConflict as conflict:
                last_conflict = conflict
                logger.info("Transaction conflict on %s (attempt %s/%s)", conflict.path, attempt, policy.max_attempts)
                if attempt < policy.max_attempts:
                    delay = policy.delay_for(attempt)
                    if delay:
                        time.sleep(delay)
                continue
            return TransactionResult(value=value, attempts=attempt)

        logger.warning("⚠️ Transaction gave up after %s attempts (last conflict on %s)",
                       policy.max_attempts, last_conflict.path if last_conflict else None)
        return TransactionResult(
            error=TransactionConflict(
                path=last_conflict.path if last_conflict else None,
                attempts=policy.max_attempts,
            ),
            attempts=policy.max_attempts,
        )

    def _commit(self, txn: Transaction) -> None:
        if not txn.writes:
            return

        now = utc_now()
        with Session(self.engine) as session:
            try:
                for path, expected in txn.reads.items():
                    if path in txn.writes:
                        continue
                    row = session.get(Document, path)
                    if (row.version if row else 0) != expected:
                        raise TransactionConflict(path=path)

                for path, write in txn.writes.items():
                    self._apply(session, txn, path, write, now)

                session.commit()
            except TransactionConflict:
                session.rollback()
                raise
            except NotFoundError:
                session.rollback()
                raise
            except IntegrityError as e:
                # Another writer created the same document first
                session.rollback()
                raise TransactionConflict(path=_integrity_path(txn)) from e
            except SQLAlchemyError as e:
                session.rollback()
                logger.error("❌ Store commit failed: %s", e)
                raise StoreUnavailableError() from e

    def _apply(self, session: Session, txn: Transaction, path: str, write: _Write, now) -> None:
        row = session.get(Document, path)
        current_version = row.version if row else 0

        if path in txn.reads and txn.reads[path] != current_version:
            raise TransactionConflict(path=path)

        if write.op == "delete":
            if row is None:
                return
            result = session.exec(
                delete(Document)
                .where(Document.path == path, Document.version == current_version)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise TransactionConflict(path=path)
            return

        if write.op == "update":
            if row is None:
                raise NotFoundError(f"No document to update at {path}", path=path)
            new_data = {**copy.deepcopy(row.data), **write.data}
        else:
            new_data = write.data

        if row is None:
            collection, _ = split_path(path)
            session.add(Document(path=path, collection=collection, data=new_data, version=1,
                                 created_at=now, updated_at=now))
            session.flush()
            return

        result = session.exec(
            update(Document)
            .where(Document.path == path, Document.version == current_version)
            .values(data=new_data, version=current_version + 1, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise TransactionConflict(path=path)


# ============================================================
# Helpers
# ============================================================
_OPERATORS = {"==", "!=", "<", "<=", ">", ">=", "in", "array_contains"}


def _matches(actual: Any, op: str, expected: Any) -> bool:
    if op not in _OPERATORS:
        raise StoreError(f"Unsupported filter operator '{op}'")
    if actual is _MISSING:
        return op == "!=" and expected is not None
    if op == "==":
        return actual == expected
    if op == "!=":
        return actual != expected
    if op == "in":
        return actual in expected
    if op == "array_contains":
        return isinstance(actual, list) and expected in actual
    if actual is None or expected is None:
        return False
    try:
        if op == "<":
            return actual < expected
        if op == "<=":
            return actual <= expected
        if op == ">":
            return actual > expected
        return actual >= expected
    except TypeError:
        return False


def _sort_key(value: Any):
    # None sorts first; mixed types fall back to their string form
    if value is None:
        return (0, "")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (1, value)
    return (2, str(value))


def _integrity_path(txn: Transaction) -> Optional[str]:
    for path, write in txn.writes.items():
        if write.op == "set":
            return path
    return None
