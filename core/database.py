from sqlmodel import SQLModel, create_engine
from sqlalchemy.pool import StaticPool
import logging

from core.config import settings
from core.document_store import DocumentStore, RetryPolicy

logger = logging.getLogger(__name__)


# ============================================================
# ✅ Create SQLModel engine
# ============================================================
def build_engine(database_url: str):
    """
    Create the engine backing the document store.
    SQLite needs a shared connection when it lives in memory.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        logger.warning("⚠️ Using SQLite database: %s", database_url)
        return create_engine(database_url, echo=False, **kwargs)

    logger.info("✅ Using database from environment.")
    # For PostgreSQL, pool_pre_ping avoids stale connections
    return create_engine(database_url, echo=False, pool_pre_ping=True)


engine = build_engine(settings.DATABASE_URL)


# ============================================================
# ✅ Create tables (called at startup)
# ============================================================
def create_db_and_tables() -> None:
    """
    Create the document table.
    This runs automatically at app startup.
    """
    try:
        SQLModel.metadata.create_all(engine)
        logger.info("✅ All database tables created successfully.")
    except Exception as e:
        logger.error(f"❌ Failed to create tables: {e}")
        raise


# ============================================================
# ✅ Dependency: document store
# ============================================================
document_store = DocumentStore(
    engine,
    retry_policy=RetryPolicy(
        max_attempts=settings.TRANSACTION_MAX_ATTEMPTS,
        base_delay=settings.TRANSACTION_RETRY_DELAY,
    ),
)


def get_store() -> DocumentStore:
    """Provides the process-wide document store to FastAPI dependencies."""
    return document_store
