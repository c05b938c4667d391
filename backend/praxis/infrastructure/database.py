"""Database Session Manager: async engine, request-scoped sessions and readiness checks.

Invariants:
    - Every session rolls back on exception (no partial order, stock or ticket write leaks)
    - Business errors (PraxisError) roll back and propagate unchanged
    - Every SQLAlchemy exception leaves as DatabaseError; named constraints of
      the order/stock schema get a message that says which rule was broken
    - Connection pool uses pool_pre_ping for stale connection detection

Design Decisions:
    - Singleton db_manager initialized on startup: FastAPI lifespan manages lifecycle
    - expire_on_commit=False: prevents lazy-load issues in async context
    - SQLite URLs (tests, local runs) skip the pool sizing arguments their
      pool class does not accept
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
)
from sqlalchemy import func, select, text

from praxis.core.domain_types import ProductStatus
from praxis.core.errors import DatabaseError, PraxisError
from praxis.models.component import ComponentType
from praxis.models.product import Product

logger = logging.getLogger(__name__)

# constraint name fragment -> what the write tried to do
CONSTRAINT_MESSAGES = (
    ("stock_non_negative", "Stock would drop below zero"),
    ("price_non_negative", "Price must not be negative"),
    ("ck_order_item_one_target", "Order item must reference one component or one product"),
    ("protocol", "Protocol already issued"),
)


def describe_failure(exc: SQLAlchemyError) -> tuple[str, str]:
    """(message, operation) for a DatabaseError raised from exc."""
    if isinstance(exc, IntegrityError):
        detail = str(exc.orig).lower()
        for fragment, message in CONSTRAINT_MESSAGES:
            if fragment in detail:
                return message, "commit"
        return "Integrity constraint violated", "commit"
    if isinstance(exc, OperationalError):
        return "Connection or operational error", "execute"
    if isinstance(exc, DBAPIError):
        return "Database driver error", "query"
    return "Database operation failed", "unknown"


class DatabaseSessionManager:
    """Owns the engine and hands out sessions that roll back on failure."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        pool_args = {} if database_url.startswith("sqlite") else {
            "pool_size": pool_size,
            "max_overflow": max_overflow,
            "pool_recycle": 3600,
        }
        self.engine = create_async_engine(database_url, pool_pre_ping=True, **pool_args)
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback on exception."""
        session = self._session_factory()
        try:
            yield session
        except PraxisError:
            await session.rollback()
            raise
        except SQLAlchemyError as e:
            await session.rollback()
            message, operation = describe_failure(e)
            logger.error(
                f"DB {operation} failed: {e}",
                extra={"error_code": "DATABASE_ERROR"},
            )
            raise DatabaseError(message, operation) from e
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def catalog_counts(self) -> dict[str, int]:
        """Component types and products on sale; zero means nothing can be ordered."""
        async with self.session() as db:
            types = await db.scalar(select(func.count()).select_from(ComponentType))
            products = await db.scalar(
                select(func.count()).select_from(Product)
                .where(Product.status == ProductStatus.ACTIVE.value),
            )
        return {"component_types": types or 0, "products_on_sale": products or 0}

    async def dispose(self) -> None:
        await self.engine.dispose()


# Singleton (initialized on startup)
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs):
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    if not db_manager:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session
