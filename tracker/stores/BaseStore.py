"""Shared plumbing for the async stores: per-call timeouts and driver error translation."""

import asyncio
import logging
from typing import Any, Awaitable, Optional
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from tracker.core.config import settings
from tracker.core.exceptions import ConcurrencyError, StoreTimeoutError, StoreUnavailableError

logger = logging.getLogger(__name__)


def is_unique_violation(exc: IntegrityError) -> bool:
    """PostgreSQL and sqlite both mention 'unique' in unique-constraint failures."""
    return "unique" in str(exc.orig).lower()


class BaseStore:
    """Wraps an ``AsyncSession`` so every store call carries a timeout."""

    def __init__(self, db: AsyncSession, timeout: Optional[float] = None):
        self.db = db
        self.timeout = timeout if timeout is not None else settings.STORE_TIMEOUT_SECONDS

    async def _run(self, awaitable: Awaitable[Any]) -> Any:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"⏱️ Store call exceeded {self.timeout}s")
            raise StoreTimeoutError(f"Store call exceeded {self.timeout}s")
        except IntegrityError:
            raise
        except OperationalError as e:
            if _is_serialization_failure(e):
                raise ConcurrencyError("Concurrent modification detected, retry the request")
            logger.error(f"❌ Store unavailable: {str(e)}")
            raise StoreUnavailableError("Persistent store unavailable")
        except DBAPIError as e:
            if _is_serialization_failure(e):
                raise ConcurrencyError("Concurrent modification detected, retry the request")
            raise

    async def execute(self, statement):
        return await self._run(self.db.execute(statement))

    async def flush(self):
        return await self._run(self.db.flush())

    async def commit(self):
        return await self._run(self.db.commit())

    async def rollback(self):
        await self.db.rollback()


def _is_serialization_failure(exc: DBAPIError) -> bool:
    # SQLSTATE 40001 serialization_failure, 40P01 deadlock_detected
    code = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    return code in {"40001", "40P01"}
