"""
Shared plumbing for SQLAlchemy repositories.

Every store call runs under a deadline so a slow database cannot pin the request
task. Driver failures that a repository did not translate into a domain error
surface as StoreError.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from convenly.core.exceptions import StoreError, StoreTimeoutError
from convenly.core.metrics import record_store_timeout

DEFAULT_OPERATION_TIMEOUT = 2.0


class Repository:
    def __init__(
        self,
        db: AsyncSession,
        logger: structlog.stdlib.BoundLogger,
        timeout: float = DEFAULT_OPERATION_TIMEOUT,
    ):
        self.db = db
        self.logger = logger
        self.timeout = timeout

    @asynccontextmanager
    async def _deadline(self, operation: str) -> AsyncIterator[None]:
        try:
            async with asyncio.timeout(self.timeout):
                yield
        except TimeoutError as e:
            record_store_timeout(operation)
            self.logger.error("store_timeout", operation=operation, timeout=self.timeout)
            raise StoreTimeoutError(f"{operation} exceeded {self.timeout}s") from e
        except SQLAlchemyError as e:
            self.logger.error("store_error", operation=operation, error=str(e))
            raise StoreError(f"{operation} failed") from e
