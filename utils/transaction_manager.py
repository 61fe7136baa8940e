import logging
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
from functools import wraps
from datetime import datetime

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

import config
from db import Database
from exceptions.payment import GatewayUnavailableException
from exceptions.store import StoreUnavailableException

logger = logging.getLogger(__name__)


class TransactionManager:
    """
    Utility class for managing order store transactions with timeout protection,
    rollback on failure and retry logic for transient errors.
    """

    # Errors worth another attempt: the request itself was fine
    RETRYABLE_EXCEPTIONS = (StoreUnavailableException, GatewayUnavailableException)

    @staticmethod
    @asynccontextmanager
    async def atomic_transaction(database: Database,
                                 timeout: Optional[float] = None) -> AsyncGenerator[AsyncSession, None]:
        """
        Context manager for atomic database transactions with timeout protection.

        Commits when the block completes, rolls back when it raises. Connection
        failures and units of work running past the timeout surface as
        StoreUnavailableException.

        Usage:
            async with TransactionManager.atomic_transaction(database) as session:
                # Database operations here
                await session.execute(...)
        """
        timeout = timeout if timeout is not None else config.STORE_TIMEOUT_SECONDS

        try:
            async with asyncio.timeout(timeout):
                async with database.session() as session:
                    transaction_start = datetime.now()
                    logger.debug(f"Transaction started at {transaction_start}")
                    try:
                        yield session
                        await session.commit()
                    except BaseException as e:
                        try:
                            await session.rollback()
                            logger.info(f"Transaction rolled back due to error: {type(e).__name__}: {e}")
                        except Exception as rollback_error:
                            logger.critical(f"Failed to rollback transaction: {str(rollback_error)}")
                        raise
                    duration = (datetime.now() - transaction_start).total_seconds()
                    logger.debug(f"Transaction committed successfully in {duration:.2f}s")
        except TimeoutError as e:
            logger.error(f"Transaction exceeded timeout of {timeout}s")
            raise StoreUnavailableException(f"unit of work exceeded {timeout}s") from e
        # Only connection-level failures are transient; DataError, ProgrammingError
        # and IntegrityError propagate as they are and are never retried
        except (OperationalError, InterfaceError) as e:
            logger.error(f"Order store error: {str(e)}")
            raise StoreUnavailableException(str(e.orig) if e.orig is not None else str(e)) from e

    @staticmethod
    def with_retry(max_retries: Optional[int] = None, delay_base: Optional[float] = None):
        """
        Decorator for automatic retry of store and gateway calls with exponential backoff.

        Only StoreUnavailableException and GatewayUnavailableException are retried,
        everything else propagates on the first failure. Defaults are read from
        config.MAX_RETRIES / config.RETRY_DELAY_BASE on every call.

        Args:
            max_retries: Maximum number of retry attempts
            delay_base: Base delay for exponential backoff
        """

        def decorator(func):
            @wraps(func)
            async def wrapper(*args, **kwargs):
                retries = max_retries if max_retries is not None else config.MAX_RETRIES
                base = delay_base if delay_base is not None else config.RETRY_DELAY_BASE
                last_exception = None

                for attempt in range(retries + 1):
                    try:
                        return await func(*args, **kwargs)
                    except TransactionManager.RETRYABLE_EXCEPTIONS as e:
                        last_exception = e

                        if attempt == retries:
                            logger.error(f"Function {func.__name__} failed after {retries} retries: {str(e)}")
                            break

                        # Exponential backoff with jitter
                        delay = base * (2 ** attempt) + (base * 0.1 * attempt)
                        logger.warning(f"Attempt {attempt + 1} failed for {func.__name__}, retrying in {delay:.2f}s: {str(e)}")
                        await asyncio.sleep(delay)

                raise last_exception

            return wrapper
        return decorator
