import logging
from typing import Awaitable, Callable, TypeVar
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_random_exponential, \
    before_sleep_log
from ticket_engine.core import config
from ticket_engine.domain.exceptions import StorageFailure


logger = logging.getLogger("ticket_engine.storage")

T = TypeVar("T")


def is_transient_error(exc: BaseException) -> bool:
    """Storage faults worth another attempt: lost connections, lock timeouts, pool exhaustion."""
    if isinstance(exc, (OperationalError, InterfaceError, PoolTimeoutError)):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    return False


def storage_retrying() -> AsyncRetrying:
    return AsyncRetrying(
        retry=retry_if_exception(is_transient_error),
        stop=stop_after_attempt(config.STORAGE_RETRY_ATTEMPTS),
        wait=wait_random_exponential(multiplier=config.STORAGE_RETRY_WAIT_MULTIPLIER, max=config.STORAGE_RETRY_WAIT_MAX),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


async def _run_step(db: AsyncSession, step: Callable[[], Awaitable[T]], *, name: str, commit: bool) -> T:
    try:
        async for attempt in storage_retrying():
            with attempt:
                try:
                    result = await step()
                    if commit:
                        await db.commit()
                except BaseException:
                    await db.rollback()
                    raise
    except Exception as e:
        if is_transient_error(e):
            logger.error("Storage step %s failed after retries", name, exc_info=True)
            raise StorageFailure(ctx={"step": name}) from e
        raise
    return result


async def committed_step(db: AsyncSession, step: Callable[[], Awaitable[T]], *, name: str) -> T:
    """
    Runs one workflow step in its own transaction and commits it.
    - Transient storage errors roll the step back and retry it with backoff
    - Domain errors (capacity, validation) propagate on the first attempt
    - Exhausted retries surface as StorageFailure
    """
    return await _run_step(db, step, name=name, commit=True)


async def read_step(db: AsyncSession, step: Callable[[], Awaitable[T]], *, name: str) -> T:
    """
    Same retry policy as committed_step for queries that write nothing.
    The rollback between attempts expires loaded rows, so the step should
    return plain values or DTOs rather than ORM instances.
    """
    return await _run_step(db, step, name=name, commit=False)
