"""
Guard for awaiting external provider calls.

Providers are injected, so the engine cannot rely on them raising only the
documented domain failure. Whatever a provider raises, including a caller
timeout or a cancellation that was not aimed at the current task, is
reported as the given domain failure instead of escaping as a crash.
"""
import asyncio
import logging
from typing import Awaitable, TypeVar

from app.domain.exceptions import ZoneHealthError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _current_task_cancelling() -> bool:
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0


async def guard_provider_call(
    call: Awaitable[T],
    failure: type[ZoneHealthError],
    description: str,
) -> T:
    """
    Await a provider call, converting any provider error into ``failure``.

    Args:
        call: The provider coroutine
        failure: Domain exception raised in place of the provider's error
        description: Human readable name of the call, used in messages

    Returns:
        The provider's result

    Raises:
        failure: If the call failed, timed out or was cancelled by someone else
        asyncio.CancelledError: If the current task itself is being cancelled
    """
    try:
        return await call
    except failure:
        raise
    except asyncio.TimeoutError:
        logger.warning(f"{description} timed out")
        raise failure(f"{description} timed out")
    except asyncio.CancelledError:
        if _current_task_cancelling():
            raise
        logger.warning(f"{description} was cancelled")
        raise failure(f"{description} was cancelled")
    except Exception as e:
        logger.exception(f"{description} raised an unexpected error")
        raise failure(f"{description} failed: {e}") from e
