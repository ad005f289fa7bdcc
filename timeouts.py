"""
Bounded-time execution for blocking collaborator calls
"""

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Callable, Optional, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


def call_with_timeout(func: Callable[..., T], timeout: Optional[float], *args,
                      error_class: Type[Exception] = TimeoutError, **kwargs) -> T:
    """Run ``func`` in a worker thread and wait at most ``timeout`` seconds

    On expiry ``error_class`` is raised and the worker is abandoned; the call
    itself cannot be interrupted, only stopped from blocking the caller.
    A ``timeout`` of None or <= 0 calls ``func`` inline.
    """
    if not timeout or timeout <= 0:
        return func(*args, **kwargs)

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='bounded-call')
    future = executor.submit(func, *args, **kwargs)
    try:
        return future.result(timeout=timeout)
    except FutureTimeout:
        name = getattr(func, '__name__', repr(func))
        logger.warning(f"{name} did not finish within {timeout}s")
        raise error_class(f"{name} timed out after {timeout}s")
    finally:
        executor.shutdown(wait=False)
