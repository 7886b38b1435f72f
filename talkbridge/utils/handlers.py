"""Utilities for running host callbacks."""

import functools
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


def guarded_handler(handler_name: str) -> Callable[[Callable[..., Any]], Callable[..., None]]:
    """
    Wrap a host callback with proper error handling.

    Exceptions in the callback are logged instead of propagating into the
    host's dispatch loop.
    """
    def decorator(func: Callable[..., Any]) -> Callable[..., None]:
        @functools.wraps(func)
        def _wrapped(*args: Any, **kwargs: Any) -> None:
            try:
                func(*args, **kwargs)
            except Exception as e:
                logger.exception(f"Error in handler '{handler_name}': {e}")

        return _wrapped

    return decorator
