"""Awaitable and error-first callback forms of the blocking pipeline calls."""

import asyncio
from typing import Any, Callable, Optional, TypeVar

T = TypeVar('T')

Callback = Callable[[Optional[Exception], Optional[Any]], Any]

async def run_async(func: Callable[..., T], *args: Any) -> T:
    """Run a blocking call in a worker thread and await its result."""
    return await asyncio.to_thread(func, *args)

def run_with_callback(func: Callable[..., T], *args: Any, callback: Callback) -> None:
    """Call ``func`` and report the outcome as ``callback(error, result)``.

    Exactly one of ``error`` and ``result`` is set. Errors raised by the
    callback itself are not caught.
    """
    try:
        result = func(*args)
    except Exception as e:
        callback(e, None)
        return
    callback(None, result)
