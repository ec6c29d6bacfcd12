"""Async helper for offloading blocking callables from the UI loop."""

from __future__ import annotations

import asyncio
import atexit
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, Callable, TypeVar

T = TypeVar("T")

_IO_EXECUTOR = ThreadPoolExecutor(max_workers=2, thread_name_prefix="clipmap-io")


@atexit.register
def _shutdown_io_executor() -> None:
    _IO_EXECUTOR.shutdown(wait=False, cancel_futures=True)


async def run_blocking(func: Callable[..., T], /, *args: Any, **kwargs: Any) -> T:
    """Run blocking callable on dedicated IO executor and await its result."""
    if not callable(func):
        raise TypeError("func must be callable")
    loop = asyncio.get_running_loop()
    if kwargs:
        bound = partial(func, *args, **kwargs)
        future = loop.run_in_executor(_IO_EXECUTOR, bound)
    else:
        future = loop.run_in_executor(_IO_EXECUTOR, func, *args)
    # Some environments can miss thread->loop wakeups for executor completion.
    # Polling with a short timeout keeps completion deterministic.
    while True:
        try:
            return await asyncio.wait_for(asyncio.shield(future), timeout=0.1)
        except asyncio.TimeoutError:
            continue
