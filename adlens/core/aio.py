"""AdLens — Asyncio Helpers."""

import asyncio
from typing import Any, Awaitable, Callable, List, TypeVar

T = TypeVar("T")


async def gather_or_cancel(*aws: Awaitable[Any]) -> List[Any]:
    """Run awaitables concurrently; the first failure cancels the rest.

    Unlike a bare asyncio.gather, nothing is left running once this returns
    or raises: unfinished siblings are cancelled and awaited.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    finally:
        pending = [t for t in tasks if not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)


async def run_blocking(func: Callable[..., T], *args: Any) -> T:
    """asyncio.to_thread that lets an in-flight call finish if cancelled.

    Cancelling a to_thread await does not stop the worker thread, so the
    call is waited out before the cancellation propagates.
    """
    call = asyncio.ensure_future(asyncio.to_thread(func, *args))
    try:
        return await asyncio.shield(call)
    except asyncio.CancelledError:
        await asyncio.gather(call, return_exceptions=True)
        raise
