from __future__ import annotations

import asyncio
import inspect
import threading
from typing import Any, Coroutine, TypeVar

T = TypeVar("T")


async def maybe_await(x: Any) -> Any:
    """Await ``x`` if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(x):
        return await x
    return x


def run_sync(coro: Coroutine[Any, Any, T]) -> T:
    """Run ``coro`` to completion from sync code.

    Uses ``asyncio.run`` when no loop is running in this thread; otherwise runs it
    on a helper thread with its own loop so the caller's loop is not re-entered.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    box: dict[str, Any] = {}

    def _runner() -> None:
        try:
            box["value"] = asyncio.run(coro)
        except BaseException as e:  # re-raised in the calling thread
            box["error"] = e

    th = threading.Thread(target=_runner, name="clubauthz-sync", daemon=True)
    th.start()
    th.join()
    if "error" in box:
        raise box["error"]
    return box["value"]
