"""
Small utilities shared by the queue runtime.
"""

from __future__ import annotations

import inspect
from typing import Any


async def maybe_await(value: Any) -> Any:
    """
    Resolve ``value`` when it is awaitable, otherwise return it unchanged.

    Store and watcher implementations may expose either plain methods or
    coroutine functions; callers route every result through this helper.
    """
    if inspect.isawaitable(value):
        return await value
    return value
