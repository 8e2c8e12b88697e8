from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Union

from rethinkdb.net import Cursor


@dataclass(frozen=True)
class SingleResult:
    """A request answered with one value (document, write result, scalar or None)."""
    value: Any


@dataclass(frozen=True)
class CursorResult:
    """A request answered with a streaming cursor that must be drained and closed."""
    cursor: Cursor


DriverResult = Union[SingleResult, CursorResult]


def classify_result(result: Any) -> DriverResult:
    """
    Tag a raw driver response.

    This is the only place the shape of a driver response is examined;
    everything past the driver boundary matches on the tag.
    """
    if isinstance(result, Cursor):
        return CursorResult(result)
    return SingleResult(result)


async def drain_cursor(cursor: Cursor) -> list[Any]:
    """
    Read a cursor to completion, keeping the order the database returned.
    """
    items: list[Any] = []
    async for item in cursor:
        items.append(item)
    return items


async def close_cursor(cursor: Cursor) -> None:
    # asyncio cursors return an awaitable from close(); blocking ones return None
    pending = cursor.close()
    if inspect.isawaitable(pending):
        await pending
