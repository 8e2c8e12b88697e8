from __future__ import annotations

from collections import deque
from collections.abc import Callable
from typing import Any

import pytest
from rethinkdb import r
from rethinkdb.ast import RqlQuery
from rethinkdb.net import Cursor

from tablegate.db.results import CursorResult, DriverResult, SingleResult
from tablegate.db.table import Table


class FakeCursor(Cursor):
    """
    In-memory stand-in for an asyncio driver cursor.

    Yields items in order, optionally raising after fail_after items, and
    records whether close() was awaited.
    """

    def __init__(
        self,
        items: list[Any],
        fail_after: int | None = None,
        close_error: BaseException | None = None,
    ) -> None:
        # the driver's Cursor constructor needs a live connection; skip it
        self._items = list(items)
        self._fail_after = fail_after
        self._close_error = close_error
        self.yielded = 0
        self.closed = False

    def __aiter__(self):
        return self._stream()

    async def _stream(self):
        for item in self._items:
            if self._fail_after is not None and self.yielded >= self._fail_after:
                raise RuntimeError("cursor stream interrupted")
            self.yielded += 1
            yield item

    async def close(self) -> None:
        if self._close_error is not None:
            raise self._close_error
        self.closed = True


class FakeDatabase:
    """
    Scripted Database: each run() pops the next queued response.

    A queued exception is raised instead of returned, like a failed request.
    """

    def __init__(self, name: str = "test_db") -> None:
        self.name = name
        self.requests: list[RqlQuery] = []
        self._responses: deque[DriverResult | BaseException] = deque()

    def table(self, name: str) -> RqlQuery:
        return r.db(self.name).table(name)

    def respond(self, *responses: DriverResult | BaseException) -> None:
        self._responses.extend(responses)

    def respond_value(self, value: Any) -> None:
        self.respond(SingleResult(value))

    def respond_rows(self, rows: list[Any], **cursor_kwargs: Any) -> FakeCursor:
        cursor = FakeCursor(rows, **cursor_kwargs)
        self.respond(CursorResult(cursor))
        return cursor

    async def run(self, request: RqlQuery) -> DriverResult:
        self.requests.append(request)
        if not self._responses:
            raise AssertionError(f"unexpected request: {request}")
        response = self._responses.popleft()
        if isinstance(response, BaseException):
            raise response
        return response

    @property
    def last_request(self) -> RqlQuery:
        return self.requests[-1]


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def table_factory(fake_db: FakeDatabase) -> Callable[[str], Table]:
    """
    Factory fixture creating Table accessors bound to the scripted database.

    Usage:
        items = table_factory("items")
    """
    def _create(name: str) -> Table:
        return Table(name, fake_db)

    return _create


@pytest.fixture
def items(table_factory: Callable[[str], Table]) -> Table:
    return table_factory("items")


@pytest.fixture
def cursor_factory() -> type[FakeCursor]:
    return FakeCursor
