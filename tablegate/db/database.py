from __future__ import annotations

import inspect
from typing import Any

from rethinkdb import r
from rethinkdb.ast import RqlQuery

from ..config import DbConfig
from .results import DriverResult, classify_result
from .table import Table


class Database:
    """
    Shared database context for Table accessors.

    Holds the database name and one open asyncio driver connection. Tables
    borrow both; only the Database opens or closes the connection.

    Use as:
        db = await Database.connect(DbConfig(db="app"))
        users = db.accessor("users")
        user = await users.get("42")
        await db.close()
    """

    def __init__(self, name: str, connection: Any) -> None:
        self._name = name
        self._conn = connection
        self._tables: dict[str, Table] = {}

    @classmethod
    async def connect(cls, config: DbConfig) -> "Database":
        r.set_loop_type("asyncio")
        connection = await r.connect(
            host=config.host,
            port=config.port,
            db=config.db,
            user=config.user,
            password=config.password,
            timeout=config.timeout,
        )
        return cls(config.db, connection)

    @property
    def name(self) -> str:
        return self._name

    @property
    def connection(self) -> Any:
        if self._conn is None:
            raise RuntimeError("Database is not connected; use Database.connect()")
        return self._conn

    def table(self, name: str) -> RqlQuery:
        """
        Driver table term scoped to this database.
        """
        return r.db(self._name).table(name)

    def accessor(self, name: str) -> Table:
        """
        Return the Table accessor for name, creating it on first use.
        """
        table = self._tables.get(name)
        if table is None:
            table = Table(name, self)
            self._tables[name] = table
        return table

    async def run(self, request: RqlQuery) -> DriverResult:
        """
        Run a driver request on the shared connection and tag the response.
        """
        result = await request.run(self.connection)
        return classify_result(result)

    async def close(self) -> None:
        if self._conn is None:
            return
        try:
            pending = self._conn.close()
            if inspect.isawaitable(pending):
                await pending
        finally:
            self._conn = None
            self._tables.clear()
