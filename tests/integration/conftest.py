from __future__ import annotations

import os
import re
import uuid
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from rethinkdb import r

from tablegate.config import DbConfig
from tablegate.db.database import Database


DEFAULT_TEST_DB_HOST = "127.0.0.1"
DEFAULT_TEST_DB_PORT = 28015
TEST_DB_NAME = "tablegate_test"


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """
    Skip integration tests unless explicitly selected with `-m integration`.
    """
    if "integration" in (config.option.markexpr or ""):
        return

    skip_integration = pytest.mark.skip(
        reason="Skipped: run with `pytest -m integration` against a running RethinkDB."
    )
    for item in items:
        if item.get_closest_marker("integration") is not None:
            item.add_marker(skip_integration)


@pytest.fixture(scope="session")
def db_config() -> DbConfig:
    """
    RethinkDB connection settings for integration tests.

    Set TABLEGATE_TEST_DB_HOST / TABLEGATE_TEST_DB_PORT to point elsewhere.
    """
    return DbConfig(
        db=TEST_DB_NAME,
        host=os.environ.get("TABLEGATE_TEST_DB_HOST", DEFAULT_TEST_DB_HOST),
        port=int(os.environ.get("TABLEGATE_TEST_DB_PORT", DEFAULT_TEST_DB_PORT)),
    )


@pytest_asyncio.fixture
async def database(db_config: DbConfig) -> AsyncIterator[Database]:
    """
    Connected Database with the test database created.

    We fail fast if RethinkDB is unreachable, so failures are actionable.
    """
    try:
        db = await Database.connect(db_config)
    except Exception as exc:  # pragma: no cover
        pytest.fail(
            "RethinkDB test server is not reachable.\n"
            f"- host={db_config.host!r} port={db_config.port!r}\n"
            "- Start one with `docker run -d -p 28015:28015 rethinkdb`.\n"
            f"- Underlying error: {exc}",
            pytrace=False,
        )

    existing = await r.db_list().run(db.connection)
    if TEST_DB_NAME not in existing:
        await r.db_create(TEST_DB_NAME).run(db.connection)

    yield db
    await db.close()


def _sanitize_table_name(name: str) -> str:
    name = re.sub(r"[^a-zA-Z0-9_]+", "_", name).strip("_").lower()
    return name[:40] or "t"


@pytest_asyncio.fixture
async def fresh_table(database: Database, request: pytest.FixtureRequest) -> AsyncIterator[str]:
    """
    A per-test table, dropped after the test.
    """
    table = f"{_sanitize_table_name(request.node.name)}_{uuid.uuid4().hex[:10]}"
    await r.db(TEST_DB_NAME).table_create(table).run(database.connection)

    yield table

    await r.db(TEST_DB_NAME).table_drop(table).run(database.connection)
