from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional, Sequence

from rethinkdb import r
from rethinkdb.ast import RqlQuery

from ..errors import DatabaseError, ErrorKind
from .metrics import observe_cursor_close_failure, observe_db_operation
from .models import CriteriaKind, OperationType, WriteOutcome, classify_criteria
from .results import CursorResult, close_cursor, drain_cursor

if TYPE_CHECKING:
    from .database import Database

logger = logging.getLogger(__name__)

# Maps a normalized result to the operation's final result. A finisher either
# returns or raises a DatabaseError obtained from Table._error.
Finisher = Callable[[Any], Any]

MULTIPLE_ITEMS = "Found multiple items"
NOT_FOUND_UPDATE = "No item found to update"
NOT_FOUND_REMOVE = "No item found to remove"


def _identity(result: Any) -> Any:
    return result


class Table:
    """
    Access wrapper for one table of a shared Database.

    Every operation is a coroutine that returns its result or raises
    DatabaseError; no other exception type leaves this class. Absence is an
    error only for operations that must modify an existing document (update,
    increment, append, unset and single-key remove).

    Usage:
        users = Table("users", db)
        key = await users.insert({"name": "ada"})
        await users.update(key, {"name": "ada lovelace"})
        user = await users.get(key)
    """

    def __init__(self, name: str, db: Database) -> None:
        self._name = name
        self._db = db
        self._table = db.table(name)

    @property
    def name(self) -> str:
        return self._name

    @property
    def db(self) -> Database:
        return self._db

    async def get(self, id_value: Any) -> Optional[dict[str, Any]]:
        """
        Fetch one document by primary key. Returns None if it does not exist.
        """
        return await self._execute(
            lambda: self._table.get(id_value), OperationType.GET, id_value
        )

    async def query(self, criteria: Any) -> list[dict[str, Any]]:
        """
        Fetch every document matching criteria, in database order.
        """
        return await self._execute(
            lambda: self._table.filter(criteria), OperationType.QUERY, criteria
        )

    async def single(self, criteria: Any) -> Optional[dict[str, Any]]:
        """
        Fetch the one document matching criteria.

        Returns None when nothing matches. More than one match is a data
        integrity problem and raises DatabaseError.
        """
        def finish(result: list[dict[str, Any]]) -> Optional[dict[str, Any]]:
            if len(result) == 0:
                return None

            if len(result) != 1:
                raise self._error(
                    OperationType.SINGLE, MULTIPLE_ITEMS, criteria, ErrorKind.CARDINALITY
                )

            return result[0]

        return await self._execute(
            lambda: self._table.filter(criteria), OperationType.SINGLE, criteria, finish
        )

    async def count(self, criteria: Any, mode: Optional[str] = None) -> int:
        """
        Count documents.

        With mode="fields", criteria is a field set and documents having all of
        those fields are counted. Otherwise criteria is a filter.
        """
        def build() -> RqlQuery:
            if mode == "fields":
                return self._table.has_fields(criteria).count()
            return self._table.filter(criteria).count()

        return await self._execute(
            build, OperationType.COUNT, {"criteria": criteria, "type": mode}
        )

    async def insert(self, items: Mapping[str, Any] | Sequence[Mapping[str, Any]]) -> Any:
        """
        Insert one document or a sequence of documents.

        Returns the generated key for a single document, the generated keys in
        input order for a sequence, or None if the database generated none.
        """
        is_batch = isinstance(items, (list, tuple))
        payload = list(items) if is_batch else items

        def finish(result: Mapping[str, Any]) -> Any:
            keys = WriteOutcome.from_result(result).generated_keys
            if not keys:
                return None
            return list(keys) if is_batch else keys[0]

        return await self._execute(
            lambda: self._table.insert(payload), OperationType.INSERT, items, finish
        )

    async def update(self, id_value: Any, changes: Any) -> None:
        """
        Merge changes into an existing document. A no-op update still succeeds.
        """
        inputs = {"id": id_value, "changes": changes}

        def finish(result: Mapping[str, Any]) -> None:
            if not WriteOutcome.from_result(result).found:
                raise self._error(
                    OperationType.UPDATE, NOT_FOUND_UPDATE, inputs, ErrorKind.NOT_FOUND
                )

        await self._execute(
            lambda: self._table.get(id_value).update(changes),
            OperationType.UPDATE,
            inputs,
            finish,
        )

    async def increment(self, id_value: Any, field: str, value: Any) -> Any:
        """
        Atomically add value to a numeric field and return the new field value.

        The addition is evaluated by the database inside the write.
        """
        inputs = {"id": id_value, "field": field, "value": value}

        def finish(result: Mapping[str, Any]) -> Any:
            outcome = WriteOutcome.from_result(result)
            if not outcome.replaced:
                raise self._error(
                    OperationType.INCREMENT, NOT_FOUND_UPDATE, inputs, ErrorKind.NOT_FOUND
                )

            return outcome.changes[0]["new_val"][field]

        def build() -> RqlQuery:
            return self._table.get(id_value).update(
                lambda item: {field: item[field].add(value)}, return_changes=True
            )

        return await self._execute(build, OperationType.INCREMENT, inputs, finish)

    async def append(self, id_value: Any, field: str, value: Any) -> None:
        """
        Atomically append value to an array field.
        """
        inputs = {"id": id_value, "field": field, "value": value}

        def finish(result: Mapping[str, Any]) -> None:
            # an append always changes the array, so unchanged means nothing was written
            if not WriteOutcome.from_result(result).replaced:
                raise self._error(
                    OperationType.APPEND, NOT_FOUND_UPDATE, inputs, ErrorKind.NOT_FOUND
                )

        def build() -> RqlQuery:
            return self._table.get(id_value).update(
                lambda item: {field: item[field].append(value)}
            )

        await self._execute(build, OperationType.APPEND, inputs, finish)

    async def unset(self, id_value: Any, fields: str | Sequence[str]) -> None:
        """
        Remove fields from a document.

        Partial updates cannot delete keys, so the document is replaced by
        itself without those fields. Unsetting absent fields succeeds.
        """
        inputs = {"id": id_value, "fields": fields}

        def finish(result: Mapping[str, Any]) -> None:
            if not WriteOutcome.from_result(result).found:
                raise self._error(
                    OperationType.UNSET, NOT_FOUND_UPDATE, inputs, ErrorKind.NOT_FOUND
                )

        def build() -> RqlQuery:
            names = [fields] if isinstance(fields, str) else list(fields)
            return self._table.get(id_value).replace(lambda item: item.without(*names))

        await self._execute(build, OperationType.UNSET, inputs, finish)

    async def remove(self, criteria: Any) -> None:
        """
        Delete by primary key, by a list of primary keys, or by filter.

        Only the single key form requires a document to be deleted; key list
        and filter deletes succeed even when nothing matched.
        """
        kind = classify_criteria(criteria)

        def build() -> RqlQuery:
            if kind is CriteriaKind.SCALAR_KEY:
                return self._table.get(criteria).delete()
            if kind is CriteriaKind.KEY_SET:
                return self._table.get_all(r.args(list(criteria))).delete()
            return self._table.filter(criteria).delete()

        def finish(result: Mapping[str, Any]) -> None:
            if kind is CriteriaKind.SCALAR_KEY and not WriteOutcome.from_result(result).deleted:
                raise self._error(
                    OperationType.REMOVE, NOT_FOUND_REMOVE, criteria, ErrorKind.NOT_FOUND
                )

        await self._execute(build, OperationType.REMOVE, criteria, finish)

    async def _execute(
        self,
        build: Callable[[], RqlQuery],
        action: OperationType,
        inputs: Any,
        finish: Optional[Finisher] = None,
    ) -> Any:
        """
        Build the request, run it, normalize its response and apply the finisher.

        Raises DatabaseError on failure, including a request the driver refuses
        to compile. The finisher is only called with a fully normalized result.
        """
        finish = finish or _identity
        start_time = time.monotonic()
        status = "success"

        try:
            try:
                request = build()
            except Exception as exc:
                raise self._error(action, exc, inputs) from exc

            normalized = await self._normalize(request, action, inputs)
            try:
                return finish(normalized)
            except DatabaseError:
                raise
            except Exception as exc:
                raise self._error(action, exc, inputs) from exc
        except DatabaseError:
            status = "error"
            raise
        finally:
            observe_db_operation(
                self._name, action.value, status, time.monotonic() - start_time
            )

    async def _normalize(self, request: RqlQuery, action: OperationType, inputs: Any) -> Any:
        try:
            outcome = await self._db.run(request)
        except Exception as exc:
            raise self._error(action, exc, inputs) from exc

        if not isinstance(outcome, CursorResult):
            return outcome.value

        try:
            items = await drain_cursor(outcome.cursor)
        except Exception as exc:
            raise self._error(action, exc, inputs, ErrorKind.CURSOR) from exc

        await self._close_quietly(outcome.cursor)
        return items

    async def _close_quietly(self, cursor: Any) -> None:
        try:
            await close_cursor(cursor)
        except Exception:
            # the drained items are already the result; a close failure must not replace them
            logger.warning("Failed to close cursor for table %s", self._name, exc_info=True)
            observe_cursor_close_failure(self._name)

    def _error(
        self,
        action: OperationType,
        error: BaseException | str,
        inputs: Any,
        kind: ErrorKind = ErrorKind.DRIVER,
    ) -> DatabaseError:
        """
        Build the DatabaseError for a failed operation on this table.
        """
        logger.debug(
            "Database error on table %s during %s (%s): %s",
            self._name,
            action.value,
            kind.value,
            error,
        )
        return DatabaseError(action.value, self._name, error, inputs, kind)
