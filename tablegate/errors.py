from __future__ import annotations

from enum import Enum
from typing import Any


class TablegateError(Exception):
    """Base exception for tablegate errors."""


class ErrorKind(str, Enum):
    DRIVER = "driver"
    CURSOR = "cursor"
    CARDINALITY = "cardinality"
    NOT_FOUND = "not_found"


class DatabaseError(TablegateError):
    """
    The only error shape surfaced by a Table.

    Carries the operation that failed, the table it ran against, the original
    driver exception (or a descriptive message for invariant violations) and
    the caller's inputs that triggered it.
    """

    status_code = 500

    def __init__(
        self,
        action: str,
        table: str,
        error: BaseException | str,
        inputs: Any = None,
        kind: ErrorKind = ErrorKind.DRIVER,
    ) -> None:
        super().__init__("Database error")
        self.action = action
        self.table = table
        self.error = error
        self.inputs = inputs
        self.kind = kind

    @property
    def message(self) -> str:
        return str(self.error)

    @property
    def data(self) -> dict[str, Any]:
        return {
            "error": self.error,
            "table": self.table,
            "action": self.action,
            "inputs": self.inputs,
        }

    def __str__(self) -> str:
        return (
            f"Database error: {self.message} "
            f"(table={self.table!r}, action={self.action!r}, kind={self.kind.value})"
        )

    def __repr__(self) -> str:
        return (
            f"DatabaseError(action={self.action!r}, table={self.table!r}, "
            f"error={self.error!r}, inputs={self.inputs!r}, kind={self.kind})"
        )
