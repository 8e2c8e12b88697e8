from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from rethinkdb.ast import RqlQuery


class OperationType(str, Enum):
    GET = "get"
    QUERY = "query"
    SINGLE = "single"
    COUNT = "count"
    INSERT = "insert"
    UPDATE = "update"
    INCREMENT = "increment"
    APPEND = "append"
    UNSET = "unset"
    REMOVE = "remove"


class CriteriaKind(str, Enum):
    SCALAR_KEY = "scalar_key"
    KEY_SET = "key_set"
    PREDICATE = "predicate"


def classify_criteria(criteria: Any) -> CriteriaKind:
    """
    Decide which selection primitive a criteria value maps to.

    Mappings, callables and driver expressions are filter predicates; lists
    and tuples are primary key sets; anything else is a single primary key.
    The value itself is never inspected further.
    """
    if isinstance(criteria, (Mapping, RqlQuery)) or callable(criteria):
        return CriteriaKind.PREDICATE
    if isinstance(criteria, (list, tuple)):
        return CriteriaKind.KEY_SET
    return CriteriaKind.SCALAR_KEY


@dataclass(frozen=True)
class WriteOutcome:
    """
    Normalized write result of a mutating request.
    """
    replaced: int = 0
    unchanged: int = 0
    deleted: int = 0
    generated_keys: Optional[list[Any]] = None
    changes: Optional[list[Mapping[str, Any]]] = None

    @classmethod
    def from_result(cls, result: Mapping[str, Any] | None) -> "WriteOutcome":
        result = result or {}
        return cls(
            replaced=int(result.get("replaced", 0)),
            unchanged=int(result.get("unchanged", 0)),
            deleted=int(result.get("deleted", 0)),
            generated_keys=result.get("generated_keys"),
            changes=result.get("changes"),
        )

    @property
    def found(self) -> bool:
        """True when the target matched, whether or not its value changed."""
        return bool(self.replaced or self.unchanged)
