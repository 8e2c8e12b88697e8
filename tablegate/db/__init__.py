from .database import Database
from .models import CriteriaKind, OperationType, WriteOutcome, classify_criteria
from .results import CursorResult, DriverResult, SingleResult
from .table import Table

__all__ = [
    "Database",
    "Table",
    "WriteOutcome",
    "OperationType",
    "CriteriaKind",
    "classify_criteria",
    "SingleResult",
    "CursorResult",
    "DriverResult",
]
