from .registry import (
    DB_CURSOR_CLOSE_FAILURES_TOTAL,
    DB_OPERATION_LATENCY_SECONDS,
    DB_OPERATION_TOTAL,
)

__all__ = [
    "DB_OPERATION_TOTAL",
    "DB_OPERATION_LATENCY_SECONDS",
    "DB_CURSOR_CLOSE_FAILURES_TOTAL",
]
