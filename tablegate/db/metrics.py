from __future__ import annotations

import logging

from ..metrics.registry import (
    DB_CURSOR_CLOSE_FAILURES_TOTAL,
    DB_OPERATION_LATENCY_SECONDS,
    DB_OPERATION_TOTAL,
)

logger = logging.getLogger(__name__)


def observe_db_operation(table: str, op_type: str, status: str, latency_s: float) -> None:
    """
    Record one finished table operation.

    status is "success" or "error". Metric failures are logged and dropped so
    they never replace the operation's own result or error.
    """
    try:
        DB_OPERATION_TOTAL.labels(table=table, op_type=op_type, status=status).inc()
        DB_OPERATION_LATENCY_SECONDS.labels(table=table, op_type=op_type).observe(latency_s)
    except Exception:
        logger.exception("Failed to record metrics for %s on table %s", op_type, table)


def observe_cursor_close_failure(table: str) -> None:
    try:
        DB_CURSOR_CLOSE_FAILURES_TOTAL.labels(table=table).inc()
    except Exception:
        logger.exception("Failed to record cursor close failure for table %s", table)
