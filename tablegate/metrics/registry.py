from prometheus_client import Counter, Histogram

DB_OPERATION_TOTAL = Counter(
    "tablegate_db_operation_total",
    "Table operations by outcome",
    ["table", "op_type", "status"],
)

DB_OPERATION_LATENCY_SECONDS = Histogram(
    "tablegate_db_operation_latency_seconds",
    "Table operation latency, from request dispatch to final result",
    ["table", "op_type"],
)

DB_CURSOR_CLOSE_FAILURES_TOTAL = Counter(
    "tablegate_db_cursor_close_failures_total",
    "Cursor close failures swallowed after a successful drain",
    ["table"],
)
