"""Shared failure code constants for per-domain error routing."""

FETCH_FAILED = "fetch_failed"
PARSE_FAILED = "parse_failed"
COMPLETION_FAILED = "completion_failed"
WORKER_CRASHED = "worker_crashed"

FAILURE_CODES = [
    FETCH_FAILED,
    PARSE_FAILED,
    COMPLETION_FAILED,
    WORKER_CRASHED,
]
