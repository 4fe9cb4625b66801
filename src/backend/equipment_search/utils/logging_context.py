"""
Logging Context Management Utilities

Helpers for adding request-scoped context (search id, strategy, stage) to
structured logs. Bound context appears in every log line emitted within the
scope, including stdlib loggers routed through structlog.
"""

import time
from contextlib import contextmanager
from typing import Optional

import structlog
from structlog.contextvars import bind_contextvars, unbind_contextvars


@contextmanager
def log_context(**context_vars):
    """
    Context manager for temporary logging context.

    Context is added on enter and removed on exit.

    Example:
        ```python
        with log_context(search_id=search_id, stage="relaxed"):
            logger.info("running relaxed vector search")
        ```
    """
    bind_contextvars(**context_vars)

    try:
        yield
    finally:
        unbind_contextvars(*context_vars.keys())


@contextmanager
def log_performance(operation_name: str, logger=None, threshold_ms: Optional[int] = None):
    """
    Context manager for logging operation duration.

    Args:
        operation_name: Name of the operation being timed
        logger: structlog logger (defaults to structlog.get_logger())
        threshold_ms: When set, only operations slower than this are logged

    Example:
        ```python
        with log_performance("fts_search"):
            items = await repository.full_text_search(query, limit)
        ```
    """
    if logger is None:
        logger = structlog.get_logger()

    start_time = time.time()

    try:
        yield
    finally:
        duration_ms = int((time.time() - start_time) * 1000)
        if threshold_ms is None or duration_ms >= threshold_ms:
            logger.info(
                f"{operation_name}_completed",
                operation=operation_name,
                duration_ms=duration_ms
            )
