"""Retry helpers for transient database connection failures."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError

from newsroom.config import settings

logger = logging.getLogger(__name__)

_ResultT = TypeVar("_ResultT")

_CONNECTION_ERROR_MARKERS = (
    "connection is closed",
    "underlying connection is closed",
    "server closed the connection unexpectedly",
    "connection was closed",
    "connection refused",
)


def is_transient_connection_error(exc: BaseException) -> bool:
    """Return True when an exception likely came from a dropped DB connection."""
    if isinstance(exc, (InterfaceError, OperationalError)):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True

    lowered = str(exc).lower()
    return any(marker in lowered for marker in _CONNECTION_ERROR_MARKERS)


async def run_with_transient_db_retry(
    operation: Callable[[], Awaitable[_ResultT]],
    *,
    operation_name: str,
    attempts: int | None = None,
    base_delay_seconds: float | None = None,
    log_context: Mapping[str, Any] | None = None,
) -> _ResultT:
    """Run an async DB operation, retrying only transient connection failures.

    Each attempt must open its own session; the operation is re-invoked from
    scratch so partially applied work is never reused.
    """
    max_attempts = attempts if attempts is not None else settings.db_retry_attempts
    delay = (
        base_delay_seconds
        if base_delay_seconds is not None
        else settings.db_retry_base_delay_seconds
    )
    if max_attempts < 1:
        raise ValueError("attempts must be >= 1")

    context = dict(log_context or {})
    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as exc:
            if not is_transient_connection_error(exc) or attempt >= max_attempts:
                raise
            logger.warning(
                "Transient database error; retrying",
                extra={
                    **context,
                    "operation": operation_name,
                    "attempt": attempt,
                    "max_attempts": max_attempts,
                },
            )
            await asyncio.sleep(delay * attempt)
            attempt += 1
