"""Best-effort execution of side effects that must never fail a request.

Image cleanup and notification e-mails go through ``best_effort``: the
outcome comes back as a ``Result`` and any exception is logged, never raised.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Result(Generic[T]):
    """Outcome of a best-effort operation."""
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: T = None) -> "Result[T]":
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: str) -> "Result[T]":
        return cls(success=False, error=error)

    def __bool__(self) -> bool:
        return self.success


async def best_effort(operation: str, awaitable: Awaitable[T], **context: Any) -> Result[T]:
    """Await ``awaitable``; log and capture any failure.

    A coroutine returning ``False`` (the e-mail / blob services' "not sent"
    signal) counts as a failure too.
    """
    try:
        value = await awaitable
    except Exception as e:
        logger.warning("Best-effort %s failed (%s): %s", operation, context or "-", e)
        return Result.failure(str(e))

    if value is False:
        logger.info("Best-effort %s skipped (%s)", operation, context or "-")
        return Result.failure(f"{operation} returned False")
    return Result.ok(value)
