"""Explicit success/failure values for fallible steps."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from kvoidc.core.errors import ErrorKind, ServiceError

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """A successful step carrying its value."""

    value: T


@dataclass(frozen=True, slots=True)
class Err:
    """A failed step carrying a classified error."""

    error: ServiceError


Result = Ok[T] | Err


def fail(kind: ErrorKind, message: str) -> Err:
    """Shorthand for an expected failure with no underlying exception."""
    return Err(ServiceError(kind, message))


def attempt(func: Callable[[], T], kind: ErrorKind, message: str) -> Result[T]:
    """Run ``func`` and convert any exception into an ``Err``."""
    try:
        return Ok(func())
    except ServiceError as exc:
        return Err(exc)
    except Exception as exc:
        return Err(ServiceError.wrap(kind, message, exc))


async def attempt_async(
    awaitable: Awaitable[T], kind: ErrorKind, message: str
) -> Result[T]:
    """Await ``awaitable`` and convert any exception into an ``Err``.

    Cancellation is not an error and always propagates.
    """
    try:
        return Ok(await awaitable)
    except ServiceError as exc:
        return Err(exc)
    except Exception as exc:
        return Err(ServiceError.wrap(kind, message, exc))


async def with_deadline(
    pipeline: Awaitable[Result[T]], seconds: float, message: str
) -> Result[T]:
    """Bound a request pipeline; remote calls still in flight are cancelled."""
    try:
        async with asyncio.timeout(seconds):
            return await pipeline
    except TimeoutError as exc:
        return Err(ServiceError.wrap(ErrorKind.DEPENDENCY, message, exc))
