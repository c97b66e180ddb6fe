"""Fetch capabilities: the caller-supplied producers of fresh artifacts.

A fetch capability is a zero-argument callable.  The blocking flavour
(:class:`Fetch`) returns the artifact; the asynchronous flavour
(:class:`AsyncFetch`) returns an awaitable of it.  The cache never passes
arguments -- anything the fetch needs (URLs, credentials, clients) is bound
when the capability is created, typically with a closure,
:func:`functools.partial`, or a small callable class such as
:class:`~tote.fetchers.JsonUrlFetch`.

Both flavours are invoked through :func:`call_fetch` and
:func:`call_fetch_async`, which apply the error policy shared by
:meth:`~tote.cache.Tote.get` and :meth:`~tote.cache.Tote.get_async`:
failures are wrapped in :class:`~tote.exceptions.FetchError`, and a
``FetchError`` raised by the capability itself passes through untouched.
"""

from __future__ import annotations

import inspect
from typing import Awaitable, Callable, Protocol, TypeVar, Union

from tote.exceptions import FetchError, InvalidUsageError

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class Fetch(Protocol[T_co]):
    """Blocking strategy for fetching data to cache."""

    def __call__(self) -> T_co: ...


class AsyncFetch(Protocol[T_co]):
    """Asynchronous strategy for fetching data to cache."""

    def __call__(self) -> Awaitable[T_co]: ...


AnyFetch = Union[Fetch[T], AsyncFetch[T], Callable[[], Union[T, Awaitable[T]]]]


def _describe(fetch: Callable[..., object]) -> str:
    return getattr(fetch, "__qualname__", None) or type(fetch).__name__


def call_fetch(fetch: AnyFetch[T]) -> T:
    """Invoke a blocking fetch capability.

    Raises:
        InvalidUsageError: If *fetch* is asynchronous; use
            :meth:`~tote.cache.Tote.get_async` instead.
        FetchError: If *fetch* raises.
    """
    if inspect.iscoroutinefunction(fetch):
        raise InvalidUsageError(
            f"Fetch {_describe(fetch)} is asynchronous; use get_async() instead"
        )
    try:
        result = fetch()
    except FetchError:
        raise
    except Exception as exc:
        raise FetchError(f"Fetch {_describe(fetch)} failed: {exc}") from exc

    if inspect.isawaitable(result):
        # Close the coroutine so it is not reported as never awaited.
        close = getattr(result, "close", None)
        if close is not None:
            close()
        raise InvalidUsageError(
            f"Fetch {_describe(fetch)} returned an awaitable; use get_async() instead"
        )
    return result


async def call_fetch_async(fetch: AnyFetch[T]) -> T:
    """Invoke a fetch capability from a coroutine.

    Awaitable results are awaited; plain values from a blocking capability
    are accepted as-is.

    Raises:
        FetchError: If *fetch* raises, or the awaitable it returns fails.
    """
    try:
        result = fetch()
        if inspect.isawaitable(result):
            result = await result
    except FetchError:
        raise
    except Exception as exc:
        raise FetchError(f"Fetch {_describe(fetch)} failed: {exc}") from exc
    return result
