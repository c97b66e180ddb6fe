"""Ready-made fetch capabilities for JSON HTTP endpoints.

Many CLI caches hold one JSON document from one URL -- a public IP from
``https://httpbin.org/ip``, a lookup table, a release manifest.
:class:`JsonUrlFetch` (blocking, :class:`httpx.Client`) and
:class:`AsyncJsonUrlFetch` (:class:`httpx.AsyncClient`) cover that case.
Both:

* retry 5xx responses and connection/timeout errors with exponential
  backoff (1 s, 2 s, 4 s, ...) up to ``max_retries`` times,
* raise :class:`~tote.exceptions.FetchError` on 4xx responses, on
  exhausted retries, and on bodies that do not validate against the
  artifact type.

Example::

    from tote import Tote
    from tote.fetchers import AsyncJsonUrlFetch

    cache = Tote(
        "./ip.cache",
        86400,
        dict[str, str],
        fetch=AsyncJsonUrlFetch("https://httpbin.org/ip", dict[str, str]),
    )
    origin = (await cache.get_async())["origin"]
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Generic, Optional, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from tote.exceptions import FetchError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_RETRYABLE_ERRORS = (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError)


class _JsonUrlFetchBase(Generic[T]):
    """Configuration and response handling shared by both fetchers."""

    def __init__(
        self,
        url: str,
        artifact_type: Any = Any,
        headers: Optional[dict[str, str]] = None,
        params: Optional[dict[str, Any]] = None,
        timeout: float = 30.0,
        max_retries: int = 3,
    ) -> None:
        self.url = url
        self.headers = dict(headers or {})
        self.params = dict(params or {})
        self.timeout = timeout
        self.max_retries = max_retries
        self._adapter: TypeAdapter[T] = TypeAdapter(artifact_type)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.url!r})"

    def _should_retry(self, response: httpx.Response, attempt: int) -> bool:
        if response.status_code >= 500 and attempt < self.max_retries:
            logger.debug(
                "Server error %d from %s, retrying in %ds (attempt %d/%d)",
                response.status_code, self.url, 2 ** attempt, attempt + 1, self.max_retries,
            )
            return True
        return False

    def _should_retry_error(self, exc: Exception, attempt: int) -> bool:
        if attempt < self.max_retries:
            logger.debug(
                "Connection error from %s: %s, retrying in %ds (attempt %d/%d)",
                self.url, exc, 2 ** attempt, attempt + 1, self.max_retries,
            )
            return True
        return False

    def _connection_failed(self, exc: Exception) -> FetchError:
        return FetchError(
            f"Connection to {self.url} failed after {self.max_retries + 1} attempts: {exc}"
        )

    def _parse(self, response: httpx.Response) -> T:
        """Map error statuses to :class:`FetchError` and validate the body."""
        if response.status_code >= 400:
            detail = response.text[:200] if response.text else ""
            prefix = f"HTTP {response.status_code} from {self.url}"
            raise FetchError(f"{prefix}: {detail}" if detail else prefix)
        try:
            return self._adapter.validate_json(response.content)
        except ValidationError as exc:
            raise FetchError(
                f"Unexpected response body from {self.url}: {exc.error_count()} error(s)"
            ) from exc


class JsonUrlFetch(_JsonUrlFetchBase[T]):
    """Blocking fetch capability that GETs a JSON document.

    Args:
        url: Absolute URL to request.
        artifact_type: Type the JSON body is validated against.
        headers: Extra request headers.
        params: Query parameters.
        timeout: Request timeout in seconds.
        max_retries: Retries after the first attempt for 5xx and
            connection errors.
        transport: Optional :class:`httpx.BaseTransport`, mainly for tests.
    """

    def __init__(
        self,
        url: str,
        artifact_type: Any = Any,
        headers: Optional[dict[str, str]] = None,
        params: Optional[dict[str, Any]] = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        super().__init__(url, artifact_type, headers, params, timeout, max_retries)
        self._transport = transport

    def __call__(self) -> T:
        with httpx.Client(
            timeout=self.timeout, follow_redirects=True, transport=self._transport
        ) as client:
            for attempt in range(self.max_retries + 1):
                try:
                    response = client.get(self.url, headers=self.headers, params=self.params)
                except _RETRYABLE_ERRORS as exc:
                    if self._should_retry_error(exc, attempt):
                        time.sleep(2 ** attempt)
                        continue
                    raise self._connection_failed(exc) from exc

                if self._should_retry(response, attempt):
                    time.sleep(2 ** attempt)
                    continue
                return self._parse(response)

        raise FetchError(f"Request to {self.url} failed after all retries")  # pragma: no cover


class AsyncJsonUrlFetch(_JsonUrlFetchBase[T]):
    """Asynchronous counterpart of :class:`JsonUrlFetch`.

    Identical arguments, except *transport* is an
    :class:`httpx.AsyncBaseTransport`.  Backoff uses :func:`asyncio.sleep`.
    """

    def __init__(
        self,
        url: str,
        artifact_type: Any = Any,
        headers: Optional[dict[str, str]] = None,
        params: Optional[dict[str, Any]] = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(url, artifact_type, headers, params, timeout, max_retries)
        self._transport = transport

    async def __call__(self) -> T:
        async with httpx.AsyncClient(
            timeout=self.timeout, follow_redirects=True, transport=self._transport
        ) as client:
            for attempt in range(self.max_retries + 1):
                try:
                    response = await client.get(
                        self.url, headers=self.headers, params=self.params
                    )
                except _RETRYABLE_ERRORS as exc:
                    if self._should_retry_error(exc, attempt):
                        await asyncio.sleep(2 ** attempt)
                        continue
                    raise self._connection_failed(exc) from exc

                if self._should_retry(response, attempt):
                    await asyncio.sleep(2 ** attempt)
                    continue
                return self._parse(response)

        raise FetchError(f"Request to {self.url} failed after all retries")  # pragma: no cover
