"""HTTP transport used by the scenario runner."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

import aiohttp
from multidict import CIMultiDict

from apichain._internal.errors import TransportError

if TYPE_CHECKING:
    from apichain.engine.builder import PreparedRequest


@dataclass
class HttpResponse:
    """A fully read HTTP response.

    Attributes:
        status: HTTP status code.
        reason: Reason phrase sent by the server.
        headers: Response headers.
        body: Raw response body.
        elapsed_ms: Time from sending the request to reading the body.
    """

    status: int
    reason: str = ""
    headers: CIMultiDict[str] = field(default_factory=CIMultiDict)
    body: bytes = b""
    elapsed_ms: float = 0.0


class Transport(Protocol):
    """Anything that can send a PreparedRequest and return its response."""

    async def send(self, request: PreparedRequest) -> HttpResponse:
        """Send ``request`` and return the fully read response.

        Raises:
            TransportError: If no response could be obtained.
        """
        ...


class AiohttpTransport:
    """Transport backed by a single ``aiohttp.ClientSession``.

    Must be used as an async context manager; one session serves every
    request of a run.
    """

    def __init__(self, timeout: float = 30.0) -> None:
        """Initialize the transport.

        Args:
            timeout: Total per-request timeout in seconds.
        """
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> AiohttpTransport:
        """Open the underlying aiohttp session."""
        self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        """Close the underlying aiohttp session."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def send(self, request: PreparedRequest) -> HttpResponse:
        """Send a request and read the whole response body.

        Args:
            request: The request to send.

        Returns:
            The HttpResponse.

        Raises:
            RuntimeError: If the transport is used outside of an async
                context manager.
            TransportError: On connection errors, timeouts and requests the
                client refuses to send.
        """
        if self._session is None:
            msg = "AiohttpTransport must be used as an async context manager"
            raise RuntimeError(msg)

        start = time.monotonic()
        try:
            async with self._session.request(
                request.method,
                request.url,
                headers=request.headers,
                data=request.data,
            ) as resp:
                body = await resp.read()
                return HttpResponse(
                    status=resp.status,
                    reason=resp.reason or "",
                    headers=CIMultiDict(resp.headers),
                    body=body,
                    elapsed_ms=(time.monotonic() - start) * 1000,
                )
        except TimeoutError as exc:
            msg = f"request to {request.url} timed out"
            raise TransportError(msg) from exc
        except aiohttp.ClientError as exc:
            msg = f"making the request to the endpoint: {type(exc).__name__}: {exc}"
            raise TransportError(msg) from exc
        except ValueError as exc:
            # aiohttp rejects unsendable header or URL values with ValueError.
            msg = f"request to {request.url} rejected by the client: {exc}"
            raise TransportError(msg) from exc
