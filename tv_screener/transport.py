"""
Async HTTP transport for the scanner API.

Wraps an httpx.AsyncClient with connection pooling. A Query only needs
``post(url, body, ...)``; headers, cookies and timeouts are handled here.

Usage:
    from tv_screener.transport import ScannerTransport

    async with ScannerTransport() as transport:
        data = await transport.post(url, {"columns": ["close"]})

    # Tests inject a client backed by httpx.MockTransport
    transport = ScannerTransport(client=httpx.AsyncClient(transport=mock))
"""

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Union

import httpx

from tv_screener.config import settings
from tv_screener.errors import ScannerRequestError, ScannerTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS: Dict[str, str] = {
    "authority": "scanner.tradingview.com",
    "accept": "text/plain, */*; q=0.01",
    "content-type": "application/x-www-form-urlencoded; charset=UTF-8",
    "user-agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/98.0.4758.102 Safari/537.36"
    ),
    "origin": "https://www.tradingview.com",
    "referer": "https://www.tradingview.com/",
    "accept-language": "en-US,en;q=0.9",
}

Cookies = Union[str, Mapping[str, str]]


def build_cookie_header(cookies: Cookies) -> str:
    """Cookie header value from a raw string or a name/value mapping."""
    if isinstance(cookies, str):
        return cookies
    return "; ".join(f"{name}={value}" for name, value in cookies.items())


class ScannerTransport:
    """POSTs JSON documents to the scanner and returns the decoded body."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        self.timeout = timeout if timeout is not None else settings.SCANNER_TIMEOUT
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
            follow_redirects=True,
        )

    async def __aenter__(self) -> "ScannerTransport":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    async def post(
        self,
        url: str,
        body: Dict[str, Any],
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        cookies: Optional[Cookies] = None,
    ) -> Dict[str, Any]:
        """
        POST ``body`` as JSON to ``url``.

        Args:
            url: Scanner endpoint
            body: Request document
            headers: Extra headers, merged over DEFAULT_HEADERS
            timeout: Seconds before the request is aborted
            cookies: Cookie string or mapping

        Returns:
            Decoded JSON response

        Raises:
            ScannerTimeoutError: If the timeout elapsed
            ScannerRequestError: On non-2xx status or connection failure
        """
        request_headers = {**DEFAULT_HEADERS, **(headers or {})}
        if cookies:
            request_headers["cookie"] = build_cookie_header(cookies)
        request_timeout = timeout if timeout is not None else self.timeout

        try:
            response = await self._client.post(
                url,
                json=body,
                headers=request_headers,
                timeout=request_timeout,
            )
        except httpx.TimeoutException as exc:
            raise ScannerTimeoutError(url, request_timeout) from exc
        except httpx.HTTPError as exc:
            raise ScannerRequestError(f"Request to {url} failed: {exc}", url=url) from exc

        if not response.is_success:
            raise ScannerRequestError.from_status(
                url, response.status_code, response.reason_phrase, response.text
            )

        logger.debug(f"Scanner responded {response.status_code} ({len(response.content)} bytes)")

        try:
            return response.json()
        except ValueError as exc:
            raise ScannerRequestError(
                f"Invalid JSON from {url}: {exc}",
                url=url,
                status_code=response.status_code,
                body=response.text,
            ) from exc


# Default transport, rebuilt whenever the running event loop changes
_transport: Optional[ScannerTransport] = None
_transport_loop: Optional[asyncio.AbstractEventLoop] = None


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


def get_transport() -> ScannerTransport:
    """
    Get the shared transport for the running event loop.

    Pooled httpx connections belong to the loop that opened them, so a
    transport created under an earlier ``asyncio.run()`` is discarded and
    a new one is built.

    Returns:
        ScannerTransport instance
    """
    global _transport, _transport_loop
    loop = _running_loop()
    if _transport is None or _transport_loop is not loop:
        if _transport is not None:
            logger.debug("Event loop changed; building a new scanner transport")
        _transport = ScannerTransport()
        _transport_loop = loop
    return _transport


async def close_transport() -> None:
    """Close and forget the shared transport."""
    global _transport, _transport_loop
    if _transport is not None:
        transport = _transport
        owner_loop = _transport_loop
        _transport = None
        _transport_loop = None
        # Connections of a finished loop cannot be closed from this one
        if owner_loop is None or owner_loop is asyncio.get_running_loop():
            await transport.aclose()


__all__ = [
    "DEFAULT_HEADERS",
    "ScannerTransport",
    "build_cookie_header",
    "get_transport",
    "close_transport",
]
