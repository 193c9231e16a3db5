"""
Exception hierarchy for tv_screener.

Construction errors are raised locally while building expressions; request
errors wrap every failure of the scanner transport. Nothing here retries.
"""

from typing import Any, Dict, Optional


class ScreenerError(Exception):
    """Base exception for all tv_screener errors."""

    code = "SCREENER_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ExpressionError(ScreenerError, ValueError):
    """Raised when a filter expression or logical combination is malformed."""

    code = "INVALID_EXPRESSION"


class ScannerRequestError(ScreenerError):
    """
    Raised when a scanner request fails.

    ``status_code`` and ``body`` are set when the server answered with a
    non-2xx status; both are None for connection-level failures, in which
    case the underlying httpx error is available as ``__cause__``.
    """

    code = "REQUEST_FAILED"

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        self.url = url
        self.status_code = status_code
        self.body = body
        super().__init__(
            message,
            details={"url": url, "status_code": status_code},
        )

    @classmethod
    def from_status(
        cls, url: str, status_code: int, reason: str, body: str
    ) -> "ScannerRequestError":
        """Build the error for a non-2xx response."""
        return cls(
            f"HTTP {status_code}: {reason}\nBody: {body}",
            url=url,
            status_code=status_code,
            body=body,
        )


class ScannerTimeoutError(ScannerRequestError):
    """Raised when a scanner request exceeds its timeout."""

    code = "REQUEST_TIMEOUT"

    def __init__(self, url: str, timeout: float):
        self.timeout = timeout
        super().__init__(f"Request to {url} timed out after {timeout}s", url=url)


__all__ = [
    "ScreenerError",
    "ExpressionError",
    "ScannerRequestError",
    "ScannerTimeoutError",
]
