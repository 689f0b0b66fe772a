"""Exception hierarchy for vendor exports."""

from typing import Optional


class ExporterError(Exception):
    """Base exception for exporter-related errors."""
    pass


class TransportError(ExporterError):
    """Non-2xx HTTP response or network failure while talking to a vendor API."""

    def __init__(self, endpoint: str, status_code: Optional[int] = None, message: str = ""):
        self.endpoint = endpoint
        self.status_code = status_code
        detail = f"HTTP {status_code}" if status_code is not None else "network failure"
        text = f"{detail} on {endpoint}"
        if message:
            text = f"{text}: {message}"
        super().__init__(text)


class RateLimitError(TransportError):
    """HTTP 429 from the vendor. ``retry_after`` is in seconds when supplied."""

    def __init__(self, endpoint: str, retry_after: Optional[float] = None, message: str = ""):
        self.retry_after = retry_after
        super().__init__(endpoint, 429, message)


class PermissionDeniedError(TransportError):
    """HTTP 403, typically on an optional sub-resource such as a knowledge base."""

    def __init__(self, endpoint: str, message: str = ""):
        super().__init__(endpoint, 403, message)


class AuthenticationError(ExporterError):
    """Token exchange or credential setup failed."""
    pass


class UnknownVendorError(ExporterError, ValueError):
    """Requested vendor has no registered adapter."""
    pass


__all__ = [
    'ExporterError',
    'TransportError',
    'RateLimitError',
    'PermissionDeniedError',
    'AuthenticationError',
    'UnknownVendorError'
]
