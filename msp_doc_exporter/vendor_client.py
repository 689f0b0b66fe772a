"""Throttled REST client for vendor APIs with lazy pagination."""

import logging
import time
from typing import Any, Dict, Iterator, Optional

import requests
import urllib3

from .auth import AuthStrategy
from .errors import PermissionDeniedError, RateLimitError, TransportError
from .models import VendorRecord
from .pagination import Paginator

logger = logging.getLogger('msp_doc_exporter.client')


class VendorApiClient:
    """
    Synchronous REST client with a fixed inter-request delay.

    Every GET sleeps ``request_delay`` seconds first. This is a courtesy
    throttle, not a token bucket: a 429 is raised as ``RateLimitError``
    unless ``rate_limit_retries`` enables backoff.
    """

    DEFAULT_TIMEOUT = 30
    DEFAULT_REQUEST_DELAY = 0.5
    DEFAULT_BACKOFF_FACTOR = 2.0

    def __init__(
        self,
        base_url: str,
        auth: AuthStrategy,
        paginator: Optional[Paginator] = None,
        request_delay: float = DEFAULT_REQUEST_DELAY,
        timeout: float = DEFAULT_TIMEOUT,
        verify_ssl: bool = True,
        rate_limit_retries: int = 0,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the client.

        Args:
            base_url: API root, e.g. "https://app.atera.com/api/v3"
            auth: Authentication strategy applied before the first request
            paginator: Default pagination strategy for ``paginate``
            request_delay: Seconds slept before every GET
            timeout: HTTP request timeout in seconds
            verify_ssl: Whether to verify SSL certificates
            rate_limit_retries: Retries on HTTP 429 (0 = raise immediately)
            backoff_factor: Base of the exponential wait when no Retry-After is sent
            session: Pre-built session (mainly for tests)
        """
        self.base_url = base_url.rstrip('/')
        self.auth = auth
        self.paginator = paginator
        self.request_delay = request_delay
        self.timeout = timeout
        self.rate_limit_retries = rate_limit_retries
        self.backoff_factor = backoff_factor
        self.request_count = 0
        self._authenticated = False

        self.session = session or requests.Session()
        self.session.headers.update({'Accept': 'application/json'})
        self.session.verify = verify_ssl
        if not verify_ssl:
            logger.warning("SSL verification disabled - this is insecure!")
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        logger.debug(f"Client configured for {self.base_url} with timeout={timeout}s, "
                     f"request_delay={request_delay}s, rate_limit_retries={rate_limit_retries}")

    @property
    def authenticated(self) -> bool:
        return self._authenticated

    def authenticate(self) -> None:
        """Apply credentials once; later calls are no-ops."""
        if self._authenticated:
            return
        self.auth.apply(self.session, timeout=self.timeout)
        self._authenticated = True

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET a path (or absolute URL) and decode the JSON body.

        Raises:
            RateLimitError: HTTP 429 after any configured retries
            PermissionDeniedError: HTTP 403
            TransportError: Network failure, other non-2xx status, or invalid JSON
        """
        self.authenticate()
        url = self._build_url(path)

        attempt = 0
        while True:
            try:
                return self._get_once(url, params)
            except RateLimitError as e:
                if attempt >= self.rate_limit_retries:
                    raise
                wait_time = e.retry_after if e.retry_after is not None else self.backoff_factor ** attempt
                attempt += 1
                logger.warning(f"Rate limited (429): attempt {attempt}/{self.rate_limit_retries}, "
                               f"waiting {wait_time:.1f}s before retry")
                time.sleep(wait_time)

    def paginate(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        page_size: Optional[int] = None,
        paginator: Optional[Paginator] = None
    ) -> Iterator[VendorRecord]:
        """
        Lazily yield every record of a collection.

        Only one page is held at a time. A failed page aborts the whole
        sequence; there is no resume.
        """
        paginator = paginator or self.paginator
        if paginator is None:
            raise ValueError("No paginator configured for this client")

        total = 0
        for items in paginator.pages(self.get_json, path, params, page_size):
            total += len(items)
            for item in items:
                yield item

        logger.debug(f"Fetched {total} records from {path}")

    def _get_once(self, url: str, params: Optional[Dict[str, Any]]) -> Any:
        self._throttle()
        self.request_count += 1

        start_time = time.time()
        logger.debug(f"API Request: GET {url} params={params}")

        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Request failed: GET {url}: {e}")
            raise TransportError(url, None, str(e)) from e

        status = response.status_code
        logger.debug(f"API Response: {status} {url} ({time.time() - start_time:.3f}s)")

        if status == 429:
            retry_after = _parse_retry_after(response.headers.get('Retry-After'))
            raise RateLimitError(url, retry_after, _error_message(response))

        if status == 403:
            raise PermissionDeniedError(url, _error_message(response))

        if not 200 <= status < 300:
            logger.error(f"HTTP Error {status}: GET {url}")
            raise TransportError(url, status, _error_message(response))

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(url, status, "response body is not valid JSON") from e

    def _throttle(self) -> None:
        if self.request_delay > 0:
            time.sleep(self.request_delay)

    def _build_url(self, path: str) -> str:
        if path.startswith(('http://', 'https://')):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Retry-After in seconds; HTTP-date values are not interpreted."""
    if value is None:
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    return max(0.0, seconds)


def _error_message(response: requests.Response) -> str:
    """Extract a short error description from a failed response."""
    try:
        error_json = response.json()
    except ValueError:
        return (response.text or '')[:200]

    if isinstance(error_json, dict):
        for key in ('message', 'error', 'Message', 'errors'):
            if key in error_json:
                return str(error_json[key])[:200]
    return ''


__all__ = ['VendorApiClient']
