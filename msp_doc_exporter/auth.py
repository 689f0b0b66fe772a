"""Authentication strategies for vendor REST APIs."""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import requests

from .errors import AuthenticationError

logger = logging.getLogger('msp_doc_exporter.auth')


class AuthStrategy(ABC):
    """Applies credentials to a ``requests.Session`` once, before the first call."""

    name = "abstract"

    @abstractmethod
    def apply(self, session: requests.Session, timeout: Optional[float] = None) -> None:
        """Attach credentials to the session."""
        pass


class ApiKeyAuth(AuthStrategy):
    """Static API key sent in a vendor-specific header (e.g. ``X-API-KEY``)."""

    name = "api_key"

    def __init__(self, api_key: str, header_name: str = 'X-API-KEY'):
        if not api_key:
            raise ValueError("API key auth requires api_key")
        self.api_key = api_key
        self.header_name = header_name

    def apply(self, session: requests.Session, timeout: Optional[float] = None) -> None:
        session.headers[self.header_name] = self.api_key
        logger.info(f"Using API key authentication via {self.header_name} header")


class BearerTokenAuth(AuthStrategy):
    """Pre-issued bearer token in the ``Authorization`` header."""

    name = "bearer"

    def __init__(self, token: str):
        if not token:
            raise ValueError("Bearer auth requires api_token")
        self.token = token

    def apply(self, session: requests.Session, timeout: Optional[float] = None) -> None:
        session.headers['Authorization'] = f'Bearer {self.token}'
        logger.info("Using bearer token authentication")


class OAuth2ClientCredentials(AuthStrategy):
    """
    OAuth2 client-credentials grant.

    The token is exchanged exactly once per run and never refreshed; runs are
    expected to finish before it expires.
    """

    name = "oauth2"

    def __init__(
        self,
        token_url: str,
        client_id: str,
        client_secret: str,
        scope: Optional[str] = None
    ):
        if not token_url:
            raise ValueError("OAuth2 auth requires token_url")
        if not client_id or not client_secret:
            raise ValueError("OAuth2 auth requires client_id and client_secret")
        self.token_url = token_url
        self.client_id = client_id
        self.client_secret = client_secret
        self.scope = scope
        self.access_token: Optional[str] = None

    def apply(self, session: requests.Session, timeout: Optional[float] = None) -> None:
        form = {
            'grant_type': 'client_credentials',
            'client_id': self.client_id,
            'client_secret': self.client_secret
        }
        if self.scope:
            form['scope'] = self.scope

        logger.info(f"Requesting OAuth2 access token from {self.token_url}")

        try:
            response = session.post(
                self.token_url,
                data=form,
                headers={'Accept': 'application/json'},
                timeout=timeout
            )
        except requests.exceptions.RequestException as e:
            raise AuthenticationError(f"Token request to {self.token_url} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise AuthenticationError(
                f"Token request to {self.token_url} returned HTTP {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise AuthenticationError(f"Token response from {self.token_url} is not JSON") from e

        token = payload.get('access_token') if isinstance(payload, dict) else None
        if not token:
            raise AuthenticationError(f"Token response from {self.token_url} has no access_token")

        self.access_token = token
        session.headers['Authorization'] = f'Bearer {token}'
        logger.debug(f"OAuth2 token acquired (expires_in={payload.get('expires_in', 'unknown')})")


__all__ = [
    'AuthStrategy',
    'ApiKeyAuth',
    'BearerTokenAuth',
    'OAuth2ClientCredentials'
]
