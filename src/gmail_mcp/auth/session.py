"""Credential lifecycle for the Gmail MCP server.

The server is single-account: one credentials file, one token file, one
authenticated session for the lifetime of the process. ``SessionManager``
loads both files on the first tool call, builds google-auth credentials
and a pooled HTTP client, and hands the same ``GmailSession`` to every
later call.

Token refresh is delegated to google-auth. The refreshed token lives in
memory only; the token file is never written by the server.
"""

import asyncio
import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from pydantic import ValidationError

from gmail_mcp.auth.models import ClientConfig, StoredToken, TokenStatus
from gmail_mcp.config import get_credentials_path, get_token_path
from gmail_mcp.exceptions import ConfigurationMissing, UpstreamFailure

logger = logging.getLogger(__name__)

CREDENTIALS_HINT = (
    "To set up Gmail API access: enable the Gmail API in the Google Cloud console, "
    "create an OAuth client ID of type 'Desktop app' under APIs & Services > Credentials, "
    "download the JSON file and save it as {path} (or point GMAIL_CREDENTIALS_PATH at it)."
)
TOKEN_HINT = (
    "Run 'gmail-mcp setup' to authorize the account and create {path} "
    "(or point GMAIL_TOKEN_PATH at an existing token file)."
)


def _read_json_object(path: Path, what: str, hint: str) -> dict[str, Any]:
    if not path.exists():
        raise ConfigurationMissing(f"{what} file not found at {path}.", hint)
    try:
        with open(path) as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationMissing(f"{what} file at {path} could not be read: {e}.", hint) from e
    if not isinstance(payload, dict):
        raise ConfigurationMissing(f"{what} file at {path} is not a JSON object.", hint)
    return payload


def load_client_config(path: Path) -> ClientConfig:
    """Load the OAuth client from a credentials file.

    Args:
        path: Credentials file downloaded from the Google Cloud console.

    Returns:
        Parsed client configuration.

    Raises:
        ConfigurationMissing: If the file is absent or not a usable client file.
    """
    hint = CREDENTIALS_HINT.format(path=path)
    payload = _read_json_object(path, "Credentials", hint)
    try:
        return ClientConfig.from_file_payload(payload)
    except (ValueError, ValidationError) as e:
        raise ConfigurationMissing(
            f"Credentials file at {path} is not a valid OAuth client file: {e}.", hint
        ) from e


def load_stored_token(path: Path) -> StoredToken:
    """Load the OAuth token file.

    Args:
        path: Token file written by ``gmail-mcp setup`` (or another client).

    Returns:
        Parsed token.

    Raises:
        ConfigurationMissing: If the file is absent or does not hold a token.
    """
    hint = TOKEN_HINT.format(path=path)
    payload = _read_json_object(path, "Token", hint)
    try:
        return StoredToken.model_validate(payload)
    except ValidationError as e:
        raise ConfigurationMissing(f"Token file at {path} is invalid: {e}.", hint) from e


def get_token_status(path: Path) -> TokenStatus:
    """Classify the token file at ``path``."""
    if not path.exists():
        return TokenStatus.MISSING
    try:
        token = load_stored_token(path)
    except ConfigurationMissing:
        return TokenStatus.INVALID
    if token.is_expired():
        return TokenStatus.EXPIRED
    return TokenStatus.VALID


def _error_message(response: httpx.Response) -> str:
    """Extract the provider's error message, falling back to the HTTP reason."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return str(body.get("error_description") or error)

    return f"HTTP {response.status_code} {response.reason_phrase}".strip()


class GmailSession:
    """Authenticated handle to the Google APIs.

    Attributes:
        credentials: google-auth credentials for the single account.
        redirect_uri: First redirect URI of the OAuth client (informational).
    """

    def __init__(
        self,
        credentials: Credentials,
        http_client: httpx.AsyncClient,
        redirect_uri: str | None = None,
    ) -> None:
        self.credentials = credentials
        self.redirect_uri = redirect_uri
        self._http_client = http_client

    async def _get_access_token(self) -> str:
        """Get a valid access token, refreshing through google-auth if needed.

        Raises:
            ConfigurationMissing: If the token is unusable and cannot be refreshed.
            UpstreamFailure: If the refresh request is rejected or cannot be sent.
        """
        if not self.credentials.valid:
            if not self.credentials.refresh_token:
                raise ConfigurationMissing(
                    "OAuth token has expired and carries no refresh token.",
                    "Run 'gmail-mcp setup' to re-authorize.",
                )
            logger.info("Access token expired, refreshing")
            loop = asyncio.get_running_loop()
            try:
                await loop.run_in_executor(None, self.credentials.refresh, Request())
            except GoogleAuthError as e:
                raise UpstreamFailure(f"Token refresh failed: {e}") from e

        return str(self.credentials.token)

    async def request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make an authenticated request and return the decoded JSON body.

        Args:
            method: HTTP method.
            url: Full URL.
            params: Query parameters; ``None`` values are dropped and list
                values become repeated keys.
            json_data: Optional JSON body.

        Returns:
            Decoded JSON body, or an empty dict for an empty 2xx response.

        Raises:
            UpstreamFailure: On a non-2xx status or a transport error.
        """
        access_token = await self._get_access_token()
        query = {k: v for k, v in (params or {}).items() if v is not None}

        try:
            response = await self._http_client.request(
                method=method,
                url=url,
                params=query or None,
                json=json_data,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/json",
                },
            )
        except httpx.HTTPError as e:
            raise UpstreamFailure(f"{method} {url} failed: {e}") from e

        if response.status_code >= 400:
            logger.debug("%s %s -> %s: %s", method, url, response.status_code, response.text)
            raise UpstreamFailure(_error_message(response), status_code=response.status_code)

        if not response.content:
            return {}
        result: dict[str, Any] = response.json()
        return result

    async def close(self) -> None:
        """Close the HTTP client and release pooled connections."""
        await self._http_client.aclose()


def _default_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        http2=True,
        limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
    )


class SessionManager:
    """Builds the session once and memoizes it.

    Constructed once at server startup and passed into the dispatcher;
    there is no module-level session.

    Attributes:
        credentials_path: OAuth client file (env/default when not given).
        token_path: Token file (env/default when not given).
    """

    def __init__(
        self,
        credentials_path: Path | None = None,
        token_path: Path | None = None,
        http_client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self._credentials_path = credentials_path
        self._token_path = token_path
        self._http_client_factory = http_client_factory or _default_http_client
        self._session: GmailSession | None = None
        self._lock = asyncio.Lock()

    @property
    def credentials_path(self) -> Path:
        return self._credentials_path or get_credentials_path()

    @property
    def token_path(self) -> Path:
        return self._token_path or get_token_path()

    @property
    def has_session(self) -> bool:
        return self._session is not None

    async def ensure_session(self) -> GmailSession:
        """Return the session, creating it on first use.

        Raises:
            ConfigurationMissing: If either file is absent or unusable. A
                failed attempt is not remembered; the next call retries.
        """
        if self._session is not None:
            return self._session

        async with self._lock:
            if self._session is None:
                self._session = self._create_session()
        return self._session

    def _create_session(self) -> GmailSession:
        client = load_client_config(self.credentials_path)
        token = load_stored_token(self.token_path)
        credentials = token.to_credentials(client)

        logger.info("Gmail session established using %s", self.token_path)
        return GmailSession(
            credentials,
            self._http_client_factory(),
            redirect_uri=client.redirect_uri,
        )

    async def close(self) -> None:
        """Close the memoized session, if one was created."""
        if self._session is not None:
            await self._session.close()
            self._session = None
