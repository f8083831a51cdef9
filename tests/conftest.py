"""Shared pytest fixtures for gmail-mcp tests.

This module provides reusable fixtures for credential and token files,
a scripted fake of the Google REST APIs mounted at the httpx client seam,
and builders for Gmail message payloads.
"""

import json
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from urllib.parse import urlparse

import httpx
import pytest

from gmail_mcp.auth.session import GmailSession, SessionManager
from gmail_mcp.mail.codec import encode_base64url

GMAIL = "/gmail/v1/users/me"
DRIVE = "/drive/v3"

# =============================================================================
# Credential and Token File Fixtures
# =============================================================================


@pytest.fixture
def client_payload() -> dict[str, Any]:
    """OAuth client file content as downloaded for a desktop app."""
    return {
        "installed": {
            "client_id": "test-client-id.apps.googleusercontent.com",
            "client_secret": "test-client-secret",  # pragma: allowlist secret
            "redirect_uris": ["http://localhost:3000/oauth2callback", "urn:ietf:wg:oauth:2.0:oob"],
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": "https://oauth2.googleapis.com/token",
        }
    }


@pytest.fixture
def token_payload() -> dict[str, Any]:
    """Token file content in the Node googleapis layout, valid for an hour."""
    expires = datetime.now(timezone.utc) + timedelta(hours=1)
    return {
        "access_token": "test_access_token_abc123",
        "refresh_token": "test_refresh_token_xyz789",
        "scope": "https://www.googleapis.com/auth/gmail.modify "
        "https://www.googleapis.com/auth/gmail.send",
        "token_type": "Bearer",
        "expiry_date": int(expires.timestamp() * 1000),
    }


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """Create a temporary per-user configuration directory."""
    directory = tmp_path / ".gmail-mcp"
    directory.mkdir(parents=True, mode=0o700)
    return directory


@pytest.fixture
def credentials_file(config_dir: Path, client_payload: dict[str, Any]) -> Path:
    path = config_dir / "credentials.json"
    path.write_text(json.dumps(client_payload))
    return path


@pytest.fixture
def token_file(config_dir: Path, token_payload: dict[str, Any]) -> Path:
    path = config_dir / "token.json"
    path.write_text(json.dumps(token_payload))
    return path


@pytest.fixture
def configured_env(
    monkeypatch: pytest.MonkeyPatch, credentials_file: Path, token_file: Path
) -> tuple[Path, Path]:
    """Point GMAIL_CREDENTIALS_PATH and GMAIL_TOKEN_PATH at the temp files."""
    monkeypatch.setenv("GMAIL_CREDENTIALS_PATH", str(credentials_file))
    monkeypatch.setenv("GMAIL_TOKEN_PATH", str(token_file))
    return credentials_file, token_file


# =============================================================================
# Fake Google REST API
# =============================================================================


class FakeGoogleApi:
    """Scripted stand-in for the Google REST endpoints.

    Routes are keyed by ``(method, path)``. A route's response is a dict
    (sent as JSON), None (empty body), or a callable taking
    ``(params, json_body)`` and returning either. Unrouted requests get a
    Google-style 404 error document. Every request is recorded in ``calls``.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], tuple[Any, int]] = {}
        self.calls: list[dict[str, Any]] = []
        self.client = MagicMock(spec=httpx.AsyncClient)
        self.client.request = AsyncMock(side_effect=self._handle)
        self.client.aclose = AsyncMock()

    def route(self, method: str, path: str, response: Any = None, status: int = 200) -> None:
        self.routes[(method, path)] = (response, status)

    def calls_to(self, method: str, path: str) -> list[dict[str, Any]]:
        return [c for c in self.calls if c["method"] == method and c["path"] == path]

    async def _handle(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        path = urlparse(url).path
        self.calls.append(
            {"method": method, "path": path, "params": params or {}, "json": json, "headers": headers}
        )

        if (method, path) not in self.routes:
            return httpx.Response(
                404, json={"error": {"code": 404, "message": f"Requested entity was not found: {path}"}}
            )

        response, status = self.routes[(method, path)]
        if callable(response):
            response = response(params or {}, json)
        if response is None:
            return httpx.Response(status)
        return httpx.Response(status, json=response)


@pytest.fixture
def fake_api() -> FakeGoogleApi:
    return FakeGoogleApi()


@pytest.fixture
def mock_google_credentials() -> MagicMock:
    """Create a mock, currently valid google-auth Credentials object."""
    mock_creds = MagicMock()
    mock_creds.token = "mock_access_token"
    mock_creds.refresh_token = "mock_refresh_token"
    mock_creds.valid = True
    return mock_creds


@pytest.fixture
def session(fake_api: FakeGoogleApi, mock_google_credentials: MagicMock) -> GmailSession:
    """GmailSession wired to the fake API."""
    return GmailSession(mock_google_credentials, fake_api.client)


@pytest.fixture
def session_manager(
    fake_api: FakeGoogleApi, credentials_file: Path, token_file: Path
) -> SessionManager:
    """SessionManager reading the temp files and talking to the fake API."""
    return SessionManager(
        credentials_path=credentials_file,
        token_path=token_file,
        http_client_factory=lambda: fake_api.client,
    )


# =============================================================================
# Gmail Payload Builders
# =============================================================================


def b64(text: str) -> str:
    return encode_base64url(text.encode("utf-8"))


def header_list(headers: dict[str, str]) -> list[dict[str, str]]:
    return [{"name": name, "value": value} for name, value in headers.items()]


@pytest.fixture
def make_message() -> Callable[..., dict[str, Any]]:
    """Build a Gmail message resource.

    ``body`` becomes inline root data; ``parts`` are used as given.
    """

    def _make(
        message_id: str = "msg1",
        thread_id: str = "thread1",
        headers: dict[str, str] | None = None,
        body: str | None = None,
        parts: list[dict[str, Any]] | None = None,
        label_ids: list[str] | None = None,
        snippet: str = "",
        mime_type: str = "text/plain",
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "mimeType": mime_type,
            "headers": header_list(headers or {}),
            "body": {"size": 0},
        }
        if body is not None:
            payload["body"] = {"size": len(body), "data": b64(body)}
        if parts is not None:
            payload["parts"] = parts
        return {
            "id": message_id,
            "threadId": thread_id,
            "labelIds": label_ids if label_ids is not None else ["INBOX"],
            "snippet": snippet,
            "payload": payload,
        }

    return _make


# =============================================================================
# CLI Test Fixtures
# =============================================================================


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
