"""Unit tests for the credential lifecycle: file loading, GmailSession and SessionManager."""

import asyncio
import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from google.auth.exceptions import RefreshError, TransportError

from gmail_mcp.auth.models import TokenStatus
from gmail_mcp.auth.session import (
    GmailSession,
    SessionManager,
    get_token_status,
    load_client_config,
    load_stored_token,
)
from gmail_mcp.exceptions import ConfigurationMissing, UpstreamFailure

from conftest import GMAIL, FakeGoogleApi


@pytest.mark.unit
class TestLoadFiles:
    """Tests for loading the credentials and token files."""

    def test_should_load_client_config(self, credentials_file: Path) -> None:
        """Verify a valid credentials file parses."""
        client = load_client_config(credentials_file)
        assert client.redirect_uri == "http://localhost:3000/oauth2callback"

    def test_should_explain_missing_credentials_file(self, tmp_path: Path) -> None:
        """Verify the error names the path and tells how to get the file."""
        path = tmp_path / "credentials.json"

        with pytest.raises(ConfigurationMissing) as exc_info:
            load_client_config(path)

        message = str(exc_info.value)
        assert str(path) in message
        assert "Google Cloud console" in message

    def test_should_reject_credentials_without_client(self, tmp_path: Path) -> None:
        """Verify a JSON file without installed/web is a configuration problem."""
        path = tmp_path / "credentials.json"
        path.write_text(json.dumps({"type": "service_account"}))

        with pytest.raises(ConfigurationMissing, match="not a valid OAuth client file"):
            load_client_config(path)

    def test_should_explain_missing_token_file(self, tmp_path: Path) -> None:
        """Verify the token hint points at the setup command."""
        with pytest.raises(ConfigurationMissing) as exc_info:
            load_stored_token(tmp_path / "token.json")

        assert "gmail-mcp setup" in str(exc_info.value)

    def test_should_reject_corrupt_token_file(self, tmp_path: Path) -> None:
        """Verify unparseable JSON is reported, not raised raw."""
        path = tmp_path / "token.json"
        path.write_text("{oops")

        with pytest.raises(ConfigurationMissing, match="could not be read"):
            load_stored_token(path)

    def test_should_classify_token_status(self, token_file: Path, tmp_path: Path) -> None:
        """Verify VALID and MISSING statuses."""
        assert get_token_status(token_file) == TokenStatus.VALID
        assert get_token_status(tmp_path / "absent.json") == TokenStatus.MISSING


@pytest.mark.unit
class TestGmailSessionRequest:
    """Tests for GmailSession.request()."""

    @pytest.mark.asyncio
    async def test_should_send_bearer_token_and_drop_none_params(
        self, session: GmailSession, fake_api: FakeGoogleApi
    ) -> None:
        """Verify auth header and that None-valued params are omitted."""
        fake_api.route("GET", f"{GMAIL}/messages", {"messages": []})

        result = await session.request(
            "GET",
            f"https://gmail.googleapis.com{GMAIL}/messages",
            params={"maxResults": 5, "q": None},
        )

        assert result == {"messages": []}
        [call] = fake_api.calls
        assert call["params"] == {"maxResults": 5}
        assert call["headers"]["Authorization"] == "Bearer mock_access_token"

    @pytest.mark.asyncio
    async def test_should_return_empty_dict_for_empty_body(
        self, session: GmailSession, fake_api: FakeGoogleApi
    ) -> None:
        """Verify 204-style responses do not break JSON decoding."""
        fake_api.route("POST", f"{GMAIL}/messages/batchModify", None, status=204)

        result = await session.request(
            "POST", f"https://gmail.googleapis.com{GMAIL}/messages/batchModify", json_data={"ids": ["a"]}
        )

        assert result == {}

    @pytest.mark.asyncio
    async def test_should_pass_provider_error_message_through(
        self, session: GmailSession, fake_api: FakeGoogleApi
    ) -> None:
        """Verify a Google error document becomes UpstreamFailure with status."""
        fake_api.route(
            "GET",
            f"{GMAIL}/messages/bad",
            {"error": {"code": 400, "message": "Invalid id value"}},
            status=400,
        )

        with pytest.raises(UpstreamFailure) as exc_info:
            await session.request("GET", f"https://gmail.googleapis.com{GMAIL}/messages/bad")

        assert str(exc_info.value) == "Invalid id value"
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_should_fall_back_to_http_reason(self, mock_google_credentials: MagicMock) -> None:
        """Verify a non-JSON error body still yields a message."""
        client = MagicMock(spec=httpx.AsyncClient)
        client.request = AsyncMock(return_value=httpx.Response(503, text="upstream down"))
        session = GmailSession(mock_google_credentials, client)

        with pytest.raises(UpstreamFailure, match="HTTP 503 Service Unavailable"):
            await session.request("GET", "https://gmail.googleapis.com/gmail/v1/users/me/profile")

    @pytest.mark.asyncio
    async def test_should_translate_transport_errors(self, mock_google_credentials: MagicMock) -> None:
        """Verify httpx errors become UpstreamFailure without a status."""
        client = MagicMock(spec=httpx.AsyncClient)
        client.request = AsyncMock(side_effect=httpx.ConnectError("connection refused"))
        session = GmailSession(mock_google_credentials, client)

        with pytest.raises(UpstreamFailure, match="connection refused") as exc_info:
            await session.request("GET", "https://gmail.googleapis.com/gmail/v1/users/me/profile")

        assert exc_info.value.status_code is None


@pytest.mark.unit
class TestGmailSessionRefresh:
    """Tests for token refresh before requests."""

    @pytest.mark.asyncio
    async def test_should_refresh_invalid_credentials(self, fake_api: FakeGoogleApi) -> None:
        """Verify google-auth refresh runs when credentials are not valid."""
        credentials = MagicMock()
        credentials.valid = False
        credentials.refresh_token = "refresh"

        def refresh(request: object) -> None:
            credentials.token = "fresh_token"

        credentials.refresh.side_effect = refresh
        fake_api.route("GET", f"{GMAIL}/profile", {"emailAddress": "me@x.com"})
        session = GmailSession(credentials, fake_api.client)

        await session.request("GET", f"https://gmail.googleapis.com{GMAIL}/profile")

        credentials.refresh.assert_called_once()
        assert fake_api.calls[0]["headers"]["Authorization"] == "Bearer fresh_token"

    @pytest.mark.asyncio
    async def test_should_fail_without_refresh_token(self, fake_api: FakeGoogleApi) -> None:
        """Verify an expired token with no refresh token is a configuration problem."""
        credentials = MagicMock()
        credentials.valid = False
        credentials.refresh_token = None
        session = GmailSession(credentials, fake_api.client)

        with pytest.raises(ConfigurationMissing, match="re-authorize"):
            await session.request("GET", f"https://gmail.googleapis.com{GMAIL}/profile")

        assert fake_api.calls == []

    @pytest.mark.asyncio
    async def test_should_translate_refresh_errors(self, fake_api: FakeGoogleApi) -> None:
        """Verify a rejected refresh becomes UpstreamFailure."""
        credentials = MagicMock()
        credentials.valid = False
        credentials.refresh_token = "revoked"
        credentials.refresh.side_effect = RefreshError("invalid_grant: Token has been revoked")
        session = GmailSession(credentials, fake_api.client)

        with pytest.raises(UpstreamFailure, match="invalid_grant"):
            await session.request("GET", f"https://gmail.googleapis.com{GMAIL}/profile")

    @pytest.mark.asyncio
    async def test_should_translate_refresh_transport_errors(self, fake_api: FakeGoogleApi) -> None:
        """Verify a refresh that cannot reach the token endpoint becomes UpstreamFailure."""
        credentials = MagicMock()
        credentials.valid = False
        credentials.refresh_token = "refresh"
        credentials.refresh.side_effect = TransportError("Connection reset by peer")
        session = GmailSession(credentials, fake_api.client)

        with pytest.raises(UpstreamFailure, match="Token refresh failed: Connection reset"):
            await session.request("GET", f"https://gmail.googleapis.com{GMAIL}/profile")

        assert fake_api.calls == []


@pytest.mark.unit
class TestSessionManager:
    """Tests for SessionManager.ensure_session()."""

    @pytest.mark.asyncio
    async def test_should_memoize_session(self, session_manager: SessionManager) -> None:
        """Verify the same session is returned on every call."""
        first = await session_manager.ensure_session()
        second = await session_manager.ensure_session()

        assert first is second
        assert session_manager.has_session
        assert first.redirect_uri == "http://localhost:3000/oauth2callback"
        assert first.credentials.token == "test_access_token_abc123"

    @pytest.mark.asyncio
    async def test_should_initialize_once_under_concurrency(self, session_manager: SessionManager) -> None:
        """Verify concurrent first calls share one initialization."""
        with patch.object(
            SessionManager, "_create_session", wraps=session_manager._create_session
        ) as create:
            sessions = await asyncio.gather(*(session_manager.ensure_session() for _ in range(5)))

        assert create.call_count == 1
        assert all(s is sessions[0] for s in sessions)

    @pytest.mark.asyncio
    async def test_should_not_memoize_failures(
        self, tmp_path: Path, credentials_file: Path, token_payload: dict
    ) -> None:
        """Verify a later call succeeds once the missing file appears."""
        token_path = tmp_path / "late-token.json"
        manager = SessionManager(credentials_path=credentials_file, token_path=token_path)

        with pytest.raises(ConfigurationMissing):
            await manager.ensure_session()
        assert not manager.has_session

        token_path.write_text(json.dumps(token_payload))
        session = await manager.ensure_session()

        assert session is not None
        await manager.close()

    @pytest.mark.asyncio
    async def test_should_read_paths_from_environment(
        self, configured_env: tuple[Path, Path]
    ) -> None:
        """Verify env overrides are resolved when no paths are given."""
        credentials_file, token_file = configured_env

        manager = SessionManager()

        assert manager.credentials_path == credentials_file
        assert manager.token_path == token_file

    @pytest.mark.asyncio
    async def test_should_close_http_client(
        self, session_manager: SessionManager, fake_api: FakeGoogleApi
    ) -> None:
        """Verify close() releases the client and forgets the session."""
        await session_manager.ensure_session()

        await session_manager.close()

        fake_api.client.aclose.assert_awaited_once()
        assert not session_manager.has_session
