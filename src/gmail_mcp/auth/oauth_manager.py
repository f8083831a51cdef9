"""Interactive OAuth consent flow for the Gmail MCP server.

This is the one-time setup step: it reads the OAuth client from the
credentials file, sends the user through Google's consent page, receives
the authorization code on a local callback server and writes the token
file that ``SessionManager`` later consumes.
"""

import asyncio
import secrets
import webbrowser
from http.server import BaseHTTPRequestHandler, HTTPServer
from pathlib import Path
from urllib.parse import parse_qs, urlparse

from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow

from gmail_mcp.auth.models import ClientConfig, StoredToken, TokenStatus
from gmail_mcp.auth.session import get_token_status, load_client_config, load_stored_token
from gmail_mcp.config import SCOPES, get_credentials_path, get_redirect_uri, get_token_path

CALLBACK_TIMEOUT_SECONDS = 300

_PAGE = "<html><body><h1>{title}</h1><p>{detail}</p></body></html>"


class _CallbackServer(HTTPServer):
    """One-shot HTTP server that captures the redirect's ``code`` or ``error``."""

    def __init__(self, redirect_uri: str) -> None:
        parsed = urlparse(redirect_uri)
        self.callback_path = parsed.path or "/"
        self.code: str | None = None
        self.error: str | None = None
        super().__init__((parsed.hostname or "localhost", parsed.port or 80), _CallbackHandler)
        self.timeout = CALLBACK_TIMEOUT_SECONDS


class _CallbackHandler(BaseHTTPRequestHandler):
    server: _CallbackServer

    def log_message(self, format: str, *args) -> None:
        pass

    def do_GET(self) -> None:
        url = urlparse(self.path)
        if url.path != self.server.callback_path:
            self._reply(404, "Not found", "")
            return

        query = parse_qs(url.query)
        self.server.code = query.get("code", [None])[0]
        self.server.error = query.get("error", [None])[0]

        if self.server.code:
            self._reply(200, "Gmail access granted", "Return to the terminal; this tab can be closed.")
        else:
            self._reply(400, "Gmail access not granted", self.server.error or "No authorization code.")

    def _reply(self, status: int, title: str, detail: str) -> None:
        page = _PAGE.format(title=title, detail=detail).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(page)))
        self.end_headers()
        self.wfile.write(page)


class OAuthManager:
    """Runs the consent flow and owns the token file on disk.

    Attributes:
        credentials_path: OAuth client file to read.
        token_path: Token file to write.

    Example:
        ```python
        manager = OAuthManager()
        if manager.get_status() is TokenStatus.MISSING:
            await manager.authenticate()
        ```
    """

    def __init__(self, credentials_path: Path | None = None, token_path: Path | None = None) -> None:
        self.credentials_path = credentials_path or get_credentials_path()
        self.token_path = token_path or get_token_path()

    def has_credentials_file(self) -> bool:
        return self.credentials_path.exists()

    def has_token(self) -> bool:
        return self.token_path.exists()

    def get_status(self) -> TokenStatus:
        return get_token_status(self.token_path)

    def get_stored_token(self) -> StoredToken | None:
        """Load the token file, or None when it is missing or corrupt."""
        if self.get_status() in (TokenStatus.MISSING, TokenStatus.INVALID):
            return None
        return load_stored_token(self.token_path)

    def load_client_config(self) -> ClientConfig:
        """Load the OAuth client.

        Raises:
            ConfigurationMissing: If the credentials file is absent or invalid.
        """
        return load_client_config(self.credentials_path)

    async def authenticate(self, scopes: list[str] | None = None) -> Credentials:
        """Send the user through consent and persist the resulting token.

        Args:
            scopes: Scopes to request; the server's full set by default.

        Returns:
            The authorized google-auth credentials.

        Raises:
            ConfigurationMissing: If the credentials file is absent or invalid.
            RuntimeError: If consent is denied or no code reaches the callback.
        """
        client = self.load_client_config()
        redirect_uri = get_redirect_uri()

        loop = asyncio.get_running_loop()
        credentials = await loop.run_in_executor(
            None,
            self._run_oauth_flow,
            client.to_flow_config(redirect_uri),
            scopes or SCOPES,
            redirect_uri,
        )

        self.save_credentials(credentials)
        return credentials

    def save_credentials(self, credentials: Credentials) -> None:
        """Write credentials to the token file (0600, inside a 0700 directory)."""
        self.token_path.parent.mkdir(parents=True, mode=0o700, exist_ok=True)
        self.token_path.write_text(credentials.to_json())
        self.token_path.chmod(0o600)

    def _run_oauth_flow(self, client_config: dict, scopes: list[str], redirect_uri: str) -> Credentials:
        """Blocking part of the flow: browser, callback, code exchange.

        The callback server listens on the redirect URI's host and port and
        handles a single request.
        """
        flow = Flow.from_client_config(client_config, scopes=scopes, redirect_uri=redirect_uri)
        consent_url, _ = flow.authorization_url(
            access_type="offline",
            prompt="consent",
            state=secrets.token_urlsafe(32),
        )

        server = _CallbackServer(redirect_uri)
        try:
            print(f"Authorize Gmail access in your browser. If it does not open, visit:\n{consent_url}")
            webbrowser.open(consent_url)
            server.handle_request()
        finally:
            server.server_close()

        if server.error:
            raise RuntimeError(f"consent was not granted: {server.error}")
        if not server.code:
            raise RuntimeError("no authorization code reached the callback")

        flow.fetch_token(code=server.code)
        return flow.credentials
