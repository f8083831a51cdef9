"""OAuth credentials and the authenticated session for the Gmail MCP server.

Quick Start:
    ```python
    from gmail_mcp.auth import SessionManager

    sessions = SessionManager()
    session = await sessions.ensure_session()
    profile = await session.request("GET", f"{GMAIL_API_BASE}/users/me/profile")
    ```
"""

from gmail_mcp.auth.models import ClientConfig, StoredToken, TokenStatus
from gmail_mcp.auth.oauth_manager import OAuthManager
from gmail_mcp.auth.session import (
    GmailSession,
    SessionManager,
    get_token_status,
    load_client_config,
    load_stored_token,
)

__all__ = [
    "ClientConfig",
    "GmailSession",
    "OAuthManager",
    "SessionManager",
    "StoredToken",
    "TokenStatus",
    "get_token_status",
    "load_client_config",
    "load_stored_token",
]
