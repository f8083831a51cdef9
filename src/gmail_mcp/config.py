"""Configuration for the Gmail MCP server.

All settings come from environment variables with fixed defaults. Values
are read when the accessor is called, not at import time, so a process
(or a test) can change them before the first tool call.

Environment Variables:
    GMAIL_CREDENTIALS_PATH: OAuth client file (default: ~/.gmail-mcp/credentials.json)
    GMAIL_TOKEN_PATH: OAuth token file (default: ~/.gmail-mcp/token.json)
    GMAIL_OAUTH_REDIRECT_URI: Consent flow callback
        (default: http://localhost:3000/oauth2callback)
    GMAIL_MCP_LOG_LEVEL: Log level name (default: INFO)
"""

import os
from pathlib import Path

SERVICE_NAME = "gmail-mcp"

CREDENTIALS_PATH_ENV = "GMAIL_CREDENTIALS_PATH"
TOKEN_PATH_ENV = "GMAIL_TOKEN_PATH"
REDIRECT_URI_ENV = "GMAIL_OAUTH_REDIRECT_URI"
LOG_LEVEL_ENV = "GMAIL_MCP_LOG_LEVEL"

CONFIG_DIR_NAME = ".gmail-mcp"
CREDENTIALS_FILE_NAME = "credentials.json"
TOKEN_FILE_NAME = "token.json"

DEFAULT_REDIRECT_URI = "http://localhost:3000/oauth2callback"
DEFAULT_LOG_LEVEL = "INFO"

# Gmail and Drive/Photos scopes
SCOPES = [
    "https://www.googleapis.com/auth/gmail.readonly",
    "https://www.googleapis.com/auth/gmail.send",
    "https://www.googleapis.com/auth/gmail.modify",
    "https://www.googleapis.com/auth/gmail.labels",
    "https://www.googleapis.com/auth/drive.readonly",
    "https://www.googleapis.com/auth/drive.photos.readonly",
    "https://www.googleapis.com/auth/drive.file",
]

# Google API base URLs
GMAIL_API_BASE = "https://gmail.googleapis.com/gmail/v1"
DRIVE_API_BASE = "https://www.googleapis.com/drive/v3"
TOKEN_URI = "https://oauth2.googleapis.com/token"
AUTH_URI = "https://accounts.google.com/o/oauth2/auth"


def get_config_dir() -> Path:
    """Get the per-user configuration directory (~/.gmail-mcp)."""
    return Path.home() / CONFIG_DIR_NAME


def get_credentials_path() -> Path:
    """Get the OAuth client credentials file path.

    Returns:
        Path from GMAIL_CREDENTIALS_PATH, or ~/.gmail-mcp/credentials.json.
    """
    override = os.environ.get(CREDENTIALS_PATH_ENV)
    if override:
        return Path(override).expanduser()
    return get_config_dir() / CREDENTIALS_FILE_NAME


def get_token_path() -> Path:
    """Get the OAuth token file path.

    Returns:
        Path from GMAIL_TOKEN_PATH, or ~/.gmail-mcp/token.json.
    """
    override = os.environ.get(TOKEN_PATH_ENV)
    if override:
        return Path(override).expanduser()
    return get_config_dir() / TOKEN_FILE_NAME


def get_redirect_uri() -> str:
    """Get the redirect URI used by the interactive consent flow."""
    return os.environ.get(REDIRECT_URI_ENV, DEFAULT_REDIRECT_URI)


def get_log_level() -> str:
    """Get the configured log level name, upper-cased."""
    return os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).upper()
