"""Command-line interface for gmail-mcp."""

import asyncio
import importlib
import sys

import click

from gmail_mcp.__version__ import __version__
from gmail_mcp.auth.session import CREDENTIALS_HINT

# (import name, distribution name) of the runtime stack
RUNTIME_MODULES = [
    ("mcp", "mcp"),
    ("httpx", "httpx"),
    ("google.auth", "google-auth"),
    ("google_auth_oauthlib", "google-auth-oauthlib"),
    ("pydantic", "pydantic"),
]

OK = "✓"
FAIL = "❌"
WARN = "⚠️ "


def _line(mark: str, text: str) -> None:
    click.echo(f"  {mark} {text}")


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """Gmail MCP Server - Connect Claude to Gmail.

    Provides tools for:
    - Gmail (list, search, read, send, reply, forward, drafts, labels, attachments)
    - Bulk mail maintenance (batch modify/delete, trash by query, unsubscribe links)
    - Photos (albums and media, via Google Drive)
    """


@main.command()
def setup() -> None:
    """Authorize Gmail access and write the token file.

    Reads the OAuth client from ~/.gmail-mcp/credentials.json (or
    GMAIL_CREDENTIALS_PATH), opens the Google consent page and stores the
    token at ~/.gmail-mcp/token.json (or GMAIL_TOKEN_PATH).
    """
    from gmail_mcp.auth import OAuthManager
    from gmail_mcp.exceptions import ConfigurationMissing

    manager = OAuthManager()

    if not manager.has_credentials_file():
        click.echo(f"{FAIL} No OAuth client file at {manager.credentials_path}")
        click.echo(CREDENTIALS_HINT.format(path=manager.credentials_path))
        sys.exit(1)

    if manager.has_token() and not click.confirm(
        f"A token already exists at {manager.token_path}. Replace it?"
    ):
        click.echo("Keeping the existing token.")
        return

    click.echo("Opening the Google consent page in your browser...")

    try:
        asyncio.run(manager.authenticate())
    except ConfigurationMissing as e:
        click.echo(f"{FAIL} {e}")
        sys.exit(1)
    except Exception as e:
        click.echo(f"{FAIL} Authorization failed: {e}")
        sys.exit(1)

    click.echo(f"{OK} Gmail access authorized. Token written to {manager.token_path}")
    click.echo("Next: run 'gmail-mcp doctor' to check the installation.")


@main.command()
def mcp() -> None:
    """Start the MCP server on stdio.

    Claude Desktop runs this command. The token must already exist;
    run 'gmail-mcp setup' first.
    """
    from gmail_mcp.auth import OAuthManager, TokenStatus
    from gmail_mcp.server import main as server_main

    status = OAuthManager().get_status()
    problems = {
        TokenStatus.MISSING: "No token found.",
        TokenStatus.INVALID: "The token file cannot be read.",
    }
    if status in problems:
        click.echo(f"{FAIL} {problems[status]} Run 'gmail-mcp setup' first.", err=True)
        sys.exit(1)

    # stdout carries the protocol; status goes to stderr
    click.echo("gmail-mcp server starting on stdio", err=True)
    try:
        server_main()
    except KeyboardInterrupt:
        click.echo("gmail-mcp server stopped", err=True)
    except Exception as e:
        click.echo(f"{FAIL} Server error: {e}", err=True)
        sys.exit(1)


@main.command()
def doctor() -> None:
    """Report what is installed and configured.

    Checks the runtime libraries, the OAuth client file and the token file.
    Exits non-zero when the server could not start.
    """
    from gmail_mcp.auth import OAuthManager, TokenStatus

    ready = True

    click.echo("Libraries")
    for module, distribution in RUNTIME_MODULES:
        try:
            importlib.import_module(module)
            _line(OK, distribution)
        except ImportError as e:
            _line(FAIL, f"{distribution}: {e}")
            ready = False

    manager = OAuthManager()

    click.echo("OAuth client")
    if manager.has_credentials_file():
        _line(OK, str(manager.credentials_path))
    else:
        _line(FAIL, f"{manager.credentials_path} does not exist")
        ready = False

    click.echo("Token")
    status = manager.get_status()
    if status == TokenStatus.VALID:
        _line(OK, f"{manager.token_path} is valid")
    elif status == TokenStatus.EXPIRED:
        _line(WARN, f"{manager.token_path} has expired; it is refreshed on first use")
    elif status == TokenStatus.INVALID:
        _line(FAIL, f"{manager.token_path} cannot be read")
        ready = False
    else:
        _line(FAIL, f"{manager.token_path} does not exist")
        ready = False

    stored = manager.get_stored_token()
    if stored:
        if stored.expires_at:
            _line("-", f"expires {stored.expires_at:%Y-%m-%d %H:%M:%S} UTC")
        _line("-", f"{len(stored.scopes)} scopes granted")
        _line("-", "refresh token " + ("present" if stored.refresh_token else "missing"))

    if not ready:
        click.echo("Not ready. Run 'gmail-mcp setup'.")
        sys.exit(1)
    click.echo("Ready.")


if __name__ == "__main__":
    main()
