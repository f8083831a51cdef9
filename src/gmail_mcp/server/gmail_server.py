"""Gmail MCP server for Claude Desktop integration.

This MCP server exposes Gmail (and the photo library
kept in Google Drive) as tools over the stdio transport. Credentials are
the OAuth client file and token file written by ``gmail-mcp setup``; the
session is built on the first tool call and reused until shutdown.
"""

import asyncio
import logging
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import CallToolResult, Tool

from gmail_mcp.auth.session import SessionManager
from gmail_mcp.config import SERVICE_NAME, get_log_level
from gmail_mcp.server.dispatcher import ToolDispatcher
from gmail_mcp.tools.catalog import CATALOG, ToolCatalog

# Configure logging (stderr; stdout carries the protocol)
logging.basicConfig(level=get_log_level())
logger = logging.getLogger(__name__)


class GmailServer:
    """MCP server for the Gmail and Drive APIs.

    Attributes:
        server: MCP Server instance.
        sessions: Session manager, created once and shared by every call.
        catalog: Tools advertised to the client.
        dispatcher: Routes calls to handlers and wraps the results.
    """

    def __init__(
        self,
        sessions: SessionManager | None = None,
        catalog: ToolCatalog | None = None,
    ) -> None:
        """Initialize the Gmail MCP server."""
        self.server = Server(SERVICE_NAME)
        self.sessions = sessions or SessionManager()
        self.catalog = catalog or CATALOG
        self.dispatcher = ToolDispatcher(self.sessions, self.catalog)
        self._setup_handlers()

    def _setup_handlers(self) -> None:
        """Register MCP tool handlers."""

        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            """Return list of available tools."""
            return self.catalog.list_tools()

        # Arguments are validated by the dispatcher
        @self.server.call_tool(validate_input=False)
        async def call_tool(name: str, arguments: dict[str, Any]) -> CallToolResult:
            """Handle tool calls."""
            return await self.dispatcher.handle(name, arguments)

    async def close(self) -> None:
        """Release the session and its HTTP client."""
        await self.sessions.close()

    async def run(self) -> None:
        """Run the MCP server using stdio transport."""
        logger.info("Starting %s with %d tools", SERVICE_NAME, len(self.catalog))
        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    self.server.create_initialization_options(),
                )
        finally:
            await self.close()


def main() -> None:
    """Entry point for the Gmail MCP server."""
    server = GmailServer()
    asyncio.run(server.run())


if __name__ == "__main__":
    main()
