"""MCP server wiring for Gmail."""

from gmail_mcp.server.dispatcher import ToolDispatcher
from gmail_mcp.server.gmail_server import GmailServer, main

__all__ = ["GmailServer", "ToolDispatcher", "main"]
