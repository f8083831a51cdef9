"""Gmail MCP server.

Exposes a Gmail mailbox (and Drive-backed Photos) as a catalog of
schema-described tools over the Model Context Protocol.
"""

from gmail_mcp.__version__ import __version__

__all__ = ["__version__"]
