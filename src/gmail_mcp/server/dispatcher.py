"""Tool dispatcher: the single boundary between the protocol and the handlers.

Every call follows the same path: ensure the session, look up the tool,
validate the arguments into the typed payload, run the handler, wrap the
result. Any failure along the way becomes an error envelope; nothing
propagates to the transport.
"""

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any

from mcp.types import CallToolResult, TextContent

from gmail_mcp.auth.session import SessionManager
from gmail_mcp.exceptions import GmailMCPError
from gmail_mcp.tools.catalog import CATALOG, ToolCatalog

logger = logging.getLogger(__name__)

ERROR_PREFIX = "Error: "


def success_envelope(result: Any) -> CallToolResult:
    return CallToolResult(
        content=[TextContent(type="text", text=json.dumps(result, indent=2))],
        isError=False,
    )


def error_envelope(message: str) -> CallToolResult:
    return CallToolResult(
        content=[TextContent(type="text", text=f"{ERROR_PREFIX}{message}")],
        isError=True,
    )


class ToolDispatcher:
    """Routes tool calls to handlers, one call at a time.

    Attributes:
        sessions: Session manager shared by every call.
        catalog: Tools that can be called.
    """

    def __init__(self, sessions: SessionManager, catalog: ToolCatalog | None = None) -> None:
        self.sessions = sessions
        self.catalog = catalog or CATALOG
        self._call_lock = asyncio.Lock()

    async def handle(self, name: str, arguments: Mapping[str, Any] | None) -> CallToolResult:
        """Run one tool call and wrap the outcome.

        Args:
            name: Tool wire name.
            arguments: Raw argument bag from the client.

        Returns:
            Success envelope with the JSON result, or error envelope with
            ``Error: <message>``.
        """
        async with self._call_lock:
            try:
                result = await self._invoke(name, arguments)
                return success_envelope(result)
            except GmailMCPError as e:
                logger.warning("Tool %s failed: %s", name, e)
                return error_envelope(str(e))
            except Exception as e:
                logger.exception(f"Error calling tool {name}")
                return error_envelope(str(e) or type(e).__name__)

    async def _invoke(self, name: str, arguments: Mapping[str, Any] | None) -> Any:
        session = await self.sessions.ensure_session()
        tool = self.catalog.get_tool(name)
        payload = tool.parse(arguments)
        return await tool.handler(session, payload)
