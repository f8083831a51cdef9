"""Tool arguments, handlers and the catalog that binds them to wire names."""

from gmail_mcp.tools.catalog import CATALOG, ToolCatalog, ToolDefinition, get_tool, list_tools

__all__ = ["CATALOG", "ToolCatalog", "ToolDefinition", "get_tool", "list_tools"]
