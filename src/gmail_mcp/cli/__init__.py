"""Command-line interface for gmail-mcp."""
