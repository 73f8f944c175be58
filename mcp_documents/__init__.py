"""mcp-documents: document service client with CLI and MCP tools."""

__version__ = "0.1.0"
