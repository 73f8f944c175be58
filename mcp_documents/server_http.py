#!/usr/bin/env python3
"""
MCP HTTP/SSE Server - Hexagonal Architecture

Clean HTTP/SSE server using dependency injection and hexagonal architecture.

Run with: uvicorn mcp_documents.server_http:app --host 127.0.0.1 --port 5003

Configuration:
- PORT: Server port (default: 5003)
- DOWNLOAD_DIR: Where downloads are written (default: ~/Downloads/documents)
- DOCUMENTS_SETTINGS_PATH: Settings file (default: ~/.config/mcp-documents/settings.json)
"""

import json
import logging
import os
import signal
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from mcp.server import Server
from mcp.server.sse import SseServerTransport
from mcp.types import TextContent, Tool
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Mount, Route

from .container import Container
from .adapters.mcp import TOOL_SCHEMAS, MCPHandlers
from .adapters.settings_file import get_default_settings_path
from .formatters import (
    format_delete,
    format_document,
    format_download,
    format_list_documents,
    format_options,
    format_preview,
    format_saved,
    format_search,
    format_status,
)

# Configure logging with millisecond precision
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] %(message)s",
    datefmt="%Y/%m/%d %H:%M:%S"
)


class MillisecondFormatter(logging.Formatter):
    """Custom formatter with milliseconds as :XXXX format"""
    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: N802
        """Override formatTime to include milliseconds with : separator"""
        ct = datetime.fromtimestamp(record.created, tz=timezone.utc)
        if datefmt:
            s = ct.strftime(datefmt)
            ms = int((record.created % 1) * 10000)
            return f"{s}:{ms:04d}"
        return super().formatTime(record, datefmt)


# Apply custom formatter to root logger
for handler in logging.root.handlers:
    handler.setFormatter(MillisecondFormatter(
        "[%(asctime)s] [%(levelname)s] %(message)s",
        datefmt="%Y/%m/%d %H:%M:%S"
    ))

logger = logging.getLogger(__name__)

# Configuration
DEFAULT_PORT = 5003
DEFAULT_DOWNLOAD_DIR = str(Path.home() / "Downloads" / "documents")


def get_port() -> int:
    """Get server port from environment or use default"""
    port_str = os.environ.get("PORT", str(DEFAULT_PORT))
    try:
        return int(port_str)
    except ValueError:
        msg = f"Invalid PORT value: {port_str}"
        raise ValueError(msg) from None


def get_download_dir() -> Path:
    """Get download directory from environment or use default"""
    return Path(os.environ.get("DOWNLOAD_DIR", DEFAULT_DOWNLOAD_DIR))


# Initialize dependency injection container
container = Container(
    settings_path=get_default_settings_path(),
    download_dir=get_download_dir()
)

# Initialize MCP handlers
handlers = MCPHandlers(container)

# MCP Server instance
mcp_server = Server("mcp-documents")

# SSE transport for multi-client support
sse_transport = SseServerTransport("/messages")

FORMATTERS = {
    "list_documents": format_list_documents,
    "get_document": format_document,
    "search_documents": format_search,
    "upload_document": lambda result: format_saved(result, action="UPLOADED"),
    "update_document": lambda result: format_saved(result, action="SAVED"),
    "delete_document": format_delete,
    "download_document": format_download,
    "preview_filename": format_preview,
    "list_metadata_options": format_options,
    "check_status": format_status,
}


@mcp_server.list_tools()  # type: ignore[misc,no-untyped-call]
async def list_tools() -> list[Tool]:
    """List available MCP tools"""
    return [Tool(**schema) for schema in TOOL_SCHEMAS.values()]


@mcp_server.call_tool()  # type: ignore[misc,no-untyped-call]
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls"""
    logger.info(f"call_tool: {name} args={arguments}")

    try:
        result = await _dispatch_tool(name, arguments)
    except Exception as e:
        logger.error(f"call_tool: {name} FAILED: {e}")
        raise

    formatter = FORMATTERS.get(name)
    if formatter:
        formatted_text = formatter(result)
    else:
        formatted_text = json.dumps(result, indent=2)

    logger.info(f"call_tool: {name} returning {len(formatted_text)} chars")
    return [TextContent(type="text", text=formatted_text)]


async def _dispatch_tool(name: str, arguments: dict[str, Any]) -> Any:
    """Dispatch tool call to appropriate handler"""
    if name == "list_documents":
        return await handlers.list_documents(
            pages=arguments.get("pages", 1),
            per_page=arguments.get("per_page", 20),
            filters=arguments.get("filters")
        )

    elif name == "get_document":
        return await handlers.get_document(arguments["document_id"])

    elif name == "search_documents":
        return await handlers.search_documents(
            query=arguments["query"],
            filters=arguments.get("filters"),
            page=arguments.get("page", 1),
            size=arguments.get("size", 20)
        )

    elif name == "upload_document":
        return await handlers.upload_document(
            file_path=arguments["file_path"],
            metadata=arguments.get("metadata"),
            mime_type=arguments.get("mime_type")
        )

    elif name == "update_document":
        return await handlers.update_document(
            document_id=arguments["document_id"],
            metadata=arguments.get("metadata")
        )

    elif name == "delete_document":
        return await handlers.delete_document(arguments["document_id"])

    elif name == "download_document":
        return await handlers.download_document(
            arguments["document_id"],
            dest_dir=arguments.get("dest_dir")
        )

    elif name == "preview_filename":
        return await handlers.preview_filename(
            filename=arguments.get("filename"),
            metadata=arguments.get("metadata"),
            document_id=arguments.get("document_id")
        )

    elif name == "list_metadata_options":
        return await handlers.list_metadata_options(match=arguments.get("match"))

    elif name == "check_status":
        return await handlers.check_status()

    else:
        raise ValueError(f"Unknown tool: {name}")


# HTTP routes
async def handle_ping(request: Request) -> Response:
    """Health check endpoint"""
    return JSONResponse({"status": "ok"})


async def handle_sse(request: Request) -> Response:
    """SSE endpoint for MCP communication"""
    client_addr = request.client.host if request.client else "unknown"
    logger.info(f"SSE connect from {client_addr}")
    async with sse_transport.connect_sse(
        request.scope, request.receive, request._send
    ) as streams:
        logger.info(f"SSE session started for {client_addr}")
        await mcp_server.run(
            streams[0], streams[1], mcp_server.create_initialization_options()
        )
        logger.info(f"SSE disconnect from {client_addr}")
    return Response()


routes = [
    Route("/ping", handle_ping),
    Route("/sse", handle_sse),
    Mount("/messages", app=sse_transport.handle_post_message),
]

app = Starlette(debug=True, routes=routes)


# Graceful shutdown on SIGTERM
def handle_sigterm(signum, frame):
    logger.info("Received SIGTERM, shutting down gracefully...")
    container.gateway.close()
    sys.exit(0)


signal.signal(signal.SIGTERM, handle_sigterm)


def main():
    import uvicorn
    port = get_port()
    logger.info(f"Starting MCP HTTP server on port {port}")
    uvicorn.run(app, host="127.0.0.1", port=port)


if __name__ == "__main__":
    main()
