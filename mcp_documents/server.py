"""
mcp-documents MCP Server

MCP delivery layer - wraps MCPHandlers as FastMCP tools.
Separation of concerns: this file only handles MCP protocol.
"""
import argparse
import logging
import os
from pathlib import Path
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP

from .container import Container
from .adapters.mcp import MCPHandlers
from .adapters.settings_file import get_default_settings_path

# Suppress INFO logs from the HTTP client
logging.getLogger("httpx").setLevel(logging.WARNING)

# Default download directory (can be overridden via env var or CLI arg)
DOWNLOAD_DIR = Path(os.getenv("DOWNLOAD_DIR", str(Path.home() / "Downloads" / "documents")))
SETTINGS_PATH = get_default_settings_path()

# Get port from env or default
HTTP_PORT = int(os.getenv("MCP_DOCUMENTS_HTTP_PORT", "6670"))
HTTP_HOST = os.getenv("MCP_DOCUMENTS_HTTP_HOST", "0.0.0.0")

# Initialize MCP server with HTTP config
mcp = FastMCP("mcp-documents", host=HTTP_HOST, port=HTTP_PORT)

_handlers: Optional[MCPHandlers] = None


def get_handlers() -> MCPHandlers:
    """Handlers over a container built on first use"""
    global _handlers
    if _handlers is None:
        _handlers = MCPHandlers(Container(settings_path=SETTINGS_PATH, download_dir=DOWNLOAD_DIR))
    return _handlers


@mcp.tool()
async def list_documents(
    pages: int = 1,
    per_page: int = 20,
    filters: Optional[dict[str, str]] = None
) -> dict:
    """
    List documents with facet counts for company, holder, year and type.

    Facets and filters are computed over the loaded pages.

    Args:
        pages: Number of pages to load (default: 1)
        per_page: Documents per page (default: 20)
        filters: One value per facet, keys: company, holder, year, docType

    Example:
        list_documents(pages=3, filters={"company": "Acme", "year": "2024"})
    """
    return await get_handlers().list_documents(pages=pages, per_page=per_page, filters=filters)


@mcp.tool()
async def get_document(document_id: str) -> dict:
    """
    Get a document's metadata, thumbnail URL and version history.

    Args:
        document_id: Document ID
    """
    return await get_handlers().get_document(document_id)


@mcp.tool()
async def search_documents(
    query: str,
    filters: Optional[dict[str, str]] = None,
    page: int = 1,
    size: int = 20
) -> dict:
    """
    Hybrid full-text search. Returns scored hits, highlights and facet buckets.

    Args:
        query: Search text
        filters: One value per facet, keys: companies, holders, documentTypes, taxTypes, years, fileTypes
        page: Page number (default: 1)
        size: Results per page (default: 20)

    Example:
        search_documents("renewal", filters={"companies": "Acme"})
    """
    return await get_handlers().search_documents(query=query, filters=filters, page=page, size=size)


@mcp.tool()
async def upload_document(
    file_path: str,
    metadata: Optional[dict[str, Any]] = None,
    mime_type: Optional[str] = None
) -> dict:
    """
    Upload a local file, renamed from its metadata.

    Args:
        file_path: Path to local file
        metadata: year, month, day, company, holder, documentType, purpose,
            accountNumber, taxType, wintonDisclosure, ustaxAccountClosing,
            ustaxOpening, notes
        mime_type: Override guessed MIME type

    Example:
        upload_document("/tmp/scan.jpg", {"year": "2024", "month": "3", "company": "Acme"})
        → uploaded as 202403_Acme.jpg
    """
    return await get_handlers().upload_document(file_path, metadata=metadata, mime_type=mime_type)


@mcp.tool()
async def update_document(document_id: str, metadata: dict[str, Any]) -> dict:
    """
    Save a document's metadata and rename it to match. Omitted fields are cleared.

    Args:
        document_id: Document ID
        metadata: Complete metadata (same keys as upload_document)
    """
    return await get_handlers().update_document(document_id, metadata=metadata)


@mcp.tool()
async def delete_document(document_id: str) -> dict:
    """
    Delete a document.

    Args:
        document_id: Document ID
    """
    return await get_handlers().delete_document(document_id)


@mcp.tool()
async def download_document(document_id: str, dest_dir: Optional[str] = None) -> dict:
    """
    Download a document to disk, return path.

    Args:
        document_id: Document ID
        dest_dir: Target directory (default: DOWNLOAD_DIR)

    Then: Read(result["path"])
    """
    return await get_handlers().download_document(document_id, dest_dir=dest_dir)


@mcp.tool()
async def preview_filename(
    filename: Optional[str] = None,
    metadata: Optional[dict[str, Any]] = None,
    document_id: Optional[str] = None
) -> dict:
    """
    Show the filename metadata would produce, without saving.

    Args:
        filename: Original filename of a file to upload
        metadata: Metadata fields (same keys as upload_document)
        document_id: Existing document to rename instead
    """
    return await get_handlers().preview_filename(filename=filename, metadata=metadata, document_id=document_id)


@mcp.tool()
async def list_metadata_options(match: Optional[str] = None) -> dict:
    """
    List known companies, holders and document types with document counts.

    Args:
        match: Only names containing this text, case-insensitive (autocomplete)
    """
    return await get_handlers().list_metadata_options(match=match)


@mcp.tool()
async def check_status() -> dict:
    """
    Check the connection to the document service.
    """
    return await get_handlers().check_status()


def main():
    """Main entry point for the MCP server."""
    global DOWNLOAD_DIR, SETTINGS_PATH

    parser = argparse.ArgumentParser(
        description="mcp-documents: document archive MCP."
    )
    parser.add_argument(
        "--transport",
        default="stdio",
        choices=["stdio", "streamable-http"],
        help="Transport method (default: stdio)"
    )
    parser.add_argument(
        "--download-dir",
        default=None,
        help=f"Download directory (default: {DOWNLOAD_DIR}, or set DOWNLOAD_DIR env var)"
    )
    parser.add_argument(
        "--settings-path",
        default=None,
        help=f"Settings file (default: {SETTINGS_PATH}, or set DOCUMENTS_SETTINGS_PATH env var)"
    )
    args = parser.parse_args()

    if args.download_dir:
        DOWNLOAD_DIR = Path(args.download_dir)
    if args.settings_path:
        SETTINGS_PATH = Path(args.settings_path)

    # Run the server
    if args.transport == "streamable-http":
        print(f"Starting mcp-documents on http://{HTTP_HOST}:{HTTP_PORT}")
        print(f"Download directory: {DOWNLOAD_DIR}")
        mcp.run(transport="streamable-http")
    else:
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
