#!/usr/bin/env python3
"""
CLI for mcp-documents - test tools without MCP restart

Usage:
  mcp-documents-cli list-tools                          # Show MCP tool definitions
  mcp-documents-cli list                                # First page of documents + facets
  mcp-documents-cli list --pages 3 --filter year=2024   # Load 3 pages, filter locally
  mcp-documents-cli show ID                             # Document detail + versions
  mcp-documents-cli search "renewal" --filter companies=Acme
  mcp-documents-cli upload scan.jpg --field year=2024 --field company=Acme
  mcp-documents-cli edit ID --field documentType=Invoice [--dry-run]
  mcp-documents-cli download ID [--dest DIR]
  mcp-documents-cli delete ID
  mcp-documents-cli preview-name scan.jpg --field year=2024
  mcp-documents-cli options                             # Known companies/holders/types
  mcp-documents-cli options --match acm                 # Autocomplete suggestions
  mcp-documents-cli status                              # Check connection
  mcp-documents-cli settings show
  mcp-documents-cli settings set api_base_url http://nas:3000

Fast iteration: Uses hexagonal core directly (no MCP layer)
"""

import argparse
import asyncio
import json
import os
import sys
import traceback
from pathlib import Path
from typing import Any, Optional

from .container import Container
from .adapters.mcp import TOOL_SCHEMAS, MCPHandlers
from .adapters.settings_file import get_default_settings_path
from .core.domain import API_FIELD_NAMES, MetadataFields, ThemeMode
from .formatters import (
    format_delete,
    format_document,
    format_download,
    format_list_documents,
    format_options,
    format_preview,
    format_saved,
    format_search,
    format_settings,
    format_status,
)

FLAG_FIELDS = {name for name, value in vars(MetadataFields()).items() if isinstance(value, bool)}
TRUE_VALUES = {"1", "true", "yes", "y", "on"}

SETTINGS_KEYS = ["api_base_url", "tenant_id", "api_key", "theme_mode", "speech_pause_duration_ms"]


def get_default_download_dir() -> str:
    """Get download directory from env or use fallback"""
    return os.environ.get("DOWNLOAD_DIR", str(Path.home() / "Downloads" / "documents"))


def parse_pairs(pairs: Optional[list[str]]) -> dict[str, str]:
    """KEY=VALUE arguments as a dict"""
    result = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected KEY=VALUE, got {pair!r}")
        result[key.strip()] = value
    return result


def parse_fields(pairs: Optional[list[str]]) -> dict[str, Any]:
    """--field arguments keyed by MetadataFields attribute.

    Accepts API names (documentType) or attribute names (document_type).
    """
    result: dict[str, Any] = {}
    for key, value in parse_pairs(pairs).items():
        name = API_FIELD_NAMES.get(key, key)
        if name not in API_FIELD_NAMES.values():
            raise ValueError(f"Unknown metadata field: {key}")
        if name in FLAG_FIELDS:
            result[name] = value.strip().lower() in TRUE_VALUES
        else:
            result[name] = value
    return result


def _api_metadata(fields: dict[str, Any]) -> dict[str, Any]:
    by_attr = {attr: api for api, attr in API_FIELD_NAMES.items()}
    return {by_attr[name]: value for name, value in fields.items()}


def _make_container(args: argparse.Namespace) -> Container:
    return Container(
        settings_path=args.settings_path,
        download_dir=args.download_dir,
        api_base_url=args.api_url
    )


def _report(output: str, success: bool) -> int:
    print(output)
    return 0 if success else 1


async def list_tools_command() -> int:
    """Show MCP tool definitions"""
    print("=" * 80)
    print("MCP TOOL DEFINITIONS")
    print("=" * 80)
    print()

    for tool_name, tool_schema in TOOL_SCHEMAS.items():
        print(f"Tool: {tool_schema['name']}")
        print(f"Claude sees: mcp__documents__{tool_schema['name']}")
        print()
        print("Description:")
        print(tool_schema['description'])
        print()
        print("Input Schema:")
        print(json.dumps(tool_schema['inputSchema'], indent=2))
        print()
        print("-" * 80)
        print()

    return 0


async def list_command(args: argparse.Namespace) -> int:
    """List documents with facets"""
    try:
        handlers = MCPHandlers(_make_container(args))
        result = await handlers.list_documents(
            pages=args.pages,
            per_page=args.per_page,
            filters=parse_pairs(args.filter)
        )
        return _report(format_list_documents(result), result["success"])
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        traceback.print_exc()
        return 1


async def show_command(args: argparse.Namespace) -> int:
    """Show one document"""
    try:
        handlers = MCPHandlers(_make_container(args))
        result = await handlers.get_document(args.document_id)
        return _report(format_document(result), result["success"])
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        traceback.print_exc()
        return 1


async def search_command(args: argparse.Namespace) -> int:
    """Search documents"""
    try:
        handlers = MCPHandlers(_make_container(args))
        result = await handlers.search_documents(
            query=args.query,
            filters=parse_pairs(args.filter),
            page=args.page,
            size=args.size
        )
        return _report(format_search(result), result["success"])
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        traceback.print_exc()
        return 1


async def upload_command(args: argparse.Namespace) -> int:
    """Upload a file, renamed from its metadata"""
    try:
        container = _make_container(args)
        session = container.upload_session()

        await asyncio.to_thread(session.load_options)
        session.select_file(args.file_path, mime_type=args.mime_type)
        for name, value in parse_fields(args.field).items():
            session.set_field(name, value)

        original = session.state.filename
        filename = session.preview_filename()
        if args.dry_run:
            print(format_preview({
                "success": True,
                "original": original,
                "filename": filename,
                "changed": filename != original,
            }))
            return 0

        state = await asyncio.to_thread(session.upload)
        if not state.upload_success:
            return _report(f"ERROR: {state.error}", False)

        return _report(format_saved({
            "success": True,
            "filename": filename,
            "document": {"id": state.uploaded.id, "size_bytes": state.uploaded.size},
        }, action="UPLOADED"), True)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        traceback.print_exc()
        return 1


async def edit_command(args: argparse.Namespace) -> int:
    """Change some metadata fields of a document and rename it to match"""
    try:
        container = _make_container(args)
        session = container.document_detail_session()

        await asyncio.to_thread(session.load_options)
        state = await asyncio.to_thread(session.load, args.document_id)
        if state.error:
            return _report(f"ERROR: {state.error}", False)

        session.start_editing()
        for name, value in parse_fields(args.field).items():
            session.set_field(name, value)

        original = state.document.display_name
        filename = session.preview_filename()
        if args.dry_run:
            print(format_preview({
                "success": True,
                "original": original,
                "filename": filename,
                "changed": filename != original,
            }))
            return 0

        state = await asyncio.to_thread(session.save)
        if state.error:
            return _report(f"ERROR: {state.error}", False)

        return _report(format_saved({
            "success": True,
            "filename": filename,
            "document": {"id": state.document.id, "size_bytes": state.document.size},
        }, action="SAVED"), True)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        traceback.print_exc()
        return 1


async def download_command(args: argparse.Namespace) -> int:
    try:
        handlers = MCPHandlers(_make_container(args))
        result = await handlers.download_document(args.document_id, dest_dir=args.dest)
        return _report(format_download(result), result["success"])
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        traceback.print_exc()
        return 1


async def delete_command(args: argparse.Namespace) -> int:
    try:
        handlers = MCPHandlers(_make_container(args))
        result = await handlers.delete_document(args.document_id)
        return _report(format_delete(result), result["success"])
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        traceback.print_exc()
        return 1


async def preview_name_command(args: argparse.Namespace) -> int:
    """Show the filename metadata would produce"""
    try:
        handlers = MCPHandlers(_make_container(args))
        result = await handlers.preview_filename(
            filename=args.filename,
            metadata=_api_metadata(parse_fields(args.field)),
            document_id=args.document_id
        )
        return _report(format_preview(result), result["success"])
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        traceback.print_exc()
        return 1


async def options_command(args: argparse.Namespace) -> int:
    try:
        handlers = MCPHandlers(_make_container(args))
        result = await handlers.list_metadata_options(match=args.match)
        return _report(format_options(result), result["success"])
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        traceback.print_exc()
        return 1


async def status_command(args: argparse.Namespace) -> int:
    try:
        handlers = MCPHandlers(_make_container(args))
        result = await handlers.check_status()
        return _report(format_status(result), result["success"])
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        traceback.print_exc()
        return 1


async def settings_command(args: argparse.Namespace) -> int:
    """Show or change persisted settings"""
    try:
        session = _make_container(args).settings_session()

        if args.settings_action == "set":
            key, value = args.key, args.value
            if key == "api_base_url":
                session.set_api_base_url(value)
            elif key == "tenant_id":
                session.set_tenant_id(value)
            elif key == "api_key":
                session.set_api_key(value)
            elif key == "theme_mode":
                session.set_theme_mode(ThemeMode.from_string(value.upper()))
            elif key == "speech_pause_duration_ms":
                session.set_speech_pause_duration(int(value))

        settings = session.state.settings
        print(format_settings({
            "api_base_url": settings.api_base_url,
            "tenant_id": settings.tenant_id,
            "api_key": settings.api_key,
            "theme_mode": settings.theme_mode.display_name,
            "speech_pause_duration_ms": settings.speech_pause_duration_ms,
        }))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        traceback.print_exc()
        return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="mcp-documents CLI - Test MCP tools without server restart"
    )
    parser.add_argument(
        "--settings-path",
        default=str(get_default_settings_path()),
        help="Settings file (default: $DOCUMENTS_SETTINGS_PATH or ~/.config/mcp-documents/settings.json)"
    )
    parser.add_argument(
        "--download-dir",
        default=get_default_download_dir(),
        help="Download directory (default: $DOWNLOAD_DIR or ~/Downloads/documents)"
    )
    parser.add_argument("--api-url", help="Override the saved API base URL for this run")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # list-tools command
    subparsers.add_parser("list-tools", help="Show MCP tool definitions")

    # list command
    list_parser = subparsers.add_parser("list", help="List documents with facets")
    list_parser.add_argument("--pages", type=int, default=1, help="Pages to load (default: 1)")
    list_parser.add_argument("--per-page", type=int, default=20, help="Documents per page (default: 20)")
    list_parser.add_argument("--filter", action="append", metavar="GROUP=VALUE",
                             help="Facet filter: company, holder, year, docType (repeatable)")

    # show command
    show_parser = subparsers.add_parser("show", help="Show document detail")
    show_parser.add_argument("document_id", help="Document ID")

    # search command
    search_parser = subparsers.add_parser("search", help="Search documents")
    search_parser.add_argument("query", help="Search text")
    search_parser.add_argument("--filter", action="append", metavar="GROUP=VALUE",
                               help="Facet filter: companies, holders, documentTypes, taxTypes, years, fileTypes")
    search_parser.add_argument("--page", type=int, default=1, help="Page (default: 1)")
    search_parser.add_argument("--size", type=int, default=20, help="Results per page (default: 20)")

    # upload command
    upload_parser = subparsers.add_parser("upload", help="Upload a file")
    upload_parser.add_argument("file_path", help="Path to local file")
    upload_parser.add_argument("--field", action="append", metavar="NAME=VALUE",
                               help="Metadata field, e.g. year=2024 or wintonDisclosure=true (repeatable)")
    upload_parser.add_argument("--mime-type", help="Override guessed MIME type")
    upload_parser.add_argument("--dry-run", action="store_true", help="Only show the composed filename")

    # edit command
    edit_parser = subparsers.add_parser("edit", help="Edit metadata and rename")
    edit_parser.add_argument("document_id", help="Document ID")
    edit_parser.add_argument("--field", action="append", metavar="NAME=VALUE",
                             help="Metadata field to change (repeatable); others are kept")
    edit_parser.add_argument("--dry-run", action="store_true", help="Only show the composed filename")

    # download command
    download_parser = subparsers.add_parser("download", help="Download a document")
    download_parser.add_argument("document_id", help="Document ID")
    download_parser.add_argument("--dest", help="Target directory (default: --download-dir)")

    # delete command
    delete_parser = subparsers.add_parser("delete", help="Delete a document")
    delete_parser.add_argument("document_id", help="Document ID")

    # preview-name command
    preview_parser = subparsers.add_parser("preview-name", help="Preview a composed filename")
    preview_parser.add_argument("filename", nargs="?", help="Original filename (upload)")
    preview_parser.add_argument("--id", dest="document_id", help="Existing document (edit)")
    preview_parser.add_argument("--field", action="append", metavar="NAME=VALUE",
                                help="Metadata field (repeatable)")

    # options command
    options_parser = subparsers.add_parser("options", help="List known companies, holders and document types")
    options_parser.add_argument("--match", help="Only names containing this text")

    # status command
    subparsers.add_parser("status", help="Check API connection")

    # settings command
    settings_parser = subparsers.add_parser("settings", help="Show or change settings")
    settings_sub = settings_parser.add_subparsers(dest="settings_action")
    settings_sub.add_parser("show", help="Show current settings")
    set_parser = settings_sub.add_parser("set", help="Change one setting")
    set_parser.add_argument("key", choices=SETTINGS_KEYS)
    set_parser.add_argument("value")

    return parser


COMMANDS = {
    "list": list_command,
    "show": show_command,
    "search": search_command,
    "upload": upload_command,
    "edit": edit_command,
    "download": download_command,
    "delete": delete_command,
    "preview-name": preview_name_command,
    "options": options_command,
    "status": status_command,
    "settings": settings_command,
}


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Run command
    if args.command == "list-tools":
        return asyncio.run(list_tools_command())
    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 1
    return asyncio.run(command(args))


if __name__ == "__main__":
    sys.exit(main())
