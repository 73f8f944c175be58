"""
BBG Lite formatters for MCP tool results

Format handler results as Bloomberg Terminal-inspired text output.
Used by both CLI and MCP adapters for consistent presentation.
"""

from typing import Any, Optional


def format_file_size(size_bytes: Optional[int]) -> str:
    """Human-readable size: 512 B, 12 KB, 3.4 MB, 1.25 GB"""
    if size_bytes is None:
        return "N/A"
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024 * 1024:
        return f"{size_bytes // 1024} KB"
    if size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    return f"{size_bytes / (1024 * 1024 * 1024):.2f} GB"


def format_date(iso_date: Optional[str]) -> str:
    """Date part of an ISO timestamp"""
    if not iso_date:
        return "N/A"
    return iso_date.split("T", 1)[0]


def _truncate(text: Optional[str], width: int) -> str:
    text = text or ""
    if len(text) > width:
        return text[:width - 3] + "..."
    return text


def _facet_lines(facets: list[dict[str, Any]]) -> list[str]:
    lines = []
    for group in facets:
        parts = []
        for bucket in group['buckets'][:8]:
            marker = "*" if bucket['key'] == group.get('selected') else ""
            parts.append(f"{marker}{bucket['label']} ({bucket['count']})")
        more = len(group['buckets']) - 8
        if more > 0:
            parts.append(f"+{more} more")
        lines.append(f"{group['label'].upper():<10}  " + " | ".join(parts))
    return lines


def _filter_line(active: dict[str, str]) -> Optional[str]:
    if not active:
        return None
    return "FILTERS: " + ", ".join(f"{key}={value}" for key, value in active.items())


def format_list_documents(result: dict[str, Any]) -> str:
    """Format list_documents result as BBG Lite text.

    Example output:
        DOCUMENTS | page 1 of 4 | 80 total

        FILTERS: company=Acme

        COMPANY     *Acme (12) | Globex (3)
        YEAR        2024 (9) | 2023 (6)
        ──────────────────────────────────────────────────────────────────────
        ID          FILENAME                               SIZE      DATE
        ──────────────────────────────────────────────────────────────────────
        a1b2c3d4    20240305_Acme_Invoice.pdf              120 KB    2024-03-05

        Showing 12 of 20 loaded documents
    """
    if not result.get("success"):
        return f"ERROR: {result.get('error', 'Unknown error')}"

    lines = []

    header = f"DOCUMENTS | page {result['page']}"
    if result.get('pages'):
        header += f" of {result['pages']}"
    if result.get('total') is not None:
        header += f" | {result['total']} total"
    lines.append(header)
    lines.append("")

    filter_line = _filter_line(result.get('active_filters', {}))
    if filter_line:
        lines.append(filter_line)
        lines.append("")

    if result.get('facets'):
        lines.extend(_facet_lines(result['facets']))

    lines.append("─" * 70)
    lines.append(f"{'ID':<10}  {'FILENAME':<37}  {'SIZE':<8}  DATE")
    lines.append("─" * 70)

    if not result['documents']:
        lines.append("No documents")

    for doc in result['documents']:
        doc_id = _truncate(doc['id'], 10).ljust(10)
        filename = _truncate(doc['filename'], 37).ljust(37)
        size = format_file_size(doc.get('size_bytes')).ljust(8)
        lines.append(f"{doc_id}  {filename}  {size}  {format_date(doc.get('created_at'))}")

    lines.append("")
    lines.append(f"Showing {result['count']} of {result['loaded_count']} loaded documents")
    lines.append("Try: show ID | list --pages N | list --filter company=NAME")

    return "\n".join(lines)


def format_document(result: dict[str, Any]) -> str:
    """Format get_document result as BBG Lite text.

    Example output:
        20240305_Acme_Invoice.pdf | v2

        ID:          a1b2c3d4
        TYPE:        application/pdf
        SIZE:        120 KB
        CREATED:     2024-03-05
        MODIFIED:    2024-03-06

        METADATA
        ──────────────────────────────────────────────────────────────────────
        company      Acme
        year         2024

        VERSIONS
        ──────────────────────────────────────────────────────────────────────
        v1  2024-03-05  invoice.pdf  118 KB
    """
    if not result.get("success"):
        return f"ERROR: {result.get('error', 'Unknown error')}"

    doc = result['document']
    lines = []

    header = doc['filename']
    if doc.get('current_version'):
        header += f" | v{doc['current_version']}"
    lines.append(header)
    lines.append("")

    lines.append(f"ID:          {doc['id']}")
    lines.append(f"TYPE:        {doc.get('mime_type') or 'N/A'}")
    lines.append(f"SIZE:        {format_file_size(doc.get('size_bytes'))}")
    lines.append(f"CREATED:     {format_date(doc.get('created_at'))}")
    lines.append(f"MODIFIED:    {format_date(doc.get('modified_at'))}")
    if doc.get('thumbnail_url'):
        lines.append(f"THUMBNAIL:   {doc['thumbnail_url']}")
    lines.append("")

    lines.append("METADATA")
    lines.append("─" * 70)
    metadata = doc.get('metadata') or {}
    if not metadata:
        lines.append("(none)")
    for key, value in metadata.items():
        lines.append(f"{key:<20} {value}")

    versions = result.get('versions') or []
    if versions:
        lines.append("")
        lines.append("VERSIONS")
        lines.append("─" * 70)
        for version in versions:
            lines.append(
                f"v{version['version']:<3} {format_date(version.get('created_at'))}  "
                f"{version['filename']}  {format_file_size(version.get('size_bytes'))}"
            )

    lines.append("")
    lines.append(f'Try: download {doc["id"]} | edit {doc["id"]} --field company=NAME')

    return "\n".join(lines)


def format_search(result: dict[str, Any]) -> str:
    """Format search_documents result as BBG Lite text.

    Example output:
        SEARCH "renewal" | 3 results

        COMPANIES   Acme (2) | Globex (1)
        ──────────────────────────────────────────────────────────────────────
          87.5%  20240305_Acme_Insurance_Renewal.pdf  [a1b2c3d4]
                 ...policy renewal is due on...
    """
    if not result.get("success"):
        return f"ERROR: {result.get('error', 'Unknown error')}"

    lines = []
    lines.append(f'SEARCH "{result["query"]}" | {result["total"]} results')
    lines.append("")

    filter_line = _filter_line(result.get('active_filters', {}))
    if filter_line:
        lines.append(filter_line)
        lines.append("")

    if result.get('facets'):
        lines.extend(_facet_lines(result['facets']))
    lines.append("─" * 70)

    if not result['hits']:
        lines.append("NO MATCHES FOUND")
        lines.append("")
        lines.append("Try: Different search term | Remove filters")
        return "\n".join(lines)

    for hit in result['hits']:
        score = f"{hit['score'] * 100:.1f}%" if hit.get('score') is not None else ""
        lines.append(f"  {score:>6}  {hit['filename']}  [{hit['id']}]")
        if hit.get('highlight'):
            lines.append(f"          {_truncate(hit['highlight'], 90)}")

    lines.append("")
    lines.append("Try: show ID | search QUERY --filter companies=NAME")

    return "\n".join(lines)


def format_saved(result: dict[str, Any], action: str = "UPLOADED") -> str:
    """Format upload_document / update_document result.

    Example output:
        UPLOADED | 20240305_Acme_Invoice.pdf

        ID:          a1b2c3d4
        SIZE:        120 KB
    """
    if not result.get("success"):
        return f"ERROR: {result.get('error', 'Unknown error')}"

    doc = result['document']
    lines = [
        f"{action} | {result['filename']}",
        "",
        f"ID:          {doc['id']}",
        f"SIZE:        {format_file_size(doc.get('size_bytes'))}",
    ]
    return "\n".join(lines)


def format_download(result: dict[str, Any]) -> str:
    if not result.get("success"):
        return f"ERROR: {result.get('error', 'Unknown error')}"

    lines = [
        f"DOWNLOADED | {result['filename']} | {format_file_size(result['size_bytes'])}",
        "",
        f"PATH: {result['path']}",
    ]
    return "\n".join(lines)


def format_delete(result: dict[str, Any]) -> str:
    if not result.get("success"):
        return f"ERROR: {result.get('error', 'Unknown error')}"
    return f"DELETED | {result['document_id']}"


def format_preview(result: dict[str, Any]) -> str:
    """Format preview_filename result.

    Example output:
        scan.jpg
          → 20240305_Acme_Invoice.jpg
    """
    if not result.get("success"):
        return f"ERROR: {result.get('error', 'Unknown error')}"

    if not result['changed']:
        return f"{result['filename']} (unchanged)"
    return f"{result['original']}\n  → {result['filename']}"


def format_options(result: dict[str, Any]) -> str:
    """Format list_metadata_options result.

    Example output:
        COMPANIES (2)
        ──────────────────────────────────────────────────────────────────────
        Acme                                      12
        Globex                                     3
    """
    if not result.get("success"):
        return f"ERROR: {result.get('error', 'Unknown error')}"

    lines = []
    for key, title in (("companies", "COMPANIES"), ("holders", "HOLDERS"), ("document_types", "DOCUMENT TYPES")):
        items = result.get(key) or []
        if lines:
            lines.append("")
        lines.append(f"{title} ({len(items)})")
        lines.append("─" * 70)
        for item in items:
            lines.append(f"{_truncate(item['name'], 40):<40}  {item['count']:>6}")

    return "\n".join(lines)


def format_status(result: dict[str, Any]) -> str:
    status = "OK" if result.get("success") else "FAILED"
    lines = [
        f"STATUS | {status}",
        "",
        f"API:         {result.get('api_base_url', 'N/A')}",
        f"RESULT:      {result.get('message') or result.get('error', 'Unknown error')}",
    ]
    return "\n".join(lines)


def format_settings(settings: dict[str, Any]) -> str:
    """Format current settings, masking the API key"""
    api_key = settings.get('api_key') or ""
    masked = f"{api_key[:4]}{'*' * (len(api_key) - 4)}" if len(api_key) > 4 else ("*" * len(api_key))
    lines = [
        "SETTINGS",
        "─" * 70,
        f"api_base_url          {settings['api_base_url']}",
        f"tenant_id             {settings['tenant_id']}",
        f"api_key               {masked or '(not set)'}",
        f"theme_mode            {settings['theme_mode']}",
        f"speech_pause_ms       {settings['speech_pause_duration_ms']}",
    ]
    return "\n".join(lines)
