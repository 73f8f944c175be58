"""
MCP Tool Handlers

Shared handlers for MCP tools that use the hexagonal core.
Every handler returns {"success": True, ...} or {"success": False, "error": msg}.
"""
import asyncio
import logging
from typing import Any, Optional

from ...container import Container
from ...core.domain import (
    DocumentSummary,
    DocumentVersion,
    FacetGroup,
    MetadataFields,
    SearchHit,
)
from ...core.filenames import compose_for_document, compose_for_upload
from ...core.ports import DocumentsApiError
from ...core.sessions import suggest_options
from ..http_api import build_thumbnail_url

logger = logging.getLogger(__name__)


def _metadata_dict(document: DocumentSummary | SearchHit) -> dict[str, Any]:
    meta = document.metadata
    if meta is None:
        return {}
    values = {
        "company": meta.company,
        "holder": meta.holder,
        "documentType": meta.document_type,
        "year": meta.year,
        "month": meta.month,
        "day": meta.day,
        "purpose": meta.purpose,
        "accountNumber": meta.account_number,
        "taxType": meta.tax_type,
        "category": meta.category,
        "notes": meta.notes,
        "wintonDisclosure": meta.winton_disclosure,
    }
    return {k: v for k, v in values.items() if v is not None}


def _document_dict(document: DocumentSummary) -> dict[str, Any]:
    return {
        "id": document.id,
        "filename": document.display_name,
        "size_bytes": document.size,
        "mime_type": document.mime_type,
        "created_at": document.created_at,
        "modified_at": document.modified_at,
        "metadata": _metadata_dict(document),
    }


def _version_dict(version: DocumentVersion) -> dict[str, Any]:
    return {
        "version": version.version_number,
        "filename": version.filename,
        "size_bytes": version.size,
        "created_at": version.created_at,
    }


def _facet_dicts(groups: list[FacetGroup]) -> list[dict[str, Any]]:
    return [
        {
            "key": group.group_key,
            "label": group.label,
            "selected": group.selected,
            "buckets": [{"key": b.key, "label": b.label, "count": b.count} for b in group.buckets],
        }
        for group in groups
    ]


class MCPHandlers:
    """Handlers for MCP tools using dependency injection"""

    def __init__(self, container: Container):
        self.container = container

    async def list_documents(
        self,
        pages: int = 1,
        per_page: int = 20,
        filters: Optional[dict[str, str]] = None
    ) -> dict[str, Any]:
        """Load the first N pages, derive facets locally and apply filters"""
        try:
            session = self.container.document_list_session(per_page=per_page)

            state = await asyncio.to_thread(session.load, 1)
            while state.error is None and state.current_page < max(pages, 1):
                before = state.current_page
                state = await asyncio.to_thread(session.load_more)
                if state.current_page == before:
                    break
            if state.error:
                return {"success": False, "error": f"Failed to list documents: {state.error}"}

            for group_key, value in (filters or {}).items():
                if value:
                    state = session.toggle_filter(group_key, value)

            meta = state.meta
            return {
                "success": True,
                "documents": [_document_dict(d) for d in state.documents],
                "count": len(state.documents),
                "loaded_count": len(state.all_documents),
                "facets": _facet_dicts(list(state.facet_groups)),
                "active_filters": dict(state.active),
                "page": state.current_page,
                "pages": meta.pages if meta else None,
                "total": meta.total if meta else None,
            }

        except Exception as e:
            return {
                "success": False,
                "error": f"Failed to list documents: {str(e)}"
            }

    async def get_document(self, document_id: str) -> dict[str, Any]:
        """Get document detail and version history"""
        try:
            document, versions = await asyncio.to_thread(
                self.container.get_document.execute,
                document_id
            )
            return {
                "success": True,
                "document": {
                    **_document_dict(document),
                    "current_version": document.current_version,
                    "indexed": document.indexed,
                    "thumbnail_url": build_thumbnail_url(
                        self.container.settings.api_base_url,
                        document.storage_path
                    ),
                },
                "versions": [_version_dict(v) for v in versions],
            }

        except Exception as e:
            return {
                "success": False,
                "error": f"Failed to get document {document_id}: {str(e)}"
            }

    async def search_documents(
        self,
        query: str,
        filters: Optional[dict[str, str]] = None,
        page: int = 1,
        size: int = 20
    ) -> dict[str, Any]:
        """Server-side search; aggregations come back as facet groups"""
        try:
            if not query.strip():
                raise ValueError("Search query is empty")

            session = self.container.search_session(page=page, size=size)
            for group_key, value in (filters or {}).items():
                if value:
                    session.toggle_filter(group_key, value)
            state = await asyncio.to_thread(session.submit, query)
            if state.error:
                raise DocumentsApiError(state.error)

            hits = []
            for hit in state.hits:
                hits.append({
                    "id": hit.id,
                    "filename": hit.display_name,
                    "score": hit.score,
                    "highlight": hit.highlight_text,
                    "metadata": _metadata_dict(hit),
                })

            return {
                "success": True,
                "query": state.query.strip(),
                "hits": hits,
                "total": state.total,
                "page": page,
                "facets": _facet_dicts(list(state.facet_groups)),
                "active_filters": dict(state.active),
            }

        except Exception as e:
            return {
                "success": False,
                "error": f"Search failed: {str(e)}"
            }

    async def upload_document(
        self,
        file_path: str,
        metadata: Optional[dict[str, Any]] = None,
        mime_type: Optional[str] = None
    ) -> dict[str, Any]:
        """Upload a local file under the filename composed from its metadata"""
        try:
            fields = MetadataFields.from_dict(metadata)
            document, filename = await asyncio.to_thread(
                self.container.upload_document.execute,
                file_path,
                fields,
                mime_type=mime_type
            )
            logger.info(f"upload_document: {file_path} -> {filename}")
            return {
                "success": True,
                "filename": filename,
                "document": _document_dict(document),
            }

        except Exception as e:
            return {
                "success": False,
                "error": f"Upload failed: {str(e)}"
            }

    async def update_document(
        self,
        document_id: str,
        metadata: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        """Replace a document's metadata and rename it to match.

        Fields not supplied are cleared, as when saving the edit form.
        """
        try:
            fields = MetadataFields.from_dict(metadata)
            document, filename = await asyncio.to_thread(
                self.container.update_document.execute,
                document_id,
                fields
            )
            logger.info(f"update_document: {document_id} -> {filename}")
            return {
                "success": True,
                "filename": filename,
                "document": _document_dict(document),
            }

        except Exception as e:
            return {
                "success": False,
                "error": f"Failed to update document {document_id}: {str(e)}"
            }

    async def delete_document(self, document_id: str) -> dict[str, Any]:
        try:
            await asyncio.to_thread(self.container.delete_document.execute, document_id)
            logger.info(f"delete_document: {document_id}")
            return {"success": True, "document_id": document_id}

        except Exception as e:
            return {
                "success": False,
                "error": f"Failed to delete document {document_id}: {str(e)}"
            }

    async def download_document(self, document_id: str, dest_dir: Optional[str] = None) -> dict[str, Any]:
        """Download to disk, return path"""
        try:
            document, path = await asyncio.to_thread(
                self.container.download_document.execute,
                document_id,
                dest_dir=dest_dir
            )
            return {
                "success": True,
                "path": str(path),
                "filename": path.name,
                "size_bytes": path.stat().st_size,
                "mime_type": document.mime_type,
            }

        except Exception as e:
            return {
                "success": False,
                "error": f"Failed to download document {document_id}: {str(e)}"
            }

    async def preview_filename(
        self,
        filename: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
        document_id: Optional[str] = None
    ) -> dict[str, Any]:
        """Show the name an upload (filename) or edit (document_id) would produce"""
        try:
            fields = MetadataFields.from_dict(metadata)
            if document_id:
                document, _ = await asyncio.to_thread(self.container.get_document.execute, document_id)
                original = document.display_name
                composed = compose_for_document(document, fields)
            elif filename:
                original = filename
                composed = compose_for_upload(filename, fields)
            else:
                return {"success": False, "error": "Provide filename or document_id"}

            return {
                "success": True,
                "original": original,
                "filename": composed,
                "changed": composed != original,
            }

        except Exception as e:
            return {
                "success": False,
                "error": f"Failed to preview filename: {str(e)}"
            }

    async def list_metadata_options(self, match: Optional[str] = None) -> dict[str, Any]:
        """Known companies, holders and document types, optionally narrowed to names containing match"""
        try:
            options = await asyncio.to_thread(self.container.metadata_options.execute)
            result: dict[str, Any] = {"success": True}
            for name, items in options.items():
                if match:
                    keep = set(suggest_options(match, items, limit=len(items)))
                    items = [item for item in items if item.name in keep]
                result[name] = [{"name": item.name, "count": item.document_count} for item in items]
            return result

        except Exception as e:
            return {
                "success": False,
                "error": f"Failed to load metadata options: {str(e)}"
            }

    async def check_status(self) -> dict[str, Any]:
        healthy, message = await asyncio.to_thread(self.container.check_status.execute)
        logger.info(f"check_status: {message}")
        result = {
            "success": healthy,
            "message": message,
            "api_base_url": self.container.settings.api_base_url,
        }
        if not healthy:
            result["error"] = message
        return result
