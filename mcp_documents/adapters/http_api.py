"""
HTTP API Adapter

Implements DocumentGateway port against the document service REST API
using httpx. Every call fails once and reports: there is no retry.
"""
import json
import logging
from typing import Any, Callable, Optional, TypeVar

import httpx

from ..core.domain import (
    DocumentDetail,
    DocumentPage,
    DocumentSummary,
    DocumentVersion,
    MetadataListItem,
    PageMeta,
    SearchHit,
    SearchPage,
    Settings,
    UploadRequest,
)
from ..core.ports import DocumentGateway, DocumentsApiError

logger = logging.getLogger(__name__)

T = TypeVar("T")

SOURCE_APP = "mcp_documents"

# Search query parameters, one per facet group
SEARCH_FILTER_PARAMS = ("companies", "holders", "documentTypes", "taxTypes", "years", "fileTypes")

DEFAULT_TIMEOUT = httpx.Timeout(connect=30.0, read=60.0, write=60.0, pool=60.0)


def build_thumbnail_url(base_url: str, storage_path: Optional[str]) -> Optional[str]:
    """Thumbnail URL for a stored file, or None when it has no storage path"""
    if not storage_path or not storage_path.strip():
        return None
    return f"{base_url.rstrip('/')}/api/v1/thumbnails/{storage_path}"


class HttpDocumentGateway(DocumentGateway):
    """Document service client over httpx"""

    def __init__(
        self,
        base_url: str,
        tenant_id: str,
        api_key: str = "",
        timeout: httpx.Timeout = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None
    ):
        headers = {
            "X-Source-App": SOURCE_APP,
            "X-Tenant-Id": tenant_id,
        }
        if api_key.strip():
            headers["Authorization"] = f"Bearer {api_key}"

        self.base_url = base_url
        self.client = httpx.Client(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.BaseTransport] = None) -> "HttpDocumentGateway":
        return cls(
            base_url=settings.api_base_url,
            tenant_id=settings.tenant_id,
            api_key=settings.api_key,
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    # -- helpers -----------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Send a request, turning transport failures into DocumentsApiError"""
        logger.debug(f"{method} {path}")
        try:
            return self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise DocumentsApiError(str(e) or "Network error") from e

    @staticmethod
    def _status_error(response: httpx.Response, prefix: str = "Error") -> DocumentsApiError:
        code = response.status_code
        logger.warning(f"{response.request.method} {response.request.url.path} -> {code}")
        return DocumentsApiError(f"{prefix} {code}: {response.reason_phrase}", code)

    @staticmethod
    def _envelope(
        response: httpx.Response,
        failure: str,
        parse: Callable[[Any], T]
    ) -> tuple[T, Optional[PageMeta]]:
        """Unwrap {"success", "data", "meta"}; missing data counts as failure"""
        try:
            body = response.json()
        except ValueError as e:
            raise DocumentsApiError(failure, response.status_code) from e
        if not isinstance(body, dict) or body.get("success") is not True or body.get("data") is None:
            raise DocumentsApiError(failure, response.status_code)
        try:
            return parse(body["data"]), PageMeta.from_dict(body.get("meta"))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"{response.request.method} {response.request.url.path} malformed: {e!r}")
            raise DocumentsApiError(failure, response.status_code) from e

    def _metadata_list(self, path: str, label: str) -> list[MetadataListItem]:
        response = self._request("GET", path)
        if not response.is_success:
            raise DocumentsApiError(f"Failed to load {label}: {response.status_code}", response.status_code)
        try:
            body = response.json() or []
        except ValueError as e:
            raise DocumentsApiError(f"Failed to load {label}", response.status_code) from e
        try:
            return [MetadataListItem.from_dict(item) for item in body]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise DocumentsApiError(f"Failed to load {label}", response.status_code) from e

    # -- DocumentGateway ---------------------------------------------------

    def list_documents(self, page: int = 1, per_page: int = 20, category: Optional[str] = None) -> DocumentPage:
        params: dict[str, Any] = {"page": page, "per_page": per_page}
        if category is not None:
            params["category"] = category
        response = self._request("GET", "/api/v2/documents/", params=params)
        if not response.is_success:
            raise self._status_error(response)
        documents, meta = self._envelope(
            response,
            "Failed to load documents",
            lambda data: [DocumentSummary.from_dict(d) for d in data]
        )
        return DocumentPage(documents=documents, meta=meta)

    def get_document(self, document_id: str) -> DocumentDetail:
        response = self._request("GET", f"/api/v2/documents/{document_id}")
        if not response.is_success:
            raise self._status_error(response)
        document, _ = self._envelope(response, "Document not found", DocumentDetail.from_dict)
        return document

    def download_document(self, document_id: str) -> bytes:
        response = self._request("GET", f"/api/v2/documents/{document_id}/download")
        if not response.is_success:
            raise DocumentsApiError(f"Download failed: {response.status_code}", response.status_code)
        if not response.content:
            raise DocumentsApiError("Empty response body", response.status_code)
        return response.content

    def upload_document(self, request: UploadRequest) -> DocumentDetail:
        files = {"file": (request.filename, request.content, request.mime_type)}
        data = {}
        if request.metadata:
            data["metadata"] = json.dumps(request.metadata)
        response = self._request("POST", "/api/v2/documents/upload", files=files, data=data)
        if not response.is_success:
            raise self._status_error(response, "Upload error")
        document, _ = self._envelope(response, "Upload failed", DocumentDetail.from_dict)
        return document

    def search(
        self,
        query: str,
        page: int = 1,
        size: int = 20,
        filters: Optional[dict[str, str]] = None
    ) -> SearchPage:
        params: dict[str, Any] = {"q": query, "page": page, "size": size, "searchMode": "hybrid"}
        for name in SEARCH_FILTER_PARAMS:
            value = (filters or {}).get(name)
            if value is not None:
                params[name] = value
        response = self._request("GET", "/api/v2/search/", params=params)
        if not response.is_success:
            raise self._status_error(response, "Search error")
        hits, meta = self._envelope(
            response,
            "Search failed",
            lambda data: [SearchHit.from_dict(d) for d in data]
        )
        return SearchPage(hits=hits, meta=meta)

    def update_document(self, document_id: str, metadata: dict[str, Any]) -> DocumentDetail:
        response = self._request("PATCH", f"/api/v2/documents/{document_id}", json=metadata)
        if not response.is_success:
            raise self._status_error(response, "Update error")
        document, _ = self._envelope(response, "Update failed", DocumentDetail.from_dict)
        return document

    def delete_document(self, document_id: str) -> None:
        response = self._request("DELETE", f"/api/v2/documents/{document_id}")
        if not response.is_success:
            raise DocumentsApiError(f"Delete failed: {response.status_code}", response.status_code)

    def get_versions(self, document_id: str) -> list[DocumentVersion]:
        response = self._request("GET", f"/api/v2/documents/{document_id}/versions")
        if not response.is_success:
            raise self._status_error(response)
        versions, _ = self._envelope(
            response,
            "Failed to load versions",
            lambda data: [DocumentVersion.from_dict(v) for v in data]
        )
        return versions

    def check_status(self) -> None:
        response = self._request("GET", "/api/v2/documents/status")
        if not response.is_success:
            raise DocumentsApiError(f"Service unhealthy: {response.status_code}", response.status_code)

    def list_companies(self) -> list[MetadataListItem]:
        return self._metadata_list("/api/v1/metadata/companies", "companies")

    def list_holders(self) -> list[MetadataListItem]:
        return self._metadata_list("/api/v1/metadata/holders", "holders")

    def list_document_types(self) -> list[MetadataListItem]:
        return self._metadata_list("/api/v1/metadata/document-types", "document types")
