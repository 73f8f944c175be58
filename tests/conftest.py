"""
Shared fixtures: an in-memory DocumentGateway and a container wired to it.
"""
import math
from typing import Any, Optional

import pytest

from mcp_documents.container import Container
from mcp_documents.core.domain import (
    AggregationBucket,
    DocumentDetail,
    DocumentMetadata,
    DocumentPage,
    DocumentVersion,
    MetadataListItem,
    PageMeta,
    SearchHit,
    SearchPage,
    UploadRequest,
)
from mcp_documents.core.ports import DocumentGateway, DocumentsApiError


def make_detail(doc_id: str, filename: Optional[str] = None, size: int = 1024, **metadata) -> DocumentDetail:
    return DocumentDetail(
        id=doc_id,
        filename=f"stored-{doc_id}",
        original_filename=filename or f"{doc_id}.pdf",
        size=size,
        mime_type="application/pdf",
        storage_path=f"tenant/{doc_id}.pdf",
        created_at="2024-03-05T10:00:00.000Z",
        metadata=DocumentMetadata(**metadata),
        current_version=1,
    )


class FakeGateway(DocumentGateway):
    """In-memory document service; set failures[name] to make a call raise"""

    def __init__(self):
        self.documents: dict[str, DocumentDetail] = {}
        self.versions: dict[str, list[DocumentVersion]] = {}
        self.contents: dict[str, bytes] = {}
        self.options: dict[str, list[MetadataListItem]] = {
            "companies": [],
            "holders": [],
            "document_types": [],
        }
        self.search_result = SearchPage(hits=[], meta=PageMeta(total=0))
        self.failures: dict[str, DocumentsApiError] = {}
        self.calls: list[tuple[str, Any]] = []
        self.uploads: list[UploadRequest] = []
        self.updates: list[tuple[str, dict]] = []

    def add(self, document: DocumentDetail, content: bytes = b"%PDF-1.4") -> DocumentDetail:
        self.documents[document.id] = document
        self.contents[document.id] = content
        return document

    def _call(self, name: str, args: Any = None) -> None:
        self.calls.append((name, args))
        if name in self.failures:
            raise self.failures[name]

    def _get(self, document_id: str) -> DocumentDetail:
        if document_id not in self.documents:
            raise DocumentsApiError("Error 404: Not Found", 404)
        return self.documents[document_id]

    def list_documents(self, page=1, per_page=20, category=None):
        self._call("list_documents", page)
        docs = list(self.documents.values())
        start = (page - 1) * per_page
        meta = PageMeta(
            page=page,
            per_page=per_page,
            total=len(docs),
            pages=max(1, math.ceil(len(docs) / per_page)),
        )
        return DocumentPage(documents=docs[start:start + per_page], meta=meta)

    def get_document(self, document_id):
        self._call("get_document", document_id)
        return self._get(document_id)

    def download_document(self, document_id):
        self._call("download_document", document_id)
        self._get(document_id)
        return self.contents[document_id]

    def upload_document(self, request):
        self._call("upload_document", request.filename)
        self.uploads.append(request)
        document = make_detail("new", filename=request.filename, size=len(request.content))
        return self.add(document, request.content)

    def search(self, query, page=1, size=20, filters=None):
        self._call("search", (query, dict(filters or {})))
        return self.search_result

    def update_document(self, document_id, metadata):
        self._call("update_document", document_id)
        self.updates.append((document_id, metadata))
        current = self._get(document_id)
        updated = make_detail(
            document_id,
            filename=metadata.get("originalFilename"),
            size=current.size,
            company=metadata.get("company"),
            holder=metadata.get("holder"),
            year=metadata.get("year"),
        )
        self.documents[document_id] = updated
        return updated

    def delete_document(self, document_id):
        self._call("delete_document", document_id)
        self._get(document_id)
        del self.documents[document_id]

    def get_versions(self, document_id):
        self._call("get_versions", document_id)
        return self.versions.get(document_id, [])

    def check_status(self):
        self._call("check_status")

    def list_companies(self):
        self._call("list_companies")
        return self.options["companies"]

    def list_holders(self):
        self._call("list_holders")
        return self.options["holders"]

    def list_document_types(self):
        self._call("list_document_types")
        return self.options["document_types"]


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def container(tmp_path, gateway):
    return Container(
        settings_path=tmp_path / "settings.json",
        download_dir=tmp_path / "downloads",
        gateway=gateway
    )


@pytest.fixture
def search_page():
    """A search result with two hits and three aggregations"""
    hits = [
        SearchHit(
            id="h1",
            filename="stored-h1",
            original_filename="20240305_Acme_Renewal.pdf",
            score=0.875,
            highlight={"textContent": ["policy <mark>renewal</mark> is due"]},
            metadata=DocumentMetadata(company="Acme", year="2024"),
        ),
        SearchHit(id="h2", filename="b.pdf", score=0.5),
    ]
    meta = PageMeta(
        page=1,
        total=2,
        aggregations={
            "companies": [AggregationBucket("Acme", 1), AggregationBucket("Globex", 1)],
            "unknown": [AggregationBucket("x", 1)],
            "years": [],
        },
    )
    return SearchPage(hits=hits, meta=meta)
