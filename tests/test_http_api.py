"""
Unit tests for mcp_documents.adapters.http_api

Drives HttpDocumentGateway against httpx.MockTransport; no network.
"""
import json

import httpx
import pytest

from mcp_documents.adapters.http_api import HttpDocumentGateway, build_thumbnail_url
from mcp_documents.core.domain import Settings, UploadRequest
from mcp_documents.core.ports import DocumentsApiError


BASE_URL = "http://docs.test"
TENANT = "11111111-1111-4111-8111-111111111111"

DOC = {
    "id": "d1",
    "filename": "stored-d1",
    "originalFilename": "20240305_Acme_Invoice.pdf",
    "size": 2048,
    "mimeType": "application/pdf",
    "storagePath": "t/d1.pdf",
    "createdAt": "2024-03-05T10:00:00Z",
    "currentVersion": 2,
    "metadata": {"company": "Acme", "year": 2024, "documentType": "Invoice", "wintonDisclosure": False},
}


def make_gateway(handler, api_key=""):
    return HttpDocumentGateway(BASE_URL, TENANT, api_key=api_key, transport=httpx.MockTransport(handler))


def ok(data, meta=None):
    body = {"success": True, "data": data}
    if meta is not None:
        body["meta"] = meta
    return httpx.Response(200, json=body)


class TestHeaders:
    """Test identification headers."""

    def test_tenant_and_source_headers(self):
        seen = {}

        def handler(request):
            seen.update(request.headers)
            return ok(DOC)

        make_gateway(handler).get_document("d1")
        assert seen["x-tenant-id"] == TENANT
        assert seen["x-source-app"] == "mcp_documents"
        assert "authorization" not in seen

    def test_bearer_token_when_key_set(self):
        seen = {}

        def handler(request):
            seen.update(request.headers)
            return ok(DOC)

        make_gateway(handler, api_key="secret").get_document("d1")
        assert seen["authorization"] == "Bearer secret"

    def test_from_settings(self):
        settings = Settings(api_base_url=BASE_URL, tenant_id="t-2", api_key="k")
        gateway = HttpDocumentGateway.from_settings(settings, transport=httpx.MockTransport(lambda r: ok(DOC)))
        assert gateway.client.headers["x-tenant-id"] == "t-2"
        assert gateway.client.headers["authorization"] == "Bearer k"


class TestListDocuments:
    """Test the paged list endpoint."""

    def test_parses_page_and_meta(self):
        def handler(request):
            assert request.url.path == "/api/v2/documents/"
            assert request.url.params["page"] == "2"
            assert request.url.params["per_page"] == "10"
            return ok([DOC], meta={"page": 2, "per_page": 10, "total": 11, "pages": 2})

        page = make_gateway(handler).list_documents(page=2, per_page=10)
        assert len(page.documents) == 1
        document = page.documents[0]
        assert document.display_name == "20240305_Acme_Invoice.pdf"
        assert document.metadata.year == "2024"
        assert document.metadata.document_type == "Invoice"
        assert page.meta.pages == 2

    def test_category_param(self):
        def handler(request):
            assert request.url.params["category"] == "tax"
            return ok([])

        make_gateway(handler).list_documents(category="tax")

    def test_http_error_status(self):
        gateway = make_gateway(lambda r: httpx.Response(500))
        with pytest.raises(DocumentsApiError) as exc:
            gateway.list_documents()
        assert exc.value.message == "Error 500: Internal Server Error"
        assert exc.value.status_code == 500

    def test_unsuccessful_envelope(self):
        gateway = make_gateway(lambda r: httpx.Response(200, json={"success": False, "data": []}))
        with pytest.raises(DocumentsApiError, match="Failed to load documents"):
            gateway.list_documents()

    def test_missing_data(self):
        gateway = make_gateway(lambda r: httpx.Response(200, json={"success": True}))
        with pytest.raises(DocumentsApiError, match="Failed to load documents"):
            gateway.list_documents()

    def test_transport_error_wrapped(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        with pytest.raises(DocumentsApiError, match="connection refused"):
            make_gateway(handler).list_documents()

    def test_document_without_id(self):
        gateway = make_gateway(lambda r: ok([{"filename": "x.pdf"}]))
        with pytest.raises(DocumentsApiError, match="Failed to load documents"):
            gateway.list_documents()

    def test_null_bucket_count_is_zero(self):
        meta = {"aggregations": {"company": {"buckets": [{"key": "Acme", "doc_count": None}]}}}
        page = make_gateway(lambda r: ok([DOC], meta=meta)).list_documents()
        assert page.meta.aggregations["company"][0].doc_count == 0


class TestDocument:
    """Test single-document endpoints."""

    def test_get_document(self):
        document = make_gateway(lambda r: ok(DOC)).get_document("d1")
        assert document.current_version == 2
        assert document.storage_path == "t/d1.pdf"

    def test_get_document_not_found_envelope(self):
        gateway = make_gateway(lambda r: httpx.Response(200, json={"success": True, "data": None}))
        with pytest.raises(DocumentsApiError, match="Document not found"):
            gateway.get_document("d1")

    def test_download(self):
        def handler(request):
            assert request.url.path == "/api/v2/documents/d1/download"
            return httpx.Response(200, content=b"bytes")

        assert make_gateway(handler).download_document("d1") == b"bytes"

    def test_download_empty_body(self):
        gateway = make_gateway(lambda r: httpx.Response(200, content=b""))
        with pytest.raises(DocumentsApiError, match="Empty response body"):
            gateway.download_document("d1")

    def test_download_failed(self):
        gateway = make_gateway(lambda r: httpx.Response(404))
        with pytest.raises(DocumentsApiError, match="Download failed: 404"):
            gateway.download_document("d1")

    def test_update_sends_patch(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["body"] = json.loads(request.content)
            return ok(DOC)

        make_gateway(handler).update_document("d1", {"company": "Acme", "holder": None})
        assert seen["method"] == "PATCH"
        assert seen["body"] == {"company": "Acme", "holder": None}

    def test_update_error(self):
        gateway = make_gateway(lambda r: httpx.Response(400))
        with pytest.raises(DocumentsApiError, match="Update error 400: Bad Request"):
            gateway.update_document("d1", {})

    def test_delete(self):
        def handler(request):
            assert request.method == "DELETE"
            return httpx.Response(204)

        make_gateway(handler).delete_document("d1")

    def test_delete_failed(self):
        gateway = make_gateway(lambda r: httpx.Response(403))
        with pytest.raises(DocumentsApiError, match="Delete failed: 403"):
            gateway.delete_document("d1")

    def test_versions(self):
        versions = [{"id": "v1", "versionNumber": 1, "filename": "a.pdf", "size": 10}]
        result = make_gateway(lambda r: ok(versions)).get_versions("d1")
        assert result[0].version_number == 1


class TestUpload:
    """Test multipart upload."""

    def test_multipart_parts(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["type"] = request.headers["content-type"]
            seen["body"] = request.read()
            return ok(DOC)

        request = UploadRequest(
            content=b"JPEGDATA",
            filename="20240305_Acme.jpg",
            mime_type="image/jpeg",
            metadata={"company": "Acme"}
        )
        make_gateway(handler).upload_document(request)

        assert seen["path"] == "/api/v2/documents/upload"
        assert seen["type"].startswith("multipart/form-data")
        assert b'name="file"; filename="20240305_Acme.jpg"' in seen["body"]
        assert b"JPEGDATA" in seen["body"]
        assert b'name="metadata"' in seen["body"]
        assert b'{"company": "Acme"}' in seen["body"]

    def test_upload_error(self):
        gateway = make_gateway(lambda r: httpx.Response(413))
        with pytest.raises(DocumentsApiError, match="Upload error 413"):
            gateway.upload_document(UploadRequest(content=b"x", filename="a.pdf"))


class TestSearch:
    """Test search parameters and aggregations."""

    def test_params_and_aggregations(self):
        seen = {}

        def handler(request):
            seen.update(request.url.params)
            return ok(
                [{"id": "h1", "filename": "a.pdf", "score": 0.9,
                  "highlight": {"textContent": ["<mark>tax</mark> return"]}}],
                meta={"total": 1, "aggregations": {"companies": {"buckets": [{"key": "Acme", "doc_count": 4}]}}}
            )

        result = make_gateway(handler).search("tax", filters={"companies": "Acme", "ignored": "x"})

        assert seen["q"] == "tax"
        assert seen["searchMode"] == "hybrid"
        assert seen["companies"] == "Acme"
        assert "ignored" not in seen
        assert result.total == 1
        assert result.hits[0].highlight_text == "tax return"
        assert result.meta.aggregations["companies"][0].doc_count == 4

    def test_search_error(self):
        gateway = make_gateway(lambda r: httpx.Response(502))
        with pytest.raises(DocumentsApiError, match="Search error 502"):
            gateway.search("x")

    def test_hit_without_id(self):
        gateway = make_gateway(lambda r: ok([{"filename": "x"}]))
        with pytest.raises(DocumentsApiError, match="Search failed"):
            gateway.search("x")

    def test_bucket_without_key(self):
        meta = {"aggregations": {"companies": {"buckets": [{"doc_count": 2}]}}}
        gateway = make_gateway(lambda r: ok([], meta=meta))
        with pytest.raises(DocumentsApiError, match="Search failed"):
            gateway.search("x")


class TestMetadataAndStatus:
    """Test option lists and health check."""

    def test_companies(self):
        def handler(request):
            assert request.url.path == "/api/v1/metadata/companies"
            return httpx.Response(200, json=[{"id": 1, "name": "Acme", "_count": {"documents": 3}}])

        items = make_gateway(handler).list_companies()
        assert items[0].name == "Acme"

    def test_malformed_option_list(self):
        gateway = make_gateway(lambda r: httpx.Response(200, json=["Acme"]))
        with pytest.raises(DocumentsApiError, match="Failed to load companies"):
            gateway.list_companies()
        assert items[0].document_count == 3

    def test_document_types_path(self):
        def handler(request):
            assert request.url.path == "/api/v1/metadata/document-types"
            return httpx.Response(200, json=[])

        assert make_gateway(handler).list_document_types() == []

    def test_status_ok(self):
        make_gateway(lambda r: httpx.Response(200, json={"status": "ok"})).check_status()

    def test_status_unhealthy(self):
        gateway = make_gateway(lambda r: httpx.Response(503))
        with pytest.raises(DocumentsApiError, match="Service unhealthy: 503"):
            gateway.check_status()


class TestThumbnailUrl:
    def test_builds_url(self):
        assert build_thumbnail_url("http://h:3000/", "t/d1.pdf") == "http://h:3000/api/v1/thumbnails/t/d1.pdf"

    def test_blank_path(self):
        assert build_thumbnail_url("http://h", "") is None
        assert build_thumbnail_url("http://h", None) is None
