"""
Application Services - Use cases that orchestrate domain logic

These are the entry points to the core. They coordinate between
domain models and ports, but contain no infrastructure concerns.
"""
import logging
import mimetypes
from pathlib import Path
from typing import Optional

from .domain import (
    DocumentDetail,
    DocumentPage,
    DocumentVersion,
    MetadataFields,
    MetadataListItem,
    SearchPage,
    UploadRequest,
)
from .filenames import compose_for_document, compose_for_upload
from .ports import DocumentGateway, DocumentsApiError

logger = logging.getLogger(__name__)


class ListDocumentsService:
    """Use case: List one page of documents"""

    def __init__(self, gateway: DocumentGateway):
        self.gateway = gateway

    def execute(self, page: int = 1, per_page: int = 20, category: Optional[str] = None) -> DocumentPage:
        return self.gateway.list_documents(page=page, per_page=per_page, category=category)


class GetDocumentService:
    """Use case: Load a document together with its version history"""

    def __init__(self, gateway: DocumentGateway):
        self.gateway = gateway

    def execute(self, document_id: str) -> tuple[DocumentDetail, list[DocumentVersion]]:
        """
        Load document detail, then its versions.

        A failure to load versions is not fatal: the document is still
        returned with an empty version list.

        Returns:
            (document, versions)
        """
        document = self.gateway.get_document(document_id)
        try:
            versions = self.gateway.get_versions(document_id)
        except DocumentsApiError as e:
            logger.warning(f"Could not load versions for {document_id}: {e}")
            versions = []
        return document, versions


class SearchDocumentsService:
    """Use case: Search documents, narrowed by facet filters"""

    def __init__(self, gateway: DocumentGateway):
        self.gateway = gateway

    def execute(
        self,
        query: str,
        page: int = 1,
        size: int = 20,
        filters: Optional[dict[str, str]] = None
    ) -> SearchPage:
        query = query.strip()
        if not query:
            raise ValueError("Search query is empty")
        return self.gateway.search(query, page=page, size=size, filters=filters or {})


class UploadDocumentService:
    """Use case: Upload a local file under its composed filename"""

    def __init__(self, gateway: DocumentGateway):
        self.gateway = gateway

    def execute(
        self,
        file_path: str | Path,
        fields: MetadataFields,
        mime_type: Optional[str] = None
    ) -> tuple[DocumentDetail, str]:
        """
        Read the file, compose its name from the metadata and create it.

        Returns:
            (created_document, composed_filename)
        """
        path = Path(file_path)
        content = path.read_bytes()
        if mime_type is None:
            mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"

        filename = compose_for_upload(path.name, fields)
        request = UploadRequest(
            content=content,
            filename=filename,
            mime_type=mime_type,
            metadata=fields.to_upload_payload()
        )
        logger.info(f"Uploading {path.name} as {filename} ({len(content)} bytes)")
        return self.gateway.upload_document(request), filename


class UpdateDocumentService:
    """Use case: Save edited metadata and rename the document to match"""

    def __init__(self, gateway: DocumentGateway):
        self.gateway = gateway

    def execute(
        self,
        document_id: str,
        fields: MetadataFields,
        document: Optional[DocumentDetail] = None
    ) -> tuple[DocumentDetail, str]:
        """
        Returns:
            (updated_document, composed_filename)
        """
        if document is None:
            document = self.gateway.get_document(document_id)

        filename = compose_for_document(document, fields)
        payload = fields.to_update_payload()
        payload["originalFilename"] = filename
        return self.gateway.update_document(document_id, payload), filename


class DeleteDocumentService:
    """Use case: Delete a document"""

    def __init__(self, gateway: DocumentGateway):
        self.gateway = gateway

    def execute(self, document_id: str) -> None:
        self.gateway.delete_document(document_id)


class DownloadDocumentService:
    """Use case: Download a document's file into a local directory"""

    def __init__(self, gateway: DocumentGateway, download_dir: str | Path):
        self.gateway = gateway
        self.download_dir = Path(download_dir)

    def execute(self, document_id: str, dest_dir: Optional[str | Path] = None) -> tuple[DocumentDetail, Path]:
        """
        Save the file under its display name.

        Returns:
            (document, saved_path)
        """
        document = self.gateway.get_document(document_id)
        content = self.gateway.download_document(document_id)

        target_dir = Path(dest_dir) if dest_dir else self.download_dir
        target_dir.mkdir(parents=True, exist_ok=True)
        # Only the final path component, never a server-supplied directory
        path = target_dir / (Path(document.display_name).name or document_id)
        path.write_bytes(content)
        return document, path


class MetadataOptionsService:
    """Use case: Load known companies, holders and document types"""

    def __init__(self, gateway: DocumentGateway):
        self.gateway = gateway

    def execute(self) -> dict[str, list[MetadataListItem]]:
        """
        Each list is loaded independently; a list that fails to load is
        returned empty so the others still populate.
        """
        loaders = {
            "companies": self.gateway.list_companies,
            "holders": self.gateway.list_holders,
            "document_types": self.gateway.list_document_types,
        }
        options = {}
        for name, loader in loaders.items():
            try:
                options[name] = loader()
            except DocumentsApiError as e:
                logger.warning(f"Could not load {name}: {e}")
                options[name] = []
        return options


class CheckStatusService:
    """Use case: Check that the configured service is reachable"""

    def __init__(self, gateway: DocumentGateway):
        self.gateway = gateway

    def execute(self) -> tuple[bool, str]:
        """
        Returns:
            (healthy, status_message)
        """
        try:
            self.gateway.check_status()
        except DocumentsApiError as e:
            return False, f"Connection failed: {e.message}"
        return True, "Connected successfully"
