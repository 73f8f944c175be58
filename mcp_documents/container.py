"""
Dependency Injection Container

Wires together the hexagonal architecture by creating and injecting dependencies.
"""
from pathlib import Path
from typing import Optional

from .adapters import HttpDocumentGateway, JsonSettingsStore
from .adapters.settings_file import with_overrides
from .core import (
    ListDocumentsService,
    GetDocumentService,
    SearchDocumentsService,
    UploadDocumentService,
    UpdateDocumentService,
    DeleteDocumentService,
    DownloadDocumentService,
    MetadataOptionsService,
    CheckStatusService,
)
from .core.ports import DocumentGateway
from .core.sessions import (
    DocumentDetailSession,
    DocumentListSession,
    SearchSession,
    SettingsSession,
    UploadSession,
)


class Container:
    """Dependency injection container for the application"""

    def __init__(
        self,
        settings_path: str | Path,
        download_dir: str | Path,
        gateway: Optional[DocumentGateway] = None,
        api_base_url: Optional[str] = None
    ):
        # Adapters (infrastructure)
        self.settings_store = JsonSettingsStore(settings_path)
        self.settings = with_overrides(self.settings_store.load(), api_base_url=api_base_url)
        self.gateway = gateway or HttpDocumentGateway.from_settings(self.settings)

        # Services (use cases)
        self.list_documents = ListDocumentsService(self.gateway)
        self.get_document = GetDocumentService(self.gateway)
        self.search_documents = SearchDocumentsService(self.gateway)
        self.upload_document = UploadDocumentService(self.gateway)
        self.update_document = UpdateDocumentService(self.gateway)
        self.delete_document = DeleteDocumentService(self.gateway)
        self.download_document = DownloadDocumentService(
            gateway=self.gateway,
            download_dir=download_dir
        )
        self.metadata_options = MetadataOptionsService(self.gateway)
        self.check_status = CheckStatusService(self.gateway)

    # Sessions (one per workflow, fresh state each time)

    def document_list_session(self, per_page: int = 20) -> DocumentListSession:
        return DocumentListSession(self.list_documents, per_page=per_page)

    def search_session(self, page: int = 1, size: int = 20) -> SearchSession:
        return SearchSession(self.search_documents, page=page, size=size)

    def upload_session(self) -> UploadSession:
        return UploadSession(self.upload_document, self.metadata_options)

    def document_detail_session(self) -> DocumentDetailSession:
        return DocumentDetailSession(
            get_service=self.get_document,
            update_service=self.update_document,
            delete_service=self.delete_document,
            download_service=self.download_document,
            options_service=self.metadata_options
        )

    def settings_session(self) -> SettingsSession:
        return SettingsSession(self.settings_store, self.check_status)
