"""
Ports - Interfaces for external dependencies

These define HOW the core interacts with the outside world,
but NOT the implementation details.
"""
from abc import ABC, abstractmethod
from typing import Any, Optional

from .domain import (
    DocumentDetail,
    DocumentPage,
    DocumentVersion,
    MetadataListItem,
    SearchPage,
    Settings,
    ThemeMode,
    UploadRequest,
)


class DocumentsApiError(Exception):
    """A failed call to the document service, with a user-displayable message"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class SettingsError(Exception):
    """Preferences could not be read or written"""
    pass


class DocumentGateway(ABC):
    """Port for the remote document service"""

    @abstractmethod
    def list_documents(self, page: int = 1, per_page: int = 20, category: Optional[str] = None) -> DocumentPage:
        """List one page of documents"""
        pass

    @abstractmethod
    def get_document(self, document_id: str) -> DocumentDetail:
        """Get a single document"""
        pass

    @abstractmethod
    def download_document(self, document_id: str) -> bytes:
        """Download the document's current file content"""
        pass

    @abstractmethod
    def upload_document(self, request: UploadRequest) -> DocumentDetail:
        """Create a document from file bytes and metadata"""
        pass

    @abstractmethod
    def search(
        self,
        query: str,
        page: int = 1,
        size: int = 20,
        filters: Optional[dict[str, str]] = None
    ) -> SearchPage:
        """Full-text search with optional facet filters"""
        pass

    @abstractmethod
    def update_document(self, document_id: str, metadata: dict[str, Any]) -> DocumentDetail:
        """Patch a document's metadata"""
        pass

    @abstractmethod
    def delete_document(self, document_id: str) -> None:
        """Delete a document"""
        pass

    @abstractmethod
    def get_versions(self, document_id: str) -> list[DocumentVersion]:
        """List stored versions of a document"""
        pass

    @abstractmethod
    def check_status(self) -> None:
        """Raise DocumentsApiError if the service is unhealthy"""
        pass

    @abstractmethod
    def list_companies(self) -> list[MetadataListItem]:
        pass

    @abstractmethod
    def list_holders(self) -> list[MetadataListItem]:
        pass

    @abstractmethod
    def list_document_types(self) -> list[MetadataListItem]:
        pass

    def close(self) -> None:
        """Release any open connections"""
        pass


class SettingsStore(ABC):
    """Port for device preferences"""

    @abstractmethod
    def load(self) -> Settings:
        """Current settings, with defaults for anything unset"""
        pass

    @abstractmethod
    def set_api_base_url(self, url: str) -> Settings:
        pass

    @abstractmethod
    def set_tenant_id(self, tenant_id: str) -> Settings:
        pass

    @abstractmethod
    def set_api_key(self, key: str) -> Settings:
        pass

    @abstractmethod
    def set_theme_mode(self, mode: ThemeMode) -> Settings:
        pass

    @abstractmethod
    def set_speech_pause_duration(self, ms: int) -> Settings:
        """Store the pause duration, clamped to the supported range"""
        pass
