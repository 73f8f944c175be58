"""
Core - Domain logic and ports

This package contains:
- domain.py: Pure domain models
- filenames.py: Filename composition from metadata
- facets.py: Facet building and filtering
- ports.py: Port interfaces (abstractions for external dependencies)
- services.py: Application services (use cases)
- state.py, sessions.py: Immutable-snapshot workflow state
"""
from .domain import (
    ActiveFilter,
    AttributeSelector,
    DocumentDetail,
    DocumentSummary,
    FacetBucket,
    FacetGroup,
    MetadataFields,
    OriginalFilenameInfo,
    SearchHit,
    Settings,
    ThemeMode,
)
from .filenames import compose, compose_for_document, compose_for_upload
from .facets import apply_filters, build_facets, from_server_aggregations, toggle
from .ports import DocumentGateway, DocumentsApiError, SettingsError, SettingsStore
from .services import (
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

__all__ = [
    # Domain models
    "ActiveFilter",
    "AttributeSelector",
    "DocumentDetail",
    "DocumentSummary",
    "FacetBucket",
    "FacetGroup",
    "MetadataFields",
    "OriginalFilenameInfo",
    "SearchHit",
    "Settings",
    "ThemeMode",
    # Pure logic
    "compose",
    "compose_for_document",
    "compose_for_upload",
    "apply_filters",
    "build_facets",
    "from_server_aggregations",
    "toggle",
    # Ports
    "DocumentGateway",
    "DocumentsApiError",
    "SettingsError",
    "SettingsStore",
    # Services
    "ListDocumentsService",
    "GetDocumentService",
    "SearchDocumentsService",
    "UploadDocumentService",
    "UpdateDocumentService",
    "DeleteDocumentService",
    "DownloadDocumentService",
    "MetadataOptionsService",
    "CheckStatusService",
]
