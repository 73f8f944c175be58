"""
Domain Models - Pure business entities

No external dependencies. These represent the core business concepts:
documents as returned by the API, the metadata fields used for naming,
and the facet types used for filtering.
"""
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Optional


_MARK_TAG = re.compile(r"</?mark>")

# Input-layer length caps for the date fields
FIELD_LIMITS = {"year": 4, "month": 2, "day": 2}

TAX_TYPES = ["", "USTax", "Apr", "K1", "1040"]

# API field name -> MetadataFields attribute
API_FIELD_NAMES = {
    "year": "year",
    "month": "month",
    "day": "day",
    "company": "company",
    "holder": "holder",
    "documentType": "document_type",
    "purpose": "purpose",
    "accountNumber": "account_number",
    "taxType": "tax_type",
    "wintonDisclosure": "winton_disclosure",
    "ustaxAccountClosing": "ustax_account_closing",
    "ustaxOpening": "ustax_opening",
    "notes": "notes",
}


def _text(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass(frozen=True)
class MetadataFields:
    """Metadata collected on upload or edit; blank means not set"""
    year: str = ""
    month: str = ""
    day: str = ""
    company: str = ""
    holder: str = ""
    document_type: str = ""
    purpose: str = ""
    account_number: str = ""
    tax_type: str = ""
    winton_disclosure: bool = False
    ustax_account_closing: bool = False
    ustax_opening: bool = False
    notes: str = ""

    @classmethod
    def from_metadata(cls, metadata: Optional["DocumentMetadata"]) -> "MetadataFields":
        """Prefill fields from a stored document's metadata"""
        if metadata is None:
            return cls()
        return cls(
            year=_text(metadata.year),
            month=_text(metadata.month),
            day=_text(metadata.day),
            company=_text(metadata.company),
            holder=_text(metadata.holder),
            document_type=_text(metadata.document_type),
            purpose=_text(metadata.purpose),
            account_number=_text(metadata.account_number),
            tax_type=_text(metadata.tax_type),
            winton_disclosure=bool(metadata.winton_disclosure),
            ustax_account_closing=bool(metadata.ustax_account_closing),
            ustax_opening=bool(metadata.ustax_opening),
            notes=_text(metadata.notes),
        )

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "MetadataFields":
        """Build from API-style (camelCase) keys; unknown keys are ignored"""
        fields = cls()
        for key, value in (data or {}).items():
            name = API_FIELD_NAMES.get(key)
            if name is not None and value is not None:
                fields = fields.with_field(name, value)
        return fields

    def with_field(self, name: str, value: Any) -> "MetadataFields":
        """Return a copy with one field set, applying the date length caps"""
        if isinstance(getattr(self, name), bool):
            return replace(self, **{name: bool(value)})
        value = _text(value)
        limit = FIELD_LIMITS.get(name)
        if limit is not None:
            value = value[:limit]
        return replace(self, **{name: value})

    def to_upload_payload(self) -> dict[str, Any]:
        """Metadata for a create request: only non-blank fields and set flags"""
        payload: dict[str, Any] = {}
        for key, value in self._api_strings():
            if value.strip():
                payload[key] = value
        for key, flag in self._api_flags():
            if flag:
                payload[key] = True
        return payload

    def to_update_payload(self) -> dict[str, Any]:
        """Metadata for an update request: blanks are sent as null"""
        payload: dict[str, Any] = {}
        for key, value in self._api_strings():
            payload[key] = value if value.strip() else None
        for key, flag in self._api_flags():
            payload[key] = flag
        return payload

    def _api_strings(self) -> list[tuple[str, str]]:
        pairs = [
            ("company", self.company),
            ("holder", self.holder),
            ("documentType", self.document_type),
            ("purpose", self.purpose),
            ("accountNumber", self.account_number),
            ("year", self.year),
            ("month", self.month),
            ("day", self.day),
            ("taxType", self.tax_type),
            ("notes", self.notes),
        ]
        return [(key, _text(value)) for key, value in pairs]

    def _api_flags(self) -> list[tuple[str, bool]]:
        pairs = [
            ("wintonDisclosure", self.winton_disclosure),
            ("ustaxAccountClosing", self.ustax_account_closing),
            ("ustaxOpening", self.ustax_opening),
        ]
        return [(key, bool(flag)) for key, flag in pairs]


@dataclass(frozen=True)
class OriginalFilenameInfo:
    """The authoritative filename a composed name is derived from"""
    extension_hint: str
    fallback_filename: str

    @classmethod
    def from_filename(cls, filename: str) -> "OriginalFilenameInfo":
        # Suffix after the last dot, "pdf" when there is none
        _, dot, suffix = filename.rpartition(".")
        return cls(extension_hint=suffix if dot else "pdf", fallback_filename=filename)


@dataclass(frozen=True)
class FacetBucket:
    """A distinct facet value with its document count"""
    key: str
    count: int = 0
    label: str = ""

    def __post_init__(self):
        if not self.label:
            object.__setattr__(self, "label", self.key)


@dataclass(frozen=True)
class FacetGroup:
    """One facet (company, year, ...) with its buckets and selection"""
    group_key: str
    label: str
    buckets: tuple[FacetBucket, ...]
    selected: Optional[str] = None


@dataclass(frozen=True)
class AttributeSelector:
    """How to read one facet attribute from an entity.

    sort is "count" (count descending, ties in first-seen order) or
    "key_desc" (key descending, used for years).
    """
    group_key: str
    label: str
    getter: Callable[[Any], Optional[str]]
    sort: str = "count"


@dataclass(frozen=True)
class ActiveFilter:
    """A selected filter as shown in the filter bar"""
    group_key: str
    group_label: str
    value: str


@dataclass
class DocumentMetadata:
    """User-editable metadata stored with a document"""
    category: Optional[str] = None
    confidentiality_level: Optional[str] = None
    notes: Optional[str] = None
    company: Optional[str] = None
    holder: Optional[str] = None
    document_type: Optional[str] = None
    year: Optional[str] = None
    month: Optional[str] = None
    day: Optional[str] = None
    purpose: Optional[str] = None
    account_number: Optional[str] = None
    tax_type: Optional[str] = None
    winton_disclosure: Optional[bool] = None
    ustax_account_closing: Optional[bool] = None
    ustax_opening: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["DocumentMetadata"]:
        if data is None:
            return None
        return cls(
            category=data.get("category"),
            confidentiality_level=data.get("confidentialityLevel"),
            notes=data.get("notes"),
            company=data.get("company"),
            holder=data.get("holder"),
            document_type=data.get("documentType"),
            year=_optional_text(data.get("year")),
            month=_optional_text(data.get("month")),
            day=_optional_text(data.get("day")),
            purpose=data.get("purpose"),
            account_number=data.get("accountNumber"),
            tax_type=data.get("taxType"),
            winton_disclosure=data.get("wintonDisclosure"),
            ustax_account_closing=data.get("ustaxAccountClosing"),
            ustax_opening=data.get("ustaxOpening"),
        )


def _optional_text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


@dataclass
class DocumentSummary:
    """A document as it appears in a list page"""
    id: str
    filename: str
    original_filename: Optional[str] = None
    size: Optional[int] = None
    mime_type: Optional[str] = None
    storage_path: Optional[str] = None
    uploaded_at: Optional[str] = None
    created_at: Optional[str] = None
    modified_at: Optional[str] = None
    metadata: Optional[DocumentMetadata] = None
    deleted: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: dict) -> "DocumentSummary":
        return cls(
            id=str(data["id"]),
            filename=data.get("filename") or "",
            original_filename=data.get("originalFilename"),
            size=data.get("size"),
            mime_type=data.get("mimeType"),
            storage_path=data.get("storagePath"),
            uploaded_at=data.get("uploadedAt"),
            created_at=data.get("createdAt"),
            modified_at=data.get("modifiedAt"),
            metadata=DocumentMetadata.from_dict(data.get("metadata")),
            deleted=data.get("deleted"),
        )

    @property
    def display_name(self) -> str:
        return self.original_filename or self.filename

    @property
    def category(self) -> Optional[str]:
        return self.metadata.category if self.metadata else None


@dataclass
class DocumentDetail(DocumentSummary):
    """A single document with version and index information"""
    current_version: Optional[int] = None
    indexed: Optional[bool] = None
    text_content: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "DocumentDetail":
        summary = DocumentSummary.from_dict(data)
        return cls(
            **vars(summary),
            current_version=data.get("currentVersion"),
            indexed=data.get("indexed"),
            text_content=data.get("textContent"),
        )


@dataclass
class SearchHit:
    """A search result with relevance score and highlight snippets"""
    id: str
    filename: str
    original_filename: Optional[str] = None
    mime_type: Optional[str] = None
    size: Optional[int] = None
    storage_path: Optional[str] = None
    metadata: Optional[DocumentMetadata] = None
    score: Optional[float] = None
    highlight: Optional[dict[str, list[str]]] = None
    created_at: Optional[str] = None
    uploaded_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "SearchHit":
        return cls(
            id=str(data["id"]),
            filename=data.get("filename") or "",
            original_filename=data.get("originalFilename"),
            mime_type=data.get("mimeType"),
            size=data.get("size"),
            storage_path=data.get("storagePath"),
            metadata=DocumentMetadata.from_dict(data.get("metadata")),
            score=data.get("score"),
            highlight=data.get("highlight"),
            created_at=data.get("createdAt"),
            uploaded_at=data.get("uploadedAt"),
        )

    @property
    def display_name(self) -> str:
        return self.original_filename or self.filename

    @property
    def highlight_text(self) -> Optional[str]:
        """First highlight snippet with <mark> tags stripped"""
        if not self.highlight:
            return None
        snippets = next(iter(self.highlight.values()), None)
        if not snippets:
            return None
        return _MARK_TAG.sub("", snippets[0]).strip()


@dataclass
class DocumentVersion:
    """A stored revision of a document"""
    id: str
    version_number: int
    filename: Optional[str] = None
    size: Optional[int] = None
    created_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "DocumentVersion":
        return cls(
            id=str(data["id"]),
            version_number=int(data.get("versionNumber", 0)),
            filename=data.get("filename"),
            size=data.get("size"),
            created_at=data.get("createdAt"),
        )


@dataclass
class MetadataListItem:
    """A known company, holder or document type"""
    id: str
    name: str
    document_count: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "MetadataListItem":
        count = data.get("_count") or {}
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            document_count=int(count.get("documents") or 0),
        )


@dataclass
class AggregationBucket:
    """A server-computed facet bucket"""
    key: str
    doc_count: int = 0


@dataclass
class PageMeta:
    """Pagination and aggregation info from a response envelope"""
    page: Optional[int] = None
    per_page: Optional[int] = None
    total: Optional[int] = None
    pages: Optional[int] = None
    aggregations: dict[str, list[AggregationBucket]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["PageMeta"]:
        if data is None:
            return None
        aggregations = {}
        for attribute, result in (data.get("aggregations") or {}).items():
            buckets = (result or {}).get("buckets") or []
            aggregations[attribute] = [
                AggregationBucket(key=str(b["key"]), doc_count=int(b.get("doc_count") or 0))
                for b in buckets
            ]
        return cls(
            page=data.get("page"),
            per_page=data.get("per_page"),
            total=data.get("total"),
            pages=data.get("pages"),
            aggregations=aggregations,
        )


@dataclass
class DocumentPage:
    """One page of documents plus its envelope meta"""
    documents: list[DocumentSummary]
    meta: Optional[PageMeta] = None


@dataclass
class SearchPage:
    """One page of search hits plus its envelope meta"""
    hits: list[SearchHit]
    meta: Optional[PageMeta] = None

    @property
    def total(self) -> int:
        if self.meta and self.meta.total is not None:
            return self.meta.total
        return len(self.hits)


@dataclass
class UploadRequest:
    """A file to create on the server"""
    content: bytes
    filename: str
    mime_type: str = "application/octet-stream"
    metadata: dict[str, Any] = field(default_factory=dict)


class ThemeMode(str, Enum):
    LIGHT = "LIGHT"
    DARK = "DARK"
    SYSTEM = "SYSTEM"

    @classmethod
    def from_string(cls, value: Optional[str]) -> "ThemeMode":
        try:
            return cls(value)
        except ValueError:
            return cls.SYSTEM

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class Settings:
    """Device preferences"""
    api_base_url: str
    tenant_id: str
    api_key: str = ""
    theme_mode: ThemeMode = ThemeMode.SYSTEM
    speech_pause_duration_ms: int = 3000
