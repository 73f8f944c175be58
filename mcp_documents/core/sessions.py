"""
Sessions - per-workflow state holders

Each session owns a StateStore with a frozen snapshot and exposes the
operations of one workflow: browsing the document list, searching, uploading,
viewing and editing a document, and changing settings. Network failures end
up in the snapshot's error field rather than propagating to the caller.

The MCP handlers and the CLI drive search through SearchSession.submit().
Typing (update_query), voice input (on_voice_result) and change observers
(session.store.subscribe) are library entry points for an interactive front
end; nothing in this package renders live state.
"""
import asyncio
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, Optional

from . import facets
from .domain import (
    AggregationBucket,
    DocumentDetail,
    DocumentSummary,
    DocumentVersion,
    FacetGroup,
    MetadataFields,
    MetadataListItem,
    PageMeta,
    SearchHit,
    Settings,
    ThemeMode,
)
from .filenames import compose_for_document, compose_for_upload
from .ports import DocumentsApiError, SettingsStore
from .services import (
    CheckStatusService,
    DeleteDocumentService,
    DownloadDocumentService,
    GetDocumentService,
    ListDocumentsService,
    MetadataOptionsService,
    SearchDocumentsService,
    UpdateDocumentService,
    UploadDocumentService,
)
from .state import StateStore

logger = logging.getLogger(__name__)

# Fields backed by a server-side option list
OPTION_FIELDS = {
    "company": "companies",
    "holder": "holders",
    "document_type": "document_types",
}


def match_option(text: str, options: list[MetadataListItem]) -> str:
    """Canonical option name for text, or text verbatim when nothing matches"""
    needle = text.strip().lower()
    if not needle:
        return text
    for option in options:
        if option.name.lower() == needle:
            return option.name
    return text


def suggest_options(text: str, options: list[MetadataListItem], limit: int = 10) -> list[str]:
    """Option names containing text, case-insensitively"""
    needle = text.strip().lower()
    names = [o.name for o in options if needle in o.name.lower()]
    return names[:limit]


# ---------------------------------------------------------------------------
# Document list
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DocumentListState:
    all_documents: tuple[DocumentSummary, ...] = ()
    documents: tuple[DocumentSummary, ...] = ()
    meta: Optional[PageMeta] = None
    current_page: int = 1
    active: Mapping[str, str] = field(default_factory=dict)
    facet_groups: tuple[FacetGroup, ...] = ()
    is_loading: bool = False
    is_refreshing: bool = False
    is_loading_more: bool = False
    error: Optional[str] = None


def _refilter(state: DocumentListState, active: Mapping[str, str]) -> DocumentListState:
    return replace(
        state,
        active=dict(active),
        documents=tuple(facets.apply_filters(state.all_documents, active)),
        facet_groups=tuple(facets.build_facets(state.all_documents, active=active)),
    )


class DocumentListSession:
    """Paginated document list with locally derived facets"""

    def __init__(self, list_service: ListDocumentsService, per_page: int = 20):
        self.list_service = list_service
        self.per_page = per_page
        self.store: StateStore[DocumentListState] = StateStore(DocumentListState())

    @property
    def state(self) -> DocumentListState:
        return self.store.state

    def load(self, page: int = 1) -> DocumentListState:
        """Load a page; page 1 replaces the accumulated documents"""
        if page == 1:
            self.store.dispatch(lambda s: replace(s, is_loading=not s.is_refreshing, error=None))
        else:
            self.store.dispatch(lambda s: replace(s, is_loading_more=True))

        try:
            result = self.list_service.execute(page=page, per_page=self.per_page)
        except DocumentsApiError as e:
            return self.store.dispatch(lambda s: replace(
                s, is_loading=False, is_refreshing=False, is_loading_more=False, error=e.message
            ))

        def loaded(s: DocumentListState) -> DocumentListState:
            accumulated = tuple(result.documents) if page == 1 else s.all_documents + tuple(result.documents)
            s = replace(
                s,
                all_documents=accumulated,
                meta=result.meta,
                current_page=page,
                is_loading=False,
                is_refreshing=False,
                is_loading_more=False,
            )
            return _refilter(s, s.active)

        return self.store.dispatch(loaded)

    def refresh(self) -> DocumentListState:
        self.store.dispatch(lambda s: replace(s, is_refreshing=True, error=None))
        return self.load(page=1)

    def load_more(self) -> DocumentListState:
        """Load the next page if the server reports one"""
        state = self.state
        if state.meta is None or state.meta.pages is None:
            return state
        if state.current_page < state.meta.pages and not state.is_loading_more:
            return self.load(page=state.current_page + 1)
        return state

    def toggle_filter(self, group_key: str, item_key: Optional[str]) -> DocumentListState:
        return self.store.dispatch(
            lambda s: _refilter(s, facets.toggle(group_key, item_key, s.active))
        )

    def clear_filters(self) -> DocumentListState:
        return self.store.dispatch(lambda s: _refilter(s, {}))

    def active_filters(self):
        return facets.active_filters(self.state.active, facets.selector_labels(facets.LIST_SELECTORS))


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SearchState:
    query: str = ""
    hits: tuple[SearchHit, ...] = ()
    total: int = 0
    aggregations: Mapping[str, list[AggregationBucket]] = field(default_factory=dict)
    active: Mapping[str, str] = field(default_factory=dict)
    facet_groups: tuple[FacetGroup, ...] = ()
    is_searching: bool = False
    is_listening: bool = False
    has_searched: bool = False
    voice_error: Optional[str] = None
    error: Optional[str] = None


def _with_active(state: SearchState, active: Mapping[str, str]) -> SearchState:
    return replace(
        state,
        active=dict(active),
        facet_groups=tuple(facets.from_server_aggregations(state.aggregations, active=active)),
    )


class SearchSession:
    """Server-side search with debounced typing and server aggregations.

    update_query() and on_voice_result() schedule work on the running
    asyncio loop; search() itself is a blocking call.
    """

    def __init__(
        self,
        search_service: SearchDocumentsService,
        debounce_seconds: float = 0.5,
        page: int = 1,
        size: int = 20
    ):
        self.search_service = search_service
        self.debounce_seconds = debounce_seconds
        self.page = page
        self.size = size
        self.store: StateStore[SearchState] = StateStore(SearchState())
        self._pending: Optional[asyncio.Task] = None

    @property
    def state(self) -> SearchState:
        return self.store.state

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def _debounced_search(self) -> None:
        await asyncio.sleep(self.debounce_seconds)
        await asyncio.to_thread(self.search)

    def update_query(self, query: str) -> Optional[asyncio.Task]:
        """Set the query and (re)schedule a search after the debounce delay"""
        self.store.dispatch(lambda s: replace(s, query=query))
        self._cancel_pending()
        if query.strip():
            self._pending = asyncio.get_running_loop().create_task(self._debounced_search())
        return self._pending

    def search(self) -> SearchState:
        query = self.state.query.strip()
        if not query:
            return self.state
        logger.debug(f"search: {query!r} filters={dict(self.state.active)}")

        self.store.dispatch(lambda s: replace(s, is_searching=True, error=None, has_searched=True))
        try:
            result = self.search_service.execute(
                query, page=self.page, size=self.size, filters=dict(self.state.active)
            )
        except DocumentsApiError as e:
            return self.store.dispatch(lambda s: replace(s, is_searching=False, error=e.message))

        def searched(s: SearchState) -> SearchState:
            s = replace(
                s,
                hits=tuple(result.hits),
                total=result.total,
                aggregations=result.meta.aggregations if result.meta else {},
                is_searching=False,
            )
            return _with_active(s, s.active)

        return self.store.dispatch(searched)

    def toggle_filter(self, group_key: str, item_key: Optional[str]) -> SearchState:
        """Change a filter and immediately re-run the query with it"""
        state = self.store.dispatch(
            lambda s: _with_active(s, facets.toggle(group_key, item_key, s.active))
        )
        if state.query.strip():
            self._cancel_pending()
            return self.search()
        return state

    def clear_filters(self) -> SearchState:
        state = self.store.dispatch(lambda s: _with_active(s, {}))
        if state.query.strip():
            self._cancel_pending()
            return self.search()
        return state

    def active_filters(self):
        return facets.active_filters(self.state.active, facets.SEARCH_FACET_LABELS)

    def submit(self, query: str) -> SearchState:
        """Replace the query and search now, dropping any pending debounce"""
        self.store.dispatch(lambda s: replace(s, query=query))
        self._cancel_pending()
        return self.search()

    def on_voice_result(self, text: str) -> SearchState:
        """Transcribed speech replaces the query and searches without debounce"""
        self.store.dispatch(lambda s: replace(s, is_listening=False))
        return self.submit(text)

    def set_listening(self, listening: bool) -> SearchState:
        return self.store.dispatch(lambda s: replace(s, is_listening=listening))

    def set_voice_error(self, error: Optional[str]) -> SearchState:
        return self.store.dispatch(lambda s: replace(s, voice_error=error, is_listening=False))

    def clear_voice_error(self) -> SearchState:
        return self.store.dispatch(lambda s: replace(s, voice_error=None))


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UploadState:
    file_path: Optional[Path] = None
    filename: str = ""
    mime_type: Optional[str] = None
    fields: MetadataFields = MetadataFields()
    options: Mapping[str, list[MetadataListItem]] = field(default_factory=dict)
    uploaded: Optional[DocumentDetail] = None
    is_uploading: bool = False
    upload_success: bool = False
    error: Optional[str] = None


class UploadSession:
    """Pick a file, fill in metadata, preview the name, upload"""

    def __init__(self, upload_service: UploadDocumentService, options_service: MetadataOptionsService):
        self.upload_service = upload_service
        self.options_service = options_service
        self.store: StateStore[UploadState] = StateStore(UploadState())

    @property
    def state(self) -> UploadState:
        return self.store.state

    def load_options(self) -> UploadState:
        options = self.options_service.execute()
        return self.store.dispatch(lambda s: replace(s, options=options))

    def select_file(self, file_path: str | Path, mime_type: Optional[str] = None) -> UploadState:
        path = Path(file_path)
        return self.store.dispatch(lambda s: replace(
            s, file_path=path, filename=path.name, mime_type=mime_type, upload_success=False, error=None
        ))

    def set_field(self, name: str, value: Any) -> UploadState:
        """Set one metadata field; option-backed fields snap to a known name"""
        def update(s: UploadState) -> UploadState:
            if name in OPTION_FIELDS and isinstance(value, str):
                resolved = match_option(value, s.options.get(OPTION_FIELDS[name], []))
            else:
                resolved = value
            return replace(s, fields=s.fields.with_field(name, resolved))
        return self.store.dispatch(update)

    def preview_filename(self) -> str:
        state = self.state
        return compose_for_upload(state.filename, state.fields)

    def upload(self) -> UploadState:
        state = self.state
        if state.file_path is None:
            return state

        self.store.dispatch(lambda s: replace(s, is_uploading=True, error=None))
        try:
            document, _ = self.upload_service.execute(state.file_path, state.fields, mime_type=state.mime_type)
        except (DocumentsApiError, OSError) as e:
            message = getattr(e, "message", None) or str(e) or "Upload failed"
            return self.store.dispatch(lambda s: replace(s, is_uploading=False, error=message))

        return self.store.dispatch(lambda s: replace(
            s, is_uploading=False, upload_success=True, uploaded=document
        ))

    def reset(self) -> UploadState:
        """Clear the form but keep the loaded option lists"""
        return self.store.dispatch(lambda s: UploadState(options=s.options))


# ---------------------------------------------------------------------------
# Document detail / edit
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DocumentDetailState:
    document: Optional[DocumentDetail] = None
    versions: tuple[DocumentVersion, ...] = ()
    options: Mapping[str, list[MetadataListItem]] = field(default_factory=dict)
    is_loading: bool = False
    is_saving: bool = False
    is_deleting: bool = False
    is_editing: bool = False
    fields: MetadataFields = MetadataFields()
    downloaded_path: Optional[Path] = None
    deleted: bool = False
    action_success: Optional[str] = None
    error: Optional[str] = None


class DocumentDetailSession:
    """View one document; edit-and-rename, download or delete it"""

    def __init__(
        self,
        get_service: GetDocumentService,
        update_service: UpdateDocumentService,
        delete_service: DeleteDocumentService,
        download_service: DownloadDocumentService,
        options_service: MetadataOptionsService,
    ):
        self.get_service = get_service
        self.update_service = update_service
        self.delete_service = delete_service
        self.download_service = download_service
        self.options_service = options_service
        self.store: StateStore[DocumentDetailState] = StateStore(DocumentDetailState())

    @property
    def state(self) -> DocumentDetailState:
        return self.store.state

    def load_options(self) -> DocumentDetailState:
        options = self.options_service.execute()
        return self.store.dispatch(lambda s: replace(s, options=options))

    def load(self, document_id: str) -> DocumentDetailState:
        self.store.dispatch(lambda s: replace(s, is_loading=True, error=None))
        try:
            document, versions = self.get_service.execute(document_id)
        except DocumentsApiError as e:
            return self.store.dispatch(lambda s: replace(s, is_loading=False, error=e.message))
        return self.store.dispatch(lambda s: replace(
            s, document=document, versions=tuple(versions), is_loading=False
        ))

    def start_editing(self) -> DocumentDetailState:
        """Enter edit mode with fields prefilled from the stored metadata"""
        def start(s: DocumentDetailState) -> DocumentDetailState:
            if s.document is None:
                return s
            return replace(s, is_editing=True, fields=MetadataFields.from_metadata(s.document.metadata))
        return self.store.dispatch(start)

    def cancel_editing(self) -> DocumentDetailState:
        return self.store.dispatch(lambda s: replace(s, is_editing=False))

    def set_field(self, name: str, value: Any) -> DocumentDetailState:
        def update(s: DocumentDetailState) -> DocumentDetailState:
            if name in OPTION_FIELDS and isinstance(value, str):
                resolved = match_option(value, s.options.get(OPTION_FIELDS[name], []))
            else:
                resolved = value
            return replace(s, fields=s.fields.with_field(name, resolved))
        return self.store.dispatch(update)

    def preview_filename(self) -> str:
        state = self.state
        if state.document is None:
            return ""
        return compose_for_document(state.document, state.fields)

    def save(self) -> DocumentDetailState:
        """Persist the edited metadata and rename to the previewed filename"""
        state = self.state
        if state.document is None:
            return state

        self.store.dispatch(lambda s: replace(s, is_saving=True, error=None))
        try:
            updated, _ = self.update_service.execute(state.document.id, state.fields, document=state.document)
        except DocumentsApiError as e:
            return self.store.dispatch(lambda s: replace(s, is_saving=False, error=e.message))
        return self.store.dispatch(lambda s: replace(
            s, document=updated, is_saving=False, is_editing=False, action_success="Saved & renamed"
        ))

    def download(self, dest_dir: Optional[str | Path] = None) -> DocumentDetailState:
        state = self.state
        if state.document is None:
            return state
        try:
            _, path = self.download_service.execute(state.document.id, dest_dir=dest_dir)
        except (DocumentsApiError, OSError) as e:
            message = getattr(e, "message", None) or str(e)
            return self.store.dispatch(lambda s: replace(s, error=message))
        return self.store.dispatch(lambda s: replace(s, downloaded_path=path, action_success=f"Saved to {path}"))

    def delete(self) -> DocumentDetailState:
        state = self.state
        if state.document is None:
            return state

        self.store.dispatch(lambda s: replace(s, is_deleting=True, error=None))
        try:
            self.delete_service.execute(state.document.id)
        except DocumentsApiError as e:
            return self.store.dispatch(lambda s: replace(s, is_deleting=False, error=e.message))
        return self.store.dispatch(lambda s: replace(
            s, is_deleting=False, deleted=True, action_success="Document deleted"
        ))

    def clear_action_result(self) -> DocumentDetailState:
        return self.store.dispatch(lambda s: replace(s, action_success=None, error=None))


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SettingsState:
    settings: Optional[Settings] = None
    status_message: Optional[str] = None
    is_checking_status: bool = False


class SettingsSession:
    """Edit preferences and test the connection"""

    def __init__(self, store: SettingsStore, status_service: CheckStatusService):
        self.settings_store = store
        self.status_service = status_service
        self.store: StateStore[SettingsState] = StateStore(SettingsState(settings=store.load()))

    @property
    def state(self) -> SettingsState:
        return self.store.state

    def _saved(self, settings: Settings) -> SettingsState:
        return self.store.dispatch(lambda s: replace(s, settings=settings))

    def set_api_base_url(self, url: str) -> SettingsState:
        return self._saved(self.settings_store.set_api_base_url(url))

    def set_tenant_id(self, tenant_id: str) -> SettingsState:
        return self._saved(self.settings_store.set_tenant_id(tenant_id))

    def set_api_key(self, key: str) -> SettingsState:
        return self._saved(self.settings_store.set_api_key(key))

    def set_theme_mode(self, mode: ThemeMode) -> SettingsState:
        return self._saved(self.settings_store.set_theme_mode(mode))

    def set_speech_pause_duration(self, ms: int) -> SettingsState:
        return self._saved(self.settings_store.set_speech_pause_duration(ms))

    def check_status(self) -> SettingsState:
        self.store.dispatch(lambda s: replace(s, is_checking_status=True, status_message=None))
        _, message = self.status_service.execute()
        return self.store.dispatch(lambda s: replace(s, is_checking_status=False, status_message=message))
