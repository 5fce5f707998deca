"""The list view coordinator.

:class:`QueryOrchestrator` owns search, sort, filter, paging and selection
state, issues fetches to the query service and exposes everything the
renderer needs as plain derived properties.  It is framework-agnostic:
the Reflex binding in :mod:`reflex_list_view.state` drives it from event
handlers, but it can equally be driven from tests or a CLI.

Fetch ordering: every fetch takes a request token, and a response whose
token is no longer the latest is discarded.  ``is_loading`` stays true
until the latest request settles and any export-all fetch has finished.
"""

import math
import time
from collections.abc import Callable
from typing import Any, Literal

from reflex_list_view.columns import ColumnConfigResolver, PillColorResolver, resolve_columns
from reflex_list_view.debounce import Debouncer
from reflex_list_view.errors import (
    ServiceBusinessError,
    TransportError,
    extract_error_message,
)
from reflex_list_view.export import CSVExporter, export_filename
from reflex_list_view.filters import FilterStateManager
from reflex_list_view.models import (
    Column,
    CsvExport,
    DisplayRow,
    FieldMetadata,
    FilterConfiguration,
    ListViewConfig,
    NavigationIntent,
    Notification,
    NotificationVariant,
    QueryParams,
    QueryResult,
    SortDirection,
    TextWrap,
)
from reflex_list_view.owner import OwnerChangeDialog
from reflex_list_view.records import DisplayCache, DisplayRowBuilder, detect_file_object_type
from reflex_list_view.resize import ColumnResizeController, PointerSource
from reflex_list_view.selection import SelectionTracker
from reflex_list_view.services import DirectoryService, OwnerService, QueryService

_DEFAULT_DEBOUNCE_DELAY: float = 0.3

CONFIGURATION_ERROR_MESSAGE: str = "Please configure a query for this component."
QUERY_ERROR_MESSAGE: str = "An error occurred while loading data."
NO_RECORDS_MESSAGE: str = "No records to export"

LoadStatus = Literal["idle", "loading", "error"]


class QueryOrchestrator:
    """Coordinates one list view instance.

    Args:
        config: Admin configuration.
        query_service: Record query service.
        directory_service: User directory search, for the owner dialog.
        owner_service: Bulk owner change service.
        debounce_delay: Quiet period (seconds) for the search inputs.
        pointer_source: Document-level pointer events for column resizing.
        on_notify: Called with every :class:`Notification`.
        on_navigate: Called with every :class:`NavigationIntent`.
    """

    def __init__(
        self,
        config: ListViewConfig,
        query_service: QueryService,
        directory_service: DirectoryService | None = None,
        owner_service: OwnerService | None = None,
        *,
        debounce_delay: float = _DEFAULT_DEBOUNCE_DELAY,
        pointer_source: PointerSource | None = None,
        on_notify: Callable[[Notification], Any] | None = None,
        on_navigate: Callable[[NavigationIntent], Any] | None = None,
    ) -> None:
        self.config = config
        self.query_service = query_service
        self.on_notify = on_notify
        self.on_navigate = on_navigate

        # -- Query state --
        self.records: list[dict[str, Any]] = []
        self.total_records: int = 0
        self.field_metadata: dict[str, FieldMetadata] = {}
        self.current_page: int = 1
        self.sort_field: str = ""
        self.sort_direction: SortDirection = "ASC"
        self.search_term: str = ""
        self.is_loading: bool = False
        self.error_message: str = ""
        self.user_text_wrap: TextWrap | None = None
        self.fetch_count: int = 0
        self._request_seq: int = 0
        self._load_pending: bool = False
        self._export_pending: bool = False

        # -- Collaborators --
        self.column_resolver = ColumnConfigResolver(config.columns)
        self.pill_resolver = PillColorResolver()
        self.file_object_type = detect_file_object_type(config.query)
        self.display_cache = DisplayCache(DisplayRowBuilder(self.pill_resolver, self.file_object_type))
        self.filters = FilterStateManager(self.column_resolver)
        self.selection = SelectionTracker()
        self.resize = ColumnResizeController(pointer_source)
        self.exporter = CSVExporter()
        self.owner_dialog = OwnerChangeDialog(directory_service, owner_service, debounce_delay)
        self.search_debouncer = Debouncer(debounce_delay, self.commit_search)

        # -- Outbound events, drained by the host --
        self.notifications: list[Notification] = []
        self.navigations: list[NavigationIntent] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Seed the default sort and run the first fetch."""
        if self.config.default_sort_field:
            self.sort_field = self.config.default_sort_field
        await self.load_data()

    def disconnect(self) -> None:
        """Release timers and pointer listeners."""
        self.search_debouncer.cancel()
        self.owner_dialog.search_debouncer.cancel()
        self.resize.close()

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    @property
    def status(self) -> LoadStatus:
        if self.is_loading:
            return "loading"
        return "error" if self.error_message else "idle"

    def query_params(self, *, page: int | None = None, page_size: int | None = None) -> QueryParams:
        return QueryParams(
            query=self.config.query,
            search_term=self.search_term,
            sort_field=self.sort_field,
            sort_direction=self.sort_direction,
            page=page if page is not None else self.current_page,
            page_size=page_size if page_size is not None else self.config.page_size,
            filters=self.filters.active_filters,
            scope_record_id=self.config.scope_record_id,
            bypass_sharing=self.config.bypass_sharing,
        )

    async def _execute(self, params: QueryParams) -> QueryResult:
        """Call the query service, mapping failures onto the error taxonomy.

        Raises:
            ServiceBusinessError: The service answered ``success: false``.
            TransportError: The call itself failed.
        """
        self.fetch_count += 1
        try:
            result = QueryResult.coerce(await self.query_service.execute_query(params))
        except Exception as error:
            print(f"[ListView] query failed: {params.to_request()}")
            raise TransportError(extract_error_message(error)) from error
        if not result.success:
            raise ServiceBusinessError(result.error_message or QUERY_ERROR_MESSAGE)
        return result

    async def load_data(self) -> bool:
        """Fetch the current page.  Returns ``True`` if its result was applied."""
        if not self.config.query:
            self.error_message = CONFIGURATION_ERROR_MESSAGE
            return False

        self._request_seq += 1
        token = self._request_seq
        self._load_pending = True
        self.is_loading = True
        self.error_message = ""
        t0 = time.perf_counter()
        try:
            result = await self._execute(self.query_params())
        except (ServiceBusinessError, TransportError) as error:
            if token == self._request_seq:
                self._handle_query_error(error.message)
            return False
        else:
            if token != self._request_seq:
                print(f"[ListView] discarded stale response for request {token}")
                return False
            self.records = list(result.records)
            self.total_records = result.total_count
            self.field_metadata = dict(result.field_metadata)
            self.selection.refresh(self.page_ids)
            print(
                f"[ListView] loaded page {self.current_page}: "
                f"{len(self.records)} of {self.total_records} records "
                f"({(time.perf_counter() - t0) * 1000:.1f}ms)"
            )
            return True
        finally:
            if token == self._request_seq:
                self._load_pending = False
                self._settle_loading()

    def _settle_loading(self) -> None:
        self.is_loading = self._load_pending or self._export_pending

    def _handle_query_error(self, message: str | None) -> None:
        self.error_message = message or QUERY_ERROR_MESSAGE
        self.records = []
        self.total_records = 0
        self.selection.refresh(())

    async def refresh(self) -> bool:
        return await self.load_data()

    # ------------------------------------------------------------------
    # Search & sort
    # ------------------------------------------------------------------

    def handle_search_input(self, value: str | None) -> None:
        """Debounce a keystroke in the search box."""
        self.search_debouncer.trigger(value or "")

    async def commit_search(self, value: str) -> None:
        if value == self.search_term:
            return
        self.search_term = value
        self.current_page = 1
        await self.load_data()

    async def sort_by(self, field: str) -> None:
        if self.sort_field == field:
            self.sort_direction = "DESC" if self.sort_direction == "ASC" else "ASC"
        else:
            self.sort_field = field
            self.sort_direction = "ASC"
        self.current_page = 1
        await self.load_data()

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    async def set_filter(self, field: str, selected_values: list[str]) -> None:
        if not self.filters.set_filter(field, selected_values):
            return
        self.current_page = 1
        await self.load_data()

    async def toggle_filter_option(self, field: str, value: str, checked: bool) -> None:
        if not field or not value:
            return
        await self.set_filter(field, self.filters.toggle_option(field, value, checked))

    async def clear_filter(self, field: str) -> None:
        await self.set_filter(field, [])

    async def clear_all_filters(self) -> None:
        self.filters.clear_all()
        self.current_page = 1
        await self.load_data()

    def toggle_filter_menu(self, field: str) -> None:
        self.filters.toggle_menu(field)

    def handle_document_click(self, inside_filter_bar: bool) -> None:
        self.filters.handle_document_click(inside_filter_bar)

    @property
    def filter_configurations(self) -> list[FilterConfiguration]:
        return self.filters.filter_configurations(self.field_metadata)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    @property
    def page_ids(self) -> list[str]:
        return [str(r.get("Id")) for r in self.records if r.get("Id") is not None]

    def select_all(self, checked: bool) -> None:
        self.selection.select_all(checked, self.page_ids)

    def toggle_row(self, record_id: str, checked: bool) -> None:
        self.selection.toggle(record_id, checked, self.page_ids)

    def clear_selection(self) -> None:
        self.selection.clear()

    # ------------------------------------------------------------------
    # Pagination
    # ------------------------------------------------------------------

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.total_records / self.config.page_size))

    @property
    def show_pagination(self) -> bool:
        return self.total_records > self.config.page_size

    @property
    def is_first_page(self) -> bool:
        return self.current_page <= 1

    @property
    def is_last_page(self) -> bool:
        return self.current_page >= self.total_pages

    @property
    def pagination_start_record(self) -> int:
        return (self.current_page - 1) * self.config.page_size + 1

    @property
    def pagination_end_record(self) -> int:
        return min(self.current_page * self.config.page_size, self.total_records)

    async def first_page(self) -> None:
        self.current_page = 1
        await self.load_data()

    async def previous_page(self) -> None:
        if self.current_page > 1:
            self.current_page -= 1
            await self.load_data()

    async def next_page(self) -> None:
        if self.current_page < self.total_pages:
            self.current_page += 1
            await self.load_data()

    async def last_page(self) -> None:
        self.current_page = self.total_pages
        await self.load_data()

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------

    @property
    def columns(self) -> list[Column]:
        return resolve_columns(
            self.column_resolver.active(),
            self.field_metadata,
            self.pill_resolver,
            sort_field=self.sort_field,
            sort_direction=self.sort_direction,
            column_widths=self.resize.widths,
        )

    @property
    def display_records(self) -> list[DisplayRow]:
        return self.display_cache.rows(
            self.records,
            self.columns,
            self.field_metadata,
            self.selection.selected_ids,
        )

    @property
    def record_count_label(self) -> str:
        if self.total_records == 0:
            return "No records"
        return "1 record" if self.total_records == 1 else f"{self.total_records} records"

    @property
    def has_subtitle(self) -> bool:
        return bool(self.config.subtitle.strip())

    @property
    def has_records(self) -> bool:
        return not self.is_loading and not self.error_message and bool(self.records)

    @property
    def show_empty_state(self) -> bool:
        return not self.is_loading and not self.error_message and not self.records

    @property
    def empty_state_icon(self) -> str:
        if self.filters.has_active_filters:
            return "utility:filterList"
        if self.search_term:
            return "utility:search"
        return "utility:table"

    @property
    def empty_state_message(self) -> str:
        filtered = self.filters.has_active_filters
        if filtered and self.search_term:
            return "No records match your filters and search"
        if filtered:
            return "No records match the selected filters"
        return "No records found"

    @property
    def empty_state_subtext(self) -> str:
        filtered = self.filters.has_active_filters
        if filtered and self.search_term:
            return "Try adjusting your filters or search criteria"
        if filtered:
            return "Try changing or clearing your filter selections"
        if self.search_term:
            return "Try adjusting your search criteria"
        return ""

    @property
    def has_selected_records(self) -> bool:
        return self.selection.count > 0

    @property
    def selected_count(self) -> int:
        return self.selection.count

    @property
    def selected_count_label(self) -> str:
        return self.selection.label

    @property
    def show_selection_actions(self) -> bool:
        return self.config.selectable_rows and self.selection.count > 0

    @property
    def active_text_wrap(self) -> TextWrap:
        return self.user_text_wrap if self.user_text_wrap is not None else self.config.column_text_wrap

    @property
    def is_text_wrapped(self) -> bool:
        return self.active_text_wrap == "wrap"

    @property
    def table_cell_class(self) -> str:
        return "table-cell cell-wrap" if self.is_text_wrapped else "table-cell"

    @property
    def wrap_toggle_label(self) -> str:
        return "Clip Column Text" if self.is_text_wrapped else "Wrap Column Text"

    @property
    def table_class(self) -> str:
        return "data-table data-table-fixed" if self.resize.widths else "data-table"

    @property
    def show_export_page_option(self) -> bool:
        return not self.config.disable_export_page

    @property
    def show_export_all_option(self) -> bool:
        return not self.config.disable_export_all

    @property
    def show_any_export_option(self) -> bool:
        return self.show_export_page_option or self.show_export_all_option

    def toggle_wrap(self) -> None:
        self.user_text_wrap = "clip" if self.is_text_wrapped else "wrap"

    def reset_column_widths(self) -> None:
        self.resize.reset()

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def _export(self, records: list[dict[str, Any]]) -> CsvExport | None:
        if not records:
            self._notify("Warning", NO_RECORDS_MESSAGE, "warning")
            return None
        content = self.exporter.export_rows(records, self.columns)
        self._notify("Success", f"Exported {len(records)} record(s)", "success")
        return CsvExport(
            filename=export_filename(self.config.title),
            content=content,
            record_count=len(records),
        )

    def export_page(self) -> CsvExport | None:
        return self._export(self.records)

    async def export_all(self) -> CsvExport | None:
        """Fetch the whole result set in one page and export it."""
        if self.total_records == 0:
            self._notify("Warning", NO_RECORDS_MESSAGE, "warning")
            return None

        self._export_pending = True
        self.is_loading = True
        try:
            result = await self._execute(self.query_params(page=1, page_size=self.total_records))
        except ServiceBusinessError:
            self._notify("Warning", NO_RECORDS_MESSAGE, "warning")
            return None
        except TransportError:
            self._notify("Error", "Failed to fetch all records for export", "error")
            return None
        finally:
            self._export_pending = False
            self._settle_loading()
        return self._export(list(result.records))

    # ------------------------------------------------------------------
    # Owner change
    # ------------------------------------------------------------------

    def open_owner_dialog(self) -> None:
        self.owner_dialog.open()

    def close_owner_dialog(self) -> None:
        self.owner_dialog.close()

    async def confirm_owner_change(self) -> None:
        result = await self.owner_dialog.submit(sorted(self.selection.selected_ids))
        if result is None:
            return
        if result.success:
            self._notify(
                "Success",
                f"Successfully changed owner for {result.success_count} record(s)",
                "success",
            )
            self.clear_selection()
            self.close_owner_dialog()
            await self.load_data()
        else:
            self._notify("Error", result.error_message or "Failed to change owner", "error")

    # ------------------------------------------------------------------
    # Actions & navigation
    # ------------------------------------------------------------------

    async def handle_action(self, action: str) -> CsvExport | None:
        """Dispatch a header menu action; export actions return the CSV."""
        if action == "refresh":
            await self.refresh()
        elif action == "exportPage":
            return self.export_page()
        elif action == "exportAll":
            return await self.export_all()
        elif action == "changeOwner":
            self.open_owner_dialog()
        elif action == "toggleWrap":
            self.toggle_wrap()
        elif action == "resetColumnWidths":
            self.reset_column_widths()
        return None

    def handle_row_action(self, action: str, record_id: str) -> None:
        row = next((r for r in self.display_records if r.id == record_id), None)
        document_id = row.content_document_id if row else None
        version_id = row.content_version_id if row else None

        if action == "view":
            self.navigate_to_record(record_id)
        elif action == "edit":
            self.navigate_to_record(record_id, action="edit")
        elif action == "changeOwner":
            self.selection.replace([record_id], self.page_ids)
            self.open_owner_dialog()
        elif action == "viewFile":
            self.view_file(document_id)
        elif action == "downloadFile":
            self.download_file(document_id, version_id)

    def handle_row_click(self, record_id: str, target_is_checkbox: bool = False) -> None:
        if target_is_checkbox or not record_id:
            return
        self.navigate_to_record(record_id)

    def navigate_to_record(self, record_id: str, action: str = "view") -> None:
        url = f"/{record_id}" if action == "view" else f"/{record_id}/{action}"
        self._navigate(NavigationIntent(kind="record", url=url, record_id=record_id, action=action))

    def view_file(self, document_id: str | None) -> None:
        if not document_id:
            self._notify("Error", "Unable to preview file - Content Document ID not found", "error")
            return
        self._navigate(
            NavigationIntent(kind="file_preview", url=f"/files/{document_id}", record_id=document_id)
        )

    def download_file(self, document_id: str | None, version_id: str | None) -> None:
        if not document_id and not version_id:
            self._notify("Error", "Unable to download file - file ID not found", "error")
            return
        if version_id:
            url = f"/sfc/servlet.shepherd/version/download/{version_id}"
        else:
            url = f"/sfc/servlet.shepherd/document/download/{document_id}"
        self._navigate(NavigationIntent(kind="download", url=url, record_id=version_id or document_id or ""))

    # ------------------------------------------------------------------
    # Outbound events
    # ------------------------------------------------------------------

    def _notify(self, title: str, message: str, variant: NotificationVariant) -> None:
        notification = Notification(title=title, message=message, variant=variant)
        self.notifications.append(notification)
        if self.on_notify is not None:
            self.on_notify(notification)

    def _navigate(self, intent: NavigationIntent) -> None:
        self.navigations.append(intent)
        if self.on_navigate is not None:
            self.on_navigate(intent)

    def drain_events(self) -> tuple[list[Notification], list[NavigationIntent]]:
        """Return and clear the pending notifications and navigation intents."""
        notifications, self.notifications = self.notifications, []
        navigations, self.navigations = self.navigations, []
        return notifications, navigations
