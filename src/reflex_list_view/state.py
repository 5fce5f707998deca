"""Reflex state mixin binding a :class:`QueryOrchestrator` to reactive vars.

Users inherit from :class:`ListViewMixin` **and** ``rx.State``, call
:meth:`ListViewMixin.set_list_view` from a load handler, and render with
:func:`reflex_list_view.components.list_view`::

    class CasesState(ListViewMixin, rx.State):
        async def load(self):
            return await self.set_list_view(CONFIG, LazyFrameQueryService(lf))

Each subclass gets its own independent set of ``lv_*`` vars, and each
browser session its own orchestrator.  ``list_view`` releases the
orchestrator on unmount and rebuilds it from the shared config on mount.
"""

import dataclasses
from typing import Any

import reflex as rx

from reflex_list_view.models import (
    Column,
    DisplayRow,
    DirectoryUser,
    FilterConfiguration,
    ListViewConfig,
    NavigationIntent,
    Notification,
)
from reflex_list_view.orchestrator import QueryOrchestrator
from reflex_list_view.services import DirectoryService, OwnerService, QueryService


# ---------------------------------------------------------------------------
# Module-level orchestrator registry
# ---------------------------------------------------------------------------

# Orchestrators hold services and caches that cannot be serialised into
# Reflex state, so they live here.  Each one carries a single browser
# session's search, filters, page and selection, so the key is the state
# class name plus the session's client token.
_orchestrator_registry: dict[str, QueryOrchestrator] = {}


@dataclasses.dataclass(frozen=True)
class _ListViewSetup:
    """Config and services shared by every session of one state class."""

    config: ListViewConfig
    query_service: QueryService
    directory_service: DirectoryService | None = None
    owner_service: OwnerService | None = None

    def build(self) -> QueryOrchestrator:
        return QueryOrchestrator(
            self.config, self.query_service, self.directory_service, self.owner_service
        )


_setup_registry: dict[str, _ListViewSetup] = {}


def _cache_key(state_name: str, client_token: str) -> str:
    return f"{state_name}:{client_token}"


def _get_orchestrator(cache_id: str) -> QueryOrchestrator | None:
    return _orchestrator_registry.get(cache_id) if cache_id else None


def _register_orchestrator(cache_id: str, orchestrator: QueryOrchestrator) -> None:
    """Register *orchestrator*, disconnecting the one it replaces."""
    _release_orchestrator(cache_id)
    _orchestrator_registry[cache_id] = orchestrator


def _release_orchestrator(cache_id: str) -> None:
    previous = _orchestrator_registry.pop(cache_id, None)
    if previous is not None:
        previous.disconnect()


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def row_to_state(row: DisplayRow) -> dict[str, Any]:
    """JSON-safe dict for one display row; raw field values are dropped."""
    data = dataclasses.asdict(row)
    for field in data["display_fields"]:
        field.pop("raw_value", None)
    return data


def column_to_state(column: Column) -> dict[str, Any]:
    data = dataclasses.asdict(column)
    data["has_custom_width"] = column.has_custom_width
    return data


def filter_to_state(config: FilterConfiguration) -> dict[str, Any]:
    return dataclasses.asdict(config)


def user_to_state(user: DirectoryUser) -> dict[str, Any]:
    return dataclasses.asdict(user)


def notification_to_event(notification: Notification) -> rx.event.EventSpec:
    return rx.toast(
        notification.title,
        level=notification.variant,
        description=notification.message,
    )


def navigation_to_event(intent: NavigationIntent) -> rx.event.EventSpec:
    return rx.redirect(intent.url, is_external=intent.kind == "download")


# ---------------------------------------------------------------------------
# ListViewMixin
# ---------------------------------------------------------------------------

class ListViewMixin(rx.State, mixin=True):
    """Reflex State mixin for a configurable record list view.

    This is a Reflex **mixin** (``mixin=True``): the vars declared here
    are injected into each concrete subclass, so several list views on
    one page do not interfere.  All var names are prefixed with ``lv_``.

    Handlers that fetch are generators: the loading flag is pushed to the
    frontend before the query service is awaited.
    """

    # -- Frontend state vars --
    lv_loaded: bool = False
    lv_loading: bool = False
    lv_error: str = ""
    lv_title: str = ""
    lv_subtitle: str = ""
    lv_hover_color: str = ""
    lv_display_search_box: bool = False
    lv_display_actions_button: bool = False
    lv_display_row_actions: bool = False
    lv_selectable: bool = False
    lv_allow_sort: bool = False
    lv_is_file_view: bool = False
    lv_columns: list[dict[str, Any]] = []
    lv_rows: list[dict[str, Any]] = []
    lv_filters: list[dict[str, Any]] = []
    lv_has_active_filters: bool = False
    lv_search_term: str = ""
    lv_current_page: int = 1
    lv_total_pages: int = 1
    lv_total_records: int = 0
    lv_record_count_label: str = "No records"
    lv_pagination_label: str = ""
    lv_show_pagination: bool = False
    lv_is_first_page: bool = True
    lv_is_last_page: bool = True
    lv_selected_count: int = 0
    lv_selected_label: str = ""
    lv_all_selected: bool = False
    lv_show_selection_actions: bool = False
    lv_show_empty_state: bool = False
    lv_empty_icon: str = ""
    lv_empty_message: str = ""
    lv_empty_subtext: str = ""
    lv_table_class: str = "data-table"
    lv_cell_class: str = "table-cell"
    lv_wrap_label: str = "Wrap Column Text"
    lv_show_export_page: bool = True
    lv_show_export_all: bool = True
    lv_owner_dialog_open: bool = False
    lv_user_search_term: str = ""
    lv_user_results: list[dict[str, Any]] = []
    lv_owner_confirm_disabled: bool = True
    lv_owner_confirm_label: str = "Change Owner"
    lv_resizing: bool = False

    # -- Backend-only vars (not sent to frontend) --
    _lv_cache_id: str = ""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def set_list_view(
        self,
        config: ListViewConfig,
        query_service: QueryService,
        directory_service: DirectoryService | None = None,
        owner_service: OwnerService | None = None,
    ) -> list[rx.event.EventSpec]:
        """Create this session's orchestrator and run the first fetch.

        Any orchestrator previously registered for the same state class
        and browser session is disconnected first.  Other sessions are
        untouched.

        Args:
            config: Admin configuration for the list view.
            query_service: Record query service.
            directory_service: User search for the change-owner dialog.
            owner_service: Bulk owner change service.

        Returns:
            Toast / redirect events produced while loading.
        """
        setup = _ListViewSetup(config, query_service, directory_service, owner_service)
        _setup_registry[type(self).__name__] = setup
        return await self._connect_lv(setup)

    async def restore_list_view(self):
        """Rebuild this session's orchestrator after the view remounts."""
        if self._lv() is not None:
            return
        setup = _setup_registry.get(type(self).__name__)
        if setup is None:
            return
        return await self._connect_lv(setup)

    async def _connect_lv(self, setup: _ListViewSetup) -> list[rx.event.EventSpec]:
        cache_id = _cache_key(type(self).__name__, self.router.session.client_token)
        self._lv_cache_id = cache_id  # type: ignore[assignment]

        orchestrator = setup.build()
        _register_orchestrator(cache_id, orchestrator)

        self.lv_loading = True  # type: ignore[assignment]
        await orchestrator.connect()
        self.lv_loaded = True  # type: ignore[assignment]
        self._sync_lv(orchestrator)
        return self._lv_events(orchestrator)

    def release_list_view(self) -> None:
        """Drop this session's orchestrator when the view unmounts."""
        _release_orchestrator(self._lv_cache_id)
        self._lv_cache_id = ""  # type: ignore[assignment]
        self.lv_loaded = False  # type: ignore[assignment]

    # ------------------------------------------------------------------
    # Search, sort, filters
    # ------------------------------------------------------------------

    async def handle_lv_search(self, value: str):
        """Commit a search term (the input is debounced on the frontend)."""
        orchestrator = self._lv()
        if orchestrator is None:
            return
        self.lv_search_term = value  # type: ignore[assignment]
        self.lv_loading = True  # type: ignore[assignment]
        yield
        await orchestrator.commit_search(value or "")
        self._sync_lv(orchestrator)
        yield self._lv_events(orchestrator)

    async def handle_lv_sort(self, field: str):
        orchestrator = self._lv()
        if orchestrator is None or not orchestrator.config.allow_user_sort:
            return
        self.lv_loading = True  # type: ignore[assignment]
        yield
        await orchestrator.sort_by(field)
        self._sync_lv(orchestrator)
        yield self._lv_events(orchestrator)

    def handle_lv_filter_menu(self, field: str) -> None:
        orchestrator = self._lv()
        if orchestrator is None:
            return
        orchestrator.toggle_filter_menu(field)
        self._sync_lv(orchestrator)

    def close_lv_filter_menus(self) -> None:
        orchestrator = self._lv()
        if orchestrator is None:
            return
        orchestrator.handle_document_click(inside_filter_bar=False)
        self._sync_lv(orchestrator)

    async def handle_lv_filter_option(self, field: str, value: str, checked: bool):
        orchestrator = self._lv()
        if orchestrator is None:
            return
        self.lv_loading = True  # type: ignore[assignment]
        yield
        await orchestrator.toggle_filter_option(field, value, checked)
        self._sync_lv(orchestrator)
        yield self._lv_events(orchestrator)

    async def clear_lv_filter(self, field: str):
        orchestrator = self._lv()
        if orchestrator is None:
            return
        self.lv_loading = True  # type: ignore[assignment]
        yield
        await orchestrator.clear_filter(field)
        self._sync_lv(orchestrator)
        yield self._lv_events(orchestrator)

    async def clear_lv_filters(self):
        orchestrator = self._lv()
        if orchestrator is None:
            return
        self.lv_loading = True  # type: ignore[assignment]
        yield
        await orchestrator.clear_all_filters()
        self._sync_lv(orchestrator)
        yield self._lv_events(orchestrator)

    # ------------------------------------------------------------------
    # Selection & paging
    # ------------------------------------------------------------------

    def handle_lv_select_all(self, checked: bool) -> None:
        orchestrator = self._lv()
        if orchestrator is None:
            return
        orchestrator.select_all(checked)
        self._sync_lv(orchestrator)

    def handle_lv_row_select(self, record_id: str, checked: bool) -> None:
        orchestrator = self._lv()
        if orchestrator is None:
            return
        orchestrator.toggle_row(record_id, checked)
        self._sync_lv(orchestrator)

    def clear_lv_selection(self) -> None:
        orchestrator = self._lv()
        if orchestrator is None:
            return
        orchestrator.clear_selection()
        self._sync_lv(orchestrator)

    async def handle_lv_page(self, direction: str):
        """Go to the ``first``, ``previous``, ``next`` or ``last`` page."""
        orchestrator = self._lv()
        if orchestrator is None:
            return
        handlers = {
            "first": orchestrator.first_page,
            "previous": orchestrator.previous_page,
            "next": orchestrator.next_page,
            "last": orchestrator.last_page,
        }
        handler = handlers.get(direction)
        if handler is None:
            return
        self.lv_loading = True  # type: ignore[assignment]
        yield
        await handler()
        self._sync_lv(orchestrator)
        yield self._lv_events(orchestrator)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def handle_lv_action(self, action: str):
        """Header menu: refresh, exports, change owner, wrap and widths."""
        orchestrator = self._lv()
        if orchestrator is None:
            return
        if action in ("refresh", "exportAll"):
            self.lv_loading = True  # type: ignore[assignment]
            yield
        export = await orchestrator.handle_action(action)
        self._sync_lv(orchestrator)
        events = self._lv_events(orchestrator)
        if export is not None:
            events.append(rx.download(data=export.content, filename=export.filename))
        yield events

    def handle_lv_row_action(self, action: str, record_id: str) -> list[rx.event.EventSpec]:
        orchestrator = self._lv()
        if orchestrator is None:
            return []
        orchestrator.handle_row_action(action, record_id)
        self._sync_lv(orchestrator)
        return self._lv_events(orchestrator)

    def handle_lv_row_click(self, record_id: str) -> list[rx.event.EventSpec]:
        orchestrator = self._lv()
        if orchestrator is None:
            return []
        orchestrator.handle_row_click(record_id)
        return self._lv_events(orchestrator)

    # -- Column resizing: header handle mousedown, overlay move/up ------

    def handle_lv_resize_start(self, field: str, client_x: float, width: float) -> None:
        orchestrator = self._lv()
        if orchestrator is None or not field:
            return
        orchestrator.resize.start(field, client_x, width)
        self.lv_resizing = orchestrator.resize.is_resizing  # type: ignore[assignment]

    def handle_lv_resize_move(self, client_x: float) -> None:
        orchestrator = self._lv()
        if orchestrator is None or not orchestrator.resize.is_resizing:
            return
        orchestrator.resize.move(client_x)
        self._sync_lv(orchestrator)

    def handle_lv_resize_end(self) -> None:
        self.lv_resizing = False  # type: ignore[assignment]
        orchestrator = self._lv()
        if orchestrator is not None:
            orchestrator.resize.end()

    # -- Change owner dialog --------------------------------------------

    def open_lv_owner_dialog(self) -> None:
        orchestrator = self._lv()
        if orchestrator is None:
            return
        orchestrator.open_owner_dialog()
        self._sync_lv(orchestrator)

    def close_lv_owner_dialog(self) -> None:
        orchestrator = self._lv()
        if orchestrator is None:
            return
        orchestrator.close_owner_dialog()
        self._sync_lv(orchestrator)

    async def handle_lv_user_search(self, value: str) -> None:
        """Search the directory (the input is debounced on the frontend)."""
        orchestrator = self._lv()
        if orchestrator is None:
            return
        await orchestrator.owner_dialog.search_now(value)
        self._sync_lv(orchestrator)

    def handle_lv_user_select(self, user_id: str) -> None:
        orchestrator = self._lv()
        if orchestrator is None:
            return
        orchestrator.owner_dialog.select(user_id)
        self._sync_lv(orchestrator)

    async def confirm_lv_owner_change(self):
        orchestrator = self._lv()
        if orchestrator is None:
            return
        self.lv_owner_confirm_label = "Changing..."  # type: ignore[assignment]
        self.lv_owner_confirm_disabled = True  # type: ignore[assignment]
        yield
        await orchestrator.confirm_owner_change()
        self._sync_lv(orchestrator)
        yield self._lv_events(orchestrator)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _lv(self) -> QueryOrchestrator | None:
        return _get_orchestrator(self._lv_cache_id)

    def _lv_events(self, orchestrator: QueryOrchestrator) -> list[rx.event.EventSpec]:
        notifications, navigations = orchestrator.drain_events()
        events = [notification_to_event(n) for n in notifications]
        events.extend(navigation_to_event(i) for i in navigations)
        return events

    def _sync_lv(self, orchestrator: QueryOrchestrator) -> None:
        """Copy the orchestrator's derived state into the reactive vars."""
        config = orchestrator.config
        selection = orchestrator.selection
        dialog = orchestrator.owner_dialog

        self.lv_loading = orchestrator.is_loading  # type: ignore[assignment]
        self.lv_error = orchestrator.error_message  # type: ignore[assignment]
        self.lv_title = config.title  # type: ignore[assignment]
        self.lv_subtitle = config.subtitle  # type: ignore[assignment]
        self.lv_hover_color = config.hover_row_color  # type: ignore[assignment]
        self.lv_display_search_box = config.display_search_box  # type: ignore[assignment]
        self.lv_display_actions_button = config.display_actions_button  # type: ignore[assignment]
        self.lv_display_row_actions = config.display_row_actions  # type: ignore[assignment]
        self.lv_selectable = config.selectable_rows  # type: ignore[assignment]
        self.lv_allow_sort = config.allow_user_sort  # type: ignore[assignment]
        self.lv_is_file_view = orchestrator.file_object_type is not None  # type: ignore[assignment]

        self.lv_columns = [column_to_state(c) for c in orchestrator.columns]  # type: ignore[assignment]
        self.lv_rows = [row_to_state(r) for r in orchestrator.display_records]  # type: ignore[assignment]
        self.lv_filters = [filter_to_state(f) for f in orchestrator.filter_configurations]  # type: ignore[assignment]
        self.lv_has_active_filters = orchestrator.filters.has_active_filters  # type: ignore[assignment]
        self.lv_search_term = orchestrator.search_term  # type: ignore[assignment]

        self.lv_current_page = orchestrator.current_page  # type: ignore[assignment]
        self.lv_total_pages = orchestrator.total_pages  # type: ignore[assignment]
        self.lv_total_records = orchestrator.total_records  # type: ignore[assignment]
        self.lv_record_count_label = orchestrator.record_count_label  # type: ignore[assignment]
        self.lv_pagination_label = (  # type: ignore[assignment]
            f"{orchestrator.pagination_start_record}-{orchestrator.pagination_end_record} "
            f"of {orchestrator.total_records}"
        )
        self.lv_show_pagination = orchestrator.show_pagination  # type: ignore[assignment]
        self.lv_is_first_page = orchestrator.is_first_page  # type: ignore[assignment]
        self.lv_is_last_page = orchestrator.is_last_page  # type: ignore[assignment]

        self.lv_selected_count = orchestrator.selected_count  # type: ignore[assignment]
        self.lv_selected_label = orchestrator.selected_count_label  # type: ignore[assignment]
        self.lv_all_selected = selection.all_selected_on_page  # type: ignore[assignment]
        self.lv_show_selection_actions = orchestrator.show_selection_actions  # type: ignore[assignment]

        self.lv_show_empty_state = orchestrator.show_empty_state  # type: ignore[assignment]
        self.lv_empty_icon = orchestrator.empty_state_icon  # type: ignore[assignment]
        self.lv_empty_message = orchestrator.empty_state_message  # type: ignore[assignment]
        self.lv_empty_subtext = orchestrator.empty_state_subtext  # type: ignore[assignment]
        self.lv_table_class = orchestrator.table_class  # type: ignore[assignment]
        self.lv_cell_class = orchestrator.table_cell_class  # type: ignore[assignment]
        self.lv_wrap_label = orchestrator.wrap_toggle_label  # type: ignore[assignment]
        self.lv_show_export_page = orchestrator.show_export_page_option  # type: ignore[assignment]
        self.lv_show_export_all = orchestrator.show_export_all_option  # type: ignore[assignment]

        self.lv_owner_dialog_open = dialog.is_open  # type: ignore[assignment]
        self.lv_user_search_term = dialog.search_term  # type: ignore[assignment]
        self.lv_user_results = [user_to_state(u) for u in dialog.results]  # type: ignore[assignment]
        self.lv_owner_confirm_disabled = dialog.confirm_disabled  # type: ignore[assignment]
        self.lv_owner_confirm_label = dialog.confirm_label  # type: ignore[assignment]
