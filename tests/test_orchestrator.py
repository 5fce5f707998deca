"""Tests for QueryOrchestrator against fake services."""

import asyncio

from reflex_list_view.errors import ServiceBusinessError
from reflex_list_view.models import ColumnConfig, ListViewConfig
from reflex_list_view.orchestrator import (
    CONFIGURATION_ERROR_MESSAGE,
    NO_RECORDS_MESSAGE,
    QueryOrchestrator,
)
from reflex_list_view.services import InMemoryDirectoryService

FIELD_METADATA = {
    "Subject": {"label": "Subject", "type": "STRING", "isNameField": True},
    "Status": {"label": "Status", "type": "PICKLIST"},
}


def _records(n: int) -> list[dict]:
    statuses = ["New", "Working", "Closed"]
    return [{"Id": f"{i:03d}", "Subject": f"Case {i}", "Status": statuses[i % 3]} for i in range(n)]


class _FakeQueryService:
    """Serves pages of an in-memory record list and records every call."""

    def __init__(self, records=None, response=None, error=None):
        self.records = records if records is not None else _records(5)
        self.response = response
        self.error = error
        self.calls = []

    async def execute_query(self, params):
        self.calls.append(params)
        if self.error is not None:
            raise self.error
        if self.response is not None:
            return self.response
        start = (params.page - 1) * params.page_size
        return {
            "success": True,
            "records": self.records[start:start + params.page_size],
            "totalCount": len(self.records),
            "fieldMetadata": FIELD_METADATA,
        }


class _GatedQueryService:
    """Holds back responses for gated search terms until their gate opens."""

    def __init__(self):
        self.gates = {}
        self.calls = []

    def gate(self, term):
        self.gates[term] = asyncio.Event()
        return self.gates[term]

    async def execute_query(self, params):
        self.calls.append(params)
        gate = self.gates.get(params.search_term)
        if gate is not None:
            await gate.wait()
        return {
            "success": True,
            "records": [{"Id": params.search_term or "all", "Subject": params.search_term}],
            "totalCount": 1,
        }


def _config(**overrides) -> ListViewConfig:
    settings = dict(
        query="SELECT Id, Subject, Status FROM Case",
        title="Open Cases",
        page_size=20,
        selectable_rows=True,
        columns=[
            ColumnConfig(field="Subject"),
            ColumnConfig(field="Status", filter_values="New,Working,Closed"),
        ],
    )
    settings.update(overrides)
    return ListViewConfig(**settings)


def _connected(service=None, **overrides) -> QueryOrchestrator:
    orchestrator = QueryOrchestrator(_config(**overrides), service or _FakeQueryService(), debounce_delay=0.01)
    asyncio.run(orchestrator.connect())
    return orchestrator


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def test_connect_loads_first_page_with_default_sort():
    service = _FakeQueryService()
    orchestrator = _connected(service, default_sort_field="Subject")
    assert orchestrator.status == "idle"
    assert orchestrator.total_records == 5
    assert len(orchestrator.records) == 5
    assert service.calls[0].sort_field == "Subject"
    assert service.calls[0].sort_direction == "ASC"
    assert service.calls[0].page == 1
    assert orchestrator.record_count_label == "5 records"


def test_missing_query_is_a_configuration_error():
    service = _FakeQueryService()
    orchestrator = _connected(service, query="")
    assert orchestrator.error_message == CONFIGURATION_ERROR_MESSAGE
    assert service.calls == []


def test_business_error_surfaces_service_message():
    service = _FakeQueryService(response={"success": False, "errorMessage": "Field X not queryable"})
    orchestrator = _connected(service)
    assert orchestrator.error_message == "Field X not queryable"
    assert orchestrator.records == []
    assert orchestrator.total_records == 0
    assert orchestrator.status == "error"
    assert not orchestrator.is_loading
    assert not orchestrator.show_empty_state


def test_transport_error_surfaces_exception_message():
    orchestrator = _connected(_FakeQueryService(error=RuntimeError("connection reset")))
    assert orchestrator.error_message == "connection reset"
    assert not orchestrator.is_loading


def test_transport_error_logs_wire_request(capsys):
    service = _FakeQueryService(error=RuntimeError("connection reset"))
    orchestrator = _connected(service, scope_record_id="001A", bypass_sharing=True)
    request = service.calls[-1].to_request()
    assert request == {
        "query": "SELECT Id, Subject, Status FROM Case",
        "scopeId": "001A",
        "searchTerm": "",
        "sortField": "",
        "sortDirection": "ASC",
        "pageSize": 20,
        "pageNumber": 1,
        "filters": {},
        "bypassSharing": True,
    }
    assert f"[ListView] query failed: {request}" in capsys.readouterr().out
    assert orchestrator.status == "error"


def test_execute_raises_business_error():
    orchestrator = QueryOrchestrator(_config(), _FakeQueryService(response={"success": False}))

    async def scenario():
        try:
            await orchestrator._execute(orchestrator.query_params())
        except ServiceBusinessError as error:
            return error.message
        return None

    assert asyncio.run(scenario()) == "An error occurred while loading data."


def test_stale_response_is_discarded():
    service = _GatedQueryService()
    orchestrator = QueryOrchestrator(_config(), service)

    async def scenario():
        release = service.gate("slow")
        orchestrator.search_term = "slow"
        older = asyncio.create_task(orchestrator.load_data())
        await asyncio.sleep(0)
        orchestrator.search_term = "fast"
        assert await orchestrator.load_data()
        assert not orchestrator.is_loading
        release.set()
        return await older

    assert asyncio.run(scenario()) is False
    assert [r["Id"] for r in orchestrator.records] == ["fast"]
    assert not orchestrator.is_loading


def test_loading_flag_held_until_latest_request_settles():
    service = _GatedQueryService()
    orchestrator = QueryOrchestrator(_config(), service)

    async def scenario():
        older_gate = service.gate("older")
        latest_gate = service.gate("latest")
        orchestrator.search_term = "older"
        older = asyncio.create_task(orchestrator.load_data())
        await asyncio.sleep(0)
        orchestrator.search_term = "latest"
        latest = asyncio.create_task(orchestrator.load_data())
        await asyncio.sleep(0)

        older_gate.set()
        assert await older is False
        still_loading = orchestrator.is_loading
        latest_gate.set()
        assert await latest is True
        return still_loading

    assert asyncio.run(scenario()) is True
    assert not orchestrator.is_loading
    assert [r["Id"] for r in orchestrator.records] == ["latest"]


# ---------------------------------------------------------------------------
# Search, sort, filters
# ---------------------------------------------------------------------------

def test_search_keystrokes_collapse_into_one_fetch():
    service = _FakeQueryService()
    orchestrator = _connected(service)
    orchestrator.current_page = 2
    before = orchestrator.fetch_count

    async def scenario():
        for value in ("p", "pr", "pri"):
            orchestrator.handle_search_input(value)
        await orchestrator.search_debouncer.wait()

    asyncio.run(scenario())
    assert orchestrator.fetch_count == before + 1
    assert service.calls[-1].search_term == "pri"
    assert orchestrator.current_page == 1


def test_unchanged_search_term_does_not_fetch():
    orchestrator = _connected()
    before = orchestrator.fetch_count
    asyncio.run(orchestrator.commit_search(""))
    assert orchestrator.fetch_count == before


def test_sort_toggles_direction_and_resets_page():
    service = _FakeQueryService()
    orchestrator = _connected(service)
    orchestrator.current_page = 3
    asyncio.run(orchestrator.sort_by("Subject"))
    assert (orchestrator.sort_field, orchestrator.sort_direction) == ("Subject", "ASC")
    assert orchestrator.current_page == 1
    asyncio.run(orchestrator.sort_by("Subject"))
    assert orchestrator.sort_direction == "DESC"
    asyncio.run(orchestrator.sort_by("Status"))
    assert (orchestrator.sort_field, orchestrator.sort_direction) == ("Status", "ASC")
    assert service.calls[-1].sort_field == "Status"

    subject, status = orchestrator.columns
    assert status.is_sorted and not subject.is_sorted


def test_set_filter_then_clear_removes_key():
    service = _FakeQueryService()
    orchestrator = _connected(service)
    orchestrator.current_page = 2

    before = orchestrator.fetch_count
    asyncio.run(orchestrator.set_filter("Status", ["New"]))
    assert orchestrator.fetch_count == before + 1
    assert service.calls[-1].filters == {"Status": ("New",)}
    assert orchestrator.current_page == 1

    orchestrator.current_page = 2
    asyncio.run(orchestrator.set_filter("Status", []))
    assert orchestrator.fetch_count == before + 2
    assert "Status" not in service.calls[-1].filters
    assert "Status" not in orchestrator.filters.active_filters
    assert orchestrator.current_page == 1


def test_filter_on_unfilterable_field_does_not_fetch():
    orchestrator = _connected()
    before = orchestrator.fetch_count
    asyncio.run(orchestrator.set_filter("Subject", ["Case 1"]))
    assert orchestrator.fetch_count == before
    assert orchestrator.filters.active_filters == {}


def test_toggle_filter_options_and_clear_all():
    service = _FakeQueryService()
    orchestrator = _connected(service)
    asyncio.run(orchestrator.toggle_filter_option("Status", "New", True))
    asyncio.run(orchestrator.toggle_filter_option("Status", "Closed", True))
    assert service.calls[-1].filters == {"Status": ("New", "Closed")}
    assert orchestrator.filter_configurations[0].button_label == "2 selected"

    asyncio.run(orchestrator.clear_all_filters())
    assert service.calls[-1].filters == {}
    assert not orchestrator.filters.has_active_filters


def test_empty_state_messages():
    orchestrator = _connected(_FakeQueryService(records=[]))
    assert orchestrator.show_empty_state
    assert orchestrator.empty_state_message == "No records found"
    assert orchestrator.empty_state_icon == "utility:table"

    asyncio.run(orchestrator.set_filter("Status", ["New"]))
    assert orchestrator.empty_state_message == "No records match the selected filters"

    asyncio.run(orchestrator.commit_search("zzz"))
    assert orchestrator.empty_state_message == "No records match your filters and search"
    assert orchestrator.empty_state_subtext == "Try adjusting your filters or search criteria"


# ---------------------------------------------------------------------------
# Pagination & selection
# ---------------------------------------------------------------------------

def test_pagination_bounds():
    service = _FakeQueryService(records=_records(45))
    orchestrator = _connected(service)
    assert orchestrator.total_pages == 3
    assert orchestrator.show_pagination
    assert orchestrator.is_first_page

    before = orchestrator.fetch_count
    asyncio.run(orchestrator.previous_page())
    assert orchestrator.fetch_count == before
    assert orchestrator.current_page == 1

    asyncio.run(orchestrator.next_page())
    assert orchestrator.current_page == 2
    assert (orchestrator.pagination_start_record, orchestrator.pagination_end_record) == (21, 40)

    asyncio.run(orchestrator.last_page())
    assert orchestrator.current_page == 3
    assert orchestrator.is_last_page
    assert (orchestrator.pagination_start_record, orchestrator.pagination_end_record) == (41, 45)
    assert len(orchestrator.records) == 5

    before = orchestrator.fetch_count
    asyncio.run(orchestrator.next_page())
    assert orchestrator.fetch_count == before
    assert orchestrator.current_page == 3

    asyncio.run(orchestrator.first_page())
    assert orchestrator.current_page == 1


def test_total_pages_is_at_least_one():
    orchestrator = _connected(_FakeQueryService(records=[]))
    assert orchestrator.total_pages == 1
    assert not orchestrator.show_pagination


def test_selection_survives_paging():
    orchestrator = _connected(_FakeQueryService(records=_records(45)))
    orchestrator.select_all(True)
    assert orchestrator.selection.count == 20
    assert orchestrator.selection.all_selected_on_page

    asyncio.run(orchestrator.next_page())
    assert orchestrator.selection.count == 20
    assert not orchestrator.selection.all_selected_on_page

    orchestrator.toggle_row("020", True)
    assert orchestrator.selection.count == 21
    assert orchestrator.selected_count_label == "21 selected"
    assert orchestrator.has_selected_records
    assert orchestrator.show_selection_actions

    asyncio.run(orchestrator.first_page())
    assert orchestrator.selection.all_selected_on_page
    assert all(r.is_selected for r in orchestrator.display_records)


def test_selection_change_does_not_rebuild_rows():
    orchestrator = _connected()
    orchestrator.display_records
    builds = orchestrator.display_cache.build_count
    orchestrator.toggle_row("001", True)
    rows = orchestrator.display_records
    assert orchestrator.display_cache.build_count == builds
    assert [r.id for r in rows if r.is_selected] == ["001"]


# ---------------------------------------------------------------------------
# Presentation actions
# ---------------------------------------------------------------------------

def test_wrap_toggle_and_column_width_reset():
    orchestrator = _connected()
    assert orchestrator.table_cell_class == "table-cell"
    asyncio.run(orchestrator.handle_action("toggleWrap"))
    assert orchestrator.is_text_wrapped
    assert orchestrator.wrap_toggle_label == "Clip Column Text"

    orchestrator.resize.start("Subject", 100, 200)
    orchestrator.resize.move(150)
    orchestrator.resize.end()
    assert orchestrator.columns[0].width == 250
    assert orchestrator.table_class == "data-table data-table-fixed"
    asyncio.run(orchestrator.handle_action("resetColumnWidths"))
    assert orchestrator.columns[0].width is None


def test_disconnect_cancels_pending_search():
    service = _FakeQueryService()
    orchestrator = _connected(service)
    before = orchestrator.fetch_count

    async def scenario():
        orchestrator.handle_search_input("abc")
        orchestrator.disconnect()
        await asyncio.sleep(0.03)

    asyncio.run(scenario())
    assert orchestrator.fetch_count == before


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

def test_export_page():
    orchestrator = _connected()
    export = asyncio.run(orchestrator.handle_action("exportPage"))
    assert export.filename == "Open_Cases_export.csv"
    assert export.record_count == 5
    assert export.content.splitlines()[1] == '"Case 0","New"'
    notifications, _ = orchestrator.drain_events()
    assert notifications[0].variant == "success"


def test_export_all_fetches_every_record_in_one_page():
    service = _FakeQueryService(records=_records(45))
    orchestrator = _connected(service)
    export = asyncio.run(orchestrator.export_all())
    assert export.record_count == 45
    assert service.calls[-1].page == 1
    assert service.calls[-1].page_size == 45
    assert not orchestrator.is_loading


def test_export_all_keeps_loading_for_a_page_load_started_meanwhile():
    service = _GatedQueryService()
    orchestrator = QueryOrchestrator(_config(), service)

    async def scenario():
        await orchestrator.load_data()
        export_gate = service.gate("export")
        page_gate = service.gate("page")
        orchestrator.search_term = "export"
        export = asyncio.create_task(orchestrator.export_all())
        await asyncio.sleep(0)
        orchestrator.search_term = "page"
        load = asyncio.create_task(orchestrator.load_data())
        await asyncio.sleep(0)

        export_gate.set()
        assert (await export).record_count == 1
        loading_after_export = orchestrator.is_loading
        page_gate.set()
        assert await load is True
        return loading_after_export

    assert asyncio.run(scenario()) is True
    assert not orchestrator.is_loading


def test_page_load_does_not_clear_loading_of_running_export():
    service = _GatedQueryService()
    orchestrator = QueryOrchestrator(_config(), service)

    async def scenario():
        await orchestrator.load_data()
        export_gate = service.gate("export")
        orchestrator.search_term = "export"
        export = asyncio.create_task(orchestrator.export_all())
        await asyncio.sleep(0)
        orchestrator.search_term = "page"
        assert await orchestrator.load_data() is True
        loading_after_page = orchestrator.is_loading
        export_gate.set()
        await export
        return loading_after_page

    assert asyncio.run(scenario()) is True
    assert not orchestrator.is_loading


def test_export_with_no_records_warns():
    orchestrator = _connected(_FakeQueryService(records=[]))
    assert orchestrator.export_page() is None
    assert asyncio.run(orchestrator.export_all()) is None
    notifications, _ = orchestrator.drain_events()
    assert [n.message for n in notifications] == [NO_RECORDS_MESSAGE, NO_RECORDS_MESSAGE]
    assert {n.variant for n in notifications} == {"warning"}


def test_export_all_transport_failure_notifies():
    service = _FakeQueryService()
    orchestrator = _connected(service)
    service.error = ConnectionError("timeout")
    assert asyncio.run(orchestrator.export_all()) is None
    notifications, _ = orchestrator.drain_events()
    assert notifications[-1].message == "Failed to fetch all records for export"
    assert notifications[-1].variant == "error"


def test_export_options_respect_config():
    orchestrator = _connected(disable_export_all=True)
    assert orchestrator.show_export_page_option
    assert not orchestrator.show_export_all_option
    assert orchestrator.show_any_export_option


# ---------------------------------------------------------------------------
# Owner change
# ---------------------------------------------------------------------------

def _owner_orchestrator(directory):
    orchestrator = QueryOrchestrator(
        _config(),
        _FakeQueryService(),
        directory,
        directory,
        debounce_delay=0.01,
    )
    asyncio.run(orchestrator.connect())
    return orchestrator


def test_owner_change_success_clears_selection_and_reloads():
    directory = InMemoryDirectoryService([{"Id": "005A", "Name": "Alice Smith", "Email": "alice@example.com"}])
    orchestrator = _owner_orchestrator(directory)
    orchestrator.toggle_row("001", True)
    orchestrator.toggle_row("002", True)

    asyncio.run(orchestrator.handle_action("changeOwner"))
    assert orchestrator.owner_dialog.is_open
    asyncio.run(orchestrator.owner_dialog.search_now("ali"))
    orchestrator.owner_dialog.select("005A")
    assert not orchestrator.owner_dialog.confirm_disabled

    before = orchestrator.fetch_count
    asyncio.run(orchestrator.confirm_owner_change())

    assert directory.owners == {"001": "005A", "002": "005A"}
    assert orchestrator.selection.count == 0
    assert not orchestrator.owner_dialog.is_open
    assert orchestrator.fetch_count == before + 1
    notifications, _ = orchestrator.drain_events()
    assert notifications[-1].message == "Successfully changed owner for 2 record(s)"


def test_owner_change_failure_keeps_selection():
    directory = InMemoryDirectoryService([{"Id": "005A", "Name": "Alice Smith"}])
    orchestrator = _owner_orchestrator(directory)
    orchestrator.toggle_row("001", True)
    orchestrator.open_owner_dialog()
    asyncio.run(orchestrator.owner_dialog.search_now("alice"))
    orchestrator.owner_dialog.select("005A")
    directory.users = []

    asyncio.run(orchestrator.confirm_owner_change())
    assert orchestrator.selection.count == 1
    assert orchestrator.owner_dialog.is_open
    notifications, _ = orchestrator.drain_events()
    assert notifications[-1].variant == "error"


# ---------------------------------------------------------------------------
# Row actions & navigation
# ---------------------------------------------------------------------------

def test_row_actions_navigate():
    navigated = []
    orchestrator = QueryOrchestrator(_config(), _FakeQueryService(), on_navigate=navigated.append)
    asyncio.run(orchestrator.connect())

    orchestrator.handle_row_action("view", "001")
    orchestrator.handle_row_action("edit", "001")
    orchestrator.handle_row_click("002")
    orchestrator.handle_row_click("002", target_is_checkbox=True)

    assert [i.url for i in navigated] == ["/001", "/001/edit", "/002"]
    assert navigated[1].action == "edit"


def test_row_change_owner_replaces_selection():
    orchestrator = _connected()
    orchestrator.toggle_row("003", True)
    orchestrator.handle_row_action("changeOwner", "001")
    assert orchestrator.selection.selected_ids == frozenset({"001"})
    assert orchestrator.owner_dialog.is_open


def test_file_row_preview_and_download():
    files = [{"Id": "069A", "Title": "Plan.pdf", "LatestPublishedVersionId": "068A"}]
    orchestrator = _connected(
        _FakeQueryService(records=files),
        query="SELECT Id, Title FROM ContentDocument",
        columns=[ColumnConfig(field="Title")],
    )
    assert orchestrator.file_object_type == "ContentDocument"

    orchestrator.handle_row_action("viewFile", "069A")
    orchestrator.handle_row_action("downloadFile", "069A")
    _, navigations = orchestrator.drain_events()
    assert [(i.kind, i.url) for i in navigations] == [
        ("file_preview", "/files/069A"),
        ("download", "/sfc/servlet.shepherd/version/download/068A"),
    ]


def test_file_action_without_ids_notifies():
    orchestrator = _connected()
    orchestrator.view_file(None)
    orchestrator.download_file(None, None)
    notifications, navigations = orchestrator.drain_events()
    assert navigations == []
    assert [n.variant for n in notifications] == ["error", "error"]
