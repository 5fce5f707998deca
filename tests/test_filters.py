"""Tests for quick-filter state."""

from reflex_list_view.columns import ColumnConfigResolver
from reflex_list_view.filters import FilterStateManager, filter_button_label
from reflex_list_view.models import ColumnConfig, FieldMetadata


def _manager() -> FilterStateManager:
    return FilterStateManager(
        ColumnConfigResolver(
            [
                ColumnConfig(field="Subject"),
                ColumnConfig(field="Status", filter_values="New,Working,Closed"),
                ColumnConfig(field="Priority", label="Urgency", filter_values="High, Low"),
            ]
        )
    )


def test_filterable_fields():
    manager = _manager()
    assert manager.filterable_fields() == ["Status", "Priority"]
    assert manager.has_quick_filters
    assert not manager.has_active_filters


def test_set_filter_and_empty_selection_removes_key():
    manager = _manager()
    assert manager.set_filter("Status", ["New", "Working"])
    assert manager.active_filters == {"Status": ("New", "Working")}

    assert manager.set_filter("Status", [])
    assert "Status" not in manager.active_filters
    assert not manager.has_active_filters


def test_set_filter_on_unfilterable_field_is_ignored():
    manager = _manager()
    assert not manager.set_filter("Subject", ["anything"])
    assert manager.active_filters == {}


def test_set_filter_deduplicates_and_drops_blanks():
    manager = _manager()
    manager.set_filter("Status", ["New", "", "New", "Closed"])
    assert manager.selected("Status") == ["New", "Closed"]


def test_active_filters_is_a_copy():
    manager = _manager()
    manager.set_filter("Status", ["New"])
    snapshot = manager.active_filters
    manager.set_filter("Priority", ["High"])
    assert snapshot == {"Status": ("New",)}


def test_toggle_option():
    manager = _manager()
    manager.set_filter("Status", ["New"])
    assert manager.toggle_option("Status", "Closed", True) == ["New", "Closed"]
    assert manager.toggle_option("Status", "New", True) == ["New"]
    assert manager.toggle_option("Status", "New", False) == []


def test_menu_toggling_and_outside_click():
    manager = _manager()
    manager.toggle_menu("Status")
    assert manager.open_field == "Status"
    manager.toggle_menu("Priority")
    assert manager.open_field == "Priority"
    manager.toggle_menu("Priority")
    assert manager.open_field is None

    manager.toggle_menu("Status")
    manager.handle_document_click(inside_filter_bar=True)
    assert manager.open_field == "Status"
    manager.handle_document_click(inside_filter_bar=False)
    assert manager.open_field is None


def test_close_menu_is_idempotent():
    manager = _manager()
    manager.close_menu()
    assert manager.open_field is None
    manager.toggle_menu("Priority")
    manager.close_menu()
    assert manager.open_field is None
    manager.toggle_menu("Priority")
    assert manager.open_field == "Priority"


def test_clear_all_closes_menu():
    manager = _manager()
    manager.set_filter("Status", ["New"])
    manager.toggle_menu("Status")
    manager.clear_all()
    assert manager.active_filters == {}
    assert manager.open_field is None


def test_filter_configurations():
    manager = _manager()
    manager.set_filter("Status", ["Working"])
    manager.toggle_menu("Status")
    status, priority = manager.filter_configurations({"Status": FieldMetadata(label="Case Status")})

    assert status.label == "Case Status"
    assert status.button_label == "Working"
    assert status.has_selections
    assert status.is_open
    assert [o.is_checked for o in status.options] == [False, True, False]
    assert status.options[1].option_key == "Status-Working"

    assert priority.label == "Urgency"
    assert priority.button_label == "All"
    assert [o.value for o in priority.options] == ["High", "Low"]
    assert not priority.is_open


def test_filter_button_label():
    assert filter_button_label([]) == "All"
    assert filter_button_label(["New"]) == "New"
    assert filter_button_label(["New", "Closed"]) == "2 selected"
