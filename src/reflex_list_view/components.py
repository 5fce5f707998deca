"""UI helpers that render a :class:`~reflex_list_view.state.ListViewMixin` state.

:func:`list_view` returns the complete view (header, filter bar, table,
pagination, change-owner dialog and the column-resize overlay).  The smaller builders are public so
they can be recombined into custom layouts.
"""

from typing import Any

import reflex as rx
from reflex.components.el.elements.typography import Div

_SEARCH_DEBOUNCE_MS: int = 300
_MIN_USER_SEARCH_LENGTH: int = 2


# ---------------------------------------------------------------------------
# Column resizing: custom mouse event specs
# ---------------------------------------------------------------------------

# -- Handle mousedown: field from data-field, pointer x and the header
#    cell's rendered width
def _resize_start_spec(event: rx.Var) -> list[rx.Var]:
    return [
        rx.Var(f"{event}.currentTarget.dataset.field"),
        rx.Var(f"{event}.clientX"),
        rx.Var(f"{event}.currentTarget.parentElement.getBoundingClientRect().width"),
    ]


# -- Overlay mousemove: pointer x only
def _resize_move_spec(event: rx.Var) -> list[rx.Var]:
    return [rx.Var(f"{event}.clientX")]


class ResizeHandle(Div):
    """Drag handle on the right edge of a header cell."""

    on_mouse_down: rx.EventHandler[_resize_start_spec]


class ResizeOverlay(Div):
    """Full-window layer that tracks the pointer while a column is dragged."""

    on_mouse_move: rx.EventHandler[_resize_move_spec]


def _cells(row: rx.Var) -> rx.Var:
    return row["display_fields"].to(list[dict[str, Any]])


def _render_cell(state_cls: type, cell: rx.Var, cell_class: rx.Var) -> rx.Component:
    """One table cell: pill, record link, mailto/tel/url link or plain text."""
    value = cell["display_value"].to(str)
    content = rx.cond(
        cell["is_pill"].to(bool),
        rx.badge(
            value,
            radius="full",
            background_color=cell["pill_background"].to(str),
            color=cell["pill_text"].to(str),
        ),
        rx.cond(
            cell["is_link"].to(bool),
            rx.link(
                value,
                on_click=state_cls.handle_lv_row_click(cell["link_record_id"].to(str)).stop_propagation,
            ),
            rx.cond(
                cell["is_email"].to(bool),
                rx.link(value, href=cell["email_href"].to(str)),
                rx.cond(
                    cell["is_phone"].to(bool),
                    rx.link(value, href=cell["phone_href"].to(str)),
                    rx.cond(
                        cell["is_url"].to(bool),
                        rx.link(
                            cell["url_display"].to(str),
                            href=value,
                            is_external=True,
                        ),
                        rx.text(value),
                    ),
                ),
            ),
        ),
    )
    return rx.table.cell(content, class_name=cell_class)


def list_view_header(state_cls: type) -> rx.Component:
    """Title, record count, search box and the actions menu."""
    actions = rx.menu.root(
        rx.menu.trigger(rx.button(rx.icon("ellipsis", size=14), variant="soft", size="1")),
        rx.menu.content(
            rx.menu.item("Refresh", on_click=state_cls.handle_lv_action("refresh")),
            rx.cond(
                state_cls.lv_show_export_page,
                rx.menu.item("Export Page", on_click=state_cls.handle_lv_action("exportPage")),
            ),
            rx.cond(
                state_cls.lv_show_export_all,
                rx.menu.item("Export All", on_click=state_cls.handle_lv_action("exportAll")),
            ),
            rx.cond(
                state_cls.lv_show_selection_actions,
                rx.menu.item("Change Owner", on_click=state_cls.handle_lv_action("changeOwner")),
            ),
            rx.menu.separator(),
            rx.menu.item(state_cls.lv_wrap_label, on_click=state_cls.handle_lv_action("toggleWrap")),
            rx.menu.item(
                "Reset Column Widths",
                on_click=state_cls.handle_lv_action("resetColumnWidths"),
            ),
        ),
    )
    return rx.hstack(
        rx.vstack(
            rx.heading(state_cls.lv_title, size="5"),
            rx.cond(
                state_cls.lv_subtitle != "",
                rx.text(state_cls.lv_subtitle, size="2", color="var(--gray-10)"),
            ),
            rx.text(state_cls.lv_record_count_label, size="1", color="var(--gray-9)"),
            spacing="1",
        ),
        rx.spacer(),
        rx.cond(
            state_cls.lv_selected_count > 0,
            rx.hstack(
                rx.text(state_cls.lv_selected_label, size="2"),
                rx.button("Clear", size="1", variant="ghost", on_click=state_cls.clear_lv_selection),
                align="center",
            ),
        ),
        rx.cond(
            state_cls.lv_display_search_box,
            rx.debounce_input(
                rx.input(
                    placeholder="Search this list...",
                    value=state_cls.lv_search_term,
                    on_change=state_cls.handle_lv_search,
                ),
                debounce_timeout=_SEARCH_DEBOUNCE_MS,
            ),
        ),
        rx.cond(state_cls.lv_display_actions_button, actions),
        align="center",
        width="100%",
        spacing="3",
    )


def list_view_filter_bar(state_cls: type) -> rx.Component:
    """One dropdown per filterable column plus a "Clear All" button."""

    def _filter(config: rx.Var) -> rx.Component:
        field = config["field_name"].to(str)
        options = config["options"].to(list[dict[str, Any]])
        return rx.popover.root(
            rx.popover.trigger(
                rx.button(
                    config["label"].to(str),
                    ": ",
                    config["button_label"].to(str),
                    variant=rx.cond(config["has_selections"].to(bool), "solid", "outline"),
                    size="1",
                ),
            ),
            rx.popover.content(
                rx.vstack(
                    rx.foreach(
                        options,
                        lambda option: rx.checkbox(
                            option["label"].to(str),
                            checked=option["is_checked"].to(bool),
                            on_change=lambda checked: state_cls.handle_lv_filter_option(
                                field, option["value"].to(str), checked
                            ),
                        ),
                    ),
                    rx.button(
                        "Clear",
                        size="1",
                        variant="ghost",
                        on_click=state_cls.clear_lv_filter(field),
                    ),
                    spacing="2",
                ),
            ),
            open=config["is_open"].to(bool),
            on_open_change=lambda _open: state_cls.handle_lv_filter_menu(field),
        )

    return rx.hstack(
        rx.foreach(state_cls.lv_filters, _filter),
        rx.cond(
            state_cls.lv_has_active_filters,
            rx.button("Clear All", size="1", variant="ghost", on_click=state_cls.clear_lv_filters),
        ),
        spacing="2",
        wrap="wrap",
        class_name="filter-bar",
    )


def list_view_table(state_cls: type) -> rx.Component:
    """The record table with sortable headers and selection checkboxes."""

    def _header(column: rx.Var) -> rx.Component:
        return rx.table.column_header_cell(
            rx.hstack(
                rx.text(column["label"].to(str)),
                rx.cond(
                    state_cls.lv_allow_sort & column["sortable"].to(bool),
                    rx.icon_button(
                        rx.cond(
                            column["is_sorted"].to(bool),
                            rx.cond(
                                column["aria_sort"].to(str) == "ascending",
                                rx.icon("arrow-up", size=12),
                                rx.icon("arrow-down", size=12),
                            ),
                            rx.icon("arrow-up-down", size=12),
                        ),
                        size="1",
                        variant="ghost",
                        title=column["sort_title"].to(str),
                        on_click=state_cls.handle_lv_sort(column["field_name"].to(str)),
                    ),
                ),
                align="center",
                spacing="1",
            ),
            ResizeHandle.create(
                custom_attrs={"data-field": column["field_name"].to(str)},
                on_mouse_down=state_cls.handle_lv_resize_start,
                position="absolute",
                top="0",
                right="0",
                width="6px",
                height="100%",
                cursor="col-resize",
                user_select="none",
            ),
            width=rx.cond(
                column["has_custom_width"].to(bool),
                column["width"].to(str) + "px",
                "auto",
            ),
            custom_attrs={"aria-sort": column["aria_sort"].to(str)},
            position="relative",
        )

    def _row(row: rx.Var) -> rx.Component:
        record_id = row["id"].to(str)
        return rx.table.row(
            rx.cond(
                state_cls.lv_selectable,
                rx.table.cell(
                    rx.checkbox(
                        checked=row["is_selected"].to(bool),
                        on_change=lambda checked: state_cls.handle_lv_row_select(record_id, checked),
                    ),
                ),
            ),
            rx.cond(
                state_cls.lv_is_file_view,
                rx.table.cell(rx.text(row["file_extension"].to(str), size="1")),
            ),
            rx.foreach(_cells(row), lambda cell: _render_cell(state_cls, cell, state_cls.lv_cell_class)),
            rx.cond(
                state_cls.lv_display_row_actions,
                rx.table.cell(_row_actions(state_cls, record_id)),
            ),
            class_name=row["row_class"].to(str),
            _hover={"background_color": state_cls.lv_hover_color},
        )

    return rx.table.root(
        rx.table.header(
            rx.table.row(
                rx.cond(
                    state_cls.lv_selectable,
                    rx.table.column_header_cell(
                        rx.checkbox(
                            checked=state_cls.lv_all_selected,
                            on_change=state_cls.handle_lv_select_all,
                        ),
                    ),
                ),
                rx.cond(state_cls.lv_is_file_view, rx.table.column_header_cell("Type")),
                rx.foreach(state_cls.lv_columns, _header),
                rx.cond(state_cls.lv_display_row_actions, rx.table.column_header_cell("")),
            ),
        ),
        rx.table.body(rx.foreach(state_cls.lv_rows, _row)),
        class_name=state_cls.lv_table_class,
        width="100%",
    )


def _row_actions(state_cls: type, record_id: rx.Var) -> rx.Component:
    return rx.menu.root(
        rx.menu.trigger(rx.icon_button(rx.icon("chevron-down", size=12), size="1", variant="ghost")),
        rx.menu.content(
            rx.menu.item("View", on_click=state_cls.handle_lv_row_action("view", record_id)),
            rx.menu.item("Edit", on_click=state_cls.handle_lv_row_action("edit", record_id)),
            rx.cond(
                state_cls.lv_selectable,
                rx.menu.item(
                    "Change Owner",
                    on_click=state_cls.handle_lv_row_action("changeOwner", record_id),
                ),
            ),
            rx.cond(
                state_cls.lv_is_file_view,
                rx.fragment(
                    rx.menu.item("Preview", on_click=state_cls.handle_lv_row_action("viewFile", record_id)),
                    rx.menu.item(
                        "Download",
                        on_click=state_cls.handle_lv_row_action("downloadFile", record_id),
                    ),
                ),
            ),
        ),
    )


def list_view_resize_overlay(state_cls: type) -> rx.Component:
    """Pointer capture layer, rendered only while a column is being resized."""
    return rx.cond(
        state_cls.lv_resizing,
        ResizeOverlay.create(
            on_mouse_move=state_cls.handle_lv_resize_move,
            on_mouse_up=state_cls.handle_lv_resize_end,
            on_mouse_leave=state_cls.handle_lv_resize_end,
            position="fixed",
            inset="0",
            z_index="1000",
            cursor="col-resize",
        ),
    )


def list_view_pagination(state_cls: type) -> rx.Component:
    return rx.cond(
        state_cls.lv_show_pagination,
        rx.hstack(
            rx.text(state_cls.lv_pagination_label, size="1", color="var(--gray-9)"),
            rx.spacer(),
            rx.button(
                rx.icon("chevrons-left", size=14),
                size="1",
                variant="soft",
                disabled=state_cls.lv_is_first_page,
                on_click=state_cls.handle_lv_page("first"),
            ),
            rx.button(
                rx.icon("chevron-left", size=14),
                size="1",
                variant="soft",
                disabled=state_cls.lv_is_first_page,
                on_click=state_cls.handle_lv_page("previous"),
            ),
            rx.text(
                "Page ",
                state_cls.lv_current_page,
                " of ",
                state_cls.lv_total_pages,
                size="2",
            ),
            rx.button(
                rx.icon("chevron-right", size=14),
                size="1",
                variant="soft",
                disabled=state_cls.lv_is_last_page,
                on_click=state_cls.handle_lv_page("next"),
            ),
            rx.button(
                rx.icon("chevrons-right", size=14),
                size="1",
                variant="soft",
                disabled=state_cls.lv_is_last_page,
                on_click=state_cls.handle_lv_page("last"),
            ),
            align="center",
            width="100%",
            spacing="2",
        ),
    )


def change_owner_dialog(state_cls: type) -> rx.Component:
    """Dialog for picking a new owner for the selected records."""

    def _user(user: rx.Var) -> rx.Component:
        return rx.hstack(
            rx.avatar(src=user["photo_url"].to(str), fallback="?", size="2"),
            rx.vstack(
                rx.text(user["name"].to(str), weight="medium", size="2"),
                rx.text(user["email"].to(str), size="1", color="var(--gray-9)"),
                spacing="0",
            ),
            padding="0.4em",
            border_radius="6px",
            cursor="pointer",
            background=rx.cond(user["is_selected"].to(bool), "var(--accent-a4)", "transparent"),
            on_click=state_cls.handle_lv_user_select(user["id"].to(str)),
            width="100%",
        )

    return rx.dialog.root(
        rx.dialog.content(
            rx.dialog.title("Change Owner"),
            rx.dialog.description("Select a new owner for the selected records."),
            rx.debounce_input(
                rx.input(
                    placeholder=f"Search users (min {_MIN_USER_SEARCH_LENGTH} characters)...",
                    value=state_cls.lv_user_search_term,
                    on_change=state_cls.handle_lv_user_search,
                ),
                debounce_timeout=_SEARCH_DEBOUNCE_MS,
            ),
            rx.scroll_area(
                rx.vstack(rx.foreach(state_cls.lv_user_results, _user), spacing="1"),
                max_height="240px",
                margin_y="0.75em",
            ),
            rx.hstack(
                rx.button("Cancel", variant="soft", color_scheme="gray", on_click=state_cls.close_lv_owner_dialog),
                rx.button(
                    state_cls.lv_owner_confirm_label,
                    disabled=state_cls.lv_owner_confirm_disabled,
                    on_click=state_cls.confirm_lv_owner_change,
                ),
                justify="end",
                spacing="2",
            ),
        ),
        open=state_cls.lv_owner_dialog_open,
        on_open_change=lambda _open: state_cls.close_lv_owner_dialog(),
    )


def list_view(state_cls: type, *, height: str = "auto", width: str = "100%") -> rx.Component:
    """Return the complete list view bound to a :class:`ListViewMixin` state.

    Args:
        state_cls: The ``rx.State`` subclass that also inherits from
            :class:`~reflex_list_view.state.ListViewMixin`.
        height: CSS height of the table area.
        width: CSS width of the whole component.

    Returns:
        A Reflex component.
    """
    body = rx.cond(
        state_cls.lv_error != "",
        rx.callout(state_cls.lv_error, icon="triangle_alert", color_scheme="red"),
        rx.cond(
            state_cls.lv_show_empty_state,
            rx.center(
                rx.vstack(
                    rx.text(state_cls.lv_empty_message, weight="medium"),
                    rx.text(state_cls.lv_empty_subtext, size="2", color="var(--gray-9)"),
                    align="center",
                ),
                padding="2em",
            ),
            rx.box(list_view_table(state_cls), height=height, overflow="auto"),
        ),
    )
    return rx.vstack(
        list_view_header(state_cls),
        list_view_filter_bar(state_cls),
        rx.cond(state_cls.lv_loading, rx.progress(size="1", width="100%")),
        body,
        list_view_pagination(state_cls),
        change_owner_dialog(state_cls),
        list_view_resize_overlay(state_cls),
        width=width,
        spacing="3",
        on_mount=state_cls.restore_list_view,
        on_unmount=state_cls.release_list_view,
    )
