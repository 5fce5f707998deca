"""Quick-filter state: per-field value selections and the open dropdown."""

from collections.abc import Iterable, Mapping

from reflex_list_view.columns import ColumnConfigResolver, column_label
from reflex_list_view.models import FieldMetadata, FilterConfiguration, FilterOption


def filter_button_label(selected_values: list[str]) -> str:
    """``"All"`` with no selection, the value itself for one, else a count."""
    if not selected_values:
        return "All"
    if len(selected_values) == 1:
        return selected_values[0]
    return f"{len(selected_values)} selected"


class FilterStateManager:
    """Owns the active filters and which filter dropdown is open.

    Only fields whose column declares non-empty filter values can carry a
    filter, and a field with no selected values is removed entirely, so
    :attr:`active_filters` never holds empty entries.
    """

    def __init__(self, columns: ColumnConfigResolver) -> None:
        self._columns = columns
        self._active: dict[str, tuple[str, ...]] = {}
        self.open_field: str | None = None

    @property
    def active_filters(self) -> dict[str, tuple[str, ...]]:
        return dict(self._active)

    @property
    def has_active_filters(self) -> bool:
        return any(self._active.values())

    @property
    def has_quick_filters(self) -> bool:
        return any(c.filter_options for c in self._columns.active())

    def filterable_fields(self) -> list[str]:
        return [c.field for c in self._columns.active() if c.filter_options]

    def selected(self, field: str) -> list[str]:
        return list(self._active.get(field, ()))

    def set_filter(self, field: str, selected_values: Iterable[str]) -> bool:
        """Replace the selection for *field*.

        Returns ``False`` (and changes nothing) when *field* is not a
        filterable column.
        """
        if field not in self.filterable_fields():
            return False
        values = tuple(dict.fromkeys(v for v in selected_values if v))
        active = dict(self._active)
        if values:
            active[field] = values
        else:
            active.pop(field, None)
        self._active = active
        return True

    def toggle_option(self, field: str, value: str, checked: bool) -> list[str]:
        """Return the selection for *field* with *value* added or removed."""
        selections = self.selected(field)
        if checked and value not in selections:
            selections.append(value)
        elif not checked:
            selections = [v for v in selections if v != value]
        return selections

    def clear_all(self) -> None:
        self._active = {}
        self.open_field = None

    # -- Dropdown ------------------------------------------------------

    def toggle_menu(self, field: str) -> None:
        self.open_field = None if self.open_field == field else field

    def close_menu(self) -> None:
        self.open_field = None

    def handle_document_click(self, inside_filter_bar: bool) -> None:
        """Close the open dropdown on any click outside the filter bar."""
        if self.open_field and not inside_filter_bar:
            self.close_menu()

    # -- Rendering -----------------------------------------------------

    def filter_configurations(
        self,
        field_metadata: Mapping[str, FieldMetadata],
    ) -> list[FilterConfiguration]:
        configurations: list[FilterConfiguration] = []
        for config in self._columns.active():
            values = config.filter_options
            if not values:
                continue
            selected = self.selected(config.field)
            configurations.append(
                FilterConfiguration(
                    field_name=config.field,
                    label=column_label(config, field_metadata.get(config.field)),
                    options=[
                        FilterOption(
                            label=value,
                            value=value,
                            is_checked=value in selected,
                            field_name=config.field,
                            option_key=f"{config.field}-{value}",
                        )
                        for value in values
                    ],
                    selected_values=selected,
                    button_label=filter_button_label(selected),
                    has_selections=bool(selected),
                    is_open=self.open_field == config.field,
                )
            )
        return configurations
