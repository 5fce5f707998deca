"""Column slot resolution and pill colour handling.

:class:`ColumnConfigResolver` turns the admin's ten column slots into an
ordered list of :class:`~reflex_list_view.models.ColumnConfig`, and
:class:`PillColorResolver` turns each column's ``"value:color"`` mapping
string into a lookup table.  Both results are memoised: column slots are
effectively static for the lifetime of a list view, and the number of
distinct pill specs is bounded by the number of columns.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from reflex_list_view.models import (
    MAX_COLUMN_SLOTS,
    Column,
    ColumnConfig,
    FieldMetadata,
    SortDirection,
)

DARK_TEXT: str = "#181818"
LIGHT_TEXT: str = "#ffffff"
DEFAULT_PILL_BACKGROUND: str = "#e5e5e5"
DEFAULT_PILL_TEXT: str = "#444444"


# ---------------------------------------------------------------------------
# Column slots
# ---------------------------------------------------------------------------

class ColumnConfigResolver:
    """Memoised normalisation of the raw column slots.

    The resolved list always has :data:`MAX_COLUMN_SLOTS` entries so a
    column keeps its 1-based slot position; inert slots (empty ``field``)
    are kept here and dropped by :meth:`active`.
    """

    def __init__(self, slots: Iterable[ColumnConfig | Mapping[str, Any] | None]) -> None:
        self._slots = list(slots)
        self._cached: list[ColumnConfig] | None = None

    def resolve(self) -> list[ColumnConfig]:
        if self._cached is None:
            configs = [ColumnConfig.coerce(s) for s in self._slots[:MAX_COLUMN_SLOTS]]
            configs.extend(ColumnConfig() for _ in range(MAX_COLUMN_SLOTS - len(configs)))
            self._cached = configs
        return self._cached

    def active(self) -> list[ColumnConfig]:
        """Configured columns in slot order, inert slots removed."""
        return [c for c in self.resolve() if c.field]

    def reset(self, slots: Iterable[ColumnConfig | Mapping[str, Any] | None] | None = None) -> None:
        """Drop the memoised list, optionally replacing the raw slots."""
        if slots is not None:
            self._slots = list(slots)
        self._cached = None


# ---------------------------------------------------------------------------
# Pill colours
# ---------------------------------------------------------------------------

def contrasting_text(hex_color: str) -> str:
    """Return a foreground colour readable on *hex_color*.

    Uses the perceived luminance ``(0.299 R + 0.587 G + 0.114 B) / 255``;
    above 0.5 the dark foreground is returned, otherwise the light one.
    Colours that cannot be parsed get the light foreground.
    """
    hex_value = hex_color.replace("#", "")
    try:
        r = int(hex_value[0:2], 16)
        g = int(hex_value[2:4], 16)
        b = int(hex_value[4:6], 16)
    except ValueError:
        return LIGHT_TEXT
    luminance = (0.299 * r + 0.587 * g + 0.114 * b) / 255
    return DARK_TEXT if luminance > 0.5 else LIGHT_TEXT


class PillColorResolver:
    """Parses and caches ``"value:color, value:color"`` specs."""

    def __init__(self) -> None:
        self._cache: dict[str, dict[str, str]] = {}

    def parse(self, spec: str | None) -> dict[str, str]:
        """Parse *spec* into ``{lowercased value: color}``.

        Pairs with a missing value or colour are skipped.  The result is
        cached per literal spec string; callers must not mutate it.
        """
        if not spec:
            return {}
        cached = self._cache.get(spec)
        if cached is not None:
            return cached

        color_map: dict[str, str] = {}
        for mapping in spec.split(","):
            parts = [p.strip() for p in mapping.split(":")]
            value = parts[0]
            color = parts[1] if len(parts) > 1 else ""
            if value and color:
                color_map[value.lower()] = color

        self._cache[spec] = color_map
        return color_map

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def pill_colors(self, value: Any, color_map: Mapping[str, str] | None) -> tuple[str, str]:
        """Return ``(background, foreground)`` for *value*.

        Falls back to the neutral pair when there is no mapping for the
        value (case-insensitive).
        """
        if not value or not color_map:
            return DEFAULT_PILL_BACKGROUND, DEFAULT_PILL_TEXT
        color = color_map.get(str(value).lower())
        if not color:
            return DEFAULT_PILL_BACKGROUND, DEFAULT_PILL_TEXT
        return color, contrasting_text(color)


# ---------------------------------------------------------------------------
# Resolved columns
# ---------------------------------------------------------------------------

def column_label(config: ColumnConfig, metadata: FieldMetadata | None) -> str:
    """Column label precedence: configured label, metadata label, field path."""
    return config.label or (metadata.label if metadata else "") or config.field


def resolve_columns(
    configs: Iterable[ColumnConfig],
    field_metadata: Mapping[str, FieldMetadata],
    pill_resolver: PillColorResolver,
    *,
    sort_field: str = "",
    sort_direction: SortDirection = "ASC",
    column_widths: Mapping[str, int] | None = None,
) -> list[Column]:
    """Merge active column configs with field metadata and view state.

    Args:
        configs: Column configs; inert slots are skipped.
        field_metadata: Metadata from the last successful fetch.
        pill_resolver: Shared pill colour cache.
        sort_field: Current sort field, used for the sort indicators.
        sort_direction: Current sort direction.
        column_widths: Custom pixel widths set by column resizing.

    Returns:
        Render-ready :class:`Column` objects in slot order.
    """
    widths = column_widths or {}
    columns: list[Column] = []
    for config in configs:
        if not config.field:
            continue
        metadata = field_metadata.get(config.field)
        label = column_label(config, metadata)
        is_sorted = sort_field == config.field
        ascending = sort_direction == "ASC"
        width = widths.get(config.field)

        if is_sorted:
            sort_icon = "utility:arrowup" if ascending else "utility:arrowdown"
            aria_sort = "ascending" if ascending else "descending"
        else:
            sort_icon = "utility:sort"
            aria_sort = "none"

        columns.append(
            Column(
                field_name=config.field,
                label=label,
                type=(metadata.type if metadata else "") or "STRING",
                sortable=metadata.sortable if metadata else True,
                display_as_pill=config.display_as_pill,
                pill_color_map=pill_resolver.parse(config.pill_colors),
                is_sorted=is_sorted,
                sort_icon=sort_icon,
                sort_button_class="sort-button active" if is_sorted else "sort-button",
                sort_title=f"Sort by {label}",
                aria_sort=aria_sort,
                header_style=(
                    f"width: {width}px; min-width: {width}px; max-width: {width}px;"
                    if width
                    else ""
                ),
                width=width,
            )
        )
    return columns
