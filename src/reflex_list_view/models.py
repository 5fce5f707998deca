"""Data models for the list view: column declarations, query payloads and display rows.

Everything here is a plain dataclass so that instances can be turned into
JSON-safe dicts with :func:`dataclasses.asdict` before they are pushed into
Reflex state vars.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from reflex_list_view.errors import ConfigurationError

SortDirection = Literal["ASC", "DESC"]
TextWrap = Literal["clip", "wrap"]
NotificationVariant = Literal["success", "error", "warning", "info"]

MAX_COLUMN_SLOTS: int = 10

_DEFAULT_TITLE: str = "List View"
_DEFAULT_PAGE_SIZE: int = 20
_DEFAULT_HOVER_COLOR: str = "#f0f7ff"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass
class ColumnConfig:
    """One admin-configured column slot.

    A slot with an empty ``field`` is inert: it keeps its position in the
    slot list but every consumer skips it.
    """

    field: str = ""
    label: str = ""
    display_as_pill: bool = False
    pill_colors: str = ""
    filter_values: str = ""

    @classmethod
    def coerce(cls, value: "ColumnConfig | Mapping[str, Any] | None") -> "ColumnConfig":
        """Build a ``ColumnConfig`` from an instance, a mapping or ``None``."""
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        return cls(
            field=str(value.get("field") or "").strip(),
            label=str(value.get("label") or ""),
            display_as_pill=bool(value.get("display_as_pill", False)),
            pill_colors=str(value.get("pill_colors") or ""),
            filter_values=str(value.get("filter_values") or ""),
        )

    @property
    def filter_options(self) -> list[str]:
        """Comma-separated ``filter_values`` split, trimmed, empties dropped."""
        return [v.strip() for v in self.filter_values.split(",") if v.strip()]


@dataclass
class ListViewConfig:
    """Admin-supplied settings for a list view instance.

    Raises:
        ConfigurationError: If more than ten column slots are given, the
            page size is not positive, or the text wrap mode is unknown.
    """

    query: str = ""
    scope_record_id: str = ""
    title: str = _DEFAULT_TITLE
    subtitle: str = ""
    hover_row_color: str = _DEFAULT_HOVER_COLOR
    display_search_box: bool = False
    display_actions_button: bool = False
    page_size: int = _DEFAULT_PAGE_SIZE
    default_sort_field: str = ""
    allow_user_sort: bool = False
    selectable_rows: bool = False
    display_row_actions: bool = False
    bypass_sharing: bool = False
    column_text_wrap: TextWrap = "clip"
    disable_export_page: bool = False
    disable_export_all: bool = False
    columns: list[ColumnConfig] = field(default_factory=list)

    def __post_init__(self) -> None:
        if len(self.columns) > MAX_COLUMN_SLOTS:
            raise ConfigurationError(
                f"At most {MAX_COLUMN_SLOTS} columns can be configured, got {len(self.columns)}"
            )
        if self.page_size <= 0:
            raise ConfigurationError(f"page_size must be positive, got {self.page_size}")
        if self.column_text_wrap not in ("clip", "wrap"):
            raise ConfigurationError(
                f"column_text_wrap must be 'clip' or 'wrap', got {self.column_text_wrap!r}"
            )
        self.columns = [ColumnConfig.coerce(c) for c in self.columns]


# ---------------------------------------------------------------------------
# Query service payloads
# ---------------------------------------------------------------------------

@dataclass
class FieldMetadata:
    """Per-field metadata returned by the query service alongside records."""

    label: str = ""
    type: str = "STRING"
    sortable: bool = True
    is_name_field: bool = False

    @classmethod
    def coerce(cls, value: "FieldMetadata | Mapping[str, Any]") -> "FieldMetadata":
        if isinstance(value, cls):
            return value
        return cls(
            label=str(value.get("label") or ""),
            type=str(value.get("type") or "STRING").upper(),
            sortable=value.get("sortable") is not False,
            is_name_field=bool(value.get("isNameField", value.get("is_name_field", False))),
        )


@dataclass(frozen=True)
class QueryParams:
    """Complete snapshot of everything the query service needs for one fetch."""

    query: str
    search_term: str = ""
    sort_field: str = ""
    sort_direction: SortDirection = "ASC"
    page: int = 1
    page_size: int = _DEFAULT_PAGE_SIZE
    filters: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    scope_record_id: str = ""
    bypass_sharing: bool = False

    def to_request(self) -> dict[str, Any]:
        """Return the wire-shaped request mapping (camelCase keys)."""
        return {
            "query": self.query,
            "scopeId": self.scope_record_id,
            "searchTerm": self.search_term,
            "sortField": self.sort_field,
            "sortDirection": self.sort_direction,
            "pageSize": self.page_size,
            "pageNumber": self.page,
            "filters": {k: list(v) for k, v in self.filters.items()},
            "bypassSharing": self.bypass_sharing,
        }


@dataclass
class QueryResult:
    """Response of the query service."""

    success: bool
    records: list[dict[str, Any]] = field(default_factory=list)
    total_count: int = 0
    field_metadata: dict[str, FieldMetadata] = field(default_factory=dict)
    error_message: str | None = None

    @classmethod
    def coerce(cls, value: "QueryResult | Mapping[str, Any]") -> "QueryResult":
        """Accept either a ``QueryResult`` or a raw response mapping."""
        if isinstance(value, cls):
            return value
        metadata = value.get("fieldMetadata", value.get("field_metadata")) or {}
        return cls(
            success=bool(value.get("success", False)),
            records=list(value.get("records") or []),
            total_count=int(value.get("totalCount", value.get("total_count")) or 0),
            field_metadata={k: FieldMetadata.coerce(v) for k, v in metadata.items()},
            error_message=value.get("errorMessage", value.get("error_message")),
        )


@dataclass
class DirectoryUser:
    """A user returned by the directory search service."""

    id: str
    name: str
    email: str = ""
    photo_url: str = ""
    title: str = ""
    is_selected: bool = False

    @classmethod
    def coerce(cls, value: "DirectoryUser | Mapping[str, Any]") -> "DirectoryUser":
        if isinstance(value, cls):
            return value
        return cls(
            id=str(value.get("Id") or value.get("id") or ""),
            name=str(value.get("Name") or value.get("name") or ""),
            email=str(value.get("Email") or value.get("email") or ""),
            photo_url=str(
                value.get("PhotoUrl") or value.get("SmallPhotoUrl") or value.get("photo_url") or ""
            ),
            title=str(value.get("Title") or value.get("title") or ""),
        )


@dataclass
class OwnerChangeResult:
    """Response of the bulk owner-change service."""

    success: bool
    success_count: int = 0
    error_message: str | None = None

    @classmethod
    def coerce(cls, value: "OwnerChangeResult | Mapping[str, Any]") -> "OwnerChangeResult":
        if isinstance(value, cls):
            return value
        return cls(
            success=bool(value.get("success", False)),
            success_count=int(value.get("successCount", value.get("success_count")) or 0),
            error_message=value.get("errorMessage", value.get("error_message")),
        )


# ---------------------------------------------------------------------------
# Presentation models
# ---------------------------------------------------------------------------

@dataclass
class Column:
    """A resolved, render-ready column (config merged with field metadata)."""

    field_name: str
    label: str
    type: str = "STRING"
    sortable: bool = True
    display_as_pill: bool = False
    pill_color_map: dict[str, str] = field(default_factory=dict)
    is_sorted: bool = False
    sort_icon: str = "utility:sort"
    sort_button_class: str = "sort-button"
    sort_title: str = ""
    aria_sort: str = "none"
    header_style: str = ""
    width: int | None = None

    @property
    def has_custom_width(self) -> bool:
        return self.width is not None


@dataclass
class DisplayField:
    """One formatted cell of a :class:`DisplayRow`."""

    key: str
    field_name: str
    raw_value: Any
    display_value: str
    is_link: bool = False
    link_url: str = ""
    link_record_id: str = ""
    is_boolean: bool = False
    boolean_icon: str = ""
    boolean_class: str = ""
    is_currency: bool = False
    is_percent: bool = False
    is_date: bool = False
    is_date_time: bool = False
    is_email: bool = False
    email_href: str = ""
    is_phone: bool = False
    phone_href: str = ""
    is_url: bool = False
    url_display: str = ""
    is_pill: bool = False
    pill_background: str = ""
    pill_text: str = ""
    pill_style: str = ""


@dataclass
class DisplayRow:
    """Render-ready projection of one record against the resolved columns."""

    id: str
    display_fields: list[DisplayField]
    file_extension: str = ""
    file_icon: str = ""
    content_document_id: str | None = None
    content_version_id: str | None = None
    has_file_icon: bool = False
    is_selected: bool = False
    row_class: str = "table-row"


@dataclass
class FilterOption:
    label: str
    value: str
    is_checked: bool
    field_name: str
    option_key: str


@dataclass
class FilterConfiguration:
    """Render model for one quick-filter dropdown."""

    field_name: str
    label: str
    options: list[FilterOption]
    selected_values: list[str]
    button_label: str
    has_selections: bool
    is_open: bool


@dataclass(frozen=True)
class Notification:
    title: str
    message: str
    variant: NotificationVariant


@dataclass(frozen=True)
class NavigationIntent:
    """A request for the host to navigate somewhere.

    ``kind`` is one of ``"record"`` (with ``action`` ``"view"`` or
    ``"edit"``), ``"file_preview"`` or ``"download"``.
    """

    kind: Literal["record", "file_preview", "download"]
    url: str
    record_id: str = ""
    action: str = "view"


@dataclass(frozen=True)
class CsvExport:
    """A CSV artifact ready to be handed to the browser."""

    filename: str
    content: str
    record_count: int
    mime_type: str = "text/csv"
