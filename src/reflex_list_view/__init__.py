"""reflex-list-view – configurable record list views for Reflex.

A list view shows up to ten admin-configured columns of records from a
query service, with search, sorting, quick filters, pagination, row
selection, column resizing, CSV export and a bulk change-owner dialog::

    pip install reflex-list-view

The view-state engine (:class:`QueryOrchestrator` and its collaborators)
has no Reflex dependency; :class:`ListViewMixin` and :func:`list_view`
bind it to a Reflex app.
"""

from reflex_list_view.columns import (
    ColumnConfigResolver,
    PillColorResolver,
    contrasting_text,
    resolve_columns,
)
from reflex_list_view.components import (
    change_owner_dialog,
    list_view,
    list_view_filter_bar,
    list_view_header,
    list_view_pagination,
    list_view_resize_overlay,
    list_view_table,
)
from reflex_list_view.debounce import Debouncer
from reflex_list_view.errors import (
    ConfigurationError,
    ListViewError,
    ServiceBusinessError,
    TransportError,
    extract_error_message,
)
from reflex_list_view.export import CSVExporter, export_filename
from reflex_list_view.filters import FilterStateManager
from reflex_list_view.models import (
    Column,
    ColumnConfig,
    CsvExport,
    DirectoryUser,
    DisplayField,
    DisplayRow,
    FieldMetadata,
    FilterConfiguration,
    FilterOption,
    ListViewConfig,
    NavigationIntent,
    Notification,
    OwnerChangeResult,
    QueryParams,
    QueryResult,
)
from reflex_list_view.orchestrator import QueryOrchestrator
from reflex_list_view.owner import OwnerChangeDialog
from reflex_list_view.records import DisplayCache, DisplayRowBuilder, get_field_value
from reflex_list_view.resize import ColumnResizeController
from reflex_list_view.selection import SelectionTracker
from reflex_list_view.services import (
    DirectoryService,
    InMemoryDirectoryService,
    LazyFrameQueryService,
    OwnerService,
    QueryService,
    scan_file,
)
from reflex_list_view.state import ListViewMixin
