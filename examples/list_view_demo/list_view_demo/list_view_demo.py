"""Example Reflex app demonstrating the configurable list view.

Two tabs:
  1. Accounts -- a 20-row account list built from an inline polars
     LazyFrame, with search, sortable headers, quick filters on Industry
     and Status, pill-rendered statuses, row selection and a change-owner
     dialog backed by an in-memory user directory.
  2. Files -- a ``ContentDocument`` list, which switches the view into file
     mode: each row gets an extension icon and preview/download actions.
"""

import polars as pl
import reflex as rx

from reflex_list_view import (
    ColumnConfig,
    InMemoryDirectoryService,
    LazyFrameQueryService,
    ListViewConfig,
    ListViewMixin,
    list_view,
)

# ---------------------------------------------------------------------------
# Sample data builders
# ---------------------------------------------------------------------------

USERS: list[dict[str, str]] = [
    {"id": "005A", "name": "Alice Smith", "email": "alice@example.com", "title": "Account Executive"},
    {"id": "005B", "name": "Bob Johnson", "email": "bob@example.com", "title": "Sales Manager"},
    {"id": "005C", "name": "Carla Diaz", "email": "carla@example.com", "title": "Solutions Engineer"},
    {"id": "005D", "name": "Dev Patel", "email": "dev@example.com", "title": "Account Executive"},
]


def _build_account_lazyframe() -> pl.LazyFrame:
    """Create a sample LazyFrame with account data."""
    names = [
        "Acme", "Globex", "Initech", "Umbrella", "Hooli",
        "Stark", "Wayne", "Wonka", "Tyrell", "Cyberdyne",
        "Soylent", "Vandelay", "Pied Piper", "Gringotts", "Oscorp",
        "Aperture", "Monarch", "Massive", "Virtucon", "Dunder",
    ]
    owners = [USERS[i % len(USERS)] for i in range(20)]
    return pl.LazyFrame(
        {
            "Id": [f"001{i:03d}" for i in range(1, 21)],
            "Name": names,
            "Industry": [
                "Energy", "Banking", "Technology", "Healthcare", "Technology",
                "Energy", "Banking", "Retail", "Technology", "Technology",
                "Retail", "Retail", "Technology", "Banking", "Healthcare",
                "Technology", "Energy", "Retail", "Banking", "Retail",
            ],
            "Status": [
                "Active", "Active", "Prospect", "Churned", "Active",
                "Active", "Prospect", "Active", "Churned", "Active",
                "Prospect", "Active", "Active", "Active", "Churned",
                "Prospect", "Active", "Active", "Prospect", "Active",
            ],
            "Email": [f"info@{n.lower().replace(' ', '')}.com" for n in names],
            "Website": [f"https://www.{n.lower().replace(' ', '')}.com/about" for n in names],
            "AnnualRevenue": [
                1.2e6, 3.4e7, 8.9e5, 5.6e8, 2.3e7,
                9.9e8, 7.7e8, 4.4e6, 6.1e7, 1.8e8,
                3.3e5, 2.2e6, 1.1e6, 8.8e8, 4.5e7,
                6.6e6, 3.9e7, 1.5e6, 2.7e8, 9.1e6,
            ],
            "IsPartner": [i % 3 == 0 for i in range(20)],
            "Owner": [{"Id": u["id"], "Name": u["name"]} for u in owners],
        }
    )


def _build_file_lazyframe() -> pl.LazyFrame:
    """Create a sample LazyFrame shaped like ContentDocument records."""
    titles = [
        "Q3 Forecast", "Logo", "Contract", "Onboarding", "Pricing",
        "Architecture", "Release Notes", "Team Photo",
    ]
    extensions = ["xlsx", "png", "pdf", "pptx", "csv", "svg", "txt", "jpg"]
    return pl.LazyFrame(
        {
            "Id": [f"069{i:03d}" for i in range(1, 9)],
            "Title": titles,
            "FileExtension": extensions,
            "LatestPublishedVersionId": [f"068{i:03d}" for i in range(1, 9)],
            "ContentSize": [48213, 10234, 992110, 2300122, 5120, 8801, 1204, 3401877],
        }
    )


ACCOUNT_CONFIG = ListViewConfig(
    query="SELECT Id, Name, Industry, Status, Email, Website, AnnualRevenue, IsPartner, Owner.Name FROM Account",
    title="All Accounts",
    subtitle="Sample accounts built from an inline LazyFrame",
    display_search_box=True,
    display_actions_button=True,
    page_size=8,
    default_sort_field="Name",
    allow_user_sort=True,
    selectable_rows=True,
    display_row_actions=True,
    columns=[
        ColumnConfig(field="Name", label="Account Name"),
        ColumnConfig(field="Industry", filter_values="Banking, Energy, Healthcare, Retail, Technology"),
        ColumnConfig(
            field="Status",
            display_as_pill=True,
            pill_colors="Active:#2e844a,Prospect:#fe9339,Churned:#ba0517",
            filter_values="Active,Prospect,Churned",
        ),
        ColumnConfig(field="Email"),
        ColumnConfig(field="Website"),
        ColumnConfig(field="AnnualRevenue", label="Annual Revenue"),
        ColumnConfig(field="IsPartner", label="Partner"),
        ColumnConfig(field="Owner.Name", label="Owner"),
    ],
)

FILE_CONFIG = ListViewConfig(
    query="SELECT Id, Title, FileExtension, LatestPublishedVersionId, ContentSize FROM ContentDocument",
    title="Files",
    display_search_box=True,
    display_actions_button=True,
    display_row_actions=True,
    allow_user_sort=True,
    column_text_wrap="wrap",
    disable_export_all=True,
    columns=[
        ColumnConfig(field="Title"),
        ColumnConfig(field="FileExtension", label="Type"),
        ColumnConfig(field="ContentSize", label="Size (bytes)"),
    ],
)

DIRECTORY = InMemoryDirectoryService(USERS)


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------

class AccountState(ListViewMixin, rx.State):
    """Account list; ``lv_*`` vars come from ``ListViewMixin``."""

    async def load(self):
        service = LazyFrameQueryService(
            _build_account_lazyframe(),
            field_types={"Email": "EMAIL", "Website": "URL", "AnnualRevenue": "CURRENCY"},
        )
        return await self.set_list_view(ACCOUNT_CONFIG, service, DIRECTORY, DIRECTORY)


class FileState(ListViewMixin, rx.State):
    """ContentDocument list rendered in file mode."""

    async def load(self):
        return await self.set_list_view(FILE_CONFIG, LazyFrameQueryService(_build_file_lazyframe()))


# ---------------------------------------------------------------------------
# UI components
# ---------------------------------------------------------------------------

def _tab(state_cls: type, description: str) -> rx.Component:
    return rx.box(
        rx.text(description, margin_bottom="1em", color="var(--gray-11)"),
        rx.cond(
            state_cls.lv_loaded,
            list_view(state_cls, height="480px"),
            rx.text("Loading...", color="var(--gray-9)"),
        ),
        padding_top="1em",
    )


def index() -> rx.Component:
    """Render the main page with tabs."""
    return rx.box(
        rx.heading("List View -- Reflex Demo", size="6", margin_bottom="1em"),
        rx.tabs.root(
            rx.tabs.list(
                rx.tabs.trigger("Accounts", value="accounts"),
                rx.tabs.trigger("Files", value="files"),
            ),
            rx.tabs.content(
                _tab(
                    AccountState,
                    "Search matches any text column. Industry and Status have quick filters; "
                    "select rows and use the actions menu to change their owner.",
                ),
                value="accounts",
            ),
            rx.tabs.content(
                _tab(
                    FileState,
                    "A ContentDocument query switches the list into file mode with "
                    "per-row preview and download actions.",
                ),
                value="files",
            ),
            default_value="accounts",
        ),
        padding="2em",
        max_width="1400px",
        margin="0 auto",
    )


app = rx.App()
app.add_page(index, on_load=[AccountState.load, FileState.load])
