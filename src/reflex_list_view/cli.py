"""CLI for reflex-list-view -- browse and export tabular files as a list view.

Usage::

    # Export every matching row to CSV
    reflex-list-view export accounts.parquet --search acme --sort Name \\
        --column Name --column Industry:Sector --filter Industry=Energy,Banking

    # Browse a file in the browser
    reflex-list-view view accounts.csv --page-size 50

Both commands use :class:`~reflex_list_view.services.LazyFrameQueryService`
over ``scan_file``; the export goes through the same orchestrator and CSV
exporter the browser view uses.
"""

import asyncio
import os
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Annotated, Optional

import typer

from reflex_list_view.errors import ListViewError
from reflex_list_view.export import export_filename
from reflex_list_view.models import MAX_COLUMN_SLOTS, ColumnConfig, CsvExport, ListViewConfig
from reflex_list_view.orchestrator import QueryOrchestrator
from reflex_list_view.services import LazyFrameQueryService, scan_file

app = typer.Typer(
    name="reflex-list-view",
    help="Browse and export tabular data files as a configurable list view.",
    no_args_is_help=True,
)


def _parse_columns(specs: list[str]) -> list[ColumnConfig]:
    """``FIELD`` or ``FIELD:LABEL`` -> column configs."""
    columns = []
    for spec in specs:
        field, _, label = spec.partition(":")
        if not field.strip():
            raise typer.BadParameter(f"Empty field name in column {spec!r}", param_hint="--column")
        columns.append(ColumnConfig(field=field.strip(), label=label.strip()))
    return columns


def _parse_filters(specs: list[str]) -> dict[str, list[str]]:
    """``FIELD=V1,V2`` -> ``{FIELD: [V1, V2]}``."""
    filters: dict[str, list[str]] = {}
    for spec in specs:
        field, sep, values = spec.partition("=")
        if not sep or not field.strip():
            raise typer.BadParameter(f"Expected FIELD=V1,V2, got {spec!r}", param_hint="--filter")
        filters.setdefault(field.strip(), []).extend(v.strip() for v in values.split(",") if v.strip())
    return filters


def _build_config(
    service: LazyFrameQueryService,
    title: str,
    columns: list[ColumnConfig],
    filters: dict[str, list[str]],
    sort: str,
    page_size: int,
) -> ListViewConfig:
    """Column slots for the export; filtered fields become quick filters."""
    if not columns:
        columns = [
            ColumnConfig(field=name)
            for name in service.field_metadata
            if name != service.id_field
        ][:MAX_COLUMN_SLOTS]

    by_field = {c.field: c for c in columns}
    for field, values in filters.items():
        column = by_field.get(field)
        if column is None:
            column = ColumnConfig(field=field)
            columns.append(column)
            by_field[field] = column
        column.filter_values = ",".join(values)

    return ListViewConfig(
        query=f"SELECT * FROM {title}",
        title=title,
        page_size=page_size,
        default_sort_field=sort,
        allow_user_sort=True,
        columns=columns,
    )


async def _run_export(
    orchestrator: QueryOrchestrator,
    search: str,
    descending: bool,
    filters: dict[str, list[str]],
) -> CsvExport | None:
    orchestrator.search_term = search
    if descending:
        orchestrator.sort_direction = "DESC"
    for field, values in filters.items():
        orchestrator.filters.set_filter(field, values)
    await orchestrator.connect()
    if orchestrator.error_message:
        return None
    return await orchestrator.export_all()


@app.command()
def export(
    file: Annotated[Path, typer.Argument(help="Path to the data file (CSV, TSV, Parquet, JSON, NDJSON, IPC)")],
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="CSV file to write")] = None,
    search: Annotated[str, typer.Option("--search", "-s", help="Case-insensitive search term")] = "",
    sort: Annotated[str, typer.Option("--sort", help="Field to sort by")] = "",
    desc: Annotated[bool, typer.Option("--desc", help="Sort descending")] = False,
    filter_specs: Annotated[
        Optional[list[str]],
        typer.Option("--filter", "-f", help="Quick filter FIELD=V1,V2 (repeatable)"),
    ] = None,
    column_specs: Annotated[
        Optional[list[str]],
        typer.Option("--column", "-c", help="Column FIELD or FIELD:LABEL (repeatable, max 10)"),
    ] = None,
    title: Annotated[Optional[str], typer.Option("--title", "-t", help="List title, used for the file name")] = None,
) -> None:
    """Export every row matching the search and filters to a CSV file."""
    file = file.resolve()
    if not file.exists():
        typer.echo(f"Error: file not found: {file}", err=True)
        raise typer.Exit(code=1)

    columns = _parse_columns(column_specs or [])
    filters = _parse_filters(filter_specs or [])
    if title is None:
        title = file.stem

    try:
        service = LazyFrameQueryService(scan_file(file))
        config = _build_config(service, title, columns, filters, sort, page_size=1000)
    except (ValueError, ListViewError) as error:
        typer.echo(f"Error: {error}", err=True)
        raise typer.Exit(code=1)

    orchestrator = QueryOrchestrator(config, service)
    result = asyncio.run(_run_export(orchestrator, search, desc, filters))
    if result is None:
        notifications, _ = orchestrator.drain_events()
        message = orchestrator.error_message or next(
            (n.message for n in notifications), "Nothing to export"
        )
        typer.echo(f"Error: {message}", err=True)
        raise typer.Exit(code=1)

    target = output or Path.cwd() / export_filename(title)
    # The exporter emits its own newlines; keep them untranslated.
    target.write_text(result.content, encoding="utf-8", newline="")
    typer.echo(f"Exported {result.record_count} record(s) to {target}")


# ---------------------------------------------------------------------------
# App template -- uses __PLACEHOLDER__ tokens for dynamic parts.
# ---------------------------------------------------------------------------

_APP_TEMPLATE = '''"""Auto-generated list view app for: __FILENAME__"""

from pathlib import Path

import reflex as rx

from reflex_list_view import (
    LazyFrameQueryService,
    ListViewConfig,
    ListViewMixin,
    list_view,
    scan_file,
)

CONFIG = ListViewConfig(
    query="SELECT * FROM __FILENAME__",
    title="__TITLE__",
    page_size=__PAGE_SIZE__,
    display_search_box=True,
    display_actions_button=True,
    allow_user_sort=True,
    selectable_rows=True,
    display_row_actions=True,
    columns=[__COLUMNS__],
)


class ViewerState(ListViewMixin, rx.State):
    """Viewer state using ListViewMixin over the scanned file."""

    async def load_data(self):
        service = LazyFrameQueryService(scan_file(Path("__SAFE_PATH__")))
        return await self.set_list_view(CONFIG, service)


def index() -> rx.Component:
    return rx.box(
        rx.cond(
            ViewerState.lv_loaded,
            list_view(ViewerState, height="calc(100vh - 260px)"),
            rx.text("Loading...", color="var(--gray-9)"),
        ),
        padding="2em",
        max_width="1400px",
        margin="0 auto",
    )


app = rx.App()
app.add_page(index, on_load=ViewerState.load_data)
'''


def _build_app_code(file_path: Path, title: str, columns: list[ColumnConfig], page_size: int) -> str:
    """Generate the Reflex app module source code."""
    abs_path = str(file_path.resolve())
    safe_path = abs_path.replace("\\", "\\\\").replace('"', '\\"')
    column_code = ", ".join(f"{{'field': {c.field!r}, 'label': {c.label!r}}}" for c in columns)

    template = _APP_TEMPLATE
    template = template.replace("__FILENAME__", file_path.name)
    template = template.replace("__SAFE_PATH__", safe_path)
    template = template.replace("__TITLE__", title.replace('"', '\\"'))
    template = template.replace("__PAGE_SIZE__", str(page_size))
    template = template.replace("__COLUMNS__", column_code)
    return template


@app.command()
def view(
    file: Annotated[Path, typer.Argument(help="Path to the data file (CSV, TSV, Parquet, JSON, NDJSON, IPC)")],
    column_specs: Annotated[
        Optional[list[str]],
        typer.Option("--column", "-c", help="Column FIELD or FIELD:LABEL (repeatable, max 10)"),
    ] = None,
    page_size: Annotated[int, typer.Option("--page-size", "-n", help="Rows per page")] = 20,
    port: Annotated[int, typer.Option("--port", "-p", help="Port for the Reflex frontend")] = 3000,
    title: Annotated[Optional[str], typer.Option("--title", "-t", help="List title")] = None,
) -> None:
    """Browse a data file in a paginated, searchable list view."""
    file = file.resolve()
    if not file.exists():
        typer.echo(f"Error: file not found: {file}", err=True)
        raise typer.Exit(code=1)

    columns = _parse_columns(column_specs or [])
    if not columns:
        try:
            service = LazyFrameQueryService(scan_file(file))
        except ValueError as error:
            typer.echo(f"Error: {error}", err=True)
            raise typer.Exit(code=1)
        columns = [
            ColumnConfig(field=name)
            for name in service.field_metadata
            if name != service.id_field
        ][:MAX_COLUMN_SLOTS]
    if len(columns) > MAX_COLUMN_SLOTS:
        typer.echo(f"Error: at most {MAX_COLUMN_SLOTS} columns are supported", err=True)
        raise typer.Exit(code=1)

    if title is None:
        title = file.stem

    app_code = _build_app_code(file, title, columns, page_size)

    tmp_dir = Path(tempfile.mkdtemp(prefix="list_view_"))
    app_name = "list_view_app"
    app_pkg = tmp_dir / app_name
    app_pkg.mkdir()
    (app_pkg / "__init__.py").write_text("")
    (app_pkg / f"{app_name}.py").write_text(app_code)

    rxconfig_code = f"""import reflex as rx
config = rx.Config(app_name="{app_name}", frontend_port={port})
"""
    (tmp_dir / "rxconfig.py").write_text(rxconfig_code)

    typer.echo(f"Launching list view for: {file}")
    typer.echo(f"Columns: {len(columns)} | Page size: {page_size} | Port: {port}")

    os.chdir(tmp_dir)

    # reflex's CLI calls sys.exit() on completion, so init runs in a subprocess.
    typer.echo("Initializing Reflex project...")
    subprocess.run(
        [sys.executable, "-m", "reflex", "init"],
        cwd=str(tmp_dir),
        check=True,
    )

    typer.echo("Starting viewer...")
    os.execvp(sys.executable, [sys.executable, "-m", "reflex", "run"])


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
