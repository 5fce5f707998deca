"""External service protocols and polars-backed reference implementations.

A list view talks to three services: the record query service, the user
directory search and the bulk owner change.  They are plain async
protocols; any object with matching coroutine methods will do.

:class:`LazyFrameQueryService` implements the query service over a polars
LazyFrame so a list view can browse any tabular file without a backend.
As in the LazyFrame grid it is modelled on, nothing but the requested
page slice is ever collected: search, filters, the row count and the
sort are all pushed into the lazy query.
"""

import time
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, Protocol

import polars as pl

from reflex_list_view.models import (
    DirectoryUser,
    FieldMetadata,
    OwnerChangeResult,
    QueryParams,
    QueryResult,
)


class QueryService(Protocol):
    async def execute_query(self, params: QueryParams) -> QueryResult | Mapping[str, Any]: ...


class DirectoryService(Protocol):
    async def search_users(self, search_term: str) -> Iterable[DirectoryUser | Mapping[str, Any]]: ...


class OwnerService(Protocol):
    async def change_owner(
        self,
        record_ids: list[str],
        new_owner_id: str,
    ) -> OwnerChangeResult | Mapping[str, Any]: ...


# ---------------------------------------------------------------------------
# File scanner
# ---------------------------------------------------------------------------

def scan_file(path: Path) -> pl.LazyFrame:
    """Scan a tabular data file into a LazyFrame, picking the reader by extension.

    Supports ``.csv``, ``.tsv``, ``.parquet``/``.pq``, ``.json``,
    ``.ndjson``/``.jsonl`` and ``.ipc``/``.arrow``/``.feather``.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError: If the file extension is not recognised.
    """
    path = Path(path).resolve()
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    suffix = path.suffix.lower()
    if suffix in (".parquet", ".pq"):
        return pl.scan_parquet(path)
    if suffix == ".csv":
        return pl.scan_csv(path)
    if suffix == ".tsv":
        return pl.scan_csv(path, separator="\t")
    # JSON has no streaming scan -- read then convert to lazy
    if suffix == ".json":
        return pl.read_json(path).lazy()
    if suffix in (".ndjson", ".jsonl"):
        return pl.scan_ndjson(path)
    if suffix in (".ipc", ".arrow", ".feather"):
        return pl.scan_ipc(path)

    raise ValueError(
        f"Unsupported file extension: {suffix!r}. "
        "Supported: .csv, .tsv, .parquet, .pq, .json, .ndjson, .jsonl, .ipc, .arrow, .feather"
    )


# ---------------------------------------------------------------------------
# Schema helpers
# ---------------------------------------------------------------------------

def polars_dtype_to_field_type(dtype: pl.DataType) -> str:
    """Map a polars DataType to a list view field type token.

    Returns:
        One of ``"BOOLEAN"``, ``"INTEGER"``, ``"DOUBLE"``, ``"DATE"``,
        ``"DATETIME"`` or ``"STRING"``.
    """
    if isinstance(dtype, pl.Boolean):
        return "BOOLEAN"
    if dtype.is_integer():
        return "INTEGER"
    if dtype.is_numeric():
        return "DOUBLE"
    if isinstance(dtype, pl.Date):
        return "DATE"
    if isinstance(dtype, pl.Datetime):
        return "DATETIME"
    return "STRING"


def _humanize_field_name(field: str) -> str:
    """``"first_name"`` -> ``"First Name"``; ``"Account.Name"`` -> ``"Account Name"``."""
    return field.strip("_").replace("_", " ").replace(".", " ").title()


def build_field_metadata(
    schema: pl.Schema | Mapping[str, pl.DataType],
    prefix: str = "",
) -> dict[str, FieldMetadata]:
    """Field metadata for every column, recursing into Struct columns.

    Struct fields are keyed by dotted path (``"Account.Name"``).  A field
    whose own name is ``Name`` is flagged as the name field.
    """
    metadata: dict[str, FieldMetadata] = {}
    for name, dtype in schema.items():
        path = f"{prefix}{name}"
        if isinstance(dtype, pl.Struct):
            nested = {f.name: f.dtype for f in dtype.fields}
            metadata.update(build_field_metadata(nested, prefix=f"{path}."))
            continue
        metadata[path] = FieldMetadata(
            label=_humanize_field_name(path),
            type=polars_dtype_to_field_type(dtype),
            sortable=not isinstance(dtype, (pl.List, pl.Array, pl.Object)),
            is_name_field=name == "Name",
        )
    return metadata


def _field_expr(path: str, schema: pl.Schema) -> pl.Expr | None:
    """Expression for a possibly dotted *path*, or ``None`` if it is unknown."""
    head, *rest = path.split(".")
    if head not in schema:
        return None
    expr = pl.col(head)
    dtype: pl.DataType = schema[head]
    for part in rest:
        if not isinstance(dtype, pl.Struct):
            return None
        fields = {f.name: f.dtype for f in dtype.fields}
        if part not in fields:
            return None
        expr = expr.struct.field(part)
        dtype = fields[part]
    return expr


# ---------------------------------------------------------------------------
# Query service
# ---------------------------------------------------------------------------

class LazyFrameQueryService:
    """Query service over a polars LazyFrame.

    Records are identified by an ``Id`` column; when the frame has none,
    a string row index is added before any filtering so ids are stable
    across sorts and searches.

    Args:
        lf: The data to browse.
        id_field: Name of the identifier column.
        field_types: Type tokens overriding the ones inferred from the
            schema, e.g. ``{"Email": "EMAIL", "Website": "URL"}``.
    """

    def __init__(
        self,
        lf: pl.LazyFrame,
        id_field: str = "Id",
        field_types: Mapping[str, str] | None = None,
    ) -> None:
        schema = lf.collect_schema()
        if id_field not in schema:
            lf = lf.with_row_index(id_field).with_columns(pl.col(id_field).cast(pl.String))
        self.lf = lf
        self.id_field = id_field
        self.schema: pl.Schema = lf.collect_schema()
        self.field_metadata = build_field_metadata(self.schema)
        for field, field_type in (field_types or {}).items():
            if field in self.field_metadata:
                self.field_metadata[field].type = field_type.upper()

    def _search_expr(self, term: str) -> pl.Expr:
        needle = term.lower()
        exprs = [
            pl.col(name).str.to_lowercase().str.contains(needle, literal=True)
            for name, dtype in self.schema.items()
            if isinstance(dtype, pl.String) and name != self.id_field
        ]
        if not exprs:
            return pl.lit(False)
        return pl.any_horizontal(exprs).fill_null(False)

    async def execute_query(self, params: QueryParams) -> QueryResult:
        t0 = time.perf_counter()
        lf = self.lf

        if params.search_term:
            lf = lf.filter(self._search_expr(params.search_term))

        for field, values in params.filters.items():
            if not values:
                continue
            expr = _field_expr(field, self.schema)
            if expr is None:
                return QueryResult(success=False, error_message=f"Field {field} not queryable")
            lf = lf.filter(expr.cast(pl.String).is_in(list(values)))

        total = lf.select(pl.len()).collect().item()

        if params.sort_field:
            sort_expr = _field_expr(params.sort_field, self.schema)
            if sort_expr is None:
                return QueryResult(
                    success=False,
                    error_message=f"Field {params.sort_field} not queryable",
                )
            lf = lf.sort(sort_expr, descending=params.sort_direction == "DESC", nulls_last=True)

        offset = (max(params.page, 1) - 1) * params.page_size
        page_df = lf.slice(offset, params.page_size).collect()
        records = page_df.to_dicts()

        print(
            f"[ListView] query: page={params.page}, size={params.page_size}, "
            f"rows={len(records)}/{total}, elapsed={(time.perf_counter() - t0) * 1000:.1f}ms"
        )
        return QueryResult(
            success=True,
            records=records,
            total_count=total,
            field_metadata=self.field_metadata,
        )


# ---------------------------------------------------------------------------
# Directory / owner change
# ---------------------------------------------------------------------------

class InMemoryDirectoryService:
    """Directory search and owner change over an in-memory user list.

    Owner changes are recorded in :attr:`owners` (record id -> user id).
    """

    def __init__(self, users: Iterable[DirectoryUser | Mapping[str, Any]]) -> None:
        self.users = [DirectoryUser.coerce(u) for u in users]
        self.owners: dict[str, str] = {}

    async def search_users(self, search_term: str) -> list[DirectoryUser]:
        needle = search_term.lower()
        return [
            DirectoryUser(id=u.id, name=u.name, email=u.email, photo_url=u.photo_url, title=u.title)
            for u in self.users
            if needle in u.name.lower() or needle in u.email.lower()
        ]

    async def change_owner(self, record_ids: list[str], new_owner_id: str) -> OwnerChangeResult:
        if not any(u.id == new_owner_id for u in self.users):
            return OwnerChangeResult(success=False, error_message=f"Unknown user: {new_owner_id}")
        for record_id in record_ids:
            self.owners[record_id] = new_owner_id
        return OwnerChangeResult(success=True, success_count=len(record_ids))
