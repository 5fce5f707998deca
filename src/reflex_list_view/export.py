"""CSV export of list view records.

Cells are produced with the same :func:`~reflex_list_view.records.format_value`
used for display, so the file matches what is on screen.  The body is
written by polars (``quote_style="always"``); the header is written
separately because column labels need not be unique, which a polars
schema requires.
"""

import re
from collections.abc import Mapping, Sequence
from typing import Any

import polars as pl

from reflex_list_view.models import Column
from reflex_list_view.records import format_value, get_field_value

BYTE_ORDER_MARK: str = "\ufeff"
_WHITESPACE = re.compile(r"\s+")


def _quote(text: str) -> str:
    return '"' + text.replace('"', '""') + '"'


def export_filename(title: str) -> str:
    """``"My Open Cases"`` -> ``"My_Open_Cases_export.csv"``."""
    return _WHITESPACE.sub("_", title) + "_export.csv"


class CSVExporter:
    """Serialises records into comma-delimited, fully quoted CSV text."""

    def __init__(self, *, include_bom: bool = True) -> None:
        self.include_bom = include_bom

    def export_rows(
        self,
        records: Sequence[Mapping[str, Any]],
        columns: Sequence[Column],
    ) -> str:
        """Return CSV text for *records* under *columns*.

        Args:
            records: Raw records as returned by the query service.
            columns: Resolved columns; labels form the header row.

        Returns:
            The CSV document, prefixed with a byte-order mark unless
            ``include_bom`` was disabled.
        """
        header = ",".join(_quote(c.label) for c in columns)
        body = ""
        if columns and records:
            data = {
                f"c{i}": [format_value(get_field_value(r, col.field_name), col.type) for r in records]
                for i, col in enumerate(columns)
            }
            frame = pl.DataFrame(data, schema={name: pl.String for name in data})
            body = frame.write_csv(include_header=False, quote_style="always")

        prefix = BYTE_ORDER_MARK if self.include_bom else ""
        return f"{prefix}{header}\n{body}"
