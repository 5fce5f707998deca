"""Field access, value formatting and display-row building.

Records are loosely typed mappings: relational fields come back as nested
mappings (``{"Account": {"Id": "001", "Name": "Acme"}}``) and are addressed
with dotted paths (``"Account.Name"``).  :class:`DisplayRowBuilder` turns a
record into a :class:`~reflex_list_view.models.DisplayRow`, and
:class:`DisplayCache` makes sure that expensive step only runs when a new
record set arrives -- selection changes only re-apply a cheap overlay.
"""

import time
from collections.abc import Collection, Mapping, Sequence
from dataclasses import replace
from typing import Any
from urllib.parse import urlsplit

from reflex_list_view.columns import PillColorResolver
from reflex_list_view.models import Column, DisplayField, DisplayRow, FieldMetadata

_URL_DISPLAY_LIMIT: int = 30

# Type tokens that get a dedicated rendering flag.
_FLAG_TYPES: dict[str, str] = {
    "BOOLEAN": "is_boolean",
    "CURRENCY": "is_currency",
    "PERCENT": "is_percent",
    "DATE": "is_date",
    "DATETIME": "is_date_time",
    "EMAIL": "is_email",
    "PHONE": "is_phone",
    "URL": "is_url",
}


# ---------------------------------------------------------------------------
# Field access & formatting
# ---------------------------------------------------------------------------

def get_field_value(record: Mapping[str, Any] | None, field_path: str) -> Any:
    """Resolve a possibly dotted *field_path* against *record*.

    A missing or non-mapping intermediate yields ``""`` instead of raising.
    """
    if not record or not field_path:
        return ""
    if "." not in field_path:
        return record.get(field_path)

    value: Any = record
    for part in field_path.split("."):
        value = value.get(part) if value and isinstance(value, Mapping) else ""
    return value


def format_value(value: Any, field_type: str) -> str:
    """Format a raw value for display and export.

    ``None`` becomes ``""``, booleans become ``"Yes"``/``"No"``, and
    everything else uses its plain string form.
    """
    if value is None:
        return ""
    if field_type == "BOOLEAN":
        return "Yes" if value else "No"
    return str(value)


def truncate_url(url: Any) -> str:
    """Host name of an absolute URL, or the value cut to 30 characters."""
    if not url:
        return ""
    text = str(url)
    try:
        parts = urlsplit(text)
        if parts.scheme and parts.hostname:
            return parts.hostname
    except ValueError:
        pass
    return f"{text[:_URL_DISPLAY_LIMIT]}..." if len(text) > _URL_DISPLAY_LIMIT else text


def is_link_field(field_name: str, metadata: FieldMetadata | None) -> bool:
    """Name fields (per metadata, ``Name`` or ``*.Name``) link to their record."""
    if metadata is not None and metadata.is_name_field:
        return True
    return field_name == "Name" or field_name.endswith(".Name")


def link_record_id(field_name: str, record: Mapping[str, Any]) -> str:
    """Id of the record a field links to: the related record for dotted paths."""
    if "." in field_name:
        related = record.get(field_name.split(".")[0])
        if isinstance(related, Mapping):
            return str(related.get("Id") or "")
        return ""
    return str(record.get("Id") or "")


# ---------------------------------------------------------------------------
# File objects
# ---------------------------------------------------------------------------

FILE_ICON_MAP: dict[str, str] = {
    # Documents
    "pdf": "doctype:pdf", "doc": "doctype:word", "docx": "doctype:word", "word_x": "doctype:word",
    "xls": "doctype:excel", "xlsx": "doctype:excel", "xlsm": "doctype:excel", "csv": "doctype:csv",
    "ppt": "doctype:ppt", "pptx": "doctype:ppt", "txt": "doctype:txt", "rtf": "doctype:rtf",
    # Images
    "png": "doctype:image", "jpg": "doctype:image", "jpeg": "doctype:image", "gif": "doctype:image",
    "bmp": "doctype:image", "svg": "doctype:image", "webp": "doctype:image", "tiff": "doctype:image",
    "tif": "doctype:image", "ico": "doctype:image",
    # Video
    "mp4": "doctype:video", "avi": "doctype:video", "mov": "doctype:video", "wmv": "doctype:video",
    "mkv": "doctype:video", "webm": "doctype:video",
    # Audio
    "mp3": "doctype:audio", "wav": "doctype:audio", "ogg": "doctype:audio", "flac": "doctype:audio",
    "m4a": "doctype:audio",
    # Archives
    "zip": "doctype:zip", "rar": "doctype:zip", "7z": "doctype:zip", "tar": "doctype:zip",
    "gz": "doctype:zip",
    # Code
    "html": "doctype:html", "htm": "doctype:html", "xml": "doctype:xml",
    "js": "doctype:unknown", "css": "doctype:unknown", "json": "doctype:unknown",
    # Other
    "eps": "doctype:eps", "ai": "doctype:ai", "psd": "doctype:psd", "gdoc": "doctype:gdoc",
    "gsheet": "doctype:gsheet", "gpres": "doctype:gpres", "keynote": "doctype:keynote",
    "pages": "doctype:pages", "numbers": "doctype:numbers", "visio": "doctype:visio",
    "link": "doctype:link", "library_folder": "doctype:library_folder", "folder": "doctype:folder",
}
DEFAULT_FILE_ICON: str = "doctype:attachment"

_EXTENSION_FIELDS: tuple[str, ...] = (
    "FileExtension", "FileType", "ContentDocument.FileExtension", "ContentDocument.FileType",
)
_TITLE_FIELDS: tuple[str, ...] = ("Title", "Name", "ContentDocument.Title", "PathOnClient")


def detect_file_object_type(query: str) -> str | None:
    """Return the file-like object type a query targets, if any."""
    if not query:
        return None
    upper = query.upper()
    # ContentDocumentLink must be checked before its ContentDocument prefix.
    if "FROM CONTENTVERSION" in upper:
        return "ContentVersion"
    if "FROM CONTENTDOCUMENTLINK" in upper:
        return "ContentDocumentLink"
    if "FROM CONTENTDOCUMENT" in upper:
        return "ContentDocument"
    return None


def file_extension(record: Mapping[str, Any] | None) -> str:
    if not record:
        return ""
    for path in _EXTENSION_FIELDS:
        value = get_field_value(record, path)
        if value:
            return str(value).lower()
    for path in _TITLE_FIELDS:
        value = get_field_value(record, path)
        if value and isinstance(value, str) and "." in value:
            return value.rsplit(".", 1)[-1].lower()
    return ""


def file_icon(extension: str) -> str:
    if not extension:
        return DEFAULT_FILE_ICON
    return FILE_ICON_MAP.get(extension.lower().replace(".", "", 1), DEFAULT_FILE_ICON)


def _nested_id(record: Mapping[str, Any], relation: str, key: str) -> Any:
    related = record.get(relation)
    return related.get(key) if isinstance(related, Mapping) else None


def content_document_id(record: Mapping[str, Any] | None, object_type: str | None) -> str | None:
    if not record:
        return None
    if object_type == "ContentDocument":
        return record.get("Id")
    if object_type == "ContentDocumentLink":
        return record.get("ContentDocumentId") or _nested_id(record, "ContentDocument", "Id")
    if object_type == "ContentVersion":
        return record.get("ContentDocumentId")
    return None


def content_version_id(record: Mapping[str, Any] | None, object_type: str | None) -> str | None:
    if not record:
        return None
    if object_type == "ContentVersion":
        return record.get("Id")
    if object_type == "ContentDocument":
        return record.get("LatestPublishedVersionId")
    if object_type == "ContentDocumentLink":
        return _nested_id(record, "ContentDocument", "LatestPublishedVersionId")
    return None


# ---------------------------------------------------------------------------
# Display rows
# ---------------------------------------------------------------------------

class DisplayRowBuilder:
    """Builds :class:`DisplayRow` objects from raw records.

    Args:
        pill_resolver: Shared pill colour cache.
        file_object_type: ``"ContentVersion"``, ``"ContentDocument"`` or
            ``"ContentDocumentLink"`` when the view lists files; adds file
            extension, icon and content ids to every row.
    """

    def __init__(self, pill_resolver: PillColorResolver, file_object_type: str | None = None) -> None:
        self.pill_resolver = pill_resolver
        self.file_object_type = file_object_type

    def build_field(
        self,
        record: Mapping[str, Any],
        column: Column,
        index: int,
        metadata: FieldMetadata | None,
    ) -> DisplayField:
        value = get_field_value(record, column.field_name)
        field_type = column.type
        is_pill = bool(column.display_as_pill and value)

        flags = {flag: field_type == type_name and not is_pill for type_name, flag in _FLAG_TYPES.items()}
        background = text = pill_style = ""
        if is_pill:
            background, text = self.pill_resolver.pill_colors(value, column.pill_color_map)
            pill_style = f"background-color: {background}; color: {text};"

        target_id = link_record_id(column.field_name, record)
        return DisplayField(
            key=f"{record.get('Id', '')}-{column.field_name}-{index}",
            field_name=column.field_name,
            raw_value=value,
            display_value=format_value(value, field_type),
            is_link=is_link_field(column.field_name, metadata) and not is_pill,
            link_url=f"/{target_id}" if target_id else "",
            link_record_id=target_id,
            boolean_icon="utility:check" if value else "utility:close",
            boolean_class="boolean-true" if value else "boolean-false",
            email_href=f"mailto:{value}" if value else "",
            phone_href=f"tel:{value}" if value else "",
            url_display=truncate_url(value),
            is_pill=is_pill,
            pill_background=background,
            pill_text=text,
            pill_style=pill_style,
            **flags,
        )

    def build_row(
        self,
        record: Mapping[str, Any],
        columns: Sequence[Column],
        field_metadata: Mapping[str, FieldMetadata],
    ) -> DisplayRow:
        fields = [
            self.build_field(record, column, i, field_metadata.get(column.field_name))
            for i, column in enumerate(columns)
        ]
        if not self.file_object_type:
            return DisplayRow(id=str(record.get("Id") or ""), display_fields=fields)

        extension = file_extension(record)
        icon = file_icon(extension)
        return DisplayRow(
            id=str(record.get("Id") or ""),
            display_fields=fields,
            file_extension=extension,
            file_icon=icon,
            content_document_id=content_document_id(record, self.file_object_type),
            content_version_id=content_version_id(record, self.file_object_type),
            has_file_icon=bool(icon),
        )


class DisplayCache:
    """Two-tier cache for display rows.

    The row build runs only when the *identity* of the records list changes
    (a new fetch result).  Every call to :meth:`rows` then overlays the
    current selection onto copies of the cached rows, which is cheap and
    never re-formats a field.
    """

    def __init__(self, builder: DisplayRowBuilder) -> None:
        self.builder = builder
        self.build_count: int = 0
        self._records_ref: Sequence[Mapping[str, Any]] | None = None
        self._rows: list[DisplayRow] = []

    def rows(
        self,
        records: Sequence[Mapping[str, Any]] | None,
        columns: Sequence[Column],
        field_metadata: Mapping[str, FieldMetadata],
        selected_ids: Collection[str],
    ) -> list[DisplayRow]:
        if records is None:
            return []
        if records is not self._records_ref:
            t0 = time.perf_counter()
            self._records_ref = records
            self._rows = [self.builder.build_row(r, columns, field_metadata) for r in records]
            self.build_count += 1
            print(
                f"[ListView] built {len(self._rows)} display rows "
                f"({(time.perf_counter() - t0) * 1000:.1f}ms)"
            )

        decorated: list[DisplayRow] = []
        for row in self._rows:
            selected = row.id in selected_ids
            decorated.append(
                replace(
                    row,
                    is_selected=selected,
                    row_class="table-row selected-row" if selected else "table-row",
                )
            )
        return decorated

    def invalidate(self) -> None:
        self._records_ref = None
        self._rows = []
