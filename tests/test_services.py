"""Tests for the polars-backed reference services."""

import asyncio

import polars as pl
import pytest

from reflex_list_view.models import QueryParams
from reflex_list_view.services import (
    InMemoryDirectoryService,
    LazyFrameQueryService,
    build_field_metadata,
    polars_dtype_to_field_type,
    scan_file,
)


def _cases_lf() -> pl.LazyFrame:
    return pl.LazyFrame(
        {
            "Id": ["1", "2", "3", "4", "5"],
            "Subject": ["Printer jam", "Login issue", "Printer on fire", "Billing", None],
            "Status": ["New", "Closed", "New", "Working", "New"],
            "Priority": [3, 1, 5, 2, 4],
            "IsEscalated": [False, False, True, False, True],
            "Account": [
                {"Id": "001A", "Name": "Acme"},
                {"Id": "001B", "Name": "Globex"},
                {"Id": "001A", "Name": "Acme"},
                {"Id": "001C", "Name": "Initech"},
                {"Id": "001B", "Name": "Globex"},
            ],
        }
    )


def _query(service, **kwargs):
    return asyncio.run(service.execute_query(QueryParams(query="SELECT Id FROM Case", **kwargs)))


def test_field_metadata_from_schema():
    metadata = build_field_metadata(_cases_lf().collect_schema())
    assert metadata["Priority"].type == "INTEGER"
    assert metadata["IsEscalated"].type == "BOOLEAN"
    assert metadata["Subject"].type == "STRING"
    assert metadata["Account.Name"].is_name_field
    assert metadata["Account.Name"].label == "Account Name"
    assert "Account" not in metadata


def test_polars_dtype_to_field_type():
    assert polars_dtype_to_field_type(pl.Float64()) == "DOUBLE"
    assert polars_dtype_to_field_type(pl.Date()) == "DATE"
    assert polars_dtype_to_field_type(pl.Datetime()) == "DATETIME"
    assert polars_dtype_to_field_type(pl.String()) == "STRING"


def test_field_type_overrides():
    service = LazyFrameQueryService(_cases_lf(), field_types={"Subject": "email", "Missing": "URL"})
    assert service.field_metadata["Subject"].type == "EMAIL"
    assert "Missing" not in service.field_metadata


def test_paging_and_total():
    result = _query(LazyFrameQueryService(_cases_lf()), page=2, page_size=2)
    assert result.success
    assert result.total_count == 5
    assert [r["Id"] for r in result.records] == ["3", "4"]


def test_search_is_case_insensitive():
    result = _query(LazyFrameQueryService(_cases_lf()), search_term="PRINTER")
    assert result.total_count == 2
    assert {r["Id"] for r in result.records} == {"1", "3"}


def test_filters_and_sort():
    result = _query(
        LazyFrameQueryService(_cases_lf()),
        filters={"Status": ("New",)},
        sort_field="Priority",
        sort_direction="DESC",
    )
    assert result.total_count == 3
    assert [r["Id"] for r in result.records] == ["3", "5", "1"]


def test_filter_and_sort_on_nested_field():
    result = _query(
        LazyFrameQueryService(_cases_lf()),
        filters={"Account.Name": ("Acme", "Initech")},
        sort_field="Account.Name",
    )
    assert [r["Account"]["Name"] for r in result.records] == ["Acme", "Acme", "Initech"]


def test_unknown_filter_field_is_a_business_error():
    result = _query(LazyFrameQueryService(_cases_lf()), filters={"Bogus": ("x",)})
    assert not result.success
    assert result.error_message == "Field Bogus not queryable"


def test_unknown_sort_field_is_a_business_error():
    result = _query(LazyFrameQueryService(_cases_lf()), sort_field="Bogus")
    assert not result.success
    assert result.error_message == "Field Bogus not queryable"


def test_row_index_added_when_id_missing():
    service = LazyFrameQueryService(pl.LazyFrame({"Name": ["a", "b"]}))
    result = _query(service)
    assert [r["Id"] for r in result.records] == ["0", "1"]


def test_scan_file_csv(tmp_path):
    path = tmp_path / "cases.csv"
    path.write_text("Id,Subject\n1,Hello\n2,World\n")
    assert scan_file(path).collect().height == 2


def test_scan_file_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        scan_file(tmp_path / "missing.csv")
    bad = tmp_path / "data.xyz"
    bad.write_text("x")
    with pytest.raises(ValueError):
        scan_file(bad)


def test_directory_search_and_owner_change():
    directory = InMemoryDirectoryService(
        [
            {"Id": "005A", "Name": "Alice Smith", "Email": "alice@example.com"},
            {"Id": "005B", "Name": "Bob Jones", "Email": "bob@example.com"},
        ]
    )
    users = asyncio.run(directory.search_users("ali"))
    assert [u.id for u in users] == ["005A"]
    assert [u.id for u in asyncio.run(directory.search_users("EXAMPLE"))] == ["005A", "005B"]

    result = asyncio.run(directory.change_owner(["1", "2"], "005B"))
    assert result.success and result.success_count == 2
    assert directory.owners == {"1": "005B", "2": "005B"}

    failed = asyncio.run(directory.change_owner(["1"], "nobody"))
    assert not failed.success
