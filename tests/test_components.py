"""Tests for the column-resize event specs used by the list view table."""

import reflex as rx

from reflex_list_view.components import _resize_move_spec, _resize_start_spec


def test_resize_start_spec_reads_field_pointer_and_cell_width():
    args = [str(arg) for arg in _resize_start_spec(rx.Var("e"))]
    assert args == [
        "e.currentTarget.dataset.field",
        "e.clientX",
        "e.currentTarget.parentElement.getBoundingClientRect().width",
    ]


def test_resize_move_spec_reads_pointer_x():
    assert [str(arg) for arg in _resize_move_spec(rx.Var("e"))] == ["e.clientX"]
