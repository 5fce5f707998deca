"""Row selection that survives paging, sorting, filtering and search."""

from collections.abc import Iterable


class SelectionTracker:
    """Tracks the selected record ids.

    The id set is an immutable ``frozenset`` replaced on every change, so
    a reference handed to a renderer never changes under it.
    """

    def __init__(self) -> None:
        self.selected_ids: frozenset[str] = frozenset()
        self.all_selected_on_page: bool = False

    @property
    def count(self) -> int:
        return len(self.selected_ids)

    @property
    def label(self) -> str:
        if not self.selected_ids:
            return ""
        return "1 selected" if self.count == 1 else f"{self.count} selected"

    def is_selected(self, record_id: str) -> bool:
        return record_id in self.selected_ids

    def select_all(self, checked: bool, page_ids: Iterable[str]) -> None:
        """Select or deselect every record on the current page only."""
        ids = set(page_ids)
        if checked:
            self.selected_ids = self.selected_ids | ids
        else:
            self.selected_ids = self.selected_ids - ids
        self.all_selected_on_page = checked and bool(ids)

    def toggle(self, record_id: str, checked: bool, page_ids: Iterable[str]) -> None:
        if checked:
            self.selected_ids = self.selected_ids | {record_id}
        else:
            self.selected_ids = self.selected_ids - {record_id}
        self.refresh(page_ids)

    def replace(self, record_ids: Iterable[str], page_ids: Iterable[str]) -> None:
        self.selected_ids = frozenset(record_ids)
        self.refresh(page_ids)

    def clear(self) -> None:
        self.selected_ids = frozenset()
        self.all_selected_on_page = False

    def refresh(self, page_ids: Iterable[str]) -> None:
        """Recompute whether every record on the page is selected."""
        ids = list(page_ids)
        self.all_selected_on_page = bool(ids) and all(i in self.selected_ids for i in ids)
