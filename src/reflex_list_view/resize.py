"""Pointer-drag column resizing."""

from collections.abc import Callable
from typing import Protocol

MIN_COLUMN_WIDTH: int = 60


class PointerSource(Protocol):
    """Something that delivers document-level pointer move/release events.

    ``subscribe`` registers both callbacks and returns a function that
    removes them again.
    """

    def subscribe(
        self,
        on_move: Callable[[float], None],
        on_end: Callable[[], None],
    ) -> Callable[[], None]: ...


class ColumnResizeController:
    """``idle -> resizing -> idle`` state machine producing column widths.

    Pointer listeners are only held while a drag is active; they are
    released on drag end and by :meth:`close`.

    Args:
        pointer_source: Optional source of move/release events.  Without
            one, the host calls :meth:`move` and :meth:`end` itself.
        min_width: Hard floor for a resized column, in pixels.
    """

    def __init__(
        self,
        pointer_source: PointerSource | None = None,
        min_width: int = MIN_COLUMN_WIDTH,
    ) -> None:
        self.pointer_source = pointer_source
        self.min_width = min_width
        self.widths: dict[str, int] = {}
        self.field: str | None = None
        self._start_x: float = 0
        self._start_width: float = 0
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def is_resizing(self) -> bool:
        return self.field is not None

    def start(self, field: str, client_x: float, current_width: float) -> None:
        if self.is_resizing:
            self.end()
        self.field = field
        self._start_x = client_x
        self._start_width = current_width
        if self.pointer_source is not None:
            self._unsubscribe = self.pointer_source.subscribe(self.move, self.end)

    def move(self, client_x: float) -> None:
        if self.field is None:
            return
        width = max(self.min_width, round(self._start_width + (client_x - self._start_x)))
        self.widths = {**self.widths, self.field: width}

    def end(self) -> None:
        self.field = None
        if self._unsubscribe is not None:
            unsubscribe, self._unsubscribe = self._unsubscribe, None
            unsubscribe()

    def reset(self) -> None:
        """Forget every custom width."""
        self.widths = {}

    def close(self) -> None:
        self.end()
