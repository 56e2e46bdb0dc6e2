"""Viewport controller: wrapped lines, scroll offset, search, and redraw state."""
from __future__ import annotations

import enum
import logging
import sys
from dataclasses import dataclass, field

from .renderer import Segment, split_matches
from .viewport import wrap_text

logger = logging.getLogger(__name__)

QUERY_NOT_SET = "search query is not set"


class MoveUnit(enum.Enum):
    LINE = "line"
    HALF_PAGE = "half_page"
    ENTIRE = "entire"


@dataclass(frozen=True)
class QueryEdit:
    """Token for an open query-edit session; holds the query to restore."""

    saved: str


@dataclass
class Frame:
    """Everything needed to paint one screen."""

    width: int
    content_rows: int
    rows: list[list[Segment]] = field(default_factory=list)
    status: str = ""
    query_mode: bool = False


class Pager:
    """Manages a scroll offset into the display lines of a fixed document.

    Every operation that changes what would be drawn marks the pager dirty;
    :meth:`render` returns a :class:`Frame` only while dirty and then resets
    the flag together with any one-shot status message.
    """

    def __init__(self, width: int, height: int, contents: str) -> None:
        self._width = width
        self._height = height
        self._contents = contents
        self._lines: list[str] = []
        self._offset = 0
        self._query = ""
        self._query_mode = False
        self._message: str | None = None
        self._needs_redraw = True
        self._rewrap()

    # ── Introspection ─────────────────────────────────────────────────────

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def lines(self) -> list[str]:
        return self._lines

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def query(self) -> str:
        return self._query

    @property
    def query_mode(self) -> bool:
        return self._query_mode

    @property
    def message(self) -> str | None:
        return self._message

    @property
    def needs_redraw(self) -> bool:
        return self._needs_redraw

    @property
    def content_rows(self) -> int:
        """Rows available for text; the last row holds the status line."""
        return max(0, self._height - 1)

    def max_offset(self) -> int:
        return max(0, len(self._lines) - self.content_rows)

    def get_viewport(self) -> tuple[list[str], int, int]:
        """Return ``(visible_lines, offset, total_lines)``."""
        end = min(len(self._lines), self._offset + self.content_rows)
        return self._lines[self._offset : end], self._offset, len(self._lines)

    # ── Geometry ──────────────────────────────────────────────────────────

    def resize(self, width: int, height: int) -> None:
        """Re-wrap for a new terminal size and keep the offset in range."""
        if width == self._width and height == self._height:
            return
        logger.debug(
            "resize %dx%d -> %dx%d", self._width, self._height, width, height,
        )
        self._width = width
        self._height = height
        self._rewrap()
        self._clamp()

    def _rewrap(self) -> None:
        self._lines = wrap_text(self._contents, self._width)
        self._needs_redraw = True

    def _clamp(self) -> None:
        self._offset = max(0, min(self.max_offset(), self._offset))
        self._needs_redraw = True

    # ── Scrolling ─────────────────────────────────────────────────────────

    def scroll(self, delta: int) -> None:
        self._offset += delta
        self._clamp()

    def _amount(self, unit: MoveUnit) -> int:
        if unit is MoveUnit.LINE:
            return 1
        if unit is MoveUnit.HALF_PAGE:
            return self._height // 2
        return sys.maxsize

    def up_by(self, unit: MoveUnit) -> None:
        self.scroll(-self._amount(unit))

    def down_by(self, unit: MoveUnit) -> None:
        self.scroll(self._amount(unit))

    # ── Query editing ─────────────────────────────────────────────────────

    def enter_query_mode(self) -> QueryEdit:
        """Start editing a fresh query; the returned token can undo it."""
        edit = QueryEdit(self._query)
        self._query = ""
        self._query_mode = True
        self._needs_redraw = True
        return edit

    def commit_query(self, edit: QueryEdit) -> None:
        """Keep the edited query and return to normal mode."""
        self._query_mode = False
        self._needs_redraw = True
        logger.debug("query committed: %r (was %r)", self._query, edit.saved)

    def cancel_query(self, edit: QueryEdit) -> None:
        """Restore the query saved by :meth:`enter_query_mode`."""
        self._query = edit.saved
        self._query_mode = False
        self._needs_redraw = True

    def set_query(self, query: str) -> None:
        self._query = query
        self._needs_redraw = True

    def push_char(self, ch: str) -> None:
        self.set_query(self._query + ch)

    def pop_char(self) -> None:
        self.set_query(self._query[:-1])

    # ── Search ────────────────────────────────────────────────────────────

    def find_next(self) -> bool:
        """Jump to the first matching line after the top visible line."""
        if not self._query:
            self._set_message(QUERY_NOT_SET)
            return False
        for idx in range(self._offset + 1, len(self._lines)):
            if self._query in self._lines[idx]:
                return self._jump(idx)
        return self._miss()

    def find_previous(self) -> bool:
        """Jump to the nearest matching line above the top visible line."""
        if not self._query:
            self._set_message(QUERY_NOT_SET)
            return False
        for idx in range(min(self._offset, len(self._lines)) - 1, -1, -1):
            if self._query in self._lines[idx]:
                return self._jump(idx)
        return self._miss()

    def _jump(self, idx: int) -> bool:
        logger.debug("found %r at line %d", self._query, idx)
        self._offset = idx
        self._clamp()
        return True

    def _miss(self) -> bool:
        logger.debug("no match for %r from line %d", self._query, self._offset)
        self._set_message(f"failed to find `{self._query}`")
        return False

    def _set_message(self, message: str) -> None:
        self._message = message
        self._needs_redraw = True

    # ── Rendering ─────────────────────────────────────────────────────────

    def render(self) -> Frame | None:
        """Build the next frame, or ``None`` if nothing changed.

        The status message is shown by exactly one frame; producing that
        frame clears it along with the redraw flag.
        """
        if not self._needs_redraw:
            return None

        visible, _, _ = self.get_viewport()
        frame = Frame(
            width=self._width,
            content_rows=self.content_rows,
            rows=[split_matches(line, self._query) for line in visible],
            status=self._message if self._message is not None else self._query,
            query_mode=self._query_mode,
        )
        self._message = None
        self._needs_redraw = False
        return frame
