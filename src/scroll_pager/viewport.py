"""Display-width line wrapping and frame drawing."""
from __future__ import annotations

import sys
import unicodedata
from typing import TYPE_CHECKING, Iterator, TextIO

from .renderer import render_segments, render_status_line
from .terminal import CLEAR_EOL, CURSOR_HIDE, HOME

if TYPE_CHECKING:
    from .pager import Frame


# ── Display width ─────────────────────────────────────────────────────────────

def char_width(ch: str) -> int:
    """Terminal columns taken by a single character.

    Combining marks and format characters (ZWSP, ZWJ) take no columns,
    East Asian wide and fullwidth characters take two, everything else one.
    """
    if unicodedata.combining(ch) or unicodedata.category(ch) == "Cf":
        return 0
    if unicodedata.east_asian_width(ch) in ("W", "F"):
        return 2
    return 1


# ── Line wrapping ─────────────────────────────────────────────────────────────

class LineWrapper:
    """Lazily split *contents* into display lines at most *width* columns wide.

    Carriage returns are dropped, newlines end a line (empty lines between
    consecutive newlines are kept), and a line is broken before any character
    that would push it past *width*.  Characters are never split, so a single
    character wider than *width* sits alone on an overflowing line.  A
    trailing newline does not produce an extra empty line.

    Every ``iter()`` starts over from the beginning of the text.
    """

    def __init__(self, width: int, contents: str) -> None:
        self.width = max(1, width)
        self.contents = contents

    def __iter__(self) -> Iterator[str]:
        width = self.width
        line: list[str] = []
        line_width = 0
        for ch in self.contents:
            if ch == "\r":
                continue
            if ch == "\n":
                yield "".join(line)
                line = []
                line_width = 0
                continue
            w = char_width(ch)
            if line and line_width + w > width:
                yield "".join(line)
                line = []
                line_width = 0
            line.append(ch)
            line_width += w
        if line:
            yield "".join(line)


def wrap_text(contents: str, width: int) -> list[str]:
    """Eagerly wrap *contents* at *width* columns."""
    return list(LineWrapper(width, contents))


def clip_to_width(s: str, width: int) -> str:
    """Longest prefix of plain-text *s* that fits in *width* columns."""
    used = 0
    for i, ch in enumerate(s):
        used += char_width(ch)
        if used > width:
            return s[:i]
    return s


# ── Frame drawing ─────────────────────────────────────────────────────────────

def draw_frame(frame: Frame, out: TextIO | None = None) -> None:
    """Paint *frame* onto the terminal in a single write + flush.

    Rows below the last visible line are cleared so nothing from a previous
    frame survives a jump to a shorter window.
    """
    if out is None:
        out = sys.stdout

    buf = [CURSOR_HIDE, HOME]
    for row in range(frame.content_rows):
        buf.append(f"\033[{row + 1};1H")
        if row < len(frame.rows):
            buf.append(render_segments(frame.rows[row]))
        buf.append(CLEAR_EOL)

    buf.append(f"\033[{frame.content_rows + 1};1H")
    buf.append(f"{clip_to_width(render_status_line(frame), frame.width)}{CLEAR_EOL}")

    out.write("".join(buf))
    out.flush()
