"""Search-match segmentation, line styling, and the status line."""
from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple

from .terminal import MATCH, R

if TYPE_CHECKING:
    from .pager import Frame

QUERY_SIGIL = "/"
NORMAL_SIGIL = ":"


class Segment(NamedTuple):
    text: str
    matched: bool = False


# ── Match segmentation ────────────────────────────────────────────────────────

def split_matches(line: str, query: str) -> list[Segment]:
    """Split *line* into normal and matched segments.

    Occurrences of *query* are found leftmost-first and never overlap, so
    ``"aaa"`` searched for ``"aa"`` yields one match followed by ``"a"``.
    An empty *query* returns the whole line as a single normal segment.
    """
    if not query:
        return [Segment(line)]

    segments: list[Segment] = []
    pos = 0
    while True:
        idx = line.find(query, pos)
        if idx < 0:
            break
        if idx > pos:
            segments.append(Segment(line[pos:idx]))
        segments.append(Segment(query, True))
        pos = idx + len(query)
    if pos < len(line) or not segments:
        segments.append(Segment(line[pos:]))
    return segments


def render_segments(segments: list[Segment]) -> str:
    """Render segments to an ANSI string, highlighting matches."""
    out: list[str] = []
    for seg in segments:
        if seg.matched:
            out.append(f"{MATCH}{seg.text}{R}")
        else:
            out.append(seg.text)
    return "".join(out)


# ── Status line ───────────────────────────────────────────────────────────────

def render_status_line(frame: Frame) -> str:
    """Mode sigil followed by the one-shot message or the current query."""
    sigil = QUERY_SIGIL if frame.query_mode else NORMAL_SIGIL
    return f"{sigil}{frame.status}"
