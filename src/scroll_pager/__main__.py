"""Main entry point for scroll-pager."""
from __future__ import annotations

import argparse
import logging
import signal
import sys
from typing import Callable, Iterable, TextIO

from . import __version__
from .keys import handle_key
from .pager import Pager, QueryEdit
from .terminal import RESIZE, Terminal, terminal_size
from .viewport import draw_frame

logger = logging.getLogger(__name__)

EMPTY_INPUT = "(error: input was empty)"
NO_TERMINAL_SIZE = "(error: failed to get terminal size)"


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="scroll-pager",
        description="Page through text a screenful at a time, with search.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Keys:
  j Down Enter    down one line        k Up        up one line
  Space f d       down half a page     b u         up half a page
  g               top                  G           bottom
  /               edit search query    n N         next / previous match
  q               quit

Examples:
  scroll-pager README.md
  git log | scroll-pager
  scroll-pager - < notes.txt
        """,
    )
    p.add_argument(
        "file", nargs="?", default="-",
        help="File to page through; '-' or omitted reads standard input",
    )
    p.add_argument(
        "--log-file", metavar="PATH",
        help="Write debug log to PATH",
    )
    p.add_argument(
        "--version", action="version",
        version=f"%(prog)s {__version__}",
    )
    return p


def read_input(path: str) -> str:
    """Read the whole document from *path*, or stdin for ``-``."""
    if path == "-":
        return sys.stdin.buffer.read().decode("utf-8", errors="replace")
    with open(path, encoding="utf-8", errors="replace", newline="") as f:
        return f.read()


def run(
    pager: Pager,
    events: Iterable[str],
    out: TextIO | None = None,
    get_size: Callable[[], tuple[int, int] | None] = terminal_size,
) -> None:
    """Draw, wait for an event, apply it; repeat until quit or input ends."""
    edit: QueryEdit | None = None

    frame = pager.render()
    if frame is not None:
        draw_frame(frame, out)

    for event in events:
        if event == RESIZE:
            size = get_size()
            if size is not None:
                pager.resize(*size)
        else:
            running, edit = handle_key(pager, event, edit)
            if not running:
                return

        frame = pager.render()
        if frame is not None:
            draw_frame(frame, out)


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    if args.log_file:
        logging.basicConfig(
            filename=args.log_file,
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(message)s",
        )

    try:
        contents = read_input(args.file)
    except OSError as exc:
        logger.debug("reading %s failed: %s", args.file, exc)
        sys.stderr.write(f"scroll-pager: {exc}\n")
        return 1
    logger.debug("read %d characters from %s", len(contents), args.file)

    if not contents:
        print(EMPTY_INPUT)
        return 0

    size = terminal_size()
    if size is None:
        sys.stderr.write(f"{NO_TERMINAL_SIZE}\n")
        print(contents)
        return 0

    cols, rows = size
    pager = Pager(cols, rows, contents)
    terminal = Terminal()

    def cleanup_and_exit(*_: object) -> None:
        terminal.restore()
        sys.exit(0)

    signal.signal(signal.SIGTERM, cleanup_and_exit)

    try:
        with terminal:
            run(pager, terminal.events())
    except KeyboardInterrupt:
        logger.debug("interrupted")
        return 130
    except OSError:
        logger.exception("terminal I/O failed")
        raise
    return 0


if __name__ == "__main__":
    sys.exit(main())
