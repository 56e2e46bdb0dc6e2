"""Terminal size, ANSI constants, key decoding, and raw-mode /dev/tty access."""
from __future__ import annotations

import codecs
import contextlib
import logging
import os
import re
import select
import signal
import sys
from collections import deque
from types import TracebackType
from typing import Iterator

logger = logging.getLogger(__name__)

# ── ANSI helpers ──────────────────────────────────────────────────────────────

R = "\033[0m"
MATCH = "\033[31m"  # search hits: red foreground

HOME = "\033[H"
CLEAR_EOL = "\033[K"
CURSOR_HIDE = "\033[?25l"
CURSOR_SHOW = "\033[?25h"
ALT_SCREEN_ON = "\033[?1049h"
ALT_SCREEN_OFF = "\033[?1049l"


# ── Geometry ──────────────────────────────────────────────────────────────────

def terminal_size(fd: int | None = None) -> tuple[int, int] | None:
    """Return ``(cols, rows)`` of the terminal on *fd* (stdout by default).

    ``None`` when *fd* is not a terminal or reports a zero dimension.
    """
    try:
        if fd is None:
            fd = sys.stdout.fileno()
        sz = os.get_terminal_size(fd)
    except (OSError, ValueError):
        return None
    if sz.columns <= 0 or sz.lines <= 0:
        return None
    return sz.columns, sz.lines


# ── Key decoding ──────────────────────────────────────────────────────────────
# Named keys are multi-character strings; printable input is passed through
# one character at a time, so the two can never collide.

KEY_ENTER = "enter"
KEY_ESC = "esc"
KEY_BACKSPACE = "backspace"
KEY_UP = "up"
KEY_DOWN = "down"
KEY_LEFT = "left"
KEY_RIGHT = "right"
KEY_HOME = "home"
KEY_END = "end"
KEY_PAGE_UP = "page_up"
KEY_PAGE_DOWN = "page_down"

RESIZE = "resize"

_SEQUENCES: dict[bytes, str] = {
    b"\x1b[A": KEY_UP,
    b"\x1bOA": KEY_UP,
    b"\x1b[B": KEY_DOWN,
    b"\x1bOB": KEY_DOWN,
    b"\x1b[C": KEY_RIGHT,
    b"\x1bOC": KEY_RIGHT,
    b"\x1b[D": KEY_LEFT,
    b"\x1bOD": KEY_LEFT,
    b"\x1b[H": KEY_HOME,
    b"\x1bOH": KEY_HOME,
    b"\x1b[1~": KEY_HOME,
    b"\x1b[7~": KEY_HOME,
    b"\x1b[F": KEY_END,
    b"\x1bOF": KEY_END,
    b"\x1b[4~": KEY_END,
    b"\x1b[8~": KEY_END,
    b"\x1b[5~": KEY_PAGE_UP,
    b"\x1b[6~": KEY_PAGE_DOWN,
}

_ESC_SEQ = re.compile(rb"\x1b(?:\[[0-9;]*[A-Za-z~]|O[A-Za-z])")
_PARTIAL_ESC = re.compile(rb"\x1b(?:\[[0-9;]*|O)?")


class KeyDecoder:
    """Incrementally turn raw tty bytes into key names and characters."""

    def __init__(self) -> None:
        self._pending = b""
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def feed(self, data: bytes) -> list[str]:
        """Decode *data*; a trailing partial escape sequence is held back."""
        buf = self._pending + data
        self._pending = b""
        keys: list[str] = []
        i = 0
        n = len(buf)
        while i < n:
            b = buf[i]
            if b == 0x1B:
                m = _ESC_SEQ.match(buf, i)
                if m:
                    key = _SEQUENCES.get(m.group())
                    if key is not None:
                        keys.append(key)
                    i = m.end()
                    continue
                if _PARTIAL_ESC.fullmatch(buf, i):
                    self._pending = buf[i:]
                    break
                keys.append(KEY_ESC)
                i += 1
            elif b in (0x0D, 0x0A):
                keys.append(KEY_ENTER)
                i += 1
            elif b in (0x7F, 0x08):
                keys.append(KEY_BACKSPACE)
                i += 1
            elif b < 0x20:
                i += 1
            else:
                j = i
                while j < n and buf[j] >= 0x20 and buf[j] not in (0x1B, 0x7F):
                    j += 1
                keys.extend(self._utf8.decode(buf[i:j]))
                i = j
        return keys

    def flush(self) -> list[str]:
        """Resolve a held-back escape once no more input is arriving.

        A lone ESC becomes the Esc key; the rest of an abandoned sequence
        is passed through as plain characters.
        """
        pending, self._pending = self._pending, b""
        if not pending:
            return []
        return [KEY_ESC, *pending[1:].decode("ascii", errors="replace")]


# ── Raw-mode terminal ─────────────────────────────────────────────────────────

_POLL_INTERVAL = 0.05


class Terminal:
    """Raw-mode ``/dev/tty`` input plus alternate-screen output.

    Keys are read from the controlling terminal rather than stdin so the
    document itself can be piped in.  Use as a context manager; leaving it
    always restores the tty settings and the main screen.
    """

    def __init__(self, tty_path: str = "/dev/tty") -> None:
        self._tty_path = tty_path
        self._tty_fd: int | None = None
        self._tty_old: list[object] | None = None
        self._old_winch: object = None
        self._resize_pending = False
        self._decoder = KeyDecoder()
        self._queue: deque[str] = deque()

    def __enter__(self) -> Terminal:
        import termios  # noqa: PLC0415

        fd = os.open(self._tty_path, os.O_RDWR | os.O_NOCTTY)
        try:
            self._tty_old = termios.tcgetattr(fd)
            new = termios.tcgetattr(fd)
            # no line editing, no echo, and Ctrl-C / Ctrl-Z arrive as plain bytes
            new[3] &= ~(termios.ICANON | termios.ECHO | termios.ISIG)
            new[6][termios.VMIN] = 1
            new[6][termios.VTIME] = 0
            termios.tcsetattr(fd, termios.TCSANOW, new)
        except BaseException:
            self._tty_old = None
            os.close(fd)
            raise
        self._tty_fd = fd

        self._old_winch = signal.signal(signal.SIGWINCH, self._on_sigwinch)

        sys.stdout.write(ALT_SCREEN_ON + CURSOR_HIDE)
        sys.stdout.flush()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.restore()

    def restore(self) -> None:
        """Leave the alternate screen and put the tty back the way it was."""
        fd, self._tty_fd = self._tty_fd, None
        if fd is None:
            return
        with contextlib.suppress(OSError, ValueError):
            sys.stdout.write(CURSOR_SHOW + ALT_SCREEN_OFF)
            sys.stdout.flush()
        if self._old_winch is not None:
            signal.signal(signal.SIGWINCH, self._old_winch)  # type: ignore[arg-type]
            self._old_winch = None
        if self._tty_old is not None:
            import termios  # noqa: PLC0415

            with contextlib.suppress(termios.error):
                termios.tcsetattr(fd, termios.TCSANOW, self._tty_old)
        os.close(fd)

    def _on_sigwinch(self, _sig: int, _frame: object) -> None:
        self._resize_pending = True

    def events(self) -> Iterator[str]:
        """Yield keys and :data:`RESIZE` markers until the tty closes."""
        while self._tty_fd is not None:
            if self._resize_pending:
                self._resize_pending = False
                yield RESIZE
                continue
            if self._queue:
                yield self._queue.popleft()
                continue

            fd = self._tty_fd
            r, _, _ = select.select([fd], [], [], _POLL_INTERVAL)
            if not r:
                self._queue.extend(self._decoder.flush())
                continue
            chunk = os.read(fd, 256)
            if not chunk:
                logger.debug("tty closed")
                return
            self._queue.extend(self._decoder.feed(chunk))
