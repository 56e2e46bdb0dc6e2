"""Tests for scroll_pager.terminal."""
from __future__ import annotations

import os
import signal
import termios

import pytest

from scroll_pager.terminal import (
    KEY_BACKSPACE,
    KEY_DOWN,
    KEY_END,
    KEY_ENTER,
    KEY_ESC,
    KEY_HOME,
    KEY_PAGE_DOWN,
    KEY_PAGE_UP,
    KEY_UP,
    RESIZE,
    KeyDecoder,
    Terminal,
    terminal_size,
)


# ── terminal_size ────────────────────────────────────────────────────────────

def test_terminal_size_not_a_tty():
    r, w = os.pipe()
    try:
        assert terminal_size(w) is None
    finally:
        os.close(r)
        os.close(w)


def test_terminal_size_bad_fd():
    r, w = os.pipe()
    os.close(r)
    os.close(w)
    assert terminal_size(w) is None


# ── KeyDecoder ───────────────────────────────────────────────────────────────

def test_decode_printable():
    assert KeyDecoder().feed(b"jk/") == ["j", "k", "/"]


def test_decode_space():
    assert KeyDecoder().feed(b" ") == [" "]


def test_decode_arrows():
    d = KeyDecoder()
    assert d.feed(b"\x1b[A") == [KEY_UP]
    assert d.feed(b"\x1b[B") == [KEY_DOWN]
    assert d.feed(b"\x1bOA") == [KEY_UP]


def test_decode_multiple_arrows():
    assert KeyDecoder().feed(b"\x1b[A\x1b[A\x1b[B") == [KEY_UP, KEY_UP, KEY_DOWN]


def test_decode_navigation_keys():
    d = KeyDecoder()
    assert d.feed(b"\x1b[5~") == [KEY_PAGE_UP]
    assert d.feed(b"\x1b[6~") == [KEY_PAGE_DOWN]
    assert d.feed(b"\x1b[H") == [KEY_HOME]
    assert d.feed(b"\x1b[F") == [KEY_END]


def test_decode_enter():
    assert KeyDecoder().feed(b"\r\n") == [KEY_ENTER, KEY_ENTER]


def test_decode_backspace():
    assert KeyDecoder().feed(b"\x7f\x08") == [KEY_BACKSPACE, KEY_BACKSPACE]


def test_decode_mixed():
    assert KeyDecoder().feed(b"ab\x1b[Ac") == ["a", "b", KEY_UP, "c"]


def test_decode_ignores_unknown_sequence():
    assert KeyDecoder().feed(b"\x1b[1;5Ax") == ["x"]


def test_decode_ignores_control_bytes():
    assert KeyDecoder().feed(b"\x01a\x02") == ["a"]


def test_decode_partial_escape_held_back():
    d = KeyDecoder()
    assert d.feed(b"\x1b[") == []
    assert d.feed(b"B") == [KEY_DOWN]


def test_decode_lone_escape_needs_flush():
    d = KeyDecoder()
    assert d.feed(b"\x1b") == []
    assert d.flush() == [KEY_ESC]
    assert d.flush() == []


def test_decode_escape_then_char():
    assert KeyDecoder().feed(b"\x1bx") == [KEY_ESC, "x"]


def test_decode_flush_abandoned_sequence():
    d = KeyDecoder()
    d.feed(b"\x1b[")
    assert d.flush() == [KEY_ESC, "["]


def test_decode_utf8_split_across_reads():
    data = "世".encode()
    d = KeyDecoder()
    assert d.feed(data[:2]) == []
    assert d.feed(data[2:]) == ["世"]


def test_flush_with_nothing_pending():
    assert KeyDecoder().flush() == []


# ── Terminal ─────────────────────────────────────────────────────────────────

@pytest.fixture
def pty_pair():
    master, slave = os.openpty()
    yield master, slave
    os.close(master)
    os.close(slave)


def test_terminal_reads_keys_and_flushes_lone_escape(pty_pair):
    master, slave = pty_pair
    with Terminal(tty_path=os.ttyname(slave)) as term:
        os.write(master, b"j\x1b")
        events = term.events()
        assert next(events) == "j"
        assert next(events) == KEY_ESC


def test_terminal_decodes_arrow_keys(pty_pair):
    master, slave = pty_pair
    with Terminal(tty_path=os.ttyname(slave)) as term:
        os.write(master, b"\x1b[B/")
        events = term.events()
        assert next(events) == KEY_DOWN
        assert next(events) == "/"


def test_terminal_sigwinch_yields_resize_first(pty_pair):
    master, slave = pty_pair
    with Terminal(tty_path=os.ttyname(slave)) as term:
        os.write(master, b"k")
        os.kill(os.getpid(), signal.SIGWINCH)
        events = term.events()
        assert next(events) == RESIZE
        assert next(events) == "k"


def test_terminal_raw_mode_and_restore(pty_pair):
    _, slave = pty_pair
    before = termios.tcgetattr(slave)
    term = Terminal(tty_path=os.ttyname(slave))
    with term:
        lflag = termios.tcgetattr(slave)[3]
        assert not lflag & termios.ICANON
        assert not lflag & termios.ECHO
        assert not lflag & termios.ISIG
    assert termios.tcgetattr(slave) == before


def test_terminal_restore_is_idempotent(pty_pair):
    _, slave = pty_pair
    previous = signal.getsignal(signal.SIGWINCH)
    term = Terminal(tty_path=os.ttyname(slave))
    with term:
        term.restore()
        term.restore()
    assert signal.getsignal(signal.SIGWINCH) == previous
    assert list(term.events()) == []


def test_terminal_setup_failure_closes_fd(tmp_path):
    path = tmp_path / "not-a-tty"
    path.write_text("")
    fd_dir = "/proc/self/fd"
    fds_before = set(os.listdir(fd_dir)) if os.path.isdir(fd_dir) else None
    term = Terminal(tty_path=str(path))
    with pytest.raises(termios.error):
        term.__enter__()
    assert term._tty_fd is None
    if fds_before is not None:
        assert set(os.listdir(fd_dir)) == fds_before
