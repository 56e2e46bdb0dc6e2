"""Key bindings for normal and query-edit mode."""
from __future__ import annotations

import logging

from .pager import MoveUnit, Pager, QueryEdit
from .terminal import KEY_BACKSPACE, KEY_DOWN, KEY_ENTER, KEY_ESC, KEY_UP

logger = logging.getLogger(__name__)

_LINE_DOWN = {KEY_ENTER, KEY_DOWN, "j"}
_LINE_UP = {KEY_UP, "k"}
_HALF_DOWN = {" ", "f", "d"}
_HALF_UP = {"b", "u"}


def handle_key(
    pager: Pager, key: str, edit: QueryEdit | None,
) -> tuple[bool, QueryEdit | None]:
    """Apply one key press.

    *edit* is the token from :meth:`Pager.enter_query_mode` while a query is
    being typed, else ``None``.  Returns ``(keep_running, edit)``.
    """
    if edit is not None:
        return True, _handle_query_key(pager, key, edit)

    if key in _LINE_DOWN:
        pager.down_by(MoveUnit.LINE)
    elif key in _LINE_UP:
        pager.up_by(MoveUnit.LINE)
    elif key in _HALF_DOWN:
        pager.down_by(MoveUnit.HALF_PAGE)
    elif key in _HALF_UP:
        pager.up_by(MoveUnit.HALF_PAGE)
    elif key == "g":
        pager.up_by(MoveUnit.ENTIRE)
    elif key == "G":
        pager.down_by(MoveUnit.ENTIRE)
    elif key == "q":
        logger.debug("quit")
        return False, None
    elif key == "/":
        return True, pager.enter_query_mode()
    elif key == "n":
        pager.find_next()
    elif key == "N":
        pager.find_previous()
    return True, None


def _handle_query_key(pager: Pager, key: str, edit: QueryEdit) -> QueryEdit | None:
    if key == KEY_ENTER:
        pager.commit_query(edit)
        return None
    if key == KEY_ESC:
        pager.cancel_query(edit)
        return None
    if key == KEY_BACKSPACE:
        pager.pop_char()
    elif len(key) == 1 and key.isprintable():
        pager.push_char(key)
    return edit
