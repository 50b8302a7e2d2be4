#!/usr/bin/env python3
"""
Text Buffer Feature Module

A small in-memory buffer that satisfies the TextHost protocol used by
SearchSession: plain text, a caret with an anchor for the selection, and
a "changed" GObject signal emitted once per (possibly grouped) edit.

Edits made between begin_action() and end_action() are observed as one
change, which is how replace operations keep the text change and the
caret move a single step for anyone listening (undo stacks, the search
session invalidating its last match, views).

Usage:
    from findspell.buffer_feature import TextBuffer

    buf = TextBuffer("aXbXcX")
    buf.connect("changed", lambda b: print("edited"))
    buf.set_selection(1, 2)
    buf.replace_selection("YY")
"""

import re
from typing import Tuple

from gi.repository import GObject

from findspell.match_feature import Direction


CONTEXT_LINES = 10


# ============================================================
#   TEXT BUFFER
# ============================================================

class TextBuffer(GObject.Object):
    """Mutable text with caret, selection and grouped change notification"""

    __gsignals__ = {
        "changed": (GObject.SignalFlags.RUN_FIRST, None, ())
    }

    def __init__(self, text: str = ""):
        super().__init__()
        self.text = text
        self.anchor = 0             # fixed end of the selection
        self.position = 0           # caret, moving end of the selection
        self._action_depth = 0
        self._pending_change = False
        self._saved_caret = 0

    def __len__(self) -> int:
        return len(self.text)

    def _check_range(self, start: int, end: int) -> None:
        if not 0 <= start <= end <= len(self.text):
            raise IndexError(f"Range ({start}, {end}) outside document of length {len(self.text)}")

    # --------------------------------------------------------
    #   TextHost protocol
    # --------------------------------------------------------

    def current_text(self) -> str:
        return self.text

    def selection_span(self) -> Tuple[int, int]:
        """Normalized (start, end) of the selection; start == end without one"""
        return min(self.anchor, self.position), max(self.anchor, self.position)

    def selected_text(self) -> str:
        start, end = self.selection_span()
        return self.text[start:end]

    def has_selection(self) -> bool:
        return self.anchor != self.position

    def set_selection(self, anchor: int, position: int) -> None:
        """Select from anchor to position, leaving the caret at position"""
        self._check_range(min(anchor, position), max(anchor, position))
        self.anchor = anchor
        self.position = position

    def cursor_absolute_offset(self) -> int:
        return self.position

    def set_cursor_absolute_offset(self, offset: int) -> None:
        """Collapse the selection at offset, clamped to the document"""
        offset = max(0, min(offset, len(self.text)))
        self.anchor = offset
        self.position = offset

    def begin_action(self) -> None:
        """Begin a composite edit; listeners hear about it once at the end"""
        self._action_depth += 1

    def end_action(self) -> None:
        """End a composite edit"""
        if self._action_depth == 0:
            return
        self._action_depth -= 1
        if self._action_depth == 0 and self._pending_change:
            self._pending_change = False
            self.emit("changed")

    def replace_span(self, start: int, end: int, new_text: str, cursor: int = None) -> None:
        """
        Replace text[start:end] with new_text and move the caret, as one edit.

        The caret lands after the inserted text unless cursor is given.
        """
        self._check_range(start, end)
        self.begin_action()
        try:
            self.text = self.text[:start] + new_text + self.text[end:]
            self._pending_change = True
            if cursor is None:
                cursor = start + len(new_text)
            self.set_cursor_absolute_offset(cursor)
        finally:
            self.end_action()

    def replace_whole_document(self, new_text: str, cursor: int = None) -> None:
        self.replace_span(0, len(self.text), new_text, cursor)

    # --------------------------------------------------------
    #   Editing helpers
    # --------------------------------------------------------

    def set_text(self, text: str) -> None:
        """Load new content with the caret at the top"""
        self.replace_whole_document(text, cursor=0)

    def replace_selection(self, text: str) -> None:
        """Replace the selected text (or insert at the caret)"""
        start, end = self.selection_span()
        self.replace_span(start, end, text)

    def save_caret(self) -> None:
        self._saved_caret = self.position

    def restore_caret(self) -> None:
        self.set_cursor_absolute_offset(self._saved_caret)

    # --------------------------------------------------------
    #   Line helpers
    # --------------------------------------------------------

    def line_count(self) -> int:
        return self.text.count('\n') + 1

    def line_of_offset(self, offset: int) -> int:
        """0-based line containing offset"""
        return self.text.count('\n', 0, max(0, offset))

    def offset_of_line(self, line: int) -> int:
        """Offset of the first character of a 0-based line"""
        if line < 0 or line >= self.line_count():
            raise IndexError(f"Line {line} outside document of {self.line_count()} lines")
        offset = 0
        for _ in range(line):
            offset = self.text.index('\n', offset) + 1
        return offset

    def cursor_line_number(self) -> int:
        """1-based line of the caret"""
        return self.line_of_offset(self.position) + 1

    def cursor_column_number(self) -> int:
        """1-based column of the caret"""
        line_start = self.text.rfind('\n', 0, self.position) + 1
        return self.position - line_start + 1

    def fragment_line(self, fragment_id: str) -> int:
        """1-based line holding id="fragment_id"; line 1 when absent"""
        if not fragment_id:
            return 1
        match = re.search(r'id="' + re.escape(fragment_id) + '"', self.text)
        if match is None:
            return 1
        return self.line_of_offset(match.start()) + 1


# ============================================================
#   VIEWPORT HELPERS
# ============================================================

def context_window(text: str, span: Tuple[int, int], direction: Direction,
                   lines: int = CONTEXT_LINES) -> Tuple[int, int]:
    """
    0-based (first_line, last_line) a view should reveal around a match.

    The window is centred on the match start when searching forward and on
    the match end when searching backward.
    """
    pivot = span[0] if direction == Direction.FORWARD else span[1]
    pivot_line = text.count('\n', 0, pivot)
    last_line = text.count('\n')
    return max(0, pivot_line - lines), min(last_line, pivot_line + lines)


# Export public API
__all__ = [
    'TextBuffer',
    'context_window',
    'CONTEXT_LINES',
]
