#!/usr/bin/env python3
"""
GTK Text Host Feature Module

Adapts a Gtk.TextBuffer (and optionally the Gtk.TextView showing it) to the
TextHost protocol, so a SearchSession can drive find/replace in a stock
GTK 4 editor widget.

- Edits are wrapped in begin_user_action()/end_user_action() so the
  buffer's own undo machinery sees each replacement as one step.
- The host emits a single "changed" signal per edit, no matter how many
  insert/delete signals the Gtk.TextBuffer fired underneath.
- When a view is given, every match the session selects is scrolled into
  the middle of the view with CONTEXT_LINES lines around it.

Usage:
    from findspell.gtk_feature import install_gtk_search

    host, session = install_gtk_search(view.get_buffer(), view,
                                       on_wrapped=lambda: print("Search wrapped"))
    session.find_next("colou?r")
"""

from typing import Callable, Optional, Tuple

from gi.repository import GObject

from findspell.buffer_feature import context_window
from findspell.match_feature import Direction
from findspell.search_feature import SearchSession

# Check for GTK4 availability
try:
    import gi
    gi.require_version("Gtk", "4.0")
    from gi.repository import Gtk
    GTK_AVAILABLE = True
except (ImportError, ValueError) as e:
    GTK_AVAILABLE = False
    print(f"Warning: GTK4 not available - GTK text host disabled: {e}")


# ============================================================
#   GTK TEXT HOST
# ============================================================

if GTK_AVAILABLE:
    class GtkTextHost(GObject.Object):
        """TextHost over a Gtk.TextBuffer"""

        __gsignals__ = {
            "changed": (GObject.SignalFlags.RUN_FIRST, None, ())
        }

        def __init__(self, buffer: Gtk.TextBuffer, view: Optional[Gtk.TextView] = None):
            super().__init__()
            self.buffer = buffer
            self.view = view
            self._editing = False
            self._pending_change = False
            self.buffer.connect("changed", self._on_buffer_changed)

        def _on_buffer_changed(self, buffer):
            if self._editing:
                self._pending_change = True
                return
            self.emit("changed")

        def _iter(self, offset: int):
            return self.buffer.get_iter_at_offset(offset)

        def current_text(self) -> str:
            start, end = self.buffer.get_bounds()
            return self.buffer.get_text(start, end, True)

        def selection_span(self) -> Tuple[int, int]:
            bounds = self.buffer.get_selection_bounds()
            if bounds:
                start, end = bounds
                return start.get_offset(), end.get_offset()
            offset = self.cursor_absolute_offset()
            return offset, offset

        def selected_text(self) -> str:
            start, end = self.selection_span()
            return self.buffer.get_text(self._iter(start), self._iter(end), True)

        def set_selection(self, anchor: int, position: int) -> None:
            self.buffer.select_range(self._iter(position), self._iter(anchor))

        def cursor_absolute_offset(self) -> int:
            return self.buffer.props.cursor_position

        def set_cursor_absolute_offset(self, offset: int) -> None:
            offset = max(0, min(offset, self.buffer.get_char_count()))
            self.buffer.place_cursor(self._iter(offset))

        def replace_span(self, start: int, end: int, new_text: str, cursor: int = None) -> None:
            self._editing = True
            self.buffer.begin_user_action()
            try:
                self.buffer.delete(self._iter(start), self._iter(end))
                # Iterators are invalidated by the delete
                self.buffer.insert(self._iter(start), new_text)
                if cursor is None:
                    cursor = start + len(new_text)
                self.set_cursor_absolute_offset(cursor)
            finally:
                self.buffer.end_user_action()
                self._editing = False

            if self._pending_change:
                self._pending_change = False
                self.emit("changed")

        def replace_whole_document(self, new_text: str, cursor: int = None) -> None:
            self.replace_span(0, self.buffer.get_char_count(), new_text, cursor)

        def center_on_span(self, start: int, end: int, direction: Direction) -> Tuple[int, int]:
            """
            Scroll the view so the match sits mid-screen with context around it.

            Returns:
                The 0-based (first_line, last_line) context window
            """
            first_line, last_line = context_window(self.current_text(), (start, end), direction)
            if self.view is not None:
                middle = self.buffer.get_iter_at_line((first_line + last_line) // 2)
                # get_iter_at_line returns (valid, iter) in GTK 4
                if isinstance(middle, tuple):
                    middle = middle[1]
                mark = self.buffer.create_mark(None, middle, True)
                self.view.scroll_to_mark(mark, 0.0, True, 0.0, 0.5)
                self.buffer.delete_mark(mark)
            return first_line, last_line

else:
    # Dummy class if GTK is not available
    class GtkTextHost:
        def __init__(self, *args, **kwargs):
            raise RuntimeError("GTK4 not available - cannot create GtkTextHost")


# ============================================================
#   INSTALLATION / INTEGRATION
# ============================================================

def has_gtk_support() -> bool:
    """Check if all dependencies are available for the GTK text host"""
    return GTK_AVAILABLE


def install_gtk_search(buffer, view=None,
                       on_wrapped: Optional[Callable[[], None]] = None,
                       **kwargs) -> Optional[Tuple['GtkTextHost', SearchSession]]:
    """
    Wire a SearchSession to a Gtk.TextBuffer.

    Args:
        buffer: The Gtk.TextBuffer to search
        view: Optional Gtk.TextView to scroll to each match
        on_wrapped: Called whenever a search wraps around the document
        **kwargs: Passed on to SearchSession

    Returns:
        (host, session), or None if GTK4 is not available
    """
    if not has_gtk_support():
        print("GTK search unavailable: GTK4 not found")
        return None

    host = GtkTextHost(buffer, view)
    session = SearchSession(host, **kwargs)
    session.connect("match-found",
                    lambda _session, start, end, direction: host.center_on_span(start, end, direction))
    if on_wrapped is not None:
        session.connect("search-wrapped", lambda _session: on_wrapped())
    return host, session


# Export public API
__all__ = [
    'GtkTextHost',
    'install_gtk_search',
    'has_gtk_support',
]
