import unittest

from findspell.gtk_feature import GTK_AVAILABLE, has_gtk_support, install_gtk_search
from findspell.match_feature import Direction

GTK_READY = False
if GTK_AVAILABLE:
    from gi.repository import Gtk
    GTK_READY = Gtk.init_check()


@unittest.skipUnless(GTK_READY, "GTK4 display not available")
class TestGtkTextHost(unittest.TestCase):
    def setUp(self):
        self.buffer = Gtk.TextBuffer()
        self.buffer.set_text("aXbXcX", -1)
        self.buffer.place_cursor(self.buffer.get_start_iter())
        self.wraps = []
        self.host, self.session = install_gtk_search(self.buffer,
                                                     on_wrapped=lambda: self.wraps.append(1))
        self.changes = 0
        self.host.connect("changed", self._on_changed)

    def _on_changed(self, host):
        self.changes += 1

    def test_find_selects_in_buffer(self):
        self.assertTrue(self.session.find_next("X"))
        start, end = self.buffer.get_selection_bounds()
        self.assertEqual((start.get_offset(), end.get_offset()), (1, 2))
        self.assertEqual(self.host.selected_text(), "X")

    def test_backward_caret_at_match_start(self):
        self.host.set_cursor_absolute_offset(6)
        self.assertTrue(self.session.find_next("X", Direction.BACKWARD))
        self.assertEqual(self.host.selection_span(), (5, 6))
        self.assertEqual(self.host.cursor_absolute_offset(), 5)

    def test_wrap_callback(self):
        self.host.set_cursor_absolute_offset(6)
        self.session.find_next("X")
        self.assertEqual(self.wraps, [1])

    def test_replace_selected_single_change(self):
        self.session.find_next("X")
        self.assertTrue(self.session.replace_selected("X", "YY"))
        self.assertEqual(self.host.current_text(), "aYYbXcX")
        self.assertEqual(self.host.cursor_absolute_offset(), 3)
        self.assertEqual(self.changes, 1)

    def test_replace_all(self):
        self.assertEqual(self.session.replace_all("X", "YY"), 3)
        self.assertEqual(self.host.current_text(), "aYYbYYcYY")
        self.assertEqual(self.changes, 1)

    def test_outside_edit_forgets_last_match(self):
        self.session.find_next("X")
        self.buffer.insert(self.buffer.get_start_iter(), "z")
        self.assertFalse(self.session.last_match.found)
        self.assertEqual(self.changes, 1)

    def test_center_without_view(self):
        self.assertEqual(self.host.center_on_span(1, 2, Direction.FORWARD), (0, 0))


class TestGtkSupport(unittest.TestCase):
    def test_flag(self):
        self.assertEqual(has_gtk_support(), GTK_AVAILABLE)


if __name__ == '__main__':
    unittest.main()
