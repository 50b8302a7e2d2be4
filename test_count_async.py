import unittest

from gi.repository import GLib
from spellchecker import SpellChecker

from findspell.buffer_feature import TextBuffer
from findspell.pattern_feature import PatternError
from findspell.search_feature import SPELL_CHECK, SearchSession
from findspell.spell_feature import HTMLSpellChecker


def pump(predicate, max_iterations=1000):
    """Run the default main context until predicate() holds"""
    context = GLib.MainContext.default()
    for _ in range(max_iterations):
        if predicate():
            return True
        context.iteration(False)
    return predicate()


class FirstOnlyOracle:
    """Oracle that only answers first_misspelled queries"""

    def __init__(self, oracle):
        self.oracle = oracle

    def first_misspelled(self, text, range_start, range_end, word_filter=""):
        return self.oracle.first_misspelled(text, range_start, range_end, word_filter)


class TestCountAsync(unittest.TestCase):
    def setUp(self):
        self.buf = TextBuffer("X" * 10)
        self.session = SearchSession(self.buf)
        self.results = []
        self.progress = []

    def test_counts_in_chunks(self):
        self.session.count_async("X", self.results.append, self.progress.append, chunk_size=3)
        self.assertTrue(pump(lambda: self.results))
        self.assertEqual(self.results, [10])
        self.assertEqual(self.progress, [3, 6, 9])

    def test_matches_sync_count(self):
        self.buf.set_text("aXbXcX")
        self.session.count_async("X", self.results.append)
        self.assertTrue(pump(lambda: self.results))
        self.assertEqual(self.results, [self.session.count("X")])

    def test_no_matches(self):
        self.session.count_async("Q", self.results.append)
        self.assertTrue(pump(lambda: self.results))
        self.assertEqual(self.results, [0])

    def test_counts_snapshot(self):
        self.session.count_async("X", self.results.append, chunk_size=2)
        self.buf.set_text("")
        self.assertTrue(pump(lambda: self.results))
        self.assertEqual(self.results, [10])

    def test_cancel(self):
        cancel = self.session.count_async("X", self.results.append, chunk_size=1)
        cancel()
        pump(lambda: False, max_iterations=50)
        self.assertEqual(self.results, [])
        # Cancelling twice is harmless
        cancel()

    def test_non_positive_chunk_size(self):
        for chunk_size in (0, -1):
            with self.subTest(chunk_size=chunk_size):
                with self.assertRaises(ValueError):
                    self.session.count_async("X", self.results.append, chunk_size=chunk_size)

    def test_invalid_pattern_raises_immediately(self):
        with self.assertRaises(PatternError):
            self.session.count_async("(", self.results.append)

    def test_spelling(self):
        checker = SpellChecker(language=None)
        checker.word_frequency.load_words(["the"])
        oracle = HTMLSpellChecker(checker)
        self.buf.set_text("the teh the teh")

        session = SearchSession(self.buf, spell_oracle=oracle)
        session.count_async(SPELL_CHECK, self.results.append)
        self.assertTrue(pump(lambda: self.results))
        self.assertEqual(self.results, [2])

    def test_spelling_with_first_only_oracle(self):
        checker = SpellChecker(language=None)
        checker.word_frequency.load_words(["the"])
        oracle = FirstOnlyOracle(HTMLSpellChecker(checker))
        self.buf.set_text("teh the teh the teh")

        session = SearchSession(self.buf, spell_oracle=oracle)
        session.count_async(SPELL_CHECK, self.results.append)
        self.assertTrue(pump(lambda: self.results))
        self.assertEqual(self.results, [3])


if __name__ == '__main__':
    unittest.main()
