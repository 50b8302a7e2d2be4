import unittest

from spellchecker import SpellChecker

from findspell.match_feature import NO_MATCH
from findspell.pattern_feature import PatternError
from findspell.spell_feature import HTMLSpellChecker, iter_words


def make_oracle():
    # Small fixed dictionary so results do not depend on the bundled word lists
    checker = SpellChecker(language=None, distance=1)
    checker.word_frequency.load_words(["the", "the", "ten", "cat", "sat", "on", "mat"])
    return HTMLSpellChecker(checker)


class TestIterWords(unittest.TestCase):
    def test_skips_markup(self):
        text = '<p class="teh">teh &amp; cat</p><!-- teh -->'
        words = [(w.text, w.offset) for w in iter_words(text)]
        self.assertEqual(words, [("teh", text.index(">teh") + 1), ("cat", text.index("cat"))])

    def test_skips_words_glued_to_digits(self):
        words = [w.text for w in iter_words("x2y 10px under_score cat")]
        self.assertEqual(words, ["cat"])

    def test_apostrophes(self):
        words = [w.text for w in iter_words("don't 'quoted'")]
        self.assertEqual(words, ["don't", "quoted"])


class TestHTMLSpellChecker(unittest.TestCase):
    text = "the teh the teh"

    def setUp(self):
        self.oracle = make_oracle()

    def test_first_is_relative_to_range_start(self):
        info = self.oracle.first_misspelled(self.text, 5, len(self.text))
        self.assertEqual(info.offset, (7, 10))
        self.assertEqual(info.capture_groups, ((0, 3),))

    def test_first_from_start(self):
        self.assertEqual(self.oracle.first_misspelled(self.text, 0, len(self.text)).offset, (4, 7))

    def test_last(self):
        self.assertEqual(self.oracle.last_misspelled(self.text, 0, len(self.text)).offset, (12, 15))
        # A word starting exactly at range_end counts, one after it does not
        self.assertEqual(self.oracle.last_misspelled(self.text, 0, 12).offset, (12, 15))
        self.assertEqual(self.oracle.last_misspelled(self.text, 0, 11).offset, (4, 7))

    def test_none_in_range(self):
        self.assertIs(self.oracle.first_misspelled(self.text, 0, 3), NO_MATCH)
        self.assertIs(self.oracle.last_misspelled("the cat", 0, 7), NO_MATCH)

    def test_single_letter_word_at_range_end(self):
        text = "the x"
        self.assertEqual(self.oracle.first_misspelled(text, 0, len(text)).offset, (4, 5))
        self.assertEqual(self.oracle.last_misspelled(text, 0, 4).offset, (4, 5))
        self.assertEqual(self.oracle.last_misspelled(text, 0, len(text) - 1).offset, (4, 5))
        self.assertIs(self.oracle.last_misspelled(text, 0, 3), NO_MATCH)

    def test_count(self):
        self.assertEqual(self.oracle.count_misspelled(self.text, 0, len(self.text)), 2)
        self.assertEqual(self.oracle.count_misspelled(self.text, 5, len(self.text)), 1)
        self.assertEqual(self.oracle.count_misspelled("", 0, 0), 0)

    def test_word_filter(self):
        text = "teh cta"
        self.assertEqual(self.oracle.count_misspelled(text, 0, len(text)), 2)
        self.assertEqual(self.oracle.count_misspelled(text, 0, len(text), "^c"), 1)
        self.assertEqual(self.oracle.first_misspelled(text, 0, len(text), "^c").offset, (4, 7))

    def test_invalid_word_filter(self):
        with self.assertRaises(PatternError):
            self.oracle.count_misspelled(self.text, 0, len(self.text), "(")

    def test_case_insensitive(self):
        self.assertFalse(self.oracle.is_misspelled("The"))
        self.assertTrue(self.oracle.is_misspelled("Teh"))

    def test_ignore_word(self):
        self.oracle.ignore_word("Teh")
        self.assertEqual(self.oracle.count_misspelled(self.text, 0, len(self.text)), 0)

    def test_add_to_user_dictionary(self):
        self.oracle.add_to_user_dictionary("teh")
        self.assertFalse(self.oracle.is_misspelled("teh"))

    def test_suggest(self):
        suggestions = self.oracle.suggest("teh")
        self.assertEqual(suggestions[0], "the")
        self.assertIn("ten", suggestions)
        self.assertEqual(self.oracle.suggest("teh", limit=1), ["the"])

    def test_misspelled_word_at(self):
        word = self.oracle.misspelled_word_at(self.text, 5)
        self.assertEqual((word.text, word.offset, word.end), ("teh", 4, 7))
        # Either end of the word counts
        self.assertEqual(self.oracle.misspelled_word_at(self.text, 7).offset, 4)
        self.assertIsNone(self.oracle.misspelled_word_at(self.text, 1))


if __name__ == '__main__':
    unittest.main()
