#!/usr/bin/env python3
"""
Spell Check Feature Module

Reports misspelled words inside a range of a document so that "find next
misspelled word" can reuse the same search machinery as regex search.

The SearchSession only talks to the SpellOracle protocol below. A word is in
range when it starts at or after range_start and no later than range_end
(both ends inclusive). Offsets in the MatchInfo results are relative to the
range start the caller passed in; add range_start back to get document
offsets.

HTMLSpellChecker is the stock oracle. It understands markup well enough to
skip tags, comments and character entities, and checks the remaining words
against a pyspellchecker dictionary.

Usage:
    from findspell.spell_feature import HTMLSpellChecker

    oracle = HTMLSpellChecker()
    info = oracle.first_misspelled(text, 0, len(text))
    if info.found:
        print(text[info.start:info.end])
"""

import re
from typing import Iterator, List, NamedTuple, Optional, Protocol, Set

from spellchecker import SpellChecker

from findspell.match_feature import MatchInfo, NO_MATCH
from findspell.pattern_feature import PatternCache


MAX_SPELLING_SUGGESTIONS = 5
DEFAULT_SPELL_LANGUAGE = "en"

# Tags, comments and entities are never spell checked
MARKUP_PATTERN = re.compile(r"<!--.*?-->|<[^>]*>|&#?\w+;", re.DOTALL)
WORD_PATTERN = re.compile(r"[^\W\d_]+(?:['’][^\W\d_]+)*")


# ============================================================
#   PROTOCOL DEFINITIONS
# ============================================================

class SpellOracle(Protocol):
    """Protocol defining the misspelling queries used by search operations"""

    def first_misspelled(self, text: str, range_start: int, range_end: int,
                         word_filter: str = "") -> MatchInfo:
        """First misspelled word starting in [range_start, range_end], relative offsets"""
        ...

    def last_misspelled(self, text: str, range_start: int, range_end: int,
                        word_filter: str = "") -> MatchInfo:
        """Last misspelled word starting in [range_start, range_end], relative offsets"""
        ...

    def count_misspelled(self, text: str, range_start: int, range_end: int,
                         word_filter: str = "") -> int:
        """Number of misspelled words starting in [range_start, range_end]"""
        ...


class MisspelledWord(NamedTuple):
    text: str
    offset: int
    length: int

    @property
    def end(self) -> int:
        return self.offset + self.length


# ============================================================
#   TOKENIZER
# ============================================================

def iter_words(text: str) -> Iterator[MisspelledWord]:
    """
    Yield every spellable word of text with its absolute offset.

    Markup is skipped, and so are letter runs glued to digits or
    underscores (identifiers, measurements).
    """
    pos = 0
    for markup in MARKUP_PATTERN.finditer(text):
        yield from _words_between(text, pos, markup.start())
        pos = markup.end()
    yield from _words_between(text, pos, len(text))


def _words_between(text: str, start: int, end: int) -> Iterator[MisspelledWord]:
    for match in WORD_PATTERN.finditer(text, start, end):
        w_start, w_end = match.span()
        if w_start > 0 and (text[w_start - 1].isdigit() or text[w_start - 1] == '_'):
            continue
        if w_end < len(text) and (text[w_end].isdigit() or text[w_end] == '_'):
            continue
        yield MisspelledWord(match.group(), w_start, w_end - w_start)


# ============================================================
#   HTML SPELL CHECKER
# ============================================================

class HTMLSpellChecker:
    """SpellOracle backed by pyspellchecker with markup-aware tokenizing"""

    def __init__(self, checker: Optional[SpellChecker] = None,
                 language: str = DEFAULT_SPELL_LANGUAGE, distance: int = 1,
                 pattern_cache: Optional[PatternCache] = None):
        if checker is None:
            checker = SpellChecker(language=language, distance=distance)
        self.checker = checker
        self.pattern_cache = pattern_cache if pattern_cache is not None else PatternCache()
        self.ignored_words: Set[str] = set()

    # --------------------------------------------------------
    #   Dictionary management
    # --------------------------------------------------------

    def is_misspelled(self, word: str) -> bool:
        if word.lower() in self.ignored_words:
            return False
        return bool(self.checker.unknown([word]))

    def add_to_user_dictionary(self, word: str) -> None:
        """Accept word from now on for this checker"""
        self.checker.word_frequency.load_words([word])

    def ignore_word(self, word: str) -> None:
        """Accept word for the lifetime of this oracle only"""
        self.ignored_words.add(word.lower())

    def suggest(self, word: str, limit: int = MAX_SPELLING_SUGGESTIONS) -> List[str]:
        """Replacement candidates, most frequent first"""
        candidates = self.checker.candidates(word) or set()
        candidates.discard(word.lower())
        ranked = sorted(candidates,
                        key=lambda c: (-self.checker.word_usage_frequency(c), c))
        if word[:1].isupper():
            ranked = [c[:1].upper() + c[1:] for c in ranked]
        return ranked[:limit]

    # --------------------------------------------------------
    #   Queries
    # --------------------------------------------------------

    def misspelled_words(self, text: str, range_start: int = 0,
                         range_end: Optional[int] = None,
                         word_filter: str = "") -> Iterator[MisspelledWord]:
        """
        Yield misspelled words starting inside [range_start, range_end].

        The whole text is tokenized so a range that starts inside a tag is
        still handled correctly. Offsets are absolute.
        """
        if range_end is None:
            range_end = len(text)
        word_regex = self.pattern_cache.get_or_compile(word_filter) if word_filter else None

        for word in iter_words(text):
            if word.offset < range_start:
                continue
            if word.offset > range_end:
                break
            if word_regex is not None and not word_regex.search(word.text):
                continue
            if self.is_misspelled(word.text):
                yield word

    def first_misspelled(self, text: str, range_start: int, range_end: int,
                         word_filter: str = "") -> MatchInfo:
        for word in self.misspelled_words(text, range_start, range_end, word_filter):
            return _relative_match(word, range_start)
        return NO_MATCH

    def last_misspelled(self, text: str, range_start: int, range_end: int,
                        word_filter: str = "") -> MatchInfo:
        last = None
        for word in self.misspelled_words(text, range_start, range_end, word_filter):
            last = word
        if last is None:
            return NO_MATCH
        return _relative_match(last, range_start)

    def count_misspelled(self, text: str, range_start: int, range_end: int,
                         word_filter: str = "") -> int:
        return sum(1 for _ in self.misspelled_words(text, range_start, range_end, word_filter))

    def misspelled_word_at(self, text: str, offset: int) -> Optional[MisspelledWord]:
        """The misspelled word touching offset (either end counts), if any"""
        for word in iter_words(text):
            if word.offset > offset:
                break
            if offset <= word.end and self.is_misspelled(word.text):
                return word
        return None


def _relative_match(word: MisspelledWord, range_start: int) -> MatchInfo:
    start = word.offset - range_start
    return MatchInfo((start, start + word.length), ((0, word.length),))


# Export public API
__all__ = [
    'SpellOracle',
    'MisspelledWord',
    'HTMLSpellChecker',
    'iter_words',
    'MAX_SPELLING_SUGGESTIONS',
    'DEFAULT_SPELL_LANGUAGE',
]
