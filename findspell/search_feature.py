#!/usr/bin/env python3
"""
Search Session Feature Module

Find next / previous, count, replace selected and replace all over any text
host. The session owns a single piece of state, the last match it computed,
and throws it away whenever the host reports a text change.

The host is anything that satisfies the TextHost protocol below:
findspell.buffer_feature.TextBuffer, findspell.gtk_feature.GtkTextHost, or
your own editor buffer. GObject hosts are watched through their "changed"
signal; other hosts must call session.text_changed() after every edit.

Searching for misspelled words works exactly like searching for a regex:
pass a SpellCheckMode instead of a pattern string.

Usage:
    from findspell.buffer_feature import TextBuffer
    from findspell.match_feature import Direction
    from findspell.search_feature import SearchSession, SPELL_CHECK

    buf = TextBuffer("one two one")
    session = SearchSession(buf)
    session.connect("search-wrapped", lambda s: print("Search wrapped"))

    session.find_next("one", Direction.FORWARD)
    session.replace_selected("one", "1", Direction.FORWARD)
    session.replace_all("(o)ne", "$1", False)
    session.find_next(SPELL_CHECK, Direction.BACKWARD)
"""

from typing import Callable, Iterator, NamedTuple, Optional, Protocol, Tuple, Union

from gi.repository import GLib, GObject

from findspell.match_feature import Direction, MatchEngine, MatchInfo, NO_MATCH
from findspell.pattern_feature import PatternCache
from findspell.spell_feature import HTMLSpellChecker, MisspelledWord, SpellOracle


ASYNC_CHUNK_SIZE = 2000


# ============================================================
#   PROTOCOL DEFINITIONS
# ============================================================

class TextHost(Protocol):
    """Protocol defining the buffer operations search and replace need"""

    def current_text(self) -> str:
        """Full document text"""
        ...

    def selection_span(self) -> Tuple[int, int]:
        """Normalized (start, end) of the selection"""
        ...

    def selected_text(self) -> str:
        """Text inside the selection"""
        ...

    def set_selection(self, anchor: int, position: int) -> None:
        """Select from anchor to position, caret at position"""
        ...

    def replace_span(self, start: int, end: int, new_text: str, cursor: int = None) -> None:
        """Replace a span and move the caret as one atomic edit"""
        ...

    def replace_whole_document(self, new_text: str, cursor: int = None) -> None:
        """Replace everything and move the caret as one atomic edit"""
        ...

    def cursor_absolute_offset(self) -> int:
        """Caret offset from the start of the document"""
        ...

    def set_cursor_absolute_offset(self, offset: int) -> None:
        """Collapse the selection at offset"""
        ...


class SpellCheckMode(NamedTuple):
    """Search for misspelled words, optionally only those matching word_filter"""
    word_filter: str = ""


SPELL_CHECK = SpellCheckMode()

Pattern = Union[str, SpellCheckMode]


# ============================================================
#   SEARCH SESSION
# ============================================================

class SearchSession(GObject.Object):
    """Per-document search state and the four search/replace operations"""

    __gsignals__ = {
        "search-wrapped": (GObject.SignalFlags.RUN_FIRST, None, ()),
        "match-found": (GObject.SignalFlags.RUN_FIRST, None, (int, int, object)),
    }

    def __init__(self, host: TextHost, engine: Optional[MatchEngine] = None,
                 spell_oracle: Optional[SpellOracle] = None,
                 pattern_cache: Optional[PatternCache] = None):
        super().__init__()
        self.host = host
        self.pattern_cache = pattern_cache if pattern_cache is not None else PatternCache()
        self.engine = engine if engine is not None else MatchEngine(self.pattern_cache)
        self._spell_oracle = spell_oracle
        self.last_match = NO_MATCH

        self._host_handler = None
        if isinstance(host, GObject.Object):
            self._host_handler = host.connect("changed", self._on_host_changed)

    @property
    def spell_oracle(self) -> SpellOracle:
        # The default dictionary is only loaded once spell checking is used
        if self._spell_oracle is None:
            self._spell_oracle = HTMLSpellChecker(pattern_cache=self.pattern_cache)
        return self._spell_oracle

    def _on_host_changed(self, host) -> None:
        self.text_changed()

    def text_changed(self) -> None:
        """Forget the last match; its offsets no longer describe the text"""
        self.last_match = NO_MATCH

    def detach(self) -> None:
        """Stop listening to the host"""
        if self._host_handler is not None:
            self.host.disconnect(self._host_handler)
            self._host_handler = None

    # --------------------------------------------------------
    #   Find
    # --------------------------------------------------------

    def _selection_offset(self, text: str, direction: Direction,
                          ignore_selection_offset: bool) -> int:
        start, end = self.host.selection_span()
        if direction == Direction.FORWARD:
            return 0 if ignore_selection_offset else end
        return len(text) if ignore_selection_offset else start

    def find_next(self, pattern: Pattern, direction: Direction = Direction.FORWARD,
                  ignore_selection_offset: bool = False, wrap: bool = True) -> bool:
        """
        Select the next match after (or the previous one before) the selection.

        Args:
            pattern: Regex string, or a SpellCheckMode to find misspelled words
            direction: FORWARD searches after the selection, BACKWARD before it
            ignore_selection_offset: Search from the document boundary instead
            wrap: Retry once from the opposite boundary when nothing is found

        Returns:
            True if a match was found and selected

        Raises:
            PatternError: if the pattern (or spell word filter) is invalid
        """
        text = self.host.current_text()
        selection_offset = self._selection_offset(text, direction, ignore_selection_offset)
        check_spelling = isinstance(pattern, SpellCheckMode)
        start_offset = 0

        if direction == Direction.BACKWARD:
            if check_spelling:
                # Word starts are matched inclusively; nothing starts before offset 0
                if selection_offset > 0:
                    match_info = self.spell_oracle.last_misspelled(
                        text, 0, selection_offset - 1, pattern.word_filter)
                else:
                    match_info = NO_MATCH
            else:
                match_info = self.engine.last_match(pattern, text[:selection_offset])
        else:
            if check_spelling:
                match_info = self.spell_oracle.first_misspelled(
                    text, selection_offset, len(text), pattern.word_filter)
            else:
                match_info = self.engine.first_match(pattern, text[selection_offset:])
            start_offset = selection_offset

        if match_info.found:
            self.last_match = match_info.shifted(start_offset)
            start, end = self.last_match.offset
            if direction == Direction.BACKWARD:
                self.host.set_selection(end, start)
            else:
                self.host.set_selection(start, end)
            self.emit("match-found", start, end, direction)
            return True

        if wrap and self.find_next(pattern, direction, True, False):
            self.emit("search-wrapped")
            return True

        return False

    # --------------------------------------------------------
    #   Count
    # --------------------------------------------------------

    def count(self, pattern: Pattern) -> int:
        """Number of matches (or misspelled words) in the whole document"""
        text = self.host.current_text()
        if isinstance(pattern, SpellCheckMode):
            return self.spell_oracle.count_misspelled(text, 0, len(text), pattern.word_filter)
        return len(self.engine.all_matches(pattern, text))

    def _iter_spelling(self, text: str, word_filter: str) -> Iterator[MatchInfo]:
        oracle = self.spell_oracle
        if hasattr(oracle, 'misspelled_words'):
            for word in oracle.misspelled_words(text, 0, len(text), word_filter):
                yield MatchInfo((word.offset, word.end), ((0, word.length),))
            return

        # Plain oracles only answer "first after"; step through the text with it
        pos = 0
        while True:
            match_info = oracle.first_misspelled(text, pos, len(text), word_filter)
            if not match_info.found:
                return
            yield match_info.shifted(pos)
            pos += match_info.end

    def count_async(self, pattern: Pattern, on_complete: Callable[[int], None],
                    on_progress: Optional[Callable[[int], None]] = None,
                    chunk_size: int = ASYNC_CHUNK_SIZE) -> Callable[[], None]:
        """
        Count matches on the GLib main loop without blocking it.

        A snapshot of the text is taken now and counted chunk_size matches
        per idle callback.

        Args:
            pattern: Regex string or SpellCheckMode
            on_complete: Callback(total) once the whole snapshot is counted
            on_progress: Callback(count_so_far) after every chunk
            chunk_size: Matches to consume per idle callback

        Returns:
            A cancel function; after it is called on_complete never fires

        Raises:
            ValueError: if chunk_size is not positive
            PatternError: if the pattern (or spell word filter) is invalid
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")

        text = self.host.current_text()
        if isinstance(pattern, SpellCheckMode):
            if pattern.word_filter:
                self.pattern_cache.get_or_compile(pattern.word_filter)
            items = self._iter_spelling(text, pattern.word_filter)
        else:
            self.engine.pattern_cache.get_or_compile(pattern)
            items = self.engine.iter_matches(pattern, text)

        state = {
            'total': 0,
            'cancelled': False,
            'idle_id': None
        }

        def count_chunk():
            if state['cancelled']:
                return False

            for _ in range(chunk_size):
                if next(items, None) is None:
                    state['idle_id'] = None
                    on_complete(state['total'])
                    return False
                state['total'] += 1

            if on_progress:
                on_progress(state['total'])
            return True

        state['idle_id'] = GLib.idle_add(count_chunk)

        def cancel():
            state['cancelled'] = True
            if state['idle_id']:
                GLib.source_remove(state['idle_id'])
                state['idle_id'] = None

        return cancel

    # --------------------------------------------------------
    #   Replace
    # --------------------------------------------------------

    def replace_selected(self, pattern: str, replacement: str,
                         direction: Direction = Direction.FORWARD,
                         check_spelling: bool = False) -> bool:
        """
        Replace the selection if it is (or contains) a match for pattern.

        When the selection is exactly the last match found, that match and its
        capture groups are used. Otherwise the selection is searched again and
        the first match inside it is replaced. Arbitrary selected text that
        does not match is never touched.

        Returns:
            True if a replacement was made
        """
        selection_start, _ = self.host.selection_span()
        selected_text = self.host.selected_text()
        target_start = selection_start

        if check_spelling or self.last_match.offset != (selection_start,
                                                        selection_start + len(selected_text)):
            match_info = self.engine.first_match(pattern, selected_text)
            if match_info.found:
                self.last_match = match_info.shifted(selection_start)
                target_start = self.last_match.start
                selected_text = selected_text[match_info.start:match_info.end]

        target_end = target_start + len(selected_text)
        if self.last_match.offset != (target_start, target_end):
            return False

        replaced_text = self.engine.substitute(selected_text, self.last_match.capture_groups,
                                               replacement, self.last_match.group_names)
        if replaced_text is None:
            return False

        # Going backward, leave the caret before the replacement so the next
        # search does not skip over text
        if direction == Direction.BACKWARD:
            cursor = target_start
        else:
            cursor = target_start + len(replaced_text)
        self.host.replace_span(target_start, target_end, replaced_text, cursor)
        return True

    def replace_all(self, pattern: str, replacement: str, check_spelling: bool = False) -> int:
        """
        Replace every match of pattern in one edit.

        check_spelling is accepted for parity with the other operations;
        replacements are always driven by pattern.

        Returns:
            Number of matches replaced
        """
        text = self.host.current_text()
        matches = self.engine.all_matches(pattern, text)

        count = 0
        # Last match first, so earlier offsets stay valid as lengths change
        for match_info in reversed(matches):
            replaced_text = self.engine.substitute(text[match_info.start:match_info.end],
                                                   match_info.capture_groups, replacement,
                                                   match_info.group_names)
            if replaced_text is None:
                continue
            text = text[:match_info.start] + replaced_text + text[match_info.end:]
            count += 1

        if count:
            # TODO: shift the restored caret by the length change of the
            # replacements made before it
            cursor = self.host.selection_span()[0]
            self.host.replace_whole_document(text, cursor)
        return count

    # --------------------------------------------------------
    #   Spelling suggestions
    # --------------------------------------------------------

    def select_misspelled_word_at_cursor(self) -> Optional[MisspelledWord]:
        """
        Select the misspelled word at the caret, or confirm the selection is one.

        Returns:
            The misspelled word, ready for spell_oracle.suggest(), or None
        """
        text = self.host.current_text()
        start, end = self.host.selection_span()
        word = self.spell_oracle.misspelled_word_at(text, start)
        if word is None:
            return None
        if start != end:
            return word if (word.offset, word.end) == (start, end) else None
        self.host.set_selection(word.offset, word.end)
        return word

    def apply_suggestion(self, text: str) -> None:
        """Replace the selection with a chosen suggestion"""
        start, end = self.host.selection_span()
        self.host.replace_span(start, end, text)


# ============================================================
#   INSTALLATION / INTEGRATION
# ============================================================

REQUIRED_HOST_METHODS = [
    'current_text', 'selection_span', 'selected_text', 'set_selection',
    'replace_span', 'replace_whole_document',
    'cursor_absolute_offset', 'set_cursor_absolute_offset',
]


def install_search_feature(host, **kwargs) -> Optional[SearchSession]:
    """
    Create a SearchSession for host after checking its interface.

    Args:
        host: Object implementing the TextHost protocol
        **kwargs: Passed on to SearchSession (engine, spell_oracle, pattern_cache)

    Returns:
        The session, or None if host is missing required methods
    """
    for method in REQUIRED_HOST_METHODS:
        if not hasattr(host, method):
            print(f"Warning: Text host missing required method: {method}")
            return None
    return SearchSession(host, **kwargs)


# Export public API
__all__ = [
    'TextHost',
    'SearchSession',
    'SpellCheckMode',
    'SPELL_CHECK',
    'install_search_feature',
    'ASYNC_CHUNK_SIZE',
]
