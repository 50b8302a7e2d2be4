#!/usr/bin/env python3
"""
Match Engine Feature Module

Regex matching and capture-group aware substitution over plain strings.
The engine knows nothing about buffers, cursors or selections: callers hand
it a string (usually a slice of the document) and get back MatchInfo
records whose offsets are relative to that string.

Capture group offsets inside a MatchInfo are relative to the start of the
match, so a MatchInfo can be moved to document coordinates by shifting its
outer offset alone, and the groups can be applied to the matched substring
without knowing where it came from.

Usage:
    from findspell.match_feature import MatchEngine

    engine = MatchEngine()
    info = engine.first_match(r"(\\w+)=(\\w+)", "a=b")
    engine.substitute("a=b", info.capture_groups, "$2=$1")   # -> "b=a"
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Tuple

from findspell.pattern_feature import PatternCache


# ============================================================
#   DATA TYPES
# ============================================================

Span = Tuple[int, int]


class Direction(Enum):
    """Search direction relative to the current selection"""
    FORWARD = "forward"
    BACKWARD = "backward"


@dataclass(frozen=True)
class MatchInfo:
    """
    Location of a single match.

    offset is (start, end), half open. start == -1 means no match.
    capture_groups[0] is the whole match; group spans are relative to the
    match start and (-1, -1) marks a group that did not participate.
    group_names maps named groups to their capture_groups index.
    """
    offset: Span = (-1, -1)
    capture_groups: Tuple[Span, ...] = ()
    group_names: Tuple[Tuple[str, int], ...] = ()

    @property
    def start(self) -> int:
        return self.offset[0]

    @property
    def end(self) -> int:
        return self.offset[1]

    @property
    def found(self) -> bool:
        return self.offset[0] != -1

    def shifted(self, delta: int) -> 'MatchInfo':
        """Return a copy with the outer offset moved by delta"""
        if not self.found:
            return self
        return MatchInfo((self.start + delta, self.end + delta), self.capture_groups,
                         self.group_names)


NO_MATCH = MatchInfo()


class SubstitutionFailure(ValueError):
    """A replacement template references a group that has no text"""


# ============================================================
#   REPLACEMENT TEMPLATES
# ============================================================

def _capture_text(matched_text: str, capture_groups: Sequence[Span], index: int) -> str:
    if index >= len(capture_groups):
        raise SubstitutionFailure(f"Group {index} does not exist")
    start, end = capture_groups[index]
    if start == -1:
        raise SubstitutionFailure(f"Group {index} did not participate in the match")
    return matched_text[start:end]


def _group_index(name: str, group_names: Sequence[Tuple[str, int]]) -> int:
    if name.isdigit():
        return int(name)
    for group_name, index in group_names:
        if group_name == name:
            return index
    raise SubstitutionFailure(f"Unknown group name {name!r}")


def _read_digits(template: str, pos: int) -> int:
    end = pos
    while end < len(template) and template[end].isdigit():
        end += 1
    return end


def _read_name(template: str, pos: int, close: str) -> Tuple[str, int]:
    """Name between pos and the close char, and the index just past it"""
    end = template.find(close, pos)
    if end == -1:
        raise SubstitutionFailure(f"Unterminated group reference at {pos - 2}")
    name = template[pos:end]
    if not name:
        raise SubstitutionFailure(f"Empty group reference at {pos - 2}")
    return name, end + 1


def expand_template(matched_text: str, capture_groups: Sequence[Span], template: str,
                    group_names: Sequence[Tuple[str, int]] = ()) -> str:
    """
    Expand back-references in template against the groups of one match.

    Supported syntax: $N ${N} ${name} \\N \\g<N> \\g<name> $& (whole match),
    $$, \\\\, \\n, \\t, and \\U...\\E / \\L...\\E case conversion.

    Raises:
        SubstitutionFailure: a referenced group is missing, unknown or
            unmatched, or a ${...} / \\g<...> reference is not terminated
    """
    out: List[str] = []
    case = None

    def emit(piece: str) -> None:
        if case == 'U':
            piece = piece.upper()
        elif case == 'L':
            piece = piece.lower()
        out.append(piece)

    def group_text(name: str) -> str:
        return _capture_text(matched_text, capture_groups, _group_index(name, group_names))

    i = 0
    n = len(template)
    while i < n:
        ch = template[i]

        if ch == '\\' and i + 1 < n:
            nxt = template[i + 1]
            if nxt.isdigit():
                end = _read_digits(template, i + 1)
                emit(group_text(template[i + 1:end]))
                i = end
                continue
            if nxt == 'g' and template.startswith('<', i + 2):
                name, i = _read_name(template, i + 3, '>')
                emit(group_text(name))
                continue
            if nxt in ('U', 'L'):
                case = nxt
            elif nxt == 'E':
                case = None
            elif nxt == 'n':
                emit('\n')
            elif nxt == 't':
                emit('\t')
            else:
                emit(nxt)
            i += 2
            continue

        if ch == '$' and i + 1 < n:
            nxt = template[i + 1]
            if nxt.isdigit():
                end = _read_digits(template, i + 1)
                emit(group_text(template[i + 1:end]))
                i = end
                continue
            if nxt == '{':
                name, i = _read_name(template, i + 2, '}')
                emit(group_text(name))
                continue
            if nxt == '&':
                emit(group_text('0'))
                i += 2
                continue
            if nxt == '$':
                emit('$')
                i += 2
                continue

        emit(ch)
        i += 1

    return ''.join(out)


# ============================================================
#   MATCH ENGINE
# ============================================================

def match_info_from(match) -> MatchInfo:
    """Build a MatchInfo from an re.Match object"""
    start = match.start()
    groups = [(0, match.end() - start)]
    for index in range(1, match.re.groups + 1):
        g_start, g_end = match.span(index)
        if g_start == -1:
            groups.append((-1, -1))
        else:
            groups.append((g_start - start, g_end - start))
    return MatchInfo((start, match.end()), tuple(groups), tuple(match.re.groupindex.items()))


class MatchEngine:
    """First/last/every match lookup and substitution for regex patterns"""

    def __init__(self, pattern_cache: Optional[PatternCache] = None):
        self.pattern_cache = pattern_cache if pattern_cache is not None else PatternCache()

    def first_match(self, pattern: str, text: str) -> MatchInfo:
        regex = self.pattern_cache.get_or_compile(pattern)
        match = regex.search(text)
        if match is None:
            return NO_MATCH
        return match_info_from(match)

    def last_match(self, pattern: str, text: str) -> MatchInfo:
        last = NO_MATCH
        for info in self.iter_matches(pattern, text):
            last = info
        return last

    def iter_matches(self, pattern: str, text: str) -> Iterator[MatchInfo]:
        """
        Yield non-overlapping leftmost-first matches in ascending order.

        Scanning resumes at the end of each match, one character further
        for an empty match so the scan always terminates.
        """
        regex = self.pattern_cache.get_or_compile(pattern)
        pos = 0
        length = len(text)
        while pos <= length:
            match = regex.search(text, pos)
            if match is None:
                return
            yield match_info_from(match)
            pos = match.end() + 1 if match.end() == match.start() else match.end()

    def all_matches(self, pattern: str, text: str) -> List[MatchInfo]:
        return list(self.iter_matches(pattern, text))

    def substitute(self, matched_text: str, capture_groups: Sequence[Span],
                   replacement_template: str,
                   group_names: Sequence[Tuple[str, int]] = ()) -> Optional[str]:
        """
        Expand replacement_template for one match.

        Returns:
            The replacement text, or None when a back-reference cannot be
            resolved (the match should then be left alone)
        """
        try:
            return expand_template(matched_text, capture_groups, replacement_template,
                                   group_names)
        except SubstitutionFailure:
            return None


# Export public API
__all__ = [
    'Direction',
    'MatchInfo',
    'NO_MATCH',
    'MatchEngine',
    'SubstitutionFailure',
    'expand_template',
    'match_info_from',
]
