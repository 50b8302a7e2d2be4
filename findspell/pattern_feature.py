#!/usr/bin/env python3
"""
Pattern Cache Feature Module

Compiles regular expressions once and hands the same compiled object back
on every later request for the same pattern string. Search and replace
operations run the same pattern over and over while the user steps
through a document, so the compile cost is paid only on first use.

The cache is a plain object owned by whoever creates it (usually a
SearchSession). Pass your own instance to share it between sessions or to
inspect the hit/miss counters in tests.

Usage:
    from findspell.pattern_feature import PatternCache, PatternError

    cache = PatternCache()
    regex = cache.get_or_compile(r"(\\w+)=(\\w+)")
"""

import re
from typing import Dict


# ============================================================
#   ERRORS
# ============================================================

class PatternError(ValueError):
    """Raised when a pattern string is not a valid regular expression"""

    def __init__(self, pattern: str, reason: str):
        super().__init__(f"Invalid regex: {pattern!r} ({reason})")
        self.pattern = pattern
        self.reason = reason


# ============================================================
#   PATTERN CACHE
# ============================================================

class PatternCache:
    """Unbounded memoization map from pattern string to compiled regex"""

    def __init__(self, flags: int = 0):
        self.flags = flags
        self._patterns: Dict[str, re.Pattern] = {}
        self.hits = 0
        self.misses = 0

    def get_or_compile(self, pattern: str) -> re.Pattern:
        """
        Return the compiled regex for pattern, compiling it on first use.

        Raises:
            PatternError: if pattern does not compile
        """
        compiled = self._patterns.get(pattern)
        if compiled is not None:
            self.hits += 1
            return compiled

        try:
            compiled = re.compile(pattern, self.flags)
        except re.error as e:
            raise PatternError(pattern, str(e)) from e

        self.misses += 1
        self._patterns[pattern] = compiled
        return compiled

    def clear(self) -> None:
        """Drop every compiled pattern"""
        self._patterns.clear()
        self.hits = 0
        self.misses = 0

    def __contains__(self, pattern: str) -> bool:
        return pattern in self._patterns

    def __len__(self) -> int:
        return len(self._patterns)


# Export public API
__all__ = [
    'PatternCache',
    'PatternError',
]
