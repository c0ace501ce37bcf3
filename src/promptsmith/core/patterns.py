"""Lazily compiled, lock-guarded regex cache for token matching."""

from __future__ import annotations

import re
import threading


def boundary_pattern(token: str) -> str:
    """Whole-word pattern for a literal token ("etc" must not match "etcetera")."""
    return r"(?<!\w)" + re.escape(token) + r"(?!\w)"


class PatternCache:
    """Memoizes compiled patterns keyed by (flags, pattern).

    One instance is owned by each analyzer; lookups and inserts are guarded so
    concurrent optimize() calls can share it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._compiled: dict[tuple[int, str], re.Pattern[str]] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._compiled)

    def compile(self, pattern: str, flags: int = re.IGNORECASE) -> re.Pattern[str] | None:
        """Return a compiled pattern, or None if it does not compile."""
        key = (flags, pattern)
        with self._lock:
            cached = self._compiled.get(key)
            if cached is not None:
                return cached
            try:
                compiled = re.compile(pattern, flags)
            except re.error:
                return None
            self._compiled[key] = compiled
            return compiled

    def count_matches(self, text: str, pattern: str, flags: int = re.IGNORECASE) -> int:
        regex = self.compile(pattern, flags)
        if regex is None:
            return 0
        return sum(1 for _ in regex.finditer(text))

    def count_tokens(self, text: str, tokens: list[str] | tuple[str, ...]) -> int:
        """Total whole-word, case-insensitive hits across all tokens."""
        return sum(self.count_matches(text, boundary_pattern(token)) for token in tokens)

    def contains_any(self, text: str, tokens: list[str] | tuple[str, ...]) -> bool:
        for token in tokens:
            regex = self.compile(boundary_pattern(token))
            if regex is not None and regex.search(text):
                return True
        return False

    def count_literal(self, needle: str, text: str) -> int:
        """Case-insensitive count of a literal substring."""
        return self.count_matches(text, re.escape(needle))

    def clear(self) -> None:
        with self._lock:
            self._compiled.clear()
