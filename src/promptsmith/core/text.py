"""Small text helpers shared by the optimizer stages."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Hashable, Iterable

_WHITESPACE_RE = re.compile(r"\s+")
_SENTENCE_RE = re.compile(r"[^.!?\n]*[^\s.!?][^.!?\n]*(?:[.!?]+[\"')\]]*)?|[.!?]+")
_WORD_RE = re.compile(r"[^\W_]+")
_PROTECTED_LITERAL_RE = re.compile(
    r"https?://[^\s\]\)]+"
    r"|\{[a-zA-Z0-9_\-]+\}"
    r"|/(?:[a-zA-Z0-9._\-]+/)*[a-zA-Z0-9._\-]+(?:\.[a-zA-Z0-9._\-]+)?",
    re.IGNORECASE,
)
_LITERAL_TOKEN = "__PROMPTSMITH_LITERAL_{index}__"


def fingerprint(text: str) -> str:
    """Case- and whitespace-insensitive identity of a text."""
    return _WHITESPACE_RE.sub(" ", text.strip().lower())


def dedupe_preserving_order[T: Hashable](values: Iterable[T]) -> list[T]:
    seen: set[T] = set()
    ordered: list[T] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


def capitalize_first(value: str) -> str:
    return value[:1].upper() + value[1:]


def token_set(text: str) -> set[str]:
    """Set of alphanumeric words in text (callers lowercase first)."""
    return set(_WORD_RE.findall(text))


def sentence_spans(text: str) -> list[tuple[int, int]]:
    """Character spans of sentences; line breaks also end a sentence."""
    return [match.span() for match in _SENTENCE_RE.finditer(text)]


def first_sentence(text: str) -> str | None:
    for start, end in sentence_spans(text):
        candidate = text[start:end].strip()
        if candidate:
            return candidate
    return None


def shield_protected_literals(text: str) -> tuple[str, dict[str, str]]:
    """Swap URLs, {placeholders} and paths for opaque tokens before rewriting."""
    table: dict[str, str] = {}
    pieces: list[str] = []
    cursor = 0
    for index, match in enumerate(_PROTECTED_LITERAL_RE.finditer(text)):
        token = _LITERAL_TOKEN.format(index=index)
        table[token] = match.group(0)
        pieces.append(text[cursor : match.start()])
        pieces.append(token)
        cursor = match.end()
    pieces.append(text[cursor:])
    return "".join(pieces), table


def restore_protected_literals(text: str, table: dict[str, str]) -> str:
    for token, literal in table.items():
        text = text.replace(token, literal)
    return text
