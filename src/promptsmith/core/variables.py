"""`{name}` placeholder detection and substitution."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from promptsmith.core.text import dedupe_preserving_order

if TYPE_CHECKING:
    from collections.abc import Mapping

VARIABLE_RE = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


@dataclass(frozen=True, slots=True)
class VariableResolution:
    detected: tuple[str, ...]
    resolved_text: str
    unfilled: tuple[str, ...]


def detect(text: str) -> list[str]:
    """Placeholder names in first-seen order, without repeats."""
    return dedupe_preserving_order(match.group(1) for match in VARIABLE_RE.finditer(text))


def resolve(text: str, values: Mapping[str, str]) -> VariableResolution:
    """Substitute every placeholder that has a value; leave the rest verbatim.

    A supplied empty string still counts as a value.
    """
    detected: list[str] = []
    unfilled: list[str] = []

    def substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        detected.append(name)
        if name in values:
            return values[name]
        unfilled.append(name)
        return match.group(0)

    resolved = VARIABLE_RE.sub(substitute, text)
    return VariableResolution(
        detected=tuple(dedupe_preserving_order(detected)),
        resolved_text=resolved,
        unfilled=tuple(dedupe_preserving_order(unfilled)),
    )


def parse_assignments(pairs: list[str] | tuple[str, ...]) -> dict[str, str]:
    """Parse NAME=VALUE strings; the first "=" splits.

    Raises:
        ValueError: If a pair has no "=" or an empty name.
    """
    values: dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        name = name.strip()
        if not sep or not name:
            raise ValueError(f"Expected NAME=VALUE, got {pair!r}")
        values[name] = value
    return values
