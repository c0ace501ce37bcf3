"""Feature extraction over the prose of a prompt."""

from __future__ import annotations

import re

from promptsmith.core.models.entities import Analysis
from promptsmith.core.models.enums import SectionKey
from promptsmith.core.patterns import PatternCache
from promptsmith.core.sections import LEADING_BULLET_RE, parse_heading
from promptsmith.core.segments import count_code_fences, prose_text
from promptsmith.limits import VAGUE_GOAL_MAX_CHARS

AMBIGUITY_TOKENS = (
    "improve",
    "optimize",
    "enhance",
    "better",
    "good",
    "nice",
    "robust",
    "clean",
    "simple",
    "easy",
    "fast",
    "best",
    "efficient",
    "some",
    "various",
    "etc",
    "and so on",
    "as needed",
    "if possible",
    "ideally",
    "maybe",
    "try to",
    "could you",
    "might",
)

SCOPE_LEAK_TOKENS = (
    "everything",
    "entire",
    "all of",
    "full scope",
    "in its entirety",
    "complete",
    "any and all",
)

CONSTRAINT_MARKERS = (
    "must",
    "must not",
    "never",
    "only",
    "avoid",
    "require",
    "do not",
    "always",
    "exactly",
    "at least",
    "no more than",
)

FORMAT_MARKERS = (
    "json",
    "yaml",
    "markdown",
    "csv",
    "xml",
    "table",
    "bullets",
    "code block",
    "schema",
    "template",
    "output format",
)

SCOPE_BOUND_TOKENS = (
    "in scope",
    "out of scope",
    "scope bounds",
    "scope",
    "must not",
    "do not",
    "only",
)

# Substring needles: "etc" also hits "etcetera" here.
HEDGING_NEEDLES = (
    "maybe",
    "if possible",
    "try to",
    "possibly",
    "ideally",
    "might",
    "best effort",
    "etc",
)

CONCISE_VS_EXHAUSTIVE = "Concise vs exhaustive detail conflict."
NO_BROWSING_VS_RESEARCH = "No-browsing instruction conflicts with web research request."
NO_CODE_VS_IMPLEMENT = "No-code instruction conflicts with implementation request."

_CONTRADICTION_RULES: tuple[tuple[str, tuple[str, ...], tuple[str, ...]], ...] = (
    (
        CONCISE_VS_EXHAUSTIVE,
        ("concise",),
        ("exhaustive", "in its entirety", "full detail", "comprehensive"),
    ),
    (
        NO_BROWSING_VS_RESEARCH,
        ("no browsing", "do not browse", "never browse", "no web", "offline only"),
        ("search online", "browse the web", "web research"),
    ),
    (
        NO_CODE_VS_IMPLEMENT,
        ("no code", "do not write code", "without code"),
        ("write code", "implement", "patch"),
    ),
)

PLACEHOLDER_PATTERN = r"\{[a-zA-Z0-9_\-]+\}"


def contains_hedging(text: str) -> bool:
    """True if the prose of text carries any hedging phrase (substring match)."""
    lowered = prose_text(text, "\n").lower()
    return any(needle in lowered for needle in HEDGING_NEEDLES)


def _scan_known_sections(text: str) -> dict[SectionKey, list[str]]:
    """Map each known heading to its body lines.

    Only known headings switch the current section; unknown ``#`` lines are
    treated as body text of whatever section precedes them.
    """
    sections: dict[SectionKey, list[str]] = {}
    current: SectionKey | None = None

    for line in text.split("\n"):
        heading = parse_heading(line)
        if heading is not None and heading.key is not None:
            current = heading.key
            body = sections.setdefault(current, [])
            if heading.inline_value:
                body.append(heading.inline_value)
            continue
        if current is not None:
            sections[current].append(line)

    return sections


class PromptAnalyzer:
    """Extracts an `Analysis` from prompt text.

    Owns the regex cache used for whole-word token matching, so one analyzer
    can be shared between threads and disposed of with its optimizer.
    """

    def __init__(self, patterns: PatternCache | None = None) -> None:
        self.patterns = patterns if patterns is not None else PatternCache()

    def count_tokens(self, text: str, tokens: tuple[str, ...]) -> int:
        return self.patterns.count_tokens(text, tokens)

    def contains_token(self, text: str, tokens: tuple[str, ...]) -> bool:
        return self.patterns.contains_any(text, tokens)

    def contradictions(self, text: str) -> list[str]:
        found: list[str] = []
        for label, left, right in _CONTRADICTION_RULES:
            if self.contains_token(text, left) and self.contains_token(text, right):
                found.append(label)
        return found

    def analyze(self, text: str, prior_fence_count: int | None = None) -> Analysis:
        """Analyze text.

        Args:
            text: Full prompt text, code fences included.
            prior_fence_count: Fence count of the original input, counted as
                examples. Defaults to the fences found in text itself.
        """
        if prior_fence_count is None:
            prior_fence_count = count_code_fences(text)

        prose = prose_text(text)
        lowered = prose.lower()
        goal_line = next((line.strip() for line in prose.split("\n") if line.strip()), "")

        sections = _scan_known_sections(prose)
        deliverable_lines = sections.get(SectionKey.DELIVERABLES, [])
        output_body = "\n".join(sections.get(SectionKey.OUTPUT_FORMAT, []))

        has_output_template = (
            SectionKey.OUTPUT_FORMAT in sections
            or self.contains_token(output_body, FORMAT_MARKERS)
            or "output format:" in lowered
        )

        return Analysis(
            goal_line=goal_line,
            ambiguity_count=self.count_tokens(prose, AMBIGUITY_TOKENS),
            scope_leak=self.contains_token(prose, SCOPE_LEAK_TOKENS),
            headings=frozenset(sections),
            has_enumerated_deliverables=any(
                LEADING_BULLET_RE.search(line) for line in deliverable_lines
            ),
            examples_count=self.patterns.count_literal("Example:", prose) + prior_fence_count,
            contradictions=tuple(self.contradictions(prose)),
            token_estimate=max(1, len(text) // 4),
            has_strong_constraint_markers=self.count_tokens(prose, CONSTRAINT_MARKERS) >= 2,
            has_output_template=has_output_template,
            has_scope_bounds=self.contains_token(prose, SCOPE_BOUND_TOKENS),
            unresolved_placeholder_count=self.patterns.count_matches(
                text, PLACEHOLDER_PATTERN, flags=0
            ),
            is_vague_goal=(
                len(goal_line) < VAGUE_GOAL_MAX_CHARS
                and self.contains_token(goal_line, AMBIGUITY_TOKENS)
            ),
        )


def has_duplicate_lines(text: str) -> bool:
    """True when two non-blank lines are equal ignoring case and spacing."""
    seen: set[str] = set()
    for line in text.split("\n"):
        stripped = line.strip()
        if not stripped:
            continue
        normalized = re.sub(r"\s+", " ", stripped.lower())
        if normalized in seen:
            return True
        seen.add(normalized)
    return False
