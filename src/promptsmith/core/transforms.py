"""Transform library and the interpreter that runs transform plans.

Each transform is a ``(text, env) -> text`` function over one prose segment.
The `prose_only` decorator lifts it to whole prompts, so fenced code passes
through every transform byte for byte. Transforms that add sections use
`section_level` instead: they decide on the prose of the whole prompt and
only append to its last prose segment.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import wraps
from typing import TYPE_CHECKING

from promptsmith.core.analysis import (
    CONCISE_VS_EXHAUSTIVE,
    NO_BROWSING_VS_RESEARCH,
    NO_CODE_VS_IMPLEMENT,
    PromptAnalyzer,
)
from promptsmith.core.gaps import (
    has_weak_deliverables,
    is_underspecified,
    needs_output_format_upgrade,
    prefers_semantic_rewrite,
)
from promptsmith.core.intent import allows_questions, infer_intent
from promptsmith.core.models.enums import PromptIntent, PromptTarget, SectionKey, TransformKey
from promptsmith.core.sections import (
    append_missing_sections,
    append_section,
    canonicalize_sections,
    contains_heading,
    known_section_count,
    replace_section_body,
)
from promptsmith.core.segments import (
    prose_text,
    transform_preserving_code_fences,
    transform_prose_segments,
)
from promptsmith.core.templates import (
    CLARIFYING_QUESTION_LINES,
    CONTEXT_FALLBACK_LINE,
    QUALITY_GATE_QUESTION_LINES,
    SCOPE_BOUND_LINES,
    constraint_lines,
    goal_seed,
    infer_deliverables,
    infer_requirements,
    output_format_lines,
    semantic_expansion_text,
    success_criteria_lines,
)
from promptsmith.core.text import (
    restore_protected_literals,
    sentence_spans,
    shield_protected_literals,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from promptsmith.core.models.entities import DomainPolicy, OptimizationContext


@dataclass(frozen=True, slots=True)
class TransformEnv:
    """Per-call inputs shared by every transform in a plan."""

    context: OptimizationContext
    policy: DomainPolicy
    underspecified_hint: bool
    analyzer: PromptAnalyzer


type SegmentTransform = Callable[[str, TransformEnv], str]


def prose_only(func: SegmentTransform) -> SegmentTransform:
    """Apply func to prose segments only, re-emitting code fences verbatim."""

    @wraps(func)
    def wrapper(text: str, env: TransformEnv) -> str:
        return transform_preserving_code_fences(text, lambda segment: func(segment, env))

    return wrapper


@dataclass(frozen=True, slots=True)
class ProseScope:
    """All prose of the prompt, and whether the current segment is the last one."""

    prose: str
    is_last: bool


type SectionTransform = Callable[[str, TransformEnv, ProseScope], str]


def section_level(func: SectionTransform) -> SegmentTransform:
    """Apply func per prose segment, with the prompt's whole prose as its scope."""

    @wraps(func)
    def wrapper(text: str, env: TransformEnv) -> str:
        prose = prose_text(text, "\n")
        return transform_prose_segments(
            text, lambda segment, is_last: func(segment, env, ProseScope(prose, is_last))
        )

    return wrapper


def place_section(
    text: str, scope: ProseScope, title: str, body: list[str], *, replace: bool = False
) -> str:
    """Merge into (or replace) title where it lives, else append it to the last segment."""
    if contains_heading(title, text):
        if replace:
            return replace_section_body(text, title, body)
        return append_section(text, title, body)
    if scope.is_last and not contains_heading(title, scope.prose):
        return append_section(text, title, body)
    return text


def _boundary(pattern: str) -> re.Pattern[str]:
    return re.compile(r"(?<!\w)" + pattern + r"(?!\w)", re.IGNORECASE)


_SENTENCE_REPLACEMENTS: tuple[tuple[re.Pattern[str], str], ...] = (
    (_boundary("could you"), ""),
    (_boundary("can you"), ""),
    (_boundary("please"), ""),
    (_boundary("try to"), ""),
    (_boundary("if possible"), "when required"),
    (_boundary("maybe"), ""),
    (_boundary("possibly"), ""),
    (_boundary("ideally"), "required"),
    (_boundary("might"), "must"),
    (_boundary("should probably"), "must"),
    (_boundary("best effort"), "strictly follow requirements"),
    (_boundary("as needed"), "when required"),
    (_boundary("and so on"), "with explicit items only"),
    (re.compile(r"(?<!\w)etc\.?", re.IGNORECASE), "with explicit items only"),
)

_CONTRADICTION_REPLACEMENTS: tuple[tuple[re.Pattern[str], str], ...] = (
    (
        _boundary("(search online|browse the web|web research|internet research)"),
        "use provided/local sources only",
    ),
    (_boundary("(exhaustive|comprehensive|in its entirety|full detail)"), "scope-complete"),
    (_boundary("(write code|implement|patch)"), "provide a non-code implementation plan"),
)

_INTERNAL_WHITESPACE_RE = re.compile(r"[ \t]{2,}")
_WHITESPACE_RE = re.compile(r"\s+")


def _normalize_sentence_whitespace(text: str) -> str:
    condensed = _INTERNAL_WHITESPACE_RE.sub(" ", text)
    for before, after in ((" ,", ","), (" .", "."), (" :", ":"), (" ;", ";"), ("  ", " ")):
        condensed = condensed.replace(before, after)
    return condensed


def rewrite_sentence(sentence: str) -> str:
    for pattern, replacement in _SENTENCE_REPLACEMENTS:
        sentence = pattern.sub(replacement, sentence)
    return _normalize_sentence_whitespace(sentence)


def rewrite_sentences(text: str) -> str:
    """Rewrite hedging per sentence; text between sentences is copied as is."""
    pieces: list[str] = []
    cursor = 0
    for start, end in sentence_spans(text):
        pieces.append(text[cursor:start])
        pieces.append(rewrite_sentence(text[start:end]))
        cursor = end
    pieces.append(text[cursor:])
    return "".join(pieces)


@prose_only
def canonicalize(text: str, env: TransformEnv) -> str:
    return canonicalize_sections(text)


@prose_only
def repair_contradictions(text: str, env: TransformEnv) -> str:
    found = env.analyzer.analyze(text, 0).contradictions
    if not found:
        return text

    edited, table = shield_protected_literals(text)
    for pattern, replacement in _CONTRADICTION_REPLACEMENTS:
        edited = pattern.sub(replacement, edited)

    if CONCISE_VS_EXHAUSTIVE in found:
        edited = append_section(
            edited, "Constraints", ["- Keep output concise while remaining scope-complete."]
        )
    if NO_BROWSING_VS_RESEARCH in found:
        edited = append_section(
            edited,
            "Constraints",
            ["- Use provided/local sources only; do not browse online sources."],
        )
    if NO_CODE_VS_IMPLEMENT in found:
        edited = append_section(
            edited,
            "Deliverables",
            [
                "1. Provide a non-code implementation plan.",
                "2. Provide validation steps without executable code.",
            ],
        )

    return restore_protected_literals(edited, table)


@prose_only
def rewrite_hedging(text: str, env: TransformEnv) -> str:
    shielded, table = shield_protected_literals(text)
    return restore_protected_literals(rewrite_sentences(shielded), table)


@prose_only
def expand_semantically(text: str, env: TransformEnv) -> str:
    analysis = env.analyzer.analyze(text, 0)
    if not prefers_semantic_rewrite(text, analysis, env.context):
        return text
    if known_section_count(text) > 0:
        return text

    shielded, table = shield_protected_literals(text)
    return restore_protected_literals(semantic_expansion_text(shielded), table)


@section_level
def infer_requirements_section(text: str, env: TransformEnv, scope: ProseScope) -> str:
    if infer_intent(scope.prose) is not PromptIntent.SOFTWARE_BUILD:
        return text
    inferred = infer_requirements(scope.prose, env.context.scenario)
    return place_section(text, scope, "Requirements", inferred, replace=True)


@section_level
def infer_deliverables_section(text: str, env: TransformEnv, scope: ProseScope) -> str:
    analysis = env.analyzer.analyze(scope.prose, 0)
    if analysis.has_enumerated_deliverables and not has_weak_deliverables(scope.prose):
        return text
    inferred = infer_deliverables(scope.prose, env.context.scenario)
    return place_section(text, scope, "Deliverables", inferred, replace=True)


@section_level
def add_output_format(text: str, env: TransformEnv, scope: ProseScope) -> str:
    analysis = env.analyzer.analyze(scope.prose, 0)
    scenario = env.context.scenario
    desired = output_format_lines(scenario, scope.prose)

    if analysis.has_output_contract:
        if needs_output_format_upgrade(scope.prose, scenario, infer_intent(scope.prose)):
            return place_section(text, scope, "Output Format", desired, replace=True)
        return text
    return place_section(text, scope, "Output Format", desired)


def _underspecified(text: str, env: TransformEnv) -> bool:
    if env.underspecified_hint:
        return True
    return is_underspecified(text, env.analyzer.analyze(text, 0))


@section_level
def add_success_criteria(text: str, env: TransformEnv, scope: ProseScope) -> str:
    analysis = env.analyzer.analyze(scope.prose, 0)
    if analysis.has_success_criteria_heading:
        return text
    if not (
        analysis.ambiguity_count > 0
        or analysis.is_vague_goal
        or _underspecified(scope.prose, env)
    ):
        return text
    body = success_criteria_lines(infer_intent(scope.prose))
    return place_section(text, scope, "Success Criteria", body)


@section_level
def add_scope_bounds(text: str, env: TransformEnv, scope: ProseScope) -> str:
    analysis = env.analyzer.analyze(scope.prose, 0)
    if not analysis.scope_leak or analysis.has_scope_bounds:
        return text
    return place_section(text, scope, "Constraints", list(SCOPE_BOUND_LINES))


@section_level
def add_questions(text: str, env: TransformEnv, scope: ProseScope) -> str:
    if not allows_questions(infer_intent(scope.prose)):
        return text
    analysis = env.analyzer.analyze(scope.prose, 0)
    if analysis.has_questions_heading:
        return text
    if not (analysis.is_ambiguous or _underspecified(scope.prose, env)):
        return text
    return place_section(text, scope, "Questions", list(CLARIFYING_QUESTION_LINES))


AGENTIC_IDE_SECTIONS: tuple[tuple[str, list[str]], ...] = (
    (
        "Proposed File Changes",
        [
            "1. List files to modify with short rationale.",
            "2. Keep patch scope minimal and deterministic.",
        ],
    ),
    (
        "Validation Commands",
        [
            "1. Run focused tests first.",
            "2. Run full suite only if focused tests pass.",
        ],
    ),
)


@section_level
def apply_domain_pack(text: str, env: TransformEnv, scope: ProseScope) -> str:
    output = text
    for title, body in env.policy.supplemental_sections:
        output = place_section(output, scope, title, list(body))

    match env.context.target:
        case PromptTarget.PERPLEXITY:
            output = place_section(
                output,
                scope,
                "Constraints",
                ["- Cite primary sources with direct URLs for factual claims."],
            )
        case PromptTarget.AGENTIC_IDE:
            if scope.is_last:
                missing = [
                    (title, body)
                    for title, body in AGENTIC_IDE_SECTIONS
                    if not contains_heading(title, scope.prose)
                ]
                output = append_missing_sections(output, missing)
        case PromptTarget.CLAUDE | PromptTarget.GEMINI_CHATGPT:
            pass
    return output


@section_level
def apply_quality_gate(text: str, env: TransformEnv, scope: ProseScope) -> str:
    """Fill every section the domain policy requires that is still missing."""
    if not scope.is_last:
        return text

    scenario = env.context.scenario
    intent = infer_intent(scope.prose)
    seed = goal_seed(scope.prose)
    deliverables = infer_deliverables(scope.prose, scenario)
    requirements = infer_requirements(scope.prose, scenario)

    output = text

    def missing(title: str) -> bool:
        return not (contains_heading(title, output) or contains_heading(title, scope.prose))

    if intent is PromptIntent.SOFTWARE_BUILD and missing("Requirements"):
        output = append_section(output, "Requirements", requirements)

    for key in env.policy.required_sections:
        title = key.heading_title
        if not missing(title):
            continue
        match key:
            case SectionKey.GOAL:
                body = [seed]
            case SectionKey.CONTEXT:
                body = [CONTEXT_FALLBACK_LINE]
            case SectionKey.REQUIREMENTS:
                body = requirements
            case SectionKey.CONSTRAINTS:
                body = constraint_lines(intent)
            case SectionKey.DELIVERABLES:
                body = deliverables
            case SectionKey.OUTPUT_FORMAT:
                body = output_format_lines(scenario, output)
            case SectionKey.QUESTIONS:
                body = list(QUALITY_GATE_QUESTION_LINES)
            case SectionKey.SUCCESS_CRITERIA:
                body = success_criteria_lines(intent)
        output = append_section(output, title, body)
    return output


@prose_only
def dedupe_lines(text: str, env: TransformEnv) -> str:
    """Drop repeated lines (case/space-insensitive) and collapse blank runs."""
    seen: set[str] = set()
    kept: list[str] = []
    previous_blank = False

    for line in text.split("\n"):
        trimmed_trailing = line.rstrip()
        stripped = trimmed_trailing.strip()
        if not stripped:
            if not previous_blank:
                kept.append("")
            previous_blank = True
            continue

        previous_blank = False
        normalized = _WHITESPACE_RE.sub(" ", stripped.lower())
        if normalized not in seen:
            seen.add(normalized)
            kept.append(trimmed_trailing)

    return "\n".join(kept).strip()


class TransformInterpreter:
    """Runs an ordered plan of transform keys over a text buffer."""

    def __init__(self, env: TransformEnv) -> None:
        self.env = env

    def resolve(self, key: TransformKey) -> SegmentTransform:
        match key:
            case TransformKey.CANONICALIZE:
                return canonicalize
            case TransformKey.CONTRADICTION_REPAIR:
                return repair_contradictions
            case TransformKey.SENTENCE_REWRITE:
                return rewrite_hedging
            case TransformKey.SEMANTIC_EXPANSION:
                return expand_semantically
            case TransformKey.REQUIREMENTS_INFERENCE:
                return infer_requirements_section
            case TransformKey.DELIVERABLES_INFERENCE:
                return infer_deliverables_section
            case TransformKey.OUTPUT_FORMAT:
                return add_output_format
            case TransformKey.SUCCESS_CRITERIA:
                return add_success_criteria
            case TransformKey.SCOPE_BOUNDS:
                return add_scope_bounds
            case TransformKey.QUESTIONS:
                return add_questions
            case TransformKey.DOMAIN_PACK:
                return apply_domain_pack
            case TransformKey.QUALITY_GATE:
                return apply_quality_gate
            case TransformKey.DEDUPE:
                return dedupe_lines

    def apply(self, key: TransformKey, text: str) -> str:
        return self.resolve(key)(text, self.env)

    def run(self, plan: Sequence[TransformKey], text: str) -> str:
        buffer = text
        for key in plan:
            buffer = self.apply(key, buffer)
        return buffer
