"""Gap detection: which sections are missing or weak, and how to repair them.

Besides `detect_gaps` this module owns the two mode decisions that shape the
whole run: whether a short prompt should get a one-paragraph semantic
rewrite, and whether structured headings should be scaffolded at all.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from promptsmith.core.analysis import contains_hedging, has_duplicate_lines
from promptsmith.core.intent import allows_questions, infer_intent
from promptsmith.core.models.entities import GapProfile
from promptsmith.core.models.enums import PromptIntent, ScenarioProfile, SectionKey
from promptsmith.core.policy import contains_all_keywords
from promptsmith.core.sections import (
    LEADING_BULLET_RE,
    clean_body_lines,
    contains_heading,
    find_block,
    is_likely_canonical_order,
    known_section_count,
)
from promptsmith.core.templates import goal_seed, output_format_lines
from promptsmith.limits import (
    SCAFFOLDING_MIN_GENERAL_CHARS,
    SEMANTIC_MAX_CHARS,
    SEMANTIC_MAX_LINES,
    SEMANTIC_MAX_TOKENS,
    UNDERSPECIFIED_MAX_CHARS,
    UNDERSPECIFIED_MAX_GOAL_CHARS,
    UNDERSPECIFIED_MAX_GOAL_SEED_CHARS,
    UNDERSPECIFIED_MAX_SECTIONS,
    UNDERSPECIFIED_MAX_TOKENS,
)

if TYPE_CHECKING:
    from promptsmith.core.models.entities import Analysis, DomainPolicy, OptimizationContext

_FORMAT_CUES = (
    "output format",
    "output contract",
    "markdown headings",
    "use sections",
    "return json",
    "json only",
    "unified diff",
    "validation commands",
)

_GENERIC_CONTRACT_CUES = (
    "return only the requested sections",
    "execution-oriented",
    "avoid conversational filler",
    "do not include extra sections beyond this contract",
)

_DELIVERABLE_TRIM = ".:;,-"


def has_explicit_format_cue(text: str) -> bool:
    lowered = text.lower()
    return any(cue in lowered for cue in _FORMAT_CUES)


def is_underspecified(text: str, analysis: Analysis, section_count: int | None = None) -> bool:
    """Short, lightly structured prompt still missing a core section."""
    if section_count is None:
        section_count = known_section_count(text)
    short_prompt = (
        len(text.strip()) <= UNDERSPECIFIED_MAX_CHARS
        or analysis.token_estimate <= UNDERSPECIFIED_MAX_TOKENS
        or len(analysis.goal_line.strip()) <= UNDERSPECIFIED_MAX_GOAL_CHARS
    )
    has_core_gaps = (
        not analysis.has_constraints_heading
        or not analysis.has_success_criteria_heading
        or not analysis.has_questions_heading
    )
    return (
        short_prompt
        and section_count <= UNDERSPECIFIED_MAX_SECTIONS
        and has_core_gaps
        and len(goal_seed(text)) <= UNDERSPECIFIED_MAX_GOAL_SEED_CHARS
    )


def _bullet_lines(lines: list[str]) -> list[str]:
    return [line for line in lines if LEADING_BULLET_RE.search(line)]


def _normalize_deliverable(value: str) -> str:
    stripped = LEADING_BULLET_RE.sub("", value, count=1)
    return stripped.strip().strip(_DELIVERABLE_TRIM).strip().lower()


def has_weak_deliverables(text: str) -> bool:
    """Deliverables section with under three bullets, or bullets that just echo the goal."""
    block = find_block(text, SectionKey.DELIVERABLES)
    if block is None:
        return False

    bullets = _bullet_lines(clean_body_lines(block.body))
    if len(bullets) < 3:
        return True

    seed = _normalize_deliverable(goal_seed(text))
    if not seed:
        return False
    for line in bullets:
        normalized = _normalize_deliverable(line)
        if normalized == seed or seed in normalized or normalized in seed:
            return True
    return False


def has_weak_requirements(text: str) -> bool:
    block = find_block(text, SectionKey.REQUIREMENTS)
    if block is None:
        return False

    lines = clean_body_lines(block.body)
    if len(_bullet_lines(lines)) < 3:
        return True
    return all(
        "requirements" in line.lower() or "requested artifact" in line.lower() for line in lines
    )


def needs_output_format_upgrade(text: str, scenario: ScenarioProfile, intent: PromptIntent) -> bool:
    """True when an existing Output Format section is boilerplate for this intent."""
    match intent:
        case PromptIntent.GENERAL:
            return False
        case PromptIntent.SOFTWARE_BUILD:
            if scenario not in (
                ScenarioProfile.GENERAL_ASSISTANT,
                ScenarioProfile.IDE_CODING_ASSISTANT,
            ):
                return False
        case PromptIntent.CREATIVE_STORY | PromptIntent.GAME_DESIGN:
            pass

    block = find_block(text, SectionKey.OUTPUT_FORMAT)
    if block is None:
        return False

    current = " ".join(clean_body_lines(block.body)).lower()
    if not current:
        return True
    if any(cue in current for cue in _GENERIC_CONTRACT_CUES):
        return True

    match intent:
        case PromptIntent.CREATIVE_STORY:
            signature = "title, story"
        case PromptIntent.GAME_DESIGN:
            signature = "concept, rules, visual theme"
        case _:
            # Explicit non-generic software contracts are kept as written.
            return False

    desired = output_format_lines(scenario, text)
    desired_prefix = desired[0].lower() if desired else ""
    return signature not in current and bool(desired_prefix) and desired_prefix not in current


def prefers_semantic_rewrite(text: str, analysis: Analysis, context: OptimizationContext) -> bool:
    """Short, heading-free prompts in chat-like scenarios get one rewritten paragraph."""
    intent = infer_intent(text)
    match context.scenario:
        case ScenarioProfile.GENERAL_ASSISTANT | ScenarioProfile.LONGFORM_WRITING:
            pass
        case ScenarioProfile.IDE_CODING_ASSISTANT:
            if intent is not PromptIntent.GENERAL:
                return False
        case _:
            return False

    if known_section_count(text) > 0 or has_explicit_format_cue(text):
        return False

    trimmed = text.strip()
    line_count = sum(1 for line in trimmed.split("\n") if line.strip())
    return (
        analysis.token_estimate <= SEMANTIC_MAX_TOKENS
        or len(trimmed) <= SEMANTIC_MAX_CHARS
        or line_count <= SEMANTIC_MAX_LINES
    )


def uses_structured_scaffolding(
    text: str,
    scenario: ScenarioProfile,
    intent: PromptIntent,
    *,
    has_known_headings: bool,
    prefer_semantic: bool,
) -> bool:
    if prefer_semantic:
        return False
    if has_known_headings or has_explicit_format_cue(text):
        return True

    match scenario:
        case ScenarioProfile.IDE_CODING_ASSISTANT:
            return intent is not PromptIntent.GENERAL
        case (
            ScenarioProfile.CLI_ASSISTANT
            | ScenarioProfile.JSON_STRUCTURED_OUTPUT
            | ScenarioProfile.RESEARCH_SUMMARIZATION
            | ScenarioProfile.TOOL_USING_AGENT
        ):
            return True
        case ScenarioProfile.GENERAL_ASSISTANT | ScenarioProfile.LONGFORM_WRITING:
            return intent is PromptIntent.GENERAL and len(text) > SCAFFOLDING_MIN_GENERAL_CHARS


def missing_required_sections(policy: DomainPolicy, text: str) -> list[SectionKey]:
    return [
        key for key in policy.required_sections if not contains_heading(key.heading_title, text)
    ]


def detect_gaps(
    text: str,
    analysis: Analysis,
    context: OptimizationContext,
    policy: DomainPolicy,
    *,
    prefer_semantic: bool,
) -> GapProfile:
    intent = infer_intent(text)
    section_count = known_section_count(text)
    has_known_headings = section_count > 0
    underspecified = is_underspecified(text, analysis, section_count)
    ambiguous = analysis.is_ambiguous
    scaffold = uses_structured_scaffolding(
        text,
        context.scenario,
        intent,
        has_known_headings=has_known_headings,
        prefer_semantic=prefer_semantic,
    )
    output_needs_upgrade = needs_output_format_upgrade(text, context.scenario, intent)
    loosely_specified = analysis.ambiguity_count > 0 or analysis.is_vague_goal or underspecified

    needs_requirements = (
        scaffold
        and intent is PromptIntent.SOFTWARE_BUILD
        and (
            has_weak_requirements(text)
            or (
                (loosely_specified or output_needs_upgrade)
                and not contains_heading("Requirements", text)
            )
        )
    )

    return GapProfile(
        needs_canonicalization=(
            scaffold and has_known_headings and not is_likely_canonical_order(text)
        ),
        needs_contradiction_repair=bool(analysis.contradictions),
        needs_sentence_rewrite=analysis.ambiguity_count > 0 or contains_hedging(text),
        needs_semantic_expansion=(
            prefer_semantic
            and not analysis.contradictions
            and not has_known_headings
            and (intent is not PromptIntent.GENERAL or ambiguous or underspecified)
        ),
        needs_requirements=needs_requirements,
        needs_deliverables=scaffold
        and (not analysis.has_enumerated_deliverables or has_weak_deliverables(text)),
        needs_output_format=scaffold and (not analysis.has_output_contract or output_needs_upgrade),
        needs_success_criteria=scaffold
        and loosely_specified
        and not analysis.has_success_criteria_heading,
        needs_scope_bounds=scaffold and analysis.scope_leak and not analysis.has_scope_bounds,
        needs_questions=scaffold
        and allows_questions(intent)
        and (ambiguous or underspecified)
        and not analysis.has_questions_heading,
        needs_domain_pack=scaffold
        and bool(policy.required_keywords)
        and not contains_all_keywords(policy.required_keywords, text),
        needs_quality_gate=scaffold
        and (ambiguous or underspecified)
        and bool(missing_required_sections(policy, text)),
        needs_dedupe=has_duplicate_lines(text),
    )


