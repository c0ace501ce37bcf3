"""Anti-regression gate: only promote a candidate that adds real structure."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from promptsmith.core.analysis import contains_hedging
from promptsmith.core.gaps import (
    is_underspecified,
    missing_required_sections,
    needs_output_format_upgrade,
)
from promptsmith.core.intent import infer_intent
from promptsmith.core.models.entities import StructuralDelta
from promptsmith.core.models.enums import PromptIntent
from promptsmith.core.policy import contains_all_keywords
from promptsmith.core.sections import contains_heading, known_section_count
from promptsmith.core.templates import semantic_specificity_score
from promptsmith.limits import MAX_GROWTH_RATIO, MIN_SCORE_GAIN, MIN_STRUCTURAL_GAIN

if TYPE_CHECKING:
    from collections.abc import Sequence

    from promptsmith.core.models.entities import (
        Analysis,
        Candidate,
        DomainPolicy,
        OptimizationContext,
        ScoreResult,
    )


@dataclass(frozen=True, slots=True)
class SelectionThresholds:
    min_score_gain: int = MIN_SCORE_GAIN
    min_structural_gain: int = MIN_STRUCTURAL_GAIN
    max_growth_ratio: float = MAX_GROWTH_RATIO


@dataclass(frozen=True, slots=True)
class ScoredCandidate:
    candidate: Candidate
    score: ScoreResult
    analysis: Analysis


def pick_best(scored: Sequence[ScoredCandidate]) -> int:
    """Index of the highest score; ties go to the earliest candidate."""
    best = 0
    for index, entry in enumerate(scored):
        if entry.score.score > scored[best].score.score:
            best = index
    return best


def structural_delta(
    baseline_text: str,
    baseline: Analysis,
    candidate_text: str,
    candidate: Analysis,
    *,
    context: OptimizationContext,
    policy: DomainPolicy,
    semantic_mode: bool,
    thresholds: SelectionThresholds | None = None,
) -> StructuralDelta:
    """Structural gain of candidate over baseline, plus its length growth."""
    thresholds = thresholds or SelectionThresholds()
    gain = 0
    intent = infer_intent(baseline_text)
    baseline_sections = known_section_count(baseline_text)
    underspecified = is_underspecified(baseline_text, baseline, baseline_sections)

    if semantic_mode:
        before = semantic_specificity_score(baseline_text, intent)
        after = semantic_specificity_score(candidate_text, intent)
        if after > before:
            gain += min(4, after - before)
        candidate_sections = known_section_count(candidate_text)
        if baseline_sections == 0 and candidate_sections > 0:
            gain -= min(3, candidate_sections)
    else:
        if not baseline.has_output_contract and candidate.has_output_contract:
            gain += 2

        baseline_upgrade = needs_output_format_upgrade(baseline_text, context.scenario, intent)
        if intent is not PromptIntent.GENERAL:
            candidate_upgrade = needs_output_format_upgrade(
                candidate_text, context.scenario, intent
            )
            if baseline_upgrade and not candidate_upgrade:
                gain += 2

        needed_requirements = intent is PromptIntent.SOFTWARE_BUILD and (
            underspecified
            or baseline.ambiguity_count > 0
            or baseline.is_vague_goal
            or baseline_upgrade
        )
        if (
            needed_requirements
            and not contains_heading("Requirements", baseline_text)
            and contains_heading("Requirements", candidate_text)
        ):
            gain += 2

        if not baseline.has_enumerated_deliverables and candidate.has_enumerated_deliverables:
            gain += 2

        if baseline.is_ambiguous or underspecified:
            if not baseline.has_success_criteria_heading and candidate.has_success_criteria_heading:
                gain += 1
            if not baseline.has_questions_heading and candidate.has_questions_heading:
                gain += 1

        if baseline.scope_leak and not baseline.has_scope_bounds and candidate.has_scope_bounds:
            gain += 1

    if baseline.contradictions and len(candidate.contradictions) < len(baseline.contradictions):
        gain += 2

    if contains_hedging(baseline_text) and not contains_hedging(candidate_text):
        gain += 2

    if not semantic_mode:
        keywords = policy.required_keywords
        if contains_all_keywords(keywords, candidate_text) and not contains_all_keywords(
            keywords, baseline_text
        ):
            gain += 2

        missing_before = len(missing_required_sections(policy, baseline_text))
        missing_after = len(missing_required_sections(policy, candidate_text))
        if missing_after < missing_before:
            gain += min(3, missing_before - missing_after)

    growth_ratio = len(candidate_text) / max(1, len(baseline_text))
    return StructuralDelta(
        gain=gain,
        growth_ratio=growth_ratio,
        meaningful=gain >= thresholds.min_structural_gain,
    )


def should_promote(
    best: ScoredCandidate,
    baseline: ScoredCandidate,
    delta: StructuralDelta,
    thresholds: SelectionThresholds | None = None,
) -> bool:
    thresholds = thresholds or SelectionThresholds()
    if best.candidate.is_baseline:
        return True
    if best.score.score - baseline.score.score < thresholds.min_score_gain:
        return False
    if not delta.meaningful:
        return False
    return not (
        delta.growth_ratio > thresholds.max_growth_ratio
        and delta.gain < thresholds.min_structural_gain
    )


def fallback_warning(
    best: ScoredCandidate, baseline: ScoredCandidate, delta: StructuralDelta
) -> str:
    return (
        "Anti-regression fallback: baseline retained due to insufficient structural gain "
        f"(best={best.score.score}, baseline={baseline.score.score}, gain={delta.gain})."
    )
