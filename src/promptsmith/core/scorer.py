"""Candidate scoring with an explainable per-factor breakdown."""

from __future__ import annotations

from typing import TYPE_CHECKING

from promptsmith.core.analysis import contains_hedging
from promptsmith.core.gaps import (
    has_weak_deliverables,
    has_weak_requirements,
    missing_required_sections,
    needs_output_format_upgrade,
)
from promptsmith.core.intent import allows_questions, infer_intent
from promptsmith.core.models.entities import ScoreResult
from promptsmith.core.models.enums import PromptIntent, ScenarioProfile, ScoreFactor
from promptsmith.core.policy import contains_all_keywords
from promptsmith.core.sections import contains_heading, known_section_count
from promptsmith.core.templates import semantic_specificity_score
from promptsmith.core.text import dedupe_preserving_order
from promptsmith.limits import (
    EXAMPLE_BONUS_CAP,
    HIGH_TOKEN_ESTIMATE,
    SECTION_BLOAT_PENALTY_CAP,
    TOKEN_PENALTY_CAP,
    TOKEN_PENALTY_STEP,
)

if TYPE_CHECKING:
    from promptsmith.core.models.entities import Analysis, DomainPolicy, OptimizationContext
    from promptsmith.core.weights import ScoringWeights


class _Tally:
    def __init__(self) -> None:
        self.score = 0
        self.breakdown: dict[str, int] = {}
        self.warnings: list[str] = []

    def add(self, factor: ScoreFactor, value: int) -> None:
        self.score += value
        self.breakdown[factor.value] = value

    def result(self) -> ScoreResult:
        warnings = tuple(dedupe_preserving_order(self.warnings))
        return ScoreResult(self.score, self.breakdown, warnings)


def _score_semantic(tally: _Tally, analysis: Analysis, text: str, intent: PromptIntent) -> None:
    sections = known_section_count(text)
    if sections > 0:
        tally.add(ScoreFactor.SECTION_BLOAT_PENALTY, -min(SECTION_BLOAT_PENALTY_CAP, sections * 4))

    bonus = semantic_specificity_score(text, intent) * 4
    if bonus > 0:
        tally.add(ScoreFactor.SEMANTIC_SPECIFICITY, bonus)

    if analysis.is_ambiguous and contains_heading("Questions", text):
        tally.add(ScoreFactor.AVOID_UNNECESSARY_QUESTIONS, -2)


def _score_structured(
    tally: _Tally,
    analysis: Analysis,
    text: str,
    intent: PromptIntent,
    weights: ScoringWeights,
    scenario: ScenarioProfile,
    underspecified: bool,
) -> None:
    ambiguous = analysis.is_ambiguous
    needs_upgrade = needs_output_format_upgrade(text, scenario, intent)

    if analysis.has_output_contract:
        tally.add(ScoreFactor.OUTPUT_FORMAT, weights.output_format)
    else:
        tally.add(ScoreFactor.MISSING_OUTPUT_FORMAT, -max(4, weights.output_format // 2))

    if intent in (PromptIntent.CREATIVE_STORY, PromptIntent.GAME_DESIGN):
        if needs_upgrade:
            tally.add(
                ScoreFactor.GENERIC_OUTPUT_CONTRACT_FOR_CREATIVE,
                -max(3, weights.output_format // 3),
            )
        else:
            tally.add(ScoreFactor.CREATIVE_OUTPUT_CONTRACT, 3)

    if intent is PromptIntent.SOFTWARE_BUILD:
        if needs_upgrade:
            tally.add(
                ScoreFactor.GENERIC_OUTPUT_CONTRACT_FOR_SOFTWARE,
                -max(6, weights.output_format // 3),
            )
        has_requirements = contains_heading("Requirements", text)
        requires_section = (
            underspecified
            or analysis.ambiguity_count > 0
            or analysis.is_vague_goal
            or needs_upgrade
        )
        if requires_section:
            if has_requirements:
                tally.add(ScoreFactor.REQUIREMENTS_PRESENT, 12)
            else:
                tally.add(ScoreFactor.MISSING_REQUIREMENTS, -8)
        elif has_requirements:
            tally.add(ScoreFactor.REQUIREMENTS_OPTIONAL_BONUS, 2)
        if has_weak_requirements(text):
            tally.add(ScoreFactor.WEAK_REQUIREMENTS, -6)

    if analysis.has_enumerated_deliverables:
        tally.add(ScoreFactor.ENUMERATED_DELIVERABLES, weights.deliverables)
    else:
        tally.add(ScoreFactor.MISSING_DELIVERABLES, -max(4, weights.deliverables // 2))

    if has_weak_deliverables(text):
        tally.add(ScoreFactor.WEAK_DELIVERABLES, -max(4, weights.deliverables // 3))

    if analysis.has_constraints_heading and analysis.has_strong_constraint_markers:
        tally.add(ScoreFactor.STRONG_CONSTRAINTS, weights.constraints)

    if (ambiguous or underspecified) and analysis.has_success_criteria_heading:
        tally.add(ScoreFactor.SUCCESS_CRITERIA_FOR_AMBIGUITY, weights.success_criteria)
    elif ambiguous:
        tally.add(
            ScoreFactor.MISSING_SUCCESS_CRITERIA_AMBIGUOUS, -max(2, weights.success_criteria // 3)
        )
    elif underspecified:
        tally.add(
            ScoreFactor.MISSING_SUCCESS_CRITERIA_UNDERSPECIFIED,
            -max(3, weights.success_criteria // 2),
        )

    if analysis.scope_leak and analysis.has_scope_bounds:
        tally.add(ScoreFactor.SCOPE_BOUNDED, weights.scope_bounds)

    questions_allowed = allows_questions(intent)
    if (ambiguous or underspecified) and analysis.has_questions_heading:
        tally.add(ScoreFactor.QUESTIONS_FOR_AMBIGUITY, weights.questions)
    elif ambiguous and questions_allowed:
        tally.add(ScoreFactor.MISSING_QUESTIONS_AMBIGUOUS, -max(2, max(1, weights.questions // 2)))
    elif underspecified and questions_allowed:
        tally.add(ScoreFactor.MISSING_QUESTIONS_UNDERSPECIFIED, -max(2, weights.questions // 2))


def score_candidate(
    analysis: Analysis,
    text: str,
    *,
    weights: ScoringWeights,
    context: OptimizationContext,
    policy: DomainPolicy,
    underspecified: bool,
    semantic_mode: bool,
) -> ScoreResult:
    """Score text in semantic or structured mode, then apply the common factors.

    `underspecified` is the baseline's verdict, so every candidate of one call
    is judged against the same bar.
    """
    tally = _Tally()
    intent = infer_intent(text)

    if semantic_mode:
        _score_semantic(tally, analysis, text, intent)
    else:
        _score_structured(
            tally, analysis, text, intent, weights, context.scenario, underspecified
        )

    if contains_hedging(text):
        tally.add(ScoreFactor.HEDGING_LEXICON, -2)

    example_bonus = min(EXAMPLE_BONUS_CAP, analysis.examples_count * weights.examples_per_unit)
    if example_bonus > 0:
        tally.add(ScoreFactor.EXAMPLES, example_bonus)

    if not semantic_mode:
        if contains_all_keywords(policy.required_keywords, text):
            tally.add(ScoreFactor.DOMAIN_PACK, weights.domain_pack_bonus)
        if not missing_required_sections(policy, text):
            tally.add(ScoreFactor.QUALITY_GATE, weights.quality_gate_bonus)

    if analysis.token_estimate > HIGH_TOKEN_ESTIMATE:
        steps = (analysis.token_estimate - HIGH_TOKEN_ESTIMATE) // TOKEN_PENALTY_STEP
        tally.add(
            ScoreFactor.TOKEN_PENALTY,
            weights.token_penalty_base - min(TOKEN_PENALTY_CAP, steps * 2),
        )
        tally.warnings.append(f"Token estimate is high: {analysis.token_estimate}.")

    if analysis.contradictions:
        tally.add(ScoreFactor.CONTRADICTIONS, weights.contradiction_penalty)
        tally.warnings.extend(analysis.contradictions)

    if analysis.unresolved_placeholder_count > 0:
        tally.add(ScoreFactor.UNRESOLVED_PLACEHOLDERS, weights.unresolved_placeholder_penalty)
        tally.warnings.append(
            f"Unresolved placeholders detected: {analysis.unresolved_placeholder_count}."
        )

    if context.scenario is ScenarioProfile.JSON_STRUCTURED_OUTPUT and "json" not in text.lower():
        tally.add(ScoreFactor.JSON_MISMATCH, -6)

    return tally.result()
