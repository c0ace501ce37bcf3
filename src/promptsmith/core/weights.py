"""Scoring weights: defaults, clamping, learning from history and resolution."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from promptsmith.core.models.enums import WeightSource
from promptsmith.limits import HIGH_TOKEN_ESTIMATE, HISTORY_SAMPLE_LIMIT, MIN_HISTORY_SAMPLES

if TYPE_CHECKING:
    from collections.abc import Sequence

    from promptsmith.core.analysis import PromptAnalyzer
    from promptsmith.core.models.entities import OptimizationContext


WEIGHT_RANGES: dict[str, tuple[int, int]] = {
    "output_format": (5, 30),
    "deliverables": (5, 28),
    "constraints": (4, 22),
    "success_criteria": (4, 22),
    "scope_bounds": (3, 16),
    "questions": (0, 16),
    "examples_per_unit": (0, 10),
    "token_penalty_base": (-22, -2),
    "contradiction_penalty": (-24, -4),
    "unresolved_placeholder_penalty": (-14, -2),
    "domain_pack_bonus": (0, 16),
    "quality_gate_bonus": (0, 18),
}


class ScoringWeights(BaseModel):
    """Per-factor weights used by the scorer.

    Values may be constructed out of range; `clamped()` pulls every field back
    into its documented bounds and is idempotent.
    """

    model_config = ConfigDict(frozen=True)

    output_format: int = Field(default=20, description="Bonus for an output contract")
    deliverables: int = Field(default=15, description="Bonus for enumerated deliverables")
    constraints: int = Field(default=10, description="Bonus for a strong Constraints section")
    success_criteria: int = Field(default=10, description="Bonus for success criteria")
    scope_bounds: int = Field(default=8, description="Bonus for bounding a scope leak")
    questions: int = Field(default=5, description="Bonus for clarifying questions")
    examples_per_unit: int = Field(default=5, description="Bonus per example or code fence")
    token_penalty_base: int = Field(default=-8, description="Penalty once input is very long")
    contradiction_penalty: int = Field(
        default=-8, description="Penalty for remaining contradictions"
    )
    unresolved_placeholder_penalty: int = Field(
        default=-6, description="Penalty for unresolved {placeholders}"
    )
    domain_pack_bonus: int = Field(default=7, description="Bonus when all domain keywords appear")
    quality_gate_bonus: int = Field(default=8, description="Bonus when all required sections exist")

    def clamped(self) -> ScoringWeights:
        values = {
            name: min(max(getattr(self, name), low), high)
            for name, (low, high) in WEIGHT_RANGES.items()
        }
        return ScoringWeights(**values)

    @property
    def signature(self) -> str:
        """Colon-joined values in field order; part of the result cache key."""
        return ":".join(str(getattr(self, name)) for name in WEIGHT_RANGES)

    @property
    def is_default(self) -> bool:
        return self == DEFAULT_WEIGHTS


DEFAULT_WEIGHTS = ScoringWeights()


def learn_weights(history: Sequence[str], analyzer: PromptAnalyzer) -> ScoringWeights | None:
    """Nudge default weights toward what recent prompts tend to lack.

    Uses at most the first `HISTORY_SAMPLE_LIMIT` prompts (newest first) and
    returns None with fewer than `MIN_HISTORY_SAMPLES`.
    """
    sample = list(history[:HISTORY_SAMPLE_LIMIT])
    if len(sample) < MIN_HISTORY_SAMPLES:
        return None

    missing_output = 0
    missing_deliverables = 0
    missing_scope_bounds = 0
    contradiction_count = 0
    high_token_count = 0

    for prompt in sample:
        analysis = analyzer.analyze(prompt, 0)
        if not analysis.has_output_contract:
            missing_output += 1
        if not analysis.has_enumerated_deliverables:
            missing_deliverables += 1
        if analysis.scope_leak and not analysis.has_scope_bounds:
            missing_scope_bounds += 1
        contradiction_count += len(analysis.contradictions)
        if analysis.token_estimate > HIGH_TOKEN_ESTIMATE:
            high_token_count += 1

    total = len(sample)
    base = DEFAULT_WEIGHTS
    tuned = base.model_copy(
        update={
            "output_format": base.output_format + int(missing_output / total * 8),
            "deliverables": base.deliverables + int(missing_deliverables / total * 8),
            "scope_bounds": base.scope_bounds + int(missing_scope_bounds / total * 5),
            "token_penalty_base": base.token_penalty_base - int(high_token_count / total * 5),
            "contradiction_penalty": base.contradiction_penalty
            - int(contradiction_count / total * 6),
        }
    )
    return tuned.clamped()


def resolve_weights(
    context: OptimizationContext, analyzer: PromptAnalyzer
) -> tuple[ScoringWeights, WeightSource]:
    """Explicit weights win, then weights learned from history, then defaults."""
    if context.local_weights is not None:
        return context.local_weights.clamped(), WeightSource.LOCAL

    learned = learn_weights(context.history_prompts, analyzer)
    if learned is not None:
        return learned, WeightSource.LEARNED

    return DEFAULT_WEIGHTS, WeightSource.DEFAULTS
