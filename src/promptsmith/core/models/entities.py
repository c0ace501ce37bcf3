"""Value objects passed between optimizer stages."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import TYPE_CHECKING

from promptsmith.core.models.enums import PromptTarget, ScenarioProfile, SectionKey, TransformKey

if TYPE_CHECKING:
    from collections.abc import Mapping

    from promptsmith.core.weights import ScoringWeights


def read_only(mapping: Mapping[str, int]) -> Mapping[str, int]:
    """Immutable view over a private copy of mapping."""
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True, slots=True)
class Analysis:
    """Structural and lexical facts extracted from the prose of one text."""

    goal_line: str
    ambiguity_count: int
    scope_leak: bool
    headings: frozenset[SectionKey]
    has_enumerated_deliverables: bool
    examples_count: int
    contradictions: tuple[str, ...]
    token_estimate: int
    has_strong_constraint_markers: bool
    has_output_template: bool
    has_scope_bounds: bool
    unresolved_placeholder_count: int
    is_vague_goal: bool

    @property
    def has_constraints_heading(self) -> bool:
        return SectionKey.CONSTRAINTS in self.headings

    @property
    def has_output_format_heading(self) -> bool:
        return SectionKey.OUTPUT_FORMAT in self.headings

    @property
    def has_questions_heading(self) -> bool:
        return SectionKey.QUESTIONS in self.headings

    @property
    def has_success_criteria_heading(self) -> bool:
        return SectionKey.SUCCESS_CRITERIA in self.headings

    @property
    def has_output_contract(self) -> bool:
        """True when either an Output Format heading or a format template is present."""
        return self.has_output_format_heading or self.has_output_template

    @property
    def is_ambiguous(self) -> bool:
        return self.ambiguity_count >= 2 or self.is_vague_goal


@dataclass(frozen=True, slots=True)
class GapProfile:
    """Which structural elements are missing or weak for one input."""

    needs_canonicalization: bool = False
    needs_contradiction_repair: bool = False
    needs_sentence_rewrite: bool = False
    needs_semantic_expansion: bool = False
    needs_requirements: bool = False
    needs_deliverables: bool = False
    needs_output_format: bool = False
    needs_success_criteria: bool = False
    needs_scope_bounds: bool = False
    needs_questions: bool = False
    needs_domain_pack: bool = False
    needs_quality_gate: bool = False
    needs_dedupe: bool = False

    @property
    def has_any_gap(self) -> bool:
        return any(getattr(self, f.name) for f in fields(self))

    def active_names(self) -> list[str]:
        """Names of the gaps that are set, for logging."""
        return [f.name for f in fields(self) if getattr(self, f.name)]


@dataclass(frozen=True, slots=True)
class DomainPolicy:
    """Structural requirements implied by a (target, scenario) pair."""

    required_keywords: tuple[str, ...]
    required_sections: tuple[SectionKey, ...]
    supplemental_sections: tuple[tuple[str, tuple[str, ...]], ...]


@dataclass(frozen=True, slots=True)
class Candidate:
    """One rewrite hypothesis."""

    title: str
    text: str
    transforms: tuple[TransformKey, ...] = ()

    @property
    def is_baseline(self) -> bool:
        return not self.transforms


@dataclass(frozen=True, slots=True)
class ScoreResult:
    """Score of one candidate with its explainable breakdown."""

    score: int
    breakdown: Mapping[str, int]
    warnings: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "breakdown", read_only(self.breakdown))


@dataclass(frozen=True, slots=True)
class StructuralDelta:
    """Structural comparison of a candidate against the baseline."""

    gain: int
    growth_ratio: float
    meaningful: bool


@dataclass(frozen=True, slots=True)
class OptimizationContext:
    """Caller-supplied context for one optimize() call."""

    target: PromptTarget = PromptTarget.CLAUDE
    scenario: ScenarioProfile = ScenarioProfile.GENERAL_ASSISTANT
    history_prompts: tuple[str, ...] = ()
    local_weights: ScoringWeights | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.history_prompts, tuple):
            object.__setattr__(self, "history_prompts", tuple(self.history_prompts))


@dataclass(frozen=True, slots=True)
class OptimizationResult:
    """Final output of one optimize() call."""

    optimized_text: str
    selected_candidate_title: str
    score: int
    breakdown: Mapping[str, int] = field(default_factory=dict)
    warnings: tuple[str, ...] = ()
    tuned_weights: ScoringWeights | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "breakdown", read_only(self.breakdown))
