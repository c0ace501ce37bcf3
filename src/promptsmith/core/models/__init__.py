"""Domain models for the prompt optimizer."""

from promptsmith.core.models.entities import (
    Analysis,
    Candidate,
    DomainPolicy,
    GapProfile,
    OptimizationContext,
    OptimizationResult,
    ScoreResult,
    StructuralDelta,
)
from promptsmith.core.models.enums import (
    PromptIntent,
    PromptTarget,
    ScenarioProfile,
    ScoreFactor,
    SectionKey,
    SegmentKind,
    TransformKey,
    WeightSource,
)

__all__ = [
    "Analysis",
    "Candidate",
    "DomainPolicy",
    "GapProfile",
    "OptimizationContext",
    "OptimizationResult",
    "PromptIntent",
    "PromptTarget",
    "ScenarioProfile",
    "ScoreFactor",
    "ScoreResult",
    "SectionKey",
    "SegmentKind",
    "StructuralDelta",
    "TransformKey",
    "WeightSource",
]
