"""Tests for scoring weights."""

from __future__ import annotations

import pytest
from hypothesis import given
from pydantic import ValidationError

from promptsmith.core.analysis import PromptAnalyzer
from promptsmith.core.models.entities import OptimizationContext
from promptsmith.core.models.enums import WeightSource
from promptsmith.core.weights import (
    DEFAULT_WEIGHTS,
    WEIGHT_RANGES,
    ScoringWeights,
    learn_weights,
    resolve_weights,
)
from tests.strategies import raw_weights

pytestmark = pytest.mark.unit

COMPLETE_HISTORY_PROMPT = "### Output Format\nJSON\n### Deliverables\n1. A report"


class TestScoringWeights:
    """Tests for ScoringWeights."""

    def test_defaults_are_in_range(self) -> None:
        assert DEFAULT_WEIGHTS.clamped() == DEFAULT_WEIGHTS
        assert DEFAULT_WEIGHTS.is_default

    def test_signature(self) -> None:
        assert DEFAULT_WEIGHTS.signature == "20:15:10:10:8:5:5:-8:-8:-6:7:8"
        assert ScoringWeights(questions=6).signature != DEFAULT_WEIGHTS.signature

    def test_frozen(self) -> None:
        with pytest.raises(ValidationError):
            DEFAULT_WEIGHTS.output_format = 1  # type: ignore[misc]

    @given(raw_weights)
    def test_clamped_is_in_range_and_idempotent(self, values: dict[str, int]) -> None:
        clamped = ScoringWeights(**values).clamped()
        for name, (low, high) in WEIGHT_RANGES.items():
            assert low <= getattr(clamped, name) <= high
        assert clamped.clamped() == clamped


class TestLearnWeights:
    """Tests for learning weights from history."""

    def test_too_few_prompts(self, analyzer: PromptAnalyzer) -> None:
        assert learn_weights(["do the thing"] * 4, analyzer) is None

    def test_bare_prompts_raise_structure_weights(self, analyzer: PromptAnalyzer) -> None:
        learned = learn_weights(["do the thing"] * 5, analyzer)
        assert learned is not None
        assert learned.output_format == 28
        assert learned.deliverables == 23
        assert learned.model_copy(update={"output_format": 20, "deliverables": 15}).is_default

    def test_only_recent_prompts_count(self, analyzer: PromptAnalyzer) -> None:
        history = [COMPLETE_HISTORY_PROMPT] * 50 + ["do the thing"] * 10
        learned = learn_weights(history, analyzer)
        assert learned is not None
        assert learned.is_default

    def test_contradictions_deepen_penalty(self, analyzer: PromptAnalyzer) -> None:
        history = ["Be concise but explain the design in its entirety."] * 5
        learned = learn_weights(history, analyzer)
        assert learned is not None
        assert learned.contradiction_penalty == -14
        assert learned.scope_bounds == 13


class TestResolveWeights:
    """Tests for weight precedence."""

    def test_local_weights_win(self, analyzer: PromptAnalyzer) -> None:
        context = OptimizationContext(
            history_prompts=("do the thing",) * 5,
            local_weights=ScoringWeights(output_format=99),
        )
        weights, source = resolve_weights(context, analyzer)
        assert source is WeightSource.LOCAL
        assert weights.output_format == 30

    def test_history_is_learned(self, analyzer: PromptAnalyzer) -> None:
        context = OptimizationContext(history_prompts=("do the thing",) * 5)
        weights, source = resolve_weights(context, analyzer)
        assert source is WeightSource.LEARNED
        assert weights.output_format == 28

    def test_defaults(self, analyzer: PromptAnalyzer) -> None:
        assert resolve_weights(OptimizationContext(), analyzer) == (
            DEFAULT_WEIGHTS,
            WeightSource.DEFAULTS,
        )
