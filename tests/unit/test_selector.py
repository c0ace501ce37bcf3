"""Tests for best-candidate selection and the anti-regression gate."""

from __future__ import annotations

import pytest

from promptsmith.core.analysis import PromptAnalyzer
from promptsmith.core.models.entities import (
    Candidate,
    OptimizationContext,
    ScoreResult,
    StructuralDelta,
)
from promptsmith.core.models.enums import TransformKey
from promptsmith.core.planner import BASELINE_TITLE
from promptsmith.core.policy import build_domain_policy
from promptsmith.core.selector import (
    ScoredCandidate,
    SelectionThresholds,
    fallback_warning,
    pick_best,
    should_promote,
    structural_delta,
)

pytestmark = pytest.mark.unit


def scored(analyzer: PromptAnalyzer, text: str, value: int, *, baseline: bool = False):
    transforms = () if baseline else (TransformKey.OUTPUT_FORMAT,)
    title = BASELINE_TITLE if baseline else "1 Add output format"
    return ScoredCandidate(
        Candidate(title, text, transforms), ScoreResult(value, {}, ()), analyzer.analyze(text)
    )


MEANINGFUL = StructuralDelta(gain=3, growth_ratio=1.5, meaningful=True)


class TestPickBest:
    """Tests for pick_best."""

    def test_highest_score_wins(self, analyzer: PromptAnalyzer) -> None:
        entries = [scored(analyzer, "a", 1, baseline=True), scored(analyzer, "b", 5)]
        assert pick_best(entries) == 1

    def test_ties_go_to_earliest(self, analyzer: PromptAnalyzer) -> None:
        entries = [
            scored(analyzer, "a", 4, baseline=True),
            scored(analyzer, "b", 4),
            scored(analyzer, "c", 4),
        ]
        assert pick_best(entries) == 0


class TestShouldPromote:
    """Tests for the anti-regression gate."""

    def test_baseline_is_always_kept(self, analyzer: PromptAnalyzer) -> None:
        base = scored(analyzer, "a", 0, baseline=True)
        weak = StructuralDelta(gain=0, growth_ratio=1.0, meaningful=False)
        assert should_promote(base, base, weak)

    def test_requires_score_gain(self, analyzer: PromptAnalyzer) -> None:
        base = scored(analyzer, "a", 10, baseline=True)
        assert not should_promote(scored(analyzer, "b", 10), base, MEANINGFUL)
        assert should_promote(scored(analyzer, "b", 11), base, MEANINGFUL)

    def test_requires_structural_gain(self, analyzer: PromptAnalyzer) -> None:
        base = scored(analyzer, "a", 0, baseline=True)
        weak = StructuralDelta(gain=1, growth_ratio=1.1, meaningful=False)
        assert not should_promote(scored(analyzer, "b", 20), base, weak)

    def test_custom_thresholds(self, analyzer: PromptAnalyzer) -> None:
        base = scored(analyzer, "a", 0, baseline=True)
        strict = SelectionThresholds(min_score_gain=5)
        assert not should_promote(scored(analyzer, "b", 4), base, MEANINGFUL, strict)

    def test_fallback_warning(self, analyzer: PromptAnalyzer) -> None:
        warning = fallback_warning(
            scored(analyzer, "b", 7),
            scored(analyzer, "a", 5, baseline=True),
            StructuralDelta(gain=1, growth_ratio=2.0, meaningful=False),
        )
        assert warning == (
            "Anti-regression fallback: baseline retained due to insufficient structural gain "
            "(best=7, baseline=5, gain=1)."
        )


class TestStructuralDelta:
    """Tests for structural_delta."""

    def test_output_contract_and_required_section(
        self, analyzer: PromptAnalyzer, ide_context: OptimizationContext
    ) -> None:
        baseline = "fix the login bug"
        candidate = "fix the login bug\n\n### Output Format\nJSON"
        delta = structural_delta(
            baseline,
            analyzer.analyze(baseline),
            candidate,
            analyzer.analyze(candidate),
            context=ide_context,
            policy=build_domain_policy(ide_context),
            semantic_mode=False,
        )
        assert delta.gain == 3
        assert delta.meaningful
        assert delta.growth_ratio == len(candidate) / len(baseline)

    def test_contradiction_repair_in_semantic_mode(self, analyzer: PromptAnalyzer) -> None:
        context = OptimizationContext()
        baseline = "Be concise but explain the design in its entirety."
        candidate = (
            "Be concise but explain the design scope-complete.\n\n### Constraints\n"
            "- Keep output concise while remaining scope-complete."
        )
        delta = structural_delta(
            baseline,
            analyzer.analyze(baseline),
            candidate,
            analyzer.analyze(candidate),
            context=context,
            policy=build_domain_policy(context),
            semantic_mode=True,
        )
        assert delta.gain == 3

    def test_identical_text_has_no_gain(self, analyzer: PromptAnalyzer) -> None:
        context = OptimizationContext()
        text = "Plan a trip"
        analysis = analyzer.analyze(text)
        delta = structural_delta(
            text,
            analysis,
            text,
            analysis,
            context=context,
            policy=build_domain_policy(context),
            semantic_mode=False,
        )
        assert delta == StructuralDelta(gain=0, growth_ratio=1.0, meaningful=False)
