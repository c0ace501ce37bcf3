"""Tests for PromptOptimizer end to end."""

from __future__ import annotations

import pytest
from hypothesis import given, settings

import promptsmith.core.optimizer as optimizer_module
from promptsmith.core.analysis import PromptAnalyzer
from promptsmith.core.gaps import detect_gaps, prefers_semantic_rewrite
from promptsmith.core.models.entities import OptimizationContext
from promptsmith.core.models.enums import ScenarioProfile
from promptsmith.core.optimizer import SCOPE_LEAK_WARNING, PromptOptimizer, build_cache_key
from promptsmith.core.policy import build_domain_policy
from promptsmith.core.segments import code_fences
from promptsmith.core.selector import SelectionThresholds
from promptsmith.core.weights import DEFAULT_WEIGHTS, ScoringWeights
from promptsmith.debug_log import log_buffer
from tests.strategies import prompts_with_fences, prose_blocks, scenarios, targets

pytestmark = pytest.mark.unit


class TestOptimize:
    """Tests for the main optimize() scenarios."""

    def test_empty_input_is_returned_unchanged(self, optimizer: PromptOptimizer) -> None:
        result = optimizer.optimize("   \n ")
        assert result.optimized_text == "   \n "
        assert result.selected_candidate_title == "0 Baseline"
        assert result.score == 0
        assert result.breakdown == {}
        assert result.warnings == ()

    def test_short_bug_report_gets_structure(
        self, optimizer: PromptOptimizer, ide_context: OptimizationContext
    ) -> None:
        result = optimizer.optimize("fix the login bug", ide_context)
        assert result.selected_candidate_title != "0 Baseline"
        assert "### Requirements" in result.optimized_text
        assert "### Output Format" in result.optimized_text
        assert "### Questions" not in result.optimized_text
        assert result.score > optimizer.baseline_score("fix the login bug", ide_context)

    def test_short_story_gets_semantic_rewrite(self, optimizer: PromptOptimizer) -> None:
        result = optimizer.optimize("Write a short story about a lighthouse keeper")
        assert result.selected_candidate_title == "1 Semantic rewrite expansion"
        assert "\n" not in result.optimized_text
        assert "lighthouse keeper" in result.optimized_text
        assert "### Questions" not in result.optimized_text

    def test_contradiction_is_repaired(self, optimizer: PromptOptimizer) -> None:
        result = optimizer.optimize("Be concise but explain the design in its entirety.")
        assert "in its entirety" not in result.optimized_text
        assert "Concise vs exhaustive detail conflict." not in result.warnings

    def test_unresolved_placeholder_is_kept_and_reported(
        self, optimizer: PromptOptimizer
    ) -> None:
        result = optimizer.optimize("Summarize the notes on {topic} for the team.")
        assert "{topic}" in result.optimized_text
        assert result.breakdown["unresolved_placeholders"] == -6
        assert "Unresolved placeholders detected: 1." in result.warnings

    def test_complete_prompt_is_kept(
        self, optimizer: PromptOptimizer, complete_prompt: str
    ) -> None:
        result = optimizer.optimize(complete_prompt)
        assert result.optimized_text == complete_prompt
        assert result.selected_candidate_title == "0 Baseline"
        assert result.tuned_weights is None

    def test_input_is_trimmed(self, optimizer: PromptOptimizer, complete_prompt: str) -> None:
        result = optimizer.optimize(f"\n\n{complete_prompt}\n  ")
        assert result.optimized_text == complete_prompt

    def test_scope_leak_warning_when_baseline_kept(self) -> None:
        strict = PromptOptimizer(thresholds=SelectionThresholds(min_score_gain=1000))
        result = strict.optimize(
            "Refactor everything in the billing module.",
            OptimizationContext(scenario=ScenarioProfile.CLI_ASSISTANT),
        )
        assert result.selected_candidate_title == "0 Baseline"
        assert any(w.startswith("Anti-regression fallback") for w in result.warnings)
        assert SCOPE_LEAK_WARNING in result.warnings

    def test_learned_weights_are_reported(self, optimizer: PromptOptimizer) -> None:
        context = OptimizationContext(history_prompts=("do the thing",) * 5)
        result = optimizer.optimize("fix the login bug", context)
        assert result.tuned_weights is not None
        assert result.tuned_weights.output_format == 28

    def test_local_weights_are_reported_clamped(self, optimizer: PromptOptimizer) -> None:
        context = OptimizationContext(local_weights=ScoringWeights(questions=100))
        result = optimizer.optimize("fix the login bug", context)
        assert result.tuned_weights is not None
        assert result.tuned_weights.questions == 16


class TestCache:
    """Tests for result caching."""

    def test_identical_calls_generate_once(self, optimizer: PromptOptimizer, mocker) -> None:
        spy = mocker.spy(optimizer_module, "generate_candidates")
        first = optimizer.optimize("fix the login bug")
        second = optimizer.optimize("  fix the login bug  ")
        assert spy.call_count == 1
        assert first is second
        assert any(entry.message.startswith("Optimizer cache hit") for entry in log_buffer)

    def test_cached_breakdown_cannot_be_mutated(self, optimizer: PromptOptimizer) -> None:
        first = optimizer.optimize("fix the login bug")
        expected = dict(first.breakdown)
        with pytest.raises(TypeError):
            first.breakdown["injected"] = 1  # type: ignore[index]
        assert dict(optimizer.optimize("fix the login bug").breakdown) == expected

    def test_context_is_part_of_the_key(
        self, optimizer: PromptOptimizer, ide_context: OptimizationContext, mocker
    ) -> None:
        spy = mocker.spy(optimizer_module, "generate_candidates")
        optimizer.optimize("fix the login bug")
        optimizer.optimize("fix the login bug", ide_context)
        assert spy.call_count == 2

    def test_clear_cache(self, optimizer: PromptOptimizer, mocker) -> None:
        spy = mocker.spy(optimizer_module, "generate_candidates")
        optimizer.optimize("fix the login bug")
        optimizer.clear_cache()
        optimizer.optimize("fix the login bug")
        assert spy.call_count == 2

    def test_instances_do_not_share_cache(self, mocker) -> None:
        spy = mocker.spy(optimizer_module, "generate_candidates")
        PromptOptimizer().optimize("fix the login bug")
        PromptOptimizer().optimize("fix the login bug")
        assert spy.call_count == 2

    def test_cache_key_fields(self) -> None:
        context = OptimizationContext(history_prompts=("a", "b"))
        key = build_cache_key("text", context, DEFAULT_WEIGHTS)
        assert key == (
            "Claude|General Assistant|2|20:15:10:10:8:5:5:-8:-8:-6:7:8|text"
        )


class TestProperties:
    """Properties that hold for every input."""

    @settings(deadline=None)
    @given(text=prose_blocks, target=targets, scenario=scenarios)
    def test_never_scores_below_baseline(self, text, target, scenario) -> None:
        optimizer = PromptOptimizer()
        context = OptimizationContext(target=target, scenario=scenario)
        result = optimizer.optimize(text, context)
        assert result.score >= optimizer.baseline_score(text, context)

    @settings(deadline=None)
    @given(text=prompts_with_fences(), scenario=scenarios)
    def test_code_fences_survive(self, text, scenario) -> None:
        result = PromptOptimizer().optimize(text, OptimizationContext(scenario=scenario))
        assert code_fences(result.optimized_text + "\n") == code_fences(text.strip() + "\n")

    @settings(deadline=None)
    @given(text=prose_blocks, scenario=scenarios)
    def test_gap_free_output_is_stable(self, text, scenario) -> None:
        analyzer = PromptAnalyzer()
        optimizer = PromptOptimizer(analyzer=analyzer)
        context = OptimizationContext(scenario=scenario)
        first = optimizer.optimize(text, context).optimized_text

        analysis = analyzer.analyze(first)
        gaps = detect_gaps(
            first,
            analysis,
            context,
            build_domain_policy(context),
            prefer_semantic=prefers_semantic_rewrite(first, analysis, context),
        )
        if gaps.has_any_gap:
            return
        assert optimizer.optimize(first, context).optimized_text == first
