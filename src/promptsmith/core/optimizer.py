"""PromptOptimizer: analyze, plan, generate, score and select one rewrite."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from promptsmith.core.analysis import PromptAnalyzer
from promptsmith.core.cache import ResultCache
from promptsmith.core.gaps import detect_gaps, is_underspecified, prefers_semantic_rewrite
from promptsmith.core.models.entities import Candidate, OptimizationContext, OptimizationResult
from promptsmith.core.models.enums import WeightSource
from promptsmith.core.planner import BASELINE_TITLE, build_transform_plans, generate_candidates
from promptsmith.core.policy import build_domain_policy
from promptsmith.core.scorer import score_candidate
from promptsmith.core.segments import count_code_fences
from promptsmith.core.selector import (
    ScoredCandidate,
    SelectionThresholds,
    fallback_warning,
    pick_best,
    should_promote,
    structural_delta,
)
from promptsmith.core.text import dedupe_preserving_order
from promptsmith.core.transforms import TransformEnv, TransformInterpreter
from promptsmith.core.weights import learn_weights, resolve_weights
from promptsmith.debug_log import log
from promptsmith.limits import DEFAULT_CACHE_CAPACITY

if TYPE_CHECKING:
    from collections.abc import Sequence

    from promptsmith.core.models.entities import Analysis, DomainPolicy, GapProfile
    from promptsmith.core.weights import ScoringWeights

SCOPE_LEAK_WARNING = "Scope leak terms remain; consider tightening bounds explicitly."

_cache_log = log.for_stage("cache")
_gaps_log = log.for_stage("gaps")
_select_log = log.for_stage("select")


def build_cache_key(text: str, context: OptimizationContext, weights: ScoringWeights) -> str:
    return "|".join(
        (
            context.target.value,
            context.scenario.value,
            str(len(context.history_prompts)),
            weights.signature,
            text,
        )
    )


@dataclass(frozen=True, slots=True)
class _Run:
    """Everything one optimize() call decides up front about its baseline."""

    baseline: str
    analysis: Analysis
    context: OptimizationContext
    policy: DomainPolicy
    weights: ScoringWeights
    tuned_weights: ScoringWeights | None
    fence_count: int
    underspecified: bool
    semantic_mode: bool


class PromptOptimizer:
    """Heuristic prompt rewriter.

    Each instance owns its analyzer (and regex cache), its result cache and
    its anti-regression thresholds, so separate instances share no state.
    `optimize()` never raises for any string input; degraded conditions are
    reported through `OptimizationResult.warnings`.
    """

    def __init__(
        self,
        *,
        cache_capacity: int = DEFAULT_CACHE_CAPACITY,
        thresholds: SelectionThresholds | None = None,
        analyzer: PromptAnalyzer | None = None,
    ) -> None:
        self.analyzer = analyzer if analyzer is not None else PromptAnalyzer()
        self.cache = ResultCache(cache_capacity)
        self.thresholds = thresholds or SelectionThresholds()

    def clear_cache(self) -> None:
        self.cache.clear()

    def learn_weights(self, history: Sequence[str]) -> ScoringWeights | None:
        """Weights tuned from recent prompts, or None for too small a sample."""
        return learn_weights(history, self.analyzer)

    def baseline_score(self, text: str, context: OptimizationContext | None = None) -> int:
        """Score of the trimmed input itself, as optimize() would judge it."""
        context = context or OptimizationContext()
        baseline = text.strip()
        if not baseline:
            return 0
        weights, source = resolve_weights(context, self.analyzer)
        run = self._prepare(baseline, context, weights, source)
        return self._score(run, Candidate(BASELINE_TITLE, baseline), run.analysis).score.score

    def optimize(self, text: str, context: OptimizationContext | None = None) -> OptimizationResult:
        """Return the best rewrite of text, or the trimmed text when nothing beats it.

        Whitespace-only input comes back unchanged with a zero score. Results
        are cached per (target, scenario, history size, weights, input).
        """
        context = context or OptimizationContext()
        baseline = text.strip()
        if not baseline:
            return OptimizationResult(
                optimized_text=text, selected_candidate_title=BASELINE_TITLE, score=0
            )

        weights, source = resolve_weights(context, self.analyzer)
        cache_key = build_cache_key(baseline, context, weights)

        cached = self.cache.get(cache_key)
        if cached is not None:
            _cache_log.debug("Optimizer cache hit", title=cached.selected_candidate_title)
            return cached
        _cache_log.debug(
            "Optimizer cache miss",
            target=context.target.value,
            scenario=context.scenario.value,
            weights=source.value,
        )

        run = self._prepare(baseline, context, weights, source)
        gaps = detect_gaps(
            baseline, run.analysis, context, run.policy, prefer_semantic=run.semantic_mode
        )
        if gaps.has_any_gap:
            _gaps_log.debug(
                "Gaps detected", gaps=gaps.active_names(), semantic=run.semantic_mode
            )
            result = self._select(run, gaps)
        else:
            _gaps_log.debug("No gaps detected; keeping baseline")
            scored = self._score(run, Candidate(BASELINE_TITLE, baseline), run.analysis)
            result = self._result(run, scored, list(scored.score.warnings))

        self.cache.put(cache_key, result)
        return result

    def _prepare(
        self,
        baseline: str,
        context: OptimizationContext,
        weights: ScoringWeights,
        source: WeightSource,
    ) -> _Run:
        fence_count = count_code_fences(baseline)
        analysis = self.analyzer.analyze(baseline, fence_count)
        return _Run(
            baseline=baseline,
            analysis=analysis,
            context=context,
            policy=build_domain_policy(context),
            weights=weights,
            tuned_weights=None if source is WeightSource.DEFAULTS else weights,
            fence_count=fence_count,
            underspecified=is_underspecified(baseline, analysis),
            semantic_mode=prefers_semantic_rewrite(baseline, analysis, context),
        )

    def _score(
        self, run: _Run, candidate: Candidate, analysis: Analysis | None = None
    ) -> ScoredCandidate:
        if analysis is None:
            analysis = self.analyzer.analyze(candidate.text, run.fence_count)
        score = score_candidate(
            analysis,
            candidate.text,
            weights=run.weights,
            context=run.context,
            policy=run.policy,
            underspecified=run.underspecified,
            semantic_mode=run.semantic_mode,
        )
        return ScoredCandidate(candidate, score, analysis)

    def _select(self, run: _Run, gaps: GapProfile) -> OptimizationResult:
        interpreter = TransformInterpreter(
            TransformEnv(
                context=run.context,
                policy=run.policy,
                underspecified_hint=run.underspecified,
                analyzer=self.analyzer,
            )
        )
        candidates = generate_candidates(run.baseline, build_transform_plans(gaps), interpreter)
        scored = [self._score(run, candidate) for candidate in candidates]
        _select_log.debug("Candidates scored", count=len(scored))

        baseline = scored[0]
        best = scored[pick_best(scored)]
        warnings = list(best.score.warnings)

        delta = structural_delta(
            baseline.candidate.text,
            baseline.analysis,
            best.candidate.text,
            best.analysis,
            context=run.context,
            policy=run.policy,
            semantic_mode=run.semantic_mode,
            thresholds=self.thresholds,
        )

        selected = best
        if not should_promote(best, baseline, delta, self.thresholds):
            warning = fallback_warning(best, baseline, delta)
            _select_log.info(warning)
            warnings.append(warning)
            selected = baseline

        if baseline.analysis.scope_leak and not selected.analysis.has_scope_bounds:
            warnings.append(SCOPE_LEAK_WARNING)

        _select_log.debug(
            "Candidate selected",
            title=selected.candidate.title,
            score=selected.score.score,
            gain=delta.gain,
        )
        return self._result(run, selected, warnings)

    @staticmethod
    def _result(run: _Run, selected: ScoredCandidate, warnings: list[str]) -> OptimizationResult:
        return OptimizationResult(
            optimized_text=selected.candidate.text,
            selected_candidate_title=selected.candidate.title,
            score=selected.score.score,
            breakdown=selected.score.breakdown,
            warnings=tuple(dedupe_preserving_order(warnings)),
            tuned_weights=run.tuned_weights,
        )
