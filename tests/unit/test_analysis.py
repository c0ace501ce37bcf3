"""Tests for prompt feature extraction."""

from __future__ import annotations

import pytest

from promptsmith.core.analysis import (
    CONCISE_VS_EXHAUSTIVE,
    NO_CODE_VS_IMPLEMENT,
    PromptAnalyzer,
    contains_hedging,
    has_duplicate_lines,
)
from promptsmith.core.models.enums import SectionKey

pytestmark = pytest.mark.unit


class TestContradictions:
    """Tests for conflicting instruction detection."""

    def test_concise_vs_exhaustive(self, analyzer: PromptAnalyzer) -> None:
        analysis = analyzer.analyze("Be concise but explain the design in its entirety.")
        assert analysis.contradictions == (CONCISE_VS_EXHAUSTIVE,)
        assert analysis.scope_leak

    def test_no_code_vs_implement(self, analyzer: PromptAnalyzer) -> None:
        analysis = analyzer.analyze("Do not write code, just implement the plan.")
        assert analysis.contradictions == (NO_CODE_VS_IMPLEMENT,)

    def test_no_conflict(self, analyzer: PromptAnalyzer) -> None:
        assert analyzer.analyze("Be concise.").contradictions == ()


class TestLexicalFeatures:
    """Tests for token-based features."""

    def test_vague_goal_is_ambiguous(self, analyzer: PromptAnalyzer) -> None:
        analysis = analyzer.analyze("Maybe improve the parser.")
        assert analysis.ambiguity_count == 2
        assert analysis.is_vague_goal
        assert analysis.is_ambiguous

    def test_tokens_match_whole_words(self, analyzer: PromptAnalyzer) -> None:
        analysis = analyzer.analyze("List the items etcetera.")
        assert analysis.ambiguity_count == 0
        assert not analysis.is_ambiguous

    def test_hedging_uses_substrings(self) -> None:
        assert contains_hedging("List the items etcetera.")
        assert not contains_hedging("List the items.")

    def test_fenced_code_is_ignored(self, analyzer: PromptAnalyzer) -> None:
        analysis = analyzer.analyze("Summarize the log.\n```\nmaybe everything etc\n```")
        assert analysis.ambiguity_count == 0
        assert not analysis.scope_leak
        assert analysis.examples_count == 1

    def test_placeholders_are_counted(self, analyzer: PromptAnalyzer) -> None:
        analysis = analyzer.analyze("Summarize {topic} for {audience}.")
        assert analysis.unresolved_placeholder_count == 2

    def test_strong_constraint_markers(self, analyzer: PromptAnalyzer) -> None:
        assert analyzer.analyze("You must use only the stdlib.").has_strong_constraint_markers
        assert not analyzer.analyze("You must use the stdlib.").has_strong_constraint_markers

    def test_token_estimate_has_floor(self, analyzer: PromptAnalyzer) -> None:
        assert analyzer.analyze("abc").token_estimate == 1
        assert analyzer.analyze("a" * 400).token_estimate == 100


class TestStructuralFeatures:
    """Tests for section-based features."""

    def test_sections_and_contracts(self, analyzer: PromptAnalyzer) -> None:
        text = "### Goal\nShip it\n### Deliverables\n1. Patch\n### Output Format\nJSON"
        analysis = analyzer.analyze(text)
        assert analysis.headings == frozenset(
            {SectionKey.GOAL, SectionKey.DELIVERABLES, SectionKey.OUTPUT_FORMAT}
        )
        assert analysis.has_enumerated_deliverables
        assert analysis.has_output_template
        assert analysis.has_output_contract
        assert analysis.goal_line == "### Goal"

    def test_unnumbered_deliverables(self, analyzer: PromptAnalyzer) -> None:
        analysis = analyzer.analyze("### Deliverables\nA patch")
        assert SectionKey.DELIVERABLES in analysis.headings
        assert not analysis.has_enumerated_deliverables

    def test_examples_count_includes_prior_fences(self, analyzer: PromptAnalyzer) -> None:
        text = "Example: a\nExample: b\n```\nx\n```"
        assert analyzer.analyze(text).examples_count == 3
        assert analyzer.analyze(text, prior_fence_count=0).examples_count == 2


class TestDuplicateLines:
    """Tests for duplicate line detection."""

    def test_duplicates_ignore_case_and_spacing(self) -> None:
        assert has_duplicate_lines("Keep it  short\n\nkeep it short")

    def test_blank_lines_are_not_duplicates(self) -> None:
        assert not has_duplicate_lines("one\n\n\ntwo")
