"""Tests for intent inference and domain policy."""

from __future__ import annotations

import pytest

from promptsmith.core.intent import allows_questions, infer_intent
from promptsmith.core.models.entities import OptimizationContext
from promptsmith.core.models.enums import PromptIntent, PromptTarget, ScenarioProfile, SectionKey
from promptsmith.core.policy import build_domain_policy, contains_all_keywords

pytestmark = pytest.mark.unit


class TestInferIntent:
    """Tests for the lexical intent classifier."""

    @pytest.mark.parametrize(
        ("text", "intent"),
        [
            ("Write a short story about a lighthouse keeper", PromptIntent.CREATIVE_STORY),
            ("Write a haiku about autumn", PromptIntent.CREATIVE_STORY),
            ("Design the rules for a chess variant", PromptIntent.GAME_DESIGN),
            ("fix the login bug", PromptIntent.SOFTWARE_BUILD),
            ("Build a website for my bakery", PromptIntent.SOFTWARE_BUILD),
            ("Find the files that mention invoices", PromptIntent.GENERAL),
            ("Plan a birthday party for ten people", PromptIntent.GENERAL),
        ],
    )
    def test_classification(self, text: str, intent: PromptIntent) -> None:
        assert infer_intent(text) is intent

    def test_story_wins_over_game(self) -> None:
        intent = infer_intent("Write a story about a chess game design")
        assert intent is PromptIntent.CREATIVE_STORY

    def test_only_general_allows_questions(self) -> None:
        assert allows_questions(PromptIntent.GENERAL)
        assert not allows_questions(PromptIntent.SOFTWARE_BUILD)
        assert not allows_questions(PromptIntent.CREATIVE_STORY)


class TestDomainPolicy:
    """Tests for scenario and target policy composition."""

    def test_default_context(self) -> None:
        policy = build_domain_policy(OptimizationContext())
        assert policy.required_keywords == ("deterministic", "validation")
        assert policy.supplemental_sections == ()
        assert SectionKey.QUESTIONS not in policy.required_sections

    def test_ide_keywords_are_deduped(self) -> None:
        policy = build_domain_policy(
            OptimizationContext(
                target=PromptTarget.AGENTIC_IDE, scenario=ScenarioProfile.IDE_CODING_ASSISTANT
            )
        )
        assert policy.required_keywords == (
            "Unified Diff",
            "Validation Commands",
            "Proposed File Changes",
        )
        assert [title for title, _ in policy.supplemental_sections] == [
            "Constraints",
            "Proposed File Changes",
        ]

    def test_tool_agent_requires_questions(self) -> None:
        policy = build_domain_policy(
            OptimizationContext(scenario=ScenarioProfile.TOOL_USING_AGENT)
        )
        assert SectionKey.QUESTIONS in policy.required_sections

    def test_perplexity_adds_citation_constraints(self) -> None:
        policy = build_domain_policy(OptimizationContext(target=PromptTarget.PERPLEXITY))
        assert "primary sources" in policy.required_keywords
        assert policy.supplemental_sections[0][0] == "Constraints"

    def test_contains_all_keywords(self) -> None:
        assert contains_all_keywords((), "anything")
        assert contains_all_keywords(("JSON", "no markdown"), "Return json. No Markdown.")
        assert not contains_all_keywords(("json", "citations"), "Return JSON")


class TestNames:
    """Tests for short-name resolution used by the CLI and config."""

    def test_round_trip_targets(self) -> None:
        for target in PromptTarget:
            assert PromptTarget.from_name(target.short_name) is target
            assert PromptTarget.from_name(target.value.upper()) is target

    def test_round_trip_scenarios(self) -> None:
        for scenario in ScenarioProfile:
            assert ScenarioProfile.from_name(scenario.short_name) is scenario

    def test_unknown_name_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown prompt target"):
            PromptTarget.from_name("llama")
