"""Domain policy: keywords and sections a (target, scenario) pair expects."""

from __future__ import annotations

from typing import TYPE_CHECKING

from promptsmith.core.models.entities import DomainPolicy
from promptsmith.core.models.enums import PromptTarget, ScenarioProfile, SectionKey
from promptsmith.core.text import dedupe_preserving_order

if TYPE_CHECKING:
    from promptsmith.core.models.entities import OptimizationContext

_BASE_SECTIONS = (
    SectionKey.GOAL,
    SectionKey.CONSTRAINTS,
    SectionKey.DELIVERABLES,
    SectionKey.OUTPUT_FORMAT,
    SectionKey.SUCCESS_CRITERIA,
)


def build_domain_policy(context: OptimizationContext) -> DomainPolicy:
    keywords: list[str] = []
    sections: list[SectionKey] = list(_BASE_SECTIONS)
    supplements: list[tuple[str, tuple[str, ...]]] = []

    match context.scenario:
        case ScenarioProfile.CLI_ASSISTANT:
            keywords += ["shell commands only", "copy/paste runnable"]
            supplements.append(
                (
                    "Constraints",
                    (
                        "- Return shell commands only unless explanation is requested.",
                        "- Keep commands deterministic and executable as written.",
                    ),
                )
            )
        case ScenarioProfile.JSON_STRUCTURED_OUTPUT:
            keywords += ["json", "no markdown"]
            supplements.append(
                ("Output Format", ("Return JSON only.", "No markdown, no prose, no code fences."))
            )
        case ScenarioProfile.IDE_CODING_ASSISTANT:
            keywords += ["Unified Diff", "Validation Commands"]
            supplements.append(
                (
                    "Constraints",
                    (
                        "- Keep patch scope minimal and deterministic.",
                        "- Include changed files and deterministic test/validation steps.",
                    ),
                )
            )
        case ScenarioProfile.RESEARCH_SUMMARIZATION:
            keywords += ["Citations", "Confidence"]
            supplements.append(
                (
                    "Output Format",
                    (
                        "Use sections: Summary, Citations, Confidence.",
                        "Citations must include source URLs.",
                        "Assign confidence labels: High/Medium/Low.",
                    ),
                )
            )
        case ScenarioProfile.TOOL_USING_AGENT:
            keywords += ["Plan", "Tool Calls", "Final Output"]
            sections.append(SectionKey.QUESTIONS)
            supplements.append(
                (
                    "Output Format",
                    (
                        "Use sections: Plan, Tool Calls, Observations, Final Output.",
                        "Keep each tool call explicit and minimal.",
                    ),
                )
            )
        case ScenarioProfile.LONGFORM_WRITING:
            keywords += ["outline", "narrative continuity"]
            supplements.append(
                (
                    "Success Criteria",
                    (
                        "- Includes coherent outline and narrative continuity.",
                        "- Maintains tone consistency across sections.",
                    ),
                )
            )
        case ScenarioProfile.GENERAL_ASSISTANT:
            keywords += ["deterministic", "validation"]

    match context.target:
        case PromptTarget.PERPLEXITY:
            keywords += ["primary sources", "URL"]
            supplements.append(
                (
                    "Constraints",
                    (
                        "- Cite primary sources with direct URLs.",
                        "- Separate confirmed facts from assumptions.",
                    ),
                )
            )
        case PromptTarget.AGENTIC_IDE:
            keywords += ["Proposed File Changes", "Validation Commands"]
            supplements.append(
                (
                    "Proposed File Changes",
                    ("1. List touched files and purpose.", "2. Keep edits minimal and reversible."),
                )
            )
        case PromptTarget.CLAUDE | PromptTarget.GEMINI_CHATGPT:
            pass

    return DomainPolicy(
        required_keywords=tuple(dedupe_preserving_order(keywords)),
        required_sections=tuple(dedupe_preserving_order(sections)),
        supplemental_sections=tuple(supplements),
    )


def contains_all_keywords(keywords: tuple[str, ...], text: str) -> bool:
    """Case-insensitive substring check; an empty keyword list is satisfied."""
    lowered = text.lower()
    return all(keyword.lower() in lowered for keyword in keywords)
