"""Canned section bodies and the inference helpers that pick between them.

Every function here is pure: given prompt text and the call's scenario it
returns the lines a transform should insert. Wording is fixed so that
candidates stay deterministic across runs.
"""

from __future__ import annotations

import re

from promptsmith.core.intent import infer_intent, is_poetry_request
from promptsmith.core.models.enums import PromptIntent, ScenarioProfile
from promptsmith.core.segments import prose_text
from promptsmith.core.text import (
    capitalize_first,
    dedupe_preserving_order,
    first_sentence,
    token_set,
)
from promptsmith.limits import SEMANTIC_SPECIFICITY_CAP

GOAL_SEED_FALLBACK = "Clarify the exact task and required output before execution."
VALIDATION_DELIVERABLE = "Provide deterministic validation evidence for each major requirement."

SCOPE_BOUND_LINES = (
    "- Limit work to the explicit request only.",
    "- Do not expand scope to unrelated systems or files.",
    "- Avoid optional extras unless explicitly requested.",
)

CLARIFYING_QUESTION_LINES = (
    "- What is the exact target output and intended audience?",
    "- What constraints (time, tools, style, depth) are mandatory?",
    "- What should be considered out of scope?",
)

QUALITY_GATE_QUESTION_LINES = (
    "- Which acceptance checks are mandatory?",
    "- Which files/systems are strictly out of scope?",
)

CONTEXT_FALLBACK_LINE = "Use only the context provided in this prompt."

_ACTION_OBJECT_RE = re.compile(
    r"\b(fix|implement|refactor|write|create|update|remove|migrate|optimize|document|test"
    r"|benchmark|deploy|analyze|summarize|research|design|build)\b\s+([^\n\.,;:]{2,120})",
    re.IGNORECASE,
)
_ABOUT_SUBJECT_RE = re.compile(r"\babout\s+([^\n\.,;:]{2,120})", re.IGNORECASE)
_WHERE_THEME_RE = re.compile(r"\bwhere\s+([^\n\.;:]{2,140})", re.IGNORECASE)

_IMAGE_EDIT_CUES = (
    "edit the image",
    "edit image",
    "photo",
    "picture",
    "image",
    "wearing",
    "add",
    "remove background",
    "mask",
)
_VISUAL_TOKENS = frozenset({"animation", "website", "ui", "frontend", "interface", "animations"})
_GAME_TOKENS = frozenset({"game", "platformer", "chess"})


def goal_seed(text: str) -> str:
    """First prose sentence of text, or a generic clarification line."""
    return first_sentence(prose_text(text, "\n")) or GOAL_SEED_FALLBACK


def normalize_goal_sentence(raw: str) -> str:
    trimmed = raw.strip().strip(".")
    if not trimmed:
        return "Clarify and execute the exact user-requested goal."
    return capitalize_first(trimmed) + "."


def extract_phrase(pattern: re.Pattern[str], text: str) -> str | None:
    match = pattern.search(text)
    if match is None:
        return None
    captured = match.group(1).strip().strip(".,;:")
    return captured or None


def is_image_edit_request(lowered: str) -> bool:
    return any(cue in lowered for cue in _IMAGE_EDIT_CUES)


def default_deliverables(scenario: ScenarioProfile) -> list[str]:
    match scenario:
        case ScenarioProfile.CLI_ASSISTANT:
            return [
                "Provide exact copy/paste shell commands in execution order.",
                "Mark any optional command as explicit optional follow-up.",
                "Include a deterministic verification command sequence.",
            ]
        case ScenarioProfile.JSON_STRUCTURED_OUTPUT:
            return [
                "Return one valid JSON object that matches the required schema.",
                "Keep key names stable and deterministic.",
                "Include validation notes only as JSON fields when requested.",
            ]
        case ScenarioProfile.IDE_CODING_ASSISTANT:
            return [
                "Produce an ordered plan and targeted patch summary.",
                "List exact tests to add/update.",
                "Provide deterministic validation commands.",
            ]
        case _:
            return [
                "Provide the primary requested artifact.",
                "Provide ordered implementation steps.",
                "Provide validation evidence for completion.",
            ]


def scenario_output_format_lines(scenario: ScenarioProfile) -> list[str]:
    match scenario:
        case ScenarioProfile.JSON_STRUCTURED_OUTPUT:
            return [
                "Return JSON only.",
                "No markdown, no prose, no code fences.",
                "Use a stable object schema with deterministic key order.",
            ]
        case ScenarioProfile.CLI_ASSISTANT:
            return [
                "Return shell commands only unless explanation is explicitly requested.",
                "Commands must be copy/paste runnable.",
                "Use at most one shell comment line when a note is unavoidable.",
            ]
        case ScenarioProfile.IDE_CODING_ASSISTANT:
            return [
                "Use markdown headings in this order: Plan, Unified Diff, Tests, Validation Commands.",
                "Keep patch scope minimal and deterministic.",
                "List exact files and test commands.",
            ]
        case ScenarioProfile.TOOL_USING_AGENT:
            return [
                "Use sections: Plan, Tool Calls, Observations, Final Output.",
                "Emit tool calls only when required data is missing.",
                "Use explicit argument payloads for every tool call.",
            ]
        case _:
            return [
                "Use this markdown template exactly:",
                "1. Summary: <one paragraph>",
                "2. Deliverables:",
                "   - <item 1>",
                "   - <item 2>",
                "3. Validation:",
                "   - <check 1>",
                "   - <check 2>",
            ]


def output_format_lines(scenario: ScenarioProfile, text: str) -> list[str]:
    """Output contract for text; general-assistant prompts get an intent-specific one."""
    if scenario is ScenarioProfile.GENERAL_ASSISTANT:
        match infer_intent(text):
            case PromptIntent.CREATIVE_STORY:
                return [
                    "Use sections in this order: Title, Story.",
                    "Story must contain a clear beginning, middle, and ending.",
                    "Keep the narration concrete and avoid meta commentary.",
                ]
            case PromptIntent.GAME_DESIGN:
                return [
                    "Use sections in this order: Concept, Rules, Visual Theme, Interaction Flow, Edge Cases.",
                    "Define deterministic win, draw, and invalid-move behavior.",
                    "Explicitly map cat/dog marks to player turns and board state.",
                ]
            case PromptIntent.SOFTWARE_BUILD:
                return [
                    "Use sections in this order: Goal, Requirements, Constraints, Deliverables, Validation.",
                    "Requirements must include concrete behavior and visual/interaction expectations.",
                    "Validation must include deterministic checks tied to each requirement.",
                ]
            case PromptIntent.GENERAL:
                pass
    return scenario_output_format_lines(scenario)


def constraint_lines(intent: PromptIntent) -> list[str]:
    match intent:
        case PromptIntent.CREATIVE_STORY:
            return [
                "- Keep tone, tense, and point of view consistent.",
                "- Avoid meta commentary about the writing process.",
                "- Keep character and setting details internally consistent.",
            ]
        case PromptIntent.GAME_DESIGN:
            return [
                "- Rules must be deterministic and unambiguous.",
                "- Define turn order, legal moves, and termination conditions explicitly.",
                "- Keep cat/dog mark mapping consistent in every example.",
            ]
        case PromptIntent.SOFTWARE_BUILD | PromptIntent.GENERAL:
            return [
                "- Keep behavior deterministic and reproducible.",
                "- Preserve fenced code blocks and protected literals exactly.",
            ]


def success_criteria_lines(intent: PromptIntent) -> list[str]:
    match intent:
        case PromptIntent.CREATIVE_STORY:
            return [
                "- Story includes a clear beginning, middle, and ending.",
                "- Narrative voice and tense remain consistent throughout.",
                "- Ending resolves the main conflict without contradictions.",
            ]
        case PromptIntent.GAME_DESIGN:
            return [
                "- Rules are complete, consistent, and testable.",
                "- Theme mapping (cats/dogs) is explicit and consistently applied.",
                "- Examples validate standard play and at least one edge case.",
            ]
        case PromptIntent.SOFTWARE_BUILD | PromptIntent.GENERAL:
            return [
                "- Every requested section is present and complete.",
                "- Instructions are specific, testable, and unambiguous.",
                "- Output follows the required structure exactly.",
            ]


def intent_specific_deliverables(intent: PromptIntent, source: str) -> list[str] | None:
    lowered = source.lower()
    match intent:
        case PromptIntent.CREATIVE_STORY:
            subject = extract_phrase(_ABOUT_SUBJECT_RE, source) or "the requested subject"
            if is_poetry_request(lowered):
                return [
                    f"Write one complete poem about {subject} with consistent voice and imagery.",
                    "Use a coherent structure (stanzas/line breaks) that matches the requested tone.",
                    "End with a resonant closing line tied to the core theme.",
                ]
            return [
                f"Write one complete story about {subject} with a clear beginning, middle, and ending.",
                "Maintain a consistent narrative voice and include concrete sensory detail.",
                "Provide a title and end with a resolved outcome tied to the central conflict.",
            ]
        case PromptIntent.GAME_DESIGN:
            theme = extract_phrase(_WHERE_THEME_RE, source) or "cat/dog-themed player marks"
            return [
                "Define the game objective, board setup, turn order, and win/draw conditions.",
                f"Specify how {theme} are represented across the board and turns.",
                "Provide two example game states plus one edge-case rule clarification.",
            ]
        case PromptIntent.SOFTWARE_BUILD:
            if "platformer" in lowered:
                return [
                    "Define player controls, movement physics, and progression goals for the 2D platformer.",
                    "Specify level layout, enemy/obstacle behavior, and completion/failure conditions.",
                    "Describe SNES-style visual/audio direction and dog protagonist asset requirements.",
                ]
            if "chess" in lowered:
                return [
                    "Define board state and legal move logic for all chess pieces.",
                    "Specify check/checkmate/stalemate handling and illegal move responses.",
                    "Provide deterministic validation scenarios for move legality and game-end states.",
                ]
            if "minecraft" in lowered:
                return [
                    "Define world generation, block placement/removal, and player movement rules.",
                    "Specify inventory, crafting, and save/load behavior for the sandbox world.",
                    "Provide deterministic validation scenarios for block interactions and world persistence.",
                ]
            if "animation" in lowered or "website" in lowered or "ui" in token_set(lowered):
                return [
                    "List targeted screens/components and the intended animation outcome for each.",
                    "Define deterministic animation specs (duration, easing, triggers, reduced-motion fallback).",
                    "Provide validation checks for visual correctness, accessibility, and interaction stability.",
                ]
            return [
                "Define concrete functional requirements and expected user-visible behavior.",
                "Specify implementation boundaries and explicit out-of-scope items.",
                "Provide deterministic validation checks tied to each requirement.",
            ]
        case PromptIntent.GENERAL:
            return None


def _numbered(items: list[str]) -> list[str]:
    return [f"{index}. {item}" for index, item in enumerate(items[:3], start=1)]


def infer_deliverables(text: str, scenario: ScenarioProfile) -> list[str]:
    """Three numbered deliverables inferred from text.

    Intent templates win; otherwise verb/object pairs are lifted from the
    prose ("fix the login bug" -> "Fix the login bug.") and topped up with
    the scenario defaults plus a validation deliverable.
    """
    prose = prose_text(text, "\n")
    templated = intent_specific_deliverables(infer_intent(prose), prose)
    if templated is not None:
        return _numbered(templated)

    compact = prose.replace("\n", " ")
    items: list[str] = []
    for match in _ACTION_OBJECT_RE.finditer(compact):
        verb = match.group(1).lower()
        obj = match.group(2).strip().strip(",.;:")
        if not obj:
            continue
        items.append(f"{capitalize_first(verb)} {obj}.")
        if len(items) >= 3:
            break

    defaults = default_deliverables(scenario)
    if not items:
        items = defaults

    merged = dedupe_preserving_order(items + defaults)
    if VALIDATION_DELIVERABLE not in merged:
        merged.append(VALIDATION_DELIVERABLE)
    return _numbered(merged)


def infer_requirements(text: str, scenario: ScenarioProfile) -> list[str]:
    prose = prose_text(text, "\n")
    lowered = prose.lower()
    tokens = token_set(lowered)
    is_game = "tic-tac-toe" in lowered or bool(tokens & _GAME_TOKENS)
    is_visual = bool(tokens & _VISUAL_TOKENS) or "user interface" in lowered
    subject = goal_seed(prose)

    if "platformer" in lowered:
        lines = [
            "- Define deterministic player controls, movement physics, and core game loop for a 2D side-scroller.",
            "- Specify level progression, obstacles/enemies, checkpoints, and completion conditions.",
            "- Describe 16-bit SNES-style visual direction and how the dog protagonist appears in gameplay/UI.",
        ]
    elif "chess" in lowered:
        lines = [
            "- Define board state representation and legal move rules for every piece type.",
            "- Specify check, checkmate, stalemate, and illegal-move handling deterministically.",
            "- Include deterministic validation scenarios for opening moves, captures, and endgame outcomes.",
        ]
    elif "tic-tac-toe" in lowered:
        lines = [
            "- Define board representation, turn order, legal move checks, and win/draw detection.",
            "- Specify deterministic mapping for custom marks (cats/dogs) across board and turn state.",
            "- Include validation cases for wins, draws, and invalid move handling.",
        ]
    elif "minecraft" in lowered:
        lines = [
            "- Define world generation, chunk loading, and block placement/removal rules deterministically.",
            "- Specify player movement, inventory, and crafting behavior with explicit limits.",
            "- Include validation scenarios for block interactions, collisions, and save/load persistence.",
        ]
    elif is_visual:
        lines = [
            "- List exact surfaces/components that receive new animations and intended user-facing effect.",
            "- Define deterministic animation constraints (duration, easing, trigger conditions, reduced-motion fallback).",
            "- Specify validation checks to confirm improved liveliness without breaking layout or interaction flow.",
        ]
    elif is_game:
        lines = [
            "- Define core gameplay loop, player actions, and deterministic win/lose conditions.",
            "- Specify data/state model for game entities and progression behavior.",
            "- Provide deterministic validation scenarios covering standard flow and key edge cases.",
        ]
    else:
        lines = [
            "- Translate the goal into concrete, testable functional requirements with explicit inputs/outputs.",
            "- Specify behavioral constraints and out-of-scope boundaries to avoid unintended expansion.",
            "- Define deterministic validation checks tied directly to each major requirement.",
        ]

    if len(subject) > 8 and "###" not in subject:
        lines[0] = lines[0].replace("the goal", f'"{subject}"')

    if scenario is ScenarioProfile.IDE_CODING_ASSISTANT:
        lines.append("- Tie each requirement to specific files/components before producing patch steps.")

    return dedupe_preserving_order(lines)


def semantic_expansion_text(source: str) -> str:
    """Rewrite a short unstructured prompt as one three-sentence paragraph."""
    trimmed = source.strip()
    if not trimmed:
        return source

    lowered = trimmed.lower()
    match infer_intent(trimmed):
        case PromptIntent.CREATIVE_STORY:
            subject = extract_phrase(_ABOUT_SUBJECT_RE, trimmed) or "the requested subject"
            if is_poetry_request(lowered):
                sentences = [
                    f"Write one complete poem about {subject}.",
                    "Use vivid imagery, consistent tone, and deliberate line/stanza structure that fits the requested style.",
                    "Keep language concrete and end with a clear thematic resolution.",
                ]
            else:
                sentences = [
                    f"Write one complete short story about {subject}.",
                    "Include a clear beginning, middle, and ending with a central conflict that is resolved in the final section.",
                    "Keep narrative voice, tense, and point of view consistent while using concrete sensory detail.",
                ]
        case PromptIntent.GAME_DESIGN:
            theme = extract_phrase(_WHERE_THEME_RE, trimmed) or "the thematic player marks"
            sentences = [
                "Design the game with explicit objective, setup, turn order, legal move rules, and deterministic win/draw conditions.",
                f"Define how {theme} map to board state and player turns in a consistent way.",
                "Include at least one standard-play example and one edge-case rule clarification.",
            ]
        case PromptIntent.SOFTWARE_BUILD:
            if "chess" in lowered:
                sentences = [
                    "Build a complete chess game specification and implementation brief.",
                    "Define board representation, legal move logic for each piece, turn/state transitions, captures, and check/checkmate/stalemate handling.",
                    "Include deterministic validation scenarios for opening moves, captures, illegal moves, and game-ending states.",
                ]
            elif "platformer" in lowered:
                sentences = [
                    "Build a 2D platformer with concrete requirements for movement, physics, camera behavior, level flow, and completion/failure conditions.",
                    "Specify enemy/obstacle behavior, checkpoint rules, and user-visible feedback for health/progress.",
                    "Define deterministic test scenarios for controls, collisions, progression, and edge cases.",
                ]
            elif "minecraft" in lowered:
                sentences = [
                    "Build a Minecraft-style sandbox game with concrete requirements for world generation, block placement/removal, player movement, and inventory.",
                    "Specify crafting rules, survival mechanics, and save/load behavior with explicit limits.",
                    "Define deterministic test scenarios for block interactions, collisions, world persistence, and edge cases.",
                ]
            else:
                sentences = [
                    "Translate the request into concrete functional requirements with explicit inputs, outputs, and user-visible behavior.",
                    "Define implementation constraints and out-of-scope boundaries to prevent scope creep.",
                    "Require deterministic validation checks tied directly to each major requirement.",
                ]
        case PromptIntent.GENERAL:
            if is_image_edit_request(lowered):
                sentences = [
                    "Edit the provided image so the requested change is clearly visible in the final output.",
                    "Preserve subject identity, pose, lighting, perspective, and background continuity while integrating the new element naturally.",
                    "Keep artifact-free edges and realistic occlusion/shadows, then return only the final edited result.",
                ]
            elif "dog food" in lowered or "recipe" in lowered:
                sentences = [
                    "Design a complete dog-food concept using only the specified ingredients.",
                    "Define formulation goals, nutritional constraints, taste/texture targets, and safety assumptions explicitly.",
                    "Provide deterministic evaluation criteria for ingredient balance, feasibility, and expected outcomes.",
                ]
            else:
                sentences = [
                    normalize_goal_sentence(goal_seed(trimmed)),
                    "Make requirements explicit, deterministic, and testable instead of implied.",
                    "Define concrete output expectations and completion checks tied to the requested artifact.",
                ]
    return " ".join(sentences)


_UNIVERSAL_SPECIFICITY = (
    "deterministic",
    "explicit",
    "test",
    "validation",
    "constraints",
    "scope",
    "edge case",
)


def _intent_specificity_tokens(intent: PromptIntent) -> tuple[str, ...]:
    match intent:
        case PromptIntent.CREATIVE_STORY:
            return (
                "beginning",
                "middle",
                "ending",
                "conflict",
                "resolution",
                "voice",
                "tense",
                "point of view",
            )
        case PromptIntent.GAME_DESIGN:
            return (
                "objective",
                "setup",
                "turn order",
                "win",
                "draw",
                "rules",
                "board",
                "edge-case",
            )
        case PromptIntent.SOFTWARE_BUILD:
            return (
                "requirements",
                "inputs",
                "outputs",
                "state",
                "error",
                "illegal move",
                "acceptance",
            )
        case PromptIntent.GENERAL:
            return (
                "artifact",
                "completion",
                "quality",
                "consistency",
                "subject identity",
                "lighting",
                "perspective",
                "occlusion",
                "edited result",
            )


def semantic_specificity_score(
    text: str, intent: PromptIntent, cap: int = SEMANTIC_SPECIFICITY_CAP
) -> int:
    """Count of specificity terms present in the prose, capped."""
    lowered = prose_text(text, "\n").lower()
    tokens = _UNIVERSAL_SPECIFICITY + _intent_specificity_tokens(intent)
    return min(cap, sum(1 for token in tokens if token in lowered))
