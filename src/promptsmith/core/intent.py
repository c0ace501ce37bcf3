"""Lexical intent classifier."""

from __future__ import annotations

from promptsmith.core.models.enums import PromptIntent
from promptsmith.core.text import token_set

_STORY_TOKENS = frozenset({"story", "narrative", "plot"})
_STORY_PHRASES = ("short story", "character arc", "poem", "haiku", "sonnet", "lyrics")
POETRY_CUES = ("poem", "haiku", "sonnet", "lyrics")

_GAME_PHRASES = ("tic-tac-toe", "board game", "game rules", "x's", "o's")
_GAME_TOKENS = frozenset({"gameplay", "chess", "game"})
_DESIGN_QUALIFIERS = frozenset({"design", "spec", "mechanic", "rules", "rule"})

_LOOKUP_VERBS = frozenset(
    {"find", "locate", "search", "list", "show", "open", "read", "summarize", "describe", "explain"}
)
_FILE_NOUNS = frozenset({"file", "files", "document", "documents"})
_BUILD_VERBS = frozenset(
    {
        "build",
        "implement",
        "create",
        "develop",
        "fix",
        "refactor",
        "patch",
        "test",
        "code",
        "program",
        "make",
        "add",
        "update",
    }
)
_STRONG_SOFTWARE_CUES = frozenset(
    {
        "api",
        "function",
        "class",
        "script",
        "repository",
        "code",
        "swift",
        "python",
        "javascript",
        "typescript",
        "react",
        "cli",
        "frontend",
        "backend",
        "module",
        "component",
        "bug",
        "compile",
        "test",
        "git",
    }
)
_TECHNICAL_OBJECTS = frozenset(
    {
        "app",
        "application",
        "game",
        "platformer",
        "website",
        "api",
        "function",
        "class",
        "script",
        "repository",
        "codebase",
        "cli",
        "frontend",
        "backend",
        "chess",
        "tic",
        "tac",
        "toe",
        "minecraft",
        "clone",
    }
)


def infer_intent(text: str) -> PromptIntent:
    """Classify text as creative, game design, software build or general.

    Checks run in priority order: story cues win over game cues, which win
    over software cues. A lookup request about files with no build verb is
    general even when it mentions technical nouns.
    """
    lowered = text.lower()
    tokens = token_set(lowered)

    if tokens & _STORY_TOKENS or any(phrase in lowered for phrase in _STORY_PHRASES):
        return PromptIntent.CREATIVE_STORY

    has_game_cue = any(phrase in lowered for phrase in _GAME_PHRASES) or bool(tokens & _GAME_TOKENS)
    if has_game_cue and tokens & _DESIGN_QUALIFIERS:
        return PromptIntent.GAME_DESIGN

    has_build_verb = bool(tokens & _BUILD_VERBS)
    has_strong_cue = (
        bool(tokens & _STRONG_SOFTWARE_CUES) or "source code" in lowered or "codebase" in lowered
    )
    is_lookup = bool(tokens & _LOOKUP_VERBS and tokens & _FILE_NOUNS)
    if is_lookup and not has_build_verb and not has_strong_cue:
        return PromptIntent.GENERAL

    if has_strong_cue or (has_build_verb and tokens & _TECHNICAL_OBJECTS):
        return PromptIntent.SOFTWARE_BUILD

    return PromptIntent.GENERAL


def allows_questions(intent: PromptIntent) -> bool:
    """Clarifying questions are only inserted for general requests."""
    match intent:
        case PromptIntent.CREATIVE_STORY | PromptIntent.GAME_DESIGN | PromptIntent.SOFTWARE_BUILD:
            return False
        case PromptIntent.GENERAL:
            return True


def is_poetry_request(lowered: str) -> bool:
    return any(cue in lowered for cue in POETRY_CUES)
