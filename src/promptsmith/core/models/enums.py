"""Core domain enums."""

from __future__ import annotations

from enum import Enum, IntEnum, StrEnum


class PromptTarget(StrEnum):
    """Consumer the rewritten prompt is tailored for."""

    CLAUDE = "Claude"
    GEMINI_CHATGPT = "Gemini/ChatGPT"
    PERPLEXITY = "Perplexity"
    AGENTIC_IDE = "Agentic IDE (Cursor/Windsurf/Copilot)"

    @property
    def short_name(self) -> str:
        match self:
            case PromptTarget.CLAUDE:
                return "claude"
            case PromptTarget.GEMINI_CHATGPT:
                return "gemini"
            case PromptTarget.PERPLEXITY:
                return "perplexity"
            case PromptTarget.AGENTIC_IDE:
                return "ide"

    @classmethod
    def from_name(cls, value: str) -> PromptTarget:
        """Resolve a target from its value or short name (case-insensitive)."""
        lowered = value.strip().lower()
        for member in cls:
            if lowered in (member.value.lower(), member.short_name, member.name.lower()):
                return member
        raise ValueError(f"Unknown prompt target: {value!r}")


class ScenarioProfile(StrEnum):
    """Usage scenario the prompt will run under."""

    GENERAL_ASSISTANT = "General Assistant"
    IDE_CODING_ASSISTANT = "IDE Coding Assistant"
    CLI_ASSISTANT = "CLI Assistant"
    JSON_STRUCTURED_OUTPUT = "JSON / Structured Output"
    LONGFORM_WRITING = "Longform Writing"
    RESEARCH_SUMMARIZATION = "Research / Summarization"
    TOOL_USING_AGENT = "Tool-Using Agent"

    @property
    def short_name(self) -> str:
        return self.name.lower().replace("_", "-")

    @classmethod
    def from_name(cls, value: str) -> ScenarioProfile:
        """Resolve a scenario from its value or short name (case-insensitive)."""
        lowered = value.strip().lower()
        for member in cls:
            if lowered in (member.value.lower(), member.short_name, member.name.lower()):
                return member
        raise ValueError(f"Unknown scenario profile: {value!r}")


class PromptIntent(Enum):
    """Coarse task intent inferred from prompt wording."""

    CREATIVE_STORY = "creative_story"
    GAME_DESIGN = "game_design"
    SOFTWARE_BUILD = "software_build"
    GENERAL = "general"


class SectionKey(IntEnum):
    """Known prompt sections, valued in canonical order."""

    GOAL = 0
    CONTEXT = 1
    REQUIREMENTS = 2
    CONSTRAINTS = 3
    DELIVERABLES = 4
    OUTPUT_FORMAT = 5
    QUESTIONS = 6
    SUCCESS_CRITERIA = 7

    @property
    def heading_title(self) -> str:
        match self:
            case SectionKey.GOAL:
                return "Goal"
            case SectionKey.CONTEXT:
                return "Context"
            case SectionKey.REQUIREMENTS:
                return "Requirements"
            case SectionKey.CONSTRAINTS:
                return "Constraints"
            case SectionKey.DELIVERABLES:
                return "Deliverables"
            case SectionKey.OUTPUT_FORMAT:
                return "Output Format"
            case SectionKey.QUESTIONS:
                return "Questions"
            case SectionKey.SUCCESS_CRITERIA:
                return "Success Criteria"

    @property
    def aliases(self) -> tuple[str, ...]:
        """Lowercase heading spellings recognized for this section."""
        match self:
            case SectionKey.GOAL:
                return ("goal", "objective", "task")
            case SectionKey.CONTEXT:
                return ("context",)
            case SectionKey.REQUIREMENTS:
                return ("requirements", "requirement", "spec", "specification")
            case SectionKey.CONSTRAINTS:
                return ("constraints", "constraint")
            case SectionKey.DELIVERABLES:
                return ("deliverables", "deliverable")
            case SectionKey.OUTPUT_FORMAT:
                return ("output format", "output contract", "format")
            case SectionKey.QUESTIONS:
                return ("questions", "clarifying questions")
            case SectionKey.SUCCESS_CRITERIA:
                return ("success criteria", "acceptance criteria")


class TransformKey(StrEnum):
    """Rewrite operations, valued by the label used in candidate titles."""

    CANONICALIZE = "Canonicalize headings/order"
    CONTRADICTION_REPAIR = "Repair contradictions"
    SENTENCE_REWRITE = "Sentence-level rewrite"
    SEMANTIC_EXPANSION = "Semantic rewrite expansion"
    REQUIREMENTS_INFERENCE = "Infer requirements"
    DELIVERABLES_INFERENCE = "Infer deliverables"
    OUTPUT_FORMAT = "Add output format"
    SUCCESS_CRITERIA = "Add success criteria"
    SCOPE_BOUNDS = "Add scope bounds"
    QUESTIONS = "Add clarifying questions"
    DOMAIN_PACK = "Apply domain pack"
    QUALITY_GATE = "Apply quality gate"
    DEDUPE = "Dedupe/normalize whitespace"


class ScoreFactor(StrEnum):
    """Breakdown keys reported by the scorer."""

    SECTION_BLOAT_PENALTY = "section_bloat_penalty"
    SEMANTIC_SPECIFICITY = "semantic_specificity"
    AVOID_UNNECESSARY_QUESTIONS = "avoid_unnecessary_questions"
    OUTPUT_FORMAT = "output_format"
    MISSING_OUTPUT_FORMAT = "missing_output_format"
    GENERIC_OUTPUT_CONTRACT_FOR_CREATIVE = "generic_output_contract_for_creative"
    CREATIVE_OUTPUT_CONTRACT = "creative_output_contract"
    GENERIC_OUTPUT_CONTRACT_FOR_SOFTWARE = "generic_output_contract_for_software"
    REQUIREMENTS_PRESENT = "requirements_present"
    MISSING_REQUIREMENTS = "missing_requirements"
    REQUIREMENTS_OPTIONAL_BONUS = "requirements_optional_bonus"
    WEAK_REQUIREMENTS = "weak_requirements"
    ENUMERATED_DELIVERABLES = "enumerated_deliverables"
    MISSING_DELIVERABLES = "missing_deliverables"
    WEAK_DELIVERABLES = "weak_deliverables"
    STRONG_CONSTRAINTS = "strong_constraints"
    SUCCESS_CRITERIA_FOR_AMBIGUITY = "success_criteria_for_ambiguity"
    MISSING_SUCCESS_CRITERIA_AMBIGUOUS = "missing_success_criteria_ambiguous"
    MISSING_SUCCESS_CRITERIA_UNDERSPECIFIED = "missing_success_criteria_underspecified"
    SCOPE_BOUNDED = "scope_bounded"
    QUESTIONS_FOR_AMBIGUITY = "questions_for_ambiguity"
    MISSING_QUESTIONS_AMBIGUOUS = "missing_questions_ambiguous"
    MISSING_QUESTIONS_UNDERSPECIFIED = "missing_questions_underspecified"
    HEDGING_LEXICON = "hedging_lexicon"
    EXAMPLES = "examples"
    DOMAIN_PACK = "domain_pack"
    QUALITY_GATE = "quality_gate"
    TOKEN_PENALTY = "token_penalty"
    CONTRADICTIONS = "contradictions"
    UNRESOLVED_PLACEHOLDERS = "unresolved_placeholders"
    JSON_MISMATCH = "json_mismatch"


class WeightSource(Enum):
    """Where the active scoring weights came from."""

    DEFAULTS = "defaults"
    LOCAL = "local"
    LEARNED = "learned"


class SegmentKind(Enum):
    """Kind of a segment produced by the code-fence splitter."""

    TEXT = "text"
    CODE_FENCE = "code_fence"
