"""Numeric limits and thresholds - no circular dependencies."""

from __future__ import annotations

MAX_CANDIDATES = 16
"""Candidates scored per call, baseline included."""

DEFAULT_CACHE_CAPACITY = 64
MIN_CACHE_CAPACITY = 4

HISTORY_SAMPLE_LIMIT = 50
MIN_HISTORY_SAMPLES = 5

HIGH_TOKEN_ESTIMATE = 900
TOKEN_PENALTY_STEP = 300
TOKEN_PENALTY_CAP = 12

EXAMPLE_BONUS_CAP = 12
SEMANTIC_SPECIFICITY_CAP = 8
SECTION_BLOAT_PENALTY_CAP = 18

VAGUE_GOAL_MAX_CHARS = 60

# Underspecified prompt heuristics
UNDERSPECIFIED_MAX_CHARS = 220
UNDERSPECIFIED_MAX_TOKENS = 120
UNDERSPECIFIED_MAX_GOAL_CHARS = 80
UNDERSPECIFIED_MAX_GOAL_SEED_CHARS = 100
UNDERSPECIFIED_MAX_SECTIONS = 3

# Semantic rewrite preference
SEMANTIC_MAX_TOKENS = 180
SEMANTIC_MAX_CHARS = 360
SEMANTIC_MAX_LINES = 6
SCAFFOLDING_MIN_GENERAL_CHARS = 420

# Anti-regression gate defaults
MIN_SCORE_GAIN = 1
MIN_STRUCTURAL_GAIN = 2
MAX_GROWTH_RATIO = 1.8

MAX_LOG_MESSAGE_LENGTH = 4096
