"""Pytest fixtures for promptsmith tests."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

import pytest
from hypothesis import Phase, Verbosity, settings

_TEST_BASE_DIR = Path(tempfile.mkdtemp(prefix="promptsmith-tests-"))
os.environ["PROMPTSMITH_DATA_DIR"] = str(_TEST_BASE_DIR / "data")
os.environ["PROMPTSMITH_CONFIG_DIR"] = str(_TEST_BASE_DIR / "config")

from promptsmith.core.analysis import PromptAnalyzer  # noqa: E402
from promptsmith.core.models.entities import OptimizationContext  # noqa: E402
from promptsmith.core.models.enums import ScenarioProfile  # noqa: E402
from promptsmith.core.optimizer import PromptOptimizer  # noqa: E402
from promptsmith.debug_log import clear_log_buffer  # noqa: E402

settings.register_profile(
    "ci",
    max_examples=100,
    deadline=None,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
)
settings.register_profile(
    "dev",
    max_examples=20,
    deadline=None,
)
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))


@pytest.fixture
def analyzer() -> PromptAnalyzer:
    return PromptAnalyzer()


@pytest.fixture
def optimizer() -> PromptOptimizer:
    """Fresh optimizer so no cached result leaks between tests."""
    return PromptOptimizer()


@pytest.fixture
def ide_context() -> OptimizationContext:
    return OptimizationContext(scenario=ScenarioProfile.IDE_CODING_ASSISTANT)


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    return tmp_path / "config.toml"


@pytest.fixture(autouse=True)
def _clean_log_buffer():
    clear_log_buffer()
    yield
    clear_log_buffer()


COMPLETE_PROMPT = """### Goal
Summarize the quarterly sales report for the finance team.

### Constraints
- Use only figures stated in the report.
- Do not speculate about future quarters.

### Deliverables
1. A three sentence overview of revenue.
2. A table of regional totals.
3. A list of open risks.

### Output Format
Markdown with a table.

### Questions
- Which currency should totals use?

### Success Criteria
- Every figure is deterministic and traceable to the report.
- Totals pass validation against the source table."""


@pytest.fixture
def complete_prompt() -> str:
    """A general-assistant prompt with no structural gaps."""
    return COMPLETE_PROMPT
