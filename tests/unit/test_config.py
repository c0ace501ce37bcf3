"""Tests for configuration loading and persistence."""

from __future__ import annotations

import asyncio
import stat
from typing import TYPE_CHECKING

import pytest
from pydantic import ValidationError

from promptsmith.atomic import atomic_write
from promptsmith.config import PromptsmithConfig
from promptsmith.core.models.enums import PromptTarget, ScenarioProfile
from promptsmith.core.selector import SelectionThresholds
from promptsmith.core.weights import ScoringWeights
from promptsmith.paths import get_config_path, get_debug_log_path

if TYPE_CHECKING:
    from pathlib import Path

pytestmark = pytest.mark.unit


class TestDefaults:
    """Tests for default and coerced values."""

    def test_missing_file_gives_defaults(self, config_path: Path) -> None:
        config = PromptsmithConfig.load(config_path)
        assert config.general.target is PromptTarget.CLAUDE
        assert config.general.scenario is ScenarioProfile.GENERAL_ASSISTANT
        assert config.optimizer.thresholds() == SelectionThresholds()
        assert config.weights is None

    def test_unknown_names_fall_back(self, config_path: Path) -> None:
        config_path.write_text(
            '[general]\ndefault_target = "llama"\ndefault_scenario = "IDE Coding Assistant"\n'
        )
        config = PromptsmithConfig.load(config_path)
        assert config.general.default_target == "claude"
        assert config.general.default_scenario == "ide-coding-assistant"

    def test_cache_capacity_floor(self, config_path: Path) -> None:
        config_path.write_text("[optimizer]\ncache_capacity = 2\n")
        with pytest.raises(ValidationError):
            PromptsmithConfig.load(config_path)

    def test_weights_are_clamped_on_load(self, config_path: Path) -> None:
        config_path.write_text("[weights]\noutput_format = 500\nquestions = -3\n")
        config = PromptsmithConfig.load(config_path)
        assert config.weights is not None
        assert config.weights.output_format == 30
        assert config.weights.questions == 0

    def test_paths_follow_environment(self) -> None:
        assert get_config_path().name == "config.toml"
        assert get_config_path().parent.name == "config"
        assert get_debug_log_path().parent.name == "data"


class TestPersistence:
    """Tests for save and update_weights."""

    def test_save_round_trip(self, config_path: Path) -> None:
        config = PromptsmithConfig.model_validate(
            {
                "general": {"default_target": "perplexity", "default_scenario": "cli-assistant"},
                "optimizer": {"cache_capacity": 16, "min_score_gain": 3},
                "weights": {"deliverables": 20},
            }
        )
        asyncio.run(config.save(config_path))

        loaded = PromptsmithConfig.load(config_path)
        assert loaded == config
        assert loaded.general.target is PromptTarget.PERPLEXITY
        assert loaded.optimizer.thresholds().min_score_gain == 3

    def test_update_weights_preserves_comments(self, config_path: Path) -> None:
        config_path.write_text(
            '# my settings\n[general]\ndefault_target = "gemini"  # team default\n'
        )
        config = PromptsmithConfig.load(config_path)

        asyncio.run(config.update_weights(config_path, ScoringWeights(output_format=28)))

        content = config_path.read_text()
        assert "# my settings" in content
        assert "# team default" in content
        assert "[weights]" in content
        assert config.weights == ScoringWeights(output_format=28)
        assert PromptsmithConfig.load(config_path).weights == ScoringWeights(output_format=28)

    def test_update_weights_none_removes_table(self, config_path: Path) -> None:
        config_path.write_text("[weights]\noutput_format = 25\n")
        config = PromptsmithConfig.load(config_path)

        asyncio.run(config.update_weights(config_path, None))

        assert "[weights]" not in config_path.read_text()
        assert config.weights is None

    def test_update_weights_creates_file(self, tmp_path: Path) -> None:
        path = tmp_path / "new" / "config.toml"
        asyncio.run(PromptsmithConfig().update_weights(path, ScoringWeights()))
        assert PromptsmithConfig.load(path).weights == ScoringWeights()

    def test_update_weights_reports_unchanged(self, config_path: Path) -> None:
        config = PromptsmithConfig.load(config_path)
        weights = ScoringWeights(output_format=28)

        assert asyncio.run(config.update_weights(config_path, weights)) is True
        written = config_path.stat().st_mtime_ns

        assert asyncio.run(config.update_weights(config_path, weights)) is False
        assert config_path.stat().st_mtime_ns == written


class TestAtomicWrite:
    """Tests for atomic_write."""

    def test_replaces_content_without_leftovers(self, tmp_path: Path) -> None:
        path = tmp_path / "file.txt"
        atomic_write(path, "one")
        atomic_write(path, "two")
        assert path.read_text(encoding="utf-8") == "two"
        assert [p.name for p in tmp_path.iterdir()] == ["file.txt"]

    def test_unchanged_content_is_not_rewritten(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        assert atomic_write(path, "[general]\n") is True
        written = path.stat().st_mtime_ns

        assert atomic_write(path, "[general]\n") is False
        assert path.stat().st_mtime_ns == written

    def test_permission_bits_survive_replace(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text("[general]\n", encoding="utf-8")
        path.chmod(0o600)

        atomic_write(path, "[weights]\n")

        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        assert path.read_text(encoding="utf-8") == "[weights]\n"

    def test_creates_missing_parents(self, tmp_path: Path) -> None:
        path = tmp_path / "a" / "b" / "config.toml"
        atomic_write(path, "x")
        assert path.read_text(encoding="utf-8") == "x"
