"""Configuration loader for promptsmith."""

from __future__ import annotations

import asyncio
import tomllib
from typing import TYPE_CHECKING

import tomlkit
from pydantic import BaseModel, Field, field_validator

from promptsmith.atomic import atomic_write
from promptsmith.core.models.enums import PromptTarget, ScenarioProfile
from promptsmith.core.selector import SelectionThresholds
from promptsmith.core.weights import ScoringWeights
from promptsmith.limits import (
    DEFAULT_CACHE_CAPACITY,
    MAX_GROWTH_RATIO,
    MIN_CACHE_CAPACITY,
    MIN_SCORE_GAIN,
    MIN_STRUCTURAL_GAIN,
)
from promptsmith.paths import get_config_path

if TYPE_CHECKING:
    from pathlib import Path

    from tomlkit.items import Table

DEFAULT_TARGET = PromptTarget.CLAUDE.short_name
DEFAULT_SCENARIO = ScenarioProfile.GENERAL_ASSISTANT.short_name


class GeneralConfig(BaseModel):
    """Defaults applied when the CLI gets no --target/--scenario."""

    default_target: str = Field(default=DEFAULT_TARGET, description="Prompt target short name")
    default_scenario: str = Field(
        default=DEFAULT_SCENARIO, description="Scenario profile short name"
    )

    @field_validator("default_target", mode="before")
    @classmethod
    def validate_default_target(cls, value: object) -> str:
        if isinstance(value, str):
            try:
                return PromptTarget.from_name(value).short_name
            except ValueError:
                pass
        return DEFAULT_TARGET

    @field_validator("default_scenario", mode="before")
    @classmethod
    def validate_default_scenario(cls, value: object) -> str:
        if isinstance(value, str):
            try:
                return ScenarioProfile.from_name(value).short_name
            except ValueError:
                pass
        return DEFAULT_SCENARIO

    @property
    def target(self) -> PromptTarget:
        return PromptTarget.from_name(self.default_target)

    @property
    def scenario(self) -> ScenarioProfile:
        return ScenarioProfile.from_name(self.default_scenario)


class OptimizerConfig(BaseModel):
    """Result cache size and anti-regression thresholds."""

    cache_capacity: int = Field(
        default=DEFAULT_CACHE_CAPACITY, ge=MIN_CACHE_CAPACITY, description="LRU result cache size"
    )
    min_score_gain: int = Field(
        default=MIN_SCORE_GAIN, description="Score lead a candidate needs over the baseline"
    )
    min_structural_gain: int = Field(
        default=MIN_STRUCTURAL_GAIN, description="Structural gain that counts as meaningful"
    )
    max_growth_ratio: float = Field(
        default=MAX_GROWTH_RATIO, gt=0, description="Length growth tolerated for low-gain rewrites"
    )

    def thresholds(self) -> SelectionThresholds:
        return SelectionThresholds(
            min_score_gain=self.min_score_gain,
            min_structural_gain=self.min_structural_gain,
            max_growth_ratio=self.max_growth_ratio,
        )


class PromptsmithConfig(BaseModel):
    """Root configuration model."""

    general: GeneralConfig = Field(default_factory=GeneralConfig)
    optimizer: OptimizerConfig = Field(default_factory=OptimizerConfig)
    weights: ScoringWeights | None = Field(
        default=None, description="Persisted tuned weights, passed back as local weights"
    )

    @field_validator("weights", mode="after")
    @classmethod
    def clamp_weights(cls, value: ScoringWeights | None) -> ScoringWeights | None:
        return value.clamped() if value is not None else None

    @classmethod
    def load(cls, config_path: Path | None = None) -> PromptsmithConfig:
        """Load configuration from TOML file or use defaults.

        Raises:
            tomllib.TOMLDecodeError: If the file is not valid TOML.
            pydantic.ValidationError: If a value has the wrong type or range.
        """
        if config_path is None:
            config_path = get_config_path()

        if config_path.exists():
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
            return cls.model_validate(data)

        return cls()

    async def save(self, path: Path) -> bool:
        """Serialize current config to TOML file.

        Args:
            path: Path to write config file (created if missing)

        Returns:
            False when the file already held the same content
        """
        doc = tomlkit.document()

        general_table = tomlkit.table()
        for key, value in self.general.model_dump().items():
            general_table[key] = value
        doc["general"] = general_table

        optimizer_table = tomlkit.table()
        for key, value in self.optimizer.model_dump().items():
            optimizer_table[key] = value
        doc["optimizer"] = optimizer_table

        if self.weights is not None:
            doc["weights"] = _weights_table(self.weights)

        content = tomlkit.dumps(doc)
        return await asyncio.to_thread(atomic_write, path, content)

    async def update_weights(self, path: Path, weights: ScoringWeights | None) -> bool:
        """Replace only the [weights] table in an existing file (preserves comments).

        Args:
            path: Path to config file (created if missing)
            weights: New weights, or None to remove the table

        Returns:
            False when the file already held these weights
        """
        import aiofiles

        if path.exists():
            async with aiofiles.open(path, encoding="utf-8") as f:
                content = await f.read()
            doc = tomlkit.parse(content)
        else:
            doc = tomlkit.document()

        self.weights = weights.clamped() if weights is not None else None
        if self.weights is None:
            doc.pop("weights", None)
        else:
            current = doc.get("weights")
            if current is not None and current.unwrap() == self.weights.model_dump():
                return False
            doc["weights"] = _weights_table(self.weights)

        content = tomlkit.dumps(doc)
        return await asyncio.to_thread(atomic_write, path, content)


def _weights_table(weights: ScoringWeights) -> Table:
    table = tomlkit.table()
    for key, value in weights.model_dump().items():
        table[key] = value
    return table
