"""Experiment configuration with YAML support."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from rectpacking.core.models import PackingHeuristic
from rectpacking.runner.dataset import ORDERING_STRATEGIES

PACKING_STRATEGIES = ("best_fit", "first_fit")


class RunConfig(BaseModel):
    """
    All tuneable parameters for one experiment run.

    ``instance_path`` points at a ``.2bp`` class file or a JSON dataset.
    When it is empty, ``generate_count`` random items are packed into
    ``bin_width`` x ``bin_height`` bins instead.
    """

    instance_path: str = ""
    instance_ids: Optional[list[int]] = None

    # Random instance (used when instance_path is empty)
    bin_width: int = Field(default=100, gt=0)
    bin_height: int = Field(default=100, gt=0)
    generate_count: int = Field(default=50, ge=1)

    heuristics: list[PackingHeuristic] = Field(
        default_factory=lambda: list(PackingHeuristic)
    )
    strategies: list[str] = Field(default_factory=lambda: list(PACKING_STRATEGIES))
    orderings: list[str] = Field(default_factory=lambda: ["random"])
    repetitions: int = Field(default=1, ge=1)
    seed: int = 12345
    allow_rotation: bool = False
    bin_type: str = "max_space"

    results_dir: str = "results"
    verbose: bool = False

    @field_validator("heuristics", mode="before")
    @classmethod
    def _parse_heuristics(cls, value):
        if isinstance(value, (str, PackingHeuristic)):
            value = [value]
        return [PackingHeuristic.parse(v) for v in value]

    @field_validator("strategies")
    @classmethod
    def _check_strategies(cls, value: list[str]) -> list[str]:
        for name in value:
            if name not in PACKING_STRATEGIES:
                raise ValueError(
                    f"Unknown packing strategy '{name}'. Available: {list(PACKING_STRATEGIES)}"
                )
        return value

    @field_validator("orderings")
    @classmethod
    def _check_orderings(cls, value: list[str]) -> list[str]:
        for name in value:
            if name not in ORDERING_STRATEGIES:
                raise ValueError(
                    f"Unknown ordering strategy '{name}'. "
                    f"Available: {list(ORDERING_STRATEGIES.keys())}"
                )
        return value

    def to_dict(self) -> dict[str, object]:
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "RunConfig":
        return cls.model_validate(data)


def load_config(yaml_path: str | Path) -> RunConfig:
    """Load run configuration from YAML file.

    Args:
        yaml_path: Path to YAML configuration file

    Returns:
        RunConfig instance

    Raises:
        FileNotFoundError: If YAML file doesn't exist
        ValueError: If YAML is invalid or missing required fields
    """
    yaml_path = Path(yaml_path)

    if not yaml_path.exists():
        raise FileNotFoundError(f"Config file not found: {yaml_path}")

    with open(yaml_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Empty or invalid YAML file: {yaml_path}")

    try:
        return RunConfig.from_dict(data)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration in {yaml_path}: {e}") from e


def save_config(config: RunConfig, yaml_path: str | Path) -> None:
    """Save run configuration to YAML file for reproducibility."""
    yaml_path = Path(yaml_path)
    yaml_path.parent.mkdir(parents=True, exist_ok=True)

    with open(yaml_path, "w", encoding="utf-8") as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False, indent=2)
