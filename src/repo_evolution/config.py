"""Layout and reconstruction settings."""

import json
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field, ValidationError, model_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "repo-evolution.json"


class SimulationConfig(BaseModel):
    """Force simulation parameters."""

    spring_strength: float = Field(default=0.1, gt=0)
    ideal_spacing: float = Field(default=15.0, ge=0)
    damping: float = Field(default=0.9, gt=0, le=1)
    max_velocity: float = Field(default=10.0, gt=0)
    repulsion_strength: float = Field(default=100.0, ge=0)
    centering_strength: float = Field(default=0.01, ge=0)
    seed: int = 0
    # None keeps termination purely iteration-count based
    energy_threshold: Optional[float] = Field(default=None, gt=0)


class LayoutSettings(BaseModel):
    """Everything the timeline pipeline can be tuned with."""

    simulation: SimulationConfig = SimulationConfig()
    structural_budget: int = Field(default=500, gt=0)
    refine_budget: int = Field(default=200, gt=0)
    full_rate_until: int = Field(default=150, ge=0)
    half_rate_until: int = Field(default=300, ge=0)
    strict_integrity: bool = False

    @model_validator(mode="after")
    def _check_phases(self) -> "LayoutSettings":
        if self.half_rate_until < self.full_rate_until:
            raise ValueError("half_rate_until must not be below full_rate_until")
        return self


def load_settings(path: Optional[Union[str, Path]] = None) -> LayoutSettings:
    """Load settings from a JSON file, falling back to defaults if missing."""
    if path is None:
        return LayoutSettings()

    config_path = Path(path)
    if not config_path.exists():
        logger.debug("No config at %s, using defaults", config_path)
        return LayoutSettings()

    try:
        data = json.loads(config_path.read_text())
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {config_path}: {e}") from e

    try:
        return LayoutSettings.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid settings in {config_path}: {e}") from e


def write_default_settings(path: Union[str, Path]) -> Path:
    """Write the default settings to a JSON file and return its path."""
    config_path = Path(path)
    if config_path.exists():
        raise ValueError(f"{config_path} already exists")
    config_path.write_text(json.dumps(LayoutSettings().model_dump(), indent=2))
    return config_path
