"""Tests for layout settings loading."""

import json
import tempfile
from pathlib import Path

import pytest
from pydantic import ValidationError

from repo_evolution.config import (
    LayoutSettings,
    SimulationConfig,
    load_settings,
    write_default_settings,
)


@pytest.fixture
def config_dir():
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


def test_defaults():
    """Test the default settings match the documented layout constants."""
    settings = LayoutSettings()
    assert settings.structural_budget == 500
    assert settings.refine_budget == 200
    assert (settings.full_rate_until, settings.half_rate_until) == (150, 300)
    assert settings.simulation.damping == 0.9
    assert settings.simulation.centering_strength == 0.01
    assert settings.simulation.energy_threshold is None
    assert not settings.strict_integrity


def test_phase_order_enforced():
    """Test the half-rate phase cannot end before the full-rate phase."""
    with pytest.raises(ValidationError):
        LayoutSettings(full_rate_until=300, half_rate_until=150)


def test_damping_bounds():
    """Test damping outside (0, 1] is rejected."""
    with pytest.raises(ValidationError):
        SimulationConfig(damping=1.5)


def test_load_missing_file_uses_defaults(config_dir):
    """Test a missing config file falls back to defaults."""
    assert load_settings(config_dir / "missing.json") == LayoutSettings()
    assert load_settings(None) == LayoutSettings()


def test_load_partial_file(config_dir):
    """Test values from the file override only what they name."""
    path = config_dir / "settings.json"
    path.write_text(json.dumps({"refine_budget": 50, "simulation": {"seed": 7}}))

    settings = load_settings(path)
    assert settings.refine_budget == 50
    assert settings.simulation.seed == 7
    assert settings.structural_budget == 500


def test_load_invalid_json(config_dir):
    """Test malformed JSON raises ValueError."""
    path = config_dir / "settings.json"
    path.write_text("{not json")
    with pytest.raises(ValueError, match="Invalid JSON"):
        load_settings(path)


def test_load_invalid_values(config_dir):
    """Test out-of-range values raise ValueError."""
    path = config_dir / "settings.json"
    path.write_text(json.dumps({"simulation": {"max_velocity": 0}}))
    with pytest.raises(ValueError, match="Invalid settings"):
        load_settings(path)


def test_write_then_load(config_dir):
    """Test written defaults load back unchanged."""
    path = write_default_settings(config_dir / "settings.json")
    assert load_settings(path) == LayoutSettings()

    with pytest.raises(ValueError):
        write_default_settings(path)
