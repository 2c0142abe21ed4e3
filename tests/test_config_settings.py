"""
Tests for FILL_SIM_* settings loading.

Each test starts from a clean environment (all FILL_SIM_* variables removed)
and a reset settings singleton.
"""

import pytest

from src.config.settings import (
    CommissionSettings,
    PathSettings,
    Settings,
    get_settings,
    reset_settings,
)
from src.execution.types import DEFAULT_ENGINE_SEED
from src.simulation.price_path import DistributionProfile


FILL_SIM_VARS = [
    "FILL_SIM_PATH_PROFILE",
    "FILL_SIM_PATH_TOTAL_POINTS",
    "FILL_SIM_PATH_SEED",
    "FILL_SIM_PATH_DOF",
    "FILL_SIM_RANDOMIZE_PATHS",
    "FILL_SIM_COMMISSION_PER_SHARE",
    "FILL_SIM_COMMISSION_MINIMUM",
    "FILL_SIM_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in FILL_SIM_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


def test_defaults_from_empty_environment():
    settings = Settings.from_env()

    assert settings.path.profile is DistributionProfile.UNIFORM
    assert settings.path.total_points == 390
    assert settings.path.seed is None
    assert settings.path.degrees_of_freedom == 4.0
    assert settings.path.randomize_paths is False
    assert settings.commission.per_share == 0.01
    assert settings.commission.minimum == 1.0
    assert settings.log_level == "INFO"


def test_path_settings_from_env(monkeypatch):
    monkeypatch.setenv("FILL_SIM_PATH_PROFILE", "U_Shaped")
    monkeypatch.setenv("FILL_SIM_PATH_TOTAL_POINTS", "78")
    monkeypatch.setenv("FILL_SIM_PATH_SEED", "7")
    monkeypatch.setenv("FILL_SIM_PATH_DOF", "3.5")
    monkeypatch.setenv("FILL_SIM_RANDOMIZE_PATHS", "yes")

    path = PathSettings.from_env()

    assert path.profile is DistributionProfile.U_SHAPED
    assert path.total_points == 78
    assert path.seed == 7
    assert path.degrees_of_freedom == 3.5
    assert path.randomize_paths is True


def test_commission_settings_from_env(monkeypatch):
    monkeypatch.setenv("FILL_SIM_COMMISSION_PER_SHARE", "0.005")
    monkeypatch.setenv("FILL_SIM_COMMISSION_MINIMUM", "0")

    commission = CommissionSettings.from_env()

    assert commission.per_share == 0.005
    assert commission.minimum == 0.0


@pytest.mark.parametrize("name, value", [
    ("FILL_SIM_PATH_PROFILE", "bell_curve"),
    ("FILL_SIM_PATH_TOTAL_POINTS", "many"),
    ("FILL_SIM_PATH_TOTAL_POINTS", "-1"),
    ("FILL_SIM_PATH_SEED", "abc"),
    ("FILL_SIM_PATH_SEED", "-3"),
    ("FILL_SIM_PATH_DOF", "fat"),
    ("FILL_SIM_PATH_DOF", "0"),
    ("FILL_SIM_RANDOMIZE_PATHS", "maybe"),
    ("FILL_SIM_COMMISSION_PER_SHARE", "cheap"),
    ("FILL_SIM_COMMISSION_PER_SHARE", "-0.01"),
    ("FILL_SIM_COMMISSION_MINIMUM", "-1"),
    ("FILL_SIM_LOG_LEVEL", "LOUD"),
])
def test_malformed_values_name_the_variable(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(ValueError, match=name):
        Settings.from_env()


def test_path_settings_rejects_negative_seed():
    with pytest.raises(ValueError, match="FILL_SIM_PATH_SEED"):
        PathSettings(seed=-1)


def test_to_engine_config(monkeypatch):
    monkeypatch.setenv("FILL_SIM_PATH_PROFILE", "reverse_j")
    monkeypatch.setenv("FILL_SIM_PATH_SEED", "11")
    monkeypatch.setenv("FILL_SIM_COMMISSION_PER_SHARE", "0.02")
    monkeypatch.setenv("FILL_SIM_COMMISSION_MINIMUM", "2.0")

    config = Settings.from_env().to_engine_config()

    assert config.commission.per_share == 0.02
    assert config.commission.minimum == 2.0
    assert config.commission.commission_for(50.0) == 2.0
    assert config.path_config.profile is DistributionProfile.REVERSE_J
    assert config.path_config.seed == 11
    assert config.randomize_paths is False


def test_to_engine_config_defaults_to_engine_seed():
    """Without FILL_SIM_PATH_SEED engine paths still use a fixed seed."""
    config = Settings().to_engine_config()

    assert config.path_config.seed == DEFAULT_ENGINE_SEED


def test_get_settings_is_cached_until_reset(monkeypatch):
    monkeypatch.setenv("FILL_SIM_PATH_SEED", "1")
    first = get_settings()

    monkeypatch.setenv("FILL_SIM_PATH_SEED", "2")
    assert get_settings() is first

    reset_settings()
    assert get_settings().path.seed == 2
