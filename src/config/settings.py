"""
Configuration settings for the fill simulator.

**Conceptual**: This module provides strongly-typed configuration objects that
load from environment variables (via .env files). All settings are validated
at startup, ensuring fail-fast behavior if configuration is missing or invalid.

**Why centralized config?**
  - Single source of truth for simulation knobs (path shape, seed, commission).
  - Easy to test (inject fake settings instead of reading from environment).
  - Fail-fast validation (malformed FILL_SIM_PATH_SEED → clear error at
    startup, not halfway through a backtest).

**Teaching note**: Backtests are only comparable when their configuration is.
Keeping the seed, path profile and commission schedule in one typed object
(and printing it alongside results) makes it obvious when two runs were not
simulated the same way.

This module uses python-dotenv to load .env files and dataclasses for type safety.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from src.execution.types import DEFAULT_ENGINE_SEED, CommissionConfig, EngineConfig
from src.simulation.price_path import (
    DEFAULT_DEGREES_OF_FREEDOM,
    DEFAULT_TOTAL_POINTS,
    DistributionProfile,
    PathConfig,
)
from src.utils.log import configure_logging

# Load .env from project root (dev/local environments). Variables already
# set in the environment take precedence.
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


_TRUE_VALUES = ("true", "1", "yes")
_FALSE_VALUES = ("false", "0", "no", "")


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean (true/false), got: {raw}")


@dataclass(frozen=True)
class PathSettings:
    """
    Configuration for synthetic intraday path generation.

    **Conceptual**: When only daily (or coarser) bars are available, the
    matching engine invents a plausible intraday path through each bar's
    open, high, low and close. These settings control how that path looks:
    how its points are spread over the bar, how many there are, how
    fat-tailed the noise is, and whether runs are reproducible.

    Attributes:
        profile: Time density of path points (uniform, u_shaped, j_shaped,
                 reverse_j). Default uniform.
        total_points: Number of points per generated path (default 390,
                      one per minute of a regular US equity session).
        seed: Fixed seed for path generation. None means the engine default
              seed is used (runs are still reproducible).
        degrees_of_freedom: Student's t degrees of freedom for path noise
                            (default 4.0).
        randomize_paths: If True, paths are drawn from OS entropy and runs
                         are not reproducible (default False).
    """
    profile: DistributionProfile = DistributionProfile.UNIFORM
    total_points: int = DEFAULT_TOTAL_POINTS
    seed: Optional[int] = None
    degrees_of_freedom: float = DEFAULT_DEGREES_OF_FREEDOM
    randomize_paths: bool = False

    def __post_init__(self):
        """Validate settings after initialization."""
        if self.total_points < 0:
            raise ValueError(
                f"FILL_SIM_PATH_TOTAL_POINTS must be non-negative, got: {self.total_points}"
            )
        if self.degrees_of_freedom <= 0:
            raise ValueError(
                f"FILL_SIM_PATH_DOF must be positive, got: {self.degrees_of_freedom}"
            )
        if self.seed is not None and self.seed < 0:
            raise ValueError(
                f"FILL_SIM_PATH_SEED must be non-negative, got: {self.seed}"
            )

    @classmethod
    def from_env(cls) -> "PathSettings":
        """
        Load path settings from environment variables.

        **Environment variables** (all optional):
          - FILL_SIM_PATH_PROFILE: uniform | u_shaped | j_shaped | reverse_j.
          - FILL_SIM_PATH_TOTAL_POINTS: Integer point count (default 390).
          - FILL_SIM_PATH_SEED: Non-negative integer seed (default: unset).
          - FILL_SIM_PATH_DOF: Degrees of freedom (default 4.0).
          - FILL_SIM_RANDOMIZE_PATHS: true/false (default false).

        Returns:
            PathSettings object with values loaded from environment.

        Raises:
            ValueError: If any variable is malformed (message names it).

        Usage example:
            >>> # In .env file:
            >>> # FILL_SIM_PATH_PROFILE=u_shaped
            >>> # FILL_SIM_PATH_SEED=7
            >>>
            >>> settings = PathSettings.from_env()
            >>> print(settings.profile)  # DistributionProfile.U_SHAPED
        """
        profile_str = os.getenv("FILL_SIM_PATH_PROFILE", "uniform")
        total_points_str = os.getenv("FILL_SIM_PATH_TOTAL_POINTS", str(DEFAULT_TOTAL_POINTS))
        seed_str = os.getenv("FILL_SIM_PATH_SEED", "")
        dof_str = os.getenv("FILL_SIM_PATH_DOF", str(DEFAULT_DEGREES_OF_FREEDOM))
        randomize_str = os.getenv("FILL_SIM_RANDOMIZE_PATHS", "false")

        try:
            profile = DistributionProfile(profile_str.strip().lower())
        except ValueError:
            choices = ", ".join(p.value for p in DistributionProfile)
            raise ValueError(
                f"FILL_SIM_PATH_PROFILE must be one of {choices}, got: {profile_str}"
            )

        try:
            total_points = int(total_points_str)
        except ValueError:
            raise ValueError(
                f"FILL_SIM_PATH_TOTAL_POINTS must be an integer, got: {total_points_str}"
            )

        seed = None
        if seed_str.strip():
            try:
                seed = int(seed_str)
            except ValueError:
                raise ValueError(
                    f"FILL_SIM_PATH_SEED must be an integer, got: {seed_str}"
                )

        try:
            degrees_of_freedom = float(dof_str)
        except ValueError:
            raise ValueError(
                f"FILL_SIM_PATH_DOF must be a number, got: {dof_str}"
            )

        return cls(
            profile=profile,
            total_points=total_points,
            seed=seed,
            degrees_of_freedom=degrees_of_freedom,
            randomize_paths=_parse_bool("FILL_SIM_RANDOMIZE_PATHS", randomize_str),
        )

    def to_path_config(self) -> PathConfig:
        """Build the PathConfig the engine uses (engine default seed if unset)."""
        return PathConfig(
            profile=self.profile,
            total_points=self.total_points,
            seed=self.seed if self.seed is not None else DEFAULT_ENGINE_SEED,
            degrees_of_freedom=self.degrees_of_freedom,
        )


@dataclass(frozen=True)
class CommissionSettings:
    """
    Commission schedule charged on every simulated trade.

    commission = max(quantity * per_share, minimum)

    Attributes:
        per_share: Commission per share (default 0.01).
        minimum: Minimum commission per trade (default 1.0).
    """
    per_share: float = 0.01
    minimum: float = 1.0

    def __post_init__(self):
        """Validate settings after initialization."""
        if self.per_share < 0:
            raise ValueError(
                f"FILL_SIM_COMMISSION_PER_SHARE must be non-negative, got: {self.per_share}"
            )
        if self.minimum < 0:
            raise ValueError(
                f"FILL_SIM_COMMISSION_MINIMUM must be non-negative, got: {self.minimum}"
            )

    @classmethod
    def from_env(cls) -> "CommissionSettings":
        """
        Load commission settings from environment variables.

        **Environment variables** (all optional):
          - FILL_SIM_COMMISSION_PER_SHARE: Per-share rate (default 0.01).
          - FILL_SIM_COMMISSION_MINIMUM: Per-trade floor (default 1.0).

        Raises:
            ValueError: If a variable is not a number or is negative.
        """
        per_share_str = os.getenv("FILL_SIM_COMMISSION_PER_SHARE", "0.01")
        minimum_str = os.getenv("FILL_SIM_COMMISSION_MINIMUM", "1.0")

        try:
            per_share = float(per_share_str)
        except ValueError:
            raise ValueError(
                f"FILL_SIM_COMMISSION_PER_SHARE must be a number, got: {per_share_str}"
            )

        try:
            minimum = float(minimum_str)
        except ValueError:
            raise ValueError(
                f"FILL_SIM_COMMISSION_MINIMUM must be a number, got: {minimum_str}"
            )

        return cls(per_share=per_share, minimum=minimum)

    def to_commission_config(self) -> CommissionConfig:
        return CommissionConfig(per_share=self.per_share, minimum=self.minimum)


@dataclass(frozen=True)
class Settings:
    """
    Global settings for the fill simulator.

    **Usage pattern**:
      ```python
      from src.config.settings import get_settings
      from src.execution.matching_engine import MatchingEngine

      settings = get_settings()
      settings.setup_logging()
      engine = MatchingEngine(settings.to_engine_config())
      ```

    Attributes:
        path: Synthetic path settings.
        commission: Commission schedule.
        log_level: Level name passed to configure_logging (default "INFO").
    """
    path: PathSettings = field(default_factory=PathSettings)
    commission: CommissionSettings = field(default_factory=CommissionSettings)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Load global settings from environment variables.

        **Environment variables**:
          - Everything read by PathSettings.from_env and
            CommissionSettings.from_env.
          - FILL_SIM_LOG_LEVEL (optional): DEBUG, INFO, WARNING, ... (default INFO).

        Raises:
            ValueError: If any variable is malformed.
        """
        log_level = os.getenv("FILL_SIM_LOG_LEVEL", "INFO").strip().upper()
        if log_level not in ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"):
            raise ValueError(
                f"FILL_SIM_LOG_LEVEL must be a logging level name, got: {log_level}"
            )

        return cls(
            path=PathSettings.from_env(),
            commission=CommissionSettings.from_env(),
            log_level=log_level,
        )

    def to_engine_config(self) -> EngineConfig:
        """Build the immutable EngineConfig for a MatchingEngine."""
        return EngineConfig(
            commission=self.commission.to_commission_config(),
            path_config=self.path.to_path_config(),
            randomize_paths=self.path.randomize_paths,
        )

    def setup_logging(self) -> logging.Logger:
        """Apply ``log_level`` through configure_logging and return the root logger."""
        return configure_logging(self.log_level)


# Lazily loaded singleton. Tests should build Settings(...) directly or call
# reset_settings() after changing the environment.
_default_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the global settings singleton.

    Settings are loaded from environment on first call, then cached for reuse.

    **Teaching note**: Singleton pattern is useful for config, but be careful:
    it is global state. Library code (the engine, the path generator) takes
    its configuration as an argument; only drivers call get_settings().

    Returns:
        Global Settings singleton.

    Raises:
        ValueError: If any FILL_SIM_* variable is malformed.
    """
    global _default_settings

    if _default_settings is None:
        _default_settings = Settings.from_env()

    return _default_settings


def reset_settings():
    """
    Reset the global settings singleton (for testing).

    **Testing pattern**:
      ```python
      def test_something(monkeypatch):
          reset_settings()
          monkeypatch.setenv("FILL_SIM_PATH_SEED", "7")
          assert get_settings().path.seed == 7
      ```
    """
    global _default_settings
    _default_settings = None
