"""Configuration management for the expense insights engine.

This module centralizes every tunable threshold used by the analytics
modules, the location of the packaged JSON defaults, and environment
variable overrides.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from functools import lru_cache
from pathlib import Path
from typing import Mapping, Optional, Tuple

# Base package root - assumes this file is in expense_insights/
_PACKAGE_ROOT = Path(__file__).parent.resolve()

# Packaged JSON defaults (category keywords, currency locales)
DEFAULT_DATA_DIR = _PACKAGE_ROOT / "data"

DEFAULT_CURRENCY = "INR"


@dataclass(frozen=True)
class FrequencyWindow:
    """An inclusive day-gap range and the cadence label it maps to."""
    label: str
    min_days: float
    max_days: float
    monthly_multiplier: float = 1.0

    def contains(self, gap: float) -> bool:
        return self.min_days <= gap <= self.max_days


# Checked in declaration order
FREQUENCY_WINDOWS: Tuple[FrequencyWindow, ...] = (
    FrequencyWindow('monthly', 25, 35, 1.0),
    FrequencyWindow('weekly', 6, 8, 52 / 12),
    FrequencyWindow('bi-weekly', 13, 16, 26 / 12),
)


@dataclass(frozen=True)
class RecurringThresholds:
    """Parameters of the recurring charge detector."""
    min_occurrences: int = 3
    min_window_occurrences: int = 2
    window_months: int = 6
    max_variation: float = 0.30
    min_key_length: int = 3
    max_candidates: int = 8
    frequency_windows: Tuple[FrequencyWindow, ...] = FREQUENCY_WINDOWS

    def __post_init__(self) -> None:
        # Lists are accepted; stored as a tuple
        object.__setattr__(self, 'frequency_windows', tuple(self.frequency_windows))
        if self.min_window_occurrences < 2:
            raise ValueError("min_window_occurrences must be at least 2 to measure a gap")
        if self.window_months <= 0:
            raise ValueError(f"window_months must be positive, got {self.window_months}")
        if self.max_variation < 0:
            raise ValueError(f"max_variation must not be negative, got {self.max_variation}")
        for window in self.frequency_windows:
            if window.min_days > window.max_days:
                raise ValueError(f"Frequency window '{window.label}' has min above max: {window}")

    def window_for(self, label: str) -> Optional[FrequencyWindow]:
        for window in self.frequency_windows:
            if window.label == label:
                return window
        return None


@dataclass(frozen=True)
class BudgetThresholds:
    """Integer percentage cut points for budget alerts."""
    warning_pct: float = 70
    critical_pct: float = 90
    over_budget_pct: float = 100

    def __post_init__(self) -> None:
        if not self.warning_pct < self.critical_pct <= self.over_budget_pct:
            raise ValueError(
                "Budget thresholds must satisfy warning < critical <= over budget, got "
                f"{self.warning_pct}/{self.critical_pct}/{self.over_budget_pct}"
            )


@dataclass(frozen=True)
class BalanceThresholds:
    """Noise tolerances for balances and debts."""
    noise_epsilon: float = 0.01
    friend_min_balance: float = 0.5
    settle_min_amount: float = 1.0
    default_currency: str = DEFAULT_CURRENCY


@dataclass(frozen=True)
class EngineConfig:
    recurring: RecurringThresholds = field(default_factory=RecurringThresholds)
    budget: BudgetThresholds = field(default_factory=BudgetThresholds)
    balance: BalanceThresholds = field(default_factory=BalanceThresholds)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """Build a configuration from ``EXPENSE_INSIGHTS_*`` environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ`` (useful in tests).

        Raises:
            ValueError: If an override cannot be parsed or breaks a threshold invariant.
        """
        env = os.environ if environ is None else environ
        config = cls()

        recurring_overrides = {}
        if env.get("EXPENSE_INSIGHTS_MAX_CV"):
            recurring_overrides['max_variation'] = _parse(env, "EXPENSE_INSIGHTS_MAX_CV", float)
        if env.get("EXPENSE_INSIGHTS_WINDOW_MONTHS"):
            recurring_overrides['window_months'] = _parse(env, "EXPENSE_INSIGHTS_WINDOW_MONTHS", int)
        if env.get("EXPENSE_INSIGHTS_MAX_RECURRING"):
            recurring_overrides['max_candidates'] = _parse(env, "EXPENSE_INSIGHTS_MAX_RECURRING", int)
        if recurring_overrides:
            config = replace(config, recurring=replace(config.recurring, **recurring_overrides))

        currency = env.get("EXPENSE_INSIGHTS_DEFAULT_CURRENCY", "").strip().upper()
        if currency:
            config = replace(config, balance=replace(config.balance, default_currency=currency))
        return config


def _parse(env: Mapping[str, str], name: str, kind):
    raw = env[name]
    try:
        return kind(raw)
    except ValueError:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from None


@lru_cache(maxsize=1)
def get_config() -> EngineConfig:
    """Return the default configuration, read once from the environment."""
    return EngineConfig.from_env()


def get_data_dir() -> Path:
    """Get the directory holding the JSON defaults (``EXPENSE_INSIGHTS_DATA_DIR`` overrides)."""
    override = os.getenv("EXPENSE_INSIGHTS_DATA_DIR")
    return Path(override).resolve() if override else DEFAULT_DATA_DIR
