"""
Investment scenario model and single-path Monte Carlo simulator.
Pure functions of (scenario, random source), decoupled from orchestration.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from errors import InvalidConfiguration
from random_source import DeterministicRandomSource

logger = logging.getLogger(__name__)


def _is_finite_number(value) -> bool:
    return isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, bool) \
        and math.isfinite(value)


def _is_target_number(value) -> bool:
    # Unreachable targets may be given as +/-inf; NaN never compares true
    return isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, bool) \
        and not math.isnan(value)


@dataclass(frozen=True)
class MarketShock:
    """One-off additive jolt to a year's return, triggered with a fixed probability"""
    probability: float
    impact: float
    duration_months: Optional[float] = None  # Descriptive only
    sector: Optional[str] = None  # Descriptive only

    def __post_init__(self):
        if not _is_finite_number(self.probability) or not 0 <= self.probability <= 1:
            raise InvalidConfiguration(
                f"Shock probability must be in [0, 1], got {self.probability!r}")
        if not _is_finite_number(self.impact):
            raise InvalidConfiguration(f"Shock impact must be a finite number, got {self.impact!r}")
        if self.duration_months is not None and not _is_finite_number(self.duration_months):
            raise InvalidConfiguration(
                f"Shock duration must be a finite number of months, got {self.duration_months!r}")

        # Plain floats keep asdict() output JSON-serializable
        object.__setattr__(self, 'probability', float(self.probability))
        object.__setattr__(self, 'impact', float(self.impact))
        if self.duration_months is not None:
            object.__setattr__(self, 'duration_months', float(self.duration_months))


@dataclass(frozen=True)
class InvestmentScenario:
    """Parameters of one investment plan (annualized, decimal rates)"""
    initial_value: float
    expected_return: float
    volatility: float
    time_horizon: int  # Years
    inflation_rate: Optional[float] = None
    target_value: Optional[float] = None
    market_shocks: Tuple[MarketShock, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # Accept lists and plain dicts for shocks but store an immutable tuple
        shocks = tuple(
            shock if isinstance(shock, MarketShock) else MarketShock(**shock)
            for shock in (self.market_shocks or ())
        )
        object.__setattr__(self, 'market_shocks', shocks)
        self._validate()
        self._normalize()

    def _validate(self):
        """Validate scenario parameters"""
        if not _is_finite_number(self.initial_value) or self.initial_value < 0:
            raise InvalidConfiguration(
                f"Initial value must be a non-negative number, got {self.initial_value!r}")
        if not _is_finite_number(self.expected_return):
            raise InvalidConfiguration(
                f"Expected return must be a finite number, got {self.expected_return!r}")
        if not _is_finite_number(self.volatility) or self.volatility < 0:
            raise InvalidConfiguration(
                f"Volatility must be a non-negative number, got {self.volatility!r}")
        if isinstance(self.time_horizon, bool) or not isinstance(self.time_horizon, (int, np.integer)) \
                or self.time_horizon < 0:
            raise InvalidConfiguration(
                f"Time horizon must be a non-negative integer number of years, got {self.time_horizon!r}")
        if self.inflation_rate is not None and not _is_finite_number(self.inflation_rate):
            raise InvalidConfiguration(
                f"Inflation rate must be a finite number, got {self.inflation_rate!r}")
        if self.target_value is not None and not _is_target_number(self.target_value):
            raise InvalidConfiguration(f"Target value must be a number, got {self.target_value!r}")

    def _normalize(self):
        """Store builtin int/float values so asdict() output is JSON-serializable"""
        object.__setattr__(self, 'initial_value', float(self.initial_value))
        object.__setattr__(self, 'expected_return', float(self.expected_return))
        object.__setattr__(self, 'volatility', float(self.volatility))
        object.__setattr__(self, 'time_horizon', int(self.time_horizon))
        if self.inflation_rate is not None:
            object.__setattr__(self, 'inflation_rate', float(self.inflation_rate))
        if self.target_value is not None:
            object.__setattr__(self, 'target_value', float(self.target_value))

    @property
    def draws_per_path(self) -> int:
        """Uniform draws consumed by one simulated path"""
        return self.time_horizon * (2 + len(self.market_shocks))

    @property
    def inflation_factor(self) -> float:
        """Cumulative price level at the end of the horizon"""
        if self.inflation_rate is None:
            return 1.0
        return (1 + self.inflation_rate) ** self.time_horizon


class PathSimulator:
    """Year-by-year compounding of one scenario under random returns and shocks"""

    def _year_return(self, scenario: InvestmentScenario, rng: DeterministicRandomSource) -> float:
        """Draw the nominal return for one simulated year"""
        annual_return = rng.next_gaussian(scenario.expected_return, scenario.volatility)

        # Each shock gets its own draw whether or not it fires
        for shock in scenario.market_shocks:
            if rng.next() < shock.probability:
                annual_return += shock.impact

        # Inflation never enters nominal compounding; see InvestmentScenario.inflation_factor
        return annual_return

    def simulate(self, scenario: InvestmentScenario, rng: DeterministicRandomSource) -> float:
        """
        Simulate one path and return its terminal value.

        Values may end up negative for pathological inputs; no clamping is
        applied, callers read such outcomes as ruin.
        """
        value = scenario.initial_value
        for _ in range(scenario.time_horizon):
            value *= 1 + self._year_return(scenario, rng)
        return value

    def simulate_path(self, scenario: InvestmentScenario, rng: DeterministicRandomSource) -> np.ndarray:
        """
        Simulate one path and return every year-end value.

        Consumes exactly the draws simulate() would, so the last element
        equals simulate() for the same stream position.
        """
        values: List[float] = [scenario.initial_value]
        value = scenario.initial_value
        for _ in range(scenario.time_horizon):
            value *= 1 + self._year_return(scenario, rng)
            values.append(value)
        return np.array(values, dtype=float)


def calculate_max_drawdown(path: np.ndarray) -> float:
    """Largest peak-to-trough decline of one path, as a fraction of the peak"""
    path = np.asarray(path, dtype=float)
    if path.size == 0:
        return 0.0
    peaks = np.maximum.accumulate(path)
    with np.errstate(divide='ignore', invalid='ignore'):
        drawdowns = np.where(peaks > 0, (peaks - path) / peaks, 0.0)
    return float(np.max(drawdowns))


def calculate_drawdowns(paths: np.ndarray) -> np.ndarray:
    """Maximum drawdown of every row of a (paths x years) array"""
    paths = np.atleast_2d(np.asarray(paths, dtype=float))
    peaks = np.maximum.accumulate(paths, axis=1)
    with np.errstate(divide='ignore', invalid='ignore'):
        drawdowns = np.where(peaks > 0, (peaks - paths) / peaks, 0.0)
    return drawdowns.max(axis=1)


def calculate_percentiles(wealth_paths: np.ndarray) -> dict:
    """Calculate wealth percentile bands over time"""
    return {
        'p10': np.percentile(wealth_paths, 10, axis=0),
        'p50': np.percentile(wealth_paths, 50, axis=0),
        'p90': np.percentile(wealth_paths, 90, axis=0),
    }
