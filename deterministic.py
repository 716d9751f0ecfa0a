"""
Deterministic investment projection using expected returns (no randomness).
Provides a baseline path for comparison with Monte Carlo results.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np

from simulation import InvestmentScenario

logger = logging.getLogger(__name__)


@dataclass
class DeterministicResults:
    """Results from deterministic projection"""
    wealth_path: np.ndarray  # Nominal year-end values, length horizon + 1
    real_wealth_path: np.ndarray  # Same values in today's money
    annual_return: float  # Return applied every year
    year_by_year_details: Dict[str, List]


class DeterministicProjector:
    """Compounds a scenario at its expected return"""

    def __init__(self, scenario: InvestmentScenario, include_expected_shocks: bool = False):
        self.scenario = scenario
        self.include_expected_shocks = include_expected_shocks

    def _get_annual_return(self) -> float:
        """Expected return, optionally net of probability-weighted shocks"""
        annual_return = self.scenario.expected_return
        if self.include_expected_shocks:
            annual_return += sum(shock.probability * shock.impact
                                 for shock in self.scenario.market_shocks)
        return annual_return

    def run_projection(self) -> DeterministicResults:
        """Run deterministic projection"""
        horizon = self.scenario.time_horizon
        annual_return = self._get_annual_return()

        wealth_path = np.zeros(horizon + 1)
        wealth_path[0] = self.scenario.initial_value
        details = {'years': [], 'start_value': [], 'growth': [], 'end_value': []}

        for year in range(horizon):
            start_value = wealth_path[year]
            growth = start_value * annual_return
            wealth_path[year + 1] = start_value + growth

            details['years'].append(year + 1)
            details['start_value'].append(start_value)
            details['growth'].append(growth)
            details['end_value'].append(wealth_path[year + 1])

        inflation_rate = self.scenario.inflation_rate or 0.0
        real_wealth_path = convert_to_real(wealth_path, inflation_rate)

        logger.debug("Projected %d years at %.4f: %.2f -> %.2f", horizon, annual_return,
                     wealth_path[0], wealth_path[-1])

        return DeterministicResults(
            wealth_path=wealth_path,
            real_wealth_path=real_wealth_path,
            annual_return=annual_return,
            year_by_year_details=details,
        )


def _inflation_factors(years: int, inflation_rate: float) -> np.ndarray:
    return np.array([(1 + inflation_rate) ** t for t in range(years)])


def convert_to_nominal(real_values: np.ndarray, inflation_rate: float) -> np.ndarray:
    """
    Convert real values to nominal using compound inflation.

    Args:
        real_values: Year-indexed values in today's money (index 0 = today)
        inflation_rate: Annual inflation rate

    Returns:
        Array of nominal values
    """
    real_values = np.asarray(real_values, dtype=float)
    return real_values * _inflation_factors(len(real_values), inflation_rate)


def convert_to_real(nominal_values: np.ndarray, inflation_rate: float) -> np.ndarray:
    """Deflate year-indexed nominal values to today's money"""
    nominal_values = np.asarray(nominal_values, dtype=float)
    return nominal_values / _inflation_factors(len(nominal_values), inflation_rate)


def project_scenario(scenario: InvestmentScenario,
                     include_expected_shocks: Optional[bool] = False) -> DeterministicResults:
    """Shortcut for DeterministicProjector(scenario).run_projection()"""
    return DeterministicProjector(scenario, bool(include_expected_shocks)).run_projection()
