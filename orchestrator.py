"""
Monte Carlo orchestration: one seeded stream, many paths, one summary.
"""
import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from config_utils import EngineSettings, get_default_settings
from errors import InvalidConfiguration
from goals import success_probability
from random_source import DeterministicRandomSource, ValidationReport
from simulation import InvestmentScenario, PathSimulator
from summary_stats import ConfidenceInterval, SimulationStats, confidence_intervals, summarize

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


@dataclass
class SimulationConfig:
    """Per-run options supplied by the caller"""
    iterations: int
    seed: Optional[int] = None
    on_progress: Optional[ProgressCallback] = None
    keep_paths: bool = False


@dataclass(frozen=True)
class SimulationMetadata:
    seed: int
    timestamp: str
    engine_version: str


@dataclass(frozen=True)
class SimulationResult:
    """Results from one Monte Carlo run"""
    scenario: InvestmentScenario
    iterations: int
    execution_time: float  # Seconds
    results: np.ndarray  # Terminal values, one per iteration
    statistics: SimulationStats
    goal_success_probability: Optional[float]
    confidence_intervals: List[ConfidenceInterval]
    metadata: SimulationMetadata
    paths: Optional[np.ndarray] = field(default=None, repr=False)  # iterations x (horizon + 1)

    def real_results(self) -> np.ndarray:
        """Terminal values deflated to today's money"""
        return self.results / self.scenario.inflation_factor

    def to_dict(self, include_paths: bool = False) -> Dict[str, Any]:
        """Plain, JSON-compatible representation"""
        scenario = asdict(self.scenario)
        scenario['market_shocks'] = [asdict(shock) for shock in self.scenario.market_shocks]
        data = {
            'scenario': scenario,
            'iterations': self.iterations,
            'execution_time': self.execution_time,
            'results': self.results.tolist(),
            'statistics': self.statistics.to_dict(),
            'goal_success_probability': self.goal_success_probability,
            'confidence_intervals': [ci.to_dict() for ci in self.confidence_intervals],
            'metadata': asdict(self.metadata),
        }
        if include_paths and self.paths is not None:
            data['paths'] = self.paths.tolist()
        return data


def _validate_iterations(iterations) -> int:
    if isinstance(iterations, bool) or not isinstance(iterations, (int, np.integer)) or iterations <= 0:
        raise InvalidConfiguration(f"Iterations must be a positive integer, got {iterations!r}")
    return int(iterations)


class ScenarioOrchestrator:
    """Runs PathSimulator many times and reduces the outcomes"""

    def __init__(self, settings: Optional[EngineSettings] = None,
                 path_simulator: Optional[PathSimulator] = None):
        self.settings = settings or get_default_settings()
        self.path_simulator = path_simulator or PathSimulator()

    def run(self, scenario: InvestmentScenario, iterations: Optional[int] = None,
            seed: Optional[int] = None, on_progress: Optional[ProgressCallback] = None,
            keep_paths: bool = False) -> SimulationResult:
        """
        Run a Monte Carlo simulation for one scenario.

        Args:
            scenario: Investment scenario to simulate
            iterations: Number of paths; defaults to settings.default_iterations
            seed: Seed for the random source; derived from the clock when omitted
            on_progress: Called with the completed fraction every
                settings.progress_interval iterations and once with 1.0 at the end
            keep_paths: Retain every year-end value, not just terminal values

        Returns:
            SimulationResult
        """
        if iterations is None:
            iterations = self.settings.default_iterations
        iterations = _validate_iterations(iterations)
        if not isinstance(scenario, InvestmentScenario):
            raise InvalidConfiguration(f"Expected an InvestmentScenario, got {type(scenario).__name__}")

        start_time = time.perf_counter()
        rng = DeterministicRandomSource(seed)
        logger.debug("Running %d iterations (seed=%d, horizon=%d, shocks=%d)",
                     iterations, rng.seed, scenario.time_horizon, len(scenario.market_shocks))

        interval = self.settings.progress_interval
        results = np.empty(iterations, dtype=float)
        paths = np.empty((iterations, scenario.time_horizon + 1), dtype=float) if keep_paths else None

        for i in range(iterations):
            if on_progress is not None and i % interval == 0:
                on_progress(i / iterations)

            if keep_paths:
                path = self.path_simulator.simulate_path(scenario, rng)
                paths[i] = path
                results[i] = path[-1]
            else:
                results[i] = self.path_simulator.simulate(scenario, rng)

        if on_progress is not None:
            on_progress(1.0)

        statistics = summarize(results)
        goal_probability = None
        if scenario.target_value is not None:
            goal_probability = success_probability(results, scenario.target_value)
        intervals = confidence_intervals(results, self.settings.confidence_levels)

        results.flags.writeable = False
        if paths is not None:
            paths.flags.writeable = False

        execution_time = time.perf_counter() - start_time
        logger.info("Simulated %d paths over %d years in %.3fs", iterations, scenario.time_horizon,
                    execution_time)

        return SimulationResult(
            scenario=scenario,
            iterations=iterations,
            execution_time=execution_time,
            results=results,
            statistics=statistics,
            goal_success_probability=goal_probability,
            confidence_intervals=intervals,
            metadata=SimulationMetadata(
                seed=rng.seed,
                timestamp=datetime.now(timezone.utc).isoformat(),
                engine_version=self.settings.engine_version,
            ),
            paths=paths,
        )

    def run_config(self, scenario: InvestmentScenario, config: SimulationConfig) -> SimulationResult:
        """Run with a SimulationConfig bundle"""
        return self.run(scenario, config.iterations, seed=config.seed,
                        on_progress=config.on_progress, keep_paths=config.keep_paths)

    def validate_random_source(self, seed: Optional[int] = None,
                               sample_size: int = 10_000) -> ValidationReport:
        """
        Chi-square check of the random stream a run with this seed would use.

        Bin count and significance come from settings.validation_bins and
        settings.significance_level.
        """
        rng = DeterministicRandomSource(seed)
        report = rng.validate(sample_size, self.settings.validation_bins, self.settings.significance_level)
        if not report.is_valid:
            logger.warning("Random source failed uniformity check (seed=%d, p=%.4f)", rng.seed, report.p_value)
        return report
