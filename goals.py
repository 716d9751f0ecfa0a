"""
Goal evaluation over simulated outcomes.
"""
from dataclasses import asdict, dataclass
from typing import Dict, Sequence

import numpy as np

from errors import InvalidInput


@dataclass(frozen=True)
class GoalAssessment:
    """How a set of outcomes fares against a target value"""
    target_value: float
    success_probability: float
    expected_shortfall: float  # Mean gap below target across all paths
    ruin_probability: float

    def to_dict(self) -> Dict:
        return asdict(self)


def _as_array(results: Sequence[float]) -> np.ndarray:
    values = np.asarray(results, dtype=float).ravel()
    if values.size == 0:
        raise InvalidInput("Cannot evaluate a goal against an empty result set")
    return values


def success_probability(results: Sequence[float], target_value: float) -> float:
    """Share of outcomes that meet or exceed the target"""
    values = _as_array(results)
    return float(np.count_nonzero(values >= target_value) / values.size)


def probability_below(results: Sequence[float], threshold: float) -> float:
    """Share of outcomes strictly below a threshold"""
    values = _as_array(results)
    return float(np.count_nonzero(values < threshold) / values.size)


def ruin_probability(results: Sequence[float]) -> float:
    """Share of outcomes that end at or below zero"""
    values = _as_array(results)
    return float(np.count_nonzero(values <= 0) / values.size)


def expected_shortfall(results: Sequence[float], target_value: float) -> float:
    """Average amount by which outcomes miss the target (0 for paths that reach it)"""
    values = _as_array(results)
    if np.isinf(target_value):
        return float('inf') if target_value > 0 else 0.0
    return float(np.mean(np.maximum(target_value - values, 0.0)))


def evaluate_goal(results: Sequence[float], target_value: float) -> GoalAssessment:
    """Bundle the goal metrics for one target"""
    return GoalAssessment(
        target_value=float(target_value),
        success_probability=success_probability(results, target_value),
        expected_shortfall=expected_shortfall(results, target_value),
        ruin_probability=ruin_probability(results),
    )
