"""
Descriptive statistics for Monte Carlo outcome sets.

Conventions are fixed so every run summarizes the same way:
population variance (divide by N), skewness mean(z**3) and excess
kurtosis mean(z**4) - 3 on standardized values z, and linear
interpolation between order statistics for percentiles and empirical
confidence intervals.
"""
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Sequence

import numpy as np

from errors import InvalidInput

DEFAULT_CONFIDENCE_LEVELS = (0.90, 0.95, 0.99)


@dataclass(frozen=True)
class Percentiles:
    p5: float
    p10: float
    p25: float
    p75: float
    p90: float
    p95: float


@dataclass(frozen=True)
class SimulationStats:
    """Summary of a set of simulated terminal values"""
    mean: float
    median: float
    standard_deviation: float
    variance: float
    minimum: float
    maximum: float
    skewness: float
    kurtosis: float  # Excess kurtosis, 0 for a normal distribution
    percentiles: Percentiles

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True)
class ConfidenceInterval:
    level: float
    lower: float
    upper: float

    def to_dict(self) -> Dict:
        return asdict(self)


def _as_array(results: Iterable[float]) -> np.ndarray:
    values = np.asarray(results, dtype=float).ravel()
    if values.size == 0:
        raise InvalidInput("Cannot summarize an empty result set")
    return values


def percentile(results: Sequence[float], q: float) -> float:
    """
    Linearly interpolated percentile.

    Args:
        results: Outcome values
        q: Quantile in [0, 1]; rank q * (n - 1) on the sorted values

    Returns:
        Interpolated value
    """
    if not 0 <= q <= 1:
        raise InvalidInput(f"Quantile must be in [0, 1], got {q}")
    return float(np.quantile(_as_array(results), q, method='linear'))


def summarize(results: Sequence[float]) -> SimulationStats:
    """Reduce outcome values to SimulationStats"""
    values = _as_array(results)

    mean = float(np.mean(values))
    variance = float(np.var(values))
    if np.ptp(values) == 0:
        # Identical outcomes: no spread, moments defined as zero
        variance = 0.0
        skewness = 0.0
        kurtosis = 0.0
        mean = float(values[0])
    elif variance == 0:
        # Spread below float resolution
        skewness = 0.0
        kurtosis = 0.0
    else:
        z = (values - mean) / np.sqrt(variance)
        skewness = float(np.mean(z ** 3))
        kurtosis = float(np.mean(z ** 4) - 3.0)

    p5, p10, p25, median, p75, p90, p95 = (
        float(v) for v in np.quantile(values, [0.05, 0.10, 0.25, 0.50, 0.75, 0.90, 0.95], method='linear')
    )

    return SimulationStats(
        mean=mean,
        median=median,
        standard_deviation=float(np.sqrt(variance)),
        variance=variance,
        minimum=float(np.min(values)),
        maximum=float(np.max(values)),
        skewness=skewness,
        kurtosis=kurtosis,
        percentiles=Percentiles(p5=p5, p10=p10, p25=p25, p75=p75, p90=p90, p95=p95),
    )


def confidence_intervals(results: Sequence[float],
                         levels: Iterable[float] = DEFAULT_CONFIDENCE_LEVELS) -> List[ConfidenceInterval]:
    """
    Empirical (non-parametric) confidence intervals.

    For each level the interval is bounded by the (1 - level) / 2 and
    1 - (1 - level) / 2 percentiles of the outcome distribution.
    """
    values = _as_array(results)
    intervals = []
    for level in levels:
        if not 0 < level < 1:
            raise InvalidInput(f"Confidence level must be in (0, 1), got {level}")
        alpha = (1 - level) / 2
        lower, upper = np.quantile(values, [alpha, 1 - alpha], method='linear')
        intervals.append(ConfidenceInterval(level=float(level), lower=float(lower), upper=float(upper)))
    return intervals
