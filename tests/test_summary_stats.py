"""
Unit tests for outcome statistics.
"""
import pytest
import numpy as np
from errors import InvalidInput
from summary_stats import confidence_intervals, percentile, summarize


class TestPercentile:
    """Test linear-interpolation percentiles"""

    def test_interpolates_between_ranks(self):
        """Test rank q * (n - 1) interpolation"""
        values = [4, 1, 3, 2]
        assert percentile(values, 0.5) == pytest.approx(2.5)
        assert percentile(values, 0.25) == pytest.approx(1.75)
        assert percentile(values, 0.0) == 1
        assert percentile(values, 1.0) == 4

    def test_single_value(self):
        """Test any quantile of one value is that value"""
        assert percentile([42.0], 0.9) == 42.0

    @pytest.mark.parametrize("q", [-0.1, 1.1])
    def test_quantile_out_of_range(self, q):
        """Test quantiles outside [0, 1] are rejected"""
        with pytest.raises(InvalidInput, match="Quantile"):
            percentile([1, 2, 3], q)

    def test_empty_input(self):
        """Test empty input raises InvalidInput"""
        with pytest.raises(InvalidInput):
            percentile([], 0.5)


class TestSummarize:
    """Test SimulationStats reduction"""

    def test_population_moments(self):
        """Test population variance and moment-based shape statistics"""
        stats = summarize([1, 2, 3, 4])
        assert stats.mean == pytest.approx(2.5)
        assert stats.median == pytest.approx(2.5)
        assert stats.variance == pytest.approx(1.25)
        assert stats.standard_deviation == pytest.approx(np.sqrt(1.25))
        assert stats.skewness == pytest.approx(0.0, abs=1e-12)
        assert stats.kurtosis == pytest.approx(-1.36)
        assert stats.minimum == 1
        assert stats.maximum == 4

    def test_right_skew_is_positive(self):
        """Test a long right tail yields positive skewness"""
        assert summarize([1, 1, 1, 1, 10]).skewness > 0

    def test_constant_values(self):
        """Test identical outcomes give zero spread and shape"""
        stats = summarize([7.5] * 100)
        assert stats.mean == 7.5
        assert stats.variance == 0.0
        assert stats.standard_deviation == 0.0
        assert stats.skewness == 0.0
        assert stats.kurtosis == 0.0
        assert stats.percentiles.p5 == stats.percentiles.p95 == 7.5

    def test_near_constant_values_have_finite_shape(self):
        """Test outcomes a few ulps apart give finite skewness and kurtosis"""
        stats = summarize([1e6, 1e6, 1e6 + 2.33e-10])
        assert np.isfinite(stats.skewness)
        assert np.isfinite(stats.kurtosis)

        base = 123456.789
        stats = summarize([base, base, np.nextafter(base, np.inf)])
        assert np.isfinite(stats.skewness)
        assert np.isfinite(stats.kurtosis)
        assert stats.standard_deviation >= 0.0

    def test_three_point_moments(self):
        """Test population skewness and excess kurtosis of [0, 0, 1]"""
        stats = summarize([0, 0, 1])
        assert stats.skewness == pytest.approx(1 / np.sqrt(2))
        assert stats.kurtosis == pytest.approx(-1.5)

    def test_percentiles_monotonic(self):
        """Test p5 <= p10 <= p25 <= median <= p75 <= p90 <= p95"""
        rng = np.random.default_rng(1)
        stats = summarize(rng.lognormal(0, 1, 5_000))
        p = stats.percentiles
        assert p.p5 <= p.p10 <= p.p25 <= stats.median <= p.p75 <= p.p90 <= p.p95
        assert stats.minimum <= p.p5
        assert p.p95 <= stats.maximum

    def test_empty_input(self):
        """Test empty input raises InvalidInput"""
        with pytest.raises(InvalidInput, match="empty"):
            summarize([])

    def test_to_dict(self):
        """Test to_dict nests percentiles"""
        data = summarize([1, 2, 3]).to_dict()
        assert set(data['percentiles']) == {'p5', 'p10', 'p25', 'p75', 'p90', 'p95'}
        assert data['mean'] == pytest.approx(2.0)


class TestConfidenceIntervals:
    """Test empirical confidence intervals"""

    def test_default_levels_nested(self):
        """Test wider levels give wider intervals"""
        rng = np.random.default_rng(2)
        intervals = confidence_intervals(rng.normal(0, 1, 10_000))
        assert [ci.level for ci in intervals] == [0.90, 0.95, 0.99]
        for narrow, wide in zip(intervals, intervals[1:]):
            assert wide.lower <= narrow.lower
            assert narrow.upper <= wide.upper

    def test_normal_95_bounds(self):
        """Test 95% interval of a standard normal sample is near +/-1.96"""
        rng = np.random.default_rng(3)
        (ci,) = confidence_intervals(rng.normal(0, 1, 50_000), levels=[0.95])
        assert ci.lower == pytest.approx(-1.96, abs=0.05)
        assert ci.upper == pytest.approx(1.96, abs=0.05)

    @pytest.mark.parametrize("level", [0, 1, 1.5, -0.2])
    def test_invalid_level(self, level):
        """Test levels outside (0, 1) are rejected"""
        with pytest.raises(InvalidInput, match="Confidence level"):
            confidence_intervals([1, 2, 3], levels=[level])
