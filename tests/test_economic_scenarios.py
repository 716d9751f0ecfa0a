"""
Unit tests for the economic regime catalogue.
"""
import pytest
from economic_scenarios import (
    BASELINE_SCENARIO_ID, CATEGORIES, ECONOMIC_SCENARIOS, BaseInvestment,
    get_baseline_scenario, get_scenario_by_id, get_scenarios_by_category, get_stress_test_scenarios,
)
from errors import InvalidConfiguration
from simulation import InvestmentScenario


class TestCatalogue:
    """Test the predefined regimes"""

    def test_six_unique_regimes(self):
        """Test catalogue ids are unique"""
        ids = [scenario.id for scenario in ECONOMIC_SCENARIOS]
        assert ids == ['normal-growth', 'recession-mild', 'recession-severe',
                       'high-inflation', 'bull-market', 'market-crash']

    def test_categories_valid(self):
        """Test every regime uses a known category"""
        assert all(scenario.category in CATEGORIES for scenario in ECONOMIC_SCENARIOS)

    def test_regime_probabilities_are_shares(self):
        """Test long-run regime shares add up to at most one"""
        total = sum(scenario.probability for scenario in ECONOMIC_SCENARIOS)
        assert 0.95 <= total <= 1.0

    def test_inflation_bounds_contain_mean(self):
        """Test each inflation mean lies inside its min/max"""
        for scenario in ECONOMIC_SCENARIOS:
            inflation = scenario.parameters.inflation_rate
            assert inflation.min <= inflation.mean <= inflation.max

    def test_severe_recession_has_two_shocks(self):
        """Test the severe recession carries a financial-sector shock"""
        shocks = get_scenario_by_id('recession-severe').parameters.market_shocks
        assert len(shocks) == 2
        assert shocks[1].sector == 'financial'


class TestLookups:
    """Test lookup helpers"""

    def test_get_by_id(self):
        """Test lookup by id and missing id"""
        assert get_scenario_by_id('bull-market').category == 'bull-market'
        assert get_scenario_by_id('no-such-regime') is None

    def test_get_by_category(self):
        """Test category filter"""
        assert [s.id for s in get_scenarios_by_category('recession')] == ['recession-mild', 'recession-severe']
        assert get_scenarios_by_category('unknown') == []

    def test_baseline(self):
        """Test the baseline is normal growth"""
        assert get_baseline_scenario().id == BASELINE_SCENARIO_ID == 'normal-growth'

    def test_stress_test_scenarios(self):
        """Test stress set excludes normal and bull regimes"""
        ids = {s.id for s in get_stress_test_scenarios()}
        assert ids == {'recession-mild', 'recession-severe', 'high-inflation', 'market-crash'}

    def test_unknown_category_rejected(self):
        """Test constructing a regime with an unknown category fails"""
        baseline = get_baseline_scenario()
        with pytest.raises(InvalidConfiguration, match="category"):
            type(baseline)(id='x', name='X', description='', category='boom', probability=0.1,
                           duration=(1, 2), parameters=baseline.parameters)


class TestInvestmentMapping:
    """Test mapping a regime onto a base plan"""

    def test_to_investment_scenario(self):
        """Test regime assumptions flow into the scenario"""
        base = BaseInvestment(initial_value=250_000, time_horizon=20, target_value=1_000_000)
        scenario = get_scenario_by_id('high-inflation').to_investment_scenario(base)
        assert isinstance(scenario, InvestmentScenario)
        assert scenario.initial_value == 250_000
        assert scenario.time_horizon == 20
        assert scenario.target_value == 1_000_000
        assert scenario.expected_return == 0.03
        assert scenario.volatility == 0.22
        assert scenario.inflation_rate == 0.065
        assert len(scenario.market_shocks) == 1

    def test_default_base(self):
        """Test the default base plan"""
        scenario = get_baseline_scenario().to_investment_scenario()
        assert scenario.initial_value == 100_000
        assert scenario.time_horizon == 30
        assert scenario.target_value == 500_000
