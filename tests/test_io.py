"""
Unit tests for IO utilities (save/load scenarios, exports).
"""
import pytest
import json
import zipfile
import numpy as np
import pandas as pd
from io import StringIO
from economic_scenarios import BaseInvestment, get_scenario_by_id
from errors import InvalidConfiguration
from orchestrator import ScenarioOrchestrator
from scenario_analysis import ScenarioAnalyzer
from simulation import InvestmentScenario, MarketShock
from io_utils import (
    comparison_to_dataframe, create_batch_export_zip, create_summary_report, dict_to_scenario,
    export_percentile_table_csv, export_results_csv, export_summary_report_json, format_currency,
    load_scenario_json, result_to_dict, save_scenario_json, scenario_to_dict, validate_scenario_json,
)


@pytest.fixture
def scenario():
    return InvestmentScenario(
        initial_value=100_000,
        expected_return=0.07,
        volatility=0.15,
        time_horizon=5,
        inflation_rate=0.02,
        target_value=150_000,
        market_shocks=(MarketShock(probability=0.05, impact=-0.1, duration_months=3),),
    )


@pytest.fixture
def result(scenario):
    return ScenarioOrchestrator().run(scenario, 100, seed=7, keep_paths=True)


class TestScenarioSerialization:
    """Test scenario save/load functionality"""

    def test_scenario_to_dict(self, scenario):
        """Test converting a scenario to a dictionary"""
        scenario_dict = scenario_to_dict(scenario)
        assert scenario_dict['initial_value'] == 100_000
        assert scenario_dict['market_shocks'] == [
            {'probability': 0.05, 'impact': -0.1, 'duration_months': 3, 'sector': None}
        ]

    def test_dict_round_trip(self, scenario):
        """Test dictionary round trip preserves the scenario"""
        assert dict_to_scenario(scenario_to_dict(scenario)) == scenario

    def test_dict_without_shocks(self):
        """Test optional fields may be omitted"""
        scenario = dict_to_scenario({'initial_value': 1, 'expected_return': 0.0,
                                     'volatility': 0.0, 'time_horizon': 1})
        assert scenario.market_shocks == ()
        assert scenario.target_value is None

    def test_json_file_round_trip(self, scenario, tmp_path):
        """Test saving and loading a scenario through a JSON file"""
        filepath = tmp_path / "scenario.json"
        save_scenario_json(scenario, str(filepath))
        assert json.loads(filepath.read_text())['time_horizon'] == 5
        assert load_scenario_json(str(filepath)) == scenario


class TestValidation:
    """Test scenario JSON validation"""

    def test_valid_json(self, scenario):
        """Test a valid scenario passes"""
        assert validate_scenario_json(json.dumps(scenario_to_dict(scenario))) == (True, "")

    def test_invalid_json(self):
        """Test malformed JSON fails"""
        is_valid, message = validate_scenario_json("{not json")
        assert not is_valid
        assert "Invalid JSON" in message

    def test_missing_field(self):
        """Test a missing required field is reported"""
        is_valid, message = validate_scenario_json(json.dumps({'initial_value': 1}))
        assert not is_valid
        assert message == "Missing required field: expected_return"

    def test_invalid_values(self):
        """Test out-of-range values are reported"""
        is_valid, message = validate_scenario_json(json.dumps(
            {'initial_value': -5, 'expected_return': 0.05, 'volatility': 0.1, 'time_horizon': 3}))
        assert not is_valid
        assert "Initial value" in message

    def test_unknown_field(self):
        """Test unexpected fields are reported"""
        is_valid, message = validate_scenario_json(json.dumps(
            {'initial_value': 5, 'expected_return': 0.05, 'volatility': 0.1, 'time_horizon': 3, 'bogus': 1}))
        assert not is_valid
        assert "bogus" in message

    def test_non_object(self):
        """Test a JSON array is rejected"""
        assert validate_scenario_json("[1, 2]")[0] is False


class TestExports:
    """Test CSV and report exports"""

    def test_export_results_csv(self, result):
        """Test terminal values export with real column"""
        df = pd.read_csv(StringIO(export_results_csv(result)))
        assert list(df.columns) == ['simulation', 'terminal_value_nominal', 'terminal_value_real']
        assert len(df) == 100
        np.testing.assert_allclose(df['terminal_value_nominal'], result.results)
        np.testing.assert_allclose(df['terminal_value_real'], result.results / 1.02 ** 5)

    def test_export_percentile_table(self, result):
        """Test year-by-year percentile bands"""
        df = pd.read_csv(StringIO(export_percentile_table_csv(result)))
        assert list(df['year']) == [0, 1, 2, 3, 4, 5]
        assert np.all(df['p10_value'] <= df['p50_value'])
        assert np.all(df['p50_value'] <= df['p90_value'])

    def test_percentile_table_needs_paths(self, scenario):
        """Test percentile table requires retained paths"""
        result = ScenarioOrchestrator().run(scenario, 10, seed=1)
        with pytest.raises(InvalidConfiguration, match="keep_paths"):
            export_percentile_table_csv(result)

    def test_summary_report(self, result):
        """Test summary report content and JSON export"""
        report = create_summary_report(result)
        assert report['simulation_info']['seed'] == 7
        assert report['terminal_value_stats']['median'] == result.statistics.median
        assert report['probability_analysis']['goal_success_probability'] == result.goal_success_probability
        assert len(report['confidence_intervals']) == 3
        parsed = json.loads(export_summary_report_json(report))
        assert parsed['simulation_info']['iterations'] == 100

    def test_result_to_dict(self, result):
        """Test result dictionary with and without paths"""
        assert 'paths' not in result_to_dict(result)
        assert len(result_to_dict(result, include_paths=True)['paths']) == 100

    def test_comparison_to_dataframe(self):
        """Test one row per regime"""
        regimes = [get_scenario_by_id('normal-growth'), get_scenario_by_id('bull-market')]
        comparison = ScenarioAnalyzer().run_scenario_analysis(
            regimes, BaseInvestment(time_horizon=5), iterations=30, seed=1)
        df = comparison_to_dataframe(comparison)
        assert list(df['scenario_id']) == ['normal-growth', 'bull-market']
        assert 'sharpe_ratio' in df.columns

    def test_batch_export_zip(self, result):
        """Test ZIP archive contains every export"""
        with zipfile.ZipFile(create_batch_export_zip(result)) as archive:
            assert set(archive.namelist()) == {
                'scenario.json', 'terminal_values.csv', 'percentile_table.csv', 'summary_report.json'
            }


class TestFormatCurrency:
    """Test currency formatting"""

    def test_millions(self):
        """Test millions use M suffix"""
        assert format_currency(2_500_000, precision=1) == "$2.5M (nominal)"

    def test_thousands(self):
        """Test thousands use K suffix"""
        assert format_currency(150_000, "real") == "$150K (real)"

    def test_small_and_negative(self):
        """Test small and negative values"""
        assert format_currency(999) == "$999 (nominal)"
        assert format_currency(-2_000) == "$-2K (nominal)"
