"""
IO utilities for saving/loading scenarios and exporting simulation results.
Handles JSON serialization of scenarios and CSV exports of results.
"""
import io
import json
import logging
from dataclasses import asdict
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from errors import InvalidConfiguration
from orchestrator import SimulationResult
from scenario_analysis import ScenarioComparison
from simulation import InvestmentScenario, MarketShock, calculate_percentiles

logger = logging.getLogger(__name__)

REQUIRED_SCENARIO_FIELDS = ('initial_value', 'expected_return', 'volatility', 'time_horizon')


def scenario_to_dict(scenario: InvestmentScenario) -> Dict[str, Any]:
    """
    Convert InvestmentScenario to dictionary for JSON serialization.

    Args:
        scenario: InvestmentScenario object

    Returns:
        Dictionary representation, shocks as a list of dicts
    """
    scenario_dict = asdict(scenario)
    scenario_dict['market_shocks'] = [asdict(shock) for shock in scenario.market_shocks]
    return scenario_dict


def dict_to_scenario(scenario_dict: Dict[str, Any]) -> InvestmentScenario:
    """
    Convert dictionary to InvestmentScenario object.

    Args:
        scenario_dict: Dictionary with scenario values

    Returns:
        InvestmentScenario object
    """
    filtered_dict = scenario_dict.copy()
    shocks = filtered_dict.pop('market_shocks', None) or []
    filtered_dict['market_shocks'] = tuple(MarketShock(**shock) for shock in shocks)
    return InvestmentScenario(**filtered_dict)


def save_scenario_json(scenario: InvestmentScenario, filepath: str) -> None:
    """Save a scenario to a JSON file"""
    with open(filepath, 'w') as f:
        json.dump(scenario_to_dict(scenario), f, indent=2)
    logger.debug("Saved scenario to %s", filepath)


def load_scenario_json(filepath: str) -> InvestmentScenario:
    """Load a scenario from a JSON file"""
    with open(filepath, 'r') as f:
        scenario_dict = json.load(f)

    return dict_to_scenario(scenario_dict)


def result_to_dict(result: SimulationResult, include_paths: bool = False) -> Dict[str, Any]:
    """JSON-compatible representation of a simulation result"""
    return result.to_dict(include_paths=include_paths)


def export_results_csv(result: SimulationResult) -> str:
    """
    Export terminal values to CSV string.

    Args:
        result: Simulation result

    Returns:
        CSV string with nominal and real terminal values per iteration
    """
    df = pd.DataFrame({
        'simulation': range(1, result.iterations + 1),
        'terminal_value_nominal': result.results,
        'terminal_value_real': result.real_results(),
    })

    return df.to_csv(index=False)


def export_percentile_table_csv(result: SimulationResult) -> str:
    """
    Export year-by-year p10/p50/p90 bands to CSV string.

    Needs a result run with keep_paths=True.
    """
    if result.paths is None:
        raise InvalidConfiguration("Percentile table needs a result simulated with keep_paths=True")

    percentiles = calculate_percentiles(result.paths)
    df = pd.DataFrame({
        'year': np.arange(result.scenario.time_horizon + 1),
        'p10_value': percentiles['p10'],
        'p50_value': percentiles['p50'],
        'p90_value': percentiles['p90'],
    })

    return df.to_csv(index=False)


def create_summary_report(result: SimulationResult) -> Dict[str, Any]:
    """
    Create summary report of a simulation.

    Args:
        result: Simulation result

    Returns:
        Dictionary with summary information
    """
    scenario = result.scenario
    statistics = result.statistics

    terminal_stats = {
        'mean': statistics.mean,
        'median': statistics.median,
        'std': statistics.standard_deviation,
        'p10': statistics.percentiles.p10,
        'p25': statistics.percentiles.p25,
        'p75': statistics.percentiles.p75,
        'p90': statistics.percentiles.p90,
        'min': statistics.minimum,
        'max': statistics.maximum,
        'skewness': statistics.skewness,
        'kurtosis': statistics.kurtosis,
    }

    probability_analysis = {
        'prob_ruin': float(np.mean(result.results <= 0)),
        'prob_loss': float(np.mean(result.results < scenario.initial_value)),
        'goal_success_probability': result.goal_success_probability,
    }

    report = {
        'simulation_info': {
            'iterations': result.iterations,
            'time_horizon': scenario.time_horizon,
            'initial_value': scenario.initial_value,
            'target_value': scenario.target_value,
            'seed': result.metadata.seed,
            'engine_version': result.metadata.engine_version,
            'timestamp': result.metadata.timestamp,
            'execution_time': result.execution_time,
        },
        'terminal_value_stats': terminal_stats,
        'probability_analysis': probability_analysis,
        'confidence_intervals': [ci.to_dict() for ci in result.confidence_intervals],
    }

    return report


def export_summary_report_json(report: Dict[str, Any]) -> str:
    """Export summary report as JSON string"""
    return json.dumps(report, indent=2, default=str)


def comparison_to_dataframe(comparison: ScenarioComparison) -> pd.DataFrame:
    """One row per scenario with its headline and risk figures"""
    rows = []
    for scenario_result in comparison.scenarios:
        statistics = scenario_result.simulation_result.statistics
        risk = scenario_result.risk_metrics
        rows.append({
            'scenario_id': scenario_result.scenario_id,
            'mean': statistics.mean,
            'median': statistics.median,
            'std': statistics.standard_deviation,
            'goal_success_probability': scenario_result.simulation_result.goal_success_probability,
            'value_at_risk': risk.value_at_risk,
            'conditional_var': risk.conditional_var,
            'max_drawdown': risk.max_drawdown,
            'sharpe_ratio': risk.sharpe_ratio,
            'sortino_ratio': risk.sortino_ratio,
            'volatility': risk.volatility,
            'probability_of_loss': scenario_result.stress_test_results.probability_of_loss,
            'probability_outperformance': scenario_result.comparison_to_baseline.probability_outperformance,
        })
    return pd.DataFrame(rows)


def create_batch_export_zip(result: SimulationResult,
                            comparison: Optional[ScenarioComparison] = None) -> io.BytesIO:
    """
    Create ZIP file containing all export files.

    Args:
        result: Simulation result
        comparison: Optional scenario comparison to include

    Returns:
        BytesIO object containing ZIP file
    """
    import zipfile

    zip_buffer = io.BytesIO()

    with zipfile.ZipFile(zip_buffer, 'w', zipfile.ZIP_DEFLATED) as zip_file:
        zip_file.writestr('scenario.json', json.dumps(scenario_to_dict(result.scenario), indent=2))
        zip_file.writestr('terminal_values.csv', export_results_csv(result))

        if result.paths is not None:
            zip_file.writestr('percentile_table.csv', export_percentile_table_csv(result))

        report = create_summary_report(result)
        zip_file.writestr('summary_report.json', export_summary_report_json(report))

        if comparison is not None:
            zip_file.writestr('scenario_comparison.csv',
                              comparison_to_dataframe(comparison).to_csv(index=False))

    zip_buffer.seek(0)
    return zip_buffer


def validate_scenario_json(json_string: str) -> tuple[bool, str]:
    """
    Validate uploaded scenario JSON.

    Args:
        json_string: JSON string to validate

    Returns:
        (is_valid, error_message)
    """
    try:
        scenario_dict = json.loads(json_string)

        if not isinstance(scenario_dict, dict):
            return False, "Scenario JSON must be an object"

        for field in REQUIRED_SCENARIO_FIELDS:
            if field not in scenario_dict:
                return False, f"Missing required field: {field}"

        dict_to_scenario(scenario_dict)

        return True, ""

    except json.JSONDecodeError as e:
        return False, f"Invalid JSON: {str(e)}"
    except (InvalidConfiguration, TypeError) as e:
        return False, f"Scenario validation error: {str(e)}"


def format_currency(value: float,
                    currency_format: str = "nominal",
                    precision: int = 0) -> str:
    """
    Format currency values for display.

    Args:
        value: Numeric value to format
        currency_format: "real" or "nominal"
        precision: Number of decimal places

    Returns:
        Formatted string
    """
    if abs(value) >= 1_000_000:
        formatted = f"${value/1_000_000:.{precision}f}M"
    elif abs(value) >= 1_000:
        formatted = f"${value/1_000:.{precision}f}K"
    else:
        formatted = f"${value:.{precision}f}"

    suffix = " (real)" if currency_format == "real" else " (nominal)"
    return formatted + suffix
