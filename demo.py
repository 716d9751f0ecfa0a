#!/usr/bin/env python3
"""
Demo script showing how to use the simulation modules programmatically.
"""

from deterministic import DeterministicProjector
from economic_scenarios import BaseInvestment
from goals import evaluate_goal
from io_utils import comparison_to_dataframe, format_currency
from logging_config import setup_logging
from orchestrator import ScenarioOrchestrator
from scenario_analysis import ScenarioAnalyzer, rank_scenarios
from simulation import InvestmentScenario, MarketShock


def main(iterations: int = 5_000, seed: int = 12345):
    setup_logging("WARNING")

    print("🚀 Investment Simulation Demo")
    print("=" * 50)

    # 1. Define the investment scenario
    print("\n📊 Setting up investment scenario...")
    scenario = InvestmentScenario(
        initial_value=100_000,
        expected_return=0.07,
        volatility=0.15,
        time_horizon=30,
        inflation_rate=0.025,
        target_value=500_000,
        market_shocks=(MarketShock(probability=0.05, impact=-0.10),),
    )

    print(f"   Initial value: {format_currency(scenario.initial_value)}")
    print(f"   Return/volatility: {scenario.expected_return:.1%} / {scenario.volatility:.1%}")
    print(f"   Horizon: {scenario.time_horizon} years, {iterations:,} simulations")

    # 2. Check the random source
    print("\n🎲 Validating random source...")
    orchestrator = ScenarioOrchestrator()
    report = orchestrator.validate_random_source(seed)
    print(f"   Chi-square: {report.chi_square:.2f}, p-value: {report.p_value:.3f}, "
          f"uniform: {report.is_valid}")

    # 3. Run Monte Carlo simulation
    print("\n📈 Running Monte Carlo simulation...")
    result = orchestrator.run(scenario, iterations, seed=seed)
    stats = result.statistics

    print(f"   Goal success probability: {result.goal_success_probability:.1%}")
    print(f"   Terminal value (P10/P50/P90): {format_currency(stats.percentiles.p10)} / "
          f"{format_currency(stats.median)} / {format_currency(stats.percentiles.p90)}")
    print(f"   Skewness: {stats.skewness:.2f}, excess kurtosis: {stats.kurtosis:.2f}")
    for interval in result.confidence_intervals:
        print(f"   {interval.level:.0%} interval: {format_currency(interval.lower)} - "
              f"{format_currency(interval.upper)}")

    goal = evaluate_goal(result.results, scenario.target_value)
    print(f"   Expected shortfall vs target: {format_currency(goal.expected_shortfall)}")
    print(f"   Finished in {result.execution_time:.2f}s (seed {result.metadata.seed})")

    # 4. Deterministic projection for comparison
    print("\n📉 Deterministic Projection:")
    projection = DeterministicProjector(scenario, include_expected_shocks=True).run_projection()
    print(f"   Final value (deterministic): {format_currency(projection.wealth_path[-1])}")
    print(f"   Final value in today's money: "
          f"{format_currency(projection.real_wealth_path[-1], 'real')}")

    # 5. Compare economic regimes
    print("\n🌍 Economic Scenario Analysis:")
    analyzer = ScenarioAnalyzer()
    comparison = analyzer.run_predefined_scenario_analysis(
        BaseInvestment(initial_value=100_000, time_horizon=30, target_value=500_000),
        iterations=max(iterations // 5, 1),
        seed=seed,
    )
    table = comparison_to_dataframe(comparison)
    print(table[['scenario_id', 'median', 'sharpe_ratio', 'value_at_risk']].to_string(index=False))

    print(f"\n   Conservative: {comparison.recommendation.conservative}")
    print(f"   Moderate:     {comparison.recommendation.moderate}")
    print(f"   Aggressive:   {comparison.recommendation.aggressive}")
    print(f"   Diversification benefit: {comparison.diversification_benefit:.1%}")
    best = rank_scenarios(comparison.scenarios, risk_tolerance="moderate")[0]
    print(f"   Top ranked (moderate): {best.scenario_id} (score {best.final_score:.2f})")

    print("\n✅ Demo completed successfully!")
    return result, comparison


if __name__ == "__main__":
    main()
