"""
Unit tests for goal evaluation.
"""
import pytest
from errors import InvalidInput
from goals import evaluate_goal, expected_shortfall, probability_below, ruin_probability, success_probability


class TestGoalMetrics:
    """Test goal probabilities and shortfall"""

    def test_success_counts_values_at_target(self):
        """Test values equal to the target count as success"""
        assert success_probability([100, 200, 300, 400], 300) == 0.5

    def test_success_bounds(self):
        """Test extreme targets give 0 and 1"""
        results = [10, 20, 30]
        assert success_probability(results, float('-inf')) == 1.0
        assert success_probability(results, float('inf')) == 0.0
        assert success_probability(results, 0) == 1.0
        assert success_probability(results, 31) == 0.0

    def test_probability_below(self):
        """Test strict inequality below threshold"""
        assert probability_below([1, 2, 3, 4], 3) == 0.5

    def test_ruin_probability(self):
        """Test outcomes at or below zero count as ruin"""
        assert ruin_probability([-5, 0, 5, 10]) == 0.5

    def test_expected_shortfall(self):
        """Test shortfall averages the gap over all paths"""
        assert expected_shortfall([50, 100, 150, 200], 100) == pytest.approx(12.5)
        assert expected_shortfall([150, 200], 100) == 0.0
        assert expected_shortfall([1, 2], float('inf')) == float('inf')

    def test_evaluate_goal(self):
        """Test GoalAssessment bundles every metric"""
        goal = evaluate_goal([0, 100, 200, 300], 200)
        assert goal.success_probability == 0.5
        assert goal.ruin_probability == 0.25
        assert goal.expected_shortfall == pytest.approx(75.0)
        assert goal.to_dict()['target_value'] == 200.0

    @pytest.mark.parametrize("func", [success_probability, probability_below, expected_shortfall])
    def test_empty_input(self, func):
        """Test empty result sets are rejected"""
        with pytest.raises(InvalidInput):
            func([], 100)
