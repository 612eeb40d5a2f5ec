"""
Unit tests for the statistics service.

Covers expression summaries, correlation, fold change and age bracket
parsing, including degenerate inputs.
"""

import math

import pytest

from gtex_mcp.services.statistics import (
    age_bracket_midpoint,
    average_age,
    basic_stats,
    correlation_strength,
    expression_stats,
    fold_change,
    log2_fold_change,
    pearson_correlation,
    percentage,
)


class TestExpressionStats:
    """Test expression_stats()."""

    def test_sample_values(self):
        """Four samples with two zeros."""
        stats = expression_stats([0, 0, 5, 10])

        assert stats.mean == 3.75
        assert stats.median == 5  # element at index n // 2
        assert stats.min == 0
        assert stats.max == 10
        assert stats.non_zero_count == 2
        assert stats.non_zero_percent == 50.0

    def test_odd_length_median(self):
        """Odd-length input takes the middle element."""
        assert expression_stats([3, 1, 2]).median == 2

    def test_empty_input(self):
        """Empty input yields zeros instead of raising."""
        stats = expression_stats([])

        assert stats.mean == 0
        assert stats.median == 0
        assert stats.non_zero_count == 0
        assert stats.non_zero_percent == 0

    def test_bounds_hold(self):
        """min <= median <= max and min <= mean <= max."""
        values = [4.2, 0.0, 17.5, 3.3, 9.9, 0.1]
        stats = expression_stats(values)

        assert stats.min <= stats.median <= stats.max
        assert stats.min <= stats.mean <= stats.max
        assert 0 <= stats.non_zero_percent <= 100


class TestBasicStats:
    """Test basic_stats()."""

    def test_values(self):
        stats = basic_stats([1.0, 2.0, 6.0])
        assert stats.mean == 3.0
        assert stats.min == 1.0
        assert stats.max == 6.0

    def test_empty(self):
        stats = basic_stats([])
        assert (stats.mean, stats.min, stats.max) == (0, 0, 0)


class TestPearsonCorrelation:
    """Test pearson_correlation()."""

    def test_perfect_positive(self):
        """Linearly related vectors correlate at 1."""
        assert pearson_correlation([1, 2, 3, 4], [2, 4, 6, 8]) == pytest.approx(1.0)

    def test_perfect_negative(self):
        assert pearson_correlation([1, 2, 3], [3, 2, 1]) == pytest.approx(-1.0)

    def test_symmetric(self):
        """r(x, y) == r(y, x)."""
        x = [1.5, 3.2, 0.4, 8.8]
        y = [2.0, 2.5, 1.0, 9.1]
        assert pearson_correlation(x, y) == pytest.approx(pearson_correlation(y, x))

    def test_zero_variance(self):
        """A constant vector gives 0, not a division error."""
        assert pearson_correlation([5, 5, 5], [1, 2, 3]) == 0.0

    def test_self_correlation(self):
        """A non-constant vector correlates with itself at 1."""
        assert pearson_correlation([1, 2, 3, 4], [1, 2, 3, 4]) == 1.0
        x = [12.4, 0.7, 33.1, 5.9, 18.0]
        assert pearson_correlation(x, x) == pytest.approx(1.0)

    def test_both_constant(self):
        assert pearson_correlation([7.5, 7.5, 7.5], [7.5, 7.5, 7.5]) == 0.0

    def test_mismatched_lengths(self):
        assert pearson_correlation([1, 2], [1, 2, 3]) == 0.0

    def test_empty(self):
        assert pearson_correlation([], []) == 0.0

    def test_within_bounds(self):
        r = pearson_correlation([0.3, 9.1, 4.4, 2.2, 7.0], [1.1, 0.2, 5.5, 3.3, 6.6])
        assert -1.0 <= r <= 1.0


class TestCorrelationStrength:
    """Test correlation_strength() labels."""

    @pytest.mark.parametrize(
        "r,label",
        [(0.71, "Strong"), (-0.9, "Strong"), (0.7, "Moderate"), (0.41, "Moderate"), (0.4, "Weak"), (0.0, "Weak")],
    )
    def test_labels(self, r, label):
        assert correlation_strength(r) == label


class TestFoldChange:
    """Test fold_change() and log2_fold_change()."""

    def test_ratio(self):
        """Group means 10 and 5 give FC 2 and log2 FC 1."""
        ratio = fold_change(10.0, 5.0)

        assert ratio == 2.0
        assert log2_fold_change(ratio) == 1.0

    def test_zero_denominator(self):
        """Division by zero follows IEEE semantics."""
        assert fold_change(3.0, 0.0) == math.inf
        assert math.isnan(fold_change(0.0, 0.0))

    def test_log2_of_zero(self):
        assert log2_fold_change(0.0) == -math.inf

    def test_log2_of_nan(self):
        assert math.isnan(log2_fold_change(math.nan))


class TestAges:
    """Test age bracket helpers."""

    def test_midpoint(self):
        assert age_bracket_midpoint("60-69") == 64.5

    def test_unparseable(self):
        assert age_bracket_midpoint("unknown") is None
        assert age_bracket_midpoint(None) is None

    def test_average_skips_bad_brackets(self):
        assert average_age(["20-29", "garbage", "40-49"]) == 34.5

    def test_average_none_when_nothing_parses(self):
        assert average_age(["?", None]) is None


def test_percentage_of_zero_whole():
    """percentage() never divides by zero."""
    assert percentage(5, 0) == 0.0
    assert percentage(1, 4) == 25.0
