"""
Tests for the statistics helpers.
"""
import pytest

from logisentry.core.stats import linear_regression, moving_average, trailing_window_size


def test_perfect_line():
    xs = list(range(1, 21))
    ys = [2 * x + 5 for x in xs]
    fit = linear_regression(xs, ys)
    assert fit.slope == pytest.approx(2.0)
    assert fit.intercept == pytest.approx(5.0)
    assert fit.r_squared == pytest.approx(1.0)
    assert fit.project(21) == pytest.approx(47.0)


def test_constant_series_has_zero_r_squared():
    fit = linear_regression([1, 2, 3, 4], [7.5, 7.5, 7.5, 7.5])
    assert fit.slope == pytest.approx(0.0)
    assert fit.r_squared == 0.0
    assert fit.project(5) == pytest.approx(7.5)


def test_noisy_series_r_squared_between_zero_and_one():
    fit = linear_regression([1, 2, 3, 4, 5], [1.0, 3.0, 2.0, 5.0, 4.0])
    assert 0.0 < fit.r_squared < 1.0
    assert fit.slope == pytest.approx(0.8)


def test_degenerate_inputs():
    assert linear_regression([], []).r_squared == 0.0
    single = linear_regression([1], [4.0])
    assert single.slope == 0.0
    assert single.project(2) == pytest.approx(4.0)


def test_moving_average_uses_leading_values():
    assert moving_average([10.0, 20.0, 90.0], 2) == pytest.approx(15.0)
    assert moving_average([10.0, 20.0], 0) == pytest.approx(10.0)
    assert moving_average([], 3) == 0.0


@pytest.mark.parametrize("n,expected", [(3, 1), (5, 1), (9, 3), (30, 10), (50, 10)])
def test_trailing_window_size(n, expected):
    assert trailing_window_size(n) == expected


def test_no_spread_in_x_is_flat_line_through_mean():
    fit = linear_regression([3, 3, 3], [1.0, 2.0, 6.0])
    assert fit.slope == 0.0
    assert fit.project(10) == pytest.approx(3.0)
    assert fit.r_squared == 0.0
