"""
Small statistics helpers for the delay predictor.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np


@dataclass(frozen=True)
class LinearFit:
    slope: float
    intercept: float
    r_squared: float

    def project(self, x: float) -> float:
        return self.slope * x + self.intercept


def moving_average(values: Sequence[float], window: int) -> float:
    """
    Mean of the first ``window`` values.

    Callers pass values most-recent-first, so this is a trailing average.
    Windows smaller than 1 are treated as 1; an empty input averages to 0.
    """
    if len(values) == 0:
        return 0.0
    window = max(1, min(window, len(values)))
    return float(np.mean(np.asarray(values[:window], dtype=float)))


def trailing_window_size(n: int, cap: int = 10, divisor: int = 3) -> int:
    """``min(cap, n // divisor)``, never below 1."""
    return max(1, min(cap, n // divisor))


def linear_regression(x: Sequence[float], y: Sequence[float]) -> LinearFit:
    """
    Ordinary least squares fit of ``y`` on ``x``.

    R-squared is 1 - SS_res/SS_tot and is defined as 0 when ``y`` has no
    variance. Fewer than two points, or no spread in ``x``, yields a flat
    line through the mean.
    """
    xs = np.asarray(x, dtype=float)
    ys = np.asarray(y, dtype=float)
    n = len(xs)
    if n == 0:
        return LinearFit(0.0, 0.0, 0.0)

    x_mean = xs.mean()
    y_mean = ys.mean()
    sxx = float(np.sum((xs - x_mean) ** 2))
    if n < 2 or sxx == 0.0:
        return LinearFit(0.0, float(y_mean), 0.0)

    slope, intercept = (float(c) for c in np.polyfit(xs, ys, 1))

    residuals = ys - (slope * xs + intercept)
    ss_res = float(np.sum(residuals ** 2))
    ss_tot = float(np.sum((ys - y_mean) ** 2))
    if np.isclose(ss_tot, 0.0, atol=1e-12):
        r_squared = 0.0
    else:
        r_squared = 1.0 - ss_res / ss_tot
    return LinearFit(slope, intercept, r_squared)
