"""
Self-contained numeric routines.

Conventions are fixed here so results do not depend on a library's defaults:

- percentile: linear interpolation between order statistics at rank
  (n - 1) * q / 100 on the ascending sort (Hyndman & Fan type 7).
- leverage: hat-matrix diagonal of simple regression with intercept,
  h_i = 1/n + (x_i - mean(x))**2 / Sxx.
- Cook's distance: D_i = r_i**2 / p * h_i / (1 - h_i) with r_i the internally
  studentized residual and p = 2 parameters.
"""

import math

import numpy as np

from .errors import DegenerateSeriesError

N_PARAMS = 2


def percentile(values, q):
    """Empirical q-th percentile (0 <= q <= 100), NaNs ignored."""
    if not 0 <= q <= 100:
        raise ValueError(f"percentile must be within [0, 100], got {q}")
    x = np.sort(np.asarray(values, dtype=float))
    x = x[~np.isnan(x)]
    if x.size == 0:
        raise DegenerateSeriesError("percentile of an empty series")
    rank = (x.size - 1) * q / 100.0
    lo = math.floor(rank)
    hi = min(lo + 1, x.size - 1)
    frac = rank - lo
    return float(x[lo] + (x[hi] - x[lo]) * frac)


def safe_ratio(numerator, denominator):
    if denominator == 0 or math.isnan(denominator) or math.isnan(numerator):
        return float("nan")
    return float(numerator) / float(denominator)


def leverage(x):
    x = np.asarray(x, dtype=float)
    centred = x - x.mean()
    sxx = float(np.sum(centred ** 2))
    if sxx == 0:
        raise DegenerateSeriesError("leverage undefined for a constant predictor")
    return 1.0 / x.size + centred ** 2 / sxx


def studentized_residuals(residuals, hat):
    """Internally studentized residuals; NaN where h_i == 1 or s == 0."""
    residuals = np.asarray(residuals, dtype=float)
    dof = residuals.size - N_PARAMS
    if dof <= 0:
        return np.full(residuals.size, np.nan)
    s = math.sqrt(float(np.sum(residuals ** 2)) / dof)
    with np.errstate(divide="ignore", invalid="ignore"):
        return residuals / (s * np.sqrt(1.0 - hat))


def cooks_distance(residuals, hat):
    r = studentized_residuals(residuals, hat)
    with np.errstate(divide="ignore", invalid="ignore"):
        return r ** 2 / N_PARAMS * hat / (1.0 - hat)


def rmse(errors):
    errors = np.asarray(errors, dtype=float)
    if errors.size == 0:
        return float("nan")
    return float(np.sqrt(np.mean(errors ** 2)))


def mae(errors):
    errors = np.asarray(errors, dtype=float)
    if errors.size == 0:
        return float("nan")
    return float(np.mean(np.abs(errors)))
