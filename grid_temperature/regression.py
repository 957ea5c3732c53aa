"""
OLS of daily mean demand on daily temperature within one regime, with
residual diagnostics and two cross-validation schemes.

Every fit is independent: cross-validation folds build fresh observation
tuples and call fit() again, so no state is shared between folds.
"""

import logging
import math
from typing import Optional, Sequence

import numpy as np
import statsmodels.api as sm
from scipy.stats import norm
from statsmodels.stats.stattools import durbin_watson
from statsmodels.tsa.stattools import acf

from . import stats
from .errors import InsufficientDataError
from .records import (
    Diagnostics,
    FittedModel,
    JoinedObservation,
    LeaveOneOutResult,
    RandomDropResult,
    Regime,
)

logger = logging.getLogger(__name__)

DEFAULT_DROP_FRACTION = 0.1
DEFAULT_TRIALS = 500
DEFAULT_MAX_LAG = 5


def fit(observations: Sequence[JoinedObservation], regime: Optional[Regime] = None) -> FittedModel:
    observations = tuple(observations)
    x = np.array([o.temperature for o in observations], dtype=float)
    y = np.array([o.mean_demand for o in observations], dtype=float)
    label = regime.value if regime else "all"
    if np.unique(x).size < 2:
        raise InsufficientDataError(
            f"{label}: need at least 2 distinct temperatures, got {np.unique(x).size} "
            f"from {len(observations)} observation(s)"
        )

    X = sm.add_constant(x, has_constant="add")
    result = sm.OLS(y, X).fit()
    intercept, slope = (float(p) for p in result.params)
    residuals = np.asarray(result.resid, dtype=float)
    model = FittedModel(
        intercept=intercept,
        slope=slope,
        observations=observations,
        fitted=np.asarray(result.fittedvalues, dtype=float),
        residuals=residuals,
        r_squared=float(result.rsquared),
        rmse=stats.rmse(residuals),
        regime=regime,
    )
    logger.debug("%s: demand = %.3f + %.3f * T (n=%d, R2=%.3f)", label, intercept, slope, model.n, model.r_squared)
    return model


def predict(model: FittedModel, temperatures) -> np.ndarray:
    """Point estimates; temperatures outside the training range are not guarded."""
    t = np.atleast_1d(np.asarray(temperatures, dtype=float))
    return model.intercept + model.slope * t


def diagnose(model: FittedModel, max_lag: int = DEFAULT_MAX_LAG) -> Diagnostics:
    """
    Descriptive residual diagnostics: Q-Q pairs, residuals vs fitted,
    autocorrelation for lags 1..max_lag (fewer when n is small), leverage,
    Cook's distance and Durbin-Watson. Nothing here passes or fails a model.
    """
    if model.n <= stats.N_PARAMS:
        raise InsufficientDataError(f"diagnostics need more than {stats.N_PARAMS} observations, got {model.n}")

    hat = stats.leverage(model.temperatures)
    studentized = stats.studentized_residuals(model.residuals, hat)
    n = model.n
    theoretical = norm.ppf((np.arange(1, n + 1) - 0.5) / n)

    nlags = min(max_lag, n - 1)
    with np.errstate(divide="ignore", invalid="ignore"):
        autocorrelation = acf(model.residuals, nlags=nlags, fft=False)[1:]
        dw = float(durbin_watson(model.residuals))

    return Diagnostics(
        theoretical_quantiles=theoretical,
        standardized_residuals=np.sort(studentized),
        fitted=model.fitted.copy(),
        residuals=model.residuals.copy(),
        autocorrelation=np.asarray(autocorrelation, dtype=float),
        leverage=hat,
        cooks_distance=stats.cooks_distance(model.residuals, hat),
        durbin_watson=dw,
    )


def cross_validate_loo(model: FittedModel) -> LeaveOneOutResult:
    """
    Refit n times, fold i omitting observation i, and predict it from the rest.

    Raises InsufficientDataError when some fold is left with a single distinct
    temperature.
    """
    observations = model.observations
    errors, predictions, fold_params = [], [], []
    for i, held_out in enumerate(observations):
        fold = fit(observations[:i] + observations[i + 1:], model.regime)
        predicted = float(predict(fold, held_out.temperature)[0])
        predictions.append(predicted)
        errors.append(held_out.mean_demand - predicted)
        fold_params.append((fold.intercept, fold.slope))
    return LeaveOneOutResult(
        errors=np.array(errors, dtype=float),
        predictions=np.array(predictions, dtype=float),
        fold_params=tuple(fold_params),
    )


def holdout_size(n: int, drop_fraction: float) -> int:
    """round(drop_fraction * n), halves up, kept within [1, n - 2]."""
    if not 0 < drop_fraction < 1:
        raise ValueError(f"drop_fraction must be within (0, 1), got {drop_fraction}")
    k = int(math.floor(drop_fraction * n + 0.5))
    return max(1, min(k, n - stats.N_PARAMS))


def cross_validate_random_drop(
    observations: Sequence[JoinedObservation],
    drop_fraction: float = DEFAULT_DROP_FRACTION,
    trials: int = DEFAULT_TRIALS,
    seed=None,
    regime: Optional[Regime] = None,
) -> RandomDropResult:
    """
    Repeatedly hold out a random drop_fraction of the observations, fit on the
    remainder and collect the held-out errors (actual - predicted).

    seed may be an int or a numpy Generator. Trials whose training remainder
    has a single distinct temperature are counted in RandomDropResult.skipped.
    """
    observations = tuple(observations)
    n = len(observations)
    if n <= stats.N_PARAMS:
        raise InsufficientDataError(f"random-drop validation needs more than {stats.N_PARAMS} observations, got {n}")
    if trials < 1:
        raise ValueError(f"trials must be positive, got {trials}")

    k = holdout_size(n, drop_fraction)
    rng = np.random.default_rng(seed)
    x = np.array([o.temperature for o in observations], dtype=float)
    y = np.array([o.mean_demand for o in observations], dtype=float)

    errors, skipped = [], 0
    for _ in range(trials):
        dropped = rng.choice(n, size=k, replace=False)
        keep = np.ones(n, dtype=bool)
        keep[dropped] = False
        try:
            model = fit([o for o, kept in zip(observations, keep) if kept], regime)
        except InsufficientDataError:
            skipped += 1
            continue
        errors.append(y[~keep] - predict(model, x[~keep]))

    if skipped:
        logger.warning("%d of %d random-drop trial(s) skipped: underdetermined training set", skipped, trials)
    return RandomDropResult(holdout_size=k, trials=trials, skipped=skipped, errors=tuple(errors))
