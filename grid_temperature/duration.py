import logging
from typing import List

import numpy as np

from .errors import DegenerateSeriesError
from .records import DurationPoint

logger = logging.getLogger(__name__)


def duration_curve(values) -> List[DurationPoint]:
    """
    Load duration curve: distinct values sorted descending, each with the
    fraction of the series at or above it.

    Tied values share one point. The minimum always maps to 1.0, so an
    all-equal series is a single point (value, 1.0).
    """
    x = np.asarray(values, dtype=float).ravel()
    x = x[np.isfinite(x)]
    if x.size == 0:
        raise DegenerateSeriesError("duration curve of an empty series")

    distinct, counts = np.unique(x, return_counts=True)
    if distinct.size == 1:
        logger.warning("Duration curve of a constant series (%g x %d)", distinct[0], x.size)
        return [DurationPoint(value=float(distinct[0]), exceedance=1.0)]

    # descending order; cumulative counts give #(x >= value)
    distinct, counts = distinct[::-1], counts[::-1]
    at_or_above = np.cumsum(counts)
    return [
        DurationPoint(value=float(v), exceedance=float(c) / x.size)
        for v, c in zip(distinct, at_or_above)
    ]
