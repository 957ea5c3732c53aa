import logging
from typing import Sequence

from .records import JoinedObservation, RegimeSplit

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD_F = 70.0
BOUNDARY_POLICIES = ("exclude", "heating", "cooling")


def split_regimes(
    observations: Sequence[JoinedObservation],
    threshold: float = DEFAULT_THRESHOLD_F,
    boundary_policy: str = "exclude",
) -> RegimeSplit:
    """
    Heating below the threshold, cooling above it.

    An observation exactly at the threshold goes to RegimeSplit.boundary by
    default ("exclude"); "heating" or "cooling" assigns it to that side
    instead.
    """
    if boundary_policy not in BOUNDARY_POLICIES:
        raise ValueError(f"boundary_policy must be one of {BOUNDARY_POLICIES}, got {boundary_policy!r}")

    heating, cooling, boundary = [], [], []
    for obs in observations:
        if obs.temperature < threshold:
            heating.append(obs)
        elif obs.temperature > threshold:
            cooling.append(obs)
        elif boundary_policy == "heating":
            heating.append(obs)
        elif boundary_policy == "cooling":
            cooling.append(obs)
        else:
            boundary.append(obs)

    if boundary:
        logger.warning("%d observation(s) exactly at %.1f F belong to neither regime", len(boundary), threshold)
    logger.info("Regime split at %.1f F: %d heating, %d cooling", threshold, len(heating), len(cooling))
    return RegimeSplit(threshold=threshold, heating=tuple(heating), cooling=tuple(cooling), boundary=tuple(boundary))
