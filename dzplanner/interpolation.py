"""
Vertical Interpolation
======================
Linear interpolation of scalar profiles over height or log-pressure,
built on scipy's interp1d.

Two different edge behaviours:

  - linear_interpolate extrapolates beyond the samples using the slope
    of the nearest segment (no clamping).
  - interpolate_pressure never extrapolates and returns None outside the
    sampled range.

Invalid input (empty or mismatched arrays) is reported as None.
"""

import math
from typing import Optional, Sequence, Tuple

import numpy as np
from scipy.interpolate import interp1d


def linear_interpolate(xs: Sequence[float], ys: Sequence[float],
                       x: float) -> Optional[float]:
    """
    Piecewise-linear y(x) for monotonic `xs` (ascending or descending).

    Outside the sampled range the first or last segment is extended.
    Returns None when the arrays are empty, differ in length or hold a
    single point.
    """
    if xs is None or ys is None:
        return None
    if len(xs) == 0 or len(xs) != len(ys) or len(xs) < 2:
        return None

    interp = interp1d(
        np.asarray(xs, dtype=float), np.asarray(ys, dtype=float),
        kind='linear',
        fill_value='extrapolate',
    )
    return float(interp(x))


def interpolate_pressure(height: float, pressures: Sequence[float],
                         heights: Sequence[float]) -> Optional[float]:
    """
    Pressure at `height` by linear interpolation between the bracketing
    samples. None outside the sampled range.
    """
    if pressures is None or heights is None:
        return None
    if len(pressures) != len(heights) or len(pressures) < 2:
        return None

    interp = interp1d(
        np.asarray(heights, dtype=float), np.asarray(pressures, dtype=float),
        kind='linear',
        bounds_error=False,
        fill_value=np.nan,
    )
    value = float(interp(height))
    return None if math.isnan(value) else value


def interpolate_wind_at_altitude(z: float, pressures: Sequence[float],
                                 heights: Sequence[float],
                                 u: Sequence[float],
                                 v: Sequence[float]) -> Optional[Tuple[float, float]]:
    """
    Wind components (u, v) at height `z` (m AMSL).

    Step 1: log(p) is interpolated linearly against height to find p(z).
    Step 2: u and v are interpolated linearly against log(p) at p(z).
    Wind varies closer to linearly in log-pressure than in height.
    """
    n = len(pressures)
    if n != len(heights) or n != len(u) or n != len(v):
        return None

    log_p = np.log(np.asarray(pressures, dtype=float))
    log_p_z = linear_interpolate(heights, log_p, z)
    if log_p_z is None:
        return None

    u_z = linear_interpolate(log_p, u, log_p_z)
    v_z = linear_interpolate(log_p, v, log_p_z)
    if u_z is None or v_z is None:
        return None
    return u_z, v_z


def unwrap_directions(directions: Sequence[float]) -> np.ndarray:
    """
    Directions (deg) made continuous along the profile so that linear
    interpolation follows the short arc across north.
    """
    return np.degrees(np.unwrap(np.radians(np.asarray(directions, dtype=float))))


def interpolate_direction(heights: Sequence[float], directions: Sequence[float],
                          z: float) -> Optional[float]:
    """Wind direction at `z`, interpolated on the unwrapped directions."""
    value = linear_interpolate(heights, unwrap_directions(directions), z)
    if value is None or not math.isfinite(value):
        return None
    return value % 360.0
