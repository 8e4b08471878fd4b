"""
Layer Mean Wind
===============
Height-weighted mean wind vector over an arbitrary layer, by trapezoidal
integration of the u and v components:

    ū = Σ ½ (u_i + u_{i+1}) (h_i - h_{i+1}) / (h_top - h_bottom)

The layer limits are interpolated (or extrapolated) from the samples, and
every sample strictly inside the layer contributes a node. Every circle,
pattern and jump-run calculation is built on this.
"""

from typing import NamedTuple, Optional, Sequence

import numpy as np

from .geomath import wind_direction, wind_speed
from .interpolation import linear_interpolate
from .profile import coerce_profile


class MeanWind(NamedTuple):
    """Mean wind of a layer; unpacks as (direction, speed, u, v)."""
    direction: float    # deg, wind FROM
    speed: float        # same unit as the input components
    u: float
    v: float


def calculate_mean_wind(heights: Sequence[float], u: Sequence[float],
                        v: Sequence[float], lower_limit: float,
                        upper_limit: float) -> Optional[MeanWind]:
    """
    Mean wind between `lower_limit` and `upper_limit` (same unit as heights).

    Returns None for fewer than two samples, mismatched arrays, a failed
    interpolation or a layer of zero thickness.
    """
    if heights is None or u is None or v is None:
        return None
    if len(heights) < 2 or len(heights) != len(u) or len(heights) != len(v):
        return None

    u_upper = linear_interpolate(heights, u, upper_limit)
    v_upper = linear_interpolate(heights, v, upper_limit)
    u_lower = linear_interpolate(heights, u, lower_limit)
    v_lower = linear_interpolate(heights, v, lower_limit)
    if None in (u_upper, v_upper, u_lower, v_lower):
        return None

    h_layer = [upper_limit]
    u_layer = [u_upper]
    v_layer = [v_upper]
    for h, u_i, v_i in zip(heights, u, v):
        if lower_limit < h < upper_limit:
            h_layer.append(h)
            u_layer.append(u_i)
            v_layer.append(v_i)
    h_layer.append(lower_limit)
    u_layer.append(u_lower)
    v_layer.append(v_lower)

    order = np.argsort(-np.asarray(h_layer, dtype=float), kind='stable')
    h_layer = np.asarray(h_layer, dtype=float)[order]
    u_layer = np.asarray(u_layer, dtype=float)[order]
    v_layer = np.asarray(v_layer, dtype=float)[order]

    span = h_layer[0] - h_layer[-1]
    if span == 0 or not np.isfinite(span):
        return None

    dh = h_layer[:-1] - h_layer[1:]
    u_mean = float(np.sum(0.5 * (u_layer[:-1] + u_layer[1:]) * dh) / span)
    v_mean = float(np.sum(0.5 * (v_layer[:-1] + v_layer[1:]) * dh) / span)
    if not (np.isfinite(u_mean) and np.isfinite(v_mean)):
        return None

    return MeanWind(
        direction=float(wind_direction(u_mean, v_mean)),
        speed=float(wind_speed(u_mean, v_mean)),
        u=u_mean,
        v=v_mean,
    )


def profile_mean_wind(profile, lower_limit: float,
                      upper_limit: float) -> Optional[MeanWind]:
    """calculate_mean_wind over a WindProfile (heights in m AMSL, m/s)."""
    profile = coerce_profile(profile)
    if profile is None:
        return None
    return calculate_mean_wind(profile.heights, profile.u, profile.v,
                               lower_limit, upper_limit)
