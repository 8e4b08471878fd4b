"""
Ensemble Scenarios
==================
Combine the forecasts of several weather models into one scenario
forecast and evaluate circles for every model or scenario profile.

Scenarios:
  - min_wind   per level, the model with the weakest wind (its direction
               is kept); scalars take the minimum
  - max_wind   per level, the model with the strongest wind; scalars
               take the maximum
  - mean_wind  vector mean of the winds; scalars take the arithmetic mean
"""

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Sequence, Tuple

import numpy as np

from .circles import (
    CanopyCircles, ExitCircles, calculate_canopy_circles, calculate_exit_circles,
)
from .geomath import wind_direction, wind_speed, wind_uv
from .profile import ForecastSlice, LevelObservation, SurfaceObservation
from .settings import JumpSettings

logger = logging.getLogger(__name__)

SCENARIOS = ('min_wind', 'mean_wind', 'max_wind')


@dataclass(frozen=True)
class ScenarioCircles:
    """Circles computed for one model or scenario profile."""
    exit: Optional[ExitCircles]
    canopy: Optional[CanopyCircles]


def _combine_scalar(values: Sequence[Optional[float]], scenario: str) -> Optional[float]:
    values = [v for v in values if v is not None and np.isfinite(v)]
    if not values:
        return None
    if scenario == 'min_wind':
        return float(min(values))
    if scenario == 'max_wind':
        return float(max(values))
    return float(np.mean(values))


def _combine_wind(pairs: Sequence[Tuple[Optional[float], Optional[float]]],
                  scenario: str) -> Tuple[Optional[float], Optional[float]]:
    """(speed, direction) of the scenario wind from per-model pairs."""
    pairs = [(s, d) for s, d in pairs
             if s is not None and d is not None and np.isfinite(s) and np.isfinite(d)]
    if not pairs:
        return None, None
    speeds = [s for s, _ in pairs]
    if scenario == 'min_wind':
        return pairs[int(np.argmin(speeds))]
    if scenario == 'max_wind':
        return pairs[int(np.argmax(speeds))]
    u, v = wind_uv(np.array(speeds), np.array([d for _, d in pairs]))
    mean_u, mean_v = float(np.mean(u)), float(np.mean(v))
    return float(wind_speed(mean_u, mean_v)), float(wind_direction(mean_u, mean_v))


def scenario_forecast(slices: Mapping[str, ForecastSlice],
                      scenario: str) -> Optional[ForecastSlice]:
    """
    Scenario forecast from the per-model slices of one forecast time.

    Levels are matched by pressure; a value missing in one model is
    combined from the remaining models. Raises ValueError for an unknown
    scenario, returns None when no slice is given.
    """
    if scenario not in SCENARIOS:
        raise ValueError(f"Unknown scenario '{scenario}'. Available: {list(SCENARIOS)}")
    slices = {name: s for name, s in slices.items() if s is not None}
    if not slices:
        logger.warning("No model forecasts for scenario %s", scenario)
        return None

    surfaces = [s.surface for s in slices.values()]
    speed, direction = _combine_wind(
        [(sf.wind_speed, sf.wind_direction) for sf in surfaces], scenario)
    surface = SurfaceObservation(
        pressure=_combine_scalar([sf.pressure for sf in surfaces], scenario),
        temperature=_combine_scalar([sf.temperature for sf in surfaces], scenario),
        relative_humidity=_combine_scalar([sf.relative_humidity for sf in surfaces], scenario),
        wind_speed=speed,
        wind_direction=direction,
    )

    by_pressure: Dict[float, list] = {}
    for name, forecast in slices.items():
        for level in forecast.levels:
            by_pressure.setdefault(level.pressure, []).append(level)

    levels = []
    for pressure in sorted(by_pressure, reverse=True):
        group = by_pressure[pressure]
        speed, direction = _combine_wind(
            [(lvl.wind_speed, lvl.wind_direction) for lvl in group], scenario)
        levels.append(LevelObservation(
            pressure=pressure,
            height=_combine_scalar([lvl.height for lvl in group], scenario),
            temperature=_combine_scalar([lvl.temperature for lvl in group], scenario),
            relative_humidity=_combine_scalar([lvl.relative_humidity for lvl in group], scenario),
            wind_speed=speed,
            wind_direction=direction,
        ))

    return ForecastSlice(surface=surface, levels=tuple(levels))


def scenario_circles(profiles: Mapping[str, object], lat: float, lng: float,
                     elevation: float, settings: Optional[JumpSettings] = None
                     ) -> Dict[str, ScenarioCircles]:
    """Exit and canopy circles for each named profile."""
    settings = settings or JumpSettings()
    results = {}
    for name, profile in profiles.items():
        exit_circles = calculate_exit_circles(profile, lat, lng, elevation, settings)
        canopy_circles = calculate_canopy_circles(profile, lat, lng, elevation, settings)
        if exit_circles is None:
            logger.warning("Exit circles unavailable for %s", name)
        if canopy_circles is None:
            logger.warning("Canopy circles unavailable for %s", name)
        results[name] = ScenarioCircles(exit=exit_circles, canopy=canopy_circles)
    return results
