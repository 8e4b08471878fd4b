"""
Wind Profiles
=============
Data types for vertical wind/temperature profiles and the builder that
turns one time slice of pressure-level forecast data into an evenly
spaced profile above the ground.

Profile samples carry wind speed in m/s and the meteorological wind
direction (FROM, degrees). Heights are metres above mean sea level.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Tuple

import numpy as np

from .atmosphere import FEET_TO_METERS, KMH_TO_MPS, METERS_TO_FEET, dewpoint
from .geomath import wind_direction, wind_speed, wind_uv
from .interpolation import (
    interpolate_pressure, interpolate_wind_at_altitude, linear_interpolate,
)

logger = logging.getLogger(__name__)


# Pressure levels (hPa) requested from the forecast provider, surface first
STANDARD_PRESSURE_LEVELS = (1000, 950, 925, 900, 850, 800, 700, 600, 500, 400, 300, 250, 200)


@dataclass(frozen=True)
class WindProfileSample:
    """One altitude sample of the profile."""
    height: float                     # m AMSL
    pressure: Optional[float]         # hPa, None when not available
    temperature: float                # °C
    relative_humidity: float          # %
    wind_speed: float                 # m/s
    wind_direction: float             # deg, wind FROM
    dewpoint: Optional[float] = None  # °C


@dataclass(frozen=True)
class WindProfile:
    """
    Ordered sequence of WindProfileSample with array views for the
    calculators. Heights must be strictly monotonic (either direction).
    """
    samples: Tuple[WindProfileSample, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'samples', tuple(self.samples))

    @classmethod
    def from_arrays(cls, heights, speeds, directions, temperatures=None,
                    pressures=None, humidities=None) -> 'WindProfile':
        """Build a profile from parallel arrays (handy for tests and scripts)."""
        n = len(heights)
        temperatures = temperatures if temperatures is not None else [15.0] * n
        pressures = pressures if pressures is not None else [None] * n
        humidities = humidities if humidities is not None else [50.0] * n
        return cls(tuple(
            WindProfileSample(
                height=float(h), pressure=p, temperature=float(t),
                relative_humidity=float(rh), wind_speed=float(s),
                wind_direction=float(d), dewpoint=dewpoint(t, rh),
            )
            for h, s, d, t, p, rh in zip(heights, speeds, directions,
                                         temperatures, pressures, humidities)
        ))

    def __len__(self):
        return len(self.samples)

    def __iter__(self):
        return iter(self.samples)

    def __getitem__(self, index):
        return self.samples[index]

    @property
    def heights(self) -> np.ndarray:
        return np.array([s.height for s in self.samples], dtype=float)

    @property
    def speeds(self) -> np.ndarray:
        return np.array([s.wind_speed for s in self.samples], dtype=float)

    @property
    def directions(self) -> np.ndarray:
        return np.array([s.wind_direction for s in self.samples], dtype=float)

    @property
    def temperatures(self) -> np.ndarray:
        return np.array([s.temperature for s in self.samples], dtype=float)

    @property
    def u(self) -> np.ndarray:
        return wind_uv(self.speeds, self.directions)[0]

    @property
    def v(self) -> np.ndarray:
        return wind_uv(self.speeds, self.directions)[1]

    @property
    def surface_pressure(self) -> Optional[float]:
        """Pressure of the lowest sample, if known."""
        if not self.samples:
            return None
        lowest = min(self.samples, key=lambda s: s.height)
        return lowest.pressure

    def is_monotonic(self) -> bool:
        diffs = np.diff(self.heights)
        return bool(np.all(diffs > 0) or np.all(diffs < 0))


def coerce_profile(profile) -> Optional[WindProfile]:
    """
    WindProfile for any iterable of samples; None when missing or
    shorter than two samples.
    """
    if profile is None:
        return None
    if not isinstance(profile, WindProfile):
        profile = WindProfile(tuple(profile))
    if len(profile) < 2:
        return None
    return profile


# ══════════════════════════════════════════════════════════════════════════
#  Raw forecast input
# ══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class LevelObservation:
    """Model output on one pressure level. Missing values are None."""
    pressure: float                          # hPa
    height: Optional[float] = None           # geopotential height, m AMSL
    temperature: Optional[float] = None      # °C
    relative_humidity: Optional[float] = None
    wind_speed: Optional[float] = None       # m/s
    wind_direction: Optional[float] = None   # deg

    @property
    def complete(self) -> bool:
        return all(val is not None for val in (
            self.height, self.temperature, self.relative_humidity,
            self.wind_speed, self.wind_direction))


@dataclass(frozen=True)
class SurfaceObservation:
    """Near-surface model output (2 m temperature/humidity, 10 m wind)."""
    pressure: Optional[float]                # hPa
    temperature: Optional[float]             # °C at 2 m
    relative_humidity: Optional[float]       # % at 2 m
    wind_speed: Optional[float]              # m/s at 10 m
    wind_direction: Optional[float]          # deg at 10 m

    @property
    def missing(self) -> Tuple[str, ...]:
        """Names of the values the model left out."""
        return tuple(name for name in ('pressure', 'temperature', 'relative_humidity',
                                       'wind_speed', 'wind_direction')
                     if getattr(self, name) is None)


@dataclass(frozen=True)
class ForecastSlice:
    """All model output for one forecast time."""
    surface: SurfaceObservation
    levels: Tuple[LevelObservation, ...] = field(default_factory=tuple)


def _get(hourly: Mapping, key: str, index: int):
    series = hourly.get(key)
    if series is None or index >= len(series):
        return None
    value = series[index]
    if value is None:
        return None
    value = float(value)
    return value if math.isfinite(value) else None


def forecast_slice_from_hourly(hourly: Mapping, index: int,
                               wind_speed_unit: str = 'km/h',
                               pressure_levels: Iterable[int] = STANDARD_PRESSURE_LEVELS
                               ) -> Optional[ForecastSlice]:
    """
    Read one time index of an Open-Meteo style `hourly` mapping
    (keys such as `geopotential_height_850hPa`, `wind_speed_10m`).
    Returns None when the index is out of range.
    """
    times = hourly.get('time')
    if times is not None and index >= len(times):
        return None
    scale = KMH_TO_MPS if wind_speed_unit == 'km/h' else 1.0

    def speed(key):
        value = _get(hourly, key, index)
        return value * scale if value is not None else None

    surface = SurfaceObservation(
        pressure=_get(hourly, 'surface_pressure', index),
        temperature=_get(hourly, 'temperature_2m', index),
        relative_humidity=_get(hourly, 'relative_humidity_2m', index),
        wind_speed=speed('wind_speed_10m'),
        wind_direction=_get(hourly, 'wind_direction_10m', index),
    )
    levels = tuple(
        LevelObservation(
            pressure=float(hpa),
            height=_get(hourly, f'geopotential_height_{hpa}hPa', index),
            temperature=_get(hourly, f'temperature_{hpa}hPa', index),
            relative_humidity=_get(hourly, f'relative_humidity_{hpa}hPa', index),
            wind_speed=speed(f'wind_speed_{hpa}hPa'),
            wind_direction=_get(hourly, f'wind_direction_{hpa}hPa', index),
        )
        for hpa in pressure_levels
    )
    return ForecastSlice(surface=surface, levels=levels)


# ══════════════════════════════════════════════════════════════════════════
#  Profile builder
# ══════════════════════════════════════════════════════════════════════════

def _round(value, digits):
    return None if value is None else round(float(value), digits)


def build_profile(forecast: ForecastSlice, base_height: float, step: float,
                  height_unit: str = 'm') -> WindProfile:
    """
    Resample one forecast slice into a profile every `step` (m or ft AGL)
    from the ground up to the highest valid pressure level.

    Levels missing any of height, temperature, humidity or wind are
    dropped. When the surface lies below the lowest valid level, extra
    points are spliced in between: pressure blended in log space and wind
    blended over log-height. Returns an empty profile when fewer than two
    levels remain or the top height is unusable.
    """
    if forecast is None or step <= 0:
        return WindProfile()

    levels = sorted((lvl for lvl in forecast.levels if lvl.complete),
                    key=lambda lvl: lvl.pressure, reverse=True)
    if len(levels) < 2:
        logger.warning("Insufficient valid pressure levels for interpolation: %s",
                       [lvl.pressure for lvl in levels])
        return WindProfile()

    surface = forecast.surface
    if surface.pressure is None:
        logger.warning("Surface pressure missing; cannot build profile")
        return WindProfile()
    if surface.missing:
        logger.warning("Surface observation incomplete (%s); cannot build profile",
                       ', '.join(surface.missing))
        return WindProfile()

    pressures = [lvl.pressure for lvl in levels]
    heights = [lvl.height for lvl in levels]
    temps = [lvl.temperature for lvl in levels]
    rhs = [lvl.relative_humidity for lvl in levels]
    u_comp = [float(wind_uv(lvl.wind_speed, lvl.wind_direction)[0]) for lvl in levels]
    v_comp = [float(wind_uv(lvl.wind_speed, lvl.wind_direction)[1]) for lvl in levels]

    step_m = step * FEET_TO_METERS if height_unit == 'ft' else step
    lowest = levels[0]
    h_lowest = lowest.height

    if surface.pressure > lowest.pressure and math.isfinite(h_lowest) and h_lowest > base_height:
        u_surface, v_surface = (float(c) for c in wind_uv(surface.wind_speed, surface.wind_direction))
        log_p_surface = math.log(surface.pressure)
        log_p_lowest = math.log(lowest.pressure)
        log_h_top = math.log(h_lowest - base_height)

        near_surface = []
        steps_between = int(math.floor((h_lowest - base_height) / step_m))
        for i in range(1, steps_between):
            h = base_height + i * step_m
            if h >= h_lowest:
                continue
            fraction = (h - base_height) / (h_lowest - base_height)
            p = math.exp(log_p_surface + fraction * (log_p_lowest - log_p_surface))
            log_h = math.log(h - base_height + 1.0)
            u = linear_interpolate([0.0, log_h_top], [u_surface, u_comp[0]], log_h)
            v = linear_interpolate([0.0, log_h_top], [v_surface, v_comp[0]], log_h)
            t = linear_interpolate([base_height, h_lowest], [surface.temperature, lowest.temperature], h)
            rh = linear_interpolate([base_height, h_lowest],
                                    [surface.relative_humidity, lowest.relative_humidity], h)
            near_surface.append((h, p, t, rh, u, v))

        near_surface.insert(0, (base_height, surface.pressure, surface.temperature,
                                surface.relative_humidity, u_surface, v_surface))
        heights = [row[0] for row in near_surface] + heights
        pressures = [row[1] for row in near_surface] + pressures
        temps = [row[2] for row in near_surface] + temps
        rhs = [row[3] for row in near_surface] + rhs
        u_comp = [row[4] for row in near_surface] + u_comp
        v_comp = [row[5] for row in near_surface] + v_comp

    top_height = heights[int(np.argmin(pressures))]
    max_agl = top_height - base_height
    if not math.isfinite(max_agl) or max_agl <= 0:
        logger.warning("Invalid max height at top pressure level: %s (ground %s)",
                       top_height, base_height)
        return WindProfile()

    max_in_unit = max_agl * METERS_TO_FEET if height_unit == 'ft' else max_agl
    n_steps = int(math.floor(max_in_unit / step))

    samples = []
    for k in range(n_steps + 1):
        agl_in_unit = k * step
        agl = agl_in_unit * FEET_TO_METERS if height_unit == 'ft' else agl_in_unit
        z = base_height + agl

        if agl == 0:
            samples.append(WindProfileSample(
                height=z,
                pressure=surface.pressure,
                temperature=surface.temperature,
                relative_humidity=surface.relative_humidity,
                wind_speed=surface.wind_speed,
                wind_direction=surface.wind_direction,
                dewpoint=dewpoint(surface.temperature, surface.relative_humidity),
            ))
            continue

        wind = interpolate_wind_at_altitude(z, pressures, heights, u_comp, v_comp)
        if wind is None:
            logger.warning("Wind interpolation failed at %.0f m", z)
            return WindProfile()
        u, v = wind
        temp = linear_interpolate(heights, temps, z)
        rh = linear_interpolate(heights, rhs, z)
        samples.append(WindProfileSample(
            height=z,
            pressure=_round(interpolate_pressure(z, pressures, heights), 1),
            temperature=round(temp, 1),
            relative_humidity=round(rh),
            wind_speed=round(float(wind_speed(u, v)), 1),
            wind_direction=round(float(wind_direction(u, v))),
            dewpoint=_round(dewpoint(temp, rh), 1),
        ))

    return WindProfile(tuple(samples))


def build_profiles(slices: Mapping[str, ForecastSlice], base_height: float,
                   step: float, height_unit: str = 'm') -> Dict[str, WindProfile]:
    """Build one profile per named forecast slice, skipping failures."""
    profiles = {}
    for name, forecast in slices.items():
        profile = build_profile(forecast, base_height, step, height_unit)
        if len(profile) < 2:
            logger.warning("No usable profile for %s", name)
            continue
        profiles[name] = profile
    return profiles
