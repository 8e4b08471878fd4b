"""
Skydiving Jump Planner
======================
Computes where to exit the aircraft and where to open the canopy so a
skydiver reaches the landing area, from a vertical wind profile:
  - Layer mean wind (trapezoidal integration of u/v over height)
  - Freefall drift (time-stepped drag model with forward throw)
  - Exit and canopy reachability circles, with safety height
  - Landing pattern legs (final, base, downwind)
  - Jump run direction and length
  - Cut-away drift and multi-model ensemble scenarios

Wind speeds are m/s, heights metres, directions degrees (wind FROM).
"""

from .geomath import (
    GeoPoint, destination_point, bearing, wind_angle, wind_components,
    wind_correction_angle, flight_parameters, course_from_heading,
)
from .interpolation import (
    linear_interpolate, interpolate_pressure, interpolate_wind_at_altitude,
)
from .profile import (
    WindProfile, WindProfileSample, ForecastSlice, LevelObservation,
    SurfaceObservation, build_profile, build_profiles, forecast_slice_from_hourly,
)
from .mean_wind import MeanWind, calculate_mean_wind, profile_mean_wind
from .freefall import (
    Jumper, FreefallResult, FreefallFailure, simulate_freefall,
)
from .settings import JumpSettings
from .landing_pattern import LandingPatternResult, PatternLeg, calculate_landing_pattern
from .jump_run import JumpRunTrack, calculate_jump_run, separation_from_tas
from .circles import (
    CircleResult, ExitCircles, CanopyCircles, CutawayResult,
    calculate_exit_circles, calculate_canopy_circles, calculate_cutaway,
)
from .ensemble import ScenarioCircles, scenario_forecast, scenario_circles
from .planner import JumpPlan, plan_jump
from .validation import run_reference_checks

__version__ = "1.0.0"
__all__ = [
    'GeoPoint', 'destination_point', 'bearing', 'wind_angle', 'wind_components',
    'wind_correction_angle', 'flight_parameters', 'course_from_heading',
    'linear_interpolate', 'interpolate_pressure', 'interpolate_wind_at_altitude',
    'WindProfile', 'WindProfileSample', 'ForecastSlice', 'LevelObservation',
    'SurfaceObservation', 'build_profile', 'build_profiles',
    'forecast_slice_from_hourly',
    'MeanWind', 'calculate_mean_wind', 'profile_mean_wind',
    'Jumper', 'FreefallResult', 'FreefallFailure', 'simulate_freefall',
    'JumpSettings',
    'LandingPatternResult', 'PatternLeg', 'calculate_landing_pattern',
    'JumpRunTrack', 'calculate_jump_run', 'separation_from_tas',
    'CircleResult', 'ExitCircles', 'CanopyCircles', 'CutawayResult',
    'calculate_exit_circles', 'calculate_canopy_circles', 'calculate_cutaway',
    'ScenarioCircles', 'scenario_forecast', 'scenario_circles',
    'JumpPlan', 'plan_jump',
    'run_reference_checks',
]
