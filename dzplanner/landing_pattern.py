"""
Landing Pattern
===============
Lays out the final, base and downwind legs of a canopy landing pattern,
working backward from the landing point (DIP).

Each leg uses the mean wind of its own height band. Final and downwind
are course-referenced (the canopy crabs to hold the course); base is
heading-referenced (flown 90° to the landing direction and allowed to
drift). A leg's start point is its end point projected back along the
reciprocal of the ground track by ground speed × leg time.
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from .geomath import (
    GeoPoint, course_from_heading, destination_point, flight_parameters,
)
from .mean_wind import profile_mean_wind
from .profile import coerce_profile
from .settings import JumpSettings


@dataclass(frozen=True)
class PatternLeg:
    """One leg of the pattern, in flight order start → end."""
    name: str
    course: float             # ground track (deg)
    heading: float            # canopy heading (deg)
    wind_direction: float     # mean wind of the leg band
    wind_speed: float         # m/s
    ground_speed: float       # m/s
    wca: float                # deg, signed: + = into a wind from the right
    crosswind: float          # m/s
    headwind: float           # m/s
    time: float               # s
    start: GeoPoint
    end: GeoPoint

    @property
    def length(self) -> float:
        return self.ground_speed * self.time


@dataclass(frozen=True)
class LandingPatternResult:
    """Leg end points of the pattern, computed back to front."""
    downwind_start: GeoPoint
    base_start: GeoPoint
    final_start: GeoPoint
    landing_point: GeoPoint
    landing_direction: float
    legs: Tuple[PatternLeg, ...]

    def leg(self, name: str) -> PatternLeg:
        return next(l for l in self.legs if l.name == name)


def _finite(value) -> bool:
    try:
        return value is not None and math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def resolve_landing_direction(profile, settings: JumpSettings,
                              landing_wind_direction: Optional[float] = None
                              ) -> Optional[float]:
    """
    Final-leg course: the custom setting, else the last observed landing
    wind, else the wind direction of the first profile sample.
    """
    if _finite(settings.custom_landing_direction):
        return float(settings.custom_landing_direction)
    if _finite(landing_wind_direction):
        return float(landing_wind_direction)
    profile = coerce_profile(profile)
    if profile is not None and _finite(profile[0].wind_direction):
        return float(profile[0].wind_direction)
    return None


def _course_leg(name, start_height, end_height, profile, course, canopy_speed,
                descent_rate, end_point):
    """Course-referenced leg ending at `end_point`; None if no mean wind."""
    wind = profile_mean_wind(profile, start_height, end_height)
    if wind is None:
        return None
    params = flight_parameters(course, wind.direction, wind.speed, canopy_speed)
    signed_wca = params.wca if params.crosswind >= 0 else -params.wca
    time = (end_height - start_height) / descent_rate
    start = destination_point(end_point.lat, end_point.lng,
                              params.ground_speed * time, (course + 180.0) % 360.0)
    return PatternLeg(
        name=name, course=course, heading=(course + signed_wca) % 360.0,
        wind_direction=wind.direction, wind_speed=wind.speed,
        ground_speed=params.ground_speed, wca=signed_wca,
        crosswind=params.crosswind, headwind=params.headwind,
        time=time, start=start, end=end_point,
    )


def _heading_leg(name, start_height, end_height, profile, heading, canopy_speed,
                 descent_rate, end_point):
    """Heading-referenced leg ending at `end_point`; None if no mean wind."""
    wind = profile_mean_wind(profile, start_height, end_height)
    if wind is None:
        return None
    solution = course_from_heading(heading, wind.direction, wind.speed, canopy_speed)
    back_bearing = (solution.true_course + 180.0) % 360.0
    if solution.ground_speed < 0:
        back_bearing = (back_bearing + 180.0) % 360.0
    time = (end_height - start_height) / descent_rate
    start = destination_point(end_point.lat, end_point.lng,
                              solution.ground_speed * time, back_bearing)
    return PatternLeg(
        name=name, course=solution.true_course, heading=heading,
        wind_direction=wind.direction, wind_speed=wind.speed,
        ground_speed=solution.ground_speed, wca=solution.wca,
        crosswind=solution.crosswind, headwind=solution.headwind,
        time=time, start=start, end=end_point,
    )


def calculate_landing_pattern(profile, lat: float, lng: float, elevation: float,
                              settings: Optional[JumpSettings] = None,
                              landing_wind_direction: Optional[float] = None
                              ) -> Optional[LandingPatternResult]:
    """
    Pattern for landing at (lat, lng) on ground at `elevation` (m AMSL).

    Returns None when the profile is empty, no landing direction can be
    resolved or a leg's mean wind cannot be computed.
    """
    settings = settings or JumpSettings()
    profile = coerce_profile(profile)
    if profile is None or not _finite(elevation):
        return None

    landing_dir = resolve_landing_direction(profile, settings, landing_wind_direction)
    if landing_dir is None:
        return None

    canopy_speed = settings.canopy_speed_mps
    descent = settings.descent_rate
    h_final = elevation + settings.leg_height_final
    h_base = elevation + settings.leg_height_base
    h_downwind = elevation + settings.leg_height_downwind
    landing_point = GeoPoint(lat, lng)

    final = _course_leg('final', elevation, h_final, profile, landing_dir,
                        canopy_speed, descent, landing_point)
    if final is None:
        return None

    turn = 90.0 if settings.landing_pattern == 'LL' else -90.0
    base_heading = (landing_dir + turn + 360.0) % 360.0
    base = _heading_leg('base', h_final, h_base, profile, base_heading,
                        canopy_speed, descent, final.start)
    if base is None:
        return None

    downwind_course = (landing_dir + 180.0) % 360.0
    downwind = _course_leg('downwind', h_base, h_downwind, profile, downwind_course,
                           canopy_speed, descent, base.start)
    if downwind is None:
        return None

    return LandingPatternResult(
        downwind_start=downwind.start,
        base_start=base.start,
        final_start=final.start,
        landing_point=landing_point,
        landing_direction=landing_dir,
        legs=(downwind, base, final),
    )
