"""
Jump Run
========
Direction and length of the aircraft's jump run.

The jump run is flown into the mean wind of the layer from the ground to
opening altitude unless a custom direction is set. Its length is the
distance covered over ground while every jumper leaves at the chosen
separation; the approach leg is the ground track flown during a fixed
time before the first exit.
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from .atmosphere import KNOTS_TO_MPS, METERS_TO_FEET, true_airspeed
from .geomath import GeoPoint, destination_point, is_valid_latlng, wind_uv
from .interpolation import interpolate_direction, linear_interpolate
from .mean_wind import profile_mean_wind
from .profile import coerce_profile
from .settings import JumpSettings


# ── Jump run limits ──────────────────────────────────────────────────────
MIN_TRACK_LENGTH_M = 100
MAX_TRACK_LENGTH_M = 10000
MIN_APPROACH_LENGTH_M = 100
MAX_APPROACH_LENGTH_M = 20000
APPROACH_TIME_SECONDS = 120

DEFAULT_SEPARATION_SECONDS = 5

# Exit separation (s) by aircraft true airspeed (kt)
JUMPER_SEPARATION_TABLE = {
    135: 5, 130: 5, 125: 5, 120: 5, 115: 5, 110: 5, 105: 5,
    100: 6, 95: 7, 90: 7, 85: 7, 80: 8, 75: 8, 70: 9,
    65: 10, 60: 10, 55: 11, 50: 12, 45: 14, 40: 15, 35: 17,
    30: 20, 25: 24, 20: 30, 15: 40, 10: 60, 5: 119,
}


@dataclass(frozen=True)
class JumpRunTrack:
    """Geometry of a jump run."""
    direction: float                  # deg true
    track_length: int                 # m
    approach_length: int              # m
    approach_time: int                # s
    start_point: GeoPoint
    end_point: GeoPoint
    approach_points: Tuple[GeoPoint, GeoPoint]   # (track start, approach start)
    ground_speed: float               # m/s at exit altitude
    mean_wind_direction: float
    mean_wind_speed: float            # m/s

    @property
    def points(self) -> Tuple[GeoPoint, GeoPoint]:
        return self.start_point, self.end_point


def separation_from_tas(ias: float, exit_altitude: float) -> int:
    """
    Recommended exit separation (s) for an aircraft flying `ias` knots
    at `exit_altitude` m: the entry of the smallest table speed that is
    still at least the true airspeed. Speeds beyond the table use its
    fastest entry.
    """
    tas = true_airspeed(ias, exit_altitude * METERS_TO_FEET)
    if tas is None or not math.isfinite(tas) or tas <= 0:
        return DEFAULT_SEPARATION_SECONDS

    speeds = sorted(JUMPER_SEPARATION_TABLE, reverse=True)
    closest = speeds[0]
    for speed in speeds:
        if tas <= speed:
            closest = speed
        else:
            break
    return JUMPER_SEPARATION_TABLE[closest]


def _clamp(value, lower, upper):
    return max(lower, min(upper, value))


def _custom_direction(value) -> Optional[float]:
    try:
        direction = float(value)
    except (TypeError, ValueError):
        return None
    if math.isfinite(direction) and 0 <= direction <= 360:
        return direction
    return None


def ground_speed_at_exit(profile, elevation: float, exit_altitude: float,
                         direction: float, aircraft_speed_kt: float) -> float:
    """
    Aircraft ground speed (m/s) at exit altitude: the TAS vector along
    `direction` plus the wind there. IAS stands in when TAS is unknown.
    """
    tas_kt = true_airspeed(aircraft_speed_kt, (elevation + exit_altitude) * METERS_TO_FEET)
    if tas_kt is None or not math.isfinite(tas_kt):
        return aircraft_speed_kt * KNOTS_TO_MPS

    heights_agl = profile.heights - elevation
    wind_dir = interpolate_direction(heights_agl, profile.directions, exit_altitude)
    wind_spd = linear_interpolate(heights_agl, profile.speeds, exit_altitude)
    if wind_dir is None or wind_spd is None:
        return aircraft_speed_kt * KNOTS_TO_MPS

    wind_u, wind_v = wind_uv(wind_spd, wind_dir)
    tas = tas_kt * KNOTS_TO_MPS
    heading = math.radians(direction)
    return math.hypot(tas * math.sin(heading) + wind_u, tas * math.cos(heading) + wind_v)


def calculate_jump_run(profile, lat: float, lng: float, elevation: float,
                       settings: Optional[JumpSettings] = None
                       ) -> Optional[JumpRunTrack]:
    """
    Jump run anchored at (lat, lng) above ground at `elevation` (m AMSL).

    Returns None for an empty profile, a missing anchor or a failed mean
    wind.
    """
    settings = settings or JumpSettings()
    profile = coerce_profile(profile)
    if profile is None or not is_valid_latlng(lat, lng) or elevation is None:
        return None

    mean = profile_mean_wind(profile, elevation, elevation + settings.opening_altitude)
    if mean is None:
        return None

    direction = _custom_direction(settings.custom_jump_run_direction)
    if direction is None:
        direction = float(round(mean.direction))

    ground_speed = ground_speed_at_exit(profile, elevation, settings.exit_altitude,
                                        direction, settings.aircraft_speed_kt or 90.0)

    jumpers = settings.number_of_jumpers or 10
    separation = settings.jumper_separation or DEFAULT_SEPARATION_SECONDS
    track_length = _clamp(round(jumpers * separation * ground_speed),
                          MIN_TRACK_LENGTH_M, MAX_TRACK_LENGTH_M)
    approach_length = _clamp(round(ground_speed * APPROACH_TIME_SECONDS),
                             MIN_APPROACH_LENGTH_M, MAX_APPROACH_LENGTH_M)

    lateral = settings.jump_run_lateral_offset or 0.0
    forward = settings.jump_run_forward_offset or 0.0
    shift_distance = math.hypot(lateral, forward)
    shift_bearing = (direction + math.degrees(math.atan2(lateral, forward)) + 360.0) % 360.0

    unshifted_end = destination_point(lat, lng, track_length, direction)
    start = destination_point(lat, lng, shift_distance, shift_bearing)
    end = destination_point(unshifted_end.lat, unshifted_end.lng,
                            shift_distance, shift_bearing)
    approach_start = destination_point(start.lat, start.lng, approach_length,
                                       (direction + 180.0) % 360.0)

    return JumpRunTrack(
        direction=direction,
        track_length=track_length,
        approach_length=approach_length,
        approach_time=APPROACH_TIME_SECONDS,
        start_point=start,
        end_point=end,
        approach_points=(start, approach_start),
        ground_speed=ground_speed,
        mean_wind_direction=mean.direction,
        mean_wind_speed=mean.speed,
    )
