"""
Freefall Trajectory Integration
===============================
Time-stepped integration of a jumper's fall from exit to canopy
opening through a height-varying wind field.

Forces (per unit mass):
  - Gravity
  - Vertical drag, quadratic in vertical speed (terminal velocity model)
  - Horizontal drag, quadratic in the air-relative horizontal speed

The jumper leaves the aircraft with its true-airspeed vector along the
jump run ("forward throw"); drag then bleeds that off until the jumper
drifts with the wind. Wind, temperature and density are resampled at
every step, so no closed form exists once there is shear.

Coordinate system:
  north = +x, east = +y (metres from the exit point), height up (m AMSL)

Explicit Euler integration:
    h_{n+1} = h_n + v_z,n · dt
    v_{n+1} = v_n + a(h_n, v_n) · dt
    x_{n+1} = x_n + v_ground,n · dt
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

import numpy as np

from .atmosphere import (
    FEET_TO_METERS, FREEFALL_GRAVITY, KNOTS_TO_MPS, SEA_LEVEL_PRESSURE,
    freefall_air_density, true_airspeed,
)
from .geomath import GeoPoint, destination_point, is_valid_latlng
from .interpolation import interpolate_direction, linear_interpolate
from .profile import coerce_profile


# ── Freefall constants ────────────────────────────────────────────────────
CANOPY_OPENING_BUFFER_METERS = 200.0   # opening altitude minus fully inflated canopy
DEFAULT_TIMESTEP = 0.5                 # s
DEFAULT_MAX_STEPS = 10000


class FreefallFailure(Enum):
    """Reasons simulate_freefall produces no trajectory."""
    MISSING_PROFILE = 'wind profile missing or shorter than two samples'
    INVALID_ORIGIN = 'origin coordinates or ground elevation not usable'
    EXIT_BELOW_OPENING = 'exit altitude must be above opening altitude'
    STEP_LIMIT_EXCEEDED = 'integration did not reach opening altitude'


@dataclass
class Jumper:
    """
    Aerodynamic properties of a belly-to-earth jumper.
    """
    mass: float = 80.0                # kg
    cd_vertical: float = 1.0          # drag coefficient, vertical
    area_vertical: float = 0.5        # m²
    cd_horizontal: float = 1.0        # drag coefficient, horizontal
    area_horizontal: float = 0.5      # m²

    def drag_factors(self, rho: float):
        """(b_vertical, b_horizontal) with b = ½ c_d A ρ / m (1/m)."""
        bv = 0.5 * self.cd_vertical * self.area_vertical * rho / self.mass
        bh = 0.5 * self.cd_horizontal * self.area_horizontal * rho / self.mass
        return bv, bh

    def terminal_velocity(self, rho: float) -> float:
        """Vertical speed at which drag balances gravity (m/s)."""
        bv, _ = self.drag_factors(rho)
        return math.sqrt(FREEFALL_GRAVITY / bv)


@dataclass
class TrajectoryPoint:
    """Snapshot of the jumper's state at one instant."""
    time: float
    height: float               # m AMSL
    vertical_velocity: float    # m/s, negative = falling
    ground_velocity_north: float
    ground_velocity_east: float
    offset_north: float         # m from exit point
    offset_east: float

    @property
    def offset_distance(self) -> float:
        return math.hypot(self.offset_north, self.offset_east)

    @property
    def offset_bearing(self) -> float:
        return (math.degrees(math.atan2(self.offset_east, self.offset_north)) + 360.0) % 360.0


@dataclass
class FreefallResult:
    """Complete freefall output."""
    points: List[TrajectoryPoint]
    path: List[GeoPoint] = field(repr=False)
    exit_height: float
    stop_height: float
    throw_speed: float          # m/s ground speed at exit

    @property
    def time(self) -> float:
        """Elapsed freefall time (s)."""
        return self.points[-1].time

    @property
    def distance(self) -> float:
        """Horizontal displacement from the exit point (m)."""
        return self.points[-1].offset_distance

    @property
    def direction(self) -> float:
        """Bearing of the displacement from the exit point (deg)."""
        return self.points[-1].offset_bearing

    @property
    def final_vertical_speed(self) -> float:
        return -self.points[-1].vertical_velocity

    @property
    def heights(self) -> np.ndarray:
        return np.array([p.height for p in self.points])

    @property
    def times(self) -> np.ndarray:
        return np.array([p.time for p in self.points])

    @property
    def north(self) -> np.ndarray:
        return np.array([p.offset_north for p in self.points])

    @property
    def east(self) -> np.ndarray:
        return np.array([p.offset_east for p in self.points])

    @property
    def vertical_speeds(self) -> np.ndarray:
        return np.array([-p.vertical_velocity for p in self.points])

    def summary(self) -> str:
        """Human-readable summary string."""
        lines = [
            f"╔══════════════════════════════════════════════════════╗",
            f"║  FREEFALL SUMMARY{'':<36s} ║",
            f"╠══════════════════════════════════════════════════════╣",
            f"║  Exit height  : {self.exit_height:>10.0f} m AMSL{'':<19s} ║",
            f"║  Stop height  : {self.stop_height:>10.0f} m AMSL{'':<19s} ║",
            f"║  Throw speed  : {self.throw_speed:>10.1f} m/s{'':<22s} ║",
            f"╠══════════════════════════════════════════════════════╣",
            f"║  Time         : {self.time:>10.1f} s{'':<24s} ║",
            f"║  Distance     : {self.distance:>10.0f} m{'':<24s} ║",
            f"║  Direction    : {self.direction:>10.1f} °{'':<24s} ║",
            f"║  Final v_z    : {self.final_vertical_speed:>10.1f} m/s{'':<22s} ║",
            f"╚══════════════════════════════════════════════════════╝",
        ]
        return '\n'.join(lines)


def aircraft_ground_velocity(jump_run_direction: float, aircraft_speed_kt: float,
                             exit_altitude: float):
    """
    Initial (north, east) velocity of the jumper: the aircraft's true
    airspeed at exit altitude along the jump run, IAS when TAS is unknown.
    """
    if not aircraft_speed_kt:
        return 0.0, 0.0
    tas_kt = true_airspeed(aircraft_speed_kt, exit_altitude / FEET_TO_METERS)
    speed = (tas_kt if tas_kt is not None else aircraft_speed_kt) * KNOTS_TO_MPS
    rad = math.radians(jump_run_direction)
    return speed * math.cos(rad), speed * math.sin(rad)


def compute_accelerations(point: TrajectoryPoint, wind_north: float,
                          wind_east: float, rho: float, jumper: Jumper):
    """
    (a_z, a_north, a_east) in m/s² for the state `point` in a wind
    moving towards (wind_north, wind_east).
    """
    bv, bh = jumper.drag_factors(rho)

    v_air_north = point.ground_velocity_north - wind_north
    v_air_east = point.ground_velocity_east - wind_east
    v_air = math.hypot(v_air_north, v_air_east)

    vz = point.vertical_velocity
    a_z = -FREEFALL_GRAVITY - bv * vz * abs(vz)
    a_north = -bh * v_air * v_air_north
    a_east = -bh * v_air * v_air_east
    return a_z, a_north, a_east


def simulate_freefall(profile, exit_altitude: float, opening_altitude: float,
                      origin_lat: float, origin_lng: float,
                      ground_elevation: float, jump_run_direction: float = 0.0,
                      aircraft_speed_kt: Optional[float] = 90.0,
                      jumper: Optional[Jumper] = None,
                      dt: float = DEFAULT_TIMESTEP,
                      surface_pressure: Optional[float] = None,
                      max_steps: int = DEFAULT_MAX_STEPS
                      ) -> Union[FreefallResult, FreefallFailure]:
    """
    Integrate the fall from `exit_altitude` to `opening_altitude` minus the
    opening buffer (both m AGL) above an origin at `ground_elevation`.

    The last step is shortened so the fall ends exactly on the stop height.
    That fraction scales every state update, the horizontal velocity and
    offsets included, not only time, height and vertical speed. Drift is
    therefore a few decimetres shorter than with a full-length horizontal
    last step.

    Returns a FreefallResult, or the FreefallFailure describing why the
    inputs cannot be simulated.
    """
    profile = coerce_profile(profile)
    if profile is None:
        return FreefallFailure.MISSING_PROFILE
    if (not is_valid_latlng(origin_lat, origin_lng)
            or ground_elevation is None or not math.isfinite(ground_elevation)):
        return FreefallFailure.INVALID_ORIGIN
    if exit_altitude <= opening_altitude:
        return FreefallFailure.EXIT_BELOW_OPENING

    jumper = jumper or Jumper()
    h_start = ground_elevation + exit_altitude
    h_stop = ground_elevation + opening_altitude - CANOPY_OPENING_BUFFER_METERS

    if surface_pressure is None:
        surface_pressure = profile.surface_pressure or SEA_LEVEL_PRESSURE

    heights = profile.heights
    speeds = profile.speeds
    directions = profile.directions
    temperatures = profile.temperatures

    v_north, v_east = aircraft_ground_velocity(jump_run_direction, aircraft_speed_kt,
                                               exit_altitude)
    current = TrajectoryPoint(
        time=0.0, height=h_start, vertical_velocity=0.0,
        ground_velocity_north=v_north, ground_velocity_east=v_east,
        offset_north=0.0, offset_east=0.0,
    )
    points = [current]

    steps = 0
    while current.height > h_stop:
        if steps >= max_steps:
            return FreefallFailure.STEP_LIMIT_EXCEEDED
        steps += 1

        wind_dir = interpolate_direction(heights, directions, current.height)
        wind_spd = linear_interpolate(heights, speeds, current.height)
        temp_c = linear_interpolate(heights, temperatures, current.height)
        rho = freefall_air_density(current.height, ground_elevation, temp_c,
                                   surface_pressure)

        wind_to = math.radians((wind_dir + 180.0) % 360.0)
        wind_north = wind_spd * math.cos(wind_to)
        wind_east = wind_spd * math.sin(wind_to)

        a_z, a_north, a_east = compute_accelerations(current, wind_north, wind_east,
                                                     rho, jumper)

        step = dt
        next_height = current.height + current.vertical_velocity * dt
        if next_height <= h_stop:
            # land exactly on the stop height
            step = dt * (current.height - h_stop) / (current.height - next_height)
            next_height = h_stop

        current = TrajectoryPoint(
            time=current.time + step,
            height=next_height,
            vertical_velocity=current.vertical_velocity + a_z * step,
            ground_velocity_north=current.ground_velocity_north + a_north * step,
            ground_velocity_east=current.ground_velocity_east + a_east * step,
            offset_north=current.offset_north + current.ground_velocity_north * step,
            offset_east=current.offset_east + current.ground_velocity_east * step,
        )
        points.append(current)

    path = [destination_point(origin_lat, origin_lng, p.offset_distance, p.offset_bearing)
            for p in points]

    return FreefallResult(
        points=points,
        path=path,
        exit_height=h_start,
        stop_height=h_stop,
        throw_speed=math.hypot(v_north, v_east),
    )
