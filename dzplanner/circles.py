"""
Exit, Canopy and Cut-Away Circles
=================================
Reachability circles around the landing point (DIP).

Canopy circles: every point inside is a spot from which a canopy opened
at opening altitude still reaches the target, the landing point itself
("full") or the start of the downwind leg ("downwind"). A circle's
radius is the still-air glide distance; its center is the anchor moved
upwind by the drift of the layer's mean wind during the canopy flight.

Exit circles shift those canopy circles once more, against the freefall
drift, to give the area where the jumper has to leave the aircraft.

A safety height shrinks every radius by the glide distance flown while
descending through it.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from .freefall import CANOPY_OPENING_BUFFER_METERS, FreefallResult, simulate_freefall
from .geomath import GeoPoint, destination_point, is_valid_latlng
from .jump_run import calculate_jump_run
from .landing_pattern import calculate_landing_pattern
from .mean_wind import MeanWind, profile_mean_wind
from .profile import coerce_profile
from .settings import JumpSettings


# ── Cut-away constants ────────────────────────────────────────────────────
CUTAWAY_VERTICAL_SPEEDS = {     # m/s under a released main canopy
    'Open': 4.1,
    'Partially': 12.8,
    'Collapsed': 39.2,
}
CUTAWAY_RADIUS_METERS = 150.0

NESTED_CIRCLE_MIN_BAND = 200.0      # m between lowest nested limit and lower band
NESTED_CIRCLE_FINE_STEP = 200.0
NESTED_CIRCLE_COARSE_STEP = 500.0
NESTED_CIRCLE_FINE_RANGE = 1000.0


@dataclass(frozen=True)
class CircleResult:
    center: GeoPoint
    radius: float                   # m
    mean_wind_direction: float      # deg
    mean_wind_speed: float          # m/s
    displacement: float = 0.0       # m of wind drift from the anchor
    upper_limit_agl: Optional[float] = None


@dataclass(frozen=True)
class ExitCircles:
    """Exit areas for reaching the DIP (full) and the downwind start."""
    full: CircleResult
    downwind: CircleResult
    freefall: FreefallResult
    jump_run_direction: float


@dataclass(frozen=True)
class CanopyCircles:
    """Opening areas; `anchors` is (landing point, downwind start)."""
    full: CircleResult
    downwind: CircleResult
    nested: Tuple[CircleResult, ...]
    anchors: Tuple[GeoPoint, GeoPoint]


@dataclass(frozen=True)
class CutawayResult:
    center: GeoPoint
    radius: float
    descent_time: float             # s
    vertical_speed: float           # m/s
    displacement: float             # m
    mean_wind_direction: float
    mean_wind_speed: float


class _CanopyBands:
    """Mean winds, glide distances and anchors shared by both circle kinds."""

    def __init__(self, wind_full: MeanWind, wind_downwind: MeanWind,
                 fly_time_full: float, fly_time: float,
                 canopy_speed: float, reduction: float,
                 landing_point: GeoPoint, downwind_anchor: GeoPoint):
        self.wind_full = wind_full
        self.wind_downwind = wind_downwind
        self.fly_time_full = fly_time_full
        self.fly_time = fly_time
        self.reduction = reduction
        self.radius_full = max(0.0, fly_time_full * canopy_speed - reduction)
        self.radius = max(0.0, fly_time * canopy_speed - reduction)
        self.landing_point = landing_point
        self.downwind_anchor = downwind_anchor

    @property
    def displacement_full(self) -> float:
        return self.wind_full.speed * self.fly_time_full

    @property
    def displacement(self) -> float:
        return self.wind_downwind.speed * self.fly_time

    def full_circle(self, offset: Tuple[float, float] = (0.0, 0.0)) -> CircleResult:
        center = destination_point(self.landing_point.lat, self.landing_point.lng,
                                   self.displacement_full, self.wind_full.direction)
        return CircleResult(
            center=_shift(center, offset), radius=self.radius_full,
            mean_wind_direction=self.wind_full.direction,
            mean_wind_speed=self.wind_full.speed,
            displacement=self.displacement_full,
        )

    def downwind_circle(self, offset: Tuple[float, float] = (0.0, 0.0)) -> CircleResult:
        center = destination_point(self.downwind_anchor.lat, self.downwind_anchor.lng,
                                   self.displacement, self.wind_downwind.direction)
        return CircleResult(
            center=_shift(center, offset), radius=self.radius,
            mean_wind_direction=self.wind_downwind.direction,
            mean_wind_speed=self.wind_downwind.speed,
            displacement=self.displacement,
        )


def _shift(point: GeoPoint, offset: Tuple[float, float]) -> GeoPoint:
    distance, bearing_deg = offset
    if not distance:
        return point
    return destination_point(point.lat, point.lng, distance, bearing_deg)


def _canopy_bands(profile, lat, lng, elevation, settings: JumpSettings,
                  landing_wind_direction) -> Optional[_CanopyBands]:
    upper = elevation + settings.opening_altitude - CANOPY_OPENING_BUFFER_METERS
    wind_full = profile_mean_wind(profile, elevation + settings.safety_height, upper)
    wind_downwind = profile_mean_wind(
        profile, elevation + settings.safety_height + settings.leg_height_downwind, upper)
    if wind_full is None or wind_downwind is None:
        return None

    landing_point = GeoPoint(lat, lng)
    pattern = calculate_landing_pattern(profile, lat, lng, elevation, settings,
                                        landing_wind_direction)
    downwind_anchor = pattern.downwind_start if pattern is not None else landing_point

    descent = settings.descent_rate
    canopy_speed = settings.canopy_speed_mps
    opening_band = settings.opening_altitude - CANOPY_OPENING_BUFFER_METERS
    return _CanopyBands(
        wind_full=wind_full,
        wind_downwind=wind_downwind,
        fly_time_full=opening_band / descent,
        fly_time=(opening_band - settings.leg_height_downwind) / descent,
        canopy_speed=canopy_speed,
        reduction=settings.safety_height / descent * canopy_speed,
        landing_point=landing_point,
        downwind_anchor=downwind_anchor,
    )


def calculate_exit_circles(profile, lat: float, lng: float, elevation: float,
                           settings: Optional[JumpSettings] = None,
                           jump_run_direction: Optional[float] = None,
                           landing_wind_direction: Optional[float] = None,
                           freefall: Optional[FreefallResult] = None
                           ) -> Optional[ExitCircles]:
    """
    Exit areas for landing at (lat, lng), ground at `elevation` m AMSL.

    The freefall is flown along `jump_run_direction`; when it is not given
    the computed jump run is used (north if that fails too). A `freefall`
    already flown along that jump run is reused instead of simulated
    again. Returns None when a mean wind or the freefall cannot be computed.
    """
    settings = settings or JumpSettings()
    profile = coerce_profile(profile)
    if profile is None or not is_valid_latlng(lat, lng) or elevation is None:
        return None

    bands = _canopy_bands(profile, lat, lng, elevation, settings, landing_wind_direction)
    if bands is None:
        return None

    if jump_run_direction is None:
        track = calculate_jump_run(profile, lat, lng, elevation, settings)
        jump_run_direction = track.direction if track is not None else 0.0

    if freefall is None:
        freefall = simulate_freefall(
            profile, settings.exit_altitude, settings.opening_altitude,
            lat, lng, elevation,
            jump_run_direction=jump_run_direction,
            aircraft_speed_kt=settings.aircraft_speed_kt,
        )
    if not isinstance(freefall, FreefallResult):
        return None

    offset = (freefall.distance, (freefall.direction + 180.0) % 360.0)
    return ExitCircles(
        full=bands.full_circle(offset),
        downwind=bands.downwind_circle(offset),
        freefall=freefall,
        jump_run_direction=jump_run_direction,
    )


def _nested_circles(profile, elevation, settings: JumpSettings,
                    anchor: GeoPoint, reduction: float):
    """
    Downwind-anchored circles for opening heights from the full opening
    height down to NESTED_CIRCLE_MIN_BAND above the downwind leg.
    """
    upper = elevation + settings.opening_altitude - CANOPY_OPENING_BUFFER_METERS
    lower = elevation + settings.leg_height_downwind
    step = (NESTED_CIRCLE_FINE_STEP if upper - lower <= NESTED_CIRCLE_FINE_RANGE
            else NESTED_CIRCLE_COARSE_STEP)
    canopy_speed = settings.canopy_speed_mps

    circles = []
    current = upper
    while current >= lower + NESTED_CIRCLE_MIN_BAND:
        fly_time = (current - lower) / settings.descent_rate
        wind = profile_mean_wind(profile, lower, current)
        if wind is None:
            return None
        displacement = wind.speed * fly_time
        circles.append(CircleResult(
            center=destination_point(anchor.lat, anchor.lng, displacement, wind.direction),
            radius=max(0.0, fly_time * canopy_speed - reduction),
            mean_wind_direction=wind.direction,
            mean_wind_speed=wind.speed,
            displacement=displacement,
            upper_limit_agl=current - elevation,
        ))
        current -= step
    return tuple(circles)


def calculate_canopy_circles(profile, lat: float, lng: float, elevation: float,
                             settings: Optional[JumpSettings] = None,
                             landing_wind_direction: Optional[float] = None
                             ) -> Optional[CanopyCircles]:
    """
    Opening areas for landing at (lat, lng), plus nested downwind circles
    for lower opening heights. None when a mean wind cannot be computed.
    """
    settings = settings or JumpSettings()
    profile = coerce_profile(profile)
    if profile is None or not is_valid_latlng(lat, lng) or elevation is None:
        return None

    bands = _canopy_bands(profile, lat, lng, elevation, settings, landing_wind_direction)
    if bands is None:
        return None

    nested = _nested_circles(profile, elevation, settings, bands.downwind_anchor,
                             bands.reduction)
    if nested is None:
        return None

    return CanopyCircles(
        full=bands.full_circle(),
        downwind=bands.downwind_circle(),
        nested=nested,
        anchors=(bands.landing_point, bands.downwind_anchor),
    )


def calculate_cutaway(profile, cutaway_lat: float, cutaway_lng: float,
                      elevation: float, cutaway_altitude: float,
                      state: str = 'Partially') -> Optional[CutawayResult]:
    """
    Where a main canopy released at `cutaway_altitude` m AGL over
    (cutaway_lat, cutaway_lng) comes down. Unknown states fall back to
    'Partially'.
    """
    profile = coerce_profile(profile)
    if profile is None or not is_valid_latlng(cutaway_lat, cutaway_lng):
        return None
    if elevation is None or not cutaway_altitude or cutaway_altitude <= 0:
        return None

    wind = profile_mean_wind(profile, elevation, elevation + cutaway_altitude)
    if wind is None:
        return None

    vertical_speed = CUTAWAY_VERTICAL_SPEEDS.get(state, CUTAWAY_VERTICAL_SPEEDS['Partially'])
    descent_time = cutaway_altitude / vertical_speed
    displacement = wind.speed * descent_time
    center = destination_point(cutaway_lat, cutaway_lng, displacement,
                               (wind.direction + 180.0) % 360.0)
    return CutawayResult(
        center=center,
        radius=CUTAWAY_RADIUS_METERS,
        descent_time=descent_time,
        vertical_speed=vertical_speed,
        displacement=displacement,
        mean_wind_direction=wind.direction,
        mean_wind_speed=wind.speed,
    )
