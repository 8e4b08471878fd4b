"""
Great-Circle Geodesy & Wind Triangle
====================================
Projects distances and bearings onto a spherical earth and solves the
wind triangle for canopies and aircraft.

Conventions:
  - Bearings and courses are degrees clockwise from true north.
  - Wind directions are meteorological: the direction the wind blows FROM.
  - u = eastward, v = northward component of the air motion, so a wind
    "from" direction d with speed s has u = -s·sin(d), v = -s·cos(d).
"""

import math
from dataclasses import dataclass

import numpy as np


# ── Constants ─────────────────────────────────────────────────────────────
EARTH_RADIUS_METERS = 6371000.0      # mean earth radius (m)


@dataclass(frozen=True)
class GeoPoint:
    """Geographic position in decimal degrees."""
    lat: float
    lng: float

    def __iter__(self):
        yield self.lat
        yield self.lng


@dataclass(frozen=True)
class FlightParameters:
    """Wind triangle solved for a desired ground track (course)."""
    crosswind: float
    headwind: float
    wca: float
    ground_speed: float


@dataclass(frozen=True)
class CourseSolution:
    """Wind triangle solved for a flown heading."""
    true_course: float
    ground_speed: float
    wca: float
    crosswind: float
    headwind: float


def normalize_angle(angle: float) -> float:
    """Wrap an angle to [0, 360)."""
    return (angle % 360.0 + 360.0) % 360.0


def is_valid_latlng(lat, lng) -> bool:
    """
    True for finite coordinates inside the valid range.
    (0, 0) is rejected; it is what an unset location looks like.
    """
    try:
        lat = float(lat)
        lng = float(lng)
    except (TypeError, ValueError):
        return False
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return False
    if lat == 0.0 and lng == 0.0:
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def destination_point(lat: float, lng: float, distance: float,
                      bearing_deg: float) -> GeoPoint:
    """
    Point reached from (lat, lng) after travelling `distance` metres
    along the initial great-circle bearing `bearing_deg`.
    """
    lat1 = math.radians(lat)
    lng1 = math.radians(lng)
    brg = math.radians(bearing_deg)
    delta = distance / EARTH_RADIUS_METERS

    lat2 = math.asin(math.sin(lat1) * math.cos(delta)
                     + math.cos(lat1) * math.sin(delta) * math.cos(brg))
    lng2 = lng1 + math.atan2(math.sin(brg) * math.sin(delta) * math.cos(lat1),
                             math.cos(delta) - math.sin(lat1) * math.sin(lat2))

    new_lng = (math.degrees(lng2) + 540.0) % 360.0 - 180.0
    return GeoPoint(math.degrees(lat2), new_lng)


def bearing(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Initial great-circle bearing from point 1 to point 2, in [0, 360)."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_lng = math.radians(lng2 - lng1)

    y = math.sin(d_lng) * math.cos(phi2)
    x = (math.cos(phi1) * math.sin(phi2)
         - math.sin(phi1) * math.cos(phi2) * math.cos(d_lng))
    return (math.degrees(math.atan2(y, x)) + 360.0) % 360.0


# ── Wind vector algebra ───────────────────────────────────────────────────

def wind_uv(speed, direction_deg):
    """(u, v) components for a wind blowing FROM `direction_deg`."""
    rad = np.radians(direction_deg)
    return -speed * np.sin(rad), -speed * np.cos(rad)


def wind_speed(u, v):
    return np.sqrt(u * u + v * v)


def wind_direction(u, v):
    """Meteorological direction (FROM) of the vector (u, v), in [0, 360)."""
    return (np.degrees(np.arctan2(-u, -v)) + 360.0) % 360.0


def wind_angle(true_course: float, wind_dir: float) -> float:
    """Angle of the wind relative to the course, in (-180, 180]."""
    angle = normalize_angle(wind_dir - true_course)
    if angle > 180.0:
        angle -= 360.0
    return angle


def wind_components(speed: float, angle_deg: float):
    """
    Split a wind into (crosswind, headwind) relative to a course.

    crosswind > 0: wind from the right. headwind < 0: tailwind.
    """
    rad = math.radians(angle_deg)
    return speed * math.sin(rad), speed * math.cos(rad)


def wind_correction_angle(crosswind: float, airspeed: float) -> float:
    """
    Unsigned wind correction angle (deg). 0 when no correction exists,
    i.e. the crosswind is stronger than the airspeed.
    """
    if airspeed == 0:
        return 0.0
    ratio = crosswind / airspeed
    if not math.isfinite(ratio) or abs(ratio) > 1.0:
        return 0.0
    return abs(math.degrees(math.asin(ratio)))


def flight_parameters(true_course: float, wind_dir: float, wind_spd: float,
                      true_airspeed: float) -> FlightParameters:
    """Heading correction and ground speed needed to hold `true_course`."""
    angle = wind_angle(true_course, wind_dir)
    crosswind, headwind = wind_components(wind_spd, angle)
    wca = wind_correction_angle(crosswind, true_airspeed)
    if true_airspeed > abs(crosswind):
        ground_speed = math.sqrt(true_airspeed ** 2 - crosswind ** 2) - headwind
    else:
        # cannot hold the course; only the along-track wind remains
        ground_speed = -headwind
    return FlightParameters(crosswind, headwind, wca, ground_speed)


def course_from_heading(heading: float, wind_dir: float, wind_spd: float,
                        true_airspeed: float) -> CourseSolution:
    """
    Ground track and ground speed resulting from flying `heading`.

    Inverse of flight_parameters: the airspeed vector along the heading is
    added to the wind "to" vector.
    """
    angle = wind_angle(heading, wind_dir)
    crosswind, headwind = wind_components(wind_spd, angle)

    hdg = math.radians(heading)
    tas_u = true_airspeed * math.sin(hdg)
    tas_v = true_airspeed * math.cos(hdg)

    wind_to = math.radians((wind_dir + 180.0) % 360.0)
    wind_u = wind_spd * math.sin(wind_to)
    wind_v = wind_spd * math.cos(wind_to)

    gs_u = tas_u + wind_u
    gs_v = tas_v + wind_v

    true_course = normalize_angle(math.degrees(math.atan2(gs_u, gs_v)))
    ground_speed = math.sqrt(gs_u * gs_u + gs_v * gs_v)
    wca = wind_correction_angle(crosswind, true_airspeed)
    if crosswind < 0:
        wca = -wca

    return CourseSolution(true_course, ground_speed, wca, crosswind, headwind)
