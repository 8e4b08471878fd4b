"""
Atmosphere & Airspeed Model
===========================
Standard-atmosphere relations used by the jump planner:

  - true airspeed of the jump aircraft from its indicated airspeed
  - air density seen by a freefalling jumper (isothermal barometric
    relation anchored at the measured surface pressure)
  - dewpoint (Magnus formula) and QFE for the profile builder

Reference: U.S. Standard Atmosphere, 1976 (NASA-TM-X-74335)
"""

import math

import numpy as np


# ── ISA Constants ──────────────────────────────────────────────────────────
SEA_LEVEL_TEMP       = 288.15      # K  (15 °C)
SEA_LEVEL_PRESSURE   = 1013.25     # hPa
SEA_LEVEL_DENSITY    = 1.225       # kg/m³
LAPSE_RATE           = 0.0065      # K/m  (troposphere, positive = cooling)
GRAVITY              = 9.80665     # m/s²
MOLAR_MASS_AIR       = 0.0289644   # kg/mol
GAS_CONSTANT         = 8.31446261815324  # J/(mol·K)
R_SPECIFIC           = 287.05      # J/(kg·K)  specific gas constant for air

# Freefall density model uses its own rounded constants
FREEFALL_GRAVITY     = 9.81        # m/s²
FREEFALL_R_AIR       = 287.102     # J/(kg·K)

# Magnus coefficients (over water / over ice)
MAGNUS_A_LIQUID = 17.27
MAGNUS_B_LIQUID = 237.7
MAGNUS_A_ICE    = 21.87
MAGNUS_B_ICE    = 265.5

# ── Unit conversions ──────────────────────────────────────────────────────
KNOTS_TO_MPS    = 0.514444
KMH_TO_MPS      = 1.0 / 3.6
FEET_TO_METERS  = 0.3048
METERS_TO_FEET  = 3.28084
CELSIUS_TO_KELVIN = 273.15


def knots_to_mps(knots: float) -> float:
    return knots * KNOTS_TO_MPS


def mps_to_knots(mps: float) -> float:
    return mps / KNOTS_TO_MPS


def true_airspeed(ias: float, height_ft: float):
    """
    True airspeed from indicated airspeed at a pressure height (ft).

    Uses the ISA density ratio σ = (1 - L·h/T0)^(g/(L·R) - 1) and
    TAS = IAS / sqrt(σ). Same unit as `ias`. Returns None for negative
    or non-finite inputs, or heights above the troposphere model.
    """
    if ias is None or height_ft is None:
        return None
    if not (math.isfinite(ias) and math.isfinite(height_ft)):
        return None
    if ias < 0 or height_ft < 0:
        return None

    height_m = height_ft * FEET_TO_METERS
    base = 1.0 - (LAPSE_RATE * height_m) / SEA_LEVEL_TEMP
    if base <= 0:
        return None
    exponent = GRAVITY / (LAPSE_RATE * R_SPECIFIC) - 1.0
    density_ratio = base ** exponent
    return ias / math.sqrt(density_ratio)


def freefall_air_density(height: float, ground_elevation: float,
                         temperature_c: float,
                         surface_pressure_hpa: float = SEA_LEVEL_PRESSURE) -> float:
    """
    Air density (kg/m³) at `height` (m AMSL).

    ρ = p_s · exp(-g·Δh / (R·T)) / (R·T), with Δh measured from the
    ground and T the local temperature.
    """
    temp_k = temperature_c + CELSIUS_TO_KELVIN
    rt = FREEFALL_R_AIR * temp_k
    pressure_pa = surface_pressure_hpa * 100.0 * math.exp(
        -FREEFALL_GRAVITY * (height - ground_elevation) / rt)
    return pressure_pa / rt


def dewpoint(temperature_c: float, relative_humidity: float):
    """
    Dewpoint (°C) from temperature and relative humidity (%), Magnus formula.
    Returns None when humidity is zero or the result is undefined.
    """
    if relative_humidity is None or temperature_c is None:
        return None
    if relative_humidity <= 0:
        return None
    if temperature_c >= 0:
        a, b = MAGNUS_A_LIQUID, MAGNUS_B_LIQUID
    else:
        a, b = MAGNUS_A_ICE, MAGNUS_B_ICE
    alpha = (a * temperature_c) / (b + temperature_c) + math.log(relative_humidity / 100.0)
    value = (b * alpha) / (a - alpha)
    return value if math.isfinite(value) else None


def qfe(surface_pressure_hpa: float, elevation: float,
        reference_elevation: float, temperature_c: float = 15.0):
    """
    Pressure (hPa, rounded) at `elevation` given `surface_pressure_hpa`
    measured at `reference_elevation`, using the ISA lapse-rate barometric
    formula. None for missing inputs.
    """
    values = (surface_pressure_hpa, elevation, reference_elevation, temperature_c)
    if any(v is None or not math.isfinite(v) for v in values) or not surface_pressure_hpa:
        return None
    temp_k = temperature_c + CELSIUS_TO_KELVIN
    exponent = (GRAVITY * MOLAR_MASS_AIR) / (GAS_CONSTANT * LAPSE_RATE)
    base = 1.0 - (LAPSE_RATE * (elevation - reference_elevation)) / temp_k
    if base <= 0:
        return None
    return round(surface_pressure_hpa * 100.0 * base ** exponent / 100.0)


# ── Vectorized version for plotting ───────────────────────────────────────
def density_profile(heights: np.ndarray, ground_elevation: float,
                    temperatures_c: np.ndarray,
                    surface_pressure_hpa: float = SEA_LEVEL_PRESSURE) -> np.ndarray:
    """Freefall density for arrays of heights and temperatures."""
    return np.array([
        freefall_air_density(h, ground_elevation, t, surface_pressure_hpa)
        for h, t in zip(heights, temperatures_c)
    ])
