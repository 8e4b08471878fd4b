"""
Validation Against Reference Values
===================================
Checks the calculators against values that are known in closed form:

  - layer mean wind of a height-invariant wind field
  - canopy circle radii reduced by a safety height
    (opening 1200 m, downwind leg 300 m, descent 3.5 m/s, canopy 20 kt,
    safety 300 m → 2057.78 m and 1175.87 m)
  - ISA true airspeed and the exit separation derived from it
  - freefall in still air without forward throw (no drift)
  - geodesic round trip (reverse bearing = bearing + 180°)

Reference site: 52.52°N 13.41°E, ground elevation 38 m.
"""

from dataclasses import dataclass
from typing import Callable, List

import numpy as np

from .atmosphere import METERS_TO_FEET, true_airspeed
from .circles import calculate_canopy_circles
from .freefall import FreefallResult, simulate_freefall
from .geomath import bearing, destination_point
from .jump_run import separation_from_tas
from .mean_wind import profile_mean_wind
from .profile import WindProfile
from .settings import JumpSettings


# ══════════════════════════════════════════════════════════════════════════
#  Reference site and profiles
# ══════════════════════════════════════════════════════════════════════════

REFERENCE_SITE = {
    'name': 'Berlin',
    'lat': 52.52,
    'lng': 13.41,
    'elevation': 38.0,
}

_HEIGHTS = [38.0 + 200.0 * k for k in range(21)]       # ground to 4038 m AMSL

REFERENCE_WESTERLY = WindProfile.from_arrays(
    _HEIGHTS, [10.0] * len(_HEIGHTS), [270.0] * len(_HEIGHTS),
    temperatures=[15.0 - 0.0065 * (h - 38.0) for h in _HEIGHTS],
    pressures=[1008.0 - 0.11 * (h - 38.0) for h in _HEIGHTS],
)

REFERENCE_CALM = WindProfile.from_arrays(
    _HEIGHTS, [0.0] * len(_HEIGHTS), [0.0] * len(_HEIGHTS),
    temperatures=[15.0 - 0.0065 * (h - 38.0) for h in _HEIGHTS],
    pressures=[1008.0 - 0.11 * (h - 38.0) for h in _HEIGHTS],
)


@dataclass
class ValidationResult:
    """Result of one reference comparison."""
    name: str
    expected: float
    computed: float
    tolerance: float
    unit: str = ''

    @property
    def error(self) -> float:
        return self.computed - self.expected

    @property
    def passed(self) -> bool:
        return bool(np.isfinite(self.computed)) and abs(self.error) <= self.tolerance


# ══════════════════════════════════════════════════════════════════════════
#  Individual checks
# ══════════════════════════════════════════════════════════════════════════

def _mean_wind_checks() -> List[ValidationResult]:
    elev = REFERENCE_SITE['elevation']
    mean = profile_mean_wind(REFERENCE_WESTERLY, elev, elev + 4000.0)
    direction = mean.direction if mean else float('nan')
    speed = mean.speed if mean else float('nan')
    return [
        ValidationResult('Mean wind direction', 270.0, direction, 1e-6, '°'),
        ValidationResult('Mean wind speed', 10.0, speed, 1e-6, 'm/s'),
    ]


def _safety_radius_checks() -> List[ValidationResult]:
    settings = JumpSettings(safety_height=300.0)
    circles = calculate_canopy_circles(REFERENCE_WESTERLY, REFERENCE_SITE['lat'],
                                       REFERENCE_SITE['lng'], REFERENCE_SITE['elevation'],
                                       settings)
    full = circles.full.radius if circles else float('nan')
    downwind = circles.downwind.radius if circles else float('nan')
    return [
        ValidationResult('Canopy radius (safety 300 m)', 2057.78, full, 0.1, 'm'),
        ValidationResult('Downwind radius (safety 300 m)', 1175.87, downwind, 0.1, 'm'),
    ]


def _airspeed_checks() -> List[ValidationResult]:
    tas = true_airspeed(90.0, 3000.0 * METERS_TO_FEET)
    return [
        ValidationResult('TAS 90 kt @ 3000 m', 104.47, tas if tas else float('nan'), 0.5, 'kt'),
        ValidationResult('Separation 90 kt @ 3000 m', 5.0,
                         float(separation_from_tas(90.0, 3000.0)), 0.0, 's'),
    ]


def _freefall_checks() -> List[ValidationResult]:
    result = simulate_freefall(REFERENCE_CALM, 3000.0, 1200.0,
                               REFERENCE_SITE['lat'], REFERENCE_SITE['lng'],
                               REFERENCE_SITE['elevation'],
                               jump_run_direction=0.0, aircraft_speed_kt=0.0)
    distance = result.distance if isinstance(result, FreefallResult) else float('nan')
    stop = result.points[-1].height if isinstance(result, FreefallResult) else float('nan')
    return [
        ValidationResult('Still-air freefall drift', 0.0, distance, 1e-6, 'm'),
        ValidationResult('Freefall stop height', REFERENCE_SITE['elevation'] + 1000.0,
                         stop, 1e-6, 'm'),
    ]


def _geodesy_checks() -> List[ValidationResult]:
    lat, lng = REFERENCE_SITE['lat'], REFERENCE_SITE['lng']
    results = []
    for brg in (0.0, 45.0, 135.0, 270.0):
        target = destination_point(lat, lng, 5000.0, brg)
        back = bearing(target.lat, target.lng, lat, lng)
        expected = (brg + 180.0) % 360.0
        diff = (back - expected + 180.0) % 360.0 - 180.0
        results.append(ValidationResult(f'Reverse bearing {brg:.0f}°', expected,
                                        expected + diff, 0.1, '°'))
    return results


REFERENCE_CHECKS: List[Callable[[], List[ValidationResult]]] = [
    _mean_wind_checks,
    _safety_radius_checks,
    _airspeed_checks,
    _freefall_checks,
    _geodesy_checks,
]


def run_reference_checks(verbose: bool = True) -> List[ValidationResult]:
    """Run every reference check; prints a comparison table when verbose."""
    results = []
    for check in REFERENCE_CHECKS:
        results.extend(check())

    if verbose:
        print(f"\n{'='*75}")
        print(f"  VALIDATION: {REFERENCE_SITE['name']} "
              f"({REFERENCE_SITE['lat']}°N {REFERENCE_SITE['lng']}°E, "
              f"{REFERENCE_SITE['elevation']:.0f} m)")
        print(f"{'='*75}")
        print(f"{'Check':<34} {'Expected':>10} {'Computed':>10} {'Error':>9} {'':>5}")
        print("-" * 75)
        for r in results:
            mark = '✓' if r.passed else '✗'
            print(f"{r.name:<34} {r.expected:>10.2f} {r.computed:>10.2f} "
                  f"{r.error:>+9.3f} {r.unit:<4} {mark}")
        print("-" * 75)
        passed = sum(r.passed for r in results)
        status = "✓ PASS" if passed == len(results) else "✗ FAILURES"
        print(f"  {passed}/{len(results)} checks within tolerance  |  Status: {status}")
        print(f"{'='*75}\n")

    return results


if __name__ == "__main__":
    run_reference_checks(verbose=True)
