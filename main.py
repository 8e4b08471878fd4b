#!/usr/bin/env python3
"""
═══════════════════════════════════════════════════════════════════════════════
  SKYDIVING JUMP PLANNER — Main Runner
═══════════════════════════════════════════════════════════════════════════════

  Executes the complete planning pipeline for a reference drop zone:
    1. Wind profile from model pressure levels
    2. Layer mean winds
    3. Jump run
    4. Freefall drift
    5. Landing pattern
    6. Exit and canopy circles (with safety height)
    7. Cut-away drift
    8. Ensemble scenarios (min / mean / max wind)
    9. Validation against closed-form reference values

  All plots saved to outputs/ directory.

  Usage:
    python main.py              # Run everything
    python main.py --quick      # Skip plots
═══════════════════════════════════════════════════════════════════════════════
"""

import sys
import os
import time

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from dzplanner.circles import calculate_cutaway
from dzplanner.ensemble import scenario_circles, scenario_forecast, SCENARIOS
from dzplanner.freefall import FreefallResult
from dzplanner.jump_run import separation_from_tas
from dzplanner.mean_wind import profile_mean_wind
from dzplanner.planner import plan_jump
from dzplanner.profile import build_profile, build_profiles, forecast_slice_from_hourly
from dzplanner.settings import JumpSettings
from dzplanner.validation import run_reference_checks
from dzplanner.visualization import (
    plot_wind_profile, plot_freefall, plot_jump_plan, ensure_output_dir,
)

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt


# ── Reference drop zone ───────────────────────────────────────────────────
SITE_LAT = 52.52
SITE_LNG = 13.41
SITE_ELEVATION = 38.0

# Geopotential height (m) of each pressure level (hPa)
LEVEL_HEIGHTS = {1000: 110, 950: 540, 925: 760, 900: 990, 850: 1460,
                 800: 1950, 700: 3010, 600: 4200}


def model_hourly(speed_scale=1.0, veer=0.0):
    """Open-Meteo style hourly block of one synthetic weather model."""
    hourly = {
        'time': ['2025-06-01T12:00'],
        'surface_pressure': [1008.2],
        'temperature_2m': [17.7],
        'relative_humidity_2m': [76],
        'wind_speed_10m': [7.6 * speed_scale],
        'wind_direction_10m': [177 + veer],
    }
    for hpa, height in LEVEL_HEIGHTS.items():
        hourly[f'geopotential_height_{hpa}hPa'] = [height]
        hourly[f'temperature_{hpa}hPa'] = [17.0 - 0.0065 * height]
        hourly[f'relative_humidity_{hpa}hPa'] = [70]
        hourly[f'wind_speed_{hpa}hPa'] = [(30.0 + height / 200.0) * speed_scale]   # km/h
        hourly[f'wind_direction_{hpa}hPa'] = [(228 + height / 400.0 + veer) % 360]
    return hourly


def banner():
    print("""
╔═══════════════════════════════════════════════════════════════════════╗
║                                                                       ║
║     SKYDIVING JUMP PLANNER                                            ║
║     ─────────────────────────────────────────────────────             ║
║     Mean wind · Freefall drift · Exit & canopy circles               ║
║     Landing pattern · Jump run · Cut-away · Ensembles                ║
║                                                                       ║
╚═══════════════════════════════════════════════════════════════════════╝
""")


def section(title):
    print(f"\n{'─'*60}")
    print(f"  {title}")
    print(f"{'─'*60}")


def main():
    start_time = time.time()
    quick = '--quick' in sys.argv

    banner()
    out = ensure_output_dir('outputs')
    settings = JumpSettings(safety_height=100.0).validate()

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 1: Wind Profile
    # ══════════════════════════════════════════════════════════════════════
    section("PHASE 1: Wind Profile")
    forecast = forecast_slice_from_hourly(model_hourly(), 0)
    profile = build_profile(forecast, SITE_ELEVATION, settings.interpolation_step)
    print(f"  {'AGL (m)':>8} {'p (hPa)':>8} {'T (°C)':>7} {'RH %':>5} "
          f"{'Dir':>5} {'Spd m/s':>8}")
    for s in profile:
        pressure = f"{s.pressure:.1f}" if s.pressure is not None else 'n/a'
        print(f"  {s.height - SITE_ELEVATION:>8.0f} {pressure:>8} {s.temperature:>7.1f} "
              f"{s.relative_humidity:>5.0f} {s.wind_direction:>5.0f} {s.wind_speed:>8.1f}")

    if not quick:
        fig = plot_wind_profile(profile, SITE_ELEVATION, save_path=f'{out}/01_wind_profile.png')
        plt.close(fig)
        print(f"\n  ✓ Saved: {out}/01_wind_profile.png")

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 2: Layer Mean Winds
    # ══════════════════════════════════════════════════════════════════════
    section("PHASE 2: Layer Mean Winds")
    for lower, upper in [(0, 100), (100, 300), (0, 1000), (1000, 3000), (0, 3000)]:
        mean = profile_mean_wind(profile, SITE_ELEVATION + lower, SITE_ELEVATION + upper)
        print(f"  {lower:>5}-{upper:<5} m AGL  {mean.direction:>5.0f}°  {mean.speed:>5.1f} m/s")

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 3-7: Jump Plan
    # ══════════════════════════════════════════════════════════════════════
    section("PHASE 3: Jump Plan")
    plan = plan_jump(profile, SITE_LAT, SITE_LNG, SITE_ELEVATION, settings)
    print(plan.summary())
    sep = separation_from_tas(settings.aircraft_speed_kt, settings.exit_altitude)
    print(f"  Recommended separation at {settings.aircraft_speed_kt:.0f} kt IAS: {sep} s")

    if isinstance(plan.freefall, FreefallResult):
        section("PHASE 4: Freefall")
        print(plan.freefall.summary())
        if not quick:
            fig = plot_freefall(plan.freefall, save_path=f'{out}/02_freefall.png')
            plt.close(fig)
            print(f"  ✓ Saved: {out}/02_freefall.png")

    section("PHASE 5: Landing Pattern")
    if plan.landing_pattern is not None:
        for leg in plan.landing_pattern.legs:
            print(f"  {leg.name:<9s} course {leg.course:>5.0f}°  heading {leg.heading:>5.0f}°  "
                  f"GS {leg.ground_speed:>5.1f} m/s  {leg.length:>5.0f} m  {leg.time:>4.0f} s")

    section("PHASE 6: Exit & Canopy Circles")
    if plan.exit_circles is not None:
        ex = plan.exit_circles
        print(f"  Exit (DIP)       {ex.full.center.lat:.5f}, {ex.full.center.lng:.5f}  "
              f"r={ex.full.radius:.0f} m")
        print(f"  Exit (downwind)  {ex.downwind.center.lat:.5f}, {ex.downwind.center.lng:.5f}  "
              f"r={ex.downwind.radius:.0f} m")
    if plan.canopy_circles is not None:
        for nested in plan.canopy_circles.nested:
            print(f"  Opening {nested.upper_limit_agl:>5.0f} m  r={nested.radius:>5.0f} m  "
                  f"drift {nested.displacement:>4.0f} m @ {nested.mean_wind_direction:.0f}°")

    section("PHASE 7: Cut-Away")
    for state in ('Open', 'Partially', 'Collapsed'):
        cut = calculate_cutaway(profile, SITE_LAT, SITE_LNG, SITE_ELEVATION,
                                settings.cutaway_altitude, state)
        print(f"  {state:<10s} descent {cut.descent_time:>5.0f} s  "
              f"drift {cut.displacement:>5.0f} m")

    if not quick:
        fig = plot_jump_plan(plan, SITE_LAT, SITE_LNG, save_path=f'{out}/03_jump_plan.png')
        plt.close(fig)
        print(f"\n  ✓ Saved: {out}/03_jump_plan.png")

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 8: Ensemble Scenarios
    # ══════════════════════════════════════════════════════════════════════
    section("PHASE 8: Ensemble Scenarios")
    models = {
        'model_a': forecast_slice_from_hourly(model_hourly(0.8, -10.0), 0),
        'model_b': forecast_slice_from_hourly(model_hourly(1.0, 0.0), 0),
        'model_c': forecast_slice_from_hourly(model_hourly(1.3, 15.0), 0),
    }
    slices = {name: scenario_forecast(models, name) for name in SCENARIOS}
    profiles = build_profiles(slices, SITE_ELEVATION, settings.interpolation_step)
    for name, circles in scenario_circles(profiles, SITE_LAT, SITE_LNG,
                                          SITE_ELEVATION, settings).items():
        if circles.exit is None:
            print(f"  {name:<10s} no exit circle")
            continue
        c = circles.exit.full
        print(f"  {name:<10s} exit {c.center.lat:.5f}, {c.center.lng:.5f}  "
              f"mean wind {c.mean_wind_direction:>4.0f}° {c.mean_wind_speed:>4.1f} m/s")

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 9: Validation
    # ══════════════════════════════════════════════════════════════════════
    section("PHASE 9: Validation")
    run_reference_checks(verbose=True)

    elapsed = time.time() - start_time
    section("COMPLETE")
    print(f"""
  All outputs saved to: {os.path.abspath(out)}/

  Total runtime: {elapsed:.1f} seconds
""")


if __name__ == "__main__":
    main()
