"""
Jump Planning
=============
Runs every calculator for one jump and collects the results.

The parts depend on each other only where the physics does: the exit
circles need the jump-run direction and the freefall, the circles need
the landing pattern's downwind start. A part that fails is None and
everything that does not need it is still computed.
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .circles import (
    CanopyCircles, CutawayResult, ExitCircles,
    calculate_canopy_circles, calculate_cutaway, calculate_exit_circles,
)
from .freefall import FreefallFailure, FreefallResult, simulate_freefall
from .jump_run import JumpRunTrack, calculate_jump_run
from .landing_pattern import LandingPatternResult, calculate_landing_pattern
from .profile import coerce_profile
from .settings import JumpSettings


@dataclass
class JumpPlan:
    """Everything computed for one jump."""
    settings: JumpSettings
    jump_run: Optional[JumpRunTrack]
    freefall: Union[FreefallResult, FreefallFailure]
    exit_circles: Optional[ExitCircles]
    canopy_circles: Optional[CanopyCircles]
    landing_pattern: Optional[LandingPatternResult]
    cutaway: Optional[CutawayResult] = None

    @property
    def jump_run_direction(self) -> float:
        return self.jump_run.direction if self.jump_run is not None else 0.0

    def summary(self) -> str:
        """Human-readable summary string."""
        def fmt(value, spec, unit):
            return f"{value:{spec}} {unit}" if value is not None else 'n/a'

        ff = self.freefall if isinstance(self.freefall, FreefallResult) else None
        jr = self.jump_run
        ex = self.exit_circles
        cc = self.canopy_circles
        rows = [
            ('Jump run dir', fmt(jr.direction if jr else None, '.0f', '°')),
            ('Jump run len', fmt(jr.track_length if jr else None, 'd', 'm')),
            ('Ground speed', fmt(jr.ground_speed if jr else None, '.1f', 'm/s')),
            ('Freefall time', fmt(ff.time if ff else None, '.1f', 's')),
            ('Freefall dist', fmt(ff.distance if ff else None, '.0f', 'm')),
            ('Freefall dir', fmt(ff.direction if ff else None, '.0f', '°')),
            ('Exit radius', fmt(ex.full.radius if ex else None, '.0f', 'm')),
            ('Exit radius DW', fmt(ex.downwind.radius if ex else None, '.0f', 'm')),
            ('Canopy radius', fmt(cc.full.radius if cc else None, '.0f', 'm')),
            ('Nested circles', str(len(cc.nested)) if cc else 'n/a'),
        ]
        lines = [
            f"╔══════════════════════════════════════════════════════╗",
            f"║  JUMP PLAN{'':<43s} ║",
            f"╠══════════════════════════════════════════════════════╣",
        ]
        lines += [f"║  {label:<14s}: {value:>14s}{'':<22s} ║" for label, value in rows]
        if isinstance(self.freefall, FreefallFailure):
            lines.append(f"║  Freefall failed: {self.freefall.name:<35s}║")
        lines.append(f"╚══════════════════════════════════════════════════════╝")
        return '\n'.join(lines)


def plan_jump(profile, lat: float, lng: float, elevation: float,
              settings: Optional[JumpSettings] = None,
              landing_wind_direction: Optional[float] = None,
              cutaway_point: Optional[Tuple[float, float]] = None) -> JumpPlan:
    """
    Plan a jump landing at (lat, lng) on ground at `elevation` m AMSL.

    `settings` is validated first; ValueError propagates for unusable
    settings. `cutaway_point` is the (lat, lng) of a cut-away to evaluate.
    """
    settings = (settings or JumpSettings()).validate()
    profile = coerce_profile(profile)

    jump_run = calculate_jump_run(profile, lat, lng, elevation, settings)
    direction = jump_run.direction if jump_run is not None else 0.0

    freefall = simulate_freefall(
        profile, settings.exit_altitude, settings.opening_altitude,
        lat, lng, elevation,
        jump_run_direction=direction,
        aircraft_speed_kt=settings.aircraft_speed_kt,
    )
    exit_circles = None
    if isinstance(freefall, FreefallResult):
        exit_circles = calculate_exit_circles(profile, lat, lng, elevation, settings,
                                              jump_run_direction=direction,
                                              landing_wind_direction=landing_wind_direction,
                                              freefall=freefall)

    cutaway = None
    if cutaway_point is not None:
        cutaway = calculate_cutaway(profile, cutaway_point[0], cutaway_point[1], elevation,
                                    settings.cutaway_altitude, settings.cutaway_state)

    return JumpPlan(
        settings=settings,
        jump_run=jump_run,
        freefall=freefall,
        exit_circles=exit_circles,
        canopy_circles=calculate_canopy_circles(profile, lat, lng, elevation, settings,
                                                landing_wind_direction),
        landing_pattern=calculate_landing_pattern(profile, lat, lng, elevation, settings,
                                                  landing_wind_direction),
        cutaway=cutaway,
    )
