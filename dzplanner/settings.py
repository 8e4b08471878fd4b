"""
Jump Settings
=============
All user-adjustable scalars of a jump, resolved by the caller before any
calculation runs. Heights are metres above ground unless noted.
"""

import dataclasses
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .atmosphere import KNOTS_TO_MPS


LANDING_PATTERNS = ('LL', 'RR')           # left-hand / right-hand pattern
CUTAWAY_STATES = ('Open', 'Partially', 'Collapsed')


@dataclass
class JumpSettings:
    """
    Complete specification of a jump.
    """
    exit_altitude: float = 3000.0          # m AGL
    opening_altitude: float = 1200.0       # m AGL
    safety_height: float = 0.0             # m reserved above the ground

    # Canopy
    canopy_speed_kt: float = 20.0          # horizontal glide speed (kt)
    descent_rate: float = 3.5              # m/s

    # Landing pattern leg start heights (m AGL)
    leg_height_final: float = 100.0
    leg_height_base: float = 200.0
    leg_height_downwind: float = 300.0
    landing_pattern: str = 'LL'
    custom_landing_direction: Optional[float] = None   # deg, final course

    # Aircraft & jump run
    aircraft_speed_kt: float = 90.0        # indicated airspeed
    number_of_jumpers: int = 10
    jumper_separation: float = 5.0         # s between exits
    custom_jump_run_direction: Optional[float] = None
    jump_run_lateral_offset: float = 0.0   # m, positive = right of track
    jump_run_forward_offset: float = 0.0   # m, positive = along track

    # Cut-away
    cutaway_altitude: float = 1000.0       # m AGL
    cutaway_state: str = 'Partially'

    # Profile resampling
    interpolation_step: float = 200.0      # m (or ft) between profile samples

    @property
    def canopy_speed_mps(self) -> float:
        return self.canopy_speed_kt * KNOTS_TO_MPS

    def validate(self) -> 'JumpSettings':
        """Raise ValueError for settings no calculation can use."""
        if self.exit_altitude <= self.opening_altitude:
            raise ValueError(
                f"Exit altitude ({self.exit_altitude} m) must be above "
                f"opening altitude ({self.opening_altitude} m)")
        if self.leg_height_base <= self.leg_height_final:
            raise ValueError("Base leg must start higher than final leg.")
        if self.leg_height_downwind <= self.leg_height_base:
            raise ValueError("Downwind leg must start higher than base leg.")
        if self.descent_rate <= 0:
            raise ValueError(f"Descent rate must be positive, got {self.descent_rate}")
        if self.canopy_speed_kt <= 0:
            raise ValueError(f"Canopy speed must be positive, got {self.canopy_speed_kt}")
        if self.interpolation_step <= 0:
            raise ValueError(f"Interpolation step must be positive, got {self.interpolation_step}")
        if self.landing_pattern not in LANDING_PATTERNS:
            raise ValueError(
                f"Unknown landing pattern '{self.landing_pattern}'. "
                f"Available: {list(LANDING_PATTERNS)}")
        if self.cutaway_state not in CUTAWAY_STATES:
            raise ValueError(
                f"Unknown cut-away state '{self.cutaway_state}'. "
                f"Available: {list(CUTAWAY_STATES)}")
        return self

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> 'JumpSettings':
        """Settings from a plain dict; unknown keys and None values are ignored."""
        names = {f.name for f in dataclasses.fields(cls)}
        kwargs = {key: val for key, val in values.items()
                  if key in names and val is not None}
        return cls(**kwargs)
