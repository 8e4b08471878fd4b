"""
Unit Tests for Settings, Planning, Ensembles and Reporting
==========================================================
Run: python -m pytest tests/ -v
"""

import sys
import os
import logging
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from dzplanner.ensemble import scenario_circles, scenario_forecast
from dzplanner.freefall import FreefallFailure, FreefallResult
from dzplanner.planner import plan_jump
from dzplanner.profile import (
    ForecastSlice, LevelObservation, SurfaceObservation, WindProfile, build_profile,
)
from dzplanner.settings import JumpSettings
from dzplanner.validation import run_reference_checks
from dzplanner.visualization import plot_freefall, plot_jump_plan, plot_wind_profile


LAT, LNG, ELEV = 52.52, 13.41, 38.0
HEIGHTS = [ELEV + 200.0 * k for k in range(21)]
WESTERLY = WindProfile.from_arrays(HEIGHTS, [10.0] * 21, [270.0] * 21)


def model_slice(surface_speed, surface_dir, level_speed, level_dir, height_850=1460.0):
    surface = SurfaceObservation(pressure=1008.0, temperature=17.0, relative_humidity=70.0,
                                 wind_speed=surface_speed, wind_direction=surface_dir)
    levels = (
        LevelObservation(1000.0, 110.0, 16.0, 70.0, level_speed, level_dir),
        LevelObservation(850.0, height_850, 8.0, 60.0, level_speed, level_dir),
        LevelObservation(700.0, 3010.0, -2.0, 50.0, level_speed, level_dir),
    )
    return ForecastSlice(surface=surface, levels=levels)


class TestSettings:
    """Configuration defaults and validation."""

    def test_defaults(self):
        s = JumpSettings()
        assert s.exit_altitude == 3000.0
        assert s.opening_altitude == 1200.0
        assert (s.leg_height_final, s.leg_height_base, s.leg_height_downwind) == (100.0, 200.0, 300.0)
        assert s.canopy_speed_mps == pytest.approx(10.28888, abs=1e-4)
        assert s.validate() is s

    @pytest.mark.parametrize('kwargs', [
        dict(exit_altitude=1000.0),
        dict(leg_height_base=50.0),
        dict(leg_height_downwind=150.0),
        dict(descent_rate=0.0),
        dict(canopy_speed_kt=-1.0),
        dict(landing_pattern='LR'),
        dict(cutaway_state='Gone'),
        dict(interpolation_step=0.0),
    ])
    def test_validate_rejects(self, kwargs):
        with pytest.raises(ValueError):
            JumpSettings(**kwargs).validate()

    def test_from_mapping(self):
        s = JumpSettings.from_mapping({'exit_altitude': 4000, 'safety_height': None,
                                       'unknown_key': 1})
        assert s.exit_altitude == 4000
        assert s.safety_height == 0.0


class TestPlanner:
    """Composition of all calculators."""

    def test_full_plan(self):
        plan = plan_jump(WESTERLY, LAT, LNG, ELEV, JumpSettings(), cutaway_point=(LAT, LNG))
        assert plan.jump_run is not None
        assert isinstance(plan.freefall, FreefallResult)
        assert plan.exit_circles is not None
        assert plan.canopy_circles is not None
        assert plan.landing_pattern is not None
        assert plan.cutaway is not None
        assert plan.jump_run_direction == 270.0
        assert 'JUMP PLAN' in plan.summary()

    def test_exit_circles_share_plan_freefall(self):
        plan = plan_jump(WESTERLY, LAT, LNG, ELEV, JumpSettings())
        assert plan.exit_circles.freefall is plan.freefall

    def test_empty_profile_short_circuits(self):
        plan = plan_jump(None, LAT, LNG, ELEV)
        assert plan.jump_run is None
        assert plan.freefall is FreefallFailure.MISSING_PROFILE
        assert plan.exit_circles is None
        assert plan.canopy_circles is None
        assert plan.landing_pattern is None
        assert 'MISSING_PROFILE' in plan.summary()

    def test_invalid_settings_raise(self):
        with pytest.raises(ValueError):
            plan_jump(WESTERLY, LAT, LNG, ELEV, JumpSettings(exit_altitude=800.0))


class TestEnsemble:
    """Scenario forecasts from several models."""

    SLICES = {
        'a': model_slice(2.0, 180.0, 8.0, 250.0, height_850=1450.0),
        'b': model_slice(4.0, 200.0, 12.0, 270.0, height_850=1470.0),
    }

    def test_min_wind_keeps_direction_of_weakest(self):
        f = scenario_forecast(self.SLICES, 'min_wind')
        assert f.surface.wind_speed == 2.0
        assert f.surface.wind_direction == 180.0
        level = next(lvl for lvl in f.levels if lvl.pressure == 850.0)
        assert (level.wind_speed, level.wind_direction) == (8.0, 250.0)
        assert level.height == 1450.0

    def test_max_wind_keeps_direction_of_strongest(self):
        f = scenario_forecast(self.SLICES, 'max_wind')
        level = next(lvl for lvl in f.levels if lvl.pressure == 850.0)
        assert (level.wind_speed, level.wind_direction) == (12.0, 270.0)
        assert level.height == 1470.0

    def test_mean_wind_is_vector_mean(self):
        slices = {'n': model_slice(10.0, 0.0, 10.0, 0.0),
                  'e': model_slice(10.0, 90.0, 10.0, 90.0)}
        f = scenario_forecast(slices, 'mean_wind')
        assert f.surface.wind_speed == pytest.approx(50.0 ** 0.5)
        assert f.surface.wind_direction == pytest.approx(45.0)
        assert f.surface.temperature == pytest.approx(17.0)

    def test_missing_values_skipped(self):
        slices = dict(self.SLICES)
        slices['c'] = ForecastSlice(
            SurfaceObservation(None, 30.0, 10.0, None, None),
            (LevelObservation(850.0),))
        f = scenario_forecast(slices, 'max_wind')
        assert f.surface.pressure == 1008.0
        assert f.surface.wind_speed == 4.0
        assert f.surface.temperature == 30.0

    def test_scenario_profile_builds(self):
        f = scenario_forecast(self.SLICES, 'mean_wind')
        assert len(build_profile(f, ELEV, 200.0)) > 2

    def test_unknown_scenario(self):
        with pytest.raises(ValueError):
            scenario_forecast(self.SLICES, 'heatmap')

    def test_empty(self):
        assert scenario_forecast({}, 'min_wind') is None

    def test_scenario_circles(self, caplog):
        with caplog.at_level(logging.WARNING, logger='dzplanner.ensemble'):
            results = scenario_circles({'westerly': WESTERLY, 'empty': []},
                                       LAT, LNG, ELEV, JumpSettings())
        assert results['westerly'].exit is not None
        assert results['westerly'].canopy is not None
        assert results['empty'].exit is None
        assert 'empty' in caplog.text


class TestReporting:
    """Reference checks and plots."""

    def test_reference_checks_pass(self):
        results = run_reference_checks(verbose=False)
        failed = [r.name for r in results if not r.passed]
        assert not failed

    def test_reference_report_prints(self, capsys):
        run_reference_checks(verbose=True)
        assert 'Status' in capsys.readouterr().out

    def test_plots(self, tmp_path):
        plan = plan_jump(WESTERLY, LAT, LNG, ELEV, JumpSettings(), cutaway_point=(LAT, LNG))
        figures = [
            plot_wind_profile(WESTERLY, ELEV, save_path=str(tmp_path / 'profile.png')),
            plot_freefall(plan.freefall, save_path=str(tmp_path / 'freefall.png')),
            plot_jump_plan(plan, LAT, LNG, save_path=str(tmp_path / 'plan.png')),
        ]
        for fig in figures:
            plt.close(fig)
        assert (tmp_path / 'plan.png').exists()
        assert plot_wind_profile(None) is None
