"""
Unit Tests for Geodesy, Interpolation, Profiles and Mean Wind
=============================================================
Run: python -m pytest tests/ -v
"""

import sys
import os
import logging
import math
import numpy as np
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from dzplanner.atmosphere import (
    KNOTS_TO_MPS, METERS_TO_FEET, SEA_LEVEL_PRESSURE,
    density_profile, dewpoint, freefall_air_density, qfe, true_airspeed,
)
from dzplanner.geomath import (
    GeoPoint, bearing, course_from_heading, destination_point, flight_parameters,
    is_valid_latlng, wind_angle, wind_components, wind_correction_angle,
    wind_direction, wind_speed, wind_uv,
)
from dzplanner.interpolation import (
    interpolate_direction, interpolate_pressure, interpolate_wind_at_altitude,
    linear_interpolate,
)
from dzplanner.mean_wind import calculate_mean_wind, profile_mean_wind
from dzplanner.profile import (
    ForecastSlice, LevelObservation, SurfaceObservation, WindProfile,
    build_profile, build_profiles, coerce_profile, forecast_slice_from_hourly,
)


LAT, LNG = 52.52, 13.41


def make_forecast(surface_pressure=1008.0):
    surface = SurfaceObservation(pressure=surface_pressure, temperature=17.7,
                                 relative_humidity=76.0, wind_speed=2.1,
                                 wind_direction=177.0)
    levels = (
        LevelObservation(1000.0, 110.0, 17.0, 70.0, 8.0, 228.0),
        LevelObservation(850.0, 1460.0, 8.0, 60.0, 11.0, 240.0),
        LevelObservation(700.0, 3010.0, -2.0, 50.0, 14.0, 250.0),
    )
    return ForecastSlice(surface=surface, levels=levels)


class TestGeoMath:
    """Spherical projection and wind triangle."""

    @pytest.mark.parametrize('brg', [0.0, 45.0, 180.0, 359.0, 720.0, -90.0])
    def test_zero_distance_returns_origin(self, brg):
        p = destination_point(LAT, LNG, 0.0, brg)
        assert p.lat == pytest.approx(LAT, abs=1e-9)
        assert p.lng == pytest.approx(LNG, abs=1e-9)

    @pytest.mark.parametrize('brg', [0.0, 60.0, 135.0, 225.0, 300.0])
    def test_reverse_bearing(self, brg):
        """Bearing back to the origin is the reciprocal of the outbound bearing."""
        p = destination_point(LAT, LNG, 1000.0, brg)
        back = bearing(p.lat, p.lng, LAT, LNG)
        diff = (back - (brg + 180.0) + 180.0) % 360.0 - 180.0
        assert abs(diff) < 0.02

    def test_one_degree_north(self):
        d = math.radians(1.0) * 6371000.0
        p = destination_point(10.0, 20.0, d, 0.0)
        assert p.lat == pytest.approx(11.0, abs=1e-9)
        assert p.lng == pytest.approx(20.0, abs=1e-9)

    def test_longitude_wraps_across_antimeridian(self):
        p = destination_point(0.0, 179.9, 50000.0, 90.0)
        assert -180.0 <= p.lng <= -179.0

    def test_geopoint_unpacks(self):
        lat, lng = GeoPoint(1.5, 2.5)
        assert (lat, lng) == (1.5, 2.5)

    def test_valid_latlng(self):
        assert is_valid_latlng(LAT, LNG)
        assert not is_valid_latlng(0, 0)
        assert not is_valid_latlng(91.0, 10.0)
        assert not is_valid_latlng(float('nan'), 10.0)
        assert not is_valid_latlng(None, 10.0)

    def test_wind_uv_direction_convention(self):
        """A westerly (from 270°) blows towards the east: u > 0."""
        u, v = wind_uv(10.0, 270.0)
        assert u == pytest.approx(10.0)
        assert v == pytest.approx(0.0, abs=1e-9)
        assert wind_direction(u, v) == pytest.approx(270.0)
        assert wind_speed(u, v) == pytest.approx(10.0)

    def test_wind_angle_range(self):
        assert wind_angle(0.0, 270.0) == pytest.approx(-90.0)
        assert wind_angle(0.0, 180.0) == pytest.approx(180.0)
        assert wind_angle(90.0, 0.0) == pytest.approx(-90.0)

    def test_wind_from_right_is_positive_crosswind(self):
        crosswind, headwind = wind_components(10.0, wind_angle(0.0, 90.0))
        assert crosswind == pytest.approx(10.0)
        assert headwind == pytest.approx(0.0, abs=1e-9)

    def test_wind_correction_angle(self):
        assert wind_correction_angle(5.0, 10.0) == pytest.approx(30.0)
        assert wind_correction_angle(-5.0, 10.0) == pytest.approx(30.0)
        assert wind_correction_angle(30.0, 10.0) == 0.0
        assert wind_correction_angle(5.0, 0.0) == 0.0

    def test_flight_parameters_headwind(self):
        fp = flight_parameters(0.0, 0.0, 5.0, 10.0)
        assert fp.ground_speed == pytest.approx(5.0)
        assert fp.wca == pytest.approx(0.0)

    def test_flight_parameters_crosswind(self):
        fp = flight_parameters(0.0, 90.0, 5.0, 10.0)
        assert fp.wca == pytest.approx(30.0)
        assert fp.ground_speed == pytest.approx(math.sqrt(75.0))

    def test_flight_parameters_crosswind_exceeds_airspeed(self):
        fp = flight_parameters(0.0, 60.0, 20.0, 10.0)
        assert fp.ground_speed == pytest.approx(-fp.headwind)

    @pytest.mark.parametrize('wind_dir', [90.0, 270.0, 45.0, 315.0])
    def test_course_from_heading_inverts_flight_parameters(self, wind_dir):
        """Flying the corrected heading holds the course; crosswind signs agree."""
        course, wind_spd, tas = 0.0, 5.0, 10.0
        fp = flight_parameters(course, wind_dir, wind_spd, tas)
        signed_wca = fp.wca if fp.crosswind >= 0 else -fp.wca
        sol = course_from_heading(course + signed_wca, wind_dir, wind_spd, tas)
        diff = (sol.true_course - course + 180.0) % 360.0 - 180.0
        assert abs(diff) < 1e-6
        assert sol.ground_speed == pytest.approx(fp.ground_speed)
        assert np.sign(sol.crosswind) == np.sign(fp.crosswind)
        assert np.sign(sol.wca) == np.sign(fp.crosswind)


class TestAtmosphere:
    """Airspeed and density helpers."""

    def test_tas_equals_ias_at_sea_level(self):
        assert true_airspeed(90.0, 0.0) == pytest.approx(90.0)

    def test_tas_at_3000_m(self):
        assert true_airspeed(90.0, 3000.0 * METERS_TO_FEET) == pytest.approx(104.47, abs=0.1)

    def test_tas_invalid(self):
        assert true_airspeed(-1.0, 1000.0) is None
        assert true_airspeed(90.0, float('nan')) is None

    def test_knots_conversion(self):
        assert 20.0 * KNOTS_TO_MPS == pytest.approx(10.28888, abs=1e-4)

    def test_density_decreases_with_height(self):
        rho_0 = freefall_air_density(38.0, 38.0, 15.0, SEA_LEVEL_PRESSURE)
        rho_3 = freefall_air_density(3038.0, 38.0, -4.5, SEA_LEVEL_PRESSURE)
        assert 1.1 < rho_0 < 1.3
        assert rho_3 < rho_0

    def test_density_profile_matches_scalar(self):
        heights = np.array([38.0, 1038.0])
        temps = np.array([15.0, 8.5])
        rho = density_profile(heights, 38.0, temps)
        assert rho[1] == pytest.approx(freefall_air_density(1038.0, 38.0, 8.5))

    def test_dewpoint(self):
        assert dewpoint(20.0, 100.0) == pytest.approx(20.0, abs=0.01)
        assert dewpoint(20.0, 50.0) == pytest.approx(9.3, abs=0.2)
        assert dewpoint(20.0, 0.0) is None

    def test_qfe(self):
        assert qfe(1013.0, 0.0, 0.0) == 1013
        assert qfe(1013.0, 500.0, 0.0) < 1013
        assert qfe(None, 500.0, 0.0) is None


class TestInterpolation:
    """Linear interpolation and its edge behaviour."""

    XS = [0.0, 100.0, 200.0]
    YS = [0.0, 10.0, 20.0]

    def test_exact_at_samples(self):
        for x, y in zip(self.XS, self.YS):
            assert linear_interpolate(self.XS, self.YS, x) == pytest.approx(y, abs=1e-12)

    def test_exact_at_samples_non_linear(self):
        xs, ys = [3000.0, 1000.0, 38.0], [7.3, 1.1, 42.0]
        for x, y in zip(xs, ys):
            assert linear_interpolate(xs, ys, x) == pytest.approx(y, abs=1e-12)

    def test_midpoint(self):
        assert linear_interpolate(self.XS, self.YS, 50.0) == pytest.approx(5.0)
        assert linear_interpolate(self.XS[::-1], self.YS[::-1], 150.0) == pytest.approx(15.0)

    def test_extrapolates_beyond_both_ends(self):
        assert linear_interpolate(self.XS, self.YS, 300.0) == pytest.approx(30.0)
        assert linear_interpolate(self.XS, self.YS, -100.0) == pytest.approx(-10.0)

    def test_extrapolates_descending_profile(self):
        xs, ys = [3000.0, 1000.0, 38.0], [7.3, 1.1, 42.0]
        below = 42.0 + (42.0 - 1.1) / (38.0 - 1000.0) * (0.0 - 38.0)
        above = 7.3 + (7.3 - 1.1) / (3000.0 - 1000.0) * (4000.0 - 3000.0)
        assert linear_interpolate(xs, ys, 0.0) == pytest.approx(below)
        assert linear_interpolate(xs, ys, 4000.0) == pytest.approx(above)
        assert linear_interpolate(xs, ys, 2000.0) == pytest.approx(4.2)

    def test_invalid_input(self):
        assert linear_interpolate([], [], 1.0) is None
        assert linear_interpolate([1.0, 2.0], [1.0], 1.0) is None
        assert linear_interpolate([1.0], [1.0], 1.0) is None

    def test_pressure_does_not_extrapolate(self):
        """Pressure is None outside the samples while linear_interpolate extrapolates."""
        heights, pressures = [0.0, 1000.0], [1000.0, 900.0]
        assert interpolate_pressure(500.0, pressures, heights) == pytest.approx(950.0)
        assert interpolate_pressure(1500.0, pressures, heights) is None
        assert interpolate_pressure(-10.0, pressures, heights) is None
        assert linear_interpolate(heights, pressures, 1500.0) == pytest.approx(850.0)

    def test_pressure_range_is_inclusive(self):
        heights, pressures = [0.0, 1000.0, 2000.0], [1000.0, 900.0, 800.0]
        assert interpolate_pressure(0.0, pressures, heights) == pytest.approx(1000.0)
        assert interpolate_pressure(2000.0, pressures, heights) == pytest.approx(800.0)
        assert interpolate_pressure(1500.0, pressures, heights) == pytest.approx(850.0)
        assert interpolate_pressure(500.0, pressures, heights[:2] + [2000.0, 3000.0]) is None

    def test_wind_at_altitude_on_level(self):
        pressures = [1000.0, 850.0, 700.0]
        heights = [110.0, 1460.0, 3010.0]
        u, v = [1.0, 2.0, 3.0], [-1.0, -2.0, -3.0]
        result = interpolate_wind_at_altitude(1460.0, pressures, heights, u, v)
        assert result[0] == pytest.approx(2.0)
        assert result[1] == pytest.approx(-2.0)

    def test_wind_at_altitude_length_mismatch(self):
        assert interpolate_wind_at_altitude(500.0, [1000.0, 850.0], [0.0], [1.0, 2.0],
                                            [1.0, 2.0]) is None

    def test_direction_interpolates_across_north(self):
        value = interpolate_direction([0.0, 100.0], [350.0, 10.0], 50.0)
        assert value == pytest.approx(0.0, abs=1e-9) or value == pytest.approx(360.0)


class TestProfileBuilder:
    """Forecast slice → evenly spaced profile."""

    def test_resampled_heights(self):
        profile = build_profile(make_forecast(), 38.0, 200.0)
        assert len(profile) == 15
        assert np.allclose(np.diff(profile.heights), 200.0)
        assert profile.is_monotonic()

    def test_ground_sample_is_surface_observation(self):
        profile = build_profile(make_forecast(), 38.0, 200.0)
        ground = profile[0]
        assert ground.height == 38.0
        assert ground.wind_speed == 2.1
        assert ground.wind_direction == 177.0
        assert ground.pressure == 1008.0

    def test_samples_rounded(self):
        profile = build_profile(make_forecast(), 38.0, 200.0)
        for s in profile.samples[1:]:
            assert s.wind_direction == round(s.wind_direction)
            assert s.wind_speed == round(s.wind_speed, 1)
            assert 8.0 <= s.wind_speed <= 14.0

    def test_feet_step(self):
        profile = build_profile(make_forecast(), 38.0, 1000.0, height_unit='ft')
        assert np.allclose(np.diff(profile.heights), 304.8)

    def test_incomplete_levels_dropped(self):
        forecast = make_forecast()
        levels = (forecast.levels[0],
                  LevelObservation(850.0, 1460.0, None, 60.0, 11.0, 240.0))
        profile = build_profile(ForecastSlice(forecast.surface, levels), 38.0, 200.0)
        assert len(profile) == 0

    def test_missing_surface_pressure(self):
        assert len(build_profile(make_forecast(surface_pressure=None), 38.0, 200.0)) == 0

    @staticmethod
    def hourly_block(**surface):
        hourly = {
            'time': ['t0'],
            'surface_pressure': [1008.0],
            'temperature_2m': [17.7],
            'relative_humidity_2m': [76],
            'wind_speed_10m': [7.6],
            'wind_direction_10m': [177],
        }
        for hpa, height, temp in ((1000, 110.0, 17.0), (925, 780.0, 12.0),
                                  (850, 1460.0, 8.0), (700, 3010.0, -2.0)):
            hourly[f'geopotential_height_{hpa}hPa'] = [height]
            hourly[f'temperature_{hpa}hPa'] = [temp]
            hourly[f'relative_humidity_{hpa}hPa'] = [60]
            hourly[f'wind_speed_{hpa}hPa'] = [30.0]
            hourly[f'wind_direction_{hpa}hPa'] = [240]
        hourly.update({key: [value] for key, value in surface.items()})
        return forecast_slice_from_hourly(hourly, 0)

    def test_complete_hourly_block_builds(self):
        profile = build_profile(self.hourly_block(), 38.0, 200.0)
        assert len(profile) > 2

    @pytest.mark.parametrize('key', ['wind_speed_10m', 'wind_direction_10m',
                                     'temperature_2m', 'relative_humidity_2m'])
    def test_missing_surface_value(self, key, caplog):
        forecast = self.hourly_block(**{key: None})
        with caplog.at_level(logging.WARNING, logger='dzplanner.profile'):
            profile = build_profile(forecast, 38.0, 200.0)
        assert len(profile) == 0
        assert 'incomplete' in caplog.text

    def test_build_profiles_skips_failures(self):
        bad = ForecastSlice(make_forecast().surface, ())
        profiles = build_profiles({'good': make_forecast(), 'bad': bad}, 38.0, 200.0)
        assert list(profiles) == ['good']

    def test_forecast_slice_from_hourly(self):
        hourly = {
            'time': ['t0'],
            'surface_pressure': [1008.0],
            'temperature_2m': [17.7],
            'relative_humidity_2m': [76],
            'wind_speed_10m': [36.0],
            'wind_direction_10m': [177],
            'geopotential_height_850hPa': [1460.0],
            'temperature_850hPa': [8.0],
            'relative_humidity_850hPa': [60],
            'wind_speed_850hPa': [18.0],
            'wind_direction_850hPa': [240],
        }
        forecast = forecast_slice_from_hourly(hourly, 0)
        assert forecast.surface.wind_speed == pytest.approx(10.0)
        level_850 = next(lvl for lvl in forecast.levels if lvl.pressure == 850.0)
        assert level_850.complete
        assert level_850.wind_speed == pytest.approx(5.0)
        assert forecast_slice_from_hourly(hourly, 3) is None

    def test_coerce_profile(self):
        assert coerce_profile(None) is None
        single = WindProfile.from_arrays([38.0], [1.0], [270.0])
        assert coerce_profile(single) is None
        two = WindProfile.from_arrays([38.0, 238.0], [1.0, 2.0], [270.0, 270.0])
        assert coerce_profile(list(two)) == two


class TestMeanWind:
    """Trapezoidal layer mean of u/v."""

    HEIGHTS = np.arange(0.0, 4001.0, 500.0)

    def _constant(self, speed, direction):
        u, v = wind_uv(np.full(len(self.HEIGHTS), speed),
                       np.full(len(self.HEIGHTS), direction))
        return u, v

    def test_constant_westerly(self):
        u, v = self._constant(10.0, 270.0)
        mean = calculate_mean_wind(self.HEIGHTS, u, v, 0.0, 4000.0)
        assert mean.direction == pytest.approx(270.0)
        assert mean.speed == pytest.approx(10.0)

    @pytest.mark.parametrize('lower,upper', [(123.0, 3456.0), (0.0, 250.0),
                                             (3900.0, 4500.0), (1000.0, 1000.5)])
    def test_constant_field_independent_of_bounds(self, lower, upper):
        u, v = self._constant(7.0, 135.0)
        mean = calculate_mean_wind(self.HEIGHTS, u, v, lower, upper)
        assert mean.direction == pytest.approx(135.0)
        assert mean.speed == pytest.approx(7.0)

    def test_linear_shear(self):
        heights = [0.0, 1000.0]
        mean = calculate_mean_wind(heights, [0.0, 10.0], [0.0, 0.0], 0.0, 1000.0)
        assert mean.speed == pytest.approx(5.0)
        assert mean.direction == pytest.approx(270.0)

    def test_unpacks_like_array(self):
        u, v = self._constant(10.0, 270.0)
        direction, speed, mean_u, mean_v = calculate_mean_wind(self.HEIGHTS, u, v, 0.0, 4000.0)
        assert mean_u == pytest.approx(10.0)

    def test_zero_span(self):
        u, v = self._constant(10.0, 270.0)
        assert calculate_mean_wind(self.HEIGHTS, u, v, 500.0, 500.0) is None

    def test_invalid_input(self):
        assert calculate_mean_wind([0.0], [1.0], [1.0], 0.0, 100.0) is None
        assert calculate_mean_wind([0.0, 100.0], [1.0], [1.0, 2.0], 0.0, 100.0) is None

    def test_profile_mean_wind(self):
        profile = WindProfile.from_arrays(self.HEIGHTS, [10.0] * 9, [270.0] * 9)
        mean = profile_mean_wind(profile, 38.0, 1038.0)
        assert mean.direction == pytest.approx(270.0)
        assert profile_mean_wind(None, 0.0, 100.0) is None
