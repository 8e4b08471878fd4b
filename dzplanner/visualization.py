"""
Visualization Engine
====================
Plots for checking a jump plan:
  1. Wind profile (speed, direction, temperature, density vs height)
  2. Freefall trajectory (height vs time, top view, vertical speed)
  3. Jump plan overview (circles, pattern, jump run) in local metres
"""

import math
import os
from typing import Optional

import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from matplotlib.patches import Circle

from .atmosphere import SEA_LEVEL_PRESSURE, density_profile
from .freefall import FreefallResult
from .geomath import EARTH_RADIUS_METERS, GeoPoint
from .planner import JumpPlan
from .profile import coerce_profile


# ── Style Configuration ───────────────────────────────────────────────────
STYLE = {
    'bg_color': '#0a0a0a',
    'text_color': '#e0e0e0',
    'grid_color': '#333333',
    'accent_colors': ['#00d4ff', '#ff6b35', '#00e676', '#ffeb3b',
                      '#e040fb', '#ff5252'],
    'font_family': 'monospace',
}

LEGEND_KW = dict(facecolor='#1a1a1a', edgecolor='#444', labelcolor=STYLE['text_color'])


def _apply_dark_style(fig, axes):
    """Apply consistent dark theme to figure and axes."""
    fig.patch.set_facecolor(STYLE['bg_color'])
    if not isinstance(axes, np.ndarray):
        axes = [axes]
    else:
        axes = axes.flatten()

    for ax in axes:
        ax.set_facecolor(STYLE['bg_color'])
        ax.tick_params(colors=STYLE['text_color'])
        ax.xaxis.label.set_color(STYLE['text_color'])
        ax.yaxis.label.set_color(STYLE['text_color'])
        ax.title.set_color(STYLE['text_color'])
        ax.grid(True, color=STYLE['grid_color'], alpha=0.4, linewidth=0.5)
        for spine in ax.spines.values():
            spine.set_color(STYLE['grid_color'])


def _save(fig, save_path):
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight',
                    facecolor=STYLE['bg_color'])


def ensure_output_dir(path: str = 'outputs'):
    os.makedirs(path, exist_ok=True)
    return path


def local_offset(point: GeoPoint, origin: GeoPoint):
    """(east, north) of `point` in metres from `origin` (equirectangular)."""
    k = math.pi / 180.0 * EARTH_RADIUS_METERS
    east = (point.lng - origin.lng) * k * math.cos(math.radians(origin.lat))
    north = (point.lat - origin.lat) * k
    return east, north


# ══════════════════════════════════════════════════════════════════════════
#  1. Wind Profile
# ══════════════════════════════════════════════════════════════════════════

def plot_wind_profile(profile, elevation: float = 0.0,
                      save_path: str = None) -> Optional[plt.Figure]:
    """Wind speed, direction, temperature and air density against height AGL."""
    profile = coerce_profile(profile)
    if profile is None:
        return None

    agl = profile.heights - elevation
    density = density_profile(profile.heights, elevation, profile.temperatures,
                              profile.surface_pressure or SEA_LEVEL_PRESSURE)
    fig, axes = plt.subplots(1, 4, figsize=(18, 7), sharey=True)
    _apply_dark_style(fig, axes)

    params = [
        ('Wind Speed (m/s)', profile.speeds, '#00d4ff', '-'),
        ('Wind Direction (°)', profile.directions, '#ff6b35', 'o'),
        ('Temperature (°C)', profile.temperatures, '#00e676', '-'),
        ('Density (kg/m³)', density, '#ffeb3b', '-'),
    ]
    for ax, (title, data, color, marker) in zip(axes, params):
        if marker == 'o':
            ax.plot(data, agl, 'o', color=color, markersize=4)
            ax.set_xlim(0, 360)
            ax.set_xticks([0, 90, 180, 270, 360])
        else:
            ax.plot(data, agl, color=color, linewidth=2)
            ax.fill_betweenx(agl, 0, data, alpha=0.1, color=color)
        ax.set_xlabel(title, fontsize=10)

    axes[0].set_ylabel('Height AGL (m)', fontsize=12)
    fig.suptitle('Wind Profile', fontsize=14, fontweight='bold', color=STYLE['text_color'])
    plt.tight_layout()
    _save(fig, save_path)
    return fig


# ══════════════════════════════════════════════════════════════════════════
#  2. Freefall Trajectory
# ══════════════════════════════════════════════════════════════════════════

def plot_freefall(result: FreefallResult, save_path: str = None) -> plt.Figure:
    """Height and vertical speed over time plus the drift seen from above."""
    fig, axes = plt.subplots(1, 3, figsize=(18, 6))
    _apply_dark_style(fig, axes)

    ax = axes[0]
    ax.plot(result.times, result.heights, color='#ffeb3b', linewidth=2)
    ax.axhline(y=result.stop_height, color='#ff5252', linestyle='--', alpha=0.6,
               label='Opening')
    ax.set_xlabel('Time (s)')
    ax.set_ylabel('Height AMSL (m)')
    ax.set_title('HEIGHT', fontweight='bold')
    ax.legend(fontsize=9, **LEGEND_KW)

    ax = axes[1]
    ax.plot(result.times, result.vertical_speeds, color='#e040fb', linewidth=2)
    ax.set_xlabel('Time (s)')
    ax.set_ylabel('Vertical speed (m/s)')
    ax.set_title('VERTICAL SPEED', fontweight='bold')

    ax = axes[2]
    ax.plot(result.east, result.north, color='#00d4ff', linewidth=2)
    ax.plot(0, 0, 'o', color='#00e676', markersize=10, label='Exit', zorder=5)
    ax.plot(result.east[-1], result.north[-1], 'x', color='#ff5252',
            markersize=12, markeredgewidth=3, label='Opening', zorder=5)
    ax.set_xlabel('East (m)')
    ax.set_ylabel('North (m)')
    ax.set_title(f'DRIFT {result.distance:.0f} m @ {result.direction:.0f}°',
                 fontweight='bold')
    ax.set_aspect('equal', adjustable='datalim')
    ax.legend(fontsize=9, **LEGEND_KW)

    fig.suptitle(f'FREEFALL — {result.time:.0f} s from {result.exit_height:.0f} m',
                 fontsize=15, fontweight='bold', color='#00d4ff', y=1.02)
    plt.tight_layout()
    _save(fig, save_path)
    return fig


# ══════════════════════════════════════════════════════════════════════════
#  3. Jump Plan Overview
# ══════════════════════════════════════════════════════════════════════════

def _circle(ax, origin, circle, color, label, linestyle='-'):
    east, north = local_offset(circle.center, origin)
    ax.add_patch(Circle((east, north), circle.radius, fill=False,
                        edgecolor=color, linewidth=2, linestyle=linestyle,
                        label=label))


def plot_jump_plan(plan: JumpPlan, lat: float, lng: float,
                   save_path: str = None) -> plt.Figure:
    """Top view of every part of `plan` around the landing point."""
    origin = GeoPoint(lat, lng)
    fig, ax = plt.subplots(figsize=(11, 11))
    _apply_dark_style(fig, ax)

    if plan.exit_circles is not None:
        _circle(ax, origin, plan.exit_circles.full, '#00e676', 'Exit (DIP)')
        _circle(ax, origin, plan.exit_circles.downwind, '#1b5e20', 'Exit (downwind)')
    if plan.canopy_circles is not None:
        _circle(ax, origin, plan.canopy_circles.full, '#ff5252', 'Canopy (DIP)')
        _circle(ax, origin, plan.canopy_circles.downwind, '#00d4ff', 'Canopy (downwind)')
        for nested in plan.canopy_circles.nested:
            _circle(ax, origin, nested, '#00d4ff', None, linestyle=':')

    if plan.landing_pattern is not None:
        lp = plan.landing_pattern
        points = [lp.downwind_start, lp.base_start, lp.final_start, lp.landing_point]
        xy = np.array([local_offset(p, origin) for p in points])
        ax.plot(xy[:, 0], xy[:, 1], '-o', color='#ffeb3b', linewidth=2,
                markersize=5, label='Landing pattern')

    if plan.jump_run is not None:
        jr = plan.jump_run
        track = np.array([local_offset(p, origin) for p in jr.points])
        approach = np.array([local_offset(p, origin) for p in jr.approach_points])
        ax.plot(approach[:, 0], approach[:, 1], '--', color='#888888', linewidth=1.5,
                label='Approach')
        ax.plot(track[:, 0], track[:, 1], color='#e040fb', linewidth=3,
                label=f'Jump run {jr.direction:.0f}°')

    if plan.cutaway is not None:
        _circle(ax, origin, plan.cutaway, '#ff6b35', 'Cut-away', linestyle='--')

    ax.plot(0, 0, 'x', color='#ff5252', markersize=12, markeredgewidth=3,
            label='DIP', zorder=5)
    ax.set_xlabel('East (m)', fontsize=12)
    ax.set_ylabel('North (m)', fontsize=12)
    ax.set_title('Jump Plan', fontsize=14, fontweight='bold')
    ax.set_aspect('equal', adjustable='datalim')
    ax.autoscale_view()
    ax.legend(loc='upper right', fontsize=9, **LEGEND_KW)

    plt.tight_layout()
    _save(fig, save_path)
    return fig
