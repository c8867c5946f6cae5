"""
Visualization Engine
====================
Plots for shot analysis:
  1. Trajectory (height vs downrange) with the target
  2. Shot comparison (several trajectories on one axis)
  3. Cd / Cl coefficient curves
  4. Dashboard with key metrics
  5. Euler vs RK4 accuracy comparison
  6. Shot table heatmaps (exit speed / launch angle / flight time)
  7. Table validation errors
  8. Animated trajectory (saved as GIF)
"""

import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import matplotlib.gridspec as gridspec
from typing import Dict, List, Optional, Tuple
import os

from .aerodynamics import (
    AIR_DENSITY, AIR_VISCOSITY, BALL_DIAMETER, CRITICAL_REYNOLDS,
    drag_coefficient_array, lift_coefficient,
)
from .shot_table import SampleTable
from .simulator import SimulationResult, TARGET_HEIGHT
from .spin import spin_rate_from_exit_speed
from .validation import ValidationResult


# ── Style Configuration ───────────────────────────────────────────────────
STYLE = {
    'bg_color': '#0a0a0a',
    'text_color': '#e0e0e0',
    'grid_color': '#333333',
    'accent_colors': ['#00d4ff', '#ff6b35', '#00e676', '#ffeb3b',
                      '#e040fb', '#ff5252'],
    'font_family': 'monospace',
}

LEGEND_KW = dict(facecolor='#1a1a1a', edgecolor='#444',
                 labelcolor=STYLE['text_color'])


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


def _velocity_history(result: SimulationResult) -> Tuple[np.ndarray, np.ndarray]:
    """(vx, vz) along the trajectory, differentiated from the recorded points."""
    if len(result.trajectory) < 2:
        return np.zeros(1), np.zeros(1)
    t = result.time
    return np.gradient(result.x, t), np.gradient(result.z, t)


def ensure_output_dir(path: str = 'outputs'):
    os.makedirs(path, exist_ok=True)
    return path


# ══════════════════════════════════════════════════════════════════════════
#  1. Single Trajectory Plot
# ══════════════════════════════════════════════════════════════════════════

def plot_trajectory(result: SimulationResult,
                    target_distance: Optional[float] = None,
                    target_height: float = TARGET_HEIGHT,
                    save_path: str = None, show: bool = False) -> plt.Figure:
    """Height vs downrange for a single shot."""
    fig, ax = plt.subplots(figsize=(12, 6))
    _apply_dark_style(fig, ax)

    x, z = result.x, result.z
    ax.plot(x, z, color=STYLE['accent_colors'][0], linewidth=2.5,
            label='Trajectory')
    ax.plot(x[::10], z[::10], 'o', color=STYLE['accent_colors'][0],
            markersize=3)

    ax.plot(0, z[0], 'o', color='#00e676', markersize=10,
            label='Release', zorder=5)
    ax.plot(x[-1], z[-1], 'x', color='#ff5252', markersize=12,
            markeredgewidth=3, label='Impact', zorder=5)

    idx_max = int(np.argmax(z))
    ax.plot(x[idx_max], z[idx_max], '^', color='#ffeb3b', markersize=10,
            label='Apex', zorder=5)

    if target_distance is not None:
        ax.plot(target_distance, target_height, 'o', color='#6bcbff',
                markersize=16, markerfacecolor='none', markeredgewidth=2.5,
                label='Target', zorder=5)

    ax.axhline(y=0, color='#4a4a6a', linewidth=2)
    ax.set_xlabel('Downrange (m)', fontsize=12)
    ax.set_ylabel('Height (m)', fontsize=12)
    ax.set_title(f'Shot Trajectory (v={result.launch.exit_speed:.2f} m/s, '
                 f'θ={result.launch.launch_angle_deg:.1f}°, '
                 f'robot={result.launch.platform_velocity:+.2f} m/s)',
                 fontsize=13, fontweight='bold')
    ax.legend(loc='upper right', fontsize=10, **LEGEND_KW)
    ax.set_ylim(bottom=min(0.0, float(np.min(z))))

    plt.tight_layout()
    _save(fig, save_path)
    if show:
        plt.show()
    return fig


# ══════════════════════════════════════════════════════════════════════════
#  2. Shot Comparison
# ══════════════════════════════════════════════════════════════════════════

def plot_shot_comparison(results: Dict[str, SimulationResult],
                         target_distance: Optional[float] = None,
                         target_height: float = TARGET_HEIGHT,
                         save_path: str = None) -> plt.Figure:
    """Several labelled trajectories on one axis."""
    fig, ax = plt.subplots(figsize=(12, 6))
    _apply_dark_style(fig, ax)

    colors = STYLE['accent_colors']
    for i, (label, res) in enumerate(results.items()):
        ax.plot(res.x, res.z, color=colors[i % len(colors)], linewidth=2,
                label=label)

    if target_distance is not None:
        ax.plot(target_distance, target_height, 'o', color='#6bcbff',
                markersize=16, markerfacecolor='none', markeredgewidth=2.5,
                label='Target')

    ax.axhline(y=0, color='#4a4a6a', linewidth=2)
    ax.set_xlabel('Downrange (m)', fontsize=12)
    ax.set_ylabel('Height (m)', fontsize=12)
    ax.set_title('Shot Comparison', fontsize=14, fontweight='bold')
    ax.legend(fontsize=10, **LEGEND_KW)
    ax.set_ylim(bottom=0)

    plt.tight_layout()
    _save(fig, save_path)
    return fig


# ══════════════════════════════════════════════════════════════════════════
#  3. Aerodynamic Coefficients
# ══════════════════════════════════════════════════════════════════════════

def plot_coefficients(save_path: str = None) -> plt.Figure:
    """Cd vs airspeed, and Cl vs airspeed for several exit-speed spin rates."""
    fig, axes = plt.subplots(1, 2, figsize=(16, 6))
    _apply_dark_style(fig, axes)

    speeds = np.linspace(0.05, 30.0, 600)

    ax = axes[0]
    ax.plot(speeds, drag_coefficient_array(speeds),
            color=STYLE['accent_colors'][0], linewidth=2.5)
    v_critical = CRITICAL_REYNOLDS * AIR_VISCOSITY / (AIR_DENSITY * BALL_DIAMETER)
    ax.axvline(x=v_critical, color='#ff5252', linestyle='--', alpha=0.5)
    ax.text(v_critical, 0.9, ' Re = 2e5', color='#ff5252', fontsize=10,
            alpha=0.8, transform=ax.get_xaxis_transform())
    ax.set_xscale('log')
    ax.set_xlabel('Airspeed (m/s)', fontsize=12)
    ax.set_ylabel('Drag Coefficient (Cd)', fontsize=12)
    ax.set_title('Drag Coefficient vs Airspeed', fontsize=14, fontweight='bold')

    ax = axes[1]
    for i, exit_speed in enumerate([6.0, 9.0, 12.0, 15.0]):
        spin = spin_rate_from_exit_speed(exit_speed)
        cl = [lift_coefficient(v, spin) for v in speeds]
        ax.plot(speeds, cl, color=STYLE['accent_colors'][i + 1], linewidth=2,
                label=f'exit {exit_speed:.0f} m/s (ω={spin:.0f} rad/s)')
    ax.set_xlabel('Airspeed (m/s)', fontsize=12)
    ax.set_ylabel('Lift Coefficient (Cl)', fontsize=12)
    ax.set_title('Magnus Lift Coefficient', fontsize=14, fontweight='bold')
    ax.set_ylim(0, 0.7)
    ax.legend(fontsize=10, **LEGEND_KW)

    plt.tight_layout()
    _save(fig, save_path)
    return fig


# ══════════════════════════════════════════════════════════════════════════
#  4. Dashboard
# ══════════════════════════════════════════════════════════════════════════

def plot_dashboard(result: SimulationResult,
                   target_distance: Optional[float] = None,
                   save_path: str = None) -> plt.Figure:
    """Trajectory, flight data and time histories on one page."""
    fig = plt.figure(figsize=(18, 10))
    fig.patch.set_facecolor(STYLE['bg_color'])

    gs = gridspec.GridSpec(2, 3, figure=fig, hspace=0.35, wspace=0.3)
    vx, vz = _velocity_history(result)
    speed = np.hypot(vx, vz)
    t = result.time if len(result.trajectory) > 1 else np.zeros(1)

    # ── Trajectory (top, spans 2 cols) ──
    ax1 = fig.add_subplot(gs[0, :2])
    _apply_dark_style(fig, ax1)
    ax1.plot(result.x, result.z, color='#00d4ff', linewidth=2.5)
    idx_max = int(np.argmax(result.z))
    ax1.plot(result.x[idx_max], result.z[idx_max], '^',
             color='#ffeb3b', markersize=12)
    if target_distance is not None:
        ax1.plot(target_distance, TARGET_HEIGHT, 'o', color='#6bcbff',
                 markersize=16, markerfacecolor='none', markeredgewidth=2.5)
    ax1.set_xlabel('Downrange (m)')
    ax1.set_ylabel('Height (m)')
    ax1.set_title('TRAJECTORY', fontweight='bold', fontsize=13)
    ax1.set_ylim(bottom=0)

    # ── Metrics panel (top-right) ──
    ax_info = fig.add_subplot(gs[0, 2])
    ax_info.set_facecolor('#111111')
    ax_info.axis('off')

    metrics = [
        ('LAUNCH', f'{result.launch.exit_speed:.2f} m/s @ {result.launch.launch_angle_deg:.1f}°'),
        ('ROBOT VEL', f'{result.launch.platform_velocity:+.2f} m/s'),
        ('SPIN', f'{result.spin_rate:.0f} rad/s'),
        ('RANGE', f'{result.range_distance:.2f} m'),
        ('MAX HEIGHT', f'{result.max_height:.2f} m'),
        ('FLIGHT TIME', f'{result.flight_time:.3f} s'),
        ('IMPACT ANGLE', f'{result.impact_angle_deg:.1f}°'),
        ('METHOD', result.method.upper()),
    ]

    for i, (label, value) in enumerate(metrics):
        y_pos = 0.92 - i * 0.115
        ax_info.text(0.05, y_pos, label, fontsize=10, fontweight='bold',
                     color='#888888', transform=ax_info.transAxes, fontfamily='monospace')
        ax_info.text(0.95, y_pos, value, fontsize=11, fontweight='bold',
                     color='#00d4ff', transform=ax_info.transAxes,
                     ha='right', fontfamily='monospace')

    ax_info.set_title('FLIGHT DATA', fontweight='bold',
                      color=STYLE['text_color'], fontsize=13, pad=10)

    # ── Speed vs time ──
    ax2 = fig.add_subplot(gs[1, 0])
    _apply_dark_style(fig, ax2)
    ax2.plot(t, speed, color='#ff6b35', linewidth=2)
    ax2.set_xlabel('Time (s)')
    ax2.set_ylabel('Speed (m/s)')
    ax2.set_title('SPEED', fontweight='bold')

    # ── Cd vs time ──
    ax3 = fig.add_subplot(gs[1, 1])
    _apply_dark_style(fig, ax3)
    ax3.plot(t, drag_coefficient_array(speed), color='#00e676', linewidth=2)
    ax3.set_xlabel('Time (s)')
    ax3.set_ylabel('Cd')
    ax3.set_title('DRAG COEFFICIENT', fontweight='bold')

    # ── Velocity components ──
    ax4 = fig.add_subplot(gs[1, 2])
    _apply_dark_style(fig, ax4)
    ax4.plot(t, vx, label='vx (downrange)', color='#00d4ff', linewidth=1.5)
    ax4.plot(t, vz, label='vz (vertical)', color='#ff6b35', linewidth=1.5)
    ax4.set_xlabel('Time (s)')
    ax4.set_ylabel('Velocity (m/s)')
    ax4.set_title('VELOCITY COMPONENTS', fontweight='bold')
    ax4.legend(fontsize=8, **LEGEND_KW)

    fig.suptitle('SHOOTER DASHBOARD', fontsize=16, fontweight='bold',
                 color='#00d4ff', y=0.98)

    _save(fig, save_path)
    return fig


# ══════════════════════════════════════════════════════════════════════════
#  5. Euler vs RK4 Comparison
# ══════════════════════════════════════════════════════════════════════════

def plot_euler_vs_rk4(euler_result: SimulationResult,
                      rk4_result: SimulationResult,
                      save_path: str = None) -> plt.Figure:
    """Compare Euler and RK4 trajectories to show accuracy difference."""
    fig, axes = plt.subplots(1, 2, figsize=(16, 5))
    _apply_dark_style(fig, axes)

    ax = axes[0]
    ax.plot(euler_result.x, euler_result.z, color='#ff6b35', linewidth=2,
            linestyle='--', label=f'Euler (dt={euler_result.dt}s)')
    ax.plot(rk4_result.x, rk4_result.z, color='#00d4ff', linewidth=2,
            label=f'RK4 (dt={rk4_result.dt}s)')
    ax.set_xlabel('Downrange (m)')
    ax.set_ylabel('Height (m)')
    ax.set_title('Trajectory Comparison', fontweight='bold')
    ax.legend(fontsize=10, **LEGEND_KW)
    ax.set_ylim(bottom=0)

    ax = axes[1]
    ax.axis('off')
    ax.set_facecolor('#111111')

    text_lines = [
        f"{'Metric':<18} {'Euler':>10} {'RK4':>10} {'Δ':>10}",
        f"{'─'*50}",
        f"{'Range (m)':<18} {euler_result.range_distance:>10.3f} "
        f"{rk4_result.range_distance:>10.3f} "
        f"{euler_result.range_distance - rk4_result.range_distance:>+10.3f}",
        f"{'Max Height (m)':<18} {euler_result.max_height:>10.3f} "
        f"{rk4_result.max_height:>10.3f} "
        f"{euler_result.max_height - rk4_result.max_height:>+10.3f}",
        f"{'Flight Time (s)':<18} {euler_result.flight_time:>10.3f} "
        f"{rk4_result.flight_time:>10.3f} "
        f"{euler_result.flight_time - rk4_result.flight_time:>+10.3f}",
        f"{'Impact Angle (°)':<18} {euler_result.impact_angle_deg:>10.2f} "
        f"{rk4_result.impact_angle_deg:>10.2f} "
        f"{euler_result.impact_angle_deg - rk4_result.impact_angle_deg:>+10.2f}",
    ]

    ax.text(0.05, 0.85, '\n'.join(text_lines), transform=ax.transAxes,
            fontsize=10, fontfamily='monospace', color=STYLE['text_color'],
            verticalalignment='top')
    ax.set_title('Numerical Comparison', fontweight='bold',
                 color=STYLE['text_color'])

    fig.suptitle('Euler vs Runge-Kutta 4th Order — Accuracy Comparison',
                 fontsize=14, fontweight='bold', color=STYLE['text_color'], y=1.02)
    plt.tight_layout()
    _save(fig, save_path)
    return fig


# ══════════════════════════════════════════════════════════════════════════
#  6. Shot Table Heatmaps
# ══════════════════════════════════════════════════════════════════════════

def shot_table_grid(table: SampleTable, resolution: int = 80,
                    velocity_range: Optional[Tuple[float, float]] = None):
    """
    Evaluate the table lookup on a regular (distance × velocity) grid.

    Returns (distances, velocities, exit_speed, launch_angle, flight_time),
    the last three shaped (len(distances), len(velocities)).
    """
    d_keys = table.distances
    if not table:
        # every lookup resolves to the fallback model
        d_keys = np.zeros(1)
        if velocity_range is None:
            velocity_range = (0.0, 0.0)
    elif velocity_range is None:
        v_all = np.concatenate([table.bucket(i).velocities for i in range(len(d_keys))])
        velocity_range = (float(np.min(v_all)), float(np.max(v_all)))

    d_lo, d_hi = float(d_keys[0]), float(d_keys[-1])
    v_lo, v_hi = velocity_range
    if d_hi == d_lo:
        d_lo, d_hi = d_lo - 0.5, d_hi + 0.5
    if v_hi == v_lo:
        v_lo, v_hi = v_lo - 0.5, v_hi + 0.5

    distances = np.linspace(d_lo, d_hi, resolution)
    velocities = np.linspace(v_lo, v_hi, resolution)

    speed = np.empty((resolution, resolution))
    angle = np.empty((resolution, resolution))
    tof = np.empty((resolution, resolution))
    for i, d in enumerate(distances):
        for j, v in enumerate(velocities):
            m = table.lookup(d, v)
            speed[i, j] = m.exit_speed
            angle[i, j] = m.launch_angle_deg
            tof[i, j] = m.flight_time
    return distances, velocities, speed, angle, tof


def plot_shot_table(table: SampleTable, resolution: int = 80,
                    save_path: str = None) -> plt.Figure:
    """Heatmaps of the interpolated set-points with sample knots overlaid."""
    distances, velocities, speed, angle, tof = shot_table_grid(table, resolution)
    extent = [velocities[0], velocities[-1], distances[0], distances[-1]]

    fig, axes = plt.subplots(1, 3, figsize=(20, 6))
    _apply_dark_style(fig, axes)

    panels = [
        ('Exit Speed (m/s)', speed, 'viridis'),
        ('Launch Angle (°)', angle, 'plasma'),
        ('Flight Time (s)', tof, 'cividis'),
    ]
    knots = list(table.samples())
    kv = [s.platform_velocity for s in knots]
    kd = [s.distance for s in knots]

    for ax, (title, data, cmap) in zip(axes, panels):
        im = ax.imshow(data, origin='lower', aspect='auto', extent=extent, cmap=cmap)
        ax.plot(kv, kd, '.', color='white', markersize=3, alpha=0.6)
        cbar = fig.colorbar(im, ax=ax)
        cbar.ax.tick_params(colors=STYLE['text_color'])
        ax.set_xlabel('Robot Velocity (m/s)')
        ax.set_ylabel('Distance (m)')
        ax.set_title(title, fontweight='bold')
        ax.grid(False)

    fig.suptitle(f'Shot Table — {len(table)} samples',
                 fontsize=14, fontweight='bold', color=STYLE['text_color'], y=1.02)
    plt.tight_layout()
    _save(fig, save_path)
    return fig


# ══════════════════════════════════════════════════════════════════════════
#  7. Validation Plot
# ══════════════════════════════════════════════════════════════════════════

def plot_validation(validation_results: List[ValidationResult],
                    save_path: str = None) -> plt.Figure:
    """Simulated vs table distance, and the per-sample distance error."""
    fig, axes = plt.subplots(1, 2, figsize=(14, 6))
    _apply_dark_style(fig, axes)

    reached = [v for v in validation_results if v.reached]
    ref = [v.distance for v in reached]
    sim = [v.sim_distance for v in reached]
    errors = [v.distance_error for v in reached]

    ax = axes[0]
    ax.plot(ref, sim, 's', color='#00d4ff', markersize=6, label='Simulation (RK4)')
    if ref:
        lo, hi = min(ref), max(ref)
        ax.plot([lo, hi], [lo, hi], '-', color='#ffeb3b', linewidth=1.5,
                label='Table')
    ax.set_xlabel('Table Distance (m)')
    ax.set_ylabel('Simulated Distance (m)')
    ax.set_title('Distance at Target Height', fontweight='bold')
    ax.legend(fontsize=10, **LEGEND_KW)

    ax = axes[1]
    colors = ['#00e676' if abs(e) < 0.25 else '#ff5252' for e in errors]
    ax.bar(range(len(errors)), errors, color=colors, alpha=0.8)
    ax.axhline(y=0, color='#888', linewidth=0.5)
    ax.axhspan(-0.25, 0.25, alpha=0.05, color='#00e676')
    ax.set_xlabel('Sample')
    ax.set_ylabel('Distance Error (m)')
    ax.set_title('Validation Error', fontweight='bold')

    plt.tight_layout()
    _save(fig, save_path)
    return fig


# ══════════════════════════════════════════════════════════════════════════
#  8. Animated Trajectory (GIF)
# ══════════════════════════════════════════════════════════════════════════

def create_trajectory_animation(result: SimulationResult,
                                save_path: str = 'outputs/trajectory_anim.gif',
                                frames: int = 100) -> str:
    """Create animated GIF of trajectory with trail."""
    from matplotlib.animation import FuncAnimation, PillowWriter

    fig, ax = plt.subplots(figsize=(12, 6))
    _apply_dark_style(fig, ax)

    x, z, time = result.x, result.z, result.time
    vx, vz = _velocity_history(result)
    speed = np.hypot(vx, vz)

    ax.set_xlim(min(0.0, float(np.min(x))), max(float(np.max(x)) * 1.05, 0.1))
    ax.set_ylim(0, max(float(np.max(z)) * 1.15, 0.1))
    ax.set_xlabel('Downrange (m)', fontsize=12)
    ax.set_ylabel('Height (m)', fontsize=12)
    ax.set_title('Shot Animation', fontsize=14, fontweight='bold')

    trail_line, = ax.plot([], [], color='#00d4ff', linewidth=1.5, alpha=0.6)
    point, = ax.plot([], [], 'o', color='#00d4ff', markersize=8)
    time_text = ax.text(0.02, 0.95, '', transform=ax.transAxes,
                        color=STYLE['text_color'], fontsize=11, fontfamily='monospace')

    # Subsample for animation
    total_pts = len(x)
    step = max(1, total_pts // frames)
    indices = list(range(0, total_pts, step))
    if indices[-1] != total_pts - 1:
        indices.append(total_pts - 1)

    def animate(frame_idx):
        idx = indices[min(frame_idx, len(indices) - 1)]
        trail_line.set_data(x[:idx+1], z[:idx+1])
        point.set_data([x[idx]], [z[idx]])
        time_text.set_text(
            f't={time[idx]:.2f}s | v={speed[min(idx, len(speed) - 1)]:.1f} m/s | '
            f'z={z[idx]:.2f} m'
        )
        return trail_line, point, time_text

    anim = FuncAnimation(fig, animate, frames=len(indices), interval=50, blit=True)
    anim.save(save_path, writer=PillowWriter(fps=20),
              savefig_kwargs={'facecolor': STYLE['bg_color']})
    plt.close(fig)
    print(f"  Animation saved: {save_path}")
    return save_path
