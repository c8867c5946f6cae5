#!/usr/bin/env python3
"""
═══════════════════════════════════════════════════════════════════════════════
  FLYWHEEL SHOOTER SIMULATOR — Main Runner
═══════════════════════════════════════════════════════════════════════════════

  Executes the complete analysis pipeline:
    1. Aerodynamic coefficient curves
    2. Shot table loading
    3. Shot recommendations (forward and rearward targets)
    4. Reference shot simulation (RK4)
    5. Robot velocity comparison
    6. Euler vs RK4 accuracy comparison
    7. Shot table heatmaps
    8. Table validation against the simulator
    9. Dashboard
   10. Animated trajectory GIF

  All outputs saved to outputs/ directory.

  Usage:
    python main.py                  # Built-in demo table
    python main.py ref.json         # Shot dataset file
    python main.py ref.json --quick # Skip animation, thin validation
═══════════════════════════════════════════════════════════════════════════════
"""

import sys
import os
import time

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from shooter_sim.aerodynamics import drag_coefficient, lift_coefficient, reynolds_number
from shooter_sim.dataset import load_table, save_samples
from shooter_sim.shot_table import ShotSample, ShotSolver, build_table
from shooter_sim.simulator import SHOOTER_HEIGHT, TARGET_HEIGHT, descending_crossing, simulate
from shooter_sim.spin import spin_rate_from_exit_speed
from shooter_sim.validation import validate_table
from shooter_sim.visualization import (
    plot_trajectory, plot_shot_comparison, plot_coefficients,
    plot_dashboard, plot_euler_vs_rk4, plot_shot_table,
    plot_validation, create_trajectory_animation,
    ensure_output_dir,
)


# Used when no dataset file is given
DEMO_SAMPLES = [
    ShotSample(distance=2.0, platform_velocity=0.0, exit_speed=10.0,
               launch_angle_deg=50.0, flight_time=0.8),
    ShotSample(distance=4.0, platform_velocity=0.0, exit_speed=12.0,
               launch_angle_deg=45.0, flight_time=1.0),
]

REFERENCE_DISTANCE = 3.0   # m


def banner():
    print("""
╔═══════════════════════════════════════════════════════════════════════╗
║                                                                       ║
║     FLYWHEEL SHOOTER SIMULATOR                                        ║
║     ─────────────────────────────────────────────────────             ║
║     Physics: Gravity · Drag(Re) · Magnus lift · Flywheel spin         ║
║     Solver : RK4 │ Shot table: bilinear, clamp-at-boundary            ║
║                                                                       ║
╚═══════════════════════════════════════════════════════════════════════╝
""")


def section(title):
    print(f"\n{'─'*60}")
    print(f"  {title}")
    print(f"{'─'*60}")


def main():
    start_time = time.time()
    args = sys.argv[1:]
    quick = '--quick' in args
    paths = [a for a in args if not a.startswith('--')]

    banner()
    out = ensure_output_dir('outputs')

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 1: Aerodynamic Model
    # ══════════════════════════════════════════════════════════════════════
    section("PHASE 1: Aerodynamic Coefficients")
    print(f"  {'v (m/s)':>8} {'Re':>10} {'Cd':>7} {'ω (rad/s)':>10} {'Cl':>7}")
    for v in [1.0, 3.0, 6.0, 9.0, 12.0, 15.0, 20.0]:
        spin = spin_rate_from_exit_speed(v)
        print(f"  {v:>8.1f} {reynolds_number(v):>10.0f} {drag_coefficient(v):>7.3f} "
              f"{spin:>10.1f} {lift_coefficient(v, spin):>7.3f}")

    fig_cf = plot_coefficients(save_path=f'{out}/01_coefficients.png')
    plt.close(fig_cf)
    print(f"\n  ✓ Saved: {out}/01_coefficients.png")

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 2: Shot Table
    # ══════════════════════════════════════════════════════════════════════
    section("PHASE 2: Shot Table")
    if paths:
        table = load_table(paths[0], verbose=True)
    else:
        demo_path = save_samples(DEMO_SAMPLES, f'{out}/02_demo_table.json')
        print(f"  No dataset given — using built-in demo table ({demo_path})")
        table = build_table(DEMO_SAMPLES)
        print(f"  Table ready: {table!r}")

    solver = ShotSolver(table)

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 3: Shot Recommendations
    # ══════════════════════════════════════════════════════════════════════
    section("PHASE 3: Shot Recommendations")
    print(f"  {'Dist (m)':>9} {'Robot v':>8} {'Exit v':>8} {'Angle':>7}")
    for d in [1.0, 2.0, 2.5, 3.0, 3.5, 4.0, 5.0, -3.0]:
        for rv in [-1.0, 0.0, 1.0]:
            rec = solver.find_optimal_shot(d, rv)
            if rec is None:
                print(f"  {d:>9.2f} {rv:>+8.2f} {'— no shot —':>16}")
                continue
            print(f"  {d:>9.2f} {rv:>+8.2f} {rec.exit_speed:>8.2f} "
                  f"{rec.launch_angle_deg:>7.2f}")

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 4: Reference Shot
    # ══════════════════════════════════════════════════════════════════════
    section(f"PHASE 4: Reference Shot ({REFERENCE_DISTANCE:.1f} m, robot stationary)")
    rec = solver.find_optimal_shot(REFERENCE_DISTANCE, 0.0)
    if rec is None:
        print("  Table has no usable sample — using 12 m/s @ 45°")
        exit_speed, angle = 12.0, 45.0
    else:
        exit_speed, angle = rec.exit_speed, rec.launch_angle_deg

    result = simulate(exit_speed, angle, 0.0, SHOOTER_HEIGHT)
    print(result.summary())
    crossing = descending_crossing(result, TARGET_HEIGHT)
    if crossing is None:
        print(f"  Ball never falls through the target height ({TARGET_HEIGHT} m)")
    else:
        print(f"  Falls through {TARGET_HEIGHT:.2f} m at x={crossing[0]:.2f} m "
              f"(target {REFERENCE_DISTANCE:.2f} m), t={crossing[1]:.3f} s")

    fig_traj = plot_trajectory(result, target_distance=REFERENCE_DISTANCE,
                               save_path=f'{out}/04_reference_shot.png')
    plt.close(fig_traj)
    print(f"  ✓ Saved: {out}/04_reference_shot.png")

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 5: Robot Velocity Comparison
    # ══════════════════════════════════════════════════════════════════════
    section("PHASE 5: Robot Velocity (fixed set-point vs re-solved)")

    shots = {}
    for rv in [-1.5, 0.0, 1.5]:
        fixed = simulate(exit_speed, angle, rv, SHOOTER_HEIGHT)
        shots[f'Fixed set-point, robot {rv:+.1f} m/s'] = fixed
        solved = solver.find_optimal_shot(REFERENCE_DISTANCE, rv)
        if solved is not None and rv != 0.0:
            shots[f'Re-solved, robot {rv:+.1f} m/s'] = simulate(
                solved.exit_speed, solved.launch_angle_deg, rv, SHOOTER_HEIGHT)
        print(f"  Robot {rv:+.1f} m/s  Range: {fixed.range_distance:.2f} m  "
              f"Max height: {fixed.max_height:.2f} m")

    fig_cmp = plot_shot_comparison(shots, target_distance=REFERENCE_DISTANCE,
                                   save_path=f'{out}/05_robot_velocity.png')
    plt.close(fig_cmp)
    print(f"\n  ✓ Saved: {out}/05_robot_velocity.png")

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 6: Euler vs RK4 Accuracy
    # ══════════════════════════════════════════════════════════════════════
    section("PHASE 6: Euler vs RK4 Numerical Accuracy")

    dt_test = 0.05  # Large timestep to show differences
    result_euler = simulate(exit_speed, angle, 0.0, SHOOTER_HEIGHT,
                            dt=dt_test, method='euler')
    result_rk4 = simulate(exit_speed, angle, 0.0, SHOOTER_HEIGHT,
                          dt=dt_test, method='rk4')

    print(f"  Timestep: {dt_test} s")
    print(f"  Euler  — Range: {result_euler.range_distance:.3f} m  |  "
          f"Max height: {result_euler.max_height:.3f} m")
    print(f"  RK4    — Range: {result_rk4.range_distance:.3f} m  |  "
          f"Max height: {result_rk4.max_height:.3f} m")

    fig_evr = plot_euler_vs_rk4(result_euler, result_rk4,
                                save_path=f'{out}/06_euler_vs_rk4.png')
    plt.close(fig_evr)
    print(f"\n  ✓ Saved: {out}/06_euler_vs_rk4.png")

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 7: Shot Table Heatmaps
    # ══════════════════════════════════════════════════════════════════════
    section("PHASE 7: Shot Table Heatmaps")
    fig_tab = plot_shot_table(table, resolution=40 if quick else 80,
                              save_path=f'{out}/07_shot_table.png')
    plt.close(fig_tab)
    print(f"  ✓ Saved: {out}/07_shot_table.png")

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 8: Table Validation
    # ══════════════════════════════════════════════════════════════════════
    section("PHASE 8: Validation — Table vs Simulator")
    val_results = validate_table(table, max_samples=40 if quick else None)
    fig_val = plot_validation(val_results, save_path=f'{out}/08_validation.png')
    plt.close(fig_val)
    print(f"  ✓ Saved: {out}/08_validation.png")

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 9: Dashboard
    # ══════════════════════════════════════════════════════════════════════
    section("PHASE 9: Dashboard")
    fig_dash = plot_dashboard(result, target_distance=REFERENCE_DISTANCE,
                              save_path=f'{out}/09_dashboard.png')
    plt.close(fig_dash)
    print(f"  ✓ Saved: {out}/09_dashboard.png")

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 10: Trajectory Animation
    # ══════════════════════════════════════════════════════════════════════
    if not quick:
        section("PHASE 10: Trajectory Animation (GIF)")
        create_trajectory_animation(result,
                                    save_path=f'{out}/10_shot_animation.gif',
                                    frames=120)
    else:
        section("PHASE 10: Animation SKIPPED (--quick mode)")

    # ══════════════════════════════════════════════════════════════════════
    #  SUMMARY
    # ══════════════════════════════════════════════════════════════════════
    elapsed = time.time() - start_time
    section("COMPLETE")
    print(f"""
  All outputs saved to: {os.path.abspath(out)}/

  Generated files:
    01_coefficients.png      — Cd / Cl curves
    04_reference_shot.png    — Reference shot trajectory
    05_robot_velocity.png    — Effect of robot motion
    06_euler_vs_rk4.png      — Numerical method comparison
    07_shot_table.png        — Interpolated shot table
    08_validation.png        — Table vs simulator
    09_dashboard.png         — Flight data dashboard
    {'10_shot_animation.gif  — Animated trajectory' if not quick else '(animation skipped)'}

  Total runtime: {elapsed:.1f} seconds
""")


if __name__ == "__main__":
    main()
