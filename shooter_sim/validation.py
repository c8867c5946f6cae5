"""
Shot Table Validation
=====================
Checks a shot table against the simulator: every sample's exit speed and
launch angle is flown with the RK4 model, and the point where the ball
falls through the target height is compared with the sample's distance
and flight time.

Large errors point at samples generated with a different ball model,
shooter height or target height than the ones configured here.
"""

import numpy as np
from dataclasses import dataclass
from typing import List, Optional

from .shot_table import SampleTable
from .simulator import SHOOTER_HEIGHT, TARGET_HEIGHT, descending_crossing, simulate


@dataclass
class ValidationResult:
    """Result of one validation comparison."""
    distance: float             # table distance (m)
    platform_velocity: float    # m/s
    exit_speed: float           # m/s
    launch_angle_deg: float
    sim_distance: float         # where the simulated ball crosses target height (m), NaN if never
    distance_error: float       # sim - table (m)
    ref_flight_time: float      # s
    sim_flight_time: float      # s, NaN if never
    time_error: float           # sim - table (s)

    @property
    def reached(self) -> bool:
        """Whether the simulated ball came down through the target height."""
        return bool(np.isfinite(self.sim_distance))


def validate_sample(distance: float, platform_velocity: float,
                    exit_speed: float, launch_angle_deg: float,
                    flight_time: float,
                    target_height: float = TARGET_HEIGHT,
                    shooter_height: float = SHOOTER_HEIGHT) -> ValidationResult:
    """Fly one table sample and compare it with the table's prediction."""
    traj = simulate(exit_speed, launch_angle_deg, platform_velocity, shooter_height)
    crossing = descending_crossing(traj, target_height)

    if crossing is None:
        sim_x, sim_t = float('nan'), float('nan')
    else:
        sim_x, sim_t = crossing

    return ValidationResult(
        distance=distance,
        platform_velocity=platform_velocity,
        exit_speed=exit_speed,
        launch_angle_deg=launch_angle_deg,
        sim_distance=sim_x,
        distance_error=sim_x - distance,
        ref_flight_time=flight_time,
        sim_flight_time=sim_t,
        time_error=sim_t - flight_time,
    )


def validate_table(table: SampleTable,
                   target_height: float = TARGET_HEIGHT,
                   shooter_height: float = SHOOTER_HEIGHT,
                   max_samples: Optional[int] = None,
                   verbose: bool = True) -> List[ValidationResult]:
    """
    Run the simulator at each table sample and compare against the table.

    ``max_samples`` thins the table evenly for a quicker check.
    """
    samples = list(table.samples())
    if max_samples is not None and 0 < max_samples < len(samples):
        idx = np.linspace(0, len(samples) - 1, max_samples).round().astype(int)
        samples = [samples[i] for i in np.unique(idx)]

    if verbose:
        print(f"\n{'='*75}")
        print(f"  VALIDATION: {len(samples)} table samples")
        print(f"  Shooter height: {shooter_height:.2f} m | "
              f"Target height: {target_height:.2f} m")
        print(f"{'='*75}")
        print(f"{'Dist':>6} {'Robot v':>8} {'Exit v':>7} {'Angle':>6} "
              f"{'Sim D':>7} {'Err m':>7} {'Ref ToF':>8} {'Sim ToF':>8} {'Err s':>7}")
        print("-" * 75)

    results = []
    for s in samples:
        vr = validate_sample(s.distance, s.platform_velocity, s.exit_speed,
                             s.launch_angle_deg, s.flight_time,
                             target_height=target_height,
                             shooter_height=shooter_height)
        results.append(vr)

        if verbose:
            print(f"{vr.distance:>6.2f} {vr.platform_velocity:>+8.2f} "
                  f"{vr.exit_speed:>7.2f} {vr.launch_angle_deg:>6.1f} "
                  f"{vr.sim_distance:>7.2f} {vr.distance_error:>+7.2f} "
                  f"{vr.ref_flight_time:>8.3f} {vr.sim_flight_time:>8.3f} "
                  f"{vr.time_error:>+7.3f}")

    if verbose:
        summary = summarize(results)
        print("-" * 75)
        print(f"  Mean absolute errors — Distance: {summary['mean_distance_error']:.3f} m | "
              f"Time: {summary['mean_time_error']:.3f} s | "
              f"Missed: {summary['missed']}")
        status = "✓ PASS" if summary['mean_distance_error'] < 0.25 else "✗ NEEDS TUNING"
        print(f"  Status: {status}")
        print(f"{'='*75}\n")

    return results


def summarize(results: List[ValidationResult]) -> dict:
    """Aggregate error statistics over the samples that reached the target height."""
    reached = [r for r in results if r.reached]
    if not reached:
        return {
            'count': len(results),
            'missed': len(results),
            'mean_distance_error': float('nan'),
            'max_distance_error': float('nan'),
            'mean_time_error': float('nan'),
        }
    d_err = np.abs([r.distance_error for r in reached])
    t_err = np.abs([r.time_error for r in reached])
    return {
        'count': len(results),
        'missed': len(results) - len(reached),
        'mean_distance_error': float(np.mean(d_err)),
        'max_distance_error': float(np.max(d_err)),
        'mean_time_error': float(np.mean(t_err)),
    }
