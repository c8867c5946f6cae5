"""
Flywheel Shooter Trajectory Simulator
=====================================
Numerical core for a two-roller ball shooter riding on a moving robot:

  - Forward simulation of a spinning ball (gravity, Reynolds-dependent
    drag, Magnus lift) with fixed-step RK4 integration
  - Flywheel spin model (surface-speed difference between rollers)
  - Inverse lookup of exit speed / launch angle from a precomputed
    (distance × robot velocity) shot table by nested linear interpolation
  - Table validation against the simulator, plots and a runner script
"""

from .aerodynamics import (
    reynolds_number, drag_coefficient, drag_coefficient_array, lift_coefficient,
)
from .integrator import ProjectileState, derivatives, rk4_step, euler_step
from .spin import spin_rate_from_exit_speed
from .simulator import (
    LaunchParameters, TrajectoryPoint, SimulationResult,
    simulate, descending_crossing, SHOOTER_HEIGHT, TARGET_HEIGHT,
)
from .shot_table import (
    ShotSample, ShotModel, ShotRecommendation, SampleTable, ShotSolver,
    build_table, interpolate_in_velocity, find_optimal_shot, FALLBACK_MODEL,
)
from .dataset import load_samples, load_table, load_table_async, save_samples
from .validation import validate_table, validate_sample, ValidationResult

__version__ = "1.0.0"
__all__ = [
    'reynolds_number', 'drag_coefficient', 'drag_coefficient_array',
    'lift_coefficient',
    'ProjectileState', 'derivatives', 'rk4_step', 'euler_step',
    'spin_rate_from_exit_speed',
    'LaunchParameters', 'TrajectoryPoint', 'SimulationResult',
    'simulate', 'descending_crossing', 'SHOOTER_HEIGHT', 'TARGET_HEIGHT',
    'ShotSample', 'ShotModel', 'ShotRecommendation', 'SampleTable',
    'ShotSolver', 'build_table', 'interpolate_in_velocity',
    'find_optimal_shot', 'FALLBACK_MODEL',
    'load_samples', 'load_table', 'load_table_async', 'save_samples',
    'validate_table', 'validate_sample', 'ValidationResult',
]
