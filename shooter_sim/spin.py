"""
Flywheel Spin Model
===================
The shooter pinches the ball between two rollers of different radius that
turn at a common angular speed. The larger roller's surface moves faster,
so the ball leaves with backspin proportional to the surface-speed
difference across its equator.
"""

from .aerodynamics import BALL_RADIUS


INCH = 0.0254  # m

FLYWHEEL_DIAMETER_1_IN = 4.0
FLYWHEEL_DIAMETER_2_IN = 2.0
FLYWHEEL_RADIUS_1 = FLYWHEEL_DIAMETER_1_IN * INCH / 2.0   # m
FLYWHEEL_RADIUS_2 = FLYWHEEL_DIAMETER_2_IN * INCH / 2.0   # m

SPIN_TRANSFER_EFFICIENCY = 0.8   # slip losses between rollers and ball


def flywheel_angular_speed(exit_speed: float) -> float:
    """Common roller angular speed (rad/s) for a commanded exit speed (m/s)."""
    mean_radius = (FLYWHEEL_RADIUS_1 + FLYWHEEL_RADIUS_2) / 2.0
    return exit_speed / mean_radius


def spin_rate_from_exit_speed(exit_speed: float) -> float:
    """
    Backspin (rad/s) imparted to the ball at the given exit speed (m/s).

    spin = (ω r1 - ω r2) / r_ball * efficiency
    """
    omega = flywheel_angular_speed(exit_speed)
    surface_speed_1 = omega * FLYWHEEL_RADIUS_1
    surface_speed_2 = omega * FLYWHEEL_RADIUS_2
    surface_speed_diff = surface_speed_1 - surface_speed_2
    return (surface_speed_diff / BALL_RADIUS) * SPIN_TRANSFER_EFFICIENCY
