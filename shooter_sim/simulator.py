"""
Trajectory Simulator
====================
Composes the spin model and the RK4 integrator into a single
``simulate(exit_speed, launch_angle, platform_velocity, launch_height)``
call that returns the sampled flight path and summary metrics.

Coordinate system:
  x = downrange from the shooter (m), positive towards the target
  z = height above the floor (m)

The launcher rides on the robot, so the robot's velocity adds directly to
the ball's horizontal exit velocity.
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional, Tuple

from .integrator import DT, STEPPERS, ProjectileState
from .spin import spin_rate_from_exit_speed


# ── Field geometry ────────────────────────────────────────────────────────
SHOOTER_HEIGHT = 0.55   # m  exit point above the floor
TARGET_HEIGHT = 1.34    # m  hub opening above the floor

MAX_STEPS = 5000        # ≈ 25 s of flight at DT


@dataclass(frozen=True)
class LaunchParameters:
    """Shooter set-point and robot motion at the moment of release."""
    exit_speed: float                    # m/s
    launch_angle_deg: float              # degrees above horizontal
    platform_velocity: float = 0.0       # m/s  robot velocity along x
    launch_height: float = SHOOTER_HEIGHT

    def initial_velocity(self) -> Tuple[float, float]:
        """Ground-frame (vx, vz) at release."""
        theta = np.radians(self.launch_angle_deg)
        vx = self.exit_speed * np.cos(theta) + self.platform_velocity
        vz = self.exit_speed * np.sin(theta)
        return float(vx), float(vz)

    def initial_state(self) -> ProjectileState:
        vx, vz = self.initial_velocity()
        return ProjectileState(x=0.0, z=self.launch_height, vx=vx, vz=vz)


@dataclass(frozen=True)
class TrajectoryPoint:
    """A single sample of the flight path."""
    x: float
    z: float
    time: float


@dataclass(frozen=True)
class SimulationResult:
    """Complete trajectory output."""
    trajectory: Tuple[TrajectoryPoint, ...]
    impact_angle_deg: float
    max_height: float
    valid: bool
    launch: LaunchParameters
    final_state: ProjectileState
    spin_rate: float
    method: str = 'rk4'
    dt: float = DT

    @property
    def x(self) -> np.ndarray:
        return np.array([p.x for p in self.trajectory])

    @property
    def z(self) -> np.ndarray:
        return np.array([p.z for p in self.trajectory])

    @property
    def time(self) -> np.ndarray:
        return np.array([p.time for p in self.trajectory])

    @property
    def flight_time(self) -> float:
        """Time of the last recorded point (s)."""
        return self.trajectory[-1].time

    @property
    def range_distance(self) -> float:
        """Downrange position of the last recorded point (m)."""
        return self.trajectory[-1].x

    @property
    def impact_speed(self) -> float:
        return self.final_state.speed

    def summary(self) -> str:
        """Human-readable summary string."""
        lines = [
            f"╔══════════════════════════════════════════════════════╗",
            f"║  SHOT SUMMARY{'':<40s}║",
            f"╠══════════════════════════════════════════════════════╣",
            f"║  Exit speed   : {self.launch.exit_speed:>10.2f} m/s{'':<23s}║",
            f"║  Launch angle : {self.launch.launch_angle_deg:>10.1f} °{'':<25s}║",
            f"║  Robot vel    : {self.launch.platform_velocity:>10.2f} m/s{'':<23s}║",
            f"║  Spin         : {self.spin_rate:>10.1f} rad/s{'':<21s}║",
            f"╠══════════════════════════════════════════════════════╣",
            f"║  Range        : {self.range_distance:>10.2f} m{'':<25s}║",
            f"║  Max height   : {self.max_height:>10.2f} m{'':<25s}║",
            f"║  Flight time  : {self.flight_time:>10.3f} s{'':<25s}║",
            f"║  Impact angle : {self.impact_angle_deg:>10.1f} °{'':<25s}║",
            f"║  Valid        : {str(self.valid):>10s}{'':<27s}║",
            f"╚══════════════════════════════════════════════════════╝",
        ]
        return '\n'.join(lines)


def simulate(exit_speed: float, launch_angle_deg: float,
             platform_velocity: float = 0.0,
             launch_height: float = SHOOTER_HEIGHT,
             dt: float = DT, max_steps: int = MAX_STEPS,
             method: str = 'rk4') -> SimulationResult:
    """
    Fly one shot from release until it drops below the floor.

    Every integrator state is recorded. Integration stops on the first
    point with z < 0 or when the step budget runs out. A launch whose first
    step leaves the state unchanged (zero exit speed) records only the
    release point.

    Parameters
    ----------
    exit_speed : float
        Ball speed relative to the shooter (m/s)
    launch_angle_deg : float
        Degrees above horizontal; > 90 shoots towards -x
    platform_velocity : float
        Robot velocity along x (m/s)
    launch_height : float
        Release height above the floor (m)
    method : str
        'rk4' or 'euler'
    """
    if method not in STEPPERS:
        raise ValueError(
            f"Unknown integration method '{method}'. "
            f"Available: {list(STEPPERS.keys())}"
        )
    step = STEPPERS[method]

    launch = LaunchParameters(exit_speed, launch_angle_deg,
                              platform_velocity, launch_height)
    spin = spin_rate_from_exit_speed(exit_speed)

    state = launch.initial_state().to_vector()
    t = 0.0
    max_height = launch_height
    points = [TrajectoryPoint(0.0, launch_height, 0.0)]

    for _ in range(max_steps):
        new_state = step(state, spin, dt)
        if len(points) == 1 and np.array_equal(new_state, state):
            break
        state = new_state
        t += dt

        if state[1] > max_height:
            max_height = float(state[1])

        points.append(TrajectoryPoint(float(state[0]), float(state[1]), t))

        if state[1] < 0:
            break

    impact_angle = float(np.degrees(np.arctan2(-state[3], state[2])))

    return SimulationResult(
        trajectory=tuple(points),
        impact_angle_deg=impact_angle,
        max_height=max_height,
        valid=len(points) > 1,
        launch=launch,
        final_state=ProjectileState.from_vector(state),
        spin_rate=spin,
        method=method,
        dt=dt,
    )


def descending_crossing(result: SimulationResult,
                        height: float = TARGET_HEIGHT) -> Optional[Tuple[float, float]]:
    """
    Where the ball first falls through ``height``.

    Returns (x, t) linearly interpolated between the two recorded points
    that straddle the height on a falling segment, or None if the ball
    never comes down through it.
    """
    pts = result.trajectory
    for prev, cur in zip(pts[:-1], pts[1:]):
        if prev.z >= height > cur.z:
            alpha = (prev.z - height) / (prev.z - cur.z)
            x = prev.x + alpha * (cur.x - prev.x)
            t = prev.time + alpha * (cur.time - prev.time)
            return x, t
    return None


if __name__ == "__main__":
    res = simulate(11.0, 47.5, 0.0, SHOOTER_HEIGHT)
    print(res.summary())
    crossing = descending_crossing(res)
    if crossing is not None:
        print(f"Crosses {TARGET_HEIGHT:.2f} m at x={crossing[0]:.2f} m, "
              f"t={crossing[1]:.3f} s")
