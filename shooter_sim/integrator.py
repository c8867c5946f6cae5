"""
Numerical Integration Engine
=============================
Time-stepping for the planar (x, z) flight of a spinning ball.

State vector:  [x, z, vx, vz]   (m, m, m/s, m/s)

Equations of motion, with k_d = ½ρ Cd A / m and k_m = ½ρ A Cl r / m:
    dx/dt  = vx
    dz/dt  = vz
    dvx/dt = -k_d |v| vx - k_m |v| vz
    dvz/dt = -g - k_d |v| vz + k_m |v| vx

The Magnus term is perpendicular to the velocity; for backspin it curves
the path upwards.

Two steppers are provided:
1. **Euler** (1st order) — used only for accuracy comparisons.
2. **Runge-Kutta 4th Order (RK4)** — the production stepper.
"""

import numpy as np
from dataclasses import dataclass

from .aerodynamics import (
    AIR_DENSITY, BALL_AREA, BALL_MASS, BALL_RADIUS, GRAVITY,
    drag_coefficient, lift_coefficient,
)


DT = 0.005             # s  fixed integration step
STALL_SPEED = 1e-3     # m/s  below this the state is treated as stationary


@dataclass
class ProjectileState:
    """Snapshot of the ball at one instant."""
    x: float = 0.0      # downrange (m)
    z: float = 0.0      # height (m)
    vx: float = 0.0     # m/s
    vz: float = 0.0     # m/s

    def to_vector(self) -> np.ndarray:
        return np.array([self.x, self.z, self.vx, self.vz], dtype=float)

    @classmethod
    def from_vector(cls, vec: np.ndarray) -> 'ProjectileState':
        return cls(float(vec[0]), float(vec[1]), float(vec[2]), float(vec[3]))

    @property
    def speed(self) -> float:
        return float(np.hypot(self.vx, self.vz))


def derivatives(state: np.ndarray, spin_rate: float) -> np.ndarray:
    """
    Time derivative of the state vector.

    Parameters
    ----------
    state : np.ndarray
        [x, z, vx, vz]
    spin_rate : float
        Backspin (rad/s), positive lifts the ball

    Returns
    -------
    np.ndarray
        [dx/dt, dz/dt, dvx/dt, dvz/dt]; all zero when the ball is stalled
    """
    vx, vz = state[2], state[3]
    v = np.hypot(vx, vz)

    if v < STALL_SPEED:
        return np.zeros(4)

    cd = drag_coefficient(v)
    cl = lift_coefficient(v, spin_rate)

    k_drag = 0.5 * AIR_DENSITY * cd * BALL_AREA / BALL_MASS
    k_magnus = 0.5 * AIR_DENSITY * BALL_AREA * cl * BALL_RADIUS / BALL_MASS

    ax = -k_drag * v * vx - k_magnus * v * vz
    az = -GRAVITY - k_drag * v * vz + k_magnus * v * vx

    return np.array([vx, vz, ax, az])


def rk4_step(state: np.ndarray, spin_rate: float, dt: float = DT) -> np.ndarray:
    """One classic 4th-order Runge-Kutta step."""
    k1 = derivatives(state, spin_rate)
    k2 = derivatives(state + 0.5 * dt * k1, spin_rate)
    k3 = derivatives(state + 0.5 * dt * k2, spin_rate)
    k4 = derivatives(state + dt * k3, spin_rate)

    return state + (dt / 6.0) * (k1 + 2 * k2 + 2 * k3 + k4)


def euler_step(state: np.ndarray, spin_rate: float, dt: float = DT) -> np.ndarray:
    """
    Forward Euler step.

    x_{n+1} = x_n + f(x_n) * dt
    """
    return state + dt * derivatives(state, spin_rate)


STEPPERS = {
    'rk4': rk4_step,
    'euler': euler_step,
}
