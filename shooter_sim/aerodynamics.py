"""
Aerodynamic Coefficient Model
=============================
Drag and Magnus-lift coefficients for the game ball (foam sphere,
150 mm diameter) as functions of airspeed and spin rate.

Drag regimes (by Reynolds number Re = ρ v d / μ):
- Re < 2e5  : Schiller-Naumann sphere correlation
              Cd = (24/Re)(1 + 0.15 Re^0.687), floored at 0.35
- Re ≥ 2e5  : post-critical flat drag, Cd = 0.35

Lift follows a linear spin-ratio law saturating at Cl = 0.6:
    S  = ω r / v
    Cl = min(0.4 S, 0.6)
"""

import numpy as np


# ── Air & ball constants ───────────────────────────────────────────────────
AIR_DENSITY        = 1.21        # kg/m³
AIR_VISCOSITY      = 1.81e-5     # Pa·s  (dynamic)
GRAVITY            = 9.8         # m/s²
BALL_MASS          = 0.215       # kg
BALL_RADIUS        = 0.075       # m
BALL_DIAMETER      = 2.0 * BALL_RADIUS
BALL_AREA          = np.pi * BALL_RADIUS ** 2   # reference area (m²)

# ── Coefficient model parameters ───────────────────────────────────────────
STILL_AIR_SPEED    = 1e-6        # m/s  below this there is no airflow to model
STILL_AIR_CD       = 0.46
CRITICAL_REYNOLDS  = 2e5
MIN_CD             = 0.35
LIFT_SLOPE         = 0.4
MAX_CL             = 0.6


def reynolds_number(speed: float) -> float:
    """Reynolds number of the ball at the given airspeed (m/s)."""
    return AIR_DENSITY * speed * BALL_DIAMETER / AIR_VISCOSITY


def drag_coefficient(speed: float) -> float:
    """
    Drag coefficient at the given airspeed.

    Parameters
    ----------
    speed : float
        Airspeed magnitude (m/s)

    Returns
    -------
    float
        Cd, never below 0.35
    """
    if speed < STILL_AIR_SPEED:
        return STILL_AIR_CD

    re = reynolds_number(speed)
    if re < CRITICAL_REYNOLDS:
        cd = (24.0 / re) * (1.0 + 0.15 * re ** 0.687)
        return max(cd, MIN_CD)
    return MIN_CD


def drag_coefficient_array(speeds: np.ndarray) -> np.ndarray:
    """Vectorized Cd lookup."""
    speeds = np.asarray(speeds, dtype=float)
    safe = np.maximum(speeds, STILL_AIR_SPEED)
    re = AIR_DENSITY * safe * BALL_DIAMETER / AIR_VISCOSITY
    cd = np.where(
        re < CRITICAL_REYNOLDS,
        np.maximum((24.0 / re) * (1.0 + 0.15 * re ** 0.687), MIN_CD),
        MIN_CD,
    )
    return np.where(speeds < STILL_AIR_SPEED, STILL_AIR_CD, cd)


def lift_coefficient(speed: float, spin_rate: float) -> float:
    """
    Magnus lift coefficient from airspeed (m/s) and spin rate (rad/s).

    Saturates at 0.6 regardless of spin.
    """
    spin_ratio = spin_rate * BALL_RADIUS / max(speed, STILL_AIR_SPEED)
    return min(LIFT_SLOPE * spin_ratio, MAX_CL)


if __name__ == "__main__":
    print("Aerodynamic Model — Cd / Cl vs Speed")
    print("=" * 50)
    print(f"{'v (m/s)':>8} {'Re':>12} {'Cd':>8} {'Cl(ω=300)':>10}")
    print("-" * 50)
    for v in [0.0, 0.5, 1.0, 2.0, 5.0, 10.0, 15.0, 20.0, 30.0]:
        print(f"{v:>8.1f} {reynolds_number(v):>12.0f} "
              f"{drag_coefficient(v):>8.3f} {lift_coefficient(v, 300.0):>10.3f}")
