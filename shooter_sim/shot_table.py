"""
Shot Table & Solver
===================
Inverse lookup of shooter set-points from a precomputed table of
(distance, robot velocity) → (exit speed, launch angle, flight time).

The table is a two-level structure:

    distance keys (sorted)
      └─ velocity keys (sorted, per distance)  →  ShotModel

Lookup is bilinear interpolation done as two nested 1-D interpolations:
first across robot velocity inside each bracketing distance bucket, then
across distance. Buckets may carry different velocity keys. Queries outside
the sampled range are clamped to the boundary sample; nothing is
extrapolated.
"""

import numpy as np
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional, Tuple


@dataclass(frozen=True)
class ShotSample:
    """One row of the shot dataset."""
    distance: float             # m, horizontal distance to target
    platform_velocity: float    # m/s, robot velocity towards target (signed)
    exit_speed: float           # m/s
    launch_angle_deg: float     # degrees
    flight_time: float          # s


@dataclass(frozen=True)
class ShotModel:
    """Shooter set-point stored at (or interpolated between) table knots."""
    exit_speed: float
    launch_angle_deg: float
    flight_time: float

    def interpolate(self, other: 'ShotModel', t: float) -> 'ShotModel':
        """Linear blend towards ``other``; t=0 is self, t=1 is other."""
        return ShotModel(
            exit_speed=self.exit_speed + (other.exit_speed - self.exit_speed) * t,
            launch_angle_deg=self.launch_angle_deg
            + (other.launch_angle_deg - self.launch_angle_deg) * t,
            flight_time=self.flight_time + (other.flight_time - self.flight_time) * t,
        )


@dataclass(frozen=True)
class ShotRecommendation:
    """Set-point handed back to the shooter."""
    exit_speed: float
    launch_angle_deg: float


# Returned by lookups against an empty table
FALLBACK_MODEL = ShotModel(exit_speed=12.0, launch_angle_deg=45.0, flight_time=1.0)

# Returned for a bucket with no samples; zero exit speed means "no shot"
EMPTY_MODEL = ShotModel(exit_speed=0.0, launch_angle_deg=0.0, flight_time=0.0)


def _frozen(values) -> np.ndarray:
    arr = np.array(values, dtype=float)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class VelocityBucket:
    """All samples taken at one distance, keyed by robot velocity."""
    velocities: np.ndarray              # sorted ascending, read-only
    models: Tuple[ShotModel, ...]       # aligned with velocities

    def __len__(self) -> int:
        return len(self.models)


def _bracket(keys: np.ndarray, target: float) -> Tuple[int, int]:
    """
    Indices (lo, hi) of the keys straddling target.

    Outside the key range both indices collapse onto the nearest end.
    """
    n = len(keys)
    if target <= keys[0]:
        return 0, 0
    if target >= keys[-1]:
        return n - 1, n - 1

    hi = int(np.searchsorted(keys, target, side='right'))
    hi = min(max(hi, 1), n - 1)
    lo = hi - 1
    if keys[lo] == target:
        return lo, lo
    return lo, hi


def _fraction(keys: np.ndarray, lo: int, hi: int, target: float) -> float:
    return (target - keys[lo]) / (keys[hi] - keys[lo])


def interpolate_in_velocity(bucket: VelocityBucket,
                            target_velocity: float) -> ShotModel:
    """
    Interpolate a distance bucket at the given robot velocity.

    Exact knots and clamped queries return the stored model unmodified.
    """
    if len(bucket) == 0:
        return EMPTY_MODEL

    lo, hi = _bracket(bucket.velocities, target_velocity)
    if lo == hi:
        return bucket.models[lo]

    t = _fraction(bucket.velocities, lo, hi, target_velocity)
    return bucket.models[lo].interpolate(bucket.models[hi], t)


class SampleTable:
    """
    Immutable shot table.

    Build with :func:`build_table`; instances are never mutated afterwards
    and can be shared between callers.
    """

    def __init__(self, distances: np.ndarray,
                 buckets: Tuple[VelocityBucket, ...]):
        if len(distances) != len(buckets):
            raise ValueError(
                f"Got {len(distances)} distance keys for {len(buckets)} buckets"
            )
        self._distances = _frozen(distances)
        self._buckets = tuple(buckets)

    @property
    def distances(self) -> np.ndarray:
        """Sorted distance keys (read-only)."""
        return self._distances

    def bucket(self, index: int) -> VelocityBucket:
        return self._buckets[index]

    def velocities_at(self, distance: float) -> np.ndarray:
        """Velocity keys stored for an exact distance key."""
        idx = int(np.searchsorted(self._distances, distance))
        if idx >= len(self._distances) or self._distances[idx] != distance:
            raise KeyError(distance)
        return self._buckets[idx].velocities

    def samples(self) -> Iterator[ShotSample]:
        """Stored rows, ordered by distance then velocity."""
        for d, bucket in zip(self._distances, self._buckets):
            for v, m in zip(bucket.velocities, bucket.models):
                yield ShotSample(float(d), float(v), m.exit_speed,
                                 m.launch_angle_deg, m.flight_time)

    def __len__(self) -> int:
        return sum(len(b) for b in self._buckets)

    def __bool__(self) -> bool:
        return len(self._buckets) > 0

    def __repr__(self) -> str:
        if not self:
            return "SampleTable(empty)"
        return (f"SampleTable({len(self)} samples, "
                f"{len(self._distances)} distances "
                f"{self._distances[0]:.2f}–{self._distances[-1]:.2f} m)")

    def lookup(self, distance: float, platform_velocity: float) -> ShotModel:
        """
        Bilinear set-point lookup.

        The sign of ``distance`` is ignored here; rearward shots are handled
        by :meth:`ShotSolver.find_optimal_shot`. An empty table yields
        :data:`FALLBACK_MODEL`.
        """
        if not self:
            return FALLBACK_MODEL

        d = abs(distance)
        lo, hi = _bracket(self._distances, d)

        m_lo = interpolate_in_velocity(self._buckets[lo], platform_velocity)
        if lo == hi:
            return m_lo

        m_hi = interpolate_in_velocity(self._buckets[hi], platform_velocity)
        t = _fraction(self._distances, lo, hi, d)
        return m_lo.interpolate(m_hi, t)


def build_table(samples: Iterable[ShotSample]) -> SampleTable:
    """
    Group samples by distance, then robot velocity.

    A later sample with the same (distance, velocity) replaces the earlier
    one.
    """
    grouped: Dict[float, Dict[float, ShotModel]] = {}
    for s in samples:
        grouped.setdefault(float(s.distance), {})[float(s.platform_velocity)] = ShotModel(
            exit_speed=float(s.exit_speed),
            launch_angle_deg=float(s.launch_angle_deg),
            flight_time=float(s.flight_time),
        )

    distances = sorted(grouped)
    buckets = []
    for d in distances:
        plane = grouped[d]
        velocities = sorted(plane)
        buckets.append(VelocityBucket(
            velocities=_frozen(velocities),
            models=tuple(plane[v] for v in velocities),
        ))
    return SampleTable(np.array(distances, dtype=float), tuple(buckets))


class ShotSolver:
    """Turns a target distance and robot velocity into a shooter set-point."""

    def __init__(self, table: SampleTable):
        self.table = table

    def lookup(self, distance: float, platform_velocity: float) -> ShotModel:
        return self.table.lookup(distance, platform_velocity)

    def find_optimal_shot(self, distance: float,
                          platform_velocity: float) -> Optional[ShotRecommendation]:
        """
        Recommended (exit speed, launch angle), or None when the table has
        no usable sample.

        A negative distance means the target is behind the robot; the
        launch angle is mirrored to 180° - angle.
        """
        model = self.table.lookup(distance, platform_velocity)
        if model.exit_speed == 0:
            return None

        angle = model.launch_angle_deg
        if distance < 0:
            angle = 180.0 - angle
        return ShotRecommendation(exit_speed=model.exit_speed,
                                  launch_angle_deg=angle)


def find_optimal_shot(table: SampleTable, distance: float,
                      platform_velocity: float) -> Optional[ShotRecommendation]:
    """Functional shortcut for ``ShotSolver(table).find_optimal_shot``."""
    return ShotSolver(table).find_optimal_shot(distance, platform_velocity)
