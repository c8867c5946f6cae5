"""
Unit Tests for the Shot Table
=============================
Table construction, nested interpolation, solver, dataset loading and
table validation.
Run: python -m pytest tests/ -v
"""

import sys
import os
import asyncio
import json
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from shooter_sim.shot_table import (
    FALLBACK_MODEL, SampleTable, ShotModel, ShotRecommendation, ShotSample,
    ShotSolver, build_table, find_optimal_shot, interpolate_in_velocity,
)
from shooter_sim.dataset import (
    load_samples, load_table, load_table_async, sample_from_record, save_samples,
)
from shooter_sim.simulator import SHOOTER_HEIGHT, TARGET_HEIGHT, descending_crossing, simulate
from shooter_sim.validation import summarize, validate_sample, validate_table


def sample(d, v, speed, angle, tof):
    return ShotSample(distance=d, platform_velocity=v, exit_speed=speed,
                      launch_angle_deg=angle, flight_time=tof)


@pytest.fixture
def two_point_table():
    return build_table([
        sample(2.0, 0.0, 10.0, 50.0, 0.8),
        sample(4.0, 0.0, 12.0, 45.0, 1.0),
    ])


@pytest.fixture
def grid_table():
    """Distance buckets with different velocity key sets."""
    return build_table([
        sample(4.0, 0.0, 12.0, 45.0, 1.0),
        sample(2.0, 1.0, 12.0, 40.0, 1.2),
        sample(2.0, -1.0, 10.0, 50.0, 0.8),
        sample(6.0, -2.0, 13.0, 42.0, 1.3),
        sample(6.0, 2.0, 15.0, 38.0, 1.5),
        sample(6.0, 0.0, 14.0, 40.0, 1.4),
    ])


class TestBuildTable:

    def test_keys_sorted(self, grid_table):
        assert list(grid_table.distances) == [2.0, 4.0, 6.0]
        assert list(grid_table.velocities_at(6.0)) == [-2.0, 0.0, 2.0]
        assert list(grid_table.velocities_at(2.0)) == [-1.0, 1.0]

    def test_len(self, grid_table):
        assert len(grid_table) == 6
        assert bool(grid_table)

    def test_last_write_wins(self):
        table = build_table([
            sample(3.0, 1.0, 9.0, 55.0, 0.7),
            sample(3.0, 1.0, 11.0, 48.0, 0.9),
        ])
        assert len(table) == 1
        assert table.lookup(3.0, 1.0) == ShotModel(11.0, 48.0, 0.9)

    def test_read_only(self, grid_table):
        with pytest.raises(ValueError):
            grid_table.distances[0] = 99.0
        with pytest.raises(ValueError):
            grid_table.velocities_at(2.0)[0] = 99.0

    def test_missing_distance_key(self, grid_table):
        with pytest.raises(KeyError):
            grid_table.velocities_at(3.0)

    def test_samples_round_trip(self, grid_table):
        rows = list(grid_table.samples())
        assert len(rows) == 6
        assert rows[0] == sample(2.0, -1.0, 10.0, 50.0, 0.8)
        assert [(r.distance, r.platform_velocity) for r in rows] == sorted(
            (r.distance, r.platform_velocity) for r in rows)

    def test_empty(self):
        table = build_table([])
        assert len(table) == 0
        assert not table
        assert 'empty' in repr(table)

    def test_mismatched_buckets(self):
        with pytest.raises(ValueError):
            SampleTable(np.array([1.0, 2.0]), ())


class TestInterpolateInVelocity:

    def test_identity_at_knots(self, grid_table):
        bucket = grid_table.bucket(2)
        for v, m in zip(bucket.velocities, bucket.models):
            assert interpolate_in_velocity(bucket, v) == m

    def test_midpoint(self, grid_table):
        bucket = grid_table.bucket(0)
        m = interpolate_in_velocity(bucket, 0.0)
        assert m.exit_speed == pytest.approx(11.0)
        assert m.launch_angle_deg == pytest.approx(45.0)
        assert m.flight_time == pytest.approx(1.0)

    def test_fractional_position(self, grid_table):
        bucket = grid_table.bucket(2)   # v = -2, 0, 2
        m = interpolate_in_velocity(bucket, 0.5)
        assert m.exit_speed == pytest.approx(14.0 + 0.25 * 1.0)
        assert m.launch_angle_deg == pytest.approx(40.0 - 0.25 * 2.0)

    def test_clamp_outside_range(self, grid_table):
        bucket = grid_table.bucket(0)
        assert interpolate_in_velocity(bucket, -5.0) == bucket.models[0]
        assert interpolate_in_velocity(bucket, 5.0) == bucket.models[-1]

    def test_single_key_bucket(self, grid_table):
        bucket = grid_table.bucket(1)
        for v in [-3.0, 0.0, 0.7]:
            assert interpolate_in_velocity(bucket, v) == bucket.models[0]


class TestLookup:

    def test_distance_midpoint(self, two_point_table):
        m = two_point_table.lookup(3.0, 0.0)
        assert m.exit_speed == pytest.approx(11.0)
        assert m.launch_angle_deg == pytest.approx(47.5)
        assert m.flight_time == pytest.approx(0.9)

    def test_clamp_below_min_distance(self, grid_table):
        expected = interpolate_in_velocity(grid_table.bucket(0), 0.3)
        assert grid_table.lookup(0.5, 0.3) == expected
        assert grid_table.lookup(0.0, 0.3) == expected

    def test_clamp_above_max_distance(self, grid_table):
        expected = interpolate_in_velocity(grid_table.bucket(2), -0.4)
        assert grid_table.lookup(9.0, -0.4) == expected

    def test_sign_of_distance_ignored(self, grid_table):
        assert grid_table.lookup(-3.3, 0.2) == grid_table.lookup(3.3, 0.2)

    def test_buckets_with_different_velocity_keys(self, grid_table):
        # d=2: interpolate v=0.5 between -1 and 1 (t=0.75); d=4: single key
        m = grid_table.lookup(3.0, 0.5)
        at_2 = ShotModel(10.0 + 2.0 * 0.75, 50.0 - 10.0 * 0.75, 0.8 + 0.4 * 0.75)
        at_4 = ShotModel(12.0, 45.0, 1.0)
        assert m.exit_speed == pytest.approx((at_2.exit_speed + at_4.exit_speed) / 2)
        assert m.launch_angle_deg == pytest.approx(
            (at_2.launch_angle_deg + at_4.launch_angle_deg) / 2)
        assert m.flight_time == pytest.approx((at_2.flight_time + at_4.flight_time) / 2)

    def test_exact_knot(self, grid_table):
        assert grid_table.lookup(6.0, 2.0) == ShotModel(15.0, 38.0, 1.5)

    def test_empty_table_fallback(self):
        table = build_table([])
        assert table.lookup(3.0, 0.0) == FALLBACK_MODEL
        assert FALLBACK_MODEL == ShotModel(12.0, 45.0, 1.0)

    def test_concurrent_lookups(self, grid_table):
        queries = [(d, v) for d in np.linspace(-7, 7, 15) for v in np.linspace(-3, 3, 7)]
        expected = [grid_table.lookup(d, v) for d, v in queries]
        with ThreadPoolExecutor(max_workers=4) as pool:
            got = list(pool.map(lambda q: grid_table.lookup(*q), queries))
        assert got == expected


class TestShotSolver:

    def test_midpoint_recommendation(self, two_point_table):
        rec = ShotSolver(two_point_table).find_optimal_shot(3.0, 0.0)
        assert rec == ShotRecommendation(exit_speed=11.0, launch_angle_deg=47.5)

    def test_rearward_shot_mirrors_angle(self, grid_table):
        solver = ShotSolver(grid_table)
        forward = grid_table.lookup(5.0, 0.0)
        rec = solver.find_optimal_shot(-5.0, 0.0)
        assert rec.exit_speed == forward.exit_speed
        assert rec.launch_angle_deg == pytest.approx(180.0 - forward.launch_angle_deg)

    def test_zero_exit_speed_means_no_shot(self):
        table = build_table([sample(3.0, 0.0, 0.0, 45.0, 1.0)])
        assert ShotSolver(table).find_optimal_shot(3.0, 0.0) is None

    def test_empty_table_gives_fallback_shot(self):
        rec = find_optimal_shot(build_table([]), 3.0, 0.0)
        assert rec == ShotRecommendation(12.0, 45.0)

    def test_functional_shortcut(self, grid_table):
        assert find_optimal_shot(grid_table, 2.5, 0.5) == \
            ShotSolver(grid_table).find_optimal_shot(2.5, 0.5)

    def test_recommendation_feeds_simulator(self, two_point_table):
        rec = ShotSolver(two_point_table).find_optimal_shot(3.0, 0.0)
        res = simulate(rec.exit_speed, rec.launch_angle_deg, 0.0, 0.55)
        assert res.valid
        assert len(res.trajectory) > 1
        assert res.max_height > 0.55


RECORDS = [
    {"distance": 2.0, "robot_vel": 0.0, "final_vel": 10.0,
     "final_angle": 50.0, "flight_time": 0.8},
    {"distance": 4.0, "robot_vel": 0.0, "final_vel": 12.0,
     "final_angle": 45.0, "flight_time": 1.0},
    {"distance": 4.0, "robot_vel": 1, "final_vel": 11.5,
     "final_angle": 44.0, "flight_time": 0.95},
]


def write_json(path, payload):
    path.write_text(json.dumps(payload), encoding='utf-8')
    return path


class TestDataset:

    def test_field_mapping(self):
        s = sample_from_record(RECORDS[2])
        assert s == sample(4.0, 1.0, 11.5, 44.0, 0.95)
        assert isinstance(s.platform_velocity, float)

    def test_load_samples(self, tmp_path):
        path = write_json(tmp_path / 'ref.json', RECORDS)
        samples = load_samples(path)
        assert len(samples) == 3
        assert samples[0] == sample(2.0, 0.0, 10.0, 50.0, 0.8)

    def test_load_table(self, tmp_path):
        path = write_json(tmp_path / 'ref.json', RECORDS)
        table = load_table(str(path))
        assert list(table.distances) == [2.0, 4.0]
        assert table.lookup(3.0, 0.0).exit_speed == pytest.approx(11.0)

    def test_load_table_async(self, tmp_path):
        path = write_json(tmp_path / 'ref.json', RECORDS)
        table = asyncio.run(load_table_async(path))
        assert len(table) == 3

    def test_verbose_reports_duplicates(self, tmp_path, capsys):
        path = write_json(tmp_path / 'ref.json', RECORDS + [RECORDS[0]])
        load_samples(path, verbose=True)
        out = capsys.readouterr().out
        assert 'Loaded 4 records' in out
        assert '1 duplicate' in out

    def test_missing_field(self):
        rec = dict(RECORDS[0])
        del rec['robot_vel']
        with pytest.raises(ValueError, match='robot_vel'):
            sample_from_record(rec, 7)

    def test_non_numeric_field(self):
        rec = dict(RECORDS[0], final_vel='fast')
        with pytest.raises(ValueError, match='final_vel'):
            sample_from_record(rec)

    def test_boolean_rejected(self):
        rec = dict(RECORDS[0], flight_time=True)
        with pytest.raises(ValueError):
            sample_from_record(rec)

    def test_non_finite_field(self, tmp_path):
        path = tmp_path / 'ref.json'
        path.write_text('[{"distance": NaN, "robot_vel": 0, "final_vel": 10,'
                        ' "final_angle": 45, "flight_time": 1}]', encoding='utf-8')
        with pytest.raises(ValueError, match='not finite'):
            load_samples(path)

    def test_negative_distance(self):
        rec = dict(RECORDS[0], distance=-1.0)
        with pytest.raises(ValueError, match='negative distance'):
            sample_from_record(rec)

    def test_top_level_must_be_array(self, tmp_path):
        path = write_json(tmp_path / 'ref.json', {"distance": 2.0})
        with pytest.raises(ValueError):
            load_samples(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_samples(tmp_path / 'nope.json')

    def test_save_then_load(self, tmp_path):
        samples = [sample(2.0, -1.0, 10.0, 50.0, 0.8), sample(2.0, 1.0, 12.0, 40.0, 1.2)]
        path = save_samples(samples, tmp_path / 'out.json')
        assert load_samples(path) == samples
        assert set(json.loads(path.read_text())[0]) == {
            'distance', 'robot_vel', 'final_vel', 'final_angle', 'flight_time'}


class TestValidation:

    def test_self_consistent_sample(self):
        traj = simulate(11.0, 47.5, 0.0, SHOOTER_HEIGHT)
        x, t = descending_crossing(traj, TARGET_HEIGHT)
        vr = validate_sample(x, 0.0, 11.0, 47.5, t)
        assert vr.reached
        assert vr.distance_error == pytest.approx(0.0, abs=1e-9)
        assert vr.time_error == pytest.approx(0.0, abs=1e-9)

    def test_unreachable_sample(self):
        vr = validate_sample(3.0, 0.0, 2.0, 45.0, 1.0)
        assert not vr.reached
        assert np.isnan(vr.distance_error)

    def test_validate_table(self, grid_table):
        results = validate_table(grid_table, verbose=False)
        assert len(results) == len(grid_table)
        assert [r.distance for r in results] == [s.distance for s in grid_table.samples()]

    def test_max_samples(self, grid_table):
        results = validate_table(grid_table, max_samples=3, verbose=False)
        assert len(results) == 3

    def test_verbose_report(self, two_point_table, capsys):
        validate_table(two_point_table, verbose=True)
        out = capsys.readouterr().out
        assert 'VALIDATION: 2 table samples' in out
        assert 'Mean absolute errors' in out

    def test_summarize(self):
        good = validate_sample(3.0, 0.0, 11.0, 47.5, 0.9)
        missed = validate_sample(3.0, 0.0, 2.0, 45.0, 1.0)
        stats = summarize([good, missed])
        assert stats['count'] == 2
        assert stats['missed'] == 1
        assert stats['mean_distance_error'] == pytest.approx(abs(good.distance_error))

    def test_summarize_all_missed(self):
        missed = validate_sample(3.0, 0.0, 2.0, 45.0, 1.0)
        stats = summarize([missed])
        assert stats['missed'] == 1
        assert np.isnan(stats['mean_distance_error'])


if __name__ == "__main__":
    pytest.main([__file__, '-v'])
