"""
Shot Dataset Loader
===================
Reads the precomputed shot dataset (``ref.json``) and turns it into a
:class:`~shooter_sim.shot_table.SampleTable`.

File format — a JSON array of records:

    [
      {"distance": 2.0, "robot_vel": 0.0, "final_vel": 10.0,
       "final_angle": 50.0, "flight_time": 0.8},
      ...
    ]

Records are validated here so the table only ever sees clean numbers.
"""

import asyncio
import json
import math
from pathlib import Path
from typing import Any, List, Mapping, Sequence, Union

from .shot_table import SampleTable, ShotSample, build_table


# JSON field → ShotSample attribute
FIELD_MAP = {
    'distance': 'distance',
    'robot_vel': 'platform_velocity',
    'final_vel': 'exit_speed',
    'final_angle': 'launch_angle_deg',
    'flight_time': 'flight_time',
}

PathLike = Union[str, Path]


def sample_from_record(record: Mapping[str, Any], index: int = 0) -> ShotSample:
    """Validate one dataset record and convert it to a ShotSample."""
    if not isinstance(record, Mapping):
        raise ValueError(f"Record {index}: expected an object, got {type(record).__name__}")

    values = {}
    for key, attr in FIELD_MAP.items():
        if key not in record:
            raise ValueError(f"Record {index}: missing field '{key}'")
        raw = record[key]
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise ValueError(f"Record {index}: field '{key}' is not a number ({raw!r})")
        value = float(raw)
        if not math.isfinite(value):
            raise ValueError(f"Record {index}: field '{key}' is not finite ({raw!r})")
        values[attr] = value

    if values['distance'] < 0:
        raise ValueError(f"Record {index}: negative distance {values['distance']}")

    return ShotSample(**values)


def samples_from_records(records: Sequence[Mapping[str, Any]]) -> List[ShotSample]:
    """Validate and convert a list of dataset records, keeping their order."""
    if not isinstance(records, Sequence) or isinstance(records, (str, bytes)):
        raise ValueError("Shot dataset must be a JSON array of records")
    return [sample_from_record(rec, i) for i, rec in enumerate(records)]


def load_samples(path: PathLike, verbose: bool = False) -> List[ShotSample]:
    """
    Read and validate every record in a shot dataset file.

    Raises
    ------
    FileNotFoundError, json.JSONDecodeError
        Propagated from reading the file.
    ValueError
        On a malformed record.
    """
    path = Path(path)
    if verbose:
        print(f"  Loading shot dataset from {path} ...")

    with path.open('r', encoding='utf-8') as fh:
        records = json.load(fh)

    samples = samples_from_records(records)

    if verbose:
        keys = {(s.distance, s.platform_velocity) for s in samples}
        print(f"  Loaded {len(samples)} records")
        if len(keys) != len(samples):
            print(f"  {len(samples) - len(keys)} duplicate (distance, robot_vel) "
                  f"keys — later records win")
    return samples


def load_table(path: PathLike, verbose: bool = False) -> SampleTable:
    """Load a dataset file and build the lookup table from it."""
    table = build_table(load_samples(path, verbose=verbose))
    if verbose:
        print(f"  Table ready: {table!r}")
    return table


async def load_table_async(path: PathLike, verbose: bool = False) -> SampleTable:
    """One-shot asynchronous load; the file is read in a worker thread."""
    return await asyncio.to_thread(load_table, path, verbose)


def save_samples(samples: Sequence[ShotSample], path: PathLike) -> Path:
    """Write samples back out in the dataset format."""
    path = Path(path)
    records = [
        {key: getattr(s, attr) for key, attr in FIELD_MAP.items()}
        for s in samples
    ]
    with path.open('w', encoding='utf-8') as fh:
        json.dump(records, fh, indent=2)
    return path
