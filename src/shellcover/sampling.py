"""Sample builders for intervals, boxes and random point clouds."""

from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np

from shellcover.families import SampledTarget


def sample_interval(lo: float, hi: float, count: int = 101) -> SampledTarget:
    """Evenly spaced samples of ``[lo, hi]`` as floats.

    Every point of the interval is within half a step of a sample.
    """
    if hi < lo:
        raise ValueError(f"Interval [{lo}, {hi}] is empty")
    if count < 1:
        raise ValueError("count must be >= 1")
    if count == 1 or hi == lo:
        mid = 0.5 * (lo + hi)
        return SampledTarget(points=(mid,), spacing=0.5 * (hi - lo), label="interval")
    xs = np.linspace(lo, hi, count)
    spacing = 0.5 * (hi - lo) / (count - 1)
    return SampledTarget(points=tuple(float(x) for x in xs), spacing=spacing, label="interval")


def sample_box(
    lower: Sequence[float],
    upper: Sequence[float],
    counts: Sequence[int],
) -> SampledTarget:
    """Regular grid over the box ``[lower, upper]`` as tuples.

    Spacing is half the diagonal of one grid cell.
    """
    lo = np.asarray(lower, dtype=float)
    hi = np.asarray(upper, dtype=float)
    if lo.shape != hi.shape or lo.shape != (len(counts),):
        raise ValueError("lower, upper and counts must have the same length")
    if np.any(hi < lo):
        raise ValueError("Box upper corner must dominate the lower corner")
    axes = [np.linspace(a, b, max(int(n), 1)) for a, b, n in zip(lo, hi, counts)]
    steps = np.array(
        [(b - a) / (int(n) - 1) if int(n) > 1 else 2.0 * (b - a) for a, b, n in zip(lo, hi, counts)]
    )
    grid = np.stack(np.meshgrid(*axes, indexing="ij"), axis=-1).reshape(-1, len(axes))
    points = tuple(tuple(float(v) for v in row) for row in grid)
    spacing = 0.5 * float(np.linalg.norm(steps))
    return SampledTarget(points=points, spacing=spacing, label="box")


def uniform_points(
    lower: Sequence[float],
    upper: Sequence[float],
    count: int,
    seed: int = 0,
) -> List[Tuple[float, ...]]:
    """Random points drawn uniformly from a box."""
    rng = np.random.default_rng(seed)
    lo = np.asarray(lower, dtype=float)
    hi = np.asarray(upper, dtype=float)
    samples = rng.uniform(lo, hi, size=(int(count), lo.shape[0]))
    return [tuple(float(v) for v in row) for row in samples]
