"""
Distance oracles.

A metric answers distance queries between opaque points. Everything the
refinement and shrinking algorithms know about geometry goes through
``dist`` and its batch form ``distances``. Extended metrics may return
``math.inf``.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Callable, Hashable, Optional, Sequence

import numpy as np

from shellcover.contracts import Point


class Metric(ABC):
    """Base distance oracle.

    Subclasses implement ``dist``. ``distances`` and ``key`` have generic
    fallbacks that subclasses may override for speed.
    """

    extended: bool = False

    @abstractmethod
    def dist(self, a: Point, b: Point) -> float:
        """Distance between two points, possibly ``math.inf`` if extended."""
        ...

    def distances(self, a: Point, points: Sequence[Point]) -> np.ndarray:
        """Distances from ``a`` to each of ``points``."""
        return np.array([self.dist(a, p) for p in points], dtype=float)

    def key(self, point: Point) -> Hashable:
        """Hashable identity of a point, used for memoization."""
        if isinstance(point, np.ndarray):
            return tuple(float(v) for v in point.ravel())
        return point

    def in_ball(self, point: Point, center: Point, radius: float) -> bool:
        return self.dist(point, center) < radius

    def in_closed_ball(self, point: Point, center: Point, radius: float) -> bool:
        return self.dist(point, center) <= radius


class EuclideanMetric(Metric):
    """Euclidean distance on R^d.

    Points may be Python scalars (the real line), tuples or numpy arrays.
    """

    def dist(self, a: Point, b: Point) -> float:
        da = np.atleast_1d(np.asarray(a, dtype=float))
        db = np.atleast_1d(np.asarray(b, dtype=float))
        return float(np.linalg.norm(da - db))

    def distances(self, a: Point, points: Sequence[Point]) -> np.ndarray:
        if len(points) == 0:
            return np.zeros(0, dtype=float)
        origin = np.atleast_1d(np.asarray(a, dtype=float))
        arr = np.asarray([np.atleast_1d(np.asarray(p, dtype=float)) for p in points])
        return np.linalg.norm(arr - origin, axis=1)

    def key(self, point: Point) -> Hashable:
        arr = np.atleast_1d(np.asarray(point, dtype=float))
        return tuple(float(v) for v in arr.ravel())


class DiscreteMetric(Metric):
    """Distance 0 between equal points and 1 otherwise."""

    def dist(self, a: Point, b: Point) -> float:
        return 0.0 if self.key(a) == self.key(b) else 1.0


class CallableMetric(Metric):
    """Wrap a plain ``fn(a, b) -> float`` as a metric.

    Set ``extended=True`` when ``fn`` may return ``math.inf``; otherwise an
    infinite distance is rejected.
    """

    def __init__(
        self,
        fn: Callable[[Point, Point], float],
        extended: bool = False,
        key: Optional[Callable[[Point], Hashable]] = None,
    ) -> None:
        self._fn = fn
        self.extended = extended
        self._key = key

    def dist(self, a: Point, b: Point) -> float:
        value = float(self._fn(a, b))
        if math.isnan(value) or value < 0.0:
            raise ValueError(f"Distance must be non-negative, got {value}")
        if math.isinf(value) and not self.extended:
            raise ValueError("Infinite distance from a non-extended metric")
        return value

    def key(self, point: Point) -> Hashable:
        if self._key is not None:
            return self._key(point)
        return super().key(point)
