"""
Open sets over a metric space.

Each region answers two questions about a point: whether it is inside, and
how much room there is around it (``clearance``). Clearance is a lower bound
on the distance to the complement, so ``ball(x, r)`` lies inside the region
whenever ``r <= clearance(x)``. Points outside get a clearance of 0.

Polygon regions are built on Shapely and assume the Euclidean plane.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np
from shapely.geometry import MultiPolygon, Point as ShapelyPoint, Polygon
from shapely.ops import unary_union

from shellcover.contracts import Point
from shellcover.metrics import Metric


class Region(ABC):
    """Base open set.

    Subclasses implement ``contains`` and ``clearance``.
    """

    @abstractmethod
    def contains(self, point: Point, metric: Metric) -> bool:
        """True when ``point`` lies inside the region."""
        ...

    @abstractmethod
    def clearance(self, point: Point, metric: Metric) -> float:
        """Lower bound on the distance to the complement; 0 outside."""
        ...

    def contains_ball(self, center: Point, radius: float, metric: Metric) -> bool:
        """True when ``ball(center, radius)`` is known to lie inside."""
        if radius <= 0.0:
            # Open ball of radius 0 is empty.
            return True
        if not self.contains(center, metric):
            return False
        return radius <= self.clearance(center, metric)


class WholeSpace(Region):
    def contains(self, point: Point, metric: Metric) -> bool:
        return True

    def clearance(self, point: Point, metric: Metric) -> float:
        return math.inf

    def __repr__(self) -> str:
        return "WholeSpace()"


class BallRegion(Region):
    """Open ball ``{y : d(center, y) < radius}``."""

    def __init__(self, center: Point, radius: float) -> None:
        if math.isnan(radius) or radius < 0.0:
            raise ValueError(f"Ball radius must be >= 0, got {radius}")
        self.center = center
        self.radius = float(radius)

    def contains(self, point: Point, metric: Metric) -> bool:
        return metric.dist(point, self.center) < self.radius

    def clearance(self, point: Point, metric: Metric) -> float:
        d = metric.dist(point, self.center)
        if not d < self.radius:
            return 0.0
        if math.isinf(self.radius):
            return math.inf
        # Triangle inequality: ball(point, r - d) sits inside ball(center, r).
        return self.radius - d

    def __repr__(self) -> str:
        return f"BallRegion(center={self.center!r}, radius={self.radius!r})"


class IntervalRegion(Region):
    """Open interval ``(lo, hi)`` on the real line.

    Either end may be infinite.
    """

    def __init__(self, lo: float, hi: float) -> None:
        if not lo < hi:
            raise ValueError(f"Empty interval ({lo}, {hi})")
        self.lo = float(lo)
        self.hi = float(hi)

    @staticmethod
    def _scalar(point: Point) -> float:
        return float(np.atleast_1d(np.asarray(point, dtype=float))[0])

    def contains(self, point: Point, metric: Metric) -> bool:
        x = self._scalar(point)
        return self.lo < x < self.hi

    def clearance(self, point: Point, metric: Metric) -> float:
        x = self._scalar(point)
        if not self.lo < x < self.hi:
            return 0.0
        return min(x - self.lo, self.hi - x)

    def __repr__(self) -> str:
        return f"IntervalRegion({self.lo!r}, {self.hi!r})"


class PolygonRegion(Region):
    """Interior of a Shapely polygon in the Euclidean plane.

    Boundary points are excluded so the region is open. Holes are allowed.
    """

    def __init__(self, polygon: Polygon | MultiPolygon) -> None:
        if not polygon.is_valid:
            polygon = polygon.buffer(0)
        if polygon.is_empty:
            raise ValueError("PolygonRegion needs a non-empty polygon")
        self.polygon = polygon
        self._boundary = polygon.boundary

    @classmethod
    def from_coords(
        cls,
        shell: Sequence[Tuple[float, float]],
        holes: Iterable[Sequence[Tuple[float, float]]] = (),
    ) -> "PolygonRegion":
        return cls(Polygon(shell, holes=[list(h) for h in holes]))

    @staticmethod
    def _shapely_point(point: Point) -> ShapelyPoint:
        arr = np.asarray(point, dtype=float).ravel()
        if arr.shape != (2,):
            raise ValueError(f"PolygonRegion expects 2D points, got shape {arr.shape}")
        return ShapelyPoint(float(arr[0]), float(arr[1]))

    def contains(self, point: Point, metric: Metric) -> bool:
        return bool(self.polygon.contains(self._shapely_point(point)))

    def clearance(self, point: Point, metric: Metric) -> float:
        pt = self._shapely_point(point)
        if not self.polygon.contains(pt):
            return 0.0
        return float(self._boundary.distance(pt))

    def __repr__(self) -> str:
        return f"PolygonRegion(area={self.polygon.area:.6g})"


class UnionRegion(Region):
    """Union of regions.

    Clearance is exact when every part is an interval (overlapping parts
    are merged first) or every part is a polygon (distance to the boundary
    of the union). For any other mix it falls back to the best clearance of
    a single part, which is only a lower bound: a ball can straddle two
    parts without fitting in either.
    """

    def __init__(self, parts: Iterable[Region]) -> None:
        self.parts: List[Region] = list(parts)
        if not self.parts:
            raise ValueError("UnionRegion needs at least one part")
        self._intervals: Optional[List[IntervalRegion]] = None
        self._edges = None
        if all(isinstance(p, IntervalRegion) for p in self.parts):
            self._intervals = _merge_intervals(self.parts)
        elif all(isinstance(p, PolygonRegion) for p in self.parts):
            self._edges = _union_boundary([p.polygon for p in self.parts])

    def contains(self, point: Point, metric: Metric) -> bool:
        return any(p.contains(point, metric) for p in self.parts)

    def clearance(self, point: Point, metric: Metric) -> float:
        if self._intervals is not None:
            # Merged intervals are disjoint, at most one holds the point.
            return max(p.clearance(point, metric) for p in self._intervals)
        if self._edges is not None:
            if not self.contains(point, metric):
                return 0.0
            return float(self._edges.distance(PolygonRegion._shapely_point(point)))
        return max(p.clearance(point, metric) for p in self.parts)

    def __repr__(self) -> str:
        return f"UnionRegion({self.parts!r})"


def _merge_intervals(parts: Sequence[IntervalRegion]) -> List[IntervalRegion]:
    """Merge overlapping open intervals.

    Intervals that only touch stay apart since the shared end is in neither.
    """
    spans = sorted((p.lo, p.hi) for p in parts)
    merged = [list(spans[0])]
    for lo, hi in spans[1:]:
        if lo < merged[-1][1]:
            merged[-1][1] = max(merged[-1][1], hi)
        else:
            merged.append([lo, hi])
    return [IntervalRegion(lo, hi) for lo, hi in merged]


def _union_boundary(polygons: Sequence[Polygon | MultiPolygon]):
    """Boundary of the union of open polygon interiors.

    Starts from every part's boundary and drops the stretches that lie in
    some part's interior. Edges shared by two parts survive: they are in
    neither interior, so they belong to the complement.
    """
    edges = unary_union([poly.boundary for poly in polygons])
    for poly in polygons:
        edges = unary_union([edges.difference(poly), edges.intersection(poly.boundary)])
    return edges
