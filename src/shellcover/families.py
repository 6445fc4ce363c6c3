"""Ball families and sampled target sets."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, List, Mapping, Sequence, Tuple

import numpy as np

from shellcover.contracts import NonPositiveRadiusError, NotCoveredError, Point
from shellcover.metrics import Metric
from shellcover.regions import BallRegion


class BallFamily:
    """Indexed open balls ``ball(centers[j], radii[j])``.

    Radii must be non-negative; a zero radius is an empty ball.
    """

    def __init__(
        self,
        centers: Mapping[Hashable, Point],
        radii: Mapping[Hashable, float],
        metric: Metric,
    ) -> None:
        if set(centers.keys()) != set(radii.keys()):
            raise ValueError("BallFamily centers and radii must share the same keys")
        self._keys: Tuple[Hashable, ...] = tuple(centers.keys())
        self._centers: Dict[Hashable, Point] = dict(centers)
        self._radii: Dict[Hashable, float] = {}
        for key in self._keys:
            r = float(radii[key])
            if math.isnan(r) or r < 0.0:
                raise NonPositiveRadiusError(f"Ball {key!r} has invalid radius {r}")
            self._radii[key] = r
        self.metric = metric

    @classmethod
    def from_regions(
        cls, regions: Mapping[Hashable, BallRegion], metric: Metric,
    ) -> "BallFamily":
        return cls(
            {k: r.center for k, r in regions.items()},
            {k: r.radius for k, r in regions.items()},
            metric,
        )

    @property
    def keys(self) -> Tuple[Hashable, ...]:
        return self._keys

    @property
    def centers(self) -> Dict[Hashable, Point]:
        return dict(self._centers)

    @property
    def radii(self) -> Dict[Hashable, float]:
        return dict(self._radii)

    def __len__(self) -> int:
        return len(self._keys)

    def center(self, key: Hashable) -> Point:
        return self._centers[key]

    def radius(self, key: Hashable) -> float:
        return self._radii[key]

    def with_radii(self, radii: Mapping[Hashable, float]) -> "BallFamily":
        return BallFamily(self._centers, radii, self.metric)

    def margins(self, point: Point) -> np.ndarray:
        """``r_j - d(c_j, point)`` for every ball, in key order.

        Positive exactly for the balls containing ``point``.
        """
        radii = np.array([self._radii[k] for k in self._keys], dtype=float)
        dists = np.array(
            [self.metric.dist(self._centers[k], point) for k in self._keys],
            dtype=float,
        )
        with np.errstate(invalid="ignore"):
            out = radii - dists
        # inf - inf: infinite ball around a point at infinite distance.
        out[np.isnan(out)] = -math.inf
        return out

    def members_containing(self, point: Point) -> List[Hashable]:
        margins = self.margins(point)
        return [k for k, m in zip(self._keys, margins) if m > 0.0]

    def multiplicity(self, point: Point) -> int:
        """Number of balls containing ``point``."""
        return int(np.count_nonzero(self.margins(point) > 0.0))

    def uncovered(self, points: Iterable[Point]) -> List[Point]:
        return [p for p in points if self.multiplicity(p) == 0]

    def covers(self, points: Iterable[Point]) -> bool:
        return not self.uncovered(points)

    def check_covers(self, points: Iterable[Point]) -> None:
        missing = self.uncovered(points)
        if missing:
            raise NotCoveredError(
                f"{len(missing)} point(s) outside every ball, first: {missing[0]!r}"
            )


@dataclass(frozen=True)
class SampledTarget:
    """Finite sample of a target set.

    Every point of the true target lies within ``spacing`` of some sample
    point. A finite target is its own sample with ``spacing = 0``.
    """

    points: Tuple[Point, ...]
    spacing: float = 0.0
    label: str = ""

    def __post_init__(self) -> None:
        if math.isnan(self.spacing) or self.spacing < 0.0:
            raise ValueError(f"SampledTarget.spacing must be >= 0, got {self.spacing}")

    @classmethod
    def finite(cls, points: Sequence[Point], label: str = "") -> "SampledTarget":
        return cls(points=tuple(points), spacing=0.0, label=label)

    def __len__(self) -> int:
        return len(self.points)
