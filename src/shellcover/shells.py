"""
Shell-based refinement of an open cover.

Turns a cover ``{s_i}`` of a finite metric space into shells ``D(n, i)``
indexed by depth ``n`` and cover index ``i``:

    D(n, i) = union of ball(x, 2**-n) over points x with
              rank(x) = i,
              ball(x, 3 * 2**-n) inside s_i,
              x outside every D(m, j) with m < n

Each point is a center of the first shell it becomes eligible for, unless a
shallower shell already holds it. The resulting family covers the space,
refines the cover (``D(n, i)`` inside ``s_i``) and is locally finite.

Shells are built lazily one depth at a time; asking about depth ``n``
builds every depth up to ``n`` first, since admission at ``n`` depends on
all shallower shells.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, Hashable, List, Optional, Sequence, Tuple

import numpy as np

from shellcover.certify import certify_point
from shellcover.contracts import (
    DepthLimitError,
    LocalFiniteWitness,
    Neighborhood,
    NotCoveredError,
    NotOpenError,
    Point,
    RefineConfig,
    Shell,
    ShellKey,
)
from shellcover.cover import Cover, RankCache
from shellcover.families import BallFamily

logger = logging.getLogger(__name__)

# Eligibility tests ball(x, MARGIN * 2**-n); shells use ball(x, 2**-n).
MARGIN = 3.0


def shell_radius(depth: int) -> float:
    return math.ldexp(1.0, -depth)


def eligibility_radius(depth: int) -> float:
    return math.ldexp(MARGIN, -depth)


def depth_for_clearance(clearance: float, max_depth: int) -> int:
    """Smallest ``n >= 0`` with ``3 * 2**-n <= clearance``."""
    if math.isnan(clearance) or clearance <= 0.0:
        raise NotOpenError(f"Non-positive clearance {clearance} at a contained point")
    if math.isinf(clearance):
        return 0
    if clearance < eligibility_radius(max_depth):
        raise DepthLimitError(
            f"Clearance {clearance:.3g} needs depth beyond max_depth={max_depth}"
        )
    n = max(0, math.ceil(math.log2(MARGIN / clearance)))
    # log2 rounding can be off by one either way.
    while n > 0 and eligibility_radius(n - 1) <= clearance:
        n -= 1
    while eligibility_radius(n) > clearance:
        n += 1
    return n


class ShellRefinement:
    """Lazily built locally finite refinement of ``cover`` over ``space``.

    ``space`` is the finite set of points the refinement covers; duplicate
    points (by metric key) are collapsed. All caches are owned by this
    instance.
    """

    def __init__(
        self,
        cover: Cover,
        space: Sequence[Point],
        config: Optional[RefineConfig] = None,
    ) -> None:
        self.cover = cover
        self.metric = cover.metric
        self.config = config or RefineConfig()

        points: List[Point] = []
        seen = set()
        for point in space:
            key = self.metric.key(point)
            if key in seen:
                continue
            seen.add(key)
            points.append(point)
        self.points: Tuple[Point, ...] = tuple(points)

        if self.config.check_cover:
            cover.check_covers(self.points)

        self._ranks = RankCache(cover)
        self._eligible: Dict[Hashable, int] = {}
        self._by_depth: Optional[Dict[int, List[int]]] = None
        self._max_depth = -1
        # depth -> cover index -> centers
        self._centers: Dict[int, Dict[Hashable, List[Point]]] = {}
        self._built_through = -1

    # ------------------------------------------------------------------
    # Rank and eligibility
    # ------------------------------------------------------------------

    def rank(self, point: Point) -> Hashable:
        return self._ranks.rank(point)

    def eligible_depth(self, point: Point) -> int:
        """Smallest depth at which the tripled ball around ``point`` fits
        inside the cover member of its rank."""
        key = self.metric.key(point)
        cached = self._eligible.get(key)
        if cached is not None:
            return cached
        index = self.rank(point)
        clearance = self.cover[index].clearance(point, self.metric)
        try:
            depth = depth_for_clearance(clearance, self.config.max_depth)
        except NotOpenError as exc:
            raise NotOpenError(f"Cover member {index!r} is not open at {point!r}") from exc
        self._eligible[key] = depth
        return depth

    def eligibility_witness(self, point: Point) -> Tuple[Hashable, int]:
        """``(rank, depth)`` with ``ball(point, 3 * 2**-depth)`` inside the member."""
        return (self.rank(point), self.eligible_depth(point))

    # ------------------------------------------------------------------
    # Lazy construction
    # ------------------------------------------------------------------

    @property
    def max_depth(self) -> int:
        """Deepest non-empty depth possible; -1 for an empty space."""
        self._index_depths()
        return self._max_depth

    def _index_depths(self) -> Dict[int, List[int]]:
        if self._by_depth is None:
            by_depth: Dict[int, List[int]] = {}
            for idx, point in enumerate(self.points):
                by_depth.setdefault(self.eligible_depth(point), []).append(idx)
            self._by_depth = by_depth
            self._max_depth = max(by_depth) if by_depth else -1
        return self._by_depth

    def _build_through(self, depth: int) -> None:
        by_depth = self._index_depths()
        target = min(depth, self._max_depth)
        for m in range(self._built_through + 1, target + 1):
            layer: Dict[Hashable, List[Point]] = {}
            for idx in by_depth.get(m, []):
                point = self.points[idx]
                if self._first_hit(point, m - 1) is not None:
                    continue
                layer.setdefault(self.rank(point), []).append(point)
            self._centers[m] = layer
            self._built_through = m
            logger.debug(
                "Depth %d: %d candidates, %d centers in %d shells",
                m,
                len(by_depth.get(m, [])),
                sum(len(v) for v in layer.values()),
                len(layer),
            )

    def _centers_at(self, depth: int, index: Hashable) -> List[Point]:
        self._build_through(depth)
        return self._centers.get(depth, {}).get(index, [])

    def indices_at(self, point: Point, depth: int) -> List[Hashable]:
        """Cover indices ``j`` with ``point`` in ``D(depth, j)``."""
        self._build_through(depth)
        layer = self._centers.get(depth)
        if not layer:
            return []
        radius = shell_radius(depth)
        hits = []
        for index in self.cover.indices:
            centers = layer.get(index)
            if centers and bool(np.any(self.metric.distances(point, centers) < radius)):
                hits.append(index)
        return hits

    def _first_hit(self, point: Point, through_depth: int) -> Optional[ShellKey]:
        for m in range(0, min(through_depth, self.max_depth) + 1):
            hits = self.indices_at(point, m)
            if hits:
                return (m, hits[0])
        return None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def admission(self, point: Point) -> Optional[ShellKey]:
        """Shell ``(n, i)`` that takes ``point`` as a center, or ``None``
        when a shallower shell already holds it."""
        depth = self.eligible_depth(point)
        if self._first_hit(point, depth - 1) is not None:
            return None
        return (depth, self.rank(point))

    def contains(self, key: ShellKey, point: Point) -> bool:
        depth, index = key
        centers = self._centers_at(depth, index)
        if not centers:
            return False
        return bool(np.any(self.metric.distances(point, centers) < shell_radius(depth)))

    def shell(self, key: ShellKey) -> Shell:
        depth, index = key
        return Shell(
            depth=depth,
            index=index,
            radius=shell_radius(depth),
            centers=tuple(self._centers_at(depth, index)),
        )

    def shells(self) -> List[Shell]:
        """Every non-empty shell, by depth then cover order."""
        self._build_through(self.max_depth)
        out: List[Shell] = []
        for depth in range(self.max_depth + 1):
            layer = self._centers.get(depth, {})
            for index in self.cover.indices:
                if layer.get(index):
                    out.append(self.shell((depth, index)))
        logger.info(
            "Refined %d points into %d shells (max depth %d)",
            len(self.points),
            len(out),
            self.max_depth,
        )
        return out

    def shell_membership(self, point: Point) -> ShellKey:
        """First shell, by depth then cover order, containing ``point``."""
        hit = self._first_hit(point, self.max_depth)
        if hit is None:
            raise NotCoveredError(f"Point {point!r} is not in any shell")
        return hit

    def shells_containing(self, point: Point) -> List[ShellKey]:
        keys: List[ShellKey] = []
        for m in range(self.max_depth + 1):
            keys.extend((m, index) for index in self.indices_at(point, m))
        return keys

    def points_within(self, point: Point, radius: float) -> List[Point]:
        """Space points in the open ball ``ball(point, radius)``."""
        if not self.points:
            return []
        dists = self.metric.distances(point, self.points)
        return [p for p, d in zip(self.points, dists) if d < radius]

    def local_finite_witness(self, point: Point, exhaustive: bool = False) -> LocalFiniteWitness:
        return certify_point(self, point, exhaustive=exhaustive)

    def neighbors_of(self, point: Point) -> Tuple[Neighborhood, List[ShellKey]]:
        witness = self.local_finite_witness(point)
        return witness.neighborhood, list(witness.pairs)

    def as_ball_family(self) -> BallFamily:
        """Every shell ball as one family keyed ``(depth, index, k)``."""
        centers: Dict[Hashable, Point] = {}
        radii: Dict[Hashable, float] = {}
        for shell in self.shells():
            for k, center in enumerate(shell.centers):
                centers[(shell.depth, shell.index, k)] = center
                radii[(shell.depth, shell.index, k)] = shell.radius
        return BallFamily(centers, radii, self.metric)
