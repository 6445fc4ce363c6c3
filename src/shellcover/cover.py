"""Open covers with a caller-supplied priority order, and rank assignment."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Hashable, Iterable, List, Mapping, Optional, Tuple

from shellcover.contracts import NotCoveredError, Point
from shellcover.metrics import Metric
from shellcover.regions import Region

logger = logging.getLogger(__name__)


class Cover:
    """An indexed family of open regions with a total order on the indices.

    The order decides ranks: the rank of a point is the first index, in
    order, whose region contains it. Without ``order`` the mapping's
    insertion order is used; with it, indices are sorted by ``order(index)``.
    """

    def __init__(
        self,
        members: Mapping[Hashable, Region],
        metric: Metric,
        order: Optional[Callable[[Hashable], Any]] = None,
    ) -> None:
        if not members:
            raise ValueError("Cover needs at least one member")
        indices = list(members.keys())
        if order is not None:
            indices = sorted(indices, key=order)
        self._indices: Tuple[Hashable, ...] = tuple(indices)
        self._members: Dict[Hashable, Region] = {i: members[i] for i in indices}
        self._position: Dict[Hashable, int] = {i: n for n, i in enumerate(indices)}
        self.metric = metric

    @property
    def indices(self) -> Tuple[Hashable, ...]:
        """Indices in priority order."""
        return self._indices

    def __len__(self) -> int:
        return len(self._indices)

    def __getitem__(self, index: Hashable) -> Region:
        return self._members[index]

    def position(self, index: Hashable) -> int:
        """Place of ``index`` in the priority order."""
        return self._position[index]

    def rank(self, point: Point) -> Hashable:
        """First index, in priority order, whose region contains ``point``."""
        for index in self._indices:
            if self._members[index].contains(point, self.metric):
                return index
        raise NotCoveredError(f"Point {point!r} is not in any cover member")

    def members_containing(self, point: Point) -> List[Hashable]:
        return [i for i in self._indices if self._members[i].contains(point, self.metric)]

    def check_covers(self, points: Iterable[Point]) -> None:
        """Raise ``NotCoveredError`` for the first point outside every member."""
        missing = 0
        checked = 0
        first: Optional[Point] = None
        for point in points:
            checked += 1
            if not any(r.contains(point, self.metric) for r in self._members.values()):
                missing += 1
                if first is None:
                    first = point
        if missing:
            raise NotCoveredError(
                f"{missing} point(s) not covered, first: {first!r}"
            )
        logger.debug("Cover of %d members covers all %d points", len(self), checked)


class RankCache:
    """Per-point memo of ``Cover.rank`` keyed by the metric's point key.

    Lives as long as the owner (one refinement); nothing is shared across
    refinements.
    """

    def __init__(self, cover: Cover) -> None:
        self.cover = cover
        self._ranks: Dict[Hashable, Hashable] = {}

    def rank(self, point: Point) -> Hashable:
        key = self.cover.metric.key(point)
        if key in self._ranks:
            return self._ranks[key]
        index = self.cover.rank(point)
        self._ranks[key] = index
        return index
