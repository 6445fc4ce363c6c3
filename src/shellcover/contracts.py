"""Contracts for cover refinement and ball shrinking."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Hashable, Tuple

Point = Any
ShellKey = Tuple[int, Hashable]


class PreconditionViolation(ValueError):
    """Input does not satisfy an assumption the construction relies on."""
    pass


class NotCoveredError(PreconditionViolation):
    """A point lies outside every member of a cover or ball family."""
    pass


class NotOpenError(PreconditionViolation):
    """A region reports a point as contained but with no room around it."""
    pass


class NonPositiveRadiusError(PreconditionViolation):
    """A radius is zero or negative where a positive one is required."""
    pass


class DepthLimitError(PreconditionViolation):
    """A point needs a shell depth beyond the configured limit."""
    pass


@dataclass(frozen=True)
class RefineConfig:
    """Configuration for shell refinement."""

    max_depth: int = 64  # 3 * 2**-64 ~ 1.6e-19
    check_cover: bool = True

    def __post_init__(self) -> None:
        if self.max_depth < 0:
            raise ValueError("RefineConfig.max_depth must be >= 0")


@dataclass(frozen=True)
class ShrinkConfig:
    """Configuration for radius shrinking."""

    # New radius sits this fraction of the way from the witness radius
    # up to the old radius.
    fraction: float = 0.5
    require_positive: bool = True

    def __post_init__(self) -> None:
        if not 0.0 < self.fraction < 1.0:
            raise ValueError(
                f"ShrinkConfig.fraction must be in (0, 1), got {self.fraction}"
            )


@dataclass(frozen=True)
class Shell:
    """One member ``D(depth, index)`` of a refined cover.

    The shell is the union of open balls of ``radius`` around ``centers``.
    """

    depth: int
    index: Hashable
    radius: float
    centers: Tuple[Point, ...] = ()

    @property
    def key(self) -> ShellKey:
        return (self.depth, self.index)

    @property
    def is_empty(self) -> bool:
        return not self.centers


@dataclass(frozen=True)
class Neighborhood:
    """Open ball ``ball(center, radius)`` around a certified point."""

    center: Point
    radius: float


@dataclass(frozen=True)
class LocalFiniteWitness:
    """Certificate that only finitely many shells meet a neighborhood.

    ``depth``/``index`` name the shell holding the point, ``k`` is chosen so
    that ``ball(point, 2**-k)`` lies inside that shell, and ``pairs`` lists
    every shell meeting ``neighborhood``.
    """

    point: Point
    depth: int
    index: Hashable
    k: int
    neighborhood: Neighborhood
    pairs: Tuple[ShellKey, ...] = ()

    @property
    def bound(self) -> int:
        return self.depth + self.k + 1

    @property
    def within_bound(self) -> bool:
        if len(self.pairs) > self.bound:
            return False
        seen_depths: Dict[int, Hashable] = {}
        for depth, index in self.pairs:
            if depth > self.depth + self.k:
                return False
            if depth in seen_depths and seen_depths[depth] != index:
                return False
            seen_depths[depth] = index
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "depth": int(self.depth),
            "index": self.index,
            "k": int(self.k),
            "radius": float(self.neighborhood.radius),
            "bound": self.bound,
            "pairs": [list(p) for p in self.pairs],
        }

