"""
Radius shrinking for point-finite ball families.

Given balls ``ball(c_j, r_j)`` covering a sampled target, produce radii
``0 < r'_j < r_j`` around the same centers that still cover it.

Two steps:

1. Witness assignment. Each sample point goes to the ball where it sits
   deepest (largest ``r_j - d(c_j, s)``). The margin has to beat the sample
   spacing ``h`` or the true target near that sample cannot be vouched for.
   Ball ``j``'s closed witness set is the union of ``closedBall(s, h)`` over
   its samples.
2. Metric step. The witness set sits inside ``closedBall(c_j, w_j)`` with
   ``w_j = max d(c_j, s) + h < r_j``; any radius strictly between ``w_j`` and
   ``r_j`` still holds it.

Shrunk balls are subsets of the originals, so multiplicity (point-finiteness
and local finiteness) can only go down.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Hashable, List, Optional

import numpy as np

from shellcover.contracts import (
    NonPositiveRadiusError,
    NotCoveredError,
    Point,
    ShrinkConfig,
)
from shellcover.families import BallFamily, SampledTarget

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShrunkFamily:
    """Shrunk balls plus the witness data behind each new radius."""

    family: BallFamily
    original_radii: Dict[Hashable, float]
    witness_radii: Dict[Hashable, float] = field(default_factory=dict)
    witness_counts: Dict[Hashable, int] = field(default_factory=dict)

    @property
    def radii(self) -> Dict[Hashable, float]:
        return self.family.radii

    def unused(self) -> List[Hashable]:
        """Indices no target sample was assigned to."""
        return [k for k, n in self.witness_counts.items() if n == 0]


def assign_witnesses(
    family: BallFamily, target: SampledTarget,
) -> Dict[Hashable, List[Point]]:
    """Assign each target sample to the ball it sits deepest in.

    Ties go to the ball that comes first in the family. Raises
    ``NotCoveredError`` when a sample's best margin does not exceed the
    target spacing.
    """
    assigned: Dict[Hashable, List[Point]] = {k: [] for k in family.keys}
    if not family.keys:
        if target.points:
            raise NotCoveredError("Empty ball family cannot cover a non-empty target")
        return assigned
    for point in target.points:
        margins = family.margins(point)
        best = int(np.argmax(margins))
        if not margins[best] > target.spacing:
            raise NotCoveredError(
                f"Sample {point!r} has margin {margins[best]:.3g}, "
                f"needs more than spacing {target.spacing:.3g}"
            )
        assigned[family.keys[best]].append(point)
    return assigned


def witness_radius(
    family: BallFamily, key: Hashable, witnesses: List[Point], spacing: float,
) -> float:
    """Supremum distance from center ``key`` to its closed witness set."""
    if not witnesses:
        return 0.0
    dists = family.metric.distances(family.center(key), witnesses)
    return float(np.max(dists)) + spacing


def _between(low: float, high: float, fraction: float) -> float:
    """A value strictly inside ``(low, high)``."""
    if math.isinf(high):
        return 2.0 * low + 1.0
    value = low + fraction * (high - low)
    if not value < high:
        value = math.nextafter(high, low)
    if not value > low:
        value = math.nextafter(low, high)
    return value


def shrink(
    family: BallFamily,
    target: SampledTarget,
    config: Optional[ShrinkConfig] = None,
) -> ShrunkFamily:
    """Shrink every radius strictly while keeping ``target`` covered."""
    config = config or ShrinkConfig()
    radii = family.radii

    degenerate = [k for k, r in radii.items() if r <= 0.0]
    if degenerate and config.require_positive:
        raise NonPositiveRadiusError(
            f"{len(degenerate)} ball(s) with non-positive radius, first: {degenerate[0]!r}"
        )

    assigned = assign_witnesses(family, target)

    new_radii: Dict[Hashable, float] = {}
    witness_radii: Dict[Hashable, float] = {}
    for key in family.keys:
        r = radii[key]
        if r <= 0.0:
            # Empty ball: nothing to shrink.
            logger.warning("Ball %r has zero radius; left as is", key)
            new_radii[key] = 0.0
            witness_radii[key] = 0.0
            continue
        w = witness_radius(family, key, assigned[key], target.spacing)
        witness_radii[key] = w
        if assigned[key]:
            new_radii[key] = _between(w, r, config.fraction)
        elif math.isinf(r):
            new_radii[key] = 1.0
        else:
            new_radii[key] = config.fraction * r

    result = ShrunkFamily(
        family=family.with_radii(new_radii),
        original_radii=radii,
        witness_radii=witness_radii,
        witness_counts={k: len(v) for k, v in assigned.items()},
    )
    logger.info(
        "Shrunk %d balls over %d target samples (%d unused)",
        len(family),
        len(target),
        len(result.unused()),
    )
    return result
