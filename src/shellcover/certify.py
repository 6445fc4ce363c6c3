"""
Local-finiteness certificates for shell refinements.

For a point ``x`` held by shell ``D(n, i)``, pick ``k`` so that
``ball(x, 2**-k)`` lies inside ``D(n, i)`` and use
``B = ball(x, 2**-(n + k + 1))`` as the neighborhood. Then:

- no shell deeper than ``n + k`` meets ``B``: a center ``w`` of such a shell
  would sit within ``2**-k`` of ``x``, inside ``D(n, i)``, and so could not
  have been admitted;
- at each depth ``m <= n + k`` at most one index meets ``B``: two centers at
  depth ``m`` whose shells meet ``B`` are closer than ``3 * 2**-m``, so each
  lies in the other's cover member and their ranks agree.

So at most ``n + k + 1`` shells meet ``B``.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, List, Set

import numpy as np

from shellcover.contracts import LocalFiniteWitness, Neighborhood, Point, ShellKey

if TYPE_CHECKING:
    from shellcover.shells import ShellRefinement

logger = logging.getLogger(__name__)


def inner_depth(slack: float) -> int:
    """Smallest ``k >= 0`` with ``2**-k <= slack``."""
    if slack >= 1.0:
        return 0
    k = max(0, math.ceil(-math.log2(slack)))
    while k > 0 and math.ldexp(1.0, -(k - 1)) <= slack:
        k -= 1
    while math.ldexp(1.0, -k) > slack:
        k += 1
    return k


def certify_point(
    refinement: "ShellRefinement",
    point: Point,
    exhaustive: bool = False,
) -> LocalFiniteWitness:
    """Build the neighborhood and interference list for ``point``.

    Intersections are taken within the finite space: a shell counts when it
    holds ``point`` or a space point inside the neighborhood. For a query
    point outside the space, a shell meeting the neighborhood only at
    ambient points is not reported.

    By default only depths up to ``n + k`` are scanned; ``exhaustive=True``
    scans every built depth to confirm the deeper ones stay clear.
    """
    depth, index = refinement.shell_membership(point)
    shell = refinement.shell((depth, index))
    dists = refinement.metric.distances(point, list(shell.centers))
    inside = dists[dists < shell.radius]
    slack = float(np.max(shell.radius - inside))
    k = inner_depth(slack)

    radius = math.ldexp(1.0, -(depth + k + 1))
    neighborhood = Neighborhood(center=point, radius=radius)

    probes = [point] + refinement.points_within(point, radius)
    last = refinement.max_depth if exhaustive else depth + k
    last = min(last, refinement.max_depth)

    found: Set[ShellKey] = set()
    for m in range(last + 1):
        for probe in probes:
            for j in refinement.indices_at(probe, m):
                found.add((m, j))

    cover = refinement.cover
    pairs = tuple(sorted(found, key=lambda p: (p[0], cover.position(p[1]))))
    witness = LocalFiniteWitness(
        point=point,
        depth=depth,
        index=index,
        k=k,
        neighborhood=neighborhood,
        pairs=pairs,
    )
    if not witness.within_bound:
        logger.warning(
            "Local finiteness bound exceeded at %r: %d pairs, bound %d",
            point,
            len(pairs),
            witness.bound,
        )
    else:
        logger.debug(
            "Certified %r: shell (%d, %r), k=%d, %d of %d pairs",
            point,
            depth,
            index,
            k,
            len(pairs),
            witness.bound,
        )
    return witness


def certify_space(
    refinement: "ShellRefinement", exhaustive: bool = False,
) -> List[LocalFiniteWitness]:
    """Certify every point of the refinement's space."""
    witnesses = [certify_point(refinement, p, exhaustive=exhaustive) for p in refinement.points]
    failures = sum(1 for w in witnesses if not w.within_bound)
    logger.info(
        "Certified %d points, %d over bound, largest interference %d",
        len(witnesses),
        failures,
        max((len(w.pairs) for w in witnesses), default=0),
    )
    return witnesses

