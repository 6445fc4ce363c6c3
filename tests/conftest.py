"""
Shared fixtures for refinement and shrinking tests.
"""
import sys
from pathlib import Path

import pytest

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from shellcover import (
    BallRegion,
    Cover,
    EuclideanMetric,
    PolygonRegion,
    uniform_points,
)


@pytest.fixture
def euclid():
    return EuclideanMetric()


@pytest.fixture
def line_cover(euclid):
    """Two balls on the real line: s_0 = ball(0, 2), s_1 = ball(5, 3)."""
    return Cover({0: BallRegion(0.0, 2.0), 1: BallRegion(5.0, 3.0)}, euclid)


@pytest.fixture
def line_space():
    """Grid of step 1/8 over (-2, 8), skipping 2.0 which neither ball holds.

    Dyadic steps keep every distance exact in floating point.
    """
    return [x / 8 for x in range(-15, 64) if x != 16]


@pytest.fixture
def plane_cover(euclid):
    """Square, ball and L-shaped polygon covering [0, 4]^2."""
    square = PolygonRegion.from_coords(
        [(-0.5, -0.5), (2.5, -0.5), (2.5, 2.5), (-0.5, 2.5)]
    )
    ell = PolygonRegion.from_coords(
        [(1.5, -0.5), (4.5, -0.5), (4.5, 4.5), (-0.5, 4.5), (-0.5, 1.5), (1.5, 1.5)]
    )
    return Cover(
        {"square": square, "disc": BallRegion((3.0, 3.0), 2.0), "ell": ell},
        euclid,
    )


@pytest.fixture
def plane_space():
    """150 random points in [0, 4]^2 plus the corners of the box."""
    corners = [(0.0, 0.0), (4.0, 0.0), (0.0, 4.0), (4.0, 4.0)]
    return uniform_points([0.0, 0.0], [4.0, 4.0], 150, seed=3) + corners
