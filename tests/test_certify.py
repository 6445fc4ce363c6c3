"""Tests for local-finiteness certificates."""
import math

import pytest

from shellcover import (
    BallRegion,
    CallableMetric,
    Cover,
    DiscreteMetric,
    NotCoveredError,
    ShellRefinement,
    WholeSpace,
    certify_point,
    certify_space,
)
from shellcover.certify import inner_depth


class TestInnerDepth:
    def test_values(self):
        assert inner_depth(1.0) == 0
        assert inner_depth(2.0) == 0
        assert inner_depth(0.5) == 1
        assert inner_depth(0.3) == 2
        assert inner_depth(0.25) == 2

    def test_minimality(self):
        for slack in [0.9, 0.4, 0.1, 0.013, 1e-6]:
            k = inner_depth(slack)
            assert math.ldexp(1.0, -k) <= slack
            if k > 0:
                assert math.ldexp(1.0, -(k - 1)) > slack


class TestLineCertificates:
    def test_origin_witness(self, line_cover, line_space):
        refinement = ShellRefinement(line_cover, line_space)
        witness = refinement.local_finite_witness(0.0)
        # 0.0 is its own center in D(1, 0), so slack = 2**-1 and k = 1.
        assert (witness.depth, witness.index) == (1, 0)
        assert witness.k == 1
        assert witness.neighborhood.radius == pytest.approx(0.125)
        assert witness.pairs == ((1, 0),)
        assert witness.within_bound

    def test_neighbors_of(self, line_cover, line_space):
        refinement = ShellRefinement(line_cover, line_space)
        neighborhood, pairs = refinement.neighbors_of(5.0)
        assert neighborhood.center == 5.0
        assert neighborhood.radius == pytest.approx(0.5)
        assert pairs == [(0, 1)]

    def test_whole_line_within_bound(self, line_cover, line_space):
        refinement = ShellRefinement(line_cover, line_space)
        witnesses = certify_space(refinement, exhaustive=True)
        assert len(witnesses) == len(line_space)
        for w in witnesses:
            assert w.within_bound
            assert len(w.pairs) <= w.depth + w.k + 1
            assert (w.depth, w.index) in w.pairs


class TestPlaneCertificates:
    """Bound holds at every point of a random planar sample."""

    @pytest.fixture
    def refinement(self, plane_cover, plane_space):
        return ShellRefinement(plane_cover, plane_space)

    def test_every_point_within_bound(self, refinement):
        for w in certify_space(refinement, exhaustive=True):
            assert w.within_bound, w.to_dict()

    def test_deep_shells_stay_clear(self, refinement):
        for p in refinement.points[:40]:
            w = certify_point(refinement, p, exhaustive=True)
            assert all(depth <= w.depth + w.k for depth, _ in w.pairs)

    def test_one_index_per_depth(self, refinement):
        for p in refinement.points[:40]:
            w = refinement.local_finite_witness(p)
            depths = [depth for depth, _ in w.pairs]
            assert len(depths) == len(set(depths))

    def test_neighborhood_inside_holding_shell(self, refinement):
        for p in refinement.points[:40]:
            w = refinement.local_finite_witness(p)
            inner = math.ldexp(1.0, -w.k)
            for q in refinement.points_within(p, inner):
                assert refinement.contains((w.depth, w.index), q)

    def test_default_scan_matches_exhaustive(self, refinement):
        for p in refinement.points[:40]:
            quick = certify_point(refinement, p)
            full = certify_point(refinement, p, exhaustive=True)
            assert quick.pairs == full.pairs

    def test_witness_to_dict(self, refinement):
        payload = refinement.local_finite_witness(refinement.points[0]).to_dict()
        assert set(payload) == {"depth", "index", "k", "radius", "bound", "pairs"}
        assert payload["bound"] == payload["depth"] + payload["k"] + 1


class TestDegenerateCertificates:
    def test_single_point(self, euclid):
        cover = Cover({"all": WholeSpace()}, euclid)
        refinement = ShellRefinement(cover, [(1.0, 1.0)])
        w = refinement.local_finite_witness((1.0, 1.0))
        assert (w.depth, w.k) == (0, 0)
        assert w.neighborhood.radius == 0.5
        assert w.pairs == ((0, "all"),)

    def test_discrete_metric(self):
        metric = DiscreteMetric()
        cover = Cover({p: BallRegion(p, 0.5) for p in "abc"}, metric)
        refinement = ShellRefinement(cover, list("abc"))
        w = refinement.local_finite_witness("b")
        assert (w.depth, w.index, w.k) == (3, "b", 3)
        assert w.pairs == ((3, "b"),)

    def test_extended_metric_isolates_components(self):
        def dist(a, b):
            if a[0] != b[0]:
                return math.inf
            return abs(a[1] - b[1])

        metric = CallableMetric(dist, extended=True)
        cover = Cover(
            {"left": BallRegion(("L", 0.0), math.inf), "right": BallRegion(("R", 0.0), math.inf)},
            metric,
        )
        space = [("L", float(x)) for x in range(5)] + [("R", float(x)) for x in range(5)]
        refinement = ShellRefinement(cover, space)
        w = refinement.local_finite_witness(("R", 2.0))
        assert w.pairs == ((0, "right"),)

    def test_uncovered_point(self, line_cover, line_space):
        refinement = ShellRefinement(line_cover, line_space)
        with pytest.raises(NotCoveredError):
            refinement.local_finite_witness(50.0)
