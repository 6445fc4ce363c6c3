"""Locally finite refinements of metric covers and ball-family shrinking."""

from shellcover.certify import certify_point, certify_space
from shellcover.contracts import (
    DepthLimitError,
    LocalFiniteWitness,
    Neighborhood,
    NonPositiveRadiusError,
    NotCoveredError,
    NotOpenError,
    PreconditionViolation,
    RefineConfig,
    Shell,
    ShrinkConfig,
)
from shellcover.cover import Cover
from shellcover.families import BallFamily, SampledTarget
from shellcover.metrics import CallableMetric, DiscreteMetric, EuclideanMetric, Metric
from shellcover.regions import (
    BallRegion,
    IntervalRegion,
    PolygonRegion,
    Region,
    UnionRegion,
    WholeSpace,
)
from shellcover.sampling import sample_box, sample_interval, uniform_points
from shellcover.shells import ShellRefinement
from shellcover.shrink import ShrunkFamily, shrink

__all__ = [
    "BallFamily",
    "BallRegion",
    "CallableMetric",
    "Cover",
    "DepthLimitError",
    "DiscreteMetric",
    "EuclideanMetric",
    "IntervalRegion",
    "LocalFiniteWitness",
    "Metric",
    "Neighborhood",
    "NonPositiveRadiusError",
    "NotCoveredError",
    "NotOpenError",
    "PolygonRegion",
    "PreconditionViolation",
    "RefineConfig",
    "Region",
    "SampledTarget",
    "Shell",
    "ShellRefinement",
    "ShrinkConfig",
    "ShrunkFamily",
    "UnionRegion",
    "WholeSpace",
    "certify_point",
    "certify_space",
    "sample_box",
    "sample_interval",
    "shrink",
    "uniform_points",
]
