"""Rate-distortion computation with a fused Gromov-Wasserstein style distortion."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace

from limitgraph.core.types import RDPoint, RDSeries

Point2 = tuple[float, float]


@dataclass
class FGWConfig:
    alpha: float = 0.5
    epsilon: float = 0.01
    max_iter: int = 100
    tol: float = 1e-6


def _cell(matrix: Sequence[Sequence[float]], i: int, j: int) -> float:
    try:
        return matrix[i][j]
    except IndexError:
        return 0.0


def _menger_curvature(p1: Point2, p2: Point2, p3: Point2) -> float:
    area = 0.5 * abs(
        (p2[0] - p1[0]) * (p3[1] - p1[1]) - (p3[0] - p1[0]) * (p2[1] - p1[1])
    )
    d12 = math.dist(p1, p2)
    d23 = math.dist(p2, p3)
    d31 = math.dist(p3, p1)
    denominator = d12 * d23 * d31
    if denominator == 0.0:
        return 0.0
    return 4.0 * area / denominator


class RDComputation:
    """Accumulates an RD series from refinement steps and analyses it."""

    def __init__(self, config: FGWConfig | None = None) -> None:
        self.config = config if config is not None else FGWConfig()
        self.series = RDSeries()

    def compute_fgw_distortion(
        self,
        source_features: Sequence[float],
        target_features: Sequence[float],
        source_structure: Sequence[Sequence[float]],
        target_structure: Sequence[Sequence[float]],
    ) -> float:
        """Blend feature and structure distances by ``alpha``."""
        feature_dist = self._feature_distance(source_features, target_features)
        structure_dist = self._structure_distance(source_structure, target_structure)
        alpha = self.config.alpha
        return alpha * feature_dist + (1.0 - alpha) * structure_dist

    @staticmethod
    def _feature_distance(source: Sequence[float], target: Sequence[float]) -> float:
        return math.sqrt(sum((s - t) ** 2 for s, t in zip(source, target)))

    @staticmethod
    def _structure_distance(
        source: Sequence[Sequence[float]], target: Sequence[Sequence[float]]
    ) -> float:
        n = min(len(source), len(target))
        if n == 0:
            return math.nan
        total = sum(
            (_cell(source, i, j) - _cell(target, i, j)) ** 2
            for i in range(n)
            for j in range(n)
        )
        return math.sqrt(total / (n * n))

    def compute_rate(self, distortion: float, variance: float) -> float:
        """Shannon rate in bits for a Gaussian source at the given distortion."""
        if distortion >= variance:
            return 0.0
        if distortion == 0.0:
            return math.inf
        ratio = variance / distortion
        if ratio < 0.0:
            return math.nan
        if ratio == 0.0:
            return -math.inf
        return 0.5 * math.log2(ratio)

    def add_refinement_point(self, distortion: float, variance: float) -> None:
        rate = self.compute_rate(distortion, variance)
        self.series.add(RDPoint(reward=rate, difficulty=distortion))

    def compute_rd_curve(
        self, refinement_steps: Iterable[tuple[float, float]]
    ) -> RDSeries:
        """Add each ``(distortion, variance)`` step and return the series."""
        for distortion, variance in refinement_steps:
            self.add_refinement_point(distortion, variance)
        return self.series

    def find_knee_point(self) -> RDPoint | None:
        """Point of maximum Menger curvature, or None for fewer than three points."""
        points = self.series.points
        if len(points) < 3:
            return None
        max_curvature = 0.0
        knee_index = 0
        for i in range(1, len(points) - 1):
            curvature = _menger_curvature(
                *((p.difficulty, p.reward) for p in points[i - 1 : i + 2])
            )
            if curvature > max_curvature:
                max_curvature = curvature
                knee_index = i
        return replace(points[knee_index])

    def compute_distortion_reduction(
        self,
        original_features: Sequence[float],
        refined_features: Sequence[float],
        original_structure: Sequence[Sequence[float]],
        refined_structure: Sequence[Sequence[float]],
    ) -> float:
        original = self.compute_fgw_distortion(
            original_features, original_features, original_structure, original_structure
        )
        refined = self.compute_fgw_distortion(
            original_features, refined_features, original_structure, refined_structure
        )
        reduction = original - refined
        return reduction if reduction > 0.0 else 0.0

    def estimate_variance(self, data: Sequence[float]) -> float:
        """Population variance; zero for empty data."""
        if not data:
            return 0.0
        mean = math.fsum(data) / len(data)
        return math.fsum((x - mean) ** 2 for x in data) / len(data)