import math

import pytest

from limitgraph.core.rd_computation import FGWConfig, RDComputation

SOURCE_FEATURES = [1.0, 2.0, 3.0]
TARGET_FEATURES = [1.1, 2.1, 3.1]
SOURCE_STRUCTURE = [[0.0, 1.0], [1.0, 0.0]]
TARGET_STRUCTURE = [[0.0, 1.1], [1.1, 0.0]]


def test_fgw_distortion_positive():
    rd = RDComputation(FGWConfig())
    distortion = rd.compute_fgw_distortion(
        SOURCE_FEATURES, TARGET_FEATURES, SOURCE_STRUCTURE, TARGET_STRUCTURE
    )
    assert distortion > 0.0
    assert distortion == pytest.approx(0.5 * math.sqrt(0.03) + 0.5 * math.sqrt(0.005))


def test_fgw_distortion_identical_inputs_is_zero():
    rd = RDComputation()
    assert rd.compute_fgw_distortion(
        SOURCE_FEATURES, SOURCE_FEATURES, SOURCE_STRUCTURE, SOURCE_STRUCTURE
    ) == 0.0


def test_alpha_one_uses_features_only():
    rd = RDComputation(FGWConfig(alpha=1.0))
    d = rd.compute_fgw_distortion([0.0, 0.0], [3.0, 4.0], [[0.0]], [[9.0]])
    assert d == pytest.approx(5.0)


def test_rate_computation():
    rd = RDComputation(FGWConfig())
    rate = rd.compute_rate(0.5, 1.0)
    assert rate > 0.0
    assert rate == pytest.approx(0.5)


def test_rate_zero_when_distortion_exceeds_variance():
    rd = RDComputation()
    assert rd.compute_rate(2.0, 2.0) == 0.0
    assert rd.compute_rate(3.0, 2.0) == 0.0


def test_knee_detection():
    rd = RDComputation(FGWConfig())
    rd.add_refinement_point(1.0, 2.0)
    rd.add_refinement_point(0.5, 2.0)
    rd.add_refinement_point(0.25, 2.0)
    rd.add_refinement_point(0.1, 2.0)
    knee = rd.find_knee_point()
    assert knee is not None
    assert knee in rd.series.points


def test_knee_none_with_few_points():
    rd = RDComputation()
    rd.add_refinement_point(1.0, 2.0)
    rd.add_refinement_point(0.5, 2.0)
    assert rd.find_knee_point() is None


def test_rd_curve_from_demo_steps():
    rd = RDComputation()
    steps = [(1.0, 2.0), (0.8, 2.0), (0.5, 2.0), (0.3, 2.0), (0.1, 2.0)]
    series = rd.compute_rd_curve(steps)
    assert [p.difficulty for p in series.points] == [1.0, 0.8, 0.5, 0.3, 0.1]
    rates = [p.reward for p in series.points]
    assert rates == sorted(rates)
    assert rates[0] == pytest.approx(0.5)


def test_distortion_reduction_is_never_negative():
    rd = RDComputation()
    reduction = rd.compute_distortion_reduction(
        SOURCE_FEATURES, TARGET_FEATURES, SOURCE_STRUCTURE, TARGET_STRUCTURE
    )
    assert reduction == 0.0


def test_estimate_variance():
    rd = RDComputation()
    assert rd.estimate_variance([]) == 0.0
    assert rd.estimate_variance([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]) == pytest.approx(4.0)