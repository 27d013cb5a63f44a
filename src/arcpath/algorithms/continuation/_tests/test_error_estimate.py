import numpy as np
import pytest

from arcpath.algorithms.continuation.error import ErrorEstimator, estimate_error
from arcpath.algorithms.continuation.types import ContinuationPoint


def test_error_formula_is_exact():
    coarse = ContinuationPoint(np.array([1.0, 0.2]), 0.6)
    fine = ContinuationPoint(np.array([1.0, 0.0]), 0.5)

    # (|0.1| * 10 + |0.2|) / 0.05
    err = estimate_error(coarse, fine, reference_force_norm=10.0, arc_length=0.05)
    assert err == pytest.approx((0.1 * 10.0 + 0.2) / 0.05)
    assert err == pytest.approx(24.0)


def test_identical_points_have_zero_error():
    pt = ContinuationPoint(np.array([0.3, -0.4]), 1.25)
    assert estimate_error(pt, pt, 3.0, 0.125) == 0.0


def test_error_scales_with_inverse_arc_length():
    coarse = ContinuationPoint(np.array([0.0, 1.0]), 0.0)
    fine = ContinuationPoint(np.zeros(2), 0.0)
    assert estimate_error(coarse, fine, 1.0, 0.5) == pytest.approx(2 * estimate_error(coarse, fine, 1.0, 1.0))


def test_estimator_threshold_is_strict():
    estimator = ErrorEstimator(reference_force_norm=1.0, ptol=0.05)
    assert not estimator.exceeds(0.05)
    assert estimator.exceeds(0.0500001)
    assert not estimator.exceeds(0.0)


@pytest.mark.parametrize("arc_length", [0.0, -0.5])
def test_non_positive_arc_length_rejected(arc_length):
    pt = ContinuationPoint(np.zeros(2), 0.0)
    with pytest.raises(ValueError):
        estimate_error(pt, pt, 1.0, arc_length)


def test_dimension_mismatch_rejected():
    with pytest.raises(ValueError):
        estimate_error(ContinuationPoint(np.zeros(2), 0.0), ContinuationPoint(np.zeros(3), 0.0), 1.0, 0.5)
