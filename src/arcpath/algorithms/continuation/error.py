"""Discrepancy between a coarse point and its fine re-trace."""

import numpy as np

from arcpath.algorithms.continuation.types import ContinuationPoint


def estimate_error(
    coarse: ContinuationPoint,
    fine: ContinuationPoint,
    reference_force_norm: float,
    arc_length: float,
) -> float:
    r"""Return the error density between ``coarse`` and ``fine``.

    .. math::

        e = \frac{|\lambda_c - \lambda_f| \, \|F\| + \|U_c - U_f\|}{\Delta l}

    Parameters
    ----------
    coarse : ContinuationPoint
        Point predicted by the coarse level.
    fine : ContinuationPoint
        End point of the fine re-trace of the same segment.
    reference_force_norm : float
        Norm of the reference load vector at lambda = 1. Scales the load
        mismatch into displacement-like units.
    arc_length : float
        Arc length used by the fine re-trace.

    Returns
    -------
    float
        The error density.

    Raises
    ------
    ValueError
        If ``arc_length`` is not positive or the state dimensions differ.
    """
    if not arc_length > 0.0:
        raise ValueError(f"arc_length must be positive, got {arc_length}")
    if coarse.state.shape != fine.state.shape:
        raise ValueError(
            f"State dimensions differ: {coarse.state.shape} vs {fine.state.shape}"
        )
    load_term = abs(coarse.load - fine.load) * reference_force_norm
    state_term = float(np.linalg.norm(coarse.state - fine.state))
    return (load_term + state_term) / arc_length


class ErrorEstimator:
    """Bind :func:`estimate_error` to a reference force norm and a tolerance.

    Parameters
    ----------
    reference_force_norm : float
        Norm of the reference load vector at lambda = 1.
    ptol : float
        Tolerance above which a segment is marked for refinement.
    """

    def __init__(self, reference_force_norm: float, ptol: float) -> None:
        if reference_force_norm < 0.0:
            raise ValueError("reference_force_norm must be non-negative")
        self.reference_force_norm = float(reference_force_norm)
        self.ptol = float(ptol)

    def estimate(self, coarse: ContinuationPoint, fine: ContinuationPoint, arc_length: float) -> float:
        return estimate_error(coarse, fine, self.reference_force_norm, arc_length)

    def exceeds(self, error: float) -> bool:
        return error > self.ptol

    def __repr__(self) -> str:
        return f"ErrorEstimator(reference_force_norm={self.reference_force_norm:.6g}, ptol={self.ptol:.3g})"
