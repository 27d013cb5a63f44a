"""Arc-length correctors.

The continuation driver only relies on
:class:`~arcpath.algorithms.corrector.protocols.ArcLengthCorrectorProtocol`;
:class:`~arcpath.algorithms.corrector.arclength.ArcLengthCorrector` is a
reference implementation on top of Jacobian and residual callbacks.
"""

from .arclength import ArcLengthCorrector
from .config import ArcLengthCorrectorConfig
from .protocols import ArcLengthCorrectorProtocol
from .types import JacobianFn, PointEvaluatorFn, ResidualFn

__all__ = [
    "ArcLengthCorrector",
    "ArcLengthCorrectorConfig",
    "ArcLengthCorrectorProtocol",
    "JacobianFn",
    "ResidualFn",
    "PointEvaluatorFn",
]
