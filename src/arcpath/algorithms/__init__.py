""" Public API for the :mod:`~arcpath.algorithms` package.
"""

from .continuation.base import AdaptiveArcLength
from .continuation.config import RefinementConfig
from .continuation.options import RefinementOptions
from .continuation.types import ContinuationPoint, ContinuationResult
from .corrector.arclength import ArcLengthCorrector
from .corrector.config import ArcLengthCorrectorConfig
from .corrector.protocols import ArcLengthCorrectorProtocol
from .types.exceptions import (ArcPathError, CancelledError,
                               ConvergenceError, PreconditionError)

__all__ = [
    "AdaptiveArcLength",
    "RefinementConfig",
    "RefinementOptions",
    "ContinuationPoint",
    "ContinuationResult",
    "ArcLengthCorrector",
    "ArcLengthCorrectorConfig",
    "ArcLengthCorrectorProtocol",
    "ArcPathError",
    "ConvergenceError",
    "PreconditionError",
    "CancelledError",
]
