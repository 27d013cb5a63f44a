"""Public API for the :mod:`arcpath` package.

This module re-exports the most frequently used classes so that users can
simply write::

>>> from arcpath import AdaptiveArcLength, ArcLengthCorrector, RefinementConfig
"""

from .algorithms import (AdaptiveArcLength, ArcLengthCorrector,
                         ArcLengthCorrectorConfig, ArcLengthCorrectorProtocol,
                         ArcPathError, CancelledError, ContinuationPoint,
                         ContinuationResult, ConvergenceError,
                         PreconditionError, RefinementConfig,
                         RefinementOptions)
from .utils.plots import plot_solution_path, plot_solutions_per_level

__version__ = "0.1.0"

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
    "plot_solutions_per_level",
    "plot_solution_path",
]
