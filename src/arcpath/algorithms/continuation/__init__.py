"""Multi-level adaptive arc-length continuation.

This module builds an equilibrium path level by level, halving the arc length
at every level and re-tracing only the segments whose error density exceeds
the tolerance.
"""

from .backends import _AdaptiveRefinementBackend, _ContinuationBackend
from .config import RefinementConfig
from .engine import _ContinuationEngine, _RefinementEngine
from .base import AdaptiveArcLength
from .interfaces import _ArcLengthRefinementInterface
from .options import RefinementOptions
from .assembler import PathAssembler
from .error import ErrorEstimator, estimate_error
from .scheduler import RefinementScheduler
from .store import ErrorRecords, LevelStore
from .types import (ContinuationPoint, ContinuationResult, PathEntry,
                    RefinementTask, _RefinementProblem)

__all__ = [
    # Backends
    "_ContinuationBackend",
    "_AdaptiveRefinementBackend",

    # Configs (compile-time structure)
    "RefinementConfig",

    # Options (runtime tuning)
    "RefinementOptions",

    # Interfaces & Engines
    "_ContinuationEngine",
    "_RefinementEngine",
    "_ArcLengthRefinementInterface",

    # Algorithm
    "PathAssembler",
    "ErrorEstimator",
    "estimate_error",
    "RefinementScheduler",
    "LevelStore",
    "ErrorRecords",

    # Types & Results
    "ContinuationPoint",
    "ContinuationResult",
    "PathEntry",
    "RefinementTask",
    "_RefinementProblem",
    "AdaptiveArcLength",
]
