from .base import _ContinuationBackend
from .refinement import _AdaptiveRefinementBackend

__all__ = ["_ContinuationBackend", "_AdaptiveRefinementBackend"]
