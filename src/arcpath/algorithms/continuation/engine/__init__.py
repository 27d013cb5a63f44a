from .base import _ContinuationEngine
from .engine import _RefinementEngine

__all__ = ["_ContinuationEngine", "_RefinementEngine"]
