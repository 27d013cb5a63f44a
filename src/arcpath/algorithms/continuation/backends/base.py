"""Abstract base class for continuation backends."""

from abc import abstractmethod

from arcpath.algorithms.continuation.types import ContinuationResult
from arcpath.algorithms.types.core import _ArcPathBaseBackend


class _ContinuationBackend(_ArcPathBaseBackend[ContinuationResult]):
    """Shared base class for continuation backends."""

    @abstractmethod
    def run(self, **kwargs) -> ContinuationResult:
        """Run the continuation and return its result."""
        ...
