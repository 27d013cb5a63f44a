"""
Abstract base class for continuation engines.
"""

from arcpath.algorithms.types.core import _ArcPathBaseEngine


class _ContinuationEngine(_ArcPathBaseEngine):
    """Shared base class for continuation engines."""
