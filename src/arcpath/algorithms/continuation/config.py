"""Provide configuration classes for adaptive continuation (compile-time structure).

This module provides the configuration that defines the refinement algorithm
structure. It should be set once when creating a pipeline.

For runtime tuning parameters (arc length, step count, logging), see options.py.
"""

from dataclasses import dataclass
from typing import Optional

from arcpath.algorithms.types.core import _ArcPathBaseConfig


@dataclass(frozen=True)
class RefinementConfig(_ArcPathBaseConfig):
    """Structure of the multi-level refinement algorithm.

    Parameters
    ----------
    ptol : float, default=0.05
        Tolerance on the error density above which a segment is refined.
    max_level : int, default=2
        Deepest level built uniformly from the level above.
    bridge_steps : int, default=2
        Corrector steps per bridge. Two steps of half the arc length span one
        step of the parent level, so this is fixed at 2.
    recursive : bool, default=False
        Whether a refined segment that is still above tolerance enqueues
        deeper refinement of itself.
    max_refinement_level : int or None, default=None
        Deepest level recursive refinement may target. Required when
        ``recursive`` is set.
    max_tasks : int or None, default=None
        Budget on the number of refinement tasks processed per run.

    Examples
    --------
    >>> config = RefinementConfig(ptol=0.05, max_level=2)
    >>> deeper = config.merge(recursive=True, max_refinement_level=5)
    """

    ptol: float = 0.05
    max_level: int = 2
    bridge_steps: int = 2
    recursive: bool = False
    max_refinement_level: Optional[int] = None
    max_tasks: Optional[int] = None

    def _validate(self) -> None:
        """Validate the configuration."""
        if self.ptol <= 0.0:
            raise ValueError("ptol must be positive")
        if self.max_level < 0:
            raise ValueError("max_level must be non-negative")
        if self.bridge_steps != 2:
            raise ValueError(
                f"bridge_steps must be 2 (two half-length steps per parent step), got {self.bridge_steps}"
            )
        if self.recursive and self.max_refinement_level is None:
            raise ValueError("recursive refinement requires max_refinement_level")
        if self.max_refinement_level is not None and self.max_refinement_level <= self.max_level:
            raise ValueError("max_refinement_level must exceed max_level")
        if self.max_tasks is not None and self.max_tasks < 0:
            raise ValueError("max_tasks must be non-negative")
