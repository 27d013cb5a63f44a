"""Runtime options for adaptive continuation.

These classes define runtime tuning parameters that may change between runs
without changing the algorithm structure.

For compile-time configuration (algorithm structure), see config.py.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from arcpath.algorithms.corrector.types import PointEvaluatorFn
from arcpath.algorithms.types.core import _ArcPathBaseOptions


@dataclass(frozen=True)
class RefinementOptions(_ArcPathBaseOptions):
    """Runtime options of an adaptive continuation run.

    Parameters
    ----------
    base_length : float, default=0.5
        Arc length of level 0; level ``l`` uses ``base_length / 2**l``.
    base_steps : int, default=10
        Number of coarse steps; level ``l`` nominally has
        ``base_steps * 2**l`` steps.
    should_stop : callable or None, default=None
        Cooperative cancellation probe returning True to abort the run.
    log_path : str, Path or None, default=None
        Destination of the tabular step log; no log is written when None.
    log_precision : {6, 20}, default=6
        Significant digits per value in the step log.
    tracked_points : PointEvaluatorFn or None, default=None
        Evaluates the deformation of the tracked points for the step log.

    Examples
    --------
    >>> options = RefinementOptions(base_length=0.25, base_steps=20)
    >>> logged = options.merge(log_path="results/data.csv", log_precision=20)
    """

    base_length: float = 0.5
    base_steps: int = 10
    should_stop: Optional[Callable[[], bool]] = None
    log_path: Optional[str | Path] = None
    log_precision: int = 6
    tracked_points: Optional[PointEvaluatorFn] = None

    def _validate(self) -> None:
        """Validate the options."""
        if self.base_length <= 0.0:
            raise ValueError("base_length must be positive")
        if self.base_steps <= 0:
            raise ValueError("base_steps must be positive")
        if self.log_precision not in (6, 20):
            raise ValueError(f"log_precision must be 6 or 20, got {self.log_precision}")
