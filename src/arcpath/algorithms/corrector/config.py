"""Provide configuration classes for the reference arc-length corrector."""

from dataclasses import dataclass
from typing import Literal

from arcpath.algorithms.types.core import _ArcPathBaseConfig


@dataclass(frozen=True)
class ArcLengthCorrectorConfig(_ArcPathBaseConfig):
    """Configuration of :class:`~arcpath.algorithms.corrector.arclength.ArcLengthCorrector`.

    Parameters
    ----------
    method : {'load_control', 'riks', 'crisfield'}, default='crisfield'
        Constraint closing the system at every step:

        - 'load_control': the load increment is fixed to the arc length.
        - 'riks': corrections are orthogonal to the current increment
          (updated normal plane).
        - 'crisfield': the increment stays on the sphere
          ``|dU|^2 + scaling^2 * dL^2 * |F|^2 = length^2``.
    length : float, default=0.5
        Initial arc length; the continuation driver overrides it per level.
    tol : float, default=1e-6
        Residual tolerance, relative to ``max(|F|, 1)``.
    tol_u : float, default=1e-6
        Tolerance on the last displacement correction, relative to
        ``max(|U|, 1)``.
    max_iter : int, default=20
        Maximum number of corrector iterations per step.
    scaling : float, default=1.0
        Weight of the load term in the arc-length constraint.
    relaxation : float, default=1.0
        Factor applied to every correction.
    quasi_newton : bool, default=False
        Reuse the Jacobian between iterations.
    quasi_iterations : int, default=-1
        With ``quasi_newton``, reassemble the Jacobian every this many
        iterations; a non-positive value reassembles it only at the start
        of each step.
    """

    method: Literal["load_control", "riks", "crisfield"] = "crisfield"
    length: float = 0.5
    tol: float = 1e-6
    tol_u: float = 1e-6
    max_iter: int = 20
    scaling: float = 1.0
    relaxation: float = 1.0
    quasi_newton: bool = False
    quasi_iterations: int = -1

    def _validate(self) -> None:
        """Validate the configuration."""
        if self.method not in ("load_control", "riks", "crisfield"):
            raise ValueError(
                f"Invalid method: {self.method}. "
                "Must be 'load_control', 'riks' or 'crisfield'."
            )
        if self.length <= 0.0:
            raise ValueError("length must be positive")
        if self.tol <= 0.0 or self.tol_u <= 0.0:
            raise ValueError("Tolerances must be positive")
        if self.max_iter <= 0:
            raise ValueError("max_iter must be positive")
        if self.scaling < 0.0:
            raise ValueError("scaling must be non-negative")
        if not 0.0 < self.relaxation <= 1.0:
            raise ValueError("relaxation must lie in (0, 1]")
