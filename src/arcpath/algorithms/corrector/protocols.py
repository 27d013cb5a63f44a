from typing import TYPE_CHECKING, Protocol, runtime_checkable

import numpy as np

if TYPE_CHECKING:
    from arcpath.algorithms.continuation.types import ContinuationPoint


@runtime_checkable
class ArcLengthCorrectorProtocol(Protocol):
    """Protocol for stateful arc-length correctors.

    The corrector advances the equilibrium path by one arc-length step per
    :meth:`step` call, starting from the point established by
    :meth:`set_solution`. The intended call sequence is::

        set_solution -> reset_step -> [set_initial_guess] -> set_length -> step

    after which :meth:`converged` must be checked before the results are read
    through :meth:`solution_u` and :meth:`solution_l`. Successive :meth:`step`
    calls continue from the last converged point.

    Implementations hold the current state of the branch and are therefore
    not reentrant: an instance must not be shared by concurrent runs.
    """

    def set_solution(self, point: "ContinuationPoint") -> None:
        """Seed the current state with ``point``, discarding step history."""
        ...

    def reset_step(self) -> None:
        """Clear step-local adaptation state (e.g. quasi-Newton counters)."""
        ...

    def set_initial_guess(self, point: "ContinuationPoint") -> None:
        """Provide a predictor hint for the next step."""
        ...

    def set_length(self, length: float) -> None:
        """Set the arc length used by subsequent steps."""
        ...

    def step(self) -> None:
        """Attempt exactly one continuation step."""
        ...

    def converged(self) -> bool:
        """Whether the last step converged."""
        ...

    def solution_u(self) -> np.ndarray:
        """State vector produced by the last converged step."""
        ...

    def solution_l(self) -> float:
        """Load factor produced by the last converged step."""
        ...

    def indicator(self) -> float:
        """Bifurcation indicator of the last converged step."""
        ...
