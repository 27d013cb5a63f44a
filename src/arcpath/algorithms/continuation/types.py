"""Types for the continuation module."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import (TYPE_CHECKING, Callable, Iterator, NamedTuple, Optional,
                    Tuple)

import numpy as np
import pandas as pd

from arcpath.algorithms.types.core import (_ArcPathBaseProblem,
                                           _ArcPathBaseResults)
from arcpath.utils.log_config import logger

if TYPE_CHECKING:
    from arcpath.algorithms.continuation.store import ErrorRecords, LevelStore
    from arcpath.algorithms.corrector.protocols import \
        ArcLengthCorrectorProtocol
    from arcpath.utils.io.pathlog import PathLogWriter


@dataclass(frozen=True, eq=False)
class ContinuationPoint:
    """A point (U, lambda) on the equilibrium path.

    The state vector is copied on construction and flagged read-only, so a
    point stored in a :class:`~arcpath.algorithms.continuation.store.LevelStore`
    can never be mutated afterwards.

    Attributes
    ----------
    state : numpy.ndarray
        Displacement vector U, one entry per degree of freedom.
    load : float
        Load factor lambda.
    """

    state: np.ndarray
    load: float

    def __post_init__(self) -> None:
        state = np.array(self.state, dtype=float, copy=True).reshape(-1)
        state.setflags(write=False)
        object.__setattr__(self, "state", state)
        object.__setattr__(self, "load", float(self.load))

    @classmethod
    def zero(cls, ndof: int) -> "ContinuationPoint":
        """Return the undeformed point (U = 0, lambda = 0)."""
        return cls(np.zeros(int(ndof), dtype=float), 0.0)

    @property
    def ndof(self) -> int:
        return int(self.state.size)

    @property
    def norm(self) -> float:
        """Euclidean norm of the state vector."""
        return float(np.linalg.norm(self.state))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ContinuationPoint):
            return NotImplemented
        return self.load == other.load and np.array_equal(self.state, other.state)

    def __repr__(self) -> str:
        return f"ContinuationPoint(|U|={self.norm:.6g}, load={self.load:.6g})"


class RefinementTask(NamedTuple):
    """Retrace ``source[source_index] -> source[source_index + 1]`` into ``level``.

    The segment is re-traced with the arc length of ``level`` and the results
    are appended to ``level``.
    """

    level: int
    source_level: int
    source_index: int


class PathEntry(NamedTuple):
    """Reference ``(level, index)`` into a level store."""

    level: int
    index: int


@dataclass(frozen=True)
class ContinuationResult(_ArcPathBaseResults):
    """Result of an adaptive continuation run.

    Attributes
    ----------
    store : LevelStore
        All points, one ordered sequence per level.
    errors : ErrorRecords
        Latest error per checked segment, keyed by ``(level, index)``.
    path : Tuple[PathEntry, ...]
        Every committed point in insertion order.
    refinement_points : Tuple[PathEntry, ...]
        Start points of the segments whose error exceeded the tolerance.
    pending : Tuple[RefinementTask, ...]
        Tasks left in the queue (non-empty only when a task budget stopped
        the drain or the run was interrupted).
    drained : Tuple[RefinementTask, ...]
        Tasks processed, in processing order.
    base_length : float
        Arc length at level 0.
    base_steps : int
        Number of coarse steps at level 0.
    corrector_calls : int
        Number of corrector ``step()`` calls issued.
    completed : bool
        False for a partial result attached to an exception.
    """

    store: "LevelStore"
    errors: "ErrorRecords"
    path: Tuple[PathEntry, ...]
    refinement_points: Tuple[PathEntry, ...]
    pending: Tuple[RefinementTask, ...]
    drained: Tuple[RefinementTask, ...]
    base_length: float
    base_steps: int
    corrector_calls: int
    completed: bool = True

    @property
    def n_levels(self) -> int:
        return self.store.n_levels

    def arc_length(self, level: int) -> float:
        """Nominal arc length of ``level``."""
        return self.base_length / 2 ** level

    def step_count(self, level: int) -> int:
        """Nominal number of steps of ``level``."""
        return self.base_steps * 2 ** level

    def point(self, entry: PathEntry) -> ContinuationPoint:
        return self.store.at(entry.level, entry.index)

    def points(self) -> Iterator[Tuple[int, ContinuationPoint]]:
        """Iterate over ``(level, point)`` pairs of the path index."""
        for entry in self.path:
            yield entry.level, self.store.at(entry.level, entry.index)

    def to_df(self) -> pd.DataFrame:
        """Return a DataFrame with one row per entry of the path index."""
        rows = [
            (entry.level, entry.index, pt.norm, pt.load, self.errors.get(entry.level, entry.index))
            for entry, (_, pt) in zip(self.path, self.points())
        ]
        return pd.DataFrame(rows, columns=["level", "index", "norm", "load", "error"])

    def to_csv(self, filepath: str | Path, **kwargs) -> None:
        """Export :meth:`to_df` to a CSV file."""
        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.to_df().to_csv(path, index=False, **kwargs)
        logger.info(f"Continuation path successfully exported to {path}")

    def __repr__(self) -> str:
        sizes = ", ".join(str(self.store.size(lvl)) for lvl in range(self.store.n_levels))
        return f"ContinuationResult(levels=[{sizes}], pending={len(self.pending)}, completed={self.completed})"


@dataclass(frozen=True)
class _RefinementProblem(_ArcPathBaseProblem):
    """Defines the inputs for an adaptive continuation run.

    Attributes
    ----------
    corrector : ArcLengthCorrectorProtocol
        Stateful corrector advancing the path one step at a time.
    ndof : int
        Number of degrees of freedom of the state vector.
    force_norm : float
        Norm of the reference load vector at lambda = 1.
    base_length : float
        Arc length at level 0.
    base_steps : int
        Number of coarse steps at level 0.
    max_level : int
        Deepest uniformly built level.
    ptol : float
        Tolerance on the error density.
    bridge_steps : int
        Corrector steps per bridge.
    recursive : bool
        Whether refined segments may enqueue deeper refinement.
    max_refinement_level : int or None
        Deepest level recursive refinement may target.
    max_tasks : int or None
        Budget on the number of drained tasks.
    should_stop : callable or None
        Cooperative cancellation probe.
    log_writer : PathLogWriter or None
        Tabular log receiving one row per accepted point.
    """

    corrector: "ArcLengthCorrectorProtocol"
    ndof: int
    force_norm: float
    base_length: float
    base_steps: int
    max_level: int
    ptol: float
    bridge_steps: int = 2
    recursive: bool = False
    max_refinement_level: Optional[int] = None
    max_tasks: Optional[int] = None
    should_stop: Optional[Callable[[], bool]] = None
    log_writer: Optional["PathLogWriter"] = field(default=None, repr=False)
