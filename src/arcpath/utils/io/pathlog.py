"""Append-only tabular log of the points accepted during a continuation run.

One comma-separated file per run. The header is::

    Deformation norm,point 0 - x,point 0 - y,point 0 - z,...,Lambda,Indicator

and one row is appended per accepted point. Rows are never rewritten, so a
run that aborts leaves a valid file behind.
"""

import os
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import numpy as np
import pandas as pd

from arcpath.algorithms.corrector.types import PointEvaluatorFn
from arcpath.utils.io.common import _ensure_dir
from arcpath.utils.log_config import logger

if TYPE_CHECKING:
    from arcpath.algorithms.continuation.types import ContinuationPoint

_PRECISIONS = (6, 20)


def log_columns(n_points: int) -> list[str]:
    """Return the header of a log tracking ``n_points`` points."""
    columns = ["Deformation norm"]
    for k in range(n_points):
        columns += [f"point {k} - x", f"point {k} - y", f"point {k} - z"]
    columns += ["Lambda", "Indicator"]
    return columns


class PathLogWriter:
    """Write one CSV row per accepted continuation point.

    Parameters
    ----------
    filepath : str or Path
        Destination file; it is truncated and the header written on
        construction.
    tracked_points : PointEvaluatorFn, optional
        Maps a state vector to the (n_points, 3) deformation of the tracked
        points. Without it, only the norm, load and indicator are written.
    ndof : int, optional
        Size of the state vector; required with ``tracked_points`` to size
        the header.
    precision : {6, 20}, default 6
        Number of significant digits written per value.
    """

    def __init__(
        self,
        filepath: str | Path,
        *,
        tracked_points: Optional[PointEvaluatorFn] = None,
        ndof: Optional[int] = None,
        precision: int = 6,
    ) -> None:
        if precision not in _PRECISIONS:
            raise ValueError(f"precision must be one of {_PRECISIONS}, got {precision}")
        self._path = Path(filepath)
        self._tracked_points = tracked_points
        self._float_format = f"%.{precision}g"
        self._rows = 0

        n_points = 0
        if tracked_points is not None:
            if ndof is None:
                raise ValueError("ndof is required to size the tracked points")
            n_points = self._evaluate(np.zeros(int(ndof))).shape[0]
        self._columns = log_columns(n_points)

        _ensure_dir(os.path.dirname(os.path.abspath(self._path)))
        pd.DataFrame(columns=self._columns).to_csv(self._path, index=False)
        logger.info(f"Step results will be written in file: {self._path}")

    @property
    def path(self) -> Path:
        return self._path

    @property
    def columns(self) -> list[str]:
        return list(self._columns)

    @property
    def rows(self) -> int:
        return self._rows

    def append(self, point: "ContinuationPoint", indicator: float) -> None:
        """Append the row of ``point``."""
        row = [point.norm]
        if self._tracked_points is not None:
            row += self._evaluate(point.state).reshape(-1).tolist()
        row += [point.load, float(indicator)]
        frame = pd.DataFrame([row], columns=self._columns)
        frame.to_csv(self._path, mode="a", header=False, index=False, float_format=self._float_format)
        self._rows += 1

    def read(self) -> pd.DataFrame:
        """Load the log written so far."""
        return pd.read_csv(self._path)

    def _evaluate(self, state: np.ndarray) -> np.ndarray:
        values = np.atleast_2d(np.asarray(self._tracked_points(state), dtype=float))
        if values.shape[1] != 3:
            raise ValueError(f"Tracked points must have 3 components, got shape {values.shape}")
        return values

    def __repr__(self) -> str:
        return f"PathLogWriter(path='{self._path}', rows={self._rows})"
