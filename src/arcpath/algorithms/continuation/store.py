"""Append-only storage for the points and errors of every refinement level.

Points are owned by value in one contiguous sequence per level. Everything
else in the package refers to a point through its ``(level, index)`` pair,
so growing the store never invalidates an existing reference.
"""

from __future__ import annotations

from typing import Iterator, Tuple

import numpy as np

from arcpath.algorithms.continuation.types import ContinuationPoint
from arcpath.algorithms.types.exceptions import PreconditionError
from arcpath.utils.log_config import logger


class LevelStore:
    """Expandable collection of ordered point sequences, one per level.

    Parameters
    ----------
    n_levels : int, default 0
        Number of (empty) levels to create up front.
    """

    def __init__(self, n_levels: int = 0) -> None:
        self._levels: list[list[ContinuationPoint]] = []
        if n_levels > 0:
            self.ensure_level(n_levels - 1)

    @property
    def n_levels(self) -> int:
        return len(self._levels)

    @property
    def max_level(self) -> int:
        """Highest valid level index (-1 for an empty store)."""
        return len(self._levels) - 1

    def ensure_level(self, level: int) -> None:
        """Grow the store so that ``level`` is a valid index.

        Existing levels are left untouched; calling this on an already valid
        index is a no-op.
        """
        level = int(level)
        if level < 0:
            raise PreconditionError(f"Level index must be non-negative, got {level}")
        if level >= len(self._levels):
            logger.debug("Level store grows from %d to %d levels", len(self._levels), level + 1)
        while len(self._levels) <= level:
            self._levels.append([])

    def append(self, level: int, point: ContinuationPoint) -> int:
        """Append ``point`` to the end of ``level`` and return its index."""
        self._check_level(level)
        if not isinstance(point, ContinuationPoint):
            raise TypeError(f"Expected ContinuationPoint, got {type(point).__name__}")
        seq = self._levels[level]
        seq.append(point)
        return len(seq) - 1

    def at(self, level: int, index: int) -> ContinuationPoint:
        self._check_level(level)
        seq = self._levels[level]
        if not 0 <= index < len(seq):
            raise PreconditionError(
                f"Point index {index} out of range for level {level} (size {len(seq)})"
            )
        return seq[index]

    def size(self, level: int) -> int:
        self._check_level(level)
        return len(self._levels[level])

    def level(self, level: int) -> Tuple[ContinuationPoint, ...]:
        """Return a read-only snapshot of ``level``."""
        self._check_level(level)
        return tuple(self._levels[level])

    def sizes(self) -> Tuple[int, ...]:
        return tuple(len(seq) for seq in self._levels)

    def norms(self, level: int) -> np.ndarray:
        return np.array([pt.norm for pt in self.level(level)], dtype=float)

    def loads(self, level: int) -> np.ndarray:
        return np.array([pt.load for pt in self.level(level)], dtype=float)

    def __len__(self) -> int:
        return sum(len(seq) for seq in self._levels)

    def __iter__(self) -> Iterator[Tuple[ContinuationPoint, ...]]:
        for lvl in range(len(self._levels)):
            yield self.level(lvl)

    def __repr__(self) -> str:
        return f"LevelStore(sizes={list(self.sizes())})"

    def _check_level(self, level: int) -> None:
        if not 0 <= level < len(self._levels):
            raise PreconditionError(
                f"Level {level} does not exist (store holds {len(self._levels)} levels)"
            )


class ErrorRecords:
    """Latest error per segment, keyed by ``(level, index)``.

    Levels are created lazily; a record is overwritten when the same segment
    is checked again at a finer resolution.
    """

    def __init__(self) -> None:
        self._levels: list[dict[int, float]] = []

    @property
    def n_levels(self) -> int:
        return len(self._levels)

    def ensure_level(self, level: int) -> None:
        level = int(level)
        if level < 0:
            raise PreconditionError(f"Level index must be non-negative, got {level}")
        while len(self._levels) <= level:
            self._levels.append({})

    def set(self, level: int, index: int, value: float) -> None:
        self.ensure_level(level)
        self._levels[level][int(index)] = float(value)

    def get(self, level: int, index: int, default: float = float("nan")) -> float:
        if not 0 <= level < len(self._levels):
            return default
        return self._levels[level].get(int(index), default)

    def __contains__(self, key: Tuple[int, int]) -> bool:
        level, index = key
        return 0 <= level < len(self._levels) and int(index) in self._levels[level]

    def level(self, level: int, size: int | None = None) -> np.ndarray:
        """Return the errors of ``level`` as an array (NaN where unchecked)."""
        records = self._levels[level] if 0 <= level < len(self._levels) else {}
        if size is None:
            size = max(records, default=-1) + 1
        out = np.full(int(size), np.nan, dtype=float)
        for idx, value in records.items():
            if idx < size:
                out[idx] = value
        return out

    def items(self) -> Iterator[Tuple[Tuple[int, int], float]]:
        for lvl, records in enumerate(self._levels):
            for idx in sorted(records):
                yield (lvl, idx), records[idx]

    def __len__(self) -> int:
        return sum(len(records) for records in self._levels)

    def __repr__(self) -> str:
        return f"ErrorRecords(levels={len(self._levels)}, records={len(self)})"
