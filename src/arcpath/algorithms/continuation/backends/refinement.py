"""Adaptive multi-level refinement backend."""

from typing import Callable, Optional

from arcpath.algorithms.continuation.assembler import PathAssembler
from arcpath.algorithms.continuation.backends.base import _ContinuationBackend
from arcpath.algorithms.continuation.types import (ContinuationPoint,
                                                   ContinuationResult,
                                                   PathEntry)
from arcpath.algorithms.corrector.protocols import ArcLengthCorrectorProtocol
from arcpath.algorithms.types.exceptions import BackendError
from arcpath.utils.io.pathlog import PathLogWriter


class _AdaptiveRefinementBackend(_ContinuationBackend):
    """Run a :class:`PathAssembler` and report accepted points through the hooks.

    A fresh assembler is created per call, so the backend holds no state
    between runs except the last assembler, kept for inspection.
    """

    def __init__(self) -> None:
        super().__init__()
        self._assembler: Optional[PathAssembler] = None

    @property
    def assembler(self) -> Optional[PathAssembler]:
        return self._assembler

    def run(
        self,
        *,
        corrector: ArcLengthCorrectorProtocol,
        ndof: int,
        force_norm: float,
        base_length: float,
        base_steps: int,
        max_level: int,
        ptol: float,
        bridge_steps: int = 2,
        recursive: bool = False,
        max_refinement_level: Optional[int] = None,
        max_tasks: Optional[int] = None,
        should_stop: Optional[Callable[[], bool]] = None,
        log_writer: Optional[PathLogWriter] = None,
    ) -> ContinuationResult:
        if not isinstance(corrector, ArcLengthCorrectorProtocol):
            raise BackendError(
                f"{type(corrector).__name__} does not implement ArcLengthCorrectorProtocol"
            )

        def _on_point(entry: PathEntry, point: ContinuationPoint) -> None:
            self.on_accept(point, iterations=self._assembler.corrector_calls, residual_norm=float("nan"))

        self._assembler = PathAssembler(
            corrector,
            ndof=ndof,
            force_norm=force_norm,
            base_length=base_length,
            base_steps=base_steps,
            max_level=max_level,
            ptol=ptol,
            bridge_steps=bridge_steps,
            recursive=recursive,
            max_refinement_level=max_refinement_level,
            max_tasks=max_tasks,
            should_stop=should_stop,
            log_writer=log_writer,
            on_point=_on_point,
        )
        try:
            return self._assembler.run()
        except Exception:
            self.on_failure(None, iterations=self._assembler.corrector_calls, residual_norm=float("nan"))
            raise
