"""Provide the interface wiring correctors to the refinement backend."""

from typing import Any, Optional

import numpy as np

from arcpath.algorithms.continuation.config import RefinementConfig
from arcpath.algorithms.continuation.options import RefinementOptions
from arcpath.algorithms.continuation.types import (ContinuationResult,
                                                   _RefinementProblem)
from arcpath.algorithms.corrector.protocols import ArcLengthCorrectorProtocol
from arcpath.algorithms.types.core import _ArcPathBaseInterface, _BackendCall
from arcpath.algorithms.types.exceptions import PreconditionError
from arcpath.utils.io.pathlog import PathLogWriter
from arcpath.utils.log_config import logger


class _ArcLengthRefinementInterface(
    _ArcPathBaseInterface[
        RefinementConfig,
        _RefinementProblem,
        ContinuationResult,
        ContinuationResult,
    ]
):
    """Adapter turning a corrector and a load vector into a refinement problem."""

    def __init__(self) -> None:
        super().__init__()

    def create_problem(
        self,
        *,
        config: RefinementConfig,
        domain_obj: ArcLengthCorrectorProtocol,
        force: Any,
        options: Optional[RefinementOptions] = None,
    ) -> _RefinementProblem:
        if not isinstance(domain_obj, ArcLengthCorrectorProtocol):
            raise PreconditionError(
                f"{type(domain_obj).__name__} does not implement ArcLengthCorrectorProtocol"
            )
        force_arr = np.asarray(force, dtype=float).reshape(-1)
        if force_arr.size == 0:
            raise PreconditionError("The load vector must not be empty")
        if not np.all(np.isfinite(force_arr)):
            raise PreconditionError("The load vector must be finite")

        options = options or RefinementOptions()
        self._config = config

        log_writer = None
        if options.log_path is not None:
            log_writer = PathLogWriter(
                options.log_path,
                tracked_points=options.tracked_points,
                ndof=force_arr.size,
                precision=options.log_precision,
            )

        return _RefinementProblem(
            corrector=domain_obj,
            ndof=int(force_arr.size),
            force_norm=float(np.linalg.norm(force_arr)),
            base_length=float(options.base_length),
            base_steps=int(options.base_steps),
            max_level=int(config.max_level),
            ptol=float(config.ptol),
            bridge_steps=int(config.bridge_steps),
            recursive=bool(config.recursive),
            max_refinement_level=config.max_refinement_level,
            max_tasks=config.max_tasks,
            should_stop=options.should_stop,
            log_writer=log_writer,
        )

    def to_backend_inputs(self, problem: _RefinementProblem) -> _BackendCall:
        return _BackendCall(
            kwargs={
                "corrector": problem.corrector,
                "ndof": problem.ndof,
                "force_norm": problem.force_norm,
                "base_length": problem.base_length,
                "base_steps": problem.base_steps,
                "max_level": problem.max_level,
                "ptol": problem.ptol,
                "bridge_steps": problem.bridge_steps,
                "recursive": problem.recursive,
                "max_refinement_level": problem.max_refinement_level,
                "max_tasks": problem.max_tasks,
                "should_stop": problem.should_stop,
                "log_writer": problem.log_writer,
            }
        )

    def on_start(self, problem: _RefinementProblem) -> None:
        logger.info(
            "Adaptive continuation: %d dof, base length %g, %d coarse steps, max level %d, ptol %g",
            problem.ndof, problem.base_length, problem.base_steps, problem.max_level, problem.ptol,
        )

    def on_failure(self, exc: Exception, *, problem: _RefinementProblem) -> None:
        logger.error("Adaptive continuation aborted: %s", exc)

    def to_results(
        self,
        outputs: ContinuationResult,
        *,
        problem: _RefinementProblem,
        domain_payload: Any = None,
    ) -> ContinuationResult:
        return outputs
