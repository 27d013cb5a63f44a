"""Adaptive refinement engine wiring backend and interface."""

from arcpath.algorithms.continuation.backends.base import _ContinuationBackend
from arcpath.algorithms.continuation.engine.base import _ContinuationEngine
from arcpath.algorithms.continuation.interfaces import \
    _ArcLengthRefinementInterface
from arcpath.algorithms.types.exceptions import ArcPathError, EngineError
from arcpath.utils.log_config import logger


class _RefinementEngine(_ContinuationEngine):
    """Engine orchestrating adaptive continuation via backend and interface."""

    def __init__(
        self,
        *,
        backend: _ContinuationBackend,
        interface: _ArcLengthRefinementInterface | None = None,
    ) -> None:
        super().__init__(backend=backend, interface=interface)

    def _handle_backend_failure(self, exc, *, problem, call, interface) -> None:
        if isinstance(exc, ArcPathError):
            return
        error = EngineError(f"Adaptive continuation failed: {exc}")
        error.partial = getattr(exc, "partial", None)
        raise error from exc

    def _after_backend_success(self, outputs, *, problem, domain_payload, interface) -> None:
        self._backend.on_success(
            outputs,
            iterations=int(outputs.corrector_calls),
            residual_norm=float("nan"),
        )
        if problem.log_writer is not None:
            logger.info(f"{problem.log_writer.rows} row(s) written to {problem.log_writer.path}")
