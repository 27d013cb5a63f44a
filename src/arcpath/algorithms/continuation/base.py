"""User-facing facade for adaptive arc-length continuation.

The facade assembles the engine, backend, and interface using DI and
provides a simple API to run a continuation from a corrector and a load
vector.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional

from arcpath.algorithms.continuation.config import RefinementConfig
from arcpath.algorithms.continuation.options import RefinementOptions
from arcpath.algorithms.continuation.types import ContinuationResult
from arcpath.algorithms.corrector.protocols import ArcLengthCorrectorProtocol
from arcpath.algorithms.corrector.types import PointEvaluatorFn
from arcpath.algorithms.types.core import _ArcPathBaseFacade

if TYPE_CHECKING:
    from arcpath.algorithms.continuation.engine.engine import \
        _RefinementEngine
    from arcpath.algorithms.continuation.interfaces import \
        _ArcLengthRefinementInterface


class AdaptiveArcLength(_ArcPathBaseFacade):
    """Facade for multi-level adaptive arc-length continuation.

    Users supply an engine (DI). Use :meth:`AdaptiveArcLength.with_default_engine`
    to construct a default engine wired with the refinement backend and the
    corrector interface.

    Examples
    --------
    >>> from arcpath import AdaptiveArcLength, ArcLengthCorrector, RefinementConfig
    >>> corrector = ArcLengthCorrector(jacobian, residual, force)  # doctest: +SKIP
    >>> pipeline = AdaptiveArcLength.with_default_engine(config=RefinementConfig())
    >>> result = pipeline.generate(corrector, force, base_length=0.5, base_steps=10)  # doctest: +SKIP
    """

    def __init__(
        self,
        config: RefinementConfig,
        interface: "_ArcLengthRefinementInterface",
        engine: "_RefinementEngine",
    ) -> None:
        super().__init__(config, interface, engine)

    @classmethod
    def with_default_engine(
        cls,
        *,
        config: Optional[RefinementConfig] = None,
        interface: Optional["_ArcLengthRefinementInterface"] = None,
    ) -> "AdaptiveArcLength":
        """Create a facade instance with a default engine (factory)."""
        from arcpath.algorithms.continuation.backends.refinement import \
            _AdaptiveRefinementBackend
        from arcpath.algorithms.continuation.engine.engine import \
            _RefinementEngine
        from arcpath.algorithms.continuation.interfaces import \
            _ArcLengthRefinementInterface

        backend = _AdaptiveRefinementBackend()
        intf = interface or _ArcLengthRefinementInterface()
        engine = _RefinementEngine(backend=backend, interface=intf)
        return cls(config or RefinementConfig(), intf, engine)

    def generate(
        self,
        corrector: ArcLengthCorrectorProtocol,
        force,
        options: Optional[RefinementOptions] = None,
        override: bool = False,
        *,
        base_length: Optional[float] = None,
        base_steps: Optional[int] = None,
        should_stop: Optional[Callable[[], bool]] = None,
        log_path: Optional[str | Path] = None,
        log_precision: Optional[int] = None,
        tracked_points: Optional[PointEvaluatorFn] = None,
        **config_overrides,
    ) -> ContinuationResult:
        """Run the adaptive continuation.

        Parameters
        ----------
        corrector : ArcLengthCorrectorProtocol
            Corrector advancing the path. It is driven exclusively by this
            run until it returns and must not be shared with concurrent runs.
        force : array_like
            Reference load vector at lambda = 1.
        options : RefinementOptions, optional
            Runtime options; keyword arguments below override its fields.
        override : bool, default=False
            Apply ``config_overrides`` (e.g. ``ptol``, ``max_level``) to the
            stored configuration before running.
        base_length, base_steps, should_stop, log_path, log_precision, tracked_points
            See :class:`RefinementOptions`.

        Returns
        -------
        ContinuationResult
            Level store, error records, path index and queue history.

        Raises
        ------
        ConvergenceError
            If a corrector step does not converge; ``exc.partial`` holds the
            points committed so far.
        CancelledError
            If ``should_stop`` requested cancellation.
        """
        if config_overrides and not override:
            raise ValueError(
                f"Configuration overrides {sorted(config_overrides)} require override=True"
            )
        options = (options or RefinementOptions()).merge(
            base_length=base_length,
            base_steps=base_steps,
            should_stop=should_stop,
            log_path=log_path,
            log_precision=log_precision,
            tracked_points=tracked_points,
        )
        problem = self._create_problem(
            domain_obj=corrector,
            override=override,
            force=force,
            options=options,
            **config_overrides,
        )
        engine = self._get_engine()
        self._results = engine.solve(problem)
        return self._results

    def _validate_config(self, config: RefinementConfig) -> None:
        """Validate the configuration object.

        Raises
        ------
        TypeError
            If ``config`` is not a :class:`RefinementConfig`.
        """
        super()._validate_config(config)
        if not isinstance(config, RefinementConfig):
            raise TypeError(f"Expected RefinementConfig, got {type(config).__name__}")
