"""Abstract base classes for the arcpath pipeline.

This module provides the facade -> engine -> interface -> backend skeleton
shared by the algorithms of the package.
"""

from __future__ import annotations

import dataclasses
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, Union

from arcpath.algorithms.types.exceptions import ArcPathError, EngineError

DomainT = TypeVar("DomainT")

ConfigT = TypeVar("ConfigT", bound=Union["_ArcPathBaseConfig", None])

ProblemT = TypeVar("ProblemT", bound="_ArcPathBaseProblem")

ResultT = TypeVar("ResultT", bound="_ArcPathBaseResults")

OutputsT = TypeVar("OutputsT")


@dataclass(frozen=True)
class _BackendCall:
    """Describe a backend call with positional and keyword arguments."""

    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = field(default_factory=dict)


class _ArcPathBaseProblem(ABC):
    """Marker base class for problem payloads produced by interfaces."""

    __slots__ = ()


class _ArcPathBaseResults(ABC):
    """Marker base class for user-facing results returned by engines."""

    __slots__ = ()


@dataclass(frozen=True)
class _ArcPathBaseConfig(ABC):
    """Base class for frozen configuration payloads.

    Subclasses implement :meth:`_validate`, which runs after construction so
    that an invalid configuration can never be instantiated.
    """

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        """Validate the configuration. Override in subclasses."""
        return None

    def merge(self, **kwargs) -> "_ArcPathBaseConfig":
        """Return a copy with the given fields replaced (``None`` values are ignored)."""
        overrides = {k: v for k, v in kwargs.items() if v is not None}
        unknown = set(overrides) - {f.name for f in dataclasses.fields(self)}
        if unknown:
            raise ValueError(f"Unknown parameter(s): {', '.join(sorted(unknown))}")
        return dataclasses.replace(self, **overrides)


@dataclass(frozen=True)
class _ArcPathBaseOptions(_ArcPathBaseConfig):
    """Base class for runtime options (tuning that may change between calls)."""


class _ArcPathBaseBackend(Generic[OutputsT]):
    """Abstract base class for all backend implementations.

    Backends are responsible for the core numerical work, while engines handle
    orchestration and interfaces manage data translation.

    Notes
    -----
    This base class provides common lifecycle hooks that backends can override:
    - on_accept: Called when a point has been committed
    - on_failure: Called when the backend aborts
    - on_success: Called by the engine after final acceptance
    """

    def __init__(self) -> None:
        """Initialize the backend."""
        pass

    @abstractmethod
    def run(self, **kwargs) -> OutputsT:
        """Run the backend.

        Parameters
        ----------
        **kwargs
            Backend specific keyword arguments.
        """
        ...

    def on_accept(self, x: Any, *, iterations: int, residual_norm: float) -> None:
        """Called when the backend accepts a solution.

        Parameters
        ----------
        x : Any
            Accepted solution.
        iterations : int
            Total number of iterations performed so far.
        residual_norm : float
            Residual norm or convergence metric.
        """
        return

    def on_failure(self, x: Any, *, iterations: int, residual_norm: float) -> None:
        """Called when the backend completes without converging.

        Parameters
        ----------
        x : Any
            Last solution estimate (may not be converged).
        iterations : int
            Total number of iterations performed.
        residual_norm : float
            Final residual norm or convergence metric.
        """
        return

    def on_success(self, x: Any, *, iterations: int, residual_norm: float) -> None:
        """Called by the engine after final acceptance.

        Parameters
        ----------
        x : Any
            Final accepted solution.
        iterations : int
            Total number of iterations performed.
        residual_norm : float
            Final residual norm or convergence metric.
        """
        return


class _ArcPathBaseInterface(Generic[ConfigT, ProblemT, ResultT, OutputsT], ABC):
    """Shared contract for translating between domain objects and backends."""

    def __init__(self) -> None:
        self._config: ConfigT | None = None
        self._backend: _ArcPathBaseBackend | None = None

    @property
    def current_config(self) -> ConfigT | None:
        return self._config

    @abstractmethod
    def create_problem(self, *, config: ConfigT, domain_obj: Any, **kwargs) -> ProblemT:
        """Compose an immutable problem payload for the backend."""

    @abstractmethod
    def to_backend_inputs(self, problem: ProblemT) -> _BackendCall:
        """Translate a problem into backend invocation arguments."""

    def to_domain(self, outputs: OutputsT, *, problem: ProblemT) -> Any:
        """Optional hook to mutate or derive domain artefacts from outputs."""
        return None

    @abstractmethod
    def to_results(self, outputs: OutputsT, *, problem: ProblemT, domain_payload: Any = None) -> ResultT:
        """Package backend outputs into user-facing result objects."""

    def bind_backend(self, backend: _ArcPathBaseBackend) -> None:
        self._backend = backend

    def on_start(self, problem: ProblemT) -> None:
        return None

    def on_success(self, outputs: OutputsT, *, problem: ProblemT, domain_payload: Any = None) -> None:
        return None

    def on_failure(self, exc: Exception, *, problem: ProblemT) -> None:
        return None


class _ArcPathBaseEngine(Generic[ProblemT, ResultT, OutputsT], ABC):
    """Template providing the canonical engine flow."""

    def __init__(
        self,
        *,
        backend: _ArcPathBaseBackend[OutputsT],
        interface: _ArcPathBaseInterface[Any, ProblemT, ResultT, OutputsT] | None = None,
    ) -> None:
        self._backend = backend
        self._interface = interface

    @property
    def backend(self) -> _ArcPathBaseBackend[OutputsT]:
        return self._backend

    def solve(self, problem: ProblemT) -> ResultT:
        """Execute the standard engine orchestration for ``problem``."""

        interface = self._get_interface(problem)
        interface.bind_backend(self._backend)
        call = interface.to_backend_inputs(problem)
        interface.on_start(problem)
        self._before_backend(problem, call, interface)

        try:
            outputs = self._invoke_backend(call)
        except Exception as exc:
            interface.on_failure(exc, problem=problem)
            self._handle_backend_failure(exc, problem=problem, call=call, interface=interface)
            raise

        domain_payload = interface.to_domain(outputs, problem=problem)
        interface.on_success(outputs, problem=problem, domain_payload=domain_payload)
        self._after_backend_success(outputs, problem=problem, domain_payload=domain_payload, interface=interface)
        return interface.to_results(outputs, problem=problem, domain_payload=domain_payload)

    def _get_interface(
        self,
        problem: ProblemT,
    ) -> _ArcPathBaseInterface[Any, ProblemT, ResultT, OutputsT]:
        if self._interface is None:
            raise EngineError(
                f"{self.__class__.__name__} must be configured with an interface before solving."
            )
        return self._interface

    def set_interface(
        self,
        interface: _ArcPathBaseInterface[Any, ProblemT, ResultT, OutputsT],
    ) -> None:
        self._interface = interface

    def _before_backend(self, problem: ProblemT, call: _BackendCall, interface: _ArcPathBaseInterface[Any, ProblemT, ResultT, OutputsT]) -> None:
        return None

    def _after_backend_success(self, outputs: OutputsT, *, problem: ProblemT, domain_payload: Any, interface: _ArcPathBaseInterface[Any, ProblemT, ResultT, OutputsT]) -> None:
        return None

    def _handle_backend_failure(self, exc: Exception, *, problem: ProblemT, call: _BackendCall, interface: _ArcPathBaseInterface[Any, ProblemT, ResultT, OutputsT]) -> None:
        if isinstance(exc, ArcPathError):
            return
        raise EngineError(f"{self.__class__.__name__} failed: {exc}") from exc

    def _invoke_backend(self, call: _BackendCall) -> OutputsT:
        return self._backend.run(*call.args, **call.kwargs)


class _ArcPathBaseFacade(Generic[ConfigT, ProblemT, ResultT]):
    """Abstract base class for user-facing facades.

    Facades orchestrate the entire pipeline: facade -> engine -> interface ->
    backend. They accept engines via the constructor (dependency injection)
    and provide ``with_default_engine()`` factories for easy construction.
    """

    def __init__(self, config, interface, engine) -> None:
        """Initialize the facade."""
        self._validate_config(config)
        self._make_pipeline(config, interface, engine)
        self._results: ResultT | None = None

    @classmethod
    @abstractmethod
    def with_default_engine(cls, *, config, interface=None) -> "_ArcPathBaseFacade[ConfigT, ProblemT, ResultT]":
        pass

    def update_config(self, **kwargs) -> None:
        """Update configuration parameters.

        Parameters
        ----------
        **kwargs
            Configuration parameters to update. ``None`` values are ignored.

        Raises
        ------
        ValueError
            If a parameter is unknown or the updated configuration is invalid.
        """
        self._config = self._config.merge(**kwargs)
        self._validate_config(self._config)

    def _get_engine(self) -> _ArcPathBaseEngine[ProblemT, ResultT, Any]:
        return self._engine

    def _get_interface(self) -> _ArcPathBaseInterface[Any, ProblemT, ResultT, Any]:
        return self._interface

    def _get_config(self) -> ConfigT:
        return self._config

    def _create_problem(self, domain_obj: DomainT, override: bool = False, **kwargs) -> ProblemT:
        """Create a problem object from the domain object and runtime inputs.

        Parameters
        ----------
        domain_obj : DomainT
            The domain object to create a problem for.
        override : bool, default=False
            Whether configuration fields present in ``kwargs`` update the
            stored configuration before the problem is built.
        **kwargs
            Runtime inputs forwarded to ``interface.create_problem``.
        """
        config = self._get_config()
        if override:
            fields = {f for f in config.__dataclass_fields__}
            config_kwargs = {k: kwargs.pop(k) for k in list(kwargs) if k in fields}
            if config_kwargs:
                self.update_config(**config_kwargs)
                config = self._get_config()
        return self._get_interface().create_problem(config=config, domain_obj=domain_obj, **kwargs)

    def _make_pipeline(self, config, interface, engine):
        self._config: ConfigT = config
        self._interface = interface
        self._engine = engine
        self._engine.set_interface(interface)
        self._backend = engine.backend
        interface.bind_backend(self._backend)

    def _validate_config(self, config: ConfigT) -> None:
        """Validate the configuration object.

        This method can be overridden by concrete facades to perform
        domain-specific configuration validation.
        """
        pass

    @property
    def results(self) -> ResultT | None:
        return self._results
