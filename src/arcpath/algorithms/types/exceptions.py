"""
Custom exceptions for the algorithms package.
"""

from typing import Any, Optional


class ArcPathError(Exception):
    """Base exception for arcpath errors.
    
    Parameters
    ----------
    message : str
        The error message.
    """

    def __init__(self, message: str):
        super().__init__(message)


class ConvergenceError(ArcPathError):
    """Raised when a corrector step fails to converge.

    A non-converged step aborts the whole continuation run. Points committed
    before the failing call stay available through :attr:`partial`.

    Parameters
    ----------
    message : str
        The error message.
    phase : str, optional
        Algorithm phase in which the failure occurred (``"coarse"``,
        ``"uniform"`` or ``"refine"``).
    level : int, optional
        Refinement level being built.
    step : int, optional
        Zero-based index of the failing corrector call within its bridge or
        coarse pass.
    """

    def __init__(
        self,
        message: str,
        *,
        phase: Optional[str] = None,
        level: Optional[int] = None,
        step: Optional[int] = None,
    ):
        super().__init__(message)
        self.phase = phase
        self.level = level
        self.step = step
        self.partial: Any = None


class PreconditionError(ArcPathError):
    """Raised when an operation is called out of order or with invalid indices.

    This signals a programming error rather than a recoverable condition.
    
    Parameters
    ----------
    message : str
        The error message.
    """

    def __init__(self, message: str):
        super().__init__(message)


class CancelledError(ArcPathError):
    """Raised when a cooperative cancellation request interrupts a run.

    Parameters
    ----------
    message : str
        The error message.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.partial: Any = None


class BackendError(ArcPathError):
    """Raised when an exception occurs in a backend.
    
    Parameters
    ----------
    message : str
        The error message.
    """
    
    def __init__(self, message: str):
        super().__init__(message)


class EngineError(ArcPathError):
    """Raised when an exception occurs in the engine.

    Partial results of the aborted run, when available, are exposed
    through :attr:`partial`.

    Parameters
    ----------
    message : str
        The error message.
    """
    
    def __init__(self, message: str):
        super().__init__(message)
        self.partial: Any = None
