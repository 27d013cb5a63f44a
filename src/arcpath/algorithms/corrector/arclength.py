"""Provide a reference arc-length corrector on top of assembler callbacks.

The corrector implements
:class:`~arcpath.algorithms.corrector.protocols.ArcLengthCorrectorProtocol`
with a predictor-corrector scheme: a tangent (or user-guided) predictor
followed by Newton iterations on the residual augmented with a load-control,
Riks or Crisfield constraint. Dense Jacobians are factorised with LAPACK
(:func:`scipy.linalg.lu_factor`), sparse ones with SuperLU
(:func:`scipy.sparse.linalg.splu`).
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Optional, Tuple

import numpy as np
import scipy.linalg
from scipy import sparse
from scipy.sparse.linalg import splu

from arcpath.algorithms.corrector.config import ArcLengthCorrectorConfig
from arcpath.algorithms.corrector.types import JacobianFn, ResidualFn
from arcpath.algorithms.types.exceptions import PreconditionError
from arcpath.utils.log_config import logger

if TYPE_CHECKING:
    from arcpath.algorithms.continuation.types import ContinuationPoint


def _permutation_sign(perm: np.ndarray) -> int:
    """Return the sign (+1/-1) of a permutation given as an index array."""
    perm = np.asarray(perm)
    seen = np.zeros(perm.size, dtype=bool)
    sign = 1
    for start in range(perm.size):
        if seen[start]:
            continue
        length = 0
        j = start
        while not seen[j]:
            seen[j] = True
            j = perm[j]
            length += 1
        if length % 2 == 0:
            sign = -sign
    return sign


class _Factorization:
    """LU factorisation of a dense or sparse Jacobian."""

    def __init__(self, matrix) -> None:
        self._sparse = sparse.issparse(matrix)
        if self._sparse:
            self._lu = splu(sparse.csc_matrix(matrix, dtype=float))
        else:
            dense = np.atleast_2d(np.asarray(matrix, dtype=float))
            self._lu = scipy.linalg.lu_factor(dense, check_finite=True)

    def solve(self, rhs: np.ndarray) -> np.ndarray:
        if self._sparse:
            return self._lu.solve(rhs)
        return scipy.linalg.lu_solve(self._lu, rhs)

    def determinant(self) -> float:
        if self._sparse:
            sign = _permutation_sign(self._lu.perm_r) * _permutation_sign(self._lu.perm_c)
            return float(sign * np.prod(self._lu.U.diagonal()))
        lu, piv = self._lu
        swaps = int(np.count_nonzero(piv != np.arange(piv.size)))
        return float((-1) ** swaps * np.prod(np.diag(lu)))


class ArcLengthCorrector:
    """Advance an equilibrium path ``R(U, lambda) = 0`` by arc-length steps.

    Parameters
    ----------
    jacobian : JacobianFn
        Tangent stiffness ``dR/dU`` as a function of the state.
    residual : ResidualFn
        Out-of-balance force ``R(U, lambda, F)``.
    force : array_like
        Reference load vector at lambda = 1.
    config : ArcLengthCorrectorConfig, optional
        Corrector settings.

    Notes
    -----
    The bifurcation indicator is the determinant of the Jacobian at the last
    converged point; a sign change between consecutive points flags a
    limit or bifurcation point in between.

    The corrector is stateful and not reentrant.
    """

    def __init__(
        self,
        jacobian: JacobianFn,
        residual: ResidualFn,
        force,
        config: Optional[ArcLengthCorrectorConfig] = None,
    ) -> None:
        self._jacobian = jacobian
        self._residual = residual
        self._force = np.asarray(force, dtype=float).reshape(-1)
        self._force_norm = float(np.linalg.norm(self._force))
        self._config = config or ArcLengthCorrectorConfig()
        self._length = float(self._config.length)

        self._u: Optional[np.ndarray] = None
        self._l = 0.0
        self._du_prev: Optional[np.ndarray] = None
        self._dl_prev = 0.0
        self._guess: Optional[Tuple[np.ndarray, float]] = None

        self._u_new: Optional[np.ndarray] = None
        self._l_new = 0.0
        self._converged = False
        self._indicator = 0.0
        self._iterations = 0
        self._residual_norm = float("nan")

        self._lu: Optional[_Factorization] = None
        self._quasi_count = 0

    @property
    def config(self) -> ArcLengthCorrectorConfig:
        return self._config

    @property
    def force(self) -> np.ndarray:
        return self._force

    @property
    def length(self) -> float:
        return self._length

    @property
    def iterations(self) -> int:
        """Number of corrector iterations of the last step."""
        return self._iterations

    @property
    def residual_norm(self) -> float:
        """Residual norm at the end of the last step."""
        return self._residual_norm

    def set_solution(self, point: "ContinuationPoint") -> None:
        state = np.array(point.state, dtype=float, copy=True).reshape(-1)
        if state.size != self._force.size:
            raise PreconditionError(
                f"State has {state.size} entries, the force vector has {self._force.size}"
            )
        self._u = state
        self._l = float(point.load)
        self._du_prev = None
        self._dl_prev = 0.0
        self._guess = None
        self._converged = False

    def reset_step(self) -> None:
        self._lu = None
        self._quasi_count = 0

    def set_initial_guess(self, point: "ContinuationPoint") -> None:
        self._guess = (np.array(point.state, dtype=float, copy=True).reshape(-1), float(point.load))

    def set_length(self, length: float) -> None:
        if not length > 0.0:
            raise ValueError(f"Arc length must be positive, got {length}")
        self._length = float(length)

    def converged(self) -> bool:
        return self._converged

    def solution_u(self) -> np.ndarray:
        self._require_solution()
        return self._u_new.copy()

    def solution_l(self) -> float:
        self._require_solution()
        return self._l_new

    def indicator(self) -> float:
        return self._indicator

    def step(self) -> None:
        """Attempt one arc-length step from the current solution.

        Raises
        ------
        PreconditionError
            If no solution has been set.
        """
        if self._u is None:
            raise PreconditionError("step() called before set_solution()")

        cfg = self._config
        if cfg.quasi_newton and cfg.quasi_iterations <= 0:
            self._lu = None

        u0, l0 = self._u, self._l
        self._converged = False
        try:
            du, dl = self._predict(u0, l0)
        except (np.linalg.LinAlgError, RuntimeError, ValueError) as exc:
            logger.warning("Predictor failed: %s", exc)
            self._iterations = 0
            return

        ref_r = cfg.tol * max(self._force_norm, 1.0)
        correction = 0.0
        for it in range(cfg.max_iter + 1):
            u = u0 + du
            lam = l0 + dl
            r = np.asarray(self._residual(u, lam, self._force), dtype=float).reshape(-1)
            r_norm = float(np.linalg.norm(r))
            self._iterations = it
            self._residual_norm = r_norm
            logger.debug("Iteration %d: |R| = %.3e, |dU| = %.3e, lambda = %.6g", it, r_norm, correction, lam)

            if not np.isfinite(r_norm):
                break
            if r_norm <= ref_r and correction <= cfg.tol_u * max(float(np.linalg.norm(u)), 1.0):
                self._accept(u, lam, du, dl)
                return
            if it == cfg.max_iter:
                break

            try:
                lu = self._factorize(u)
                a = -lu.solve(r)
                b = lu.solve(self._force)
            except (np.linalg.LinAlgError, RuntimeError, ValueError) as exc:
                logger.warning("Linear solve failed at iteration %d: %s", it, exc)
                break

            ddl = self._constraint_correction(du, dl, a, b)
            if ddl is None:
                logger.warning("Arc-length constraint has no real solution at iteration %d", it)
                break
            ddu = cfg.relaxation * (a + ddl * b)
            du = du + ddu
            dl = dl + cfg.relaxation * ddl
            correction = float(np.linalg.norm(ddu))

        logger.debug(
            "Step did not converge after %d iterations (|R|=%.2e)", self._iterations, self._residual_norm
        )

    def _accept(self, u: np.ndarray, lam: float, du: np.ndarray, dl: float) -> None:
        self._u_new = u.copy()
        self._l_new = float(lam)
        self._u = u.copy()
        self._l = float(lam)
        self._du_prev = du.copy()
        self._dl_prev = float(dl)
        self._guess = None
        self._converged = True
        try:
            self._indicator = _Factorization(self._jacobian(u)).determinant()
        except (np.linalg.LinAlgError, RuntimeError, ValueError):
            self._indicator = 0.0
        logger.debug(
            "Step converged after %d iterations (|R|=%.2e), lambda = %.6g",
            self._iterations, self._residual_norm, self._l_new,
        )

    def _predict(self, u0: np.ndarray, l0: float) -> Tuple[np.ndarray, float]:
        length = self._length
        method = self._config.method
        w2 = self._load_weight()

        if self._guess is not None and method != "load_control":
            gu, gl = self._guess
            self._guess = None
            d_u = gu - u0
            d_l = gl - l0
            n = math.sqrt(float(d_u @ d_u) + w2 * d_l * d_l)
            if n > 0.0:
                scale = length / n
                return d_u * scale, d_l * scale

        sign = 1.0
        if self._guess is not None:
            gu, gl = self._guess
            self._guess = None
            if gl < l0:
                sign = -1.0

        b = self._factorize(u0).solve(self._force)
        if method == "load_control":
            if self._du_prev is not None and self._dl_prev < 0.0:
                sign = -1.0
            dl = sign * length
            return dl * b, dl

        dl = length / math.sqrt(float(b @ b) + w2)
        if self._du_prev is not None:
            if float(self._du_prev @ b) + w2 * self._dl_prev < 0.0:
                sign = -1.0
        dl *= sign
        return dl * b, dl

    def _constraint_correction(self, du: np.ndarray, dl: float, a: np.ndarray, b: np.ndarray) -> Optional[float]:
        method = self._config.method
        w2 = self._load_weight()

        if method == "load_control":
            return 0.0

        if method == "riks":
            denom = float(du @ b) + w2 * dl
            if denom == 0.0:
                return None
            return -float(du @ a) / denom

        w = du + a
        a1 = float(b @ b) + w2
        a2 = 2.0 * float(b @ w) + 2.0 * w2 * dl
        a3 = float(w @ w) + w2 * dl * dl - self._length ** 2
        disc = a2 * a2 - 4.0 * a1 * a3
        if a1 == 0.0 or disc < 0.0:
            return None
        root = math.sqrt(disc)
        candidates = ((-a2 + root) / (2.0 * a1), (-a2 - root) / (2.0 * a1))

        # Keep the root whose increment stays closest to the current one
        def _alignment(ddl: float) -> float:
            return float((w + ddl * b) @ du) + w2 * (dl + ddl) * dl

        return max(candidates, key=_alignment)

    def _factorize(self, u: np.ndarray) -> _Factorization:
        cfg = self._config
        reuse = (
            cfg.quasi_newton
            and self._lu is not None
            and (cfg.quasi_iterations <= 0 or self._quasi_count % cfg.quasi_iterations != 0)
        )
        self._quasi_count += 1
        if not reuse:
            self._lu = _Factorization(self._jacobian(u))
        return self._lu

    def _load_weight(self) -> float:
        return (self._config.scaling * self._force_norm) ** 2

    def _require_solution(self) -> None:
        if self._u_new is None:
            raise PreconditionError("No converged step available")

    def __repr__(self) -> str:
        return (
            f"ArcLengthCorrector(method='{self._config.method}', length={self._length:g}, "
            f"ndof={self._force.size})"
        )
