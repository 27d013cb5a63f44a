"""
Types for the corrector module.

This module provides the callback signatures through which a corrector
reaches the (external) finite-element assembler.
"""

from typing import Callable, Union

import numpy as np
from scipy import sparse

#: Type alias for Jacobian function signatures.
#:
#: Parameters
#: ----------
#: u : ndarray
#:     State vector at which the tangent stiffness is assembled.
#:
#: Returns
#: -------
#: jacobian : ndarray or scipy.sparse matrix
#:     Square matrix of shape (n, n) where n is the length of u.
JacobianFn = Callable[[np.ndarray], Union[np.ndarray, sparse.spmatrix]]

#: Type alias for arc-length residual function signatures.
#:
#: Parameters
#: ----------
#: u : ndarray
#:     State vector.
#: lam : float
#:     Load factor.
#: force : ndarray
#:     Reference load vector at lambda = 1.
#:
#: Returns
#: -------
#: residual : ndarray
#:     Out-of-balance force ``F_int(u) - lam * force``; vanishes on the
#:     equilibrium path.
ResidualFn = Callable[[np.ndarray, float, np.ndarray], np.ndarray]

#: Type alias for the evaluator of tracked points written to the step log.
#:
#: Maps a state vector to an array of shape (n_points, 3) holding the
#: (x, y, z) deformation of each tracked point.
PointEvaluatorFn = Callable[[np.ndarray], np.ndarray]
