"""Newton-Raphson method for root finding."""

import logging
from typing import Optional

from flax import nnx
import jax
from jax import Array
import jax.numpy as jnp
import numpy as np

from ..linsolvers import GMRES
from ..protocols import LinearMap, JVPConstructor, JacobianConstructor, LinearSolverProtocol

logger = logging.getLogger(__name__)


def _warn_if_unconverged(iters, maxiter, residual_norm, tol):
    # Arguments may arrive batched when the solver runs under vmap
    unconverged = (np.asarray(iters) >= maxiter) & (np.asarray(residual_norm) > tol)
    if np.any(unconverged):
        logger.warning(
            "Newton-Raphson did not converge within %d iterations. "
            "Final residual norm: %.2e.",
            int(maxiter), float(np.max(residual_norm)),
        )


class NewtonRaphson(nnx.Module):
    """
    Newton-Raphson root-finding algorithm.

    Iterative update: $y \\leftarrow y - J^{-1}(y) R(y)$

    Implements: RootFinderProtocol

    Attributes:
        tol: Convergence tolerance for residual norm
        maxiter: Maximum number of Newton-Raphson iterations
        linsolver: Linear solver for inner iterations (default: GMRES)
    """

    def __init__(
        self,
        tol: float = 1e-6,
        maxiter: int = 50,
        linsolver: Optional[LinearSolverProtocol] = None,
    ):
        self.tol = tol
        self.maxiter = maxiter
        self.linsolver = linsolver if linsolver is not None else GMRES()

    def __call__(
        self,
        residual_fn: LinearMap,
        y_guess: Array,
        jvp_fn: Optional[JVPConstructor] = None,
        jac_fn: Optional[JacobianConstructor] = None,
    ) -> Array:
        """
        Find the root of residual_fn(y) = 0 using Newton-Raphson method.

        Args:
            residual_fn: Residual function R(y)
            y_guess: Initial guess
            jvp_fn: Matrix-free Jacobian-vector product with
                signature (y, v) -> J(y)*v
            jac_fn: Function returning a dense Jacobian matrix with
                signature y -> J(y)

        Returns:
            Solution y
        """
        if jac_fn is not None and jvp_fn is not None:
            raise ValueError("Provide either jac_fn OR jvp_fn, not both.")

        y_k = y_guess
        r_k = residual_fn(y_k)
        state0 = (y_k, r_k, 0)

        if jac_fn is not None:
            # Dense mode
            def body_fun(state):
                y_k, r_k, k = state
                J = jac_fn(y_k)
                delta = self.linsolver(J, -r_k)
                y_kp1 = y_k + delta
                return (y_kp1, residual_fn(y_kp1), k + 1)
        elif jvp_fn is not None:
            # Matrix-free mode
            def body_fun(state):
                y_k, r_k, k = state
                jvp = lambda v: jvp_fn(y_k, v)
                delta = self.linsolver(jvp, -r_k)
                y_kp1 = y_k + delta
                return (y_kp1, residual_fn(y_kp1), k + 1)
        else:
            raise ValueError("Must provide either jvp_fn or jac_fn")

        def cond_fun(state):
            _, r_k, k = state
            return (jnp.linalg.norm(r_k) > self.tol) & (k < self.maxiter)

        y_final, r_final, niters = jax.lax.while_loop(cond_fun, body_fun, state0)

        jax.debug.callback(
            _warn_if_unconverged,
            niters, self.maxiter,
            jnp.linalg.norm(r_final), self.tol
        )

        return y_final
