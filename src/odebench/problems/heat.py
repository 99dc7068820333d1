"""
1D heat equation du/dt = D d²u/dx² on [0, L] with Dirichlet boundaries,
discretised on the interior points by the method of lines.

Starting from the fundamental solution at t > 0 gives an analytical
reference for the whole run.
"""

from typing import Tuple

import jax.numpy as jnp
import numpy as np
import scipy.sparse as sp

from ..problem import ProblemSpec
from .finite_differences import d2__dx2_c_dirichlet


def heat_rhs(u, p, t):
    D, bc_left, bc_right, dx = p
    return D * d2__dx2_c_dirichlet(u, dx, bc_left, bc_right)


def heat_jacobian(u, p, t):
    D, _, _, dx = p
    n = u.shape[0]
    stencil = -2.0 * jnp.eye(n) + jnp.eye(n, k=1) + jnp.eye(n, k=-1)
    return (D / dx**2) * stencil


def heat_sparsity(n: int) -> sp.csc_matrix:
    """Tridiagonal sparsity pattern of the discrete Laplacian."""
    return sp.diags([1.0, 1.0, 1.0], [-1, 0, 1], shape=(n, n), format="csc").astype(bool)


def gaussian_solution(x, t: float, D: float, L: float):
    """
    Fundamental solution centred at L/2:
    u(t, x) = (1/√(4πDt)) exp(-(x-L/2)²/(4Dt))
    """
    k = 1.0 / jnp.sqrt(4.0 * jnp.pi * D * t)
    return k * jnp.exp(-((x - L / 2.0)**2) / (4.0 * D * t))


def heat_grid(n: int, L: float) -> Tuple[np.ndarray, float]:
    """Interior grid points and spacing for Dirichlet boundaries."""
    dx = L / (n + 1)
    return np.linspace(dx, L - dx, n), dx


def jacobi_preconditioner(D: float, dx: float, h: float):
    """
    Diagonal (Jacobi) preconditioner for the backward Euler system
    I - h D ∇², whose diagonal is the constant 1 + 2hD/dx².
    """
    diagonal = 1.0 + 2.0 * h * D / dx**2
    return lambda v: v / diagonal


def heat_problem(
    n: int = 64,
    L: float = 100.0,
    D: float = 2.0,
    t_span: Tuple[float, float] = (1.0, 5.0),
) -> ProblemSpec:
    x, dx = heat_grid(n, L)
    u0 = np.asarray(gaussian_solution(x, t_span[0], D, L))
    return ProblemSpec(
        heat_rhs,
        u0,
        t_span,
        params=(D, 0.0, 0.0, dx),
        jac=heat_jacobian,
        jac_sparsity=heat_sparsity(n),
        name="heat",
    )
