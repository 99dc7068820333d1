"""
2D Brusselator reaction-diffusion system on the periodic unit square.

    du/dt = 1 + u²v - 4.4u + α∇²u + f(x, y, t)
    dv/dt = 3.4u - u²v + α∇²v

with a forcing f = 5 inside a disc of radius 0.1 around (0.3, 0.6) once
t ≥ 1.1. Discretised on an N x N grid by the method of lines, the state
vector holds u then v, each in row-major order, so the Jacobian is
2N² x 2N² but has only six non-zeros per row.
"""

from typing import Tuple

import jax.numpy as jnp
import numpy as np
import scipy.sparse as sp

from ..problem import ProblemSpec
from .finite_differences import laplacian_2d_periodic


def make_brusselator(N: int):
    """Right-hand side f(u, p, t) for an N x N grid, with p = (A, B, alpha)."""
    xyd = np.linspace(0.0, 1.0, N)
    dx = xyd[1] - xyd[0]
    X, Y = np.meshgrid(xyd, xyd, indexing="ij")
    disc = jnp.asarray(((X - 0.3)**2 + (Y - 0.6)**2) <= 0.1**2)

    def brusselator(state, p, t):
        A, B, alpha = p
        fields = state.reshape(2, N, N)
        u, v = fields[0], fields[1]
        forcing = jnp.where(disc & (t >= 1.1), 5.0, 0.0)
        uuv = u * u * v
        du = A + uuv - (B + 1.0) * u + alpha * laplacian_2d_periodic(u, dx) + forcing
        dv = B * u - uuv + alpha * laplacian_2d_periodic(v, dx)
        return jnp.concatenate([du.ravel(), dv.ravel()])

    return brusselator


def brusselator_initial_state(N: int) -> np.ndarray:
    xyd = np.linspace(0.0, 1.0, N)
    X, Y = np.meshgrid(xyd, xyd, indexing="ij")
    u = 22.0 * Y * (1.0 - Y)**1.5
    v = 27.0 * X * (1.0 - X)**1.5
    return np.concatenate([u.ravel(), v.ravel()])


def _periodic_neighbours(N: int) -> sp.csr_matrix:
    ring = sp.diags([1.0, 1.0, 1.0], [-1, 0, 1], shape=(N, N), format="lil")
    ring[0, N - 1] = 1.0
    ring[N - 1, 0] = 1.0
    return ring.tocsr()


def brusselator_sparsity(N: int) -> sp.csc_matrix:
    """
    Jacobian sparsity: a periodic five-point stencil within each species,
    plus the pointwise coupling between u and v.
    """
    ring = _periodic_neighbours(N)
    eye = sp.identity(N, format="csr")
    stencil = sp.kron(ring, eye) + sp.kron(eye, ring)
    diffusion = sp.block_diag([stencil, stencil], format="csr")
    coupling = sp.kron(np.ones((2, 2)), sp.identity(N * N))
    return (diffusion + coupling).astype(bool).tocsc()


def brusselator_problem(
    N: int = 32,
    t_span: Tuple[float, float] = (0.0, 11.5),
    params: Tuple[float, float, float] = (1.0, 3.4, 10.0),
) -> ProblemSpec:
    if N < 3:
        raise ValueError(f"Brusselator grid needs N >= 3, got {N}")
    return ProblemSpec(
        make_brusselator(N),
        brusselator_initial_state(N),
        t_span,
        params,
        jac_sparsity=brusselator_sparsity(N),
        name="brusselator",
    )
