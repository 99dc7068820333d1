"""Lorenz system, the usual subject of parameter ensembles."""

from typing import Tuple

import jax
import jax.numpy as jnp

from ..problem import ProblemSpec

DEFAULT_PARAMS = (10.0, 28.0, 8.0 / 3.0)


def lorenz(u, p, t):
    sigma, rho, beta = p
    x, y, z = u[0], u[1], u[2]
    return jnp.stack([
        sigma * (y - x),
        x * (rho - z) - y,
        x * y - beta * z,
    ])


def lorenz_problem(
    t_span: Tuple[float, float] = (0.0, 1.0),
    params: Tuple[float, float, float] = DEFAULT_PARAMS,
    y0=(1.0, 0.0, 0.0),
) -> ProblemSpec:
    return ProblemSpec(lorenz, y0, t_span, params, name="lorenz")


def random_parameters(key: jax.Array, n: int, scale=DEFAULT_PARAMS) -> jax.Array:
    """
    Parameter sets for an ensemble: `scale` multiplied by U(0, 1) factors.

    Returns:
        Array of shape (n, 3), one (sigma, rho, beta) row per trajectory.
    """
    factors = jax.random.uniform(key, (n, len(scale)))
    return factors * jnp.asarray(scale)
