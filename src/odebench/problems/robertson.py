"""
Robertson's chemical kinetics problem.

    y1' = -k1 y1 + k3 y2 y3
    y2' =  k1 y1 - k2 y2^2 - k3 y2 y3
    y3' =  k2 y2^2

The rate constants span eleven orders of magnitude, which makes the system
very stiff. Total mass y1 + y2 + y3 is conserved.

Besides the plain formulations, this module carries two variants that use
scratch storage for the reaction rates:

- `make_cached_robertson` writes the rates into a preallocated float64 NumPy
  buffer. Evaluating it is fine, but differentiating it with JAX is not:
  forward-mode AD pushes tracers through the function, and a tracer cannot
  be stored in a float64 array, so a TypeError is raised. Finite
  differences only ever pass plain floats and work.
- `robertson_generic` allocates its scratch from the input with
  `jnp.zeros_like`, so the scratch follows whatever type is flowing through
  and AD works.
"""

from typing import Literal, Tuple

import jax.numpy as jnp
import numpy as np

from ..problem import ProblemSpec

DEFAULT_PARAMS = (0.04, 3e7, 1e4)
DEFAULT_Y0 = (1.0, 0.0, 0.0)
DEFAULT_T_SPAN = (0.0, 1e5)


def robertson(u, p, t):
    k1, k2, k3 = p
    y1, y2, y3 = u[0], u[1], u[2]
    return jnp.stack([
        -k1 * y1 + k3 * y2 * y3,
        k1 * y1 - k2 * y2**2 - k3 * y2 * y3,
        k2 * y2**2,
    ])


def robertson_inplace(du, u, p, t):
    k1, k2, k3 = p
    y1, y2, y3 = u
    du[0] = -k1 * y1 + k3 * y2 * y3
    du[1] = k1 * y1 - k2 * y2**2 - k3 * y2 * y3
    du[2] = k2 * y2**2


def robertson_jacobian(u, p, t):
    k1, k2, k3 = p
    y2, y3 = u[1], u[2]
    return jnp.array([
        [-k1, k3 * y3, k3 * y2],
        [k1, -2.0 * k2 * y2 - k3 * y3, -k3 * y2],
        [0.0, 2.0 * k2 * y2, 0.0],
    ])


def make_cached_robertson():
    """Robertson right-hand side that reuses a fixed float64 rate buffer."""
    rates = np.zeros(3)

    def robertson_cached(u, p, t):
        k1, k2, k3 = p
        rates[0] = k1 * u[0]
        rates[1] = k2 * u[1]**2
        rates[2] = k3 * u[1] * u[2]
        return np.array([
            -rates[0] + rates[2],
            rates[0] - rates[1] - rates[2],
            rates[1],
        ])

    return robertson_cached


def robertson_generic(u, p, t):
    k1, k2, k3 = p
    rates = jnp.zeros_like(u)
    rates = rates.at[0].set(k1 * u[0])
    rates = rates.at[1].set(k2 * u[1]**2)
    rates = rates.at[2].set(k3 * u[1] * u[2])
    return jnp.stack([
        -rates[0] + rates[2],
        rates[0] - rates[1] - rates[2],
        rates[1],
    ])


def robertson_problem(
    variant: Literal["out_of_place", "in_place", "cached", "generic"] = "out_of_place",
    t_span: Tuple[float, float] = DEFAULT_T_SPAN,
    params: Tuple[float, float, float] = DEFAULT_PARAMS,
    y0=DEFAULT_Y0,
) -> ProblemSpec:
    """
    Robertson problem in one of its formulations.

    Args:
        variant: "out_of_place" (jnp), "in_place" (NumPy, writes into du),
            "cached" (fixed NumPy scratch buffer) or "generic" (scratch
            allocated from the input).
        t_span: Integration interval.
        params: Rate constants (k1, k2, k3).
        y0: Initial concentrations.
    """
    if variant == "out_of_place":
        return ProblemSpec(robertson, y0, t_span, params,
                           jac=robertson_jacobian, name="robertson")
    if variant == "in_place":
        return ProblemSpec(robertson_inplace, y0, t_span, params, in_place=True,
                           name="robertson_inplace")
    if variant == "cached":
        return ProblemSpec(make_cached_robertson(), y0, t_span, params,
                           name="robertson_cached")
    if variant == "generic":
        return ProblemSpec(robertson_generic, y0, t_span, params,
                           jac=robertson_jacobian, name="robertson_generic")
    raise ValueError(f"Unknown Robertson variant: {variant!r}")
