"""
Finite difference stencils for method-of-lines discretisations.
"""

import jax.numpy as jnp


def d2__dx2_c_periodic(u: jnp.ndarray, dx: float) -> jnp.ndarray:
    """
    Approximate the second derivative using central differences with periodic boundary conditions.

    Accuracy: Second-order
    """
    u_plus = jnp.roll(u, -1)   # u[i+1]
    u_minus = jnp.roll(u, 1)   # u[i-1]
    return (u_plus - 2.0 * u + u_minus) / (dx**2)


def d2__dx2_c_dirichlet(u: jnp.ndarray, dx: float, u_left: float, u_right: float) -> jnp.ndarray:
    """
    Approximate the second derivative using central differences with Dirichlet boundary conditions.

    `u` holds the interior points only; the boundary values act as ghost points.

    Accuracy: Second-order
    """
    dudx = jnp.diff(u, prepend=u_left, append=u_right)
    return jnp.diff(dudx) / dx**2


def laplacian_2d_periodic(u: jnp.ndarray, dx: float) -> jnp.ndarray:
    """
    Five-point Laplacian of a 2D field on a uniform periodic grid.

    Accuracy: Second-order
    """
    neighbours = (
        jnp.roll(u, 1, axis=0) + jnp.roll(u, -1, axis=0)
        + jnp.roll(u, 1, axis=1) + jnp.roll(u, -1, axis=1)
    )
    return (neighbours - 4.0 * u) / dx**2
