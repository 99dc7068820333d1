"""
Implicit time-stepping schemes.
"""

from dataclasses import dataclass, field
from typing import Callable, Literal, Optional

import jax
from jax import Array
import jax.numpy as jnp

from ..protocols import RootFinderProtocol
from ..rootfinders import NewtonRaphson


@dataclass(frozen=True)
class BackwardEuler:
    """
    Backward Euler time-stepping scheme.

    Discretisation:
    $$ \\frac{\\partial y}{\\partial t} \\rightarrow
    \\frac{y_{n+1} - y_n}{h} = f(t_{n+1}, y_{n+1}) $$

    Residual:
    $$ R(y_{n+1}) = y_{n+1} - y_n - h f(t_{n+1}, y_{n+1}) $$

    Jacobian:
    $$ J = \\frac{\\partial R}{\\partial y_{n+1}}
    = I - h \\frac{\\partial f(t_{n+1}, y_{n+1})}{\\partial y} $$

    Attributes:
        root_finder: Root-finding algorithm for implicit equations.
            Default: NewtonRaphson.
        jvp: Optional user-provided Jacobian-vector product with
            signature (t, y, v, *args) -> J*v.
        jac: Optional user-provided dense Jacobian with
            signature (t, y, *args) -> J.
        differentiation: How to build df/dy when neither jvp nor jac is
            given: "forward" uses `jax.jvp`, "finite_difference" uses
            one-sided differences of `fun`.
        fd_epsilon: Relative perturbation for finite differences.
            Default: square root of the machine epsilon of y's dtype.

    Whether the root finder receives a matrix-free product or a dense
    matrix is decided by the `matrix_free` flag of its linear solver.
    """

    root_finder: RootFinderProtocol = field(default_factory=NewtonRaphson)
    jvp: Optional[Callable] = None
    jac: Optional[Callable] = None
    differentiation: Literal["forward", "finite_difference"] = "forward"
    fd_epsilon: Optional[float] = None

    @staticmethod
    def make_residual(
        fun: Callable,
        t_prev: Array,
        y_prev: Array,
        h: Array,
        args: tuple = (),
    ) -> Callable[[Array], Array]:
        """
        Create residual function for a backward Euler scheme.

        Residual: $R(y_{n+1}) = y_{n+1} - y_n - h f(t_{n+1}, y_{n+1}, \\cdot)$

        Returns:
            A function with signature y -> R(y)
        """
        t_next = t_prev + h
        return lambda y_np1: y_np1 - y_prev - h * fun(t_next, y_np1, *args)

    @staticmethod
    def make_jvp(
        jvp: Callable, t_prev: Array, h: Array, args: tuple = ()
    ) -> Callable[[Array, Array], Array]:
        """
        Function factory for a matrix-free Jacobian-vector product.

        Jacobian: $J = I - h \\frac{\\partial f}{\\partial y}$

        Args:
            jvp: Jacobian-vector product, signature: (t, y, v, *args) -> (dfdy)*v
            t_prev: Time at previous step. Type: 0-dimensional JAX array.
            h: Time step size. Type: 0-dimensional JAX array
            args: Additional arguments to pass to jvp

        Returns:
            A function with signature (y, v) -> J_y * v
        """
        t_next = t_prev + h
        return lambda y, v: v - h * jvp(t_next, y, v, *args)

    @staticmethod
    def make_jacobian(
        jac: Callable, t_prev: Array, h: Array, args: tuple = ()
    ) -> Callable[[Array], Array]:
        """
        Function factory for dense Jacobian matrix.

        Jacobian: $J = I - h \\frac{\\partial f}{\\partial y}$

        Args:
            jac: Jacobian matrix function (t, y, *args) -> ∂f/∂y
            t_prev: Time at previous step. Type: 0-dimensional JAX array.
            h: Time step size. Type: 0-dimensional JAX array.
            args: Additional arguments to pass to jac

        Returns:
            A function with signature y -> J_y.
        """
        t_next = t_prev + h
        return lambda y: jnp.eye(y.size) - h * jac(t_next, y, *args)

    @staticmethod
    def autodiff_jvp(fun: Callable) -> Callable:
        """(∂f/∂y)*v by forward-mode automatic differentiation."""

        def jvp(t: Array, y: Array, v: Array, *args) -> Array:
            return jax.jvp(lambda y_: fun(t, y_, *args), (y,), (v,))[1]

        return jvp

    def finite_difference_jvp(self, fun: Callable) -> Callable:
        """(∂f/∂y)*v by a one-sided difference along v."""
        rel = self.fd_epsilon

        def jvp(t: Array, y: Array, v: Array, *args) -> Array:
            base = jnp.sqrt(jnp.finfo(y.dtype).eps) if rel is None else rel
            v_norm = jnp.linalg.norm(v)
            eps = base * (1.0 + jnp.linalg.norm(y)) / jnp.where(v_norm > 0, v_norm, 1.0)
            return (fun(t, y + eps * v, *args) - fun(t, y, *args)) / eps

        return jvp

    @staticmethod
    def dense_from_jvp(jvp: Callable) -> Callable:
        """Assemble ∂f/∂y column by column from a Jacobian-vector product."""

        def jac(t: Array, y: Array, *args) -> Array:
            basis = jnp.eye(y.size, dtype=y.dtype)
            return jax.vmap(lambda e: jvp(t, y, e, *args), out_axes=1)(basis)

        return jac

    @staticmethod
    def jvp_from_dense(jac: Callable) -> Callable:
        """Matrix-free product from a dense Jacobian."""
        return lambda t, y, v, *args: jac(t, y, *args) @ v

    def step(
        self,
        fun: Callable,
        t: Array,
        y: Array,
        h: Array,
        args: tuple = (),
    ) -> Array:
        """
        Perform a backward Euler step.

        Solves $$ y_{n+1} - y_n - h f(t_{n+1}, y_{n+1}, \\cdot) = 0 $$
        for $y_{n+1}$ using a root-finding algorithm.

        Args:
            fun: Right-hand side of system dydt = f(t, y, *args).
            t: Current time. Type: 0-dimensional JAX array.
            y: Current solution at time t.
            h: Time step size. Type: 0-dimensional JAX array.
            args: Additional arguments to pass to fun, jvp, and jac.

        Returns:
            Solution at time t + h.
        """
        residual_fn = self.make_residual(fun, t, y, h, args)

        # Initial guess (forward Euler step)
        y_guess = y + h * fun(t, y, *args)

        jac = self.jac
        jvp = self.jvp
        if jac is None and jvp is None:
            if self.differentiation == "finite_difference":
                jvp = self.finite_difference_jvp(fun)
            else:
                jvp = self.autodiff_jvp(fun)

        linsolver = getattr(self.root_finder, "linsolver", None)
        matrix_free = getattr(linsolver, "matrix_free", True)

        if matrix_free:
            if jvp is None:
                jvp = self.jvp_from_dense(jac)
            jvp_fn = self.make_jvp(jvp, t, h, args)
            return self.root_finder(residual_fn, y_guess, jvp_fn=jvp_fn)

        if jac is None:
            jac = self.dense_from_jvp(jvp)
        jac_fn = self.make_jacobian(jac, t, h, args)
        return self.root_finder(residual_fn, y_guess, jac_fn=jac_fn)
