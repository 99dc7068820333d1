import logging
import time
from typing import Callable, Tuple, Optional

import jax
from jax import Array
import jax.numpy as jnp

from .protocols import StepperProtocol

logger = logging.getLogger(__name__)


def solve_ivp(
    fun: Callable,
    t_span: Tuple[float, float],
    y0: Array,
    method: StepperProtocol,
    step_size: float,
    args: tuple = ()
) -> Tuple[Array, Array]:
    """
    Integrate dy/dt = fun(t, y, *args) over the time interval t_span.

    Compatible with `jax.jit` and `jax.vmap`; the method is closed over
    rather than carried through the loop.

    Args:
        fun: Callable right-hand side of system dy/dt = fun(t, y, *args)
        t_span: (t_start, t_end) time interval
        y0: Initial condition
        method: Time-stepping method instance (e.g., RK4(), BackwardEuler())
        step_size: Time step size
        args: Additional arguments to pass to fun (and jvp/jac if provided)

    Returns:
        t_final: Final time
        y_final: Solution at t_end

    Example usage:
    ```python
    import jax.numpy as jnp
    from odebench.integrate import solve_ivp, RK4

    # Define ODE: dy/dt = -k*y
    def fun(t, y, k):
        return -k * y

    y0 = jnp.array([1.0])
    t, y = solve_ivp(fun, (0.0, 2.0), y0, RK4(), step_size=0.01, args=(0.5,))
    ```
    """
    y0 = jnp.asarray(y0)
    t_start = jnp.asarray(t_span[0], dtype=y0.dtype)
    t_end = jnp.asarray(t_span[1], dtype=y0.dtype)

    def cond_fn(carry):
        t, _ = carry
        return t < t_end

    def body_fn(carry):
        t, y = carry

        # Adjust final step to hit t_end exactly
        h = jnp.clip(t_end - t, 0.0, step_size)

        y_next = method.step(fun, t, y, h, args)

        return (t + h, y_next)

    t_final, y_final = jax.lax.while_loop(cond_fn, body_fn, (t_start, y0))

    return t_final, y_final


def solve_with_history(
    fun: Callable,
    t_span: Tuple[float, float],
    y0: Array,
    method: StepperProtocol,
    step_size: float,
    t_eval: Optional[Array] = None,
    args: tuple = (),
    verbose: bool = False,
    integrator: Optional[Callable] = None,
) -> Tuple[Array, Array]:
    """
    Integrate dy/dt = fun(t, y, *args) over the time interval t_span.

    Returns intermediate states at times `t_eval`, but is not compatible with
    JAX transformations. The integration is done in chunks by calling a
    JIT-compiled `solve_ivp`.

    Args:
        fun: Right-hand side function with signature (t, y, *args) -> dydt
        t_span: (t_start, t_end) time interval
        y0: Initial condition
        method: Time-stepping method instance (e.g., RK4(), BackwardEuler())
        step_size: Time step size for integration.
        t_eval: Times at which to store the computed solution.
            If None, returns only the initial and final states.
            Must be sorted and lie within t_span.
        args: Additional arguments to pass to fun
        verbose: Print progress information
        integrator: Pre-compiled chunk integrator with signature
            (t0, t1, y, args) -> (t, y). Built from `solve_ivp` if omitted.

    Returns:
        t: Array of time points, shape (n_points,)
        y: Array of solution values at times t, shape (n_points, *y0.shape)
    """
    t_start, t_end = t_span

    if t_eval is None:
        t_eval = jnp.array([t_start, t_end])
    else:
        t_eval = jnp.asarray(t_eval)
        if jnp.any(t_eval < t_start) or jnp.any(t_eval > t_end):
            raise ValueError("All values in t_eval must be within t_span")
        if jnp.any(jnp.diff(t_eval) < 0):
            raise ValueError("t_eval must be sorted in increasing order")

        # Ensure t_start is included
        if t_eval[0] != t_start:
            t_eval = jnp.concatenate([jnp.array([t_start]), t_eval])

    n_steps_total = int(jnp.ceil((t_end - t_start) / step_size))

    if verbose:
        print(f"Solving with {type(method).__name__}")
        print(
            f"Time: [{t_start}, {t_end}], dt={step_size}, "
            f"~{n_steps_total} total steps"
        )
        print(f"Evaluating at {len(t_eval)} time points")

    if integrator is None:
        integrator = jax.jit(
            lambda t0, t1, y, a: solve_ivp(fun, (t0, t1), y, method, step_size, a)
        )

    y = jnp.asarray(y0)
    y_save = [y]
    t_save = [jnp.asarray(t_eval[0], dtype=y.dtype)]

    start_wallclock = time.perf_counter()

    for i in range(len(t_eval) - 1):
        t, y = integrator(t_eval[i], t_eval[i + 1], y, args)
        t_save.append(t)
        y_save.append(y)

    t_arr = jnp.stack(t_save)
    y_arr = jnp.stack(y_save, axis=0)

    elapsed_wallclock = time.perf_counter() - start_wallclock
    logger.debug("%d chunks integrated in %.3fs", len(t_eval) - 1, elapsed_wallclock)

    if verbose:
        print(
            f"Completed in {elapsed_wallclock:.3f}s "
            f"({n_steps_total / max(elapsed_wallclock, 1e-12):.1f} steps/s)"
        )

    return t_arr, y_arr
