"""
Dispatch of a (problem, strategy) pair to the library that solves it.

Adaptive algorithms go to `scipy.integrate.solve_ivp`, with Jacobians built
by JAX forward-mode AD, by SciPy's finite differences or from an analytic
function. Fixed-step algorithms run on the JAX integrators in
`odebench.integrate`, compiled once per (problem, strategy) pair.

Errors raised by the state function, by JAX or by SciPy are not caught.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Optional, Tuple

import jax
from jax import Array
import jax.numpy as jnp
import numpy as np
import scipy.integrate
import scipy.sparse as sp

from . import integrate
from .problem import ProblemSpec
from .strategy import Algorithm, Differentiation, LinearSolver, StrategyConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Solution:
    """
    Trajectory returned by `solve`.

    Attributes:
        t: Time points, shape (n_points,)
        y: States at the time points, shape (n_points, n)
        success: Whether the integrator reached the end of the time span
        message: Termination message of the integrator
        algorithm: Algorithm that produced the solution
        nfev: Number of right-hand side evaluations (0 if not reported)
        njev: Number of Jacobian evaluations (0 if not reported)
        nlu: Number of LU decompositions (0 if not reported)
    """

    t: Array
    y: Array
    success: bool
    message: str
    algorithm: Algorithm
    nfev: int = 0
    njev: int = 0
    nlu: int = 0

    @property
    def final_state(self) -> Array:
        return self.y[-1]

    @property
    def final_time(self) -> float:
        return float(self.t[-1])


def check_compatibility(problem: ProblemSpec, strategy: StrategyConfig) -> None:
    """
    Raise ValueError if `strategy` cannot be applied to `problem`.

    Only structural requirements are checked. Numerical incompatibilities,
    such as a state function that cannot be differentiated, surface from
    the solve itself.
    """
    alg = strategy.algorithm
    linsolver = strategy.linear_solver
    diff = strategy.resolved_differentiation

    if diff is Differentiation.ANALYTIC and problem.jac is None:
        raise ValueError(
            f"Analytic differentiation requested but problem {problem.name!r} "
            "has no jac"
        )

    if linsolver is not None and not alg.is_implicit:
        raise ValueError(
            f"{alg.value} is explicit and does not use a linear solver"
        )
    if strategy.differentiation is not None and not alg.is_implicit:
        raise ValueError(
            f"{alg.value} is explicit and does not use a Jacobian"
        )

    if strategy.preconditioner is not None and not strategy.resolved_linear_solver.is_krylov:
        raise ValueError("A preconditioner requires a Krylov linear solver")

    if alg.is_jax:
        if strategy.step_size is None:
            raise ValueError(f"{alg.value} is a fixed-step method and needs step_size")
        if problem.time_span[1] < problem.time_span[0]:
            raise ValueError("Fixed-step methods only integrate forward in time")
        if linsolver is LinearSolver.SPARSE:
            raise ValueError(
                "Sparse linear solves are only available with the RADAU and BDF "
                "algorithms; use GMRES, CG or BICGSTAB for matrix-free solves"
            )
        return

    if linsolver is not None and linsolver.is_krylov:
        raise ValueError(
            f"{linsolver.value} is only available with the fixed-step "
            "BACKWARD_EULER algorithm"
        )
    if linsolver is LinearSolver.SPARSE:
        if alg not in (Algorithm.RADAU, Algorithm.BDF):
            raise ValueError(
                f"Sparse Jacobians are supported by RADAU and BDF, not {alg.value}"
            )
        if diff is Differentiation.FINITE_DIFFERENCE and problem.jac_sparsity is None:
            raise ValueError(
                f"Sparse finite differences need a jac_sparsity pattern on "
                f"problem {problem.name!r}"
            )


@lru_cache(maxsize=64)
def forward_mode_jacobian(problem: ProblemSpec) -> Callable[[float, np.ndarray], np.ndarray]:
    """
    Jacobian of the state function by forward-mode AD, as jac(t, y).

    The state function is traced with JAX, so it must be written with
    operations that accept JAX arrays. Writing traced values into a
    preallocated NumPy buffer raises TypeError.

    Cached per problem so repeated solves reuse one compilation.
    """
    f = problem.state_function
    params = problem.params
    jac = jax.jit(jax.jacfwd(lambda y, t: f(y, params, t)))

    def evaluate(t, y):
        return np.asarray(jac(jnp.asarray(y), float(t)), dtype=np.float64)

    return evaluate


@lru_cache(maxsize=64)
def compiled_rhs(problem: ProblemSpec) -> Callable[[float, np.ndarray], np.ndarray]:
    """Jitted right-hand side in the SciPy convention fun(t, y), cached per problem."""
    f = problem.jax_rhs
    params = problem.params
    compiled = jax.jit(lambda t, y: f(t, y, params))
    return lambda t, y: np.asarray(compiled(float(t), jnp.asarray(y)), dtype=np.float64)


def _scipy_rhs(problem: ProblemSpec, strategy: StrategyConfig) -> Callable:
    if not strategy.jit_rhs:
        return problem.rhs
    return compiled_rhs(problem)


def _scipy_jacobian_options(problem: ProblemSpec, strategy: StrategyConfig) -> dict:
    """Keyword arguments describing the Jacobian for `scipy.integrate.solve_ivp`."""
    if not strategy.algorithm.is_implicit:
        return {}

    diff = strategy.resolved_differentiation
    sparse = strategy.resolved_linear_solver is LinearSolver.SPARSE

    if diff is Differentiation.FINITE_DIFFERENCE:
        # SciPy differentiates numerically when no jac is given
        return {"jac_sparsity": problem.sparsity_pattern()} if sparse else {}

    if diff is Differentiation.ANALYTIC:
        user_jac = problem.jac
        params = problem.params
        jac = lambda t, y: np.asarray(user_jac(y, params, t), dtype=np.float64)
    else:
        jac = forward_mode_jacobian(problem)

    if sparse:
        dense_jac = jac
        jac = lambda t, y: sp.csc_matrix(dense_jac(t, y))

    # Evaluate once up front so differentiation failures surface before
    # integration starts
    t0 = problem.time_span[0]
    J0 = jac(t0, np.array(problem.initial_state))
    if J0.shape != (problem.size, problem.size):
        raise ValueError(
            f"Jacobian has shape {J0.shape}, expected {(problem.size, problem.size)}"
        )
    return {"jac": jac}


def _solve_scipy(
    problem: ProblemSpec,
    strategy: StrategyConfig,
    saveat: Optional[np.ndarray],
) -> Solution:
    method = strategy.algorithm.scipy_method
    options = _scipy_jacobian_options(problem, strategy)
    logger.debug(
        "Solving %s with scipy %s (%s)", problem.name, method, sorted(options)
    )

    result = scipy.integrate.solve_ivp(
        _scipy_rhs(problem, strategy),
        problem.time_span,
        np.array(problem.initial_state),
        method=method,
        t_eval=saveat,
        rtol=strategy.reltol,
        atol=strategy.abstol,
        **options,
    )
    if not result.success:
        logger.warning(
            "%s on %s stopped at t=%g: %s",
            method, problem.name, result.t[-1], result.message,
        )

    return Solution(
        t=result.t,
        y=result.y.T,
        success=bool(result.success),
        message=str(result.message),
        algorithm=strategy.algorithm,
        nfev=int(result.nfev),
        njev=int(result.njev),
        nlu=int(result.nlu),
    )


def build_stepper(
    problem: ProblemSpec, strategy: StrategyConfig
) -> integrate.StepperProtocol:
    """Instantiate the JAX time stepper described by `strategy`."""
    alg = strategy.algorithm
    if alg is Algorithm.FORWARD_EULER:
        return integrate.ForwardEuler()
    if alg is Algorithm.RK4:
        return integrate.RK4()

    kind = strategy.resolved_linear_solver
    if kind is LinearSolver.DENSE:
        linsolver = integrate.DirectDense()
    else:
        krylov = {
            LinearSolver.GMRES: integrate.GMRES,
            LinearSolver.CG: integrate.CG,
            LinearSolver.BICGSTAB: integrate.BiCGStab,
        }[kind]
        linsolver = krylov(
            tol=strategy.krylov_tol,
            maxiter=strategy.krylov_maxiter,
            preconditioner=strategy.preconditioner,
        )
    root_finder = integrate.NewtonRaphson(
        tol=strategy.newton_tol,
        maxiter=strategy.newton_maxiter,
        linsolver=linsolver,
    )

    diff = strategy.resolved_differentiation
    if diff is Differentiation.ANALYTIC:
        return integrate.BackwardEuler(root_finder=root_finder, jac=problem.jax_jac)
    return integrate.BackwardEuler(root_finder=root_finder, differentiation=diff.value)


@lru_cache(maxsize=64)
def compiled_integrator(
    problem: ProblemSpec, strategy: StrategyConfig
) -> Tuple[integrate.StepperProtocol, Callable]:
    """
    Stepper and jitted integrator (t0, t1, y0, args) -> (t, y) for a pair.

    Cached so repeated solves of the same pair reuse one compilation.
    """
    method = build_stepper(problem, strategy)
    fun = problem.jax_rhs
    step_size = strategy.step_size

    def integrator(t0, t1, y0, args):
        return integrate.solve_ivp(fun, (t0, t1), y0, method, step_size, args)

    return method, jax.jit(integrator)


def _solve_jax(
    problem: ProblemSpec,
    strategy: StrategyConfig,
    saveat: Optional[np.ndarray],
) -> Solution:
    method, integrator = compiled_integrator(problem, strategy)
    logger.debug("Solving %s with %s", problem.name, type(method).__name__)

    t, y = integrate.solve_with_history(
        problem.jax_rhs,
        problem.time_span,
        jnp.asarray(problem.initial_state),
        method,
        strategy.step_size,
        t_eval=saveat,
        args=(problem.params,),
        integrator=integrator,
    )
    success = bool(jnp.all(jnp.isfinite(y[-1])))
    if not success:
        logger.warning("%s on %s produced non-finite values", strategy.algorithm.value, problem.name)

    return Solution(
        t=t,
        y=y,
        success=success,
        message="Fixed-step integration finished" if success else "Non-finite state",
        algorithm=strategy.algorithm,
    )


def solve(
    problem: ProblemSpec,
    strategy: Optional[StrategyConfig] = None,
    saveat: Optional[np.ndarray] = None,
) -> Solution:
    """
    Solve `problem` with the variant selected by `strategy`.

    Args:
        problem: Problem to solve.
        strategy: Algorithmic variant. Default: StrategyConfig().
        saveat: Times at which to report the state. Default: every step
            taken for SciPy methods, only the end points for JAX methods.

    Returns:
        Solution

    Raises:
        ValueError: If the strategy is incompatible with the problem.
        TypeError: If the state function does not match its calling
            convention or cannot be traced by JAX.
    """
    if strategy is None:
        strategy = StrategyConfig()
    check_compatibility(problem, strategy)

    if strategy.algorithm.is_jax:
        return _solve_jax(problem, strategy, saveat)
    return _solve_scipy(problem, strategy, saveat)
