"""Selection of the algorithmic variant used to solve a problem."""

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Optional


class _ParsableEnum(str, Enum):

    @classmethod
    def parse(cls, value):
        """Look up a member by value or name, ignoring case and hyphens."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("-", "_")
        for member in cls:
            if key in (member.value, member.name.lower()):
                return member
        choices = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown {cls.__name__} {value!r}. Choose from: {choices}")


class Algorithm(_ParsableEnum):
    """
    Integration algorithms.

    DEFAULT and the upper-case SciPy names dispatch to
    `scipy.integrate.solve_ivp`; the remaining members are the fixed-step
    JAX integrators in `odebench.integrate`.
    """
    DEFAULT = "default"
    RK45 = "rk45"
    DOP853 = "dop853"
    RADAU = "radau"
    BDF = "bdf"
    LSODA = "lsoda"
    FORWARD_EULER = "forward_euler"
    RK4 = "rk4"
    BACKWARD_EULER = "backward_euler"

    @property
    def is_jax(self) -> bool:
        return self in _JAX_ALGORITHMS

    @property
    def is_implicit(self) -> bool:
        return self in _IMPLICIT_ALGORITHMS

    @property
    def scipy_method(self) -> str:
        """Method name understood by `scipy.integrate.solve_ivp`."""
        if self.is_jax:
            raise ValueError(f"{self.value} is not a SciPy method")
        if self is Algorithm.DEFAULT:
            # Automatic stiffness detection
            return "LSODA"
        return {"rk45": "RK45", "dop853": "DOP853", "radau": "Radau",
                "bdf": "BDF", "lsoda": "LSODA"}[self.value]


_JAX_ALGORITHMS = frozenset(
    {Algorithm.FORWARD_EULER, Algorithm.RK4, Algorithm.BACKWARD_EULER}
)
_IMPLICIT_ALGORITHMS = frozenset(
    {Algorithm.DEFAULT, Algorithm.RADAU, Algorithm.BDF, Algorithm.LSODA,
     Algorithm.BACKWARD_EULER}
)


class LinearSolver(_ParsableEnum):
    """Linear solvers for the Newton systems of implicit methods."""
    DENSE = "dense"
    SPARSE = "sparse"
    GMRES = "gmres"
    CG = "cg"
    BICGSTAB = "bicgstab"

    @property
    def is_krylov(self) -> bool:
        return self in (LinearSolver.GMRES, LinearSolver.CG, LinearSolver.BICGSTAB)


class Differentiation(_ParsableEnum):
    """How Jacobians of the state function are obtained."""
    FORWARD = "forward"
    FINITE_DIFFERENCE = "finite_difference"
    ANALYTIC = "analytic"


@dataclass(frozen=True)
class StrategyConfig:
    """
    Algorithmic variant used to solve a `ProblemSpec`.

    Optional fields left as None take the defaults reported by
    `resolved_linear_solver` and `resolved_differentiation`. Compatibility
    with a given problem is checked by `odebench.solve`, not here.

    Attributes:
        algorithm: Integration algorithm.
        linear_solver: Linear solver for implicit methods.
        differentiation: Source of the Jacobian for implicit methods.
        preconditioner: Operator v -> M*v approximating J^{-1}*v, used by
            the Krylov solvers.
        reltol: Relative tolerance of adaptive (SciPy) methods.
        abstol: Absolute tolerance of adaptive (SciPy) methods.
        step_size: Step size of the fixed-step (JAX) methods.
        newton_tol: Residual tolerance of the Newton iteration.
        newton_maxiter: Maximum number of Newton iterations per step.
        krylov_tol: Residual tolerance of the Krylov solvers.
        krylov_maxiter: Maximum number of Krylov iterations.
        jit_rhs: Compile the state function with `jax.jit` before handing
            it to SciPy. Requires an out-of-place, traceable function.
        label: Optional display name.
    """

    algorithm: Algorithm = Algorithm.DEFAULT
    linear_solver: Optional[LinearSolver] = None
    differentiation: Optional[Differentiation] = None
    preconditioner: Optional[Callable] = None
    reltol: float = 1e-6
    abstol: float = 1e-10
    step_size: Optional[float] = None
    newton_tol: float = 1e-8
    newton_maxiter: int = 20
    krylov_tol: float = 1e-8
    krylov_maxiter: int = 100
    jit_rhs: bool = False
    label: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "algorithm", Algorithm.parse(self.algorithm))
        if self.linear_solver is not None:
            object.__setattr__(
                self, "linear_solver", LinearSolver.parse(self.linear_solver)
            )
        if self.differentiation is not None:
            object.__setattr__(
                self, "differentiation", Differentiation.parse(self.differentiation)
            )
        if self.step_size is not None and not self.step_size > 0:
            raise ValueError(f"step_size must be positive, got {self.step_size}")
        if self.reltol <= 0 or self.abstol <= 0:
            raise ValueError("reltol and abstol must be positive")

    @classmethod
    def from_dict(cls, mapping: Mapping[str, Any]) -> "StrategyConfig":
        """Build a config from plain values, skipping keys set to None."""
        names = {f.name for f in dataclasses.fields(cls)}
        unknown = set(mapping) - names
        if unknown:
            raise ValueError(f"Unknown strategy fields: {sorted(unknown)}")
        return cls(**{k: v for k, v in mapping.items() if v is not None})

    def replace(self, **changes) -> "StrategyConfig":
        return dataclasses.replace(self, **changes)

    @property
    def resolved_differentiation(self) -> Differentiation:
        return self.differentiation or Differentiation.FORWARD

    @property
    def resolved_linear_solver(self) -> LinearSolver:
        if self.linear_solver is not None:
            return self.linear_solver
        return LinearSolver.GMRES if self.algorithm.is_jax else LinearSolver.DENSE

    @property
    def display_name(self) -> str:
        if self.label:
            return self.label
        parts = [self.algorithm.value]
        if self.linear_solver is not None:
            parts.append(self.linear_solver.value)
        if self.differentiation is not None:
            parts.append(self.differentiation.value)
        return "/".join(parts)
