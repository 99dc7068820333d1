"""Immutable description of a state-evolution problem."""

import dataclasses
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Callable, Optional, Tuple

import numpy as np
import scipy.sparse as sp


@dataclass(frozen=True, eq=False)
class ProblemSpec:
    """
    State-evolution problem du/dt = f(u, p, t).

    Attributes:
        state_function: Out-of-place f(u, p, t) -> du, or in-place
            f(du, u, p, t) -> None when `in_place` is True.
        initial_state: Initial condition, stored as a read-only float64 copy.
        time_span: (start, end) of the integration interval.
        params: Parameters passed to the state function (any JAX pytree).
        in_place: Calling convention of the state function.
        jac: Optional analytic Jacobian J(u, p, t) -> (n, n).
        jac_sparsity: Optional (n, n) sparsity pattern of the Jacobian.
        name: Display name.

    The calling convention is not checked here; a state function that does
    not match `in_place` fails on its first call.
    """

    state_function: Callable
    initial_state: np.ndarray
    time_span: Tuple[float, float]
    params: Any = ()
    in_place: bool = False
    jac: Optional[Callable] = None
    jac_sparsity: Optional[Any] = field(default=None, repr=False)
    name: str = "problem"

    def __post_init__(self):
        u0 = np.array(self.initial_state, dtype=np.float64)
        if u0.ndim != 1:
            raise ValueError(f"initial_state must be 1-dimensional, got shape {u0.shape}")
        u0.setflags(write=False)
        object.__setattr__(self, "initial_state", u0)

        if len(self.time_span) != 2:
            raise ValueError(f"time_span must be (start, end), got {self.time_span!r}")
        t0, t1 = (float(t) for t in self.time_span)
        if t0 == t1:
            raise ValueError("time_span must have a non-zero length")
        object.__setattr__(self, "time_span", (t0, t1))

        if isinstance(self.params, list):
            object.__setattr__(self, "params", tuple(self.params))

        if self.jac_sparsity is not None:
            shape = self.jac_sparsity.shape
            if shape != (u0.size, u0.size):
                raise ValueError(
                    f"jac_sparsity has shape {shape}, expected {(u0.size, u0.size)}"
                )

    @property
    def size(self) -> int:
        return self.initial_state.size

    def rhs(self, t: float, y: np.ndarray) -> np.ndarray:
        """Right-hand side in the SciPy convention fun(t, y)."""
        if self.in_place:
            du = np.zeros_like(y, dtype=np.float64)
            self.state_function(du, y, self.params, t)
            return du
        return np.asarray(self.state_function(y, self.params, t), dtype=np.float64)

    @cached_property
    def jax_rhs(self) -> Callable:
        """
        Right-hand side in the convention fun(t, y, params) of the JAX
        integrators.

        Cached so that compiled integrators see the same function object on
        every call.
        """
        if self.in_place:
            raise TypeError(
                f"Problem {self.name!r} uses an in-place state function, which "
                "cannot be traced by JAX. Provide an out-of-place f(u, p, t)."
            )
        f = self.state_function
        return lambda t, y, params: f(y, params, t)

    @cached_property
    def jax_jac(self) -> Optional[Callable]:
        """Analytic Jacobian in the convention jac(t, y, params), if any."""
        if self.jac is None:
            return None
        jac = self.jac
        return lambda t, y, params: jac(y, params, t)

    def sparsity_pattern(self) -> Optional[sp.csc_matrix]:
        """Jacobian sparsity pattern as a boolean CSC matrix."""
        if self.jac_sparsity is None:
            return None
        return sp.csc_matrix(self.jac_sparsity, dtype=bool)

    def remake(self, **changes) -> "ProblemSpec":
        """Return a copy with some fields replaced."""
        return dataclasses.replace(self, **changes)

    def with_params(self, params) -> "ProblemSpec":
        return self.remake(params=params)
