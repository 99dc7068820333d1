"""
Interfaces shared by the time steppers, root finders and linear solvers,
and the callable types passed between them.
"""

from typing import Callable, ClassVar, Optional, Protocol, Union, runtime_checkable

from jax import Array

type LinearMap = Callable[[Array], Array]
type JacobianConstructor = Callable[[Array], Array]
type JVPConstructor = Callable[[Array, Array], Array]
type Preconditioner = Callable[[Array], Array]


@runtime_checkable
class LinearSolverProtocol(Protocol):
    """
    Solver for the linear system J*delta = -R of one Newton iteration.

    Attributes:
        matrix_free: True if the solver only needs the action x -> A*x,
            False if it needs A as a dense matrix. Implicit steppers read
            this flag to decide which form of the Jacobian to build.
    """

    matrix_free: ClassVar[bool]

    def __call__(
        self,
        A: Union[LinearMap, Array],
        b: Array,
        x0: Optional[Array] = None,
    ) -> Array:
        ...


@runtime_checkable
class RootFinderProtocol(Protocol):
    """
    Solver for the nonlinear system R(y) = 0 of one implicit step.

    Exactly one of `jvp_fn` (y, v) -> J(y)*v or `jac_fn` y -> J(y) is
    given, matching the `matrix_free` flag of the linear solver.
    """

    def __call__(
        self,
        residual_fn: LinearMap,
        y_guess: Array,
        jvp_fn: Optional[JVPConstructor] = None,
        jac_fn: Optional[JacobianConstructor] = None,
    ) -> Array:
        ...


@runtime_checkable
class StepperProtocol(Protocol):
    """
    One step y(t) -> y(t + h) of dy/dt = fun(t, y, *args).

    `t` and `h` arrive as 0-dimensional arrays inside a traced loop, so
    implementations must not branch on their values in Python.
    """

    def step(
        self,
        fun: Callable,
        t: Array,
        y: Array,
        h: Array,
        args: tuple = (),
    ) -> Array:
        ...
