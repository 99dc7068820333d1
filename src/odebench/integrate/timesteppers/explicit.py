"""Explicit time-stepping schemes."""

from typing import Callable, ClassVar, Tuple

from flax import nnx
from jax import Array


class ExplicitRungeKutta(nnx.Module):
    """
    Explicit Runge-Kutta scheme given by its Butcher tableau.

        k_i = f(t + c_i h, y + h Σ_j a_ij k_j),   j < i
        y_{n+1} = y_n + h Σ_i b_i k_i

    Subclasses set `a` (strictly lower triangular, row by row), `b` and `c`.

    Implements: StepperProtocol
    """

    a: ClassVar[Tuple[Tuple[float, ...], ...]]
    b: ClassVar[Tuple[float, ...]]
    c: ClassVar[Tuple[float, ...]]

    def step(
        self,
        fun: Callable,
        t: Array,
        y: Array,
        h: Array,
        args: tuple = ()
    ) -> Array:
        stages = []
        for a_i, c_i in zip(self.a, self.c):
            y_i = y
            for a_ij, k_j in zip(a_i, stages):
                if a_ij:
                    y_i = y_i + (a_ij * h) * k_j
            stages.append(fun(t + c_i * h, y_i, *args))

        increment = sum(b_i * k_i for b_i, k_i in zip(self.b, stages) if b_i)
        return y + h * increment


class ForwardEuler(ExplicitRungeKutta):
    """
    Forward Euler method, first order.

    Discretisation:
        $$ \\frac{(y_{n+1} - y_n)}{h} = f(t_n, y_n) $$
    """

    a = ((),)
    b = (1.0,)
    c = (0.0,)


class RK4(ExplicitRungeKutta):
    """Classical fourth-order Runge-Kutta method."""

    a = (
        (),
        (0.5,),
        (0.0, 0.5),
        (0.0, 0.0, 1.0),
    )
    b = (1.0 / 6.0, 1.0 / 3.0, 1.0 / 3.0, 1.0 / 6.0)
    c = (0.0, 0.5, 0.5, 1.0)
