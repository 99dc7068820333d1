"""Time-stepping schemes for initial value problems."""

from .explicit import ExplicitRungeKutta, ForwardEuler, RK4
from .implicit import BackwardEuler

__all__ = [
    # Explicit methods
    'ExplicitRungeKutta',
    'ForwardEuler',
    'RK4',

    # Implicit methods
    'BackwardEuler',
]
