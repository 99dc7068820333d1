"""
Fixed-step time integration schemes for initial value problems written in JAX.
"""

# Solver interfaces
from .solve import solve_with_history, solve_ivp

# Interfaces between steppers, root finders and linear solvers
from .protocols import StepperProtocol, RootFinderProtocol, LinearSolverProtocol

# Time-stepping schemes
from .timesteppers import ExplicitRungeKutta, ForwardEuler, RK4, BackwardEuler

# Root-finding algorithms
from .rootfinders import NewtonRaphson

# Linear solvers
from .linsolvers import GMRES, CG, BiCGStab, DirectDense

__all__ = [
    # Solver interfaces
    'solve_ivp',
    'solve_with_history',

    # Protocols
    'StepperProtocol',
    'RootFinderProtocol',
    'LinearSolverProtocol',

    # Time-stepping methods
    'ExplicitRungeKutta',
    'ForwardEuler',
    'RK4',
    'BackwardEuler',

    # Root-finding algorithms
    'NewtonRaphson',

    # Linear solvers
    'GMRES',
    'CG',
    'BiCGStab',
    'DirectDense',
]
