"""Linear solvers for the Newton iterations of implicit steppers."""

from .direct import DirectDense
from .krylov import GMRES, CG, BiCGStab


__all__ = [
    # Direct solvers
    "DirectDense",

    # Krylov methods
    "GMRES",
    "CG",
    "BiCGStab",
]
