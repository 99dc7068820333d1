"""
Example problems: stiff kinetics, chaotic dynamics and method-of-lines PDEs.
"""

from functools import partial

from .robertson import (
    robertson,
    robertson_inplace,
    robertson_jacobian,
    robertson_generic,
    make_cached_robertson,
    robertson_problem,
)
from .lorenz import lorenz, lorenz_problem, random_parameters
from .heat import (
    heat_rhs,
    heat_jacobian,
    heat_sparsity,
    heat_grid,
    gaussian_solution,
    jacobi_preconditioner,
    heat_problem,
)
from .brusselator import make_brusselator, brusselator_sparsity, brusselator_problem
from .finite_differences import (
    d2__dx2_c_periodic,
    d2__dx2_c_dirichlet,
    laplacian_2d_periodic,
)

PROBLEMS = {
    "robertson": robertson_problem,
    "robertson_inplace": partial(robertson_problem, variant="in_place"),
    "robertson_cached": partial(robertson_problem, variant="cached"),
    "robertson_generic": partial(robertson_problem, variant="generic"),
    "lorenz": lorenz_problem,
    "heat": heat_problem,
    "brusselator": brusselator_problem,
}


def get_problem(name: str, **kwargs):
    """Build a registered problem by name."""
    try:
        factory = PROBLEMS[name.replace("-", "_")]
    except KeyError:
        raise KeyError(
            f"Unknown problem {name!r}. Available: {', '.join(PROBLEMS)}"
        ) from None
    return factory(**kwargs)


__all__ = [
    # Registry
    "PROBLEMS",
    "get_problem",

    # Robertson
    "robertson",
    "robertson_inplace",
    "robertson_jacobian",
    "robertson_generic",
    "make_cached_robertson",
    "robertson_problem",

    # Lorenz
    "lorenz",
    "lorenz_problem",
    "random_parameters",

    # Heat equation
    "heat_rhs",
    "heat_jacobian",
    "heat_sparsity",
    "heat_grid",
    "gaussian_solution",
    "jacobi_preconditioner",
    "heat_problem",

    # Brusselator
    "make_brusselator",
    "brusselator_sparsity",
    "brusselator_problem",

    # Stencils
    "d2__dx2_c_periodic",
    "d2__dx2_c_dirichlet",
    "laplacian_2d_periodic",
]
