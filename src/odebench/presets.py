"""
Strategy comparisons for the registered problems.

Each entry maps a label to the StrategyConfig it names. The heat presets
are tuned to the default `heat_problem()` grid.
"""

from typing import Dict

from .problems.heat import heat_grid, jacobi_preconditioner
from .strategy import StrategyConfig

HEAT_STEP = 0.25
_heat_dx = heat_grid(64, 100.0)[1]

PRESETS: Dict[str, Dict[str, StrategyConfig]] = {
    "robertson": {
        "default, AD": StrategyConfig(),
        "Radau, AD": StrategyConfig(algorithm="radau"),
        "BDF, AD": StrategyConfig(algorithm="bdf"),
        "BDF, finite differences": StrategyConfig(
            algorithm="bdf", differentiation="finite_difference"
        ),
        "BDF, analytic": StrategyConfig(algorithm="bdf", differentiation="analytic"),
    },
    "robertson_cached": {
        "default, finite differences": StrategyConfig(
            differentiation="finite_difference"
        ),
        "BDF, finite differences": StrategyConfig(
            algorithm="bdf", differentiation="finite_difference"
        ),
    },
    "robertson_generic": {
        "default, AD": StrategyConfig(),
        "BDF, AD": StrategyConfig(algorithm="bdf"),
    },
    "brusselator": {
        "BDF, dense AD": StrategyConfig(algorithm="bdf", linear_solver="dense"),
        "BDF, sparse AD": StrategyConfig(algorithm="bdf", linear_solver="sparse"),
        "BDF, sparse finite differences": StrategyConfig(
            algorithm="bdf", linear_solver="sparse",
            differentiation="finite_difference",
        ),
    },
    "heat": {
        "RK4": StrategyConfig(algorithm="rk4", step_size=0.1),
        "backward Euler, dense": StrategyConfig(
            algorithm="backward_euler", linear_solver="dense", step_size=HEAT_STEP
        ),
        "backward Euler, GMRES": StrategyConfig(
            algorithm="backward_euler", linear_solver="gmres", step_size=HEAT_STEP
        ),
        "backward Euler, CG": StrategyConfig(
            algorithm="backward_euler", linear_solver="cg", step_size=HEAT_STEP
        ),
        "backward Euler, CG + Jacobi": StrategyConfig(
            algorithm="backward_euler", linear_solver="cg", step_size=HEAT_STEP,
            preconditioner=jacobi_preconditioner(2.0, _heat_dx, HEAT_STEP),
        ),
    },
    "lorenz": {
        "RK4": StrategyConfig(algorithm="rk4", step_size=1e-3),
        "RK45": StrategyConfig(algorithm="rk45", reltol=1e-8, abstol=1e-8),
        "DOP853": StrategyConfig(algorithm="dop853", reltol=1e-8, abstol=1e-8),
    },
}


def get_presets(name: str) -> Dict[str, StrategyConfig]:
    try:
        return PRESETS[name.replace("-", "_")]
    except KeyError:
        raise KeyError(
            f"No presets for {name!r}. Available: {', '.join(PRESETS)}"
        ) from None
