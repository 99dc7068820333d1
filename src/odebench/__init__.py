"""
odebench

Benchmark harness for differential equation solvers: describe a problem,
pick a strategy (algorithm, linear solver, differentiation mode), and time
the solve after a warm-up call.

Main components:
- problem / strategy: ProblemSpec and StrategyConfig
- solve: dispatch to SciPy's adaptive integrators or the JAX fixed-step ones
- harness: warm-up plus timed execution, and strategy comparisons
- ensemble: vectorized parameter ensembles with jax.vmap
- problems: example problems (Robertson, Lorenz, heat, Brusselator)
"""

from .config import Settings, configure

# Float64 and platform selection only take effect before arrays exist
configure()

from .problem import ProblemSpec
from .strategy import Algorithm, LinearSolver, Differentiation, StrategyConfig
from .solve import Solution, solve
from .harness import TimingResult, BenchmarkResult, benchmark, compare, format_comparison, timer
from .ensemble import EnsembleAlgorithm, EnsembleSolution, solve_ensemble, benchmark_ensemble

__all__ = [
    # Configuration
    "Settings",
    "configure",

    # Problem and strategy
    "ProblemSpec",
    "Algorithm",
    "LinearSolver",
    "Differentiation",
    "StrategyConfig",

    # Solving
    "Solution",
    "solve",

    # Benchmarking
    "TimingResult",
    "BenchmarkResult",
    "benchmark",
    "compare",
    "format_comparison",
    "timer",

    # Ensembles
    "EnsembleAlgorithm",
    "EnsembleSolution",
    "solve_ensemble",
    "benchmark_ensemble",
]
