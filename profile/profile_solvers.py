"""
Profiling script for compilation overhead, ensembles and SciPy dispatch.
"""

import argparse
import cProfile
import io
import pstats

import jax

from odebench import StrategyConfig, benchmark_ensemble, solve, timer
from odebench.problems import get_problem, random_parameters


def profile_compilation_overhead():
    print(f"\n{'='*60}")
    print("JAX Compilation Overhead Analysis")
    print(f"{'='*60}")

    problem = get_problem("heat", n=64)
    strategy = StrategyConfig(algorithm="backward_euler", linear_solver="cg", step_size=0.25)

    jax.config.update('jax_log_compiles', True)

    print("=== FIRST CALL (expect compilation) ===")
    with timer("First call (with compilation)"):
        jax.block_until_ready(solve(problem, strategy).y)

    print("\n=== SECOND CALL (should be fast, no compilation) ===")
    with timer("Second call (compiled)"):
        jax.block_until_ready(solve(problem, strategy).y)

    print("\n=== DIFFERENT GRID (expect recompilation) ===")
    with timer("Different grid size"):
        jax.block_until_ready(solve(get_problem("heat", n=128), strategy).y)

    print("\n=== DIFFERENT SCALAR PARAMETERS (should re-use compilation) ===")
    D, bc_left, bc_right, dx = problem.params
    with timer("Different diffusivity"):
        jax.block_until_ready(
            solve(problem.with_params((2.0 * D, bc_left, bc_right, dx)), strategy).y
        )

    jax.config.update('jax_log_compiles', False)


def profile_ensembles(n_trajectories=1000):
    print(f"\n{'='*60}")
    print(f"Lorenz ensemble, {n_trajectories} trajectories")
    print(f"{'='*60}")

    problem = get_problem("lorenz")
    strategy = StrategyConfig(algorithm="rk4", step_size=1e-3)
    params = random_parameters(jax.random.PRNGKey(0), n_trajectories)

    serial, _ = benchmark_ensemble(problem, strategy, params[:100], ensemble="serial")
    vectorized, _ = benchmark_ensemble(problem, strategy, params, ensemble="vectorized")
    per_serial = serial.elapsed_seconds / 100
    per_vectorized = vectorized.elapsed_seconds / n_trajectories
    print(f"Per trajectory: serial {per_serial:.2e}s, vectorized {per_vectorized:.2e}s")


def profile_scipy_cprofile(n_runs=3):
    """Profile the SciPy path, where Python-level overhead dominates."""
    print(f"\n{'='*60}")
    print(f"Profiling BDF on Robertson with cProfile (runs={n_runs})")
    print(f"{'='*60}")

    problem = get_problem("robertson")
    strategy = StrategyConfig(algorithm="bdf")
    solve(problem, strategy)

    profiler = cProfile.Profile()
    profiler.enable()
    for _ in range(n_runs):
        solve(problem, strategy)
    profiler.disable()

    s = io.StringIO()
    ps = pstats.Stats(profiler, stream=s)
    ps.sort_stats('cumulative')
    ps.print_stats(20)  # Top 20 functions
    print(s.getvalue())

    return profiler


def main():
    parser = argparse.ArgumentParser(description='Profile odebench solves')
    parser.add_argument('--trajectories', type=int, default=1000,
                        help='Ensemble size (default: 1000)')
    parser.add_argument('--runs', type=int, default=3,
                        help='Number of profiled SciPy solves (default: 3)')
    args = parser.parse_args()

    print("Profiling odebench...")
    print(f"JAX backend: {jax.default_backend()}")
    print(f"JAX devices: {jax.devices()}")

    profile_compilation_overhead()
    profile_ensembles(args.trajectories)
    profile_scipy_cprofile(args.runs)

    print(f"\n{'='*60}")
    print("Profiling finished.")
    print(f"{'='*60}")


if __name__ == "__main__":
    main()
