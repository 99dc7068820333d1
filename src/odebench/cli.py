"""Command line interface: `odebench list | run | compare`."""

import argparse
import logging
import sys
from typing import List, Optional

import jax

from .harness import benchmark, compare, format_comparison
from .presets import PRESETS, get_presets
from .problems import PROBLEMS, get_problem
from .strategy import Algorithm, Differentiation, LinearSolver, StrategyConfig


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="odebench",
        description="Time differential equation solves under different strategies",
    )
    parser.add_argument('--log-level', default=None, help='Log level of the odebench logger')
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List problems and their preset strategies")

    run = sub.add_parser("run", help="Benchmark one strategy on a problem")
    run.add_argument("problem", choices=sorted(PROBLEMS))
    run.add_argument('--algorithm', default="default", choices=[a.value for a in Algorithm])
    run.add_argument('--linear-solver', default=None, choices=[s.value for s in LinearSolver])
    run.add_argument('--differentiation', default=None, choices=[d.value for d in Differentiation])
    run.add_argument('--step-size', type=float, default=None, help='Step size of fixed-step methods')
    run.add_argument('--reltol', type=float, default=1e-6, help='Relative tolerance (default: 1e-6)')
    run.add_argument('--abstol', type=float, default=1e-10, help='Absolute tolerance (default: 1e-10)')
    run.add_argument('--jit-rhs', action="store_true", help='Compile the state function for SciPy methods')
    run.add_argument('--samples', type=int, default=1, help='Number of timed runs (default: 1)')
    run.add_argument('--no-warmup', action="store_true", help='Skip the untimed warm-up run')

    cmp_ = sub.add_parser("compare", help="Benchmark every preset strategy on a problem")
    cmp_.add_argument("problem", choices=sorted(PRESETS))
    cmp_.add_argument('--samples', type=int, default=1, help='Number of timed runs (default: 1)')

    return parser


def _print_header():
    print(f"JAX backend: {jax.default_backend()}")
    print(f"JAX devices: {jax.devices()}")
    print()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.log_level:
        logging.basicConfig()
        logging.getLogger("odebench").setLevel(args.log_level.upper())

    if args.command == "list":
        for name in PROBLEMS:
            presets = PRESETS.get(name, {})
            print(name)
            for label in presets:
                print(f"    {label}")
        return 0

    if args.command == "run":
        strategy = StrategyConfig.from_dict({
            "algorithm": args.algorithm,
            "linear_solver": args.linear_solver,
            "differentiation": args.differentiation,
            "step_size": args.step_size,
            "reltol": args.reltol,
            "abstol": args.abstol,
            "jit_rhs": args.jit_rhs,
        })
        _print_header()
        result = benchmark(
            get_problem(args.problem),
            strategy,
            warmup=not args.no_warmup,
            samples=args.samples,
        )
        solution = result.solution
        print(f"success: {solution.success} ({solution.message})")
        print(f"final state at t={solution.final_time:g}: {solution.final_state}")
        return 0

    _print_header()
    print("=" * 60)
    print(f"Comparing strategies on {args.problem}")
    print("=" * 60)
    results = compare(get_problem(args.problem), get_presets(args.problem), samples=args.samples)
    print()
    print(format_comparison(results))
    return 0


if __name__ == "__main__":
    sys.exit(main())
