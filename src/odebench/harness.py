"""
Timed execution of solves.

Every benchmark makes one untimed warm-up call, which absorbs JIT
compilation and other one-time setup, then times the same call again
inside an explicit `timer` scope. Measurements are single-shot unless
more samples are requested.
"""

import logging
import math
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List, Mapping, Optional, Sequence, Tuple, Union

import jax

from .problem import ProblemSpec
from .solve import Solution, solve
from .strategy import StrategyConfig

logger = logging.getLogger(__name__)


@dataclass
class Stopwatch:
    """Elapsed time of a `timer` scope, set when the scope exits."""
    description: Optional[str] = None
    elapsed: Optional[float] = None


@contextmanager
def timer(description: Optional[str] = None, verbose: bool = True) -> Iterator[Stopwatch]:
    """Simple timing context manager."""
    watch = Stopwatch(description)
    if verbose and description:
        print(f"Starting: {description}")
    start = time.perf_counter()
    try:
        yield watch
    finally:
        watch.elapsed = time.perf_counter() - start
    if verbose:
        print(f"Completed: {description or 'block'} in {watch.elapsed:.3f}s")


@dataclass(frozen=True)
class TimingResult:
    """
    Wall-clock time of a benchmarked solve.

    Attributes:
        elapsed_seconds: Fastest of the timed samples.
        samples: Elapsed time of every timed sample.
        label: Name of the benchmarked strategy.
    """
    elapsed_seconds: float
    samples: Tuple[float, ...] = field(default_factory=tuple)
    label: str = ""

    def __post_init__(self):
        if not (math.isfinite(self.elapsed_seconds) and self.elapsed_seconds >= 0):
            raise ValueError(f"Invalid elapsed time: {self.elapsed_seconds}")


@dataclass(frozen=True)
class BenchmarkResult:
    """
    Outcome of `benchmark`.

    Attributes:
        timing: Timed samples of the solve.
        solution: Solution of the last timed solve.
        strategy: Strategy that was benchmarked.
    """
    timing: TimingResult
    solution: Solution
    strategy: StrategyConfig

    @property
    def elapsed_seconds(self) -> float:
        return self.timing.elapsed_seconds


def _block(solution: Solution) -> None:
    # JAX dispatches asynchronously; wait for the arrays before stopping the clock
    jax.block_until_ready((solution.t, solution.y))


def benchmark(
    problem: ProblemSpec,
    strategy: Optional[StrategyConfig] = None,
    *,
    warmup: bool = True,
    samples: int = 1,
    verbose: bool = True,
) -> BenchmarkResult:
    """
    Solve `problem` once untimed, then `samples` more times under a timer.

    Args:
        problem: Problem to solve.
        strategy: Algorithmic variant. Default: StrategyConfig().
        warmup: Make the untimed warm-up call first.
        samples: Number of timed solves. The reported time is the fastest.
        verbose: Print the timings to stdout.

    Returns:
        BenchmarkResult holding the timing and the solution of the last
        timed solve.

    Errors raised by the solve propagate unchanged.
    """
    if samples < 1:
        raise ValueError(f"samples must be at least 1, got {samples}")
    if strategy is None:
        strategy = StrategyConfig()
    label = strategy.display_name

    if warmup:
        _block(solve(problem, strategy))

    times: List[float] = []
    solution = None
    for _ in range(samples):
        with timer(verbose=False) as watch:
            solution = solve(problem, strategy)
            _block(solution)
        times.append(watch.elapsed)

    timing = TimingResult(elapsed_seconds=min(times), samples=tuple(times), label=label)
    logger.info("%s on %s: %.6fs", label, problem.name, timing.elapsed_seconds)
    if verbose:
        print(f"{problem.name} [{label}]: {timing.elapsed_seconds:.6f}s")

    return BenchmarkResult(timing=timing, solution=solution, strategy=strategy)


def compare(
    problem: ProblemSpec,
    strategies: Union[Mapping[str, StrategyConfig], Sequence[StrategyConfig]],
    **kwargs,
) -> List[BenchmarkResult]:
    """
    Benchmark several strategies on the same problem, one after another.

    Args:
        problem: Problem to solve.
        strategies: Strategies to compare. Mapping keys override labels.
        **kwargs: Passed on to `benchmark`.

    Returns:
        One BenchmarkResult per strategy, in input order.
    """
    if isinstance(strategies, Mapping):
        strategies = [s.replace(label=name) for name, s in strategies.items()]
    return [benchmark(problem, s, **kwargs) for s in strategies]


def format_comparison(results: Sequence[BenchmarkResult]) -> str:
    """Table of timings, with speed-ups relative to the first result."""
    if not results:
        return ""
    reference = results[0].elapsed_seconds
    width = max(len("strategy"), *(len(r.timing.label) for r in results))

    lines = [
        f"{'strategy':<{width}}  {'time [s]':>10}  {'speedup':>8}  {'nfev':>7}  success",
        "-" * (width + 45),
    ]
    for r in results:
        speedup = reference / r.elapsed_seconds if r.elapsed_seconds > 0 else math.inf
        lines.append(
            f"{r.timing.label:<{width}}  {r.elapsed_seconds:>10.6f}  "
            f"{speedup:>7.2f}x  {r.solution.nfev:>7d}  {r.solution.success}"
        )
    return "\n".join(lines)
