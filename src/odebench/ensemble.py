"""
Ensembles: one problem integrated for many parameter sets.

The vectorized ensemble maps the compiled fixed-step integrator over the
trajectory axis with `jax.vmap`, so all trajectories advance together on
whichever device JAX runs on (a GPU when one is available). The serial
ensemble loops over the trajectories in Python and serves as the baseline.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, List, Optional, Tuple, Union

import jax
from jax import Array
import jax.numpy as jnp
import numpy as np

from .harness import TimingResult, timer
from .problem import ProblemSpec
from .solve import check_compatibility, compiled_integrator
from .strategy import StrategyConfig

logger = logging.getLogger(__name__)


class EnsembleAlgorithm(str, Enum):
    SERIAL = "serial"
    VECTORIZED = "vectorized"


@dataclass(frozen=True)
class EnsembleSolution:
    """
    Final states of an ensemble.

    Attributes:
        t_final: Final time of every trajectory, shape (n_trajectories,)
        y_final: Final state of every trajectory, shape (n_trajectories, n)
        n_trajectories: Number of trajectories
        algorithm: How the trajectories were run
    """
    t_final: Array
    y_final: Array
    n_trajectories: int
    algorithm: EnsembleAlgorithm


@lru_cache(maxsize=32)
def _vectorized(integrator, y0_axis: Optional[int]):
    return jax.jit(jax.vmap(integrator, in_axes=(None, None, y0_axis, 0)))


def _batch_size(params_batch: Any, y0_batch: Optional[Array]) -> int:
    leaves = jax.tree_util.tree_leaves(params_batch)
    if not leaves:
        raise ValueError("params_batch has no array leaves")
    sizes = {np.shape(leaf)[0] if np.ndim(leaf) > 0 else None for leaf in leaves}
    if None in sizes or len(sizes) != 1:
        raise ValueError(
            "Every leaf of params_batch needs the same leading (trajectory) axis"
        )
    (n,) = sizes
    if y0_batch is not None and np.shape(y0_batch)[0] != n:
        raise ValueError(
            f"y0_batch has {np.shape(y0_batch)[0]} rows but params_batch has {n}"
        )
    return n


def _resolve_device(device: Union[str, jax.Device, None]) -> Optional[jax.Device]:
    if isinstance(device, str):
        return jax.devices(device)[0]
    return device


def solve_ensemble(
    problem: ProblemSpec,
    strategy: StrategyConfig,
    params_batch: Any,
    *,
    y0_batch: Optional[Array] = None,
    ensemble: EnsembleAlgorithm = EnsembleAlgorithm.VECTORIZED,
    device: Union[str, jax.Device, None] = None,
) -> EnsembleSolution:
    """
    Integrate `problem` once per parameter set in `params_batch`.

    Args:
        problem: Problem whose state function and time span are shared by
            all trajectories.
        strategy: A fixed-step JAX strategy.
        params_batch: Pytree whose leaves have the trajectory axis first.
        y0_batch: Optional initial states, shape (n_trajectories, n).
            Default: `problem.initial_state` for every trajectory.
        ensemble: SERIAL or VECTORIZED.
        device: JAX device, or platform name such as "gpu", to run on.

    Returns:
        EnsembleSolution
    """
    if not strategy.algorithm.is_jax:
        raise ValueError(
            f"Ensembles run on the JAX integrators; {strategy.algorithm.value} "
            "is a SciPy method"
        )
    ensemble = EnsembleAlgorithm(ensemble)
    check_compatibility(problem, strategy)
    n = _batch_size(params_batch, y0_batch)

    _, integrator = compiled_integrator(problem, strategy)
    t0, t1 = problem.time_span
    params_batch = jax.tree_util.tree_map(jnp.asarray, params_batch)
    if y0_batch is None:
        y0, y0_axis = jnp.asarray(problem.initial_state), None
    else:
        y0, y0_axis = jnp.asarray(y0_batch), 0

    target = _resolve_device(device)
    if target is not None:
        params_batch, y0 = jax.device_put((params_batch, y0), target)
    logger.debug("Running %d trajectories of %s (%s)", n, problem.name, ensemble.value)

    if ensemble is EnsembleAlgorithm.VECTORIZED:
        t_final, y_final = _vectorized(integrator, y0_axis)(t0, t1, y0, (params_batch,))
    else:
        ts: List[Array] = []
        ys: List[Array] = []
        for i in range(n):
            params_i = jax.tree_util.tree_map(lambda leaf: leaf[i], params_batch)
            y0_i = y0 if y0_axis is None else y0[i]
            t_i, y_i = integrator(t0, t1, y0_i, (params_i,))
            ts.append(t_i)
            ys.append(y_i)
        t_final, y_final = jnp.stack(ts), jnp.stack(ys)

    return EnsembleSolution(
        t_final=t_final, y_final=y_final, n_trajectories=n, algorithm=ensemble
    )


def benchmark_ensemble(
    problem: ProblemSpec,
    strategy: StrategyConfig,
    params_batch: Any,
    *,
    warmup: bool = True,
    verbose: bool = True,
    **kwargs,
) -> Tuple[TimingResult, EnsembleSolution]:
    """Warm-up call, then one timed call of `solve_ensemble`."""
    if warmup:
        jax.block_until_ready(
            solve_ensemble(problem, strategy, params_batch, **kwargs).y_final
        )

    with timer(verbose=False) as watch:
        solution = solve_ensemble(problem, strategy, params_batch, **kwargs)
        jax.block_until_ready(solution.y_final)

    label = f"{strategy.display_name}/{solution.algorithm.value}"
    if verbose:
        print(
            f"{problem.name} [{label}] x{solution.n_trajectories}: "
            f"{watch.elapsed:.6f}s"
        )
    return TimingResult(watch.elapsed, (watch.elapsed,), label), solution
