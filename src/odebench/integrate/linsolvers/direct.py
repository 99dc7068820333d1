"""Direct linear solvers."""

from typing import ClassVar, Literal, Optional, Union

from flax import nnx
from jax import Array
import jax.scipy.linalg as jax_linalg

from ..protocols import LinearMap


class DirectDense(nnx.Module):
    """
    LU (or Cholesky) solve of a dense Newton matrix.

    The matrix I - h ∂f/∂y is assembled column by column from
    Jacobian-vector products when no dense Jacobian is supplied, so this is
    only worthwhile for small systems.

    Attributes:
        assume_a: Structure of A passed to `jax.scipy.linalg.solve`:
            "gen" (general), "sym" or "pos" (symmetric positive-definite,
            e.g. backward Euler on a diffusion operator).
    """

    matrix_free: ClassVar[bool] = False

    def __init__(self, assume_a: Literal["gen", "sym", "pos"] = "gen"):
        self.assume_a = assume_a

    def __call__(
        self,
        A: Union[LinearMap, Array],
        b: Array,
        x0: Optional[Array] = None,
    ) -> Array:
        if callable(A):
            raise TypeError(
                "DirectDense requires a dense matrix, not a linear operator. "
                "Provide the Jacobian as a dense matrix (jac_fn), "
                "or use an iterative solver (GMRES, CG, BiCGStab)."
            )
        return jax_linalg.solve(A, b, assume_a=self.assume_a)
