"""Linear solvers based on Krylov subspaces."""

from typing import ClassVar, Union, Optional
from flax import nnx
from jax import Array
import jax.scipy.sparse.linalg as jax_sparse

from ..protocols import LinearMap, Preconditioner


class _Krylov(nnx.Module):
    """
    Shared configuration for the Krylov methods.

    Attributes:
        tol: Convergence tolerance for residual norm
        maxiter: Maximum number of iterations
        preconditioner: Optional operator x -> M*x approximating A^{-1}*x
    """

    matrix_free: ClassVar[bool] = True

    def __init__(
        self,
        tol: float = 1e-6,
        maxiter: int = 100,
        preconditioner: Optional[Preconditioner] = None,
    ):
        self.tol = tol
        self.maxiter = maxiter
        self.preconditioner = preconditioner


class GMRES(_Krylov):
    """
    Generalised Minimal Residual (GMRES).

    Dispatches to `jax.scipy.sparse.linalg.gmres`.
    Suitable for general non-symmetric systems.

    Implements: LinearSolverProtocol
    """

    def __call__(
        self,
        A: Union[LinearMap, Array],
        b: Array,
        x0: Optional[Array] = None
    ) -> Array:
        """
        Solve A*x = b using GMRES.

        Args:
            A: Dense matrix or linear operator with signature x -> A*x
            b: Right-hand side vector
            x0: Initial guess vector

        Returns:
            Approximate solution x
        """
        solution, _ = jax_sparse.gmres(
            A, b, x0=x0, tol=self.tol, maxiter=self.maxiter,
            M=self.preconditioner,
        )
        return solution


class CG(_Krylov):
    """
    Conjugate Gradients (CG).

    Dispatches to `jax.scipy.sparse.linalg.cg`.
    Only suitable for symmetric and positive-definite systems.

    Implements: LinearSolverProtocol
    """

    def __call__(
        self,
        A: Union[LinearMap, Array],
        b: Array,
        x0: Optional[Array] = None
    ) -> Array:
        """
        Solve A*x = b.

        Args:
            A: Dense matrix or linear operator with signature x -> A*x
            b: Right-hand side vector
            x0: Initial guess vector

        Returns:
            Approximate solution x
        """
        solution, _ = jax_sparse.cg(
            A, b, x0=x0, tol=self.tol, maxiter=self.maxiter,
            M=self.preconditioner,
        )
        return solution


class BiCGStab(_Krylov):
    """
    Stabilised Biconjugate Gradients (BiCGStab).

    Dispatches to `jax.scipy.sparse.linalg.bicgstab`.
    Suitable for non-symmetric systems.

    Implements: LinearSolverProtocol
    """

    def __call__(
        self,
        A: Union[LinearMap, Array],
        b: Array,
        x0: Optional[Array] = None
    ) -> Array:
        solution, _ = jax_sparse.bicgstab(
            A, b, x0=x0, tol=self.tol, maxiter=self.maxiter,
            M=self.preconditioner,
        )
        return solution
