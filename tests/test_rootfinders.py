"""Unit tests for the root-finding algorithms."""

import pytest
import jax.numpy as jnp

from odebench.integrate.rootfinders import NewtonRaphson
from odebench.integrate.linsolvers import GMRES, DirectDense


@pytest.fixture
def simple_nonlinear_system():
    """
    Non-linear system: 2y (sqrt(2) - y) = 0

    Roots at y=0 and y=sqrt(2). Starting from y=1, Newton's method
    converges to y=sqrt(2).
    """
    R = lambda y: 2.0 * y * (jnp.sqrt(2.0) - y)
    jvp = lambda y, v: 2.0 * (jnp.sqrt(2.0) - 2.0 * y) * v
    jac = lambda y: jnp.diag(2.0 * (jnp.sqrt(2.0) - 2.0 * y))
    y0 = jnp.ones((4,))
    soln = jnp.full_like(y0, jnp.sqrt(2.0))
    return R, jvp, jac, y0, soln


class TestRootFinders:

    def test_newton_raphson_matrix_free(self, simple_nonlinear_system):
        root_finder = NewtonRaphson(tol=1e-6, maxiter=50, linsolver=GMRES())
        residual, jvp, _, y0, expected = simple_nonlinear_system
        soln = root_finder(residual, y0, jvp_fn=jvp)
        assert jnp.allclose(soln, expected, atol=1e-5, rtol=1e-5)

    def test_newton_raphson_dense_matrix(self, simple_nonlinear_system):
        root_finder = NewtonRaphson(tol=1e-6, maxiter=50, linsolver=DirectDense())
        residual, _, jac, y0, expected = simple_nonlinear_system
        soln = root_finder(residual, y0, jac_fn=jac)
        assert jnp.allclose(soln, expected, atol=1e-5, rtol=1e-5)

    def test_default_linear_solver_is_gmres(self):
        assert isinstance(NewtonRaphson().linsolver, GMRES)

    def test_rejects_both_jacobian_forms(self, simple_nonlinear_system):
        residual, jvp, jac, y0, _ = simple_nonlinear_system
        with pytest.raises(ValueError, match="either"):
            NewtonRaphson()(residual, y0, jvp_fn=jvp, jac_fn=jac)

    def test_requires_a_jacobian_form(self, simple_nonlinear_system):
        residual, _, _, y0, _ = simple_nonlinear_system
        with pytest.raises(ValueError, match="Must provide"):
            NewtonRaphson()(residual, y0)

    def test_warns_when_not_converged(self, simple_nonlinear_system, caplog):
        residual, jvp, _, y0, _ = simple_nonlinear_system
        root_finder = NewtonRaphson(tol=1e-14, maxiter=1)
        with caplog.at_level("WARNING", logger="odebench"):
            root_finder(residual, y0, jvp_fn=jvp).block_until_ready()
        assert "did not converge" in caplog.text
