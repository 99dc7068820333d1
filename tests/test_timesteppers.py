"""Unit tests for the time stepping schemes."""

import pytest
import jax.numpy as jnp

from odebench.integrate import (
    ExplicitRungeKutta,
    ForwardEuler,
    RK4,
    BackwardEuler,
    NewtonRaphson,
    GMRES,
    CG,
    BiCGStab,
    DirectDense,
    solve_ivp,
)
from odebench.problems import d2__dx2_c_dirichlet, gaussian_solution, jacobi_preconditioner


def heat_rhs_dirichlet(
    t: float,
    u: jnp.ndarray,
    diffusivity: float,
    bc_left: float,
    bc_right: float,
    dx: float,
) -> jnp.ndarray:
    """Right-hand side of heat equation: du/dt = D d²u/dx²"""
    return diffusivity * d2__dx2_c_dirichlet(u, dx, bc_left, bc_right)


def heat_jac_dirichlet(t, u, diffusivity, bc_left, bc_right, dx):
    n = u.shape[0]
    stencil = -2.0 * jnp.eye(n) + jnp.eye(n, k=1) + jnp.eye(n, k=-1)
    return diffusivity * stencil / dx**2


@pytest.fixture
def heat_equation_setup():
    """
    Setup for 1D heat equation with Dirichlet BCs.

    Problem: du/dt = D d²u/dx² on [0, L] with u(0,t) = u(L,t) = 0
    Initial condition: Gaussian centered at L/2
    """
    # Physical parameters
    D = 2.0  # diffusivity
    L = 100.0  # domain length
    n = 32  # number of interior grid points
    dx = L / (n + 1)  # grid spacing
    bc_values = (0.0, 0.0)  # Dirichlet boundary condition values

    # Spatial grid (interior points only)
    x = jnp.linspace(dx, L - dx, n, endpoint=True)

    return {
        'D': D,
        'L': L,
        'n': n,
        'dx': dx,
        'x': x,
        'bc_values': bc_values,
    }


def _integrate(setup, method, t_span, dt):
    D, dx = setup['D'], setup['dx']
    bc_left, bc_right = setup['bc_values']
    y0 = gaussian_solution(setup['x'], t_span[0], D, setup['L'])
    return solve_ivp(
        heat_rhs_dirichlet,
        t_span,
        y0,
        method,
        step_size=dt,
        args=(D, bc_left, bc_right, dx),
    )


class TestExplicitMethods:
    """Test explicit time-stepping methods on the heat equation."""

    def test_forward_euler(self, heat_equation_setup):
        setup = heat_equation_setup
        dt = 0.2 * setup['dx']**2 / setup['D']

        t_final, y_final = _integrate(setup, ForwardEuler(), (1.0, 1.5), dt)

        y_exact = gaussian_solution(setup['x'], 1.5, setup['D'], setup['L'])
        assert jnp.isclose(t_final, 1.5)
        assert jnp.allclose(y_final, y_exact, atol=9*dt)

    def test_rk4(self, heat_equation_setup):
        setup = heat_equation_setup
        dt = 0.2 * setup['dx']**2 / setup['D']

        t_final, y_final = _integrate(setup, RK4(), (1.0, 5.0), dt)

        y_exact = gaussian_solution(setup['x'], 5.0, setup['D'], setup['L'])
        assert jnp.isclose(t_final, 5.0)
        assert jnp.allclose(y_final, y_exact, atol=9*(dt**2))

    def test_final_step_is_clipped(self):
        """A step size that does not divide the interval still ends on t_end."""
        t_final, y_final = solve_ivp(
            lambda t, y: -y, (0.0, 1.0), jnp.ones(2), RK4(), step_size=0.3
        )
        assert jnp.isclose(t_final, 1.0)
        assert jnp.allclose(y_final, jnp.exp(-1.0), atol=1e-3)

    def test_custom_tableau(self):
        """A second-order tableau converges at second order."""

        class Heun(ExplicitRungeKutta):
            a = ((), (1.0,))
            b = (0.5, 0.5)
            c = (0.0, 1.0)

        errors = []
        for h in (0.1, 0.05):
            _, y_final = solve_ivp(lambda t, y: -y, (0.0, 1.0), jnp.ones(1), Heun(), step_size=h)
            errors.append(jnp.abs(y_final[0] - jnp.exp(-1.0)))
        assert 3.5 < errors[0] / errors[1] < 4.5


class TestImplicitMethods:
    """Test backward Euler on the heat equation with each linear solver."""

    @pytest.mark.parametrize("linsolver", [GMRES(), CG(), BiCGStab(), DirectDense()])
    def test_backward_euler(self, heat_equation_setup, linsolver):
        setup = heat_equation_setup
        dt = 1.5 * setup['dx']**2 / setup['D']

        root_finder = NewtonRaphson(linsolver=linsolver, tol=1e-8, maxiter=20)
        method = BackwardEuler(root_finder=root_finder)
        t_final, y_final = _integrate(setup, method, (1.0, 5.0), dt)

        y_exact = gaussian_solution(setup['x'], 5.0, setup['D'], setup['L'])
        assert jnp.isclose(t_final, 5.0)
        assert jnp.allclose(y_final, y_exact, atol=9*dt)

    def test_linear_solvers_agree(self, heat_equation_setup):
        """Every linear solver converges to the same implicit update."""
        setup = heat_equation_setup
        dt = 0.25
        results = []
        for linsolver in (GMRES(tol=1e-10), CG(tol=1e-10), DirectDense()):
            root_finder = NewtonRaphson(linsolver=linsolver, tol=1e-10, maxiter=20)
            _, y_final = _integrate(setup, BackwardEuler(root_finder=root_finder), (1.0, 2.0), dt)
            results.append(y_final)
        assert jnp.allclose(results[0], results[1], atol=1e-8)
        assert jnp.allclose(results[0], results[2], atol=1e-8)

    def test_finite_difference_matches_autodiff(self, heat_equation_setup):
        setup = heat_equation_setup
        dt = 0.25
        root_finder = NewtonRaphson(linsolver=GMRES(tol=1e-10), tol=1e-10)
        _, y_ad = _integrate(
            setup, BackwardEuler(root_finder=root_finder), (1.0, 2.0), dt
        )
        _, y_fd = _integrate(
            setup,
            BackwardEuler(root_finder=root_finder, differentiation="finite_difference"),
            (1.0, 2.0),
            dt,
        )
        assert jnp.allclose(y_ad, y_fd, atol=1e-6)

    @pytest.mark.parametrize("linsolver", [GMRES(tol=1e-10), DirectDense()])
    def test_analytic_jacobian(self, heat_equation_setup, linsolver):
        """A dense Jacobian is used directly or through its matrix-vector product."""
        setup = heat_equation_setup
        dt = 0.25
        root_finder = NewtonRaphson(linsolver=linsolver, tol=1e-10)
        _, y_jac = _integrate(
            setup, BackwardEuler(root_finder=root_finder, jac=heat_jac_dirichlet), (1.0, 2.0), dt
        )
        _, y_ad = _integrate(
            setup, BackwardEuler(root_finder=root_finder), (1.0, 2.0), dt
        )
        assert jnp.allclose(y_jac, y_ad, atol=1e-8)

    def test_preconditioned_cg(self, heat_equation_setup):
        setup = heat_equation_setup
        dt = 0.25
        M = jacobi_preconditioner(setup['D'], setup['dx'], dt)
        plain = NewtonRaphson(linsolver=CG(tol=1e-10), tol=1e-10)
        preconditioned = NewtonRaphson(linsolver=CG(tol=1e-10, preconditioner=M), tol=1e-10)
        _, y_plain = _integrate(setup, BackwardEuler(root_finder=plain), (1.0, 2.0), dt)
        _, y_prec = _integrate(setup, BackwardEuler(root_finder=preconditioned), (1.0, 2.0), dt)
        assert jnp.allclose(y_plain, y_prec, atol=1e-8)


class TestJacobianHelpers:

    def test_dense_from_jvp(self):
        fun = lambda t, y: jnp.array([y[0] * y[1], y[0] ** 2])
        jac = BackwardEuler.dense_from_jvp(BackwardEuler.autodiff_jvp(fun))
        y = jnp.array([2.0, 3.0])
        expected = jnp.array([[3.0, 2.0], [4.0, 0.0]])
        assert jnp.allclose(jac(0.0, y), expected)

    def test_finite_difference_jvp(self):
        fun = lambda t, y: jnp.sin(y)
        jvp = BackwardEuler().finite_difference_jvp(fun)
        y = jnp.array([0.1, 0.5, 1.0])
        v = jnp.array([1.0, -2.0, 0.5])
        assert jnp.allclose(jvp(0.0, y, v), jnp.cos(y) * v, atol=1e-6)

    def test_finite_difference_jvp_zero_direction(self):
        jvp = BackwardEuler().finite_difference_jvp(lambda t, y: y**2)
        assert jnp.allclose(jvp(0.0, jnp.ones(3), jnp.zeros(3)), 0.0)
