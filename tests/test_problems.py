"""Unit tests for the example problems and their Jacobians."""

import pytest
import numpy as np
import jax
import jax.numpy as jnp

from odebench.problems import (
    PROBLEMS,
    get_problem,
    robertson,
    robertson_jacobian,
    robertson_generic,
    make_cached_robertson,
    heat_rhs,
    heat_jacobian,
    brusselator_sparsity,
    make_brusselator,
    random_parameters,
    d2__dx2_c_periodic,
    d2__dx2_c_dirichlet,
    laplacian_2d_periodic,
)
from odebench.problems.robertson import DEFAULT_PARAMS
from odebench.problems.brusselator import brusselator_initial_state


@pytest.fixture
def robertson_state():
    return jnp.array([0.7, 2e-5, 0.3])


class TestRegistry:

    def test_all_problems_build(self):
        for name in PROBLEMS:
            problem = get_problem(name) if name != "brusselator" else get_problem(name, N=4)
            assert problem.size > 0

    def test_hyphenated_names(self):
        assert get_problem("robertson-cached").name == "robertson_cached"

    def test_unknown_problem(self):
        with pytest.raises(KeyError, match="Available"):
            get_problem("van_der_pol")

    def test_unknown_robertson_variant(self):
        from odebench.problems import robertson_problem
        with pytest.raises(ValueError, match="variant"):
            robertson_problem(variant="sparse")


class TestRobertson:

    def test_mass_is_conserved(self, robertson_state):
        du = robertson(robertson_state, DEFAULT_PARAMS, 0.0)
        assert jnp.isclose(jnp.sum(du), 0.0, atol=1e-12)

    def test_variants_agree(self, robertson_state):
        expected = robertson(robertson_state, DEFAULT_PARAMS, 0.0)
        cached = make_cached_robertson()(np.asarray(robertson_state), DEFAULT_PARAMS, 0.0)
        generic = robertson_generic(robertson_state, DEFAULT_PARAMS, 0.0)
        np.testing.assert_allclose(cached, expected, rtol=1e-12)
        np.testing.assert_allclose(generic, expected, rtol=1e-12)

    def test_cached_buffer_is_not_shared_with_result(self, robertson_state):
        f = make_cached_robertson()
        first = f(np.asarray(robertson_state), DEFAULT_PARAMS, 0.0)
        f(np.array([0.1, 0.1, 0.8]), DEFAULT_PARAMS, 0.0)
        np.testing.assert_allclose(first, robertson(robertson_state, DEFAULT_PARAMS, 0.0))

    def test_analytic_jacobian_matches_autodiff(self, robertson_state):
        expected = jax.jacfwd(lambda u: robertson(u, DEFAULT_PARAMS, 0.0))(robertson_state)
        actual = robertson_jacobian(robertson_state, DEFAULT_PARAMS, 0.0)
        np.testing.assert_allclose(actual, expected, rtol=1e-12)

    def test_generic_variant_is_differentiable(self, robertson_state):
        J = jax.jacfwd(lambda u: robertson_generic(u, DEFAULT_PARAMS, 0.0))(robertson_state)
        np.testing.assert_allclose(
            J, robertson_jacobian(robertson_state, DEFAULT_PARAMS, 0.0), rtol=1e-12
        )

    def test_cached_variant_is_not_differentiable(self, robertson_state):
        f = make_cached_robertson()
        with pytest.raises(TypeError):
            jax.jit(jax.jacfwd(lambda u: f(u, DEFAULT_PARAMS, 0.0)))(robertson_state)


class TestHeat:

    def test_jacobian_matches_autodiff(self):
        problem = get_problem("heat", n=16)
        u = jnp.asarray(problem.initial_state)
        expected = jax.jacfwd(lambda y: heat_rhs(y, problem.params, 0.0))(u)
        np.testing.assert_allclose(heat_jacobian(u, problem.params, 0.0), expected, atol=1e-12)

    def test_sparsity_covers_jacobian(self):
        problem = get_problem("heat", n=16)
        J = heat_jacobian(jnp.asarray(problem.initial_state), problem.params, 0.0)
        pattern = problem.sparsity_pattern().toarray()
        assert np.all(pattern[np.asarray(J) != 0])


class TestBrusselator:

    def test_sparsity_covers_jacobian(self):
        N = 5
        f = make_brusselator(N)
        y0 = jnp.asarray(brusselator_initial_state(N))
        J = np.asarray(jax.jacfwd(lambda y: f(y, (1.0, 3.4, 10.0), 2.0))(y0))
        pattern = brusselator_sparsity(N).toarray()
        assert pattern.shape == (2 * N * N, 2 * N * N)
        assert np.all(pattern[J != 0])

    def test_six_entries_per_row(self):
        pattern = brusselator_sparsity(6)
        assert np.all(np.diff(pattern.tocsr().indptr) == 6)

    def test_forcing_switches_on(self):
        N = 8
        f = make_brusselator(N)
        y0 = jnp.asarray(brusselator_initial_state(N))
        p = (1.0, 3.4, 10.0)
        diff = f(y0, p, 1.2) - f(y0, p, 1.0)
        assert jnp.max(diff) == pytest.approx(5.0)
        assert jnp.min(diff) == pytest.approx(0.0)

    def test_rejects_small_grid(self):
        with pytest.raises(ValueError, match="N >= 3"):
            get_problem("brusselator", N=2)


class TestLorenz:

    def test_random_parameters(self):
        params = random_parameters(jax.random.PRNGKey(0), 16)
        assert params.shape == (16, 3)
        assert jnp.all(params >= 0.0)
        assert jnp.all(params <= jnp.array([10.0, 28.0, 8.0 / 3.0]))


class TestFiniteDifferences:

    def test_periodic_second_derivative(self):
        n = 128
        dx = 2.0 * jnp.pi / n
        x = jnp.arange(n) * dx
        d2u = d2__dx2_c_periodic(jnp.sin(x), dx)
        assert jnp.allclose(d2u, -jnp.sin(x), atol=1e-3)

    def test_dirichlet_second_derivative_of_quadratic(self):
        n = 9
        dx = 1.0 / (n + 1)
        x = jnp.linspace(dx, 1.0 - dx, n)
        d2u = d2__dx2_c_dirichlet(x**2, dx, 0.0, 1.0)
        assert jnp.allclose(d2u, 2.0, atol=1e-8)

    def test_periodic_laplacian(self):
        n = 64
        dx = 1.0 / n
        x = jnp.arange(n) * dx
        X, Y = jnp.meshgrid(x, x, indexing="ij")
        u = jnp.sin(2 * jnp.pi * X) * jnp.sin(2 * jnp.pi * Y)
        expected = -8.0 * jnp.pi**2 * u
        assert jnp.allclose(laplacian_2d_periodic(u, dx), expected, atol=0.1)
