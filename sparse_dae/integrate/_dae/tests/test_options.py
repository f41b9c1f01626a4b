import numpy as np
from numpy.testing import assert_, assert_equal
import pytest
from sparse_dae.integrate import solve_dae, BDFDAE, SolverOptions


def rhs_decay(x, t):
    return -x


@pytest.mark.parametrize("max_order", [7, 0, -1, 2.5])
def test_max_order_fallback(max_order):
    options = SolverOptions(max_order=max_order)
    with pytest.warns(UserWarning, match="Falling back to BDF-1"):
        options.check_options()
    assert_equal(options.max_order, 1)


def test_max_order_6_warns():
    options = SolverOptions(max_order=6)
    with pytest.warns(UserWarning, match="not recomended"):
        options.check_options()
    assert_equal(options.max_order, 6)


@pytest.mark.parametrize("newton_maxiter", [0, 1, 2.5])
def test_newton_maxiter_fallback(newton_maxiter):
    options = SolverOptions(newton_maxiter=newton_maxiter)
    with pytest.warns(UserWarning, match="newton_maxiter"):
        options.check_options()
    assert_equal(options.newton_maxiter, 4)


def test_single_newton_iteration_integrates():
    # one iteration can not estimate the rate of convergence
    with pytest.warns(UserWarning, match="newton_maxiter"):
        res = solve_dae(None, lambda x, t: -2.0 * x, [1.0], [0, 1],
                        newton_maxiter=1)
    assert_(res.success)
    assert_equal(res.status, 0)
    assert_(abs(res.y[0, -1] - np.exp(-2)) < 1e-2)

    res = solve_dae(None, lambda x, t: -2.0 * x, [1.0], [0, 1],
                    newton_maxiter=2)
    assert_(res.success)


@pytest.mark.parametrize("rate", [0.0, 1.0, 1.5])
def test_jac_recompute_rate_fallback(rate):
    options = SolverOptions(jac_recompute_rate=rate)
    with pytest.warns(UserWarning, match="jac_recompute_rate"):
        options.check_options()
    assert_equal(options.jac_recompute_rate, 1e-3)


def test_min_step_fallback():
    options = SolverOptions(min_step=-1.0)
    with pytest.warns(UserWarning, match="min_step"):
        options.check_options()
    assert_equal(options.min_step, 0.0)


def test_extraneous_option():
    with pytest.warns(UserWarning, match="no effect"):
        SolverOptions(foo=1)


def test_update():
    options = SolverOptions(rtol=1e-4)
    updated = options.update(atol=1e-9, max_order=3)
    assert_equal(options.atol, 1e-6)
    assert_equal(options.max_order, 5)
    assert_equal(updated.rtol, 1e-4)
    assert_equal(updated.atol, 1e-9)
    assert_equal(updated.max_order, 3)


def test_solver_falls_back_on_copy():
    options = SolverOptions(max_order=7)
    with pytest.warns(UserWarning):
        solver = BDFDAE(None, rhs_decay, 0.0, [1.0], 1.0, options=options)
    assert_equal(solver.max_order, 1)
    assert_equal(solver.options.max_order, 1)
    # the options of the caller are untouched
    assert_equal(options.max_order, 7)

    while solver.status == "running":
        solver.step()
    assert_equal(solver.status, "finished")
    assert_equal(solver.order, 1)


def test_solve_dae_options_and_kwargs():
    options = SolverOptions(rtol=1e-8, atol=1e-10)
    res_fine = solve_dae(None, rhs_decay, [1.0], [0, 1], options=options)
    res_coarse = solve_dae(None, rhs_decay, [1.0], [0, 1], options=options,
                           rtol=1e-3, atol=1e-6)
    assert_(res_fine.success)
    assert_(res_coarse.success)
    assert_(res_coarse.t.size < res_fine.t.size)
    assert_equal(options.rtol, 1e-8)

    with pytest.warns(UserWarning, match="Falling back to BDF-1"):
        res = solve_dae(None, rhs_decay, [1.0], [0, 1], max_order=7)
    assert_(res.success)


@pytest.mark.parametrize("strategy", ["stability", "efficiency", "bdf", None])
def test_NDF_strategies(strategy):
    res = solve_dae(None, rhs_decay, [1.0], [0, 2], NDF_strategy=strategy,
                    rtol=1e-6, atol=1e-9)
    assert_(res.success)
    assert_(abs(res.y[0, -1] - np.exp(-2)) < 1e-4)
