import numpy as np
from numpy.testing import assert_, assert_allclose, assert_equal
import pytest
from sparse_dae.integrate import solve_dae, BDFDAE


def rhs_decay(x, t):
    return -x


def test_x0_not_1d():
    with pytest.raises(ValueError, match="must be 1-dimensional"):
        solve_dae(None, rhs_decay, [[1.0, 2.0]], [0, 1])


def test_x0_not_finite():
    with pytest.raises(ValueError, match="must be finite"):
        solve_dae(None, rhs_decay, [1.0, np.nan], [0, 1])
    with pytest.raises(ValueError, match="must be finite"):
        solve_dae(None, rhs_decay, [np.inf], [0, 1])


def test_t_output_outside_span():
    with pytest.raises(ValueError, match="not within `t_span`"):
        solve_dae(None, rhs_decay, [1.0], [0, 1], t_output=[0.5, 2.0])
    with pytest.raises(ValueError, match="not within `t_span`"):
        solve_dae(None, rhs_decay, [1.0], [1, 0], t_output=[-0.5])


def test_t_output_not_sorted():
    with pytest.raises(ValueError, match="not properly sorted"):
        solve_dae(None, rhs_decay, [1.0], [0, 1], t_output=[0.5, 0.2])
    with pytest.raises(ValueError, match="not properly sorted"):
        solve_dae(None, rhs_decay, [1.0], [1, 0], t_output=[0.2, 0.5])
    with pytest.raises(ValueError, match="1-dimensional"):
        solve_dae(None, rhs_decay, [1.0], [0, 1], t_output=[[0.5]])


def test_t_output_backward():
    res = solve_dae(None, rhs_decay, [1.0], [1, 0], t_output=[0.5, 0.0])
    assert_(res.success)
    assert_equal(res.t, [0.5, 0.0])
    assert_allclose(res.y[0], np.exp([0.5, 1.0]), rtol=1e-2)


def test_jac_not_callable():
    with pytest.raises(ValueError, match="`jac` must be callable"):
        solve_dae(None, rhs_decay, [1.0], [0, 1], jac=np.eye(1))


def test_mass_shape():
    with pytest.raises(ValueError, match="expected to have shape"):
        solve_dae(np.eye(3), rhs_decay, [1.0, 2.0], [0, 1])

    def mass(M, x, t):
        M(0, 0, 1.0)
        M(2, 2, 1.0)

    with pytest.raises(ValueError):
        solve_dae(mass, rhs_decay, [1.0, 2.0], [0, 1])


def test_xp0_shape():
    with pytest.raises(ValueError, match="same shape"):
        solve_dae(None, rhs_decay, [1.0, 2.0], [0, 1], xp0=[1.0])


def test_xp0_not_finite():
    with pytest.raises(ValueError, match="must be finite"):
        solve_dae(None, rhs_decay, [1.0, 2.0], [0, 1], xp0=[np.nan, 1.0])
    with pytest.raises(ValueError, match="must be finite"):
        BDFDAE(None, rhs_decay, 0.0, [1.0], 1.0, xp0=[np.inf])


def test_xp0_given():
    res = solve_dae(None, rhs_decay, [1.0], [0, 1], xp0=[-1.0])
    assert_(res.success)
    assert_allclose(res.y[0, -1], np.exp(-1), rtol=1e-2)


def test_invalid_method():
    with pytest.raises(ValueError, match="`method` must be one of"):
        solve_dae(None, rhs_decay, [1.0], [0, 1], method="RK45")


def test_method_class():
    res = solve_dae(None, rhs_decay, [1.0], [0, 1], method=BDFDAE)
    assert_(res.success)


def test_step_after_finish():
    solver = BDFDAE(None, rhs_decay, 0.0, [1.0], 0.1)
    while solver.status == "running":
        solver.step()
    assert_equal(solver.status, "finished")
    assert_equal(solver.t, 0.1)
    with pytest.raises(RuntimeError):
        solver.step()
