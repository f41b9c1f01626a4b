import logging
import numpy as np
from numpy.testing import assert_, assert_allclose, assert_equal
import jax.numpy as jnp
import pytest
from sparse_dae.integrate import (
    solve_dae, SolutionManager, SolutionHolder, Solution,
)


def rhs_oscillator(x, t):
    return jnp.array([x[1], -x[0] - 0.5 * x[1] * (1 - x[0] ** 2)])


class CountingManager(SolutionManager):
    def __init__(self, stop_at=None):
        self.t = []
        self.x = []
        self.stop_at = stop_at

    def __call__(self, x, t):
        self.t.append(t)
        self.x.append(x)
        x[:] = np.nan  # a copy is passed, the solver is not affected
        if self.stop_at is not None and len(self.t) == self.stop_at:
            return 1
        return 0


def test_called_once_per_accepted_step(caplog):
    manager = CountingManager()
    # a large first step provokes rejected step attempts
    with caplog.at_level(logging.DEBUG, logger="sparse_dae"):
        res = solve_dae(None, rhs_oscillator, [2.0, 0.0], [0, 5],
                        manager=manager, rtol=1e-6, atol=1e-8, first_step=1.0)

    messages = [r.getMessage() for r in caplog.records if r.name == "sparse_dae"]
    n_rejected = sum("too large" in m or "Newton iteration failed" in m
                     for m in messages)
    assert_(n_rejected > 0)

    assert_(res.success)
    assert_equal(res.status, 0)
    assert_equal(len(manager.t), len(res.t) - 1)
    assert_equal(manager.t, res.t[1:])
    assert_(np.all(np.diff(manager.t) > 0))
    assert_(np.all(np.isfinite(res.y)))
    # the initial condition is not reported
    assert_(manager.t[0] > 0)


def test_default_manager_does_nothing():
    assert_equal(SolutionManager()(np.zeros(2), 0.0), 0)
    res = solve_dae(None, rhs_oscillator, [2.0, 0.0], [0, 1],
                    manager=SolutionManager())
    assert_(res.success)
    assert_equal(res.t[-1], 1.0)


def test_early_termination():
    holder = SolutionHolder()
    solution = Solution(holder)

    def manager(x, t):
        solution(x, t)
        return 1 if len(holder.t) == 3 else 0

    res = solve_dae(None, rhs_oscillator, [2.0, 0.0], [0, 10], manager=manager)

    assert_equal(len(holder.t), 3)
    assert_equal(len(holder.x), 3)
    assert_equal(res.status, 1)
    assert_(res.success)
    assert_equal(res.message, "Integration stopped by the solution manager.")
    assert_equal(res.t[1:], holder.t)
    assert_allclose(res.y[:, -1], holder.x[-1])


def test_early_termination_counting():
    manager = CountingManager(stop_at=3)
    res = solve_dae(None, rhs_oscillator, [2.0, 0.0], [0, 10], manager=manager)
    assert_equal(len(manager.t), 3)
    assert_equal(len(res.t), 4)
    assert_(res.t[-1] < 10)


def test_solution_output_times():
    t_output = [0.5, 1.0, 3.0, 2.0]
    holder = SolutionHolder()
    res = solve_dae(None, rhs_oscillator, [2.0, 0.0], [0, 3],
                    manager=Solution(holder, t_output), t_output=sorted(t_output))
    assert_(res.success)
    assert_equal(holder.t, [0.5, 1.0, 2.0, 3.0])

    t, x = holder.to_arrays()
    assert_equal(t, res.t)
    assert_allclose(x, res.y)


def test_solution_records_every_step():
    holder = SolutionHolder()
    res = solve_dae(None, rhs_oscillator, [2.0, 0.0], [0, 2],
                    manager=Solution(holder))
    assert_equal(holder.t, res.t[1:])
    assert_allclose(np.vstack(holder.x).T, res.y[:, 1:])


def test_print(capsys):
    holder = SolutionHolder()
    holder.print()
    assert_equal(capsys.readouterr().out, "")

    holder.t = [0.0, 1.0]
    holder.x = [np.array([1.0, 2.0, 3.0]), np.array([4.0, 5.0, 6.0])]

    holder.print()
    lines = capsys.readouterr().out.splitlines()
    assert_equal(lines[0], "Time\tx[0]\tx[1]\tx[2]")
    assert_equal(lines[2], "1.0\t4.0\t5.0\t6.0")

    # out of range indices are skipped
    holder.print([2, 0, 7])
    lines = capsys.readouterr().out.splitlines()
    assert_equal(lines[0], "Time\tx[2]\tx[0]")
    assert_equal(lines[1], "0.0\t3.0\t1.0")

    holder.t.append(2.0)
    with pytest.raises(ValueError, match="not equal"):
        holder.print()


def test_to_arrays_empty():
    t, x = SolutionHolder().to_arrays()
    assert_equal(t.size, 0)
    assert_equal(x.size, 0)
