import logging
from numpy.testing import assert_, assert_equal
from scipy.sparse import csc_matrix
from sparse_dae.integrate import solve_dae, JacobianMatrix
from sparse_dae.logging import logger, set_log_level, enable_debug_logging


def rhs_decay(x, t):
    return -x


def test_step_decisions_logged(caplog):
    with caplog.at_level(logging.DEBUG, logger="sparse_dae"):
        res = solve_dae(None, rhs_decay, [1.0], [0, 1])
    assert_(res.success)

    messages = [r.getMessage() for r in caplog.records if r.name == "sparse_dae"]
    assert_equal(sum("step accepted" in m for m in messages), len(res.t) - 1)


def test_failure_logged(caplog):
    class EmptyJacobian(JacobianMatrix):
        def __call__(self, J, x, t):
            pass

    with caplog.at_level(logging.ERROR, logger="sparse_dae"):
        res = solve_dae(csc_matrix((1, 1)), lambda x, t: x - 1, [0.0], [0, 1],
                        jac=EmptyJacobian(), first_step=0.1, min_step=1e-3)
    assert_equal(res.status, -1)
    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert_equal(len(errors), 1)
    assert_("Integration failed" in errors[0].getMessage())


def test_set_log_level():
    try:
        enable_debug_logging()
        assert_equal(logger.level, logging.DEBUG)
        assert_(all(h.level == logging.DEBUG for h in logger.handlers))

        set_log_level(logging.INFO)
        assert_equal(logger.level, logging.INFO)
    finally:
        set_log_level(logging.WARNING)
    assert_equal(logger.getEffectiveLevel(), logging.WARNING)
