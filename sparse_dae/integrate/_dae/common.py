import numpy as np
from scipy.sparse.linalg import splu, lsqr


def select_initial_step(t0, x0, xp0, t_bound, rtol, atol, max_step):
    """Empirically select a good initial step.

    The step is chosen such that the first order Taylor polynomial changes
    by roughly ``sqrt(rtol)`` relative to the state, as done in ``ode15s``.

    Parameters
    ----------
    t0 : float
        Initial value of the independent variable.
    x0 : ndarray, shape (n,)
        Initial value of the dependent variable.
    xp0 : ndarray, shape (n,)
        Initial value of the dependent variable's derivative.
    t_bound : float
        Final value of the independent variable.
    rtol : float
        Desired relative tolerance.
    atol : float
        Desired absolute tolerance.
    max_step : float
        Maximum allowed step size.

    Returns
    -------
    h_abs : float
        Absolute value of the suggested initial step.
    """
    min_step = 0.0
    threshold = atol / rtol
    hspan = abs(t_bound - t0)

    # compute an initial step size h using xp = x'(t0)
    wt = np.maximum(np.abs(x0), threshold)
    rh = 1.25 * np.linalg.norm(xp0 / wt, np.inf) / np.sqrt(rtol)
    h_abs = min(max_step, hspan)
    if h_abs * rh > 1:
        h_abs = 1 / rh
    h_abs = max(h_abs, min_step)
    return h_abs


def initial_derivative(M, f0):
    """Estimate ``x'(t0)`` from ``M x'(t0) = f(x0, t0)``.

    For a nonsingular mass matrix the system is solved directly. Otherwise
    the minimum norm least squares solution is used, which recovers the
    derivatives of the differential components while the algebraic ones are
    set to zero.

    Parameters
    ----------
    M : sparse matrix, shape (n, n)
        Mass matrix in csc format.
    f0 : ndarray, shape (n,)
        Right-hand side at the initial state.

    Returns
    -------
    xp0 : ndarray, shape (n,)
    """
    try:
        xp0 = splu(M).solve(f0)
    except RuntimeError:
        # singular mass matrix
        xp0 = lsqr(M, f0, atol=1e-12, btol=1e-12)[0]

    if not np.all(np.isfinite(xp0)):
        xp0 = np.zeros_like(f0)
    return xp0
