######################################
# derived from
# from scipy.integrate._ivp import ivp
######################################

import inspect
import numpy as np
from scipy.integrate._ivp.ivp import OdeResult
from .base import DaeSolver
from .bdf import BDFDAE
from .options import SolverOptions
from ...logging import logger


METHODS = {
    "BDF": BDFDAE,
}


MESSAGES = {0: "The solver successfully reached the end of the integration interval.",
            1: "Integration stopped by the solution manager."}


def solve_dae(mass, rhs, x0, t_span, jac=None, manager=None, t_output=None,
              method="BDF", options=None, xp0=None, **kwargs):
    """Solve an initial value problem for a system of differential algebraic
    equations (DAE's) in semi-explicit form with mass matrix.

    This function numerically integrates the system::

        M x' = f(x, t)
        x(t0) = x0

    Here t is a 1-D independent variable (time), x(t) is an N-D vector-valued
    function (state), M is a constant or time/state dependent sparse mass
    matrix, which might be singular, and f(x, t) is an N-D vector-valued
    right-hand side. Zero rows of M correspond to algebraic equations
    ``0 = f_i(x, t)``.

    Parameters
    ----------
    mass : MassMatrix, callable, sparse matrix, array_like or None
        Mass matrix of the system. If callable, it is called as
        ``mass(M, x, t)`` and has to fill the empty `SparseMatrix` ``M``
        with the non-zero elements. A matrix is assumed to be constant. If
        None, the identity is used, i.e., an ODE system is solved.
    rhs : callable
        Right-hand side of the system. The calling signature is
        ``rhs(x, t)``, where ``x`` is an array of shape (n,) and ``t`` a
        scalar. It must return an array of shape (n,). In order to use
        automatic differentiation it has to be written with ``jax.numpy``
        functions or plain arithmetic operations.
    x0 : array_like, shape (n,)
        Initial state. It should be consistent with the algebraic equations.
    t_span : 2-member sequence
        Interval of integration (t0, t_bound). The solver starts with t=t0 and
        integrates until it reaches t=t_bound.
    jac : callable or None, optional
        Jacobian ``df/dx`` of the right-hand side. The calling signature is
        ``jac(J, x, t)``, where ``J`` is an empty `SparseMatrix` that has to
        be filled with the non-zero elements. There are three ways to define
        the Jacobian:

            * `JacobianMatrixShape`: the positions of the non-zero elements
              are given and each of them is computed by automatic
              differentiation.
            * `JacobianAutomatic`: the full Jacobian is computed by automatic
              differentiation.
            * A `JacobianMatrix` subclass or any callable with the signature
              above providing the analytical Jacobian.

        If None (default), `JacobianAutomatic` is used.
    manager : callable or None, optional
        Solution manager, called as ``manager(x, t)`` once for every accepted
        step, see `SolutionManager`. Returning a non-zero integer stops the
        integration.
    t_output : array_like or None, optional
        Sorted times within `t_span` the solver steps on exactly. If given,
        only the solution at these times is stored in the result. Default is
        None, which stores every accepted step.
    method : string or `DaeSolver`, optional
        Integration method to use:

            * 'BDF' (default): Implicit multi-step variable-order (1 to 6)
              method based on backward (or numerical) differentiation
              formulas.

        You can also pass an arbitrary class derived from `DaeSolver` which
        implements the solver.
    options : SolverOptions or None, optional
        Solver options, see `SolverOptions`.
    xp0 : array_like, shape (n,) or None, optional
        Initial derivative. If None (default), it is estimated.
    **kwargs
        Options overriding the ones from `options`, e.g. ``rtol``, ``atol``,
        ``first_step``, ``max_order``.

    Returns
    -------
    Bunch object with the following fields defined:
    t : ndarray, shape (n_points,)
        Time points.
    y : ndarray, shape (n, n_points)
        Values of the solution at `t`.
    nfev : int
        Number of evaluations of the right-hand side.
    njev : int
        Number of evaluations of the Jacobian.
    nlu : int
        Number of LU decompositions.
    status : int
        Reason for algorithm termination:

            * -1: Integration step failed.
            *  0: The solver successfully reached the end of `tspan`.
            *  1: The solution manager requested termination.

    message : string
        Human-readable description of the termination reason.
    success : bool
        True if the solver reached the interval end or the solution manager
        stopped the integration (``status >= 0``).
    """
    if method not in METHODS and not (
            inspect.isclass(method) and issubclass(method, DaeSolver)):
        raise ValueError(f"`method` must be one of {METHODS} or DaeSolver class.")

    t0, t_bound = map(float, t_span)

    if options is None:
        options = SolverOptions(**kwargs)
    elif kwargs:
        options = options.update(**kwargs)

    if t_output is not None:
        t_output = np.asarray(t_output, dtype=float)
        if t_output.ndim != 1:
            raise ValueError("`t_output` must be 1-dimensional.")

    if method in METHODS:
        method = METHODS[method]

    solver = method(mass, rhs, t0, x0, t_bound, jac=jac, options=options,
                    t_stops=t_output, xp0=xp0)

    if t_output is None:
        ts = [t0]
        ys = [solver.x.copy()]
    else:
        t_output_set = set(t_output.tolist())
        if t0 in t_output_set:
            ts = [t0]
            ys = [solver.x.copy()]
        else:
            ts = []
            ys = []

    status = None
    while status is None:
        message = solver.step()

        if solver.status == 'finished':
            status = 0
        elif solver.status == 'failed':
            status = -1
            logger.error(f"Integration failed at t = {solver.t}: {message}")
            break

        if solver.t == solver.t_old:
            # empty integration interval
            continue

        t = solver.t
        x = solver.x

        if t_output is None or t in t_output_set:
            ts.append(t)
            ys.append(x.copy())

        if manager is not None and manager(x.copy(), t):
            status = 1

    message = MESSAGES.get(status, message)

    ts = np.array(ts)
    if ys:
        ys = np.vstack(ys).T
    else:
        ys = np.empty((solver.n, 0))

    return OdeResult(t=ts, y=ys, nfev=solver.nfev, njev=solver.njev,
                     nlu=solver.nlu, status=status, message=message,
                     success=status >= 0)
