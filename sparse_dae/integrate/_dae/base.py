import numpy as np
from scipy.sparse import issparse, csc_matrix
from scipy.sparse.linalg import splu
from scipy.integrate._ivp.common import (
    validate_max_step, validate_tol, validate_first_step,
)
from .common import select_initial_step, initial_derivative
from .jacobian import JacobianAutomatic
from .mass_matrix import MassMatrix, MassMatrixIdentity
from .options import SolverOptions
from .sparse_matrix import SparseMatrix


def check_arguments(rhs, x0):
    """Helper function for checking arguments common to all solvers."""
    x0 = np.asarray(x0, dtype=float)

    if x0.ndim != 1:
        raise ValueError("`x0` must be 1-dimensional.")

    if not np.isfinite(x0).all():
        raise ValueError("All components of the initial state `x0` must be finite.")

    def rhs_wrapped(x, t):
        return np.asarray(rhs(x, t), dtype=float)

    return rhs_wrapped, x0


def check_stops(t_stops, t0, t_bound):
    """Validate the times the solver has to step on exactly."""
    if t_stops is None:
        return np.empty(0)

    t_stops = np.asarray(t_stops, dtype=float)
    if t_stops.ndim != 1:
        raise ValueError("`t_stops` must be 1-dimensional.")

    if np.any(t_stops < min(t0, t_bound)) or np.any(t_stops > max(t0, t_bound)):
        raise ValueError("Values in `t_stops` are not within `t_span`.")

    d = np.diff(t_stops)
    if t_bound > t0 and np.any(d <= 0) or t_bound < t0 and np.any(d >= 0):
        raise ValueError("Values in `t_stops` are not properly sorted.")

    return t_stops


class DaeSolver:
    """Base class for solvers of the DAE system ``M x' = f(x, t)``.

    In order to implement a new solver you need to follow the guidelines:

        1. A constructor must accept parameters presented in the base class
           (listed below) along with any other parameters specific to a solver.
        2. A solver must implement a private method `_step_impl(self)` which
           propagates a solver one step further. It must return tuple
           ``(success, message)``, where ``success`` is a boolean indicating
           whether a step was successful, and ``message`` is a string
           containing description of a failure if a step failed or None
           otherwise.
        3. A solver must have attributes listed below in Attributes section.
           Note that ``t_old`` and ``step_size`` are updated automatically.
        4. Use `fun(self, t, x, xp)` for the residual ``M x' - f(x, t)`` and
           `rhs(self, x, t)` for the right-hand side, this way the number of
           right-hand side evaluations (`nfev`) will be tracked
           automatically.
        5. Use `jac(self, x, t)` and `mass(self, x, t)` to obtain the
           Jacobian and the mass matrix in csc format and `lu(self, A)`,
           `solve_lu(self, LU, b)` for the sparse direct solver. Jacobian
           evaluations (`njev`) and LU decompositions (`nlu`) are tracked
           automatically.
        6. A step must never cross ``self.t_stop``, the next time the
           solver has to hit exactly. Call `_update_stop` after each step.

    Parameters
    ----------
    mass : MassMatrix, callable, sparse matrix, array_like or None
        Mass matrix of the system. If callable, it is called as
        ``mass(M, x, t)`` and has to fill the empty `SparseMatrix` ``M``.
        A matrix is assumed to be constant. If None, the identity is used.
    rhs : callable
        Right-hand side ``rhs(x, t)`` of the system, see `RHS`.
    t0 : float
        Initial time.
    x0 : array_like, shape (n,)
        Initial state.
    t_bound : float
        Boundary time --- the integration won't continue beyond it. It also
        determines the direction of the integration.
    jac : callable or None, optional
        Jacobian ``df/dx`` of the right-hand side, called as ``jac(J, x, t)``
        with an empty `SparseMatrix` ``J`` to be filled. Typically one of
        `JacobianMatrixShape`, `JacobianAutomatic` or a user defined
        `JacobianMatrix`. If None (default), `JacobianAutomatic` is used.
    options : SolverOptions or None, optional
        Solver options. If None (default), the default options are used.
    t_stops : array_like or None, optional
        Sorted times within the integration interval the solver has to step
        on exactly.
    xp0 : array_like, shape (n,) or None, optional
        Initial derivative. If None (default), it is estimated from
        ``M x'(t0) = f(x0, t0)``, see `initial_derivative`.

    Attributes
    ----------
    n : int
        Number of equations.
    status : string
        Current status of the solver: 'running', 'finished' or 'failed'.
    t_bound : float
        Boundary time.
    direction : float
        Integration direction: +1 or -1.
    t : float
        Current time.
    x : ndarray
        Current state.
    xp : ndarray
        Current derivative.
    t_old : float
        Previous time. None if no steps were made yet.
    step_size : float
        Size of the last successful step. None if no steps were made yet.
    nfev : int
        Number of the right-hand side evaluations.
    njev : int
        Number of the Jacobian evaluations.
    nlu : int
        Number of LU decompositions.
    """
    TOO_SMALL_STEP = "Required step size is less than spacing between numbers."

    def __init__(self, mass, rhs, t0, x0, t_bound, jac=None, options=None,
                 t_stops=None, xp0=None):
        self.t_old = None
        self.t = t0
        self._rhs, self.x = check_arguments(rhs, x0)
        self.t_bound = t_bound
        self.n = self.x.size

        if options is None:
            options = SolverOptions()
        # work on a copy, the caller's options are read-only
        options = options.update().check_options()
        self.options = options

        self.max_step = validate_max_step(options.max_step)
        self.min_step = options.min_step
        self.rtol, self.atol = validate_tol(options.rtol, options.atol, self.n)

        self.nfev = 0
        self.njev = 0
        self.nlu = 0

        def lu(A):
            self.nlu += 1
            try:
                return splu(A)
            except RuntimeError:
                # exactly singular iteration matrix
                return None

        def solve_lu(LU, b):
            return LU.solve(b)

        self.lu = lu
        self.solve_lu = solve_lu

        self.direction = np.sign(t_bound - t0) if t_bound != t0 else 1
        self.status = 'running'
        self.t_stops = check_stops(t_stops, t0, t_bound)
        self._stop_index = 0
        self._update_stop()

        self.mass, self.M = self._validate_mass(mass)
        self.jac = self._validate_jac(jac, rhs)

        f0 = self.rhs(self.x, self.t)
        if xp0 is None:
            self.xp = initial_derivative(self.M, f0)
        else:
            self.xp = np.asarray(xp0, dtype=float)
            if self.xp.shape != self.x.shape:
                raise ValueError("`x0` and `xp0` must be of same shape.")
            if not np.isfinite(self.xp).all():
                raise ValueError("All components of the initial derivative "
                                 "`xp0` must be finite.")

        if options.first_step is None:
            self.h_abs = select_initial_step(
                self.t, self.x, self.xp, self.t_bound,
                self.rtol, self.atol, self.max_step)
        else:
            self.h_abs = validate_first_step(options.first_step, t0, t_bound)

    def rhs(self, x, t):
        self.nfev += 1
        return self._rhs(x, t)

    def fun(self, t, x, xp):
        """Residual ``M x' - f(x, t)`` of the system."""
        return self.M @ xp - self.rhs(x, t)

    def _validate_mass(self, mass):
        n = self.n

        if mass is None:
            mass = MassMatrixIdentity(n)

        if callable(mass):
            buffer = SparseMatrix()
            time_independent = getattr(mass, "time_independent",
                                       MassMatrix.time_independent)

            def mass_wrapped(x, t):
                buffer.clear()
                mass(buffer, x, t)
                return buffer.tocsc(n)

            M = mass_wrapped(self.x, self.t)
            if time_independent:
                mass_wrapped = None
        else:
            if issparse(mass):
                M = csc_matrix(mass, dtype=float)
            else:
                M = csc_matrix(np.asarray(mass, dtype=float))
            mass_wrapped = None

        if M.shape != (n, n):
            raise ValueError("`M` is expected to have shape {}, but "
                             "actually has {}.".format((n, n), M.shape))

        return mass_wrapped, M

    def _validate_jac(self, jac, rhs):
        n = self.n

        if jac is None:
            jac = JacobianAutomatic(rhs)
        elif not callable(jac):
            raise ValueError("`jac` must be callable or None.")

        # the sparse Jacobian is refilled in place for every evaluation
        buffer = SparseMatrix()

        def jac_wrapped(x, t):
            self.njev += 1
            buffer.clear()
            jac(buffer, x, t)
            return buffer.tocsc(n)

        J = jac_wrapped(self.x, self.t)
        if J.shape != (n, n):
            raise ValueError("`J` is expected to have shape {}, but "
                             "actually has {}.".format((n, n), J.shape))
        self.J = J
        return jac_wrapped

    def _update_stop(self):
        """Select the next time the solver has to step on exactly."""
        t_stops = self.t_stops
        while (self._stop_index < t_stops.size
               and self.direction * (t_stops[self._stop_index] - self.t) <= 0):
            self._stop_index += 1
        if self._stop_index < t_stops.size:
            self.t_stop = t_stops[self._stop_index]
        else:
            self.t_stop = self.t_bound

    @property
    def step_size(self):
        if self.t_old is None:
            return None
        else:
            return np.abs(self.t - self.t_old)

    def step(self):
        """Perform one integration step.

        Returns
        -------
        message : string or None
            Report from the solver. Typically a reason for a failure if
            `self.status` is 'failed' after the step was taken or None
            otherwise.
        """
        if self.status != 'running':
            raise RuntimeError("Attempt to step on a failed or finished "
                               "solver.")

        if self.n == 0 or self.t == self.t_bound:
            # Handle corner cases of empty solver or no integration.
            self.t_old = self.t
            self.t = self.t_bound
            message = None
            self.status = 'finished'
        else:
            t = self.t
            success, message = self._step_impl()

            if not success:
                self.status = 'failed'
            else:
                self.t_old = t
                self._update_stop()
                if self.direction * (self.t - self.t_bound) >= 0:
                    self.status = 'finished'

        return message

    def _step_impl(self):
        raise NotImplementedError
