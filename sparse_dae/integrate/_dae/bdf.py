import numpy as np
from scipy.integrate._ivp.common import norm, EPS
from .base import DaeSolver
from ...logging import logger


MIN_FACTOR = 0.2
MAX_FACTOR = 10


def compute_R(order, factor):
    """Compute the matrix for changing the differences array."""
    I = np.arange(1, order + 1)[:, None]
    J = np.arange(1, order + 1)
    M = np.zeros((order + 1, order + 1))
    M[1:, 1:] = (I - 1 - factor * J) / I
    M[0] = 1
    return np.cumprod(M, axis=0)


def change_D(D, order, factor):
    """Change differences array in-place when step size is changed."""
    R = compute_R(order, factor)
    U = compute_R(order, 1)
    RU = R.dot(U)
    D[:order + 1] = np.dot(RU.T, D[:order + 1])


def solve_bdf_system(fun, t_new, y_predict, c, psi, LU, solve_lu, scale, tol,
                     newton_maxiter):
    """Solve the nonlinear system resulting from the BDF method.

    The residual ``fun(t, y, yp) = M yp - f(y, t)`` with ``yp = c d + psi``
    and ``d = y - y_predict`` is driven to zero by a simplified Newton
    iteration using the LU decomposition of ``c M - J``.

    Returns
    -------
    converged : bool
        Whether the iteration converged.
    n_iter : int
        Number of performed iterations.
    y, yp : ndarray, shape (n,)
        Last iterate of the state and its derivative.
    d : ndarray, shape (n,)
        Difference between the last iterate and the prediction.
    rate : float or None
        Estimated rate of convergence.
    """
    d = np.zeros_like(y_predict)
    y = y_predict.copy()
    yp = psi.copy()
    dy_norm_old = None
    rate = None
    converged = False
    if LU is None:
        return converged, 0, y, yp, d, rate

    for k in range(newton_maxiter):
        yp = c * d + psi
        f = fun(t_new, y, yp)
        if not np.all(np.isfinite(f)):
            break

        dy = solve_lu(LU, -f)
        if not np.all(np.isfinite(dy)):
            break
        dy_norm = norm(dy / scale)

        if dy_norm_old is None:
            rate = None
        else:
            rate = dy_norm / dy_norm_old

        if (rate is not None and (rate >= 1 or rate ** (newton_maxiter - k) / (1 - rate) * dy_norm > tol)):
            break

        y += dy
        d += dy

        if (dy_norm == 0 or rate is not None and rate / (1 - rate) * dy_norm < tol):
            converged = True
            break

        dy_norm_old = dy_norm

    return converged, k + 1, y, yp, d, rate


class BDFDAE(DaeSolver):
    """Implicit method based on backward-differentiation formulas.

    This is a variable order method with the order varying automatically from
    1 to `max_order`. The general framework of the BDF algorithm is described
    in [1]_. This class implements a quasi-constant step size as explained
    in [2]_. The error estimation strategy for the constant-step BDF is
    derived in [3]_.

    The history of accepted states is stored as the modified divided
    differences array ``D``, which is rescaled whenever the step size
    changes. Each step is solved by a simplified Newton iteration whose
    iteration matrix ``alpha / h M - J`` is factorized by the sparse direct
    solver. Factorization and Jacobian are reused as long as possible, the
    Jacobian is recomputed when the Newton iteration fails or converges
    slowly, see `jac_recompute_rate`.

    Different numerical differentiation formulas (NDF) are implemented. The
    choice of [4]_ enhances the stability, while [2]_ improves the accuracy
    of the method.

    Parameters
    ----------
    mass : MassMatrix, callable, sparse matrix, array_like or None
        Mass matrix of the system, see `DaeSolver`.
    rhs : callable
        Right-hand side ``rhs(x, t)`` of the system.
    t0 : float
        Initial time.
    x0 : array_like, shape (n,)
        Initial state.
    t_bound : float
        Boundary time - the integration won't continue beyond it. It also
        determines the direction of the integration.
    jac : callable or None, optional
        Jacobian of the right-hand side, see `DaeSolver`.
    options : SolverOptions or None, optional
        Solver options, see `SolverOptions`.
    t_stops : array_like or None, optional
        Times the solver has to step on exactly.
    xp0 : array_like, shape (n,) or None, optional
        Initial derivative.

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
    order : int
        Order of the method used for the next step.
    t_old : float
        Previous time. None if no steps were made yet.
    step_size : float
        Size of the last successful step. None if no steps were made yet.
    nfev : int
        Number of evaluations of the right-hand side.
    njev : int
        Number of evaluations of the Jacobian.
    nlu : int
        Number of LU decompositions.

    References
    ----------
    .. [1] G. D. Byrne, A. C. Hindmarsh, "A Polyalgorithm for the Numerical
           Solution of Ordinary Differential Equations", ACM Transactions on
           Mathematical Software, Vol. 1, No. 1, pp. 71-96, March 1975.
    .. [2] L. F. Shampine, M. W. Reichelt, "THE MATLAB ODE SUITE", SIAM J. SCI.
           COMPUTE., Vol. 18, No. 1, pp. 1-22, January 1997.
    .. [3] E. Hairer, G. Wanner, "Solving Ordinary Differential Equations I:
           Nonstiff Problems", Sec. III.2.
    .. [4] R. W. Klopfenstein, "Numerical differentiation formulas for stiff
           systems of ordinary differential equations", RCA Review, 32,
           pp. 447-462, September 1971.
    """
    def __init__(self, mass, rhs, t0, x0, t_bound, jac=None, options=None,
                 t_stops=None, xp0=None):
        super().__init__(mass, rhs, t0, x0, t_bound, jac, options,
                         t_stops, xp0)
        options = self.options
        rtol = np.min(self.rtol)
        self.newton_tol = max(10 * EPS / rtol, min(0.03, rtol ** 0.5))
        self.newton_maxiter = options.newton_maxiter
        self.jac_recompute_rate = options.jac_recompute_rate

        max_order = options.max_order
        self.max_order = max_order

        NDF_strategy = options.NDF_strategy
        if NDF_strategy == "stability":
            kappa = np.array([0, -37 / 200, -1/9, 0.0834, 0.0665, 0.0551, 0.0464])
        elif NDF_strategy == "efficiency":
            kappa = np.array([0, -37 / 200, -1/9, -0.0823, -0.0415, 0, 0])
        elif NDF_strategy == "bdf":
            kappa = np.zeros(7)
        else:
            kappa = np.array([0, -37 / 200, -1/9, 0, 0, 0, 0])

        kappa = kappa[:max_order + 1]
        self.gamma = np.hstack((0, np.cumsum(1 / np.arange(1, max_order + 1))))
        self.alpha = (1 - kappa) * self.gamma
        self.error_const = kappa * self.gamma + 1 / np.arange(1, max_order + 2)

        D = np.zeros((max_order + 3, self.n), dtype=self.x.dtype)
        D[0] = self.x
        D[1] = self.xp * self.h_abs * self.direction
        self.D = D

        self.order = 1
        self.n_equal_steps = 0
        self.LU = None
        self.current_jac = True

    def _step_impl(self):
        t = self.t
        D = self.D
        y = self.x

        max_step = self.max_step
        min_step = max(self.min_step,
                       10 * np.abs(np.nextafter(t, self.direction * np.inf) - t))
        if self.h_abs > max_step:
            h_abs = max_step
            change_D(D, self.order, max_step / self.h_abs)
            self.n_equal_steps = 0
        elif self.h_abs < min_step:
            h_abs = min_step
            change_D(D, self.order, min_step / self.h_abs)
            self.n_equal_steps = 0
        else:
            h_abs = self.h_abs

        atol = self.atol
        rtol = self.rtol
        order = self.order
        newton_maxiter = self.newton_maxiter

        alpha = self.alpha
        gamma = self.gamma
        error_const = self.error_const

        J = self.J
        M = self.M
        LU = self.LU
        current_jac = self.current_jac

        step_accepted = False
        while not step_accepted:
            if h_abs < min_step:
                logger.debug(f"t: {t:.6e}; h: {h_abs:.3e} below minimum step {min_step:.3e}")
                return False, self.TOO_SMALL_STEP

            h = h_abs * self.direction
            t_new = t + h

            # never step over the next stop time, land on it exactly
            if self.direction * (t_new - self.t_stop) > 0:
                t_new = self.t_stop
                change_D(D, order, np.abs(t_new - t) / h_abs)
                self.n_equal_steps = 0
                LU = None

            h = t_new - t
            h_abs = np.abs(h)

            y_predict = np.sum(D[:order + 1], axis=0)

            if self.mass is not None:
                M = self.mass(y_predict, t_new)
                self.M = M
                LU = None

            scale = atol + rtol * np.abs(y_predict)
            psi = np.dot(D[1: order + 1].T, gamma[1: order + 1]) / h

            converged = False
            c = alpha[order] / h
            while not converged:
                if LU is None:
                    LU = self.lu(c * M - J)

                converged, n_iter, y_new, yp_new, d, rate = solve_bdf_system(
                    self.fun, t_new, y_predict, c, psi, LU, self.solve_lu,
                    scale, self.newton_tol, newton_maxiter)

                if not converged:
                    if current_jac:
                        break
                    J = self.jac(y, t)
                    LU = None
                    current_jac = True

            if not converged:
                logger.debug(f"t: {t:.6e}; h: {h_abs:.3e}; order: {order}; "
                             "Newton iteration failed, halving step size")
                factor = 0.5
                h_abs *= factor
                change_D(D, order, factor)
                self.n_equal_steps = 0
                LU = None
                continue

            safety = 0.9 * (2 * newton_maxiter + 1) / (2 * newton_maxiter + n_iter)

            error = error_const[order] * d
            scale = atol + rtol * np.abs(y_new)
            error_norm = norm(error / scale)

            if error_norm > 1:
                factor = max(MIN_FACTOR,
                             safety * error_norm ** (-1 / (order + 1)))
                logger.debug(f"t: {t:.6e}; h: {h_abs:.3e}; order: {order}; "
                             f"error {error_norm:.3e} too large, factor {factor:.3f}")
                h_abs *= factor
                change_D(D, order, factor)
                self.n_equal_steps = 0
                # As we didn't have problems with convergence, we don't
                # reset LU here.
            else:
                step_accepted = True

        logger.debug(f"t: {t_new:.6e}; h: {h_abs:.3e}; order: {order}; "
                     f"newton iterations: {n_iter}; step accepted")

        self.n_equal_steps += 1

        self.t = t_new
        self.x = y_new
        self.xp = yp_new

        self.h_abs = h_abs
        self.LU = LU

        # slow convergence, refresh the Jacobian at the accepted state
        if n_iter > 2 and rate is not None and rate > self.jac_recompute_rate:
            J = self.jac(y_new, t_new)
            self.LU = None
            current_jac = True
        else:
            current_jac = False

        self.J = J
        self.current_jac = current_jac

        # Update differences. The principal relation here is
        # D^{j + 1} y_n = D^{j} y_n - D^{j} y_{n - 1}. Keep in mind that D
        # contained difference for previous interpolating polynomial and
        # d = D^{k + 1} y_n. Thus this elegant code follows.
        D[order + 2] = d - D[order + 1]
        D[order + 1] = d
        for i in reversed(range(order + 1)):
            D[i] += D[i + 1]

        if self.n_equal_steps < order + 1:
            return True, None

        if order > 1:
            error_m = error_const[order - 1] * D[order]
            error_m_norm = norm(error_m / scale)
        else:
            error_m_norm = np.inf

        if order < self.max_order:
            error_p = error_const[order + 1] * D[order + 2]
            error_p_norm = norm(error_p / scale)
        else:
            error_p_norm = np.inf

        error_norms = np.array([error_m_norm, error_norm, error_p_norm])
        with np.errstate(divide='ignore'):
            factors = error_norms ** (-1 / np.arange(order, order + 3))

        # choose order with largest factor
        delta_order = np.argmax(factors) - 1
        if delta_order != 0:
            logger.debug(f"t: {t_new:.6e}; order changed from {order} to "
                         f"{order + delta_order}")

        order += delta_order
        self.order = order

        factor = min(MAX_FACTOR, safety * np.max(factors))
        self.h_abs *= factor
        change_D(D, order, factor)
        self.n_equal_steps = 0
        self.LU = None

        return True, None
