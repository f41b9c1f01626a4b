import numpy as np
from warnings import warn
from scipy.integrate._ivp.common import warn_extraneous


BDF_MAX_ORDER = 6
NEWTON_MAXITER = 4
JAC_RECOMPUTE_RATE = 1e-3


class SolverOptions:
    """Options of the DAE solver.

    Invalid values are not fatal. `check_options` replaces them by safe
    defaults and warns about it.

    Parameters
    ----------
    rtol, atol : float and array_like, optional
        Relative and absolute tolerances. The solver keeps the local error
        estimates less than ``atol + rtol * abs(x)``. Default values are
        1e-3 for `rtol` and 1e-6 for `atol`.
    first_step : float or None, optional
        Initial step size. Default is ``None`` which means that the algorithm
        should choose.
    max_step : float, optional
        Maximum allowed step size. Default is np.inf.
    min_step : float, optional
        Minimum allowed step size. If the step size has to be reduced below
        this value (or below the spacing of floating point numbers around the
        current time), the integration fails. Default is 0.
    max_order : int, optional
        Highest order of the method with 1 <= max_order <= 6. Out of range
        values fall back to 1. Default is 5.
    NDF_strategy : string, optional
        The strategy that is applied for obtaining numerical differentiation
        formulas (NDF):

            * 'stability' (default): Increase A(alpha) stability without
              decreasing efficiency too much.
            * 'efficiency': Increase efficiency without decreasing A(alpha)
              stability too much.
            * 'bdf': Classical backward differentiation formulas.
            * otherwise: BDF with improved efficiency for the first and
              second order method.
    newton_maxiter : int, optional
        Maximum number of Newton iterations per step attempt. At least two
        iterations are required to estimate the rate of convergence, smaller
        values fall back to the default. Default is 4.
    jac_recompute_rate : float, optional
        Rate of convergence of the Newton iteration above which the Jacobian
        is recomputed after an accepted step. Smaller values recompute the
        Jacobian more often. Has to be in (0, 1). Default is 1e-3.
    """
    def __init__(self, rtol=1e-3, atol=1e-6, first_step=None,
                 max_step=np.inf, min_step=0.0, max_order=5,
                 NDF_strategy="stability", newton_maxiter=NEWTON_MAXITER,
                 jac_recompute_rate=JAC_RECOMPUTE_RATE, **extraneous):
        warn_extraneous(extraneous)
        self.rtol = rtol
        self.atol = atol
        self.first_step = first_step
        self.max_step = max_step
        self.min_step = min_step
        self.max_order = max_order
        self.NDF_strategy = NDF_strategy
        self.newton_maxiter = newton_maxiter
        self.jac_recompute_rate = jac_recompute_rate

    def update(self, **options):
        """Return a copy with the given options replaced."""
        kwargs = dict(vars(self))
        kwargs.update(options)
        return SolverOptions(**kwargs)

    def check_options(self):
        """Check the options and fall back to defaults for invalid values."""
        if not (isinstance(self.max_order, (int, np.integer))
                and 1 <= self.max_order <= BDF_MAX_ORDER):
            warn(f"`max_order` has to be an integer in [1, {BDF_MAX_ORDER}], "
                 f"got {self.max_order}. Falling back to BDF-1.", stacklevel=3)
            self.max_order = 1
        elif self.max_order == BDF_MAX_ORDER:
            warn("Choosing `max_order = 6` is not recomended due to its poor "
                 "stability properties.", stacklevel=3)

        if not (isinstance(self.newton_maxiter, (int, np.integer))
                and self.newton_maxiter >= 2):
            warn(f"`newton_maxiter` has to be an integer >= 2, got "
                 f"{self.newton_maxiter}. Falling back to {NEWTON_MAXITER}.",
                 stacklevel=3)
            self.newton_maxiter = NEWTON_MAXITER

        if not 0 < self.jac_recompute_rate < 1:
            warn(f"`jac_recompute_rate` has to be in (0, 1), got "
                 f"{self.jac_recompute_rate}. Falling back to "
                 f"{JAC_RECOMPUTE_RATE}.", stacklevel=3)
            self.jac_recompute_rate = JAC_RECOMPUTE_RATE

        if self.min_step < 0:
            warn(f"`min_step` has to be non-negative, got {self.min_step}. "
                 "Falling back to 0.", stacklevel=3)
            self.min_step = 0.0

        return self
