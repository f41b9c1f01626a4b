import time
import numpy as np
import matplotlib.pyplot as plt
from scipy.integrate import solve_ivp
from sparse_dae.integrate import solve_dae, JacobianMatrix
from sparse_dae.logging import enable_debug_logging


"""Stiff van der Pol equation, see mathworks.
References:
-----------
mathworks: https://de.mathworks.com/help/matlab/math/solve-stiff-odes.html
"""

mu = 1e3

def rhs(x, t):
    y1, y2 = x[0], x[1]
    return np.array([
        y2,
        mu * (1 - y1 * y1) * y2 - y1,
    ])

class Jacobian(JacobianMatrix):
    """Analytical Jacobian, the right-hand side is written with numpy only."""
    def __call__(self, J, x, t):
        y1, y2 = x
        J(0, 1, 1.0)
        J(1, 0, -2 * mu * y1 * y2 - 1)
        J(1, 1, mu * (1 - y1 * y1))


if __name__ == "__main__":
    # time span
    t0 = 0
    t1 = 3e3
    t_span = (t0, t1)

    # initial conditions
    x0 = np.array([2, 0], dtype=float)

    # solver options
    atol = rtol = 1e-4
    first_step = 1e-3

    # enable_debug_logging()

    ####################
    # reference solution
    ####################
    start = time.time()
    sol = solve_ivp(lambda t, y: rhs(y, t), t_span, x0, atol=atol, rtol=rtol, method="BDF", first_step=first_step)
    end = time.time()
    print(f"elapsed time: {end - start}")
    t_scipy = sol.t
    y_scipy = sol.y
    print(f"success: {sol.success}")
    print(f"nfev: {sol.nfev}")
    print(f"njev: {sol.njev}")
    print(f"nlu: {sol.nlu}")

    ##############
    # dae solution
    ##############
    start = time.time()
    sol = solve_dae(None, rhs, x0, t_span, jac=Jacobian(), atol=atol, rtol=rtol, first_step=first_step)
    end = time.time()
    print(f"elapsed time: {end - start}")
    t = sol.t
    y = sol.y
    print(f"success: {sol.success}")
    print(f"status: {sol.status}")
    print(f"message: {sol.message}")
    print(f"nfev: {sol.nfev}")
    print(f"njev: {sol.njev}")
    print(f"nlu: {sol.nlu}")

    # visualization
    fig, ax = plt.subplots(2, 1)

    ax[0].plot(t, y[0], "ok", label="y (BDF)", mfc="none")
    ax[0].plot(t_scipy, y_scipy[0], "-xr", label="y scipy")
    ax[0].legend()
    ax[0].grid()

    ax[1].plot(t, y[1], "ok", label="y_dot (BDF)", mfc="none")
    ax[1].plot(t_scipy, y_scipy[1], "-xr", label="y_dot scipy")
    ax[1].legend()
    ax[1].grid()

    plt.show()
